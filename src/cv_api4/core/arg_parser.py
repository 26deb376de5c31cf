"""Inline argument grammar: ``KEY=VALUE``, ``+OP EXPR`` and JSON fragments.

Every function in this module is a **pure** transformation — no I/O,
no side effects, fully deterministic.

Token forms (processed strictly left to right, later keys win):

* ``KEY=VALUE`` — ``VALUE`` is JSON-decoded when possible, else kept as
  a string.
* ``+OP EXPR`` / ``+OP=EXPR`` / ``+OP:EXPR`` — shorthand for a common
  structured parameter (see :data:`SHORTHAND_OPTIONS`).
* ``{...}`` / ``[...]`` / ``"..."`` — a JSON object whose top-level keys
  are merged into the parameters.
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass

from cv_api4.core.models import ParamMap, ParamValue, decode_value
from cv_api4.exceptions import ParseError


# ---------------------------------------------------------------------------
# Shorthand table
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class ShorthandOption:
    """A ``+OP`` shorthand and the parameter key it feeds."""

    name: str
    aliases: tuple[str, ...]
    key: str
    """Parameter key written by this shorthand."""

    example: str


SHORTHAND_OPTIONS: tuple[ShorthandOption, ...] = (
    ShorthandOption("select", ("s",), "select", "+select id,display_name"),
    ShorthandOption("where", ("w",), "where", "+where 'first_name like \"Adams%\"'"),
    ShorthandOption("orderBy", ("o",), "orderBy", "+orderBy 'last_name DESC,first_name'"),
    ShorthandOption("limit", ("l",), "limit", "+limit 15@60"),
    ShorthandOption("value", ("v",), "values", "+value name=Alice"),
)

_OPTIONS_BY_NAME: dict[str, ShorthandOption] = {
    name: opt
    for opt in SHORTHAND_OPTIONS
    for name in (opt.name, *opt.aliases)
}


def resolve_option(name: str) -> ShorthandOption:
    """Look up a shorthand by full name or alias."""
    try:
        return _OPTIONS_BY_NAME[name]
    except KeyError:
        known = ", ".join(f"+{opt.name}" for opt in SHORTHAND_OPTIONS)
        raise ParseError(
            f"Unrecognized option: +{name}",
            hint=f"Known options: {known}",
        ) from None


# ---------------------------------------------------------------------------
# Token patterns
# ---------------------------------------------------------------------------

_OPTION_RE = re.compile(r"^\+([^=:\s]*)(?:([=:])(.*))?$", re.DOTALL)
_KEY_VALUE_RE = re.compile(r"^([A-Za-z0-9_.:-]+)=(.*)$", re.DOTALL)
_JSON_LEADERS: tuple[str, ...] = ("{", "[", '"')

_LIMIT_RE = re.compile(r"^\s*(\d+)(?:\s*@\s*(\d+))?\s*$")


# ---------------------------------------------------------------------------
# Expression parsers (one per shorthand)
# ---------------------------------------------------------------------------

def parse_select(expr: str) -> list[str]:
    """``"id, display_name"`` → ``["id", "display_name"]``."""
    fields = [part.strip() for part in expr.split(",") if part.strip()]
    if not fields:
        raise ParseError(f"Empty +select expression: {expr!r}")
    return fields


def parse_where(expr: str) -> str:
    """One condition clause, forwarded to the API exactly as written."""
    if not expr.strip():
        raise ParseError(f"Empty +where expression: {expr!r}")
    return expr


def parse_order_by(expr: str) -> dict[str, str]:
    """``"last_name DESC, first_name"`` → ``{"last_name": "DESC", "first_name": "ASC"}``."""
    order: dict[str, str] = {}
    for segment in expr.split(","):
        parts = segment.split()
        if not parts:
            continue
        if len(parts) == 1:
            order[parts[0]] = "ASC"
        elif len(parts) == 2 and parts[1].upper() in ("ASC", "DESC"):
            order[parts[0]] = parts[1].upper()
        else:
            raise ParseError(
                f"Malformed +orderBy segment: {segment.strip()!r}",
                hint="Use FIELD, FIELD ASC or FIELD DESC.",
            )
    if not order:
        raise ParseError(f"Empty +orderBy expression: {expr!r}")
    return order


def parse_limit(expr: str) -> tuple[int, int | None]:
    """``"15"`` → ``(15, None)``; ``"15@60"`` → ``(15, 60)``."""
    match = _LIMIT_RE.match(expr)
    if not match:
        raise ParseError(
            f"Malformed +limit expression: {expr!r}",
            hint="Use N or N@OFFSET, e.g. +limit 15@60",
        )
    limit = int(match.group(1))
    offset = int(match.group(2)) if match.group(2) is not None else None
    return limit, offset


def parse_value(expr: str) -> tuple[str, ParamValue]:
    """``"do_not_phone=1"`` → ``("do_not_phone", 1)``."""
    field, sep, raw = expr.partition("=")
    field = field.strip()
    if not sep or not field:
        raise ParseError(
            f"Malformed +value expression: {expr!r}",
            hint="Use FIELD=VALUE, e.g. +value name=Alice",
        )
    return field, decode_value(raw)


# ---------------------------------------------------------------------------
# Appliers: fold one shorthand into the parameter map
# ---------------------------------------------------------------------------

def _apply_select(params: ParamMap, expr: str) -> None:
    existing = params.get("select")
    prior = list(existing) if isinstance(existing, list) else []
    params["select"] = prior + parse_select(expr)


def _apply_where(params: ParamMap, expr: str) -> None:
    existing = params.get("where")
    prior = list(existing) if isinstance(existing, list) else []
    params["where"] = prior + [parse_where(expr)]


def _apply_order_by(params: ParamMap, expr: str) -> None:
    existing = params.get("orderBy")
    prior = dict(existing) if isinstance(existing, dict) else {}
    prior.update(parse_order_by(expr))
    params["orderBy"] = prior


def _apply_limit(params: ParamMap, expr: str) -> None:
    limit, offset = parse_limit(expr)
    params["limit"] = limit
    if offset is not None:
        params["offset"] = offset


def _apply_value(params: ParamMap, expr: str) -> None:
    field, value = parse_value(expr)
    existing = params.get("values")
    prior = dict(existing) if isinstance(existing, dict) else {}
    prior[field] = value
    params["values"] = prior


_APPLIERS: dict[str, Callable[[ParamMap, str], None]] = {
    "select": _apply_select,
    "where": _apply_where,
    "orderBy": _apply_order_by,
    "limit": _apply_limit,
    "value": _apply_value,
}


# ---------------------------------------------------------------------------
# JSON fragments
# ---------------------------------------------------------------------------

def parse_json_fragment(token: str) -> ParamMap:
    """Decode a bare JSON token; it must be an object."""
    try:
        decoded = json.loads(token)
    except ValueError as exc:
        raise ParseError(f"Invalid JSON in parameter {token!r}: {exc}") from exc
    if not isinstance(decoded, dict):
        raise ParseError(
            f"JSON parameter must be an object: {token!r}",
            hint="Use KEY=VALUE to pass a list or string.",
        )
    return decoded


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def parse_args(tokens: Sequence[str]) -> ParamMap:
    """Normalise the tokens following ``Entity.action`` into a parameter map.

    Raises
    ------
    ParseError
        For an unrecognized ``+option``, a shorthand missing its value, a
        malformed shorthand expression, invalid JSON, or a token that
        matches none of the accepted forms.
    """
    params: ParamMap = {}
    stream: Iterator[str] = iter(tokens)

    for token in stream:
        option_match = _OPTION_RE.match(token)
        if option_match:
            name, separator, inline_expr = option_match.groups()
            option = resolve_option(name)
            if separator is None:
                expr = next(stream, None)
                if expr is None:
                    raise ParseError(
                        f"Missing value for {token}",
                        hint=f"Example: {option.example}",
                    )
            else:
                expr = inline_expr
            _APPLIERS[option.name](params, expr)
            continue

        kv_match = _KEY_VALUE_RE.match(token)
        if kv_match:
            key, raw = kv_match.groups()
            params[key] = decode_value(raw)
            continue

        if token.startswith(_JSON_LEADERS):
            params.update(parse_json_fragment(token))
            continue

        raise ParseError(
            f"Unrecognized parameter: {token!r}",
            hint="Use KEY=VALUE, +OPTION EXPR, or a JSON object.",
        )

    return params

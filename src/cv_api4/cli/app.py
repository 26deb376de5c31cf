"""CLI application entry point and command routing for cv-api4.

This module is the **sole error boundary** for the entire application.
It catches :class:`~cv_api4.exceptions.Api4CliError`, ``KeyboardInterrupt``,
and any unexpected ``Exception``, rendering user-friendly messages via Rich
and returning well-defined exit codes.

Architecture notes
------------------
* No business logic lives here — argument grammar, parameter assembly,
  invocation and output routing are delegated to the core layer.
* This module is the only place that translates between the domain world
  and the OS process exit code.
"""

from __future__ import annotations

import argparse
import logging
import sys

from cv_api4.cli import exit_codes
from cv_api4.cli.console import console, escape
from cv_api4.config import AppSettings, load_settings
from cv_api4.core.arg_parser import SHORTHAND_OPTIONS
from cv_api4.core.formats import DEFAULT_FORMAT, STRUCTURED_FORMATS, TABULAR_FORMATS
from cv_api4.core.protocols import Api4Client
from cv_api4.exceptions import Api4CliError, ParseError
from cv_api4.version import __version__

logger = logging.getLogger(__name__)


_SHORTHAND_ROWS = "\n".join(
    f"  +{opt.aliases[0]}|+{opt.name:<10} {opt.example}" for opt in SHORTHAND_OPTIONS
)

_EPILOG = f"""\
Input formats:
  Pipe data (JSON), the most precise way to pass untrusted data:
    echo JSON | cv-api4 ENTITY.ACTION --in=json

  Inline data:
    cv-api4 ENTITY.ACTION KEY=VALUE... JSON-OBJECT...
    VALUE may be a bare string or JSON (e.g. 10, true, ["a","b"]).
    A parameter beginning with '{{' is merged in as a JSON object.

  Inline +options (the "=" may be replaced by ":" or a space):
{_SHORTHAND_ROWS}

Examples:
  cv-api4 Contact.get
  cv-api4 Contact.get select='["display_name"]' limit=10
  cv-api4 Contact.get +s display_name +o last_name +w 'id >= 100' +w 'id <= 200'
  cv-api4 Contact.update +w 'display_name LIKE %Adam%' +v do_not_phone=1
  echo '{{"select":["display_name"],"limit":10}}' | cv-api4 Contact.get --in=json

Output formats:
  structured: {", ".join(STRUCTURED_FORMATS)}
  tabular ("get" only): {", ".join(TABULAR_FORMATS)}

Environment:
  CV_OUTPUT     default output format (default: {DEFAULT_FORMAT})
  CV_API4_URL   APIv4 REST endpoint, e.g. https://example.org/civicrm/ajax/api4
  CV_API_KEY    API key sent as an X-Civi-Auth bearer token
"""


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

def _build_parser() -> argparse.ArgumentParser:
    """Construct the top-level argument parser."""
    parser = argparse.ArgumentParser(
        prog="cv-api4",
        description="Call APIv4.",
        epilog=_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--in",
        dest="input_format",
        default="args",
        metavar="{args,json}",
        help="Input format (default: args).",
    )
    parser.add_argument(
        "--out",
        dest="out_format",
        default=None,
        metavar="FORMAT",
        help=f"Output format (default: $CV_OUTPUT or {DEFAULT_FORMAT}).",
    )
    parser.add_argument(
        "-N",
        "--dry-run",
        action="store_true",
        help="Preview the API call. Do not execute.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Show the call before executing it; repeat for debug logging.",
    )
    parser.add_argument(
        "entity_action",
        metavar="Entity.action",
        help="Entity and action to call, e.g. Contact.get",
    )
    parser.add_argument(
        "params",
        metavar="key=value",
        nargs="*",
        help="Parameters: KEY=VALUE, +OPTION EXPR, or a JSON object.",
    )
    return parser


def _configure_logging(verbosity: int) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbosity >= 2 else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def split_entity_action(value: str) -> tuple[str, str]:
    """``"Contact.get"`` → ``("Contact", "get")``."""
    entity, sep, action = value.partition(".")
    if not sep or not entity or not action:
        raise ParseError(
            f"Expected Entity.action, got {value!r}",
            hint="Example: cv-api4 Contact.get",
        )
    return entity, action


def _build_client(settings: AppSettings) -> Api4Client | None:
    """Create the remote-call capability from settings (``None`` if unset)."""
    from cv_api4.infra.http_client import build_client

    return build_client(settings)


# ---------------------------------------------------------------------------
# Command dispatch
# ---------------------------------------------------------------------------

def _handle_call(args: argparse.Namespace, settings: AppSettings) -> int:
    """Assemble, invoke, and render one ``Entity.action`` call.

    Flow:
    1. Split ``Entity.action`` and validate the output format.
    2. Assemble parameters from inline tokens or piped JSON.
    3. Invoke (or preview on dry-run).
    4. Route the result to tabular or structured rendering.
    """
    from cv_api4.cli.encoder import render_preview, render_result
    from cv_api4.core.formats import require_known_format
    from cv_api4.core.invoker import Invoker
    from cv_api4.core.models import InvocationRequest
    from cv_api4.core.output_router import decide_output, exit_code_for
    from cv_api4.core.param_assembler import ParamAssembler

    entity, action = split_entity_action(args.entity_action)
    out_format = require_known_format(args.out_format or settings.output)

    params = ParamAssembler().assemble(args.input_format, args.params, sys.stdin)
    request = InvocationRequest.build(entity, action, params)

    invoker = Invoker(_build_client(settings), on_preview=render_preview)
    result = invoker.invoke(
        request,
        dry_run=args.dry_run,
        verbose=args.verbose >= 1,
    )
    if result is None:
        return exit_codes.SUCCESS

    decision = decide_output(out_format, action, result, request.params)
    if decision.warning:
        console.print(f"[bold yellow]Warning:[/bold yellow] {escape(decision.warning)}")
    render_result(result, decision)

    code = exit_code_for(result)
    if code != exit_codes.SUCCESS:
        logger.debug("Exiting with %d: %s", code, result.error_message)
    return code


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> int:
    """Run the cv-api4 CLI.

    Parameters
    ----------
    argv:
        Explicit argument list.  When ``None`` (default), ``sys.argv[1:]``
        is used.  Accepting *argv* enables deterministic testing without
        monkeypatching.

    Returns
    -------
    int
        OS process exit code.
    """
    parser = _build_parser()
    args = parser.parse_intermixed_args(argv)
    _configure_logging(args.verbose)

    settings = load_settings()
    return _handle_call(args, settings)


# ---------------------------------------------------------------------------
# Script-level error boundary
# ---------------------------------------------------------------------------

def cli() -> None:
    """Top-level error boundary invoked by the console-script entry point.

    This function wraps :func:`main` and guarantees the process never
    exits with a raw stack trace during normal usage.
    """
    try:
        code = main()
        sys.exit(code)
    except Api4CliError as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        if exc.hint:
            console.print(f"[yellow]Hint:[/yellow] {escape(exc.hint)}")
        sys.exit(exit_codes.GENERAL_ERROR)
    except KeyboardInterrupt:
        console.print("\n[yellow]Aborted by user.[/yellow]")
        sys.exit(exit_codes.KEYBOARD_INTERRUPT)
    except Exception as exc:  # noqa: BLE001
        console.print(
            "[bold red]Unexpected error.[/bold red] "
            "Please report this issue.\n"
            f"  {type(exc).__name__}: {escape(str(exc))}"
        )
        sys.exit(exit_codes.UNEXPECTED_ERROR)

"""Combine call defaults with inline arguments or piped JSON.

The assembler is the only place that knows about the input-format
switch.  It never reads standard input itself: the caller hands over a
text stream, which is only consumed in ``json`` mode.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import TextIO

from cv_api4.core.arg_parser import parse_args
from cv_api4.core.models import CallDefaults, ParamMap
from cv_api4.exceptions import ConfigurationError, ParseError

INPUT_FORMATS: tuple[str, ...] = ("args", "json")


class ParamAssembler:
    """Build the final parameter map for one call.

    Parameters
    ----------
    defaults:
        Immutable defaults merged first; any explicit key overrides them.
    """

    def __init__(self, defaults: CallDefaults | None = None) -> None:
        self._defaults: CallDefaults = defaults or CallDefaults()

    @property
    def defaults(self) -> CallDefaults:
        return self._defaults

    def assemble(
        self,
        input_format: str,
        tokens: Sequence[str] = (),
        stdin: TextIO | None = None,
    ) -> ParamMap:
        """Return defaults shallow-merged with the selected input source.

        Raises
        ------
        ConfigurationError
            If *input_format* is neither ``args`` nor ``json``.
        ParseError
            If the tokens or the JSON document cannot be parsed.
        """
        if input_format == "args":
            return self.from_args(tokens)
        if input_format == "json":
            if tokens:
                raise ParseError(
                    f"Unexpected parameters with --in=json: {' '.join(tokens)}",
                    hint="Pass all parameters in the piped JSON document.",
                )
            text = stdin.read() if stdin is not None else ""
            return self.from_json(text)
        raise ConfigurationError(
            f"Unknown input format: {input_format}",
            hint=f"Choose one of: {', '.join(INPUT_FORMATS)}",
        )

    def from_args(self, tokens: Sequence[str]) -> ParamMap:
        params = self._defaults.as_params()
        params.update(parse_args(tokens))
        return params

    def from_json(self, text: str) -> ParamMap:
        params = self._defaults.as_params()
        if not text.strip():
            return params
        try:
            decoded = json.loads(text)
        except ValueError as exc:
            raise ParseError(f"Invalid JSON on standard input: {exc}") from exc
        if not isinstance(decoded, dict):
            raise ParseError(
                "JSON on standard input must be an object, "
                f"got {type(decoded).__name__}.",
            )
        params.update(decoded)
        return params

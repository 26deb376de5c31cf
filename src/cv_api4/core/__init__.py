"""Core / service layer — pure argument handling and result interpretation.

Rules
-----
* No ``print()`` calls.
* No filesystem or network I/O (standard input arrives as a stream).
* No imports from ``cli`` or ``infra``.
* All functions must be fully typed and deterministic.
"""

from cv_api4.core.arg_parser import SHORTHAND_OPTIONS, ShorthandOption, parse_args
from cv_api4.core.invoker import Invoker
from cv_api4.core.models import (
    ApiResult,
    CallDefaults,
    InvocationRequest,
    OutputDecision,
    ParamMap,
    ParamValue,
    decode_value,
)
from cv_api4.core.output_router import decide_output, exit_code_for
from cv_api4.core.param_assembler import ParamAssembler
from cv_api4.core.protocols import Api4Client

__all__: list[str] = [
    "SHORTHAND_OPTIONS",
    "Api4Client",
    "ApiResult",
    "CallDefaults",
    "InvocationRequest",
    "Invoker",
    "OutputDecision",
    "ParamAssembler",
    "ParamMap",
    "ParamValue",
    "ShorthandOption",
    "decide_output",
    "decode_value",
    "exit_code_for",
    "parse_args",
]

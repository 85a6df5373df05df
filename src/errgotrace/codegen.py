"""Rendering of the Go code injected by errgotrace.

Every injected run of lines is delimited by BEGIN_MARKER/END_MARKER so the
reverse pass can find it again without parsing.
"""

from __future__ import annotations

import json

from .signature import FunctionSignature

BEGIN_MARKER = "/* BEGIN_ERRGOTRACE */"
END_MARKER = "/* END_ERRGOTRACE */"

IMPORT_NAME = "__errgotrace"
SUPPORT_IMPORT_PATH = "github.com/gellweiler/errgotrace/log"


def _go_string(s: str) -> str:
    # JSON string escapes are a subset of Go's interpreted string literal escapes.
    return json.dumps(s, ensure_ascii=False)


def import_block() -> str:
    return "\n".join(
        [
            BEGIN_MARKER,
            f"import {IMPORT_NAME} {_go_string(SUPPORT_IMPORT_PATH)}",
            END_MARKER,
            "",
        ]
    )


def setup_block() -> str:
    return "\n".join(
        [
            "",
            BEGIN_MARKER,
            f"var _ = {IMPORT_NAME}.Setup()",
            END_MARKER,
            "",
        ]
    )


def result_vars(sig: FunctionSignature) -> str:
    return ", ".join(f"__result{i}" for i in range(sig.result_count))


def call_expr(sig: FunctionSignature) -> str:
    """Call of the renamed implementation, forwarding the wrapper's parameters."""
    if sig.receiver_name:
        target = f"{sig.receiver_name}.{sig.impl_name}"
    else:
        target = sig.impl_name
        if sig.type_param_names:
            target += "[" + ", ".join(sig.type_param_names) + "]"
    args = ", ".join(p.name + ("..." if p.variadic else "") for p in sig.params)
    return f"{target}({args})"


def impl_header(sig: FunctionSignature) -> str:
    """Declaration line of the renamed implementation, without the opening brace."""
    recv = f"{sig.receiver_text} " if sig.receiver_text else ""
    params = ", ".join(f"{p.name} {p.type_text}" for p in sig.params)
    return f"func {recv}{sig.impl_name}{sig.type_params_text}({params}) {sig.results_text}"


def render_function_block(sig: FunctionSignature) -> str:
    """Block inserted right after a function's opening brace.

    It turns the original function into a wrapper that calls the renamed
    implementation, hands every result to InspectReturnValues and returns
    them, then reopens the original body under the new name.
    """
    results = result_vars(sig)
    return "\n".join(
        [
            "",
            BEGIN_MARKER,
            f"\t{results} := {call_expr(sig)}",
            f"\t{IMPORT_NAME}.InspectReturnValues({_go_string(sig.qualified_name)}, {results})",
            f"\treturn {results}",
            "}",
            "",
            f"{impl_header(sig)} {{",
            f"\t{END_MARKER}",
            "",
        ]
    )

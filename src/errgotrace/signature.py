"""Extraction of instrumentable function signatures from the structural tree."""

from __future__ import annotations

import re
from dataclasses import dataclass

from .config import Config
from .goparse.tree import FuncDecl

DISCARD = "_"

_NON_IDENT_RE = re.compile(r"\W")


@dataclass(frozen=True)
class Param:
    name: str
    type_text: str
    variadic: bool = False


@dataclass(frozen=True)
class FunctionSignature:
    """Everything the code generator needs to wrap one function.

    `receiver_text` is only set for a named receiver; an unnamed one is
    expressed through `synthetic_prefix` instead.
    """

    qualified_name: str
    name: str
    params: tuple[Param, ...]
    result_count: int
    results_text: str
    receiver_text: str = ""
    receiver_name: str = ""
    synthetic_prefix: str = ""
    type_params_text: str = ""
    type_param_names: tuple[str, ...] = ()

    @property
    def working_name(self) -> str:
        if self.synthetic_prefix:
            return f"{self.synthetic_prefix}_{self.name}"
        return self.name

    @property
    def impl_name(self) -> str:
        return f"__{self.working_name}"


def is_exported(name: str) -> bool:
    return name[:1].isupper()


def synthetic_prefix(receiver_type: str) -> str:
    """Turn receiver type text into an identifier fragment.

    Pointer markers are dropped since Go does not allow the same method
    name on both `T` and `*T`.
    """
    t = receiver_type.replace("*", "").replace("[", "_o").replace("]", "_c")
    return _NON_IDENT_RE.sub("_", t)


def qualified_name(decl: FuncDecl, source: bytes, *, package: str) -> str:
    name = package
    if decl.recv is not None and decl.recv.fields:
        name += "." + decl.recv.fields[0].type.text(source)
    return f"{name}.{decl.name}"


def extract_signature(
    decl: FuncDecl,
    source: bytes,
    *,
    package: str,
    config: Config,
) -> FunctionSignature | None:
    """Return the signature of `decl`, or None if it should not be instrumented."""
    if decl.lbrace is None:
        return None

    # Nothing to inspect without results.
    if decl.results is None or decl.results.slot_count() < 1:
        return None

    qname = qualified_name(decl, source, package=package)
    if not config.selects(qname):
        return None
    if config.exported_only and not is_exported(decl.name):
        return None

    receiver_text = ""
    receiver_name = ""
    prefix = ""
    if decl.recv is not None and decl.recv.fields:
        recv = decl.recv.fields[0]
        if recv.names and recv.names[0].name != DISCARD:
            receiver_text = decl.recv.span.text(source)
            receiver_name = recv.names[0].name
        else:
            prefix = synthetic_prefix(recv.type.text(source))

    type_params_text = ""
    type_param_names: tuple[str, ...] = ()
    if decl.type_params is not None and decl.type_params.fields:
        type_params_text = decl.type_params.span.text(source)
        type_param_names = tuple(n.name for f in decl.type_params.fields for n in f.names)

    params = tuple(
        Param(name=n.name, type_text=f.type.text(source), variadic=f.variadic)
        for f in decl.params.fields
        for n in f.names
        if n.name != DISCARD
    )

    return FunctionSignature(
        qualified_name=qname,
        name=decl.name,
        params=params,
        result_count=decl.results.slot_count(),
        results_text=decl.results.span.text(source),
        receiver_text=receiver_text,
        receiver_name=receiver_name,
        synthetic_prefix=prefix,
        type_params_text=type_params_text,
        type_param_names=type_param_names,
    )

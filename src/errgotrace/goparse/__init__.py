"""Go parser/printer boundary: gofmt canonicalization and a go/ast structural tree."""

from __future__ import annotations

from .toolchain import GoToolchain, SourceBackend
from .tree import Field, FieldList, FuncDecl, Ident, ImportSpec, SourceFile, Span

__all__ = [
    "Field",
    "FieldList",
    "FuncDecl",
    "GoToolchain",
    "Ident",
    "ImportSpec",
    "SourceBackend",
    "SourceFile",
    "Span",
]

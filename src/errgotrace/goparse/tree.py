from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..errors import ParseError


@dataclass(frozen=True)
class Span:
    """Half-open byte range [start, end) into canonical source."""

    start: int
    end: int

    def text(self, source: bytes) -> str:
        return source[self.start : self.end].decode("utf-8")


@dataclass(frozen=True)
class Ident:
    name: str
    span: Span


@dataclass(frozen=True)
class Field:
    names: list[Ident]
    type: Span
    variadic: bool = False


@dataclass(frozen=True)
class FieldList:
    span: Span
    fields: list[Field]

    def slot_count(self) -> int:
        # `(a, b int, error)` declares three slots
        return sum(max(1, len(f.names)) for f in self.fields)


@dataclass(frozen=True)
class FuncDecl:
    name: str
    params: FieldList
    recv: FieldList | None = None
    type_params: FieldList | None = None
    results: FieldList | None = None
    lbrace: int | None = None  # offset of the body's `{`, None for bodyless declarations


@dataclass(frozen=True)
class ImportSpec:
    path: str
    name: str | None = None


@dataclass(frozen=True)
class SourceFile:
    package: str
    package_end: int
    imports: list[ImportSpec] = field(default_factory=list)
    funcs: list[FuncDecl] = field(default_factory=list)

    @classmethod
    def from_json(cls, obj: Any, *, source_len: int) -> "SourceFile":
        """Build a tree from the parser helper's JSON output."""
        if not isinstance(obj, dict):
            raise ParseError("parser output must be an object")

        package = obj.get("package")
        if not isinstance(package, str) or not package:
            raise ParseError("parser output is missing the package name")
        package_end = _offset(obj.get("package_end"), source_len)

        imports: list[ImportSpec] = []
        for item in obj.get("imports") or []:
            if not isinstance(item, dict) or not isinstance(item.get("path"), str):
                raise ParseError("invalid import entry in parser output")
            name = item.get("name")
            imports.append(ImportSpec(path=item["path"], name=name if isinstance(name, str) and name else None))

        funcs: list[FuncDecl] = []
        for item in obj.get("funcs") or []:
            if not isinstance(item, dict) or not isinstance(item.get("name"), str):
                raise ParseError("invalid func entry in parser output")
            params = _field_list(item.get("params"), source_len)
            if params is None:
                raise ParseError(f"func {item['name']} has no parameter list")
            lbrace = item.get("lbrace")
            funcs.append(
                FuncDecl(
                    name=item["name"],
                    params=params,
                    recv=_field_list(item.get("recv"), source_len),
                    type_params=_field_list(item.get("type_params"), source_len),
                    results=_field_list(item.get("results"), source_len),
                    lbrace=None if lbrace is None or lbrace == -1 else _offset(lbrace, source_len),
                )
            )

        return cls(package=package, package_end=package_end, imports=imports, funcs=funcs)


def _offset(v: Any, source_len: int) -> int:
    if not isinstance(v, int) or isinstance(v, bool) or v < 0 or v > source_len:
        raise ParseError(f"offset out of range in parser output: {v!r}")
    return v


def _span(obj: Any, source_len: int) -> Span:
    if not isinstance(obj, dict):
        raise ParseError("invalid span in parser output")
    start = _offset(obj.get("start"), source_len)
    end = _offset(obj.get("end"), source_len)
    if end < start:
        raise ParseError(f"inverted span in parser output: {start}..{end}")
    return Span(start, end)


def _field_list(obj: Any, source_len: int) -> FieldList | None:
    if obj is None:
        return None
    if not isinstance(obj, dict):
        raise ParseError("invalid field list in parser output")
    fields: list[Field] = []
    for f in obj.get("fields") or []:
        if not isinstance(f, dict):
            raise ParseError("invalid field in parser output")
        names: list[Ident] = []
        for n in f.get("names") or []:
            if not isinstance(n, dict) or not isinstance(n.get("name"), str):
                raise ParseError("invalid identifier in parser output")
            names.append(Ident(name=n["name"], span=_span(n.get("span"), source_len)))
        fields.append(Field(names=names, type=_span(f.get("type"), source_len), variadic=bool(f.get("variadic"))))
    return FieldList(span=_span(obj.get("span"), source_len), fields=fields)

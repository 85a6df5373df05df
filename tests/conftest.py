import re

import pytest

from errgotrace.errors import FormatError
from errgotrace.goparse.tree import Field, FieldList, FuncDecl, Ident, ImportSpec, SourceFile, Span

_PACKAGE_RE = re.compile(r"^package (\w+)", re.M)
_IMPORT_RE = re.compile(r'^(?:import\s+|\t)(?:(\w+)\s+)?"([^"]*)"$', re.M)
_FUNC_RE = re.compile(r"^func ", re.M)
_COMMENT_RE = re.compile(r"//|/\*")
_IDENT_RE = re.compile(r"\w+")
_NAMED_RE = re.compile(r"(\w+)\s+(\S.*)", re.S)

_CLOSERS = {"(": ")", "[": "]"}


def _matching(text, i):
    opener, closer = text[i], _CLOSERS[text[i]]
    depth = 0
    for j in range(i, len(text)):
        if text[j] == opener:
            depth += 1
        elif text[j] == closer:
            depth -= 1
            if depth == 0:
                return j
    raise AssertionError(f"unbalanced {opener} at {i}")


def _pieces(text, start, end):
    # Top-level comma separated entries in text[start:end], as (start, end) pairs.
    out = []
    depth = 0
    piece_start = start
    for j in range(start, end):
        c = text[j]
        if c in "([{":
            depth += 1
        elif c in ")]}":
            depth -= 1
        elif c == "," and depth == 0:
            out.append((piece_start, j))
            piece_start = j + 1
    out.append((piece_start, end))

    stripped = []
    for s, e in out:
        while s < e and text[s].isspace():
            s += 1
        while e > s and text[e - 1].isspace():
            e -= 1
        if s < e:
            stripped.append((s, e))
    return stripped


def _field_list(text, open_at, close_at):
    pieces = _pieces(text, open_at + 1, close_at)
    named = any(_NAMED_RE.fullmatch(text[s:e]) for s, e in pieces)
    fields = []
    pending = []
    for s, e in pieces:
        piece = text[s:e]
        if not named:
            fields.append(Field(names=[], type=Span(s, e), variadic=piece.startswith("...")))
            continue
        m = _NAMED_RE.fullmatch(piece)
        if m is None:
            pending.append(Ident(piece, Span(s, e)))
            continue
        pending.append(Ident(m.group(1), Span(s + m.start(1), s + m.end(1))))
        type_start = s + m.start(2)
        fields.append(Field(names=pending, type=Span(type_start, e), variadic=m.group(2).startswith("...")))
        pending = []
    return FieldList(span=Span(open_at, close_at + 1), fields=fields)


def _func_decl(text, i):
    recv = None
    if text[i] == "(":
        close = _matching(text, i)
        recv = _field_list(text, i, close)
        i = close + 2

    m = _IDENT_RE.match(text, i)
    assert m is not None, f"no func name at {i}"
    name = m.group(0)
    i = m.end()

    type_params = None
    if text[i] == "[":
        close = _matching(text, i)
        type_params = _field_list(text, i, close)
        i = close + 1

    close = _matching(text, i)
    params = _field_list(text, i, close)
    i = close + 1

    line_end = text.find("\n", i)
    if line_end < 0:
        line_end = len(text)
    comment = _COMMENT_RE.search(text, i, line_end)
    code_end = comment.start() if comment else line_end
    has_body = text[i:code_end].rstrip().endswith("{")
    head_end = text.rindex("{", i, code_end) if has_body else code_end

    results = None
    rest = text[i:head_end].strip()
    if rest:
        rs = text.index(rest, i)
        if rest.startswith("(") and _matching(text, rs) == rs + len(rest) - 1:
            results = _field_list(text, rs, rs + len(rest) - 1)
        else:
            results = FieldList(span=Span(rs, rs + len(rest)), fields=[Field(names=[], type=Span(rs, rs + len(rest)))])

    return FuncDecl(
        name=name,
        params=params,
        recv=recv,
        type_params=type_params,
        results=results,
        lbrace=head_end if has_body else None,
    )


def parse_stub(source):
    """Structural tree for the gofmt-style Go subset used in these tests."""
    text = source.decode("ascii")
    m = _PACKAGE_RE.search(text)
    assert m is not None, "fixture has no package clause"
    imports = [ImportSpec(path=im.group(2), name=im.group(1)) for im in _IMPORT_RE.finditer(text)]
    funcs = [_func_decl(text, fm.end()) for fm in _FUNC_RE.finditer(text)]
    return SourceFile(package=m.group(1), package_end=m.end(1), imports=imports, funcs=funcs)


class StubBackend:
    """SourceBackend for tests: identity canonicalization plus parse_stub.

    Sources containing `SYNTAX ERROR` fail to canonicalize; with
    `fail_reformat=True` only the second canonicalization of a file fails.
    """

    def __init__(self, *, fail_reformat=False):
        self.fail_reformat = fail_reformat
        self.canonicalized = []

    def canonicalize(self, source):
        if b"SYNTAX ERROR" in source:
            raise FormatError("<standard input>:3:1: expected declaration, found SYNTAX")
        if self.fail_reformat and b"BEGIN_ERRGOTRACE" in source:
            raise FormatError("<standard input>:9:2: expected '}', found 'EOF'")
        self.canonicalized.append(source)
        return source

    def parse(self, source, filename):
        return parse_stub(source)


@pytest.fixture
def backend():
    return StubBackend()


@pytest.fixture
def parse_go():
    def _parse(text):
        source = text.encode("ascii")
        return source, parse_stub(source)

    return _parse


@pytest.fixture
def failing_backend():
    return StubBackend(fail_reformat=True)

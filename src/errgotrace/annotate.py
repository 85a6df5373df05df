"""Forward pass: inject tracing wrappers into a Go source file."""

from __future__ import annotations

import logging
from pathlib import Path

from .codegen import IMPORT_NAME, import_block, render_function_block, setup_block
from .config import Config
from .edits import EditList
from .errors import AlreadyProcessedError, FormatError, GenerationError, ParseError
from .fileio import emit, read_source
from .goparse.toolchain import SourceBackend
from .goparse.tree import SourceFile
from .signature import extract_signature

logger = logging.getLogger(__name__)


def check_not_processed(tree: SourceFile, filename: str) -> None:
    for imp in tree.imports:
        if imp.name == IMPORT_NAME:
            raise AlreadyProcessedError(f"{filename}: already processed")


def _import_insertion(source: bytes, tree: SourceFile) -> tuple[int, str]:
    # The import block goes at the start of the line after the package clause.
    # When that line is blank (or missing) a blank line is put in front of the
    # block, so the line the reverse pass swallows after the block is always
    # one that the forward pass introduced.
    line_end = source.find(b"\n", tree.package_end)
    if line_end < 0:
        return len(source), "\n\n" + import_block()
    start = line_end + 1
    if start >= len(source) or source[start : start + 1] == b"\n":
        return start, "\n" + import_block()
    return start, import_block()


def _body_insertion(source: bytes, lbrace: int, block: str) -> tuple[int, str]:
    # Unless code shares the `{` line, the block goes at the start of a line:
    # after the `{` line and past one leading blank line of the body. That
    # keeps a trailing comment on the `{` line and the blank line in place,
    # and leaves the blank line the reverse pass swallows right after the block.
    line_end = source.find(b"\n", lbrace)
    if line_end < 0 or not _is_comment_or_blank(source[lbrace + 1 : line_end]):
        return lbrace + 1, block
    start = line_end + 1
    if source[start : start + 1] == b"\n":
        start += 1
    return start, block.lstrip("\n") + "\n"


def _is_comment_or_blank(rest: bytes) -> bool:
    rest = rest.strip()
    if not rest or rest.startswith(b"//"):
        return True
    return rest.startswith(b"/*") and rest.find(b"*/", 2) == len(rest) - 2


def plan_edits(source: bytes, tree: SourceFile, *, config: Config) -> EditList:
    """Collect all insertions for canonical `source`, in offset order."""
    edits = EditList()
    offset, text = _import_insertion(source, tree)
    edits.add(offset, text)

    for decl in tree.funcs:
        sig = extract_signature(decl, source, package=tree.package, config=config)
        if sig is None or decl.lbrace is None:
            continue
        logger.debug("instrumenting %s", sig.qualified_name)
        offset, text = _body_insertion(source, decl.lbrace, render_function_block(sig))
        edits.add(offset, text)

    edits.add(len(source), setup_block())
    return edits


def annotate(source: bytes, filename: str, *, config: Config, backend: SourceBackend) -> bytes:
    """Return the instrumented, gofmt-canonical version of `source`."""
    # Offsets are only meaningful against the canonical text.
    try:
        canonical = backend.canonicalize(source)
    except FormatError as e:
        raise FormatError(f"{filename}: formatting error ({e})") from e

    try:
        tree = backend.parse(canonical, filename)
    except ParseError as e:
        raise ParseError(f"{filename}: parse error ({e})") from e

    check_not_processed(tree, filename)

    edits = plan_edits(canonical, tree, config=config)
    merged = edits.apply(canonical)

    try:
        return backend.canonicalize(merged)
    except FormatError as e:
        raise GenerationError(f"{filename}: formatting error in generated code ({e})") from e


def annotate_file(path: Path, *, config: Config, backend: SourceBackend) -> None:
    src = read_source(path)
    out = annotate(src, str(path), config=config, backend=backend)
    emit(path, out, write=config.write)

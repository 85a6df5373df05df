"""Reverse pass: strip previously injected tracing code.

This works on lines rather than on the parse tree since an injected block
is not a valid Go fragment on its own.
"""

from __future__ import annotations

import enum
from pathlib import Path

from .codegen import BEGIN_MARKER, END_MARKER
from .config import Config
from .errors import UnterminatedBlockError
from .fileio import emit, read_source

_BEGIN = BEGIN_MARKER.encode("ascii")
_END = END_MARKER.encode("ascii")


class _State(enum.Enum):
    NORMAL = enum.auto()
    IN_BLOCK = enum.auto()
    AFTER_BLOCK = enum.auto()


def strip_markers(source: bytes, filename: str = "<source>") -> bytes:
    """Remove every marker block from `source`.

    A single blank line right after a block is removed with it, since the
    forward pass leaves one behind after gofmt.
    """
    lines = source.split(b"\n")
    if source.endswith(b"\n"):
        lines.pop()

    state = _State.NORMAL
    out: list[bytes] = []
    for line in lines:
        stripped = line.strip()

        if state is _State.AFTER_BLOCK:
            state = _State.NORMAL
            if not stripped:
                continue

        if state is _State.IN_BLOCK:
            if stripped == _END:
                state = _State.AFTER_BLOCK
            continue

        if stripped == _BEGIN:
            state = _State.IN_BLOCK
            continue

        out.append(line + b"\n")

    if state is _State.IN_BLOCK:
        raise UnterminatedBlockError(f"{filename}: unterminated {BEGIN_MARKER} block")

    result = b"".join(out)
    # Drop the blank line the setup block leaves at the end of the file.
    if result.endswith(b"\n\n"):
        result = result[:-1]
    return result


def reverse_file(path: Path, *, config: Config) -> None:
    src = read_source(path)
    emit(path, strip_markers(src, str(path)), write=config.write)

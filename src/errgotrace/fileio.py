from __future__ import annotations

import os
import stat
import sys
import tempfile
from pathlib import Path

from .errors import SourceIOError


def read_source(path: Path) -> bytes:
    try:
        return Path(path).read_bytes()
    except OSError as e:
        raise SourceIOError(f"{path}: failed to open ({e.strerror or e})") from e


def write_atomic(path: Path, data: bytes) -> None:
    """Replace `path` with `data` so readers never see a partial file.

    The original file mode is kept.
    """
    path = Path(path)
    try:
        mode: int | None = stat.S_IMODE(path.stat().st_mode)
    except OSError:
        mode = None

    tmp: str | None = None
    try:
        fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        if mode is not None:
            os.chmod(tmp, mode)
        os.replace(tmp, path)
    except OSError as e:
        if tmp is not None and os.path.exists(tmp):
            os.unlink(tmp)
        raise SourceIOError(f"{path}: failed to write ({e.strerror or e})") from e


def emit(path: Path, data: bytes, *, write: bool) -> None:
    """Write `data` back to `path`, or print it when not rewriting in place."""
    if write:
        write_atomic(path, data)
        return
    # Raw bytes: the source encoding need not match the terminal's.
    sys.stdout.flush()
    sys.stdout.buffer.write(data)
    sys.stdout.buffer.flush()

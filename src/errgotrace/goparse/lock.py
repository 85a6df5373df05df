from __future__ import annotations

import os
import time
from contextlib import contextmanager
from pathlib import Path

from ..errors import ToolchainError


@contextmanager
def helper_lock(lock_path: Path, *, timeout_s: float = 300.0, poll_s: float = 0.1):
    """Hold an exclusive cross-process lock while the parser helper is built."""
    lock_path = Path(lock_path)
    lock_path.parent.mkdir(parents=True, exist_ok=True)

    with lock_path.open("a+b") as f:
        deadline = time.monotonic() + timeout_s
        while not _try_lock(f):
            if time.monotonic() >= deadline:
                raise ToolchainError(f"timed out waiting for helper lock {lock_path}")
            time.sleep(poll_s)
        try:
            yield
        finally:
            _unlock(f)


def _try_lock(f) -> bool:
    try:
        if os.name == "nt":
            import msvcrt

            # Lock 1 byte region.
            msvcrt.locking(f.fileno(), msvcrt.LK_NBLCK, 1)
        else:
            import fcntl

            fcntl.flock(f.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
    except OSError:
        return False
    return True


def _unlock(f) -> None:
    try:
        if os.name == "nt":
            import msvcrt

            msvcrt.locking(f.fileno(), msvcrt.LK_UNLCK, 1)
        else:
            import fcntl

            fcntl.flock(f.fileno(), fcntl.LOCK_UN)
    except OSError:
        return

from __future__ import annotations

import json
import logging
import os
import subprocess
import tempfile
from pathlib import Path
from typing import Protocol

from ..errors import FormatError, ParseError, ToolchainError
from .helper import helper_fingerprint, helper_go_source
from .lock import helper_lock
from .tree import SourceFile

logger = logging.getLogger(__name__)


class SourceBackend(Protocol):
    """Parser/printer boundary consumed by the instrumentation pipeline."""

    def canonicalize(self, source: bytes) -> bytes:
        """Return canonical text for `source`; raise FormatError if it cannot be formatted."""
        ...

    def parse(self, source: bytes, filename: str) -> SourceFile:
        """Return the structural tree of canonical `source`; raise ParseError on syntax errors."""
        ...


class GoToolchain:
    """SourceBackend backed by `gofmt` and a small go/ast helper program.

    The helper is compiled once per content fingerprint into the cache
    directory and reused by later invocations.
    """

    def __init__(
        self,
        *,
        go: str | None = None,
        gofmt: str | None = None,
        cache_dir: Path | None = None,
    ) -> None:
        self.go = go or os.environ.get("ERRGOTRACE_GO") or "go"
        self.gofmt = gofmt or os.environ.get("ERRGOTRACE_GOFMT") or "gofmt"
        self.cache_dir = Path(cache_dir) if cache_dir is not None else _default_cache_dir()
        self._helper: Path | None = None

    def canonicalize(self, source: bytes) -> bytes:
        proc = _run([self.gofmt], input=source)
        if proc.returncode != 0:
            raise FormatError(_stderr_text(proc) or f"gofmt exited with status {proc.returncode}")
        return proc.stdout

    def parse(self, source: bytes, filename: str) -> SourceFile:
        helper = self.helper_path()
        proc = _run([str(helper), filename], input=source)
        if proc.returncode != 0:
            raise ParseError(_stderr_text(proc) or f"parser exited with status {proc.returncode}")
        try:
            obj = json.loads(proc.stdout.decode("utf-8"))
        except ValueError as e:
            raise ParseError(f"failed to decode parser output: {e}") from e
        return SourceFile.from_json(obj, source_len=len(source))

    def helper_path(self) -> Path:
        """Return the parser helper binary, building it on first use."""
        if self._helper is not None:
            return self._helper

        exe = "errgotrace-parse.exe" if os.name == "nt" else "errgotrace-parse"
        leaf = self.cache_dir / "helper" / helper_fingerprint()[:16]
        binary = leaf / exe
        try:
            if not binary.exists():
                with helper_lock(leaf.parent / f"{leaf.name}.lock"):
                    # Another process may have finished the build while we waited.
                    if not binary.exists():
                        self._build_helper(binary)
        except OSError as e:
            raise ToolchainError(
                f"failed to prepare parser helper in {self.cache_dir} ({e.strerror or e}); "
                "check ERRGOTRACE_CACHE_DIR"
            ) from e
        self._helper = binary
        return binary

    def _build_helper(self, binary: Path) -> None:
        logger.debug("building parser helper into %s", binary)
        binary.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.TemporaryDirectory(prefix="errgotrace-helper-") as td:
            src_dir = Path(td)
            (src_dir / "go.mod").write_text(
                "\n".join(
                    [
                        "module errgotrace.helper",
                        "",
                        "go 1.18",
                        "",
                    ]
                ),
                encoding="utf-8",
            )
            (src_dir / "main.go").write_text(helper_go_source(), encoding="utf-8")

            staged = binary.with_name(binary.name + ".tmp")
            proc = _run([self.go, "build", "-o", str(staged), "."], cwd=src_dir)
            if proc.returncode != 0:
                raise ToolchainError(f"failed to build parser helper\n{_stderr_text(proc)}")
            os.replace(staged, binary)


def _run(cmd: list[str], *, input: bytes | None = None, cwd: Path | None = None) -> subprocess.CompletedProcess:
    prog = cmd[0] if cmd else "<unknown>"
    try:
        return subprocess.run(
            cmd,
            input=input,
            cwd=str(cwd) if cwd is not None else None,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            check=False,
        )
    except FileNotFoundError as e:
        raise ToolchainError(
            f"Go toolchain not found (`{prog}` is missing from PATH). "
            "Install Go and ensure `go` and `gofmt` are available on PATH, "
            "or point ERRGOTRACE_GO / ERRGOTRACE_GOFMT at them."
        ) from e
    except OSError as e:
        raise ToolchainError(f"failed to run `{prog}` ({e.strerror or e})") from e


def _stderr_text(proc: subprocess.CompletedProcess) -> str:
    return (proc.stderr or b"").decode("utf-8", errors="replace").strip()


def _default_cache_dir() -> Path:
    override = os.environ.get("ERRGOTRACE_CACHE_DIR")
    if override:
        return Path(override)
    if os.name == "nt":
        return Path(os.environ.get("LOCALAPPDATA") or os.path.expanduser("~")) / "errgotrace"
    return Path(os.path.expanduser("~/.cache/errgotrace"))

from __future__ import annotations

import json
import subprocess
import sys
from pathlib import Path

import pytest

from errgotrace.errors import FormatError, ParseError, ToolchainError
from errgotrace.goparse.helper import helper_fingerprint, helper_go_source
from errgotrace.goparse.toolchain import GoToolchain
from errgotrace.goparse.tree import SourceFile


def _completed(cmd, rc=0, stdout=b"", stderr=b""):
    return subprocess.CompletedProcess(cmd, rc, stdout=stdout, stderr=stderr)


def _helper_binary(cache_dir: Path) -> Path:
    return cache_dir / "helper" / helper_fingerprint()[:16] / "errgotrace-parse"


def test_missing_gofmt_raises_toolchain_error(monkeypatch, tmp_path):
    def fake_run(*args, **kwargs):  # noqa: ANN001
        raise FileNotFoundError("gofmt")

    monkeypatch.setattr(subprocess, "run", fake_run)

    with pytest.raises(ToolchainError, match=r"Go toolchain not found"):
        GoToolchain(cache_dir=tmp_path).canonicalize(b"package p\n")


def test_canonicalize_returns_gofmt_output(monkeypatch, tmp_path):
    seen = {}

    def fake_run(cmd, **kwargs):  # noqa: ANN001
        seen["cmd"] = cmd
        seen["input"] = kwargs.get("input")
        return _completed(cmd, stdout=b"package p\n")

    monkeypatch.setattr(subprocess, "run", fake_run)

    assert GoToolchain(gofmt="/opt/go/bin/gofmt", cache_dir=tmp_path).canonicalize(b"package  p") == b"package p\n"
    assert seen == {"cmd": ["/opt/go/bin/gofmt"], "input": b"package  p"}


def test_gofmt_failure_is_format_error(monkeypatch, tmp_path):
    monkeypatch.setattr(
        subprocess,
        "run",
        lambda cmd, **kw: _completed(cmd, rc=2, stderr=b"<standard input>:1:1: expected 'package', found x\n"),
    )
    with pytest.raises(FormatError, match="expected 'package'"):
        GoToolchain(cache_dir=tmp_path).canonicalize(b"x")


def test_parse_decodes_helper_output(monkeypatch, tmp_path):
    source = b"package p\n\nfunc F() error {\n\treturn nil\n}\n"
    out = {
        "package": "p",
        "package_end": 9,
        "imports": [{"name": "", "path": "errors"}],
        "funcs": [
            {
                "name": "F",
                "recv": None,
                "type_params": None,
                "params": {"span": {"start": 17, "end": 19}, "fields": []},
                "results": {
                    "span": {"start": 20, "end": 25},
                    "fields": [{"names": [], "type": {"start": 20, "end": 25}, "variadic": False}],
                },
                "lbrace": 26,
            }
        ],
    }
    calls = []

    def fake_run(cmd, **kwargs):  # noqa: ANN001
        calls.append(cmd)
        return _completed(cmd, stdout=json.dumps(out).encode("utf-8"))

    monkeypatch.setattr(subprocess, "run", fake_run)
    binary = _helper_binary(tmp_path)
    binary.parent.mkdir(parents=True)
    binary.write_bytes(b"")

    tree = GoToolchain(cache_dir=tmp_path).parse(source, "p.go")

    assert calls == [[str(binary), "p.go"]]
    assert isinstance(tree, SourceFile)
    assert tree.package == "p"
    assert tree.imports[0].name is None
    fn = tree.funcs[0]
    assert fn.results.span.text(source) == "error"
    assert fn.lbrace == source.index(b"{")


def test_parse_failure_is_parse_error(monkeypatch, tmp_path):
    monkeypatch.setattr(subprocess, "run", lambda cmd, **kw: _completed(cmd, rc=2, stderr=b"p.go:3:1: expected declaration"))
    binary = _helper_binary(tmp_path)
    binary.parent.mkdir(parents=True)
    binary.write_bytes(b"")

    with pytest.raises(ParseError, match="expected declaration"):
        GoToolchain(cache_dir=tmp_path).parse(b"package p\n", "p.go")


def test_garbled_helper_output_is_parse_error(monkeypatch, tmp_path):
    monkeypatch.setattr(subprocess, "run", lambda cmd, **kw: _completed(cmd, stdout=b"not json"))
    binary = _helper_binary(tmp_path)
    binary.parent.mkdir(parents=True)
    binary.write_bytes(b"")

    with pytest.raises(ParseError, match="failed to decode"):
        GoToolchain(cache_dir=tmp_path).parse(b"package p\n", "p.go")


def test_helper_is_built_once_and_cached(monkeypatch, tmp_path):
    builds = []

    def fake_run(cmd, **kwargs):  # noqa: ANN001
        assert cmd[:3] == ["go", "build", "-o"]
        src_dir = Path(kwargs["cwd"])
        assert (src_dir / "main.go").read_text(encoding="utf-8") == helper_go_source()
        assert "module errgotrace.helper" in (src_dir / "go.mod").read_text(encoding="utf-8")
        Path(cmd[3]).write_bytes(b"binary")
        builds.append(cmd)
        return _completed(cmd)

    monkeypatch.setattr(subprocess, "run", fake_run)

    tc = GoToolchain(go="go", cache_dir=tmp_path)
    path = tc.helper_path()
    assert path == _helper_binary(tmp_path)
    assert path.read_bytes() == b"binary"
    assert tc.helper_path() == path
    assert GoToolchain(go="go", cache_dir=tmp_path).helper_path() == path
    assert len(builds) == 1


def test_helper_build_failure_raises_toolchain_error(monkeypatch, tmp_path):
    monkeypatch.setattr(subprocess, "run", lambda cmd, **kw: _completed(cmd, rc=1, stderr=b"go: go.mod requires go >= 1.18"))
    with pytest.raises(ToolchainError, match="failed to build parser helper"):
        GoToolchain(cache_dir=tmp_path).helper_path()
    assert not _helper_binary(tmp_path).exists()


def test_tool_paths_from_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("ERRGOTRACE_GO", "/custom/go")
    monkeypatch.setenv("ERRGOTRACE_GOFMT", "/custom/gofmt")
    tc = GoToolchain(cache_dir=tmp_path)
    assert (tc.go, tc.gofmt) == ("/custom/go", "/custom/gofmt")


def test_cache_dir_from_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("ERRGOTRACE_CACHE_DIR", str(tmp_path / "cache"))
    assert GoToolchain().cache_dir == tmp_path / "cache"


def test_cache_dir_that_is_a_file_raises_toolchain_error(monkeypatch, tmp_path):
    def fake_run(cmd, **kwargs):  # noqa: ANN001
        raise AssertionError("the helper must not be built")

    monkeypatch.setattr(subprocess, "run", fake_run)
    blocker = tmp_path / "notadir"
    blocker.write_bytes(b"")

    with pytest.raises(ToolchainError, match="failed to prepare parser helper"):
        GoToolchain(cache_dir=blocker).helper_path()


def test_unrunnable_tool_raises_toolchain_error(monkeypatch, tmp_path):
    def fake_run(*args, **kwargs):  # noqa: ANN001
        raise PermissionError(13, "Permission denied")

    monkeypatch.setattr(subprocess, "run", fake_run)

    with pytest.raises(ToolchainError, match="failed to run `gofmt` \\(Permission denied\\)"):
        GoToolchain(cache_dir=tmp_path).canonicalize(b"package p\n")


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX cache location")
def test_default_cache_dir_under_home(monkeypatch):
    monkeypatch.delenv("ERRGOTRACE_CACHE_DIR", raising=False)
    monkeypatch.setenv("HOME", "/home/gopher")
    assert GoToolchain().cache_dir == Path("/home/gopher/.cache/errgotrace")

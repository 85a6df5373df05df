"""Go package imported by instrumented code as `__errgotrace`."""

from __future__ import annotations

from pathlib import Path

from .codegen import SUPPORT_IMPORT_PATH
from .errors import SourceIOError

LOG_PREFIX = "[ERRGOTRACE]"


def support_go_source() -> str:
    return r'''// Package log receives the return values of instrumented functions.
package log

import (
	"log"
)

func logf(format string, vars ...interface{}) {
	log.Printf("[ERRGOTRACE] "+format+"\n", vars...)
}

// InspectReturnValues logs every non-nil error among vars, tagged with the
// qualified name f of the function that returned it.
func InspectReturnValues(f string, vars ...interface{}) {
	for _, v := range vars {
		if err, ok := v.(error); ok && err != nil {
			logf("%s: %s", f, err.Error())
		}
	}
}

// Setup is evaluated once per instrumented file.
func Setup() bool {
	return true
}
'''


def write_support_package(out_dir: Path) -> Path:
    """Write the support package into `out_dir` and return the file written.

    `out_dir` should be the directory that `SUPPORT_IMPORT_PATH` resolves to
    in the instrumented module's build (for instance through a `replace`
    directive).
    """
    out_dir = Path(out_dir)
    path = out_dir / "log.go"
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
        path.write_text(support_go_source(), encoding="utf-8")
    except OSError as e:
        raise SourceIOError(f"{path}: failed to write ({e.strerror or e})") from e
    return path


__all__ = ["LOG_PREFIX", "SUPPORT_IMPORT_PATH", "support_go_source", "write_support_package"]

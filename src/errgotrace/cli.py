from __future__ import annotations

import argparse
import importlib.metadata
import logging
import sys
from pathlib import Path

from .annotate import annotate_file
from .config import Config
from .errors import ConfigurationError, ErrGoTraceError, SourceIOError
from .goparse.toolchain import GoToolchain, SourceBackend
from .reverse import reverse_file
from .support import write_support_package

logger = logging.getLogger("errgotrace")

_DESCRIPTION = "Errgotrace modifies go files to include code for tracing go errors."

_EXAMPLES = """\
Examples:
  Add tracing code to all go files in the current directory.
  $ find . -name '*.go' -print0 | xargs -0 errgotrace -w

  Add tracing code to all go files in the current directory.
  Exclude vendor dir.
  $ find . -path ./vendor -prune -o -name '*.go' -print0 | xargs -0 errgotrace -w

  Remove all tracing code from all go files in the current directory.
  $ find . -path ./vendor -prune -o -name '*.go' -print0 | xargs -0 errgotrace -w -r
"""


def _version() -> str:
    try:
        return importlib.metadata.version("errgotrace")
    except importlib.metadata.PackageNotFoundError:
        return "0.0.0"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="errgotrace",
        usage="errgotrace [flags] [path ...]",
        description=_DESCRIPTION,
        epilog=_EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("paths", nargs="*", metavar="path", help="Go source files to process.")
    parser.add_argument("-w", dest="write", action="store_true", help="re-write files in place")
    parser.add_argument("-r", dest="reverse", action="store_true", help="reverse the process, remove tracing code")
    parser.add_argument("--exported", action="store_true", help="only annotate exported functions")
    parser.add_argument(
        "--filter",
        default=".",
        help="only annotate functions matching the regular expression (default: %(default)s)",
    )
    parser.add_argument(
        "--exclude",
        default="",
        help="exclude any matching functions, takes precedence over filter",
    )
    parser.add_argument(
        "--emit-support",
        metavar="DIR",
        default=None,
        help="write the Go support package imported by instrumented code into DIR",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="log every instrumented function")
    parser.add_argument("--version", action="version", version=f"%(prog)s {_version()}")
    return parser


def run(
    paths: list[Path],
    *,
    config: Config,
    reverse: bool = False,
    backend: SourceBackend | None = None,
) -> bool:
    """Process every path, returning True if at least one of them failed.

    A failing file is logged and skipped; the remaining files are still processed.
    """
    failure = False
    for path in paths:
        try:
            if reverse:
                reverse_file(path, config=config)
            else:
                if backend is None:
                    backend = GoToolchain()
                annotate_file(path, config=config, backend=backend)
        except ErrGoTraceError as e:
            logger.error("%s", e)
            failure = True
    return failure


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="errgotrace: %(message)s",
        stream=sys.stderr,
    )

    if args.emit_support:
        try:
            written = write_support_package(Path(args.emit_support))
        except SourceIOError as e:
            logger.error("%s", e)
            return 1
        logger.info("wrote %s", written)
        if not args.paths:
            return 0

    if not args.paths:
        parser.print_help(sys.stdout)
        return 1

    try:
        config = Config.from_flags(
            filter=args.filter,
            exclude=args.exclude,
            exported_only=args.exported,
            write=args.write,
        )
    except ConfigurationError as e:
        logger.error("%s", e)
        return 1

    failed = run([Path(p) for p in args.paths], config=config, reverse=args.reverse)
    return 1 if failed else 0

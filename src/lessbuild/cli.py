"""Command-line entry point.

Usage:
    lessbuild SOURCE_DIR OUTPUT_DIR [--compress] [--watch] [--force] ...
    python -m lessbuild SOURCE_DIR OUTPUT_DIR
"""

from __future__ import annotations

import argparse
import logging
import sys
import threading
from collections.abc import Sequence

from lessbuild.config import (
    DEFAULT_ENCODING,
    DEFAULT_INCLUDES,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_WATCH_INTERVAL_MS,
    CompilerConfig,
)
from lessbuild.engine import LessCompiler
from lessbuild.errors import LessBuildError

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lessbuild",
        description="Incrementally compile LESS sources to CSS.",
    )
    parser.add_argument("source_directory", help="Root directory of the LESS sources")
    parser.add_argument("output_directory", help="Destination root for compiled CSS")
    parser.add_argument("--include", action="append", dest="includes", help="Glob of sources to compile")
    parser.add_argument("--exclude", action="append", dest="excludes", help="Glob of sources to leave out")
    parser.add_argument("--compress", action="store_true", help="Minify the generated CSS")
    parser.add_argument("--watch", action="store_true", help="Keep recompiling changed sources")
    parser.add_argument(
        "--watch-interval",
        type=int,
        default=DEFAULT_WATCH_INTERVAL_MS,
        help="Milliseconds between watch passes",
    )
    parser.add_argument("--encoding", default=DEFAULT_ENCODING, help="Text encoding of sources and output")
    parser.add_argument("--force", action="store_true", help="Recompile every source")
    parser.add_argument("--custom-runtime-script", help="Python file providing compile()")
    parser.add_argument("--interpreter-executable", help="External interpreter, e.g. node")
    parser.add_argument("--bridge-script", help="Script run by the external interpreter")
    parser.add_argument("--output-file-format", help="Output name template, e.g. '{fileName}.min'")
    parser.add_argument(
        "--request-timeout",
        type=float,
        default=DEFAULT_REQUEST_TIMEOUT,
        help="Seconds to wait for the external interpreter per source",
    )
    parser.add_argument("--skip", action="store_true", help="Do nothing")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output")
    return parser


def config_from_args(args: argparse.Namespace) -> CompilerConfig:
    return CompilerConfig(
        source_directory=args.source_directory,
        output_directory=args.output_directory,
        includes=tuple(args.includes or DEFAULT_INCLUDES),
        excludes=tuple(args.excludes or ()),
        compress=args.compress,
        watch=args.watch,
        watch_interval=args.watch_interval,
        encoding=args.encoding,
        force=args.force,
        custom_runtime_script=args.custom_runtime_script,
        interpreter_executable=args.interpreter_executable,
        bridge_script=args.bridge_script,
        output_file_format=args.output_file_format,
        skip=args.skip,
        request_timeout=args.request_timeout,
    )


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )
    cancel = threading.Event()
    try:
        LessCompiler(config=config_from_args(args)).execute(cancel)
    except LessBuildError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_FAILURE
    except KeyboardInterrupt:
        cancel.set()
        print("interrupted", file=sys.stderr)
        return EXIT_INTERRUPTED
    return EXIT_SUCCESS


if __name__ == "__main__":
    sys.exit(main())

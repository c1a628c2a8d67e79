"""CLI: argparse and command dispatch."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Optional, Sequence

from .constants import DEFAULT_BRANCH, DEFAULT_DIR_PERM, DEFAULT_OBJECT_FORMAT, JIT_VERSION
from .errors import JitError
from .init import initialize_repository
from .options import (
    OPT_BARE,
    OPT_INITIAL_BRANCH,
    OPT_OBJECT_FORMAT,
    OPT_PERM,
    OPT_QUIET,
    OPT_SEPARATE_DIR,
    OPT_TEMPLATE,
)


def _setup_logging() -> None:
    if os.environ.get("JIT_DEBUG"):
        logging.basicConfig(level=logging.DEBUG, format="[DEBUG %(name)s:%(lineno)d] %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING, format="%(levelname)s: %(message)s")


def _report(e: JitError) -> None:
    if e.stage:
        print(f"Error ({e.stage}): {e}", file=sys.stderr)
    else:
        print(f"Error: {e}", file=sys.stderr)


def cmd_init(args: argparse.Namespace) -> int:
    options = {
        OPT_QUIET: args.quiet,
        OPT_BARE: args.bare,
        OPT_SEPARATE_DIR: args.separate_jit_dir,
        OPT_TEMPLATE: args.template,
        OPT_OBJECT_FORMAT: args.object_format,
        OPT_INITIAL_BRANCH: args.initial_branch,
        OPT_PERM: args.perm,
    }
    initialize_repository(options, args.directory)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pyjit",
        description="jit: a minimal version-control tool (repository initialization).",
    )
    parser.add_argument(
        "-v", "--version", action="store_true", help="Print the jit version and exit"
    )
    sub = parser.add_subparsers(dest="command", help="Commands")

    # init
    p_init = sub.add_parser("init", help="Create an empty jit repository")
    p_init.add_argument(
        "directory", nargs="?", default="", help="Directory to initialize (default: current directory)"
    )
    p_init.add_argument(
        "-q", "--quiet", action="store_true",
        help="Only print error and warning messages; all other output will be suppressed",
    )
    p_init.add_argument(
        "--bare", action="store_true",
        help="Create a bare repository: layout directly in the directory, no .jit subdirectory",
    )
    p_init.add_argument("--template", default="", help="Template directory (recorded in config)")
    p_init.add_argument(
        "--separate-jit-dir", default="", metavar="DIR",
        help="Store the repository in DIR and link .jit to it",
    )
    p_init.add_argument(
        "--object-format", default=DEFAULT_OBJECT_FORMAT,
        help="Object format (hash algorithm), recorded in config; sha1 or sha256 (default: sha1)",
    )
    p_init.add_argument(
        "-b", "--initial-branch", default=DEFAULT_BRANCH,
        help=f"Name of the initial branch (default: {DEFAULT_BRANCH})",
    )
    p_init.add_argument(
        "--perm", default=DEFAULT_DIR_PERM,
        help=f"Octal permission for created directories (default: {DEFAULT_DIR_PERM})",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    _setup_logging()
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.version:
        print(f"Jit Version {JIT_VERSION}")
        return 0
    handlers = {
        "init": cmd_init,
    }
    handler = handlers.get(args.command)
    if not handler:
        parser.print_help()
        return 1
    try:
        return handler(args) or 0
    except JitError as e:
        _report(e)
        return 1


if __name__ == "__main__":
    sys.exit(main())

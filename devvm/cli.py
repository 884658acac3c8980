"""CLI entry points for devvm."""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from devvm import __version__
from devvm.commands import COMMANDS, dispatch, validate_arguments
from devvm.config import parse_env
from devvm.environment import check_dependencies
from devvm.exceptions import DevVMError
from devvm.patches import apply_known_bug_patches
from devvm.utils import exit_status, log

PARSER_OPTIONS = {"--version", "-h", "--help"}


def help_text() -> str:
    entries = [("help", "Show this message")]
    entries += [(cmd.usage, cmd.summary) for cmd in COMMANDS.values()]
    width = max(len(usage) for usage, _ in entries)
    lines = ["Usage: devvm <command> [args...]", "", "Commands:"]
    for usage, summary in entries:
        lines.append(f"  {usage:<{width}}  {summary}")
    lines += [
        "",
        "Environment:",
        "  VAGRANT_DEFAULT_PROVIDER  Force the provider (virtualbox, parallels)",
        "  DEVVM_ARCH                Override the detected host architecture",
        "  DEVVM_CONFIG              Use an alternative environment.yaml",
        "  LOG_VERBOSE               Print debug output",
    ]
    return "\n".join(lines)


def print_help() -> None:
    print(help_text(), flush=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="devvm",
        description="Manage the local development VM",
        epilog=help_text(),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("command", nargs="?", default=None)
    parser.add_argument("args", nargs=argparse.REMAINDER)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    argv = sys.argv[1:] if argv is None else list(argv)
    if argv and argv[0].startswith("-") and argv[0] not in PARSER_OPTIONS:
        log("ERROR", f"Unknown command '{argv[0]}'")
        print_help()
        return 1

    opts = build_parser().parse_args(argv)
    verb = opts.command

    if verb == "help":
        print_help()
        return 0
    if verb not in COMMANDS:
        if verb:
            log("ERROR", f"Unknown command '{verb}'")
        print_help()
        return 1

    try:
        validate_arguments(verb, opts.args)
        cfg = parse_env()
        check_dependencies(cfg.provider)
        apply_known_bug_patches(cfg.patches)
        return exit_status(dispatch(cfg, verb, opts.args))
    except DevVMError as exc:
        log("ERROR", str(exc))
        return exc.exit_code
    except KeyboardInterrupt:
        log("WARN", "Interrupted")
        return 130
    except Exception as exc:
        log("ERROR", f"Unexpected error: {exc}")
        import traceback

        traceback.print_exc()
        return 1

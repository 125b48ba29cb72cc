"""Main CLI entry point for diaglog.

Implements a Docker-style two-pass argument parser:
  1. First pass: extract global flags (--verbose, --quiet, --show, files)
  2. Second pass: dispatch to subcommand with shared parent args

Global flags can appear before OR after the subcommand:
  diaglog -vv emit debug "cache warm"       # works
  diaglog emit debug "cache warm" -vv       # also works

Subcommands self-register via register(subparsers, parents) convention.
"""

import argparse
import sys

from diaglog._version import BASE_VERSION, VERSION


# ---------------------------------------------------------------------------
# Global flags (Docker-style: can precede the subcommand)
# ---------------------------------------------------------------------------
GLOBAL_FLAGS = {
    "--verbose": {"aliases": ["-v"], "action": "count", "default": 0,
                  "help": "Raise the debug level (-v, -vv, -vvv=verbose)"},
    "--quiet": {"aliases": ["-Q"], "action": "store_true", "default": False,
                "help": "Suppress all output, errors included"},
    "--show": {"nargs": "?", "action": "append", "metavar": "CHANNEL[:STATE]",
               "help": "Enable/disable a channel (bare --show lists channels)"},
    "--log-file": {"metavar": "PATH", "default": None,
                   "help": "Write debug/info/action/error lines to PATH"},
    "--user-log-file": {"metavar": "PATH", "default": None,
                        "help": "Write user lines to PATH"},
    "--log-time": {"action": "store_true", "default": False,
                   "help": "Timestamp every prefixed line"},
}


def _extract_global_flags(argv):
    """Two-pass parse: pull global flags from anywhere in argv.

    Returns (global_namespace, remaining_argv).
    """
    global_parser = argparse.ArgumentParser(add_help=False)
    for flag, kwargs in GLOBAL_FLAGS.items():
        kw = {k: v for k, v in kwargs.items() if k != "aliases"}
        global_parser.add_argument(flag, *kwargs.get("aliases", []), **kw)

    global_args, remaining = global_parser.parse_known_args(argv)
    return global_args, remaining


# ---------------------------------------------------------------------------
# Shared parent parser (inherited by all subcommands via parents=[])
# ---------------------------------------------------------------------------
def _build_common_parser():
    """Build the shared argument parser for output-shaping flags."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--user-prefix", metavar="NAME", default=None,
                        help="Prefix for user lines (default: user)")
    common.add_argument("--profile", action="store_true", default=False,
                        help="Show profile lines (timers, enter/exit)")
    return common


# ---------------------------------------------------------------------------
# Subcommand discovery and registration
# ---------------------------------------------------------------------------
def _discover_commands():
    """Import and return all command modules.

    Each module in diaglog.commands must export:
      register(subparsers, parents) — add itself to the subparser
      run(args) — execute the command
    """
    from diaglog.commands import emit, startlog
    return [emit, startlog]


def _build_parser(commands, common_parser):
    """Build the main argparse parser with subcommand dispatch."""
    parser = argparse.ArgumentParser(
        prog="diaglog",
        description="diaglog — multi-channel diagnostic logging",
        epilog=(
            "Run 'diaglog <command> --help' for details on a specific command.\n"
            "\n"
            "Global flags (--verbose, --quiet, --show, --log-file, ...) can\n"
            "appear before or after the subcommand."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version", "-V",
        action="version",
        version=f"diaglog {BASE_VERSION} ({VERSION})",
    )

    # Add global flags to main parser too (for --help display)
    for flag, kwargs in GLOBAL_FLAGS.items():
        kw = {k: v for k, v in kwargs.items() if k != "aliases"}
        parser.add_argument(flag, *kwargs.get("aliases", []), **kw)

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        metavar="<command>",
    )

    for cmd_module in commands:
        cmd_module.register(subparsers, parents=[common_parser])

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------
def main(argv=None):
    """Main entry point for diaglog CLI.

    Args:
        argv: Command-line arguments. None means sys.argv[1:].

    Returns:
        Exit code (0 = success).
    """
    if argv is None:
        argv = sys.argv[1:]

    # Pass 1: extract global flags from anywhere in the arg list
    global_args, remaining = _extract_global_flags(argv)

    # Handle bare --show (list channels and exit)
    if global_args.show and None in global_args.show:
        from diaglog.lib.log_lib import format_channel_list
        print(format_channel_list())
        return 0

    from diaglog.config import get_startup_log_path, resolve_settings
    from diaglog.lib.log_lib import init_output
    try:
        settings = resolve_settings(global_args)
    except ValueError as e:
        print(f"diaglog: error: {e}", file=sys.stderr)
        return 2
    out = init_output(
        settings=settings,
        startup_log_path=get_startup_log_path(),
        quiet=global_args.quiet,
        verbose=global_args.verbose >= 3,
    )

    # Pass 2: parse subcommand + shared/specific args
    common_parser = _build_common_parser()
    commands = _discover_commands()
    parser = _build_parser(commands, common_parser)

    if not remaining:
        parser.print_help()
        return 0

    args = parser.parse_args(remaining)

    if not hasattr(args, "func"):
        parser.print_help()
        return 0

    if args.user_prefix:
        out.channels.set_user_prefix(args.user_prefix)
    if args.profile:
        out.set_profile(True)

    # Dispatch
    try:
        return args.func(args) or 0
    except KeyboardInterrupt:
        print("\nInterrupted.")
        return 130
    except SystemExit as e:
        return e.code if isinstance(e.code, int) else 1
    finally:
        out.close()


if __name__ == "__main__":
    sys.exit(main())

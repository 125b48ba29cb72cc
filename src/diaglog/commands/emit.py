"""diaglog emit — write one line through a logging channel.

Lets shell scripts share the log files and formatting of the Python
side::

    diaglog --log-file run.log emit action "click {}" ok-button
    diaglog -vv emit debug --level 2 "cache warm"
    diaglog emit user "step {} of {}" 2 5
"""

import argparse

from diaglog.lib.log_lib import Channel, get_output


def register(subparsers, parents):
    """Register the 'emit' subcommand."""
    p = subparsers.add_parser(
        "emit",
        parents=parents,
        help="Emit one line through a channel",
        description=(
            "Format MESSAGE with ARGS (str.format positional fields) and\n"
            "emit it through CHANNEL, honouring the level, quiet mode and\n"
            "the configured log files."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("channel", choices=[ch.value for ch in Channel],
                   help="Channel to emit on")
    p.add_argument("message", help="Message or format string")
    p.add_argument("args", nargs="*", help="Values for the format string")
    p.add_argument("--level", type=int, default=0,
                   help="Debug level of the line (debug channel only)")
    p.add_argument("--echo", action="store_true", default=False,
                   help="Write the line unprefixed, bypassing channel flags")
    p.set_defaults(func=run)
    return p


def run(args):
    """Execute the emit command."""
    out = get_output()
    if args.echo:
        out.echo(args.message, *args.args)
        return 0
    channel = Channel(args.channel)
    if channel is Channel.DEBUG:
        out.log(args.level, args.message, *args.args)
    else:
        getattr(out, channel.value)(args.message, *args.args)
    return 0

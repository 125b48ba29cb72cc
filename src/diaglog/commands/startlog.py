"""diaglog startlog — show the last flushed startup log.

Applications call LogManager.end_startup() once they are up; the lines
buffered until then are written to ~/.diaglog/startup-log.txt.
"""

from diaglog.config import get_startup_log_path
from diaglog.lib.log_lib import get_output


def register(subparsers, parents):
    """Register the 'startlog' subcommand."""
    p = subparsers.add_parser(
        "startlog",
        parents=parents,
        help="Print the last flushed startup log",
    )
    p.add_argument("--path", action="store_true", default=False,
                   help="Only print the startup log location")
    p.set_defaults(func=run)
    return p


def run(args):
    """Execute the startlog command."""
    path = get_startup_log_path()
    if args.path:
        print(path)
        return 0
    if not path.is_file():
        get_output().error("no startup log at {}", path)
        return 1
    print(path.read_text(encoding="utf-8"), end="")
    return 0

"""Module-level logging entry points for diaglog.

Thin wrappers over the LogManager singleton so collaborators can log
without holding a manager reference:

    from diaglog import output as log

    log.action("click {}", target)
    log.user("step {} done", 2)
    timer = log.start_timer("search")
    ...
    timer.end()

Also re-exports the log_lib public API for convenience imports.
"""

# Re-export log_lib public API for one-stop imports
from diaglog.lib.log_lib import (                     # noqa: F401
    Channel, LogManager, LogSettings, ProfilingTimer, NOT_STARTED,
    init_output, get_output, trace,
)


def log(level, message, *args, **kwargs):
    """Debug message at ``level``."""
    get_output().log(level, message, *args, **kwargs)


def debug(message, *args, **kwargs):
    """Debug message at the default level."""
    get_output().debug(message, *args, **kwargs)


def info(message, *args, **kwargs):
    get_output().info(message, *args, **kwargs)


def action(message, *args, **kwargs):
    get_output().action(message, *args, **kwargs)


def error(message, *args, **kwargs):
    get_output().error(message, *args, **kwargs)


def user(message, *args, **kwargs):
    get_output().user(message, *args, **kwargs)


def echo(message, *args, **kwargs):
    """Write an unprefixed line; returns the formatted text."""
    return get_output().echo(message, *args, **kwargs)


def profile(message, *args, **kwargs):
    get_output().profile(message, *args, **kwargs)


def start_timer(label="", *args):
    """Start a ProfilingTimer on the singleton manager."""
    return get_output().start_timer(label, *args)

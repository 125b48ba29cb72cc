"""
LogManager — the multi-channel logging core.

Central coordinator for the five channels (debug, info, action, error,
user). Every emission runs the same pipeline:

    enable flag ─▶ level gate ─▶ format ─▶ redirect ─▶ fallback sink
                                 └────── serialized (one writer) ──────┘

Level gate (see levels.py):
    quiet      nothing at all, errors included
    verbose    threshold pinned to VERBOSE (3)
    otherwise  message.level <= threshold

Channel levels:
    debug               caller's level (debug() uses DEFAULT)
    info/action/error   ALWAYS
    user                bypasses the comparison, still muted by quiet

Lines written to files or the console look like:

    [info] clicked at (10, 20)
    [debug (10/18/26 09:15:02)] matching pattern foo.png
    [user (10/18/26 09:15:03)] step 2 done

Redirection (see redirect.py) hands a channel's line to a method of a
caller-supplied sink object instead. A failing method is unbound and the
line falls back to the file or console sink.
"""

import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, TextIO

from .channels import Channel, ChannelRegistry
from .levels import ALWAYS, DEFAULT, VERBOSE, LevelGate
from .redirect import RedirectionBinder
from .settings import DEFAULT_LOG_FILE, DEFAULT_USER_LOG_FILE, LogSettings
from .sinks import SinkGroup, SinkManager
from .timer import ProfilingTimer


TIME_FORMAT = "%m/%d/%y %H:%M:%S"

FORMAT_ERRORS = (IndexError, KeyError, ValueError, AttributeError, TypeError)


class LogManager:
    """Owns the level gate, channel registry, redirection and sinks.

    Usage::

        out = LogManager(LogSettings(debug_level=2))
        out.debug("loaded {} images", 3)
        out.log(2, "cache at {path}", path="/tmp/cache")
        out.action("click {}", (10, 20))
        out.error("pattern {} not found", "ok.png")

        out.attach(my_logger)
        out.bind_all("write")           # all channels to my_logger.write
        out.bind(Channel.INFO, "")      # info back to the file/console

        timer = out.start_timer("search")
        ...
        timer.end()
    """

    def __init__(
        self,
        settings: LogSettings = None,
        file: TextIO = None,
        startup_log_path: Optional[Path] = None,
    ):
        self.settings = settings if settings is not None else LogSettings()
        self.gate = LevelGate(threshold=self.settings.debug_level)
        self.channels = ChannelRegistry(
            enabled=self.settings.channel_flags(),
            user_prefix=self.settings.user_log_prefix,
        )
        self.sinks = SinkManager(console=file,
                                 startup_log_path=startup_log_path)
        self.binder = RedirectionBinder(
            report=self.error,
            trace=self._trace,
            report_failure=self._error_unredirected,
        )
        self._lock = threading.RLock()

        if self.settings.log_file is not None:
            self.set_debug_log_file(self.settings.log_file)
        if self.settings.user_log_file is not None:
            self.set_user_log_file(self.settings.user_log_file)

    # =========================================================================
    # Level controls
    # =========================================================================

    @property
    def level(self) -> int:
        return self.gate.threshold

    def set_level(self, level: int) -> None:
        """Set the debug threshold.

        A positive level also switches the debug channel on. Lowering the
        level never switches it off; that is left to the settings.
        """
        self.gate.threshold = level
        if level > 0:
            self.channels.set_enabled(Channel.DEBUG, True)

    def set_verbose(self) -> None:
        self.set_level(VERBOSE)
        self.gate.verbose = True

    @property
    def verbose(self) -> bool:
        return self.gate.verbose

    def set_quiet(self, quiet: bool = True) -> None:
        self.gate.quiet = quiet

    @property
    def quiet(self) -> bool:
        return self.gate.quiet

    def is_enabled_for(self, level: int) -> bool:
        return self.gate.is_enabled_for(level)

    def set_profile(self, enabled: bool = True) -> None:
        self.settings.profile_logs = enabled

    @property
    def profile_enabled(self) -> bool:
        return self.settings.profile_logs and not self.gate.quiet

    def channel_active(self, channel) -> bool:
        """Check if a channel would display a message at its usual level.

        Used by callers to skip building expensive messages.
        """
        channel = Channel(channel)
        if not self._channel_on(channel):
            return False
        if channel is Channel.USER:
            return not self.gate.quiet
        level = DEFAULT if channel is Channel.DEBUG else ALWAYS
        return self.gate.should_emit(level)

    # =========================================================================
    # Emission entry points
    # =========================================================================

    def log(self, level: int, message: str, *args: Any, **kwargs: Any) -> None:
        """Debug message at ``level``.

        Args:
            level: Message level (higher = more verbose)
            message: Format string (str.format with args/kwargs)
        """
        self._emit(Channel.DEBUG, level, message, args, kwargs)

    def debug(self, message: str, *args: Any, **kwargs: Any) -> None:
        """Debug message at the default level."""
        self._emit(Channel.DEBUG, DEFAULT, message, args, kwargs)

    def info(self, message: str, *args: Any, **kwargs: Any) -> None:
        self._emit(Channel.INFO, ALWAYS, message, args, kwargs)

    def action(self, message: str, *args: Any, **kwargs: Any) -> None:
        self._emit(Channel.ACTION, ALWAYS, message, args, kwargs)

    def error(self, message: str, *args: Any, **kwargs: Any) -> None:
        """Error message. Shown whatever the channel settings, unless quiet."""
        self._emit(Channel.ERROR, ALWAYS, message, args, kwargs)

    def user(self, message: str, *args: Any, **kwargs: Any) -> None:
        """Message written on behalf of the user (own prefix, own file)."""
        self._emit(Channel.USER, ALWAYS, message, args, kwargs)

    def echo(self, message: str, *args: Any, **kwargs: Any) -> str:
        """Write an unprefixed line and return the formatted text.

        Not tied to any enable flag; only quiet mode mutes it.
        """
        text = self.format_message(message, args, kwargs)
        self._emit(Channel.DEBUG, ALWAYS, text, (), {},
                   tag='', check_enabled=False)
        return text

    def profile(self, message: str, *args: Any, **kwargs: Any) -> None:
        """Profiling line, shown only while profile logs are on."""
        if not self.settings.profile_logs:
            return
        self._emit(Channel.DEBUG, ALWAYS, message, args, kwargs,
                   tag='profile', check_enabled=False)

    def enter(self, message: str, *args: Any, **kwargs: Any) -> None:
        self.profile("entering: " + message, *args, **kwargs)

    def exit(self, message: str, *args: Any, **kwargs: Any) -> None:
        self.profile("exiting: " + message, *args, **kwargs)

    def start_timer(self, label: str = "", *args: Any) -> ProfilingTimer:
        """Create and start a ProfilingTimer reporting through this manager."""
        return ProfilingTimer(self).start(label, *args)

    # =========================================================================
    # Emission pipeline
    # =========================================================================

    def _channel_on(self, channel: Channel) -> bool:
        if channel is Channel.DEBUG and self.gate.verbose:
            return True
        return self.channels.is_enabled(channel)

    def _emit(self, channel: Channel, level: int, message: str,
              args: tuple, kwargs: Dict[str, Any], *,
              tag: Optional[str] = None, check_enabled: bool = True,
              redirect: bool = True) -> None:
        if check_enabled and not self._channel_on(channel):
            return
        if channel is Channel.USER:
            # user lines only answer to quiet mode
            level = self.gate.effective_threshold
        if not self.gate.should_emit(level):
            return

        with self._lock:
            text = self.format_message(message, args, kwargs)
            if tag is None:
                tag = self.channels.prefix(channel)
            prefix = self._line_prefix(channel, tag)

            redirect_prefix = self.channels.redirect_prefix(channel, prefix)
            if redirect and self.binder.deliver(channel, redirect_prefix, text):
                return

            group = SinkGroup.USER if channel is Channel.USER else SinkGroup.DEBUG
            self.sinks.write(group, prefix + text, prefixed=bool(prefix))

    def format_message(self, message: str, args: tuple,
                       kwargs: Dict[str, Any]) -> str:
        """Substitute ``args``/``kwargs`` into ``message``.

        A template that does not fit its arguments is reported once on the
        error channel and the raw template is used instead.
        """
        if not args and not kwargs:
            return message
        try:
            return message.format(*args, **kwargs)
        except FORMAT_ERRORS as e:
            self.error("bad format string {!r}: {}: {}",
                       message, type(e).__name__, e)
            return message

    def _line_prefix(self, channel: Channel, tag: str) -> str:
        if not tag:
            return ''
        if channel is Channel.USER:
            stamped = self.settings.user_log_time
        else:
            stamped = self.settings.log_time
        if stamped:
            return f"[{tag} ({datetime.now().strftime(TIME_FORMAT)})] "
        return f"[{tag}] "

    def _trace(self, message: str, *args: Any) -> None:
        self.log(VERBOSE, message, *args)

    def _error_unredirected(self, message: str, *args: Any) -> None:
        # delivery failures are written to the fallback sinks only
        self._emit(Channel.ERROR, ALWAYS, message, args, {}, redirect=False)

    # =========================================================================
    # Redirection
    # =========================================================================

    def attach(self, sink: Any, prefix_all: bool = True) -> bool:
        """Use ``sink`` as the redirection target for bound channels.

        With ``prefix_all=False`` redirected lines carry no prefix.
        All existing bindings are dropped.
        """
        with self._lock:
            return self.binder.attach(sink, prefix_all=prefix_all)

    def detach(self) -> None:
        with self._lock:
            self.binder.detach()

    def bind(self, channel, method_name: Optional[str],
             prefix: Optional[str] = None) -> bool:
        """Redirect ``channel`` to ``sink.<method_name>(str)``.

        An empty name returns the channel to the default sinks.
        """
        with self._lock:
            return self.binder.bind(channel, method_name, prefix=prefix)

    def bind_channels(self, methods: Dict[Any, Optional[str]]) -> bool:
        """Bind several channels; True only when every binding succeeded."""
        success = True
        for channel, method_name in methods.items():
            success &= self.bind(channel, method_name)
        return success

    def bind_all(self, method_name: Optional[str]) -> bool:
        """Redirect every channel to the same method."""
        with self._lock:
            self._trace("Redirect: bind_all: {}", method_name)
            return self.binder.bind_all(method_name)

    def is_redirected(self, channel) -> bool:
        return self.binder.is_bound(channel)

    # =========================================================================
    # Sinks
    # =========================================================================

    def set_debug_log_file(self, path=None) -> bool:
        """Send debug/info/action/error lines to a fresh file.

        None or blank selects DEFAULT_LOG_FILE in the working directory.
        """
        if path is None or not str(path).strip():
            path = DEFAULT_LOG_FILE
        with self._lock:
            ok = self.sinks.set_file_sink(SinkGroup.DEBUG, path)
        if ok:
            self._trace("Log: debug log file: {}",
                        self.sinks.paths[SinkGroup.DEBUG])
        return ok

    def set_user_log_file(self, path=None) -> bool:
        """Send user lines to a fresh file (DEFAULT_USER_LOG_FILE if blank)."""
        if path is None or not str(path).strip():
            path = DEFAULT_USER_LOG_FILE
        with self._lock:
            ok = self.sinks.set_file_sink(SinkGroup.USER, path)
        if ok:
            self._trace("Log: user log file: {}",
                        self.sinks.paths[SinkGroup.USER])
        return ok

    @property
    def debug_log_file(self) -> Optional[Path]:
        return self.sinks.paths[SinkGroup.DEBUG]

    @property
    def user_log_file(self) -> Optional[Path]:
        return self.sinks.paths[SinkGroup.USER]

    def set_console_mirror(self, enabled: bool = True) -> None:
        """Echo buffered startup lines to the console as well."""
        self.sinks.console_mirror = enabled

    # -- startup buffer -----------------------------------------------------

    def begin_startup(self, console_mirror: bool = False) -> bool:
        """Buffer lines that would go to the console until end_startup()."""
        with self._lock:
            return self.sinks.begin_startup(console_mirror=console_mirror)

    def end_startup(self) -> str:
        """Leave the startup phase and persist the buffered lines.

        Returns the buffered text; repeated calls return the same text.
        """
        with self._lock:
            text = self.sinks.flush_startup_buffer()
            if self.sinks.flush_error:
                failed, self.sinks.flush_error = self.sinks.flush_error, None
                self.error("startup log not saved: {}", failed)
            return text

    @property
    def is_starting(self) -> bool:
        return self.sinks.is_starting

    def get_startup_log(self) -> str:
        """Text collected in the startup buffer so far."""
        return self.sinks.startup_log

    @property
    def startup_log_file(self) -> Optional[Path]:
        return self.sinks.startup_log_file

    def close(self) -> None:
        """Close log files and drop the redirection sink."""
        with self._lock:
            self.sinks.close()
            self.binder.detach()


# =============================================================================
# Module-level singleton
# =============================================================================

_manager: Optional[LogManager] = None


def init_output(settings: LogSettings = None, file: TextIO = None,
                startup_log_path: Optional[Path] = None,
                quiet: bool = False, verbose: bool = False) -> LogManager:
    """Initialize the module-level LogManager singleton.

    Call once at program startup after settings are resolved. A previous
    manager is closed first so its log files are released.

    Args:
        settings: Enable flags, level and file paths
        file: Console stream (default: sys.stderr at write time)
        startup_log_path: Where end_startup() writes the startup buffer
        quiet: Start in quiet mode
        verbose: Start in verbose mode

    Returns:
        The initialized LogManager instance
    """
    global _manager

    if _manager is not None:
        _manager.close()

    _manager = LogManager(settings=settings, file=file,
                          startup_log_path=startup_log_path)
    if verbose:
        _manager.set_verbose()
    if quiet:
        _manager.set_quiet()
    return _manager


def get_output() -> LogManager:
    """Get the module-level LogManager, creating a default if needed."""
    global _manager
    if _manager is None:
        _manager = LogManager()
    return _manager

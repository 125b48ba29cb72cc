"""
Fallback sinks: log files, console and the startup buffer.

Two file streams exist, one for the debug group (everything except user
lines) and one for user lines. User lines fall back to the debug file
when no user file is open. Without any file, lines go to the console,
or into the startup buffer while the application is still starting.

Startup lifecycle:
    IDLE ──begin──▶ BUFFERING ──end──▶ FLUSHING ──▶ ACTIVE

Each transition happens at most once per SinkManager. The buffer is
written to disk exactly once, when the startup phase ends.
"""

import sys
import time
from enum import Enum
from pathlib import Path
from typing import Optional, TextIO


class SinkGroup(Enum):
    DEBUG = 'debug'
    USER = 'user'


class StartupPhase(Enum):
    IDLE = 'idle'
    BUFFERING = 'buffering'
    FLUSHING = 'flushing'
    ACTIVE = 'active'


def open_fresh(path: Path) -> TextIO:
    """Delete any existing file at ``path`` and open a new one for writing."""
    if path.exists():
        path.unlink()
    return open(path, "x", encoding="utf-8")


class SinkManager:
    """Owns the log file streams, the console and the startup buffer.

    Writes are not locked here; the LogManager serializes every call.
    """

    def __init__(self, console: TextIO = None,
                 startup_log_path: Optional[Path] = None):
        self._console = console
        self._streams = {SinkGroup.DEBUG: None, SinkGroup.USER: None}
        self.paths = {SinkGroup.DEBUG: None, SinkGroup.USER: None}
        self.phase = StartupPhase.IDLE
        self.console_mirror = False
        self.startup_log_path = startup_log_path
        self.startup_log_file: Optional[Path] = None
        self.flush_error: Optional[str] = None
        self._buffer = []
        self._started_at = time.monotonic()

    @property
    def console(self) -> TextIO:
        # resolved late so a replaced sys.stderr is honoured
        return self._console if self._console is not None else sys.stderr

    # -- files ----------------------------------------------------------

    def set_file_sink(self, group: SinkGroup, path) -> bool:
        """Point ``group`` at a freshly created file.

        The old stream is closed only once the new one is open. When the
        file cannot be created, a line goes straight to the console and
        the previous sink stays in place.
        """
        path = Path(path).expanduser().absolute()
        try:
            stream = open_fresh(path)
        except OSError:
            label = "User logfile" if group is SinkGroup.USER else "Logfile"
            print(f"[error] {label} {path} not accessible", file=self.console)
            return False
        old = self._streams[group]
        self._streams[group] = stream
        self.paths[group] = path
        if old is not None:
            old.close()
        return True

    def has_file(self, group: SinkGroup) -> bool:
        return self._streams[group] is not None

    def close(self) -> None:
        for group, stream in self._streams.items():
            if stream is not None:
                stream.close()
            self._streams[group] = None
            self.paths[group] = None

    # -- writing --------------------------------------------------------

    def write(self, group: SinkGroup, line: str, prefixed: bool = True) -> None:
        """Write one line to the best available sink for ``group``."""
        stream = None
        if group is SinkGroup.USER:
            stream = self._streams[SinkGroup.USER]
        if stream is None:
            stream = self._streams[SinkGroup.DEBUG]
        if stream is not None:
            print(line, file=stream)
            stream.flush()
            return
        if self.phase is StartupPhase.BUFFERING:
            if prefixed:
                line = f"[DLOG {self.since_start():4.3f}] {line}"
            self._buffer.append(line)
            if self.console_mirror:
                print(line, file=self.console)
            return
        print(line, file=self.console)

    def since_start(self) -> float:
        """Seconds since this manager was created."""
        return time.monotonic() - self._started_at

    # -- startup buffer -------------------------------------------------

    @property
    def is_starting(self) -> bool:
        return self.phase is StartupPhase.BUFFERING

    def begin_startup(self, console_mirror: bool = False) -> bool:
        """Start buffering output. Only allowed once, from IDLE."""
        if self.phase is not StartupPhase.IDLE:
            return False
        self.console_mirror = console_mirror
        self.phase = StartupPhase.BUFFERING
        return True

    @property
    def startup_log(self) -> str:
        return "".join(line + "\n" for line in self._buffer)

    def flush_startup_buffer(self) -> str:
        """End the startup phase and persist the buffer.

        Returns the buffered text. Calling again is a no-op returning the
        same text. When the buffer is empty or cannot be written, no file
        is kept and ``startup_log_file`` stays None; a write failure is
        recorded in ``flush_error``.
        """
        if self.phase in (StartupPhase.FLUSHING, StartupPhase.ACTIVE):
            return self.startup_log
        if self.phase is StartupPhase.IDLE:
            self.phase = StartupPhase.ACTIVE
            return self.startup_log
        self.phase = StartupPhase.FLUSHING
        text = self.startup_log
        target = self.startup_log_path
        if text and target is not None:
            target = Path(target)
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                with open(target, "w", encoding="utf-8") as f:
                    f.write(text)
                self.startup_log_file = target
            except OSError as e:
                self.flush_error = f"{target} ({e})"
        self.phase = StartupPhase.ACTIVE
        return text

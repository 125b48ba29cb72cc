"""
Profiling timer.

A timer is a plain value object, not process-wide state. It reports
through the manager's profile path, so its lines only show when profile
logs are on. Misuse (lap/end before start) is reported on the error
channel and answered with NOT_STARTED instead of an exception.

    timer = out.start_timer("load\tloading 3 images")
    ...
    timer.lap("decoded")     # TLap: (0.120 sec): (decoded) load
    timer.end()              # TEnd (0.250 sec): load
"""

import time
from typing import Optional


NOT_STARTED = -1


def time_now() -> int:
    """Wall-clock time in milliseconds."""
    return int(time.time() * 1000)


def time_since(start: int) -> int:
    """Milliseconds elapsed since ``start`` (a time_now() value)."""
    return time_now() - start


class ProfilingTimer:
    """Start / lap / end timer reporting through a LogManager.

    A label containing a TAB is split: the part before the TAB is the
    short title used on lap and end lines, the whole label (TAB shown as
    a space) is used on the start line.
    """

    def __init__(self, output):
        self._out = output
        self._begin: Optional[int] = None
        self.message = ""
        self.title: Optional[str] = None

    @property
    def running(self) -> bool:
        return self._begin is not None

    def start(self, label: str = "", *args) -> "ProfilingTimer":
        if args:
            label = self._out.format_message(label, args, {})
        title, tab, _ = label.partition("\t")
        self.title = title if tab else None
        self.message = label.replace("\t", " ")
        if self.message:
            self._out.profile("TStart: {}", self.message)
        self._begin = time_now()
        return self

    def lap(self, label: str = "") -> int:
        """Report elapsed time without stopping the timer."""
        return self._finish(f"({label}) {self._name}", is_lap=True)

    def end(self) -> int:
        """Report elapsed time and reset the timer."""
        return self._finish(self._name, is_lap=False)

    @property
    def _name(self) -> str:
        return self.message if self.title is None else self.title

    def _finish(self, text: str, is_lap: bool) -> int:
        if self._begin is None:
            self._out.error("TError: timer not started ({})", text)
            return NOT_STARTED
        elapsed = time_since(self._begin)
        if not is_lap:
            self._begin = None
        if text:
            tag = "TLap:" if is_lap else "TEnd"
            self._out.profile("{} ({:.3f} sec): {}", tag, elapsed / 1000, text)
        return elapsed

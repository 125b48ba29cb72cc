"""
External settings consumed by the log manager.

The engine does not load these itself; the application resolves them
(see diaglog.config) and hands a LogSettings instance to init_output().
"""

from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

from .channels import Channel


DEFAULT_LOG_FILE = "DiagLog.txt"
DEFAULT_USER_LOG_FILE = "DiagUserLog.txt"


@dataclass
class LogSettings:
    """Enable flags, prefixes and sink paths for the log manager.

    Attributes:
        debug_logs: Debug channel on (also switched by the debug level)
        info_logs: Info channel on
        action_logs: Action channel on
        user_logs: User channel on
        profile_logs: Profile lines (timers, enter/exit) on
        log_time: Add a timestamp to prefixed debug/info/action/error lines
        user_log_time: Add a timestamp to user lines
        user_log_prefix: Prefix used for user lines
        debug_level: Initial threshold
        log_file: Debug log file ('' = default name, None = console)
        user_log_file: User log file ('' = default name, None = debug sink)
    """
    debug_logs: bool = False
    info_logs: bool = True
    action_logs: bool = True
    user_logs: bool = True
    profile_logs: bool = False
    log_time: bool = False
    user_log_time: bool = True
    user_log_prefix: str = "user"
    debug_level: int = 0
    log_file: Optional[str] = None
    user_log_file: Optional[str] = None

    def channel_flags(self) -> Dict[Channel, bool]:
        """Enable flags keyed by channel (error is always on)."""
        return {
            Channel.DEBUG: self.debug_logs or self.debug_level > 0,
            Channel.INFO: self.info_logs,
            Channel.ACTION: self.action_logs,
            Channel.ERROR: True,
            Channel.USER: self.user_logs,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LogSettings":
        """Build settings from a dict, ignoring unknown keys.

        Keys may use dashes or underscores (JSON files tend to mix them).
        """
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in (data or {}).items():
            attr = key.replace("-", "_")
            if attr in known and value is not None:
                values[attr] = value
        return cls(**values)

"""
log_lib — multi-channel logging with redirection and fallback sinks.

A reusable logging engine providing:
- Five channels (debug, info, action, error, user) with enable flags
- Single integer threshold with quiet and verbose modes
- Redirection of channels to methods of a caller-supplied sink object
- Debug/user log files, console fallback and a startup buffer
- Profiling timer and function tracing decorator

Public API:
    LogManager         — central coordinator
    init_output        — singleton initialization
    get_output         — access singleton
    LogSettings        — external enable flags and paths
    Channel            — channel enum
    ChannelRegistry    — per-channel enable flags and prefixes
    parse_channel_spec — parse CLI channel spec
    RedirectionBinder  — sink attachment and per-channel bindings
    RedirectionError   — method could not be bound
    SinkManager        — files, console and startup buffer
    ProfilingTimer     — start/lap/end timer
    trace              — function tracing decorator
"""

from .manager import LogManager, init_output, get_output
from .settings import LogSettings, DEFAULT_LOG_FILE, DEFAULT_USER_LOG_FILE
from .channels import (
    Channel, ChannelConfig, ChannelRegistry, parse_channel_spec,
    CHANNEL_DESCRIPTIONS, format_channel_list,
)
from .redirect import RedirectionBinder, RedirectionError, RedirectionTarget
from .sinks import SinkGroup, SinkManager, StartupPhase
from .timer import ProfilingTimer, NOT_STARTED, time_now, time_since
from .trace import trace

__all__ = [
    'LogManager', 'init_output', 'get_output',
    'LogSettings', 'DEFAULT_LOG_FILE', 'DEFAULT_USER_LOG_FILE',
    'Channel', 'ChannelConfig', 'ChannelRegistry', 'parse_channel_spec',
    'CHANNEL_DESCRIPTIONS', 'format_channel_list',
    'RedirectionBinder', 'RedirectionError', 'RedirectionTarget',
    'SinkGroup', 'SinkManager', 'StartupPhase',
    'ProfilingTimer', 'NOT_STARTED', 'time_now', 'time_since',
    'trace',
]

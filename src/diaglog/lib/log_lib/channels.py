"""
Channel definitions, registry and spec parsing.

Channels are the five message categories the engine knows about. Each
has an enable flag (from external settings), a fixed line prefix and a
redirect prefix used when the channel is handed off to an external sink.

Redirect prefixes are deliberately asymmetric:
    info, action, error  →  fixed "[info] ", "[log] ", "[error] "
    debug, user          →  the prefix built at the emission site
                            (e.g. "[debug (10/18/26 09:15:02)] ")

Channel spec syntax (used by --show and settings files):
    CHANNEL[:STATE]

    Examples:
        debug          # enable debug
        info:off       # disable info
        debug:2        # enable debug and set the threshold to 2

    Numeric states are debug levels; other channels take on/off.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional


class Channel(str, Enum):
    """The five message categories."""
    DEBUG = 'debug'
    INFO = 'info'
    ACTION = 'action'
    ERROR = 'error'
    USER = 'user'


# Line prefixes written to files and the console
CHANNEL_PREFIXES = {
    Channel.DEBUG:  'debug',
    Channel.INFO:   'info',
    Channel.ACTION: 'log',
    Channel.ERROR:  'error',
    Channel.USER:   'user',
}

# None means "use the prefix supplied at the emission site"
REDIRECT_PREFIXES = {
    Channel.DEBUG:  None,
    Channel.INFO:   '[info] ',
    Channel.ACTION: '[log] ',
    Channel.ERROR:  '[error] ',
    Channel.USER:   None,
}

CHANNEL_DESCRIPTIONS = {
    Channel.DEBUG:  'Developer debug traces (level-gated)',
    Channel.INFO:   'Informative messages',
    Channel.ACTION: 'Action traces (click, type, ...)',
    Channel.ERROR:  'Error reports (always on)',
    Channel.USER:   'Messages written by the user',
}

_ON = {'on', 'true', 'yes', '1'}
_OFF = {'off', 'false', 'no', '0'}


@dataclass
class ChannelState:
    """Per-channel state held by the registry."""
    channel: Channel
    enabled: bool = True
    prefix: str = ''
    redirect_prefix: Optional[str] = None


@dataclass
class ChannelConfig:
    """Result of parsing a channel spec."""
    name: str
    enabled: bool = True
    level: Optional[int] = None


class ChannelRegistry:
    """Lookup table for channel enable flags and prefixes.

    The error channel ignores its enable flag: errors are always surfaced.
    """

    def __init__(self, enabled: Dict[Channel, bool] = None,
                 user_prefix: str = 'user'):
        self._states: Dict[Channel, ChannelState] = {}
        for channel in Channel:
            self._states[channel] = ChannelState(
                channel=channel,
                prefix=CHANNEL_PREFIXES[channel],
                redirect_prefix=REDIRECT_PREFIXES[channel],
            )
        self._states[Channel.USER].prefix = user_prefix
        for channel, flag in (enabled or {}).items():
            self.set_enabled(channel, flag)

    def get(self, channel) -> ChannelState:
        return self._states[Channel(channel)]

    def is_enabled(self, channel) -> bool:
        channel = Channel(channel)
        if channel is Channel.ERROR:
            return True
        return self._states[channel].enabled

    def set_enabled(self, channel, enabled: bool) -> None:
        self._states[Channel(channel)].enabled = bool(enabled)

    def prefix(self, channel) -> str:
        return self._states[Channel(channel)].prefix

    def set_user_prefix(self, prefix: str) -> None:
        self._states[Channel.USER].prefix = prefix

    def redirect_prefix(self, channel, site_prefix: str = '') -> str:
        """Prefix for a redirected message on ``channel``."""
        fixed = self._states[Channel(channel)].redirect_prefix
        return site_prefix if fixed is None else fixed


def parse_channel_spec(spec: str) -> ChannelConfig:
    """Parse a channel spec string into a ChannelConfig.

    Args:
        spec: Channel spec like "debug", "info:off" or "debug:2"

    Returns:
        ChannelConfig with parsed values

    Raises:
        ValueError: unknown channel name or unreadable state
    """
    name, _, state = spec.partition(':')
    name = name.strip().lower()
    Channel(name)  # raises ValueError for unknown names
    state = state.strip().lower()

    if name == 'debug' and state.lstrip('-').isdigit():
        level = int(state)
        return ChannelConfig(name=name, enabled=level > 0, level=level)
    if not state or state in _ON:
        return ChannelConfig(name=name)
    if state in _OFF:
        return ChannelConfig(name=name, enabled=False)
    raise ValueError(f"unknown state '{state}' for channel '{name}'")


def format_channel_list() -> str:
    """Format the list of channels for display.

    Returns:
        Formatted string listing all channels with descriptions.
    """
    lines = ["Available channels:"]
    max_name = max(len(ch.value) for ch in Channel)
    for ch in Channel:
        desc = CHANNEL_DESCRIPTIONS.get(ch, '')
        lines.append(f"  {ch.value:<{max_name}}  {desc}")
    return "\n".join(lines)

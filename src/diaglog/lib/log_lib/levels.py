"""
Verbosity level constants and the level gate.

The emit rule is simple:

    message.level <= threshold  →  message is shown

The threshold is the global debug level. Verbose mode pins it to VERBOSE,
quiet mode suppresses everything regardless of level.

Level assignments:
    ←── quieter ────────── default ────────── louder ──→
      -1        0         1       2       3
    always   default   detail  config  verbose

Channel lines that are "always on" (info, action, error, profile) are
emitted at ALWAYS, so they pass at the default threshold and at any
positive one. Debug lines carry the caller's level.
"""

VERBOSE = 3        # Fixed threshold forced by set_verbose()
CONFIG = 2         # Engine configuration changes
DETAIL = 1         # Extra detail for debug traces
DEFAULT = 0        # Default threshold and default debug() level
ALWAYS = -1        # Info / action / error / profile lines


class LevelGate:
    """Holds the global threshold plus the quiet and verbose flags.

    The gate only ever compares two integers. Channel sentinels are
    mapped to concrete levels by the caller before reaching it.
    """

    def __init__(self, threshold: int = DEFAULT, verbose: bool = False,
                 quiet: bool = False):
        self.threshold = threshold
        self.verbose = verbose
        self.quiet = quiet

    @property
    def effective_threshold(self) -> int:
        """Threshold actually used for comparisons."""
        return VERBOSE if self.verbose else self.threshold

    def should_emit(self, level: int) -> bool:
        """Return True when a message at ``level`` passes the gate."""
        if self.quiet:
            return False
        return level <= self.effective_threshold

    def is_enabled_for(self, level: int) -> bool:
        """True when the current threshold reaches ``level`` (quiet ignored)."""
        return self.effective_threshold >= level

"""diaglog — multi-channel diagnostic logging.

Debug, info, action, error and user channels with level gating,
redirection to caller-supplied sinks, log files and a startup buffer.
"""

from diaglog._version import __version__, __app_name__

__all__ = ["__version__", "__app_name__"]

"""
Function tracing decorator.

Routes entry/exit lines through the LogManager singleton's profile path
("entering: ..." / "exiting: ..."), together with the time spent in the
call. Nothing is built or emitted while profile logs are off.
"""

import functools
import inspect
from pathlib import Path


def _short_repr(value) -> str:
    if isinstance(value, Path):
        return f"Path('{value}')"
    if isinstance(value, str) and len(value) > 50:
        return f"'{value[:47]}...'"
    if isinstance(value, (list, tuple)) and len(value) > 3:
        return f"[...{len(value)} items...]"
    return repr(value)


def trace(func):
    """Decorator to trace function calls via the LogManager.

    Shows function entry/exit with arguments, return value and elapsed
    time when profile logs are on.
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        # Lazy import to avoid circular dependency
        from .manager import get_output
        from .timer import time_since, time_now

        out = get_output()
        if not out.profile_enabled:
            return func(*args, **kwargs)

        module = inspect.getmodule(func)
        name = f"{module.__name__ if module else 'unknown'}.{func.__name__}"

        args_repr = [_short_repr(a) for a in args]
        args_repr += [f"{k}={_short_repr(v)}" for k, v in kwargs.items()]
        out.enter("{}({})", name, ', '.join(args_repr))

        start = time_now()
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            out.exit("{} raised {}: {} ({} msec)",
                     name, type(e).__name__, e, time_since(start))
            raise
        if result is None:
            out.exit("{} ({} msec)", name, time_since(start))
        else:
            out.exit("{} returned: {} ({} msec)",
                     name, _short_repr(result), time_since(start))
        return result

    return wrapper

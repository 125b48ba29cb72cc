"""
Redirection of channels to caller-supplied sink objects.

A caller attaches one sink object and then binds channels to names of
its methods. Each bound method must accept exactly one string: the fully
prefixed message. Redirection is opportunistic and self-healing: a
method that raises is unbound on the spot and the message goes to the
fallback sinks instead.

Host environments:
    UNSUPPORTED_HOSTS  Sink types from these modules cannot take
                       single-string callbacks. Attaching one disables
                       redirection for the rest of the process.
    DEFERRED_HOSTS     Dynamic proxies whose methods cannot be
                       introspected upfront. Binding only checks that
                       the attribute exists; the method is looked up
                       again on every delivery.

Both tuples are matched against the start of the sink type's module
name and can be extended by the application at startup.
"""

import inspect
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from .channels import Channel


UNSUPPORTED_HOSTS = (
    'clr',              # pythonnet proxies
    'System',
)

DEFERRED_HOSTS = (
    'py4j.',
    'jpype.',
    'rpyc.',
    'Pyro5.',
)

# Bind order used by bind_all()
BIND_ORDER = (
    Channel.USER, Channel.INFO, Channel.ACTION, Channel.ERROR, Channel.DEBUG,
)


class RedirectionError(Exception):
    """A method name could not be resolved to a one-string callable."""


@dataclass
class RedirectionTarget:
    """One channel's binding to a method of the attached sink."""
    sink: Any
    method_name: str
    resolved: Optional[Callable[[str], Any]] = None
    prefix_override: Optional[str] = None

    def call(self, message: str) -> None:
        method = self.resolved
        if method is None:
            method = getattr(self.sink, self.method_name)
        method(message)


def _host_module(obj) -> str:
    return type(obj).__module__ or ''


def _matches(module: str, hosts) -> bool:
    for host in hosts:
        base = host.rstrip('.')
        if module == base or module.startswith(base + '.'):
            return True
    return False


def resolve_method(sink, method_name: str) -> Callable[[str], Any]:
    """Resolve ``method_name`` on ``sink`` to a one-argument callable.

    Raises:
        RedirectionError: missing attribute, not callable, or a signature
            that cannot be called with exactly one positional string.
    """
    method = getattr(sink, method_name, None)
    if method is None:
        raise RedirectionError(
            f"{type(sink).__name__} has no method '{method_name}'")
    if not callable(method):
        raise RedirectionError(
            f"{type(sink).__name__}.{method_name} is not callable")
    try:
        inspect.signature(method).bind('message')
    except TypeError as e:
        raise RedirectionError(
            f"{type(sink).__name__}.{method_name} does not accept a single "
            f"string argument ({e})") from e
    except ValueError:
        # builtins without signature metadata: accept and check on call
        pass
    return method


class RedirectionBinder:
    """Tracks the attached sink and the per-channel bindings.

    Errors are reported through ``report``, a callable with the
    signature of LogManager.error(). Delivery failures go through
    ``report_failure`` instead, which must not use redirection. The
    manager wires both up; the binder never writes output itself.
    """

    def __init__(self, report: Callable[..., None] = None,
                 trace: Callable[..., None] = None,
                 report_failure: Callable[..., None] = None):
        self.sink: Any = None
        self.prefix_all = True
        self.supported = True
        self.deferred = False
        self._targets: Dict[Channel, RedirectionTarget] = {}
        self._report = report or (lambda *a, **k: None)
        self._trace = trace or (lambda *a, **k: None)
        self._report_failure = report_failure or self._report

    # -- attach ---------------------------------------------------------

    def attach(self, sink, prefix_all: bool = True) -> bool:
        """Record ``sink`` as the redirection target and reset bindings.

        Returns False (and disables redirection for good) when the sink
        comes from an unsupported host environment.
        """
        module = _host_module(sink)
        if _matches(module, UNSUPPORTED_HOSTS):
            self._trace("Redirect: attach: given instance's type: {}.{}",
                        module, type(sink).__name__)
            self._report("attach: redirection not supported for {} objects",
                         module)
            self.supported = False
            self.sink = None
            self._targets.clear()
            return False
        self.sink = sink
        self.prefix_all = prefix_all
        self.deferred = _matches(module, DEFERRED_HOSTS)
        self._targets.clear()
        self._trace("Redirect: attach {!r} (prefix={})", sink, prefix_all)
        return True

    def detach(self) -> None:
        self.sink = None
        self._targets.clear()

    # -- bind -----------------------------------------------------------

    def bind(self, channel, method_name: Optional[str],
             prefix: Optional[str] = None) -> bool:
        """Bind ``channel`` to ``method_name`` on the attached sink.

        An empty or None name clears the binding and always succeeds.
        ``prefix`` replaces the channel's redirect prefix for this binding.
        """
        channel = Channel(channel)
        if not method_name:
            self._targets.pop(channel, None)
            return True
        if not self.supported:
            self._report("bind {}: {} - redirection not supported",
                         channel.value, method_name)
            return False
        if self.sink is None:
            self._report("bind {}: no sink attached yet", channel.value)
            return False
        try:
            target = self._resolve(method_name)
        except RedirectionError as e:
            self._report("bind {}: redirecting to {} failed: {}",
                         channel.value, method_name, e)
            return False
        target.prefix_override = prefix
        self._targets[channel] = target
        self._trace("Redirect: {} -> {}", channel.value, method_name)
        return True

    def bind_all(self, method_name: Optional[str]) -> bool:
        """Bind every channel to ``method_name``.

        Each channel's outcome stands on its own; there is no rollback
        when one of them fails.
        """
        if not method_name:
            for channel in BIND_ORDER:
                self.bind(channel, None)
            return True
        if not self.supported:
            self._trace("Redirect: bind_all: redirection not supported")
            return False
        if self.sink is None:
            self._report("bind_all: {} - no sink attached yet", method_name)
            return False
        success = True
        for channel in BIND_ORDER:
            success &= self.bind(channel, method_name)
        return success

    def _resolve(self, method_name: str) -> RedirectionTarget:
        if self.deferred:
            if not hasattr(self.sink, method_name):
                raise RedirectionError(
                    f"proxy {type(self.sink).__name__} has no '{method_name}'")
            return RedirectionTarget(sink=self.sink, method_name=method_name)
        method = resolve_method(self.sink, method_name)
        return RedirectionTarget(sink=self.sink, method_name=method_name,
                                 resolved=method)

    # -- deliver --------------------------------------------------------

    def is_bound(self, channel) -> bool:
        return Channel(channel) in self._targets

    def target(self, channel) -> Optional[RedirectionTarget]:
        return self._targets.get(Channel(channel))

    def deliver(self, channel, prefix: str, message: str) -> bool:
        """Hand ``prefix + message`` to the channel's bound method.

        ``prefix`` is the channel's redirect prefix; it is dropped when
        the sink was attached without prefixes.

        Returns True when the method accepted the message. On failure
        the binding is cleared and one error line is written to the
        fallback sinks, never through a bound method.
        """
        channel = Channel(channel)
        target = self._targets.get(channel)
        if target is None:
            return False
        if not self.prefix_all:
            prefix = ''
        elif target.prefix_override is not None:
            prefix = target.prefix_override
        try:
            target.call(prefix + message)
            return True
        except Exception as e:
            self._targets.pop(channel, None)
            self._report_failure(
                "calling ({}) sink.{} failed - resetting to default: {}",
                channel.value, target.method_name, e)
            return False

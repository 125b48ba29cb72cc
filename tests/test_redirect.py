"""
Tests for channel redirection to caller-supplied sink objects.
"""

import re

import pytest

from diaglog.lib.log_lib import Channel, LogManager, LogSettings
from diaglog.lib.log_lib.redirect import (
    RedirectionBinder, RedirectionError, resolve_method,
)


def lines(buf):
    return buf.getvalue().splitlines()


class ClrProxy:
    """Looks like a pythonnet proxy."""
    __module__ = 'clr'

    def write(self, message):
        raise AssertionError("never called")


class RemoteProxy:
    """Looks like an rpyc netref."""
    __module__ = 'rpyc.core.netref'

    def __init__(self):
        self.lines = []

    def write(self, message):
        self.lines.append(message)


class FlakyProxy:
    """Remote proxy whose n-th attribute lookup fails."""
    __module__ = 'rpyc.core.netref'

    def __init__(self, fail_on):
        self.fail_on = fail_on
        self.lookups = 0
        self.lines = []

    def __getattr__(self, name):
        if name != "log_msg":
            raise AttributeError(name)
        self.lookups += 1
        if self.lookups == self.fail_on:
            raise AttributeError(name)
        return self.lines.append


# =============================================================================
# Binding and delivery
# =============================================================================

class TestDelivery:
    """Bound channels reach the sink method with their redirect prefix."""

    def test_info_delivered_exactly(self, out, buf, sink):
        out.attach(sink)
        assert out.bind(Channel.INFO, "write") is True
        out.info("hello {}", 1)
        assert sink.lines == ["[info] hello 1"]
        assert buf.getvalue() == ""

    def test_fixed_prefixes(self, out, sink):
        out.attach(sink)
        out.bind_channels({'action': "write", 'error': "write"})
        out.action("click")
        out.error("boom")
        assert sink.lines == ["[log] click", "[error] boom"]

    def test_fixed_prefix_has_no_timestamp(self, buf, sink):
        mgr = LogManager(LogSettings(log_time=True), file=buf)
        mgr.attach(sink)
        mgr.bind(Channel.INFO, "write")
        mgr.info("plain")
        assert sink.lines == ["[info] plain"]

    def test_debug_keeps_site_prefix(self, buf, sink):
        """debug lines keep the timestamped prefix built at the call site."""
        mgr = LogManager(LogSettings(log_time=True, debug_level=1), file=buf)
        mgr.attach(sink)
        mgr.bind(Channel.DEBUG, "write")
        mgr.debug("traced")
        assert len(sink.lines) == 1
        assert re.match(r"^\[debug \(\d\d/\d\d/\d\d \d\d:\d\d:\d\d\)\] traced$",
                        sink.lines[0])

    def test_user_keeps_site_prefix(self, out, sink):
        out.channels.set_user_prefix("robot")
        out.attach(sink)
        out.bind(Channel.USER, "write")
        out.user("step {}", 2)
        assert sink.lines == ["[robot] step 2"]

    def test_unbound_channels_use_console(self, out, buf, sink):
        out.attach(sink)
        out.bind(Channel.INFO, "write")
        out.action("not bound")
        assert sink.lines == []
        assert buf.getvalue() == "[log] not bound\n"

    def test_unbind(self, out, buf, sink):
        out.attach(sink)
        out.bind(Channel.INFO, "write")
        assert out.bind(Channel.INFO, "") is True
        assert out.is_redirected(Channel.INFO) is False
        out.info("back home")
        assert sink.lines == []
        assert buf.getvalue() == "[info] back home\n"

    def test_unbind_without_sink(self, out):
        assert out.bind(Channel.INFO, None) is True

    def test_prefix_override(self, out, sink):
        out.attach(sink)
        out.bind(Channel.INFO, "write", prefix=">> ")
        out.info("custom")
        assert sink.lines == [">> custom"]

    def test_no_prefix_mode(self, out, sink):
        out.attach(sink, prefix_all=False)
        out.bind_all("write")
        out.info("bare")
        out.user("bare user")
        assert sink.lines == ["bare", "bare user"]

    def test_gate_applies_before_redirect(self, out, sink):
        """Dropped lines never reach the sink."""
        out.attach(sink)
        out.bind_all("write")
        out.debug("level 0 debug is off")
        out.set_quiet()
        out.error("quiet")
        assert sink.lines == []

    def test_builtin_method(self, out):
        collected = []
        out.attach(collected)
        assert out.bind(Channel.INFO, "append") is True
        out.info("into a list")
        assert collected == ["[info] into a list"]

    def test_attach_resets_bindings(self, out, sink):
        out.attach(sink)
        out.bind(Channel.INFO, "write")
        out.attach(sink)
        assert out.is_redirected(Channel.INFO) is False

    def test_detach(self, out, buf, sink):
        out.attach(sink)
        out.bind_all("write")
        out.detach()
        out.info("console")
        assert sink.lines == []
        assert buf.getvalue() == "[info] console\n"


# =============================================================================
# bind_all / bind_channels
# =============================================================================

class TestBindAll:
    """Binding several channels at once."""

    def test_bind_all(self, out, sink):
        out.attach(sink)
        assert out.bind_all("write") is True
        for channel in Channel:
            assert out.is_redirected(channel)
        out.set_level(1)
        out.debug("d")
        out.info("i")
        out.action("a")
        out.error("e")
        out.user("u")
        assert sink.lines == ["[debug] d", "[info] i", "[log] a", "[error] e",
                              "[user] u"]

    def test_bind_all_empty_clears(self, out, sink):
        out.attach(sink)
        out.bind_all("write")
        assert out.bind_all("") is True
        assert not any(out.is_redirected(ch) for ch in Channel)

    def test_bind_all_without_sink(self, out, buf):
        """Reported once, not once per channel."""
        assert out.bind_all("write") is False
        assert lines(buf) == ["[error] bind_all: write - no sink attached yet"]

    def test_bind_all_clear_without_sink(self, out, buf):
        assert out.bind_all("") is True
        assert buf.getvalue() == ""

    def test_bind_all_missing_method(self, out, buf, sink):
        out.attach(sink)
        assert out.bind_all("missing") is False
        errors = [line for line in lines(buf) if line.startswith("[error]")]
        assert len(errors) == len(Channel)

    def test_bind_all_keeps_partial_success(self, out, buf):
        """A proxy that drops one lookup leaves the other channels bound."""
        proxy = FlakyProxy(fail_on=2)
        out.attach(proxy)
        assert out.bind_all("log_msg") is False
        assert out.is_redirected(Channel.USER) is True
        assert out.is_redirected(Channel.INFO) is False
        assert out.is_redirected(Channel.ACTION) is True
        assert out.is_redirected(Channel.ERROR) is True
        assert out.is_redirected(Channel.DEBUG) is True
        assert "bind info: redirecting to log_msg failed" in buf.getvalue()

    def test_partial_success_kept(self, out, sink):
        """A failing binding does not roll back the others."""
        out.attach(sink)
        ok = out.bind_channels({Channel.INFO: "write",
                                Channel.ACTION: "missing"})
        assert ok is False
        assert out.is_redirected(Channel.INFO) is True
        assert out.is_redirected(Channel.ACTION) is False


# =============================================================================
# Failures
# =============================================================================

class TestFailures:
    """Bad method names and failing methods."""

    def test_no_sink_attached(self, out, buf):
        assert out.bind(Channel.INFO, "write") is False
        assert lines(buf) == ["[error] bind info: no sink attached yet"]

    def test_missing_method(self, out, buf, sink):
        out.attach(sink)
        assert out.bind(Channel.INFO, "missing") is False
        assert "has no method 'missing'" in buf.getvalue()

    def test_not_callable(self, out, buf, sink):
        out.attach(sink)
        assert out.bind(Channel.INFO, "not_a_method") is False
        assert "not callable" in buf.getvalue()

    def test_signature_mismatch(self, out, buf, sink):
        out.attach(sink)
        assert out.bind(Channel.INFO, "two_args") is False
        assert "does not accept a single string argument" in buf.getvalue()
        assert out.is_redirected(Channel.INFO) is False

    def test_raising_method_unbound_once(self, out, buf, sink):
        """One error report, then the line falls back to the console."""
        out.attach(sink)
        out.bind(Channel.INFO, "broken")
        out.info("first")
        out.info("second")
        assert lines(buf) == [
            "[error] calling (info) sink.broken failed - resetting to default: "
            "sink is gone",
            "[info] first",
            "[info] second",
        ]
        assert out.is_redirected(Channel.INFO) is False

    def test_raising_error_method_does_not_recurse(self, out, buf, sink):
        out.attach(sink)
        out.bind(Channel.ERROR, "broken")
        out.error("original")
        result = lines(buf)
        assert len(result) == 2
        assert result[0].startswith("[error] calling (error) sink.broken failed")
        assert result[1] == "[error] original"

    def test_other_bindings_survive_failure(self, out, buf, sink):
        """The failure report skips the error binding, which stays in place."""
        out.attach(sink)
        out.bind(Channel.INFO, "broken")
        out.bind(Channel.ERROR, "on_error")
        out.info("x")
        assert sink.errors == []
        assert "sink.broken failed" in lines(buf)[0]
        out.error("later")
        assert sink.errors == ["[error] later"]

    def test_bind_all_to_raising_method_reports_once(self, out, buf, sink):
        """One broken method behind every channel gives one error line."""
        out.attach(sink)
        out.bind_all("broken")
        out.set_level(1)
        out.debug("msg")
        assert lines(buf) == [
            "[error] calling (debug) sink.broken failed - resetting to default: "
            "sink is gone",
            "[debug] msg",
        ]
        assert out.is_redirected(Channel.DEBUG) is False
        assert out.is_redirected(Channel.ERROR) is True


# =============================================================================
# Host environments
# =============================================================================

class TestHostEnvironments:
    """Unsupported and deferred sink types."""

    def test_unsupported_host_disables_redirection(self, out, buf, sink):
        assert out.attach(ClrProxy()) is False
        assert lines(buf) == [
            "[error] attach: redirection not supported for clr objects"]
        out.attach(sink)
        assert out.bind(Channel.INFO, "write") is False
        assert out.bind_all("write") is False
        out.info("console")
        assert sink.lines == []
        assert out.bind_all("") is True

    def test_deferred_host_looks_up_on_delivery(self, out):
        proxy = RemoteProxy()
        assert out.attach(proxy) is True
        assert out.bind(Channel.INFO, "write") is True
        assert out.binder.target(Channel.INFO).resolved is None

        replaced = []
        proxy.write = replaced.append
        out.info("late bound")
        assert replaced == ["[info] late bound"]
        assert proxy.lines == []

    def test_deferred_host_missing_attribute(self, out, buf):
        out.attach(RemoteProxy())
        assert out.bind(Channel.INFO, "missing") is False
        assert "has no 'missing'" in buf.getvalue()

    def test_module_prefix_must_match_whole_name(self):
        """'clrlib' is not the 'clr' host."""
        binder = RedirectionBinder()
        cls = type('Thing', (), {'__module__': 'clrlib.things',
                                 'write': lambda self, m: None})
        assert binder.attach(cls()) is True
        assert binder.supported is True


class TestResolveMethod:
    """resolve_method() on its own."""

    def test_returns_bound_method(self, sink):
        method = resolve_method(sink, "write")
        method("x")
        assert sink.lines == ["x"]

    def test_rejects_missing(self, sink):
        with pytest.raises(RedirectionError):
            resolve_method(sink, "nothing_here")

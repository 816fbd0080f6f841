"""Tests for the SyslogSink lifecycle: init, log, close."""

from __future__ import annotations

import json
import re

import pytest

from syslogsink.config import SyslogSinkConfig
from syslogsink.errors import (
    SinkClosedError,
    SyslogInitError,
    SyslogSinkError,
    UnknownNetworkError,
)
from syslogsink.formatting import get_formatter
from syslogsink.priority import LOG_ERR, LOG_INFO, LOG_LOCAL3, LOG_LOCAL7, LOG_USER, LOG_WARNING
from syslogsink.sink import CLOSED, OPEN, UNINITIALIZED, SyslogSink, new_sink

PRI = re.compile(rb"^<(\d+)>")


def _pri(data: bytes) -> int:
    m = PRI.match(data)
    assert m is not None, data
    return int(m.group(1))


def _body(data: bytes) -> bytes:
    return data.split(b"]: ", 1)[1]


# =============================================================================
# Scenarios
# =============================================================================


class TestLocalDaemonScenario:
    """network="" with a reachable local daemon, facility local3, tag svc."""

    def test_init_log_close(self, local_daemon):
        cfg = SyslogSinkConfig(network="", address="", facility="local3", tag="svc")
        sink = new_sink(cfg)
        assert sink.state == OPEN

        assert sink.log("level", "warning", "msg", "x") is None
        data = local_daemon.recv()
        assert _pri(data) == LOG_LOCAL3 | LOG_WARNING
        assert b" svc[" in data
        assert _body(data) == b"level=warning msg=x\n"

        assert sink.close() is None
        assert sink.state == CLOSED


class TestRefusedScenario:
    def test_init_fails_and_logs(self, refused_address, recording_logger):
        cfg = SyslogSinkConfig(network="tcp", address=refused_address, tag="svc")
        with pytest.raises(SyslogInitError):
            new_sink(cfg, logger=recording_logger)

        assert len(recording_logger.records) == 1
        level, event, kw = recording_logger.records[0]
        assert level == "error"
        assert event == "Failed to init syslog log handler"
        assert kw["error"]
        assert kw["address"] == refused_address

    def test_unknown_network_is_an_init_failure(self, recording_logger):
        cfg = SyslogSinkConfig(network="bogus", address="x:1")
        with pytest.raises(UnknownNetworkError):
            new_sink(cfg, logger=recording_logger)
        assert recording_logger.records[0][0] == "error"

    def test_failed_init_leaves_sink_uninitialized(self, refused_address, recording_logger):
        sink = SyslogSink(SyslogSinkConfig(network="tcp", address=refused_address), logger=recording_logger)
        with pytest.raises(SyslogInitError):
            sink.init()
        assert sink.state == UNINITIALIZED
        with pytest.raises(SinkClosedError):
            sink.log("level", "info")


# =============================================================================
# Priorities on the wire
# =============================================================================


class TestPriorities:
    @pytest.fixture()
    def sink(self, udp_receiver):
        sink = new_sink(SyslogSinkConfig(network="udp", address=udp_receiver.address, facility="local3", tag="svc"))
        yield sink
        if sink.state == OPEN:
            sink.close()

    def test_level_anywhere(self, sink, udp_receiver):
        sink.log("msg", "boom", "level", "error")
        assert _pri(udp_receiver.recv()) == LOG_LOCAL3 | LOG_ERR

    def test_unknown_level_writes_base_priority(self, sink, udp_receiver):
        sink.log("level", "bogus", "msg", "x")
        assert _pri(udp_receiver.recv()) == LOG_LOCAL3

    def test_missing_level_writes_base_priority(self, sink, udp_receiver):
        sink.log("msg", "x")
        assert _pri(udp_receiver.recv()) == LOG_LOCAL3

    def test_first_level_wins(self, sink, udp_receiver):
        sink.log("level", "warning", "level", "error")
        assert _pri(udp_receiver.recv()) == LOG_LOCAL3 | LOG_WARNING

    def test_unrecognised_facility_is_local7(self, udp_receiver):
        sink = new_sink(SyslogSinkConfig(network="udp", address=udp_receiver.address, facility="kern"))
        try:
            sink.log("level", "error")
            assert _pri(udp_receiver.recv()) == LOG_LOCAL7 | LOG_ERR
        finally:
            sink.close()

    def test_user_facility(self, udp_receiver):
        sink = new_sink(SyslogSinkConfig(network="udp", address=udp_receiver.address, facility="user"))
        try:
            sink.log("level", "error")
            assert _pri(udp_receiver.recv()) == LOG_USER | LOG_ERR
        finally:
            sink.close()


# =============================================================================
# Formatter collaborator
# =============================================================================


class TestFormatter:
    def test_repeated_keys_reach_the_wire(self, udp_receiver):
        cfg = SyslogSinkConfig(network="udp", address=udp_receiver.address, facility="local3")
        with new_sink(cfg) as sink:
            sink.log("level", "info", "level", "error", "msg", "a", "msg", "b")
            data = udp_receiver.recv()
        # priority from the first level pair, every pair in the body
        assert _pri(data) == LOG_LOCAL3 | LOG_INFO
        assert _body(data) == b"level=info level=error msg=a msg=b\n"

    def test_json_format_from_config(self, udp_receiver):
        cfg = SyslogSinkConfig(network="udp", address=udp_receiver.address, format="json")
        with new_sink(cfg) as sink:
            sink.log("level", "info", "count", 2)
            assert json.loads(_body(udp_receiver.recv())) == {"level": "info", "count": 2}

    def test_explicit_formatter_wins(self, udp_receiver):
        cfg = SyslogSinkConfig(network="udp", address=udp_receiver.address, format="json")
        with new_sink(cfg, get_formatter("kv")) as sink:
            sink.log("level", "info", "msg", "hi")
            assert _body(udp_receiver.recv()) == b"level=info msg=hi\n"

    def test_unknown_format_fails_at_construction(self):
        with pytest.raises(ValueError, match="Unknown log format"):
            SyslogSink(SyslogSinkConfig(format="xml"))


# =============================================================================
# Lifecycle
# =============================================================================


class TestLifecycle:
    def test_log_before_init(self):
        sink = SyslogSink(SyslogSinkConfig())
        assert sink.state == UNINITIALIZED
        with pytest.raises(SinkClosedError, match="uninitialized"):
            sink.log("level", "info")

    def test_close_before_init(self):
        with pytest.raises(SinkClosedError):
            SyslogSink(SyslogSinkConfig()).close()

    def test_log_after_close(self, udp_receiver):
        sink = new_sink(SyslogSinkConfig(network="udp", address=udp_receiver.address))
        sink.close()
        with pytest.raises(SinkClosedError, match="closed"):
            sink.log("level", "info")

    def test_close_twice(self, udp_receiver):
        sink = new_sink(SyslogSinkConfig(network="udp", address=udp_receiver.address))
        sink.close()
        with pytest.raises(SinkClosedError):
            sink.close()

    def test_init_twice(self, udp_receiver):
        sink = new_sink(SyslogSinkConfig(network="udp", address=udp_receiver.address))
        try:
            with pytest.raises(SyslogSinkError, match="already open"):
                sink.init()
        finally:
            sink.close()

    def test_init_after_close(self, udp_receiver):
        sink = new_sink(SyslogSinkConfig(network="udp", address=udp_receiver.address))
        sink.close()
        with pytest.raises(SinkClosedError):
            sink.init()

    def test_context_manager_inits_and_closes(self, udp_receiver):
        sink = SyslogSink(SyslogSinkConfig(network="udp", address=udp_receiver.address))
        with sink as s:
            assert s is sink
            assert sink.state == OPEN
            s.log("level", "info")
        assert sink.state == CLOSED
        assert udp_receiver.recv()

    def test_transmission_error_propagates(self, udp_receiver):
        sink = new_sink(SyslogSinkConfig(network="udp", address=udp_receiver.address))
        sink.connection.socket.close()
        with pytest.raises(OSError):
            sink.log("level", "info")
        sink.close()

    def test_repr(self):
        sink = SyslogSink(SyslogSinkConfig(facility="local3", tag="svc"))
        assert "local3" in repr(sink)
        assert "uninitialized" in repr(sink)

# -*- coding: utf-8 -*-
"""Tests for logging, clamping, clock and version helpers."""

import logging

import pytest

from picar_base import __version__, get_package_version_info
from picar_base.drivers.board_exceptions import (
    BoardErrorContext,
    BoardException,
    BoardValidationError,
    DriverInterruptedError,
)
from picar_base.utils.clamp import clamp, clamp_int, clamp_unsigned_duty, speed_to_duty
from picar_base.utils.logging import (
    LoggerAdapter,
    RateLimitedLogger,
    format_event,
    format_kv,
    get_logger_adapter,
    log_event,
    log_exception,
)
from picar_base.utils.timing import SystemClock, elapsed_ns


class RecordingLogger:
    """Logger-like object exposing only the legacy `warn` spelling."""

    def __init__(self):
        self.lines = []

    def debug(self, msg):
        self.lines.append(("debug", msg))

    def info(self, msg):
        self.lines.append(("info", msg))

    def warn(self, msg):
        self.lines.append(("warn", msg))

    def error(self, msg):
        self.lines.append(("error", msg))


class TestLogging:
    def test_adapter_wraps_logger_like_objects(self):
        target = RecordingLogger()
        log = get_logger_adapter(target)
        log.warn("hot")
        log.error("down")
        assert target.lines == [("warn", "hot"), ("error", "down")]
        assert get_logger_adapter(log) is log

    def test_default_adapter_uses_package_logger(self):
        log = get_logger_adapter(name="picar_base.test")
        assert log.is_std_logger
        assert log.target.name == "picar_base.test"
        assert logging.getLogger("picar_base").handlers

    def test_format_helpers(self):
        assert format_kv(addr="0x40", freq_hz=50) == "addr=0x40 freq_hz=50"
        assert format_event("initialized", component="pca9685", details={"addr": "0x40"}) == (
            "[INFO] [pca9685] initialized addr=0x40"
        )

    def test_log_exception(self):
        target = RecordingLogger()
        log_exception(LoggerAdapter(target=target), ValueError("bad"), message="oops", component="board")
        assert target.lines == [("error", "[board] oops | ValueError: bad")]

    def test_log_event_routes_by_level(self):
        target = RecordingLogger()
        log = LoggerAdapter(target=target)
        log_event(log, "board ready", component="board", details={"drv8830": 2})
        log_event(log, "echo stuck", level="WARNING", component="us100")
        assert target.lines == [
            ("info", "[INFO] [board] board ready drv8830=2"),
            ("warn", "[WARNING] [us100] echo stuck"),
        ]

    def test_debug_gate_follows_std_logger_level(self):
        std = logging.getLogger("picar_base.test.gate")
        std.setLevel(logging.INFO)
        assert not get_logger_adapter(std).is_enabled_for_debug()
        std.setLevel(logging.DEBUG)
        assert get_logger_adapter(std).is_enabled_for_debug()
        assert LoggerAdapter(target=RecordingLogger()).is_enabled_for_debug()

    def test_rate_limited_logger(self):
        target = RecordingLogger()
        rl = RateLimitedLogger(LoggerAdapter(target=target), period_s=60.0)
        assert rl.debug("edge", "first")
        assert not rl.debug("edge", "second")
        assert rl.warn("other", "third")
        assert [m for _, m in target.lines] == ["first", "third"]


class TestExceptions:
    def test_context_formatting(self):
        err = BoardException(
            "write failed",
            context=BoardErrorContext(driver="PCA9685", address=0x40, register=0x06, channel=0),
        )
        assert str(err) == "write failed [driver=PCA9685, addr=0x40, ch=0, reg=0x06]"
        assert err.to_dict()["context"] == {"driver": "PCA9685", "address": 0x40, "channel": 0, "register": 0x06}


class TestClamp:
    def test_clamp_swaps_bounds(self):
        assert clamp(5, 10, 0) == 5
        assert clamp(-1, 10, 0) == 0

    def test_integer_helpers(self):
        assert clamp_int(5000, 0, 4095) == 4095
        assert clamp_unsigned_duty(-3) == 0
        assert clamp_unsigned_duty(3000, max_duty=9000) == 3000

    @pytest.mark.parametrize("speed, duty", [(0.5, 2047), (-2.0, 4095), (0.0, 0), (1e-6, 0)])
    def test_speed_to_duty(self, speed, duty):
        assert speed_to_duty(speed) == duty

    def test_nan_speed_rejected(self):
        with pytest.raises(BoardValidationError):
            speed_to_duty(float("nan"))
        assert speed_to_duty(float("inf")) == 4095


class TestClock:
    def test_elapsed_never_negative(self):
        assert elapsed_ns(100, 50) == 0
        assert elapsed_ns(100, 350) == 250

    def test_system_clock_interrupt(self):
        clock = SystemClock()
        clock.sleep_ms(0)
        clock.interrupt()
        assert clock.is_interrupted
        with pytest.raises(DriverInterruptedError):
            clock.sleep_ms(1000)
        clock.clear_interrupt()
        clock.sleep_ms(0)

    def test_monotonic(self):
        clock = SystemClock()
        assert clock.now_ns() <= clock.now_ns()


def test_version_info():
    info = get_package_version_info()
    assert info.version == __version__
    assert info.to_dict()["package_name"] == "picar_base"
    assert "PCA9685" in info.banner()

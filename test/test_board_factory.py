# -*- coding: utf-8 -*-
"""Tests for wiring a whole board from a HardwareConfig."""

import pytest

from picar_base.config import HardwareConfig
from picar_base.drivers import board_factory
from picar_base.drivers.board_exceptions import BoardConfigError, I2CBusOpenError, I2CCommunicationError
from picar_base.drivers.board_factory import create_board, open_i2c_bus


CONFIG = {
    "pca9685": {"address": "0x40", "pwm_freq_hz": 50},
    "tb6612": {"pin_ma": 5, "pin_mb": 6},
    "servo": {"channel": 15},
    "drv8830": [{"address": "0x60"}, {"address": "0x64"}],
    "mcp9808": {},
    "us100": {"trigger_pin": 23, "echo_pin": 24},
    "arduino": {},
}


@pytest.fixture
def config():
    return HardwareConfig.from_mapping(CONFIG)


class TestCreateBoard:
    def test_everything_wired(self, config, bus, clock, pin_factory):
        with create_board(config, bus=bus, clock=clock, pin_factory=pin_factory) as board:
            assert board.summary() == {
                "i2c_bus": 1,
                "pca9685": True,
                "tb6612": True,
                "servo": True,
                "motor_hat": False,
                "drv8830": 2,
                "mcp9808": True,
                "us100": True,
                "arduino": True,
            }
            assert board.pwm.is_initialized
            assert bus.regs[0x40][0xFE] == 121
            assert bus.byte_writes(0x60) == [(0x01, 0x80)]
            assert board.servo.set_position(0) == 1180
            assert board.tb6612.set_pwm(0.5) == 2047
        assert not bus.closed

    def test_close_stops_motors_and_releases_pins(self, config, bus, clock, pin_factory):
        board = create_board(config, bus=bus, clock=clock, pin_factory=pin_factory)
        board.tb6612.set_pwm(-1.0)
        board.drv8830[0].drive(40)
        pins = board.tb6612.gpio_pins() + board.us100.gpio_devices()
        board.close()

        assert bus.regs[0x40][6 + 2] == 0
        assert bus.regs[0x60][0x00] == 0x00
        assert all(dev.closed for dev in pins)

    def test_bring_up_failure_releases_pins(self, config, bus, clock, pin_factory):
        bus.fail_addresses.add(0x64)
        with pytest.raises(I2CCommunicationError):
            create_board(config, bus=bus, clock=clock, pin_factory=pin_factory)
        # pins 5 and 6 are free again
        board = create_board(
            HardwareConfig.from_mapping({"pca9685": {}, "tb6612": {"pin_ma": 5, "pin_mb": 6}}),
            bus=bus,
            clock=clock,
            pin_factory=pin_factory,
        )
        board.close()

    def test_board_opens_and_owns_bus(self, monkeypatch, clock):
        opened = []

        class Bus:
            def __init__(self, number):
                opened.append(number)
                self.closed = False

            def close(self):
                self.closed = True

        monkeypatch.setattr(board_factory, "SMBus", Bus)
        board = create_board(HardwareConfig.from_mapping({"i2c_bus": 3}), clock=clock)
        bus = board.bus
        assert opened == [3]
        board.close()
        assert bus.closed
        assert board.bus is None

    def test_rejects_non_config(self, bus):
        with pytest.raises(BoardConfigError):
            create_board({"pca9685": {}}, bus=bus)


class TestOpenBus:
    def test_open_failure_is_wrapped(self, monkeypatch):
        def fail(number):
            raise FileNotFoundError(2, "No such file or directory", f"/dev/i2c-{number}")

        monkeypatch.setattr(board_factory, "SMBus", fail)
        with pytest.raises(I2CBusOpenError):
            open_i2c_bus(7)

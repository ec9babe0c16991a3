#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
PiCar — picar_base/drivers/board_factory.py
-------------------------------------------
Build wired driver objects from a HardwareConfig.

Purpose
- Centralize construction for bring-up scripts and applications
- Keep ownership explicit: the factory opens the bus and GPIO devices on the
  application's behalf and hands them back in a PiCarBoard, whose close()
  releases them
- Accept an existing bus handle / clock / pin factory so tests can wire the
  whole board against fakes

Supported peripherals
- PCA9685 (+ TB6612 pair, steering servo), Motor Driver HAT
- DRV8830 (any number), MCP9808, US-100, Arduino co-processor
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from gpiozero import DigitalInputDevice, DigitalOutputDevice
from gpiozero.exc import GPIOZeroError
from smbus2 import SMBus

from ..config import (
    ArduinoConfig,
    DRV8830Config,
    HardwareConfig,
    MCP9808Config,
    MotorDriverHatConfig,
    PCA9685Config,
    ServoConfig,
    TB6612Config,
    US100Config,
)
from ..sensors.us100_sensor import MeasurementSink, US100Sensor
from ..utils.logging import get_logger_adapter, log_event, log_exception
from ..utils.timing import Clock
from .arduino_i2c import ArduinoI2C
from .board_exceptions import BoardConfigError, BoardException, I2CBusOpenError, wrap_gpio_error
from .drv8830_driver import DRV8830Driver
from .mcp9808_driver import MCP9808Driver
from .motor_driver_hat import MotorDriverHat
from .pca9685_driver import PCA9685Driver
from .pwm_views import ServoView
from .tb6612_motor_driver import TB6612MotorDriver


# =============================================================================
# Handles
# =============================================================================
def open_i2c_bus(bus_number: int = 1) -> SMBus:
    """
    Open /dev/i2c-<bus_number>.

    Raises:
        I2CBusOpenError
    """
    try:
        return SMBus(int(bus_number))
    except (OSError, ValueError) as e:
        raise I2CBusOpenError(f"Failed to open I2C bus {bus_number}: {e}", cause=e) from e


def _output(pin: Any, pin_factory: Any, name: str) -> DigitalOutputDevice:
    try:
        return DigitalOutputDevice(pin, initial_value=False, pin_factory=pin_factory)
    except GPIOZeroError as e:
        raise wrap_gpio_error(e, message=f"cannot open {name} output on pin {pin}", operation="open", pin=str(pin)) from e


def _input(pin: Any, pin_factory: Any, name: str) -> DigitalInputDevice:
    try:
        # No pull resistor: the US-100 drives echo actively.
        return DigitalInputDevice(pin, pull_up=None, active_state=True, pin_factory=pin_factory)
    except GPIOZeroError as e:
        raise wrap_gpio_error(e, message=f"cannot open {name} input on pin {pin}", operation="open", pin=str(pin)) from e


# =============================================================================
# Per-peripheral builders
# =============================================================================
def create_pca9685(
    bus: Any,
    cfg: PCA9685Config,
    *,
    clock: Optional[Clock] = None,
    bus_number: Optional[int] = None,
    logger: Any = None,
) -> PCA9685Driver:
    """Create, initialize and program the frequency of a PCA9685."""
    pwm = PCA9685Driver(bus, cfg.address, clock=clock, bus_number=bus_number, logger=logger)
    pwm.initialize()
    pwm.set_frequency(cfg.pwm_freq_hz)
    return pwm


def create_tb6612(
    pwm: PCA9685Driver,
    cfg: TB6612Config,
    *,
    clock: Optional[Clock] = None,
    pin_factory: Any = None,
    logger: Any = None,
) -> TB6612MotorDriver:
    pin_ma = _output(cfg.pin_ma, pin_factory, "TB6612 MA")
    try:
        pin_mb = _output(cfg.pin_mb, pin_factory, "TB6612 MB")
    except BoardException:
        pin_ma.close()
        raise
    return TB6612MotorDriver(
        pin_ma,
        pin_mb,
        pwm.motor(cfg.motor_a_channel),
        pwm.motor(cfg.motor_b_channel),
        clock=clock,
        logger=logger,
    )


def create_servo(pwm: PCA9685Driver, cfg: ServoConfig) -> ServoView:
    return pwm.servo(cfg.channel, cfg.calibration)


def create_motor_hat(
    bus: Any,
    cfg: MotorDriverHatConfig,
    *,
    clock: Optional[Clock] = None,
    bus_number: Optional[int] = None,
    logger: Any = None,
) -> MotorDriverHat:
    hat = MotorDriverHat(
        PCA9685Driver(bus, cfg.address, clock=clock, bus_number=bus_number, logger=logger),
        cfg.pwm_freq_hz,
        logger=logger,
    )
    hat.initialize()
    return hat


def create_drv8830(
    bus: Any,
    cfg: DRV8830Config,
    *,
    bus_number: Optional[int] = None,
    logger: Any = None,
) -> DRV8830Driver:
    drv = DRV8830Driver(bus, cfg.address, bus_number=bus_number, logger=logger)
    if cfg.clear_fault_on_start:
        drv.reset_fault()
    return drv


def create_mcp9808(
    bus: Any,
    cfg: MCP9808Config,
    *,
    bus_number: Optional[int] = None,
    logger: Any = None,
) -> MCP9808Driver:
    return MCP9808Driver(bus, cfg.address, bus_number=bus_number, logger=logger)


def create_us100(
    cfg: US100Config,
    *,
    sink: Optional[MeasurementSink] = None,
    clock: Optional[Clock] = None,
    pin_factory: Any = None,
    logger: Any = None,
) -> US100Sensor:
    trigger = _output(cfg.trigger_pin, pin_factory, "US100 trigger")
    try:
        echo = _input(cfg.echo_pin, pin_factory, "US100 echo")
    except BoardException:
        trigger.close()
        raise
    return US100Sensor(
        trigger,
        echo,
        sink=sink,
        clock=clock,
        echo_busy_timeout_ms=cfg.echo_busy_timeout_ms,
        logger=logger,
    )


def create_arduino(
    bus: Any,
    cfg: ArduinoConfig,
    *,
    bus_number: Optional[int] = None,
    logger: Any = None,
) -> ArduinoI2C:
    return ArduinoI2C(bus, cfg.address, bus_number=bus_number, logger=logger)


# =============================================================================
# Whole board
# =============================================================================
@dataclass
class PiCarBoard:
    """
    Drivers wired from one HardwareConfig, plus the handles opened for them.

    `close()` stops motors where possible, then closes the GPIO devices and
    (if the factory opened it) the I2C bus.
    """
    config: HardwareConfig
    bus: Any = None
    pwm: Optional[PCA9685Driver] = None
    tb6612: Optional[TB6612MotorDriver] = None
    servo: Optional[ServoView] = None
    motor_hat: Optional[MotorDriverHat] = None
    drv8830: Tuple[DRV8830Driver, ...] = ()
    mcp9808: Optional[MCP9808Driver] = None
    us100: Optional[US100Sensor] = None
    arduino: Optional[ArduinoI2C] = None
    owns_bus: bool = False
    _gpio_devices: List[Any] = field(default_factory=list)

    def summary(self) -> Dict[str, Any]:
        return {
            "i2c_bus": self.config.i2c_bus,
            "pca9685": self.pwm is not None,
            "tb6612": self.tb6612 is not None,
            "servo": self.servo is not None,
            "motor_hat": self.motor_hat is not None,
            "drv8830": len(self.drv8830),
            "mcp9808": self.mcp9808 is not None,
            "us100": self.us100 is not None,
            "arduino": self.arduino is not None,
        }

    def stop_motors(self) -> None:
        if self.tb6612 is not None:
            self.tb6612.stop()
        if self.motor_hat is not None:
            self.motor_hat.stop()
        for drv in self.drv8830:
            drv.stand_by()

    def close(self) -> None:
        log = get_logger_adapter(name="picar_base.board")
        try:
            self.stop_motors()
        except BoardException as e:
            log_exception(log, e, message="stop_motors() failed during close", component="board")
        finally:
            if self.us100 is not None:
                self.us100.detach()
            for dev in self._gpio_devices:
                dev.close()
            self._gpio_devices.clear()
            if self.owns_bus and self.bus is not None:
                self.bus.close()
                self.bus = None
            log_event(log, "board closed", component="board")

    def __enter__(self) -> "PiCarBoard":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def create_board(
    config: HardwareConfig,
    *,
    bus: Any = None,
    clock: Optional[Clock] = None,
    pin_factory: Any = None,
    us100_sink: Optional[MeasurementSink] = None,
    logger: Any = None,
) -> PiCarBoard:
    """
    Wire every peripheral present in `config`.

    Args:
        config: parsed hardware topology
        bus: existing smbus2.SMBus-compatible handle; opened from
            config.i2c_bus (and owned by the board) when None
        clock: shared clock for every driver (SystemClock when None)
        pin_factory: gpiozero pin factory (gpiozero default when None)
        us100_sink: consumer for range measurements
        logger: logger-like object or None

    Raises:
        BoardConfigError, I2CBusOpenError, I2CCommunicationError, GpioError
    """
    if not isinstance(config, HardwareConfig):
        raise BoardConfigError("config must be a HardwareConfig")
    config.validate()

    log = get_logger_adapter(logger, name="picar_base.board")
    owns_bus = bus is None
    if owns_bus:
        bus = open_i2c_bus(config.i2c_bus)

    board = PiCarBoard(config=config, bus=bus, owns_bus=owns_bus)
    n = config.i2c_bus
    try:
        if config.pca9685 is not None:
            board.pwm = create_pca9685(bus, config.pca9685, clock=clock, bus_number=n, logger=logger)
            if config.tb6612 is not None:
                board.tb6612 = create_tb6612(
                    board.pwm, config.tb6612, clock=clock, pin_factory=pin_factory, logger=logger
                )
                board._gpio_devices.extend(board.tb6612.gpio_pins())
            if config.servo is not None:
                board.servo = create_servo(board.pwm, config.servo)
        if config.motor_hat is not None:
            board.motor_hat = create_motor_hat(bus, config.motor_hat, clock=clock, bus_number=n, logger=logger)
        board.drv8830 = tuple(
            create_drv8830(bus, c, bus_number=n, logger=logger) for c in config.drv8830
        )
        if config.mcp9808 is not None:
            board.mcp9808 = create_mcp9808(bus, config.mcp9808, bus_number=n, logger=logger)
        if config.us100 is not None:
            board.us100 = create_us100(
                config.us100, sink=us100_sink, clock=clock, pin_factory=pin_factory, logger=logger
            )
            board._gpio_devices.extend(board.us100.gpio_devices())
        if config.arduino is not None:
            board.arduino = create_arduino(bus, config.arduino, bus_number=n, logger=logger)
    except BoardException as e:
        log_exception(log, e, message="board bring-up failed", component="board")
        board.close()
        raise

    log_event(log, "board ready", component="board", details=board.summary())
    return board


__all__ = [
    "open_i2c_bus",
    "create_pca9685",
    "create_tb6612",
    "create_servo",
    "create_motor_hat",
    "create_drv8830",
    "create_mcp9808",
    "create_us100",
    "create_arduino",
    "PiCarBoard",
    "create_board",
]

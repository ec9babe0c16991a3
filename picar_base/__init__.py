# -*- coding: utf-8 -*-
"""
PiCar — picar_base/__init__.py
------------------------------
On-board peripheral driver layer of the PiCar robot.

Subpackages
- drivers: I2C device, PCA9685 + views, TB6612, Motor Driver HAT, DRV8830,
  MCP9808, Arduino co-processor, board factory, exception hierarchy
- sensors: US-100 ultrasonic range finder
- models:  direction / fault / status / result value types
- utils:   logging, clamping, clock helpers

Example
-------
    from picar_base import HardwareConfig, create_board

    board = create_board(HardwareConfig.from_mapping({"pca9685": {"address": "0x40"}}))
    board.servo ...
"""

from __future__ import annotations

from .version import __version__, VERSION, get_version, get_package_version_info

# drivers first: the exception hierarchy is imported by utils.timing and models
from . import drivers
from .config import HardwareConfig, load_hardware_config
from .drivers import (
    BoardException,
    I2CDevice,
    PCA9685Driver,
    TB6612MotorDriver,
    MotorDriverHat,
    DRV8830Driver,
    MCP9808Driver,
    ArduinoI2C,
    PiCarBoard,
    create_board,
    open_i2c_bus,
)
from .sensors import US100Sensor, CallbackSink
from .utils.timing import SystemClock

__all__ = [
    "__version__",
    "VERSION",
    "get_version",
    "get_package_version_info",
    "drivers",
    "HardwareConfig",
    "load_hardware_config",
    "BoardException",
    "I2CDevice",
    "PCA9685Driver",
    "TB6612MotorDriver",
    "MotorDriverHat",
    "DRV8830Driver",
    "MCP9808Driver",
    "ArduinoI2C",
    "PiCarBoard",
    "create_board",
    "open_i2c_bus",
    "US100Sensor",
    "CallbackSink",
    "SystemClock",
]

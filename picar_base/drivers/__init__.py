#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
PiCar — picar_base/drivers/__init__.py
--------------------------------------
Public exports for the `picar_base.drivers` package.

Examples
--------
from picar_base.drivers import PCA9685Driver, TB6612MotorDriver
from picar_base.drivers import DRV8830Driver, MCP9808Driver, ArduinoI2C
from picar_base.drivers import BoardException, create_board
"""

from __future__ import annotations

# =============================================================================
# Exceptions (imported first; every other module depends on them)
# =============================================================================
from .board_exceptions import (
    BoardErrorContext,
    BoardException,
    BoardConfigError,
    BoardValidationError,
    DriverInterruptedError,
    BoardConnectionError,
    I2CBusOpenError,
    I2CCommunicationError,
    GpioError,
    EchoTimeoutError,
    PCA9685Error,
    PCA9685InitError,
    PCA9685FrequencyError,
    PCA9685ChannelError,
    PCA9685DutyCycleError,
    MotorBoardError,
    FaultLatchedError,
    CoprocessorError,
    FrameError,
    wrap_i2c_error,
    wrap_gpio_error,
)

# =============================================================================
# I2C devices
# =============================================================================
from .i2c_device import I2CDevice, set_bit, get_bit, is_bit
from .pwm_views import PwmChannel, MotorView, ServoView, ServoCalibration
from .pca9685_driver import PCA9685Driver, PCA9685_DEFAULT_ADDRESS
from .tb6612_motor_driver import TB6612MotorDriver
from .motor_driver_hat import MotorDriverHat, HatMotorChannels
from .drv8830_driver import DRV8830Driver, DRV8830_ADDRESSES
from .mcp9808_driver import MCP9808Driver, MCP9808_DEFAULT_ADDRESS, decode_temperature, encode_temperature
from .arduino_i2c import ArduinoI2C, ARDUINO_DEFAULT_ADDRESS, encode_request, decode_reply

# =============================================================================
# Factory (last: pulls in config and sensors)
# =============================================================================
from .board_factory import PiCarBoard, create_board, open_i2c_bus


__all__ = [
    "BoardErrorContext",
    "BoardException",
    "BoardConfigError",
    "BoardValidationError",
    "DriverInterruptedError",
    "BoardConnectionError",
    "I2CBusOpenError",
    "I2CCommunicationError",
    "GpioError",
    "EchoTimeoutError",
    "PCA9685Error",
    "PCA9685InitError",
    "PCA9685FrequencyError",
    "PCA9685ChannelError",
    "PCA9685DutyCycleError",
    "MotorBoardError",
    "FaultLatchedError",
    "CoprocessorError",
    "FrameError",
    "wrap_i2c_error",
    "wrap_gpio_error",
    "I2CDevice",
    "set_bit",
    "get_bit",
    "is_bit",
    "PwmChannel",
    "MotorView",
    "ServoView",
    "ServoCalibration",
    "PCA9685Driver",
    "PCA9685_DEFAULT_ADDRESS",
    "TB6612MotorDriver",
    "MotorDriverHat",
    "HatMotorChannels",
    "DRV8830Driver",
    "DRV8830_ADDRESSES",
    "MCP9808Driver",
    "MCP9808_DEFAULT_ADDRESS",
    "decode_temperature",
    "encode_temperature",
    "ArduinoI2C",
    "ARDUINO_DEFAULT_ADDRESS",
    "encode_request",
    "decode_reply",
    "PiCarBoard",
    "create_board",
    "open_i2c_bus",
]

#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
PiCar — picar_base/drivers/board_exceptions.py
----------------------------------------------
Driver exception hierarchy for the PiCar peripheral layer.

Purpose
- One hierarchy shared by every module under `picar_base/drivers` and
  `picar_base/sensors`
- Standardize error handling for:
    * I2C register access (I2CDevice)
    * PCA9685 PWM controller and its channel views
    * TB6612 / DRV8830 / Motor Driver HAT motor drivers
    * MCP9808 thermometer
    * US-100 ultrasonic range finder
    * Arduino co-processor framing
- Attach structured context (address, register, channel ...) to failures

Design notes
- No hardware dependencies; safe to import from tests and tools
- Drivers raise these and never retry; retry policy belongs to the caller
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


# =============================================================================
# Base exception + structured context
# =============================================================================
@dataclass(frozen=True)
class BoardErrorContext:
    """
    Optional structured context attached to driver exceptions.

    Common fields (examples):
    - driver="PCA9685"
    - operation="set_channel"
    - bus=1
    - address=0x40
    - channel=7
    - register=0x06
    - value=3000
    """
    driver: Optional[str] = None
    operation: Optional[str] = None
    bus: Optional[int] = None
    address: Optional[int] = None
    channel: Optional[int] = None
    pin: Optional[str] = None
    register: Optional[int] = None
    value: Optional[int | float | str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert context to a compact dict, excluding None values.
        """
        out: Dict[str, Any] = {}
        for key in ("driver", "operation", "bus", "address", "channel", "pin", "register", "value"):
            v = getattr(self, key)
            if v is not None:
                out[key] = v
        if self.extra:
            out["extra"] = dict(self.extra)
        return out

    def format_compact(self) -> str:
        """
        Human-readable compact formatting for logs.
        """
        parts = []
        if self.driver is not None:
            parts.append(f"driver={self.driver}")
        if self.operation is not None:
            parts.append(f"op={self.operation}")
        if self.bus is not None:
            parts.append(f"bus={self.bus}")
        if self.address is not None:
            parts.append(f"addr=0x{int(self.address):02X}")
        if self.channel is not None:
            parts.append(f"ch={self.channel}")
        if self.pin is not None:
            parts.append(f"pin={self.pin}")
        if self.register is not None:
            parts.append(f"reg=0x{int(self.register):02X}")
        if self.value is not None:
            parts.append(f"value={self.value}")
        if self.extra:
            parts.append(f"extra={self.extra}")
        return ", ".join(parts)


class BoardException(RuntimeError):
    """
    Base exception for all PiCar board/driver failures.

    Supports optional structured context and exception chaining.
    """

    def __init__(
        self,
        message: str,
        *,
        context: Optional[BoardErrorContext] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        self.message = str(message)
        self.context = context
        self.cause = cause
        super().__init__(self.__str__())

        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        if self.context is None:
            return self.message
        ctx = self.context.format_compact()
        if not ctx:
            return self.message
        return f"{self.message} [{ctx}]"

    def to_dict(self) -> Dict[str, Any]:
        """
        Structured representation suitable for logs/JSON diagnostics.
        """
        out: Dict[str, Any] = {
            "type": self.__class__.__name__,
            "message": self.message,
        }
        if self.context is not None:
            out["context"] = self.context.to_dict()
        if self.cause is not None:
            out["cause_type"] = self.cause.__class__.__name__
            out["cause_message"] = str(self.cause)
        return out


# =============================================================================
# Configuration / validation errors
# =============================================================================
class BoardConfigError(BoardException):
    """
    Invalid board/driver configuration (bus, address, pins, frequency, etc.).
    """


class BoardValidationError(BoardException):
    """
    Caller-provided value outside a documented domain (channel, tick, offset ...).
    """


class DriverInterruptedError(BoardException):
    """
    A driver sleep or blocking wait was interrupted; the operation was aborted.
    """


# =============================================================================
# Connection / I2C / GPIO communication errors
# =============================================================================
class BoardConnectionError(BoardException):
    """
    Base class for bus and line failures.
    """


class I2CBusOpenError(BoardConnectionError):
    """
    Failed to open the I2C/SMBus device (e.g. /dev/i2c-1 unavailable).
    """


class I2CCommunicationError(BoardConnectionError):
    """
    Low-level I2C transaction failed (read/write error, short read, remote I/O error).
    """


class GpioError(BoardConnectionError):
    """
    Digital line operation failed.
    """


class EchoTimeoutError(BoardConnectionError):
    """
    Ultrasonic echo line stayed high longer than the configured bound.
    """


# =============================================================================
# PCA9685-specific errors
# =============================================================================
class PCA9685Error(BoardException):
    """
    Base class for PCA9685-specific failures.
    """


class PCA9685InitError(PCA9685Error):
    """
    Controller used before initialize(), or view created without a controller.
    """


class PCA9685FrequencyError(PCA9685Error, BoardValidationError):
    """
    Invalid PWM frequency.
    """


class PCA9685ChannelError(PCA9685Error, BoardValidationError):
    """
    Channel index outside 0..15.
    """


class PCA9685DutyCycleError(PCA9685Error, BoardValidationError):
    """
    On/off tick outside 0..4095, or servo on-tick outside its steering window.
    """


# =============================================================================
# Motor driver errors
# =============================================================================
class MotorBoardError(BoardException):
    """
    Base class for motor-driver failures (TB6612, DRV8830, Motor Driver HAT).
    """


class FaultLatchedError(MotorBoardError):
    """
    DRV8830 reported latched fault bits. The register was cleared before raising.
    """

    def __init__(self, message: str, *, fault: Any = None, bits: int = 0, **kwargs: Any) -> None:
        self.fault = fault
        self.bits = int(bits)
        super().__init__(message, **kwargs)


# =============================================================================
# Co-processor errors
# =============================================================================
class CoprocessorError(BoardException):
    """
    Base class for Arduino co-processor failures.
    """


class FrameError(CoprocessorError):
    """
    Reply frame shorter than 9 bytes, or (strict mode) unknown status byte.
    """


# =============================================================================
# Generic helpers for wrapping lower-level exceptions
# =============================================================================
def wrap_i2c_error(
    exc: BaseException,
    *,
    message: str,
    driver: str = "I2C",
    operation: str | None = None,
    bus: int | None = None,
    address: int | None = None,
    channel: int | None = None,
    register: int | None = None,
    value: int | float | str | None = None,
    extra: Optional[Dict[str, Any]] = None,
) -> I2CCommunicationError:
    """
    Convenience helper to wrap a low-level exception into an I2CCommunicationError.
    """
    ctx = BoardErrorContext(
        driver=driver,
        operation=operation,
        bus=bus,
        address=address,
        channel=channel,
        register=register,
        value=value,
        extra=dict(extra or {}),
    )
    return I2CCommunicationError(message, context=ctx, cause=exc)


def wrap_gpio_error(
    exc: BaseException,
    *,
    message: str,
    driver: str = "GPIO",
    operation: str | None = None,
    pin: str | None = None,
    value: int | float | str | None = None,
) -> GpioError:
    """
    Convenience helper to wrap a gpiozero failure into a GpioError.
    """
    ctx = BoardErrorContext(driver=driver, operation=operation, pin=pin, value=value)
    return GpioError(message, context=ctx, cause=exc)


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
]

#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
PiCar — picar_base/drivers/tb6612_motor_driver.py
-------------------------------------------------
TB6612 dual H-bridge: two PCA9685 motor channels plus two GPIO direction lines.

Wiring
- MA / MB: gpiozero DigitalOutputDevice, owned by the application
- motor A / motor B: MotorView on the PCA9685, owned by the application

Direction table (see models.motor_direction.HBridgeState)
- STOP      MA=LOW  MB=LOW
- FORWARD   MA=LOW  MB=LOW
- BACKWARD  MA=HIGH MB=HIGH
"""

from __future__ import annotations

from typing import Any, Optional, Tuple

from gpiozero import DigitalOutputDevice
from gpiozero.exc import GPIOZeroError

from ..models.motor_direction import HBridgeState
from ..utils.clamp import PWM_MAX_TICK, speed_to_duty
from ..utils.logging import LoggerAdapter, format_kv, get_logger_adapter
from ..utils.timing import Clock, default_clock
from .board_exceptions import BoardConfigError, wrap_gpio_error
from .pwm_views import MotorView


class TB6612MotorDriver:
    """
    Signed speed -> direction pins + the same duty on both motor channels.

    Typical usage:
        ma = DigitalOutputDevice(5)
        mb = DigitalOutputDevice(6)
        drv = TB6612MotorDriver(ma, mb, pwm.motor(0), pwm.motor(1))
        drv.set_pwm(0.5)
        drv.set_pwm(0.0)
    """

    MAXIMUM_POWER = 1.0
    MAXIMUM_PWM = PWM_MAX_TICK
    SETTLE_DELAY_MS = 50

    def __init__(
        self,
        pin_ma: DigitalOutputDevice,
        pin_mb: DigitalOutputDevice,
        motor_a: MotorView,
        motor_b: MotorView,
        *,
        clock: Optional[Clock] = None,
        logger: Any = None,
    ) -> None:
        if pin_ma is None or pin_mb is None:
            raise BoardConfigError("TB6612: both direction outputs (MA, MB) are required")
        if motor_a is None or motor_b is None:
            raise BoardConfigError("TB6612: both motor views are required")

        self._pin_ma = pin_ma
        self._pin_mb = pin_mb
        self._motor_a = motor_a
        self._motor_b = motor_b
        self._clock: Clock = clock if clock is not None else default_clock()
        self._state = HBridgeState.STOP
        self._release_level = False
        self.log: LoggerAdapter = get_logger_adapter(logger, name="picar_base.tb6612")

        self.log.info(
            "TB6612 created "
            + format_kv(motor_a=motor_a.index, motor_b=motor_b.index)
        )

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------
    @property
    def state(self) -> HBridgeState:
        return self._state

    @property
    def release_level(self) -> bool:
        return self._release_level

    def gpio_pins(self) -> Tuple[DigitalOutputDevice, DigitalOutputDevice]:
        return (self._pin_ma, self._pin_mb)

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------
    def _drive(self, device: DigitalOutputDevice, level: bool, name: str) -> None:
        try:
            if level:
                device.on()
            else:
                device.off()
        except GPIOZeroError as e:
            err = wrap_gpio_error(
                e,
                message=f"TB6612: failed to drive {name} {'HIGH' if level else 'LOW'}",
                driver="TB6612",
                operation="drive_pin",
                pin=name,
                value=int(level),
            )
            self.log.error(str(err))
            raise err from e

    def _drive_pins(self, ma: bool, mb: bool) -> None:
        self._drive(self._pin_ma, ma, "MA")
        self._drive(self._pin_mb, mb, "MB")

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------
    def set_pwm(self, speed: float) -> int:
        """
        Drive both motors at `speed` in [-1, 1].

        Sequence: pick state by sign, settle 50 ms, set MA/MB, then write
        duty = floor(min(|speed|, 1) * 4095) to motor A and motor B.

        Returns the duty written. `state` only changes once pins and duty
        are written; an interrupted settle pause leaves it as it was.

        Raises:
            BoardValidationError: speed is NaN
            DriverInterruptedError, GpioError, I2CCommunicationError
        """
        duty = speed_to_duty(float(speed) / self.MAXIMUM_POWER, self.MAXIMUM_PWM)
        state = HBridgeState.for_speed(speed)

        self._clock.sleep_ms(self.SETTLE_DELAY_MS)
        self._drive_pins(state.pin_ma, state.pin_mb)
        self._motor_a.set_duty(duty)
        self._motor_b.set_duty(duty)
        self._state = state

        self.log.debug(
            "set_pwm "
            + format_kv(speed=speed, state=state.label, duty=duty, ma=state.pin_ma, mb=state.pin_mb)
        )
        return duty

    def stop(self) -> None:
        self.set_pwm(0.0)

    def reset(self) -> None:
        """
        Disable the bridge: remember LOW as the release level, drive MA/MB HIGH.
        """
        self.log.debug("reset()")
        self._release_level = False
        self._drive_pins(True, True)

    def release(self) -> None:
        """Drive MA/MB to the release level recorded by reset()."""
        self.log.debug("release() " + format_kv(level=int(self._release_level)))
        self._drive_pins(self._release_level, self._release_level)

    def __repr__(self) -> str:
        return f"TB6612MotorDriver(state={self._state.label})"


__all__ = [
    "TB6612MotorDriver",
]

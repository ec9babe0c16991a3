#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
PiCar — picar_base/drivers/pwm_views.py
---------------------------------------
Thin views onto one PCA9685 channel.

- PwmChannel: raw (on, off) ticks
- MotorView:  unsigned duty from a normalized speed, ticks clamped to 0..4095
- ServoView:  calibrated centre and travel, off-tick clamped to the steering
              window

A view holds the controller reference and the integer channel index, nothing
else; creating one is cheap and it can be discarded at any time.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, TYPE_CHECKING

from ..utils.clamp import PWM_MAX_TICK, clamp_int, clamp_unsigned_duty, speed_to_duty
from .board_exceptions import BoardErrorContext, PCA9685DutyCycleError, PCA9685InitError

if TYPE_CHECKING:
    from .pca9685_driver import PCA9685Driver


# =============================================================================
# Servo calibration
# =============================================================================
@dataclass(frozen=True)
class ServoCalibration:
    """
    Servo travel in PCA9685 ticks.

    Fields
    - lower_limit / upper_limit: mechanical end points
    - steering_delta: usable travel around the centre
    - steering_adjustment: centre trim, added to (lo + hi) // 2
    """
    lower_limit: int = 400
    upper_limit: int = 2000
    steering_delta: int = 500
    steering_adjustment: int = -20

    def __post_init__(self) -> None:
        if self.lower_limit > self.upper_limit:
            raise ValueError(
                f"lower_limit ({self.lower_limit}) must be <= upper_limit ({self.upper_limit})"
            )
        if self.steering_delta < 0:
            raise ValueError(f"steering_delta must be >= 0 (got {self.steering_delta})")

    @property
    def min_steering(self) -> int:
        return (self.lower_limit + self.upper_limit - self.steering_delta) // 2

    @property
    def max_steering(self) -> int:
        return (self.lower_limit + self.upper_limit + self.steering_delta) // 2

    @property
    def center(self) -> int:
        return (self.lower_limit + self.upper_limit) // 2 + self.steering_adjustment

    def to_dict(self) -> Dict[str, int]:
        return {
            "lower_limit": self.lower_limit,
            "upper_limit": self.upper_limit,
            "steering_delta": self.steering_delta,
            "steering_adjustment": self.steering_adjustment,
            "min_steering": self.min_steering,
            "max_steering": self.max_steering,
            "center": self.center,
        }


# =============================================================================
# Plain channel
# =============================================================================
class PwmChannel:
    """One PCA9685 channel addressed by index."""

    def __init__(self, controller: "PCA9685Driver", index: int) -> None:
        if controller is None:
            raise PCA9685InitError(
                "PWM view created without a controller",
                context=BoardErrorContext(driver="PCA9685", operation="view", channel=index),
            )
        self._controller = controller
        self._index = int(index)

    @property
    def controller(self) -> "PCA9685Driver":
        return self._controller

    @property
    def index(self) -> int:
        return self._index

    def set_pwm(self, on: int, off: int) -> None:
        self._controller.set_channel(self._index, on, off)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(index={self._index})"


# =============================================================================
# Motor view
# =============================================================================
class MotorView(PwmChannel):
    """
    Unsigned motor channel: on = 0, off = duty.

    Direction is not handled here; a signed driver (TB6612, Motor Driver HAT)
    sets its direction lines and passes the magnitude.
    """

    @property
    def max_value(self) -> int:
        return PWM_MAX_TICK

    def set_speed(self, speed: float) -> int:
        """
        Map speed in [-1, 1] to off = floor(|speed| * 4095); returns the duty.
        """
        duty = speed_to_duty(speed, PWM_MAX_TICK)
        self.set_pwm(0, duty)
        return duty

    def set_duty(self, duty: int) -> None:
        self.set_pwm(0, duty)

    def set_pwm(self, on: int, off: int) -> None:
        """Clamp both ticks to 0..4095, then write."""
        super().set_pwm(clamp_unsigned_duty(on), clamp_unsigned_duty(off))


# =============================================================================
# Servo view
# =============================================================================
class ServoView(PwmChannel):
    """
    Steering servo on one channel.

    Typical usage:
        servo = pwm.servo(15)
        servo.set_position(0)      # centre (1180 with default calibration)
        servo.set_position(-200)   # off = 980
    """

    def __init__(
        self,
        controller: "PCA9685Driver",
        index: int,
        calibration: Optional[ServoCalibration] = None,
    ) -> None:
        super().__init__(controller, index)
        self._calibration = calibration if calibration is not None else ServoCalibration()

    @property
    def calibration(self) -> ServoCalibration:
        return self._calibration

    @property
    def min_steering(self) -> int:
        return self._calibration.min_steering

    @property
    def max_steering(self) -> int:
        return self._calibration.max_steering

    def set_position(self, position: int) -> int:
        """
        Move to `position` ticks relative to the trimmed centre.

        Returns the off-tick actually written.
        """
        off = self._calibration.center + int(position)
        return self.set_pwm(0, off)

    def set_pwm(self, on: int, off: int) -> int:  # type: ignore[override]
        """
        Off-tick is clamped into [min_steering, max_steering].

        Raises:
            PCA9685DutyCycleError: on-tick outside [0, min_steering - 1]
        """
        on_i = int(on)
        if not (0 <= on_i <= self.min_steering - 1):
            raise PCA9685DutyCycleError(
                f"Servo on-tick {on_i} outside 0..{self.min_steering - 1}",
                context=BoardErrorContext(
                    driver="PCA9685",
                    operation="servo_set_pwm",
                    channel=self.index,
                    value=on_i,
                ),
            )
        off_i = clamp_int(int(off), self.min_steering, self.max_steering)
        super().set_pwm(on_i, off_i)
        return off_i

    def __repr__(self) -> str:
        return f"ServoView(index={self.index}, calibration={self._calibration})"


__all__ = [
    "ServoCalibration",
    "PwmChannel",
    "MotorView",
    "ServoView",
]

#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
PiCar — picar_base/drivers/motor_driver_hat.py
----------------------------------------------
PCA9685-based Motor Driver HAT (two motors, each PWM + IN1 + IN2 channels).

Channel map
- motor A: PWM ch0, IN1 ch1, IN2 ch2
- motor B: PWM ch5, IN1 ch3, IN2 ch4

IN channels are used as logic levels: HIGH = (0, 4095), LOW = (0, 0).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from ..utils.clamp import PWM_MAX_TICK, speed_to_duty
from ..utils.logging import format_kv, get_logger_adapter
from .board_exceptions import BoardConfigError
from .pca9685_driver import PCA9685Driver


@dataclass(frozen=True)
class HatMotorChannels:
    """PCA9685 channels feeding one motor of the HAT."""
    pwm: int
    in1: int
    in2: int

    def to_dict(self) -> Dict[str, int]:
        return {"pwm": self.pwm, "in1": self.in1, "in2": self.in2}


MOTOR_A_CHANNELS = HatMotorChannels(pwm=0, in1=1, in2=2)
MOTOR_B_CHANNELS = HatMotorChannels(pwm=5, in1=3, in2=4)


class MotorDriverHat:
    """
    Two-motor HAT on top of a PCA9685Driver.

    Typical usage:
        hat = MotorDriverHat(PCA9685Driver(bus, 0x40))
        hat.initialize()
        hat.set_speed_a(0.5)
        hat.set_speed_b(-0.5)
        hat.stop()
    """

    DEFAULT_FREQUENCY_HZ = 100.0

    def __init__(
        self,
        controller: PCA9685Driver,
        frequency_hz: float = DEFAULT_FREQUENCY_HZ,
        *,
        logger: Any = None,
    ) -> None:
        if controller is None:
            raise BoardConfigError("MotorDriverHat: PCA9685 controller is required")
        self._controller = controller
        self._frequency_hz = float(frequency_hz)
        self.log = get_logger_adapter(logger, name="picar_base.motor_hat")

    @property
    def controller(self) -> PCA9685Driver:
        return self._controller

    @property
    def frequency_hz(self) -> float:
        return self._frequency_hz

    def initialize(self) -> None:
        """Initialize the controller (all channels off) and program the frequency."""
        self._controller.initialize()
        self._controller.set_frequency(self._frequency_hz)
        self.log.info(
            "Motor Driver HAT initialized "
            + format_kv(addr=f"0x{self._controller.address:02X}", freq_hz=self._frequency_hz)
        )

    def _set_level(self, channel: int, high: bool) -> None:
        self._controller.set_channel(channel, 0, PWM_MAX_TICK if high else 0)

    def _set_speed(self, channels: HatMotorChannels, speed: float) -> int:
        off = speed_to_duty(speed, PWM_MAX_TICK)
        if off == 0:
            self._controller.set_channel(channels.pwm, 0, 0)
            self._set_level(channels.in1, False)
            self._set_level(channels.in2, False)
        else:
            self._controller.set_channel(channels.pwm, 0, off)
            self._set_level(channels.in1, speed < 0.0)
            self._set_level(channels.in2, speed > 0.0)
        self.log.debug("set_speed " + format_kv(pwm_ch=channels.pwm, speed=speed, off=off))
        return off

    def set_speed_a(self, speed: float) -> int:
        return self._set_speed(MOTOR_A_CHANNELS, speed)

    def set_speed_b(self, speed: float) -> int:
        return self._set_speed(MOTOR_B_CHANNELS, speed)

    def stop(self) -> None:
        self.set_speed_a(0.0)
        self.set_speed_b(0.0)


__all__ = [
    "HatMotorChannels",
    "MOTOR_A_CHANNELS",
    "MOTOR_B_CHANNELS",
    "MotorDriverHat",
]

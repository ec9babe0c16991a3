#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
PiCar — picar_base/utils/clamp.py
---------------------------------
Small clamping helpers shared by the PWM views and motor drivers.

Bounded values in this package
------------------------------
- PCA9685 on/off ticks (0 .. 4095)
- normalized motor commands (-1.0 .. 1.0)
- DRV8830 voltage setting (0 .. 63)
- MCP9808 register temperatures (-40 .. 125 degC)
"""

from __future__ import annotations

import math
from typing import TypeVar

from ..drivers.board_exceptions import BoardErrorContext, BoardValidationError

Number = TypeVar("Number", int, float)

PWM_MAX_TICK = 4095


def clamp(value: Number, lo: Number, hi: Number) -> Number:
    """
    Clamp `value` into the closed interval [lo, hi].

    If `lo > hi`, the bounds are swapped.
    """
    if lo > hi:
        lo, hi = hi, lo
    if value < lo:
        return lo
    if value > hi:
        return hi
    return value


def clamp_int(value: int, lo: int, hi: int) -> int:
    """
    Clamp an integer into [lo, hi] and return int.
    """
    return int(clamp(int(value), int(lo), int(hi)))


def clamp_unsigned_duty(value: int, max_duty: int = PWM_MAX_TICK) -> int:
    """
    Clamp an unsigned tick value into [0, max_duty] (max_duty itself capped at 4095).
    """
    lim = clamp_int(int(max_duty), 0, PWM_MAX_TICK)
    return clamp_int(int(value), 0, lim)


def speed_to_duty(speed: float, max_duty: int = PWM_MAX_TICK) -> int:
    """
    Map a normalized speed to an unsigned duty: floor(min(|speed|, 1) * max_duty).

    >>> speed_to_duty(0.5)
    2047
    >>> speed_to_duty(-2.0)
    4095

    Raises:
        BoardValidationError: speed is NaN
    """
    s = float(speed)
    if math.isnan(s):
        raise BoardValidationError(
            "speed must be a number, got NaN",
            context=BoardErrorContext(operation="speed_to_duty", value=str(speed)),
        )
    magnitude = clamp(abs(s), 0.0, 1.0)
    return clamp_unsigned_duty(int(math.floor(magnitude * max_duty)), max_duty)


__all__ = [
    "PWM_MAX_TICK",
    "clamp",
    "clamp_int",
    "clamp_unsigned_duty",
    "speed_to_duty",
]

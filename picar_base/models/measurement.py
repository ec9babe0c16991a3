#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
PiCar — picar_base/models/measurement.py
----------------------------------------
US-100 range finder state and result types.

Conversions (exact, decimal)
- elapsed_ms  = round_half_up(ns * 1e-6, 1)
- distance_cm = round_half_up(ns * 17 * 1e-6, 1)
  17 = 34 / 2: speed of sound 340 m/s in cm/us scaled, halved for the round trip
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Dict

from ..utils.timing import elapsed_ns


SPEED_OF_SOUND_FACTOR = 17
_NS_PER_MS = Decimal(1).scaleb(6)
_ONE_DECIMAL = Decimal("0.1")


class RangeState(Enum):
    NEUTRAL = "Neutral"
    STARTED = "Started"
    RISING = "Rising"
    FALLING = "Falling"


class PinEdge(Enum):
    RISING = "rising"
    FALLING = "falling"


def elapsed_ms_from_ns(pulse_ns: int) -> Decimal:
    """
    >>> elapsed_ms_from_ns(58_000)
    Decimal('0.1')
    """
    ms = Decimal(int(pulse_ns)) / _NS_PER_MS
    return ms.quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP)


def distance_cm_from_ns(pulse_ns: int) -> Decimal:
    """
    >>> distance_cm_from_ns(58_000)
    Decimal('1.0')
    """
    cm = Decimal(int(pulse_ns) * SPEED_OF_SOUND_FACTOR) / _NS_PER_MS
    return cm.quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class MeasurementResult:
    """
    One completed measurement.

    Fields
    - timestamp_ns: falling-edge time from the sensor clock (monotonic)
    - elapsed_ms:   echo pulse width, one decimal
    - distance_cm:  distance, one decimal
    """
    timestamp_ns: int
    elapsed_ms: Decimal
    distance_cm: Decimal

    @classmethod
    def from_edges(cls, rising_ns: int, falling_ns: int) -> "MeasurementResult":
        delta = elapsed_ns(rising_ns, falling_ns)
        return cls(
            timestamp_ns=int(falling_ns),
            elapsed_ms=elapsed_ms_from_ns(delta),
            distance_cm=distance_cm_from_ns(delta),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp_ns": self.timestamp_ns,
            "elapsed_ms": str(self.elapsed_ms),
            "distance_cm": str(self.distance_cm),
        }


__all__ = [
    "SPEED_OF_SOUND_FACTOR",
    "RangeState",
    "PinEdge",
    "elapsed_ms_from_ns",
    "distance_cm_from_ns",
    "MeasurementResult",
]

#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
PiCar — picar_base/models/temperature.py
----------------------------------------
MCP9808 configuration and status value types.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict


class Resolution(Enum):
    """RESOL register code (bits 1..0) and its step in degC."""
    RES_0_5 = (0b00, 0.5)
    RES_0_25 = (0b01, 0.25)
    RES_0_125 = (0b10, 0.125)
    RES_0_0625 = (0b11, 0.0625)

    def __init__(self, code: int, degrees: float) -> None:
        self.code = code
        self.degrees = degrees

    @classmethod
    def from_code(cls, code: int) -> "Resolution":
        c = int(code) & 0b11
        for member in cls:
            if member.code == c:
                return member
        raise ValueError(f"unknown resolution code {code!r}")


class Hysteresis(Enum):
    """CONFIG byte0 bits 2..1 (THYST) and the hysteresis in degC."""
    HYST_0_0 = (0b00, 0.0)
    HYST_1_5 = (0b01, 1.5)
    HYST_3_0 = (0b10, 3.0)
    HYST_6_0 = (0b11, 6.0)

    def __init__(self, code: int, degrees: float) -> None:
        self.code = code
        self.degrees = degrees

    @classmethod
    def from_code(cls, code: int) -> "Hysteresis":
        c = int(code) & 0b11
        for member in cls:
            if member.code == c:
                return member
        raise ValueError(f"unknown hysteresis code {code!r}")


class AlertMode(Enum):
    DISABLED = "disabled"
    COMPARATOR = "comparator"
    INTERRUPT = "interrupt"


@dataclass(frozen=True)
class AmbientStatus:
    """
    Alarm flags from the top three bits of TEMPER byte0.

    Fields
    - ge_critical: ambient >= TCRIT (0x80)
    - gt_upper:    ambient >  TUPPER (0x40)
    - lt_lower:    ambient <  TLOWER (0x20)
    """
    ge_critical: bool = False
    gt_upper: bool = False
    lt_lower: bool = False

    @classmethod
    def from_byte(cls, byte0: int) -> "AmbientStatus":
        b = int(byte0)
        return cls(
            ge_critical=bool(b & 0x80),
            gt_upper=bool(b & 0x40),
            lt_lower=bool(b & 0x20),
        )

    @property
    def any_alarm(self) -> bool:
        return self.ge_critical or self.gt_upper or self.lt_lower

    def to_dict(self) -> Dict[str, bool]:
        return {
            "ge_critical": self.ge_critical,
            "gt_upper": self.gt_upper,
            "lt_lower": self.lt_lower,
        }


@dataclass(frozen=True)
class MCP9808LatchedConfig:
    """
    Last configuration the driver programmed into the chip.

    `resolution` defaults to the chip's power-up value (0.0625 degC).
    """
    hysteresis: Hysteresis = Hysteresis.HYST_0_0
    resolution: Resolution = Resolution.RES_0_0625
    alert_mode: AlertMode = AlertMode.DISABLED
    alert_active_high: bool = False
    alert_only_crit: bool = False
    shutdown: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hysteresis_c": self.hysteresis.degrees,
            "resolution_c": self.resolution.degrees,
            "alert_mode": self.alert_mode.value,
            "alert_active_high": self.alert_active_high,
            "alert_only_crit": self.alert_only_crit,
            "shutdown": self.shutdown,
        }


__all__ = [
    "Resolution",
    "Hysteresis",
    "AlertMode",
    "AmbientStatus",
    "MCP9808LatchedConfig",
]

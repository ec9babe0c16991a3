#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
PiCar — picar_base/models/motor_fault.py
----------------------------------------
Decoded DRV8830 FAULT register values.

FAULT register (0x01) bits:
- 0x01 FAULT   any fault condition exists
- 0x02 OCP     overcurrent event
- 0x04 UVLO    undervoltage lockout
- 0x08 OTS     overtemperature condition
- 0x10 ILIMIT  extended current limit event
- 0x80 CLEAR   write-only; clears latched faults
"""

from __future__ import annotations

from enum import Enum
from typing import Tuple

from ..drivers.board_exceptions import BoardErrorContext, I2CCommunicationError


class DRV8830Fault(Enum):
    """Single decoded fault reason, with its register bit and description."""
    FAULT_FREE = (0x00, "Success, no fault!")
    FAULT = (0x01, "Any fault condition exists!")
    OCP = (0x02, "The fault was caused by an overcurrent (OCP) event!")
    UVLO = (0x04, "The fault was caused by an undervoltage lockout!")
    OTS = (0x08, "The fault was caused by an overtemperature (OTS) condition!")
    ILIMIT = (0x10, "The fault was caused by an extended current limit event!")

    def __init__(self, bit: int, reason: str) -> None:
        self.bit = bit
        self.reason = reason

    @property
    def is_success(self) -> bool:
        return self is DRV8830Fault.FAULT_FREE

    @classmethod
    def decode(cls, bits: int) -> "DRV8830Fault":
        """
        Decode raw FAULT bits to the highest-priority reason.

        Priority: ILIMIT, OTS, UVLO, OCP, FAULT.

        Raises:
            I2CCommunicationError: non-zero byte with none of the known bits set
        """
        raw = int(bits) & 0xFF
        if raw == 0:
            return cls.FAULT_FREE
        for reason in _DECODE_PRIORITY:
            if raw & reason.bit:
                return reason
        raise I2CCommunicationError(
            f"decode(): 0x{raw:02X} - unknown fault code",
            context=BoardErrorContext(driver="DRV8830", operation="decode_fault", register=0x01, value=raw),
        )


_DECODE_PRIORITY: Tuple[DRV8830Fault, ...] = (
    DRV8830Fault.ILIMIT,
    DRV8830Fault.OTS,
    DRV8830Fault.UVLO,
    DRV8830Fault.OCP,
    DRV8830Fault.FAULT,
)


def byte_to_string(value: int) -> str:
    """
    Render one byte as 8 binary digits, MSB first (for fault/control logs).

    >>> byte_to_string(0x66)
    '01100110'
    """
    return format(int(value) & 0xFF, "08b")


__all__ = [
    "DRV8830Fault",
    "byte_to_string",
]

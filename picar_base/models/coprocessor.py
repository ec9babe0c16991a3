#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
PiCar — picar_base/models/coprocessor.py
----------------------------------------
Arduino co-processor request / reply value objects.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


TOKEN_MASK = 0xFFFFFFFF


class CoprocessorStatus(Enum):
    """Single status byte shared by requests and replies."""
    INITIAL = ord("I")
    SUCCESS = ord("S")
    ERROR = ord("E")
    NOP = ord("N")

    @property
    def char(self) -> str:
        return chr(self.value)

    @classmethod
    def from_byte(cls, value: int) -> Optional["CoprocessorStatus"]:
        """Reverse lookup; unknown bytes give None."""
        b = int(value) & 0xFF
        for member in cls:
            if member.value == b:
                return member
        return None


@dataclass(frozen=True)
class CoprocessorRequest:
    token: int
    status: CoprocessorStatus

    def __post_init__(self) -> None:
        object.__setattr__(self, "token", int(self.token) & TOKEN_MASK)


@dataclass(frozen=True)
class CoprocessorReply:
    """
    Decoded reply frame.

    Fields
    - token:     unsigned 32-bit correlation token
    - status:    CoprocessorStatus, or None for an unknown status byte
    - value:     payload as signed 32-bit
    - number_ma: high 16 bits of the payload, unsigned
    - number_mb: low 16 bits of the payload, unsigned
    """
    token: int
    status: Optional[CoprocessorStatus]
    value: int
    number_ma: int
    number_mb: int

    @classmethod
    def create(cls, token: int, status: Optional[CoprocessorStatus], value: int) -> "CoprocessorReply":
        v = int(value)
        return cls(
            token=int(token) & TOKEN_MASK,
            status=status,
            value=v,
            number_ma=(v >> 16) & 0xFFFF,
            number_mb=v & 0xFFFF,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "token": self.token,
            "status": self.status.name if self.status is not None else None,
            "value": self.value,
            "number_ma": self.number_ma,
            "number_mb": self.number_mb,
        }

    def __str__(self) -> str:
        status = self.status.char if self.status is not None else "null"
        return f"[{self.token} {status} {self.value}]"


__all__ = [
    "TOKEN_MASK",
    "CoprocessorStatus",
    "CoprocessorRequest",
    "CoprocessorReply",
]

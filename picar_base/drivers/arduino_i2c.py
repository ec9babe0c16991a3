#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
PiCar — picar_base/drivers/arduino_i2c.py
-----------------------------------------
Request / reply framing for the Arduino co-processor on I2C.

Frames are little-endian on both sides, sent as plain I2C transactions
(no register byte).

Request (5 bytes)
    token u32 | status u8

Reply (16 bytes read, at least 9 meaningful)
    token u32 | status u8 | value i32 | reserved...

The payload is also reported as two unsigned halves:
number_ma = value >> 16, number_mb = value & 0xFFFF.
"""

from __future__ import annotations

import struct
from typing import Any, Optional

from ..models.coprocessor import (
    TOKEN_MASK,
    CoprocessorReply,
    CoprocessorRequest,
    CoprocessorStatus,
)
from ..utils.logging import format_kv
from .board_exceptions import BoardErrorContext, FrameError
from .i2c_device import I2CDevice


ARDUINO_DEFAULT_ADDRESS = 0x08

_REQUEST = struct.Struct("<IB")
_REPLY = struct.Struct("<IBi")

REQUEST_LENGTH = _REQUEST.size
REPLY_READ_LENGTH = 16
REPLY_MIN_LENGTH = _REPLY.size


# =============================================================================
# Pure codec
# =============================================================================
def encode_request(token: int, status: CoprocessorStatus) -> bytes:
    """
    >>> encode_request(1, CoprocessorStatus.INITIAL).hex()
    '0100000049'
    """
    return _REQUEST.pack(int(token) & TOKEN_MASK, CoprocessorStatus(status).value)


def decode_reply(frame: bytes, strict: bool = False) -> CoprocessorReply:
    """
    Decode a reply frame.

    Raises:
        FrameError: fewer than 9 bytes, or `strict` and an unknown status byte
    """
    data = bytes(frame)
    if len(data) < REPLY_MIN_LENGTH:
        raise FrameError(
            f"Arduino reply too short: {len(data)} < {REPLY_MIN_LENGTH} bytes",
            context=BoardErrorContext(driver="Arduino", operation="decode_reply", value=len(data)),
        )
    token, status_byte, value = _REPLY.unpack_from(data, 0)
    status = CoprocessorStatus.from_byte(status_byte)
    if status is None and strict:
        raise FrameError(
            f"Arduino reply has unknown status byte 0x{status_byte:02X}",
            context=BoardErrorContext(driver="Arduino", operation="decode_reply", value=status_byte),
        )
    return CoprocessorReply.create(token, status, value)


# =============================================================================
# Device
# =============================================================================
class ArduinoI2C:
    """
    Typical usage:
        arduino = ArduinoI2C(bus, 0x08)
        arduino.write(42, CoprocessorStatus.INITIAL)
        reply = arduino.read()
        if reply.status is CoprocessorStatus.SUCCESS:
            left, right = reply.number_ma, reply.number_mb
    """

    encode_request = staticmethod(encode_request)
    decode_reply = staticmethod(decode_reply)

    def __init__(
        self,
        bus: Any,
        address: int = ARDUINO_DEFAULT_ADDRESS,
        *,
        bus_number: Optional[int] = None,
        logger: Any = None,
    ) -> None:
        self._device = I2CDevice(bus, address, name="Arduino", bus_number=bus_number, logger=logger)
        self.log = self._device.log

    @property
    def address(self) -> int:
        return self._device.address

    @property
    def device(self) -> I2CDevice:
        return self._device

    def write(self, token: int, status: CoprocessorStatus) -> CoprocessorRequest:
        request = CoprocessorRequest(token, CoprocessorStatus(status))
        frame = encode_request(request.token, request.status)
        self.log.debug("request " + format_kv(token=request.token, status=request.status.char, frame=frame.hex()))
        self._device.write_raw(frame)
        return request

    def read(self, strict: bool = False) -> CoprocessorReply:
        frame = self._device.read_raw(REPLY_READ_LENGTH)
        try:
            reply = decode_reply(frame, strict=strict)
        except FrameError as e:
            self.log.error(str(e))
            raise
        self.log.debug(f"reply {reply}")
        return reply

    def exchange(self, token: int, status: CoprocessorStatus, strict: bool = False) -> CoprocessorReply:
        """write() then read(); the token is not checked against the reply."""
        self.write(token, status)
        return self.read(strict=strict)

    def __repr__(self) -> str:
        return f"ArduinoI2C(address=0x{self.address:02X})"


__all__ = [
    "ARDUINO_DEFAULT_ADDRESS",
    "REQUEST_LENGTH",
    "REPLY_READ_LENGTH",
    "REPLY_MIN_LENGTH",
    "encode_request",
    "decode_reply",
    "ArduinoI2C",
]

# -*- coding: utf-8 -*-
"""Tests for the Arduino co-processor framing."""

import struct

import pytest

from picar_base.drivers.arduino_i2c import ArduinoI2C, decode_reply, encode_request
from picar_base.drivers.board_exceptions import CoprocessorError, FrameError
from picar_base.models.coprocessor import CoprocessorRequest, CoprocessorStatus


ADDR = 0x08


def reply_frame(token, status, value, size=16):
    frame = struct.pack("<IBi", token, status, value)
    return frame + bytes(size - len(frame))


class TestCodec:
    def test_encode_request(self):
        assert encode_request(1, CoprocessorStatus.INITIAL) == b"\x01\x00\x00\x00I"

    def test_token_wraps_to_32_bits(self):
        assert encode_request(2**32 + 5, CoprocessorStatus.NOP)[:4] == b"\x05\x00\x00\x00"
        assert CoprocessorRequest(-1, CoprocessorStatus.NOP).token == 0xFFFFFFFF

    def test_decode_success_reply(self):
        reply = decode_reply(reply_frame(1, ord("S"), 4660))
        assert reply.token == 1
        assert reply.status is CoprocessorStatus.SUCCESS
        assert reply.value == 4660
        assert (reply.number_ma, reply.number_mb) == (0, 4660)
        assert str(reply) == "[1 S 4660]"

    def test_decode_splits_payload_halves(self):
        reply = decode_reply(reply_frame(7, ord("S"), 0x00640032))
        assert (reply.number_ma, reply.number_mb) == (100, 50)
        negative = decode_reply(reply_frame(7, ord("E"), -1))
        assert negative.value == -1
        assert (negative.number_ma, negative.number_mb) == (0xFFFF, 0xFFFF)

    def test_short_frame(self):
        with pytest.raises(FrameError) as info:
            decode_reply(b"\x01\x00\x00\x00S\x00\x00\x00")
        assert isinstance(info.value, CoprocessorError)

    def test_minimum_frame_is_enough(self):
        assert decode_reply(reply_frame(3, ord("N"), 0, size=9)).status is CoprocessorStatus.NOP

    def test_unknown_status(self):
        frame = reply_frame(9, ord("?"), 12)
        reply = decode_reply(frame)
        assert reply.status is None
        assert str(reply) == "[9 null 12]"
        with pytest.raises(FrameError):
            decode_reply(frame, strict=True)


class TestDevice:
    def test_write_sends_request_frame(self, bus):
        arduino = ArduinoI2C(bus, ADDR)
        request = arduino.write(42, CoprocessorStatus.INITIAL)
        assert request.token == 42
        assert bus.raw_writes == [(ADDR, b"\x2a\x00\x00\x00I")]

    def test_exchange(self, bus):
        arduino = ArduinoI2C(bus, ADDR)
        bus.raw_replies[ADDR] = reply_frame(42, ord("S"), 0x00010002)
        reply = arduino.exchange(42, CoprocessorStatus.INITIAL)
        assert reply.token == 42
        assert reply.to_dict() == {
            "token": 42,
            "status": "SUCCESS",
            "value": 0x00010002,
            "number_ma": 1,
            "number_mb": 2,
        }

    def test_strict_read_rejects_garbage(self, bus):
        arduino = ArduinoI2C(bus, ADDR)
        bus.raw_replies[ADDR] = reply_frame(1, 0xFF, 0)
        assert arduino.read().status is None
        with pytest.raises(FrameError):
            arduino.read(strict=True)

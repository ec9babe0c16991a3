# -*- coding: utf-8 -*-
"""
Sweeps over the documented invariants of the codecs and conversions:
channel tick encoding, prescale accuracy, temperature codec, DRV8830 control
byte, distance conversion and co-processor tokens.
"""

import struct
from decimal import ROUND_HALF_UP, Decimal

import pytest

from picar_base.drivers.arduino_i2c import decode_reply, encode_request
from picar_base.drivers.drv8830_driver import DRV8830Driver
from picar_base.drivers.mcp9808_driver import decode_temperature, encode_temperature
from picar_base.drivers.pca9685_driver import PCA9685Driver
from picar_base.models.coprocessor import CoprocessorStatus
from picar_base.models.measurement import distance_cm_from_ns


ADDR = 0x40
OSC_PER_STEP = 25_000_000 / 4096


def actual_frequency(prescale):
    return OSC_PER_STEP / (prescale + 1)


class TestChannelTicks:
    def test_ticks_written_little_endian(self, bus, clock):
        pwm = PCA9685Driver(bus, ADDR, clock=clock)
        pwm.initialize()
        values = sorted(set(range(0, 4096, 37)) | {0, 1, 255, 256, 4094, 4095})
        for i, on in enumerate(values):
            off = values[-1 - i]
            channel = i % 16
            pwm.set_channel(channel, on, off)
            base = 6 + 4 * channel
            regs = bus.regs[ADDR]
            assert [regs[base + k] for k in range(4)] == [on & 0xFF, on >> 8, off & 0xFF, off >> 8]
            assert pwm.read_channel(channel) == (on, off)


class TestPrescale:
    def test_prescale_in_register_range(self):
        for hz in range(24, 1527):
            assert 3 <= PCA9685Driver.prescale_for(hz) <= 255

    def test_within_two_percent_at_low_frequencies(self):
        # the truncating formula stays inside 2% up to ~240 Hz
        for hz in range(24, 240):
            prescale = PCA9685Driver.prescale_for(hz)
            assert abs(actual_frequency(prescale) - hz) / hz < 0.02, hz

    def test_error_bounded_by_one_prescale_step(self):
        for hz in range(24, 1527):
            prescale = PCA9685Driver.prescale_for(hz)
            step = 0.5 * hz / OSC_PER_STEP
            assert abs(actual_frequency(prescale) - hz) / hz <= step / (1 - step) + 1e-12, hz

    def test_two_percent_not_reached_at_high_frequencies(self):
        prescale = PCA9685Driver.prescale_for(284)
        assert prescale == 20
        assert abs(actual_frequency(prescale) - 284) / 284 > 0.02


class TestTemperatureCodec:
    def test_every_sixteenth_degree_survives_encoding(self):
        for step in range(-40 * 16, 125 * 16 + 1):
            value = step / 16.0
            raw = encode_temperature(value)
            assert decode_temperature(raw[0], raw[1]) == value, value


class TestControlByte:
    def test_direction_and_voltage_bits(self):
        for speed in range(-300, 301):
            byte = DRV8830Driver.control_byte(speed)
            magnitude = abs(speed)
            if magnitude < 6:
                assert byte == 0x00, speed
                continue
            assert byte & 0b11 == (0b10 if speed > 0 else 0b01), speed
            assert byte >> 2 == min(magnitude, 63), speed


class TestDistance:
    def test_matches_half_up_formula(self):
        for ns in range(0, 3_000_000, 1_733):
            expected = (Decimal(ns * 17) / Decimal(1_000_000)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
            assert distance_cm_from_ns(ns) == expected, ns

    def test_monotone_non_decreasing(self):
        previous = distance_cm_from_ns(0)
        for ns in range(0, 2_000_000, 97):
            current = distance_cm_from_ns(ns)
            assert current >= previous, ns
            previous = current


class TestToken:
    @pytest.mark.parametrize("status", list(CoprocessorStatus))
    def test_token_survives_request_and_reply(self, status):
        tokens = [0, 1, 0x7FFFFFFF, 0x80000000, 0xFFFFFFFF] + list(range(0, 2**32, 2**32 // 997))
        for token in tokens:
            request = encode_request(token, status)
            assert struct.unpack("<IB", request) == (token, status.value)
            reply = decode_reply(request + struct.pack("<i", 0))
            assert reply.token == token
            assert reply.status is status

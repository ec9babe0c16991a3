# -*- coding: utf-8 -*-
"""Tests for the register-level I2C device and bit helpers."""

import pytest

from picar_base.drivers.board_exceptions import BoardConfigError, I2CCommunicationError
from picar_base.drivers.i2c_device import I2CDevice, get_bit, is_bit, set_bit


class TestBitHelpers:
    def test_set_bit_sets_and_clears(self):
        assert set_bit(0x00, 0x10, 1) == 0x10
        assert set_bit(0xFF, 0x10, 0) == 0xEF

    def test_set_bit_ignores_other_levels(self):
        assert set_bit(0x5A, 0x01, 2) == 0x5A

    def test_get_bit_needs_every_mask_bit(self):
        assert get_bit(0x06, 0x02) == 1
        assert get_bit(0x06, 0x03) == 0
        assert is_bit(0x80, 0x80)
        assert not is_bit(0x7F, 0x80)


class TestConstruction:
    def test_missing_bus_rejected(self):
        with pytest.raises(BoardConfigError):
            I2CDevice(None, 0x40)

    @pytest.mark.parametrize("address", [0x00, 0x02, 0x78, "x"])
    def test_invalid_address_rejected(self, bus, address):
        with pytest.raises(BoardConfigError):
            I2CDevice(bus, address)


class TestTransfers:
    def test_byte_read_write(self, bus):
        dev = I2CDevice(bus, 0x40)
        dev.write(0x01, 0x1FF)
        assert bus.regs[0x40][0x01] == 0xFF
        assert dev.read(0x01) == 0xFF

    def test_block_read_write(self, bus):
        dev = I2CDevice(bus, 0x18)
        dev.write_block(0x02, [0x02, 0xD0])
        assert dev.read_block(0x02, 2) == b"\x02\xd0"

    def test_short_block_read_raises(self, bus):
        dev = I2CDevice(bus, 0x18)
        bus.blocks[(0x18, 0x05)] = [0x01]
        with pytest.raises(I2CCommunicationError):
            dev.read_block(0x05, 2)

    def test_bus_error_is_wrapped_with_context(self, bus):
        dev = I2CDevice(bus, 0x40, name="PCA9685", bus_number=1)
        bus.fail_addresses.add(0x40)
        with pytest.raises(I2CCommunicationError) as info:
            dev.read(0x00)
        err = info.value
        assert isinstance(err.cause, OSError)
        assert err.context.address == 0x40
        assert err.context.register == 0x00
        assert err.context.bus == 1
        assert err.to_dict()["type"] == "I2CCommunicationError"

    def test_raw_write_and_read(self, bus):
        dev = I2CDevice(bus, 0x08)
        dev.write_raw([1, 0, 0, 0, 0x49])
        assert bus.raw_writes == [(0x08, b"\x01\x00\x00\x00\x49")]

        bus.raw_replies[0x08] = b"\xAA\xBB"
        assert dev.read_raw(4) == b"\xAA\xBB\x00\x00"


class TestPinHelpers:
    def test_config_pin_read_modify_write(self, bus):
        dev = I2CDevice(bus, 0x40)
        bus.regs[0x40][0x00] = 0x11
        dev.config_pin(0x00, 0, 0x10)
        assert bus.regs[0x40][0x00] == 0x01
        assert dev.is_low(0x00, 0x10)
        assert dev.is_high(0x00, 0x01)

    def test_config_pin_rw_uses_both_registers(self, bus):
        dev = I2CDevice(bus, 0x20)
        bus.regs[0x20][0x00] = 0x0F
        dev.config_pin_rw(0x00, 0x01, 1, 0x80)
        assert bus.regs[0x20][0x01] == 0x8F
        assert bus.regs[0x20][0x00] == 0x0F

    def test_config_pin_toggle(self, bus):
        dev = I2CDevice(bus, 0x20)
        bus.regs[0x20][0x00] = 0x01
        dev.config_pin_toggle(0x00, 0x00, 0x01)
        assert dev.read_pin(0x00, 0x01) == 0
        dev.config_pin_toggle(0x00, 0x00, 0x01)
        assert dev.read_pin(0x00, 0x01) == 1

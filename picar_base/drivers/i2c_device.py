#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
PiCar — picar_base/drivers/i2c_device.py
----------------------------------------
Register-oriented I2C device bound to one 7-bit address.

Purpose
- Byte / block / raw transfers against an application-owned `smbus2.SMBus`
- Pure bit helpers (set/get/test a bit mask) with no I/O
- Read-modify-write pin helpers on top of the two

Every chip driver in this package (PCA9685, DRV8830, MCP9808, Arduino)
composes an I2CDevice instead of talking to the bus handle directly.

Ownership
- The bus handle is borrowed. Closing it is the application's job.
- Transfers are synchronous and not serialized here; callers sharing a bus
  across threads must lock around driver calls.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

from smbus2 import i2c_msg

from ..utils.logging import LoggerAdapter, get_logger_adapter
from .board_exceptions import BoardConfigError, I2CCommunicationError, wrap_i2c_error


I2C_ADDRESS_MIN = 0x03
I2C_ADDRESS_MAX = 0x77


# =============================================================================
# Pure bit helpers
# =============================================================================
def set_bit(reg: int, mask: int, level: int) -> int:
    """
    Return `reg` with the bits in `mask` cleared (level 0) or set (level 1).

    Any other level leaves `reg` unchanged.
    """
    if level == 0:
        return int(reg) & ~int(mask)
    if level == 1:
        return int(reg) | int(mask)
    return int(reg)


def get_bit(reg: int, mask: int) -> int:
    """Return 1 if every bit of `mask` is set in `reg`, else 0."""
    return 1 if (int(reg) | int(mask)) == int(reg) else 0


def is_bit(reg: int, mask: int) -> bool:
    return get_bit(reg, mask) == 1


# =============================================================================
# I2C device
# =============================================================================
class I2CDevice:
    """
    One addressable peripheral on the I2C bus.

    Typical usage:
        bus = SMBus(1)
        dev = I2CDevice(bus, 0x40)
        mode1 = dev.read(0x00)
        dev.config_pin(0x00, 0, 0x10)     # clear SLEEP
    """

    def __init__(
        self,
        bus: Any,
        address: int,
        *,
        name: str = "I2C",
        bus_number: Optional[int] = None,
        logger: Any = None,
    ) -> None:
        """
        Args:
            bus: smbus2.SMBus-compatible handle (borrowed)
            address: 7-bit device address (0x03..0x77)
            name: driver name used in log lines and error context
            bus_number: optional bus number, only for diagnostics
            logger: logger-like object or None

        Raises:
            BoardConfigError: missing bus handle or invalid address
        """
        if bus is None:
            raise BoardConfigError(f"{name}: I2C bus handle is required")
        try:
            addr_i = int(address)
        except (TypeError, ValueError) as e:
            raise BoardConfigError(f"{name}: invalid I2C address {address!r}") from e
        if not (I2C_ADDRESS_MIN <= addr_i <= I2C_ADDRESS_MAX):
            raise BoardConfigError(f"{name}: I2C address out of 7-bit range: 0x{addr_i:02X}")

        self._bus = bus
        self._address = addr_i
        self._bus_number = bus_number
        self.name = str(name)
        self.log: LoggerAdapter = get_logger_adapter(logger, name=f"picar_base.{self.name.lower()}")

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------
    @property
    def address(self) -> int:
        return self._address

    @property
    def bus(self) -> Any:
        return self._bus

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------
    def _fail(
        self,
        exc: BaseException,
        message: str,
        *,
        operation: str,
        register: Optional[int] = None,
        value: Optional[int | str] = None,
    ) -> I2CCommunicationError:
        err = wrap_i2c_error(
            exc,
            message=message,
            driver=self.name,
            operation=operation,
            bus=self._bus_number,
            address=self._address,
            register=register,
            value=value,
        )
        self.log.error(str(err))
        return err

    # Bit helpers, also reachable as self.set_bit(...) etc.
    set_bit = staticmethod(set_bit)
    get_bit = staticmethod(get_bit)
    is_bit = staticmethod(is_bit)

    # -------------------------------------------------------------------------
    # Register transfers
    # -------------------------------------------------------------------------
    def read(self, register: int) -> int:
        """
        Read one byte from `register`.

        Raises:
            I2CCommunicationError
        """
        reg_i = int(register)
        try:
            return int(self._bus.read_byte_data(self._address, reg_i)) & 0xFF
        except OSError as e:
            raise self._fail(
                e,
                f"I2C read failed @0x{self._address:02X} reg=0x{reg_i:02X}",
                operation="read",
                register=reg_i,
            ) from e

    def read_block(self, register: int, length: int) -> bytes:
        """
        Read `length` bytes starting at `register`.

        Raises:
            I2CCommunicationError: transfer error, or fewer bytes than requested
        """
        reg_i = int(register)
        n = int(length)
        try:
            data = self._bus.read_i2c_block_data(self._address, reg_i, n)
        except OSError as e:
            raise self._fail(
                e,
                f"I2C block read failed @0x{self._address:02X} reg=0x{reg_i:02X}",
                operation="read_block",
                register=reg_i,
                value=n,
            ) from e
        if data is None or len(data) < n:
            got = 0 if data is None else len(data)
            raise self._fail(
                OSError(f"short read: {got} of {n} bytes"),
                f"I2C block read from reg=0x{reg_i:02X} returned {got} of {n} bytes",
                operation="read_block",
                register=reg_i,
                value=n,
            )
        return bytes(int(b) & 0xFF for b in data[:n])

    def write(self, register: int, value: int) -> None:
        """
        Write one byte to `register` (value truncated to 8 bits).
        """
        reg_i = int(register)
        val_i = int(value) & 0xFF
        try:
            self._bus.write_byte_data(self._address, reg_i, val_i)
        except OSError as e:
            raise self._fail(
                e,
                f"I2C write failed @0x{self._address:02X} reg=0x{reg_i:02X} val=0x{val_i:02X}",
                operation="write",
                register=reg_i,
                value=val_i,
            ) from e

    def write_block(self, register: int, data: Sequence[int]) -> None:
        """
        Write `data` to consecutive registers starting at `register`.
        """
        reg_i = int(register)
        payload = [int(b) & 0xFF for b in data]
        try:
            self._bus.write_i2c_block_data(self._address, reg_i, payload)
        except OSError as e:
            raise self._fail(
                e,
                f"I2C block write failed @0x{self._address:02X} reg=0x{reg_i:02X}",
                operation="write_block",
                register=reg_i,
                value=len(payload),
            ) from e

    # -------------------------------------------------------------------------
    # Raw transfers (no register byte)
    # -------------------------------------------------------------------------
    def write_raw(self, data: Sequence[int]) -> None:
        """
        Send `data` as one plain I2C write transaction.
        """
        payload = bytes(int(b) & 0xFF for b in data)
        try:
            self._bus.i2c_rdwr(i2c_msg.write(self._address, payload))
        except OSError as e:
            raise self._fail(
                e,
                f"I2C raw write of {len(payload)} bytes failed @0x{self._address:02X}",
                operation="write_raw",
                value=len(payload),
            ) from e

    def read_raw(self, length: int) -> bytes:
        """
        Read `length` bytes as one plain I2C read transaction.
        """
        n = int(length)
        msg = i2c_msg.read(self._address, n)
        try:
            self._bus.i2c_rdwr(msg)
        except OSError as e:
            raise self._fail(
                e,
                f"I2C raw read of {n} bytes failed @0x{self._address:02X}",
                operation="read_raw",
                value=n,
            ) from e
        return bytes(list(msg))

    # -------------------------------------------------------------------------
    # Register-level pin helpers (read-modify-write)
    # -------------------------------------------------------------------------
    def read_pin(self, register: int, mask: int) -> int:
        return get_bit(self.read(register), mask)

    def is_high(self, register: int, mask: int) -> bool:
        return self.read_pin(register, mask) == 1

    def is_low(self, register: int, mask: int) -> bool:
        return not self.is_high(register, mask)

    def config_pin(self, register: int, level: int, mask: int) -> None:
        """Set or clear `mask` in `register`."""
        self.config_pin_rw(register, register, level, mask)

    def config_pin_rw(self, read_register: int, write_register: int, level: int, mask: int) -> None:
        """Read `read_register`, set/clear `mask`, write the result to `write_register`."""
        value = set_bit(self.read(read_register), mask, level)
        self.write(write_register, value)

    def config_pin_toggle(self, read_register: int, write_register: int, mask: int) -> None:
        """Read `read_register`, invert `mask`, write the result to `write_register`."""
        value = self.read(read_register)
        level = 0 if get_bit(value, mask) == 1 else 1
        self.write(write_register, set_bit(value, mask, level))

    def __repr__(self) -> str:
        return f"I2CDevice(name={self.name!r}, address=0x{self._address:02X})"


__all__ = [
    "I2C_ADDRESS_MIN",
    "I2C_ADDRESS_MAX",
    "set_bit",
    "get_bit",
    "is_bit",
    "I2CDevice",
]

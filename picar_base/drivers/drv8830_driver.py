#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
PiCar — picar_base/drivers/drv8830_driver.py
--------------------------------------------
DRV8830 I2C voltage-DAC motor driver (one motor per chip).

CONTROL register (0x00)
- bits 7..2: VSET, output voltage setting 0..63
- bits 1..0: IN2|IN1, see models.motor_direction.DRV8830Direction

FAULT register (0x01)
- read: latched fault bits, see models.motor_fault.DRV8830Fault
- write 0x80: clear latched faults

Addresses depend on the A1/A0 solder jumpers: 0x60, 0x61, 0x63, 0x64.
"""

from __future__ import annotations

from typing import Any, Optional

from ..models.motor_direction import (
    DRV8830_MAX_VALUE,
    DRV8830_MIN_VALUE,
    DRV8830Direction,
    voltage_setting,
)
from ..models.motor_fault import DRV8830Fault, byte_to_string
from ..utils.logging import format_kv
from .board_exceptions import BoardErrorContext, FaultLatchedError
from .i2c_device import I2CDevice


DRV8830_ADDRESS_A1_OPEN_A0_OPEN = 0x60
DRV8830_ADDRESS_A1_OPEN_A0_LOW = 0x61
DRV8830_ADDRESS_A1_LOW_A0_OPEN = 0x63
DRV8830_ADDRESS_A1_LOW_A0_LOW = 0x64
DRV8830_ADDRESSES = (
    DRV8830_ADDRESS_A1_OPEN_A0_OPEN,
    DRV8830_ADDRESS_A1_OPEN_A0_LOW,
    DRV8830_ADDRESS_A1_LOW_A0_OPEN,
    DRV8830_ADDRESS_A1_LOW_A0_LOW,
)


class DRV8830Driver:
    """
    Typical usage:
        motor = DRV8830Driver(bus, 0x60)
        motor.reset_fault()
        motor.drive(25)        # CONTROL <- 0x66
        motor.brake()
        reason = motor.get_fault_reason()
    """

    CONTROL_REGISTER = 0x00
    FAULT_REGISTER = 0x01
    FAULT_CLEAR = 0x80

    MIN_VALUE = DRV8830_MIN_VALUE
    MAX_VALUE = DRV8830_MAX_VALUE

    def __init__(
        self,
        bus: Any,
        address: int = DRV8830_ADDRESS_A1_OPEN_A0_OPEN,
        *,
        bus_number: Optional[int] = None,
        logger: Any = None,
    ) -> None:
        self._device = I2CDevice(bus, address, name="DRV8830", bus_number=bus_number, logger=logger)
        self.log = self._device.log
        if self._device.address not in DRV8830_ADDRESSES:
            self.log.warn(
                "DRV8830 address is not one of the jumper addresses "
                + format_kv(addr=f"0x{self._device.address:02X}")
            )

    @property
    def address(self) -> int:
        return self._device.address

    @property
    def device(self) -> I2CDevice:
        return self._device

    # -------------------------------------------------------------------------
    # Control byte
    # -------------------------------------------------------------------------
    @staticmethod
    def compose(vset: int, direction: DRV8830Direction) -> int:
        return ((int(vset) << 2) | direction.bits) & 0xFF

    @staticmethod
    def control_byte(speed: int) -> int:
        """
        CONTROL value for a signed speed.

        >>> hex(DRV8830Driver.control_byte(25))
        '0x66'
        >>> hex(DRV8830Driver.control_byte(-200))
        '0xfd'
        """
        return DRV8830Driver.compose(voltage_setting(speed), DRV8830Direction.for_speed(speed))

    def _write_control(self, value: int) -> None:
        if self.log.is_enabled_for_debug():
            self.log.debug("CONTROL <- " + format_kv(value=f"0x{value:02X}", bits=byte_to_string(value)))
        self._device.write(self.CONTROL_REGISTER, value)

    # -------------------------------------------------------------------------
    # Motion
    # -------------------------------------------------------------------------
    def drive(self, speed: int) -> int:
        """
        Drive at signed `speed`; |speed| < 6 freewheels, |speed| > 63 saturates.

        Returns the CONTROL byte written.
        """
        value = self.control_byte(speed)
        self._write_control(value)
        return value

    def stand_by(self) -> None:
        self._write_control(self.compose(0, DRV8830Direction.FREEWHEEL))

    def brake(self) -> None:
        self._write_control(self.compose(0, DRV8830Direction.BRAKE))

    # -------------------------------------------------------------------------
    # Faults
    # -------------------------------------------------------------------------
    def get_fault(self) -> int:
        """
        Read FAULT; when non-zero, clear it (write 0x80) and return the raw bits.
        """
        fault = self._device.read(self.FAULT_REGISTER)
        if fault != 0:
            self.log.debug("FAULT -> " + format_kv(bits=byte_to_string(fault)))
            self._device.write(self.FAULT_REGISTER, self.FAULT_CLEAR)
        return fault

    def get_fault_reason(self) -> DRV8830Fault:
        return DRV8830Fault.decode(self.get_fault())

    def check_fault(self) -> DRV8830Fault:
        """
        Raise FaultLatchedError if the chip latched a fault; the register is
        cleared first. Returns FAULT_FREE otherwise.
        """
        bits = self.get_fault()
        fault = DRV8830Fault.decode(bits)
        if fault.is_success:
            return fault
        err = FaultLatchedError(
            fault.reason,
            fault=fault,
            bits=bits,
            context=BoardErrorContext(
                driver="DRV8830",
                operation="check_fault",
                address=self.address,
                register=self.FAULT_REGISTER,
                value=byte_to_string(bits),
            ),
        )
        self.log.error(str(err))
        raise err

    def reset_fault(self) -> None:
        self._device.write(self.FAULT_REGISTER, self.FAULT_CLEAR)

    def __repr__(self) -> str:
        return f"DRV8830Driver(address=0x{self.address:02X})"


__all__ = [
    "DRV8830_ADDRESS_A1_OPEN_A0_OPEN",
    "DRV8830_ADDRESS_A1_OPEN_A0_LOW",
    "DRV8830_ADDRESS_A1_LOW_A0_OPEN",
    "DRV8830_ADDRESS_A1_LOW_A0_LOW",
    "DRV8830_ADDRESSES",
    "DRV8830Driver",
]

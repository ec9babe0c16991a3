#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
PiCar — picar_base/drivers/mcp9808_driver.py
--------------------------------------------
MCP9808 digital thermometer with alarm thresholds (default address 0x18).

Temperature register format (TEMPER / TUPPER / TLOWER / TCRIT, 2 bytes, MSB first)
- byte0 bit 7..5: alarm flags (TEMPER only): >= crit, > upper, < lower
- byte0 bit 4:    sign
- byte0 bit 3..0: integer part, high nibble
- byte1 bit 7..4: integer part, low nibble
- byte1 bit 3..0: fraction in 1/16 degC

Values are sign-magnitude, not two's complement of the whole 13 bits.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Optional, Sequence

from ..models.temperature import (
    AlertMode,
    AmbientStatus,
    Hysteresis,
    MCP9808LatchedConfig,
    Resolution,
)
from ..utils.clamp import clamp
from ..utils.logging import format_kv
from .board_exceptions import BoardValidationError
from .i2c_device import I2CDevice


MCP9808_DEFAULT_ADDRESS = 0x18

TEMP_MIN_C = -40.0
TEMP_MAX_C = 125.0

_SIGN_BIT = 0x10


# =============================================================================
# Pure register codec
# =============================================================================
def decode_temperature(byte0: int, byte1: int) -> float:
    """
    Decode a temperature register pair to degC.

    Alarm flags in byte0 bits 7..5 are ignored. Values outside the sensor
    range are returned as-is.

    >>> decode_temperature(0x01, 0x91)
    25.0625
    >>> decode_temperature(0x1F, 0x41)
    -244.0625
    """
    b0 = int(byte0) & 0xFF
    b1 = int(byte1) & 0xFF
    integer = ((b0 & 0x0F) << 4) | ((b1 & 0xF0) >> 4)
    fraction = (b1 & 0x0F) / 16.0
    magnitude = integer + fraction
    return -magnitude if (b0 & _SIGN_BIT) else magnitude


def encode_temperature(value_c: float) -> bytes:
    """
    Encode degC into a register pair, clamped to [-40, 125].

    The fraction is truncated to 1/16 degC.

    >>> encode_temperature(25.0625).hex()
    '0191'
    """
    v = clamp(float(value_c), TEMP_MIN_C, TEMP_MAX_C)
    negative = v < 0.0
    magnitude = -v if negative else v
    h = int(magnitude)
    frac = int((magnitude - h) * 16.0) & 0x0F
    b0 = (h >> 4) & 0x0F
    b1 = ((h << 4) & 0xF0) | frac
    if negative:
        b0 |= _SIGN_BIT
    return bytes((b0, b1))


# =============================================================================
# Driver
# =============================================================================
class MCP9808Driver:
    """
    Typical usage:
        therm = MCP9808Driver(bus)
        therm.set_resolution(Resolution.RES_0_0625)
        therm.set_upper_temp(45.0)
        therm.config_comparator_mode(active_high=True, alert_only_crit=False)
        t = therm.get_ambient_temp()
    """

    # Registers
    CONFIG = 0x01
    TUPPER = 0x02
    TLOWER = 0x03
    TCRIT = 0x04
    TEMPER = 0x05
    RESOL = 0x08

    # CONFIG byte1 (LSB)
    ALERT_MODE_BIT = 0x01
    ALERT_POLARITY_BIT = 0x02
    ALERT_SELECT_BIT = 0x04
    ALERT_CONTROL_BIT = 0x08
    ALERT_STATUS_BIT = 0x10
    INTERRUPT_CLEAR_BIT = 0x20
    WINDOW_LOCK_BIT = 0x40
    TCRIT_LOCK_BIT = 0x80

    # CONFIG byte0 (MSB)
    SHUTDOWN_BIT = 0x01
    HYST_LOW_BIT = 0x02
    HYST_HIGH_BIT = 0x04

    # RESOL
    RES_LOW_BIT = 0x01
    RES_HIGH_BIT = 0x02

    # TEMPER byte0 alarm flags
    CRIT_FLAG = 0x80
    UPPER_FLAG = 0x40
    LOWER_FLAG = 0x20

    def __init__(
        self,
        bus: Any,
        address: int = MCP9808_DEFAULT_ADDRESS,
        *,
        bus_number: Optional[int] = None,
        logger: Any = None,
    ) -> None:
        self._device = I2CDevice(bus, address, name="MCP9808", bus_number=bus_number, logger=logger)
        self.log = self._device.log
        self._latched = MCP9808LatchedConfig()

    @property
    def address(self) -> int:
        return self._device.address

    @property
    def device(self) -> I2CDevice:
        return self._device

    @property
    def latched_config(self) -> MCP9808LatchedConfig:
        return self._latched

    # Static aliases so callers holding only the driver can use the codec.
    decode_temperature = staticmethod(decode_temperature)
    encode_temperature = staticmethod(encode_temperature)

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------
    def _read_temp(self, register: int) -> float:
        raw = self._device.read_block(register, 2)
        return decode_temperature(raw[0], raw[1])

    def _write_temp(self, register: int, value_c: float) -> None:
        raw = encode_temperature(value_c)
        self.log.debug(
            "write temperature "
            + format_kv(reg=f"0x{register:02X}", value_c=value_c, raw=raw.hex())
        )
        self._device.write_block(register, raw)

    def _read_config(self) -> bytearray:
        return bytearray(self._device.read_block(self.CONFIG, 2))

    def _write_config(self, config: Sequence[int]) -> None:
        self._device.write_block(self.CONFIG, config)

    # -------------------------------------------------------------------------
    # Temperatures
    # -------------------------------------------------------------------------
    def get_ambient_temp(self) -> float:
        return self._read_temp(self.TEMPER)

    def get_crit_temp(self) -> float:
        return self._read_temp(self.TCRIT)

    def set_crit_temp(self, value_c: float) -> None:
        self._write_temp(self.TCRIT, value_c)

    def get_upper_temp(self) -> float:
        return self._read_temp(self.TUPPER)

    def set_upper_temp(self, value_c: float) -> None:
        self._write_temp(self.TUPPER, value_c)

    def get_lower_temp(self) -> float:
        return self._read_temp(self.TLOWER)

    def set_lower_temp(self, value_c: float) -> None:
        self._write_temp(self.TLOWER, value_c)

    # -------------------------------------------------------------------------
    # Alarm flags
    # -------------------------------------------------------------------------
    def _ambient_byte0(self) -> int:
        return self._device.read_block(self.TEMPER, 2)[0]

    def is_ambient_greater_equal_crit(self) -> bool:
        return self._device.is_bit(self._ambient_byte0(), self.CRIT_FLAG)

    def is_ambient_greater_upper_boundary(self) -> bool:
        return self._device.is_bit(self._ambient_byte0(), self.UPPER_FLAG)

    def is_ambient_less_lower_boundary(self) -> bool:
        return self._device.is_bit(self._ambient_byte0(), self.LOWER_FLAG)

    def read_ambient_status(self) -> AmbientStatus:
        """All three alarm flags from a single TEMPER read."""
        return AmbientStatus.from_byte(self._ambient_byte0())

    # -------------------------------------------------------------------------
    # Alert output
    # -------------------------------------------------------------------------
    def _config_alert(self, mode_level: int, active_high: bool, alert_only_crit: bool) -> None:
        config = self._read_config()
        conf = config[1]
        conf = self._device.set_bit(conf, self.ALERT_CONTROL_BIT, 1)
        conf = self._device.set_bit(conf, self.ALERT_MODE_BIT, mode_level)
        conf = self._device.set_bit(conf, self.ALERT_POLARITY_BIT, 1 if active_high else 0)
        conf = self._device.set_bit(conf, self.ALERT_SELECT_BIT, 1 if alert_only_crit else 0)
        config[1] = conf & 0xFF
        self._write_config(config)

    def config_comparator_mode(self, active_high: bool, alert_only_crit: bool) -> None:
        """Enable the alert output in comparator mode."""
        self._config_alert(0, active_high, alert_only_crit)
        self._latched = replace(
            self._latched,
            alert_mode=AlertMode.COMPARATOR,
            alert_active_high=bool(active_high),
            alert_only_crit=bool(alert_only_crit),
        )

    def config_interrupt_mode(self, active_high: bool, alert_only_crit: bool) -> None:
        """Enable the alert output in interrupt mode; clear with clear_interrupt()."""
        self._config_alert(1, active_high, alert_only_crit)
        self._latched = replace(
            self._latched,
            alert_mode=AlertMode.INTERRUPT,
            alert_active_high=bool(active_high),
            alert_only_crit=bool(alert_only_crit),
        )

    def clear_interrupt(self) -> None:
        config = self._read_config()
        config[1] = self._device.set_bit(config[1], self.INTERRUPT_CLEAR_BIT, 1) & 0xFF
        self._write_config(config)

    def alert_output_disable(self) -> None:
        config = self._read_config()
        config[1] = self._device.set_bit(config[1], self.ALERT_CONTROL_BIT, 0) & 0xFF
        self._write_config(config)
        self._latched = replace(self._latched, alert_mode=AlertMode.DISABLED)

    def is_alert_output_status(self) -> bool:
        return self._device.is_bit(self._read_config()[1], self.ALERT_STATUS_BIT)

    # -------------------------------------------------------------------------
    # Hysteresis / resolution
    # -------------------------------------------------------------------------
    def set_hysteresis(self, hysteresis: Hysteresis) -> None:
        if not isinstance(hysteresis, Hysteresis):
            raise BoardValidationError(f"set_hysteresis(): expected Hysteresis, got {hysteresis!r}")
        config = self._read_config()
        conf = config[0]
        conf = self._device.set_bit(conf, self.HYST_LOW_BIT, hysteresis.code & 0b01)
        conf = self._device.set_bit(conf, self.HYST_HIGH_BIT, (hysteresis.code >> 1) & 0b01)
        config[0] = conf & 0xFF
        self._write_config(config)
        self._latched = replace(self._latched, hysteresis=hysteresis)

    def get_hysteresis(self) -> Hysteresis:
        conf = self._read_config()[0]
        return Hysteresis.from_code((conf >> 1) & 0b11)

    def set_resolution(self, resolution: Resolution) -> None:
        if not isinstance(resolution, Resolution):
            raise BoardValidationError(f"set_resolution(): expected Resolution, got {resolution!r}")
        conf = self._device.read(self.RESOL)
        conf = self._device.set_bit(conf, self.RES_LOW_BIT, resolution.code & 0b01)
        conf = self._device.set_bit(conf, self.RES_HIGH_BIT, (resolution.code >> 1) & 0b01)
        self._device.write(self.RESOL, conf)
        self._latched = replace(self._latched, resolution=resolution)

    def get_resolution(self) -> Resolution:
        return Resolution.from_code(self._device.read(self.RESOL))

    # -------------------------------------------------------------------------
    # Power / reset
    # -------------------------------------------------------------------------
    def set_shutdown_mode(self) -> None:
        config = self._read_config()
        config[0] = self._device.set_bit(config[0], self.SHUTDOWN_BIT, 1) & 0xFF
        self._write_config(config)
        self._latched = replace(self._latched, shutdown=True)

    def set_active_mode(self) -> None:
        config = self._read_config()
        config[0] = self._device.set_bit(config[0], self.SHUTDOWN_BIT, 0) & 0xFF
        self._write_config(config)
        self._latched = replace(self._latched, shutdown=False)

    def reset(self) -> None:
        """
        Write 0x0000 to CONFIG (power-up defaults). RESOL is left untouched.
        """
        self._write_config(b"\x00\x00")
        self._latched = MCP9808LatchedConfig(resolution=self._latched.resolution)
        self.log.debug("reset() " + format_kv(**self._latched.to_dict()))

    def __repr__(self) -> str:
        return f"MCP9808Driver(address=0x{self.address:02X})"


__all__ = [
    "MCP9808_DEFAULT_ADDRESS",
    "TEMP_MIN_C",
    "TEMP_MAX_C",
    "decode_temperature",
    "encode_temperature",
    "MCP9808Driver",
]

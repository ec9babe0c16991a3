#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
PiCar — picar_base/config.py
----------------------------
Typed hardware configuration for the PiCar peripheral layer.

Purpose
-------
Describe the fixed hardware topology (bus number, chip addresses, GPIO pins,
channel assignments, calibrations) as frozen dataclasses, parsed from plain
dicts or a JSON file. `drivers.board_factory` turns a HardwareConfig into
wired driver objects.

Example JSON
------------
{
  "i2c_bus": 1,
  "pca9685": {"address": "0x40", "pwm_freq_hz": 50},
  "tb6612": {"pin_ma": 5, "pin_mb": 6, "motor_a_channel": 0, "motor_b_channel": 1},
  "servo": {"channel": 15, "steering_adjustment": -20},
  "drv8830": [{"address": "0x60"}, {"address": "0x64"}],
  "mcp9808": {"address": "0x18"},
  "us100": {"trigger_pin": 23, "echo_pin": 24},
  "arduino": {"address": "0x08"}
}

Every section is optional; a missing section means the peripheral is absent.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from .drivers.board_exceptions import BoardConfigError
from .drivers.i2c_device import I2C_ADDRESS_MAX, I2C_ADDRESS_MIN
from .drivers.pwm_views import ServoCalibration


# =============================================================================
# Parsing helpers
# =============================================================================
def _require_int(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise BoardConfigError(f"{name} must be an integer, got {value!r}")
    if isinstance(value, str):
        try:
            return int(value.strip().lower(), 0)
        except ValueError as e:
            raise BoardConfigError(f"{name} must be an integer, got {value!r}") from e
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise BoardConfigError(f"{name} must be an integer, got {value!r}") from e


def _require_float(name: str, value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise BoardConfigError(f"{name} must be a number, got {value!r}") from e


def _parse_address(name: str, value: Any) -> int:
    """Accept int or string forms like '0x40' / '64'."""
    a = _require_int(name, value)
    if not (I2C_ADDRESS_MIN <= a <= I2C_ADDRESS_MAX):
        raise BoardConfigError(f"{name} out of 7-bit range (0x03..0x77): 0x{a:02X}")
    return a


def _parse_channel(name: str, value: Any) -> int:
    ch = _require_int(name, value)
    if not (0 <= ch <= 15):
        raise BoardConfigError(f"{name} must be in [0, 15], got {ch}")
    return ch


def _parse_pin(name: str, value: Any) -> Union[int, str]:
    # gpiozero accepts BCM numbers as int and names such as "GPIO23" / "BOARD16".
    if isinstance(value, str) and not value.strip().lstrip("-").isdigit():
        return value.strip()
    pin = _require_int(name, value)
    if pin < 0:
        raise BoardConfigError(f"{name} must be >= 0, got {pin}")
    return pin


def _section(data: Mapping[str, Any], key: str) -> Optional[Mapping[str, Any]]:
    raw = data.get(key)
    if raw is None:
        return None
    if not isinstance(raw, Mapping):
        raise BoardConfigError(f"'{key}' must be a mapping, got {type(raw).__name__}")
    return raw


def _reject_unknown(section: str, raw: Mapping[str, Any], allowed: Tuple[str, ...]) -> None:
    unknown = sorted(set(raw.keys()) - set(allowed))
    if unknown:
        raise BoardConfigError(f"'{section}' has unknown keys: {', '.join(unknown)}")


# =============================================================================
# Per-peripheral configs
# =============================================================================
@dataclass(frozen=True)
class PCA9685Config:
    address: int = 0x40
    pwm_freq_hz: float = 50.0

    def __post_init__(self) -> None:
        if not (24.0 <= float(self.pwm_freq_hz) <= 1526.0):
            raise BoardConfigError(f"pwm_freq_hz must be in [24, 1526], got {self.pwm_freq_hz}")

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "PCA9685Config":
        _reject_unknown("pca9685", raw, ("address", "pwm_freq_hz"))
        return cls(
            address=_parse_address("pca9685.address", raw.get("address", 0x40)),
            pwm_freq_hz=_require_float("pca9685.pwm_freq_hz", raw.get("pwm_freq_hz", 50.0)),
        )


@dataclass(frozen=True)
class TB6612Config:
    pin_ma: Union[int, str]
    pin_mb: Union[int, str]
    motor_a_channel: int = 0
    motor_b_channel: int = 1

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "TB6612Config":
        _reject_unknown("tb6612", raw, ("pin_ma", "pin_mb", "motor_a_channel", "motor_b_channel"))
        if "pin_ma" not in raw or "pin_mb" not in raw:
            raise BoardConfigError("tb6612 requires pin_ma and pin_mb")
        return cls(
            pin_ma=_parse_pin("tb6612.pin_ma", raw["pin_ma"]),
            pin_mb=_parse_pin("tb6612.pin_mb", raw["pin_mb"]),
            motor_a_channel=_parse_channel("tb6612.motor_a_channel", raw.get("motor_a_channel", 0)),
            motor_b_channel=_parse_channel("tb6612.motor_b_channel", raw.get("motor_b_channel", 1)),
        )


@dataclass(frozen=True)
class ServoConfig:
    channel: int = 15
    calibration: ServoCalibration = field(default_factory=ServoCalibration)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "ServoConfig":
        keys = ("lower_limit", "upper_limit", "steering_delta", "steering_adjustment")
        _reject_unknown("servo", raw, ("channel",) + keys)
        defaults = ServoCalibration()
        values = {k: _require_int(f"servo.{k}", raw.get(k, getattr(defaults, k))) for k in keys}
        try:
            calibration = ServoCalibration(**values)
        except ValueError as e:
            raise BoardConfigError(f"servo calibration invalid: {e}") from e
        return cls(
            channel=_parse_channel("servo.channel", raw.get("channel", 15)),
            calibration=calibration,
        )


@dataclass(frozen=True)
class MotorDriverHatConfig:
    address: int = 0x40
    pwm_freq_hz: float = 100.0

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "MotorDriverHatConfig":
        _reject_unknown("motor_hat", raw, ("address", "pwm_freq_hz"))
        freq = _require_float("motor_hat.pwm_freq_hz", raw.get("pwm_freq_hz", 100.0))
        if freq <= 0.0:
            raise BoardConfigError(f"motor_hat.pwm_freq_hz must be > 0, got {freq}")
        return cls(
            address=_parse_address("motor_hat.address", raw.get("address", 0x40)),
            pwm_freq_hz=freq,
        )


@dataclass(frozen=True)
class DRV8830Config:
    address: int = 0x60
    clear_fault_on_start: bool = True

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "DRV8830Config":
        _reject_unknown("drv8830", raw, ("address", "clear_fault_on_start"))
        return cls(
            address=_parse_address("drv8830.address", raw.get("address", 0x60)),
            clear_fault_on_start=bool(raw.get("clear_fault_on_start", True)),
        )


@dataclass(frozen=True)
class MCP9808Config:
    address: int = 0x18

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "MCP9808Config":
        _reject_unknown("mcp9808", raw, ("address",))
        return cls(address=_parse_address("mcp9808.address", raw.get("address", 0x18)))


@dataclass(frozen=True)
class US100Config:
    trigger_pin: Union[int, str]
    echo_pin: Union[int, str]
    echo_busy_timeout_ms: int = 1000

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "US100Config":
        _reject_unknown("us100", raw, ("trigger_pin", "echo_pin", "echo_busy_timeout_ms"))
        if "trigger_pin" not in raw or "echo_pin" not in raw:
            raise BoardConfigError("us100 requires trigger_pin and echo_pin")
        timeout = _require_int("us100.echo_busy_timeout_ms", raw.get("echo_busy_timeout_ms", 1000))
        if timeout < 0:
            raise BoardConfigError(f"us100.echo_busy_timeout_ms must be >= 0, got {timeout}")
        return cls(
            trigger_pin=_parse_pin("us100.trigger_pin", raw["trigger_pin"]),
            echo_pin=_parse_pin("us100.echo_pin", raw["echo_pin"]),
            echo_busy_timeout_ms=timeout,
        )


@dataclass(frozen=True)
class ArduinoConfig:
    address: int = 0x08

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "ArduinoConfig":
        _reject_unknown("arduino", raw, ("address",))
        return cls(address=_parse_address("arduino.address", raw.get("address", 0x08)))


# =============================================================================
# Aggregate
# =============================================================================
@dataclass(frozen=True)
class HardwareConfig:
    """Whole-robot topology. None means the peripheral is not fitted."""
    i2c_bus: int = 1
    pca9685: Optional[PCA9685Config] = None
    tb6612: Optional[TB6612Config] = None
    servo: Optional[ServoConfig] = None
    motor_hat: Optional[MotorDriverHatConfig] = None
    drv8830: Tuple[DRV8830Config, ...] = ()
    mcp9808: Optional[MCP9808Config] = None
    us100: Optional[US100Config] = None
    arduino: Optional[ArduinoConfig] = None

    _SECTIONS = (
        "i2c_bus", "pca9685", "tb6612", "servo", "motor_hat",
        "drv8830", "mcp9808", "us100", "arduino",
    )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "HardwareConfig":
        """
        Parse a dict (e.g. loaded from JSON).

        Raises:
            BoardConfigError: wrong types, out-of-range values, unknown keys,
                or TB6612/servo configured without a PCA9685 section
        """
        if not isinstance(data, Mapping):
            raise BoardConfigError(f"hardware config must be a mapping, got {type(data).__name__}")
        _reject_unknown("hardware", data, cls._SECTIONS)

        bus = _require_int("i2c_bus", data.get("i2c_bus", 1))
        if bus < 0:
            raise BoardConfigError(f"i2c_bus must be >= 0, got {bus}")

        def opt(key: str, parser: Any) -> Any:
            raw = _section(data, key)
            return parser(raw) if raw is not None else None

        raw_drv = data.get("drv8830") or []
        if isinstance(raw_drv, Mapping):
            raw_drv = [raw_drv]
        if not isinstance(raw_drv, (list, tuple)):
            raise BoardConfigError("'drv8830' must be a mapping or a list of mappings")
        drv: Tuple[DRV8830Config, ...] = tuple(
            DRV8830Config.from_mapping(item if isinstance(item, Mapping) else {"address": item})
            for item in raw_drv
        )

        cfg = cls(
            i2c_bus=bus,
            pca9685=opt("pca9685", PCA9685Config.from_mapping),
            tb6612=opt("tb6612", TB6612Config.from_mapping),
            servo=opt("servo", ServoConfig.from_mapping),
            motor_hat=opt("motor_hat", MotorDriverHatConfig.from_mapping),
            drv8830=drv,
            mcp9808=opt("mcp9808", MCP9808Config.from_mapping),
            us100=opt("us100", US100Config.from_mapping),
            arduino=opt("arduino", ArduinoConfig.from_mapping),
        )
        cfg.validate()
        return cfg

    def validate(self) -> None:
        if (self.tb6612 is not None or self.servo is not None) and self.pca9685 is None:
            raise BoardConfigError("tb6612/servo sections need a pca9685 section")
        if self.pca9685 is not None and self.motor_hat is not None and self.pca9685.address == self.motor_hat.address:
            raise BoardConfigError(
                f"pca9685 and motor_hat share address 0x{self.pca9685.address:02X}"
            )
        addresses = [c.address for c in self.drv8830]
        if len(addresses) != len(set(addresses)):
            raise BoardConfigError(f"duplicate drv8830 addresses: {addresses}")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_hardware_config(path: Union[str, Path]) -> HardwareConfig:
    """
    Read a JSON hardware description.

    Raises:
        BoardConfigError: unreadable file, invalid JSON, or invalid values
    """
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as e:
        raise BoardConfigError(f"cannot read hardware config {p}: {e}") from e
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise BoardConfigError(f"invalid JSON in {p}: {e}") from e
    return HardwareConfig.from_mapping(data)


__all__ = [
    "PCA9685Config",
    "TB6612Config",
    "ServoConfig",
    "MotorDriverHatConfig",
    "DRV8830Config",
    "MCP9808Config",
    "US100Config",
    "ArduinoConfig",
    "HardwareConfig",
    "load_hardware_config",
]

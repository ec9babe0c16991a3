#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
PiCar — picar_base/version.py
-----------------------------
Single source of the `picar_base` version, used by setup.py, startup logs and
bring-up scripts.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Final, Tuple


VERSION_MAJOR: Final[int] = 0
VERSION_MINOR: Final[int] = 1
VERSION_PATCH: Final[int] = 0

PACKAGE_NAME: Final[str] = "picar_base"
ROBOT_NAME: Final[str] = "PiCar"

SUPPORTED_CHIPS: Final[Tuple[str, ...]] = (
    "PCA9685",
    "TB6612",
    "DRV8830",
    "MCP9808",
    "US-100",
    "Arduino",
)

__version__: Final[str] = f"{VERSION_MAJOR}.{VERSION_MINOR}.{VERSION_PATCH}"
VERSION: Final[str] = __version__
VERSION_TUPLE: Final[Tuple[int, int, int]] = (VERSION_MAJOR, VERSION_MINOR, VERSION_PATCH)


@dataclass(frozen=True)
class PackageVersionInfo:
    package_name: str
    robot_name: str
    version: str
    chips: Tuple[str, ...]

    def to_dict(self) -> Dict[str, object]:
        return {
            "package_name": self.package_name,
            "robot_name": self.robot_name,
            "version": self.version,
            "chips": list(self.chips),
        }

    def banner(self) -> str:
        return f"{self.robot_name} | {self.package_name} {self.version} ({', '.join(self.chips)})"


def get_version() -> str:
    return VERSION


def get_package_version_info() -> PackageVersionInfo:
    return PackageVersionInfo(
        package_name=PACKAGE_NAME,
        robot_name=ROBOT_NAME,
        version=VERSION,
        chips=SUPPORTED_CHIPS,
    )


__all__ = [
    "__version__",
    "VERSION",
    "VERSION_TUPLE",
    "PACKAGE_NAME",
    "ROBOT_NAME",
    "SUPPORTED_CHIPS",
    "PackageVersionInfo",
    "get_version",
    "get_package_version_info",
]

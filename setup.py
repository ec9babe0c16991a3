#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
PiCar — setup.py
----------------
Purpose:
- Package the Python modules under `picar_base/`
- Declare the hardware stack (smbus2 for I2C, gpiozero for GPIO)

Tests live under `test/` and are excluded from the installed package.
"""

from setuptools import find_packages, setup

package_name = "picar_base"

setup(
    name=package_name,
    version="0.1.0",
    packages=find_packages(exclude=("test", "test.*")),
    include_package_data=True,
    python_requires=">=3.8",
    install_requires=[
        "setuptools",
        "smbus2",
        "gpiozero",
    ],
    extras_require={
        "test": ["pytest"],
    },
    zip_safe=False,
    maintainer="Ahnaf Tahmid",
    maintainer_email="tahmidahnaf998@gmail.com",
    description=(
        "PiCar on-board peripheral layer for the Raspberry Pi "
        "(PCA9685 PWM, TB6612 / DRV8830 / Motor Driver HAT motors, MCP9808 "
        "thermometer, US-100 range finder, Arduino co-processor link)."
    ),
    license="Proprietary",
    tests_require=["pytest"],
)

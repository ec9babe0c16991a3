# -*- coding: utf-8 -*-
"""
PiCar — picar_base/sensors/__init__.py
--------------------------------------
GPIO sensors.
"""

from __future__ import annotations

from .us100_sensor import CallbackSink, MeasurementSink, US100Sensor

__all__ = [
    "CallbackSink",
    "MeasurementSink",
    "US100Sensor",
]

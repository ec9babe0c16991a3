# -*- coding: utf-8 -*-
"""
PiCar — picar_base/models/__init__.py
-------------------------------------
Public exports for `picar_base.models`.

Usage examples
--------------
from picar_base.models import HBridgeState, DRV8830Direction, DRV8830Fault
from picar_base.models import MeasurementResult, RangeState
from picar_base.models import CoprocessorStatus, CoprocessorReply
"""

# ============================================================================
# Motor direction / fault
# ============================================================================
from .motor_direction import (
    DRV8830_MAX_VALUE,
    DRV8830_MIN_VALUE,
    DRV8830Direction,
    HBridgeState,
    voltage_setting,
)
from .motor_fault import DRV8830Fault, byte_to_string

# ============================================================================
# Thermometer
# ============================================================================
from .temperature import (
    AlertMode,
    AmbientStatus,
    Hysteresis,
    MCP9808LatchedConfig,
    Resolution,
)

# ============================================================================
# Range finder
# ============================================================================
from .measurement import (
    MeasurementResult,
    PinEdge,
    RangeState,
    distance_cm_from_ns,
    elapsed_ms_from_ns,
)

# ============================================================================
# Co-processor
# ============================================================================
from .coprocessor import (
    CoprocessorReply,
    CoprocessorRequest,
    CoprocessorStatus,
)

__all__ = [
    "DRV8830_MAX_VALUE",
    "DRV8830_MIN_VALUE",
    "DRV8830Direction",
    "HBridgeState",
    "voltage_setting",
    "DRV8830Fault",
    "byte_to_string",
    "AlertMode",
    "AmbientStatus",
    "Hysteresis",
    "MCP9808LatchedConfig",
    "Resolution",
    "MeasurementResult",
    "PinEdge",
    "RangeState",
    "distance_cm_from_ns",
    "elapsed_ms_from_ns",
    "CoprocessorReply",
    "CoprocessorRequest",
    "CoprocessorStatus",
]

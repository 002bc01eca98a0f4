"""
IMU processing package for velocity and steering estimation.

This package contains modules for:
- Orientation: principal rotation axis and horizontal turn rate (steering proxy)
- Position: trajectory integration under fitted calibration parameters
- Calibration: per-window accelerometer calibration against GPS speed (L-BFGS)
"""

from .find_orientation import get_principal_rotation_axes, get_horizontal_turn_angles
from .find_position import CalibrationParams, IntegrationOutcome, FindVelocity
from .calibration import AccelerometerCalibrator, LbfgsSettings, OptimizationResult, minimize_lbfgs

__all__ = [
    'get_principal_rotation_axes',
    'get_horizontal_turn_angles',
    'CalibrationParams',
    'IntegrationOutcome',
    'FindVelocity',
    'AccelerometerCalibrator',
    'LbfgsSettings',
    'OptimizationResult',
    'minimize_lbfgs',
]

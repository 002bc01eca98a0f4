"""
Offline IMU auto-calibration against GPS speed.

Produces a denoised forward speed estimate from the accelerometer and a
horizontal turn-rate signal (steering proxy) from the gyroscope.
"""

from .timeseries import VectorSeries, ScalarSeries, MergedTimeSeries
from .fit_config import FitConfig
from .fit_motion import FitResult, fit_motion

__all__ = [
    'VectorSeries',
    'ScalarSeries',
    'MergedTimeSeries',
    'FitConfig',
    'FitResult',
    'fit_motion',
]

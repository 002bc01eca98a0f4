"""
Sliding-window calibration over the GPS reference stream.

Instead of calibrating globally on the whole track (where IMU drift would
dominate), the accelerometer is calibrated independently on short,
overlapping windows of GPS measurements. Every window integrates its own
trajectory; the resulting speed estimates are pooled per IMU event and
averaged.
"""

from collections import defaultdict
from dataclasses import dataclass
import logging
import numpy as np

from fitmotion.imu.calibration import AccelerometerCalibrator

logger = logging.getLogger(__name__)


def sliding_windows(num_locations, batch_size, shift_step):
    """Yield half-open [start, end) windows over the GPS stream."""
    if batch_size <= 0 or shift_step <= 0:
        raise ValueError(f"batch_size and shift_step must be positive, got {batch_size}, {shift_step}")
    for start in range(0, num_locations, shift_step):
        yield start, min(start + batch_size, num_locations)


@dataclass
class WindowFit:
    start_idx: int
    end_idx: int
    iterations: int = 0
    value: float = float("nan")
    converged: bool = False
    skipped: bool = False
    # Root mean square of the speed residual at the window's GPS samples, m/s
    rms_residual: float = float("nan")


class EstimatePool:
    """Speed estimates contributed by every window, keyed by merged event index."""

    def __init__(self):
        self._estimates = defaultdict(list)

    def __len__(self):
        return len(self._estimates)

    def add(self, indices, speeds):
        for idx, speed in zip(indices, speeds):
            self._estimates[int(idx)].append(float(speed))

    def averaged(self):
        """
        Unweighted mean per merged index, ascending.

        Returns:
            indices: (K,) merged event indices
            means: (K,) averaged speeds
            counts: (K,) number of contributing windows
        """
        indices = np.array(sorted(self._estimates), dtype=np.int64)
        means = np.array([np.mean(self._estimates[i]) for i in indices], dtype=float)
        counts = np.array([len(self._estimates[i]) for i in indices], dtype=np.int64)
        return indices, means, counts


def fit_sliding_windows(gps, merged, config, settings):
    """
    Fit every window and push its integrated speeds into the estimate pool.

    Args:
        gps: ScalarSeries of reference speeds
        merged: MergedTimeSeries shared by all windows
        config: FitConfig (window size, shift, minimum window size, residual warning level)
        settings: LbfgsSettings, identical for every window

    Returns:
        pool: EstimatePool
        fits: list of WindowFit, one per window
    """
    pool = EstimatePool()
    fits = []

    for start_idx, end_idx in sliding_windows(len(gps), config.locations_batch_size,
                                              config.locations_shift_step):
        window = WindowFit(start_idx, end_idx)
        fits.append(window)

        if end_idx - start_idx < config.min_window_locations:
            logger.warning(f"Skipping window [{start_idx}, {end_idx}): "
                           f"fewer than {config.min_window_locations} GPS samples")
            window.skipped = True
            continue

        calibrator = AccelerometerCalibrator(gps[start_idx:end_idx], merged)
        if not calibrator.has_imu_data():
            logger.warning(f"Skipping window [{start_idx}, {end_idx}): no IMU data in range")
            window.skipped = True
            continue

        params, result = calibrator.fit(settings)
        window.iterations = result.iterations
        window.value = result.value
        window.converged = result.converged
        logger.info(f"Sliding window [{start_idx}, {end_idx}) optimization: "
                    f"{result.iterations} iterations, result value: {result.value:.6g}"
                    + ("" if result.converged else " (not converged)"))
        window.rms_residual = float(np.sqrt(result.value / (end_idx - start_idx)))
        if window.rms_residual > config.residual_warning_m_s:
            logger.warning(f"Sliding window [{start_idx}, {end_idx}) fits GPS speed poorly: "
                           f"RMS residual {window.rms_residual:.3g} m/s")

        trajectory = calibrator.integrate_trajectory(params)
        pool.add(trajectory.indices, trajectory.speed())

    return pool, fits

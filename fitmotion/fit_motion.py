# -*- coding: utf-8 -*-
"""
Auto-calibration and integration of IMU measurements using GPS speed as
coarse-grained reference points.

1. principal rotation axis -> horizontal turn rate (steering proxy)
2. merge rotations + accelerations into one timeline
3. sliding-window calibration against GPS speed
4. average speeds over windows for every IMU event
5. Gaussian post-smoothing
"""

from dataclasses import dataclass, field
import logging
import numpy as np

from fitmotion.imu.find_orientation import get_principal_rotation_axes, get_horizontal_turn_angles
from fitmotion.sliding_window import fit_sliding_windows
from fitmotion.timeseries import MergedTimeSeries, USEC_TO_SEC
from fitmotion.traj_smooth import smooth_time_series

logger = logging.getLogger(__name__)


@dataclass
class FitResult:
    steering_time_usec: np.ndarray
    steering: np.ndarray           # rad/s about the vertical axis
    vertical_axis: np.ndarray
    velocity_time_usec: np.ndarray
    velocity: np.ndarray           # smoothed speed, m/s
    averaged_velocity: np.ndarray  # before smoothing
    estimate_counts: np.ndarray    # windows contributing to each timestamp
    window_fits: list = field(default_factory=list)


def _check_inputs(rotations, accelerations, gps):
    for name, series in (("rotations", rotations), ("accelerations", accelerations),
                         ("locations", gps)):
        if len(series) == 0:
            raise ValueError(f"Input stream '{name}' is empty")


def compute_steering(rotations, config):
    """Project every rotation onto the principal (vertical) axis."""
    axes = get_principal_rotation_axes(rotations, config.pca_max_samples)
    vertical_axis = axes[0]
    steering = get_horizontal_turn_angles(rotations, vertical_axis)
    if len(steering) != len(rotations):
        raise RuntimeError(f"{len(steering)} steering values for {len(rotations)} rotations")
    return vertical_axis, steering


def compute_velocities(rotations, accelerations, gps, config):
    """
    Returns:
        time_usec, smoothed speed, averaged speed, estimate counts, window fits
    """
    merged = MergedTimeSeries(rotations, accelerations)
    logger.info(f"Merged {len(rotations)} rotations and {len(accelerations)} accelerations "
                f"into {len(merged)} events")

    pool, fits = fit_sliding_windows(gps, merged, config, config.lbfgs_settings())
    indices, averaged, counts = pool.averaged()
    time_usec = merged.time_usec[indices]

    if len(indices) == 0:
        logger.warning("No window produced velocity estimates")
        return time_usec, averaged, averaged, counts, fits

    times_sec = (time_usec - time_usec[0]) * USEC_TO_SEC
    smoothed = smooth_time_series(averaged, times_sec, config.post_smoothing_sigma_sec)
    fitted = [f for f in fits if not f.skipped]
    logger.info(f"Fitted {len(fitted)}/{len(fits)} windows "
                f"({sum(not f.converged for f in fitted)} not converged), "
                f"{len(indices)} velocity estimates")
    return time_usec, smoothed, averaged, counts, fits


def fit_motion(rotations, accelerations, gps, config):
    """Run the full pipeline on in-memory streams."""
    config.validate()
    _check_inputs(rotations, accelerations, gps)

    vertical_axis, steering = compute_steering(rotations, config)
    time_usec, smoothed, averaged, counts, fits = compute_velocities(
        rotations, accelerations, gps, config)

    return FitResult(
        steering_time_usec=rotations.time_usec,
        steering=steering,
        vertical_axis=vertical_axis,
        velocity_time_usec=time_usec,
        velocity=smoothed,
        averaged_velocity=averaged,
        estimate_counts=counts,
        window_fits=fits,
    )

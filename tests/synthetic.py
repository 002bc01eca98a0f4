"""
Noiseless synthetic IMU + GPS streams for a vehicle driving at constant speed.

Rotation and acceleration samples share timestamps. The device yaws at a
constant rate about its z axis, and the raw accelerometer reads
    a(t) = body_bias + Rz(yaw_rate * t)^T @ global_bias
so that after removing both biases the acceleration is exactly zero in the
frame of the first sample.
"""

import numpy as np
from scipy.spatial.transform import Rotation

from fitmotion.timeseries import ScalarSeries, VectorSeries

GRAVITY = np.array([0.0, 0.0, 9.81])


def make_streams(duration_sec=49.0, imu_hz=20, gps_hz=1, speed=10.0, yaw_rate=0.0,
                 global_bias=GRAVITY, body_bias=(0.0, 0.0, 0.0)):
    imu_step_usec = int(1e6 / imu_hz)
    imu_times = np.arange(0, int(duration_sec * 1e6) + 1, imu_step_usec, dtype=np.int64)
    t = imu_times * 1e-6

    rotation_values = np.tile([0.0, 0.0, yaw_rate], (len(t), 1))
    R = Rotation.from_rotvec(np.outer(t, [0.0, 0.0, yaw_rate])).as_matrix()
    accel_values = np.asarray(body_bias)[None, :] + np.einsum("kji,j->ki", R, np.asarray(global_bias))

    gps_step_usec = int(1e6 / gps_hz)
    gps_times = np.arange(0, int(duration_sec * 1e6) + 1, gps_step_usec, dtype=np.int64)
    gps_speeds = np.full(len(gps_times), speed)

    return (VectorSeries(rotation_values, imu_times),
            VectorSeries(accel_values, imu_times),
            ScalarSeries(gps_speeds, gps_times))

from dataclasses import dataclass
import numpy as np


@dataclass(frozen=True)
class CalibrationParams:
    """Accelerometer calibration fitted for one window."""
    global_bias: np.ndarray       # (3,) subtracted in the navigation frame
    body_bias: np.ndarray         # (3,) subtracted in the device frame, before rotation
    initial_velocity: np.ndarray  # (3,) velocity at the first event of the window

    SIZE = 9

    @classmethod
    def zeros(cls):
        return cls(np.zeros(3), np.zeros(3), np.zeros(3))

    @classmethod
    def from_vector(cls, x):
        x = np.asarray(x, dtype=float)
        if x.shape != (cls.SIZE,):
            raise ValueError(f"Expected {cls.SIZE} parameters, got shape {x.shape}")
        return cls(x[0:3].copy(), x[3:6].copy(), x[6:9].copy())

    def to_vector(self):
        return np.concatenate([self.global_bias, self.body_bias, self.initial_velocity])


@dataclass
class IntegrationOutcome:
    indices: np.ndarray    # (M,) merged event indices
    time_usec: np.ndarray  # (M,)
    velocity: np.ndarray   # (M, 3)
    position: np.ndarray   # (M, 3) displacement from the first event

    def speed(self):
        return np.linalg.norm(self.velocity, axis=1)


class FindVelocity:
    def __init__(self, merged, indices):
        """
        merged: MergedTimeSeries shared by all windows
        indices: contiguous range of merged event indices to integrate over

        The navigation frame is the device frame at the first event. With
        R_k the device->navigation rotation and a_k the raw acceleration,
            v_j = v0 + sum_{k<j} (R_k (a_k - body_bias) - global_bias) dt_k
        which is affine in the parameters:
            v_j = v0 - elapsed_j * global_bias + body_coef_j @ body_bias + raw_j
        """
        if len(indices) == 0:
            raise ValueError("Cannot integrate over an empty span")
        self.merged = merged
        self.indices = np.arange(indices.start, indices.stop)
        self.time_usec = merged.time_usec[self.indices]

        first = self.indices[0]
        R = merged.orientation[first].T @ merged.orientation[self.indices]
        dt = merged.dt_sec[self.indices].copy()
        # Steps past the last event of the span do not count.
        dt[-1] = 0.0

        self.dt = dt
        self.elapsed = np.concatenate([[0.0], np.cumsum(dt[:-1])])

        raw_steps = np.einsum("kij,kj->ki", R, merged.accel[self.indices]) * dt[:, None]
        self.raw = np.zeros((len(dt), 3))
        self.raw[1:] = np.cumsum(raw_steps[:-1], axis=0)

        self.body_coef = np.zeros((len(dt), 3, 3))
        self.body_coef[1:] = -np.cumsum(R[:-1] * dt[:-1, None, None], axis=0)

    def velocities(self, params, rows=None):
        """Velocities at all span events, or at the given span rows."""
        rows = slice(None) if rows is None else rows
        return (params.initial_velocity[None, :]
                - self.elapsed[rows, None] * params.global_bias[None, :]
                + self.body_coef[rows] @ params.body_bias
                + self.raw[rows])

    def find_trajectory(self, params):
        velocity = self.velocities(params)
        position = np.zeros_like(velocity)
        position[1:] = np.cumsum(velocity[:-1] * self.dt[:-1, None], axis=0)
        return IntegrationOutcome(self.indices, self.time_usec, velocity, position)

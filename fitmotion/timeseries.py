from dataclasses import dataclass
import numpy as np
from scipy.spatial.transform import Rotation

"""
Input: rotation stream, acceleration stream, GPS speed stream
Output: merged IMU timeline shared by all calibration windows
"""

USEC_TO_SEC = 1e-6


def _check_sorted(time_usec, name):
    if time_usec.ndim != 1:
        raise ValueError(f"{name}: time_usec must be 1-D, got shape {time_usec.shape}")
    if len(time_usec) > 1 and np.any(np.diff(time_usec) < 0):
        raise ValueError(f"{name}: timestamps are not sorted")


@dataclass(frozen=True)
class VectorSeries:
    """Timestamped 3D samples (gyroscope rad/s or raw accelerometer)."""
    values: np.ndarray     # (N, 3)
    time_usec: np.ndarray  # (N,) int64

    def __post_init__(self):
        values = np.asarray(self.values, dtype=float)
        time_usec = np.asarray(self.time_usec, dtype=np.int64)
        if values.ndim != 2 or values.shape[1] != 3:
            raise ValueError(f"Expected (N, 3) values, got shape {values.shape}")
        if len(values) != len(time_usec):
            raise ValueError(f"{len(values)} values but {len(time_usec)} timestamps")
        _check_sorted(time_usec, "VectorSeries")
        object.__setattr__(self, "values", values)
        object.__setattr__(self, "time_usec", time_usec)

    def __len__(self):
        return len(self.time_usec)


@dataclass(frozen=True)
class ScalarSeries:
    """Timestamped scalar samples (GPS speed in m/s)."""
    values: np.ndarray     # (N,)
    time_usec: np.ndarray  # (N,) int64

    def __post_init__(self):
        values = np.asarray(self.values, dtype=float)
        time_usec = np.asarray(self.time_usec, dtype=np.int64)
        if values.ndim != 1:
            raise ValueError(f"Expected (N,) values, got shape {values.shape}")
        if len(values) != len(time_usec):
            raise ValueError(f"{len(values)} values but {len(time_usec)} timestamps")
        _check_sorted(time_usec, "ScalarSeries")
        object.__setattr__(self, "values", values)
        object.__setattr__(self, "time_usec", time_usec)

    def __len__(self):
        return len(self.time_usec)

    def __getitem__(self, item):
        if not isinstance(item, slice):
            raise TypeError("ScalarSeries only supports slicing")
        return ScalarSeries(self.values[item], self.time_usec[item])


class MergedTimeSeries:
    """
    Rotations and accelerations interleaved into one timestamp-ordered index.

    Built once and shared read-only by every calibration window. For every
    merged event k it holds:
      - time_usec[k]
      - omega[k]: latest angular velocity at or before k (zeros before the first)
      - accel[k]: latest raw acceleration at or before k (zeros before the first)
      - dt_sec[k]: step to event k+1 (0 for the last event)
      - orientation[k]: R mapping device frame at k to device frame at event 0
    Equal timestamps put the rotation sample first.
    """

    def __init__(self, rotations, accelerations):
        if len(rotations) == 0 or len(accelerations) == 0:
            raise ValueError("Rotation and acceleration streams must be non-empty")
        self.rotations = rotations
        self.accelerations = accelerations

        n_rot = len(rotations)
        all_times = np.concatenate([rotations.time_usec, accelerations.time_usec])
        # Stable sort keeps rotations ahead of accelerations on ties.
        order = np.argsort(all_times, kind="stable")
        self.time_usec = all_times[order]
        self.is_rotation = order < n_rot
        self.source_index = np.where(self.is_rotation, order, order - n_rot)

        self.omega = self._latest_values(rotations.values, self.is_rotation)
        self.accel = self._latest_values(accelerations.values, ~self.is_rotation)

        self.dt_sec = np.zeros(len(self.time_usec))
        self.dt_sec[:-1] = np.diff(self.time_usec) * USEC_TO_SEC

        self.orientation = self._integrate_orientation()

    def __len__(self):
        return len(self.time_usec)

    @staticmethod
    def _latest_values(values, mask):
        """Sample-and-hold of one stream onto the merged timeline."""
        latest = np.cumsum(mask) - 1
        held = np.zeros((len(mask), 3))
        seen = latest >= 0
        held[seen] = values[latest[seen]]
        return held

    def _integrate_orientation(self):
        # Forward Euler on SO(3): Q[k+1] = Q[k] @ exp(omega[k] * dt[k])
        steps = Rotation.from_rotvec(self.omega * self.dt_sec[:, None]).as_matrix()
        orientation = np.empty((len(self), 3, 3))
        orientation[0] = np.eye(3)
        # Inclusive prefix product, log2(N) batched matmul passes
        prefix = steps[:-1].copy()
        shift = 1
        while shift < len(prefix):
            prefix[shift:] = prefix[:-shift] @ prefix[shift:]
            shift *= 2
        orientation[1:] = prefix
        return orientation

    def merged_event_time_usec(self, idx):
        return int(self.time_usec[idx])

    def span(self, start_usec, end_usec):
        """Merged indices with start_usec <= time <= end_usec, as a range."""
        lo = int(np.searchsorted(self.time_usec, start_usec, side="left"))
        hi = int(np.searchsorted(self.time_usec, end_usec, side="right"))
        return range(lo, max(lo, hi))

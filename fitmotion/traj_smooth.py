"""
traj_smooth.py: Gaussian post-smoothing of the averaged velocity series.

IMU events are not evenly spaced, so the kernel is evaluated on the actual
timestamps (seconds) instead of sample counts:

    out[i] = SUM_j w_ij * v[j] / SUM_j w_ij,   w_ij = exp(-(t_i - t_j)^2 / (2 sigma^2))

restricted to |t_i - t_j| <= TRUNCATE * sigma. Two-sided (non-causal).
"""

import numpy as np


# ------------------------------------------------------------------
# Tuning
# ------------------------------------------------------------------
TRUNCATE = 4.0   # kernel support in units of sigma, same default as gaussian_filter1d


# ------------------------------------------------------------------
# Core
# ------------------------------------------------------------------

def smooth_time_series(values, times_sec, sigma_sec, out_times_sec=None, truncate=TRUNCATE):
    """
    Smooth values sampled at times_sec and evaluate at out_times_sec.

    Args:
        values: (N,) samples
        times_sec: (N,) sorted sample times in seconds
        sigma_sec: Gaussian kernel width in seconds (> 0)
        out_times_sec: sorted output times, defaults to times_sec

    Returns:
        (len(out_times_sec),) smoothed values
    """
    values = np.asarray(values, dtype=float)
    times_sec = np.asarray(times_sec, dtype=float)
    out_times_sec = times_sec if out_times_sec is None else np.asarray(out_times_sec, dtype=float)
    if sigma_sec <= 0:
        raise ValueError(f"sigma_sec must be positive, got {sigma_sec}")
    if values.shape != times_sec.shape:
        raise ValueError(f"values {values.shape} and times {times_sec.shape} differ in shape")
    if len(values) == 0:
        return np.zeros(len(out_times_sec))

    radius = truncate * sigma_sec
    lo = np.searchsorted(times_sec, out_times_sec - radius, side="left")
    hi = np.searchsorted(times_sec, out_times_sec + radius, side="right")
    # The first sample at or after each output time always contributes.
    anchor = np.clip(np.searchsorted(times_sec, out_times_sec), 0, len(times_sec) - 1)
    lo = np.minimum(lo, anchor)
    hi = np.maximum(hi, anchor + 1)

    weighted = np.zeros(len(out_times_sec))
    total = np.zeros(len(out_times_sec))
    # Vectorised over outputs, looping over the widest neighbourhood.
    for offset in range(int(np.max(hi - lo))):
        j = lo + offset
        valid = j < hi
        jj = np.where(valid, j, 0)
        w = np.exp(-0.5 * ((out_times_sec - times_sec[jj]) / sigma_sec) ** 2) * valid
        weighted += w * values[jj]
        total += w

    # An anchor far outside the kernel can underflow to zero weight.
    empty = total == 0
    total[empty] = 1.0
    weighted[empty] = values[anchor[empty]]
    return weighted / total

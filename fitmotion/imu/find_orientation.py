import logging
import numpy as np

"""
Input: gyro rotations
Output: principal rotation axes, steering proxy (rotation about the vertical axis)
"""

logger = logging.getLogger(__name__)


def _orient_axes(axes):
    """Flip each row so its largest-magnitude component is positive."""
    for i in range(axes.shape[0]):
        if axes[i, np.argmax(np.abs(axes[i]))] < 0:
            axes[i] = -axes[i]
    return axes


def get_principal_rotation_axes(rotations, max_samples=500000):
    """
    Principal axes of the raw 3D angular velocities.

    Rows are unit eigenvectors of the (uncentered) second-moment matrix of
    the rotation vectors, sorted by decreasing eigenvalue. For a vehicle the
    dominant rotation is yaw, so row 0 approximates the vertical axis.

    Args:
        rotations: VectorSeries of angular velocities, must be non-empty
        max_samples: cap on samples used; longer streams are down-sampled
                     with a uniform stride

    Returns:
        (3, 3) orthonormal axis matrix
    """
    if len(rotations) == 0:
        raise ValueError("Cannot compute principal axes of an empty rotation stream")
    if max_samples <= 0:
        raise ValueError(f"max_samples must be positive, got {max_samples}")

    values = rotations.values
    stride = int(np.ceil(len(values) / max_samples))
    if stride > 1:
        values = values[::stride]
        logger.debug(f"Down-sampled {len(rotations)} rotations by {stride} for PCA")

    moment = values.T @ values / len(values)
    eigenvalues, eigenvectors = np.linalg.eigh(moment)
    order = np.argsort(eigenvalues)[::-1]
    axes = _orient_axes(eigenvectors[:, order].T.copy())

    logger.info(f"Principal rotation axis: {axes[0]}, eigenvalues: {eigenvalues[order]}")
    return axes


def get_horizontal_turn_angles(rotations, vertical_axis):
    """Angular velocity component along vertical_axis, one value per rotation."""
    axis = np.asarray(vertical_axis, dtype=float)
    norm = np.linalg.norm(axis)
    if axis.shape != (3,) or norm == 0:
        raise ValueError(f"vertical_axis must be a non-zero 3-vector, got {vertical_axis}")
    return rotations.values @ (axis / norm)

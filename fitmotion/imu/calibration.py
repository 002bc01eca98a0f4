from dataclasses import dataclass
import logging
import numpy as np
from scipy.optimize import minimize

from fitmotion.imu.find_position import CalibrationParams, FindVelocity

"""
Fit accelerometer calibration against GPS speed within one reference window
"""

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LbfgsSettings:
    max_iterations: int = 500
    epsilon: float = 1e-6


@dataclass(frozen=True)
class OptimizationResult:
    x: np.ndarray
    value: float
    iterations: int
    converged: bool
    message: str


def minimize_lbfgs(cost_and_gradient, x0, settings):
    """
    Minimize a smooth function of a flat parameter vector with L-BFGS.

    cost_and_gradient(x) must return (value, gradient). Hitting the iteration
    cap is not an error: the best point found is returned with converged=False.
    """
    result = minimize(
        cost_and_gradient,
        np.asarray(x0, dtype=float),
        jac=True,
        method="L-BFGS-B",
        options={
            "maxiter": int(settings.max_iterations),
            "gtol": settings.epsilon,
            "ftol": 1e-15,
        },
    )
    return OptimizationResult(
        x=result.x,
        value=float(result.fun),
        iterations=int(result.nit),
        converged=bool(result.success),
        message=str(result.message),
    )


class AccelerometerCalibrator:
    """
    Calibrator restricted to the GPS measurements of one sliding window.

    The IMU trajectory is integrated over merged events falling between the
    first and last reference timestamps. The cost is
        SUM_ref (||v(nearest event)|| - speed_ref)^2
    over the 9 parameters [global_bias, body_bias, initial_velocity].
    """

    def __init__(self, reference, merged):
        """
        Args:
            reference: ScalarSeries of GPS speeds for this window
            merged: MergedTimeSeries over the full rotation + acceleration streams
        """
        if len(reference) == 0:
            raise ValueError("Reference interval must contain at least one GPS sample")
        self.reference = reference
        self.merged = merged

        self.span = merged.span(reference.time_usec[0], reference.time_usec[-1])
        self.velocity_model = FindVelocity(merged, self.span) if len(self.span) else None
        if self.velocity_model is not None:
            self.reference_rows = self._nearest_rows(reference.time_usec)

    def has_imu_data(self):
        return self.velocity_model is not None

    def imu_times(self):
        return self.merged

    def _nearest_rows(self, time_usec):
        span_times = self.velocity_model.time_usec
        right = np.clip(np.searchsorted(span_times, time_usec), 0, len(span_times) - 1)
        left = np.clip(right - 1, 0, len(span_times) - 1)
        use_left = np.abs(time_usec - span_times[left]) <= np.abs(span_times[right] - time_usec)
        return np.where(use_left, left, right)

    def _require_imu_data(self):
        if self.velocity_model is None:
            raise ValueError(
                f"No IMU events between {self.reference.time_usec[0]} and "
                f"{self.reference.time_usec[-1]} usec"
            )

    def cost_and_gradient(self, x):
        """Objective value and its analytic gradient for a flat 9-vector."""
        self._require_imu_data()
        params = CalibrationParams.from_vector(x)
        model = self.velocity_model
        rows = self.reference_rows

        v = model.velocities(params, rows)
        speed = np.linalg.norm(v, axis=1)
        residual = speed - self.reference.values
        value = float(np.sum(residual ** 2))

        # d||v||/dv = v / ||v||, taken as zero at v = 0
        safe_speed = np.where(speed > 0, speed, 1.0)
        dv = (2.0 * residual / safe_speed * (speed > 0))[:, None] * v

        grad = np.empty(CalibrationParams.SIZE)
        grad[0:3] = -np.sum(model.elapsed[rows, None] * dv, axis=0)
        grad[3:6] = np.einsum("kij,ki->j", model.body_coef[rows], dv)
        grad[6:9] = np.sum(dv, axis=0)
        return value, grad

    def _velocity_seeds(self):
        """
        Extra starting points: the largest reference speed along +-x, +-y, +-z.

        From the zero start every gradient can stay parallel to one direction
        (e.g. gravity), trapping the fit in a minimum where the velocity passes
        through zero, and a zero integrated velocity gives a zero gradient.
        """
        speed = float(np.max(np.abs(self.reference.values)))
        if speed == 0:
            return []
        seeds = []
        for axis in range(3):
            for sign in (1.0, -1.0):
                initial_velocity = np.zeros(3)
                initial_velocity[axis] = sign * speed
                seeds.append(CalibrationParams(np.zeros(3), np.zeros(3), initial_velocity))
        return seeds

    def fit(self, settings, initial=None):
        """
        Fit calibration parameters.

        Runs L-BFGS from `initial` (zeros by default) and from every velocity
        seed, and keeps the fit with the lowest objective.
        """
        self._require_imu_data()
        starts = [initial if initial is not None else CalibrationParams.zeros()]
        starts += self._velocity_seeds()

        best = None
        for start in starts:
            result = minimize_lbfgs(self.cost_and_gradient, start.to_vector(), settings)
            if best is None or result.value < best.value:
                best = result
        if not best.converged:
            logger.debug(f"L-BFGS stopped without convergence: {best.message}")
        return CalibrationParams.from_vector(best.x), best

    def integrate_trajectory(self, params):
        """Velocity and position for every merged event of the window."""
        self._require_imu_data()
        return self.velocity_model.find_trajectory(params)

"""
Inference parameters for the sliding-window IMU auto-calibration.

Defaults
--------
locations_batch_size      40     GPS samples per window. Long windows get less
                                 accurate because IMU drift accumulates.
locations_shift_step      5      GPS samples to shift the window by between fits.
optimization_iters        500    L-BFGS iteration cap for every window.
post_smoothing_sigma_sec  0.003  Gaussian kernel width for the final smoothing.
residual_warning_m_s      1.0    Windows whose RMS speed residual exceeds this are
                                 logged as warnings.
"""

from dataclasses import dataclass

from fitmotion.imu.calibration import LbfgsSettings


@dataclass
class FitConfig:
    locations_batch_size: int = 40
    locations_shift_step: int = 5
    optimization_iters: int = 500
    post_smoothing_sigma_sec: float = 0.003

    # Cap on rotation samples used for the principal axis estimate.
    pca_max_samples: int = 500000
    # L-BFGS gradient tolerance.
    optimizer_epsilon: float = 1e-6
    # Windows with fewer GPS samples are skipped.
    min_window_locations: int = 2
    # RMS speed residual (m/s) above which a window fit is reported.
    residual_warning_m_s: float = 1.0

    def validate(self):
        """Raise ValueError describing the first invalid parameter."""
        if self.locations_batch_size <= 0:
            raise ValueError(f"locations_batch_size must be positive, got {self.locations_batch_size}")
        if self.locations_shift_step <= 0:
            raise ValueError(f"locations_shift_step must be positive, got {self.locations_shift_step}")
        if self.locations_batch_size < self.locations_shift_step:
            raise ValueError(
                f"locations_batch_size ({self.locations_batch_size}) must not be smaller than "
                f"locations_shift_step ({self.locations_shift_step})"
            )
        if self.optimization_iters <= 0:
            raise ValueError(f"optimization_iters must be positive, got {self.optimization_iters}")
        if self.post_smoothing_sigma_sec <= 0:
            raise ValueError(f"post_smoothing_sigma_sec must be positive, got {self.post_smoothing_sigma_sec}")
        if self.pca_max_samples <= 0:
            raise ValueError(f"pca_max_samples must be positive, got {self.pca_max_samples}")
        if self.optimizer_epsilon <= 0:
            raise ValueError(f"optimizer_epsilon must be positive, got {self.optimizer_epsilon}")
        if self.min_window_locations < 1:
            raise ValueError(f"min_window_locations must be at least 1, got {self.min_window_locations}")
        if self.residual_warning_m_s <= 0:
            raise ValueError(f"residual_warning_m_s must be positive, got {self.residual_warning_m_s}")
        return self

    def lbfgs_settings(self):
        """Optimizer settings shared, unchanged, by every window."""
        return LbfgsSettings(max_iterations=int(self.optimization_iters),
                             epsilon=self.optimizer_epsilon)

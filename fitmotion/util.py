import logging
from typing import Dict, List, Optional, Tuple

import matplotlib
import matplotlib.pyplot as plt
import numpy as np

from fitmotion.timeseries import USEC_TO_SEC

logger = logging.getLogger(__name__)


class FitPlotter:
    """
    Stacked time plots of the fit results.

    Usage:
        plotter = FitPlotter(t0_usec=result.steering_time_usec[0])
        plotter.add_subplot("velocity", title="Speed", ylabel="m/s")
        plotter.plot_data("velocity", result.velocity_time_usec, result.velocity, label="IMU")
        plotter.show("fit.png", display=False)
    """

    def __init__(self, t0_usec: int = 0, figsize: Tuple[int, int] = (12, 8)):
        self.t0_usec = int(t0_usec)
        self.figsize = figsize
        self.fig = None
        self.axes = {}
        self.subplot_configs: Dict[str, dict] = {}
        self.data_storage: Dict[str, List[dict]] = {}

    def add_subplot(self, name: str, title: str = "", ylabel: str = ""):
        """Add a subplot row; rows are stacked in insertion order."""
        self.subplot_configs[name] = {'title': title, 'ylabel': ylabel}
        self.data_storage[name] = []

    def plot_data(self,
                  subplot_name: str,
                  time_usec: np.ndarray,
                  y_data: np.ndarray,
                  label: str = "",
                  color: Optional[str] = None,
                  linestyle: str = '-',
                  marker: Optional[str] = None,
                  alpha: float = 1.0):
        if subplot_name not in self.subplot_configs:
            raise ValueError(f"Subplot '{subplot_name}' not configured. Add it first with add_subplot()")
        if len(time_usec) != len(y_data):
            raise ValueError(f"{len(time_usec)} timestamps but {len(y_data)} values for '{label}'")

        self.data_storage[subplot_name].append({
            'x_data': (np.asarray(time_usec, dtype=np.int64) - self.t0_usec) * USEC_TO_SEC,
            'y_data': np.asarray(y_data),
            'label': label,
            'color': color,
            'linestyle': linestyle,
            'marker': marker,
            'alpha': alpha,
        })

    def plot_all(self):
        if not self.subplot_configs:
            raise ValueError("No subplots configured")
        rows = len(self.subplot_configs)
        self.fig, axes_array = plt.subplots(rows, 1, figsize=self.figsize, sharex=True, squeeze=False)

        for row, (name, config) in enumerate(self.subplot_configs.items()):
            ax = axes_array[row, 0]
            self.axes[name] = ax
            for params in self.data_storage[name]:
                plot_kwargs = {k: params[k] for k in ('label', 'color', 'linestyle', 'marker', 'alpha')
                               if params[k]}
                ax.plot(params['x_data'], params['y_data'], **plot_kwargs)
            ax.set_title(config['title'])
            ax.set_ylabel(config['ylabel'])
            ax.grid(True, alpha=0.3)
            if any(p['label'] for p in self.data_storage[name]):
                ax.legend()
        axes_array[-1, 0].set_xlabel("Time (s)")

    def show(self, save_path: Optional[str] = None, display: bool = True):
        """Render, optionally save, and optionally display the figure."""
        self.plot_all()
        plt.tight_layout()

        if save_path:
            plt.savefig(save_path, dpi=150, bbox_inches='tight')
            logger.info(f"Plot saved to: {save_path}")

        if display and matplotlib.get_backend().lower() != "agg":
            plt.show()

    def close(self):
        if self.fig is not None:
            plt.close(self.fig)
            self.fig = None
            self.axes = {}


def plot_fit_result(result, gps=None, save_path=None, display=True):
    """Steering, raw/smoothed IMU speed and GPS speed on one figure."""
    plotter = FitPlotter(t0_usec=result.steering_time_usec[0])
    plotter.add_subplot("steering", "Horizontal turn rate", "rad/s")
    plotter.add_subplot("velocity", "Speed", "m/s")
    plotter.add_subplot("counts", "Windows per IMU event", "count")

    plotter.plot_data("steering", result.steering_time_usec, result.steering, "steering", "tab:green")
    plotter.plot_data("velocity", result.velocity_time_usec, result.averaged_velocity,
                      "averaged", "tab:blue", alpha=0.35)
    plotter.plot_data("velocity", result.velocity_time_usec, result.velocity, "smoothed", "tab:orange")
    if gps is not None:
        plotter.plot_data("velocity", gps.time_usec, gps.values, "GPS", "black",
                          linestyle='none', marker='.')
    plotter.plot_data("counts", result.velocity_time_usec, result.estimate_counts, "", "tab:gray")

    plotter.show(save_path, display=display)
    return plotter

from pathlib import Path
import json
import logging
import numpy as np

from fitmotion.timeseries import ScalarSeries, VectorSeries

logger = logging.getLogger(__name__)

# JSON field names
ROTATIONS = "rotations"
ACCELERATIONS = "accelerations"
LOCATIONS = "locations"
STEERING = "steering"
VELOCITIES = "velocities"
TIME_USEC = "time_usec"
SPEED_M_S = "speed_m_s"
ANGULAR_VELOCITY = "angular_velocity"


def _load_entries(path, field_name):
    with open(path, "r") as f:
        root = json.load(f)
    if field_name not in root:
        raise ValueError(f"{path}: missing top-level field '{field_name}'")
    entries = root[field_name]
    if not entries:
        raise ValueError(f"{path}: '{field_name}' list is empty")
    return entries


def read_timestamped_3d_data(path, field_name):
    """Read [{x, y, z, time_usec}, ...] under field_name into a VectorSeries."""
    entries = _load_entries(path, field_name)
    try:
        values = np.array([[float(e["x"]), float(e["y"]), float(e["z"])] for e in entries])
        times = np.array([int(e[TIME_USEC]) for e in entries], dtype=np.int64)
    except KeyError as e:
        raise ValueError(f"{path}: entry in '{field_name}' is missing field {e}") from e
    logger.info(f"Loaded {len(entries)} {field_name} from {path}")
    return VectorSeries(values, times)


def read_rotations(path):
    return read_timestamped_3d_data(path, ROTATIONS)


def read_accelerations(path):
    return read_timestamped_3d_data(path, ACCELERATIONS)


def read_gps_velocities(path):
    """Read GPS-derived absolute speeds from a locations JSON."""
    entries = _load_entries(path, LOCATIONS)
    try:
        speeds = np.array([float(e[SPEED_M_S]) for e in entries])
        times = np.array([int(e[TIME_USEC]) for e in entries], dtype=np.int64)
    except KeyError as e:
        raise ValueError(f"{path}: location entry is missing field {e}") from e
    logger.info(f"Loaded {len(entries)} {LOCATIONS} from {path}")
    return ScalarSeries(speeds, times)


def write_timestamped_real_data(time_usec, values, path, list_name, value_name):
    """Write {list_name: [{time_usec, value_name}, ...]} to path."""
    if len(time_usec) != len(values):
        raise RuntimeError(f"{len(time_usec)} timestamps but {len(values)} values for {list_name}")
    data = {
        list_name: [
            {TIME_USEC: int(t), value_name: float(v)}
            for t, v in zip(time_usec, values)
        ]
    }
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(data, f, indent=2)
    logger.info(f"Saved {len(values)} {list_name} to {path}")

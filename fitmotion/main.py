#!/usr/bin/env python3
"""
Auto-calibrate smartphone IMU data against GPS speed and write out:
  - timestamped absolute velocities integrated from the calibrated accelerometer
  - rotations in the inferred horizontal plane (steering proxy)

Usage:
    fitmotion --rotations_json rotations.json --accelerations_json accelerations.json \\
        --locations_json locations.json --velocities_out_json velocities.json \\
        --steering_out_json steering.json
"""

import argparse
import logging
import sys

from fitmotion.fit_config import FitConfig
from fitmotion.fit_motion import fit_motion
from fitmotion import reader

logger = logging.getLogger(__name__)


def _setup_logging(verbose=False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )


def build_parser():
    defaults = FitConfig()
    parser = argparse.ArgumentParser(
        description="IMU auto-calibration and velocity integration using GPS speed references",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    input_group = parser.add_argument_group('Inputs')
    input_group.add_argument('--rotations_json', required=True,
                             help='JSON file with raw timestamped 3D rotations from the gyroscope')
    input_group.add_argument('--accelerations_json', required=True,
                             help='JSON file with raw timestamped 3D accelerations. Gravity need not be removed')
    input_group.add_argument('--locations_json', required=True,
                             help='JSON file with GPS locations and derived absolute speeds')

    output_group = parser.add_argument_group('Outputs')
    output_group.add_argument('--velocities_out_json', required=True,
                              help='JSON file to write timestamped absolute velocities to')
    output_group.add_argument('--steering_out_json', required=True,
                              help='JSON file to write rotations in the inferred horizontal plane to')
    output_group.add_argument('--plot', default=None,
                              help='Optional PNG path for a diagnostic plot')

    params_group = parser.add_argument_group('Inference parameters')
    params_group.add_argument('--locations_batch_size', type=int, default=defaults.locations_batch_size,
                              help='Sliding window size in GPS measurements')
    params_group.add_argument('--locations_shift_step', type=int, default=defaults.locations_shift_step,
                              help='Step in GPS measurements between subsequent windows')
    params_group.add_argument('--optimization_iters', type=int, default=defaults.optimization_iters,
                              help='Max L-BFGS iterations for every calibration run')
    params_group.add_argument('--post_smoothing_sigma_sec', type=float,
                              default=defaults.post_smoothing_sigma_sec,
                              help='Gaussian kernel width (seconds) for smoothing the integrated velocities')

    parser.add_argument('--verbose', '-v', action='store_true', help='Enable debug logging')
    return parser


def run(args):
    config = FitConfig(
        locations_batch_size=args.locations_batch_size,
        locations_shift_step=args.locations_shift_step,
        optimization_iters=args.optimization_iters,
        post_smoothing_sigma_sec=args.post_smoothing_sigma_sec,
    ).validate()

    rotations = reader.read_rotations(args.rotations_json)
    accelerations = reader.read_accelerations(args.accelerations_json)
    gps = reader.read_gps_velocities(args.locations_json)

    result = fit_motion(rotations, accelerations, gps, config)

    # Both outputs are written only once everything is computed.
    reader.write_timestamped_real_data(result.steering_time_usec, result.steering,
                                       args.steering_out_json, reader.STEERING,
                                       reader.ANGULAR_VELOCITY)
    reader.write_timestamped_real_data(result.velocity_time_usec, result.velocity,
                                       args.velocities_out_json, reader.VELOCITIES,
                                       reader.SPEED_M_S)

    if args.plot:
        from fitmotion.util import plot_fit_result
        plot_fit_result(result, gps, save_path=args.plot, display=False).close()
    return result


def main(argv=None):
    args = build_parser().parse_args(argv)
    _setup_logging(args.verbose)
    try:
        run(args)
    except (ValueError, RuntimeError, OSError) as e:
        logger.error(f"fitmotion failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

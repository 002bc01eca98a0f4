import unittest

import numpy as np
from scipy.spatial.transform import Rotation

from fitmotion.timeseries import MergedTimeSeries, ScalarSeries, VectorSeries
from synthetic import make_streams


class TestSeries(unittest.TestCase):

    def test_vector_series_rejects_bad_shape(self):
        with self.assertRaises(ValueError):
            VectorSeries(np.zeros((3, 2)), [0, 1, 2])

    def test_vector_series_rejects_unsorted_times(self):
        with self.assertRaises(ValueError):
            VectorSeries(np.zeros((3, 3)), [0, 2, 1])

    def test_duplicate_timestamps_are_kept(self):
        series = VectorSeries(np.arange(9.0).reshape(3, 3), [0, 5, 5])
        self.assertEqual(len(series), 3)

    def test_scalar_series_slicing(self):
        gps = ScalarSeries([1.0, 2.0, 3.0, 4.0], [0, 10, 20, 30])
        window = gps[1:3]
        np.testing.assert_array_equal(window.values, [2.0, 3.0])
        np.testing.assert_array_equal(window.time_usec, [10, 20])

    def test_scalar_series_length_mismatch(self):
        with self.assertRaises(ValueError):
            ScalarSeries([1.0, 2.0], [0])


class TestMergedTimeSeries(unittest.TestCase):

    def setUp(self):
        self.rotations = VectorSeries([[1, 0, 0], [2, 0, 0], [3, 0, 0]], [0, 20, 40])
        self.accelerations = VectorSeries([[0, 1, 0], [0, 2, 0]], [10, 20])
        self.merged = MergedTimeSeries(self.rotations, self.accelerations)

    def test_every_sample_appears_once_in_time_order(self):
        self.assertEqual(len(self.merged), 5)
        self.assertTrue(np.all(np.diff(self.merged.time_usec) >= 0))
        rot = sorted(self.merged.source_index[self.merged.is_rotation])
        acc = sorted(self.merged.source_index[~self.merged.is_rotation])
        self.assertEqual(rot, [0, 1, 2])
        self.assertEqual(acc, [0, 1])

    def test_rotation_comes_first_on_equal_timestamps(self):
        np.testing.assert_array_equal(self.merged.time_usec, [0, 10, 20, 20, 40])
        np.testing.assert_array_equal(self.merged.is_rotation, [True, False, True, False, True])

    def test_sample_and_hold(self):
        np.testing.assert_array_equal(self.merged.accel[:, 1], [0, 1, 1, 2, 2])
        np.testing.assert_array_equal(self.merged.omega[:, 0], [1, 1, 2, 2, 3])

    def test_step_durations(self):
        np.testing.assert_allclose(self.merged.dt_sec, [10e-6, 10e-6, 0.0, 20e-6, 0.0])

    def test_merged_event_time(self):
        self.assertEqual(self.merged.merged_event_time_usec(3), 20)

    def test_span_is_closed_interval(self):
        self.assertEqual(list(self.merged.span(10, 20)), [1, 2, 3])
        self.assertEqual(list(self.merged.span(41, 50)), [])

    def test_constant_yaw_rate_orientation(self):
        rotations, accelerations, _ = make_streams(duration_sec=5.0, yaw_rate=0.3)
        merged = MergedTimeSeries(rotations, accelerations)
        t = (merged.time_usec - merged.time_usec[0]) * 1e-6
        expected = Rotation.from_rotvec(np.outer(t, [0, 0, 0.3])).as_matrix()
        np.testing.assert_allclose(merged.orientation, expected, atol=1e-9)

    def test_orientation_matches_sequential_product(self):
        rng = np.random.default_rng(3)
        times = np.cumsum(rng.integers(1000, 60000, size=300))
        rotations = VectorSeries(rng.normal(scale=2.0, size=(300, 3)), times)
        accelerations = VectorSeries(np.zeros((150, 3)), times[::2] + 500)
        merged = MergedTimeSeries(rotations, accelerations)

        steps = Rotation.from_rotvec(merged.omega * merged.dt_sec[:, None]).as_matrix()
        expected = np.eye(3)
        for k in range(len(merged)):
            np.testing.assert_allclose(merged.orientation[k], expected, atol=1e-9)
            expected = expected @ steps[k]

    def test_two_event_orientation(self):
        merged = MergedTimeSeries(VectorSeries([[0, 0, 1]], [5]), VectorSeries([[0, 0, 9.8]], [7]))
        self.assertEqual(len(merged.orientation), 2)
        np.testing.assert_array_equal(merged.orientation[0], np.eye(3))
        expected = Rotation.from_rotvec([0.0, 0.0, 2e-6]).as_matrix()
        np.testing.assert_allclose(merged.orientation[1], expected, atol=1e-15)

    def test_empty_stream_rejected(self):
        empty = VectorSeries(np.zeros((0, 3)), np.zeros(0, dtype=np.int64))
        with self.assertRaises(ValueError):
            MergedTimeSeries(empty, self.accelerations)


if __name__ == '__main__':
    unittest.main()

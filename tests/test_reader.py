import json
import os
import shutil
import tempfile
import unittest

import numpy as np

from fitmotion import reader


class TestReader(unittest.TestCase):

    def setUp(self):
        self.tmp_dir = tempfile.mkdtemp(prefix='fitmotion_reader_')

    def tearDown(self):
        shutil.rmtree(self.tmp_dir)

    def _write(self, name, data):
        path = os.path.join(self.tmp_dir, name)
        with open(path, 'w') as f:
            json.dump(data, f)
        return path

    def test_read_rotations(self):
        path = self._write('rotations.json', {'rotations': [
            {'x': 0.1, 'y': 0.2, 'z': 0.3, 'time_usec': 100},
            {'x': -0.1, 'y': 0.0, 'z': 1.0, 'time_usec': 200},
        ]})
        rotations = reader.read_rotations(path)
        np.testing.assert_allclose(rotations.values, [[0.1, 0.2, 0.3], [-0.1, 0.0, 1.0]])
        np.testing.assert_array_equal(rotations.time_usec, [100, 200])

    def test_read_gps_ignores_extra_fields(self):
        path = self._write('locations.json', {'locations': [
            {'latitude': 55.7, 'longitude': 37.6, 'speed_m_s': 12.5, 'time_usec': 1000},
        ]})
        gps = reader.read_gps_velocities(path)
        np.testing.assert_allclose(gps.values, [12.5])
        np.testing.assert_array_equal(gps.time_usec, [1000])

    def test_empty_list_rejected(self):
        path = self._write('accelerations.json', {'accelerations': []})
        with self.assertRaisesRegex(ValueError, 'empty'):
            reader.read_accelerations(path)

    def test_missing_top_level_field(self):
        path = self._write('accelerations.json', {'rotations': [{'x': 0, 'y': 0, 'z': 0, 'time_usec': 0}]})
        with self.assertRaises(ValueError):
            reader.read_accelerations(path)

    def test_missing_entry_field(self):
        path = self._write('locations.json', {'locations': [{'time_usec': 0}]})
        with self.assertRaisesRegex(ValueError, 'speed_m_s'):
            reader.read_gps_velocities(path)

    def test_write_timestamped_real_data(self):
        path = os.path.join(self.tmp_dir, 'out', 'steering.json')
        reader.write_timestamped_real_data(np.array([5, 10]), np.array([0.5, -0.25]), path,
                                           reader.STEERING, reader.ANGULAR_VELOCITY)
        with open(path) as f:
            data = json.load(f)
        self.assertEqual(data, {'steering': [
            {'time_usec': 5, 'angular_velocity': 0.5},
            {'time_usec': 10, 'angular_velocity': -0.25},
        ]})

    def test_write_length_mismatch(self):
        path = os.path.join(self.tmp_dir, 'velocities.json')
        with self.assertRaises(RuntimeError):
            reader.write_timestamped_real_data([1, 2], [1.0], path, reader.VELOCITIES, reader.SPEED_M_S)
        self.assertFalse(os.path.exists(path))


if __name__ == '__main__':
    unittest.main()

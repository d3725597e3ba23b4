import unittest

from partsmith.parameters import ParameterSchema, enum_parameter, parameter
from partsmith.rounding import (
    apply_nozzle_snapping, closest_nozzle_size, is_multiple_of, round_all,
    round_parameter, round_to_resolution, snap_to_multiple, snap_to_nozzle,
)


class TestRounding(unittest.TestCase):
    def test_01_resolution(self):
        self.assertEqual(round_to_resolution(1.234), 1.2)
        self.assertEqual(round_to_resolution(1.26), 1.3)
        self.assertEqual(round_to_resolution(7.0, 0.5), 7.0)

    def test_02_multiple(self):
        self.assertEqual(snap_to_multiple(2.7, 0.5), 2.5)
        self.assertEqual(snap_to_multiple(2.8, 0.5), 3.0)
        self.assertEqual(snap_to_multiple(0.1 + 0.2, 0.1), 0.3)

    def test_03_nozzle(self):
        self.assertEqual(snap_to_nozzle(1.3), 1.2)
        self.assertEqual(snap_to_nozzle(1.3, 0.6), 1.2)
        self.assertEqual(closest_nozzle_size(0.46), 0.5)
        self.assertEqual(closest_nozzle_size(5), 1.0)
        snapped = apply_nozzle_snapping({"wall": 1.3, "length": 40.3}, ["wall", "missing"])
        self.assertEqual(snapped, {"wall": 1.2, "length": 40.3})

    def test_04_round_parameter(self):
        definition = parameter("d", 10, 100, 32, 0.5, precision=1)
        self.assertEqual(round_parameter(32.3, definition), 32.5)
        self.assertEqual(round_parameter(120, definition), 100)
        self.assertEqual(round_parameter(3, definition), 10)

        mode = enum_parameter("mode", (0, 1), 0)
        self.assertEqual(round_parameter(0.7, mode), 0.7)

    def test_05_round_all(self):
        schema = ParameterSchema([parameter("d", 10, 100, 32, 0.5)])
        self.assertEqual(round_all({"d": 32.74, "extra": 1.234}, schema), {"d": 32.5, "extra": 1.2})

    def test_06_is_multiple_of(self):
        self.assertTrue(is_multiple_of(1.5, 0.5))
        self.assertTrue(is_multiple_of(0.3, 0.1))
        self.assertFalse(is_multiple_of(1.55, 0.5))


if __name__ == "__main__":
    unittest.main()

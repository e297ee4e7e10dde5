#!/usr/bin/env python3
"""Test suite for polar gridding"""

import unittest

import numpy as np
import pytest

from pymultipath.multipath.gridder import empty_grid, parse_cell_size, polar_gridder


class TestPolarGridder(unittest.TestCase):
    """Test binning of scattered sky samples"""

    def test_grid_layout(self):
        grid = polar_gridder([0.0], [45.0], [1.0], (4.0, 1.0), el_min=0.0)
        self.assertEqual(grid.shape, (90, 90))
        self.assertAlmostEqual(grid.az_grid[0], -178.0)
        self.assertAlmostEqual(grid.az_grid[-1], 178.0)
        self.assertAlmostEqual(grid.el_grid[0], 89.5)
        self.assertAlmostEqual(grid.el_grid[-1], 0.5)

    def test_mean_and_count(self):
        grid = polar_gridder([10.1, 10.9, 100.0], [30.2, 30.8, 60.0], [1.0, 3.0, -2.0], 1.0, el_min=0.0)
        row = np.argmin(np.abs(grid.el_grid - 30.5))
        col = np.argmin(np.abs(grid.az_grid - 10.5))
        self.assertEqual(grid.count_map[row, col], 2)
        self.assertAlmostEqual(grid.data_map[row, col], 2.0)
        self.assertEqual(grid.count_map.sum(), 3)
        # empty cells
        self.assertEqual(grid.count_map[0, 0], 0)
        self.assertTrue(np.isnan(grid.data_map[0, 0]))

    def test_mass_conservation(self):
        """Every finite sample inside the sky lands in exactly one cell"""
        rng = np.random.default_rng(1)
        n = 5000
        az = rng.uniform(-720.0, 720.0, n)
        el = rng.uniform(-5.0, 95.0, n)
        values = rng.normal(size=n)
        values[::17] = np.nan
        grid = polar_gridder(az, el, values, (4.0, 1.0), el_min=0.0)
        inside = np.isfinite(values) & (el >= 0.0) & (el <= 90.0)
        self.assertEqual(grid.count_map.sum(), inside.sum())
        filled = grid.count_map > 0
        self.assertAlmostEqual(np.sum(grid.data_map[filled] * grid.count_map[filled]),
                               np.sum(values[inside]), places=8)

    def test_azimuth_wrapping(self):
        grid_a = polar_gridder([350.0], [20.0], [1.0], 1.0, el_min=0.0)
        grid_b = polar_gridder([-10.0], [20.0], [1.0], 1.0, el_min=0.0)
        np.testing.assert_array_equal(grid_a.count_map, grid_b.count_map)

    def test_zenith_in_top_cell(self):
        grid = polar_gridder([0.0], [90.0], [1.0], 1.0, el_min=0.0)
        self.assertEqual(grid.count_map[0].sum(), 1)

    def test_default_lower_edge(self):
        grid = polar_gridder([0.0, 10.0], [12.3, 50.0], [1.0, 1.0], 1.0)
        self.assertAlmostEqual(grid.el_min, 12.0)
        self.assertAlmostEqual(grid.el_grid[-1], 12.5)

    def test_resample(self):
        grid = polar_gridder([1.0], [45.2], [7.0], (4.0, 1.0), grid_step=0.5, el_min=0.0)
        self.assertEqual(grid.shape, (180, 720))
        # one 4 x 1 cell covers 8 x 2 nodes
        self.assertEqual(np.sum(np.isfinite(grid.data_map)), 16)
        np.testing.assert_array_equal(grid.data_map[np.isfinite(grid.data_map)], 7.0)
        np.testing.assert_array_equal(grid.az_grid, empty_grid(0.5).az_grid)
        np.testing.assert_array_equal(grid.el_grid, empty_grid(0.5).el_grid)

    def test_values_at(self):
        grid = polar_gridder([0.5, 0.5], [10.5, 11.5], [1.0, 2.0], 1.0, el_min=0.0)
        np.testing.assert_array_equal(grid.values_at([0.2, 0.7], [10.1, 11.9]), [1.0, 2.0])
        self.assertTrue(np.isnan(grid.values_at([0.5], [-1.0])[0]))

    def test_size_mismatch(self):
        with self.assertRaises(ValueError):
            polar_gridder([0.0, 1.0], [10.0], [1.0], 1.0)


@pytest.mark.parametrize("cell_size, expected", [
    (1.0, (1.0, 1.0)),
    ((4.0, 1.0), (4.0, 1.0)),
    ([360, 1], (360.0, 1.0)),
])
def test_parse_cell_size(cell_size, expected):
    assert parse_cell_size(cell_size) == expected


def test_parse_cell_size_rejects_non_positive():
    with pytest.raises(ValueError):
        parse_cell_size((0.0, 1.0))


if __name__ == '__main__':
    unittest.main()

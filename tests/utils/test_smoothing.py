#!/usr/bin/env python3
"""Test suite for residual time smoothing"""

import unittest

import numpy as np

from pymultipath.utils.smoothing import smooth_columns


class TestSmoothColumns(unittest.TestCase):
    """Test the per arc Savitzky-Golay smoother"""

    def test_quadratic_is_preserved(self):
        """A quadratic in time is reproduced exactly by the local fit"""
        t = np.arange(50, dtype=float)
        values = np.column_stack((0.01 * t ** 2 - t, 3.0 + 0.5 * t))
        np.testing.assert_allclose(smooth_columns(values, 11), values, atol=1e-9)

    def test_noise_is_reduced(self):
        rng = np.random.default_rng(42)
        noise = rng.normal(0.0, 1.0, (400, 1))
        smoothed = smooth_columns(noise, 31)
        self.assertLess(np.std(smoothed), 0.5 * np.std(noise))

    def test_nan_gaps_are_kept(self):
        values = np.ones((30, 1))
        values[10:12, 0] = np.nan
        smoothed = smooth_columns(values, 7)
        self.assertTrue(np.all(np.isnan(smoothed[10:12, 0])))
        np.testing.assert_allclose(smoothed[:10, 0], 1.0)
        np.testing.assert_allclose(smoothed[12:, 0], 1.0)

    def test_short_arcs_untouched(self):
        values = np.array([1.0, 5.0, np.nan, 2.0, 9.0, np.nan])
        np.testing.assert_array_equal(smooth_columns(values, 11), values)

    def test_one_dimensional_input(self):
        values = np.linspace(0.0, 1.0, 21)
        smoothed = smooth_columns(values, 5)
        self.assertEqual(smoothed.shape, values.shape)
        np.testing.assert_allclose(smoothed, values, atol=1e-12)


if __name__ == '__main__':
    unittest.main()

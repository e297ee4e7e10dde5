#!/usr/bin/env python3
"""Test suite for the polar outlier rejection"""

import unittest

import numpy as np

from pymultipath.core.constants import MAD_TO_STD
from pymultipath.multipath.cleaner import accept, polar_cleaner


def band_samples(extra):
    """One elevation band with median 0 and MAD 1, plus the extra samples"""
    values = np.concatenate(([-1.0] * 5, [0.0] * 10, [1.0] * 5, np.atleast_1d(extra)))
    az = np.linspace(-170.0, 170.0, values.size)
    el = np.full(values.size, 45.5)
    return az, el, values


def spread_samples(n=50):
    """One elevation band of evenly spread values (median 0, MAD 0.5)"""
    values = np.linspace(-1.0, 1.0, n)
    return np.linspace(-170.0, 170.0, n), np.full(n, 20.5), values


class TestPolarCleaner(unittest.TestCase):
    """Test the robust per cell threshold"""

    def test_threshold_is_inclusive(self):
        threshold = 4.0 * MAD_TO_STD * 1.0
        az, el, values = band_samples(threshold)
        keep = polar_cleaner(az, el, values, (360.0, 1.0), 4.0)
        self.assertTrue(np.all(keep))

    def test_beyond_threshold_is_rejected(self):
        threshold = 4.0 * MAD_TO_STD * 1.0
        az, el, values = band_samples(np.nextafter(threshold, np.inf))
        keep = polar_cleaner(az, el, values, (360.0, 1.0), 4.0)
        self.assertFalse(keep[-1])
        self.assertTrue(np.all(keep[:-1]))

    def test_cells_are_independent(self):
        """A spike is judged against its own elevation band only"""
        az, el, values = band_samples(10.0)
        az2, el2, values2 = band_samples(0.5)
        el2[:] = 60.5
        values2 = values2 * 100.0
        keep = polar_cleaner(np.concatenate((az, az2)), np.concatenate((el, el2)),
                             np.concatenate((values, values2)))
        self.assertFalse(keep[values.size - 1])
        self.assertTrue(np.all(keep[values.size:]))

    def test_non_finite_rejected(self):
        az, el, values = spread_samples()
        values[0] = np.nan
        el[1] = np.nan
        keep = polar_cleaner(az, el, values)
        self.assertFalse(keep[0])
        self.assertFalse(keep[1])
        self.assertTrue(np.all(keep[2:]))

    def test_constant_data_kept(self):
        keep = polar_cleaner(np.zeros(10), np.full(10, 30.0), np.zeros(10))
        self.assertTrue(np.all(keep))

    def test_empty_input(self):
        self.assertEqual(polar_cleaner([], [], []).size, 0)


def test_accept_combines_both_tests():
    az, el, res = spread_samples()
    res_smooth = res.copy()
    res_smooth[3] = 50.0
    keep = accept(az, el, res, res_smooth)
    assert not keep[3]
    assert keep.sum() == res.size - 1


if __name__ == '__main__':
    unittest.main()

#!/usr/bin/env python3
"""Test suite for the residual store"""

import unittest

import numpy as np
import pytest

from pymultipath.core.time import EpochTimes, GNSSTime
from pymultipath.residuals.store import RES_TYPE, ResidualStore, ResidualType


def make_store(seconds, codes, prns, value=None, res_type=ResidualType.UNCOMBINED_ENGINE, rate=None):
    """Store filled with the given columns (value defaults to row * 10 + column)"""
    seconds = np.asarray(seconds, dtype=float)
    if value is None:
        value = np.arange(seconds.size)[:, None] * 10.0 + np.arange(len(codes))[None, :]
    store = ResidualStore()
    store.replace(res_type, EpochTimes(seconds, rate), value, prns, codes)
    return store


class TestReplace(unittest.TestCase):
    """Test importing residuals"""

    def test_basic(self):
        store = make_store([0.0, 30.0, 60.0], ['GL1C', 'GL1C'], [1, 2])
        self.assertEqual(store.n_epochs, 3)
        self.assertEqual(store.n_columns, 2)
        self.assertEqual(store.value.shape, (3, 2))
        self.assertEqual(store.columns, [(1, 'GL1C'), (2, 'GL1C')])
        self.assertFalse(store.is_empty())
        self.assertEqual(store.type, ResidualType.UNCOMBINED_ENGINE)

    def test_invalid_columns_are_dropped(self):
        store = make_store([0.0, 30.0], ['GL1C', 'GL9C', 'GL1C'], [1, 1, 40])
        self.assertEqual(store.columns, [(1, 'GL1C')])
        np.testing.assert_array_equal(store.value[:, 0], [0.0, 10.0])

    def test_shape_mismatch(self):
        store = ResidualStore()
        with self.assertRaises(ValueError):
            store.replace(ResidualType.PREPRO, [0.0, 1.0], np.zeros((3, 1)), [1], ['GC1C'])
        with self.assertRaises(ValueError):
            store.replace(ResidualType.PREPRO, [0.0, 1.0], np.zeros((2, 2)), [1], ['GC1C'])
        with self.assertRaises(ValueError):
            store.replace(ResidualType.PREPRO, [0.0, 1.0], np.zeros((2, 2)), [1, 2], ['GC1C'])

    def test_duplicated_columns(self):
        with self.assertRaises(ValueError):
            make_store([0.0], ['GL1C', 'GL1C'], [3, 3])

    def test_non_increasing_epochs(self):
        with self.assertRaises(ValueError):
            make_store([0.0, 0.0], ['GL1C'], [3])

    def test_reset(self):
        store = make_store([0.0], ['GL1C'], [3])
        store.reset()
        self.assertTrue(store.is_empty())
        self.assertEqual(store.type, ResidualType.NONE)
        self.assertEqual(store.value.shape, (0, 0))

    def test_import_alias(self):
        store = ResidualStore()
        store.import_residuals(ResidualType.PREPRO, [0.0], np.zeros((1, 1)), [1], ['GC1C'], rec_coo=[1.0, 2.0, 3.0])
        np.testing.assert_array_equal(store.rec_coo, [1.0, 2.0, 3.0])


class TestRemoveAndTrim(unittest.TestCase):
    """Test epoch and column removal"""

    def setUp(self):
        self.store = make_store(np.arange(6) * 30.0, ['GL1C', 'GL2W', 'EL1C'], [1, 1, 11])

    def test_remove_epochs_by_mask(self):
        self.store.remove_epochs(np.array([True, False, False, False, False, True]))
        self.assertEqual(self.store.n_epochs, 4)
        self.assertEqual(self.store.value.shape, (4, 3))
        self.assertEqual(self.store.time.first().to_gps_seconds(), 30.0)

    def test_remove_epochs_by_index(self):
        self.store.remove_epochs([0, 2])
        np.testing.assert_array_equal(self.store.time.gps_seconds, [30.0, 90.0, 120.0, 150.0])

    def test_remove_columns(self):
        self.store.rem_entry([1])
        self.assertEqual(self.store.columns, [(1, 'GL1C'), (11, 'EL1C')])
        self.assertEqual(self.store.value.shape, (6, 2))
        self.assertIsNone(self.store.column_of(1, 'GL2W'))
        self.assertEqual(self.store.column_of(11, 'EL1C'), 1)

    def test_bad_mask_length(self):
        with self.assertRaises(ValueError):
            self.store.remove_epochs(np.array([True, False]))

    def test_trim_to_span(self):
        """Start is inclusive, stop exclusive"""
        self.store.trim_to_span(30.0, 120.0)
        np.testing.assert_array_equal(self.store.time.gps_seconds, [30.0, 60.0, 90.0])

    def test_trim_rounds_limits(self):
        self.store.cut_epochs(GNSSTime.from_gps_seconds(29.0), GNSSTime.from_gps_seconds(61.0))
        np.testing.assert_array_equal(self.store.time.gps_seconds, [30.0])

    def test_trim_empty_store(self):
        store = ResidualStore()
        store.trim_to_span(0.0, 10.0)
        self.assertTrue(store.is_empty())


class TestSelect(unittest.TestCase):
    """Test the residual getters"""

    def test_uncombined_prefers_phase(self):
        store = make_store([0.0, 1.0], ['GC1C', 'GL1C', 'EL5Q', 'GL2W'], [1, 1, 5, 1])
        value, obs_code, prn = store.select()
        np.testing.assert_array_equal(obs_code, ['GL1C', 'EL5Q', 'GL2W'])
        self.assertEqual(value.shape, (2, 3))

        value, obs_code, prn = store.get('G', '2')
        np.testing.assert_array_equal(obs_code, ['GL2W'])
        np.testing.assert_array_equal(prn, [1])

    def test_uncombined_falls_back_to_code(self):
        store = make_store([0.0], ['GC1C', 'GC2W'], [1, 1])
        _, obs_code, _ = store.select('G')
        np.testing.assert_array_equal(obs_code, ['GC1C', 'GC2W'])

    def test_combined_returns_all(self):
        store = make_store([0.0], ['GC1C', 'GL1C'], [1, 1], res_type=ResidualType.PREPRO)
        self.assertEqual(store.select()[0].shape, (1, 2))
        self.assertEqual(store.get_pr_u2()[0].shape, (1, 0))
        value, obs_code, prn, time = store.get_range_residuals('G')
        self.assertEqual(value.shape, (1, 2))
        self.assertEqual(len(time), 1)

    def test_empty_store(self):
        store = ResidualStore()
        value, obs_code, prn = store.select()
        self.assertEqual(value.shape, (0, 0))
        self.assertEqual(obs_code.size, 0)
        self.assertTrue(np.isnan(store.get_std()))

    def test_select_is_idempotent(self):
        store = make_store([0.0, 1.0], ['GL1C', 'EL1C'], [1, 2])
        first = store.select('E')
        second = store.select('E')
        np.testing.assert_array_equal(first[0], second[0])
        np.testing.assert_array_equal(first[1], second[1])

    def test_standard_deviation(self):
        value = np.array([[1.0, np.nan], [3.0, 1.0], [np.nan, 3.0]])
        store = make_store([0.0, 1.0, 2.0], ['GL1C', 'GL2W'], [1, 1], value=value)
        self.assertAlmostEqual(store.standard_deviation(), 1.0)

    def test_zero_is_a_value(self):
        store = make_store([0.0, 1.0], ['GL1C'], [1], value=np.zeros((2, 1)))
        self.assertEqual(store.get_std(), 0.0)
        self.assertEqual(len(store.to_dataframe()), 2)


class TestSatellites(unittest.TestCase):
    """Test satellite bookkeeping"""

    def test_satellite_names_order(self):
        store = make_store([0.0], ['EL1C', 'GL1C', 'GL2W', 'RL1C'], [11, 12, 3, 4])
        self.assertEqual(store.satellite_names(), ['G03', 'G12', 'R04', 'E11'])

    def test_azimuth_elevation(self):
        store = make_store([0.0, 30.0], ['GL1C', 'EL1C'], [1, 2])

        def provider(rec_coo, times, sat_names):
            n = len(times)
            return np.full((n, len(sat_names)), 90.0), np.full((n, len(sat_names)), 45.0)

        az, el, names = store.get_azimuth_elevation(provider)
        self.assertEqual(names, ['G01', 'E02'])
        self.assertEqual(az.shape, (2, 2))

        with self.assertRaises(ValueError):
            store.get_azimuth_elevation(lambda rec_coo, times, names: (np.zeros((1, 1)), np.zeros((1, 1))))

    def test_to_dataframe(self):
        value = np.array([[0.5, np.nan], [np.nan, -0.5]])
        store = make_store([0.0, 30.0], ['GL1C', 'EL1C'], [1, 2], value=value)
        df = store.to_dataframe()
        self.assertEqual(list(df.columns), ['gps_seconds', 'sat', 'obs_code', 'residual'])
        self.assertEqual(df['sat'].tolist(), ['G01', 'E02'])
        np.testing.assert_array_equal(df['residual'], [0.5, -0.5])


def test_copy_is_independent():
    store = make_store([0.0, 30.0], ['GL1C'], [1])
    snapshot = store.copy()
    store.value[0, 0] = 99.0
    store.remove_epochs([1])
    assert snapshot.value[0, 0] == 0.0
    assert snapshot.n_epochs == 2


def test_repr_names_the_type():
    store = make_store([0.0], ['GL1C'], [1])
    assert RES_TYPE[ResidualType.UNCOMBINED_ENGINE] in repr(store)


@pytest.mark.parametrize("res_type", list(ResidualType))
def test_is_empty_without_epochs(res_type):
    store = ResidualStore()
    store.replace(res_type, [], np.zeros((0, 1)), [1], ['GL1C'])
    assert store.is_empty()


if __name__ == '__main__':
    unittest.main()

#!/usr/bin/env python3
"""Test suite for merging residual batches"""

import unittest

import numpy as np

from pymultipath.core.time import EpochTimes
from pymultipath.residuals.store import ResidualStore, ResidualType


def batch(seconds, codes, prns, fill, res_type=ResidualType.UNCOMBINED_ENGINE, rec_coo=None, rate=None):
    store = ResidualStore()
    store.replace(res_type, EpochTimes(seconds, rate), np.full((len(seconds), len(codes)), float(fill)),
                  prns, codes, rec_coo)
    return store


class TestMerge(unittest.TestCase):
    """Test the merge of overlapping time series"""

    def test_merge_into_empty_store(self):
        store = ResidualStore()
        store.merge(batch([0.0, 30.0], ['GL1C'], [1], 1.0))
        self.assertEqual(store.n_epochs, 2)
        self.assertEqual(store.columns, [(1, 'GL1C')])
        self.assertEqual(store.type, ResidualType.UNCOMBINED_ENGINE)

    def test_merge_empty_is_noop(self):
        store = batch([0.0, 30.0], ['GL1C'], [1], 1.0)
        store.injest(ResidualStore())
        self.assertEqual(store.n_epochs, 2)
        np.testing.assert_array_equal(store.value, [[1.0], [1.0]])

    def test_append_after(self):
        store = batch([0.0, 30.0], ['GL1C'], [1], 1.0)
        store.merge(batch([60.0, 90.0], ['GL1C'], [1], 2.0))
        np.testing.assert_array_equal(store.time.gps_seconds, [0.0, 30.0, 60.0, 90.0])
        np.testing.assert_array_equal(store.value[:, 0], [1.0, 1.0, 2.0, 2.0])

    def test_insert_before(self):
        store = batch([60.0, 90.0], ['GL1C'], [1], 1.0)
        store.merge(batch([0.0, 30.0], ['GL1C'], [1], 2.0))
        np.testing.assert_array_equal(store.time.gps_seconds, [0.0, 30.0, 60.0, 90.0])
        np.testing.assert_array_equal(store.value[:, 0], [2.0, 2.0, 1.0, 1.0])

    def test_insert_in_gap(self):
        store = batch([0.0, 30.0, 120.0, 150.0], ['GL1C'], [1], 1.0)
        store.merge(batch([60.0, 90.0], ['GL1C'], [1], 2.0))
        np.testing.assert_array_equal(store.time.gps_seconds, [0.0, 30.0, 60.0, 90.0, 120.0, 150.0])
        np.testing.assert_array_equal(store.value[:, 0], [1.0, 1.0, 2.0, 2.0, 1.0, 1.0])

    def test_overlap_is_replaced(self):
        """Epochs within the new span are superseded, the others untouched"""
        store = batch(np.arange(6) * 30.0, ['GL1C', 'GL2W'], [1, 1], 1.0)
        store.merge(batch([60.0, 90.0], ['GL1C'], [1], 2.0))
        np.testing.assert_array_equal(store.time.gps_seconds, np.arange(6) * 30.0)
        np.testing.assert_array_equal(store.value[:, 0], [1.0, 1.0, 2.0, 2.0, 1.0, 1.0])
        # the overlapped epochs are fully replaced: missing columns become unset
        self.assertTrue(np.all(np.isnan(store.value[2:4, 1])))
        np.testing.assert_array_equal(store.value[[0, 1, 4, 5], 1], 1.0)

    def test_overlap_uses_nominal_time(self):
        store = batch([0.0, 30.0, 60.0, 90.0], ['GL1C'], [1], 1.0)
        store.merge(batch([29.9, 60.1], ['GL1C'], [1], 2.0, rate=30.0))
        self.assertEqual(store.n_epochs, 4)
        np.testing.assert_array_equal(store.value[:, 0], [1.0, 2.0, 2.0, 1.0])

    def test_jittered_batch_at_large_gps_seconds(self):
        """A few ms of clock jitter on the new epochs replaces exactly the overlapped ones"""
        t0 = 1_300_000_020.0
        store = batch(t0 + np.arange(40) * 30.0, ['GL1C'], [1], 1.0)
        jittered = t0 + 300.0 + np.arange(8) * 30.0 + np.linspace(0.0, 0.005, 8)
        store.merge(batch(jittered, ['GL1C'], [1], 2.0))

        self.assertEqual(store.n_epochs, 40)
        self.assertTrue(store.time.is_strictly_increasing())
        self.assertEqual(np.sum(store.value[:, 0] == 1.0), 32)
        np.testing.assert_array_equal(store.value[10:18, 0], 2.0)
        np.testing.assert_array_equal(store.time.gps_seconds[10:18], jittered)

    def test_batch_at_coarser_rate(self):
        """30 s epochs merged into 1 Hz data only replace the 1 Hz epochs they span"""
        store = batch(np.arange(60.0), ['GL1C'], [1], 1.0)
        store.merge(batch([15.0, 45.0], ['GL1C'], [1], 2.0))

        self.assertEqual(store.n_epochs, 31)
        self.assertTrue(store.time.is_strictly_increasing())
        np.testing.assert_array_equal(store.time.gps_seconds,
                                      np.concatenate([np.arange(15.0), [15.0, 45.0], np.arange(46.0, 60.0)]))
        np.testing.assert_array_equal(store.value[:, 0], [1.0] * 15 + [2.0, 2.0] + [1.0] * 14)

    def test_column_union(self):
        store = batch([0.0, 30.0], ['GL1C', 'GL1C'], [1, 2], 1.0)
        store.merge(batch([60.0], ['EL1C', 'GL1C', 'GL5Q'], [3, 2, 2], 2.0))
        self.assertEqual(store.columns, [(1, 'GL1C'), (2, 'GL1C'), (3, 'EL1C'), (2, 'GL5Q')])
        self.assertEqual(store.value.shape, (3, 4))
        # new columns are unset on the old epochs
        self.assertTrue(np.all(np.isnan(store.value[:2, 2:])))
        # old column absent from the new batch is unset on the new epoch
        self.assertTrue(np.isnan(store.value[2, 0]))
        np.testing.assert_array_equal(store.value[2, 1:], 2.0)

    def test_shape_invariants(self):
        store = ResidualStore()
        for k in range(4):
            store.merge(batch(k * 60.0 + np.array([0.0, 30.0, 60.0]), ['GL1C', 'GC1C'], [k + 1, 1], k))
            self.assertEqual(store.value.shape, (store.n_epochs, store.n_columns))
            self.assertEqual(store.prn.size, store.obs_code.size)
            self.assertTrue(store.time.is_strictly_increasing())
        self.assertEqual(store.n_epochs, 9)
        self.assertEqual(len(set(store.columns)), store.n_columns)

    def test_type_and_position_from_new_batch(self):
        store = batch([0.0], ['GC1C'], [1], 1.0, ResidualType.PREPRO, rec_coo=[1.0, 1.0, 1.0])
        store.merge(batch([30.0], ['GC1C'], [1], 2.0, ResidualType.SINGLE_FREQ_ENGINE, rec_coo=[2.0, 2.0, 2.0]))
        self.assertEqual(store.type, ResidualType.SINGLE_FREQ_ENGINE)
        np.testing.assert_array_equal(store.rec_coo, [2.0, 2.0, 2.0])

    def test_new_batch_is_untouched(self):
        store = batch([0.0, 30.0], ['GL1C'], [1], 1.0)
        new = batch([30.0], ['GL2W'], [1], 2.0)
        store.merge(new)
        new.value[0, 0] = 5.0
        self.assertEqual(store.value[1, 1], 2.0)
        self.assertEqual(new.n_columns, 1)

    def test_append(self):
        store = batch([0.0], ['GL1C'], [1], 1.0)
        store.append(ResidualType.UNCOMBINED_ENGINE, [30.0], np.array([[3.0]]), [1], ['GL1C'])
        np.testing.assert_array_equal(store.value[:, 0], [1.0, 3.0])


if __name__ == '__main__':
    unittest.main()

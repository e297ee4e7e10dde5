# Copyright 2024 inuex35
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Time smoothing of residual matrices"""

import logging

import numpy as np
from scipy.signal import savgol_filter

logger = logging.getLogger(__name__)


def _contiguous_arcs(valid: np.ndarray):
    """Yield (start, stop) of the runs of True in a boolean vector"""
    padded = np.concatenate(([False], valid, [False])).astype(np.int8)
    edges = np.flatnonzero(np.diff(padded))
    return zip(edges[0::2], edges[1::2])


def smooth_columns(values: np.ndarray, window: int, polyorder: int = 2) -> np.ndarray:
    """
    Smooth each column of an epoch x column matrix along time

    A Savitzky-Golay moving polynomial fit is run independently on each
    contiguous arc of finite values; NaN cells stay NaN.

    Parameters
    ----------
    values : np.ndarray
        Matrix [n_epoch x n_col], NaN marks missing data
    window : int
        Window length in epochs (made odd, shrunk to the arc length)
    polyorder : int
        Degree of the local polynomial

    Returns
    -------
    np.ndarray
        Smoothed matrix, same shape as values
    """
    values = np.asarray(values, dtype=float)
    squeeze = values.ndim == 1
    if squeeze:
        values = values[:, None]
    smoothed = values.copy()

    window = max(int(window), 1)
    for col in range(values.shape[1]):
        for start, stop in _contiguous_arcs(np.isfinite(values[:, col])):
            n = stop - start
            win = min(window, n)
            if win % 2 == 0:
                win -= 1
            if win <= polyorder:
                continue
            smoothed[start:stop, col] = savgol_filter(values[start:stop, col], win, polyorder, mode='interp')

    return smoothed[:, 0] if squeeze else smoothed

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

"""
Outlier rejection of sky distributed residuals.

The samples are grouped in polar grid cells (by default one elevation band
of 1 degree spanning the whole azimuth circle); inside each cell a sample is
rejected when its distance from the cell median exceeds ``n_sigma`` robust
standard deviations (MAD based). The boundary is inclusive: a sample lying
exactly at the threshold is kept.
"""

import logging

import numpy as np
import pandas as pd

from ..core.constants import MAD_TO_STD, MP_CLEAN_CELL, MP_CLEAN_N_SIGMA
from .gridder import CellSize, empty_grid, parse_cell_size

logger = logging.getLogger(__name__)


def polar_cleaner(az, el, values, cell_size: CellSize = MP_CLEAN_CELL,
                  n_sigma: float = MP_CLEAN_N_SIGMA) -> np.ndarray:
    """
    Flag the samples consistent with their sky neighbourhood

    Parameters
    ----------
    az, el : array_like
        Sample positions (deg)
    values : array_like
        Sample values
    cell_size : float or (float, float)
        Neighbourhood cells, azimuth x elevation (deg)
    n_sigma : float
        Rejection threshold in robust standard deviations

    Returns
    -------
    np.ndarray
        Boolean keep mask, False for outliers and non finite samples
    """
    az = np.asarray(az, dtype=float).reshape(-1)
    el = np.asarray(el, dtype=float).reshape(-1)
    values = np.asarray(values, dtype=float).reshape(-1)

    # cells start at the horizon so that neighbourhoods do not depend on the data span
    grid = empty_grid(parse_cell_size(cell_size), el_min=0.0)
    cell = grid.cell_index(az, el)
    valid = (cell >= 0) & np.isfinite(values)

    keep = np.zeros(values.size, dtype=bool)
    if not np.any(valid):
        return keep

    samples = pd.DataFrame({'cell': cell[valid], 'value': values[valid]})
    center = samples.groupby('cell')['value'].transform('median')
    deviation = (samples['value'] - center).abs()
    mad = deviation.groupby(samples['cell']).transform('median')
    threshold = n_sigma * MAD_TO_STD * mad

    keep[valid] = (deviation <= threshold).to_numpy()
    return keep


def accept(az, el, res, res_smooth, cell_size: CellSize = MP_CLEAN_CELL,
           n_sigma: float = MP_CLEAN_N_SIGMA) -> np.ndarray:
    """
    Keep mask passing both the raw and the time smoothed residual tests

    The raw test catches isolated spikes, the smoothed one rejects
    anomalies correlated in time that look regular sample by sample.
    """
    keep = polar_cleaner(az, el, res, cell_size, n_sigma) & polar_cleaner(az, el, res_smooth, cell_size, n_sigma)
    if keep.size:
        logger.debug(f"Outlier rejection: {np.sum(~keep)} of {keep.size} samples")
    return keep

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
Polar gridding of scattered sky samples.

Samples given as (azimuth, elevation, value) in degrees are binned into a
regular azimuth x elevation grid covering the full azimuth circle and the
sky from a lower elevation up to the zenith. Each cell reports the mean of
its samples and their number.

Grids are stored as [n_el x n_az] matrices with the zenith row first, the
way sky maps are usually displayed.
"""

from dataclasses import dataclass
from typing import Optional, Tuple, Union

import numpy as np

from ..utils.wrap import wrap_azimuth

CellSize = Union[float, Tuple[float, float]]


def parse_cell_size(cell_size: CellSize) -> Tuple[float, float]:
    """(d_az, d_el) from a scalar or a pair"""
    size = np.atleast_1d(np.asarray(cell_size, dtype=float))
    d_az, d_el = (size[0], size[0]) if size.size == 1 else (size[0], size[1])
    if d_az <= 0 or d_el <= 0:
        raise ValueError(f"Cell size must be positive, got {cell_size}")
    return float(d_az), float(d_el)


def _n_cells(span: float, step: float) -> int:
    return max(int(np.ceil(span / step - 1e-9)), 1)


@dataclass
class PolarGrid:
    """Regular azimuth x elevation grid with per cell statistics

    Attributes
    ----------
    data_map : np.ndarray
        Mean of the samples of each cell [n_el x n_az], NaN where empty
    count_map : np.ndarray
        Number of samples of each cell [n_el x n_az]
    az_grid : np.ndarray
        Azimuth of the cell centers (deg), ascending from -180
    el_grid : np.ndarray
        Elevation of the cell centers (deg), descending from the zenith
    cell_size : Tuple[float, float]
        Azimuth and elevation size of the cells (deg)
    el_min : float
        Lower elevation edge of the grid (deg)
    """
    data_map: np.ndarray
    count_map: np.ndarray
    az_grid: np.ndarray
    el_grid: np.ndarray
    cell_size: Tuple[float, float]
    el_min: float

    @property
    def shape(self) -> Tuple[int, int]:
        return self.el_grid.size, self.az_grid.size

    def mesh(self) -> Tuple[np.ndarray, np.ndarray]:
        """Azimuth and elevation of every cell center, [n_el x n_az] each"""
        return np.meshgrid(self.az_grid, self.el_grid)

    def cell_index(self, az, el) -> np.ndarray:
        """Flat cell index of each sample, -1 for samples outside the grid"""
        az = np.asarray(az, dtype=float).reshape(-1)
        el = np.asarray(el, dtype=float).reshape(-1)
        d_az, d_el = self.cell_size
        n_el, n_az = self.shape

        valid = np.isfinite(az) & np.isfinite(el) & (el >= self.el_min) & (el <= 90.0)
        az_w = wrap_azimuth(np.where(valid, az, 0.0))
        el_v = np.where(valid, el, self.el_min)

        i_az = np.minimum(np.floor((az_w + 180.0) / d_az).astype(int), n_az - 1)
        i_up = np.minimum(np.floor((el_v - self.el_min) / d_el).astype(int), n_el - 1)
        idx = (n_el - 1 - i_up) * n_az + i_az
        idx[~valid] = -1
        return idx

    def values_at(self, az, el) -> np.ndarray:
        """Cell mean at each sample position (NaN outside or in empty cells)"""
        idx = self.cell_index(az, el)
        out = np.full(idx.shape, np.nan)
        inside = idx >= 0
        out[inside] = self.data_map.ravel()[idx[inside]]
        return out

    def resample(self, grid_step: float) -> 'PolarGrid':
        """Project the cell statistics on a regular grid of step grid_step

        Each node of the new grid takes the statistics of the cell containing
        it.
        """
        n_az = _n_cells(360.0, grid_step)
        n_el = _n_cells(90.0 - self.el_min, grid_step)
        az_grid = -180.0 + grid_step * (np.arange(n_az) + 0.5)
        el_grid = (self.el_min + grid_step * (np.arange(n_el) + 0.5))[::-1]
        az_mesh, el_mesh = np.meshgrid(az_grid, el_grid)
        idx = self.cell_index(az_mesh, np.minimum(el_mesh, 90.0))

        data_map = np.full(idx.shape, np.nan)
        count_map = np.zeros(idx.shape, dtype=int)
        inside = idx >= 0
        data_map[inside] = self.data_map.ravel()[idx[inside]]
        count_map[inside] = self.count_map.ravel()[idx[inside]]
        return PolarGrid(data_map.reshape(n_el, n_az), count_map.reshape(n_el, n_az),
                         az_grid, el_grid, (grid_step, grid_step), self.el_min)


def empty_grid(cell_size: CellSize, el_min: float = 0.0) -> PolarGrid:
    """Grid with no samples"""
    d_az, d_el = parse_cell_size(cell_size)
    n_az = _n_cells(360.0, d_az)
    n_el = _n_cells(90.0 - el_min, d_el)
    return PolarGrid(np.full((n_el, n_az), np.nan), np.zeros((n_el, n_az), dtype=int),
                     -180.0 + d_az * (np.arange(n_az) + 0.5),
                     (el_min + d_el * (np.arange(n_el) + 0.5))[::-1],
                     (d_az, d_el), float(el_min))


def polar_gridder(az, el, values, cell_size: CellSize, grid_step: Optional[float] = None,
                  el_min: Optional[float] = None) -> PolarGrid:
    """
    Bin scattered sky samples into a regular grid

    Parameters
    ----------
    az : array_like
        Azimuth of the samples (deg), any range (wrapped to [-180, 180))
    el : array_like
        Elevation of the samples (deg)
    values : array_like
        Sample values, non finite values are ignored
    cell_size : float or (float, float)
        Cell size in degrees, a pair for azimuth x elevation cells
    grid_step : float, optional
        Return the statistics resampled on a regular grid with this step
    el_min : float, optional
        Lower elevation edge of the grid; by default the lowest sample
        elevation floored to the cell size

    Returns
    -------
    PolarGrid
        Per cell mean and count
    """
    az = np.asarray(az, dtype=float).reshape(-1)
    el = np.asarray(el, dtype=float).reshape(-1)
    values = np.asarray(values, dtype=float).reshape(-1)
    if not az.size == el.size == values.size:
        raise ValueError(f"az, el and values sizes differ: {az.size}, {el.size}, {values.size}")
    d_az, d_el = parse_cell_size(cell_size)

    if el_min is None:
        el_ok = el[np.isfinite(el) & (el <= 90.0)]
        el_min = np.floor(max(el_ok.min(), 0.0) / d_el) * d_el if el_ok.size else 0.0
        el_min = min(el_min, 90.0 - d_el)

    grid = empty_grid((d_az, d_el), el_min)
    idx = grid.cell_index(az, el)
    ok = (idx >= 0) & np.isfinite(values)

    n_cells = grid.data_map.size
    count = np.bincount(idx[ok], minlength=n_cells)
    total = np.bincount(idx[ok], weights=values[ok], minlength=n_cells)
    data = np.full(n_cells, np.nan)
    filled = count > 0
    data[filled] = total[filled] / count[filled]

    grid.data_map = data.reshape(grid.shape)
    grid.count_map = count.reshape(grid.shape)
    if grid_step is not None:
        grid = grid.resample(grid_step)
    return grid

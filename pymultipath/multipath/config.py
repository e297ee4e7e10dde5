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

"""Multipath estimation settings"""

from dataclasses import asdict, dataclass, field, fields
from typing import List, Tuple

import numpy as np

from ..core.constants import (MP_CLEAN_CELL, MP_CLEAN_N_SIGMA, MP_CUTOFF, MP_GRID_STEP,
                              MP_L_MAX, MP_MAP_CELL, MP_REG_CELL, MP_REG_LAMBDA,
                              MP_RING_AZ_STEP, MP_RING_EL_STEP, MP_RING_OFFSET,
                              MP_SMOOTH_WINDOW)


@dataclass
class MultipathConfig:
    """Tuning of the multipath map estimation.

    Attributes
    ----------
    l_max : List[int]
        Zernike max degree of each of the three fitting passes (<= 0 skips)
    reg_lambda : float
        Tikhonov regularization of the Zernike fits
    use_regularization : bool
        Inject zero observations in the empty sky before fitting
    grid_step : float
        Resolution of the output maps (deg)
    clean_cell_size : Tuple[float, float]
        Azimuth x elevation cells of the outlier rejection (deg)
    clean_n_sigma : float
        Outlier threshold in robust standard deviations
    reg_cell_size : Tuple[float, float]
        Cells used to find the empty sky regions (deg)
    map_cell_size : Tuple[float, float]
        Cells used to grid the residual left by the fits (deg)
    cutoff : float
        Elevation cutoff of the processing that produced the residuals (deg)
    ring_az_step : float
        Azimuth spacing of the horizon regularization ring (deg)
    ring_el_step : float
        Elevation spacing of the horizon regularization ring (deg)
    ring_offset : float
        The ring spans elevations 0 .. cutoff - ring_offset (deg)
    smoothing_window_s : float
        Time window of the residual smoothing used by the outlier test (s)
    n_workers : int
        Threads used to process the tracking groups (1 = sequential)
    """
    l_max: List[int] = field(default_factory=lambda: list(MP_L_MAX))
    reg_lambda: float = MP_REG_LAMBDA
    use_regularization: bool = True
    grid_step: float = MP_GRID_STEP
    clean_cell_size: Tuple[float, float] = MP_CLEAN_CELL
    clean_n_sigma: float = MP_CLEAN_N_SIGMA
    reg_cell_size: Tuple[float, float] = MP_REG_CELL
    map_cell_size: Tuple[float, float] = MP_MAP_CELL
    cutoff: float = MP_CUTOFF
    ring_az_step: float = MP_RING_AZ_STEP
    ring_el_step: float = MP_RING_EL_STEP
    ring_offset: float = MP_RING_OFFSET
    smoothing_window_s: float = MP_SMOOTH_WINDOW
    n_workers: int = 1

    def __post_init__(self):
        self.l_max = expand_l_max(self.l_max)
        self.validate()

    def validate(self):
        """Check the settings, raise ValueError on the first bad one"""
        if len(self.l_max) != 3:
            raise ValueError(f"l_max needs one degree per pass, got {self.l_max}")
        if self.reg_lambda < 0:
            raise ValueError(f"reg_lambda must be >= 0, got {self.reg_lambda}")
        for name in ('grid_step', 'ring_az_step', 'ring_el_step', 'smoothing_window_s', 'clean_n_sigma'):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")
        for name in ('clean_cell_size', 'reg_cell_size', 'map_cell_size'):
            cell = getattr(self, name)
            if len(cell) != 2 or min(cell) <= 0:
                raise ValueError(f"{name} must be two positive sizes, got {cell}")
        if not 0 <= self.cutoff < 90:
            raise ValueError(f"cutoff must be in [0, 90), got {self.cutoff}")
        if self.n_workers < 1:
            raise ValueError(f"n_workers must be >= 1, got {self.n_workers}")

    @classmethod
    def from_dict(cls, config: dict) -> 'MultipathConfig':
        """Build from a dictionary, unknown keys raise KeyError"""
        known = {f.name for f in fields(cls)}
        unknown = set(config) - known
        if unknown:
            raise KeyError(f"Unknown multipath settings: {sorted(unknown)}")
        values = dict(config)
        for name in ('clean_cell_size', 'reg_cell_size', 'map_cell_size'):
            if name in values:
                values[name] = tuple(values[name])
        return cls(**values)

    def to_dict(self) -> dict:
        return asdict(self)


def expand_l_max(l_max) -> List[int]:
    """A single degree applies to the three passes"""
    if np.ndim(l_max) == 0:
        return [int(l_max)] * 3
    l_max = [int(v) for v in l_max]
    if len(l_max) == 1:
        return l_max * 3
    return l_max

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

"""Multipath correction surfaces"""

from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

import numpy as np
import pandas as pd

from ..core.satellite_numbering import get_sys_name
from ..core.time import GNSSTime

SurfaceKey = Tuple[str, str]


def _frozen(array) -> np.ndarray:
    array = np.array(array, dtype=float)
    array.flags.writeable = False
    return array


@dataclass(frozen=True)
class MultipathSurface:
    """Multipath map of one constellation / tracking code

    Attributes
    ----------
    sys_c : str
        Constellation character
    trk_code : str
        Tracking code without the constellation character, e.g. 'L1C'
    az_grid : np.ndarray
        Azimuth of the map columns (deg), ascending in [-180, 180)
    el_grid : np.ndarray
        Elevation of the map rows (deg), descending from the zenith
    z_map : np.ndarray
        Zernike synthesis [n_el x n_az]
    g_map : np.ndarray
        Zernike synthesis plus the gridded fit residual [n_el x n_az]
    time_span : Tuple[GNSSTime, GNSSTime]
        First and last epoch of the residuals used
    n_obs : int
        Accepted observations (injected regularization points excluded)
    outlier_ratio : float
        Fraction of the observations rejected as outliers
    """
    sys_c: str
    trk_code: str
    az_grid: np.ndarray
    el_grid: np.ndarray
    z_map: np.ndarray
    g_map: np.ndarray
    time_span: Tuple[GNSSTime, GNSSTime]
    n_obs: int = 0
    outlier_ratio: float = 0.0

    def __post_init__(self):
        for name in ('az_grid', 'el_grid', 'z_map', 'g_map'):
            object.__setattr__(self, name, _frozen(getattr(self, name)))
        shape = (self.el_grid.size, self.az_grid.size)
        if self.z_map.shape != shape or self.g_map.shape != shape:
            raise ValueError(f"Map shapes {self.z_map.shape} / {self.g_map.shape} do not match the grid {shape}")

    @property
    def key(self) -> SurfaceKey:
        return self.sys_c, self.trk_code

    @property
    def code(self) -> str:
        """Full tracking code, e.g. 'GL1C'"""
        return self.sys_c + self.trk_code

    def value_at(self, az, el, use_grid: bool = True) -> np.ndarray:
        """Nearest node value of the map at (az, el) in degrees"""
        az = np.asarray(az, dtype=float)
        el = np.asarray(el, dtype=float)
        az_w = np.mod(az + 180.0, 360.0) - 180.0
        i_az = np.abs(az_w.reshape(-1)[:, None] - self.az_grid[None, :]).argmin(axis=1)
        i_el = np.abs(el.reshape(-1)[:, None] - self.el_grid[None, :]).argmin(axis=1)
        surface = self.g_map if use_grid else self.z_map
        return surface[i_el, i_az].reshape(az.shape)


@dataclass
class MultipathMaps:
    """Multipath surfaces of a receiver, keyed by (sys_c, trk_code)"""
    marker_name: str = 'UNKN'
    time_span: Optional[Tuple[GNSSTime, GNSSTime]] = None
    surfaces: Dict[SurfaceKey, MultipathSurface] = field(default_factory=OrderedDict)
    errors: List[str] = field(default_factory=list)

    def add(self, surface: MultipathSurface):
        self.surfaces[surface.key] = surface

    def __getitem__(self, key: SurfaceKey) -> MultipathSurface:
        return self.surfaces[key]

    def __contains__(self, key) -> bool:
        return key in self.surfaces

    def __iter__(self) -> Iterator[SurfaceKey]:
        return iter(self.surfaces)

    def __len__(self) -> int:
        return len(self.surfaces)

    def keys(self):
        return self.surfaces.keys()

    def values(self):
        return self.surfaces.values()

    def items(self):
        return self.surfaces.items()

    def systems(self) -> List[str]:
        """Constellations with at least one surface"""
        return list(OrderedDict.fromkeys(sys_c for sys_c, _ in self.surfaces))

    def summary(self) -> pd.DataFrame:
        """One row per surface with its statistics"""
        rows = []
        for (sys_c, trk_code), surface in self.surfaces.items():
            first, last = surface.time_span
            rows.append({
                'sys': sys_c,
                'sys_name': get_sys_name(sys_c),
                'trk_code': trk_code,
                'n_obs': surface.n_obs,
                'outlier_ratio': surface.outlier_ratio,
                'first_epoch': first.to_datetime(),
                'last_epoch': last.to_datetime(),
                'z_rms': float(np.sqrt(np.nanmean(surface.z_map ** 2))),
                'g_rms': float(np.sqrt(np.nanmean(surface.g_map ** 2))),
            })
        columns = ['sys', 'sys_name', 'trk_code', 'n_obs', 'outlier_ratio',
                   'first_epoch', 'last_epoch', 'z_rms', 'g_rms']
        return pd.DataFrame(rows, columns=columns)

    def __repr__(self):
        keys = ', '.join(f"{s}{c}" for s, c in self.surfaces)
        return f"MultipathMaps({self.marker_name}: {keys or 'empty'})"

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
Azimuth and elevation providers.

The multipath estimation needs, for every epoch of a residual store and
every satellite observed in it, the azimuth and elevation of the satellite
as seen by the receiver. Computing them (orbits, ECEF to local frame) is the
job of the caller; this module only defines the interface and a tabulated
implementation for precomputed geometry.

Classes
-------
AzElProvider : Protocol
    Callable returning azimuth/elevation matrices in degrees.
TabulatedAzEl : class
    Provider serving precomputed per-satellite tracks.
"""

import logging
from typing import Dict, Optional, Protocol, Sequence, Tuple

import numpy as np

from ..core.time import EpochTimes

logger = logging.getLogger(__name__)


class AzElProvider(Protocol):
    """Azimuth/elevation lookup used by the multipath estimator"""

    def __call__(self, rec_coo: Optional[np.ndarray], times: EpochTimes,
                 sat_names: Sequence[str]) -> Tuple[np.ndarray, np.ndarray]:
        """
        Parameters
        ----------
        rec_coo : np.ndarray or None
            Receiver ECEF position [m], shape (3,)
        times : EpochTimes
            Epochs of the residuals
        sat_names : Sequence[str]
            Satellites, e.g. ['G01', 'E11']

        Returns
        -------
        az, el : np.ndarray
            Matrices [n_epoch x n_sat] in degrees, NaN where unknown
        """
        ...


class TabulatedAzEl:
    """Serve precomputed azimuth/elevation tracks

    Each requested epoch takes the nearest tabulated sample when it is closer
    than half the finer of the two sampling rates; epochs without a matching
    sample get NaN.

    Parameters
    ----------
    times : EpochTimes
        Epochs of the tabulated tracks
    az : Dict[str, np.ndarray]
        Azimuth per satellite name [deg], one value per epoch
    el : Dict[str, np.ndarray]
        Elevation per satellite name [deg], one value per epoch
    """

    def __init__(self, times: EpochTimes, az: Dict[str, np.ndarray], el: Dict[str, np.ndarray]):
        if set(az) != set(el):
            raise ValueError("Azimuth and elevation tracks must cover the same satellites")
        for name in az:
            if len(az[name]) != len(times) or len(el[name]) != len(times):
                raise ValueError(f"Track of {name} does not match the number of epochs")
        self.times = times
        self.az = {k: np.asarray(v, dtype=float) for k, v in az.items()}
        self.el = {k: np.asarray(v, dtype=float) for k, v in el.items()}

    def __call__(self, rec_coo, times: EpochTimes, sat_names: Sequence[str]):
        table = self.times.gps_seconds
        wanted = times.gps_seconds
        match = np.zeros(wanted.size, dtype=bool)
        pos = np.zeros(wanted.size, dtype=int)
        if table.size > 0:
            # nearest tabulated epoch, accepted within half the finer rate
            tol = min(self.times.get_rate(), times.get_rate()) / 2
            right = np.clip(np.searchsorted(table, wanted), 0, table.size - 1)
            left = np.clip(right - 1, 0, table.size - 1)
            pos = np.where(np.abs(table[left] - wanted) <= np.abs(table[right] - wanted), left, right)
            match = np.abs(table[pos] - wanted) < tol
        if not np.all(match):
            logger.debug(f"{np.sum(~match)} epochs have no tabulated geometry")

        az = np.full((len(times), len(sat_names)), np.nan)
        el = np.full((len(times), len(sat_names)), np.nan)
        for s, name in enumerate(sat_names):
            if name not in self.az:
                logger.debug(f"No tabulated geometry for {name}")
                continue
            az[match, s] = self.az[name][pos[match]]
            el[match, s] = self.el[name][pos[match]]
        return az, el

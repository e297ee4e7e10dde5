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
Residual Store
==============

Time indexed matrix of observation residuals (observed minus modeled range
or phase), one column per satellite and tracking code. The store is filled
session after session: every new batch is merged in, replacing the epochs
it overlaps and growing the set of columns when new satellites or tracking
codes appear.

Unset cells are NaN; zero is a legitimate residual.
"""

import logging
from enum import IntEnum
from typing import Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from ..core.constants import OBS_TYPE_CODE, OBS_TYPE_PHASE, SYS_ORDER
from ..core.obs_code import obs_codes_to_num
from ..core.satellite_numbering import prn_to_sat, sat_name
from ..core.time import EpochTimes, GNSSTime, round_to_rate, to_gps_seconds

logger = logging.getLogger(__name__)


class ResidualType(IntEnum):
    """Processing that produced the residuals"""
    NONE = 0                 # no residuals
    PREPRO = 1               # pre-processing
    SINGLE_FREQ_ENGINE = 2   # combined / single frequency engine
    UNCOMBINED_ENGINE = 3    # uncombined engine (code and phase columns)


RES_TYPE = {
    ResidualType.NONE: 'no residuals',
    ResidualType.PREPRO: 'PREPRO',
    ResidualType.SINGLE_FREQ_ENGINE: 'U1 engine',
    ResidualType.UNCOMBINED_ENGINE: 'U2 engine',
}

TimeLike = Union[GNSSTime, float]
Selection = Tuple[np.ndarray, np.ndarray, np.ndarray]


def _to_mask(lid, n: int) -> np.ndarray:
    """Boolean mask of length n from a mask or a list of indices"""
    lid = np.asarray(lid)
    if lid.dtype == bool:
        if lid.size != n:
            raise ValueError(f"Mask of length {lid.size} does not match {n} entries")
        return lid.copy()
    mask = np.zeros(n, dtype=bool)
    mask[lid.astype(int).reshape(-1)] = True
    return mask


class ResidualStore:
    """
    Residuals of one receiver

    Attributes
    ----------
    type : ResidualType
        Processing that produced the residuals
    time : EpochTimes
        Epochs, strictly increasing, one per row of value
    value : np.ndarray
        Residual matrix [n_epoch x n_column] (m), NaN where unset
    prn : np.ndarray
        PRN of the satellite of each column
    obs_code : np.ndarray
        Tracking code of each column (e.g. 'GL1C', 'GL1CL2WI')
    rec_coo : np.ndarray or None
        Receiver ECEF position of the most recent ingestion
    """

    def __init__(self):
        self.reset()

    # ------------------------------------------------------------------
    # Object management
    # ------------------------------------------------------------------
    def reset(self):
        """Empty the store"""
        self.type = ResidualType.NONE
        self.time = EpochTimes()
        self.value = np.zeros((0, 0))
        self.prn = np.zeros(0, dtype=int)
        self.obs_code = np.zeros(0, dtype='<U4')
        self.rec_coo = None
        self._column_index: Dict[int, int] = {}

    @property
    def n_epochs(self) -> int:
        return len(self.time)

    @property
    def n_columns(self) -> int:
        return self.prn.size

    @property
    def columns(self) -> List[Tuple[int, str]]:
        """(prn, tracking code) of every column"""
        return list(zip(self.prn.tolist(), self.obs_code.tolist()))

    def is_empty(self) -> bool:
        """True when no residuals are stored"""
        return self.type == ResidualType.NONE or self.time.is_empty()

    def __repr__(self):
        return (f"ResidualStore(type={RES_TYPE[self.type]}, epochs={self.n_epochs}, "
                f"columns={self.n_columns})")

    def copy(self) -> 'ResidualStore':
        """Independent copy of the store"""
        res = ResidualStore()
        res.type = self.type
        res.time = self.time.copy()
        res.value = self.value.copy()
        res.prn = self.prn.copy()
        res.obs_code = self.obs_code.copy()
        res.rec_coo = None if self.rec_coo is None else self.rec_coo.copy()
        res._rebuild_index()
        return res

    def replace(self, res_type: int, time: Union[EpochTimes, Sequence[float]], value: np.ndarray,
                prn: Sequence[int], obs_code: Sequence[str], rec_coo: Optional[np.ndarray] = None):
        """
        Import new residuals, discarding the previous content

        Columns whose (prn, obs_code) is not a valid observation are dropped.

        Parameters
        ----------
        res_type : int
            ResidualType of the residuals
        time : EpochTimes or sequence of GPS seconds
            Epochs, strictly increasing
        value : np.ndarray
            Residuals [n_epoch x n_column] (m), NaN where unset
        prn : Sequence[int]
            PRN of each column
        obs_code : Sequence[str]
            Tracking code of each column
        rec_coo : np.ndarray, optional
            Receiver ECEF position (m)

        Raises
        ------
        ValueError
            If the dimensions disagree, epochs are not strictly increasing or
            a column appears twice
        """
        if not isinstance(time, EpochTimes):
            time = EpochTimes(time)
        value = np.array(value, dtype=float)
        prn = np.asarray(prn, dtype=int).reshape(-1)
        obs_code = np.array([str(c).strip() for c in obs_code], dtype=str)
        if value.size == 0 and value.ndim < 2:
            value = value.reshape(len(time), prn.size)

        if value.ndim != 2:
            raise ValueError(f"Residuals must be a 2D matrix, got {value.ndim} dimensions")
        if value.shape[0] != len(time):
            raise ValueError(f"{value.shape[0]} residual rows for {len(time)} epochs")
        if value.shape[1] != prn.size or obs_code.size != prn.size:
            raise ValueError(f"{value.shape[1]} residual columns, {prn.size} prn "
                             f"and {obs_code.size} observation codes")
        if not time.is_strictly_increasing():
            raise ValueError("Epochs must be strictly increasing")

        code_num = obs_codes_to_num(obs_code, prn)
        id_ok = np.asarray(code_num != 0, dtype=bool)
        if not np.all(id_ok):
            logger.debug(f"Dropping {np.sum(~id_ok)} columns with unknown observation code")
        code_num = code_num[id_ok]
        if len(set(code_num.tolist())) != code_num.size:
            raise ValueError("Duplicated (prn, observation code) columns")

        self.type = ResidualType(res_type)
        self.time = time.copy()
        self.value = value[:, id_ok]
        self.prn = prn[id_ok]
        self.obs_code = obs_code[id_ok]
        self.rec_coo = None if rec_coo is None else np.asarray(rec_coo, dtype=float).copy()
        self._rebuild_index()

    import_residuals = replace

    def append(self, res_type: int, time: Union[EpochTimes, Sequence[float]], value: np.ndarray,
               prn: Sequence[int], obs_code: Sequence[str], rec_coo: Optional[np.ndarray] = None):
        """Append new residuals to the stored ones (see merge)"""
        res = ResidualStore()
        res.replace(res_type, time, value, prn, obs_code, rec_coo)
        self.merge(res)

    def merge(self, res: 'ResidualStore'):
        """
        Merge another batch of residuals into the store

        The stored epochs falling within the time span of the new batch
        (widened by half the finer sampling rate of the two stores, so that
        receiver clock jitter does not matter) are superseded and removed,
        the new epochs
        are inserted at their place and the columns of both stores are
        joined. Type and receiver position are taken from the new batch.

        Parameters
        ----------
        res : ResidualStore
            New residuals, left untouched
        """
        if res.time.is_empty():
            return

        # 1) remove the stored epochs overlapped by the new batch, epochs
        #    closer than half a tick of the finer rate are the same epoch
        new_sec = res.time.gps_seconds
        own_sec = self.time.gps_seconds
        tick = res.time.get_rate()
        if not self.time.is_empty():
            tick = min(tick, self.time.get_rate())
        tol = tick / 2
        lid_ko = (own_sec > new_sec[0] - tol) & (own_sec < new_sec[-1] + tol)
        own_sec = own_sec[~lid_ko]
        if np.any(lid_ko):
            logger.debug(f"Replacing {np.sum(lid_ko)} overlapped epochs")
            self.remove_epochs(lid_ko)
        id_start = int(np.searchsorted(own_sec, new_sec[0]))

        # 2) columns: unknown codes are never merged
        res = res.copy()
        self._drop_invalid_columns()
        res._drop_invalid_columns()

        code_old = self.column_ids().tolist()
        code_new = res.column_ids().tolist()
        old_pos = {code: i for i, code in enumerate(code_old)}
        id_add = [j for j, code in enumerate(code_new) if code not in old_pos]
        id_new = [j for j, code in enumerate(code_new) if code in old_pos]
        id_old = [old_pos[code_new[j]] for j in id_new]

        # 3) resize the matrix for the new epochs and the new columns
        n_old_epochs, n_old_cols = self.value.shape[0], self.n_columns
        n_new_epochs = res.n_epochs
        value = np.full((n_old_epochs + n_new_epochs, n_old_cols + len(id_add)), np.nan)
        value[:id_start, :n_old_cols] = self.value[:id_start]
        value[id_start + n_new_epochs:, :n_old_cols] = self.value[id_start:]

        # 4) write the new data
        dest = id_old + list(range(n_old_cols, n_old_cols + len(id_add)))
        src = id_new + id_add
        value[id_start:id_start + n_new_epochs, dest] = res.value[:, src]

        id_add = np.asarray(id_add, dtype=int)
        self.value = value
        self.obs_code = np.concatenate([self.obs_code, res.obs_code[id_add]])
        self.prn = np.concatenate([self.prn, res.prn[id_add]])
        self.time = EpochTimes.concatenate([self.time.get_epoch(slice(0, id_start)),
                                            res.time,
                                            self.time.get_epoch(slice(id_start, None))])

        self.type = res.type
        self.rec_coo = None if res.rec_coo is None else res.rec_coo.copy()
        self._rebuild_index()

    injest = merge

    def remove_epochs(self, lid_ko):
        """
        Remove epochs from the residuals

        Parameters
        ----------
        lid_ko : array_like
            Boolean mask of the epochs to remove, or their indices
        """
        lid_ko = _to_mask(lid_ko, self.n_epochs)
        self.time = self.time.get_epoch(~lid_ko)
        self.value = self.value[~lid_ko, :]

    def remove_columns(self, lid_ko):
        """
        Remove columns (satellite / tracking code entries)

        Parameters
        ----------
        lid_ko : array_like
            Boolean mask of the columns to remove, or their indices
        """
        lid_ko = _to_mask(lid_ko, self.n_columns)
        self.value = self.value[:, ~lid_ko]
        self.prn = self.prn[~lid_ko]
        self.obs_code = self.obs_code[~lid_ko]
        self._rebuild_index()

    rem_entry = remove_columns

    def trim_to_span(self, start: TimeLike, stop: TimeLike):
        """
        Keep only the epochs in [start, stop)

        Limits are rounded to the sampling rate and compared with the
        nominal epochs.
        """
        if self.time.is_empty():
            return
        rate = self.time.get_rate()
        nominal = self.time.nominal_seconds()
        t_start = round_to_rate(to_gps_seconds(start), rate)
        t_stop = round_to_rate(to_gps_seconds(stop), rate)
        self.remove_epochs((nominal < t_start) | (nominal >= t_stop))

    cut_epochs = trim_to_span

    # ------------------------------------------------------------------
    # Column identifiers
    # ------------------------------------------------------------------
    def column_ids(self) -> np.ndarray:
        """Numeric identifier of every column (0 for unknown codes)"""
        return obs_codes_to_num(self.obs_code, self.prn)

    def column_of(self, prn: int, obs_code: str) -> Optional[int]:
        """Column position of a (prn, tracking code), None if absent"""
        code = obs_codes_to_num([obs_code], [prn])[0]
        return self._column_index.get(code)

    def _rebuild_index(self):
        self._column_index = {code: i for i, code in enumerate(self.column_ids().tolist()) if code}

    def _drop_invalid_columns(self):
        lid_ko = np.asarray(self.column_ids() == 0, dtype=bool)
        if np.any(lid_ko):
            logger.debug(f"Dropping {np.sum(lid_ko)} columns with unknown observation code")
            self.remove_columns(lid_ko)

    # ------------------------------------------------------------------
    # Getters
    # ------------------------------------------------------------------
    def _column_mask(self, obs_type: Optional[str] = None, sys_c: Optional[str] = None,
                     freq_c: Optional[str] = None) -> np.ndarray:
        mask = np.ones(self.n_columns, dtype=bool)
        for pos, char in ((1, obs_type), (0, sys_c), (2, freq_c)):
            if char:
                mask &= np.array([len(code) > pos and code[pos] == char for code in self.obs_code], dtype=bool)
        return mask

    def _subset(self, mask: np.ndarray) -> Selection:
        return self.value[:, mask], self.obs_code[mask], self.prn[mask]

    def _empty_selection(self) -> Selection:
        return np.zeros((self.n_epochs, 0)), np.zeros(0, dtype='<U4'), np.zeros(0, dtype=int)

    def get_u1(self, sys_c: Optional[str] = None, freq_c: Optional[str] = None) -> Selection:
        """Residuals of the combined / single frequency processing"""
        if self.type not in (ResidualType.PREPRO, ResidualType.SINGLE_FREQ_ENGINE):
            return self._empty_selection()
        return self._subset(self._column_mask(None, sys_c, freq_c))

    def get_pr_u2(self, sys_c: Optional[str] = None, freq_c: Optional[str] = None) -> Selection:
        """Pseudo-range residuals of the uncombined processing"""
        if self.type != ResidualType.UNCOMBINED_ENGINE:
            return self._empty_selection()
        return self._subset(self._column_mask(OBS_TYPE_CODE, sys_c, freq_c))

    def get_ph_u2(self, sys_c: Optional[str] = None, freq_c: Optional[str] = None) -> Selection:
        """Carrier-phase residuals of the uncombined processing"""
        if self.type != ResidualType.UNCOMBINED_ENGINE:
            return self._empty_selection()
        return self._subset(self._column_mask(OBS_TYPE_PHASE, sys_c, freq_c))

    def select(self, sys_c: Optional[str] = None, freq_c: Optional[str] = None) -> Selection:
        """
        Get the residual matrix

        Uncombined residuals return carrier phases, or pseudo-ranges when
        no phase matches the filters.

        Parameters
        ----------
        sys_c : str, optional
            Constellation character, e.g. 'G'
        freq_c : str, optional
            Frequency band character, e.g. '1'

        Returns
        -------
        value : np.ndarray
            Residuals [n_epoch x n_selected]
        obs_code : np.ndarray
            Tracking codes of the selected columns
        prn : np.ndarray
            PRN of the selected columns
        """
        if self.type in (ResidualType.PREPRO, ResidualType.SINGLE_FREQ_ENGINE):
            return self.get_u1(sys_c, freq_c)
        if self.type == ResidualType.UNCOMBINED_ENGINE:
            selection = self.get_ph_u2(sys_c, freq_c)
            if selection[0].shape[1] == 0:
                selection = self.get_pr_u2(sys_c, freq_c)
            return selection
        return self._empty_selection()

    get = select

    def get_range_residuals(self, sys_c: Optional[str] = None) -> Tuple[np.ndarray, np.ndarray, np.ndarray, EpochTimes]:
        """Range residuals with their epochs (combined processing only)"""
        if self.type in (ResidualType.PREPRO, ResidualType.SINGLE_FREQ_ENGINE):
            return (*self.get_u1(sys_c), self.time.copy())
        return (*self._empty_selection(), EpochTimes())

    def standard_deviation(self) -> float:
        """Population standard deviation of all the set residuals

        Different frequencies have different noise, this is a rough figure.
        """
        values = self.select()[0]
        values = values[np.isfinite(values)]
        if values.size == 0:
            return float('nan')
        return float(np.std(values))

    get_std = standard_deviation

    # ------------------------------------------------------------------
    # Satellites
    # ------------------------------------------------------------------
    def column_sat_ids(self) -> np.ndarray:
        """Unified satellite number of every column"""
        return np.array([prn_to_sat(code[:1], prn) for code, prn in zip(self.obs_code, self.prn)], dtype=int)

    def satellite_names(self) -> List[str]:
        """Satellites present in the store, in constellation and PRN order"""
        sats = set(self.column_sat_ids().tolist()) - {0}
        order = {c: i for i, c in enumerate(SYS_ORDER)}
        names = [sat_name(s) for s in sats]
        return sorted(names, key=lambda n: (order.get(n[0], len(order)), int(n[1:])))

    def get_azimuth_elevation(self, provider) -> Tuple[np.ndarray, np.ndarray, List[str]]:
        """
        Azimuth and elevation of each satellite stored in the residuals

        Parameters
        ----------
        provider : AzElProvider
            Callable (rec_coo, times, sat_names) -> (az, el) in degrees

        Returns
        -------
        az, el : np.ndarray
            Matrices [n_epoch x n_sat] (deg)
        sat_names : List[str]
            Satellite of each column of az / el
        """
        names = self.satellite_names()
        az, el = provider(self.rec_coo, self.time, names)
        az = np.asarray(az, dtype=float)
        el = np.asarray(el, dtype=float)
        expected = (self.n_epochs, len(names))
        if az.shape != expected or el.shape != expected:
            raise ValueError(f"Azimuth/elevation provider returned {az.shape} / {el.shape}, expected {expected}")
        return az, el, names

    def to_dataframe(self) -> pd.DataFrame:
        """Long format table of the set residuals"""
        i_epoch, i_col = np.nonzero(np.isfinite(self.value))
        names = np.array([sat_name(s) for s in self.column_sat_ids()], dtype=object)
        return pd.DataFrame({
            'gps_seconds': self.time.gps_seconds[i_epoch],
            'sat': names[i_col],
            'obs_code': self.obs_code[i_col],
            'residual': self.value[i_epoch, i_col],
        })

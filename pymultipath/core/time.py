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

"""GNSS time scalar and epoch series"""

from datetime import datetime, timedelta
from typing import Optional, Sequence, Union

import numpy as np

from .constants import DEFAULT_RATE, RATE_SNAP_TOL, STANDARD_RATES

GPST0 = datetime(1980, 1, 6, 0, 0, 0)
WEEK_SECONDS = 604800.0


class GNSSTime:
    """GPS time as week and time of week

    All comparisons check that both operands share the same time system.
    """

    def __init__(self, week: int = 0, tow: float = 0.0, time_sys: str = 'GPS'):
        """
        Initialize GNSS time

        Parameters:
        -----------
        week : int
            Week number
        tow : float
            Time of week in seconds, normalized to [0, 604800)
        time_sys : str
            Time system ('GPS', 'GAL', 'BDS', 'GLO', 'UTC')
        """
        self.week = int(week)
        self.tow = float(tow)
        self.time_sys = time_sys.upper()

        valid_systems = ['GPS', 'GAL', 'BDS', 'GLO', 'UTC']
        if self.time_sys not in valid_systems:
            raise ValueError(f"Invalid time system: {time_sys}. Must be one of {valid_systems}")

        week_delta, self.tow = divmod(self.tow, WEEK_SECONDS)
        self.week += int(week_delta)

    @classmethod
    def from_gps_seconds(cls, gps_seconds: float, time_sys: str = 'GPS') -> 'GNSSTime':
        """Create GNSSTime from seconds since the GPS epoch"""
        week, tow = divmod(float(gps_seconds), WEEK_SECONDS)
        return cls(int(week), tow, time_sys)

    @classmethod
    def from_datetime(cls, dt: datetime, time_sys: str = 'GPS') -> 'GNSSTime':
        """Create GNSSTime from a (GPS scale) datetime"""
        return cls.from_gps_seconds((dt - GPST0).total_seconds(), time_sys)

    def to_gps_seconds(self) -> float:
        """Seconds since the GPS epoch"""
        return self.week * WEEK_SECONDS + self.tow

    def to_datetime(self) -> datetime:
        """Convert to datetime object"""
        return GPST0 + timedelta(weeks=self.week, seconds=self.tow)

    def round_to(self, rate: float) -> 'GNSSTime':
        """Nominal time: rounded to the closest multiple of the sampling rate"""
        return GNSSTime.from_gps_seconds(round_to_rate(self.to_gps_seconds(), rate), self.time_sys)

    def add_seconds(self, seconds: float) -> 'GNSSTime':
        """Add seconds to time"""
        return GNSSTime(self.week, self.tow + seconds, self.time_sys)

    def __add__(self, seconds: float) -> 'GNSSTime':
        if isinstance(seconds, (int, float)):
            return self.add_seconds(seconds)
        raise TypeError(f"Cannot add {type(seconds)} to GNSSTime")

    def __sub__(self, other: Union['GNSSTime', float]) -> Union[float, 'GNSSTime']:
        if isinstance(other, GNSSTime):
            self._check_system(other)
            return (self.week - other.week) * WEEK_SECONDS + (self.tow - other.tow)
        if isinstance(other, (int, float)):
            return self.add_seconds(-other)
        raise TypeError(f"Cannot subtract {type(other)} from GNSSTime")

    def _check_system(self, other: 'GNSSTime'):
        if self.time_sys != other.time_sys:
            raise ValueError(f"Cannot compare times with different systems: {self.time_sys} and {other.time_sys}")

    def __lt__(self, other: 'GNSSTime') -> bool:
        if not isinstance(other, GNSSTime):
            return NotImplemented
        self._check_system(other)
        return (self.week, self.tow) < (other.week, other.tow)

    def __le__(self, other: 'GNSSTime') -> bool:
        if not isinstance(other, GNSSTime):
            return NotImplemented
        self._check_system(other)
        return (self.week, self.tow) <= (other.week, other.tow)

    def __gt__(self, other: 'GNSSTime') -> bool:
        if not isinstance(other, GNSSTime):
            return NotImplemented
        return other < self

    def __ge__(self, other: 'GNSSTime') -> bool:
        if not isinstance(other, GNSSTime):
            return NotImplemented
        return other <= self

    def __eq__(self, other: 'GNSSTime') -> bool:
        if not isinstance(other, GNSSTime):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def _key(self):
        # equality and hash share the nanosecond grid
        return self.time_sys, self.week, round(self.tow, 9)

    def __str__(self):
        return f"{self.time_sys} Week: {self.week}, TOW: {self.tow:.3f}"

    def __repr__(self):
        return f"GNSSTime({self.week}, {self.tow}, '{self.time_sys}')"

    def copy(self) -> 'GNSSTime':
        """Create a copy of this time instance"""
        return GNSSTime(self.week, self.tow, self.time_sys)


def round_to_rate(seconds, rate: float):
    """Round GPS seconds (scalar or array) to the nearest rate tick"""
    return np.round(np.asarray(seconds, dtype=float) / rate) * rate


def snap_rate(spacing: float) -> float:
    """Closest standard sampling rate to an estimated epoch spacing [s]"""
    rates = np.asarray(STANDARD_RATES)
    best = rates[np.argmin(np.abs(rates - spacing) / rates)]
    if abs(best - spacing) <= RATE_SNAP_TOL * best:
        return float(best)
    return max(float(np.round(spacing, 3)), 1e-3)


def to_gps_seconds(time_value: Union[GNSSTime, float]) -> float:
    """Accept either a GNSSTime or GPS seconds and return GPS seconds"""
    if isinstance(time_value, GNSSTime):
        return time_value.to_gps_seconds()
    return float(time_value)


class EpochTimes:
    """Ordered series of observation epochs

    Epochs are stored as GPS seconds (float64). The sampling rate is either
    given explicitly or estimated as the median epoch spacing; it defines the
    nominal time used to compare epochs coming from different sources.
    """

    def __init__(self, gps_seconds: Optional[Sequence[float]] = None,
                 rate: Optional[float] = None, time_sys: str = 'GPS'):
        if gps_seconds is None:
            gps_seconds = []
        self._seconds = np.array(gps_seconds, dtype=float).reshape(-1)
        if rate is not None and rate <= 0:
            raise ValueError(f"Sampling rate must be positive, got {rate}")
        self._rate = None if rate is None else float(rate)
        self.time_sys = time_sys.upper()

    @classmethod
    def from_gnss_times(cls, times: Sequence[GNSSTime], rate: Optional[float] = None) -> 'EpochTimes':
        """Build a series from a list of GNSSTime"""
        time_sys = times[0].time_sys if len(times) else 'GPS'
        return cls([t.to_gps_seconds() for t in times], rate, time_sys)

    @classmethod
    def concatenate(cls, parts: Sequence['EpochTimes']) -> 'EpochTimes':
        """Join several series, the explicit rate survives only if shared"""
        parts = [p for p in parts if p is not None]
        if not parts:
            return cls()
        rates = {p._rate for p in parts if not p.is_empty()} or {parts[0]._rate}
        rate = rates.pop() if len(rates) == 1 else None
        seconds = np.concatenate([p._seconds for p in parts])
        return cls(seconds, rate, parts[0].time_sys)

    def __len__(self) -> int:
        return self._seconds.size

    def __getitem__(self, idx) -> Union[GNSSTime, 'EpochTimes']:
        if isinstance(idx, (int, np.integer)):
            return GNSSTime.from_gps_seconds(self._seconds[idx], self.time_sys)
        return self.get_epoch(idx)

    def __repr__(self):
        if self.is_empty():
            return "EpochTimes(empty)"
        return f"EpochTimes({len(self)} epochs, {self.first()} -> {self.last()}, rate={self.get_rate()}s)"

    @property
    def gps_seconds(self) -> np.ndarray:
        """GPS seconds of the epochs (read-only view)"""
        view = self._seconds.view()
        view.flags.writeable = False
        return view

    def is_empty(self) -> bool:
        return self._seconds.size == 0

    def is_strictly_increasing(self) -> bool:
        return bool(np.all(np.diff(self._seconds) > 0))

    def get_rate(self) -> float:
        """
        Sampling rate in seconds

        The explicit rate when given, otherwise the median spacing snapped to
        the closest standard receiver rate (within RATE_SNAP_TOL), or rounded
        to the millisecond when no standard rate is close.
        """
        if self._rate is not None:
            return self._rate
        if self._seconds.size < 2:
            return DEFAULT_RATE
        dt = np.diff(self._seconds)
        dt = dt[dt > 0]
        if dt.size == 0:
            return DEFAULT_RATE
        return snap_rate(float(np.median(dt)))

    def nominal_seconds(self) -> np.ndarray:
        """Epochs rounded to the sampling rate"""
        return round_to_rate(self._seconds, self.get_rate())

    def get_nominal_time(self) -> 'EpochTimes':
        return EpochTimes(self.nominal_seconds(), self.get_rate(), self.time_sys)

    def first(self) -> GNSSTime:
        if self.is_empty():
            raise IndexError("first() on an empty EpochTimes")
        return self[0]

    def last(self) -> GNSSTime:
        if self.is_empty():
            raise IndexError("last() on an empty EpochTimes")
        return self[-1]

    def get_epoch(self, idx) -> 'EpochTimes':
        """Subset of epochs by slice, index array or boolean mask"""
        return EpochTimes(self._seconds[idx], self._rate, self.time_sys)

    def append(self, other: 'EpochTimes'):
        """Append the epochs of another series (in place)"""
        joined = EpochTimes.concatenate([self, other])
        self._seconds = joined._seconds
        self._rate = joined._rate

    def copy(self) -> 'EpochTimes':
        return EpochTimes(self._seconds.copy(), self._rate, self.time_sys)

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

"""Observation code decoding.

A tracking code is the constellation character followed by one or more
RINEX 3 observation codes (type, band, attribute), optionally closed by a
single combination flag, e.g. ``GL1C``, ``EC5Q`` or ``GL1CL2WI``.

Every valid ``(code, prn)`` pair is packed into a positive integer so that
columns can be compared and grouped numerically; unrecognised pairs map
to 0. Using ``prn = 0`` yields the identifier of the tracking code shared by
all the satellites of the constellation.
"""

import string
from typing import List, Optional, Tuple

import numpy as np

from .constants import OBS_ATTRIBUTES, OBS_TYPES, SYS_BANDS
from .satellite_numbering import prn_to_sat

_ALPHABET = string.ascii_uppercase + string.digits
_BASE = len(_ALPHABET) + 1
_SAT_SLOTS = 1000  # unified satellite numbers are < 256


def split_obs_code(code: str) -> Optional[Tuple[str, List[str], str]]:
    """Split a tracking code into (system_char, observation codes, flag).

    Returns None when the code is malformed or uses a band that the
    constellation does not transmit.

    Examples
    --------
    >>> split_obs_code('GL1CL2WI')
    ('G', ['L1C', 'L2W'], 'I')
    >>> split_obs_code('GL9C') is None
    True
    """
    code = str(code).strip().upper()
    if len(code) < 4 or code[0] not in SYS_BANDS:
        return None
    sys_c, body = code[0], code[1:]
    flag = ''
    if len(body) % 3 == 1:
        body, flag = body[:-1], body[-1]
        if not flag.isalpha():
            return None
    elif len(body) % 3 != 0:
        return None

    obs = [body[i:i + 3] for i in range(0, len(body), 3)]
    for obs_type, band, attribute in obs:
        if (obs_type not in OBS_TYPES or band not in SYS_BANDS[sys_c]
                or attribute not in OBS_ATTRIBUTES):
            return None
    return sys_c, obs, flag


def _pack(text: str) -> int:
    value = 0
    for ch in text:
        value = value * _BASE + _ALPHABET.index(ch) + 1
    return value


def _unpack(value: int) -> str:
    chars = []
    while value > 0:
        value, digit = divmod(value, _BASE)
        chars.append(_ALPHABET[digit - 1])
    return ''.join(reversed(chars))


def obs_code_to_num(code: str, prn: int = 0) -> int:
    """Numeric identifier of a tracking code on a satellite.

    Parameters
    ----------
    code : str
        Tracking code, e.g. 'GL1C' (surrounding blanks are ignored)
    prn : int
        Satellite PRN, 0 to identify the tracking code of any satellite

    Returns
    -------
    int
        Positive identifier, or 0 if the code or the PRN is not valid
    """
    parts = split_obs_code(code)
    if parts is None:
        return 0
    sys_c = parts[0]
    go_id = 0
    if prn:
        go_id = prn_to_sat(sys_c, prn)
        if go_id == 0:
            return 0
    normalized = str(code).strip().upper()
    return _pack(normalized) * _SAT_SLOTS + go_id


def obs_codes_to_num(codes, prns=None) -> np.ndarray:
    """Vectorised :func:`obs_code_to_num` (prns default to 0)"""
    codes = list(codes)
    if prns is None:
        prns = [0] * len(codes)
    # object dtype: long combined codes exceed the int64 range
    return np.array([obs_code_to_num(c, p) for c, p in zip(codes, prns)], dtype=object)


def num_to_obs_code(num: int) -> Tuple[str, int]:
    """Inverse of :func:`obs_code_to_num`, returns (code, unified sat number)"""
    num = int(num)
    if num <= 0:
        return '', 0
    packed, go_id = divmod(num, _SAT_SLOTS)
    return _unpack(packed), go_id


def obs_types(code: str) -> str:
    """Observable type letters of a tracking code ('GL1CL2WI' -> 'LL')"""
    parts = split_obs_code(code)
    if parts is None:
        return ''
    return ''.join(obs[0] for obs in parts[1])


def has_obs_type(code: str, obs_type: str) -> bool:
    """True if any observation of the tracking code is of the given type"""
    return obs_type in obs_types(code)

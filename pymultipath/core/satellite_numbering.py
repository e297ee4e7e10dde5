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

"""Constellation metadata and unified satellite numbering.

Maps constellation characters and PRNs to a single satellite index
(``go_id``) and to display names. The numbering follows the RTKLIB layout:

- GPS (G): 1-32
- SBAS (S): 33-64, 133-140
- GLONASS (R): 65-88
- Galileo (E): 97-132
- BeiDou (C): 141-203
- QZSS (J): 210-216
- IRNSS (I): 230-243
"""

from .constants import (SYS_BDS, SYS_GAL, SYS_GLO, SYS_GPS, SYS_IRN, SYS_NONE,
                        SYS_ORDER, SYS_QZS, SYS_SBS)

SATELLITE_RANGES = {
    SYS_GPS: [(1, 32)],
    SYS_SBS: [(33, 64), (133, 140)],
    SYS_GLO: [(65, 88)],
    SYS_GAL: [(97, 132)],
    SYS_BDS: [(141, 203)],
    SYS_QZS: [(210, 216)],
    SYS_IRN: [(230, 243)],
}

SYS_TO_CHAR = {
    SYS_GPS: 'G',
    SYS_GLO: 'R',
    SYS_GAL: 'E',
    SYS_BDS: 'C',
    SYS_QZS: 'J',
    SYS_SBS: 'S',
    SYS_IRN: 'I',
}

CHAR_TO_SYS = {v: k for k, v in SYS_TO_CHAR.items()}

SYS_NAMES = {
    'G': 'GPS',
    'R': 'GLONASS',
    'E': 'Galileo',
    'C': 'BeiDou',
    'J': 'QZSS',
    'S': 'SBAS',
    'I': 'NavIC',
}

# PRN range of each constellation
PRN_RANGES = {
    'G': [(1, 32)],
    'R': [(1, 24)],
    'E': [(1, 36)],
    'C': [(1, 63)],
    'J': [(1, 7)],
    'S': [(120, 159)],
    'I': [(1, 14)],
}


def prn_to_sat(system_char, prn):
    """Convert system character and PRN to the unified satellite number.

    Parameters
    ----------
    system_char : str
        Single character system identifier (G, R, E, C, J, S, I)
    prn : int
        PRN number within the constellation

    Returns
    -------
    int
        Unified satellite number, or 0 if the PRN or system is invalid

    Examples
    --------
    >>> prn_to_sat('G', 1)
    1
    >>> prn_to_sat('E', 1)
    97
    >>> prn_to_sat('X', 1)
    0
    """
    prn = int(prn)
    if system_char == 'G':
        if 1 <= prn <= 32:
            return prn
    elif system_char == 'R':
        if 1 <= prn <= 24:
            return prn + 64
    elif system_char == 'E':
        if 1 <= prn <= 36:
            return prn + 96
    elif system_char == 'C':
        if 1 <= prn <= 63:
            return prn + 140
    elif system_char == 'J':
        if 1 <= prn <= 7:
            return prn + 209
    elif system_char == 'S':
        if 120 <= prn <= 151:
            return prn - 87
        elif 152 <= prn <= 159:
            return prn - 19
    elif system_char == 'I':
        if 1 <= prn <= 14:
            return prn + 229

    return 0


def sat_to_prn(sat):
    """Convert a unified satellite number back to its constellation PRN.

    Returns 0 for numbers outside every constellation range.
    """
    if sat <= 0 or sat > 255:
        return 0
    elif 1 <= sat <= 32:
        return sat
    elif 33 <= sat <= 64:
        return sat - 33 + 120
    elif 65 <= sat <= 88:
        return sat - 64
    elif 97 <= sat <= 132:
        return sat - 96
    elif 133 <= sat <= 140:
        return sat - 133 + 152
    elif 141 <= sat <= 203:
        return sat - 140
    elif 210 <= sat <= 216:
        return sat - 209
    elif 230 <= sat <= 243:
        return sat - 229
    return 0


def sat_to_sys(sat):
    """Get the system id of a unified satellite number (SYS_NONE if invalid)"""
    for sys_id, ranges in SATELLITE_RANGES.items():
        for lo, hi in ranges:
            if lo <= sat <= hi:
                return sys_id
    return SYS_NONE


def sat_to_char(sat):
    """Get the constellation character of a unified satellite number"""
    return SYS_TO_CHAR.get(sat_to_sys(sat), '')


def sat_name(sat):
    """Display name of a unified satellite number, e.g. 1 -> 'G01'

    SBAS satellites keep their three digit PRN ('S120').
    """
    sys_c = sat_to_char(sat)
    if not sys_c:
        return ''
    prn = sat_to_prn(sat)
    return f"{sys_c}{prn:03d}" if sys_c == 'S' else f"{sys_c}{prn:02d}"


def parse_sat_name(name):
    """Split a satellite name into (system_char, prn).

    Raises
    ------
    ValueError
        If the name is not a constellation character followed by a number
    """
    name = str(name).strip()
    if len(name) < 2 or name[0] not in CHAR_TO_SYS or not name[1:].isdigit():
        raise ValueError(f"Invalid satellite name: {name!r}")
    return name[0], int(name[1:])


def get_sys_name(system_char):
    """Extended name of a constellation ('G' -> 'GPS')"""
    return SYS_NAMES.get(system_char, 'Unknown')


def get_sat_list(system_char):
    """All unified satellite numbers of a constellation, in PRN order"""
    sats = []
    for lo, hi in PRN_RANGES.get(system_char, []):
        for prn in range(lo, hi + 1):
            sat = prn_to_sat(system_char, prn)
            if sat:
                sats.append(sat)
    return sats


def sort_systems(system_chars):
    """Order constellation characters as G R E C J S I, dropping unknown ones"""
    present = set(system_chars)
    return [c for c in SYS_ORDER if c in present]

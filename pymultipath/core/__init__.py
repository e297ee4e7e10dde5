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

"""Core components: constants, time series, constellation metadata and
observation code decoding.

Example Usage:
    >>> from pymultipath.core import EpochTimes, obs_code_to_num
    >>>
    >>> times = EpochTimes([1000.0, 1030.0, 1060.0])
    >>> times.get_rate()
    30.0
    >>> obs_code_to_num('GL1C', 1) > 0
    True
"""

from .constants import *
from .obs_code import (has_obs_type, num_to_obs_code, obs_code_to_num,
                       obs_codes_to_num, obs_types, split_obs_code)
from .satellite_numbering import (get_sat_list, get_sys_name, parse_sat_name,
                                  prn_to_sat, sat_name, sat_to_char, sat_to_prn,
                                  sort_systems)
from .time import EpochTimes, GNSSTime, round_to_rate, snap_rate, to_gps_seconds

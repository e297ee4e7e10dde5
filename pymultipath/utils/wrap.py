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
Angle wrapping for azimuth handling.

Functions operate on float arrays in degrees and are compiled with numba.
"""

import numpy as np
from numba import njit


@njit(cache=True)
def wrapTo360(v1):
    """
    Wrap angles to [0, 360) degrees.

    Parameters
    ----------
    v1 : ndarray
        Vector of angles in degrees

    Returns
    -------
    v2 : ndarray
        Vector of angles in degrees [0, 360)
    """
    v2 = np.mod(v1, 360.0)
    # np.mod of tiny negative values can round up to 360
    v2[v2 >= 360.0] = 0.0
    return v2


@njit(cache=True)
def wrapTo180(v1):
    """
    Wrap angles to [-180, 180) degrees.

    Parameters
    ----------
    v1 : ndarray
        Vector of angles in degrees

    Returns
    -------
    v2 : ndarray
        Vector of angles in degrees [-180, 180)
    """
    return wrapTo360(v1 + 180.0) - 180.0


def wrap_azimuth(az):
    """Wrap azimuths of any shape to [-180, 180) degrees"""
    az = np.asarray(az, dtype=np.float64)
    return wrapTo180(az.ravel().copy()).reshape(az.shape)

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
Constants and Default Parameters
================================

GNSS system identifiers, unit conversions and the default tuning of the
multipath estimation pipeline.
"""

import numpy as np

# ============================================================================
# GNSS SYSTEM IDS
# ============================================================================
SYS_NONE = 0x00   # no system
SYS_GPS = 0x01    # GPS
SYS_GLO = 0x02    # GLONASS
SYS_GAL = 0x04    # Galileo
SYS_BDS = 0x08    # BeiDou
SYS_QZS = 0x10    # QZSS
SYS_SBS = 0x20    # SBAS
SYS_IRN = 0x40    # IRNSS
SYS_ALL = 0xFF    # All systems

# Constellation order used when iterating over systems
SYS_ORDER = ('G', 'R', 'E', 'C', 'J', 'S', 'I')

# ============================================================================
# UNIT CONVERSIONS
# ============================================================================
R2D = 180.0 / np.pi            # radians to degrees
D2R = np.pi / 180.0            # degrees to radians

# ============================================================================
# OBSERVATION CODES (RINEX 3 letters)
# ============================================================================
OBS_TYPE_CODE = 'C'       # pseudorange
OBS_TYPE_PHASE = 'L'      # carrier phase
OBS_TYPE_DOPPLER = 'D'    # doppler
OBS_TYPE_SNR = 'S'        # signal strength
OBS_TYPES = OBS_TYPE_CODE + OBS_TYPE_PHASE + OBS_TYPE_DOPPLER + OBS_TYPE_SNR

# Tracking attributes allowed after the band digit
OBS_ATTRIBUTES = 'ABCDEILMNPQSWXYZ'

# Frequency bands available per constellation
SYS_BANDS = {
    'G': '125',
    'R': '12346',
    'E': '15678',
    'C': '125678',
    'J': '1256',
    'S': '15',
    'I': '59',
}

# ============================================================================
# RESIDUAL STORE
# ============================================================================
DEFAULT_RATE = 1.0        # sampling rate used when it cannot be estimated (s)
# usual receiver sampling rates (s), estimated rates within RATE_SNAP_TOL snap to them
STANDARD_RATES = (0.01, 0.02, 0.05, 0.1, 0.2, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 15.0,
                  20.0, 30.0, 60.0, 120.0, 300.0, 600.0, 900.0, 1800.0, 3600.0)
RATE_SNAP_TOL = 0.01      # relative

# ============================================================================
# MULTIPATH ESTIMATION DEFAULTS
# ============================================================================
MP_L_MAX = (43, 43, 43)           # Zernike max degree of the three passes
MP_REG_LAMBDA = 1e-5              # Tikhonov regularization of the fits
MP_GRID_STEP = 0.5                # output map resolution (deg)
MP_CLEAN_CELL = (360.0, 1.0)      # outlier rejection cells az x el (deg)
MP_CLEAN_N_SIGMA = 4.0            # outlier threshold in robust sigmas
MP_REG_CELL = (1.0, 1.0)          # empty sky search cells az x el (deg)
MP_MAP_CELL = (4.0, 1.0)          # residual gridding cells az x el (deg)
MP_CUTOFF = 10.0                  # elevation cutoff of the processing (deg)
MP_RING_AZ_STEP = 0.05 * R2D      # azimuth sweep of the horizon ring (deg)
MP_RING_EL_STEP = 0.5             # elevation step of the horizon ring (deg)
MP_RING_OFFSET = 3.0              # ring stops this far below the cutoff (deg)
MP_SMOOTH_WINDOW = 300.0          # time smoothing window (s)

# Robust sigma from the median absolute deviation
MAD_TO_STD = 1.4826

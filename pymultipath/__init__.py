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
pymultipath - GNSS residual bookkeeping and multipath mitigation maps

Stores observation residuals (observed minus modelled ranges and phases)
of a receiver across processing sessions, and turns them into per
constellation / tracking code sky maps of the multipath error using
robust outlier rejection, Zernike expansions and polar gridding.
"""

__version__ = "1.0.0"
__author__ = "PyINS Development Team"
__title__ = "pymultipath"
__description__ = "GNSS residual store and multipath mitigation maps"

from .core import *
from .geometry import AzElProvider, TabulatedAzEl
from .residuals import RES_TYPE, ResidualStore, ResidualType
from .multipath import MultipathConfig, MultipathEstimator, MultipathMaps, MultipathSurface
from .utils import *

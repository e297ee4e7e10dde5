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
Multipath mitigation maps.

Modules
-------
config : module
    MultipathConfig, the estimation settings
gridder : module
    Polar gridding of scattered sky samples
cleaner : module
    Robust per cell outlier rejection
zernike : module
    Orthonormal Zernike basis, regularized fit and synthesis
surface : module
    MultipathSurface and the MultipathMaps container
estimator : module
    MultipathEstimator, the full pipeline

Examples
--------
>>> from pymultipath.multipath import MultipathConfig, MultipathEstimator
>>> estimator = MultipathEstimator(MultipathConfig(l_max=[20, 10, 0]))
>>> maps = estimator.estimate(store, azel_provider, marker_name='ROVR')
>>> maps.summary()
"""

from .cleaner import accept, polar_cleaner
from .config import MultipathConfig
from .estimator import (RADIUS_MAPPINGS, MultipathEstimator, ZernikePass,
                        fit_zernike_passes, regularization_points, synthesize_passes)
from .gridder import PolarGrid, empty_grid, polar_gridder
from .surface import MultipathMaps, MultipathSurface
from .zernike import (ZernikeFit, fit, radial_polynomial, synthesize, z_filter,
                      zernike_basis, zernike_indices)

__all__ = [
    'accept', 'polar_cleaner',
    'MultipathConfig',
    'RADIUS_MAPPINGS', 'MultipathEstimator', 'ZernikePass', 'fit_zernike_passes',
    'regularization_points', 'synthesize_passes',
    'PolarGrid', 'empty_grid', 'polar_gridder',
    'MultipathMaps', 'MultipathSurface',
    'ZernikeFit', 'fit', 'radial_polynomial', 'synthesize', 'z_filter',
    'zernike_basis', 'zernike_indices',
]

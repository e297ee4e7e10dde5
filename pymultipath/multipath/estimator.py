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
Multipath mitigation maps from observation residuals.

For every constellation and tracking code of a residual store the residuals
are projected on the sky of the receiver and modelled as:

    1. outlier rejection (raw and time smoothed residuals, per elevation band)
    2. regularization: zero observations where the sky has no data and on a
       ring below the elevation cutoff
    3. three Zernike expansions, each on the residual of the previous one,
       with elevation mapped to the unit disk radius as
       cos(el)^2, sin(pi/2 cos(el)^2) and sin(pi/2 cos(el))
    4. gridding of what the expansions leave, on 4 x 1 degree cells

The Zernike synthesis is the z_map of the surface, the z_map plus the
gridded remainder is the g_map.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np

from ..core.constants import D2R, OBS_TYPE_CODE, OBS_TYPE_PHASE
from ..core.obs_code import obs_code_to_num, obs_types
from ..core.satellite_numbering import get_sys_name, sat_name, sort_systems
from ..logger import indent
from ..residuals.store import ResidualStore
from ..utils.smoothing import smooth_columns
from .cleaner import accept
from .config import MultipathConfig, expand_l_max
from .gridder import empty_grid, polar_gridder
from .surface import MultipathMaps, MultipathSurface
from .zernike import ZernikeFit, z_filter

logger = logging.getLogger(__name__)


def el_to_radius_cos2(el):
    return np.cos(el) ** 2


def el_to_radius_sin_cos2(el):
    return np.sin(np.pi / 2 * np.cos(el) ** 2)


def el_to_radius_sin_cos(el):
    return np.sin(np.pi / 2 * np.cos(el))


# elevation (rad) -> disk radius of the three fitting passes
RADIUS_MAPPINGS = (el_to_radius_cos2, el_to_radius_sin_cos2, el_to_radius_sin_cos)


@dataclass
class ZernikePass:
    """One fitted expansion and the radius mapping it was fitted with"""
    fit: ZernikeFit
    el_to_radius: Callable

    def synthesize(self, az, el) -> np.ndarray:
        """Evaluate at (az, el) in degrees"""
        return self.fit.synthesize(np.asarray(az) * D2R, self.el_to_radius(np.asarray(el) * D2R))


def fit_zernike_passes(az, el, values, l_max: Sequence[int],
                       reg_lambda: float) -> Tuple[List[ZernikePass], np.ndarray]:
    """
    Fit the cascade of Zernike expansions

    Parameters
    ----------
    az, el : array_like
        Sample positions (deg)
    values : array_like
        Samples to model
    l_max : Sequence[int]
        Max degree of each pass, a pass with degree <= 0 is skipped
    reg_lambda : float
        Tikhonov regularization of each fit

    Returns
    -------
    passes : List[ZernikePass]
        Fitted passes, in order
    residual : np.ndarray
        Samples minus all the fitted expansions
    """
    az_rad = np.asarray(az, dtype=float).reshape(-1) * D2R
    el_rad = np.asarray(el, dtype=float).reshape(-1) * D2R
    res_work = np.asarray(values, dtype=float).reshape(-1).copy()

    passes = []
    for i, (degree, el_to_radius) in enumerate(zip(l_max, RADIUS_MAPPINGS)):
        if degree <= 0:
            continue
        logger.debug(indent(f"Zernike coef. estimation (l_max = {degree}) ({i + 1}/{len(RADIUS_MAPPINGS)})", 8))
        fitted, z_fit = z_filter(degree, degree, az_rad, el_to_radius(el_rad), res_work, reg_lambda)
        res_work -= fitted
        passes.append(ZernikePass(z_fit, el_to_radius))
    return passes, res_work


def synthesize_passes(passes: Sequence[ZernikePass], az_grid, el_grid) -> np.ndarray:
    """Sum of the expansions on the az_grid x el_grid mesh, [n_el x n_az]"""
    az_mesh, el_mesh = np.meshgrid(az_grid, el_grid)
    z_map = np.zeros(az_mesh.shape)
    for z_pass in passes:
        z_map += z_pass.synthesize(az_mesh, el_mesh)
    return z_map


def regularization_points(az, el, config: MultipathConfig) -> Tuple[np.ndarray, np.ndarray]:
    """
    Positions of the zero observations constraining the empty sky

    The centers of the cells (reg_cell_size) holding no sample, plus a ring
    of points from the horizon up to cutoff - ring_offset.
    """
    grid = polar_gridder(az, el, np.zeros(np.size(az)), config.reg_cell_size, el_min=0.0)
    az_mesh, el_mesh = grid.mesh()
    empty = grid.count_map <= 0
    az_reg = [az_mesh[empty]]
    el_reg = [el_mesh[empty]]

    az_ring = np.arange(-180.0, 180.0, config.ring_az_step)
    el_top = config.cutoff - config.ring_offset
    for el_ring in np.arange(0.0, el_top + config.ring_el_step / 2, config.ring_el_step):
        az_reg.append(az_ring)
        el_reg.append(np.full(az_ring.size, el_ring))
    return np.concatenate(az_reg), np.concatenate(el_reg)


def _process_group(task: dict) -> dict:
    """Compute the surface of one tracking code group

    The task carries its own copy of the data so that groups can run on
    separate threads.
    """
    config: MultipathConfig = task['config']
    res, az, el = task['res'], task['az'], task['el']
    label = f"{task['name']} {task['sys_c']}{task['trk_code']} of {task['marker_name']}"
    logger.info(indent(f"1. Processing {label}", 4))

    res_smooth = smooth_columns(res, task['window'])
    ok = np.isfinite(res) & np.isfinite(az) & np.isfinite(el)
    az_all, el_all = az[ok], el[ok]
    res_all, res_smt = res[ok], res_smooth[ok]

    if res_all.size == 0:
        return {'error': f"No {task['name']} {task['trk_code']} found in {task['marker_name']} "
                         f"for constellation {get_sys_name(task['sys_c'])}"}

    id_ok = accept(az_all, el_all, res_all, res_smt, config.clean_cell_size, config.clean_n_sigma)
    outlier_ratio = float(np.sum(~id_ok)) / id_ok.size
    logger.info(indent(f"2. Outlier rejection ({outlier_ratio * 100:.3f}%)", 8))
    az_all, el_all, res_all = az_all[id_ok], el_all[id_ok], res_all[id_ok]
    n_obs = res_all.size
    if n_obs == 0:
        return {'error': f"No {task['name']} {task['trk_code']} left after the outlier rejection in "
                         f"{task['marker_name']} for constellation {get_sys_name(task['sys_c'])}"}

    if config.use_regularization:
        logger.info(indent("3. Preparing regularization", 8))
        az_reg, el_reg = regularization_points(az_all, el_all, config)
        az_all = np.concatenate((az_all, az_reg))
        el_all = np.concatenate((el_all, el_reg))
        res_all = np.concatenate((res_all, np.zeros(az_reg.size)))
        logger.debug(indent(f"{az_reg.size} regularization points", 12))

    step = 3 + int(config.use_regularization)
    logger.info(indent(f"{step}. Zernike coef. estimation (l_max = {config.l_max})", 8))
    passes, res_work = fit_zernike_passes(az_all, el_all, res_all, config.l_max, config.reg_lambda)

    logger.info(indent(f"{step + 1}. Compute mitigation grids", 8))
    out = empty_grid(config.grid_step, el_min=0.0)
    z_map = synthesize_passes(passes, out.az_grid, out.el_grid)

    res_work[n_obs:] = 0
    grid = polar_gridder(az_all, el_all, res_work, config.map_cell_size,
                         grid_step=config.grid_step, el_min=0.0)
    g_map = z_map + np.nan_to_num(grid.data_map, nan=0.0)

    surface = MultipathSurface(task['sys_c'], task['trk_code'], out.az_grid, out.el_grid,
                               z_map, g_map, task['time_span'], n_obs, outlier_ratio)
    return {'surface': surface}


class MultipathEstimator:
    """
    Multipath map estimation

    Parameters
    ----------
    config : MultipathConfig, optional
        Estimation settings (defaults when omitted)

    Examples
    --------
    >>> estimator = MultipathEstimator(MultipathConfig(l_max=20))
    >>> maps = estimator.estimate(store, TabulatedAzEl(times, az, el), marker_name='ROVR')
    >>> maps['G', 'L1C'].g_map.shape
    (180, 720)
    """

    def __init__(self, config: Optional[MultipathConfig] = None):
        self.config = config if config is not None else MultipathConfig()

    def _settings(self, l_max, use_regularization) -> MultipathConfig:
        values = self.config.to_dict()
        if l_max is not None:
            values['l_max'] = expand_l_max(l_max)
        if use_regularization is not None:
            values['use_regularization'] = bool(use_regularization)
        return MultipathConfig.from_dict(values)

    def estimate(self, store: ResidualStore, azel_provider, l_max=None,
                 use_regularization: Optional[bool] = None, is_phase: Optional[bool] = None,
                 marker_name: str = 'UNKN') -> MultipathMaps:
        """
        Compute the multipath maps of every constellation / tracking code

        Parameters
        ----------
        store : ResidualStore
            Residuals of the receiver (a snapshot is taken)
        azel_provider : AzElProvider
            Azimuth / elevation of the satellites (deg)
        l_max : int or Sequence[int], optional
            Zernike max degree per pass, overrides the configuration
        use_regularization : bool, optional
            Overrides the configuration
        is_phase : bool, optional
            Model carrier phase (True) or pseudo-range (False) residuals;
            by default phases are used when present
        marker_name : str
            Receiver name used in the messages

        Returns
        -------
        MultipathMaps
            Surfaces keyed by (sys_c, trk_code); data gaps are listed in
            the errors attribute
        """
        maps = MultipathMaps(marker_name=marker_name)
        if store.is_empty():
            logger.warning("Residuals have not been computed")
            return maps

        config = self._settings(l_max, use_regularization)
        res = store.copy()
        if is_phase is None:
            is_phase = any(OBS_TYPE_PHASE in obs_types(code) for code in res.obs_code)
        search_obs = OBS_TYPE_PHASE if is_phase else OBS_TYPE_CODE
        name = 'Carrier-phase residuals' if is_phase else 'Pseudo-ranges residuals'

        time_span = (res.time.first(), res.time.last())
        maps.time_span = time_span
        window = config.smoothing_window_s / res.time.get_rate()

        az, el, sat_names = res.get_azimuth_elevation(azel_provider)
        sat_index = {n: i for i, n in enumerate(sat_names)}
        col_sat = np.array([sat_index.get(sat_name(s), -1) for s in res.column_sat_ids()], dtype=int)

        logger.info(f"Computing multipath mitigation coefficients for \"{marker_name}\"")
        tasks = []
        for sys_c in sort_systems(code[:1] for code in res.obs_code):
            ids = np.flatnonzero([code[:1] == sys_c and search_obs in obs_types(code)
                                  and col_sat[i] >= 0 for i, code in enumerate(res.obs_code)])
            if ids.size == 0:
                self._report(maps, f"No {name} found in {marker_name} for constellation {get_sys_name(sys_c)}")
                continue
            trk_ids = [obs_code_to_num(code, 0) for code in res.obs_code[ids]]
            for trk_id in sorted(set(trk_ids), key=trk_ids.index):
                cols = ids[[t == trk_id for t in trk_ids]]
                tasks.append({
                    'config': config,
                    'name': name,
                    'marker_name': marker_name,
                    'sys_c': sys_c,
                    'trk_code': str(res.obs_code[cols[0]]).strip()[1:],
                    'res': res.value[:, cols].copy(),
                    'az': az[:, col_sat[cols]].copy(),
                    'el': el[:, col_sat[cols]].copy(),
                    'window': window,
                    'time_span': time_span,
                })

        if config.n_workers > 1 and len(tasks) > 1:
            with ThreadPoolExecutor(max_workers=config.n_workers) as executor:
                results = list(executor.map(_process_group, tasks))
        else:
            results = [_process_group(task) for task in tasks]

        for result in results:
            if 'surface' in result:
                maps.add(result['surface'])
            else:
                self._report(maps, result['error'])
        return maps

    @staticmethod
    def _report(maps: MultipathMaps, message: str):
        logger.error(message)
        maps.errors.append(message)

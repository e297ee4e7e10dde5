#!/usr/bin/env python3
"""
Multipath Map Example using pymultipath

This example demonstrates:
1. Accumulating residuals of several processing sessions in a ResidualStore
2. Serving precomputed satellite geometry with TabulatedAzEl
3. Estimating per tracking code multipath maps with MultipathEstimator
4. Inspecting the maps through the summary table

The residuals are synthetic: a multipath pattern depending on azimuth and
elevation plus white noise and a few spikes.
"""

import numpy as np

from pymultipath.core.time import EpochTimes
from pymultipath.geometry import TabulatedAzEl
from pymultipath.logger import setup_logger
from pymultipath.multipath import MultipathConfig, MultipathEstimator
from pymultipath.residuals import ResidualStore, ResidualType

RATE = 30.0
SESSION_EPOCHS = 240
SATELLITES = ['G01', 'G05', 'G12', 'G19', 'G24', 'E03', 'E11', 'E24']


def multipath_pattern(az, el):
    """Synthetic carrier-phase multipath [m]"""
    az_r = np.radians(az)
    el_r = np.radians(el)
    return 0.004 * np.cos(el_r) ** 3 * np.sin(3 * az_r) + 0.002 * np.cos(2 * el_r)


def satellite_tracks(seconds):
    """Azimuth / elevation of every satellite, one sky pass each"""
    phase = (seconds - seconds[0]) / (seconds[-1] - seconds[0])
    az, el = {}, {}
    for k, name in enumerate(SATELLITES):
        az[name] = np.mod(40.0 * k + 150.0 * phase, 360.0)
        el[name] = 10.0 + 75.0 * np.sin(np.pi * np.mod(phase + 0.13 * k, 1.0))
    return az, el


def session_residuals(seconds, az, el, rng):
    """Residual matrix, PRNs and tracking codes of one session"""
    columns, prns, codes = [], [], []
    for name in SATELLITES:
        code = name[0] + 'L1C'
        values = multipath_pattern(az[name], el[name]) + rng.normal(0.0, 0.001, seconds.size)
        spikes = rng.random(seconds.size) < 0.005
        values[spikes] += 0.05
        columns.append(values)
        prns.append(int(name[1:]))
        codes.append(code)
    return np.column_stack(columns), prns, codes


def main():
    logger = setup_logger(level="INFO")
    rng = np.random.default_rng(2024)

    # Two sessions, the second overlapping the end of the first
    store = ResidualStore()
    all_seconds = np.arange(2 * SESSION_EPOCHS) * RATE
    az, el = satellite_tracks(all_seconds)
    for start in (0, SESSION_EPOCHS - 40):
        idx = slice(start, start + SESSION_EPOCHS)
        session_az = {k: v[idx] for k, v in az.items()}
        session_el = {k: v[idx] for k, v in el.items()}
        value, prns, codes = session_residuals(all_seconds[idx], session_az, session_el, rng)
        store.append(ResidualType.UNCOMBINED_ENGINE, EpochTimes(all_seconds[idx], RATE),
                     value, prns, codes)
        logger.info(f"Store after session starting at epoch {start}: {store}")

    provider = TabulatedAzEl(EpochTimes(all_seconds, RATE), az, el)
    config = MultipathConfig(l_max=[12, 8, 0], n_workers=2)
    maps = MultipathEstimator(config).estimate(store, provider, marker_name='SYNT')

    print("\n" + "=" * 60)
    print("MULTIPATH MAPS")
    print("=" * 60)
    print(f"Residual std: {store.standard_deviation() * 1e3:.2f} mm")
    print(maps.summary().to_string(index=False))
    for (sys_c, trk_code), surface in maps.items():
        az_s, el_s = az[SATELLITES[0]][:5], el[SATELLITES[0]][:5]
        print(f"{sys_c}{trk_code} correction at the first epochs of {SATELLITES[0]}: "
              f"{np.round(surface.value_at(az_s, el_s) * 1e3, 2)} mm")
    for message in maps.errors:
        print(f"Missing data: {message}")


if __name__ == '__main__':
    main()

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
Zernike polynomial fitting over the sky.

The sky is mapped on the unit disk: the azimuth is the polar angle and the
elevation is turned into a radius in [0, 1] by a caller supplied mapping
(e.g. ``r = cos(el)**2``, zenith at the center). The residuals are expanded
on the orthonormal Zernike basis Z_l^m by regularized least squares:

    min ||W^(1/2) (A b - y)||^2 + lambda ||b||^2

Radial polynomials are evaluated through Jacobi polynomials, which keeps the
basis accurate up to degrees of about 45 where the explicit factorial sum
loses all its digits.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
from scipy.linalg import lstsq
from scipy.special import eval_jacobi

logger = logging.getLogger(__name__)

# points per design matrix block when synthesizing (4096 x 990 doubles ~ 32 MB)
SYNTHESIS_CHUNK = 4096


@dataclass(frozen=True)
class ZernikeFit:
    """Fitted Zernike expansion

    Attributes
    ----------
    coeffs : np.ndarray
        Coefficient of each basis function
    l : np.ndarray
        Degree of each basis function
    m : np.ndarray
        Order of each basis function (negative for the sine terms)
    """
    coeffs: np.ndarray
    l: np.ndarray
    m: np.ndarray

    @property
    def l_max(self) -> int:
        return int(self.l.max()) if self.l.size else -1

    def synthesize(self, az, r) -> np.ndarray:
        """Evaluate the expansion at (az [rad], r)"""
        return synthesize(self.l, self.m, az, r, self.coeffs)


def zernike_indices(l_max: int, m_max: Optional[int] = None) -> Tuple[np.ndarray, np.ndarray]:
    """
    Degree / order pairs of the basis

    Parameters
    ----------
    l_max : int
        Maximum degree
    m_max : int, optional
        Maximum absolute order (defaults to l_max)

    Returns
    -------
    l, m : np.ndarray
        Pairs with 0 <= l <= l_max, m in -l..l step 2, |m| <= m_max

    Examples
    --------
    >>> l, m = zernike_indices(2)
    >>> list(zip(l.tolist(), m.tolist()))
    [(0, 0), (1, -1), (1, 1), (2, -2), (2, 0), (2, 2)]
    """
    if m_max is None:
        m_max = l_max
    pairs = [(n, m) for n in range(int(l_max) + 1) for m in range(-n, n + 1, 2) if abs(m) <= m_max]
    if not pairs:
        return np.zeros(0, dtype=int), np.zeros(0, dtype=int)
    l, m = np.array(pairs, dtype=int).T
    return l, m


def radial_polynomial(n: int, m: int, r) -> np.ndarray:
    """
    Zernike radial polynomial R_n^m(r)

    Uses R_n^m(r) = (-1)^k r^m P_k^(m,0)(1 - 2 r^2) with k = (n - m) / 2.
    """
    m = abs(int(m))
    n = int(n)
    if m > n or (n - m) % 2:
        raise ValueError(f"Invalid Zernike radial index n={n}, m={m}")
    r = np.asarray(r, dtype=float)
    k = (n - m) // 2
    return (-1) ** k * r ** m * eval_jacobi(k, m, 0, 1.0 - 2.0 * r ** 2)


def zernike_basis(l: np.ndarray, m: np.ndarray, az, r) -> np.ndarray:
    """
    Orthonormal Zernike design matrix

    Parameters
    ----------
    l, m : np.ndarray
        Degree / order of each column
    az : array_like
        Polar angle of the samples (rad)
    r : array_like
        Radius of the samples in [0, 1]

    Returns
    -------
    np.ndarray
        Design matrix [n_samples x n_basis], normalized so that each function
        has unit mean square over the disk
    """
    az = np.asarray(az, dtype=float).reshape(-1)
    r = np.asarray(r, dtype=float).reshape(-1)
    basis = np.empty((az.size, len(l)))
    radial_cache = {}
    for j, (n, mm) in enumerate(zip(np.asarray(l).tolist(), np.asarray(m).tolist())):
        key = (n, abs(mm))
        if key not in radial_cache:
            radial_cache[key] = radial_polynomial(n, abs(mm), r)
        radial = radial_cache[key]
        if mm == 0:
            basis[:, j] = np.sqrt(n + 1.0) * radial
        elif mm > 0:
            basis[:, j] = np.sqrt(2.0 * (n + 1.0)) * radial * np.cos(mm * az)
        else:
            basis[:, j] = np.sqrt(2.0 * (n + 1.0)) * radial * np.sin(-mm * az)
    return basis


def fit(l_max: int, m_max: Optional[int], az, r, values, reg_lambda: float = 1e-5,
        weights=None) -> ZernikeFit:
    """
    Regularized weighted least squares Zernike fit

    Parameters
    ----------
    l_max : int
        Maximum degree
    m_max : int or None
        Maximum absolute order (None = l_max)
    az : array_like
        Polar angle of the samples (rad)
    r : array_like
        Radius of the samples in [0, 1]
    values : array_like
        Values to fit
    reg_lambda : float
        Tikhonov regularization (0 gives the minimum norm least squares)
    weights : array_like, optional
        Observation weights (default 1)

    Returns
    -------
    ZernikeFit
        Coefficients and their (l, m) indices

    Raises
    ------
    ValueError
        With no samples or mismatching inputs
    """
    az = np.asarray(az, dtype=float).reshape(-1)
    r = np.asarray(r, dtype=float).reshape(-1)
    values = np.asarray(values, dtype=float).reshape(-1)
    if not az.size == r.size == values.size:
        raise ValueError(f"az, r and values sizes differ: {az.size}, {r.size}, {values.size}")
    if values.size == 0:
        raise ValueError("Cannot fit a Zernike expansion without samples")
    if reg_lambda < 0:
        raise ValueError(f"reg_lambda must be >= 0, got {reg_lambda}")

    l, m = zernike_indices(l_max, m_max)
    A = zernike_basis(l, m, az, r)
    y = values
    if weights is not None:
        sqrt_w = np.sqrt(np.asarray(weights, dtype=float).reshape(-1))
        A = A * sqrt_w[:, None]
        y = y * sqrt_w

    if reg_lambda > 0:
        A = np.vstack((A, np.sqrt(reg_lambda) * np.eye(l.size)))
        y = np.concatenate((y, np.zeros(l.size)))

    coeffs, _, rank, _ = lstsq(A, y, lapack_driver='gelsd')
    if rank < l.size:
        logger.debug(f"Zernike fit (l_max = {l_max}) is rank deficient: {rank} / {l.size}")
    return ZernikeFit(coeffs, l, m)


def synthesize(l: np.ndarray, m: np.ndarray, az, r, coeffs, chunk_size: int = SYNTHESIS_CHUNK) -> np.ndarray:
    """
    Evaluate a Zernike expansion

    The design matrix is built for at most chunk_size points at a time, so
    full sky grids at high degree stay within a bounded memory footprint.

    Parameters
    ----------
    l, m : np.ndarray
        Degree / order of each coefficient
    az : array_like
        Polar angle (rad), any shape
    r : array_like
        Radius, same shape as az
    coeffs : array_like
        Coefficients
    chunk_size : int
        Points evaluated per block

    Returns
    -------
    np.ndarray
        Values with the shape of az
    """
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    az = np.asarray(az, dtype=float)
    az_flat = az.reshape(-1)
    r_flat = np.asarray(r, dtype=float).reshape(-1)
    coeffs = np.asarray(coeffs, dtype=float)
    values = np.empty(az_flat.size)
    for start in range(0, az_flat.size, chunk_size):
        stop = start + chunk_size
        values[start:stop] = zernike_basis(l, m, az_flat[start:stop], r_flat[start:stop]) @ coeffs
    return values.reshape(az.shape)


def z_filter(l_max: int, m_max: Optional[int], az, r, values, reg_lambda: float = 1e-5,
             weights=None) -> Tuple[np.ndarray, ZernikeFit]:
    """Fit and return the fitted values at the samples with the expansion"""
    z_fit = fit(l_max, m_max, az, r, values, reg_lambda, weights)
    return z_fit.synthesize(az, r), z_fit

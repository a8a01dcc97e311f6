"""Gravitational-wave mode weights in the co-orbital frame.

Non-spinning amplitudes follow Blanchet (2014) Eq. (327), with the spin terms of
Buonanno, Faye & Hinderer (2013) Eqs. (4.13)-(4.15) and the conventions of Boyle
et al. (2014). Amplitudes are kept through relative ``v**3`` (1.5PN) for
``2 <= ell <= 4``; every bracket is built from ``PNTerm`` powers so terms beyond
the system's PN order drop out.

Modes are stored in the standard ``(ell, m)`` order, ``ell`` increasing and ``m``
running from ``-ell`` to ``ell`` within each ``ell``. The co-orbital frame is the
one carried by ``R``: ``z`` along ``ell_hat`` and ``x`` along ``n_hat``.
"""
from __future__ import annotations

from typing import Dict, List, Tuple

import numpy as np
from numpy.typing import NDArray

from .errors import ModeRangeError
from .expansion import pn_expansion_parameter

ELL_MIN = 2
ELL_MAX = 4


def mode_index(ell: int, m: int, ell_min: int = ELL_MIN) -> int:
    """Position of ``(ell, m)`` in an array whose first mode is ``(ell_min, -ell_min)``."""
    return ell * (ell + 1) - ell_min**2 + m


def n_modes(ell_min: int = ELL_MIN, ell_max: int = ELL_MAX) -> int:
    return (ell_max + 1)**2 - ell_min**2


def mode_list(ell_min: int = ELL_MIN, ell_max: int = ELL_MAX) -> List[Tuple[int, int]]:
    return [(ell, m) for ell in range(ell_min, ell_max + 1) for m in range(-ell, ell + 1)]


def _check_range(ell_min: int, ell_max: int) -> None:
    if not 0 <= ell_min <= ell_max <= ELL_MAX:
        raise ModeRangeError(
            f"Mode weights are available for 0 <= ell_min <= ell_max <= {ELL_MAX}; "
            f"got ell_min={ell_min}, ell_max={ell_max}."
        )


def _positive_m_modes(system) -> Tuple[Dict, Dict]:
    """Symmetric and antisymmetric parts of the ``m >= 0`` modes, relative to ``c``."""
    v, nu, delta, M = system.v, system.nu, system.delta, system.M
    S, Sigma = system.S, system.Sigma
    S_ell, Sigma_ell = system.S_ell, system.Sigma_ell
    S_n, Sigma_n = system.S_n, system.Sigma_n
    S_lambda = np.dot(S, system.lambda_hat)
    Sigma_lambda = np.dot(Sigma, system.lambda_hat)
    M2 = M**2
    x = v / pn_expansion_parameter(system)
    i = 1j

    sym = {
        (2, 0): -5 / (14 * np.sqrt(6)) + 0 * x,
        (2, 1): (
            x * (i * delta / 3)
            + x**2 * (i * Sigma_ell / (2 * M2))
            + x**3 * (i * delta * (-17 + 20*nu) / 84)
        ),
        (2, 2): (
            1
            + x**2 * ((-107 + 55*nu) / 42)
            + x**3 * (2 * np.pi - (6*S_ell + 2*Sigma_ell*delta) / (3 * M2))
        ),
        (3, 1): (
            x * (i * delta / (12 * np.sqrt(14)))
            + x**3 * (-i * delta * (4 + nu) / (18 * np.sqrt(14)))
        ),
        (3, 2): (
            x**2 * (np.sqrt(5 / 7) * (1 - 3*nu) / 3)
            + x**3 * (2 * np.sqrt(35) * (S_ell + Sigma_ell*delta) / (21 * M2))
        ),
        (3, 3): (
            x * (-3 * i * np.sqrt(15 / 224) * delta)
            + x**3 * (-3 * i * np.sqrt(15 / 56) * delta * (-2 + nu))
        ),
        (4, 0): -1 / (504 * np.sqrt(2)) + 0 * x,
        (4, 1): x**3 * (i * delta * (1 - 2*nu) / (84 * np.sqrt(10))),
        (4, 2): x**2 * (np.sqrt(5) * (1 - 3*nu) / 63),
        (4, 3): x**3 * (9 * i * delta * (-1 + 2*nu) / (4 * np.sqrt(70))),
        (4, 4): x**2 * (8 * np.sqrt(5 / 7) * (-1 + 3*nu) / 9),
    }
    # nonzero only when a spin has a component in the orbital plane
    anti = {
        (2, 0): x**2 * (np.sqrt(6) * i * Sigma_n / (6 * M2)),
        (2, 1): x**3 * ((4*i*S_lambda + 25*S_n + 4*i*Sigma_lambda*delta + 13*Sigma_n*delta) / (6 * M2)),
        (2, 2): x**2 * (-(Sigma_lambda + i*Sigma_n) / (2 * M2)),
        (3, 1): x**3 * (np.sqrt(14) * (i*S_lambda + S_n + delta*(i*Sigma_lambda + Sigma_n)) / (21 * M2)),
        (3, 3): x**3 * (np.sqrt(210) * i * (S_lambda + i*S_n + delta*(Sigma_lambda + i*Sigma_n)) / (21 * M2)),
    }
    return ({key: expr.sum() for key, expr in sym.items()},
            {key: expr.sum() for key, expr in anti.items()})


def mode_weights(system, ell_min: int = ELL_MIN, ell_max: int = ELL_MAX) -> NDArray[np.complex128]:
    """Co-orbital ``h_{ell m}`` of ``system``, scaled by ``R / M``.

    Modes with ``ell < 2`` are zero. The result is complex with the precision of
    the system's state.
    """
    _check_range(ell_min, ell_max)
    dtype = np.result_type(system.state.dtype, np.complex64)
    h = np.zeros(n_modes(ell_min, ell_max), dtype=dtype)
    c = 2 * system.nu * system.v**2 * np.sqrt(16 * np.pi / 5)
    sym, anti = _positive_m_modes(system)

    for (ell, m), value in sym.items():
        if not ell_min <= ell <= ell_max:
            continue
        h[mode_index(ell, m, ell_min)] = c * value
        if m > 0:
            h[mode_index(ell, -m, ell_min)] = (-1)**ell * np.conj(c * value)
    for (ell, m), value in anti.items():
        if not ell_min <= ell <= ell_max:
            continue
        h[mode_index(ell, m, ell_min)] += c * value
        if m > 0:
            h[mode_index(ell, -m, ell_min)] += (-1)**(ell + 1) * np.conj(c * value)
    return h


def coorbital_waveform(trajectory, ell_min: int = ELL_MIN, ell_max: int = ELL_MAX) -> NDArray[np.complex128]:
    """Mode weights at every sample of ``trajectory``; shape ``(n_modes, len(trajectory))``."""
    _check_range(ell_min, ell_max)
    dtype = np.result_type(trajectory.y.dtype, np.complex64)
    h = np.empty((n_modes(ell_min, ell_max), len(trajectory)), dtype=dtype)
    for k in range(len(trajectory)):
        h[:, k] = mode_weights(trajectory.system_at(k), ell_min, ell_max)
    return h

"""Up-down instability of nearly aligned-spin binaries (Gerosa et al. 2015, Eq. 2).

When the heavier body's spin is aligned with the orbital angular momentum and the
lighter body's spin is anti-aligned, tiny misalignments grow into large
precession between two orbital frequencies ``Omega_plus < Omega_minus``.
"""
from __future__ import annotations

import logging
from typing import Tuple

import numpy as np

from .variables import Omega, v_of_Omega

logger = logging.getLogger(__name__)

CHI_PERP_THRESHOLD = 1e-2


def up_down_instability(system) -> Tuple[float, float]:
    """Frequencies ``(Omega_plus, Omega_minus)`` bounding the unstable region.

    Both are clamped to ``[0, Omega(v=1, M)]``. A system that is not in the
    up-down configuration returns ``(Omega_max, Omega_max)``.
    """
    M = system.M
    Omega_max = Omega(1.0, M)
    if system.M1 > system.M2:
        q = system.M2 / system.M1
        chi_heavy, chi_light = system.chi1_ell, system.chi2_ell
    else:
        q = system.M1 / system.M2
        chi_heavy, chi_light = system.chi2_ell, system.chi1_ell

    if not (chi_heavy > 0 and chi_light < 0):
        return Omega_max, Omega_max

    if q == 1:
        # both radii are infinite for equal masses
        return 0.0, 0.0

    root_heavy = np.sqrt(chi_heavy)
    root_light = np.sqrt(abs(q * chi_light))
    r_plus = M * (root_heavy + root_light)**4 / (1 - q)**2
    r_minus = M * (root_heavy - root_light)**4 / (1 - q)**2
    Omega_plus = np.sqrt(M / r_plus)**3 if r_plus > 0 else np.inf
    Omega_minus = np.sqrt(M / r_minus)**3 if r_minus > 0 else np.inf
    return (
        float(np.clip(Omega_plus, 0.0, Omega_max)),
        float(np.clip(Omega_minus, 0.0, Omega_max)),
    )


def up_down_instability_warn(system, v1: float, ve: float, v_limit: float = 0.5) -> bool:
    """Log a warning if integrating over ``(v1, ve)`` likely crosses the unstable region.

    Only nearly non-precessing systems (``0 < chi_perp <= 1e-2``) are checked, and
    velocities above ``v_limit`` are ignored. Returns whether a warning was issued.
    """
    chi_perp = system.chi_perp
    if not (0 < chi_perp <= CHI_PERP_THRESHOLD):
        return False
    Omega_plus, Omega_minus = up_down_instability(system)
    v_plus, v_minus = v_of_Omega(Omega_plus, system.M), v_of_Omega(Omega_minus, system.M)
    if v1 < min(v_minus, v_limit) and min(ve, v_limit) > v_plus:
        logger.warning(
            "This system is likely to encounter the up-down instability in the\n"
            "frequency range (Omega_plus, Omega_minus)=(%s, %s),\n"
            "corresponding to the range of PN velocity parameters (v_plus, v_minus)=(%s, %s).\n"
            "This is a true physical instability; not just a numerical issue.\n"
            "Despite the initial conditions containing very small precession,\n"
            "the system will likely evolve to have very large precession.\n"
            "M1=%s M2=%s chi1=%s chi2=%s R=%s v=%s v1=%s ve=%s",
            Omega_plus, Omega_minus, v_plus, v_minus,
            system.M1, system.M2, system.chi1, system.chi2, system.R, system.v, v1, ve,
        )
        return True
    return False

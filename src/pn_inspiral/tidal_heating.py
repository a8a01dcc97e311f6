"""Horizon absorption (tidal heating) of each body, after Alvi (2001).

These rates are not truncated at the PN order; the only concession to the PN
order is ``energy_absorption(..., reduce=False)``, which places the total mass
loss at relative 2.5PN with respect to the leading flux.
"""
from __future__ import annotations

from typing import Tuple

import numpy as np

from .expansion import PNTerm

# Absorption enters at v**5 relative to the leading 32 nu**2 v**10 / 5 of the flux.
ABSORPTION_OFFSET = 5


def _sin2_theta(n_hat, chi):
    cross = np.cross(n_hat, chi)
    cross2 = np.dot(cross, cross)
    denominator = cross2 + np.dot(n_hat, chi)**2
    if denominator == 0:
        return 1.0
    return cross2 / denominator


def _single_body(Mi, Mj, chi, chi_sq, chi_mag, system, b):
    # horizon radius and angular velocity (Alvi 2001, p. 2)
    r_h = Mi * (1 + np.sqrt(1 - min(chi_sq, 1.0)))
    Omega_h = chi_mag / (2 * r_h)
    sin2 = _sin2_theta(system.n_hat, chi)
    denominator = chi_mag * sin2
    if denominator == 0:
        phi_dot = system.Omega
    else:
        phi_dot = system.Omega * np.dot(system.ell_hat, chi) / denominator
    # Eq. (10)
    I0 = (16 * r_h / (5 * b**6)) * Mi**5 * Mj**2 * sin2 * (1 - 3/4*chi_sq + 15/4*chi_sq*sin2)
    # Eq. (21)
    S_dot = (phi_dot - Omega_h) * I0
    M_dot = phi_dot * S_dot
    return S_dot, M_dot


def tidal_heating(system) -> Tuple[float, float, float, float]:
    """Rates ``(Sdot1, Mdot1, Sdot2, Mdot2)`` of spin magnitude and mass of each body."""
    b = system.M / system.v**2
    S_dot1, M_dot1 = _single_body(
        system.M1, system.M2, system.chi1, system.chi1_sq, system.chi1_mag, system, b
    )
    S_dot2, M_dot2 = _single_body(
        system.M2, system.M1, system.chi2, system.chi2_sq, system.chi2_mag, system, b
    )
    return S_dot1, M_dot1, S_dot2, M_dot2


def energy_absorption(system, reduce: bool = True, heating=None):
    """Total horizon absorption ``Mdot1 + Mdot2``.

    ``reduce=False`` wraps it in a ``PNTerm`` at ``ABSORPTION_OFFSET`` so it can
    be added to the unsummed flux expansion. ``heating`` reuses an already
    computed ``tidal_heating`` tuple.
    """
    if heating is None:
        heating = tidal_heating(system)
    _, M_dot1, _, M_dot2 = heating
    total = M_dot1 + M_dot2
    if reduce:
        return total
    return PNTerm(ABSORPTION_OFFSET, total, system.pn_order)

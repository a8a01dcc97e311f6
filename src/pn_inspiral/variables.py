"""Scalar mass and frequency combinations shared by the PN formulas and the driver."""
from __future__ import annotations

import numpy as np


def total_mass(M1, M2):
    return M1 + M2


def reduced_mass(M1, M2):
    return M1 * M2 / (M1 + M2)


def reduced_mass_ratio(M1, M2):
    """``nu = M1 M2 / (M1+M2)**2``."""
    return M1 * M2 / (M1 + M2)**2


def mass_difference_ratio(M1, M2):
    """``delta = (M1-M2)/(M1+M2)``; no ordering of the masses is imposed."""
    return (M1 - M2) / (M1 + M2)


def mass_ratio(M1, M2):
    return M1 / M2


def chirp_mass(M1, M2):
    return ((M1 * M2)**3 / (M1 + M2))**0.2


def Omega(v, M=1.0):
    """Orbital angular frequency ``v**3 / M``."""
    return v**3 / M


def v_of_Omega(Omega, M=1.0):
    """PN velocity parameter ``(M Omega)**(1/3)``."""
    return np.cbrt(M * Omega)


def estimated_time_to_merger(M, nu, v):
    """Leading-order time to merger ``5M / (256 nu v**8)``."""
    return 5 * M / (256 * nu * v**8)


def fISCO(q, M):
    """BKL approximation to the ISCO frequency (Hanna et al. 2008, Eq. 5); ignores spins."""
    if q > 1:
        q = 1 / q
    return (10 + q*(28 + q*(-26 + q*8))) / (10 * np.pi * (6*M)**1.5)


def OmegaISCO(q, M):
    return 2 * np.pi * fISCO(q, M)

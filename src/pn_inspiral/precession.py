"""Precession of the orbital frame and of the two spins.

Orbital precession follows Bohé et al. (2013) Eqs. (4.1)-(4.4), with the
spin-squared terms of Bohé et al. (2015) Eq. (3.32). Spin precession combines
Kidder (1995) Eq. (2.4), Bohé et al. (2013) Eq. (4.5) and Racine (2008) Eq. (2.7).

Each bracketed series is built from ``PNTerm`` powers of ``v/c`` so that terms
beyond the system's PN order drop out, counted from the leading term of the
bracket. The overall ``v`` prefactors are applied to the summed bracket.
"""
from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from .expansion import pn_expansion_parameter
from .variables import mass_difference_ratio, reduced_mass_ratio, total_mass


def gamma_pn(system) -> float:
    """``M / r``, the PN parameter of the separation; Bohé et al. (2013) Eq. (4.3)."""
    v, nu, delta = system.v, system.nu, system.delta
    s, sigma = system.s_ell, system.sigma_ell
    kp, km = system.kappa_plus, system.kappa_minus
    c = pn_expansion_parameter(system)
    x = v / c

    # the 3PN gauge term -22 nu log(r/r0')/3 cancels from physical quantities and is left out
    expansion = (
        1
        + x**2 * (1 - nu/3)
        + x**4 * (1 - 65*nu/12)
        + x**6 * (1 + (-2203/2520 - 41*np.pi**2/192)*nu + 229*nu**2/36 + nu**3/81)
        + x**3 * (5/3*s + delta*sigma)
        + x**5 * ((10/3 + 8*nu/9)*s + 2*delta*sigma)
        + x**7 * ((5 - 127*nu/12 - 6*nu**2)*s + delta*(3 - 61*nu/6 - 8*nu**2/3)*sigma)
        + x**4 * (
            s**2*(-kp/2 - 1)
            + s*sigma*(-delta*kp/2 - delta + km/2)
            + sigma**2*(delta*km/4 - kp/4 + (kp/2 + 1)*nu)
        )
        + x**6 * (
            s**2*(-11*delta*km/12 - 11*kp/12 + 14/9 + (-kp/6 - 1/3)*nu)
            + s*sigma*(5*delta/3 + (-delta*kp/6 - delta/3 + 23*km/6)*nu)
            + sigma**2*(1 + (delta*km - kp - 2)*nu + (kp/6 + 1/3)*nu**2)
        )
    )
    return v**2 * expansion.sum()


def a_ell(system) -> float:
    """Bohé et al. (2013) Eq. (4.4)."""
    v, nu, delta, M = system.v, system.nu, system.delta, system.M
    S_n, Sigma_n = system.S_n, system.Sigma_n
    x = v / pn_expansion_parameter(system)

    expansion = (
        (7*S_n + 3*delta*Sigma_n)
        + x**2 * ((-10 - 29*nu/3)*S_n + delta*(-6 - 9*nu/2)*Sigma_n)
        + x**4 * ((3/2 + 59*nu/4 + 52*nu**2/9)*S_n + delta*(3/2 + 73*nu/8 + 17*nu**2/6)*Sigma_n)
    )
    return v**7 / M**3 * expansion.sum()


def Omega_p(system) -> NDArray[np.float64]:
    """Angular velocity of the orbital axis, ``d(ell_hat)/dt = Omega_p x ell_hat``."""
    return gamma_pn(system) * a_ell(system) / system.v**3 * system.n_hat


def _Omega_chi(Mj, Mk, chi_j, chi_k, system) -> NDArray[np.float64]:
    # nu and delta here are computed with body j first
    v = system.v
    M, nu, delta = total_mass(Mj, Mk), reduced_mass_ratio(Mj, Mk), mass_difference_ratio(Mj, Mk)
    n_hat, ell_hat = system.n_hat, system.ell_hat
    chi_jn = np.dot(chi_j, n_hat)
    chi_kn = np.dot(chi_k, n_hat)
    x = v / pn_expansion_parameter(system)

    expansion = (
        x * (Mk**2 / M**2 * (-chi_k + 3*chi_kn*n_hat))
        + (
            (3/4 + nu/2 - 3*delta/4)
            + x**2 * (9/16 + 5*nu/4 - nu**2/24 + delta*(-9/16 + 5*nu/8))
            + x**4 * (27/32 + 3*nu/16 - 105*nu**2/32 - nu**3/48 + delta*(-27/32 + 39*nu/8 - 5*nu**2/32))
        ) * ell_hat
        + x * (3*nu*chi_jn*n_hat)
    )
    return v**5 / M * expansion.sum()


def Omega_chi1(system) -> NDArray[np.float64]:
    """Precession angular velocity of ``chi1``: ``d(chi1)/dt = Omega_chi1 x chi1`` at fixed magnitude."""
    return _Omega_chi(system.M1, system.M2, system.chi1, system.chi2, system)


def Omega_chi2(system) -> NDArray[np.float64]:
    return _Omega_chi(system.M2, system.M1, system.chi2, system.chi1, system)

"""Orbital binding energy of a quasicircular compact binary and its ``v`` derivative.

Nonspinning terms through 4PN follow Blanchet (2014) Eq. (233) and Jaranowski &
Schäfer (2013) with Bini & Damour (2013a); the partial 5PN, 5.5PN and 6PN terms
follow Bini & Damour (2013b). Spin-orbit terms are from Bohé et al. (2012),
spin-squared from Arun et al. (2009) Eq. (C4), and the neutron-star tidal terms
from Vines et al. (2011) Eq. (2.11).

The energy is written as

    E = -M nu v**2 / 2 * sum_k (a_k + b_k log v) v**k

and ``coefficients`` returns the lists ``a`` and ``b``. The derivative follows
term by term, so there is no separately tabulated ``E'``.
"""
from __future__ import annotations

from typing import List, Tuple

import numpy as np

from .expansion import PNExpansion, evaluate_pn_series

EULER_GAMMA = np.euler_gamma
PI = np.pi
LOG2 = np.log(2.0)
LOG3 = np.log(3.0)

# Bini & Damour (2013b) constants that are not yet known; a6_ln1 is read off their Eq. (64).
A6_C1 = 0.0
A6_LN1 = -144 / 5
A65_C1 = 0.0
A7_LN1 = 0.0
A7_C1 = 0.0

N_TERMS = 13

_E4_NU = -123671/5760 + 9037*PI**2/1536 + 1792*LOG2/15 + 896*EULER_GAMMA/15
_E4_NU2 = -498449/3456 + 3157*PI**2/576
_E5_NU = -228916843/115200 - 9976*EULER_GAMMA/35 + 729*LOG3/7 - 23672*LOG2/35 + 126779*PI**2/512
_E5_NU2 = 189745/576 - 21337*PI**2/1024 + 3*A6_C1 - 896*LOG2/5 - 448*EULER_GAMMA/5 + 2*A6_LN1/3
_E5_NU3 = -1353*PI**2/256 + 69423/512
_E6_NU = (
    -389727504721/43545600 + 74888*LOG2/243 - 7128*LOG3/7
    - 3934568*EULER_GAMMA/8505 + 9118627045*PI**2/5308416 - 30809603*PI**4/786432
)
_E6_NU2 = (
    113594718743/14515200 + 18491*PI**4/2304 + 246004*LOG2/105 + 112772*EULER_GAMMA/105
    + 11*A6_C1/2 + A6_LN1 + 2*A7_LN1/3 + 11*A7_C1/3 - 86017789*PI**2/110592 - 2673*LOG3/14
)
_E6_NU3 = (
    -75018547/51840 + 1232*EULER_GAMMA/27 + 6634243*PI**2/110592
    - 11*A6_C1/2 + 2464*LOG2/27 - 20*A6_LN1/9
)
_E6_NU4 = 272855*PI**2/124416 - 20543435/373248


def coefficients(system) -> Tuple[List[float], List[float]]:
    """Constant and ``log v`` parts of the bracketed series, indexed by power of ``v``."""
    nu, delta, M = system.nu, system.delta, system.M
    s_ell, sigma_ell = system.s_ell, system.sigma_ell
    chi1_sq, chi2_sq, chi1_chi2 = system.chi1_sq, system.chi2_sq, system.chi1_chi2
    chi_a_ell, chi_s_ell = system.chi_a_ell, system.chi_s_ell
    M1, M2 = system.M1, system.M2
    lambda1, lambda2 = system.lambda1_tidal, system.lambda2_tidal

    a = [0.0] * N_TERMS
    b = [0.0] * N_TERMS

    # nonspinning
    a[0] = 1.0
    a[2] = -3/4 - nu/12
    a[4] = -27/8 + 19*nu/8 - nu**2/24
    a[6] = -675/64 + (34445/576 - 205*PI**2/96)*nu - 155*nu**2/96 - 35*nu**3/5184
    a[8] = -3969/128 + _E4_NU*nu + _E4_NU2*nu**2 + 301*nu**3/1728 + 77*nu**4/31104
    b[8] = 896*nu/15
    a[10] = -45927/512 + _E5_NU*nu + _E5_NU2*nu**2 + _E5_NU3*nu**3 + 55*nu**4/512 + nu**5/512
    b[10] = -9976*nu/35 + (-448/5 + 6*A6_LN1)*nu**2
    a[11] = 10*nu/3 * (13696*PI/525 + nu*A65_C1)
    a[12] = (
        -264627/1024 + _E6_NU*nu + _E6_NU2*nu**2 + _E6_NU3*nu**3 + _E6_NU4*nu**4
        + 5159*nu**5/248832 + 2717*nu**6/6718464
    )
    b[12] = 2 * (
        11*A7_LN1/3 - 1967284*nu/8505 + (56386/105 + 11*A6_LN1/2)*nu**2 + (616/27 - 11*A6_LN1/2)*nu**3
    )

    # spin-orbit
    a[3] += 14*s_ell/3 + 2*delta*sigma_ell
    a[5] += (11 - 61*nu/9)*s_ell + delta*(3 - 10*nu/3)*sigma_ell
    a[7] += (135/4 - 367*nu/4 + 29*nu**2/12)*s_ell + delta*(27/4 - 39*nu + 5*nu**2/4)*sigma_ell

    # spin-squared
    a[4] += (
        (1 + delta - 2*nu)*(chi1_sq + chi2_sq)/4 - 3*(chi_a_ell**2 + chi_s_ell**2)/2
        - delta*(chi2_sq/2 + 3*chi_a_ell*chi_s_ell) + (chi1_chi2 + 6*chi_a_ell**2)*nu
    )

    # neutron-star tidal coupling; zero for black holes
    if lambda1 != 0 or lambda2 != 0:
        a[10] += -9*((M1/M2)*lambda2 + (M2/M1)*lambda1) / M**5
        a[12] += (
            -11/2*(M1/M2)*(3 + 2*M2/M + 3*(M2/M)**2)*lambda2
            - 11/2*(M2/M1)*(3 + 2*M1/M + 3*(M1/M)**2)*lambda1
        ) / M**5

    return a, b


def binding_energy(system):
    """``E(v)`` truncated at the system's PN order."""
    a, b = coefficients(system)
    v, M, nu = system.v, system.M, system.nu
    logv = np.log(v)
    series = [ak + bk*logv for ak, bk in zip(a, b)]
    return -M * nu * v**2 / 2 * evaluate_pn_series(series, v, system.pn_order)


def binding_energy_deriv(system, reduce: bool = True):
    """``dE/dv``, truncated at the system's PN order.

    With ``reduce=False`` the unsummed ``PNExpansion`` is returned; its entries
    carry their powers of ``v`` so the T4/T5 series ratios can work on it.
    """
    a, b = coefficients(system)
    v, M, nu = system.v, system.M, system.nu
    logv = np.log(v)
    # d/dv[(a + b log v) v**(k+2)] = [(k+2)(a + b log v) + b] v**(k+1)
    series = [(k + 2)*(ak + bk*logv) + bk for k, (ak, bk) in enumerate(zip(a, b))]
    prefactor = -M * nu * v / 2
    if reduce:
        return prefactor * evaluate_pn_series(series, v, system.pn_order)
    return PNExpansion.from_coefficients(series, v, system.pn_order, prefactor=prefactor)

"""Gravitational-wave energy flux to infinity.

Nonspinning terms through 4.5PN: Blanchet et al. (2023) Eq. (6.11).
Spin-orbit through 4PN: Marsat et al. (2013) Eq. (4.9).
Spin-squared through 3PN: Bohé et al. (2015) Eq. (4.14).
Spin-cubed at 3.5PN: Marsat (2014) Eq. (6.19).
Extreme-mass-ratio terms at 5PN-6PN: Fujita (2012) Appendix A.
Neutron-star tidal terms at 5PN and 6PN: Vines et al. (2011) Eq. (3.6).

The flux is ``32 nu**2 / 5 * v**10 * sum_k c_k v**k``; ``coefficients`` returns
the ``c_k``, with every ``log v`` already folded in.
"""
from __future__ import annotations

from typing import List

import numpy as np

from .expansion import PNExpansion, evaluate_pn_series

EULER_GAMMA = np.euler_gamma
PI = np.pi
LOG2 = np.log(2.0)
LOG3 = np.log(3.0)
LOG5 = np.log(5.0)
ZETA3 = 1.2020569031595942

N_TERMS = 13

_F4_0 = -323105549467/3178375200 + 232597*EULER_GAMMA/4410 - 1369*PI**2/126 + 39931*LOG2/294 - 47385*LOG3/1568
_F4_NU = (
    -1452202403629/1466942400 + 41478*EULER_GAMMA/245 - 267127*PI**2/4608
    + 479062*LOG2/2205 + 47385*LOG3/392
)
_F5_0 = (
    -2500861660823683/2831932303200 - 424223*PI**2/6804 - 83217611*LOG2/1122660
    + 916628467*EULER_GAMMA/7858620 + 47385*LOG3/196
)
_F55_0 = (
    -142155*PI*LOG3/784 + 8399309750401*PI/101708006400 + 177293*EULER_GAMMA*PI/1176
    + 8521283*PI*LOG2/17640
)
_F6_0 = (
    -271272899815409*LOG2/157329572400 - 54784*PI**2*LOG2/315
    - 246137536815857*EULER_GAMMA/157329572400 - 437114506833*LOG3/789268480
    - 256*PI**4/45 - 27392*EULER_GAMMA*PI**2/315 - 27392*ZETA3/105 - 37744140625*LOG5/260941824
    + 1465472*EULER_GAMMA**2/11025 + 5861888*EULER_GAMMA*LOG2/11025 + 5861888*LOG2**2/11025
    + 2067586193789233570693/602387400044430000 + 3803225263*PI**2/10478160
)
_F6_LOG = (
    -246137536815857/157329572400 - 27392*PI**2/315 + 2930944*EULER_GAMMA/11025 + 5861888*LOG2/11025
)


def _tidal_10(X, Lambda):
    return (18 - 12*X) * Lambda * X**4


def _tidal_12(X, Lambda):
    return (-704 - 1803*X + 4501*X**2 - 2170*X**3) * Lambda * X**4 / 28


def coefficients(system) -> List[float]:
    nu, delta = system.nu, system.delta
    s, sigma = system.s_ell, system.sigma_ell
    kp, km = system.kappa_plus, system.kappa_minus
    lp, lm = system.spin_lambda_plus, system.spin_lambda_minus
    logv = np.log(system.v)

    c = [0.0] * N_TERMS

    # nonspinning
    c[0] = 1.0
    c[2] = -1247/336 - 35*nu/12
    c[3] = 4*PI
    c[4] = -44711/9072 + 9271*nu/504 + 65*nu**2/18
    c[5] = (-8191/672 - 583*nu/24)*PI
    c[6] = (
        6643739519/69854400 + 16*PI**2/3 - 1712*(EULER_GAMMA + 2*LOG2 + logv)/105
        + (-134543/7776 + 41*PI**2/48)*nu - 94403*nu**2/3024 - 775*nu**3/324
    )
    c[7] = (-16285/504 + 214745*nu/1728 + 193385*nu**2/3024)*PI
    c[8] = (
        _F4_0 + 232597*logv/4410
        + (_F4_NU + 41478*logv/245)*nu
        + (1607125/6804 - 3157*PI**2/384)*nu**2 + 6875*nu**3/504 + 5*nu**4/6
    )
    c[9] = (
        265978667519/745113600 - 6848*(EULER_GAMMA + 2*LOG2 + logv)/105
        + (2062241/22176 + 41*PI**2/12)*nu - 133112905*nu**2/290304 - 3719141*nu**3/38016
    )*PI

    # spin-orbit
    c[3] += -4*s - 5*delta/4*sigma
    c[5] += (-9/2 + 272*nu/9)*s + (-13/16 + 43*nu/4)*delta*sigma
    c[6] += -16*PI*s - 31*PI/6*delta*sigma
    c[7] += (
        (476645/6804 + 6172*nu/189 - 2810*nu**2/27)*s
        + (9535/336 + 1849*nu/126 - 1501*nu**2/36)*delta*sigma
    )
    c[8] += (-3485/96 + 13879*nu/72)*PI*s + (-7163/672 + 130583*nu/2016)*PI*delta*sigma

    # spin-squared
    c[4] += (
        s**2*(2*kp + 4)
        + s*sigma*(2*delta*kp + 4*delta - 2*km)
        + sigma**2*(-delta*km + kp + 1/16 + (-2*kp - 4)*nu)
    )
    c[6] += (
        s**2*(41*delta*km/16 - 271*kp/112 - 5239/504 + (-43*kp/4 - 43/2)*nu)
        + s*sigma*(-279*delta*kp/56 - 817*delta/56 + 279*km/56 + (-43*delta*kp/4 - 43*delta/2 + km/2)*nu)
        + sigma**2*(
            279*delta*km/112 - 279*kp/112 - 25/8
            + (45*delta*km/16 + 243*kp/112 + 344/21)*nu
            + (43*kp/4 + 43/2)*nu**2
        )
    )

    # spin-cubed
    c[7] += (
        s**3*(-16*kp/3 - 4*lp + 40/3)
        + s**2*sigma*(-35*delta*kp/6 - 6*delta*lp + 73*delta/3 - 3*km/4 + 6*lm)
        + s*sigma**2*(
            -35*delta*km/12 + 6*delta*lm + 35*kp/12 - 6*lp + 32/3
            + (22*kp/3 + 12*lp - 172/3)*nu
        )
        + sigma**3*(
            67*delta*kp/24 - 2*delta*lp - delta/8 - 67*km/24 + 2*lm
            + (delta*kp/2 + 2*delta*lp - 11*delta + 61*km/12 - 6*lm)*nu
        )
    )

    # extreme-mass-ratio limit
    c[10] = _F5_0 + 916628467*logv/7858620
    c[11] = _F55_0 + 177293*PI*logv/1176
    c[12] = _F6_0 + logv*(_F6_LOG + 1465472*logv/11025)

    # neutron-star tidal coupling
    Lambda1, Lambda2 = system.Lambda1, system.Lambda2
    if Lambda1 != 0 or Lambda2 != 0:
        X1, X2 = system.X1, system.X2
        c[10] += _tidal_10(X1, Lambda1) + _tidal_10(X2, Lambda2)
        c[12] += _tidal_12(X1, Lambda1) + _tidal_12(X2, Lambda2)

    return c


def energy_flux(system, reduce: bool = True):
    """Energy flux truncated at the system's PN order.

    ``reduce=False`` returns the unsummed ``PNExpansion`` whose entry ``k`` is
    ``32 nu**2 / 5 * v**10 * c_k * v**k``.
    """
    c = coefficients(system)
    v, nu = system.v, system.nu
    prefactor = 32 * nu**2 / 5 * v**10
    if reduce:
        return prefactor * evaluate_pn_series(c, v, system.pn_order)
    return PNExpansion.from_coefficients(c, v, system.pn_order, prefactor=prefactor)

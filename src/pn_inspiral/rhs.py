from __future__ import annotations

from typing import Callable, Dict

import numpy as np
from numpy.typing import NDArray

from . import quaternion as quat
from .binding_energy import binding_energy_deriv
from .errors import UnsupportedApproximantError
from .flux import energy_flux
from .precession import Omega_chi1, Omega_chi2, Omega_p
from .series import truncated_series_ratio_unit
from .system import CHI1_SLICE, CHI2_SLICE, M1_INDEX, M2_INDEX, PHI_INDEX, R_SLICE, V_INDEX, PNSystem
from .tidal_heating import energy_absorption, tidal_heating


def causes_domain_error(udot: NDArray[np.float64], system: PNSystem) -> bool:
    """Fill ``udot`` with NaN when ``v <= 0``; the solver then rejects the step and shrinks it."""
    if system.v <= 0:
        udot[:] = np.nan
        return True
    return False


def _pack(udot: NDArray[np.float64], system: PNSystem, v_dot: float, heating) -> None:
    """Everything except ``v_dot`` is shared by the three approximants."""
    S_dot1, M_dot1, S_dot2, M_dot2 = heating
    M1, M2 = system.M1, system.M2
    chi1, chi2 = system.chi1, system.chi2
    ell_hat = system.ell_hat
    Omega = system.Omega

    # angular velocity of the orbital frame
    Omega_vec = Omega_p(system) + Omega * ell_hat

    chi1_hat = ell_hat if system.chi1_mag == 0 else chi1 / system.chi1_mag
    chi2_hat = ell_hat if system.chi2_mag == 0 else chi2 / system.chi2_mag
    chi1_dot = (S_dot1 / M1**2) * chi1_hat - (2 * M_dot1 / M1) * chi1 + np.cross(Omega_chi1(system), chi1)
    chi2_dot = (S_dot2 / M2**2) * chi2_hat - (2 * M_dot2 / M2) * chi2 + np.cross(Omega_chi2(system), chi2)

    R_dot = quat.omega_times_rotor(Omega_vec, system.R) / 2

    udot[M1_INDEX] = M_dot1
    udot[M2_INDEX] = M_dot2
    udot[CHI1_SLICE] = chi1_dot
    udot[CHI2_SLICE] = chi2_dot
    udot[R_SLICE] = R_dot
    udot[V_INDEX] = v_dot
    udot[PHI_INDEX] = Omega
    # tidal parameters are constants of the motion
    udot[PHI_INDEX + 1:] = 0.0


def taylor_t1(udot: NDArray[np.float64], system: PNSystem) -> None:
    """``v_dot = -(F + Mdot1 + Mdot2) / E'`` with each piece summed numerically first."""
    if causes_domain_error(udot, system):
        return
    heating = tidal_heating(system)
    v_dot = -(energy_flux(system) + heating[1] + heating[3]) / binding_energy_deriv(system)
    _pack(udot, system, v_dot, heating)


def taylor_t4(udot: NDArray[np.float64], system: PNSystem) -> None:
    """The ratio ``-(F + Mdot)/E'`` is re-expanded in ``v`` and truncated before evaluation."""
    if causes_domain_error(udot, system):
        return
    heating = tidal_heating(system)
    numerator = energy_flux(system, reduce=False) + energy_absorption(system, reduce=False, heating=heating)
    denominator = binding_energy_deriv(system, reduce=False)
    v_dot = -truncated_series_ratio_unit(numerator.coeffs, denominator.coeffs)
    _pack(udot, system, v_dot, heating)


def taylor_t5(udot: NDArray[np.float64], system: PNSystem) -> None:
    """As T4, but ``dt/dv = -E'/(F + Mdot)`` is the expanded series; its value is then inverted."""
    if causes_domain_error(udot, system):
        return
    heating = tidal_heating(system)
    numerator = energy_flux(system, reduce=False) + energy_absorption(system, reduce=False, heating=heating)
    denominator = binding_energy_deriv(system, reduce=False)
    v_dot = -1 / truncated_series_ratio_unit(denominator.coeffs, numerator.coeffs)
    _pack(udot, system, v_dot, heating)


APPROXIMANTS: Dict[str, Callable[[NDArray[np.float64], PNSystem], None]] = {
    "TaylorT1": taylor_t1,
    "TaylorT4": taylor_t4,
    "TaylorT5": taylor_t5,
}


def get_approximant(name: str) -> Callable[[NDArray[np.float64], PNSystem], None]:
    try:
        return APPROXIMANTS[name]
    except KeyError:
        raise UnsupportedApproximantError(
            f"Approximant {name!r} is not supported; choose one of {', '.join(APPROXIMANTS)}."
        ) from None


def make_rhs(approximant: str, template: PNSystem) -> Callable[[float, NDArray[np.float64]], NDArray[np.float64]]:
    """``fun(t, y)`` for scipy, evaluating ``approximant`` on states shaped like ``template``.

    ``y`` is wrapped read-only in a fresh system per call and never modified.
    """
    builder = get_approximant(approximant)
    cls = type(template)
    pn_order = template.pn_order

    def fun(t: float, y: NDArray[np.float64]) -> NDArray[np.float64]:
        system = cls.from_vector(y, pn_order, copy=False)
        udot = np.empty_like(y)
        builder(udot, system)
        return udot

    return fun

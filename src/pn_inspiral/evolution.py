"""Orbital evolution of a quasicircular compact binary.

The integration starts from the state at ``Omega_i``, runs forwards in time to
``Omega_e`` (or until PN breaks down), and, when ``Omega_1 < Omega_i``, runs a
second time backwards from the same initial state to ``Omega_1``. The two runs
are stitched into one time-ordered ``Trajectory`` with ``t = 0`` at the initial
state.
"""
from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from . import quaternion as quat
from .config import RunConfig
from .errors import (
    FrequencyOrderingError,
    InitialConditionError,
    InitialVelocityError,
    NonPositiveMassError,
    SamplingOptionsError,
    UnphysicalSpinError,
)
from .instability import up_down_instability_warn
from .integrate import integrate_direction
from .rhs import get_approximant, make_rhs
from .system import PNSystem, state_dtype, system_class_for
from .termination import TerminationCriteria, default_backwards, default_forwards
from .trajectory import Trajectory, combine_solutions, uniform_in_phase, uniform_in_time
from .variables import Omega, estimated_time_to_merger, v_of_Omega

logger = logging.getLogger(__name__)

# roughly eleven significant digits of local accuracy in double precision
TOLERANCE_EXPONENT = 11 / 16


def default_tolerances(M, n_fields: int, dtype=float):
    """``rtol = eps**(11/16)`` for the state's float type.

    ``atol`` is the same except for the masses, which use ``spacing(M)``.
    """
    eps = np.finfo(dtype).eps
    rtol = float(eps**TOLERANCE_EXPONENT)
    atol = np.full(n_fields, rtol)
    atol[:2] = np.spacing(np.asarray(M, dtype=dtype))**TOLERANCE_EXPONENT
    return rtol, atol


def _validate(M1, M2, chi1, chi2, Omega_i, v_i):
    if M1 <= 0 or M2 <= 0:
        raise NonPositiveMassError(f"Unphysical masses: M1={M1}, M2={M2}.")
    for body, chi in ((1, chi1), (2, chi2)):
        chi_sq = np.dot(chi, chi)
        if chi_sq > 1:
            raise UnphysicalSpinError(
                f"Unphysical spin on body {body}: |chi{body}|={np.sqrt(chi_sq)}.\n"
                "This is a dimensionless spin, which should be less than 1.\n"
                f"Perhaps you forgot to divide by M{body}**2."
            )
    if v_i >= 1:
        raise InitialVelocityError(
            f"The input Omega_i={Omega_i} is too large; with these masses, it corresponds to\n"
            f"v_i={v_i}, which is beyond the reach of post-Newtonian methods."
        )


def _check_sampling(saves_per_orbit, t_eval, dt) -> None:
    given = [name for name, value in (("saves_per_orbit", saves_per_orbit > 0),
                                      ("t_eval", t_eval is not None),
                                      ("dt", dt is not None)) if value]
    if len(given) > 1:
        raise SamplingOptionsError(
            f"It doesn't make sense to pass {' *and* '.join(f'`{g}`' for g in given)}; only one may be passed."
        )
    if dt is not None and not (np.isfinite(dt) and dt > 0):
        raise SamplingOptionsError(f"dt must be positive and finite; got dt={dt}.")
    if t_eval is not None and np.ndim(t_eval) != 1:
        raise SamplingOptionsError(
            f"t_eval must be a 1-D sequence of times; got {t_eval!r}. Use `dt` for a fixed spacing."
        )


def _sample(trajectory: Trajectory, saves_per_orbit, t_eval, dt) -> Trajectory:
    if len(trajectory) < 2:
        # nothing was integrated; the initial state is the whole result
        return trajectory
    if saves_per_orbit > 0:
        return uniform_in_phase(trajectory, saves_per_orbit)
    if dt is not None:
        return uniform_in_time(trajectory, dt)
    if t_eval is not None:
        return trajectory.resampled(t_eval)
    return trajectory


def _check_initial_rhs(fun, system: PNSystem) -> None:
    state = system.state
    udot = fun(0.0, state)
    if not (np.all(np.isfinite(udot)) and np.all(np.isfinite(state))):
        logger.error(
            "Found a non-finite value with initial parameters:\nstate=%s\nderivative=%s\nsystem=%r",
            state, udot, system,
        )
        raise InitialConditionError(
            "The right-hand side is not finite at the initial condition; "
            "the chosen PN order or approximant breaks down at the starting point."
        )


def orbital_evolution(M1, M2, chi1, chi2, Omega_i, *,
                      Omega_1=None,
                      Omega_e=None,
                      R_i=None,
                      lambda1=0.0,
                      lambda2=0.0,
                      approximant: str = "TaylorT1",
                      pn_order="max",
                      check_up_down_instability: bool = True,
                      rtol=None,
                      atol=None,
                      method="DOP853",
                      max_step=np.inf,
                      first_step=None,
                      termination_criteria_forwards: Optional[TerminationCriteria] = None,
                      termination_criteria_backwards: Optional[TerminationCriteria] = None,
                      quiet: bool = True,
                      force_dtmin: bool = True,
                      saves_per_orbit: int = 0,
                      t_eval=None,
                      dt=None) -> Trajectory:
    """Integrate the inspiral of a non-eccentric binary.

    ``M1, M2, chi1, chi2`` are the masses and dimensionless spins at the initial
    orbital frequency ``Omega_i``. ``Omega_1 <= Omega_i`` is the frequency of the
    first output sample (a backwards run is added when it is smaller) and
    ``Omega_e`` the frequency at which the forwards run stops; the corresponding
    ``v`` is capped at 1. Body 2 is the neutron star when only one tidal
    parameter is nonzero.

    The output is sampled at the solver's steps unless one of three policies is
    given: ``saves_per_orbit`` samples uniformly in orbital phase, ``dt`` every
    ``dt`` from the first sample, and ``t_eval`` at explicit times. ``quiet``
    silences the informational "target reached" messages, never the warnings.

    The state keeps the float type of numpy-typed inputs (``np.float32``,
    ``np.longdouble``); tolerances and the dtmin threshold follow its epsilon.
    """
    get_approximant(approximant)
    _check_sampling(saves_per_orbit, t_eval, dt)

    # numpy-typed inputs choose the float type of the state; plain floats give float64
    dtype = state_dtype(M1, M2, chi1, chi2, Omega_i)
    real = dtype.type
    chi1 = np.asarray(chi1, dtype=dtype).reshape(3)
    chi2 = np.asarray(chi2, dtype=dtype).reshape(3)
    M = real(M1 + M2)
    v_i = real(v_of_Omega(Omega_i, M))
    if Omega_1 is None:
        Omega_1 = Omega_i
    if Omega_e is None:
        Omega_e = Omega(real(1), M)

    _validate(M1, M2, chi1, chi2, Omega_i, v_i)
    cls = system_class_for(lambda1, lambda2)
    if Omega_1 > Omega_i:
        raise FrequencyOrderingError(
            f"Initial frequency Omega_i={Omega_i} should be greater than or equal to first frequency Omega_1={Omega_1}."
        )
    if Omega_i > Omega_e:
        raise FrequencyOrderingError(
            f"Initial frequency Omega_i={Omega_i} should be less than or equal to ending frequency Omega_e={Omega_e}."
        )

    R_i = np.array([1, 0, 0, 0], dtype=dtype) if R_i is None else quat.normalized(np.asarray(R_i, dtype=dtype))
    v_1 = real(v_of_Omega(Omega_1, M))
    v_e = min(real(v_of_Omega(Omega_e, M)), real(1))

    system = cls(real(M1), real(M2), chi1, chi2, v=v_i, R=R_i, Phi=real(0),
                 Lambda1=lambda1, Lambda2=lambda2, pn_order=pn_order)

    eps = np.finfo(dtype).eps
    if termination_criteria_forwards is None:
        termination_criteria_forwards = default_forwards(v_e, quiet, eps=eps)
    if termination_criteria_backwards is None and v_1 < v_i:
        termination_criteria_backwards = default_backwards(v_1, quiet, eps=eps)

    if check_up_down_instability:
        up_down_instability_warn(system, v_1, v_e)

    default_rtol, default_atol = default_tolerances(M, len(cls.FIELDS), dtype)
    rtol = default_rtol if rtol is None else rtol
    atol = default_atol if atol is None else atol

    fun = make_rhs(approximant, system)
    _check_initial_rhs(fun, system)

    initial = system.copy()
    tau = estimated_time_to_merger(system.M, system.nu, v_i)
    solver_kwargs = dict(method=method, rtol=rtol, atol=atol, max_step=max_step,
                         first_step=first_step, force_dtmin=force_dtmin)

    logger.debug("Integrating forwards from v=%s over (0, %s)", v_i, 4 * tau)
    forwards = integrate_direction(fun, (0.0, 4 * tau), system.state, termination_criteria_forwards, **solver_kwargs)

    if v_1 < v_i:
        earliest = initial.replace(v=v_1)
        tau_back = estimated_time_to_merger(earliest.M, earliest.nu, v_1) - tau
        logger.debug("Integrating backwards from v=%s over (0, %s)", v_i, -4 * tau_back)
        backwards = integrate_direction(fun, (0.0, -4 * tau_back), initial.state,
                                        termination_criteria_backwards, **solver_kwargs)
        trajectory = combine_solutions(backwards, forwards, cls, system.pn_order)
    else:
        trajectory = Trajectory.from_result(forwards, cls, system.pn_order)

    return _sample(trajectory, saves_per_orbit, t_eval, dt)


def orbital_evolution_from_system(system: PNSystem, **kwargs) -> Trajectory:
    """Evolve from the masses, spins, orientation, ``v`` and PN order stored in ``system``.

    The system itself is never modified.
    """
    kwargs.setdefault("lambda1", system.Lambda1)
    kwargs.setdefault("lambda2", system.Lambda2)
    kwargs.setdefault("R_i", np.array(system.R))
    kwargs.setdefault("pn_order", system.pn_order)
    return orbital_evolution(
        system.M1, system.M2, np.array(system.chi1), np.array(system.chi2),
        Omega(system.v, system.M), **kwargs
    )


def evolve_from_config(cfg: RunConfig) -> Trajectory:
    b, s, e = cfg.binary, cfg.solver, cfg.evolution
    return orbital_evolution(
        b.M1, b.M2, b.chi1, b.chi2, b.Omega_i,
        Omega_1=b.Omega_1,
        Omega_e=b.Omega_e,
        R_i=b.R_i,
        lambda1=b.lambda1,
        lambda2=b.lambda2,
        approximant=e.approximant,
        pn_order=e.pn_order,
        check_up_down_instability=e.check_up_down_instability,
        rtol=s.rtol,
        atol=s.atol,
        method=s.method,
        max_step=s.max_step,
        first_step=s.first_step,
        quiet=e.quiet,
        force_dtmin=s.force_dtmin,
        saves_per_orbit=e.saves_per_orbit,
        t_eval=e.t_eval,
        dt=e.dt,
    )

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

import numpy as np
from numpy.typing import NDArray
from scipy.integrate import BDF, DOP853, LSODA, RK23, RK45, OdeSolution, OdeSolver, Radau
from scipy.optimize import brentq

from .termination import REACHED_TARGET, TERMINATED, TerminationCriteria

logger = logging.getLogger(__name__)

METHODS = {
    "RK23": RK23,
    "RK45": RK45,
    "DOP853": DOP853,
    "Radau": Radau,
    "BDF": BDF,
    "LSODA": LSODA,
}

SOLVER_FAILED = "solver_failed"
T_MAX = "t_max"


@dataclass
class IntegrationResult:
    t: NDArray[np.float64]
    y: NDArray[np.float64]          # (n_fields, n_samples)
    sol: Optional[OdeSolution]
    status: str
    stop_reason: str
    message: str
    n_steps: int
    nfev: int

    @property
    def success(self) -> bool:
        return self.status in (REACHED_TARGET, TERMINATED, T_MAX)


def resolve_method(method) -> type:
    if isinstance(method, type) and issubclass(method, OdeSolver):
        return method
    try:
        return METHODS[method]
    except KeyError:
        raise ValueError(f"Unknown solver method {method!r}; choose one of {', '.join(METHODS)}.") from None


def _crossed(g_old: float, g_new: float) -> bool:
    if not (np.isfinite(g_old) and np.isfinite(g_new)) or g_old == 0:
        return False
    return g_new == 0 or (g_old < 0) != (g_new < 0)


def _locate_event(criteria: TerminationCriteria, dense, index: int, t_old: float, t_new: float) -> float:
    """Root of condition ``index`` inside the step, found on the step's dense output."""
    def g(s):
        return criteria.conditions(s, dense(s))[index]

    g_old, g_new = g(t_old), g(t_new)
    if g_new == 0 or (g_old < 0) == (g_new < 0):
        # dense output and step endpoint disagree in the last bits; stop at the step end
        return t_new
    lo, hi = (t_old, t_new) if t_old < t_new else (t_new, t_old)
    return brentq(g, lo, hi, xtol=4 * np.finfo(float).eps * max(abs(lo), abs(hi), 1.0))


def integrate_direction(fun: Callable[[float, NDArray[np.float64]], NDArray[np.float64]],
                        t_span: Tuple[float, float],
                        y0: NDArray[np.float64],
                        criteria: TerminationCriteria,
                        method="DOP853",
                        rtol=1e-10,
                        atol=1e-12,
                        max_step=np.inf,
                        first_step=None,
                        force_dtmin: bool = True) -> IntegrationResult:
    """Step an adaptive solver from ``t_span[0]`` towards ``t_span[1]`` until a criterion fires.

    After every accepted step the continuous conditions are compared with their
    values at the start of the step; any sign change is root-found on the dense
    output and the earliest one (in the direction of integration) ends the run
    with its final sample placed on the root. Otherwise the discrete criteria are
    checked on the new sample.

    With ``force_dtmin`` a solver that gives up because its step size underflowed
    is reported as a graceful ``dtmin`` termination instead of a failure.
    """
    t0, t_bound = float(t_span[0]), float(t_span[1])
    # the initial sample keeps the caller's precision; scipy steps in float64
    y0 = np.array(y0)
    if not np.issubdtype(y0.dtype, np.floating):
        y0 = y0.astype(float)
    solver_cls = resolve_method(method)
    if max_step is None:
        max_step = np.inf

    ts: List[float] = [t0]
    ys: List[NDArray[np.float64]] = [y0.copy()]
    interpolants = []

    if t0 == t_bound:
        return IntegrationResult(
            t=np.array(ts), y=np.array(ys).T, sol=None, status=T_MAX, stop_reason="t_max",
            message="Empty time span.", n_steps=0, nfev=0,
        )

    # a condition already at zero (e.g. v == v_target) ends the run on the initial sample
    g_old = criteria.conditions(t0, y0)
    at_start = np.flatnonzero(g_old == 0)
    if at_start.size:
        event = criteria.on_event(int(at_start[0]))
        return IntegrationResult(
            t=np.array(ts), y=np.array(ys).T, sol=None, status=event.status, stop_reason=event.reason,
            message=event.message, n_steps=0, nfev=0,
        )

    solver = solver_cls(fun, t0, y0, t_bound, max_step=max_step, rtol=rtol, atol=atol, first_step=first_step)
    direction = np.sign(t_bound - t0)

    status = None
    stop_reason = ""
    message = ""
    n_steps = 0

    while status is None:
        solver_message = solver.step()

        if solver.status == "failed":
            if force_dtmin and "step size" in str(solver_message).lower():
                stop_reason = "dtmin"
                status = TERMINATED
                message = (
                    "Terminating evolution because the solver's time-step size underflowed at "
                    f"t={solver.t}: {solver_message}"
                )
                logger.warning(message)
            else:
                status = SOLVER_FAILED
                stop_reason = "solver"
                message = str(solver_message)
                logger.warning("ODE solver failed at t=%s: %s", solver.t, solver_message)
            break

        n_steps += 1
        t_prev, t_new = solver.t_old, solver.t
        y_new = solver.y.copy()
        dense = solver.dense_output()
        g_new = criteria.conditions(t_new, y_new)

        crossed = [i for i in range(len(g_new)) if _crossed(g_old[i], g_new[i])]
        if crossed:
            roots = [(_locate_event(criteria, dense, i, t_prev, t_new), i) for i in crossed]
            t_event, index = min(roots, key=lambda r: direction * (r[0] - t_prev))
            if t_event != t_prev:
                ts.append(t_event)
                ys.append(dense(t_event))
                interpolants.append(dense)
            event = criteria.on_event(index)
            status, stop_reason, message = event.status, event.reason, event.message
            break

        ts.append(t_new)
        ys.append(y_new)
        interpolants.append(dense)

        hit = criteria.first_discrete(t_new, y_new, t_new - t_prev, ys[-2])
        if hit is not None:
            event = hit.report(t_new, y_new, t_new - t_prev)
            status, stop_reason, message = event.status, event.reason, event.message
            break

        if solver.status == "finished":
            status = T_MAX
            stop_reason = "t_max"
            message = f"Reached the end of the time span t={t_bound} before any termination criterion."
            logger.warning(message)
            break

        g_old = g_new

    sol = OdeSolution(ts, interpolants) if interpolants else None
    logger.debug("integrate_direction: %d steps, %d RHS evaluations, status=%s", n_steps, solver.nfev, status)
    return IntegrationResult(
        t=np.array(ts),
        y=np.array(ys, dtype=y0.dtype).T,
        sol=sol,
        status=status,
        stop_reason=stop_reason,
        message=message,
        n_steps=n_steps,
        nfev=int(solver.nfev),
    )

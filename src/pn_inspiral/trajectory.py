"""Sampled and densely interpolated orbital trajectories."""
from __future__ import annotations

from typing import Optional, Sequence

import numpy as np
import pandas as pd
from numpy.typing import NDArray
from scipy.interpolate import PchipInterpolator

from . import quaternion as quat
from .errors import SamplingOptionsError
from .integrate import IntegrationResult
from .pn_order import MAX_PN_ORDER
from .system import BBH, PNSystem


class StitchedSolution:
    """Dense output of a stitched run: ``t < 0`` goes to the backwards solution."""

    def __init__(self, backwards, forwards):
        self.backwards = backwards
        self.forwards = forwards

    def __call__(self, t):
        t = np.asarray(t, dtype=float)
        if t.ndim == 0:
            return self.backwards(t) if t < 0 else self.forwards(t)
        n = self.forwards(0.0).shape[0]
        out = np.empty((n, t.shape[0]))
        neg = t < 0
        if np.any(neg):
            out[:, neg] = self.backwards(t[neg])
        if np.any(~neg):
            out[:, ~neg] = self.forwards(t[~neg])
        return out


class Trajectory:
    """Time samples ``t`` and states ``y`` (one row per field), plus dense output when available."""

    def __init__(self, t, y, sol=None, system_class=BBH, pn_order=MAX_PN_ORDER,
                 status: str = "", stop_reason: str = "", message: str = ""):
        self.t = np.asarray(t, dtype=float)
        self.y = quat.as_floating(y)
        if self.y.shape != (len(system_class.FIELDS), self.t.shape[0]):
            raise ValueError(
                f"y has shape {self.y.shape}; expected ({len(system_class.FIELDS)}, {self.t.shape[0]})"
            )
        self.sol = sol
        self.system_class = system_class
        self.pn_order = pn_order
        self.status = status
        self.stop_reason = stop_reason
        self.message = message

    @classmethod
    def from_result(cls, result: IntegrationResult, system_class, pn_order) -> "Trajectory":
        return cls(result.t, result.y, result.sol, system_class, pn_order,
                   result.status, result.stop_reason, result.message)

    @property
    def fields(self):
        return self.system_class.FIELDS

    def __len__(self) -> int:
        return self.t.shape[0]

    def __getitem__(self, key):
        """``traj["v"]``, ``traj["v", i]``, ``traj[:, i]`` or ``traj[j, i]`` by field index."""
        if isinstance(key, str):
            return self.y[self._row(key)]
        if isinstance(key, tuple) and len(key) == 2 and isinstance(key[0], str):
            return self.y[self._row(key[0]), key[1]]
        return self.y[key]

    def _row(self, name: str) -> int:
        try:
            return self.system_class.INDEX[name]
        except KeyError:
            raise KeyError(f"Unknown field {name!r}; valid names are {', '.join(self.fields)}.") from None

    def __call__(self, t, fields: Optional[Sequence[str]] = None):
        """Dense interpolation at scalar or array ``t``, optionally restricted to ``fields``."""
        if self.sol is None:
            raise ValueError("This trajectory has no dense output.")
        values = self.sol(t)
        if fields is None:
            return values
        rows = [self._row(name) for name in fields]
        return values[rows]

    def sample(self, i: int) -> NDArray[np.float64]:
        return self.y[:, i]

    state_at = sample

    def system_at(self, i: int) -> PNSystem:
        return self.system_class.from_vector(self.y[:, i], self.pn_order)

    @property
    def t0(self) -> float:
        return float(self.t[0])

    @property
    def tf(self) -> float:
        return float(self.t[-1])

    @property
    def duration(self) -> float:
        return self.tf - self.t0

    def resampled(self, t) -> "Trajectory":
        """Same trajectory sampled at the times ``t``; the dense output is kept."""
        t = np.atleast_1d(np.asarray(t, dtype=float))
        return Trajectory(t, self(t).astype(self.y.dtype), self.sol, self.system_class, self.pn_order,
                          self.status, self.stop_reason, self.message)

    def to_dataframe(self) -> pd.DataFrame:
        df = pd.DataFrame(self.y.T, columns=list(self.fields))
        df.insert(0, "t", self.t)
        return df

    def __repr__(self) -> str:
        return (f"Trajectory({self.system_class.__name__}, {len(self)} samples, "
                f"t=[{self.t0}, {self.tf}], status={self.status!r})")


def combine_solutions(backwards: IntegrationResult, forwards: IntegrationResult,
                      system_class=BBH, pn_order=MAX_PN_ORDER) -> Trajectory:
    """Join a backwards run and a forwards run from the same initial state into one trajectory.

    The backwards samples are reversed and the duplicated initial sample is kept
    once. Status, stop reason and message are those of the forwards run.
    """
    t = np.concatenate([backwards.t[:0:-1], forwards.t])
    y = np.concatenate([backwards.y[:, :0:-1], forwards.y], axis=1)
    if backwards.sol is not None and forwards.sol is not None:
        sol = StitchedSolution(backwards.sol, forwards.sol)
    else:
        sol = forwards.sol if forwards.sol is not None else backwards.sol
    return Trajectory(t, y, sol, system_class, pn_order,
                      forwards.status, forwards.stop_reason, forwards.message)


def uniform_in_phase(trajectory: Trajectory, saves_per_orbit: int) -> Trajectory:
    """Resample at ``saves_per_orbit`` uniformly spaced values of ``Phi`` per orbit.

    Times for the target phases come from a monotone cubic fit of ``t(Phi)``.
    """
    if saves_per_orbit <= 0:
        raise SamplingOptionsError(f"saves_per_orbit must be positive; got {saves_per_orbit}.")
    Phi = trajectory["Phi"]
    t = trajectory.t
    dPhi = 2 * np.pi / saves_per_orbit
    Phi_min, Phi_max = float(np.min(Phi)), float(np.max(Phi))
    n = int(np.floor((Phi_max - Phi_min) / dPhi)) + 1
    Phi_range = Phi_min + dPhi * np.arange(n)
    t_Phi = PchipInterpolator(Phi, t)(Phi_range)
    t_Phi = np.clip(t_Phi, trajectory.t0, trajectory.tf)
    return trajectory.resampled(t_Phi)


def uniform_in_time(trajectory: Trajectory, dt: float) -> Trajectory:
    """Resample every ``dt`` starting at the first sample; the final sample is always kept."""
    if not (np.isfinite(dt) and dt > 0):
        raise SamplingOptionsError(f"dt must be positive and finite; got dt={dt}.")
    t0, tf = trajectory.t0, trajectory.tf
    t = np.minimum(t0 + dt * np.arange(int(np.floor((tf - t0) / dt)) + 1), tf)
    if t[-1] < tf:
        t = np.append(t, tf)
    return trajectory.resampled(t)

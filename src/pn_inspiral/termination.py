"""Stopping conditions for the orbital integrations.

Continuous criteria are functions of the state whose sign change marks an event;
the integration loop root-finds the crossing and ends exactly there. Discrete
criteria are checked once after every accepted step.

Reaching the target ``v`` is the expected outcome and is reported at info level
unless ``quiet``; everything else means PN has broken down and is always a
warning.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import numpy as np
from numpy.typing import NDArray

from .system import CHI1_SLICE, CHI2_SLICE, M1_INDEX, M2_INDEX, V_INDEX

logger = logging.getLogger(__name__)

REACHED_TARGET = "reached_target"
TERMINATED = "terminated"


@dataclass(frozen=True)
class TerminationEvent:
    status: str
    reason: str
    message: str


class ContinuousCriteria:
    """Masses positive, spins sub-extremal, and ``v`` short of its target.

    An event fires when any of the conditions changes sign. The ``v`` condition
    is ``v_target - v`` in both directions, so it starts negative when
    integrating backwards.
    """

    labels = ("M1", "M2", "chi1", "chi2", "v")

    def __init__(self, v_target: float, direction: str = "forwards", quiet: bool = False):
        if direction not in ("forwards", "backwards"):
            raise ValueError(f"direction must be 'forwards' or 'backwards'; got {direction!r}")
        self.v_target = v_target
        self.direction = direction
        self.quiet = quiet

    def __len__(self) -> int:
        return len(self.labels)

    def conditions(self, t: float, y: NDArray[np.float64]) -> NDArray[np.float64]:
        chi1 = y[CHI1_SLICE]
        chi2 = y[CHI2_SLICE]
        return np.array([
            y[M1_INDEX],
            y[M2_INDEX],
            1 - np.dot(chi1, chi1),
            1 - np.dot(chi2, chi2),
            self.v_target - y[V_INDEX],
        ])

    def on_event(self, index: int) -> TerminationEvent:
        label = self.labels[index]
        forwards = self.direction == "forwards"
        prefix = f"Terminating {self.direction} evolution because"
        if label in ("M1", "M2"):
            tail = "This is unusual." if forwards else "Suggests problem with PN."
            message = f"{prefix} {label} has become non-positive.  {tail}"
        elif label in ("chi1", "chi2"):
            tail = "Suggests early breakdown of PN." if forwards else "Suggests problem with PN."
            message = f"{prefix} |{label}|>1.  {tail}"
        else:
            name = "v_e" if forwards else "v_1"
            message = f"{prefix} the PN parameter v has reached {name}={self.v_target}.  This is ideal."
            if not self.quiet:
                logger.info(message)
            return TerminationEvent(REACHED_TARGET, label, message)
        logger.warning(message)
        return TerminationEvent(TERMINATED, label, message)


class DiscreteCriterion:
    """Post-step check. ``check`` decides, ``report`` logs and describes the stop."""

    name = "discrete"

    def check(self, t: float, y: NDArray[np.float64], dt: float, y_prev: NDArray[np.float64]) -> bool:
        raise NotImplementedError

    def report(self, t: float, y: NDArray[np.float64], dt: float) -> TerminationEvent:
        raise NotImplementedError


class DtMinTerminator(DiscreteCriterion):
    name = "dtmin"

    def __init__(self, eps: float = np.finfo(float).eps, direction: str = "forwards", quiet: bool = False):
        self.threshold = np.sqrt(eps)
        self.direction = direction
        self.quiet = quiet

    def check(self, t, y, dt, y_prev) -> bool:
        return abs(dt) < self.threshold

    def report(self, t, y, dt) -> TerminationEvent:
        message = (
            f"Terminating {self.direction} evolution because time-step size is too small:\n"
            f"|dt={dt}| < sqrt(eps)={self.threshold}\n"
            "This is probably fine if `v` >~ 1/2."
        )
        logger.warning(message)
        return TerminationEvent(TERMINATED, self.name, message)


class DecreasingVTerminator(DiscreteCriterion):
    """Stop a forwards evolution once ``v`` decreases.

    Above ``v_warn`` this signals PN breakdown and is a warning; below it a
    transient decrease can be physical (strong precession) and is only logged
    at info level.
    """

    name = "decreasing_v"

    def __init__(self, quiet: bool = False, v_warn: float = 0.5):
        self.quiet = quiet
        self.v_warn = v_warn

    def check(self, t, y, dt, y_prev) -> bool:
        return y[V_INDEX] < y_prev[V_INDEX]

    def report(self, t, y, dt) -> TerminationEvent:
        v = y[V_INDEX]
        message = f"Terminating forwards evolution because the PN parameter v has begun decreasing at v={v}."
        if v >= self.v_warn:
            logger.warning(message + "\nThis suggests PN has broken down.")
        elif not self.quiet:
            logger.info(message)
        return TerminationEvent(TERMINATED, self.name, message)


class NonfiniteTerminator(DiscreteCriterion):
    name = "nonfinite"

    def __init__(self, direction: str = "forwards"):
        self.direction = direction

    def check(self, t, y, dt, y_prev) -> bool:
        return not (np.all(np.isfinite(y)) and np.isfinite(t) and np.isfinite(dt))

    def report(self, t, y, dt) -> TerminationEvent:
        message = f"Terminating {self.direction} evolution because a non-finite number was found"
        logger.warning(message)
        return TerminationEvent(TERMINATED, self.name, message)


@dataclass
class TerminationCriteria:
    continuous: List[ContinuousCriteria] = field(default_factory=list)
    discrete: List[DiscreteCriterion] = field(default_factory=list)

    @property
    def n_conditions(self) -> int:
        return sum(len(c) for c in self.continuous)

    def conditions(self, t: float, y: NDArray[np.float64]) -> NDArray[np.float64]:
        if not self.continuous:
            return np.empty(0)
        return np.concatenate([c.conditions(t, y) for c in self.continuous])

    def on_event(self, flat_index: int) -> TerminationEvent:
        index = flat_index
        for criteria in self.continuous:
            size = len(criteria)
            if index < size:
                return criteria.on_event(index)
            index -= size
        raise IndexError(f"no continuous condition with index {flat_index}; there are {self.n_conditions}")

    def first_discrete(self, t, y, dt, y_prev) -> Optional[DiscreteCriterion]:
        for criterion in self.discrete:
            if criterion.check(t, y, dt, y_prev):
                return criterion
        return None

    def __add__(self, other: "TerminationCriteria") -> "TerminationCriteria":
        return TerminationCriteria(self.continuous + other.continuous, self.discrete + other.discrete)


def termination_forwards(v_e: float, quiet: bool = False) -> TerminationCriteria:
    return TerminationCriteria(continuous=[ContinuousCriteria(v_e, "forwards", quiet)])


def termination_backwards(v_1: float, quiet: bool = False) -> TerminationCriteria:
    return TerminationCriteria(continuous=[ContinuousCriteria(v_1, "backwards", quiet)])


def dtmin_terminator(eps: float = np.finfo(float).eps, quiet: bool = False,
                     direction: str = "forwards") -> DtMinTerminator:
    return DtMinTerminator(eps, direction, quiet)


def decreasing_v_terminator(quiet: bool = False) -> DecreasingVTerminator:
    return DecreasingVTerminator(quiet)


def nonfinite_terminator(direction: str = "forwards") -> NonfiniteTerminator:
    return NonfiniteTerminator(direction)


def default_forwards(v_e: float, quiet: bool = False, extra: Sequence[DiscreteCriterion] = (),
                     eps: float = np.finfo(float).eps) -> TerminationCriteria:
    """``eps`` is the machine epsilon of the state's float type; it sets the dtmin threshold."""
    criteria = termination_forwards(v_e, quiet)
    criteria.discrete.extend([
        dtmin_terminator(eps, quiet=quiet),
        decreasing_v_terminator(quiet),
        nonfinite_terminator(),
        *extra,
    ])
    return criteria


def default_backwards(v_1: float, quiet: bool = False, extra: Sequence[DiscreteCriterion] = (),
                      eps: float = np.finfo(float).eps) -> TerminationCriteria:
    criteria = termination_backwards(v_1, quiet)
    criteria.discrete.extend([
        dtmin_terminator(eps, quiet=quiet, direction="backwards"),
        nonfinite_terminator("backwards"),
        *extra,
    ])
    return criteria

from __future__ import annotations

import json
import typing
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional, Tuple, Union


@dataclass(frozen=True)
class SolverParams:
    # scipy OdeSolver name
    method: str = "DOP853"
    # None => eps**(11/16), with the mass entries of atol scaled by spacing(M)
    rtol: Optional[float] = None
    atol: Optional[float] = None
    max_step: float = float('inf')
    first_step: Optional[float] = None

    # report a step-size underflow in the solver as a dtmin termination
    force_dtmin: bool = True


@dataclass(frozen=True)
class EvolutionParams:
    approximant: str = "TaylorT1"
    pn_order: Union[float, str] = "max"
    check_up_down_instability: bool = True
    # silences the informational "reached target v" messages only
    quiet: bool = True
    # output sampling; at most one of these may be set
    saves_per_orbit: int = 0
    dt: Optional[float] = None
    t_eval: Optional[Tuple[float, ...]] = None


@dataclass(frozen=True)
class BinaryParams:
    M1: float
    M2: float
    chi1: Tuple[float, float, float]
    chi2: Tuple[float, float, float]
    Omega_i: float

    Omega_1: Optional[float] = None
    Omega_e: Optional[float] = None
    R_i: Optional[Tuple[float, float, float, float]] = None
    lambda1: float = 0.0
    lambda2: float = 0.0


@dataclass(frozen=True)
class OutputParams:
    out_dir: str = "out_runs"
    file_stem: str = "inspiral"
    save_csv: bool = True
    save_npz: bool = True


@dataclass(frozen=True)
class RunConfig:
    binary: BinaryParams
    solver: SolverParams = field(default_factory=SolverParams)
    evolution: EvolutionParams = field(default_factory=EvolutionParams)
    output: OutputParams = field(default_factory=OutputParams)


def _dataclass_from_dict(cls, d: Dict[str, Any]):
    # nested dicts become nested dataclasses; unknown keys are ignored
    hints = typing.get_type_hints(cls)
    kwargs = {}
    for f in cls.__dataclass_fields__.values():  # type: ignore
        if f.name not in d:
            continue
        val = d[f.name]
        if f.name == 'max_step' and val is None:
            val = float('inf')
        ftype = hints.get(f.name)
        if hasattr(ftype, "__dataclass_fields__") and isinstance(val, dict):
            kwargs[f.name] = _dataclass_from_dict(ftype, val)
        elif isinstance(val, list):
            kwargs[f.name] = tuple(val)
        else:
            kwargs[f.name] = val
    return cls(**kwargs)  # type: ignore


def run_config_from_dict(d: Dict[str, Any]) -> RunConfig:
    return _dataclass_from_dict(RunConfig, d)


def load_run_config(path: str) -> RunConfig:
    with open(path, "r", encoding="utf-8") as f:
        d = json.load(f)
    return run_config_from_dict(d)


def to_json(obj: Any, path: str) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(asdict(obj), f, indent=2)

import json
import math

from pn_inspiral.config import (
    BinaryParams,
    RunConfig,
    SolverParams,
    load_run_config,
    run_config_from_dict,
    to_json,
)


def make_dict():
    return {
        "binary": {
            "M1": 0.6, "M2": 0.4,
            "chi1": [0.0, 0.0, 0.5], "chi2": [0.1, 0.0, 0.0],
            "Omega_i": 0.01, "Omega_e": 0.05,
        },
        "solver": {"method": "RK45", "rtol": 1e-8, "max_step": None},
        "evolution": {"approximant": "TaylorT4", "pn_order": 3.5, "saves_per_orbit": 16},
        "output": {"file_stem": "demo"},
        "comment": "ignored",
    }


def test_nested_dataclasses_from_dict():
    cfg = run_config_from_dict(make_dict())
    assert isinstance(cfg, RunConfig)
    assert isinstance(cfg.binary, BinaryParams) and isinstance(cfg.solver, SolverParams)
    assert cfg.binary.chi1 == (0.0, 0.0, 0.5)
    assert cfg.binary.Omega_1 is None and cfg.binary.lambda2 == 0.0
    assert cfg.solver.method == "RK45" and math.isinf(cfg.solver.max_step)
    assert cfg.solver.force_dtmin
    assert cfg.evolution.pn_order == 3.5 and cfg.evolution.quiet
    assert cfg.output.file_stem == "demo" and cfg.output.out_dir == "out_runs"


def test_json_round_trip(tmp_path):
    path = tmp_path / "run.json"
    path.write_text(json.dumps(make_dict()), encoding="utf-8")
    cfg = load_run_config(str(path))
    out = tmp_path / "copy.json"
    to_json(cfg, str(out))
    again = load_run_config(str(out))
    assert again == cfg, f"{again} != {cfg}"


if __name__ == "__main__":
    test_nested_dataclasses_from_dict()
    print("OK")

#!/usr/bin/env python
from __future__ import annotations

import argparse
import logging
import os
from concurrent.futures import ProcessPoolExecutor
from typing import Any, Dict, List, Tuple

import numpy as np
import pandas as pd
from tqdm import tqdm

from pn_inspiral.evolution import orbital_evolution


def _set_thread_env():
    # one BLAS thread per worker process
    os.environ.setdefault("OMP_NUM_THREADS", "1")
    os.environ.setdefault("OPENBLAS_NUM_THREADS", "1")
    os.environ.setdefault("MKL_NUM_THREADS", "1")


def build_tasks(q_list, chi_list, Omega_i: float, approximant: str) -> List[Tuple[int, Dict[str, Any]]]:
    tasks = []
    run_id = 0
    for q in q_list:
        M1 = 1.0 / (1.0 + q)
        M2 = q / (1.0 + q)
        for chi in chi_list:
            tasks.append((run_id, {
                "q": float(q), "chi": float(chi),
                "M1": M1, "M2": M2, "Omega_i": Omega_i, "approximant": approximant,
            }))
            run_id += 1
    return tasks


def _worker(task: Tuple[int, Dict[str, Any]]) -> Dict[str, Any]:
    run_id, p = task
    row = {"run_id": run_id, "q": p["q"], "chi": p["chi"], "approximant": p["approximant"]}
    chi = np.array([0.0, 0.0, p["chi"]])
    traj = orbital_evolution(p["M1"], p["M2"], chi, chi, p["Omega_i"],
                             approximant=p["approximant"], check_up_down_instability=False)
    row.update({
        "status": traj.status,
        "stop_reason": traj.stop_reason,
        "duration": traj.duration,
        "v_final": float(traj["v"][-1]),
        "orbits": float((traj["Phi"][-1] - traj["Phi"][0]) / (2 * np.pi)),
        "n_samples": len(traj),
    })
    return row


def main():
    _set_thread_env()

    ap = argparse.ArgumentParser()
    ap.add_argument("--q_min", type=float, default=0.1)
    ap.add_argument("--q_max", type=float, default=1.0)
    ap.add_argument("--n_q", type=int, default=10)
    ap.add_argument("--chi_min", type=float, default=-0.9)
    ap.add_argument("--chi_max", type=float, default=0.9)
    ap.add_argument("--n_chi", type=int, default=7)
    ap.add_argument("--Omega_i", type=float, default=0.01)
    ap.add_argument("--approximant", default="TaylorT1")
    ap.add_argument("--workers", type=int, default=0, help="0 => os.cpu_count()")
    ap.add_argument("--out", default="out_runs/scan_mass_ratio.csv")
    args = ap.parse_args()

    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    q_list = np.linspace(args.q_min, args.q_max, args.n_q)
    chi_list = np.linspace(args.chi_min, args.chi_max, args.n_chi)
    tasks = build_tasks(q_list, chi_list, args.Omega_i, args.approximant)

    workers = args.workers or (os.cpu_count() or 4)
    rows = []
    with ProcessPoolExecutor(max_workers=workers) as ex:
        for row in tqdm(ex.map(_worker, tasks), total=len(tasks)):
            rows.append(row)

    os.makedirs(os.path.dirname(args.out) or ".", exist_ok=True)
    df = pd.DataFrame(rows).sort_values("run_id")
    df.to_csv(args.out, index=False)
    print("Saved:", args.out)
    print(df.groupby("status").size().to_string())


if __name__ == "__main__":
    main()

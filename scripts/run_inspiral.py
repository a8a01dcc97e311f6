#!/usr/bin/env python
from __future__ import annotations

import argparse
import logging
import os

import numpy as np

from pn_inspiral.config import (
    BinaryParams,
    EvolutionParams,
    OutputParams,
    RunConfig,
    SolverParams,
    load_run_config,
    to_json,
)
from pn_inspiral.evolution import evolve_from_config


def config_from_args(args) -> RunConfig:
    binary = BinaryParams(
        M1=args.M1, M2=args.M2,
        chi1=tuple(args.chi1), chi2=tuple(args.chi2),
        Omega_i=args.Omega_i, Omega_1=args.Omega_1, Omega_e=args.Omega_e,
        lambda1=args.lambda1, lambda2=args.lambda2,
    )
    evolution = EvolutionParams(
        approximant=args.approximant, pn_order=args.pn_order,
        quiet=not args.verbose, saves_per_orbit=args.saves_per_orbit, dt=args.dt,
    )
    solver = SolverParams(method=args.method, rtol=args.rtol, atol=args.atol)
    output = OutputParams(out_dir=args.out_dir, file_stem=args.stem)
    return RunConfig(binary=binary, solver=solver, evolution=evolution, output=output)


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--config", default=None, help="Path to run JSON config (overrides the flags below)")
    ap.add_argument("--M1", type=float, default=0.5)
    ap.add_argument("--M2", type=float, default=0.5)
    ap.add_argument("--chi1", type=float, nargs=3, default=[0.0, 0.0, 0.0])
    ap.add_argument("--chi2", type=float, nargs=3, default=[0.0, 0.0, 0.0])
    ap.add_argument("--Omega_i", type=float, default=0.01)
    ap.add_argument("--Omega_1", type=float, default=None)
    ap.add_argument("--Omega_e", type=float, default=None)
    ap.add_argument("--lambda1", type=float, default=0.0)
    ap.add_argument("--lambda2", type=float, default=0.0)
    ap.add_argument("--approximant", default="TaylorT1", choices=["TaylorT1", "TaylorT4", "TaylorT5"])
    ap.add_argument("--pn_order", default="max", help="Half-integer PN order or 'max'")
    ap.add_argument("--method", default="DOP853")
    ap.add_argument("--rtol", type=float, default=None)
    ap.add_argument("--atol", type=float, default=None)
    ap.add_argument("--saves_per_orbit", type=int, default=0)
    ap.add_argument("--dt", type=float, default=None, help="Fixed output spacing in units of M")
    ap.add_argument("--out_dir", default="out_runs")
    ap.add_argument("--stem", default="inspiral")
    ap.add_argument("--verbose", action="store_true")
    args = ap.parse_args()

    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")

    if args.pn_order != "max":
        args.pn_order = float(args.pn_order)
    cfg = load_run_config(args.config) if args.config else config_from_args(args)

    out = cfg.output
    os.makedirs(out.out_dir, exist_ok=True)
    to_json(cfg, os.path.join(out.out_dir, f"{out.file_stem}_config.json"))

    traj = evolve_from_config(cfg)
    print(f"status={traj.status} reason={traj.stop_reason} samples={len(traj)} "
          f"t=[{traj.t0:.6g}, {traj.tf:.6g}] v_final={traj['v'][-1]:.6g} "
          f"orbits={(traj['Phi'][-1] - traj['Phi'][0]) / (2 * np.pi):.3f}")

    if out.save_csv:
        path = os.path.join(out.out_dir, f"{out.file_stem}.csv")
        traj.to_dataframe().to_csv(path, index=False)
        print("Saved:", path)
    if out.save_npz:
        path = os.path.join(out.out_dir, f"{out.file_stem}.npz")
        np.savez_compressed(path, t=traj.t, y=traj.y, fields=np.array(traj.fields),
                            status=traj.status, stop_reason=traj.stop_reason)
        print("Saved:", path)


if __name__ == "__main__":
    main()

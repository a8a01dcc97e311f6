#!/usr/bin/env python
from __future__ import annotations

import argparse
import os

import numpy as np

from pn_inspiral.plotting import FigureConfig, plot_trajectory
from pn_inspiral.system import system_class_by_length
from pn_inspiral.trajectory import Trajectory


def load_npz(path: str) -> Trajectory:
    data = np.load(path)
    y = data["y"]
    system_class = system_class_by_length(y.shape[0])
    if system_class is None:
        raise ValueError(f"{path}: cannot infer the binary type from {y.shape[0]} fields")
    return Trajectory(data["t"], y, system_class=system_class,
                      status=str(data["status"]), stop_reason=str(data["stop_reason"]))


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--run", required=True, help="Path to the .npz written by run_inspiral.py")
    ap.add_argument("--out_dir", default=None, help="Defaults to the directory of --run")
    ap.add_argument("--fmt", default="pdf", choices=["pdf", "png", "svg"])
    args = ap.parse_args()

    traj = load_npz(args.run)
    out_dir = args.out_dir or os.path.dirname(args.run) or "."
    stem = os.path.splitext(os.path.basename(args.run))[0]
    cfg = FigureConfig(fmt=args.fmt)
    path = os.path.join(out_dir, f"{stem}_trajectory.{cfg.fmt}")
    plot_trajectory(traj, path, cfg)
    print("Saved:", path)


if __name__ == "__main__":
    main()

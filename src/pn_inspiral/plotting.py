from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Tuple

import numpy as np

import matplotlib
matplotlib.use("Agg", force=True)  # headless
import matplotlib.pyplot as plt


@dataclass(frozen=True)
class FigureConfig:
    fmt: str = "pdf"          # "pdf", "png", "svg"
    dpi: int = 300            # raster formats only
    fontsize: float = 10.0
    use_tex: bool = False
    tight: bool = True
    pad_inches: float = 0.02

    # three stacked panels in a single column
    figsize: Tuple[float, float] = (3.4, 6.0)


def set_paper_style(cfg: FigureConfig) -> None:
    """Matplotlib rcParams for single-column figures."""
    small = max(6.0, cfg.fontsize - 2.0)
    plt.rcParams.update({
        "figure.figsize": cfg.figsize,
        "figure.dpi": 120,
        "savefig.dpi": cfg.dpi,
        "font.size": cfg.fontsize,
        "axes.labelsize": cfg.fontsize,
        "axes.titlesize": cfg.fontsize,
        "legend.fontsize": small,
        "xtick.labelsize": small,
        "ytick.labelsize": small,
        "axes.linewidth": 0.8,
        "xtick.direction": "in",
        "ytick.direction": "in",
        "xtick.minor.visible": True,
        "ytick.minor.visible": True,
        "legend.frameon": False,
        "lines.linewidth": 1.0,
        "pdf.fonttype": 42,
        "ps.fonttype": 42,
    })
    if cfg.use_tex:
        plt.rcParams.update({
            "text.usetex": True,
            "font.family": "serif",
            "font.serif": ["Computer Modern Roman"],
        })


def ensure_dir(path: str) -> None:
    os.makedirs(path, exist_ok=True)


def savefig(fig: plt.Figure, path: str, cfg: FigureConfig) -> None:
    kwargs = {}
    if cfg.tight:
        kwargs["bbox_inches"] = "tight"
        kwargs["pad_inches"] = cfg.pad_inches
    if path.lower().endswith((".png", ".jpg", ".jpeg", ".tif", ".tiff")):
        kwargs["dpi"] = cfg.dpi
    fig.savefig(path, **kwargs)


def plot_trajectory(traj, path: str, cfg: FigureConfig = FigureConfig()) -> plt.Figure:
    """v, spin components and rotor components against time, one panel each."""
    set_paper_style(cfg)
    fig, (ax_v, ax_chi, ax_R) = plt.subplots(3, 1, sharex=True)
    t = traj.t

    ax_v.plot(t, traj["v"], color="k")
    ax_v.set_ylabel(r"$v$")

    for name, style in (("chi1x", "C0-"), ("chi1y", "C1-"), ("chi1z", "C2-"),
                        ("chi2x", "C0--"), ("chi2y", "C1--"), ("chi2z", "C2--")):
        ax_chi.plot(t, traj[name], style, label=name)
    ax_chi.set_ylabel(r"$\chi$")
    ax_chi.legend(ncol=2)

    for name in ("Rw", "Rx", "Ry", "Rz"):
        ax_R.plot(t, traj[name], label=name)
    ax_R.set_ylabel(r"$R$")
    ax_R.set_xlabel(r"$t/M$")
    ax_R.legend(ncol=4)
    ax_R.set_xlim(float(np.min(t)), float(np.max(t)))

    ensure_dir(os.path.dirname(path) or ".")
    savefig(fig, path, cfg)
    return fig

import numpy as np

from pn_inspiral.plotting import FigureConfig, plot_trajectory
from pn_inspiral.system import BBH, PHI_INDEX, V_INDEX
from pn_inspiral.trajectory import Trajectory


def make_trajectory(n=50):
    t = np.linspace(0.0, 500.0, n)
    y0 = BBH(0.6, 0.4, [0.1, 0.0, 0.5], [0.0, 0.2, -0.3], v=0.25).state
    y = np.repeat(y0[:, None], n, axis=1)
    y[V_INDEX] = 0.25 + 1e-4 * t
    y[PHI_INDEX] = 0.0156 * t
    y[8] = np.cos(y[PHI_INDEX] / 2)
    y[11] = np.sin(y[PHI_INDEX] / 2)
    return Trajectory(t, y, system_class=BBH)


def test_plot_trajectory_writes_file(tmp_path):
    path = tmp_path / "figs" / "trajectory.png"
    fig = plot_trajectory(make_trajectory(), str(path), FigureConfig(fmt="png", dpi=50))
    assert path.exists() and path.stat().st_size > 0
    assert len(fig.axes) == 3


if __name__ == "__main__":
    import tempfile
    from pathlib import Path
    with tempfile.TemporaryDirectory() as d:
        test_plot_trajectory_writes_file(Path(d))
    print("OK")

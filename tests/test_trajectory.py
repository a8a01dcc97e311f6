import numpy as np
import pytest

from pn_inspiral.errors import SamplingOptionsError
from pn_inspiral.integrate import IntegrationResult
from pn_inspiral.system import BBH, PHI_INDEX, V_INDEX
from pn_inspiral.termination import REACHED_TARGET
from pn_inspiral.trajectory import (
    StitchedSolution,
    Trajectory,
    combine_solutions,
    uniform_in_phase,
    uniform_in_time,
)


def make_y0():
    return BBH(0.5, 0.5, [0.0, 0.0, 0.2], np.zeros(3), v=0.2).state.copy()


def linear_solution(y0, rate):
    def sol(t):
        t = np.asarray(t, dtype=float)
        if t.ndim == 0:
            return y0 + rate * t
        return y0[:, None] + rate[:, None] * t[None, :]
    return sol


def make_rate(v_rate=1e-3, Phi_rate=0.1):
    rate = np.zeros(14)
    rate[V_INDEX] = v_rate
    rate[PHI_INDEX] = Phi_rate
    return rate


def make_result(t, status=REACHED_TARGET, reason="v", rate=None):
    y0 = make_y0()
    sol = linear_solution(y0, make_rate() if rate is None else rate)
    return IntegrationResult(t=np.asarray(t, dtype=float), y=sol(np.asarray(t, dtype=float)), sol=sol,
                             status=status, stop_reason=reason, message="", n_steps=len(t) - 1, nfev=0)


def test_indexing_and_dataframe():
    result = make_result([0.0, 1.0, 3.0])
    traj = Trajectory.from_result(result, BBH, "max")
    assert len(traj) == 3
    assert np.allclose(traj["v"], 0.2 + 1e-3 * np.array([0.0, 1.0, 3.0]))
    assert traj["Phi", 2] == pytest.approx(0.3)
    assert np.array_equal(traj[:, 1], traj.sample(1))
    assert traj.duration == 3.0 and traj.t0 == 0.0 and traj.tf == 3.0
    df = traj.to_dataframe()
    assert list(df.columns)[:2] == ["t", "M1"] and df.shape == (3, 15)
    with pytest.raises(KeyError):
        traj["Lambda1"]
    with pytest.raises(ValueError):
        Trajectory(np.zeros(3), np.zeros((13, 3)))


def test_dense_output_and_resampling():
    traj = Trajectory.from_result(make_result([0.0, 2.0, 4.0]), BBH, "max")
    assert traj(1.0, ["v"])[0] == pytest.approx(0.201)
    values = traj(np.array([0.5, 1.5]))
    assert values.shape == (14, 2)
    resampled = traj.resampled([1.0, 2.0, 3.0])
    assert np.array_equal(resampled.t, [1.0, 2.0, 3.0])
    assert resampled.sol is traj.sol and resampled.status == traj.status
    with pytest.raises(ValueError):
        Trajectory(traj.t, traj.y)(1.0)


def test_combine_solutions():
    # the two legs have different slopes so each side of t=0 shows which one answered
    backwards = make_result([0.0, -1.0, -2.5], reason="v", rate=make_rate(v_rate=2e-3, Phi_rate=0.3))
    forwards = make_result([0.0, 1.0, 2.0], reason="decreasing_v", rate=make_rate(v_rate=1e-3, Phi_rate=0.1))
    traj = combine_solutions(backwards, forwards, BBH, "max")
    assert np.array_equal(traj.t, [-2.5, -1.0, 0.0, 1.0, 2.0])
    assert traj.y.shape == (14, 5)
    assert traj.stop_reason == "decreasing_v"
    assert isinstance(traj.sol, StitchedSolution)
    assert traj(-1.0, ["v"])[0] == pytest.approx(0.2 - 2e-3)
    assert traj(1.0, ["v"])[0] == pytest.approx(0.2 + 1e-3)
    values = traj(np.array([-2.0, -0.5, 0.0, 1.5]), ["Phi"])[0]
    assert np.allclose(values, [-0.6, -0.15, 0.0, 0.15])
    assert np.allclose(traj["Phi"], [-0.75, -0.3, 0.0, 0.1, 0.2])

    # a forwards leg with no steps leaves the backwards dense output in charge
    single = IntegrationResult(t=np.zeros(1), y=make_y0()[:, None], sol=None, status=REACHED_TARGET,
                               stop_reason="v", message="", n_steps=0, nfev=0)
    traj = combine_solutions(backwards, single, BBH, "max")
    assert np.array_equal(traj.t, [-2.5, -1.0, 0.0])
    assert traj(-1.0, ["v"])[0] == pytest.approx(0.2 - 2e-3)


def test_uniform_in_time():
    traj = Trajectory.from_result(make_result([0.0, 4.0, 10.0]), BBH, "max")
    resampled = uniform_in_time(traj, 3.0)
    assert np.allclose(resampled.t, [0.0, 3.0, 6.0, 9.0, 10.0])
    assert np.allclose(resampled["v"], 0.2 + 1e-3 * resampled.t)
    assert np.array_equal(uniform_in_time(traj, 2.5).t, [0.0, 2.5, 5.0, 7.5, 10.0])
    for dt in (0.0, -1.0, np.nan):
        with pytest.raises(SamplingOptionsError):
            uniform_in_time(traj, dt)
    with pytest.raises(SamplingOptionsError):
        uniform_in_phase(traj, 0)


def test_uniform_in_phase():
    traj = Trajectory.from_result(make_result(np.linspace(0.0, 200.0, 41)), BBH, "max")
    resampled = uniform_in_phase(traj, 4)
    Phi = resampled["Phi"]
    assert Phi[0] == pytest.approx(0.0)
    assert np.allclose(np.diff(Phi), np.pi / 2)
    # 20 radians of phase at four samples per orbit
    assert len(resampled) == int(np.floor(20.0 / (np.pi / 2))) + 1


if __name__ == "__main__":
    test_indexing_and_dataframe()
    test_dense_output_and_resampling()
    test_combine_solutions()
    test_uniform_in_time()
    test_uniform_in_phase()
    print("OK")

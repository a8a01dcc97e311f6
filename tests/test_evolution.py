import logging
from functools import lru_cache

import numpy as np
import pytest

from pn_inspiral import quaternion as quat
from pn_inspiral.errors import (
    FrequencyOrderingError,
    InitialConditionError,
    InitialVelocityError,
    NonPositiveMassError,
    SamplingOptionsError,
    TidalAssignmentError,
    UnphysicalSpinError,
    UnsupportedApproximantError,
)
from pn_inspiral.evolution import (
    _check_initial_rhs,
    default_tolerances,
    orbital_evolution,
    orbital_evolution_from_system,
)
from pn_inspiral.integrate import SOLVER_FAILED, T_MAX
from pn_inspiral.system import BBH
from pn_inspiral.termination import REACHED_TARGET, TERMINATED, default_forwards
from pn_inspiral.variables import Omega, v_of_Omega

M1, M2 = 5 / 8, 3 / 8
OMEGA_I = 1 / 64
V_E = 0.5
RTOL = 1e-9


def make_inputs(seed=1234):
    rng = np.random.default_rng(seed)
    chi1 = rng.normal(size=3)
    chi1 *= rng.uniform(0, 1) / np.linalg.norm(chi1)
    chi2 = rng.normal(size=3)
    chi2 *= rng.uniform(0, 1) / np.linalg.norm(chi2)
    R_i = quat.from_axis_angle(rng.normal(size=3), 1e-3)
    return chi1, chi2, R_i


@lru_cache(maxsize=None)
def forwards_run():
    chi1, chi2, R_i = make_inputs()
    return orbital_evolution(M1, M2, chi1, chi2, OMEGA_I, Omega_e=Omega(V_E, M1 + M2), R_i=R_i, rtol=RTOL)


@lru_cache(maxsize=None)
def stitched_run():
    chi1, chi2, R_i = make_inputs()
    return orbital_evolution(M1, M2, chi1, chi2, OMEGA_I, Omega_1=OMEGA_I / 2, Omega_e=Omega(V_E, M1 + M2),
                             R_i=R_i, rtol=RTOL)


def initial_state():
    chi1, chi2, R_i = make_inputs()
    return np.concatenate([[M1, M2], chi1, chi2, quat.normalized(R_i), [v_of_Omega(OMEGA_I, M1 + M2), 0.0]])


def test_default_tolerances():
    rtol, atol = default_tolerances(1.0, 14)
    assert np.isclose(rtol, np.finfo(float).eps ** (11 / 16))
    assert atol.shape == (14,)
    assert atol[0] == atol[1] == np.spacing(1.0) ** (11 / 16)

    rtol32, atol32 = default_tolerances(np.float32(1.0), 14, np.float32)
    assert np.isclose(rtol32, np.finfo(np.float32).eps ** (11 / 16))
    assert np.isclose(atol32[0], np.spacing(np.float32(1.0)) ** (11 / 16))
    rtol_ld, _ = default_tolerances(1.0, 14, np.longdouble)
    assert rtol_ld <= rtol < rtol32

    dtmin = default_forwards(0.5, eps=np.finfo(np.float32).eps).discrete[0]
    assert dtmin.name == "dtmin" and np.isclose(dtmin.threshold, np.sqrt(np.finfo(np.float32).eps))


def test_forwards_endpoints():
    traj = forwards_run()
    assert traj.status == REACHED_TARGET, traj.message
    assert traj.t[0] == 0.0
    assert np.array_equal(traj.sample(0), initial_state())
    assert np.isclose(traj["v", -1], V_E, rtol=1e-10), f"v_final={traj['v', -1]}"
    assert np.all(np.diff(traj.t) > 0)
    assert np.all(np.diff(traj["Phi"]) > 0), "orbital phase must increase"


def test_initial_frequency_at_target():
    traj = orbital_evolution(0.6, 0.4, [0.0, 0.0, 0.3], [0.0, 0.0, 0.1], 0.01, Omega_e=0.01)
    v_i = v_of_Omega(0.01, 1.0)
    assert traj.status == REACHED_TARGET and traj.stop_reason == "v", traj.message
    assert len(traj) == 1 and traj.t[0] == 0.0
    assert traj["v", -1] == v_i, f"v_final={traj['v', -1]}, v_i={v_i}"

    # with a backwards leg the forwards part is the initial sample alone
    traj = orbital_evolution(0.6, 0.4, [0.0, 0.0, 0.3], [0.0, 0.0, 0.1], 0.01,
                             Omega_1=0.009, Omega_e=0.01)
    assert traj.status == REACHED_TARGET
    assert traj.tf == 0.0 and traj["v", -1] == v_i
    assert np.all(np.diff(traj.t) > 0)
    assert np.isclose(traj["v", 0], v_of_Omega(0.009, 1.0), rtol=1e-8)


def test_large_precessing_spins_to_v_of_one():
    traj = orbital_evolution(0.6, 0.4, [0.7, 0.1, 0.7], [-0.7, 0.1, 0.7], 0.01)
    assert traj.status not in (SOLVER_FAILED, T_MAX), traj.message
    assert traj.status in (REACHED_TARGET, TERMINATED)
    assert np.all(np.diff(traj.t) > 0)
    assert np.array_equal(traj["M1", 0], 0.6) and traj["v", 0] == v_of_Omega(0.01, 1.0)
    assert traj["v", -1] > 0.5, f"stopped early at v={traj['v', -1]}: {traj.message}"
    if traj.status == REACHED_TARGET:
        assert np.isclose(traj["v", -1], 1.0, rtol=1e-10)
    else:
        assert traj.stop_reason in ("dtmin", "decreasing_v", "nonfinite", "chi1", "chi2")


@pytest.mark.parametrize("dtype", [np.float32, np.longdouble])
def test_state_precision_is_kept(dtype):
    chi1, chi2, R_i = make_inputs()
    traj = orbital_evolution(dtype(M1), dtype(M2), chi1.astype(dtype), chi2.astype(dtype), dtype(OMEGA_I),
                             Omega_e=Omega(dtype(0.3), dtype(M1 + M2)), R_i=R_i.astype(dtype))
    assert traj.y.dtype == dtype, f"trajectory dtype {traj.y.dtype}"
    assert traj.system_at(-1).state.dtype == dtype
    assert traj.status == REACHED_TARGET, traj.message
    rtol = 1e-4 if dtype == np.float32 else 1e-10
    assert np.isclose(float(traj["v", -1]), 0.3, rtol=rtol)
    assert traj["v", 0] == dtype(v_of_Omega(dtype(OMEGA_I), dtype(M1 + M2)))


def test_stitched_endpoints():
    traj = stitched_run()
    v_1 = v_of_Omega(OMEGA_I / 2, M1 + M2)
    assert traj.status == REACHED_TARGET
    assert traj.t[0] < 0
    assert np.isclose(traj["v", 0], v_1, rtol=1e-10), f"v_first={traj['v', 0]}, v_1={v_1}"
    assert np.isclose(traj["v", -1], V_E, rtol=1e-10)
    i = int(np.argmin(np.abs(traj.t)))
    assert traj.t[i] == 0.0
    assert np.array_equal(traj.sample(i), initial_state())
    assert np.all(np.diff(traj.t) > 0)
    assert np.all(np.diff(traj["Phi"]) > 0)
    assert traj["Phi"][0] < 0


def test_stitched_interpolation_matches_forwards():
    forwards, stitched = forwards_run(), stitched_run()
    t = np.linspace(forwards.t[0], forwards.t[1], 11)
    assert np.allclose(forwards(t[3]), stitched(t[3]), rtol=1e-14, atol=0)
    assert np.allclose(forwards(t, ["v"]), stitched(t, ["v"]), rtol=1e-14, atol=0)
    # negative times go to the backwards solution
    t_back = np.linspace(stitched.t[0], 0.0, 7)
    v_back = stitched(t_back, ["v"])[0]
    assert np.all(np.diff(v_back) > 0)
    assert np.isclose(v_back[0], stitched["v", 0])


def test_system_at_reconstructs_state():
    traj = forwards_run()
    s = traj.system_at(-1)
    assert isinstance(s, BBH)
    assert np.array_equal(s.state, traj.sample(-1))


def test_nonprecessing_stays_in_plane():
    traj = orbital_evolution(0.6, 0.4, [0.0, 0.0, 0.5], [0.0, 0.0, -0.3], 0.02,
                             Omega_e=Omega(0.4), rtol=RTOL)
    for name in ("chi1x", "chi1y", "chi2x", "chi2y", "Rx", "Ry"):
        assert np.all(traj[name] == 0), f"{name} left the plane: {np.max(np.abs(traj[name]))}"
    Phi = traj["Phi"]
    assert np.allclose(traj["Rw"], np.cos(Phi / 2), atol=1e-6)
    assert np.allclose(traj["Rz"], np.sin(Phi / 2), atol=1e-6)


def test_inputs_are_not_modified():
    chi1, chi2, R_i = make_inputs()
    copies = chi1.copy(), chi2.copy(), R_i.copy()
    orbital_evolution(M1, M2, chi1, chi2, OMEGA_I, Omega_e=1.1 * OMEGA_I, R_i=R_i, rtol=RTOL)
    for before, after in zip(copies, (chi1, chi2, R_i)):
        assert np.array_equal(before, after)

    s = BBH(M1, M2, chi1, chi2, v=v_of_Omega(OMEGA_I, M1 + M2), R=R_i)
    state = s.state.copy()
    traj = orbital_evolution_from_system(s, Omega_e=1.1 * OMEGA_I, rtol=RTOL)
    assert np.array_equal(s.state, state)
    assert np.allclose(traj.sample(0), state)


@pytest.mark.parametrize("approximant", ["TaylorT4", "TaylorT5"])
def test_other_approximants(approximant):
    chi1, chi2, R_i = make_inputs()
    traj = orbital_evolution(M1, M2, chi1, chi2, OMEGA_I, Omega_e=Omega(0.3, M1 + M2), R_i=R_i,
                             approximant=approximant, rtol=RTOL)
    assert traj.status == REACHED_TARGET, traj.message
    assert np.isclose(traj["v", -1], 0.3, rtol=1e-10)


def test_saves_per_orbit():
    chi1, chi2, R_i = make_inputs()
    traj = orbital_evolution(M1, M2, chi1, chi2, OMEGA_I, Omega_e=Omega(0.3, M1 + M2), R_i=R_i,
                             rtol=RTOL, saves_per_orbit=8)
    dPhi = np.diff(traj["Phi"])
    assert np.allclose(dPhi, 2 * np.pi / 8, rtol=1e-4), f"phase steps {dPhi.min()}..{dPhi.max()}"


def test_t_eval():
    chi1, chi2, R_i = make_inputs()
    t_eval = np.linspace(0.0, 100.0, 5)
    traj = orbital_evolution(M1, M2, chi1, chi2, OMEGA_I, Omega_e=Omega(0.3, M1 + M2), R_i=R_i,
                             rtol=RTOL, t_eval=t_eval)
    assert np.array_equal(traj.t, t_eval)
    assert traj.y.shape == (14, 5)


def test_fixed_step_sampling():
    chi1, chi2, R_i = make_inputs()
    traj = orbital_evolution(M1, M2, chi1, chi2, OMEGA_I, Omega_1=0.9 * OMEGA_I, Omega_e=Omega(0.3, M1 + M2),
                             R_i=R_i, rtol=RTOL, dt=25.0)
    steps = np.diff(traj.t)
    assert np.allclose(steps[:-1], 25.0), f"steps {steps.min()}..{steps.max()}"
    assert 0 < steps[-1] <= 25.0
    assert traj.t0 < 0 and traj.status == REACHED_TARGET
    # the final sample is still the end of the run
    assert np.isclose(traj["v", -1], 0.3, rtol=1e-10)
    assert np.isclose(traj["v", 0], v_of_Omega(0.9 * OMEGA_I, M1 + M2), rtol=1e-10)


def test_sampling_options_are_exclusive():
    chi = np.zeros(3)
    for kwargs in (dict(dt=0.0), dict(dt=-5.0), dict(dt=np.inf), dict(t_eval=5.0),
                   dict(dt=1.0, saves_per_orbit=4), dict(dt=1.0, t_eval=[0.0, 1.0])):
        with pytest.raises(SamplingOptionsError):
            orbital_evolution(M1, M2, chi, chi, OMEGA_I, **kwargs)
    with pytest.raises(ValueError):
        orbital_evolution(M1, M2, chi, chi, OMEGA_I, dt=0.0)


def test_quiet_controls_info(caplog):
    caplog.set_level(logging.INFO, logger="pn_inspiral")
    chi1, chi2, _ = make_inputs()
    orbital_evolution(M1, M2, chi1, chi2, OMEGA_I, Omega_e=1.1 * OMEGA_I, rtol=RTOL, quiet=False)
    messages = [r.getMessage() for r in caplog.records if r.levelno == logging.INFO]
    assert any("This is ideal." in m for m in messages), messages

    caplog.clear()
    orbital_evolution(M1, M2, chi1, chi2, OMEGA_I, Omega_e=1.1 * OMEGA_I, rtol=RTOL, quiet=True)
    assert [r for r in caplog.records if r.levelno == logging.INFO] == []


def test_validation_errors():
    chi = np.zeros(3)
    big = np.array([0.0, 0.0, 1.5])
    cases = [
        (UnsupportedApproximantError, dict(approximant="TaylorT2")),
        (NonPositiveMassError, dict(M1=-1.0)),
        (UnphysicalSpinError, dict(chi1=big)),
        (UnphysicalSpinError, dict(chi2=big)),
        (InitialVelocityError, dict(Omega_i=2.0)),
        (TidalAssignmentError, dict(lambda1=100.0)),
        (FrequencyOrderingError, dict(Omega_1=2 * OMEGA_I)),
        (FrequencyOrderingError, dict(Omega_e=OMEGA_I / 2)),
        (SamplingOptionsError, dict(saves_per_orbit=4, t_eval=[0.0, 1.0])),
    ]
    for error, overrides in cases:
        kwargs = dict(M1=M1, M2=M2, chi1=chi, chi2=chi, Omega_i=OMEGA_I)
        kwargs.update(overrides)
        args = [kwargs.pop(k) for k in ("M1", "M2", "chi1", "chi2", "Omega_i")]
        with pytest.raises(error):
            orbital_evolution(*args, **kwargs)


def test_spin_error_names_the_body():
    small, big = np.array([0.0, 0.1, 0.0]), np.array([0.9, 0.0, 0.9])
    with pytest.raises(UnphysicalSpinError, match="body 2") as err:
        orbital_evolution(M1, M2, small, big, OMEGA_I)
    assert "chi1" not in str(err.value) and "M2**2" in str(err.value)
    with pytest.raises(UnphysicalSpinError, match="body 1"):
        orbital_evolution(M1, M2, big, small, OMEGA_I)


def test_nonfinite_initial_rhs():
    s = BBH(M1, M2, np.zeros(3), np.zeros(3), v=0.3)
    with pytest.raises(InitialConditionError):
        _check_initial_rhs(lambda t, y: np.full_like(y, np.nan), s)


if __name__ == "__main__":
    test_default_tolerances()
    test_forwards_endpoints()
    test_stitched_endpoints()
    test_stitched_interpolation_matches_forwards()
    test_nonprecessing_stays_in_plane()
    test_inputs_are_not_modified()
    test_saves_per_orbit()
    test_t_eval()
    test_fixed_step_sampling()
    test_sampling_options_are_exclusive()
    test_initial_frequency_at_target()
    test_spin_error_names_the_body()
    test_validation_errors()
    print("OK")

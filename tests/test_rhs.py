import numpy as np
import pytest

from pn_inspiral.errors import UnsupportedApproximantError
from pn_inspiral.rhs import APPROXIMANTS, causes_domain_error, make_rhs, taylor_t1
from pn_inspiral.system import BBH, NSNS, PHI_INDEX, V_INDEX


def make_system(v=0.05, chi1=(0.1, 0.2, 0.4), chi2=(-0.3, 0.0, 0.2)):
    return BBH(0.7, 0.3, chi1, chi2, v=v)


def test_domain_error_fills_nan():
    s = make_system(v=-0.1)
    udot = np.zeros(len(s))
    assert causes_domain_error(udot, s)
    assert np.all(np.isnan(udot))
    fun = make_rhs("TaylorT4", s)
    assert np.all(np.isnan(fun(0.0, s.replace(v=0.0).state)))


def test_rhs_does_not_mutate_state():
    s = make_system(v=0.3)
    y = s.state.copy()
    for name in APPROXIMANTS:
        fun = make_rhs(name, s)
        udot = fun(0.0, y)
        assert np.array_equal(y, s.state), f"{name} modified its input"
        assert np.all(np.isfinite(udot)), f"{name} gave {udot}"


def test_approximants_agree_at_low_velocity():
    s = make_system(v=0.05)
    results = {name: make_rhs(name, s)(0.0, s.state) for name in APPROXIMANTS}
    t1 = results["TaylorT1"]
    for name in ("TaylorT4", "TaylorT5"):
        assert np.isclose(results[name][V_INDEX], t1[V_INDEX], rtol=1e-6), (
            f"{name} vdot={results[name][V_INDEX]} vs TaylorT1 {t1[V_INDEX]}"
        )
        # everything but vdot is shared
        mask = np.arange(len(s)) != V_INDEX
        assert np.array_equal(results[name][mask], t1[mask])


def test_vdot_positive_and_phase_rate():
    s = make_system(v=0.2)
    udot = np.empty(len(s))
    taylor_t1(udot, s)
    assert udot[V_INDEX] > 0
    assert np.isclose(udot[PHI_INDEX], s.v**3 / s.M)


def test_aligned_spins_stay_aligned():
    s = make_system(v=0.2, chi1=(0.0, 0.0, 0.6), chi2=(0.0, 0.0, -0.3))
    udot = make_rhs("TaylorT1", s)(0.0, s.state)
    assert np.all(udot[2:4] == 0) and np.all(udot[5:7] == 0), f"chi dot = {udot[2:8]}"
    assert np.allclose(udot[8:12], [0.0, 0.0, 0.0, s.Omega / 2])


def test_tidal_parameters_are_constant():
    ns = NSNS(1.4, 1.3, np.zeros(3), np.zeros(3), v=0.2, Lambda1=300.0, Lambda2=500.0)
    udot = make_rhs("TaylorT4", ns)(0.0, ns.state)
    assert udot.shape == (16,)
    assert np.all(udot[PHI_INDEX + 1:] == 0)


@pytest.mark.parametrize("dtype, rtol", [(np.float32, 1e-4), (np.longdouble, 1e-12)])
def test_rhs_keeps_state_precision(dtype, rtol):
    s = make_system(v=0.2)
    low = BBH.from_vector(s.state.astype(dtype))
    for name in APPROXIMANTS:
        udot = make_rhs(name, low)(0.0, low.state)
        assert udot.dtype == dtype, f"{name} returned {udot.dtype}"
        reference = make_rhs(name, s)(0.0, s.state)
        scale = np.max(np.abs(reference))
        assert np.allclose(udot.astype(float), reference, rtol=rtol, atol=rtol * scale), name
        assert np.isclose(float(udot[V_INDEX]), reference[V_INDEX], rtol=rtol)


def test_unsupported_approximant():
    with pytest.raises(UnsupportedApproximantError) as err:
        make_rhs("TaylorT2", make_system())
    assert "TaylorT1" in str(err.value)


if __name__ == "__main__":
    test_domain_error_fills_nan()
    test_rhs_does_not_mutate_state()
    test_approximants_agree_at_low_velocity()
    test_vdot_positive_and_phase_rate()
    test_aligned_spins_stay_aligned()
    test_tidal_parameters_are_constant()
    test_rhs_keeps_state_precision(np.float32, 1e-4)
    print("OK")

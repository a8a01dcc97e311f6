import logging

import numpy as np

from pn_inspiral.evolution import orbital_evolution
from pn_inspiral.instability import up_down_instability, up_down_instability_warn
from pn_inspiral.system import BBH
from pn_inspiral.variables import Omega, v_of_Omega

# close to a numerical-relativity configuration known to hit the instability
M1 = 0.561844712025
M2 = 0.43822158103
CHI1 = np.array([-6.25908582173e-09, -2.21655853316e-08, 0.723734029888])
CHI2 = np.array([3.39881185355e-08, 5.92671870568e-08, -0.799746224993])
OMEGA_I = 2e-3

UDI_WARNING = "This system is likely to encounter the up-down instability in the"


def make_system(M1=M1, M2=M2, chi1=CHI1, chi2=CHI2):
    return BBH(M1, M2, chi1, chi2, v=v_of_Omega(OMEGA_I, M1 + M2))


def udi_records(caplog):
    return [r for r in caplog.records if r.levelno == logging.WARNING and UDI_WARNING in r.getMessage()]


def evolve_briefly(M1, M2, chi1, chi2):
    # the check runs before integrating, so a short run is enough
    return orbital_evolution(M1, M2, chi1, chi2, OMEGA_I, Omega_e=1.05 * OMEGA_I, quiet=True, rtol=1e-8)


def test_frequencies():
    s = make_system()
    Omega_plus, Omega_minus = up_down_instability(s)
    Omega_max = Omega(1.0, s.M)
    assert 0 <= Omega_plus <= Omega_minus <= Omega_max
    assert np.isclose(Omega_plus, 5.46e-4, rtol=1e-2), f"Omega_plus={Omega_plus}"
    assert np.isclose(Omega_minus, Omega_max), f"Omega_minus={Omega_minus}"


def test_frequencies_ignore_mass_order():
    a = up_down_instability(make_system())
    b = up_down_instability(make_system(M2, M1, CHI2, CHI1))
    assert np.allclose(a, b), f"{a} vs {b}"


def test_stable_configurations():
    s = make_system(chi1=CHI1 * [1, 1, -0.5])
    Omega_max = Omega(1.0, s.M)
    assert up_down_instability(s) == (Omega_max, Omega_max)
    # with equal masses body 2 counts as the heavier one
    equal = BBH(0.5, 0.5, CHI2, CHI1, v=0.1)
    assert up_down_instability(equal) == (0.0, 0.0)


def test_warning_direct(caplog):
    s = make_system()
    assert up_down_instability_warn(s, s.v, 1.0)
    assert len(udi_records(caplog)) == 1
    # the whole range lies below v_plus
    caplog.clear()
    assert not up_down_instability_warn(s, 0.01, 0.02)
    assert udi_records(caplog) == []


def test_warning_even_when_quiet(caplog):
    evolve_briefly(M1, M2, CHI1, CHI2)
    assert len(udi_records(caplog)) == 1


def test_warning_with_swapped_masses(caplog):
    evolve_briefly(M2, M1, CHI2, CHI1)
    assert len(udi_records(caplog)) == 1


def test_no_warning_when_stable(caplog):
    caplog.set_level(logging.INFO)
    evolve_briefly(M1, M2, CHI1 * [1, 1, -0.5], CHI2)
    evolve_briefly(M1, M2, CHI1, CHI2 * [1, 1, -1])
    assert udi_records(caplog) == []
    assert [r for r in caplog.records if r.levelno >= logging.INFO and r.name.startswith("pn_inspiral")] == []


if __name__ == "__main__":
    test_frequencies()
    test_frequencies_ignore_mass_order()
    test_stable_configurations()
    print("OK")

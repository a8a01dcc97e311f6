"""Ready-made binaries: the superkick and hangup-kick configurations and random draws."""
from __future__ import annotations

import numpy as np

from . import quaternion as quat
from .system import BBH, BHNS, NSNS, PNSystem

# search ranges of current ground-based detectors; q <= 1 as in their catalogs
Q_MIN = 0.05
CHI_MAX = 0.998
LAMBDA_MAX = 5000.0


def superkick(v: float = 0.2, chi: float = 0.99, pn_order="max") -> BBH:
    """Equal masses with equal and opposite spins in the orbital plane (Campanelli et al. 2007).

    The asymmetric emission of linear momentum along ``+z`` or ``-z`` gives the
    remnant a large recoil, though PN cannot follow the merger itself.
    """
    return BBH(0.5, 0.5, [chi, 0.0, 0.0], [-chi, 0.0, 0.0], v=v, pn_order=pn_order)


def hangup_kick(v: float = 0.2, chi: float = 0.99, theta: float = np.deg2rad(50.98),
                phi: float = np.deg2rad(30.0), pn_order="max") -> BBH:
    """Superkick with spin components along ``ell_hat`` added (Lousto & Zlochower 2011).

    ``chi1`` points along the spherical angles ``(theta, phi)``; ``chi2`` has the
    same ``z`` component and the opposite in-plane component.
    """
    in_plane = chi * np.sin(theta) * np.array([np.sin(phi), np.cos(phi)])
    along = chi * np.cos(theta)
    chi1 = [in_plane[0], in_plane[1], along]
    chi2 = [-in_plane[0], -in_plane[1], along]
    return BBH(0.5, 0.5, chi1, chi2, v=v, pn_order=pn_order)


def _isotropic(rng: np.random.Generator, n: int) -> np.ndarray:
    return quat.normalized(rng.normal(size=n))


def random_binary(rng: np.random.Generator, system_class=BBH, v: float = 0.2, pn_order="max") -> PNSystem:
    """Draw a binary of ``system_class`` with total mass 1.

    ``q`` is uniform in ``[Q_MIN, 1]``, spin magnitudes uniform in ``[0, CHI_MAX]``
    with isotropic directions, the frame ``R`` is a uniformly random rotor and
    each neutron star's ``Lambda`` is uniform in ``[0, LAMBDA_MAX]``.
    """
    if system_class not in (BBH, BHNS, NSNS):
        raise TypeError(f"random_binary draws BBH, BHNS or NSNS systems; got {system_class!r}.")
    q = rng.uniform(Q_MIN, 1.0)
    M1, M2 = 1 / (1 + q), q / (1 + q)
    chi1 = CHI_MAX * rng.random() * _isotropic(rng, 3)
    chi2 = CHI_MAX * rng.random() * _isotropic(rng, 3)
    R = _isotropic(rng, 4)
    tidal = {}
    if "Lambda1" in system_class.INDEX:
        tidal["Lambda1"] = LAMBDA_MAX * rng.random()
    if "Lambda2" in system_class.INDEX:
        tidal["Lambda2"] = LAMBDA_MAX * rng.random()
    return system_class(M1, M2, chi1, chi2, v=v, R=R, pn_order=pn_order, **tidal)

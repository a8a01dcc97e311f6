"""Binary state records.

The state vector is the integrator's working array and its layout is fixed:

    M1, M2, chi1x, chi1y, chi1z, chi2x, chi2y, chi2z, Rw, Rx, Ry, Rz, v, Phi

followed by ``Lambda2`` for a black-hole/neutron-star binary, or by
``Lambda1, Lambda2`` for a neutron-star/neutron-star binary. Body 2 is the
neutron star in the mixed case.

Derived quantities (``nu``, ``ell_hat``, ``S_n``, ...) are properties computed
once per object; the RHS builds one object per evaluation, so the physics
formulas can read them freely.
"""
from __future__ import annotations

from functools import cached_property
from typing import ClassVar, Dict, Optional, Tuple

import numpy as np
from numpy.typing import NDArray

from . import quaternion as quat
from . import variables
from .errors import StateVectorLengthError, TidalAssignmentError, UnknownFieldError
from .pn_order import PNOrderLike, order_index, prepare_pn_order

BASE_FIELDS: Tuple[str, ...] = (
    "M1", "M2",
    "chi1x", "chi1y", "chi1z",
    "chi2x", "chi2y", "chi2z",
    "Rw", "Rx", "Ry", "Rz",
    "v", "Phi",
)
TIDAL_FIELDS = ("Lambda1", "Lambda2")

M1_INDEX, M2_INDEX = 0, 1
CHI1_SLICE, CHI2_SLICE = slice(2, 5), slice(5, 8)
R_SLICE = slice(8, 12)
V_INDEX, PHI_INDEX = 12, 13


def state_dtype(*values) -> np.dtype:
    """Floating dtype shared by the numpy-typed ``values``.

    Plain Python numbers and lists take no part, so ``BBH(np.float32(0.6), ...)``
    stays in single precision even with the default ``R`` and ``Phi``. With no
    numpy inputs at all the state is float64.
    """
    dtypes = [np.asarray(x).dtype for x in values if isinstance(x, (np.ndarray, np.generic))]
    dtype = np.result_type(*dtypes) if dtypes else np.dtype(float)
    if not np.issubdtype(dtype, np.floating):
        dtype = np.promote_types(dtype, np.float64)
    return dtype


class PNSystem:
    FIELDS: ClassVar[Tuple[str, ...]] = BASE_FIELDS
    INDEX: ClassVar[Dict[str, int]] = {name: i for i, name in enumerate(BASE_FIELDS)}

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        cls.INDEX = {name: i for i, name in enumerate(cls.FIELDS)}

    def __init__(self, M1, M2, chi1, chi2, v, R=None, Phi=0.0,
                 Lambda1=0.0, Lambda2=0.0, pn_order: PNOrderLike = "max"):
        dtype = state_dtype(M1, M2, chi1, chi2, v, R, Phi, Lambda1, Lambda2)
        if R is None:
            R = (1.0, 0.0, 0.0, 0.0)
        state = np.zeros(len(self.FIELDS), dtype=dtype)
        state[M1_INDEX] = M1
        state[M2_INDEX] = M2
        state[CHI1_SLICE] = np.asarray(chi1).reshape(3)
        state[CHI2_SLICE] = np.asarray(chi2).reshape(3)
        state[R_SLICE] = np.asarray(R).reshape(4)
        state[V_INDEX] = v
        state[PHI_INDEX] = Phi
        for name, value in (("Lambda1", Lambda1), ("Lambda2", Lambda2)):
            if name in self.INDEX:
                state[self.INDEX[name]] = value
            elif value != 0:
                raise TidalAssignmentError(
                    f"{type(self).__name__} has no {name} field; got {name}={value}."
                )
        self._state = state
        self._pn_order = prepare_pn_order(pn_order)

    @classmethod
    def from_vector(cls, vec, pn_order: PNOrderLike = "max", copy: bool = True) -> "PNSystem":
        vec = np.asarray(vec)
        if vec.ndim != 1 or vec.shape[0] != len(cls.FIELDS):
            raise StateVectorLengthError(
                f"{cls.__name__} expects a state vector of length {len(cls.FIELDS)}; "
                f"got shape {vec.shape}."
            )
        obj = cls.__new__(cls)
        if not np.issubdtype(vec.dtype, np.floating):
            vec = vec.astype(float)
        elif copy:
            vec = vec.copy()
        obj._state = vec
        obj._pn_order = prepare_pn_order(pn_order)
        return obj

    # ---- fundamental fields ----

    @property
    def state(self) -> NDArray[np.float64]:
        return self._state

    @property
    def pn_order(self):
        return self._pn_order

    @property
    def order_index(self) -> int:
        return order_index(self._pn_order)

    @property
    def M1(self) -> float:
        return self._state[M1_INDEX]

    @property
    def M2(self) -> float:
        return self._state[M2_INDEX]

    @property
    def chi1(self) -> NDArray[np.float64]:
        return self._state[CHI1_SLICE]

    @property
    def chi2(self) -> NDArray[np.float64]:
        return self._state[CHI2_SLICE]

    @property
    def R(self) -> NDArray[np.float64]:
        return self._state[R_SLICE]

    @property
    def v(self) -> float:
        return self._state[V_INDEX]

    @property
    def Phi(self) -> float:
        return self._state[PHI_INDEX]

    @property
    def Lambda1(self) -> float:
        i = self.INDEX.get("Lambda1")
        return 0.0 if i is None else self._state[i]

    @property
    def Lambda2(self) -> float:
        i = self.INDEX.get("Lambda2")
        return 0.0 if i is None else self._state[i]

    def _index_of(self, name: str) -> int:
        try:
            return self.INDEX[name]
        except KeyError:
            raise UnknownFieldError(
                f"Unknown field {name!r} for {type(self).__name__}; "
                f"valid names are {', '.join(self.FIELDS)}."
            ) from None

    def __getitem__(self, name: str) -> float:
        if name in TIDAL_FIELDS and name not in self.INDEX:
            return 0.0
        return self._state[self._index_of(name)]

    def __setitem__(self, name: str, value) -> None:
        self._state[self._index_of(name)] = value
        self._invalidate()

    def _invalidate(self) -> None:
        # cached_property values live in __dict__ under their public names
        for key in [k for k in self.__dict__ if not k.startswith("_")]:
            del self.__dict__[key]

    def replace(self, **overrides) -> "PNSystem":
        """New system of the same class and PN order with some fields replaced.

        Accepts any name in ``FIELDS`` plus the vector shortcuts ``chi1``,
        ``chi2`` and ``R``.
        """
        new = type(self).from_vector(self._state, self._pn_order)
        for key, slc in (("chi1", CHI1_SLICE), ("chi2", CHI2_SLICE), ("R", R_SLICE)):
            if key in overrides:
                new._state[slc] = np.asarray(overrides.pop(key))
        for name, value in overrides.items():
            new._state[new._index_of(name)] = value
        return new

    def copy(self) -> "PNSystem":
        return type(self).from_vector(self._state, self._pn_order)

    def __len__(self) -> int:
        return len(self.FIELDS)

    def __repr__(self) -> str:
        fields = ", ".join(f"{n}={self._state[i]!r}" for i, n in enumerate(self.FIELDS))
        return f"{type(self).__name__}({fields}, pn_order={self._pn_order})"

    # ---- mass combinations ----

    @cached_property
    def M(self) -> float:
        return variables.total_mass(self.M1, self.M2)

    @cached_property
    def mu(self) -> float:
        return variables.reduced_mass(self.M1, self.M2)

    @cached_property
    def nu(self) -> float:
        return variables.reduced_mass_ratio(self.M1, self.M2)

    @cached_property
    def delta(self) -> float:
        return variables.mass_difference_ratio(self.M1, self.M2)

    @cached_property
    def q(self) -> float:
        return variables.mass_ratio(self.M1, self.M2)

    @cached_property
    def X1(self) -> float:
        return self.M1 / self.M

    @cached_property
    def X2(self) -> float:
        return self.M2 / self.M

    @cached_property
    def chirp_mass(self) -> float:
        return variables.chirp_mass(self.M1, self.M2)

    @cached_property
    def Omega(self) -> float:
        return variables.Omega(self.v, self.M)

    # ---- orbital frame ----

    @cached_property
    def n_hat(self) -> NDArray[np.float64]:
        return quat.n_hat(self.R)

    @cached_property
    def lambda_hat(self) -> NDArray[np.float64]:
        return quat.lambda_hat(self.R)

    @cached_property
    def ell_hat(self) -> NDArray[np.float64]:
        return quat.ell_hat(self.R)

    # ---- spin combinations ----

    @cached_property
    def S1(self) -> NDArray[np.float64]:
        return self.chi1 * self.M1**2

    @cached_property
    def S2(self) -> NDArray[np.float64]:
        return self.chi2 * self.M2**2

    @cached_property
    def S(self) -> NDArray[np.float64]:
        return self.S1 + self.S2

    @cached_property
    def Sigma(self) -> NDArray[np.float64]:
        return self.M * (self.chi2 * self.M2 - self.chi1 * self.M1)

    @cached_property
    def chi_s(self) -> NDArray[np.float64]:
        return (self.chi1 + self.chi2) / 2

    @cached_property
    def chi_a(self) -> NDArray[np.float64]:
        return (self.chi1 - self.chi2) / 2

    @cached_property
    def chi1_sq(self) -> float:
        return np.dot(self.chi1, self.chi1)

    @cached_property
    def chi2_sq(self) -> float:
        return np.dot(self.chi2, self.chi2)

    @cached_property
    def chi1_mag(self) -> float:
        return np.sqrt(self.chi1_sq)

    @cached_property
    def chi2_mag(self) -> float:
        return np.sqrt(self.chi2_sq)

    @cached_property
    def chi1_chi2(self) -> float:
        return np.dot(self.chi1, self.chi2)

    @cached_property
    def chi1_ell(self) -> float:
        return np.dot(self.chi1, self.ell_hat)

    @cached_property
    def chi2_ell(self) -> float:
        return np.dot(self.chi2, self.ell_hat)

    @cached_property
    def chi_s_ell(self) -> float:
        return np.dot(self.chi_s, self.ell_hat)

    @cached_property
    def chi_a_ell(self) -> float:
        return np.dot(self.chi_a, self.ell_hat)

    @cached_property
    def S_ell(self) -> float:
        return np.dot(self.S, self.ell_hat)

    @cached_property
    def Sigma_ell(self) -> float:
        return np.dot(self.Sigma, self.ell_hat)

    @cached_property
    def S_n(self) -> float:
        return np.dot(self.S, self.n_hat)

    @cached_property
    def Sigma_n(self) -> float:
        return np.dot(self.Sigma, self.n_hat)

    @cached_property
    def s_ell(self) -> float:
        return self.S_ell / self.M**2

    @cached_property
    def sigma_ell(self) -> float:
        return self.Sigma_ell / self.M**2

    @cached_property
    def chi_perp(self) -> float:
        return np.sqrt(max(self.chi1_sq - self.chi1_ell**2 + self.chi2_sq - self.chi2_ell**2, 0.0))

    # Spin-induced quadrupole (kappa) and octupole (lambda) constants; 1 for black holes.
    # Unrelated to the tidal deformabilities Lambda1, Lambda2.
    spin_kappa1 = 1.0
    spin_kappa2 = 1.0
    spin_lambda1 = 1.0
    spin_lambda2 = 1.0

    @property
    def kappa_plus(self) -> float:
        return self.spin_kappa1 + self.spin_kappa2

    @property
    def kappa_minus(self) -> float:
        return self.spin_kappa1 - self.spin_kappa2

    @property
    def spin_lambda_plus(self) -> float:
        return self.spin_lambda1 + self.spin_lambda2

    @property
    def spin_lambda_minus(self) -> float:
        return self.spin_lambda1 - self.spin_lambda2

    # ---- tidal coupling ----

    @cached_property
    def lambda1_tidal(self) -> float:
        """Dimensionful deformability ``Lambda1 * M1**5``."""
        return self.Lambda1 * self.M1**5

    @cached_property
    def lambda2_tidal(self) -> float:
        return self.Lambda2 * self.M2**5

    @cached_property
    def Lambda_tilde(self) -> float:
        """Effective tidal deformability (Raithel et al. 2018)."""
        M1, M2, M = self.M1, self.M2, self.M
        return 16 / 13 * ((M1 + 12*M2) * M1**4 * self.Lambda1 + (M2 + 12*M1) * M2**4 * self.Lambda2) / M**5


class BBH(PNSystem):
    FIELDS = BASE_FIELDS


class BHNS(PNSystem):
    FIELDS = BASE_FIELDS + ("Lambda2",)


class NSNS(PNSystem):
    FIELDS = BASE_FIELDS + ("Lambda1", "Lambda2")


def system_class_for(lambda1=0.0, lambda2=0.0) -> type:
    """BBH, BHNS or NSNS depending on which tidal parameters are nonzero."""
    if lambda1 != 0 and lambda2 != 0:
        return NSNS
    if lambda2 != 0:
        return BHNS
    if lambda1 != 0:
        raise TidalAssignmentError(
            "By convention the neutron star in a BHNS binary is body 2, so lambda1 must be zero "
            "when lambda2 is. Swap the masses, spins and tidal parameters, or give both bodies a "
            "nonzero tidal parameter to get an NSNS binary."
        )
    return BBH


def system_class_by_length(n: int) -> Optional[type]:
    for cls in (BBH, BHNS, NSNS):
        if len(cls.FIELDS) == n:
            return cls
    return None

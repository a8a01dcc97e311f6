"""Truncated post-Newtonian expansions in powers of ``1/c``.

A ``PNExpansion`` holds the coefficients of ``(1/c)**0, (1/c)**1, ...`` together
with the maximum number of terms ``n_max`` the expansion may ever hold, which
is fixed by the PN order (``n_max = 1 + 2*pn_order``). When the ``v``
dependence is written as ``(v/c)**k`` the coefficients carry their powers of
``v`` and ``sum(expansion)`` is the truncated value.

A ``PNTerm`` is a single ``coeff * (1/c)**exponent``. Expressions such as
``1 + (v/c)**2 * a + (v/c)**3 * b`` are built from terms and collapse into a
``PNExpansion`` as soon as something is added; any term beyond the PN order
has its coefficient zeroed on construction and is dropped from expansions.
"""
from __future__ import annotations

from fractions import Fraction
from numbers import Number
from typing import Sequence

import numpy as np

from .errors import NegativeExponentError, PNOrderMismatchError
from .pn_order import order_index, prepare_pn_order
from .series import evalpoly


def _is_scalar_or_vector(x) -> bool:
    return isinstance(x, (Number, np.ndarray, np.generic))


class PNExpansion:
    __slots__ = ("coeffs", "n_max")
    # numpy must defer to our reflected operators instead of broadcasting
    __array_ufunc__ = None

    def __init__(self, coeffs: Sequence, n_max: int):
        coeffs = tuple(coeffs)
        if len(coeffs) < 1:
            raise ValueError(f"PNExpansion needs at least one coefficient; got {len(coeffs)}.")
        if len(coeffs) > n_max:
            raise ValueError(f"PNExpansion has {len(coeffs)} coefficients but n_max={n_max}.")
        self.coeffs = coeffs
        self.n_max = int(n_max)

    @classmethod
    def from_coefficients(cls, coeffs: Sequence, v, pn_order, prefactor=1.0, offset: int = 0) -> "PNExpansion":
        """Embed ``v``: entry ``k`` is ``prefactor * coeffs[k] * v**k``.

        Entries past ``order_index(pn_order) - 1 - offset`` are dropped.
        """
        n_max = order_index(pn_order)
        keep = min(len(coeffs), n_max - offset)
        if keep < 1:
            return cls((0 * prefactor,), n_max)
        out = []
        vk = 1.0
        for k in range(keep):
            out.append(prefactor * coeffs[k] * vk)
            vk = vk * v
        return cls(out, n_max)

    @property
    def pn_order(self) -> Fraction:
        return Fraction(self.n_max - 1, 2)

    def __len__(self) -> int:
        return len(self.coeffs)

    def __getitem__(self, i):
        return self.coeffs[i]

    def __iter__(self):
        return iter(self.coeffs)

    def __repr__(self) -> str:
        return f"PNExpansion({self.coeffs!r}, n_max={self.n_max})"

    def sum(self):
        total = self.coeffs[0]
        for c in self.coeffs[1:]:
            total = total + c
        return total

    def _check_same_order(self, other: "PNExpansion", op: str) -> None:
        if self.n_max != other.n_max:
            raise PNOrderMismatchError(
                f"PNExpansion {op} is only defined for expansions of the same PN order; "
                f"got n_max={self.n_max} and n_max={other.n_max}."
            )

    def __neg__(self) -> "PNExpansion":
        return PNExpansion([-c for c in self.coeffs], self.n_max)

    def __pos__(self) -> "PNExpansion":
        return self

    def __add__(self, other):
        if isinstance(other, PNExpansion):
            self._check_same_order(other, "addition")
            short, long_ = sorted((self.coeffs, other.coeffs), key=len)
            out = [short[i] + long_[i] for i in range(len(short))]
            out.extend(long_[len(short):])
            return PNExpansion(out, self.n_max)
        if isinstance(other, PNTerm):
            return other._add_to_expansion(self)
        if _is_scalar_or_vector(other):
            return PNExpansion((self.coeffs[0] + other,) + self.coeffs[1:], self.n_max)
        return NotImplemented

    __radd__ = __add__

    def __sub__(self, other):
        return self + (-other)

    def __rsub__(self, other):
        return (-self) + other

    def __mul__(self, other):
        if isinstance(other, PNExpansion):
            self._check_same_order(other, "multiplication")
            a, b = self.coeffs, other.coeffs
            n = min(len(a) + len(b) - 1, self.n_max)
            out = []
            for i in range(n):
                lo, hi = max(0, i - len(b) + 1), min(i, len(a) - 1)
                acc = a[lo] * b[i - lo]
                for j in range(lo + 1, hi + 1):
                    acc = acc + a[j] * b[i - j]
                out.append(acc)
            return PNExpansion(out, self.n_max)
        if isinstance(other, PNTerm):
            return self._times_term(other)
        if _is_scalar_or_vector(other):
            return PNExpansion([c * other for c in self.coeffs], self.n_max)
        return NotImplemented

    __rmul__ = __mul__

    def _times_term(self, term: "PNTerm") -> "PNExpansion":
        # (a0, a1, a2, a3) * (1/c)**2 -> (0, 0, a0, a1, a2, a3), cut at n_max
        if term.n_max != self.n_max:
            raise PNOrderMismatchError(
                f"Cannot multiply a PNExpansion of n_max={self.n_max} by a PNTerm of n_max={term.n_max}."
            )
        shift = term.exponent
        lost = self.coeffs[:max(0, -shift)]
        if any(np.any(c != 0) for c in lost):
            raise NegativeExponentError(
                f"Cannot multiply a PNExpansion by a PNTerm with negative exponent {shift}: "
                "the result would need positive powers of c."
            )
        n = max(1, min(len(self) + shift, self.n_max))
        zero = 0 * (self.coeffs[0] * term.coeff)
        out = [zero] * n
        for i, c in enumerate(self.coeffs):
            if 0 <= i + shift < n:
                out[i + shift] = c * term.coeff
        return PNExpansion(out, self.n_max)

    def __truediv__(self, other):
        if isinstance(other, PNTerm):
            return self._times_term(1 / other)
        if _is_scalar_or_vector(other):
            return self * (1 / other)
        return NotImplemented

    def evaluate(self, x=1):
        """Horner evaluation treating the coefficients as a polynomial in ``x``."""
        return evalpoly(x, self.coeffs)


class PNTerm:
    """``coeff * (1/c)**exponent`` carrying the PN order it will be truncated at."""

    __slots__ = ("exponent", "coeff", "pn_order")
    __array_ufunc__ = None

    def __init__(self, exponent: int, coeff, pn_order):
        self.exponent = int(exponent)
        self.pn_order = prepare_pn_order(pn_order)
        if self.exponent > 2 * self.pn_order:
            coeff = 0 * coeff
        self.coeff = coeff

    def __repr__(self) -> str:
        return f"PNTerm({self.exponent}, {self.coeff!r}, pn_order={self.pn_order})"

    @property
    def n_max(self) -> int:
        return int(2 * self.pn_order + 1)

    def sum(self):
        return self.coeff

    def _check_same_order(self, other: "PNTerm") -> None:
        if self.pn_order != other.pn_order:
            raise PNOrderMismatchError(
                f"PNTerm arithmetic requires equal PN orders; got {self.pn_order} and {other.pn_order}."
            )

    def _check_addable(self, name: str = "term") -> None:
        if self.exponent < 0:
            raise NegativeExponentError(
                f"Cannot add a PNTerm with a negative exponent: {name}.exponent={self.exponent}. "
                "The result would be a PNExpansion, which cannot store positive powers of c."
            )

    def _add_to_expansion(self, expansion: PNExpansion) -> PNExpansion:
        self._check_addable()
        if expansion.n_max != self.n_max:
            raise PNOrderMismatchError(
                f"Cannot add a PNTerm of n_max={self.n_max} to a PNExpansion of n_max={expansion.n_max}."
            )
        i = self.exponent
        if i >= self.n_max:
            return expansion
        coeffs = list(expansion.coeffs)
        if i < len(coeffs):
            coeffs[i] = coeffs[i] + self.coeff
        else:
            coeffs.extend([0 * self.coeff] * (i - len(coeffs)))
            coeffs.append(self.coeff)
        return PNExpansion(coeffs, self.n_max)

    def __neg__(self) -> "PNTerm":
        return PNTerm(self.exponent, -self.coeff, self.pn_order)

    def __pos__(self) -> "PNTerm":
        return self

    def __add__(self, other):
        if isinstance(other, PNTerm):
            self._check_same_order(other)
            self._check_addable("term1")
            other._check_addable("term2")
            n = min(max(self.exponent, other.exponent) + 1, self.n_max)
            zero = 0 * (self.coeff + other.coeff)
            coeffs = [zero] * n
            if self.exponent < n:
                coeffs[self.exponent] = coeffs[self.exponent] + self.coeff
            if other.exponent < n:
                coeffs[other.exponent] = coeffs[other.exponent] + other.coeff
            return PNExpansion(coeffs, self.n_max)
        if isinstance(other, PNExpansion):
            return self._add_to_expansion(other)
        if _is_scalar_or_vector(other):
            self._check_addable()
            return self._add_to_expansion(PNExpansion((other,), self.n_max))
        return NotImplemented

    __radd__ = __add__

    def __sub__(self, other):
        return self + (-other)

    def __rsub__(self, other):
        return (-self) + other

    def __mul__(self, other):
        if isinstance(other, PNTerm):
            self._check_same_order(other)
            return PNTerm(self.exponent + other.exponent, self.coeff * other.coeff, self.pn_order)
        if _is_scalar_or_vector(other):
            return PNTerm(self.exponent, self.coeff * other, self.pn_order)
        if isinstance(other, PNExpansion):
            return other._times_term(self)
        return NotImplemented

    __rmul__ = __mul__

    def __truediv__(self, other):
        if isinstance(other, PNTerm):
            self._check_same_order(other)
            return PNTerm(self.exponent - other.exponent, self.coeff / other.coeff, self.pn_order)
        if _is_scalar_or_vector(other):
            return PNTerm(self.exponent, self.coeff / other, self.pn_order)
        return NotImplemented

    def __rtruediv__(self, other):
        if _is_scalar_or_vector(other):
            return PNTerm(-self.exponent, other / self.coeff, self.pn_order)
        return NotImplemented

    def __pow__(self, n: int) -> "PNTerm":
        return PNTerm(self.exponent * n, self.coeff ** n, self.pn_order)


def pn_expansion_parameter(system) -> PNTerm:
    """The symbol ``c``: ``v / pn_expansion_parameter(s)`` is the order-one term."""
    return PNTerm(-1, 1.0, system.pn_order)


def evaluate_pn_series(coeffs: Sequence, v, pn_order, offset: int = 0):
    """Horner-evaluate ``coeffs`` in ``v``, keeping only terms allowed at ``pn_order``.

    ``offset`` lowers the cut for a series entering a combined expression at a
    higher relative order than its own leading term.
    """
    max_index = min(len(coeffs) - 1, order_index(pn_order) - 1 - offset)
    if max_index < 0:
        return 0 * v
    return evalpoly(v, coeffs[: max_index + 1])

"""Truncated power-series arithmetic.

Coefficients are ascending: ``a[k]`` multiplies ``x**k``. Every function accepts
tuples, lists, or 1-D numpy arrays and never assumes a particular float type, so
it can be used with ``float``, ``numpy.float32``/``float64``, or ``Fraction``.
"""
from __future__ import annotations

from typing import Sequence


def evalpoly(x, coeffs: Sequence):
    """Horner evaluation of ``sum(coeffs[k] * x**k)``."""
    n = len(coeffs)
    if n == 0:
        return 0 * x
    acc = coeffs[n - 1]
    for k in range(n - 2, -1, -1):
        acc = acc * x + coeffs[k]
    return acc


def truncated_series_inverse(a: Sequence) -> list:
    """Coefficients ``b`` with ``A*B = 1 + O(x**(n+1))`` where ``n = len(a)-1``.

    Requires ``a[0] != 0``; a series starting at ``x**k`` must have that power
    factored out first.
    """
    n = len(a) - 1
    if n < 0:
        return []
    b = [None] * (n + 1)
    b[0] = 1 / a[0]
    for i in range(n):
        acc = a[1] * b[i]
        for j in range(2, i + 2):
            acc = acc + a[j] * b[i + 1 - j]
        b[i + 1] = -b[0] * acc
    return b


def truncated_series_product(a: Sequence, b: Sequence, x):
    """Value at ``x`` of ``A*B`` truncated at ``x**n``.

    Nested form: the innermost factor ``b[N]*a[0]`` is multiplied out by ``x``
    once per level, and each level adds ``b[n]`` times the partial sum of ``a``
    up to the power that still fits below ``x**(N+1)``.
    """
    if len(a) != len(b):
        raise ValueError(f"series lengths differ: len(a)={len(a)}, len(b)={len(b)}")
    N = len(a) - 1
    if N < 0:
        return 0 * x
    ab = b[N] * a[0]
    for n in range(N - 1, -1, -1):
        ab = x * ab + b[n] * evalpoly(x, a[: N - n + 1])
    return ab


def truncated_series_ratio(a: Sequence, b: Sequence, x):
    """Value at ``x`` of ``A/B`` truncated at the shared order."""
    return truncated_series_product(a, truncated_series_inverse(b), x)


def truncated_series_ratio_unit(a: Sequence, b: Sequence):
    """Truncated ``A/B`` for series whose ``x`` dependence is already in the coefficients.

    Equivalent to ``truncated_series_ratio(a, b, 1)`` when the lengths agree, but
    the lengths may differ; the shorter one is zero-padded to ``N = max(len(a), len(b))``.
    """
    Na, Nb = len(a), len(b)
    if Nb == 0:
        raise ValueError("truncated_series_ratio_unit: b must have at least one term")
    if Na == 0:
        return 0 * b[0]
    n = max(Na, Nb) - 1

    # inverse of b up to index n, with b treated as zero beyond its length
    binv = [None] * (n + 1)
    binv[0] = 1 / b[0]
    for i in range(1, n + 1):
        acc = 0 * binv[0]
        for j in range(1, min(i, Nb - 1) + 1):
            acc = acc + b[j] * binv[i - j]
        binv[i] = -binv[0] * acc

    # running sums of the inverse so that each a[i1] pairs with binv[0..n-i1]
    partial = [None] * (n + 1)
    acc = 0 * binv[0]
    for i2 in range(n + 1):
        acc = acc + binv[i2]
        partial[i2] = acc

    total = 0 * binv[0]
    for i1 in range(Na):
        total = total + a[i1] * partial[n - i1]
    return total


def lagrange_inversion(a: Sequence) -> list:
    """Compositional inverse of ``f(x) = a[1]*x + a[2]*x**2 + ... + a[n]*x**n``.

    Returns ``g`` (same length, ``g[0] = 0``) such that ``g(f(x)) = x + O(x**(n+1))``.
    ``a[0]`` must be zero and ``a[1]`` nonzero.

    With ``h(x) = x/f(x)``, the k-th inverse coefficient is ``[x**(k-1)] h(x)**k / k``.
    Powers of ``h`` are accumulated one multiplication at a time, truncated at
    ``x**(n-1)``, which is the highest coefficient ever read.
    """
    n = len(a) - 1
    if n < 1:
        raise ValueError("lagrange_inversion needs at least the linear coefficient")
    if a[0] != 0:
        raise ValueError(f"lagrange_inversion requires a zero constant term; got a[0]={a[0]}")
    if a[1] == 0:
        raise ValueError("lagrange_inversion requires a nonzero linear coefficient")

    # h = x/f = 1/(a[1] + a[2] x + ...), truncated at x**(n-1)
    h = truncated_series_inverse(list(a[1:]))

    g = [0 * h[0]] * (n + 1)
    power = list(h)
    g[1] = power[0]
    for k in range(2, n + 1):
        power = [
            sum((power[j] * h[i - j] for j in range(1, i + 1)), power[0] * h[i])
            for i in range(n)
        ]
        g[k] = power[k - 1] / k
    return g

from __future__ import annotations

import math
import sys
from fractions import Fraction
from typing import Union

PNOrderLike = Union[int, float, Fraction, str, None]

# Largest half-integer whose doubled value (plus the leading term) still fits an index.
MAX_PN_ORDER = Fraction(sys.maxsize - 2, 2)


def prepare_pn_order(pn_order: PNOrderLike) -> Fraction:
    """Round to the nearest half-integer and cap at ``MAX_PN_ORDER``.

    ``None``, ``"max"`` and ``math.inf`` all mean "every term any formula knows".
    """
    if isinstance(pn_order, Fraction) and pn_order.denominator <= 2 and 0 <= pn_order <= MAX_PN_ORDER:
        return pn_order
    if pn_order is None or (isinstance(pn_order, str) and pn_order.lower() == "max"):
        return MAX_PN_ORDER
    if isinstance(pn_order, str):
        raise ValueError(f"Unrecognized PN order {pn_order!r}; use a number or 'max'.")
    if pn_order != pn_order:
        raise ValueError("PN order may not be NaN.")
    if pn_order >= MAX_PN_ORDER or pn_order == math.inf:
        return MAX_PN_ORDER
    if pn_order < 0:
        raise ValueError(f"PN order must be non-negative; got {pn_order}.")
    # round() on Fraction and float both round half to even
    return Fraction(round(2 * Fraction(pn_order)), 2)


def order_index(pn_order: PNOrderLike) -> int:
    """Number of terms in an expansion truncated at ``pn_order``: ``1 + 2*pn_order``."""
    return int(1 + 2 * prepare_pn_order(pn_order))

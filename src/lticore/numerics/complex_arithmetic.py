# Copyright (C) 2025 Gil Benezer
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""
Complex Arithmetic

Scalar operations on complex numbers used by the root finder and by
pole/eigenvalue analysis. Python's builtin complex type carries the
(real, imaginary) pair; this module adds the operations whose naive form
loses accuracy or overflows:

- cdiv / cinv: Smith's algorithm, which scales by the larger component of
  the divisor so that |d|² is never formed explicitly
- modulus: hypot-based magnitude, safe for components near the float range
- canonical_sort: deterministic ordering of root sets

Equality of complex values is exact. Callers needing a tolerance compare
explicitly (e.g. with numpy.testing.assert_allclose).

Examples
--------
>>> cdiv(1e300 + 1e300j, 1e300 + 1e300j)
(1+0j)
>>> canonical_sort([1 + 1j, -2, 1 - 1j])
array([-2.+0.j,  1.-1.j,  1.+1.j])
"""

import math
from typing import Iterable

import numpy as np

from lticore.types.core import ComplexLike, RootVector

# ============================================================================
# Basic Operations
# ============================================================================


def cadd(a: ComplexLike, b: ComplexLike) -> complex:
    """Sum of two complex numbers."""
    return complex(a) + complex(b)


def csub(a: ComplexLike, b: ComplexLike) -> complex:
    """Difference of two complex numbers."""
    return complex(a) - complex(b)


def cmul(a: ComplexLike, b: ComplexLike) -> complex:
    """Product of two complex numbers."""
    a = complex(a)
    b = complex(b)
    return complex(a.real * b.real - a.imag * b.imag, a.real * b.imag + a.imag * b.real)


def cdiv(a: ComplexLike, b: ComplexLike) -> complex:
    """
    Overflow-resistant complex division a / b (Smith's algorithm).

    Parameters
    ----------
    a : complex
        Dividend
    b : complex
        Divisor

    Returns
    -------
    complex
        Quotient a / b

    Raises
    ------
    ZeroDivisionError
        If b == 0

    Notes
    -----
    With b = c + id, the textbook formula divides by c² + d², which
    overflows once |c| or |d| exceeds ~1e154. Smith's variant divides by
    the larger component first:

        |c| >= |d|:  r = d/c,  den = c + d·r
                     a/b = ((ar + ai·r) + i(ai − ar·r)) / den

    and symmetrically when |d| > |c|.

    Examples
    --------
    >>> cdiv(1 + 2j, 3 - 4j)
    (-0.2+0.4j)
    """
    a = complex(a)
    b = complex(b)
    c, d = b.real, b.imag
    if c == 0.0 and d == 0.0:
        raise ZeroDivisionError("complex division by zero")

    if abs(c) >= abs(d):
        r = d / c
        den = c + d * r
        return complex((a.real + a.imag * r) / den, (a.imag - a.real * r) / den)

    r = c / d
    den = c * r + d
    return complex((a.real * r + a.imag) / den, (a.imag * r - a.real) / den)


def cinv(b: ComplexLike) -> complex:
    """Reciprocal 1 / b through cdiv()."""
    return cdiv(1.0, b)


# ============================================================================
# Polar Form
# ============================================================================


def modulus(z: ComplexLike) -> float:
    """|z| computed with math.hypot (no intermediate overflow)."""
    z = complex(z)
    return math.hypot(z.real, z.imag)


def argument(z: ComplexLike) -> float:
    """Phase of z in (-π, π]."""
    z = complex(z)
    return math.atan2(z.imag, z.real)


def from_polar(radius: float, angle: float) -> complex:
    """
    Build r·e^{iθ}.

    Examples
    --------
    >>> from_polar(2.0, 0.0)
    (2+0j)
    """
    return complex(radius * math.cos(angle), radius * math.sin(angle))


# ============================================================================
# Ordering
# ============================================================================


def canonical_sort(values: Iterable[ComplexLike]) -> RootVector:
    """
    Sort complex values by ascending real part, then ascending imaginary part.

    Root sets are unordered mathematically; this order makes results of
    root finding and eigenvalue extraction reproducible.

    Parameters
    ----------
    values : iterable of complex
        Values to sort

    Returns
    -------
    np.ndarray
        complex128 array in canonical order
    """
    arr = np.asarray(list(values), dtype=complex)
    if arr.size == 0:
        return np.zeros(0, dtype=complex)
    order = np.lexsort((arr.imag, arr.real))
    return arr[order]


__all__ = [
    "cadd",
    "csub",
    "cmul",
    "cdiv",
    "cinv",
    "modulus",
    "argument",
    "from_polar",
    "canonical_sort",
]

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
Polynomial - Dense Univariate Polynomials

Coefficients are stored in ascending powers: coeffs[k] multiplies x**k and
the leading coefficient is last. Trailing zeros are trimmed at
construction, so the stored array is either empty (the zero polynomial) or
ends with a nonzero coefficient.

Numeric kinds share one implementation through NumPy dtypes:
- float64 for real coefficients (integer and boolean input is promoted)
- complex128 for complex coefficients
- object for exact field elements such as fractions.Fraction

The degree is Optional[int]: None for the zero polynomial. Every
degree-dependent operation handles that case explicitly.

Polynomials are immutable values; every operation returns a new instance.

Examples
--------
>>> p = Polynomial([2.0, 3.0, 1.0])        # 2 + 3x + x²
>>> p.degree()
2
>>> p(1.0)
6.0
>>> (p * Polynomial([-1.0, 1.0])).degree()
3
>>> q, r = p.div_rem(Polynomial([1.0, 1.0]))
>>> q.coeffs, r.is_zero()
(array([2., 1.]), True)
"""

import numbers
from typing import Optional, Sequence, Tuple, Union

import numpy as np
import scipy.fft

from lticore.exceptions import PolynomialDivisionByZero, ZeroPolynomialError
from lticore.types.core import (
    ArrayLike,
    CoefficientVector,
    ComplexLike,
    FieldElement,
    RootVector,
)

# Result length (in coefficients) from which inexact products use FFT convolution
FFT_THRESHOLD = 64


# ============================================================================
# Coefficient Helpers
# ============================================================================


def _is_scalar(value) -> bool:
    return isinstance(value, (numbers.Number, np.number))


def _as_coefficients(values) -> np.ndarray:
    if isinstance(values, Polynomial):
        return values._coeffs

    arr = np.asarray(values)
    if arr.ndim == 0:
        arr = arr.reshape(1)
    if arr.ndim != 1:
        raise ValueError(f"Polynomial coefficients must be one-dimensional, got shape {arr.shape}")

    kind = arr.dtype.kind
    if kind in "biuf":
        return arr.astype(np.float64)
    if kind == "c":
        return arr.astype(np.complex128)
    if kind == "O":
        return arr.copy()
    raise TypeError(f"Unsupported coefficient dtype {arr.dtype}")


def _trim(coeffs: np.ndarray) -> np.ndarray:
    nonzero = np.nonzero(coeffs != 0)[0]
    if nonzero.size == 0:
        return coeffs[:0]
    return coeffs[: nonzero[-1] + 1]


def _to_numeric(coeffs: np.ndarray) -> np.ndarray:
    # Exact (object) coefficients are converted for floating-point work.
    if coeffs.dtype.kind != "O":
        return coeffs
    if any(isinstance(c, complex) for c in coeffs):
        return coeffs.astype(np.complex128)
    return coeffs.astype(np.float64)


def _horner(coeffs: np.ndarray, x):
    if coeffs.size == 0:
        return 0 * x
    result = coeffs[-1] + 0 * x
    for c in coeffs[-2::-1]:
        result = result * x + c
    return result


def _naive_product(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    if len(a) > len(b):
        a, b = b, a
    out = np.zeros(len(a) + len(b) - 1, dtype=np.result_type(a, b))
    for i, ai in enumerate(a):
        out[i : i + len(b)] += ai * b
    return out


def _fft_product(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    n = len(a) + len(b) - 1
    nfft = scipy.fft.next_fast_len(n)
    if np.iscomplexobj(a) or np.iscomplexobj(b):
        return scipy.fft.ifft(scipy.fft.fft(a, nfft) * scipy.fft.fft(b, nfft))[:n]
    return scipy.fft.irfft(scipy.fft.rfft(a, nfft) * scipy.fft.rfft(b, nfft), nfft)[:n]


def _multiply(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    if a.size == 0 or b.size == 0:
        return np.zeros(0, dtype=np.result_type(a, b))
    inexact = a.dtype.kind in "fc" and b.dtype.kind in "fc"
    if inexact and len(a) + len(b) - 1 >= FFT_THRESHOLD:
        return _fft_product(a, b)
    return _naive_product(a, b)


# ============================================================================
# Polynomial
# ============================================================================


class Polynomial:
    """
    Dense polynomial with coefficients in ascending powers.

    Parameters
    ----------
    coeffs : ArrayLike or Polynomial
        Coefficients a_0, a_1, ..., a_n (a scalar gives a constant).
        Trailing zeros are removed.

    Attributes
    ----------
    coeffs : np.ndarray
        Read-only trimmed coefficient array

    Examples
    --------
    >>> from fractions import Fraction
    >>> p = Polynomial([Fraction(1, 3), 1])
    >>> q = Polynomial([Fraction(1, 6), 0, 2])
    >>> p + q - q == p
    True
    >>> Polynomial([0.0, 0.0]).degree() is None
    True
    """

    __slots__ = ("_coeffs",)

    # NumPy scalars and arrays defer binary operators to this class
    __array_ufunc__ = None

    def __init__(self, coeffs: Union[ArrayLike, "Polynomial"] = ()):
        trimmed = _trim(_as_coefficients(coeffs)).copy()
        trimmed.flags.writeable = False
        self._coeffs = trimmed

    # ========================================================================
    # Construction
    # ========================================================================

    @classmethod
    def zero(cls) -> "Polynomial":
        """The zero polynomial (degree None)."""
        return cls()

    @classmethod
    def one(cls) -> "Polynomial":
        """The constant polynomial 1."""
        return cls([1.0])

    @classmethod
    def from_roots(cls, roots: Sequence[ComplexLike]) -> "Polynomial":
        """
        Monic polynomial with the given roots, Π (x - r_i).

        Examples
        --------
        >>> Polynomial.from_roots([1.0, 2.0]).coeffs
        array([ 2., -3.,  1.])
        """
        roots_arr = np.asarray(roots)
        result = np.ones(1, dtype=np.result_type(roots_arr.dtype, np.float64))
        for r in roots_arr:
            result = _naive_product(result, np.array([-r, 1], dtype=result.dtype))
        return cls(result)

    # ========================================================================
    # Properties
    # ========================================================================

    @property
    def coeffs(self) -> CoefficientVector:
        """Trimmed coefficients in ascending powers (read-only)."""
        return self._coeffs

    @property
    def dtype(self) -> np.dtype:
        return self._coeffs.dtype

    def degree(self) -> Optional[int]:
        """Degree of the polynomial, None for the zero polynomial."""
        if self._coeffs.size == 0:
            return None
        return self._coeffs.size - 1

    def is_zero(self) -> bool:
        return self._coeffs.size == 0

    def leading_coefficient(self) -> FieldElement:
        """
        Coefficient of the highest power.

        Raises
        ------
        ZeroPolynomialError
            For the zero polynomial
        """
        if self.is_zero():
            raise ZeroPolynomialError("The zero polynomial has no leading coefficient")
        return self._coeffs[-1]

    def numeric_coeffs(self) -> np.ndarray:
        """Coefficients as float64/complex128 (exact values are converted)."""
        return _to_numeric(self._coeffs)

    def __len__(self) -> int:
        return self._coeffs.size

    def __getitem__(self, power: int) -> FieldElement:
        return self._coeffs[power]

    # ========================================================================
    # Arithmetic
    # ========================================================================

    @staticmethod
    def _coerce(other) -> Optional["Polynomial"]:
        if isinstance(other, Polynomial):
            return other
        if _is_scalar(other):
            return Polynomial([other])
        return None

    def __add__(self, other) -> "Polynomial":
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        a, b = self._coeffs, other._coeffs
        out = np.zeros(max(len(a), len(b)), dtype=np.result_type(a, b))
        out[: len(a)] += a
        out[: len(b)] += b
        return Polynomial(out)

    __radd__ = __add__

    def __neg__(self) -> "Polynomial":
        return Polynomial(-self._coeffs)

    def __pos__(self) -> "Polynomial":
        return self

    def __sub__(self, other) -> "Polynomial":
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        return self + (-other)

    def __rsub__(self, other) -> "Polynomial":
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        return other + (-self)

    def __mul__(self, other) -> "Polynomial":
        if isinstance(other, Polynomial):
            return Polynomial(_multiply(self._coeffs, other._coeffs))
        if _is_scalar(other):
            return Polynomial(self._coeffs * other)
        return NotImplemented

    __rmul__ = __mul__

    def __truediv__(self, scalar) -> "Polynomial":
        if not _is_scalar(scalar):
            return NotImplemented
        if scalar == 0:
            raise PolynomialDivisionByZero("Polynomial division by a zero scalar")
        return Polynomial(self._coeffs / scalar)

    def __pow__(self, exponent: int) -> "Polynomial":
        """Integer power by repeated squaring (p**0 is 1)."""
        if not isinstance(exponent, (int, np.integer)) or exponent < 0:
            raise ValueError(f"Exponent must be a non-negative integer, got {exponent!r}")
        result = Polynomial(np.ones(1, dtype=self.dtype))
        base = self
        k = int(exponent)
        while k > 0:
            if k & 1:
                result = result * base
            k >>= 1
            if k:
                base = base * base
        return result

    def div_rem(self, divisor: "Polynomial") -> Tuple["Polynomial", "Polynomial"]:
        """
        Euclidean division: self = quotient·divisor + remainder.

        deg(remainder) < deg(divisor), or the remainder is zero.

        Raises
        ------
        PolynomialDivisionByZero
            If divisor is the zero polynomial

        Examples
        --------
        >>> q, r = Polynomial([1.0, 0.0, 1.0]).div_rem(Polynomial([1.0, 1.0]))
        >>> q.coeffs, r.coeffs
        (array([-1.,  1.]), array([2.]))
        """
        divisor = self._coerce(divisor)
        if divisor is None:
            raise TypeError("Divisor must be a Polynomial or a scalar")
        if divisor.is_zero():
            raise PolynomialDivisionByZero("Polynomial division by the zero polynomial")

        a, b = self._coeffs, divisor._coeffs
        if len(a) < len(b):
            return Polynomial(np.zeros(0, dtype=np.result_type(a, b))), self

        rem = np.array(a, dtype=np.result_type(a, b))
        lead = b[-1]
        quotient = np.zeros(len(a) - len(b) + 1, dtype=rem.dtype)
        for k in range(len(quotient) - 1, -1, -1):
            coef = rem[k + len(b) - 1] / lead
            quotient[k] = coef
            rem[k : k + len(b)] -= coef * b
        return Polynomial(quotient), Polynomial(rem[: len(b) - 1])

    def __floordiv__(self, other) -> "Polynomial":
        return self.div_rem(other)[0]

    def __mod__(self, other) -> "Polynomial":
        return self.div_rem(other)[1]

    def __divmod__(self, other) -> Tuple["Polynomial", "Polynomial"]:
        return self.div_rem(other)

    # ========================================================================
    # Calculus
    # ========================================================================

    def derivative(self) -> "Polynomial":
        """Derivative; constants (and the zero polynomial) give the zero polynomial."""
        if len(self._coeffs) <= 1:
            return Polynomial(self._coeffs[:0])
        powers = np.arange(1, len(self._coeffs))
        return Polynomial(self._coeffs[1:] * powers)

    def integral(self, constant=0) -> "Polynomial":
        """
        Antiderivative with the given integration constant.

        Examples
        --------
        >>> Polynomial([1.0, 0.0, 3.0]).integral(5.3).coeffs
        array([5.3, 1. , 0. , 1. ])
        """
        if self.is_zero():
            return Polynomial([constant])
        powers = np.arange(1, len(self._coeffs) + 1)
        head = np.array([constant], dtype=np.result_type(self.dtype, np.asarray(constant).dtype))
        return Polynomial(np.concatenate([head, self._coeffs / powers]))

    # ========================================================================
    # Evaluation
    # ========================================================================

    def eval(self, x):
        """
        Evaluate with Horner's scheme.

        Parameters
        ----------
        x : scalar or ArrayLike
            Real or complex point(s); arrays are evaluated elementwise

        Examples
        --------
        >>> p = Polynomial([0.0, 0.0, 2.0])
        >>> p.eval(3.0)
        18.0
        >>> p.eval(3j)
        (-18+0j)
        """
        if isinstance(x, (list, tuple)):
            x = np.asarray(x)
        return _horner(self._coeffs, x)

    __call__ = eval

    def round_off_to_zero(self, threshold: float) -> "Polynomial":
        """
        Zero every coefficient whose magnitude is below |threshold|.

        Idempotent: applying it twice with the same threshold equals
        applying it once.

        Examples
        --------
        >>> Polynomial([1.0, 0.002, 1.0, -0.0001]).round_off_to_zero(0.01).coeffs
        array([1., 0., 1.])
        """
        threshold = abs(threshold)
        mask = np.abs(self._coeffs) < threshold
        coeffs = self._coeffs.copy()
        coeffs[mask] = 0
        return Polynomial(coeffs)

    def monic(self) -> Tuple["Polynomial", FieldElement]:
        """
        Monic polynomial and the leading coefficient it was divided by.

        Raises
        ------
        ZeroPolynomialError
            For the zero polynomial
        """
        lead = self.leading_coefficient()
        return Polynomial(self._coeffs / lead), lead

    def reversed(self) -> "Polynomial":
        """Reciprocal polynomial x^n·p(1/x) (coefficients in reverse order)."""
        return Polynomial(self._coeffs[::-1])

    # ========================================================================
    # Roots
    # ========================================================================

    def roots(
        self,
        tolerance: float = 1e-12,
        max_iterations: int = 200,
        raise_on_failure: bool = False,
        method: str = "aberth",
    ) -> RootVector:
        """
        All complex roots in canonical order.

        Parameters
        ----------
        tolerance : float
            Relative convergence tolerance of the Aberth-Ehrlich iteration
        max_iterations : int
            Iteration budget
        raise_on_failure : bool
            Raise RootFindingNonConvergence instead of warning
        method : str
            'aberth' (default) or 'eigenvalues' (companion matrix)

        Raises
        ------
        ZeroPolynomialError
            For the zero polynomial

        Examples
        --------
        >>> Polynomial([1.0, 0.0, 1.0]).roots()
        array([0.-1.j, 0.+1.j])
        """
        from lticore.polynomial.roots import eigenvalue_roots, find_roots

        if method == "aberth":
            result = find_roots(
                self,
                tolerance=tolerance,
                max_iterations=max_iterations,
                raise_on_failure=raise_on_failure,
            )
            return result["roots"]
        if method == "eigenvalues":
            return eigenvalue_roots(self)
        raise ValueError(f"Unknown root finding method '{method}'. Use 'aberth' or 'eigenvalues'")

    def real_roots(self, imag_tolerance: float = 1e-8, **kwargs) -> Optional[np.ndarray]:
        """
        Real roots, or None if some root is genuinely complex.

        A root counts as real when |Im r| <= imag_tolerance·max(1, |r|).
        Extra keyword arguments are passed to roots().

        Examples
        --------
        >>> Polynomial.from_roots([-1.0, 1.0, 0.0]).real_roots()
        array([-1.,  0.,  1.])
        >>> Polynomial([1.0, 0.0, 1.0]).real_roots() is None
        True
        """
        found = self.roots(**kwargs)
        scale = np.maximum(1.0, np.abs(found))
        if np.any(np.abs(found.imag) > imag_tolerance * scale):
            return None
        return np.sort(found.real)

    def companion(self) -> np.ndarray:
        """Companion matrix in controllability canonical form."""
        from lticore.numerics.linalg import companion_matrix

        return companion_matrix(self)

    # ========================================================================
    # Comparison and Display
    # ========================================================================

    def __eq__(self, other) -> bool:
        if not isinstance(other, Polynomial):
            return NotImplemented
        a, b = self._coeffs, other._coeffs
        return len(a) == len(b) and bool(np.all(a == b))

    def __hash__(self) -> int:
        return hash(tuple(self._coeffs.tolist()))

    def __bool__(self) -> bool:
        return not self.is_zero()

    def __repr__(self) -> str:
        return f"Polynomial({self._coeffs.tolist()!r})"

    def __str__(self) -> str:
        if self.is_zero():
            return "0"
        terms = []
        for k, c in enumerate(self._coeffs):
            if c == 0:
                continue
            if k == 0:
                terms.append(f"{c}")
            elif k == 1:
                terms.append(f"{c}*x")
            else:
                terms.append(f"{c}*x^{k}")
        return " + ".join(terms)


# ============================================================================
# Rational Evaluation
# ============================================================================


def eval_ratio(num: Polynomial, den: Polynomial, x):
    """
    Evaluate num(x) / den(x) without overflow for large |x|.

    For |x| <= 1 both polynomials are evaluated directly. Otherwise the
    reversed polynomials are evaluated at 1/x, which keeps every power of
    the argument bounded by one:

        num(x) / den(x) = x^(deg num - deg den) · rev(num)(1/x) / rev(den)(1/x)

    Parameters
    ----------
    num, den : Polynomial
        Numerator and denominator
    x : scalar or ArrayLike
        Evaluation point(s), real or complex

    Raises
    ------
    PolynomialDivisionByZero
        If den is the zero polynomial

    Examples
    --------
    >>> num = Polynomial([1.0, 2.0, 3.0])
    >>> den = Polynomial([-4.0, -3.0, 1.0])
    >>> eval_ratio(num, den, 3.0)
    -8.5
    >>> eval_ratio(Polynomial([1.0]), Polynomial([0.0, 0.0, 1.0]), 1e200)
    0.0
    """
    if den.is_zero():
        raise PolynomialDivisionByZero("Rational evaluation with a zero denominator")

    if not _is_scalar(x):
        points = np.asarray(x)
        values = [eval_ratio(num, den, xi) for xi in points.ravel()]
        return np.array(values).reshape(points.shape)

    if num.is_zero():
        return 0 * x
    if abs(x) <= 1:
        return num.eval(x) / den.eval(x)

    y = 1 / x
    ratio = _horner(num.coeffs[::-1], y) / _horner(den.coeffs[::-1], y)
    shift = num.degree() - den.degree()
    if shift >= 0:
        return ratio * x**shift
    return ratio * y ** (-shift)


__all__ = ["Polynomial", "eval_ratio", "FFT_THRESHOLD"]

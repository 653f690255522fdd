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
Linear Algebra Helpers

Small dense linear algebra used by the state-space model and the implicit
integrators:

- LU decomposition with partial pivoting and triangular solves
  (equilibrium computation, Tustin discretization, Radau Newton steps)
- Determinant and inverse built on the LU factors
- Eigenvalues: analytic for 1×1 and 2×2, characteristic polynomial
  (Faddeev-LeVerrier) plus the Aberth-Ehrlich root finder otherwise
- Companion matrix in controllability canonical form

The routines operate on NumPy arrays and never modify their inputs.

Examples
--------
>>> A = np.array([[4.0, 3.0], [6.0, 3.0]])
>>> solve(A, np.array([10.0, 12.0]))
array([1., 2.])
>>> eigenvalues(np.array([[0.0, 1.0], [-2.0, -3.0]]))
array([-2.+0.j, -1.+0.j])
"""

from typing import List, Tuple

import numpy as np

from lticore.exceptions import DimensionMismatchError, SingularMatrixError
from lticore.numerics.complex_arithmetic import canonical_sort
from lticore.polynomial.polynomial import Polynomial
from lticore.types.core import ArrayLike, RootVector, StateMatrix

LUFactors = Tuple[np.ndarray, np.ndarray]
"""Packed LU factors (unit lower part below the diagonal) and row permutation."""


def _as_square(A: ArrayLike, name: str = "A") -> np.ndarray:
    a = np.asarray(A)
    if a.ndim != 2 or a.shape[0] != a.shape[1]:
        raise DimensionMismatchError(f"{name} must be a square matrix, got shape {a.shape}")
    dtype = np.complex128 if np.iscomplexobj(a) else np.float64
    return np.array(a, dtype=dtype)


# ============================================================================
# LU Decomposition
# ============================================================================


def lu_factor(A: ArrayLike) -> LUFactors:
    """
    LU decomposition with partial pivoting, P·A = L·U.

    Parameters
    ----------
    A : ArrayLike
        Square matrix (n, n), real or complex

    Returns
    -------
    lu : np.ndarray
        Packed factors: U on and above the diagonal, the multipliers of the
        unit lower triangular L below it
    piv : np.ndarray
        Row permutation, row i of P·A is row piv[i] of A

    Raises
    ------
    DimensionMismatchError
        If A is not square
    SingularMatrixError
        If a pivot is not larger than n·eps·max|A|

    Examples
    --------
    >>> lu, piv = lu_factor(np.array([[1.0, 2.0], [3.0, 4.0]]))
    >>> piv
    array([1, 0])
    """
    lu = _as_square(A)
    n = lu.shape[0]
    piv = np.arange(n)
    if n == 0:
        return lu, piv

    threshold = n * np.finfo(float).eps * np.max(np.abs(lu))

    for k in range(n):
        p = k + int(np.argmax(np.abs(lu[k:, k])))
        if np.abs(lu[p, k]) <= threshold:
            raise SingularMatrixError(
                f"Matrix is singular to working precision (pivot {k} is "
                f"{np.abs(lu[p, k]):.3e}, threshold {threshold:.3e})",
                pivot_index=k,
            )
        if p != k:
            lu[[k, p]] = lu[[p, k]]
            piv[[k, p]] = piv[[p, k]]

        lu[k + 1 :, k] /= lu[k, k]
        lu[k + 1 :, k + 1 :] -= np.outer(lu[k + 1 :, k], lu[k, k + 1 :])

    return lu, piv


def solve_lower_unit(L: np.ndarray, b: ArrayLike) -> np.ndarray:
    """
    Forward substitution with a unit lower triangular matrix.

    Only the strictly lower part of L is read, so packed LU factors can be
    passed directly. b may be a vector (n,) or a matrix (n, k).
    """
    n = L.shape[0]
    x = np.array(b, dtype=np.result_type(L.dtype, np.asarray(b).dtype, np.float64))
    if x.shape[0] != n:
        raise DimensionMismatchError(f"Right-hand side must have {n} rows, got {x.shape[0]}")
    for i in range(1, n):
        x[i] -= L[i, :i] @ x[:i]
    return x


def solve_upper(U: np.ndarray, b: ArrayLike) -> np.ndarray:
    """
    Back substitution with an upper triangular matrix.

    Only the upper triangle (diagonal included) of U is read.
    """
    n = U.shape[0]
    x = np.array(b, dtype=np.result_type(U.dtype, np.asarray(b).dtype, np.float64))
    if x.shape[0] != n:
        raise DimensionMismatchError(f"Right-hand side must have {n} rows, got {x.shape[0]}")
    for i in range(n - 1, -1, -1):
        x[i] = (x[i] - U[i, i + 1 :] @ x[i + 1 :]) / U[i, i]
    return x


def lu_solve(factors: LUFactors, b: ArrayLike) -> np.ndarray:
    """
    Solve A·x = b given lu_factor(A).

    Parameters
    ----------
    factors : tuple
        (lu, piv) returned by lu_factor()
    b : ArrayLike
        Right-hand side (n,) or (n, k)

    Returns
    -------
    np.ndarray
        Solution with the shape of b
    """
    lu, piv = factors
    b = np.asarray(b)
    if b.shape[0] != lu.shape[0]:
        raise DimensionMismatchError(
            f"Right-hand side must have {lu.shape[0]} rows, got {b.shape[0]}"
        )
    y = solve_lower_unit(lu, b[piv])
    return solve_upper(lu, y)


def solve(A: ArrayLike, b: ArrayLike) -> np.ndarray:
    """
    Solve the square linear system A·x = b.

    Raises
    ------
    SingularMatrixError
        If A is singular to working precision
    """
    return lu_solve(lu_factor(A), b)


def inv(A: ArrayLike) -> np.ndarray:
    """Matrix inverse through LU (raises SingularMatrixError)."""
    a = _as_square(A)
    return solve(a, np.eye(a.shape[0], dtype=a.dtype))


def _permutation_sign(piv: np.ndarray) -> int:
    # (-1)^(n - number of cycles)
    seen = np.zeros(len(piv), dtype=bool)
    sign = 1
    for start in range(len(piv)):
        if seen[start]:
            continue
        length = 0
        j = start
        while not seen[j]:
            seen[j] = True
            j = piv[j]
            length += 1
        if length % 2 == 0:
            sign = -sign
    return sign


def det(A: ArrayLike):
    """
    Determinant through LU decomposition.

    A matrix that is singular to working precision has determinant 0.

    Examples
    --------
    >>> det(np.array([[1.0, 2.0], [3.0, 4.0]]))
    -2.0
    """
    a = _as_square(A)
    if a.shape[0] == 0:
        return 1.0
    try:
        lu, piv = lu_factor(a)
    except SingularMatrixError:
        return a.dtype.type(0)
    value = _permutation_sign(piv) * np.prod(np.diag(lu))
    return value.item()


# ============================================================================
# Characteristic Polynomial
# ============================================================================


def faddeev_leverrier(A: ArrayLike) -> Tuple[Polynomial, List[np.ndarray]]:
    """
    Characteristic polynomial and adjugate coefficients (Faddeev-LeVerrier).

    Recurrence, with M_0 = 0 and c_n = 1:

        M_k     = A·M_(k-1) + c_(n-k+1)·I
        c_(n-k) = -tr(A·M_k) / k            k = 1..n

    so that det(sI - A) = Σ c_k s^k and adj(sI - A) = Σ M_k s^(n-k).

    Parameters
    ----------
    A : ArrayLike
        Square matrix (n, n)

    Returns
    -------
    char_poly : Polynomial
        Monic characteristic polynomial det(sI - A), ascending coefficients
    adjugate_coeffs : List[np.ndarray]
        [M_1, ..., M_n], M_1 = I multiplies s^(n-1)

    Examples
    --------
    >>> p, M = faddeev_leverrier(np.array([[0.0, 1.0], [-2.0, -3.0]]))
    >>> p.coeffs
    array([2., 3., 1.])
    """
    a = _as_square(A)
    n = a.shape[0]
    coeffs = np.zeros(n + 1, dtype=a.dtype)
    coeffs[n] = 1.0
    identity = np.eye(n, dtype=a.dtype)

    adjugate_coeffs: List[np.ndarray] = []
    M = np.zeros_like(a)
    for k in range(1, n + 1):
        M = a @ M + coeffs[n - k + 1] * identity
        adjugate_coeffs.append(M)
        coeffs[n - k] = -np.trace(a @ M) / k

    return Polynomial(coeffs), adjugate_coeffs


def characteristic_polynomial(A: ArrayLike) -> Polynomial:
    """Monic characteristic polynomial det(sI - A)."""
    return faddeev_leverrier(A)[0]


# ============================================================================
# Eigenvalues
# ============================================================================


def eigenvalues_2x2(A: ArrayLike) -> RootVector:
    """
    Analytic eigenvalues of a real 2×2 matrix.

    Roots of s² - tr(A)·s + det(A), computed with the cancellation-free
    quadratic formula.
    """
    from lticore.polynomial.roots import quadratic_roots

    a = _as_square(A)
    if a.shape != (2, 2):
        raise DimensionMismatchError(f"Expected a 2x2 matrix, got shape {a.shape}")
    trace = a[0, 0] + a[1, 1]
    determinant = a[0, 0] * a[1, 1] - a[0, 1] * a[1, 0]
    return canonical_sort(quadratic_roots(-trace, determinant))


def eigenvalues(
    A: ArrayLike, tolerance: float = 1e-12, max_iterations: int = 200
) -> RootVector:
    """
    Eigenvalues of a small dense matrix, canonical order.

    1×1 and 2×2 matrices use closed forms; larger matrices go through the
    characteristic polynomial and the Aberth-Ehrlich root finder.

    Parameters
    ----------
    A : StateMatrix
        Square matrix (n, n)
    tolerance : float
        Root finder relative tolerance
    max_iterations : int
        Root finder iteration budget

    Returns
    -------
    np.ndarray
        Complex eigenvalues (n,)

    Notes
    -----
    The characteristic polynomial is ill-conditioned for large or
    highly non-normal matrices; this routine targets the low-order
    models found in classical control.
    """
    from lticore.polynomial.roots import find_roots

    a = _as_square(A)
    n = a.shape[0]
    if n == 0:
        return np.zeros(0, dtype=complex)
    if n == 1:
        return np.array([a[0, 0]], dtype=complex)
    if n == 2 and not np.iscomplexobj(a):
        return eigenvalues_2x2(a)

    char_poly = characteristic_polynomial(a)
    return find_roots(char_poly, tolerance=tolerance, max_iterations=max_iterations)["roots"]


# ============================================================================
# Companion Matrix
# ============================================================================


def companion_matrix(polynomial) -> StateMatrix:
    """
    Companion matrix in controllability canonical form.

    For p(s) = a_0 + a_1 s + ... + a_n s^n, normalized to be monic, the
    result has ones on the superdiagonal and -a_0/a_n, ..., -a_(n-1)/a_n
    on the last row. Its characteristic polynomial is p(s)/a_n.

    Parameters
    ----------
    polynomial : Polynomial or coefficient sequence
        Polynomial of degree n >= 0 (degree 0 gives a 0×0 matrix)

    Returns
    -------
    np.ndarray
        Companion matrix (n, n)

    Examples
    --------
    >>> companion_matrix([2.0, 3.0, 1.0])
    array([[ 0.,  1.],
           [-2., -3.]])
    """
    p = polynomial if isinstance(polynomial, Polynomial) else Polynomial(polynomial)
    monic, _ = p.monic()
    n = monic.degree()
    c = monic.numeric_coeffs()

    comp = np.zeros((n, n), dtype=c.dtype)
    if n == 0:
        return comp
    comp[np.arange(n - 1), np.arange(1, n)] = 1.0
    comp[n - 1, :] = -c[:n]
    return comp


__all__ = [
    "LUFactors",
    "lu_factor",
    "lu_solve",
    "solve_lower_unit",
    "solve_upper",
    "solve",
    "inv",
    "det",
    "faddeev_leverrier",
    "characteristic_polynomial",
    "eigenvalues_2x2",
    "eigenvalues",
    "companion_matrix",
]

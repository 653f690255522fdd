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
Polynomial Root Finding - Aberth-Ehrlich Method

Computes all complex roots of a polynomial simultaneously. Every estimate
is refined by a Newton correction damped by the "repulsion" of the other
estimates:

    z_i ← z_i - p(z_i) / (p'(z_i) - p(z_i)·Σ_(j≠i) 1/(z_i - z_j))

Updates are applied in place (Gauss-Seidel order), so later estimates in
a sweep already see the refined earlier ones.

Convergence contract
--------------------
An estimate is frozen when its relative correction drops below
`tolerance`, or when |p(z_i)| is within the rounding error bound of
Horner's scheme (z_i is then a root to working precision, which is how
clusters and multiple roots terminate). The iteration converges when
every estimate is frozen. Otherwise it stops after `max_iterations`
sweeps and reports non-convergence with the best estimates.

Degenerate cases
----------------
- Zero polynomial: ZeroPolynomialError (no meaningful root set)
- Roots at the origin (low-order zero coefficients) are split off exactly
- Degree 0 after splitting: no further roots
- Degree 1 and 2: closed forms, no iteration

References
----------
O. Aberth, "Iteration methods for finding all zeros of a polynomial
simultaneously", Math. Comp. 27 (1973) 339-344.
D. A. Bini, "Numerical computation of polynomial zeros by means of
Aberth's method", Numer. Algorithms 13 (1996) 179-200.

Examples
--------
>>> p = Polynomial.from_roots([-1.0, -2.0, -3.0, 1.0, 5.0])
>>> result = find_roots(p)
>>> result["converged"]
True
>>> np.round(result["roots"].real, 6)
array([-3., -2., -1.,  1.,  5.])
>>>
>>> # Stop early by pulling estimates lazily
>>> for estimate in AberthEhrlich(p).iterations():
...     if estimate.max_correction < 1e-6:
...         break
"""

import cmath
import math
import warnings
from typing import Iterator, List, Optional, Tuple

import numpy as np

from lticore.exceptions import (
    RootFindingNonConvergence,
    RootFindingWarning,
    ZeroPolynomialError,
)
from lticore.numerics.complex_arithmetic import canonical_sort, cdiv, cinv, modulus
from lticore.polynomial.polynomial import Polynomial
from lticore.types.core import RootVector
from lticore.types.polynomial import RootEstimate, RootFindingResult

# Amplitude of the deterministic angular offset applied to initial guesses
_ANGULAR_PERTURBATION = 0.2

# Relative distance within which roots of a real polynomial are paired as conjugates
_CONJUGATE_TOLERANCE = 1e-8


# ============================================================================
# Closed Forms
# ============================================================================


def quadratic_roots(b, c) -> Tuple[complex, complex]:
    """
    Roots of the monic quadratic x² + b·x + c.

    Uses the cancellation-free formulation: the root of larger magnitude,
    h = -(b/2 + sign(b)·√Δ), is computed first and the other one as c/h.

    Parameters
    ----------
    b : float or complex
        First degree coefficient
    c : float or complex
        Zero degree coefficient

    Returns
    -------
    tuple of complex
        Both roots (a conjugate pair when b, c are real and Δ < 0)

    Examples
    --------
    >>> quadratic_roots(3.0, 2.0)
    ((-1+0j), (-2+0j))
    >>> quadratic_roots(0.0, 1.0)
    (-1j, 1j)
    """
    if np.iscomplexobj(b) or np.iscomplexobj(c):
        b_half = complex(b) / 2
        s = cmath.sqrt(b_half * b_half - complex(c))
        h = -(b_half + s) if abs(b_half + s) >= abs(b_half - s) else -(b_half - s)
        if h == 0:
            return 0j, 0j
        return cdiv(c, h), h

    b_half = float(b) / 2
    discriminant = b_half * b_half - float(c)
    if discriminant == 0:
        return complex(-b_half), complex(-b_half)
    if discriminant < 0:
        s = math.sqrt(-discriminant)
        return complex(-b_half, -s), complex(-b_half, s)
    s = math.sqrt(discriminant)
    sign = 1.0 if b_half > 0 else -1.0
    h = -(b_half + sign * s)
    return complex(float(c) / h), complex(h)


def real_quadratic_roots(b: float, c: float) -> Optional[Tuple[float, float]]:
    """Real roots of x² + b·x + c, or None when they are complex."""
    r1, r2 = quadratic_roots(b, c)
    if r1.imag != 0 or r2.imag != 0:
        return None
    return r1.real, r2.real


def conjugate_pairs(roots, tolerance: float = _CONJUGATE_TOLERANCE) -> RootVector:
    """
    Make the root set of a real-coefficient polynomial conjugate-symmetric.

    Roots with |Im z| ≤ tolerance·|z| become real. Each remaining root in
    the upper half-plane is matched with the nearest unmatched root in the
    lower half-plane; when |z_u - conj(z_l)| ≤ tolerance·|z_u| both are
    replaced by the conjugate pair of their mean. Unmatched roots are kept.

    Examples
    --------
    >>> z = conjugate_pairs([-2e-17 + 4j, -4e-17 - 4j, -1 + 1e-18j])
    >>> bool(z[0] == z[1].conjugate()), float(z[2].imag)
    (True, 0.0)
    """
    z = np.array(roots, dtype=complex).ravel()
    near_real = np.abs(z.imag) <= tolerance * np.abs(z)
    z[near_real] = z[near_real].real

    lower = [int(j) for j in np.flatnonzero(z.imag < 0)]
    for i in np.flatnonzero(z.imag > 0):
        if not lower:
            break
        distances = [abs(z[i] - z[j].conjugate()) for j in lower]
        k = int(np.argmin(distances))
        if distances[k] <= tolerance * abs(z[i]):
            j = lower.pop(k)
            mean = 0.5 * (z[i] + z[j].conjugate())
            z[i], z[j] = mean, mean.conjugate()
    return z


def _horner_with_derivative(coeffs: List[complex], z: complex) -> Tuple[complex, complex, float]:
    """p(z), p'(z) and the rounding error bound of the evaluation of p(z)."""
    p = coeffs[-1]
    dp = 0j
    magnitude = abs(coeffs[-1])
    az = abs(z)
    for c in coeffs[-2::-1]:
        dp = dp * z + p
        p = p * z + c
        magnitude = magnitude * az + abs(c)
    bound = 4 * len(coeffs) * np.finfo(float).eps * magnitude
    return p, dp, bound


# ============================================================================
# Aberth-Ehrlich Iteration
# ============================================================================


class AberthEhrlich:
    """
    Simultaneous root finder for a single polynomial.

    Parameters
    ----------
    polynomial : Polynomial or coefficient sequence
        Polynomial whose roots are wanted
    tolerance : float
        Relative correction below which an estimate is frozen (default 1e-12)
    max_iterations : int
        Maximum number of sweeps (default 200)

    Raises
    ------
    ZeroPolynomialError
        If the polynomial is identically zero
    ValueError
        If tolerance or max_iterations is not positive

    Examples
    --------
    >>> solver = AberthEhrlich(Polynomial([6.0, -5.0, 1.0, 1.0]))
    >>> result = solver.solve()
    >>> result["iterations"] > 0
    True
    """

    def __init__(self, polynomial, tolerance: float = 1e-12, max_iterations: int = 200):
        if not isinstance(polynomial, Polynomial):
            polynomial = Polynomial(polynomial)
        if polynomial.is_zero():
            raise ZeroPolynomialError("The zero polynomial has no finite root set")
        if tolerance <= 0:
            raise ValueError(f"tolerance must be positive, got {tolerance}")
        if max_iterations < 1:
            raise ValueError(f"max_iterations must be at least 1, got {max_iterations}")

        self.polynomial = polynomial
        self.tolerance = tolerance
        self.max_iterations = max_iterations

        coeffs = polynomial.numeric_coeffs()
        self.zero_roots = int(np.argmax(coeffs != 0))
        self._coeffs = [complex(c) for c in coeffs[self.zero_roots :]]
        self._real = all(c.imag == 0 for c in self._coeffs)

    @property
    def degree(self) -> int:
        """Degree of the polynomial (number of roots)."""
        return self.polynomial.degree()

    def initial_guesses(self) -> List[complex]:
        """
        Starting points on a circle enclosing every nonzero root.

        Radius 2·max_k |a_(n-k)/a_n|^(1/k) (Fujiwara bound), angles
        (2πk + π/2)/n plus a small deterministic offset per guess.
        """
        c = self._coeffs
        n = len(c) - 1
        lead = c[n]
        radius = 2.0 * max(abs(c[n - k] / lead) ** (1.0 / k) for k in range(1, n + 1))
        guesses = []
        for k in range(n):
            angle = (2.0 * math.pi * k + 0.5 * math.pi) / n
            angle += _ANGULAR_PERTURBATION * math.sin(k + 1.0) / n
            guesses.append(complex(radius * math.cos(angle), radius * math.sin(angle)))
        return guesses

    def _closed_form(self) -> List[complex]:
        c = self._coeffs
        n = len(c) - 1
        if n == 0:
            return []
        if n == 1:
            return [cdiv(-c[0], c[1])]
        b = cdiv(c[1], c[2])
        d = cdiv(c[0], c[2])
        if b.imag == 0 and d.imag == 0:
            return list(quadratic_roots(b.real, d.real))
        return list(quadratic_roots(b, d))

    def _sweep(self, z: List[complex], frozen: List[bool]) -> float:
        """One in-place Gauss-Seidel sweep; returns the largest relative correction."""
        n = len(z)
        max_correction = 0.0
        for i in range(n):
            if frozen[i]:
                continue
            zi = z[i]
            p, dp, bound = _horner_with_derivative(self._coeffs, zi)
            if abs(p) <= bound:
                frozen[i] = True
                continue

            try:
                repulsion = sum(cinv(zi - z[j]) for j in range(n) if j != i)
                correction = cdiv(p, dp - p * repulsion)
            except ZeroDivisionError:
                # coincident estimates or vanishing denominator: step off the point
                correction = -complex(1e-7, 1e-7) * (1.0 + abs(zi))

            z[i] = zi - correction
            relative = modulus(correction) / modulus(z[i]) if z[i] != 0 else modulus(correction)
            if relative <= self.tolerance:
                frozen[i] = True
            max_correction = max(max_correction, relative)
        return max_correction

    def _with_zero_roots(self, roots) -> RootVector:
        roots = np.asarray(roots, dtype=complex)
        if self._real:
            roots = conjugate_pairs(roots)
        zeros = np.zeros(self.zero_roots, dtype=complex)
        return canonical_sort(np.concatenate([zeros, roots]))

    def iterations(self) -> Iterator[RootEstimate]:
        """
        Lazily yield the estimates after every sweep.

        The stream ends after the converged sweep or after max_iterations
        sweeps. Closed-form degrees yield a single converged estimate.
        Each call starts a fresh iteration from the initial guesses.
        """
        if len(self._coeffs) <= 3:
            yield RootEstimate(0, self._with_zero_roots(self._closed_form()), 0.0, True)
            return

        z = self.initial_guesses()
        frozen = [False] * len(z)
        for iteration in range(1, self.max_iterations + 1):
            max_correction = self._sweep(z, frozen)
            converged = all(frozen)
            yield RootEstimate(iteration, self._with_zero_roots(z), max_correction, converged)
            if converged:
                return

    def solve(self, raise_on_failure: bool = False) -> RootFindingResult:
        """
        Run the iteration to completion.

        Parameters
        ----------
        raise_on_failure : bool
            If True, non-convergence raises RootFindingNonConvergence
            (carrying the best estimate); otherwise a RootFindingWarning is
            emitted and the estimate is returned with converged=False.

        Returns
        -------
        RootFindingResult
            Roots in canonical order plus convergence diagnostics
        """
        last = None
        for last in self.iterations():
            pass

        result: RootFindingResult = {
            "roots": last.roots,
            "converged": last.converged,
            "iterations": last.iteration,
            "max_correction": float(last.max_correction),
        }

        if not last.converged:
            message = (
                f"Aberth-Ehrlich iteration did not converge in {last.iteration} sweeps "
                f"(largest relative correction {last.max_correction:.3e}, "
                f"tolerance {self.tolerance:.1e})"
            )
            if raise_on_failure:
                raise RootFindingNonConvergence(
                    message,
                    roots=last.roots,
                    iterations=last.iteration,
                    max_correction=float(last.max_correction),
                )
            warnings.warn(message, RootFindingWarning, stacklevel=3)

        return result


def find_roots(
    polynomial,
    tolerance: float = 1e-12,
    max_iterations: int = 200,
    raise_on_failure: bool = False,
) -> RootFindingResult:
    """
    All complex roots of a polynomial (Aberth-Ehrlich).

    Parameters
    ----------
    polynomial : Polynomial or coefficient sequence
        Nonzero polynomial
    tolerance : float
        Relative convergence tolerance (default 1e-12)
    max_iterations : int
        Iteration budget (default 200)
    raise_on_failure : bool
        Raise instead of warning on non-convergence

    Returns
    -------
    RootFindingResult
        roots (canonical order), converged, iterations, max_correction

    Examples
    --------
    >>> find_roots(Polynomial([2.0, 3.0, 1.0]))["roots"]
    array([-2.+0.j, -1.+0.j])
    """
    solver = AberthEhrlich(polynomial, tolerance=tolerance, max_iterations=max_iterations)
    return solver.solve(raise_on_failure=raise_on_failure)


def eigenvalue_roots(polynomial) -> RootVector:
    """
    Roots as eigenvalues of the companion matrix.

    Alternative to the Aberth-Ehrlich iteration, delegating to
    numpy.linalg.eigvals; zero roots and degrees up to 2 are handled as in
    find_roots().
    """
    from lticore.numerics.linalg import companion_matrix

    solver = AberthEhrlich(polynomial)
    if len(solver._coeffs) <= 3:
        return solver._with_zero_roots(solver._closed_form())
    comp = companion_matrix(Polynomial(solver._coeffs))
    return solver._with_zero_roots(np.linalg.eigvals(comp))


__all__ = [
    "AberthEhrlich",
    "conjugate_pairs",
    "find_roots",
    "eigenvalue_roots",
    "quadratic_roots",
    "real_quadratic_roots",
]

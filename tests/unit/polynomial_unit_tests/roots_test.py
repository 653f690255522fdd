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
Unit Tests for Polynomial Root Finding

Tests cover:
- Closed-form quadratics (cancellation-free)
- Aberth-Ehrlich convergence on real, complex and clustered root sets
- Round trips roots -> coefficients -> roots for degrees 1 to 12
- Conjugate-symmetric root sets for real coefficients
- Zero roots split off exactly
- Lazy iteration stream and early termination
- Non-convergence reporting (warning or exception)
- Cross-check against numpy.polynomial
"""

import warnings

import numpy as np
import pytest
from numpy.testing import assert_allclose

from lticore.exceptions import (
    RootFindingNonConvergence,
    RootFindingWarning,
    ZeroPolynomialError,
)
from lticore.polynomial import (
    AberthEhrlich,
    Polynomial,
    conjugate_pairs,
    eigenvalue_roots,
    find_roots,
    quadratic_roots,
    real_quadratic_roots,
)

# ============================================================================
# Helpers
# ============================================================================


def assert_same_roots(found, expected, tol):
    """Match every expected root to a distinct found root within tol."""
    found = list(np.asarray(found, dtype=complex))
    assert len(found) == len(expected)
    for r in expected:
        distances = [abs(f - r) for f in found]
        k = int(np.argmin(distances))
        assert distances[k] <= tol * max(1.0, abs(r)), f"no root near {r}: {found}"
        found.pop(k)


# ============================================================================
# Quadratics
# ============================================================================


class TestQuadraticRoots:
    """Closed-form roots of x² + bx + c"""

    def test_distinct_real(self):
        r1, r2 = quadratic_roots(3.0, 2.0)
        assert {r1, r2} == {-1 + 0j, -2 + 0j}

    def test_complex_pair(self):
        r1, r2 = quadratic_roots(0.0, 1.0)
        assert r1 == -1j
        assert r2 == 1j

    def test_double_root(self):
        assert quadratic_roots(-2.0, 1.0) == (1 + 0j, 1 + 0j)

    def test_no_cancellation_for_small_root(self):
        # x² - 1e8 x + 1: roots ~1e8 and ~1e-8
        r1, r2 = quadratic_roots(-1e8, 1.0)
        small = min(r1, r2, key=abs)
        assert small.real == pytest.approx(1e-8, rel=1e-12)

    def test_complex_coefficients(self):
        roots = quadratic_roots(-(1 + 1j) - (2 - 1j), (1 + 1j) * (2 - 1j))
        assert_same_roots(roots, [1 + 1j, 2 - 1j], 1e-12)

    def test_real_quadratic_roots(self):
        assert sorted(real_quadratic_roots(3.0, 2.0)) == [-2.0, -1.0]
        assert real_quadratic_roots(0.0, 1.0) is None


# ============================================================================
# Aberth-Ehrlich
# ============================================================================


class TestAberthEhrlich:
    """Simultaneous iteration on known root sets"""

    def test_degree_five_mixed_signs(self):
        p = Polynomial.from_roots([-1.0, -2.0, -3.0, 1.0, 5.0])
        result = find_roots(p)
        assert result["converged"]
        assert result["iterations"] > 0
        assert_allclose(result["roots"].real, [-3.0, -2.0, -1.0, 1.0, 5.0], atol=1e-9)
        assert_allclose(result["roots"].imag, 0.0, atol=1e-9)

    def test_roots_in_canonical_order(self):
        p = Polynomial([6.0, -5.0, 1.0, 1.0])
        roots = find_roots(p)["roots"]
        assert np.all(np.diff(roots.real) >= -1e-12)

    def test_complex_conjugate_pairs(self):
        expected = [-1 + 2j, -1 - 2j, -0.5 + 0.5j, -0.5 - 0.5j, -3.0]
        p = Polynomial.from_roots(expected)
        assert_allclose(p.coeffs.imag, 0.0, atol=1e-12)
        p = Polynomial(p.coeffs.real)
        assert_same_roots(p.roots(), expected, 1e-9)

    def test_real_polynomial_roots_are_exact_conjugates(self):
        p = Polynomial.from_roots([-1.0, 4j, -4j, 0.3 + 2j, 0.3 - 2j, 5.0])
        p = Polynomial(p.coeffs.real)
        roots = p.roots()
        complex_roots = roots[roots.imag != 0]
        assert complex_roots.size == 4
        assert_allclose(complex_roots[::2], np.conj(complex_roots[1::2]), rtol=0, atol=0)
        assert roots[roots.imag == 0].size == 2

    def test_conjugate_pair_order_is_lower_then_upper(self):
        for w in np.linspace(0.5, 10.0, 20):
            poles = Polynomial([w * w, w * w, 1.0, 1.0]).roots()  # (x + 1)(x² + w²)
            assert poles[1].imag < 0 < poles[2].imag
            assert poles[1] == np.conj(poles[2])

    def test_complex_coefficients(self):
        expected = [1j, 2.0, -1 - 1j, 0.5 + 3j]
        p = Polynomial.from_roots(expected)
        assert_same_roots(p.roots(), expected, 1e-9)

    @pytest.mark.parametrize("n", range(1, 13))
    def test_round_trip_on_circle(self, n):
        angles = 2 * np.pi * np.arange(n) / n + 0.3
        expected = 0.8 * np.exp(1j * angles) + 0.1
        p = Polynomial.from_roots(expected)
        assert_same_roots(p.roots(), expected, 1e-6)

    @pytest.mark.parametrize("n", range(1, 12))
    def test_round_trip_integer_roots(self, n):
        expected = -np.arange(1.0, n + 1)
        p = Polynomial.from_roots(expected)
        assert_same_roots(p.roots(), expected, 1e-6)

    def test_double_root(self):
        p = Polynomial.from_roots([2.0, 2.0, -1.0])
        assert_same_roots(p.roots(), [2.0, 2.0, -1.0], 1e-6)

    def test_zero_roots_split_exactly(self):
        p = Polynomial([0.0, 0.0, 6.0, -5.0, 1.0])  # x²(x-2)(x-3)
        solver = AberthEhrlich(p)
        assert solver.zero_roots == 2
        roots = solver.solve()["roots"]
        assert np.sum(roots == 0) == 2
        assert_same_roots(roots, [0.0, 0.0, 2.0, 3.0], 1e-12)

    def test_monomial(self):
        roots = find_roots(Polynomial([0.0, 0.0, 0.0, 4.0]))["roots"]
        assert np.all(roots == 0)
        assert roots.size == 3

    def test_constant_has_no_roots(self):
        result = find_roots(Polynomial([3.0]))
        assert result["roots"].size == 0
        assert result["converged"]

    def test_linear(self):
        result = find_roots(Polynomial([3.0, 2.0]))
        assert result["iterations"] == 0
        assert_allclose(result["roots"], [-1.5])

    def test_coefficient_sequence_accepted(self):
        assert_allclose(find_roots([2.0, 3.0, 1.0])["roots"], [-2.0, -1.0])

    def test_matches_numpy_polynomial(self):
        rng = np.random.default_rng(7)
        coeffs = rng.standard_normal(9)
        found = find_roots(Polynomial(coeffs))["roots"]
        reference = np.polynomial.polynomial.polyroots(coeffs)
        assert_same_roots(found, reference, 1e-7)

    def test_eigenvalue_roots_agree(self):
        p = Polynomial.from_roots([-0.5, 1.5, -2.0 + 1j, -2.0 - 1j])
        p = Polynomial(p.coeffs.real)
        assert_same_roots(eigenvalue_roots(p), find_roots(p)["roots"], 1e-8)


# ============================================================================
# Conjugate Pairing
# ============================================================================


class TestConjugatePairs:
    """Pairing of real-polynomial roots"""

    def test_pairs_are_averaged(self):
        z = conjugate_pairs([-2e-17 + 4j, -4e-17 - 4j])
        assert z[0] == np.conj(z[1])
        assert z[0].real == pytest.approx(-3e-17)

    def test_near_real_roots_snap(self):
        z = conjugate_pairs([2.0 + 1e-15j, -1.0 - 3e-14j])
        assert_allclose(z.imag, [0.0, 0.0], rtol=0, atol=0)
        assert_allclose(z.real, [2.0, -1.0])

    def test_small_genuine_pair_kept(self):
        z = conjugate_pairs([1e-9j, -1e-9j])
        assert_allclose(z, [1e-9j, -1e-9j])

    def test_unmatched_roots_untouched(self):
        z = conjugate_pairs([1.0 + 1.0j, 3.0 - 2.0j])
        assert_allclose(z, [1.0 + 1.0j, 3.0 - 2.0j], rtol=0, atol=0)

    def test_complex_coefficients_not_paired(self):
        roots = Polynomial([0.0, 1j, 1.0]).roots()  # x(x + i)
        assert_same_roots(roots, [0.0, -1j], 1e-12)


# ============================================================================
# Iteration Stream
# ============================================================================


class TestIterationStream:
    """Lazy estimates and diagnostics"""

    def test_initial_guesses_enclose_roots(self):
        p = Polynomial.from_roots([1.0, -2.0, 3.0, 0.5])
        solver = AberthEhrlich(p)
        guesses = solver.initial_guesses()
        assert len(guesses) == 4
        assert min(abs(g) for g in guesses) > 3.0

    def test_initial_guesses_are_distinct(self):
        guesses = AberthEhrlich(Polynomial([1.0, 0.0, 0.0, 0.0, 0.0, 1.0])).initial_guesses()
        assert len(set(guesses)) == len(guesses)

    def test_stream_ends_with_converged_estimate(self):
        solver = AberthEhrlich(Polynomial.from_roots([1.0, 2.0, 3.0, 4.0]))
        estimates = list(solver.iterations())
        assert estimates[-1].converged
        assert not any(e.converged for e in estimates[:-1])
        assert [e.iteration for e in estimates] == list(range(1, len(estimates) + 1))

    def test_early_stop(self):
        solver = AberthEhrlich(Polynomial.from_roots([1.0, 2.0, 3.0, 4.0]))
        for estimate in solver.iterations():
            break
        assert estimate.iteration == 1
        assert estimate.roots.shape == (4,)

    def test_fresh_stream_each_call(self):
        solver = AberthEhrlich(Polynomial.from_roots([1.0, 2.0, 3.0]))
        first = list(solver.iterations())
        second = list(solver.iterations())
        assert len(first) == len(second)
        assert_allclose(first[-1].roots, second[-1].roots)

    def test_closed_form_single_estimate(self):
        estimates = list(AberthEhrlich(Polynomial([2.0, 3.0, 1.0])).iterations())
        assert len(estimates) == 1
        assert estimates[0].iteration == 0
        assert estimates[0].converged

    def test_degree_property(self):
        assert AberthEhrlich(Polynomial([0.0, 1.0, 0.0, 2.0])).degree == 3


# ============================================================================
# Failure Reporting
# ============================================================================


class TestNonConvergence:
    """Iteration budget exhaustion"""

    def _hard(self):
        return Polynomial.from_roots(np.arange(1.0, 11.0))

    def test_warning_with_best_estimate(self):
        with pytest.warns(RootFindingWarning):
            result = find_roots(self._hard(), max_iterations=1)
        assert not result["converged"]
        assert result["iterations"] == 1
        assert result["roots"].shape == (10,)

    def test_raise_on_failure(self):
        with pytest.raises(RootFindingNonConvergence) as excinfo:
            find_roots(self._hard(), max_iterations=1, raise_on_failure=True)
        assert excinfo.value.iterations == 1
        assert excinfo.value.roots.shape == (10,)
        assert excinfo.value.max_correction > 0

    def test_converged_run_does_not_warn(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            find_roots(Polynomial.from_roots([1.0, 2.0, 3.0]))

    def test_zero_polynomial(self):
        with pytest.raises(ZeroPolynomialError):
            AberthEhrlich(Polynomial.zero())

    def test_invalid_parameters(self):
        p = Polynomial([1.0, 1.0])
        with pytest.raises(ValueError):
            AberthEhrlich(p, tolerance=0.0)
        with pytest.raises(ValueError):
            AberthEhrlich(p, max_iterations=0)

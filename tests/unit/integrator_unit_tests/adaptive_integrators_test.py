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
Unit Tests for the RKF45 Integrator

Tests error-controlled stepping:
- Fehlberg tableau consistency
- accuracy against analytic solutions and scipy.integrate.solve_ivp
- step acceptance and rejection
- exact landing on t_eval points and t_end
- failure modes (step underflow, step budget, non-finite values)
"""

import numpy as np
import pytest
from scipy.integrate import solve_ivp

from lticore.numerical_integration import RKF45Integrator, SolverStatus
from lticore.numerical_integration.adaptive_integrators import (
    RKF45_A,
    RKF45_B4,
    RKF45_B5,
    RKF45_C,
)


def decay(x, u):
    return -x


def autonomous(t, x):
    return None


# ============================================================================
# Tableau
# ============================================================================


class TestTableau:
    """Butcher tableau of the Fehlberg pair"""

    def test_weights_sum_to_one(self):
        assert np.sum(RKF45_B4) == pytest.approx(1.0)
        assert np.sum(RKF45_B5) == pytest.approx(1.0)

    def test_row_sums_match_nodes(self):
        for row, c in zip(RKF45_A, RKF45_C):
            assert sum(row) == pytest.approx(c)

    def test_error_weights(self):
        # the embedded pair differs, otherwise there is no error estimate
        assert np.any(RKF45_B5 != RKF45_B4)


# ============================================================================
# Accuracy
# ============================================================================


class TestAccuracy:
    """Error-controlled solutions"""

    def test_exponential_decay(self):
        integrator = RKF45Integrator(decay, rtol=1e-8, atol=1e-10)
        result = integrator.integrate(np.array([1.0]), autonomous, (0.0, 1.0))
        assert result["success"]
        assert result["x"][-1, 0] == pytest.approx(np.exp(-1.0), rel=1e-5)

    def test_harmonic_oscillator(self):
        A = np.array([[0.0, 1.0], [-1.0, 0.0]])
        integrator = RKF45Integrator(lambda x, u: A @ x, rtol=1e-9, atol=1e-11)
        result = integrator.integrate(np.array([1.0, 0.0]), autonomous, (0.0, 2 * np.pi))
        np.testing.assert_allclose(result["x"][-1], [1.0, 0.0], atol=1e-5)

    def test_against_solve_ivp(self):
        def van_der_pol(x, u):
            mu = 1.0
            return np.array([x[1], mu * (1 - x[0] ** 2) * x[1] - x[0]])

        t_eval = np.linspace(0.0, 5.0, 11)
        integrator = RKF45Integrator(van_der_pol, rtol=1e-9, atol=1e-11)
        result = integrator.integrate(np.array([2.0, 0.0]), autonomous, (0.0, 5.0), t_eval)

        reference = solve_ivp(
            lambda t, x: van_der_pol(x, None),
            (0.0, 5.0),
            [2.0, 0.0],
            t_eval=t_eval,
            rtol=1e-11,
            atol=1e-13,
        )
        np.testing.assert_allclose(result["x"], reference.y.T, atol=1e-5)

    def test_tolerance_controls_step_count(self):
        loose = RKF45Integrator(decay, rtol=1e-3, atol=1e-6)
        tight = RKF45Integrator(decay, rtol=1e-10, atol=1e-12)
        r1 = loose.integrate(np.array([1.0]), autonomous, (0.0, 1.0))
        r2 = tight.integrate(np.array([1.0]), autonomous, (0.0, 1.0))
        assert r1["nsteps"] < r2["nsteps"]
        assert r1["status"] == SolverStatus.TIME_LIMIT_REACHED.value
        assert r2["status"] == SolverStatus.TIME_LIMIT_REACHED.value

    @pytest.mark.parametrize("rtol, atol", [(1e-3, 1e-6), (1e-10, 1e-12)])
    def test_final_value_within_accumulated_tolerance(self, rtol, atol):
        integrator = RKF45Integrator(decay, rtol=rtol, atol=atol)
        result = integrator.integrate(np.array([1.0]), autonomous, (0.0, 1.0))
        error = abs(result["x"][-1, 0] - np.exp(-1.0))
        # |x| <= 1, so each accepted step contributes at most atol + rtol
        assert error <= result["nsteps"] * (atol + rtol)

    def test_tight_tolerance_is_more_accurate(self):
        errors = []
        for rtol, atol in [(1e-3, 1e-6), (1e-10, 1e-12)]:
            integrator = RKF45Integrator(decay, rtol=rtol, atol=atol)
            result = integrator.integrate(np.array([1.0]), autonomous, (0.0, 1.0))
            errors.append(abs(result["x"][-1, 0] - np.exp(-1.0)))
        assert errors[1] < errors[0]

    def test_uncontrolled_step(self):
        integrator = RKF45Integrator(decay, dt=0.1)
        x_next = integrator.step(np.array([1.0]))
        assert x_next[0] == pytest.approx(np.exp(-0.1), abs=1e-6)

    def test_six_evaluations_per_attempt(self):
        integrator = RKF45Integrator(decay)
        result = integrator.integrate(np.array([1.0]), autonomous, (0.0, 1.0))
        assert result["nfev"] == 6 * (result["nsteps"] + result["nrejected"])


# ============================================================================
# Output Points
# ============================================================================


class TestOutputPoints:
    """Landing on t_eval and t_end"""

    def test_every_accepted_step_without_t_eval(self):
        integrator = RKF45Integrator(decay)
        result = integrator.integrate(np.array([1.0]), autonomous, (0.0, 1.0))
        assert result["t"][0] == 0.0
        assert result["t"][-1] == 1.0
        assert len(result["t"]) == result["nsteps"] + 1
        assert np.all(np.diff(result["t"]) > 0)

    def test_exact_landing_on_t_eval(self):
        t_eval = np.linspace(0.0, 1.0, 11)
        integrator = RKF45Integrator(decay, rtol=1e-8, atol=1e-10)
        result = integrator.integrate(np.array([1.0]), autonomous, (0.0, 1.0), t_eval)
        np.testing.assert_array_equal(result["t"], t_eval)
        np.testing.assert_allclose(result["x"][:, 0], np.exp(-t_eval), rtol=1e-5)

    def test_t_eval_without_start(self):
        integrator = RKF45Integrator(decay)
        result = integrator.integrate(np.array([1.0]), autonomous, (0.0, 1.0), [0.25, 0.5])
        np.testing.assert_array_equal(result["t"], [0.25, 0.5])
        assert result["status"] == SolverStatus.TIME_LIMIT_REACHED.value

    def test_stops_at_last_t_eval_point(self):
        step_starts = []

        def recording(t, x):
            step_starts.append(t)
            return None

        integrator = RKF45Integrator(decay)
        result = integrator.integrate(np.array([1.0]), recording, (0.0, 10.0), [0.5, 1.0])
        np.testing.assert_array_equal(result["t"], [0.5, 1.0])
        assert result["success"]
        assert max(step_starts) < 1.0

    def test_error_estimate_of_accepted_steps(self):
        integrator = RKF45Integrator(decay, rtol=1e-6, atol=1e-9)
        run = integrator.samples(np.array([1.0]), autonomous, (0.0, 1.0))
        assert run.error_estimate is None
        t0, _ = next(run)
        assert t0 == 0.0
        estimates = [run.error_estimate for _ in run]
        assert len(estimates) == run.nsteps
        assert all(0.0 <= e <= 1.0 for e in estimates)

    def test_max_step(self):
        integrator = RKF45Integrator(decay, max_step=0.05)
        result = integrator.integrate(np.array([1.0]), autonomous, (0.0, 1.0))
        assert np.all(np.diff(result["t"]) <= 0.05 * (1 + 1e-8))
        assert result["nsteps"] >= 20

    def test_early_stop(self):
        integrator = RKF45Integrator(decay)
        run = integrator.samples(np.array([1.0]), autonomous, (0.0, 100.0))
        for t, x in run:
            if t > 1.0:
                break
        assert run.status == SolverStatus.STEPPING
        assert x[0] == pytest.approx(np.exp(-t), rel=1e-5)


# ============================================================================
# Rejection and Failure
# ============================================================================


class TestFailureModes:
    """Rejected steps and FAILED runs"""

    def test_rejections_on_fast_dynamics(self):
        integrator = RKF45Integrator(lambda x, u: -50.0 * x, dt=0.1)
        result = integrator.integrate(np.array([1.0]), autonomous, (0.0, 1.0))
        assert result["success"]
        assert result["nrejected"] > 0
        assert result["x"][-1, 0] == pytest.approx(0.0, abs=1e-6)

    def test_step_underflow(self):
        integrator = RKF45Integrator(lambda x, u: -50.0 * x, dt=0.1, min_step=0.5)
        result = integrator.integrate(np.array([1.0]), autonomous, (0.0, 1.0))
        assert not result["success"]
        assert result["status"] == SolverStatus.FAILED.value
        assert "min_step" in result["message"]
        # only the initial sample was produced
        assert len(result["t"]) == 1

    def test_step_budget(self):
        integrator = RKF45Integrator(decay, max_steps=3)
        run = integrator.samples(np.array([1.0]), autonomous, (0.0, 1.0))
        samples = list(run)
        assert run.status == SolverStatus.FAILED
        assert "maximum number of steps" in run.failure_reason
        assert 1 <= len(samples) <= 4
        assert samples[-1].t < 1.0

    def test_non_finite_vector_field(self):
        integrator = RKF45Integrator(lambda x, u: np.full_like(x, np.nan))
        result = integrator.integrate(np.array([1.0]), autonomous, (0.0, 1.0))
        assert result["status"] == SolverStatus.FAILED.value
        assert result["nsteps"] == 0
        assert result["nrejected"] > 0

    def test_rejected_steps_in_stats(self):
        integrator = RKF45Integrator(lambda x, u: -50.0 * x, dt=0.1)
        result = integrator.integrate(np.array([1.0]), autonomous, (0.0, 1.0))
        assert integrator.get_stats()["rejected_steps"] == result["nrejected"]

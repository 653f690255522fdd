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
Unit Tests for Fixed-Step Integrators

Covers Explicit Euler, Midpoint (RK2) and RK4:
- single steps against hand-computed values
- order of accuracy on dx/dt = -x
- time grids (uniform and caller-supplied)
- control policies and autonomous systems
- evaluation counts
"""

import numpy as np
import pytest

from lticore.numerical_integration import (
    ExplicitEulerIntegrator,
    MidpointIntegrator,
    RK4Integrator,
    SolverStatus,
)
from lticore.numerical_integration.fixed_step_integrators import FixedStepIntegrator


def decay(x, u):
    return -x


def autonomous(t, x):
    return None


def final_error(integrator_class, dt):
    integrator = integrator_class(decay, dt=dt)
    result = integrator.integrate(np.array([1.0]), autonomous, (0.0, 1.0))
    return abs(result["x"][-1, 0] - np.exp(-1.0))


# ============================================================================
# Single Steps
# ============================================================================


class TestSingleStep:
    """One step of each method"""

    def test_euler_step(self):
        integrator = ExplicitEulerIntegrator(decay, dt=0.01)
        x_next = integrator.step(np.array([1.0]))
        np.testing.assert_allclose(x_next, [0.99])

    def test_midpoint_step(self):
        # 1 - h + h²/2
        integrator = MidpointIntegrator(decay, dt=0.1)
        np.testing.assert_allclose(integrator.step(np.array([1.0])), [0.905])

    def test_rk4_step(self):
        # 1 - h + h²/2 - h³/6 + h⁴/24
        h = 0.1
        expected = 1 - h + h**2 / 2 - h**3 / 6 + h**4 / 24
        integrator = RK4Integrator(decay, dt=h)
        np.testing.assert_allclose(integrator.step(np.array([1.0])), [expected], rtol=1e-14)

    def test_step_with_explicit_dt(self):
        integrator = ExplicitEulerIntegrator(decay, dt=0.01)
        np.testing.assert_allclose(integrator.step(np.array([1.0]), None, 0.5), [0.5])

    def test_step_with_control(self):
        integrator = ExplicitEulerIntegrator(lambda x, u: -x + u, dt=0.1)
        x_next = integrator.step(np.array([0.0]), np.array([2.0]))
        np.testing.assert_allclose(x_next, [0.2])

    def test_vector_state(self):
        A = np.array([[0.0, 1.0], [-1.0, 0.0]])
        integrator = RK4Integrator(lambda x, u: A @ x, dt=0.01)
        x_next = integrator.step(np.array([1.0, 0.0]))
        assert x_next.shape == (2,)
        np.testing.assert_allclose(x_next, [np.cos(0.01), -np.sin(0.01)], atol=1e-10)


# ============================================================================
# Order of Accuracy
# ============================================================================


class TestAccuracy:
    """Global error on dx/dt = -x over [0, 1]"""

    def test_rk4_accuracy(self):
        assert final_error(RK4Integrator, 0.01) < 1e-4

    @pytest.mark.parametrize(
        "integrator_class, dt, ratio",
        [
            (ExplicitEulerIntegrator, 0.01, 2.0),
            (MidpointIntegrator, 0.05, 4.0),
            (RK4Integrator, 0.1, 16.0),
        ],
    )
    def test_convergence_order(self, integrator_class, dt, ratio):
        coarse = final_error(integrator_class, dt)
        fine = final_error(integrator_class, dt / 2)
        assert coarse / fine == pytest.approx(ratio, rel=0.15)

    def test_harmonic_oscillator_energy(self):
        A = np.array([[0.0, 1.0], [-1.0, 0.0]])
        integrator = RK4Integrator(lambda x, u: A @ x, dt=0.01)
        result = integrator.integrate(np.array([1.0, 0.0]), autonomous, (0.0, 2 * np.pi))
        np.testing.assert_allclose(result["x"][-1], [1.0, 0.0], atol=1e-6)


# ============================================================================
# Time Grids
# ============================================================================


class TestTimeGrid:
    """Uniform and caller-supplied grids"""

    def test_uniform_grid(self):
        integrator = RK4Integrator(decay, dt=0.25)
        np.testing.assert_allclose(
            integrator.time_grid((0.0, 1.0)), [0.0, 0.25, 0.5, 0.75, 1.0]
        )

    def test_grid_ends_on_t_end(self):
        # dt does not divide the span: four equal steps of 0.25
        integrator = RK4Integrator(decay, dt=0.3)
        grid = integrator.time_grid((0.0, 1.0))
        assert len(grid) == 5
        assert grid[-1] == 1.0
        assert np.all(np.diff(grid) <= 0.3)

    def test_quotient_noise(self):
        integrator = RK4Integrator(decay, dt=0.01)
        assert len(integrator.time_grid((0.0, 1.0))) == 101

    def test_integrate_on_uniform_grid(self):
        integrator = RK4Integrator(decay, dt=0.1)
        result = integrator.integrate(np.array([1.0]), autonomous, (0.0, 1.0))
        assert result["t"][0] == 0.0
        assert result["t"][-1] == 1.0
        assert len(result["t"]) == 11
        assert result["nsteps"] == 10
        assert result["nfev"] == 40
        assert result["status"] == SolverStatus.CONVERGED.value

    def test_non_uniform_t_eval(self):
        t_eval = np.array([0.0, 0.1, 0.3, 1.0])
        integrator = RK4Integrator(decay, dt=0.1)
        result = integrator.integrate(np.array([1.0]), autonomous, (0.0, 1.0), t_eval)
        np.testing.assert_array_equal(result["t"], t_eval)
        assert result["nsteps"] == 3
        np.testing.assert_allclose(result["x"][1, 0], np.exp(-0.1), rtol=1e-6)

    def test_t_eval_after_start(self):
        integrator = RK4Integrator(decay, dt=0.1)
        result = integrator.integrate(np.array([1.0]), autonomous, (0.0, 1.0), [0.5, 1.0])
        np.testing.assert_array_equal(result["t"], [0.5, 1.0])
        assert result["nsteps"] == 2
        # two steps of 0.5 from x(0) = 1
        h = 0.5
        factor = 1 - h + h**2 / 2 - h**3 / 6 + h**4 / 24
        np.testing.assert_allclose(result["x"][:, 0], [factor, factor**2])

    def test_shifted_span(self):
        integrator = RK4Integrator(decay, dt=0.1)
        result = integrator.integrate(np.array([1.0]), autonomous, (2.0, 3.0))
        assert result["t"][0] == 2.0
        assert result["t"][-1] == pytest.approx(3.0)
        assert result["x"][-1, 0] == pytest.approx(np.exp(-1.0), rel=1e-5)


# ============================================================================
# Control Policies
# ============================================================================


class TestControlPolicies:
    """u(t, x) evaluated at the start of every step"""

    def test_constant_control(self):
        integrator = RK4Integrator(lambda x, u: -x + u, dt=0.01)
        result = integrator.integrate(np.array([0.0]), lambda t, x: np.array([1.0]), (0.0, 1.0))
        assert result["x"][-1, 0] == pytest.approx(1 - np.exp(-1.0), abs=1e-8)

    def test_state_feedback_is_zero_order_hold(self):
        # f = u is constant within a step, so every step is x(1 - K·dt)
        K = 2.0
        integrator = RK4Integrator(lambda x, u: u, dt=0.01)
        result = integrator.integrate(np.array([1.0]), lambda t, x: -K * x, (0.0, 1.0))
        assert result["x"][-1, 0] == pytest.approx((1 - K * 0.01) ** 100, rel=1e-12)

    def test_policy_sees_grid_times(self):
        seen = []

        def policy(t, x):
            seen.append(t)
            return None

        RK4Integrator(decay, dt=0.25).integrate(np.array([1.0]), policy, (0.0, 1.0))
        np.testing.assert_allclose(seen, [0.0, 0.25, 0.5, 0.75])

    def test_control_held_over_stages(self):
        calls = []

        def policy(t, x):
            calls.append(t)
            return np.array([1.0])

        result = RK4Integrator(lambda x, u: u, dt=0.5).integrate(
            np.array([0.0]), policy, (0.0, 1.0)
        )
        assert len(calls) == 2
        np.testing.assert_allclose(result["x"][:, 0], [0.0, 0.5, 1.0])


# ============================================================================
# Names and Counters
# ============================================================================


class TestProperties:
    """Names and evaluation counts"""

    @pytest.mark.parametrize(
        "integrator_class, name, fev",
        [
            (ExplicitEulerIntegrator, "Explicit Euler", 1),
            (MidpointIntegrator, "Midpoint (RK2)", 2),
            (RK4Integrator, "RK4", 4),
        ],
    )
    def test_name_and_evaluations(self, integrator_class, name, fev):
        integrator = integrator_class(decay, dt=0.1)
        result = integrator.integrate(np.array([1.0]), autonomous, (0.0, 1.0))
        assert integrator.name == name
        assert result["solver"] == name
        assert result["nfev"] == fev * result["nsteps"]

    def test_error_from_vector_field_propagates(self):
        def broken(x, u):
            raise RuntimeError("model exploded")

        integrator = RK4Integrator(broken, dt=0.1)
        with pytest.raises(RuntimeError, match="model exploded"):
            integrator.integrate(np.array([1.0]), autonomous, (0.0, 1.0))

    def test_method_update_is_abstract(self):
        class Unfinished(FixedStepIntegrator):
            @property
            def name(self):
                return "Unfinished"

        assert "_step" in FixedStepIntegrator.__abstractmethods__
        with pytest.raises(TypeError, match="_step"):
            Unfinished(decay, dt=0.1)

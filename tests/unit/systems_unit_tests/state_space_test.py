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
Unit Tests for StateSpace

Tests cover:
- Construction, shape validation, read-only matrices
- Realization of transfer functions (controllability canonical form)
- Conversion back to transfer functions (SISO and MIMO)
- Controllability/observability matrices, poles, stability
- Equilibrium for constant inputs
- Lazy evolution, collected simulation and failure handling
- Discrete difference-equation evolution
"""

import warnings

import numpy as np
import pytest
from numpy.testing import assert_allclose

from lticore.control import SystemAnalysis
from lticore.exceptions import (
    DimensionMismatchError,
    ImproperTransferFunctionError,
    IntegrationError,
    SingularMatrixError,
)
from lticore.systems import Equilibrium, StateSpace, TransferFunction
from lticore.types.core import TimeDomain
from lticore.types.trajectories import EvolutionSample

# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def second_order_tf():
    """G(s) = 1 / (s² + 3s + 2)"""
    return TransferFunction([1.0], [2.0, 3.0, 1.0])


@pytest.fixture
def second_order(second_order_tf):
    return StateSpace.from_transfer_function(second_order_tf)


@pytest.fixture
def first_order():
    """ẋ = -x + u, y = x"""
    return StateSpace([[-1.0]], [[1.0]], [[1.0]])


# ============================================================================
# Construction
# ============================================================================


class TestConstruction:
    """Matrix validation"""

    def test_dimensions(self):
        ss = StateSpace(np.eye(3), np.ones((3, 2)), np.ones((4, 3)))
        assert (ss.nx, ss.nu, ss.ny) == (3, 2, 4)
        assert ss.D.shape == (4, 2)
        assert np.all(ss.D == 0)

    def test_scalars_become_matrices(self):
        ss = StateSpace(-2.0, 1.0, 3.0, 0.5)
        assert ss.A.shape == (1, 1)
        assert ss.D[0, 0] == 0.5

    def test_matrices_are_read_only(self, first_order):
        with pytest.raises(ValueError):
            first_order.A[0, 0] = 5.0

    def test_input_not_aliased(self):
        A = np.array([[-1.0]])
        ss = StateSpace(A, [[1.0]], [[1.0]])
        A[0, 0] = 10.0
        assert ss.A[0, 0] == -1.0

    @pytest.mark.parametrize(
        "A, B, C, D",
        [
            (np.ones((2, 3)), np.ones((2, 1)), np.ones((1, 2)), None),
            (np.eye(2), np.ones((3, 1)), np.ones((1, 2)), None),
            (np.eye(2), np.ones((2, 1)), np.ones((1, 3)), None),
            (np.eye(2), np.ones((2, 1)), np.ones((1, 2)), np.ones((2, 2))),
            (np.ones((2, 2, 2)), np.ones((2, 1)), np.ones((1, 2)), None),
        ],
    )
    def test_shape_mismatch(self, A, B, C, D):
        with pytest.raises(DimensionMismatchError):
            StateSpace(A, B, C, D)

    def test_complex_rejected(self):
        with pytest.raises(ValueError):
            StateSpace([[1j]], [[1.0]], [[1.0]])

    def test_time_domain(self):
        ss = StateSpace([[0.5]], [[1.0]], [[1.0]], time_domain="discrete", sampling_time=0.1)
        assert ss.time_domain == TimeDomain.DISCRETE
        assert ss.is_discrete
        assert ss.sampling_time == 0.1
        with pytest.raises(ValueError):
            StateSpace([[0.5]], [[1.0]], [[1.0]], sampling_time=0.1)

    def test_static_gain_model(self):
        ss = StateSpace(np.zeros((0, 0)), np.zeros((0, 1)), np.zeros((1, 0)), [[2.0]])
        assert ss.nx == 0
        assert ss.to_transfer_function() == TransferFunction([2.0], [1.0])
        assert ss.controllability_matrix().shape == (0, 0)
        assert ss.observability_matrix().shape == (0, 0)
        assert ss.output(np.zeros(0), [3.0])[0] == 6.0


# ============================================================================
# Transfer Function Conversion
# ============================================================================


class TestTransferFunctionConversion:
    """Realization and the way back"""

    def test_controllability_canonical_form(self, second_order):
        assert_allclose(second_order.A, [[0.0, 1.0], [-2.0, -3.0]])
        assert_allclose(second_order.B, [[0.0], [1.0]])
        assert_allclose(second_order.C, [[1.0, 0.0]])
        assert_allclose(second_order.D, [[0.0]])

    def test_round_trip_exact(self, second_order, second_order_tf):
        assert second_order.to_transfer_function() == second_order_tf

    def test_biproper(self):
        G = TransferFunction([3.0, 1.0], [2.0, 1.0])
        ss = G.to_state_space()
        assert_allclose(ss.A, [[-2.0]])
        assert_allclose(ss.C, [[1.0]])
        assert_allclose(ss.D, [[1.0]])
        assert ss.to_transfer_function() == G

    def test_non_monic_denominator(self):
        G = TransferFunction([2.0], [4.0, 2.0])
        assert G.to_state_space().to_transfer_function() == G.normalize()

    def test_round_trip_higher_order(self):
        G = TransferFunction([1.0, -2.0, 0.5], [6.0, 11.0, 6.0, 1.0])
        back = G.to_state_space().to_transfer_function()
        assert_allclose(back.num.coeffs, G.num.coeffs, atol=1e-12)
        assert_allclose(back.den.coeffs, G.den.coeffs, atol=1e-12)

    def test_discrete_domain_preserved(self):
        G = TransferFunction([1.0], [-0.5, 1.0], "discrete", sampling_time=0.2)
        ss = G.to_state_space()
        assert ss.is_discrete
        assert ss.sampling_time == 0.2

    def test_improper_rejected(self):
        with pytest.raises(ImproperTransferFunctionError):
            StateSpace.from_transfer_function(TransferFunction([0.0, 0.0, 1.0], [1.0, 1.0]))

    def test_delay_rejected(self, second_order_tf):
        with pytest.raises(ValueError):
            StateSpace.from_transfer_function(second_order_tf.with_delay(0.1))

    def test_complex_coefficients_rejected(self):
        with pytest.raises(ValueError):
            StateSpace.from_transfer_function(TransferFunction([1.0], [1j, 1.0]))

    def test_mimo_transfer_function_matrix(self):
        ss = StateSpace(np.diag([-1.0, -2.0]), np.eye(2), np.eye(2))
        G = ss.to_transfer_function_matrix()
        assert len(G) == 2 and len(G[0]) == 2
        assert G[0][0](0.5) == pytest.approx(1.0 / 1.5)
        assert G[1][1](0.5) == pytest.approx(1.0 / 2.5)
        assert G[0][1].num.is_zero()

    def test_matrix_matches_resolvent(self):
        rng = np.random.default_rng(1)
        A = rng.standard_normal((3, 3)) - 2 * np.eye(3)
        B = rng.standard_normal((3, 2))
        C = rng.standard_normal((2, 3))
        D = rng.standard_normal((2, 2))
        ss = StateSpace(A, B, C, D)
        G = ss.to_transfer_function_matrix()
        s = 0.3 + 1.1j
        reference = C @ np.linalg.solve(s * np.eye(3) - A, B) + D
        for i in range(2):
            for j in range(2):
                assert G[i][j](s) == pytest.approx(reference[i, j], rel=1e-9)

    def test_mimo_has_no_single_transfer_function(self):
        ss = StateSpace(np.eye(2), np.eye(2), np.eye(2))
        with pytest.raises(DimensionMismatchError):
            ss.to_transfer_function()


# ============================================================================
# Structural Properties
# ============================================================================


class TestStructuralProperties:
    """Controllability, observability, poles"""

    def test_controllability_matrix(self, second_order):
        assert_allclose(second_order.controllability_matrix(), [[0.0, 1.0], [1.0, -3.0]])

    def test_observability_matrix(self, second_order):
        assert_allclose(second_order.observability_matrix(), [[1.0, 0.0], [0.0, 1.0]])

    def test_poles_and_stability(self, second_order):
        assert_allclose(second_order.poles(), [-2.0, -1.0])
        assert second_order.is_stable()
        unstable = StateSpace([[0.0, 1.0], [-2.0, 3.0]], [[0.0], [1.0]], [[1.0, 0.0]])
        assert not unstable.is_stable()

    def test_discrete_stability(self):
        assert StateSpace([[0.5]], [[1.0]], [[1.0]], time_domain="discrete").is_stable()
        assert not StateSpace([[-1.5]], [[1.0]], [[1.0]], time_domain="discrete").is_stable()

    def test_oscillatory_mode_is_not_stable(self):
        A = [[-1.0, 0.0, 0.0], [0.0, 0.0, 1.0], [0.0, -16.0, 0.0]]
        ss = StateSpace(A, [[1.0], [0.0], [1.0]], [[1.0, 1.0, 0.0]])
        poles = ss.poles()
        assert poles[1] == np.conj(poles[2])
        assert not ss.is_stable()
        assert ss.is_stable() == ss.analysis.stability()["is_stable"]

    def test_discrete_rotation_is_not_stable(self):
        c, s = np.cos(0.3), np.sin(0.3)
        ss = StateSpace([[c, -s], [s, c]], [[1.0], [0.0]], [[1.0, 0.0]], time_domain="discrete")
        assert not ss.is_stable()

    def test_analysis_property(self, second_order):
        analysis = second_order.analysis
        assert isinstance(analysis, SystemAnalysis)
        assert analysis.stability()["is_stable"]
        assert analysis.controllability()["is_controllable"]


# ============================================================================
# Equilibrium and Dynamics
# ============================================================================


class TestEquilibrium:
    """Constant-input equilibria"""

    def test_continuous(self):
        eq = StateSpace([[-1.0]], [[1.0]], [[2.0]]).equilibrium([3.0])
        assert isinstance(eq, Equilibrium)
        assert_allclose(eq.x, [3.0])
        assert_allclose(eq.y, [6.0])

    def test_zero_input_default(self, second_order):
        eq = second_order.equilibrium()
        assert_allclose(eq.x, [0.0, 0.0])

    def test_output_matches_static_gain(self, second_order, second_order_tf):
        eq = second_order.equilibrium([1.0])
        assert eq.y[0] == pytest.approx(second_order_tf.static_gain())

    def test_discrete(self):
        ss = StateSpace([[0.5]], [[1.0]], [[1.0]], time_domain="discrete")
        assert_allclose(ss.equilibrium([1.0]).x, [2.0])

    def test_singular(self):
        with pytest.raises(SingularMatrixError):
            StateSpace([[0.0]], [[1.0]], [[1.0]]).equilibrium([1.0])

    def test_input_size_checked(self, first_order):
        with pytest.raises(DimensionMismatchError):
            first_order.equilibrium([1.0, 2.0])

    def test_dynamics_and_output(self, second_order):
        x = np.array([1.0, 2.0])
        assert_allclose(second_order.dynamics(x, [1.0]), [2.0, -7.0])
        assert_allclose(second_order.output(x), [1.0])


# ============================================================================
# Time Evolution
# ============================================================================


class TestEvolution:
    """Continuous simulation"""

    def test_evolution_is_lazy(self, first_order):
        stream = first_order.evolution(u=[1.0], t_span=(0.0, 5.0), dt=0.1)
        first = next(stream)
        assert isinstance(first, EvolutionSample)
        assert first.time == 0.0
        for sample in stream:
            if sample.output[0] > 0.9:
                break
        assert sample.time == pytest.approx(2.4)

    def test_step_response_settles_at_static_gain(self, second_order):
        result = second_order.simulate(u=[1.0], t_span=(0.0, 10.0), dt=0.01)
        assert result["success"]
        assert result["y"].shape == (len(result["t"]), 1)
        assert result["y"][-1, 0] == pytest.approx(0.5, abs=1e-3)

    def test_matches_analytical_step_response(self, second_order):
        t_eval = np.linspace(0.0, 3.0, 7)
        result = second_order.simulate(u=[1.0], t_span=(0.0, 3.0), method="rkf45", t_eval=t_eval)
        expected = 0.5 - np.exp(-t_eval) + 0.5 * np.exp(-2 * t_eval)
        assert_allclose(result["t"], t_eval)
        assert_allclose(result["y"][:, 0], expected, atol=1e-5)

    def test_time_varying_input(self, first_order):
        result = first_order.simulate(u=lambda t: [np.sin(t)], t_span=(0.0, 2.0), dt=0.001)
        t = result["t"][-1]
        expected = 0.5 * (np.sin(t) - np.cos(t) + np.exp(-t))
        assert result["x"][-1, 0] == pytest.approx(expected, abs=2e-3)

    def test_initial_condition(self, first_order):
        result = first_order.simulate(x0=[2.0], t_span=(0.0, 1.0), dt=0.01)
        assert result["x"][-1, 0] == pytest.approx(2.0 * np.exp(-1.0), rel=1e-6)

    def test_radau_uses_system_matrix_as_jacobian(self):
        ss = StateSpace(np.diag([-1000.0, -1.0]), np.zeros((2, 1)), np.eye(2))
        result = ss.simulate(x0=[1.0, 1.0], t_span=(0.0, 1.0), method="radau", dt=0.1)
        assert result["success"]
        assert result["njev"] == result["nsteps"]
        assert result["x"][-1, 1] == pytest.approx(np.exp(-1.0), rel=1e-5)

    def test_failure_warns(self, first_order):
        stiff = StateSpace([[-50.0]], [[1.0]], [[1.0]])
        with pytest.warns(RuntimeWarning):
            result = stiff.simulate(
                x0=[1.0], t_span=(0.0, 1.0), method="rkf45", dt=0.1, min_step=0.5
            )
        assert not result["success"]
        assert result["y"].shape[0] == result["t"].shape[0]

    def test_failure_raises(self):
        stiff = StateSpace([[-50.0]], [[1.0]], [[1.0]])
        with pytest.raises(IntegrationError):
            stiff.simulate(
                x0=[1.0],
                t_span=(0.0, 1.0),
                method="rkf45",
                dt=0.1,
                min_step=0.5,
                raise_on_failure=True,
            )

    def test_continuous_only(self):
        ss = StateSpace([[0.5]], [[1.0]], [[1.0]], time_domain="discrete")
        with pytest.raises(ValueError):
            ss.simulate()
        with pytest.raises(ValueError):
            next(ss.evolution())

    def test_initial_state_size_checked(self, second_order):
        with pytest.raises(DimensionMismatchError):
            second_order.simulate(x0=[1.0])


class TestDiscreteEvolution:
    """Difference equation"""

    def test_impulse_like_sequence(self):
        ss = StateSpace([[0.5]], [[1.0]], [[1.0]], time_domain="discrete")
        outputs = [s.output[0] for s in ss.evolve_discrete([[1.0]] * 3)]
        assert outputs == [0.0, 1.0, 1.5]

    def test_sample_indices(self):
        ss = StateSpace([[0.5]], [[1.0]], [[1.0]], time_domain="discrete")
        samples = list(ss.evolve_discrete([[0.0]] * 4, x0=[8.0]))
        assert [s.time for s in samples] == [0, 1, 2, 3]
        assert [s.state[0] for s in samples] == [8.0, 4.0, 2.0, 1.0]

    def test_sample_times_use_sampling_time(self):
        ss = StateSpace([[0.5]], [[1.0]], [[1.0]], time_domain="discrete", sampling_time=0.25)
        samples = list(ss.evolve_discrete([[0.0]] * 4, x0=[8.0]))
        assert [s.time for s in samples] == pytest.approx([0.0, 0.25, 0.5, 0.75])
        assert [s.state[0] for s in samples] == [8.0, 4.0, 2.0, 1.0]

    def test_lazy_over_infinite_input(self):
        import itertools

        ss = StateSpace([[0.5]], [[1.0]], [[1.0]], time_domain="discrete")
        stream = ss.evolve_discrete(itertools.repeat([1.0]))
        last = None
        for sample in itertools.islice(stream, 60):
            last = sample
        assert last.output[0] == pytest.approx(2.0)

    def test_discrete_only(self, first_order):
        with pytest.raises(ValueError):
            next(first_order.evolve_discrete([[1.0]]))


# ============================================================================
# Comparison and Display
# ============================================================================


class TestComparison:
    """Equality and string forms"""

    def test_equality(self, second_order):
        same = StateSpace([[0.0, 1.0], [-2.0, -3.0]], [[0.0], [1.0]], [[1.0, 0.0]])
        assert second_order == same
        assert second_order != StateSpace(same.A, same.B, same.C, [[1.0]])

    def test_unhashable(self, second_order):
        with pytest.raises(TypeError):
            hash(second_order)

    def test_repr(self, second_order):
        assert repr(second_order) == (
            "StateSpace(nx=2, nu=1, ny=1, time_domain='continuous', sampling_time=None)"
        )
        assert "A =" in str(second_order)

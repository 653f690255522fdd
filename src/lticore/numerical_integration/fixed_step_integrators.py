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
Fixed-Step Integrators

Implements classic fixed time-step integration methods:
- Explicit Euler (1st order)
- Midpoint/RK2 (2nd order)
- RK4 (4th order)

The grid is either uniform (ceil((t_end - t_start)/dt) equal steps, each
at most dt, ending exactly on t_end) or caller-supplied through t_eval. Control is evaluated
at the start of each step and held constant across its stages. Runs end
in CONVERGED once the grid is consumed; the only failure mode is an
exception propagating from the vector field.

Supports both controlled and autonomous systems (u=None).
"""

from abc import abstractmethod
from typing import Iterator, Optional

import numpy as np

from lticore.numerical_integration.integrator_base import (
    IntegrationRun,
    IntegratorBase,
    SolverStatus,
    StepMode,
)
from lticore.types.core import (
    ControlPolicy,
    ControlVector,
    DynamicsFunction,
    ScalarLike,
    StateVector,
)
from lticore.types.trajectories import IntegrationSample, TimeSpan


class FixedStepIntegrator(IntegratorBase):
    """
    Shared grid traversal of the fixed-step methods.

    Subclasses provide _step(x, u, dt, run), the update of one method.
    """

    def __init__(self, system: DynamicsFunction, dt: ScalarLike, **options):
        super().__init__(system, dt, StepMode.FIXED, **options)

    @abstractmethod
    def _step(
        self,
        x: StateVector,
        u: Optional[ControlVector],
        dt: float,
        run: Optional[IntegrationRun],
    ) -> StateVector:
        """Advance x by one step of size dt."""

    def step(
        self, x: StateVector, u: Optional[ControlVector] = None, dt: Optional[ScalarLike] = None
    ) -> StateVector:
        """
        Take one step of the method.

        Parameters
        ----------
        x : StateVector
            Current state
        u : Optional[ControlVector]
            Control input (None for autonomous systems)
        dt : Optional[float]
            Time step (uses self.dt if None)

        Returns
        -------
        StateVector
            Next state
        """
        dt = dt if dt is not None else self.dt
        x_next = self._step(np.asarray(x, dtype=float), u, dt, None)
        self._accept_step(None)
        return x_next

    def time_grid(self, t_span: TimeSpan) -> np.ndarray:
        """
        Uniform grid covering t_span with spacing at most dt.

        Examples
        --------
        >>> RK4Integrator(lambda x, u: -x, dt=0.25).time_grid((0.0, 1.0))
        array([0.  , 0.25, 0.5 , 0.75, 1.  ])
        """
        t0, tf = t_span
        # round() absorbs quotient noise such as 100.00000000000001
        num_steps = int(np.ceil(round((tf - t0) / self.dt, 9)))
        return np.linspace(t0, tf, max(num_steps, 1) + 1)

    def _generate(
        self,
        run: IntegrationRun,
        x0: StateVector,
        u_func: ControlPolicy,
        t_span: TimeSpan,
        t_eval: Optional[np.ndarray],
    ) -> Iterator[IntegrationSample]:
        if t_eval is None:
            t_points = self.time_grid(t_span)
            emit_start = True
        else:
            # t_eval is the grid; the start is stepped from but only emitted if listed
            emit_start = t_eval[0] == t_span[0]
            t_points = t_eval if emit_start else np.concatenate([[t_span[0]], t_eval])

        x = x0
        run.status = SolverStatus.STEPPING
        if emit_start:
            yield IntegrationSample(float(t_points[0]), x)

        for i in range(len(t_points) - 1):
            t = float(t_points[i])
            dt_step = float(t_points[i + 1] - t_points[i])

            # Get control (may be None for autonomous systems)
            u = u_func(t, x)

            x = self._step(x, u, dt_step, run)
            self._accept_step(run)
            yield IntegrationSample(float(t_points[i + 1]), x)

        run.status = SolverStatus.CONVERGED


class ExplicitEulerIntegrator(FixedStepIntegrator):
    """
    Explicit Euler integrator (Forward Euler).

    First-order method: x_{k+1} = x_k + dt * f(x_k, u_k)

    Characteristics:
    - Order: 1 (error ∝ dt)
    - Stability: Conditionally stable (small dt required)
    - Function evaluations: 1 per step

    Examples
    --------
    >>> integrator = ExplicitEulerIntegrator(lambda x, u: -x, dt=0.01)
    >>> x_next = integrator.step(np.array([1.0]))
    >>> x_next
    array([0.99])
    """

    def _step(self, x, u, dt, run):
        dx = self._evaluate_dynamics(x, u, run)
        return x + dt * dx

    @property
    def name(self) -> str:
        return "Explicit Euler"


class MidpointIntegrator(FixedStepIntegrator):
    """
    Midpoint integrator (RK2).

    Second-order method using midpoint evaluation.

    Algorithm:
        k1 = f(x_k, u_k)
        k2 = f(x_k + 0.5*dt*k1, u_k)
        x_{k+1} = x_k + dt * k2

    Characteristics:
    - Order: 2 (error ∝ dt²)
    - Function evaluations: 2 per step
    """

    def _step(self, x, u, dt, run):
        # Stage 1: Evaluate at current point
        k1 = self._evaluate_dynamics(x, u, run)

        # Stage 2: Evaluate at midpoint
        k2 = self._evaluate_dynamics(x + 0.5 * dt * k1, u, run)

        return x + dt * k2

    @property
    def name(self) -> str:
        return "Midpoint (RK2)"


class RK4Integrator(FixedStepIntegrator):
    """
    Classic 4th-order Runge-Kutta integrator.

    Algorithm:
        k1 = f(x_k, u_k)
        k2 = f(x_k + dt/2 * k1, u_k)
        k3 = f(x_k + dt/2 * k2, u_k)
        k4 = f(x_k + dt * k3, u_k)
        x_{k+1} = x_k + dt/6 * (k1 + 2*k2 + 2*k3 + k4)

    Characteristics:
    - Order: 4 (error ∝ dt⁴)
    - Function evaluations: 4 per step
    - Deterministic, no failure mode besides errors raised by f

    Examples
    --------
    >>> integrator = RK4Integrator(lambda x, u: -x, dt=0.01)
    >>> result = integrator.integrate(np.array([1.0]), lambda t, x: None, (0.0, 1.0))
    >>> abs(result["x"][-1, 0] - np.exp(-1.0)) < 1e-4
    True
    """

    def _step(self, x, u, dt, run):
        k1 = self._evaluate_dynamics(x, u, run)
        k2 = self._evaluate_dynamics(x + 0.5 * dt * k1, u, run)
        k3 = self._evaluate_dynamics(x + 0.5 * dt * k2, u, run)
        k4 = self._evaluate_dynamics(x + dt * k3, u, run)
        return x + (dt / 6.0) * (k1 + 2 * k2 + 2 * k3 + k4)

    @property
    def name(self) -> str:
        return "RK4"


__all__ = [
    "FixedStepIntegrator",
    "ExplicitEulerIntegrator",
    "MidpointIntegrator",
    "RK4Integrator",
]

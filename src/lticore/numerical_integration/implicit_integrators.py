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
Implicit Integrators - Radau IIA (order 5)

Three-stage Radau IIA collocation method for stiff systems. Each step
solves the nonlinear stage equations

    Z = h·(A ⊗ I)·F(x + Z)

with a simplified Newton iteration whose matrix I - h·(A ⊗ J) is
factored once per attempt. The Jacobian J = ∂f/∂x is evaluated once per
step, analytically when a ``jacobian`` option is supplied and by forward
differences otherwise.

Step-size control is driven by Newton convergence:
- Newton converges: step accepted, next step min(2h, dt)
- Newton diverges or produces non-finite values: step retried with h/2
- h/2 below min_step, or a singular Newton matrix: run FAILED
- the run ends at t_end, or at the last t_eval point when t_eval ends earlier

Radau IIA is L-stable, so the nominal dt is not limited by fast decaying
modes of the system.
"""

from typing import Iterator, Optional, Tuple

import numpy as np

from lticore.exceptions import IntegrationError, SingularMatrixError
from lticore.numerical_integration.integrator_base import (
    IntegrationRun,
    IntegratorBase,
    OutputSchedule,
    SolverStatus,
    StepMode,
)
from lticore.numerics.linalg import lu_factor, lu_solve
from lticore.types.core import (
    ControlPolicy,
    ControlVector,
    DynamicsFunction,
    JacobianFunction,
    ScalarLike,
    StateMatrix,
    StateVector,
)
from lticore.types.trajectories import IntegrationSample, TimeSpan

# ============================================================================
# Radau IIA Tableau
# ============================================================================

_S6 = np.sqrt(6.0)

RADAU_C = np.array([(4 - _S6) / 10, (4 + _S6) / 10, 1.0])

RADAU_A = np.array(
    [
        [(88 - 7 * _S6) / 360, (296 - 169 * _S6) / 1800, (-2 + 3 * _S6) / 225],
        [(296 + 169 * _S6) / 1800, (88 + 7 * _S6) / 360, (-2 - 3 * _S6) / 225],
        [(16 - _S6) / 36, (16 + _S6) / 36, 1 / 9],
    ]
)


class RadauIntegrator(IntegratorBase):
    """
    Radau IIA integrator of order 5 for stiff systems.

    Parameters
    ----------
    system : DynamicsFunction
        Vector field f(x, u)
    dt : Optional[float]
        Nominal (maximum) step size (default 0.01)
    **options
        Common options plus:
        - newton_tol : float
            Convergence threshold on the scaled Newton correction (default 1e-3)
        - max_newton_iterations : int
            Newton iterations per attempt (default 7)
        - jacobian : JacobianFunction
            Analytic Jacobian ∂f/∂x (default: forward differences)

    Examples
    --------
    >>> A = np.diag([-1000.0, -1.0])
    >>> radau = RadauIntegrator(lambda x, u: A @ x, dt=0.1)
    >>> result = radau.integrate(np.array([1.0, 1.0]), lambda t, x: None, (0.0, 1.0))
    >>> result["success"], result["nsteps"]
    (True, 10)
    """

    implicit = True

    def __init__(self, system: DynamicsFunction, dt: Optional[ScalarLike] = None, **options):
        super().__init__(system, dt, StepMode.ADAPTIVE, **options)

        self.newton_tol = options.get("newton_tol", 1e-3)
        self.max_newton_iterations = options.get("max_newton_iterations", 7)
        self.jacobian: Optional[JacobianFunction] = options.get("jacobian", None)

        if self.newton_tol <= 0:
            raise ValueError(f"newton_tol must be positive, got {self.newton_tol}")
        if self.max_newton_iterations < 1:
            raise ValueError(
                f"max_newton_iterations must be at least 1, got {self.max_newton_iterations}"
            )
        if self.jacobian is not None and not callable(self.jacobian):
            raise TypeError("jacobian must be callable jac(x, u)")

    # ========================================================================
    # Newton Machinery
    # ========================================================================

    def _evaluate_jacobian(
        self, x: StateVector, u: Optional[ControlVector], run: Optional[IntegrationRun]
    ) -> StateMatrix:
        """∂f/∂x at (x, u), analytic if available, forward differences otherwise."""
        self._stats["total_jev"] += 1
        if run is not None:
            run.njev += 1

        nx = x.size
        if self.jacobian is not None:
            return np.asarray(self.jacobian(x, u), dtype=float).reshape(nx, nx)

        f0 = self._evaluate_dynamics(x, u, run)
        J = np.empty((nx, nx))
        for k in range(nx):
            delta = np.sqrt(np.finfo(float).eps) * max(1.0, abs(x[k]))
            x_pert = x.copy()
            x_pert[k] += delta
            J[:, k] = (self._evaluate_dynamics(x_pert, u, run) - f0) / delta
        return J

    def _attempt(
        self,
        x: StateVector,
        u: Optional[ControlVector],
        h: float,
        J: StateMatrix,
        run: Optional[IntegrationRun],
    ) -> Tuple[Optional[StateVector], str]:
        """
        Solve the stage equations for one step of size h.

        Returns
        -------
        x_new : Optional[StateVector]
            x + Z_3 on Newton convergence, None otherwise
        reason : str
            Why the attempt failed (empty on success)

        Raises
        ------
        SingularMatrixError
            If the Newton matrix cannot be factored
        """
        nx = x.size
        M = np.eye(3 * nx) - h * np.kron(RADAU_A, J)
        factors = lu_factor(M)
        self._stats["total_lu"] += 1
        if run is not None:
            run.nlu += 1

        scale = np.tile(self.atol + self.rtol * np.abs(x), 3)
        Z = np.zeros((3, nx))
        for _ in range(self.max_newton_iterations):
            F = np.stack([self._evaluate_dynamics(x + Z[i], u, run) for i in range(3)])
            residual = Z.ravel() - h * (RADAU_A @ F).ravel()
            delta = lu_solve(factors, -residual)

            norm = float(np.max(np.abs(delta) / scale)) if nx else 0.0
            if not np.isfinite(norm):
                return None, "non-finite Newton iterate"

            Z = Z + delta.reshape(3, nx)
            if norm <= self.newton_tol:
                return x + Z[2], ""

        return None, f"Newton iteration did not converge in {self.max_newton_iterations} iterations"

    def step(
        self, x: StateVector, u: Optional[ControlVector] = None, dt: Optional[ScalarLike] = None
    ) -> StateVector:
        """
        One Radau IIA step of size dt without step-size adaptation.

        Raises
        ------
        IntegrationError
            If the Newton iteration fails or the Newton matrix is singular
        """
        dt = dt if dt is not None else self.dt
        x = np.asarray(x, dtype=float).reshape(-1)
        J = self._evaluate_jacobian(x, u, None)
        try:
            x_new, reason = self._attempt(x, u, dt, J, None)
        except SingularMatrixError as exc:
            raise IntegrationError(
                f"{self.name} step failed: {exc}", SolverStatus.FAILED, str(exc)
            ) from exc
        if x_new is None:
            raise IntegrationError(f"{self.name} step failed: {reason}", SolverStatus.FAILED, reason)
        self._accept_step(None)
        return x_new

    def _generate(
        self,
        run: IntegrationRun,
        x0: StateVector,
        u_func: ControlPolicy,
        t_span: TimeSpan,
        t_eval: Optional[np.ndarray],
    ) -> Iterator[IntegrationSample]:
        schedule = OutputSchedule(t_span, t_eval)
        t, tf = t_span
        x = x0
        h_nominal = min(self.dt, self.max_step)
        h = h_nominal

        run.status = SolverStatus.STEPPING
        if schedule.includes_start:
            yield IntegrationSample(t, x)

        attempts = 0
        while t < tf and not schedule.finished:
            u = u_func(t, x)
            J = self._evaluate_jacobian(x, u, run)

            # Retry the same step with halved sizes until Newton converges
            while True:
                if attempts >= self.max_steps:
                    run.fail(f"maximum number of steps ({self.max_steps}) exceeded at t={t:.6g}")
                    return
                attempts += 1

                target = schedule.target()
                h_try, lands = schedule.clip(t, h)
                try:
                    x_new, reason = self._attempt(x, u, h_try, J, run)
                except SingularMatrixError as exc:
                    run.fail(f"singular Newton matrix at t={t:.6g}: {exc}")
                    return

                if x_new is not None:
                    break

                self._reject_step(run)
                h = h_try / 2
                if h < self.min_step:
                    run.fail(
                        f"{reason}; step size {h:.3e} fell below min_step "
                        f"{self.min_step:.3e} at t={t:.6g}"
                    )
                    return

            t = target if lands else t + h_try
            x = x_new
            self._accept_step(run)
            if schedule.landed(t):
                yield IntegrationSample(t, x)

            h = min(2 * h, h_nominal)

        run.status = SolverStatus.TIME_LIMIT_REACHED

    @property
    def name(self) -> str:
        return "Radau IIA (order 5)"


__all__ = ["RadauIntegrator", "RADAU_A", "RADAU_C"]

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
Adaptive Integrators - Runge-Kutta-Fehlberg 4(5)

Embedded explicit Runge-Kutta pair with local error control. Each attempt
computes a 4th- and a 5th-order solution from the same six stages; their
difference estimates the local error of the 4th-order solution, which is
the one propagated.

Step-size control:
- err = max_i |x5_i - x4_i| / (atol + rtol·max(|x_i|, |x4_i|))
- err <= 1: accept, grow h by safety·err^(-1/5) (at most ×5)
- err > 1:  reject, shrink h by safety·err^(-1/5) (at least ×0.2)
- steps are clipped to land exactly on t_eval points and t_end

Termination:
- TIME_LIMIT_REACHED on arriving at t_end, or at the last t_eval point
  when t_eval ends earlier
- FAILED when a rejected step shrinks below min_step or max_steps
  attempts are exhausted
"""

from typing import Iterator, Optional, Tuple

import numpy as np

from lticore.numerical_integration.integrator_base import (
    IntegrationRun,
    IntegratorBase,
    OutputSchedule,
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

# ============================================================================
# Fehlberg Tableau
# ============================================================================

RKF45_C = np.array([0.0, 1 / 4, 3 / 8, 12 / 13, 1.0, 1 / 2])

RKF45_A = [
    [],
    [1 / 4],
    [3 / 32, 9 / 32],
    [1932 / 2197, -7200 / 2197, 7296 / 2197],
    [439 / 216, -8.0, 3680 / 513, -845 / 4104],
    [-8 / 27, 2.0, -3544 / 2565, 1859 / 4104, -11 / 40],
]

# 4th-order (propagated) and 5th-order (error reference) weights
RKF45_B4 = np.array([25 / 216, 0.0, 1408 / 2565, 2197 / 4104, -1 / 5, 0.0])
RKF45_B5 = np.array([16 / 135, 0.0, 6656 / 12825, 28561 / 56430, -9 / 50, 2 / 55])

MIN_FACTOR = 0.2
MAX_FACTOR = 5.0


class RKF45Integrator(IntegratorBase):
    """
    Runge-Kutta-Fehlberg 4(5) integrator with adaptive step size.

    Parameters
    ----------
    system : DynamicsFunction
        Vector field f(x, u)
    dt : Optional[float]
        Initial step size (default 0.01)
    **options
        rtol, atol, max_steps, min_step, max_step, safety

    Examples
    --------
    >>> loose = RKF45Integrator(lambda x, u: -x, rtol=1e-3, atol=1e-6)
    >>> tight = RKF45Integrator(lambda x, u: -x, rtol=1e-10, atol=1e-12)
    >>> r1 = loose.integrate(np.array([1.0]), lambda t, x: None, (0.0, 1.0))
    >>> r2 = tight.integrate(np.array([1.0]), lambda t, x: None, (0.0, 1.0))
    >>> r1["nsteps"] < r2["nsteps"]
    True
    >>> r2["status"]
    'time_limit_reached'
    """

    def __init__(self, system: DynamicsFunction, dt: Optional[ScalarLike] = None, **options):
        super().__init__(system, dt, StepMode.ADAPTIVE, **options)

    def _fehlberg(
        self,
        x: StateVector,
        u: Optional[ControlVector],
        h: float,
        run: Optional[IntegrationRun],
    ) -> Tuple[StateVector, StateVector]:
        """Six-stage attempt; returns (4th-order, 5th-order) solutions."""
        k = []
        for row in RKF45_A:
            x_stage = x
            for a_ij, k_j in zip(row, k):
                x_stage = x_stage + h * a_ij * k_j
            k.append(self._evaluate_dynamics(x_stage, u, run))

        k = np.stack(k)
        x4 = x + h * (RKF45_B4 @ k)
        x5 = x + h * (RKF45_B5 @ k)
        return x4, x5

    def step(
        self, x: StateVector, u: Optional[ControlVector] = None, dt: Optional[ScalarLike] = None
    ) -> StateVector:
        """
        One uncontrolled Fehlberg step of size dt (4th-order solution).

        Use integrate() or samples() for error-controlled stepping.
        """
        dt = dt if dt is not None else self.dt
        x4, _ = self._fehlberg(np.asarray(x, dtype=float), u, dt, None)
        self._accept_step(None)
        return x4

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
        h = min(self.dt, self.max_step)

        run.status = SolverStatus.STEPPING
        if schedule.includes_start:
            yield IntegrationSample(t, x)

        attempts = 0
        while t < tf and not schedule.finished:
            if attempts >= self.max_steps:
                run.fail(f"maximum number of steps ({self.max_steps}) exceeded at t={t:.6g}")
                return
            attempts += 1

            target = schedule.target()
            h_try, lands = schedule.clip(t, h)
            u = u_func(t, x)
            x4, x5 = self._fehlberg(x, u, h_try, run)
            err = self._error_norm(x5 - x4, x, x4)

            if err <= 1.0:
                t = target if lands else t + h_try
                x = x4
                run.error_estimate = float(err)
                self._accept_step(run)
                if schedule.landed(t):
                    yield IntegrationSample(t, x)

                # a clipped step says nothing about the natural step size
                if h_try >= h:
                    factor = MAX_FACTOR if err == 0 else min(MAX_FACTOR, self.safety * err**-0.2)
                    h = min(h * factor, self.max_step)
            else:
                self._reject_step(run)
                if np.isfinite(err):
                    factor = max(MIN_FACTOR, self.safety * err**-0.2)
                else:
                    factor = MIN_FACTOR
                h = h_try * factor
                if h < self.min_step:
                    run.fail(
                        f"step size {h:.3e} fell below min_step {self.min_step:.3e} at t={t:.6g}"
                    )
                    return

        run.status = SolverStatus.TIME_LIMIT_REACHED

    @property
    def name(self) -> str:
        return "RKF45 (Adaptive)"


__all__ = ["RKF45Integrator", "RKF45_A", "RKF45_B4", "RKF45_B5", "RKF45_C"]

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
Trajectory and Sample Types

Defines types for time series produced by the ODE integration core:
- Time arrays and spans
- Single samples streamed lazily by integrators and linear systems
- Integration results collected from those streams
- Recognized integrator options

Shape Conventions:
- Time points: (T,)
- State trajectory: (T, nx), time-major
- Output trajectory: (T, ny)

Usage
-----
>>> from lticore.types.trajectories import IntegrationResult, TimeSpan
>>>
>>> t_span: TimeSpan = (0.0, 1.0)
>>> result: IntegrationResult = integrator.integrate(x0, u_func, t_span)
>>> x_final = result["x"][-1]
"""

from typing import Any, Callable, NamedTuple, Tuple

import numpy as np
from typing_extensions import TypedDict

from .core import ArrayLike, OutputVector, StateVector

# ============================================================================
# Time Types
# ============================================================================

TimePoints = ArrayLike
"""
Array of time instants (T,), strictly increasing.

Examples
--------
>>> t_eval: TimePoints = np.linspace(0.0, 1.0, 101)
"""

TimeSpan = Tuple[float, float]
"""
Integration interval (t_start, t_end) with t_end > t_start.

For step-controlled integrators t_end is the time limit.
"""


# ============================================================================
# Lazy Samples
# ============================================================================


class IntegrationSample(NamedTuple):
    """
    One (time, state) pair yielded by IntegratorBase.samples().

    Examples
    --------
    >>> for t, x in integrator.samples(x0, u_func, (0.0, 1.0)):
    ...     if t > 0.5:
    ...         break
    """

    t: float
    x: StateVector


class EvolutionSample(NamedTuple):
    """
    One sample of a linear system time evolution.

    Attributes
    ----------
    time : float
        Simulation time; for discrete systems k·sampling_time, or the
        step index k when no sampling time is set
    state : StateVector
        State vector x (nx,)
    output : OutputVector
        Output vector y = Cx + Du (ny,)
    """

    time: float
    state: StateVector
    output: OutputVector


# ============================================================================
# Integration Results
# ============================================================================


class IntegrationResult(TypedDict, total=False):
    """
    Result collected from an integrator's sample stream.

    Attributes
    ----------
    t : np.ndarray
        Time points (T,)
    x : np.ndarray
        State trajectory (T, nx) - time-major ordering
    success : bool
        True if the integrator reached a non-failed terminal state
    message : str
        Status message
    status : str
        Terminal SolverStatus value
    nfev : int
        Number of function evaluations
    nsteps : int
        Number of accepted integration steps
    integration_time : float
        Wall-clock computation time in seconds
    solver : str
        Name of solver used

    Optional Fields
    ---------------
    y : np.ndarray
        Output trajectory (T, ny) for linear systems
    nrejected : int
        Rejected steps (step-controlled integrators)
    njev : int
        Number of Jacobian evaluations (implicit integrators)
    nlu : int
        Number of LU decompositions (implicit integrators)

    Examples
    --------
    >>> result: IntegrationResult = integrator.integrate(
    ...     x0=np.array([1.0]),
    ...     u_func=lambda t, x: None,
    ...     t_span=(0.0, 1.0)
    ... )
    >>> if result["success"]:
    ...     print(f"{result['nsteps']} steps, {result['nfev']} evaluations")
    """

    t: np.ndarray
    x: np.ndarray
    success: bool
    message: str
    status: str
    nfev: int
    nsteps: int
    integration_time: float
    solver: str
    # Optional fields
    y: np.ndarray
    nrejected: int
    njev: int
    nlu: int


class IntegratorOptions(TypedDict, total=False):
    """
    Keyword options recognized by the integrators.

    Fields
    ------
    rtol : float
        Relative tolerance (step-controlled, default 1e-6)
    atol : float
        Absolute tolerance (step-controlled, default 1e-8)
    max_steps : int
        Maximum number of attempted steps (default 10000)
    min_step : float
        Step size floor; falling below it fails the run (default 1e-12)
    max_step : float
        Step size ceiling (default: unbounded)
    safety : float
        Safety factor of the step-size controller (default 0.9)
    newton_tol : float
        Radau Newton convergence threshold, scaled by rtol/atol (default 1e-3)
    max_newton_iterations : int
        Radau Newton iteration cap per attempt (default 7)
    jacobian : Callable
        Analytic Jacobian jac(x, u) for Radau (default: finite differences)

    Examples
    --------
    >>> options: IntegratorOptions = {"rtol": 1e-8, "atol": 1e-10}
    >>> integrator = RKF45Integrator(system, dt=0.01, **options)
    """

    rtol: float
    atol: float
    max_steps: int
    min_step: float
    max_step: float
    safety: float
    newton_tol: float
    max_newton_iterations: int
    jacobian: Callable[..., Any]


__all__ = [
    "TimePoints",
    "TimeSpan",
    "IntegrationSample",
    "EvolutionSample",
    "IntegrationResult",
    "IntegratorOptions",
]

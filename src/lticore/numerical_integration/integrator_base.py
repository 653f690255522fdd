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
Integrator Base - Abstract Interface for Numerical Integration

Provides a unified interface for integrating time-invariant vector fields
ẋ = f(x, u) with fixed-step, step-controlled, and implicit methods.

Every integration run is a lazy, finite stream of (t, x) samples driven
by a small state machine:

    NOT_STARTED → STEPPING → CONVERGED            (fixed grid consumed)
                           → TIME_LIMIT_REACHED   (step-controlled, t_end reached)
                           → FAILED               (step underflow, Newton failure, ...)

samples() returns a fresh stream on every call, so a run can be restarted
from scratch but never resumed mid-stream. A consumer that stops pulling
samples cancels the remaining work. integrate() drains a stream into an
IntegrationResult TypedDict.

Failures are reported as data (status FAILED, success=False, message)
rather than raised, so callers decide whether to retry with other
options or escalate.
"""

import time
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, Iterator, Optional, Tuple

import numpy as np

from lticore.types.core import (
    ControlPolicy,
    ControlVector,
    DynamicsFunction,
    ScalarLike,
    StateVector,
)
from lticore.types.trajectories import (
    IntegrationResult,
    IntegrationSample,
    TimePoints,
    TimeSpan,
)


class StepMode(Enum):
    """
    Integration step mode.

    Attributes
    ----------
    FIXED : str
        Fixed time step - integrator uses constant dt
        Best for: Real-time systems, discrete controllers, simple ODEs

    ADAPTIVE : str
        Step-controlled - integrator adjusts dt (error estimate or
        Newton convergence); dt is the initial or nominal step
        Best for: Stiff systems, high accuracy requirements, variable dynamics
    """

    FIXED = "fixed"
    ADAPTIVE = "adaptive"


class SolverStatus(Enum):
    """
    State of an integration run.

    Attributes
    ----------
    NOT_STARTED : str
        Stream created, no sample produced yet
    STEPPING : str
        Samples are being produced
    CONVERGED : str
        Fixed-step run consumed its whole time grid
    FAILED : str
        Run aborted; see IntegrationRun.failure_reason
    TIME_LIMIT_REACHED : str
        Step-controlled run arrived at the end of the time span, or at
        its last t_eval point
    """

    NOT_STARTED = "not_started"
    STEPPING = "stepping"
    CONVERGED = "converged"
    FAILED = "failed"
    TIME_LIMIT_REACHED = "time_limit_reached"

    @property
    def is_terminal(self) -> bool:
        return self in (
            SolverStatus.CONVERGED,
            SolverStatus.FAILED,
            SolverStatus.TIME_LIMIT_REACHED,
        )


class IntegrationRun:
    """
    Lazy sample stream of one integration run.

    Iterating yields IntegrationSample(t, x) values. Run-level diagnostics
    are updated as the stream advances.

    Attributes
    ----------
    status : SolverStatus
        Current state of the run
    failure_reason : str
        Why the run failed (empty unless status is FAILED)
    nfev : int
        Function evaluations of this run
    nsteps : int
        Accepted steps of this run
    nrejected : int
        Rejected or retried steps
    njev : int
        Jacobian evaluations
    nlu : int
        LU decompositions
    error_estimate : float or None
        Scaled local error estimate of the last accepted step (methods
        with an embedded error estimate; <= 1 means within tolerance)

    Examples
    --------
    >>> run = integrator.samples(x0, lambda t, x: None, (0.0, 1.0))
    >>> for t, x in run:
    ...     if np.linalg.norm(x) < 1e-3:
    ...         break
    >>> run.status
    <SolverStatus.STEPPING: 'stepping'>
    """

    def __init__(self, stream_factory):
        self.status = SolverStatus.NOT_STARTED
        self.failure_reason = ""
        self.nfev = 0
        self.nsteps = 0
        self.nrejected = 0
        self.njev = 0
        self.nlu = 0
        self.error_estimate: Optional[float] = None
        self._stream = stream_factory(self)

    def __iter__(self) -> Iterator[IntegrationSample]:
        return self

    def __next__(self) -> IntegrationSample:
        return next(self._stream)

    def fail(self, reason: str):
        """Move the run to FAILED with the given reason."""
        self.status = SolverStatus.FAILED
        self.failure_reason = reason


class OutputSchedule:
    """
    Landing points of a step-controlled run.

    Steps are clipped so that every t_eval point and t_end are hit
    exactly. Without t_eval every accepted step is an output.
    """

    def __init__(self, t_span: TimeSpan, t_eval: Optional[np.ndarray]):
        self.t0, self.tf = t_span
        self._stops = [] if t_eval is None else [float(t) for t in t_eval]
        self._every_step = t_eval is None
        self._index = 0
        if self._stops and self._stops[0] == self.t0:
            self._index = 1

    @property
    def includes_start(self) -> bool:
        return self._every_step or self._index == 1

    @property
    def finished(self) -> bool:
        """True once every t_eval point has been emitted; never without t_eval."""
        return not self._every_step and self._index >= len(self._stops)

    def target(self) -> float:
        """Next time the run must land on."""
        if self._index < len(self._stops):
            return self._stops[self._index]
        return self.tf

    def clip(self, t: float, h: float) -> Tuple[float, bool]:
        """
        Step from t of size at most h towards the next target.

        Returns (h_try, lands); steps within a relative 1e-9 of the target
        are stretched onto it so rounding never leaves a sliver step.
        """
        remaining = self.target() - t
        if remaining <= h * (1 + 1e-9):
            return remaining, True
        return h, False

    def landed(self, t: float) -> bool:
        """Record arrival at t; True if a sample must be emitted there."""
        if self._every_step:
            return True
        if self._index < len(self._stops) and t == self._stops[self._index]:
            self._index += 1
            return True
        return False


class IntegratorBase(ABC):
    """
    Abstract base class for numerical integrators.

    Integrates time-invariant systems ẋ = f(x, u) where the control input
    is supplied by a policy u(t, x) and held constant over each step.

    Subclasses implement:
    - step(): Single integration step
    - _generate(): Sample stream of a run
    - name: Integrator name for display

    Result Types
    ------------
    integrate() returns an IntegrationResult TypedDict with:
    - t: Time points (T,)
    - x: State trajectory (T, nx)
    - success: Run did not fail
    - message: Status message
    - status: Terminal SolverStatus value
    - nfev: Number of function evaluations
    - nsteps: Number of accepted steps
    - integration_time: Computation time
    - solver: Integrator name

    Examples
    --------
    >>> # Create integrator
    >>> integrator = RK4Integrator(lambda x, u: -x, dt=0.01)
    >>>
    >>> # Single step
    >>> x_next = integrator.step(np.array([1.0]), None)
    >>>
    >>> # Multi-step integration
    >>> result = integrator.integrate(
    ...     x0=np.array([1.0]),
    ...     u_func=lambda t, x: None,
    ...     t_span=(0.0, 1.0)
    ... )
    >>> t, x_traj = result["t"], result["x"]
    >>> print(f"Steps: {result['nsteps']}, Function evals: {result['nfev']}")
    """

    # Implicit integrators additionally report njev/nlu
    implicit = False

    def __init__(
        self,
        system: DynamicsFunction,
        dt: Optional[ScalarLike] = None,
        step_mode: StepMode = StepMode.FIXED,
        **options,
    ):
        """
        Initialize integrator.

        Parameters
        ----------
        system : DynamicsFunction
            Vector field f(x, u) -> dx/dt (u is None for autonomous systems)
        dt : Optional[float]
            Time step:
            - FIXED mode: Required, constant step size
            - ADAPTIVE mode: Initial (or nominal) step, default 0.01
        step_mode : StepMode
            FIXED or ADAPTIVE stepping
        **options : dict
            Integrator-specific options (see IntegratorOptions):
            - rtol : float
                Relative tolerance (default: 1e-6)
            - atol : float
                Absolute tolerance (default: 1e-8)
            - max_steps : int
                Maximum number of attempted steps (default: 10000)
            - min_step : float
                Minimum step size (default: 1e-12)
            - max_step : float
                Maximum step size (default: unbounded)
            - safety : float
                Step-size controller safety factor (default: 0.9)

        Raises
        ------
        ValueError
            If FIXED mode specified without dt, or an option is out of range
        TypeError
            If system is not callable
        """
        if not callable(system):
            raise TypeError(f"system must be callable f(x, u), got {type(system).__name__}")

        self.system = system
        self.dt = dt
        self.step_mode = step_mode
        self.options = options

        # Validate
        if step_mode == StepMode.FIXED and dt is None:
            raise ValueError(
                "Time step dt is required for FIXED step mode. " "Specify dt in constructor."
            )

        if step_mode == StepMode.ADAPTIVE and dt is None:
            # Reasonable default initial guess
            self.dt = 0.01

        if self.dt <= 0:
            raise ValueError(f"Time step dt must be positive, got {self.dt}")

        # Extract common options
        self.rtol = options.get("rtol", 1e-6)
        self.atol = options.get("atol", 1e-8)
        self.max_steps = options.get("max_steps", 10000)
        self.min_step = options.get("min_step", 1e-12)
        self.max_step = options.get("max_step", np.inf)
        self.safety = options.get("safety", 0.9)

        if self.rtol <= 0 or self.atol < 0:
            raise ValueError(f"Tolerances must satisfy rtol > 0, atol >= 0 (got {self.rtol}, {self.atol})")
        if self.max_steps < 1:
            raise ValueError(f"max_steps must be at least 1, got {self.max_steps}")
        if not 0 < self.safety <= 1:
            raise ValueError(f"safety must be in (0, 1], got {self.safety}")

        # Statistics
        self._stats = {
            "total_steps": 0,
            "total_fev": 0,  # Function evaluations
            "total_time": 0.0,
            "rejected_steps": 0,
            "total_jev": 0,  # Jacobian evaluations
            "total_lu": 0,  # LU decompositions
        }

    @abstractmethod
    def step(
        self, x: StateVector, u: Optional[ControlVector] = None, dt: Optional[ScalarLike] = None
    ) -> StateVector:
        """
        Take one integration step: x(t) → x(t + dt).

        Parameters
        ----------
        x : StateVector
            Current state (nx,)
        u : Optional[ControlVector]
            Control input (nu,), held constant over the step
        dt : Optional[float]
            Step size (uses self.dt if None)

        Returns
        -------
        StateVector
            Next state x(t + dt)

        Examples
        --------
        >>> x = np.array([1.0, 0.0])
        >>> u = np.array([0.5])
        >>> x_next = integrator.step(x, u)
        >>> x_next.shape
        (2,)
        """
        pass

    @abstractmethod
    def _generate(
        self,
        run: IntegrationRun,
        x0: StateVector,
        u_func: ControlPolicy,
        t_span: TimeSpan,
        t_eval: Optional[np.ndarray],
    ) -> Iterator[IntegrationSample]:
        """Generator body of a run; updates run.status and run counters."""
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """
        Get integrator name for display.

        Examples
        --------
        >>> integrator.name
        'RK4'
        """
        pass

    # ========================================================================
    # Sample Streams and Collected Results
    # ========================================================================

    def samples(
        self,
        x0: StateVector,
        u_func: ControlPolicy,
        t_span: TimeSpan,
        t_eval: Optional[TimePoints] = None,
    ) -> IntegrationRun:
        """
        Lazy stream of (t, x) samples over the time span.

        Parameters
        ----------
        x0 : StateVector
            Initial state (nx,)
        u_func : Callable[[float, StateVector], Optional[ControlVector]]
            Control policy: (t, x) → u
            - Constant control: lambda t, x: u_const
            - State feedback: lambda t, x: -K @ x
            - Autonomous: lambda t, x: None
        t_span : Tuple[float, float]
            Integration interval (t_start, t_end), t_end > t_start
        t_eval : Optional[ArrayLike]
            Increasing times within t_span at which samples are produced.
            If None:
            - FIXED mode: t = t_start + k*dt grid
            - ADAPTIVE mode: every accepted step

        Returns
        -------
        IntegrationRun
            Fresh iterator of IntegrationSample; inspect .status after
            exhausting it

        Raises
        ------
        ValueError
            If t_span or t_eval is invalid
        """
        t0, tf = float(t_span[0]), float(t_span[1])
        if not tf > t0:
            raise ValueError(f"t_span must satisfy t_end > t_start, got {t_span}")

        if t_eval is not None:
            t_eval = np.asarray(t_eval, dtype=float)
            if t_eval.ndim != 1 or t_eval.size == 0:
                raise ValueError("t_eval must be a non-empty one-dimensional array")
            if np.any(np.diff(t_eval) <= 0):
                raise ValueError("t_eval must be strictly increasing")
            if t_eval[0] < t0 or t_eval[-1] > tf:
                raise ValueError(f"t_eval must lie within t_span {t_span}")

        x0 = np.array(x0, dtype=float).reshape(-1)
        return IntegrationRun(lambda run: self._generate(run, x0, u_func, (t0, tf), t_eval))

    def integrate(
        self,
        x0: StateVector,
        u_func: ControlPolicy,
        t_span: TimeSpan,
        t_eval: Optional[TimePoints] = None,
    ) -> IntegrationResult:
        """
        Integrate over time interval with control policy.

        Drains samples() into arrays.

        Returns
        -------
        IntegrationResult
            TypedDict containing:
            - t: Time points (T,)
            - x: State trajectory (T, nx)
            - success: Whether integration succeeded
            - message: Status message
            - status: Terminal SolverStatus value
            - nfev: Number of function evaluations
            - nsteps: Number of steps taken
            - integration_time: Computation time (seconds)
            - solver: Integrator name
            - nrejected: Rejected steps (ADAPTIVE mode)
            - njev, nlu: Jacobian/LU counts (implicit integrators)

        Examples
        --------
        >>> result = integrator.integrate(
        ...     x0=np.array([1.0, 0.0]),
        ...     u_func=lambda t, x: np.zeros(1),
        ...     t_span=(0.0, 10.0)
        ... )
        >>> print(f"Final state: {result['x'][-1]}")
        >>>
        >>> # Evaluate at specific times
        >>> t_eval = np.linspace(0, 10, 1001)
        >>> result = integrator.integrate(x0, u_func, (0, 10), t_eval=t_eval)
        >>> assert len(result["t"]) == 1001
        """
        start_time = time.time()

        run = self.samples(x0, u_func, t_span, t_eval)
        times = []
        states = []
        for t, x in run:
            times.append(t)
            states.append(x)

        elapsed = time.time() - start_time
        self._stats["total_time"] += elapsed

        nx = np.asarray(x0).size
        success = run.status != SolverStatus.FAILED
        if success:
            message = f"{self.name} integration completed ({run.status.value})"
        else:
            message = f"{self.name} integration failed: {run.failure_reason}"

        # Create TypedDict result
        result: IntegrationResult = {
            "t": np.asarray(times, dtype=float),
            "x": np.stack(states) if states else np.zeros((0, nx)),
            "success": success,
            "message": message,
            "status": run.status.value,
            "nfev": run.nfev,
            "nsteps": run.nsteps,
            "integration_time": elapsed,
            "solver": self.name,
        }
        if self.step_mode == StepMode.ADAPTIVE:
            result["nrejected"] = run.nrejected
        if self.implicit:
            result["njev"] = run.njev
            result["nlu"] = run.nlu

        return result

    # ========================================================================
    # Common Utilities (Shared by All Integrators)
    # ========================================================================

    def _evaluate_dynamics(
        self, x: StateVector, u: Optional[ControlVector], run: Optional[IntegrationRun] = None
    ) -> StateVector:
        """
        Evaluate system dynamics with statistics tracking.

        Notes
        -----
        This wrapper counts function evaluations for performance analysis.
        """
        self._stats["total_fev"] += 1
        if run is not None:
            run.nfev += 1
        return np.asarray(self.system(x, u), dtype=float)

    def _accept_step(self, run: Optional[IntegrationRun]):
        self._stats["total_steps"] += 1
        if run is not None:
            run.nsteps += 1

    def _reject_step(self, run: Optional[IntegrationRun]):
        self._stats["rejected_steps"] += 1
        if run is not None:
            run.nrejected += 1

    def _error_norm(self, error: np.ndarray, x: StateVector, x_new: StateVector) -> float:
        """Mixed absolute/relative max-norm: max |e_i| / (atol + rtol·max(|x_i|, |x_new_i|))."""
        if error.size == 0:
            return 0.0
        scale = self.atol + self.rtol * np.maximum(np.abs(x), np.abs(x_new))
        return float(np.max(np.abs(error) / scale))

    def get_stats(self) -> Dict[str, Any]:
        """
        Get integration statistics.

        Returns
        -------
        dict
            Statistics with keys:
            - 'total_steps': Total accepted integration steps
            - 'total_fev': Total function evaluations
            - 'total_time': Total integration time
            - 'rejected_steps': Rejected or retried steps
            - 'total_jev': Jacobian evaluations
            - 'total_lu': LU decompositions
            - 'avg_fev_per_step': Average function evaluations per step

        Examples
        --------
        >>> result = integrator.integrate(x0, u_func, (0, 10))
        >>> stats = integrator.get_stats()
        >>> print(f"Evals/step: {stats['avg_fev_per_step']:.1f}")
        """
        avg_fev = self._stats["total_fev"] / max(1, self._stats["total_steps"])

        return {
            **self._stats,
            "avg_fev_per_step": avg_fev,
        }

    def reset_stats(self):
        """
        Reset integration statistics to zero.

        Examples
        --------
        >>> integrator.reset_stats()
        >>> integrator.get_stats()['total_steps']
        0
        """
        for key in self._stats:
            self._stats[key] = 0.0 if key == "total_time" else 0

    def __repr__(self) -> str:
        """String representation for debugging"""
        return f"{self.__class__.__name__}(" f"dt={self.dt}, mode={self.step_mode.value})"

    def __str__(self) -> str:
        """Human-readable string"""
        return f"{self.name} (dt={self.dt:.4f})"

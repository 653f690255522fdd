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
State-Space Model

Linear time-invariant systems in state-space form:

    Continuous:  ẋ = A·x + B·u,        y = C·x + D·u
    Discrete:    x[k+1] = A·x[k] + B·u[k],  y[k] = C·x[k] + D·u[k]

Provides:
- Realization of a transfer function in controllability canonical form
  and the way back through Faddeev-LeVerrier (SISO and MIMO)
- Controllability and observability matrices, poles, stability
- Equilibrium for a constant input
- Euler and Tustin discretization
- Lazy time evolution through the numerical integrators (continuous) or
  the difference equation (discrete)

Examples
--------
>>> G = TransferFunction([1.0], [2.0, 3.0, 1.0])
>>> ss = StateSpace.from_transfer_function(G)
>>> ss.A
array([[ 0.,  1.],
       [-2., -3.]])
>>> ss.to_transfer_function() == G
True
"""

import warnings
from typing import Iterable, Iterator, List, NamedTuple, Optional, Union

import numpy as np

from lticore.exceptions import (
    DimensionMismatchError,
    ImproperTransferFunctionError,
    IntegrationError,
)
from lticore.numerical_integration.integrator_base import SolverStatus
from lticore.numerical_integration.integrator_factory import create_integrator
from lticore.numerics.linalg import eigenvalues, faddeev_leverrier, solve
from lticore.polynomial.polynomial import Polynomial
from lticore.systems.transfer_function import TransferFunction, poles_inside_boundary
from lticore.types.core import (
    ArrayLike,
    ControllabilityMatrix,
    ControlVector,
    FeedthroughMatrix,
    InputMatrix,
    InputSignal,
    ObservabilityMatrix,
    OutputMatrix,
    OutputVector,
    RootVector,
    StateMatrix,
    StateVector,
    TimeDomain,
    as_time_domain,
)
from lticore.types.trajectories import (
    EvolutionSample,
    IntegrationResult,
    TimePoints,
    TimeSpan,
)


class Equilibrium(NamedTuple):
    """
    Equilibrium of a linear system for a constant input.

    Attributes
    ----------
    x : StateVector
        Equilibrium state (nx,)
    y : OutputVector
        Output at the equilibrium (ny,)
    """

    x: StateVector
    y: OutputVector


def _as_matrix(M: ArrayLike, name: str) -> np.ndarray:
    arr = np.asarray(M)
    if np.iscomplexobj(arr):
        raise ValueError(f"{name} must be real, got complex entries")
    arr = np.array(arr, dtype=float)
    if arr.ndim == 0:
        arr = arr.reshape(1, 1)
    if arr.ndim != 2:
        raise DimensionMismatchError(f"{name} must be two-dimensional, got shape {arr.shape}")
    arr.flags.writeable = False
    return arr


class StateSpace:
    """
    State-space linear system (A, B, C, D).

    Parameters
    ----------
    A : ArrayLike
        State matrix (n, n)
    B : ArrayLike
        Input matrix (n, m)
    C : ArrayLike
        Output matrix (p, n)
    D : Optional[ArrayLike]
        Feedthrough matrix (p, m), zeros if None
    time_domain : TimeDomain or str
        CONTINUOUS (default) or DISCRETE
    sampling_time : Optional[float]
        Sampling period of a discrete system

    Raises
    ------
    DimensionMismatchError
        If the matrix shapes do not conform

    Notes
    -----
    n = 0 is allowed and describes a static gain y = D·u; pass
    A = np.zeros((0, 0)), B = np.zeros((0, m)), C = np.zeros((p, 0)).
    The matrices are read-only.
    """

    def __init__(
        self,
        A: ArrayLike,
        B: ArrayLike,
        C: ArrayLike,
        D: Optional[ArrayLike] = None,
        time_domain: Union[TimeDomain, str] = TimeDomain.CONTINUOUS,
        sampling_time: Optional[float] = None,
    ):
        A = _as_matrix(A, "A")
        B = _as_matrix(B, "B")
        C = _as_matrix(C, "C")

        n = A.shape[0]
        if A.shape != (n, n):
            raise DimensionMismatchError(f"A must be square, got shape {A.shape}")
        if B.shape[0] != n:
            raise DimensionMismatchError(f"B must have {n} rows, got shape {B.shape}")
        if C.shape[1] != n:
            raise DimensionMismatchError(f"C must have {n} columns, got shape {C.shape}")

        m, p = B.shape[1], C.shape[0]
        if D is None:
            D = np.zeros((p, m))
        D = _as_matrix(D, "D")
        if D.shape != (p, m):
            raise DimensionMismatchError(f"D must have shape {(p, m)}, got {D.shape}")

        self._A, self._B, self._C, self._D = A, B, C, D

        self._time_domain = as_time_domain(time_domain)
        if sampling_time is not None:
            if self._time_domain == TimeDomain.CONTINUOUS:
                raise ValueError("sampling_time is only meaningful for discrete systems")
            sampling_time = float(sampling_time)
            if not sampling_time > 0:
                raise ValueError(f"sampling_time must be positive, got {sampling_time}")
        self._sampling_time = sampling_time

    # ========================================================================
    # Properties
    # ========================================================================

    @property
    def A(self) -> StateMatrix:
        return self._A

    @property
    def B(self) -> InputMatrix:
        return self._B

    @property
    def C(self) -> OutputMatrix:
        return self._C

    @property
    def D(self) -> FeedthroughMatrix:
        return self._D

    @property
    def nx(self) -> int:
        """Number of states."""
        return self._A.shape[0]

    @property
    def nu(self) -> int:
        """Number of inputs."""
        return self._B.shape[1]

    @property
    def ny(self) -> int:
        """Number of outputs."""
        return self._C.shape[0]

    @property
    def time_domain(self) -> TimeDomain:
        return self._time_domain

    @property
    def sampling_time(self) -> Optional[float]:
        return self._sampling_time

    @property
    def is_continuous(self) -> bool:
        return self._time_domain == TimeDomain.CONTINUOUS

    @property
    def is_discrete(self) -> bool:
        return self._time_domain == TimeDomain.DISCRETE

    # ========================================================================
    # Conversion
    # ========================================================================

    @classmethod
    def from_transfer_function(cls, tf: TransferFunction) -> "StateSpace":
        """
        Controllability canonical form of a proper transfer function.

        With the denominator normalized to be monic, a(s) = s^n + ... + a_0,
        and the numerator b(s) = b_n s^n + ... + b_0 scaled accordingly:

            A = companion(a)    (ones on the superdiagonal, -a_k on the last row)
            B = e_n
            C = [b_0 - a_0·b_n, ..., b_(n-1) - a_(n-1)·b_n]
            D = b_n

        Raises
        ------
        ImproperTransferFunctionError
            If deg(num) > deg(den)
        ValueError
            If the transfer function has a delay or complex coefficients
        """
        if not tf.is_proper():
            raise ImproperTransferFunctionError(
                f"Cannot realize an improper transfer function (relative degree {tf.relative_degree()})"
            )
        if tf.delay != 0:
            raise ValueError("A pure delay has no finite-dimensional state-space realization")

        den, lead = tf.den.monic()
        a = den.numeric_coeffs()
        b_poly = tf.num / lead
        if np.iscomplexobj(a) or np.iscomplexobj(b_poly.numeric_coeffs()):
            raise ValueError("State-space realization requires real coefficients")

        n = den.degree()
        b = np.zeros(n + 1)
        coeffs = b_poly.numeric_coeffs()
        b[: coeffs.size] = coeffs

        d = b[n]
        A = den.companion()
        B = np.zeros((n, 1))
        if n:
            B[n - 1, 0] = 1.0
        C = (b[:n] - a[:n] * d).reshape(1, n)
        D = np.array([[d]])
        return cls(A, B, C, D, tf.time_domain, tf.sampling_time)

    def to_transfer_function_matrix(self) -> List[List[TransferFunction]]:
        """
        Transfer function matrix G(s) = C·(sI - A)⁻¹·B + D, shape (ny, nu).

        Uses Faddeev-LeVerrier, adj(sI - A) = Σ M_k s^(n-k), so entry (i, j)
        has numerator Σ (C_i·M_k·B_j) s^(n-k) + D_ij·det(sI - A).
        """
        n = self.nx
        if n:
            char_poly, adjugate_coeffs = faddeev_leverrier(self._A)
        else:
            char_poly, adjugate_coeffs = Polynomial.one(), []

        matrix = []
        for i in range(self.ny):
            row = []
            for j in range(self.nu):
                coeffs = np.zeros(n + 1)
                for k, M in enumerate(adjugate_coeffs, start=1):
                    coeffs[n - k] = self._C[i] @ M @ self._B[:, j]
                num = Polynomial(coeffs) + self._D[i, j] * char_poly
                row.append(
                    TransferFunction(num, char_poly, self._time_domain, self._sampling_time)
                )
            matrix.append(row)
        return matrix

    def to_transfer_function(self) -> TransferFunction:
        """
        Transfer function of a single-input single-output system.

        Raises
        ------
        DimensionMismatchError
            If the system is not SISO (use to_transfer_function_matrix)
        """
        if self.nu != 1 or self.ny != 1:
            raise DimensionMismatchError(
                f"to_transfer_function requires a SISO system, got {self.ny}x{self.nu}; "
                "use to_transfer_function_matrix()"
            )
        return self.to_transfer_function_matrix()[0][0]

    def discretize(
        self, sampling_time: float, method: str = "tustin", prewarp: Optional[float] = None
    ) -> "StateSpace":
        """Discrete equivalent, see discretize_state_space()."""
        from lticore.systems.discretization import discretize_state_space

        return discretize_state_space(self, sampling_time, method, prewarp)

    # ========================================================================
    # Structural Properties
    # ========================================================================

    def controllability_matrix(self) -> ControllabilityMatrix:
        """
        [B, AB, A²B, ..., A^(n-1)B], shape (nx, nx·nu).

        Examples
        --------
        >>> ss = StateSpace([[0.0, 1.0], [-2.0, -3.0]], [[0.0], [1.0]], [[1.0, 0.0]])
        >>> ss.controllability_matrix()
        array([[ 0.,  1.],
               [ 1., -3.]])
        """
        blocks = [self._B]
        for _ in range(1, self.nx):
            blocks.append(self._A @ blocks[-1])
        if not self.nx:
            return np.zeros((0, 0))
        return np.hstack(blocks)

    def observability_matrix(self) -> ObservabilityMatrix:
        """[C; CA; CA²; ...; CA^(n-1)], shape (nx·ny, nx)."""
        blocks = [self._C]
        for _ in range(1, self.nx):
            blocks.append(blocks[-1] @ self._A)
        if not self.nx:
            return np.zeros((0, 0))
        return np.vstack(blocks)

    @property
    def analysis(self):
        """Stability, controllability and observability of this model (SystemAnalysis)."""
        from lticore.control.system_analysis import SystemAnalysis

        return SystemAnalysis(self)

    def poles(self, **kwargs) -> RootVector:
        """Eigenvalues of A in canonical order."""
        return eigenvalues(self._A, **kwargs)

    def is_stable(self, stability_tolerance: float = 1e-10, **kwargs) -> bool:
        """
        Continuous: Re(λ) < 0 for all poles. Discrete: |λ| < 1.

        Poles within `stability_tolerance` of the boundary count as not
        stable (see TransferFunction.is_stable).
        """
        return poles_inside_boundary(self.poles(**kwargs), self.is_continuous, stability_tolerance)

    def equilibrium(self, u: Optional[ArrayLike] = None) -> Equilibrium:
        """
        Equilibrium state and output for a constant input.

        Continuous: A·x + B·u = 0. Discrete: (I - A)·x = B·u.

        Raises
        ------
        SingularMatrixError
            If the equilibrium is not unique (A, or I - A, is singular)

        Examples
        --------
        >>> ss = StateSpace([[-1.0]], [[1.0]], [[2.0]])
        >>> ss.equilibrium([3.0])
        Equilibrium(x=array([3.]), y=array([6.]))
        """
        u = self._input_vector(u)
        if self.nx == 0:
            x = np.zeros(0)
        elif self.is_continuous:
            x = solve(self._A, -(self._B @ u))
        else:
            x = solve(np.eye(self.nx) - self._A, self._B @ u)
        return Equilibrium(x, self.output(x, u))

    # ========================================================================
    # Dynamics
    # ========================================================================

    def _input_vector(self, u: Optional[ArrayLike]) -> ControlVector:
        if u is None:
            return np.zeros(self.nu)
        u = np.asarray(u, dtype=float).reshape(-1)
        if u.size != self.nu:
            raise DimensionMismatchError(f"Expected {self.nu} inputs, got {u.size}")
        return u

    def _initial_state(self, x0: Optional[ArrayLike]) -> StateVector:
        if x0 is None:
            return np.zeros(self.nx)
        x0 = np.asarray(x0, dtype=float).reshape(-1)
        if x0.size != self.nx:
            raise DimensionMismatchError(f"Expected {self.nx} initial states, got {x0.size}")
        return x0

    def _input_signal(self, u: InputSignal):
        if callable(u):
            return lambda t: self._input_vector(u(t))
        u_const = self._input_vector(u)
        return lambda t: u_const

    def dynamics(self, x: StateVector, u: Optional[ControlVector] = None) -> StateVector:
        """State derivative (continuous) or next state (discrete), A·x + B·u."""
        return self._A @ x + self._B @ self._input_vector(u)

    def output(self, x: StateVector, u: Optional[ControlVector] = None) -> OutputVector:
        """y = C·x + D·u."""
        return self._C @ x + self._D @ self._input_vector(u)

    def _require_continuous(self, what: str):
        if not self.is_continuous:
            raise ValueError(f"{what} integrates continuous systems; use evolve_discrete()")

    def _integrator(self, method: str, dt: float, options: dict):
        if method.lower() == "radau":
            options.setdefault("jacobian", lambda x, u: self._A)
        return create_integrator(method, self.dynamics, dt=dt, **options)

    def evolution(
        self,
        u: InputSignal = None,
        x0: Optional[ArrayLike] = None,
        t_span: TimeSpan = (0.0, 1.0),
        method: str = "rk4",
        dt: float = 0.01,
        t_eval: Optional[TimePoints] = None,
        **options,
    ) -> Iterator[EvolutionSample]:
        """
        Lazy time evolution of a continuous system.

        Parameters
        ----------
        u : InputSignal
            Constant input vector, function of time u(t), or None (zero input)
        x0 : Optional[ArrayLike]
            Initial state (default: zeros)
        t_span : Tuple[float, float]
            Simulation interval
        method : str
            Integration method name ('euler', 'midpoint', 'rk4', 'rkf45', 'radau')
        dt : float
            Fixed step, or initial/nominal step of step-controlled methods
        t_eval : Optional[ArrayLike]
            Output times
        **options
            Integrator options (rtol, atol, ...)

        Yields
        ------
        EvolutionSample
            (time, state, output); the stream ends early, without raising,
            if the integrator fails (use simulate() to see the status)

        Examples
        --------
        >>> ss = StateSpace([[-1.0]], [[1.0]], [[1.0]])
        >>> for sample in ss.evolution(u=[1.0], t_span=(0.0, 5.0), dt=0.1):
        ...     if sample.output[0] > 0.9:
        ...         break
        >>> round(sample.time, 1)
        2.4
        """
        self._require_continuous("evolution")
        u_signal = self._input_signal(u)
        x0 = self._initial_state(x0)
        integrator = self._integrator(method, dt, options)

        for t, x in integrator.samples(x0, lambda t, x: u_signal(t), t_span, t_eval):
            yield EvolutionSample(t, x, self.output(x, u_signal(t)))

    def simulate(
        self,
        u: InputSignal = None,
        x0: Optional[ArrayLike] = None,
        t_span: TimeSpan = (0.0, 1.0),
        method: str = "rk4",
        dt: float = 0.01,
        t_eval: Optional[TimePoints] = None,
        raise_on_failure: bool = False,
        **options,
    ) -> IntegrationResult:
        """
        Simulate a continuous system and collect the trajectories.

        Same parameters as evolution(), plus raise_on_failure.

        Returns
        -------
        IntegrationResult
            Integrator result with the output trajectory under 'y' (T, ny)

        Raises
        ------
        IntegrationError
            If the integration fails and raise_on_failure is True;
            otherwise a RuntimeWarning is issued and the partial
            trajectory returned
        """
        self._require_continuous("simulate")
        u_signal = self._input_signal(u)
        x0 = self._initial_state(x0)
        integrator = self._integrator(method, dt, options)

        result = integrator.integrate(x0, lambda t, x: u_signal(t), t_span, t_eval)
        result["y"] = np.array(
            [self.output(x, u_signal(t)) for t, x in zip(result["t"], result["x"])]
        ).reshape(len(result["t"]), self.ny)

        if not result["success"]:
            if raise_on_failure:
                raise IntegrationError(result["message"], SolverStatus.FAILED, result["message"])
            warnings.warn(result["message"], RuntimeWarning, stacklevel=2)
        return result

    def evolve_discrete(
        self, inputs: Iterable[ArrayLike], x0: Optional[ArrayLike] = None
    ) -> Iterator[EvolutionSample]:
        """
        Lazy evolution of a discrete system driven by an input sequence.

        Yields (t_k, x[k], y[k]) for every input u[k], then advances
        x[k+1] = A·x[k] + B·u[k]. t_k is k·sampling_time, or k when the
        system has no sampling time. The stream ends with the inputs.

        Examples
        --------
        >>> ss = StateSpace([[0.5]], [[1.0]], [[1.0]], time_domain="discrete")
        >>> [s.output[0] for s in ss.evolve_discrete([[1.0]] * 3)]
        [0.0, 1.0, 1.5]
        """
        if not self.is_discrete:
            raise ValueError("evolve_discrete requires a discrete system; use evolution()")
        x = self._initial_state(x0)
        for k, u in enumerate(inputs):
            u = self._input_vector(u)
            t = k if self._sampling_time is None else k * self._sampling_time
            yield EvolutionSample(t, x, self.output(x, u))
            x = self._A @ x + self._B @ u

    # ========================================================================
    # Comparison and Display
    # ========================================================================

    def __eq__(self, other) -> bool:
        if not isinstance(other, StateSpace):
            return NotImplemented
        return (
            self._time_domain == other._time_domain
            and self._sampling_time == other._sampling_time
            and all(
                a.shape == b.shape and np.array_equal(a, b)
                for a, b in zip(
                    (self._A, self._B, self._C, self._D),
                    (other._A, other._B, other._C, other._D),
                )
            )
        )

    __hash__ = None

    def __repr__(self) -> str:
        return (
            f"StateSpace(nx={self.nx}, nu={self.nu}, ny={self.ny}, "
            f"time_domain='{self._time_domain.value}', sampling_time={self._sampling_time})"
        )

    def __str__(self) -> str:
        lines = [repr(self)]
        for name, M in (("A", self._A), ("B", self._B), ("C", self._C), ("D", self._D)):
            lines.append(f"{name} =\n{M}")
        return "\n".join(lines)


__all__ = ["StateSpace", "Equilibrium"]

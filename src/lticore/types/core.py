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
Core Types - Fundamental Building Blocks

Defines the most basic types used throughout lticore:
- Array and scalar aliases
- Semantic vector types (state, control, output)
- Matrix types of a linear system (A, B, C, D)
- Coefficient and root containers for polynomials
- Function signatures for dynamics and control
- The continuous/discrete time-domain tag

Usage
-----
>>> from lticore.types.core import StateVector, StateMatrix
>>>
>>> def free_response(A: StateMatrix, x: StateVector) -> StateVector:
...     return A @ x
"""

from enum import Enum
from numbers import Number
from typing import Callable, Optional, Sequence, Union

import numpy as np

# ============================================================================
# Basic Array Types
# ============================================================================

ArrayLike = Union[np.ndarray, Sequence[float], Sequence[complex]]
"""
Anything numpy can turn into an array.

Shape conventions:
- Scalars: ()
- Vectors: (n,)
- Matrices: (m, n)
"""

ScalarLike = Union[float, int, np.number]
"""
Real scalar value.

Examples
--------
>>> dt: ScalarLike = 0.01
"""

ComplexLike = Union[complex, float, int, np.number]
"""Real or complex scalar (evaluation points, roots)."""

FieldElement = Union[Number, np.number]
"""
Element of a numeric field used as polynomial coefficient.

float, complex, and exact types such as fractions.Fraction are all
accepted; integers are promoted to float.
"""


# ============================================================================
# Vector Types - Semantic Naming by Role
# ============================================================================

StateVector = np.ndarray
"""State vector x (nx,)."""

ControlVector = np.ndarray
"""Control/input vector u (nu,)."""

OutputVector = np.ndarray
"""Output vector y (ny,)."""

CoefficientVector = np.ndarray
"""
Polynomial coefficients in ascending powers.

coeffs[k] multiplies x**k; the last entry is the leading coefficient.

Examples
--------
>>> # 2 + 3x + x²
>>> coeffs: CoefficientVector = np.array([2.0, 3.0, 1.0])
"""

RootVector = np.ndarray
"""Complex roots (n,), in canonical order (ascending real, then imaginary)."""


# ============================================================================
# Matrix Types
# ============================================================================

StateMatrix = np.ndarray
"""
State matrix A (nx, nx).

- Continuous: ẋ = Ax + Bu
- Discrete:   x[k+1] = Ax[k] + Bu[k]
"""

InputMatrix = np.ndarray
"""Input matrix B (nx, nu)."""

OutputMatrix = np.ndarray
"""Output matrix C (ny, nx)."""

FeedthroughMatrix = np.ndarray
"""Direct feedthrough matrix D (ny, nu)."""

ControllabilityMatrix = np.ndarray
"""
Controllability matrix (nx, nx*nu).

C = [B, AB, A²B, ..., A^(n-1)B]
"""

ObservabilityMatrix = np.ndarray
"""
Observability matrix (nx*ny, nx).

O = [C; CA; CA²; ...; CA^(n-1)]
"""


# ============================================================================
# Function Signatures
# ============================================================================

DynamicsFunction = Callable[[StateVector, Optional[ControlVector]], StateVector]
"""
Time-invariant vector field f(x, u) -> dx/dt.

u is None for autonomous systems.

Examples
--------
>>> def decay(x: StateVector, u: Optional[ControlVector]) -> StateVector:
...     return -x
"""

JacobianFunction = Callable[[StateVector, Optional[ControlVector]], StateMatrix]
"""Jacobian ∂f/∂x evaluated at (x, u), shape (nx, nx)."""

ControlPolicy = Callable[[float, StateVector], Optional[ControlVector]]
"""
Control law u(t, x) used by integrators.

Examples
--------
>>> u_func: ControlPolicy = lambda t, x: np.array([1.0])
>>> u_func: ControlPolicy = lambda t, x: None  # autonomous
"""

InputSignal = Union[ControlVector, Sequence[float], Callable[[float], ArrayLike], None]
"""
Input accepted by state-space time evolution.

- Constant vector (step input)
- Function of time u(t)
- None (zero input)
"""


# ============================================================================
# Time Domain
# ============================================================================


class TimeDomain(Enum):
    """
    Time-domain tag of a linear model.

    Attributes
    ----------
    CONTINUOUS : str
        Laplace variable s, ẋ = Ax + Bu
    DISCRETE : str
        Shift variable z, x[k+1] = Ax[k] + Bu[k]
    """

    CONTINUOUS = "continuous"
    DISCRETE = "discrete"


def as_time_domain(value: Union[TimeDomain, str]) -> TimeDomain:
    """
    Coerce a TimeDomain or its string value.

    Examples
    --------
    >>> as_time_domain("discrete")
    <TimeDomain.DISCRETE: 'discrete'>
    """
    if isinstance(value, TimeDomain):
        return value
    try:
        return TimeDomain(value)
    except ValueError:
        raise ValueError(
            f"Unknown time domain {value!r}. Use 'continuous' or 'discrete'"
        ) from None


__all__ = [
    "ArrayLike",
    "ScalarLike",
    "ComplexLike",
    "FieldElement",
    "StateVector",
    "ControlVector",
    "OutputVector",
    "CoefficientVector",
    "RootVector",
    "StateMatrix",
    "InputMatrix",
    "OutputMatrix",
    "FeedthroughMatrix",
    "ControllabilityMatrix",
    "ObservabilityMatrix",
    "DynamicsFunction",
    "JacobianFunction",
    "ControlPolicy",
    "InputSignal",
    "TimeDomain",
    "as_time_domain",
]

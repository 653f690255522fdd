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
Classical Linear System Analysis

Pure functions for the eigenvalue and rank based analysis of (A, B, C):

- analyze_stability: eigenvalue location against the stability boundary
- analyze_controllability: rank of [B, AB, ..., A^(n-1)B] plus the
  Popov-Belevitch-Hautus (PBH) test for the uncontrollable modes
- analyze_observability: rank of [C; CA; ...; CA^(n-1)] plus PBH

Stateless and side-effect free; results are TypedDicts.

Examples
--------
>>> A = np.array([[0.0, 1.0], [-2.0, -3.0]])
>>> analyze_stability(A)["is_stable"]
True
>>> analyze_controllability(A, np.array([[0.0], [1.0]]))["rank"]
2
"""

from typing import Optional, Union

import numpy as np

from lticore.exceptions import DimensionMismatchError
from lticore.numerics.linalg import eigenvalues as compute_eigenvalues
from lticore.types.control_classical import (
    ControllabilityInfo,
    ObservabilityInfo,
    StabilityInfo,
)
from lticore.types.core import (
    InputMatrix,
    OutputMatrix,
    StateMatrix,
    TimeDomain,
    as_time_domain,
)


def _check_square(A: StateMatrix) -> np.ndarray:
    A_np = np.asarray(A, dtype=float)
    if A_np.ndim != 2 or A_np.shape[0] != A_np.shape[1]:
        raise DimensionMismatchError(f"A must be square matrix, got shape {A_np.shape}")
    return A_np


# ============================================================================
# Stability Analysis
# ============================================================================


def analyze_stability(
    A: StateMatrix,
    time_domain: Union[TimeDomain, str] = TimeDomain.CONTINUOUS,
    tolerance: float = 1e-10,
) -> StabilityInfo:
    """
    Analyze system stability via eigenvalue analysis.

    Stability criteria:
        Continuous (dx/dt = Ax): All Re(λ) < 0 (left half-plane)
        Discrete (x[k+1] = Ax): All |λ| < 1 (inside unit circle)

    Args:
        A: State matrix (nx, nx)
        time_domain: CONTINUOUS or DISCRETE (or their string values)
        tolerance: Half-width of the band around the boundary counted as
            marginal stability

    Returns:
        StabilityInfo with eigenvalues, magnitudes, and stability flags

    Examples
    --------
    >>> # Unstable continuous system
    >>> analyze_stability(np.array([[3.0, -2.0], [1.0, 0.0]]))["is_unstable"]
    True
    >>>
    >>> # Pure oscillation
    >>> info = analyze_stability(np.array([[0.0, 1.0], [-1.0, 0.0]]))
    >>> info["is_marginally_stable"]
    True
    >>>
    >>> # Stable discrete system
    >>> info = analyze_stability(np.array([[0.9, 0.1], [0.0, 0.8]]), "discrete")
    >>> info["is_stable"]
    True
    """
    A_np = _check_square(A)
    time_domain = as_time_domain(time_domain)

    eigenvalues = compute_eigenvalues(A_np)
    magnitudes = np.abs(eigenvalues)
    if eigenvalues.size:
        max_real = float(np.max(eigenvalues.real))
        spectral_radius = float(np.max(magnitudes))
    else:
        # Static system: nothing to destabilize
        max_real, spectral_radius = -np.inf, 0.0

    if time_domain == TimeDomain.CONTINUOUS:
        is_stable = max_real < -tolerance
        is_marginally_stable = abs(max_real) <= tolerance
        is_unstable = max_real > tolerance
    else:
        is_stable = spectral_radius < 1.0 - tolerance
        is_marginally_stable = abs(spectral_radius - 1.0) <= tolerance
        is_unstable = spectral_radius > 1.0 + tolerance

    result: StabilityInfo = {
        "eigenvalues": eigenvalues,
        "magnitudes": magnitudes,
        "max_real_part": max_real,
        "spectral_radius": spectral_radius,
        "is_stable": bool(is_stable),
        "is_marginally_stable": bool(is_marginally_stable),
        "is_unstable": bool(is_unstable),
    }

    return result


# ============================================================================
# Controllability / Observability Analysis
# ============================================================================


def _pbh_failures(
    A: np.ndarray, M: np.ndarray, tolerance: float, stack
) -> Optional[np.ndarray]:
    """Eigenvalues λ for which rank(stack(λI - A, M)) < n."""
    n = A.shape[0]
    failures = []
    for lam in compute_eigenvalues(A):
        test = stack([lam * np.eye(n) - A, M])
        if np.linalg.matrix_rank(test, tol=tolerance) < n:
            failures.append(lam)
    return np.array(failures, dtype=complex) if failures else None


def analyze_controllability(
    A: StateMatrix,
    B: InputMatrix,
    tolerance: float = 1e-10,
) -> ControllabilityInfo:
    """
    Test controllability of linear system (A, B).

    A system is controllable if all states can be driven to any desired
    value in finite time using appropriate control inputs.

    Controllability test:
        rank(C) = n, where C = [B, AB, A²B, ..., Aⁿ⁻¹B]

    Uncontrollable modes are the eigenvalues λ with rank([λI - A, B]) < n.

    Args:
        A: State matrix (nx, nx)
        B: Input matrix (nx, nu)
        tolerance: Singular value threshold of the rank computations

    Returns:
        ControllabilityInfo with the controllability matrix, its rank,
        the flag and the uncontrollable modes (None when controllable)

    Examples
    --------
    >>> # Second state is not reached by the input
    >>> A = np.array([[1.0, 0.0], [0.0, 2.0]])
    >>> B = np.array([[1.0], [0.0]])
    >>> info = analyze_controllability(A, B)
    >>> info["is_controllable"], info["uncontrollable_modes"]
    (False, array([2.+0.j]))
    """
    A_np = _check_square(A)
    B_np = np.asarray(B, dtype=float)

    nx = A_np.shape[0]
    if B_np.ndim != 2 or B_np.shape[0] != nx:
        raise DimensionMismatchError(f"B must have {nx} rows, got shape {B_np.shape}")
    nu = B_np.shape[1]

    # Build controllability matrix: C = [B, AB, A²B, ..., Aⁿ⁻¹B]
    C = np.zeros((nx, nx * nu))
    AB = B_np.copy()
    for i in range(nx):
        C[:, i * nu : (i + 1) * nu] = AB
        AB = A_np @ AB

    rank = np.linalg.matrix_rank(C, tol=tolerance) if C.size else 0
    is_controllable = rank == nx

    uncontrollable_modes = None
    if not is_controllable:
        uncontrollable_modes = _pbh_failures(A_np, B_np, tolerance, np.hstack)

    result: ControllabilityInfo = {
        "controllability_matrix": C,
        "rank": int(rank),
        "is_controllable": bool(is_controllable),
        "uncontrollable_modes": uncontrollable_modes,
    }

    return result


def analyze_observability(
    A: StateMatrix,
    C: OutputMatrix,
    tolerance: float = 1e-10,
) -> ObservabilityInfo:
    """
    Test observability of linear system (A, C).

    A system is observable if the initial state can be determined from
    output measurements over a finite time interval.

    Observability test:
        rank(O) = n, where O = [C; CA; CA²; ...; CAⁿ⁻¹]

    Unobservable modes are the eigenvalues λ with rank([λI - A; C]) < n.

    Args:
        A: State matrix (nx, nx)
        C: Output matrix (ny, nx)
        tolerance: Singular value threshold of the rank computations

    Returns:
        ObservabilityInfo with the observability matrix, its rank, the
        flag and the unobservable modes (None when observable)

    Examples
    --------
    >>> A = np.array([[0.0, 1.0], [-2.0, -3.0]])
    >>> analyze_observability(A, np.array([[1.0, 0.0]]))["is_observable"]
    True
    """
    A_np = _check_square(A)
    C_np = np.asarray(C, dtype=float)

    nx = A_np.shape[0]
    if C_np.ndim != 2 or C_np.shape[1] != nx:
        raise DimensionMismatchError(f"C must have {nx} columns, got shape {C_np.shape}")
    ny = C_np.shape[0]

    # Build observability matrix: O = [C; CA; CA²; ...; CAⁿ⁻¹]
    O = np.zeros((nx * ny, nx))
    CA = C_np.copy()
    for i in range(nx):
        O[i * ny : (i + 1) * ny, :] = CA
        CA = CA @ A_np

    rank = np.linalg.matrix_rank(O, tol=tolerance) if O.size else 0
    is_observable = rank == nx

    unobservable_modes = None
    if not is_observable:
        unobservable_modes = _pbh_failures(A_np, C_np, tolerance, np.vstack)

    result: ObservabilityInfo = {
        "observability_matrix": O,
        "rank": int(rank),
        "is_observable": bool(is_observable),
        "unobservable_modes": unobservable_modes,
    }

    return result


__all__ = [
    "analyze_stability",
    "analyze_controllability",
    "analyze_observability",
]

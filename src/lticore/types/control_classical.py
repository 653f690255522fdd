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
Classical Control Analysis Types

Result types for the eigenvalue and rank based analysis of linear
state-space models:
- Stability (eigenvalue location)
- Controllability (rank of [B, AB, ...])
- Observability (rank of [C; CA; ...])

All results are TypedDicts so they can be consumed as plain dictionaries
by plotting or reporting code.

Usage
-----
>>> from lticore.control import analyze_stability
>>> info: StabilityInfo = analyze_stability(A, time_domain=TimeDomain.CONTINUOUS)
>>> info["is_stable"]
True
"""

from typing import Optional

import numpy as np
from typing_extensions import TypedDict

from .core import ControllabilityMatrix, ObservabilityMatrix

# ============================================================================
# Stability
# ============================================================================


class StabilityInfo(TypedDict):
    """
    Stability analysis result dictionary.

    Stability Criteria:
    - Continuous: All Re(λ) < 0 (left half-plane)
    - Discrete: All |λ| < 1 (inside unit circle)

    Fields
    ------
    eigenvalues : np.ndarray
        Eigenvalues of the state matrix, canonical order
    magnitudes : np.ndarray
        Absolute values |λ| of eigenvalues
    max_real_part : float
        Largest real part (continuous criterion)
    spectral_radius : float
        max|λ| (discrete criterion)
    is_stable : bool
        True if the system is asymptotically stable
    is_marginally_stable : bool
        True if the critical eigenvalue lies on the stability boundary
    is_unstable : bool
        True if some eigenvalue lies strictly outside the stable region

    Examples
    --------
    >>> A = np.array([[0.0, 1.0], [-2.0, -3.0]])
    >>> info: StabilityInfo = analyze_stability(A)
    >>> info["eigenvalues"]
    array([-2.+0.j, -1.+0.j])
    """

    eigenvalues: np.ndarray
    magnitudes: np.ndarray
    max_real_part: float
    spectral_radius: float
    is_stable: bool
    is_marginally_stable: bool
    is_unstable: bool


# ============================================================================
# Controllability / Observability
# ============================================================================


class ControllabilityInfo(TypedDict, total=False):
    """
    Controllability analysis result.

    Fields
    ------
    controllability_matrix : ControllabilityMatrix
        [B, AB, ..., A^(n-1)B] of shape (nx, nx*nu)
    rank : int
        Numerical rank of the controllability matrix
    is_controllable : bool
        True if rank == nx
    uncontrollable_modes : Optional[np.ndarray]
        Eigenvalues failing the PBH rank test (None when controllable)
    """

    controllability_matrix: ControllabilityMatrix
    rank: int
    is_controllable: bool
    uncontrollable_modes: Optional[np.ndarray]


class ObservabilityInfo(TypedDict, total=False):
    """
    Observability analysis result.

    Fields
    ------
    observability_matrix : ObservabilityMatrix
        [C; CA; ...; CA^(n-1)] of shape (nx*ny, nx)
    rank : int
        Numerical rank of the observability matrix
    is_observable : bool
        True if rank == nx
    unobservable_modes : Optional[np.ndarray]
        Eigenvalues failing the PBH rank test (None when observable)
    """

    observability_matrix: ObservabilityMatrix
    rank: int
    is_observable: bool
    unobservable_modes: Optional[np.ndarray]


__all__ = [
    "StabilityInfo",
    "ControllabilityInfo",
    "ObservabilityInfo",
]

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
Polynomial Root Finding Types

Result of the Aberth-Ehrlich simultaneous iteration, returned by
find_roots() and AberthEhrlich.solve().

Usage
-----
>>> from lticore.polynomial import Polynomial, find_roots
>>> result: RootFindingResult = find_roots(Polynomial([2.0, -3.0, 1.0]))
>>> result["roots"]
array([1.+0.j, 2.+0.j])
"""

from typing import NamedTuple

import numpy as np
from typing_extensions import TypedDict


class RootFindingResult(TypedDict):
    """
    Outcome of a root finding run.

    Fields
    ------
    roots : np.ndarray
        Complex roots (n,), canonical order (ascending real, then imaginary)
    converged : bool
        True if every estimate met the tolerance
    iterations : int
        Number of Aberth sweeps performed (0 for closed-form degrees)
    max_correction : float
        Largest relative correction of the last sweep
    """

    roots: np.ndarray
    converged: bool
    iterations: int
    max_correction: float


class RootEstimate(NamedTuple):
    """
    Root estimates after one Aberth sweep, yielded by AberthEhrlich.iterations().

    Attributes
    ----------
    iteration : int
        Sweep number (0 for closed-form degrees)
    roots : np.ndarray
        Current estimates, canonical order
    max_correction : float
        Largest relative correction applied during the sweep
    converged : bool
        True once every estimate is frozen
    """

    iteration: int
    roots: np.ndarray
    max_correction: float
    converged: bool


__all__ = ["RootFindingResult", "RootEstimate"]

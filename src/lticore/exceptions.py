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
Exception Taxonomy

Every failure raised by lticore derives from LTICoreError and, in
addition, from the builtin exception a generic caller would expect:

- ZeroPolynomialError           (ValueError)
- PolynomialDivisionByZero      (ZeroDivisionError)
- UndefinedGainError            (ZeroDivisionError)
- EmptyDenominatorError         (ValueError)
- ImproperTransferFunctionError (ValueError)
- DimensionMismatchError        (ValueError)
- SingularMatrixError           (numpy.linalg.LinAlgError)
- RootFindingNonConvergence     (RuntimeError)
- IntegrationError              (RuntimeError)

RootFindingWarning is the warning category emitted when the root finder
returns a best estimate without meeting its tolerance.

Examples
--------
>>> from lticore.exceptions import SingularMatrixError
>>> try:
...     sys.equilibrium(u)
... except SingularMatrixError:
...     print("No unique equilibrium")
"""

from typing import Optional

import numpy as np


class LTICoreError(Exception):
    """Base class for all lticore errors."""


class ZeroPolynomialError(LTICoreError, ValueError):
    """Degree-dependent query (leading coefficient, roots) on the zero polynomial."""


class PolynomialDivisionByZero(LTICoreError, ZeroDivisionError):
    """Euclidean division by the zero polynomial."""


class UndefinedGainError(LTICoreError, ZeroDivisionError):
    """Static gain requested where the denominator vanishes."""


class EmptyDenominatorError(LTICoreError, ValueError):
    """Transfer function built with a zero denominator."""


class ImproperTransferFunctionError(LTICoreError, ValueError):
    """Transfer function cannot be realized in controllability canonical form."""


class DimensionMismatchError(LTICoreError, ValueError):
    """State-space matrices (or vectors) with non-conforming shapes."""


class SingularMatrixError(LTICoreError, np.linalg.LinAlgError):
    """
    LU decomposition met a numerically zero pivot.

    Attributes
    ----------
    pivot_index : Optional[int]
        Column at which elimination broke down (None if unknown)
    """

    def __init__(self, message: str, pivot_index: Optional[int] = None):
        super().__init__(message)
        self.pivot_index = pivot_index


class RootFindingNonConvergence(LTICoreError, RuntimeError):
    """
    Aberth-Ehrlich iteration exhausted its budget.

    The best available estimate is kept on the exception so callers can
    retry with a relaxed tolerance or use the approximation anyway.

    Attributes
    ----------
    roots : np.ndarray
        Best root estimates (canonical order)
    iterations : int
        Number of sweeps performed
    max_correction : float
        Largest relative correction of the last sweep
    """

    def __init__(self, message: str, roots: np.ndarray, iterations: int, max_correction: float):
        super().__init__(message)
        self.roots = roots
        self.iterations = iterations
        self.max_correction = max_correction


class RootFindingWarning(RuntimeWarning):
    """Root finder returned an estimate that did not meet its tolerance."""


class IntegrationError(LTICoreError, RuntimeError):
    """
    ODE integration ended in the FAILED state.

    Attributes
    ----------
    status : SolverStatus
        Terminal solver status
    reason : str
        Human-readable failure reason
    """

    def __init__(self, message: str, status=None, reason: str = ""):
        super().__init__(message)
        self.status = status
        self.reason = reason


__all__ = [
    "LTICoreError",
    "ZeroPolynomialError",
    "PolynomialDivisionByZero",
    "UndefinedGainError",
    "EmptyDenominatorError",
    "ImproperTransferFunctionError",
    "DimensionMismatchError",
    "SingularMatrixError",
    "RootFindingNonConvergence",
    "RootFindingWarning",
    "IntegrationError",
]

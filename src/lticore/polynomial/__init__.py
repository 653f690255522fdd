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
Polynomial Engine

Dense polynomial algebra and simultaneous root finding.

Modules
-------
- polynomial: Polynomial value type, arithmetic, Horner evaluation,
  eval_ratio for overflow-free rational evaluation
- roots: Aberth-Ehrlich iteration, closed-form quadratics, companion
  eigenvalue alternative

Usage
-----
>>> from lticore.polynomial import Polynomial, find_roots
>>> p = Polynomial.from_roots([1.0, 2.0, 3.0])
>>> p.roots()
array([1.+0.j, 2.+0.j, 3.+0.j])
"""

from .polynomial import FFT_THRESHOLD, Polynomial, eval_ratio
from .roots import (
    AberthEhrlich,
    conjugate_pairs,
    eigenvalue_roots,
    find_roots,
    quadratic_roots,
    real_quadratic_roots,
)

__all__ = [
    "Polynomial",
    "eval_ratio",
    "FFT_THRESHOLD",
    "AberthEhrlich",
    "conjugate_pairs",
    "find_roots",
    "eigenvalue_roots",
    "quadratic_roots",
    "real_quadratic_roots",
]

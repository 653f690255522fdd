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
Numerics - Scalar and Dense Linear Algebra Kernels

Leaf numerical routines shared by the polynomial engine, the linear
system models, and the implicit integrators.

Modules
-------
- complex_arithmetic: overflow-resistant complex division, polar form,
  canonical ordering of root sets
- linalg: LU with partial pivoting, triangular solves, determinant,
  Faddeev-LeVerrier, eigenvalues, companion matrices
"""

from .complex_arithmetic import (
    argument,
    cadd,
    canonical_sort,
    cdiv,
    cinv,
    cmul,
    csub,
    from_polar,
    modulus,
)
from .linalg import (
    characteristic_polynomial,
    companion_matrix,
    det,
    eigenvalues,
    eigenvalues_2x2,
    faddeev_leverrier,
    inv,
    lu_factor,
    lu_solve,
    solve,
    solve_lower_unit,
    solve_upper,
)

__all__ = [
    # Complex arithmetic
    "cadd",
    "csub",
    "cmul",
    "cdiv",
    "cinv",
    "modulus",
    "argument",
    "from_polar",
    "canonical_sort",
    # Linear algebra
    "lu_factor",
    "lu_solve",
    "solve_lower_unit",
    "solve_upper",
    "solve",
    "inv",
    "det",
    "faddeev_leverrier",
    "characteristic_polynomial",
    "eigenvalues_2x2",
    "eigenvalues",
    "companion_matrix",
]

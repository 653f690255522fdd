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
Linear System Models

- transfer_function: TransferFunction (rational SISO model with delay)
- state_space: StateSpace, Equilibrium
- discretization: Euler and Tustin discrete equivalents

Usage
-----
>>> from lticore.systems import TransferFunction, StateSpace
>>> G = TransferFunction([1.0], [2.0, 3.0, 1.0])
>>> ss = StateSpace.from_transfer_function(G)
>>> Gz = G.discretize(0.1, method="tustin")
"""

from .transfer_function import TransferFunction
from .state_space import Equilibrium, StateSpace
from .discretization import (
    discretize_state_space,
    discretize_transfer_function,
    tustin_constant,
)

__all__ = [
    "TransferFunction",
    "StateSpace",
    "Equilibrium",
    "discretize_transfer_function",
    "discretize_state_space",
    "tustin_constant",
]

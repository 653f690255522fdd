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
Classical analysis of linear state-space models.

- classical_analysis: stability, controllability and observability
  functions on raw matrices
- system_analysis: SystemAnalysis, the same analyses bound to a StateSpace
"""

from .classical_analysis import (
    analyze_controllability,
    analyze_observability,
    analyze_stability,
)
from .system_analysis import SystemAnalysis

__all__ = [
    "analyze_stability",
    "analyze_controllability",
    "analyze_observability",
    "SystemAnalysis",
]

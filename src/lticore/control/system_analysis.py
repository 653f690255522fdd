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
System Analysis Wrapper

Thin wrapper binding the classical analysis functions to a StateSpace
model, so that the time domain and matrices come from the model itself.
Holds no state besides the model and caches nothing.

Usage
-----
>>> ss = StateSpace([[0.0, 1.0], [-2.0, -3.0]], [[0.0], [1.0]], [[1.0, 0.0]])
>>> ss.analysis.stability()["is_stable"]
True
>>> ss.analysis.controllability()["is_controllable"]
True
"""

from typing import Any, Dict

from lticore.control.classical_analysis import (
    analyze_controllability,
    analyze_observability,
    analyze_stability,
)
from lticore.types.control_classical import (
    ControllabilityInfo,
    ObservabilityInfo,
    StabilityInfo,
)


class SystemAnalysis:
    """
    Analysis of one state-space model.

    Parameters
    ----------
    system : StateSpace
        Model to analyze
    """

    def __init__(self, system):
        self.system = system

    def stability(self, tolerance: float = 1e-10) -> StabilityInfo:
        """Eigenvalue stability of A in the model's time domain."""
        return analyze_stability(self.system.A, self.system.time_domain, tolerance)

    def controllability(self, tolerance: float = 1e-10) -> ControllabilityInfo:
        """Rank and PBH controllability of (A, B)."""
        return analyze_controllability(self.system.A, self.system.B, tolerance)

    def observability(self, tolerance: float = 1e-10) -> ObservabilityInfo:
        """Rank and PBH observability of (A, C)."""
        return analyze_observability(self.system.A, self.system.C, tolerance)

    def summary(self, tolerance: float = 1e-10) -> Dict[str, Any]:
        """
        All three analyses at once.

        Returns
        -------
        dict
            'stability', 'controllability', 'observability' results plus
            'is_minimal' (controllable and observable)
        """
        stability = self.stability(tolerance)
        controllability = self.controllability(tolerance)
        observability = self.observability(tolerance)
        return {
            "stability": stability,
            "controllability": controllability,
            "observability": observability,
            "is_minimal": controllability["is_controllable"] and observability["is_observable"],
        }

    def __repr__(self) -> str:
        return f"SystemAnalysis({self.system!r})"


__all__ = ["SystemAnalysis"]

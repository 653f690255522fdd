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
Types Module - Type Definitions for lticore

Central import point for all type definitions. Organized into
domain-specific modules but re-exported here for convenience.

Usage
-----
>>> from lticore.types import (
...     StateVector,
...     StateMatrix,
...     IntegrationResult,
...     TimeDomain,
... )

Module Organization
------------------
- core: Basic arrays, vectors, matrices, callables, time domain
- trajectories: Samples, integration results, integrator options
- polynomial: Root finding results
- control_classical: Stability, controllability, observability
"""

# ============================================================================
# Core Types (Basic Building Blocks)
# ============================================================================

from .core import (
    # Basic arrays
    ArrayLike,
    ScalarLike,
    ComplexLike,
    FieldElement,
    # Vectors
    StateVector,
    ControlVector,
    OutputVector,
    CoefficientVector,
    RootVector,
    # Matrices
    StateMatrix,
    InputMatrix,
    OutputMatrix,
    FeedthroughMatrix,
    ControllabilityMatrix,
    ObservabilityMatrix,
    # Functions
    DynamicsFunction,
    JacobianFunction,
    ControlPolicy,
    InputSignal,
    # Time domain
    TimeDomain,
    as_time_domain,
)

# ============================================================================
# Trajectories
# ============================================================================

from .trajectories import (
    TimePoints,
    TimeSpan,
    IntegrationSample,
    EvolutionSample,
    IntegrationResult,
    IntegratorOptions,
)

# ============================================================================
# Results
# ============================================================================

from .polynomial import RootFindingResult, RootEstimate
from .control_classical import (
    StabilityInfo,
    ControllabilityInfo,
    ObservabilityInfo,
)

__all__ = [
    # Core
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
    # Trajectories
    "TimePoints",
    "TimeSpan",
    "IntegrationSample",
    "EvolutionSample",
    "IntegrationResult",
    "IntegratorOptions",
    # Results
    "RootFindingResult",
    "RootEstimate",
    "StabilityInfo",
    "ControllabilityInfo",
    "ObservabilityInfo",
]

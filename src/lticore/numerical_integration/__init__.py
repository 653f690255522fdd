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
Numerical integration of time-invariant vector fields ẋ = f(x, u).

Fixed-step (Euler, midpoint, RK4), error-controlled (RKF45) and implicit
(Radau IIA) integrators sharing the IntegratorBase sample-stream interface.
"""

from lticore.numerical_integration.adaptive_integrators import RKF45Integrator
from lticore.numerical_integration.fixed_step_integrators import (
    ExplicitEulerIntegrator,
    FixedStepIntegrator,
    MidpointIntegrator,
    RK4Integrator,
)
from lticore.numerical_integration.implicit_integrators import RadauIntegrator
from lticore.numerical_integration.integrator_base import (
    IntegrationRun,
    IntegratorBase,
    OutputSchedule,
    SolverStatus,
    StepMode,
)
from lticore.numerical_integration.integrator_factory import (
    IntegratorFactory,
    create_integrator,
)

__all__ = [
    "IntegratorBase",
    "IntegrationRun",
    "OutputSchedule",
    "SolverStatus",
    "StepMode",
    "FixedStepIntegrator",
    "ExplicitEulerIntegrator",
    "MidpointIntegrator",
    "RK4Integrator",
    "RKF45Integrator",
    "RadauIntegrator",
    "IntegratorFactory",
    "create_integrator",
]

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
lticore - Polynomial, Transfer-Function, State-Space and ODE Kernel

Numerical core for classical control:

- polynomial: dense polynomial algebra and Aberth-Ehrlich root finding
- numerics: complex arithmetic and small dense linear algebra
- systems: TransferFunction and StateSpace models, Euler/Tustin
  discretization
- numerical_integration: RK4, RKF45 and Radau IIA integrators with lazy
  sample streams
- control: stability, controllability and observability analysis

Examples
--------
>>> from lticore import TransferFunction
>>> G = TransferFunction([1.0], [2.0, 3.0, 1.0])
>>> ss = G.to_state_space()
>>> result = ss.simulate(u=[1.0], t_span=(0.0, 10.0), dt=0.01)
>>> round(float(result["y"][-1, 0]), 3)
0.5
"""

__version__ = "0.1.0"

from lticore.exceptions import (
    DimensionMismatchError,
    EmptyDenominatorError,
    ImproperTransferFunctionError,
    IntegrationError,
    LTICoreError,
    PolynomialDivisionByZero,
    RootFindingNonConvergence,
    RootFindingWarning,
    SingularMatrixError,
    UndefinedGainError,
    ZeroPolynomialError,
)
from lticore.types.core import TimeDomain
from lticore.polynomial import AberthEhrlich, Polynomial, eval_ratio, find_roots
from lticore.systems import (
    Equilibrium,
    StateSpace,
    TransferFunction,
    discretize_state_space,
    discretize_transfer_function,
)
from lticore.numerical_integration import (
    ExplicitEulerIntegrator,
    IntegratorFactory,
    MidpointIntegrator,
    RadauIntegrator,
    RK4Integrator,
    RKF45Integrator,
    SolverStatus,
    create_integrator,
)
from lticore.control import (
    SystemAnalysis,
    analyze_controllability,
    analyze_observability,
    analyze_stability,
)

__all__ = [
    "__version__",
    # Errors
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
    # Models
    "TimeDomain",
    "Polynomial",
    "eval_ratio",
    "AberthEhrlich",
    "find_roots",
    "TransferFunction",
    "StateSpace",
    "Equilibrium",
    "discretize_transfer_function",
    "discretize_state_space",
    # Integration
    "SolverStatus",
    "ExplicitEulerIntegrator",
    "MidpointIntegrator",
    "RK4Integrator",
    "RKF45Integrator",
    "RadauIntegrator",
    "IntegratorFactory",
    "create_integrator",
    # Analysis
    "SystemAnalysis",
    "analyze_stability",
    "analyze_controllability",
    "analyze_observability",
]

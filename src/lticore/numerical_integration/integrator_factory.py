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
Integrator Factory - Creation by Method Name

Maps method names to the integrators of this package:

- 'euler'    : ExplicitEulerIntegrator (fixed step, order 1)
- 'midpoint' : MidpointIntegrator (fixed step, order 2)
- 'rk4'      : RK4Integrator (fixed step, order 4)
- 'rkf45'    : RKF45Integrator (error-controlled, order 4(5))
- 'radau'    : RadauIntegrator (implicit, order 5, stiff problems)

Names are case-insensitive.

Examples
--------
>>> integrator = IntegratorFactory.create(lambda x, u: -x, method="rk4", dt=0.01)
>>> integrator.name
'RK4'
>>>
>>> # Step-controlled defaults
>>> integrator = IntegratorFactory.auto(lambda x, u: -x)
>>> integrator = IntegratorFactory.for_stiff(lambda x, u: -1000 * x, dt=0.1)
"""

from typing import Dict, List, Optional, Type

from lticore.numerical_integration.adaptive_integrators import RKF45Integrator
from lticore.numerical_integration.fixed_step_integrators import (
    ExplicitEulerIntegrator,
    MidpointIntegrator,
    RK4Integrator,
)
from lticore.numerical_integration.implicit_integrators import RadauIntegrator
from lticore.numerical_integration.integrator_base import IntegratorBase
from lticore.types.core import DynamicsFunction, ScalarLike


class IntegratorFactory:
    """
    Factory for creating numerical integrators.

    Fixed-step methods require dt; step-controlled methods use dt as
    their initial (RKF45) or nominal (Radau) step and default it to 0.01.
    """

    _METHODS: Dict[str, Type[IntegratorBase]] = {
        "euler": ExplicitEulerIntegrator,
        "midpoint": MidpointIntegrator,
        "rk4": RK4Integrator,
        "rkf45": RKF45Integrator,
        "radau": RadauIntegrator,
    }

    _FIXED_STEP = frozenset(["euler", "midpoint", "rk4"])

    @classmethod
    def create(
        cls,
        system: DynamicsFunction,
        method: str = "rkf45",
        dt: Optional[ScalarLike] = None,
        **options,
    ) -> IntegratorBase:
        """
        Create an integrator by method name.

        Parameters
        ----------
        system : DynamicsFunction
            Vector field f(x, u)
        method : str
            One of list_methods() (case-insensitive). Default: 'rkf45'
        dt : Optional[ScalarLike]
            Time step (required for fixed-step methods)
        **options
            Integrator options (rtol, atol, max_steps, ...)

        Returns
        -------
        IntegratorBase
            Configured integrator

        Raises
        ------
        ValueError
            If the method is unknown or a fixed-step method lacks dt
        """
        key = method.lower()
        if key not in cls._METHODS:
            raise ValueError(
                f"Unknown integration method '{method}'. Choose from: {cls.list_methods()}"
            )

        if key in cls._FIXED_STEP and dt is None:
            raise ValueError(f"Fixed-step method '{method}' requires dt parameter")

        return cls._METHODS[key](system, dt=dt, **options)

    @classmethod
    def auto(cls, system: DynamicsFunction, **options) -> IntegratorBase:
        """Error-controlled RKF45, a sensible default for non-stiff systems."""
        return cls.create(system, method="rkf45", **options)

    @classmethod
    def for_stiff(
        cls, system: DynamicsFunction, dt: Optional[ScalarLike] = None, **options
    ) -> IntegratorBase:
        """Radau IIA, for systems with widely separated time scales."""
        return cls.create(system, method="radau", dt=dt, **options)

    @classmethod
    def list_methods(cls) -> List[str]:
        """
        Available method names.

        Examples
        --------
        >>> IntegratorFactory.list_methods()
        ['euler', 'midpoint', 'radau', 'rk4', 'rkf45']
        """
        return sorted(cls._METHODS)

    @classmethod
    def is_fixed_step(cls, method: str) -> bool:
        return method.lower() in cls._FIXED_STEP


def create_integrator(
    method: str, system: DynamicsFunction, dt: Optional[ScalarLike] = None, **options
) -> IntegratorBase:
    """
    Convenience function for IntegratorFactory.create().

    Examples
    --------
    >>> integrator = create_integrator("rk4", lambda x, u: -x, dt=0.01)
    """
    return IntegratorFactory.create(system, method=method, dt=dt, **options)


__all__ = ["IntegratorFactory", "create_integrator"]

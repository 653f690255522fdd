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
Discretization of Continuous Linear Models

Converts continuous transfer functions and state-space models to discrete
equivalents with sampling time T:

- 'euler' (forward difference):  s = (z - 1) / T
- 'tustin' (bilinear):           s = c·(z - 1) / (z + 1),  c = 2/T

Tustin may be pre-warped at a frequency ω (0 < ωT < π) so that the
discrete frequency response matches the continuous one exactly at ω:
c = ω / tan(ωT/2), equivalently T_eff = (2/ω)·tan(ωT/2).

The state-space Tustin form is input/output exact with respect to the
transfer function substitution and matches
scipy.signal.cont2discrete(..., method='bilinear').

Examples
--------
>>> G = TransferFunction([1.0], [1.0, 1.0])
>>> Gz = discretize_transfer_function(G, 0.1, "tustin")
>>> Gz.poles()
array([0.9047619+0.j])
"""

from typing import Optional

import numpy as np

from lticore.numerics.linalg import inv
from lticore.polynomial.polynomial import Polynomial
from lticore.systems.state_space import StateSpace
from lticore.systems.transfer_function import TransferFunction
from lticore.types.core import TimeDomain

_METHOD_ALIASES = {
    "tustin": "tustin",
    "bilinear": "tustin",
    "euler": "euler",
    "forward_euler": "euler",
}


def _normalize_method(method: str, prewarp: Optional[float]) -> str:
    key = _METHOD_ALIASES.get(method.lower())
    if key is None:
        raise ValueError(
            f"Unknown discretization method '{method}'. Choose from: 'tustin', 'euler'"
        )
    if key == "euler" and prewarp is not None:
        raise ValueError("Pre-warping applies to the Tustin method only")
    return key


def _check_sampling_time(sampling_time: float) -> float:
    sampling_time = float(sampling_time)
    if not sampling_time > 0:
        raise ValueError(f"sampling_time must be positive, got {sampling_time}")
    return sampling_time


def tustin_constant(sampling_time: float, prewarp: Optional[float] = None) -> float:
    """
    Scale c of the bilinear substitution s = c·(z - 1)/(z + 1).

    Examples
    --------
    >>> tustin_constant(0.1)
    20.0
    """
    if prewarp is None:
        return 2.0 / sampling_time
    omega = float(prewarp)
    if not 0 < omega * sampling_time < np.pi:
        raise ValueError(
            f"Pre-warping frequency must satisfy 0 < ω·T < π, got ω·T = {omega * sampling_time}"
        )
    return omega / np.tan(omega * sampling_time / 2)


# ============================================================================
# Transfer Functions
# ============================================================================


def _substitute(poly: Polynomial, s_num: Polynomial, s_den: Polynomial, order: int) -> Polynomial:
    # Σ p_k·s_num^k·s_den^(order-k), i.e. poly(s_num/s_den)·s_den^order
    result = Polynomial.zero()
    for k, p_k in enumerate(poly.coeffs):
        if p_k == 0:
            continue
        result = result + p_k * s_num**k * s_den ** (order - k)
    return result


def discretize_transfer_function(
    tf: TransferFunction,
    sampling_time: float,
    method: str = "tustin",
    prewarp: Optional[float] = None,
) -> TransferFunction:
    """
    Discrete equivalent of a continuous transfer function.

    Parameters
    ----------
    tf : TransferFunction
        Continuous transfer function
    sampling_time : float
        Sampling period T > 0
    method : str
        'tustin' (alias 'bilinear') or 'euler' (alias 'forward_euler')
    prewarp : Optional[float]
        Tustin pre-warping frequency ω in rad/s

    Returns
    -------
    TransferFunction
        Discrete transfer function with sampling_time T; the delay is kept

    Raises
    ------
    ValueError
        If tf is discrete, T ≤ 0, the method is unknown, or pre-warping is
        requested with Euler or outside 0 < ωT < π
    """
    if not tf.is_continuous:
        raise ValueError("Only continuous transfer functions can be discretized")
    sampling_time = _check_sampling_time(sampling_time)
    method = _normalize_method(method, prewarp)

    z_minus_1 = Polynomial([-1.0, 1.0])
    if method == "euler":
        s_num, s_den = z_minus_1 / sampling_time, Polynomial.one()
    else:
        s_num = z_minus_1 * tustin_constant(sampling_time, prewarp)
        s_den = Polynomial([1.0, 1.0])

    order = max(tf.den.degree(), tf.num.degree() or 0)
    num = _substitute(tf.num, s_num, s_den, order)
    den = _substitute(tf.den, s_num, s_den, order)
    return TransferFunction(num, den, TimeDomain.DISCRETE, sampling_time, tf.delay)


# ============================================================================
# State-Space Models
# ============================================================================


def _discretize_euler(ss: StateSpace, sampling_time: float) -> StateSpace:
    """
    Euler (forward difference) discretization.

    Ad = I + T·A
    Bd = T·B
    """
    Ad = np.eye(ss.nx) + sampling_time * ss.A
    Bd = sampling_time * ss.B
    return StateSpace(Ad, Bd, ss.C, ss.D, TimeDomain.DISCRETE, sampling_time)


def _discretize_tustin(
    ss: StateSpace, sampling_time: float, prewarp: Optional[float]
) -> StateSpace:
    """
    Tustin (bilinear) transformation.

    With M = (I - A·T_eff/2)⁻¹:

    Ad = M·(I + A·T_eff/2)
    Bd = M·B·T_eff
    Cd = C·M
    Dd = D + Cd·B·T_eff/2
    """
    if ss.nx == 0:
        return StateSpace(ss.A, ss.B, ss.C, ss.D, TimeDomain.DISCRETE, sampling_time)

    t_eff = 2.0 / tustin_constant(sampling_time, prewarp)
    identity = np.eye(ss.nx)
    M = inv(identity - ss.A * t_eff / 2)

    Ad = M @ (identity + ss.A * t_eff / 2)
    Bd = M @ ss.B * t_eff
    Cd = ss.C @ M
    Dd = ss.D + Cd @ ss.B * t_eff / 2
    return StateSpace(Ad, Bd, Cd, Dd, TimeDomain.DISCRETE, sampling_time)


def discretize_state_space(
    ss: StateSpace,
    sampling_time: float,
    method: str = "tustin",
    prewarp: Optional[float] = None,
) -> StateSpace:
    """
    Discrete equivalent of a continuous state-space model.

    Parameters are those of discretize_transfer_function().

    Raises
    ------
    SingularMatrixError
        If I - A·T_eff/2 is singular (Tustin)

    Examples
    --------
    >>> ss = StateSpace([[-1.0]], [[1.0]], [[1.0]])
    >>> ssd = discretize_state_space(ss, 0.1, "euler")
    >>> ssd.A, ssd.B
    (array([[0.9]]), array([[0.1]]))
    """
    if not ss.is_continuous:
        raise ValueError("Only continuous state-space models can be discretized")
    sampling_time = _check_sampling_time(sampling_time)
    method = _normalize_method(method, prewarp)

    if method == "euler":
        return _discretize_euler(ss, sampling_time)
    return _discretize_tustin(ss, sampling_time, prewarp)


__all__ = ["discretize_transfer_function", "discretize_state_space", "tustin_constant"]

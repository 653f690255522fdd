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
Transfer Function Model

Rational transfer functions G = N/D of single-input single-output linear
systems, continuous (Laplace variable s) or discrete (shift variable z),
with an optional pure time delay.

Arithmetic cross-multiplies numerators and denominators and never cancels
common factors implicitly; call cancel_common_roots() to reduce a result.

Examples
--------
>>> G = TransferFunction([1.0], [2.0, 3.0, 1.0])   # 1 / (s² + 3s + 2)
>>> G.poles()
array([-2.+0.j, -1.+0.j])
>>> G.static_gain()
0.5
>>> G.is_stable()
True
>>> T = G.feedback()                               # G / (1 + G)
>>> T.den.coeffs
array([3., 3., 1.])
"""

import numbers
from typing import Callable, Optional, Union

import numpy as np

from lticore.exceptions import EmptyDenominatorError, UndefinedGainError
from lticore.polynomial.polynomial import Polynomial, eval_ratio
from lticore.types.core import ArrayLike, ComplexLike, RootVector, TimeDomain, as_time_domain

PolynomialLike = Union[Polynomial, ArrayLike, float]


def _degree_or_zero(poly: Polynomial) -> int:
    degree = poly.degree()
    return 0 if degree is None else degree


def poles_inside_boundary(poles, continuous: bool, tolerance: float = 1e-10) -> bool:
    """
    True when every pole lies strictly inside the stability region.

    Continuous: Re(p) < -tolerance·max(1, |p|). Discrete: |p| < 1 - tolerance.
    An empty pole set is stable.
    """
    poles = np.asarray(poles, dtype=complex)
    if continuous:
        return bool(np.all(poles.real < -tolerance * np.maximum(1.0, np.abs(poles))))
    return bool(np.all(np.abs(poles) < 1.0 - tolerance))


class TransferFunction:
    """
    Rational transfer function num/den.

    Parameters
    ----------
    num : Polynomial or ArrayLike
        Numerator, coefficients in ascending powers
    den : Polynomial or ArrayLike
        Denominator, coefficients in ascending powers; must not be zero
    time_domain : TimeDomain or str
        CONTINUOUS (default) or DISCRETE
    sampling_time : Optional[float]
        Sampling period of a discrete system (may be left unspecified)
    delay : float
        Pure time delay τ ≥ 0 in seconds (default 0)

    Raises
    ------
    EmptyDenominatorError
        If den is the zero polynomial
    ValueError
        For a negative delay, a non-positive sampling time, or a sampling
        time given to a continuous system

    Examples
    --------
    >>> G = TransferFunction([4.0, -3.0], [2.0, 5.0, -0.5])
    >>> G.static_gain()
    2.0
    >>> Gz = TransferFunction([1.0], [-0.5, 1.0], "discrete", sampling_time=0.1)
    >>> Gz.is_stable()
    True
    """

    def __init__(
        self,
        num: PolynomialLike,
        den: PolynomialLike,
        time_domain: Union[TimeDomain, str] = TimeDomain.CONTINUOUS,
        sampling_time: Optional[float] = None,
        delay: float = 0.0,
    ):
        self._num = Polynomial(num)
        self._den = Polynomial(den)
        if self._den.is_zero():
            raise EmptyDenominatorError("Transfer function denominator cannot be zero")

        self._time_domain = as_time_domain(time_domain)

        if sampling_time is not None:
            if self._time_domain == TimeDomain.CONTINUOUS:
                raise ValueError("sampling_time is only meaningful for discrete systems")
            sampling_time = float(sampling_time)
            if not sampling_time > 0:
                raise ValueError(f"sampling_time must be positive, got {sampling_time}")
        self._sampling_time = sampling_time

        delay = float(delay)
        if not (np.isfinite(delay) and delay >= 0):
            raise ValueError(f"delay must be a finite non-negative number, got {delay}")
        self._delay = delay

    # ========================================================================
    # Properties
    # ========================================================================

    @property
    def num(self) -> Polynomial:
        return self._num

    @property
    def den(self) -> Polynomial:
        return self._den

    @property
    def time_domain(self) -> TimeDomain:
        return self._time_domain

    @property
    def sampling_time(self) -> Optional[float]:
        return self._sampling_time

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def is_continuous(self) -> bool:
        return self._time_domain == TimeDomain.CONTINUOUS

    @property
    def is_discrete(self) -> bool:
        return self._time_domain == TimeDomain.DISCRETE

    def relative_degree(self) -> int:
        """deg(den) - deg(num); a zero numerator counts as degree 0."""
        return self._den.degree() - _degree_or_zero(self._num)

    def is_proper(self) -> bool:
        return self.relative_degree() >= 0

    def is_strictly_proper(self) -> bool:
        return self.relative_degree() > 0

    def _replace(self, num: Polynomial, den: Polynomial, delay: Optional[float] = None):
        return TransferFunction(
            num,
            den,
            self._time_domain,
            self._sampling_time,
            self._delay if delay is None else delay,
        )

    # ========================================================================
    # Poles, Zeros, Stability
    # ========================================================================

    def poles(self, **kwargs) -> RootVector:
        """
        Roots of the denominator in canonical order.

        Keyword arguments are passed to Polynomial.roots().
        """
        return self._den.roots(**kwargs)

    def zeros(self, **kwargs) -> RootVector:
        """Roots of the numerator (empty for a zero numerator)."""
        if self._num.is_zero():
            return np.zeros(0, dtype=complex)
        return self._num.roots(**kwargs)

    def is_stable(self, stability_tolerance: float = 1e-10, **kwargs) -> bool:
        """
        Asymptotic stability of the poles.

        Continuous: every pole has Re(p) < 0.
        Discrete: every pole has |p| < 1.

        Poles within `stability_tolerance` of the boundary (relative to
        max(1, |p|) in continuous time) are marginal and count as not
        stable, as in analyze_stability(). Other keyword arguments are
        passed to poles().

        Examples
        --------
        >>> TransferFunction([1.0], [16.0, 16.0, 1.0, 1.0]).is_stable()  # (s+1)(s²+16)
        False
        """
        return poles_inside_boundary(self.poles(**kwargs), self.is_continuous, stability_tolerance)

    # ========================================================================
    # Evaluation
    # ========================================================================

    def delay_response(self, tau: Optional[float] = None) -> Callable:
        """
        Frequency-domain factor of a pure delay.

        Continuous: s ↦ e^(-s·τ). Discrete: z ↦ z^(-τ/T).

        Parameters
        ----------
        tau : Optional[float]
            Delay in seconds (default: the delay of this transfer function)

        Examples
        --------
        >>> d = TransferFunction([1.0], [1.0]).delay_response(2.0)
        >>> abs(d(10j))
        1.0
        """
        tau = self._delay if tau is None else float(tau)
        if self.is_continuous:
            return lambda s: np.exp(-s * tau)

        if tau == 0:
            return lambda z: 1.0 + 0 * z
        if self._sampling_time is None:
            raise ValueError("A discrete delay requires a sampling_time")
        shift = tau / self._sampling_time
        return lambda z: np.power(z, -shift)

    def eval(self, point: Union[ComplexLike, ArrayLike]):
        """
        Value of the transfer function at s (or z), delay included.

        Uses eval_ratio, so large |s| does not overflow.
        """
        value = eval_ratio(self._num, self._den, point)
        if self._delay == 0:
            return value
        if isinstance(point, (list, tuple)):
            point = np.asarray(point)
        return value * self.delay_response()(point)

    __call__ = eval

    def frequency_response(self, omega: ArrayLike) -> np.ndarray:
        """
        Complex response at angular frequencies omega.

        Continuous: G(jω). Discrete: G(e^(jωT)).

        Examples
        --------
        >>> G = TransferFunction([1.0], [1.0, 1.0])
        >>> G.frequency_response([0.0, 1.0])
        array([1. +0.j , 0.5-0.5j])
        """
        omega = np.asarray(omega, dtype=float)
        if self.is_continuous:
            points = 1j * omega
        else:
            if self._sampling_time is None:
                raise ValueError("Frequency response of a discrete system requires a sampling_time")
            points = np.exp(1j * omega * self._sampling_time)
        return np.asarray(self.eval(points), dtype=complex)

    def static_gain(self):
        """
        Ratio of constant output to constant input, G(0) or G(z=1).

        Raises
        ------
        UndefinedGainError
            If the denominator vanishes at s=0 (z=1), i.e. the system
            has an integrator
        """
        point = 0.0 if self.is_continuous else 1.0
        den_value = self._den.eval(point)
        if den_value == 0:
            raise UndefinedGainError(
                f"Static gain undefined: denominator is zero at {'s=0' if self.is_continuous else 'z=1'}"
            )
        return self._num.eval(point) / den_value

    def _require_continuous(self, what: str):
        if not self.is_continuous:
            raise ValueError(f"{what} is defined for continuous transfer functions only")

    def initial_value(self) -> float:
        """
        Step response at t = 0⁺, lim s→∞ G(s).

        0 for strictly proper, the leading coefficient ratio for
        biproper, and inf for improper transfer functions.
        """
        self._require_continuous("initial_value")
        return self._limit_at_infinity(self._den.degree())

    def initial_value_derivative(self) -> float:
        """Derivative of the step response at t = 0⁺, lim s→∞ s·G(s)."""
        self._require_continuous("initial_value_derivative")
        return self._limit_at_infinity(self._den.degree() - 1)

    def _limit_at_infinity(self, den_degree: int) -> float:
        if self._num.is_zero():
            return 0.0
        num_degree = self._num.degree()
        if num_degree < den_degree:
            return 0.0
        if num_degree == den_degree:
            return self._num.leading_coefficient() / self._den.leading_coefficient()
        return float("inf")

    # ========================================================================
    # Closed-Loop Functions
    # ========================================================================

    def _require_no_delay(self, other: "TransferFunction", what: str):
        if self._delay != 0 or other._delay != 0:
            raise ValueError(f"{what} of delayed transfer functions is not rational")

    def feedback(
        self, other: Optional["TransferFunction"] = None, positive: bool = False
    ) -> "TransferFunction":
        """
        Closed loop G / (1 ± G·H) without cancellation.

        Parameters
        ----------
        other : Optional[TransferFunction]
            Feedback path H (default: unity)
        positive : bool
            Positive feedback G / (1 - G·H) instead of negative

        Examples
        --------
        >>> G = TransferFunction([1.0], [0.0, 1.0])        # 1/s
        >>> G.feedback().den.coeffs
        array([1., 1.])
        """
        other = self._replace(Polynomial.one(), Polynomial.one(), 0.0) if other is None else other
        self._check_compatible(other)
        self._require_no_delay(other, "Feedback")

        open_loop = self._num * other._num
        closed = self._den * other._den
        den = closed - open_loop if positive else closed + open_loop
        return TransferFunction(
            self._num * other._den, den, self._time_domain, self._merged_sampling_time(other)
        )

    def feedback_negative(self) -> "TransferFunction":
        """Unity negative feedback G / (1 + G)."""
        return self.feedback()

    def feedback_positive(self) -> "TransferFunction":
        """Unity positive feedback G / (1 - G)."""
        return self.feedback(positive=True)

    def sensitivity(self, r: "TransferFunction") -> "TransferFunction":
        """
        Sensitivity S = 1 / (1 + G·R) for the controller r.

        Examples
        --------
        >>> G = TransferFunction([1.0], [0.0, 1.0])
        >>> R = TransferFunction([4.0], [1.0, 1.0])
        >>> S = G.sensitivity(R)
        >>> S.num.coeffs, S.den.coeffs
        (array([0., 1., 1.]), array([4., 1., 1.]))
        """
        self._check_compatible(r)
        self._require_no_delay(r, "Sensitivity")
        loop_den = self._den * r._den
        return TransferFunction(
            loop_den,
            self._num * r._num + loop_den,
            self._time_domain,
            self._merged_sampling_time(r),
        )

    def complementary_sensitivity(self, r: "TransferFunction") -> "TransferFunction":
        """Complementary sensitivity F = G·R / (1 + G·R)."""
        return (self * r).feedback()

    def control_sensitivity(self, r: "TransferFunction") -> "TransferFunction":
        """Control sensitivity Q = R / (1 + G·R)."""
        self._check_compatible(r)
        self._require_no_delay(r, "Control sensitivity")
        return TransferFunction(
            r._num * self._den,
            r._num * self._num + r._den * self._den,
            self._time_domain,
            self._merged_sampling_time(r),
        )

    def root_locus(self, k: float, **kwargs) -> RootVector:
        """
        Closed-loop poles for loop gain k: roots of k·num + den.

        Examples
        --------
        >>> L = TransferFunction([1.0], Polynomial.from_roots([-1.0, -2.0]))
        >>> L.root_locus(0.25)
        array([-1.5+0.j, -1.5+0.j])
        """
        return (self._num * k + self._den).roots(**kwargs)

    # ========================================================================
    # Transformations
    # ========================================================================

    def normalize(self) -> "TransferFunction":
        """Equivalent transfer function with a monic denominator."""
        den, lead = self._den.monic()
        return self._replace(self._num / lead, den)

    def cancel_common_roots(self, tolerance: float = 1e-8, **kwargs) -> "TransferFunction":
        """
        Remove pole/zero pairs closer than tolerance·max(1, |p|).

        Each zero cancels at most one pole, the nearest one. The gain
        (ratio of leading coefficients) is preserved.

        Examples
        --------
        >>> G = TransferFunction(Polynomial.from_roots([-1.0]), Polynomial.from_roots([-1.0, -2.0]))
        >>> G.cancel_common_roots().den.coeffs
        array([2., 1.])
        """
        if self._num.is_zero() or self._num.degree() == 0:
            return self

        poles = list(self.poles(**kwargs))
        kept_zeros = []
        for z in self.zeros(**kwargs):
            if poles:
                distances = [abs(z - p) for p in poles]
                j = int(np.argmin(distances))
                if distances[j] <= tolerance * max(1.0, abs(poles[j])):
                    poles.pop(j)
                    continue
            kept_zeros.append(z)

        if len(kept_zeros) == self._num.degree():
            return self

        num = self._rebuild(kept_zeros, self._num)
        den = self._rebuild(poles, self._den)
        return self._replace(num, den)

    @staticmethod
    def _rebuild(roots, reference: Polynomial) -> Polynomial:
        poly = Polynomial.from_roots(np.asarray(roots, dtype=complex)) * complex(
            reference.leading_coefficient()
        )
        if np.iscomplexobj(reference.numeric_coeffs()):
            return poly
        return Polynomial(poly.coeffs.real)

    def inv(self) -> "TransferFunction":
        """
        Reciprocal den/num.

        Raises
        ------
        EmptyDenominatorError
            If the numerator is zero
        ValueError
            If the transfer function has a delay
        """
        if self._delay != 0:
            raise ValueError("The inverse of a delay is not causal")
        if self._num.is_zero():
            raise EmptyDenominatorError("The zero transfer function has no inverse")
        return self._replace(self._den, self._num)

    def with_delay(self, tau: float) -> "TransferFunction":
        """Copy with tau seconds of delay added to the existing delay."""
        return self._replace(self._num, self._den, self._delay + float(tau))

    def to_state_space(self):
        """State-space realization in controllability canonical form."""
        from lticore.systems.state_space import StateSpace

        return StateSpace.from_transfer_function(self)

    def discretize(
        self, sampling_time: float, method: str = "tustin", prewarp: Optional[float] = None
    ) -> "TransferFunction":
        """Discrete equivalent, see discretize_transfer_function()."""
        from lticore.systems.discretization import discretize_transfer_function

        return discretize_transfer_function(self, sampling_time, method, prewarp)

    # ========================================================================
    # Arithmetic
    # ========================================================================

    def _merged_sampling_time(self, other: "TransferFunction") -> Optional[float]:
        return self._sampling_time if self._sampling_time is not None else other._sampling_time

    def _check_compatible(self, other: "TransferFunction"):
        if self._time_domain != other._time_domain:
            raise ValueError(
                f"Cannot combine {self._time_domain.value} and "
                f"{other._time_domain.value} transfer functions"
            )
        if (
            self._sampling_time is not None
            and other._sampling_time is not None
            and self._sampling_time != other._sampling_time
        ):
            raise ValueError(
                f"Sampling times differ: {self._sampling_time} vs {other._sampling_time}"
            )

    def _coerce(self, other) -> Optional["TransferFunction"]:
        if isinstance(other, TransferFunction):
            self._check_compatible(other)
            return other
        if isinstance(other, Polynomial) or isinstance(other, (numbers.Number, np.number)):
            return TransferFunction(
                other, Polynomial.one(), self._time_domain, self._sampling_time
            )
        return None

    def __add__(self, other) -> "TransferFunction":
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        if self._delay != other._delay:
            raise ValueError("Only transfer functions with equal delays can be added")
        return TransferFunction(
            self._num * other._den + other._num * self._den,
            self._den * other._den,
            self._time_domain,
            self._merged_sampling_time(other),
            self._delay,
        )

    __radd__ = __add__

    def __neg__(self) -> "TransferFunction":
        return self._replace(-self._num, self._den)

    def __pos__(self) -> "TransferFunction":
        return self

    def __sub__(self, other) -> "TransferFunction":
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        return self + (-other)

    def __rsub__(self, other) -> "TransferFunction":
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        return other + (-self)

    def __mul__(self, other) -> "TransferFunction":
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        return TransferFunction(
            self._num * other._num,
            self._den * other._den,
            self._time_domain,
            self._merged_sampling_time(other),
            self._delay + other._delay,
        )

    __rmul__ = __mul__

    def __truediv__(self, other) -> "TransferFunction":
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        return self * other.inv()

    def __rtruediv__(self, other) -> "TransferFunction":
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        return other * self.inv()

    # ========================================================================
    # Comparison and Display
    # ========================================================================

    def __eq__(self, other) -> bool:
        if not isinstance(other, TransferFunction):
            return NotImplemented
        return (
            self._num == other._num
            and self._den == other._den
            and self._time_domain == other._time_domain
            and self._sampling_time == other._sampling_time
            and self._delay == other._delay
        )

    def __hash__(self) -> int:
        return hash((self._num, self._den, self._time_domain, self._sampling_time, self._delay))

    def __repr__(self) -> str:
        return (
            f"TransferFunction(num={self._num.coeffs.tolist()}, den={self._den.coeffs.tolist()}, "
            f"time_domain='{self._time_domain.value}', sampling_time={self._sampling_time}, "
            f"delay={self._delay})"
        )

    def __str__(self) -> str:
        var = "s" if self.is_continuous else "z"
        num = str(self._num).replace("*x", f"*{var}")
        den = str(self._den).replace("*x", f"*{var}")
        width = max(len(num), len(den))
        lines = [num.center(width), "-" * width, den.center(width)]
        if self._delay:
            lines[1] += f"  · delay {self._delay:g}"
        return "\n".join(lines)


__all__ = ["TransferFunction", "poles_inside_boundary"]

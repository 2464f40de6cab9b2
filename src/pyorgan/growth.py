"""
Growth functions relating organ age to organ length.

A growth function is a stateless capability shared by the parameter sets of
an organism. It is consumed by the organ growth loop of the surrounding
simulator, not by realization itself.

Variants:
- ExponentialGrowth (code 1): negative exponential approach to the maximal length
- LinearGrowth (code 2): constant elongation rate, capped at the maximal length
- CallableGrowth: wraps user supplied length/age functions
"""
import math
from abc import ABC, abstractmethod
from typing import Callable, Optional

from .exceptions import InvalidParameterError

__all__ = [
    'GrowthFunction',
    'ExponentialGrowth',
    'LinearGrowth',
    'CallableGrowth',
    'GROWTH_FUNCTION_TYPES',
    'create_growth_function',
]


class GrowthFunction(ABC):
    """Length as a function of age and initial growth rate."""

    @abstractmethod
    def length(self, age: float, rate: float, max_length: float = math.inf) -> float:
        """Organ length [cm] after ``age`` days at initial rate ``rate`` [cm/day]."""

    @abstractmethod
    def age(self, length: float, rate: float, max_length: float = math.inf) -> float:
        """Age [day] at which the organ reaches ``length``; inverse of ``length``."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class LinearGrowth(GrowthFunction):
    """Linear elongation: ``l(t) = min(r t, k)``."""

    def length(self, age: float, rate: float, max_length: float = math.inf) -> float:
        return min(max(age, 0.0) * rate, max_length)

    def age(self, length: float, rate: float, max_length: float = math.inf) -> float:
        if rate <= 0:
            return math.inf
        return min(length, max_length) / rate


class ExponentialGrowth(GrowthFunction):
    """Negative exponential elongation: ``l(t) = k (1 - exp(-r t / k))``.

    The initial slope equals ``r`` and the length converges to ``k``. An
    unbounded maximal length degenerates to linear growth.
    """

    def length(self, age: float, rate: float, max_length: float = math.inf) -> float:
        age = max(age, 0.0)
        if math.isinf(max_length):
            return age * rate
        if max_length <= 0:
            return 0.0
        return max_length * (1.0 - math.exp(-(rate / max_length) * age))

    def age(self, length: float, rate: float, max_length: float = math.inf) -> float:
        if rate <= 0:
            return math.inf
        if math.isinf(max_length):
            return length / rate
        if length >= max_length:
            return math.inf
        return -max_length / rate * math.log(1.0 - length / max_length)


class CallableGrowth(GrowthFunction):
    """Growth function backed by user supplied callables.

    Args:
        length_fn: ``length_fn(age, rate, max_length) -> length``
        age_fn: Optional inverse ``age_fn(length, rate, max_length) -> age``.
            Without it ``age`` is solved numerically by bisection.
    """

    def __init__(self, length_fn: Callable[[float, float, float], float],
                 age_fn: Optional[Callable[[float, float, float], float]] = None):
        self.length_fn = length_fn
        self.age_fn = age_fn

    def length(self, age: float, rate: float, max_length: float = math.inf) -> float:
        return self.length_fn(age, rate, max_length)

    def age(self, length: float, rate: float, max_length: float = math.inf,
            horizon: float = 1e6, tolerance: float = 1e-9) -> float:
        if self.age_fn is not None:
            return self.age_fn(length, rate, max_length)
        if self.length_fn(horizon, rate, max_length) < length:
            return math.inf
        low, high = 0.0, horizon
        while high - low > tolerance * max(1.0, high):
            mid = 0.5 * (low + high)
            if self.length_fn(mid, rate, max_length) < length:
                low = mid
            else:
                high = mid
        return high

    def __repr__(self) -> str:
        return f"CallableGrowth({getattr(self.length_fn, '__name__', 'fn')})"


GROWTH_FUNCTION_TYPES = {
    1: ExponentialGrowth,
    2: LinearGrowth,
}


def create_growth_function(growth_function_type: int = 1) -> GrowthFunction:
    """Factory function to create a growth function from its integer code.

    Args:
        growth_function_type: 1 for negative exponential, 2 for linear

    Returns:
        GrowthFunction instance

    Raises:
        InvalidParameterError: If the code is unknown
    """
    try:
        return GROWTH_FUNCTION_TYPES[int(growth_function_type)]()
    except KeyError:
        raise InvalidParameterError(
            'growth_function_type', growth_function_type,
            f"must be one of {sorted(GROWTH_FUNCTION_TYPES)}"
        ) from None

"""
Environment scaling lookups.

An environment scale maps a 3D position to a non-negative multiplier. Parameter
sets use it to modulate successor selection at branch points; tropisms can use
it as a field to grow along. Positions follow the simulator convention that
``z`` points up, so soil depth is ``-z``.
"""
from abc import ABC, abstractmethod
from typing import Callable, Sequence

import numpy as np

from .exceptions import InvalidParameterError, validate_non_negative

__all__ = [
    'EnvironmentScale',
    'NeutralScale',
    'ConstantScale',
    'DepthProfileScale',
    'CallableScale',
]


class EnvironmentScale(ABC):
    """Position-dependent multiplier in ``[0, inf)``."""

    @abstractmethod
    def value(self, position: np.ndarray) -> float:
        """Raw lookup at ``position``; may be negative for user callables."""

    def scale(self, position: Sequence[float]) -> float:
        """Scale at ``position``, clamped to be non-negative."""
        return max(float(self.value(np.asarray(position, dtype=float))), 0.0)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class NeutralScale(EnvironmentScale):
    """Returns 1 everywhere."""

    def value(self, position: np.ndarray) -> float:
        return 1.0


class ConstantScale(EnvironmentScale):
    """Returns the same value everywhere."""

    def __init__(self, constant: float):
        self.constant = validate_non_negative(float(constant), 'constant')

    def value(self, position: np.ndarray) -> float:
        return self.constant

    def __repr__(self) -> str:
        return f"ConstantScale({self.constant})"


class DepthProfileScale(EnvironmentScale):
    """Piecewise linear profile over depth (``-z``).

    Outside the tabulated range the first or last value is held constant.

    Args:
        depths: Strictly increasing depths [cm]
        values: Scale at each depth
    """

    def __init__(self, depths: Sequence[float], values: Sequence[float]):
        self.depths = np.asarray(depths, dtype=float)
        self.values = np.asarray(values, dtype=float)
        if self.depths.ndim != 1 or self.depths.shape != self.values.shape:
            raise InvalidParameterError(
                'values', list(values), "must have one value per depth"
            )
        if self.depths.size == 0:
            raise InvalidParameterError('depths', list(depths), "must not be empty")
        if np.any(np.diff(self.depths) <= 0):
            raise InvalidParameterError('depths', list(depths), "must be strictly increasing")

    def value(self, position: np.ndarray) -> float:
        return float(np.interp(-position[2], self.depths, self.values))

    def __repr__(self) -> str:
        return f"DepthProfileScale(depths={self.depths.tolist()}, values={self.values.tolist()})"


class CallableScale(EnvironmentScale):
    """Wraps a user supplied ``fn(position) -> float``."""

    def __init__(self, fn: Callable[[np.ndarray], float]):
        self.fn = fn

    def value(self, position: np.ndarray) -> float:
        return self.fn(position)

    def __repr__(self) -> str:
        return f"CallableScale({getattr(self.fn, '__name__', 'fn')})"

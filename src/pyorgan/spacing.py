"""
Inter-lateral spacing shapes.

The spacing shape controls how the mean distance between successive lateral
branch points changes along an organ. Every shape keeps the expected total
spacing equal to ``spacing mean * number of distances``; only the positional
trend differs.

Usage:
    from pyorgan.spacing import SpacingShape, spacing_weights

    shape = SpacingShape.from_value("linear_increasing")
    spacing_weights(shape, 4)  # array([0.4, 0.8, 1.2, 1.6])
"""
import math
from enum import Enum
from typing import Union

import numpy as np

__all__ = [
    'SpacingShape',
    'spacing_weights',
    'spacing_means',
]

# Bound on the ulp nudges that make the spacing means add up exactly
_MAX_ROUNDING_STEPS = 64


class SpacingShape(int, Enum):
    """Positional trend of inter-lateral distances.

    Inherits from (int, Enum) so the integer codes used in parameter files
    compare equal to the members.
    """

    UNIFORM = 0
    """Every distance has the same mean."""

    LINEAR_INCREASING = 1
    """Means grow linearly towards the organ tip."""

    LINEAR_DECREASING = 2
    """Means shrink linearly towards the organ tip."""

    EXPONENTIAL_INCREASING = 3
    """Means follow a geometric progression growing towards the tip."""

    EXPONENTIAL_DECREASING = 4
    """Means follow a geometric progression shrinking towards the tip."""

    @property
    def label(self) -> str:
        """Lower-case name used in YAML, TOML and JSON parameter files."""
        return self.name.lower()

    @classmethod
    def from_value(cls, value: Union['SpacingShape', int, str]) -> 'SpacingShape':
        """Convert an integer code, a name or a member to a SpacingShape.

        Args:
            value: ``3``, ``"3"``, ``"exponential_increasing"`` or a member

        Returns:
            The matching SpacingShape

        Raises:
            ValueError: If the value does not name a spacing shape
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            text = value.strip()
            if text.lstrip('-').isdigit():
                return cls(int(text))
            key = text.upper().replace('-', '_').replace(' ', '_')
            if key in cls.__members__:
                return cls[key]
            raise ValueError(f"Unknown spacing shape: {value!r}")
        return cls(int(value))


def spacing_weights(shape: Union[SpacingShape, int, str], count: int) -> np.ndarray:
    """Relative weights of ``count`` successive inter-lateral distances.

    The weights always sum to ``count``, so multiplying them by the configured
    spacing mean gives positional means whose average is that mean.

    Args:
        shape: Spacing shape
        count: Number of inter-lateral distances

    Returns:
        Array of ``count`` positive weights (empty for ``count <= 0``)
    """
    shape = SpacingShape.from_value(shape)
    if count <= 0:
        return np.zeros(0)
    if count == 1 or shape == SpacingShape.UNIFORM:
        return np.ones(count)

    if shape in (SpacingShape.LINEAR_INCREASING, SpacingShape.LINEAR_DECREASING):
        # w_i = 2 (i + 1) / (n + 1), sums to n
        weights = 2.0 * np.arange(1, count + 1) / (count + 1)
    else:
        # geometric progression from 1 to e, rescaled to sum to n
        progression = np.geomspace(1.0, math.e, count)
        weights = progression * (count / progression.sum())

    if shape in (SpacingShape.LINEAR_DECREASING, SpacingShape.EXPONENTIAL_DECREASING):
        weights = weights[::-1]
    return weights


def spacing_means(mean: float, shape: Union[SpacingShape, int, str], count: int) -> np.ndarray:
    """Positional means of ``count`` inter-lateral distances.

    The means sum (with ``math.fsum``) to exactly ``count * mean``. For
    non-uniform shapes the last mean absorbs the rounding of the others.
    """
    means = mean * spacing_weights(shape, count)
    if count < 2:
        return means
    total = count * mean
    if math.fsum(means) != total:
        means[-1] = -math.fsum(list(means[:-1]) + [-total])
        for _ in range(_MAX_ROUNDING_STEPS):
            error = total - math.fsum(means)
            if error == 0.0:
                break
            means[-1] = math.nextafter(means[-1], math.copysign(math.inf, error))
    return means

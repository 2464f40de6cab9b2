"""
Tropisms: stochastic choice of the next growth direction.

Every tropism perturbs the current heading ``n_trials`` times and keeps the
candidate that minimizes its objective. The polar deflection of a candidate
is ``|N(0, sigma)| * sqrt(dx)`` and its azimuth is uniform in ``[0, 2 pi)``,
so ``sigma`` is the expected change per unit length and ``n_trials`` is the
strength of the tropism (one trial is a pure random walk).

Variants:
- RandomTropism: no preferred direction
- Gravitropism / AntiGravitropism: grow down / up
- Plagiotropism: grow horizontally
- Exotropism: keep the initial heading
- Hydrotropism: grow towards higher values of an EnvironmentScale
- ObjectiveTropism: user supplied objective
"""
import math
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Sequence

import numpy as np

from .environment import EnvironmentScale, NeutralScale
from .exceptions import InvalidParameterError, validate_non_negative, validate_positive

__all__ = [
    'TropismState',
    'TropismType',
    'Tropism',
    'RandomTropism',
    'Gravitropism',
    'AntiGravitropism',
    'Plagiotropism',
    'Exotropism',
    'Hydrotropism',
    'ObjectiveTropism',
    'create_tropism',
    'rotate_heading',
]

UP = np.array([0.0, 0.0, 1.0])


@dataclass(frozen=True)
class TropismState:
    """Growth state handed to a tropism by the organ growth loop.

    Attributes:
        position: Current tip position
        heading: Current growth direction (normalized on use)
        segment_length: Length of the next segment [cm]
        initial_heading: Heading at emergence, used by Exotropism
    """
    position: Sequence[float]
    heading: Sequence[float]
    segment_length: float = 1.0
    initial_heading: Optional[Sequence[float]] = None


def _normalize(vector: Sequence[float]) -> np.ndarray:
    vector = np.asarray(vector, dtype=float)
    norm = np.linalg.norm(vector)
    if norm == 0.0:
        raise InvalidParameterError('heading', vector.tolist(), "must not be the zero vector")
    return vector / norm


def rotate_heading(heading: Sequence[float], alpha: float, beta: float) -> np.ndarray:
    """Deflect ``heading`` by polar angle ``alpha`` at azimuth ``beta``.

    Args:
        heading: Direction to rotate
        alpha: Angle between the old and the new direction [rad]
        beta: Rotation of the deflection around the old direction [rad]

    Returns:
        Unit vector of the new direction
    """
    h = _normalize(heading)
    # any vector not parallel to h spans the orthogonal frame
    helper = UP if abs(h[2]) < 0.9 else np.array([1.0, 0.0, 0.0])
    u = np.cross(h, helper)
    u /= np.linalg.norm(u)
    v = np.cross(h, u)
    new = math.cos(alpha) * h + math.sin(alpha) * (math.cos(beta) * u + math.sin(beta) * v)
    return new / np.linalg.norm(new)


class Tropism(ABC):
    """Base class for tropisms.

    Args:
        n_trials: Number of candidate directions per call (>= 1)
        sigma: Expected angular change per unit length [rad/cm]
        rng: Random source; defaults to the global ``random`` module
    """

    def __init__(self, n_trials: float = 1.0, sigma: float = 0.2, rng=None):
        self.n_trials = max(int(round(validate_positive(n_trials, 'n_trials'))), 1)
        self.sigma = validate_non_negative(sigma, 'sigma')
        self.rng = rng if rng is not None else random

    @abstractmethod
    def objective(self, candidate: np.ndarray, state: TropismState) -> float:
        """Cost of growing along ``candidate``; lower is preferred."""

    def direction(self, state: TropismState, rng=None) -> np.ndarray:
        """Choose the next growth direction for ``state``.

        Args:
            state: Current growth state
            rng: Optional random source overriding the tropism's own

        Returns:
            Unit vector of the chosen direction
        """
        rng = rng if rng is not None else self.rng
        step = math.sqrt(max(state.segment_length, 0.0))
        best, best_cost = None, math.inf
        for _ in range(self.n_trials):
            alpha = abs(rng.gauss(0.0, self.sigma)) * step if self.sigma > 0 else 0.0
            beta = rng.random() * 2.0 * math.pi
            candidate = rotate_heading(state.heading, alpha, beta)
            cost = self.objective(candidate, state)
            if best is None or cost < best_cost:
                best, best_cost = candidate, cost
        return best

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(n_trials={self.n_trials}, sigma={self.sigma})"


class RandomTropism(Tropism):
    """Random walk without preferred direction."""

    def objective(self, candidate: np.ndarray, state: TropismState) -> float:
        return self.rng.random()


class Gravitropism(Tropism):
    """Prefers growing downwards."""

    def objective(self, candidate: np.ndarray, state: TropismState) -> float:
        return 0.5 * (candidate[2] + 1.0)


class AntiGravitropism(Tropism):
    """Prefers growing upwards."""

    def objective(self, candidate: np.ndarray, state: TropismState) -> float:
        return 0.5 * (1.0 - candidate[2])


class Plagiotropism(Tropism):
    """Prefers growing horizontally."""

    def objective(self, candidate: np.ndarray, state: TropismState) -> float:
        return abs(candidate[2])


class Exotropism(Tropism):
    """Prefers keeping the heading the organ emerged with."""

    def objective(self, candidate: np.ndarray, state: TropismState) -> float:
        reference = state.initial_heading if state.initial_heading is not None else state.heading
        cosine = float(np.dot(candidate, _normalize(reference)))
        return math.acos(max(-1.0, min(1.0, cosine))) / math.pi


class Hydrotropism(Tropism):
    """Prefers segments ending where ``environment_scale`` is highest."""

    def __init__(self, n_trials: float = 1.0, sigma: float = 0.2, rng=None,
                 environment_scale: Optional[EnvironmentScale] = None):
        super().__init__(n_trials, sigma, rng)
        self.environment_scale = environment_scale or NeutralScale()

    def objective(self, candidate: np.ndarray, state: TropismState) -> float:
        tip = np.asarray(state.position, dtype=float) + state.segment_length * candidate
        return -self.environment_scale.scale(tip)


class ObjectiveTropism(Tropism):
    """Tropism driven by a user supplied ``objective(candidate, state) -> float``."""

    def __init__(self, objective: Callable[[np.ndarray, TropismState], float],
                 n_trials: float = 1.0, sigma: float = 0.2, rng=None):
        super().__init__(n_trials, sigma, rng)
        self._objective = objective

    def objective(self, candidate: np.ndarray, state: TropismState) -> float:
        return self._objective(candidate, state)


class TropismType(int, Enum):
    """Integer codes of the built-in tropisms used in parameter files."""

    PLAGIOTROPISM = 0
    GRAVITROPISM = 1
    EXOTROPISM = 2
    HYDROTROPISM = 3
    ANTIGRAVITROPISM = 4
    RANDOM = 5


_TROPISM_CLASSES = {
    TropismType.PLAGIOTROPISM: Plagiotropism,
    TropismType.GRAVITROPISM: Gravitropism,
    TropismType.EXOTROPISM: Exotropism,
    TropismType.HYDROTROPISM: Hydrotropism,
    TropismType.ANTIGRAVITROPISM: AntiGravitropism,
    TropismType.RANDOM: RandomTropism,
}


def create_tropism(tropism_type: int = TropismType.GRAVITROPISM, n_trials: float = 1.0,
                   sigma: float = 0.2, rng=None,
                   environment_scale: Optional[EnvironmentScale] = None) -> Tropism:
    """Factory function to create a tropism from its integer code.

    Args:
        tropism_type: TropismType code
        n_trials: Number of candidate directions per call
        sigma: Expected angular change per unit length [rad/cm]
        rng: Random source
        environment_scale: Field followed by Hydrotropism

    Returns:
        Tropism instance

    Raises:
        InvalidParameterError: If the code is unknown
    """
    try:
        kind = TropismType(int(tropism_type))
    except ValueError:
        raise InvalidParameterError(
            'tropism_type', tropism_type, f"must be one of {[t.value for t in TropismType]}"
        ) from None
    if kind == TropismType.HYDROTROPISM:
        return Hydrotropism(n_trials, sigma, rng, environment_scale=environment_scale)
    return _TROPISM_CLASSES[kind](n_trials, sigma, rng)

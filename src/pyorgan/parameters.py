"""
Organ parameter sets and realized organ instances.

An OrganParameterSet describes one organ subtype statistically: every scalar
trait is a (mean, sd) pair. ``realize()`` draws one concrete OrganInstance
from it, and ``choose_successor_type()`` dices the subtype of the lateral that
emerges at a branch point.

Usage:
    >>> from pyorgan import OrganParameterSet
    >>> params = OrganParameterSet(subtype=1, basal_zone=(2, 0), apical_zone=(5, 0),
    ...                            spacing=(1, 0), branch_count=(4, 0))
    >>> organ = params.realize()
    >>> organ.inter_lateral_distances
    (1.0, 1.0, 1.0)
    >>> organ.maximal_length()
    10.0
"""
import math
import random
from dataclasses import dataclass
from typing import Any, Dict, NamedTuple, Optional, Sequence, Tuple, Union

from .environment import EnvironmentScale, NeutralScale
from .exceptions import InvalidParameterError, SuccessorMismatchError
from .growth import GROWTH_FUNCTION_TYPES, GrowthFunction, create_growth_function
from .logging_config import get_logger, log_configuration_warning, log_realization
from .organism import get_organism
from .spacing import SpacingShape, spacing_means
from .tropism import Tropism, TropismType, create_tropism

__all__ = [
    'WEIGHT_TOLERANCE',
    'Trait',
    'OrganInstance',
    'OrganParameterSet',
]

logger = get_logger(__name__)

# Tolerance for the successor probability sum and for "no weight left"
WEIGHT_TOLERANCE = 1e-6

TraitLike = Union['Trait', Tuple[float, float], float]


class Trait(NamedTuple):
    """A normally distributed trait given by its mean and standard deviation."""
    mean: float
    sd: float = 0.0

    @classmethod
    def coerce(cls, value: TraitLike) -> 'Trait':
        """Build a Trait from a Trait, a ``(mean, sd)`` pair or a bare mean."""
        if isinstance(value, cls):
            return value
        if isinstance(value, (int, float)):
            return cls(float(value), 0.0)
        mean, sd = value
        return cls(float(mean), float(sd))

    def sample(self, rng=random) -> float:
        """Draw ``N(mean, sd)`` floored at zero.

        A non-positive sd consumes no random number and returns ``max(mean, 0)``.
        """
        if self.sd <= 0.0:
            return max(self.mean, 0.0)
        return max(rng.gauss(self.mean, self.sd), 0.0)


@dataclass(frozen=True)
class OrganInstance:
    """Parameters of one specific organ, created by OrganParameterSet.realize().

    Attributes:
        subtype: Subtype of the parameter set this organ was drawn from
        basal_length: Basal zone [cm]
        apical_length: Apical zone [cm]
        branch_count: Number of lateral branch points
        inter_lateral_distances: Distances between successive branch points [cm]
        growth_rate: Initial growth rate [cm/day]
        radius: Organ radius [cm]
        insertion_angle: Angle between organ and parent organ [rad]
        lifetime: Organ life time [day]
    """
    subtype: int
    basal_length: float
    apical_length: float
    branch_count: int
    inter_lateral_distances: Tuple[float, ...]
    growth_rate: float
    radius: float
    insertion_angle: float
    lifetime: float

    def __post_init__(self):
        object.__setattr__(self, 'inter_lateral_distances',
                           tuple(float(d) for d in self.inter_lateral_distances))
        expected = max(self.branch_count - 1, 0)
        if len(self.inter_lateral_distances) != expected:
            raise InvalidParameterError(
                'inter_lateral_distances', len(self.inter_lateral_distances),
                f"expected {expected} distances for {self.branch_count} branches"
            )
        for name in ('basal_length', 'apical_length', 'branch_count', 'growth_rate',
                     'radius', 'lifetime'):
            if getattr(self, name) < 0:
                raise InvalidParameterError(name, getattr(self, name), "must not be negative")
        if any(d < 0 for d in self.inter_lateral_distances):
            raise InvalidParameterError(
                'inter_lateral_distances', self.inter_lateral_distances, "must not be negative"
            )

    def maximal_length(self) -> float:
        """Exact maximal length of this organ [cm]."""
        return self.basal_length + self.apical_length + math.fsum(self.inter_lateral_distances)

    def as_dict(self) -> Dict[str, Any]:
        return {
            'subtype': self.subtype,
            'basal_length': self.basal_length,
            'apical_length': self.apical_length,
            'branch_count': self.branch_count,
            'inter_lateral_distances': list(self.inter_lateral_distances),
            'growth_rate': self.growth_rate,
            'radius': self.radius,
            'insertion_angle': self.insertion_angle,
            'lifetime': self.lifetime,
        }


class OrganParameterSet:
    """Statistical description of one organ subtype.

    Traits may be given as Trait, ``(mean, sd)`` tuples or bare means.
    Capabilities that are not passed are built from the scalar fields
    (tropism from ``tropism_*``, growth function from
    ``growth_function_type``) and a neutral environment scale.

    Instances are not mutated after construction; use ``reconfigure`` to
    derive a changed parameter set.

    Args:
        subtype: Organ subtype identifier
        name: Human readable subtype name
        organ_type: Organ class this parameter set belongs to
        basal_zone: Basal zone length [cm]
        apical_zone: Apical zone length [cm]
        spacing: Inter-lateral distance [cm]
        branch_count: Number of branch points
        growth_rate: Initial growth rate [cm/day]
        radius: Organ radius [cm]
        insertion_angle: Angle to the parent organ [rad]
        lifetime: Organ life time [day]
        max_length: Maximal organ length [cm]; persisted, not used by realize
        spacing_shape: Positional trend of the inter-lateral distances
        successor_types: Subtypes of the laterals
        successor_weights: Probability of each successor type
        tropism_type: TropismType code of the default tropism
        tropism_trials: Number of trials of the default tropism
        tropism_strength: Expected angular change of the default tropism [rad/cm]
        segment_length: Maximal segment size used by the growth loop [cm]
        growth_function_type: 1 negative exponential, 2 linear
        revolution_rotation: Revolution rotation of successive laterals [rad]
        revolution_deviation: Deviation of the revolution rotation [rad]
        initial_revolution: Revolution rotation of the first lateral [rad]
        tropism: Shared tropism capability
        growth_function: Shared growth function capability
        environment_scale: Shared scale of the branching probability
        elongation_scale: Shared scale of the elongation rate
        angle_scale: Shared scale of the insertion angle
        organism: Handle of the owning organism in the organism registry
        rng: Random source overriding the organism's
    """

    def __init__(
        self,
        subtype: int = 1,
        name: str = "undefined",
        organ_type: str = "stem",
        basal_zone: TraitLike = (0.0, 0.0),
        apical_zone: TraitLike = (10.0, 0.0),
        spacing: TraitLike = (1.0, 0.0),
        branch_count: TraitLike = (0.0, 0.0),
        growth_rate: TraitLike = (1.0, 0.0),
        radius: TraitLike = (0.1, 0.0),
        insertion_angle: TraitLike = (1.22, 0.0),
        lifetime: TraitLike = (1e9, 0.0),
        max_length: TraitLike = (0.0, 0.0),
        spacing_shape: Union[SpacingShape, int, str] = SpacingShape.UNIFORM,
        successor_types: Sequence[int] = (),
        successor_weights: Sequence[float] = (),
        tropism_type: int = TropismType.GRAVITROPISM,
        tropism_trials: float = 1.0,
        tropism_strength: float = 0.2,
        segment_length: float = 0.25,
        growth_function_type: int = 1,
        revolution_rotation: float = 0.6,
        revolution_deviation: float = 0.2,
        initial_revolution: float = 0.2,
        tropism: Optional[Tropism] = None,
        growth_function: Optional[GrowthFunction] = None,
        environment_scale: Optional[EnvironmentScale] = None,
        elongation_scale: Optional[EnvironmentScale] = None,
        angle_scale: Optional[EnvironmentScale] = None,
        organism: Optional[int] = None,
        rng=None,
    ):
        self.subtype = int(subtype)
        self.name = name
        self.organ_type = organ_type

        self.basal_zone = self._checked_trait('basal_zone', basal_zone)
        self.apical_zone = self._checked_trait('apical_zone', apical_zone)
        self.spacing = self._checked_trait('spacing', spacing)
        self.branch_count = self._checked_trait('branch_count', branch_count)
        self.growth_rate = self._checked_trait('growth_rate', growth_rate)
        self.radius = self._checked_trait('radius', radius)
        self.insertion_angle = self._checked_trait('insertion_angle', insertion_angle)
        self.lifetime = self._checked_trait('lifetime', lifetime)
        self.max_length = self._checked_trait('max_length', max_length)
        self.spacing_shape = SpacingShape.from_value(spacing_shape)

        self.successor_types, self.successor_weights = self._checked_successors(
            successor_types, successor_weights
        )

        self.tropism_type = self._checked_code(
            'tropism_type', tropism_type, {t.value for t in TropismType}, TropismType.GRAVITROPISM
        )
        self.tropism_trials = self._checked_minimum('tropism_trials', tropism_trials, 1.0)
        self.tropism_strength = self._checked_minimum('tropism_strength', tropism_strength, 0.0)
        self.segment_length = float(segment_length)
        self.growth_function_type = self._checked_code(
            'growth_function_type', growth_function_type, GROWTH_FUNCTION_TYPES, 1
        )
        self.revolution_rotation = float(revolution_rotation)
        self.revolution_deviation = float(revolution_deviation)
        self.initial_revolution = float(initial_revolution)

        self.environment_scale = environment_scale if environment_scale is not None else NeutralScale()
        self.elongation_scale = elongation_scale if elongation_scale is not None else NeutralScale()
        self.angle_scale = angle_scale if angle_scale is not None else NeutralScale()
        self.tropism = tropism if tropism is not None else create_tropism(
            self.tropism_type, self.tropism_trials, self.tropism_strength,
            environment_scale=self.environment_scale,
        )
        self.growth_function = (growth_function if growth_function is not None
                                else create_growth_function(self.growth_function_type))

        self.organism = organism
        self.rng = rng

    def _checked_trait(self, name: str, value: TraitLike) -> Trait:
        trait = Trait.coerce(value)
        if trait.sd < 0:
            log_configuration_warning(logger, self.subtype, name,
                                      f"negative standard deviation {trait.sd} treated as 0")
            trait = trait._replace(sd=0.0)
        if trait.mean < 0:
            log_configuration_warning(logger, self.subtype, name,
                                      f"negative mean {trait.mean}; samples are clamped to 0")
        return trait

    def _checked_minimum(self, name: str, value: float, minimum: float) -> float:
        value = float(value)
        if not value >= minimum:
            log_configuration_warning(logger, self.subtype, name,
                                      f"{value} is below {minimum:g}, using {minimum:g}")
            return minimum
        return value

    def _checked_code(self, name: str, value: int, known, default: int) -> int:
        code = int(value)
        if code not in known:
            log_configuration_warning(logger, self.subtype, name,
                                      f"unknown code {code}, using {int(default)}")
            return int(default)
        return code

    def _checked_successors(self, types: Sequence[int],
                            weights: Sequence[float]) -> Tuple[Tuple[int, ...], Tuple[float, ...]]:
        types = tuple(int(t) for t in types)
        weights = tuple(float(w) for w in weights)
        if len(types) != len(weights):
            raise SuccessorMismatchError(self.subtype, len(types), len(weights))
        if any(w < 0 for w in weights):
            log_configuration_warning(logger, self.subtype, 'successor_weights',
                                      f"negative probabilities in {list(weights)} set to 0")
            weights = tuple(max(w, 0.0) for w in weights)
        if weights and abs(sum(weights) - 1.0) > WEIGHT_TOLERANCE:
            log_configuration_warning(logger, self.subtype, 'successor_weights',
                                      f"probabilities sum to {sum(weights)}, renormalized when dicing")
        return types, weights

    def get_organism(self):
        """Resolve the owning organism, or None if unbound or unregistered."""
        if self.organism is None:
            return None
        return get_organism(self.organism, default=None)

    def _random_source(self, rng=None):
        if rng is not None:
            return rng
        if self.rng is not None:
            return self.rng
        organism = self.get_organism()
        if organism is not None:
            return organism.rng
        return random

    def realize(self, rng=None) -> OrganInstance:
        """Create a specific organ from this parameter set.

        Args:
            rng: Random source for this call; defaults to the parameter set's
                own source, then the organism's, then the global ``random``

        Returns:
            A new OrganInstance
        """
        rng = self._random_source(rng)

        basal_length = self.basal_zone.sample(rng)
        apical_length = self.apical_zone.sample(rng)
        branch_count = max(int(math.floor(self.branch_count.sample(rng) + 0.5)), 0)

        means = spacing_means(self.spacing.mean, self.spacing_shape, max(branch_count - 1, 0))
        distances = tuple(Trait(float(mean), self.spacing.sd).sample(rng) for mean in means)

        instance = OrganInstance(
            subtype=self.subtype,
            basal_length=basal_length,
            apical_length=apical_length,
            branch_count=branch_count,
            inter_lateral_distances=distances,
            growth_rate=self.growth_rate.sample(rng),
            radius=self.radius.sample(rng),
            insertion_angle=self.insertion_angle.sample(rng),
            lifetime=self.lifetime.sample(rng),
        )
        log_realization(logger, instance)
        return instance

    def choose_successor_type(self, position: Sequence[float] = (0.0, 0.0, 0.0),
                              rng=None) -> Optional[int]:
        """Dice the subtype of the lateral emerging at ``position``.

        Successor probabilities are multiplied by the environment scale at
        ``position`` and renormalized.

        Args:
            position: Branch point position, only used for the environment scale
            rng: Random source for this call

        Returns:
            The chosen subtype, or None if no lateral emerges here
        """
        if not self.successor_types:
            return None

        scale = self.environment_scale.scale(position)
        weights = [weight * scale for weight in self.successor_weights]
        total = sum(weights)
        if total <= WEIGHT_TOLERANCE:
            return None

        draw = self._random_source(rng).random() * total
        cumulative = 0.0
        for subtype, weight in zip(self.successor_types, weights):
            cumulative += weight
            if cumulative > draw:
                return subtype

        # float round-off right below total
        for subtype, weight in zip(reversed(self.successor_types), reversed(weights)):
            if weight > 0:
                return subtype
        return None

    def expected_maximal_length(self) -> float:
        """Maximal organ length estimated from the trait means [cm].

        Ignores standard deviations. For a parameter set whose standard
        deviations are all 0 and whose branch count mean is a whole number,
        it equals ``realize().maximal_length()`` exactly for every spacing
        shape. A fractional branch count mean is rounded by ``realize`` but
        not here.
        """
        return (self.basal_zone.mean + self.apical_zone.mean
                + max(self.branch_count.mean - 1.0, 0.0) * self.spacing.mean)

    def _init_kwargs(self) -> Dict[str, Any]:
        return {
            'subtype': self.subtype,
            'name': self.name,
            'organ_type': self.organ_type,
            'basal_zone': self.basal_zone,
            'apical_zone': self.apical_zone,
            'spacing': self.spacing,
            'branch_count': self.branch_count,
            'growth_rate': self.growth_rate,
            'radius': self.radius,
            'insertion_angle': self.insertion_angle,
            'lifetime': self.lifetime,
            'max_length': self.max_length,
            'spacing_shape': self.spacing_shape,
            'successor_types': self.successor_types,
            'successor_weights': self.successor_weights,
            'tropism_type': self.tropism_type,
            'tropism_trials': self.tropism_trials,
            'tropism_strength': self.tropism_strength,
            'segment_length': self.segment_length,
            'growth_function_type': self.growth_function_type,
            'revolution_rotation': self.revolution_rotation,
            'revolution_deviation': self.revolution_deviation,
            'initial_revolution': self.initial_revolution,
            'tropism': self.tropism,
            'growth_function': self.growth_function,
            'environment_scale': self.environment_scale,
            'elongation_scale': self.elongation_scale,
            'angle_scale': self.angle_scale,
            'organism': self.organism,
            'rng': self.rng,
        }

    def reconfigure(self, **changes) -> 'OrganParameterSet':
        """Return a validated copy with ``changes`` applied.

        Changing a tropism or growth-function field without passing the
        matching capability rebuilds that capability from the new fields.
        """
        kwargs = self._init_kwargs()
        unknown = set(changes) - set(kwargs)
        if unknown:
            raise TypeError(f"Unknown parameter(s): {sorted(unknown)}")
        if {'tropism_type', 'tropism_trials', 'tropism_strength'} & set(changes):
            kwargs['tropism'] = None
        if 'growth_function_type' in changes:
            kwargs['growth_function'] = None
        kwargs.update(changes)
        return OrganParameterSet(**kwargs)

    def copy(self, organism: Optional[int] = None) -> 'OrganParameterSet':
        """Copy bound to ``organism``; capabilities are shared, not copied."""
        kwargs = self._init_kwargs()
        kwargs['organism'] = organism
        return OrganParameterSet(**kwargs)

    def __repr__(self) -> str:
        return (f"{self.__class__.__name__}(organ_type='{self.organ_type}', "
                f"subtype={self.subtype}, name='{self.name}')")

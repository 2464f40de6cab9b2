"""
Organisms and the organism registry.

Parameter sets refer to their organism through an integer handle instead of
holding the Organism object, and resolve it through the module level
registry when needed. Removing an organism from the registry therefore never
leaves a parameter set with a dangling owner: the handle simply stops
resolving.
"""
import itertools
import random
from typing import Dict, Iterator, Optional, Tuple, TYPE_CHECKING

from .exceptions import OrganismNotFoundError, SubtypeNotFoundError
from .logging_config import get_logger

if TYPE_CHECKING:
    from .parameters import OrganParameterSet

__all__ = [
    'Organism',
    'register_organism',
    'unregister_organism',
    'get_organism',
    'clear_registry',
]

logger = get_logger(__name__)

_MISSING = object()

# Global registry: handle -> Organism
_organisms: Dict[int, 'Organism'] = {}
_handles = itertools.count(1)


class Organism:
    """Owner of the random source and the parameter sets of one plant.

    Creating an Organism registers it; ``handle`` is the key parameter sets
    store to reach it.

    Args:
        name: Organism name
        seed: Optional seed of the organism's random source

    Attributes:
        handle: Registry key of this organism
        rng: ``random.Random`` shared by all organs of the organism
    """

    def __init__(self, name: str = "plant", seed: Optional[int] = None):
        self.name = name
        self.seed = seed
        self.rng = random.Random(seed)
        self._parameter_sets: Dict[Tuple[str, int], 'OrganParameterSet'] = {}
        self.handle = register_organism(self)

    def set_seed(self, seed: Optional[int]) -> None:
        """Reseed the organism's random source."""
        self.seed = seed
        self.rng.seed(seed)

    def add_parameter_set(self, parameter_set: 'OrganParameterSet') -> 'OrganParameterSet':
        """Add a parameter set, bound to this organism.

        A parameter set already bound elsewhere is copied; an existing set for
        the same organ type and subtype is replaced.

        Returns:
            The parameter set stored in this organism
        """
        if parameter_set.organism != self.handle:
            parameter_set = parameter_set.copy(organism=self.handle)
        key = (parameter_set.organ_type, parameter_set.subtype)
        if key in self._parameter_sets:
            logger.info("Replacing %s subtype %d of organism '%s'", key[0], key[1], self.name)
        self._parameter_sets[key] = parameter_set
        return parameter_set

    def get_parameter_set(self, organ_type: str, subtype: int) -> 'OrganParameterSet':
        """Look up a parameter set.

        Raises:
            SubtypeNotFoundError: If no parameter set is stored under the key
        """
        try:
            return self._parameter_sets[(organ_type, int(subtype))]
        except KeyError:
            raise SubtypeNotFoundError(organ_type, subtype) from None

    def parameter_sets(self, organ_type: Optional[str] = None) -> Iterator['OrganParameterSet']:
        """Iterate parameter sets ordered by organ type and subtype."""
        for key in sorted(self._parameter_sets):
            if organ_type is None or key[0] == organ_type:
                yield self._parameter_sets[key]

    def __len__(self) -> int:
        return len(self._parameter_sets)

    def __repr__(self) -> str:
        return f"Organism(name='{self.name}', handle={self.handle}, parameter_sets={len(self)})"


def register_organism(organism: Organism) -> int:
    """Enter an organism into the registry and return its new handle."""
    handle = next(_handles)
    _organisms[handle] = organism
    return handle


def unregister_organism(handle: int) -> None:
    """Remove an organism from the registry; unknown handles are ignored."""
    _organisms.pop(handle, None)


def get_organism(handle: int, default=_MISSING) -> Optional[Organism]:
    """Resolve an organism handle.

    Args:
        handle: Registry key
        default: Returned for unknown handles; if omitted they raise

    Raises:
        OrganismNotFoundError: If the handle is unknown and no default is given
    """
    organism = _organisms.get(handle)
    if organism is None:
        if default is _MISSING:
            raise OrganismNotFoundError(handle)
        return default
    return organism


def clear_registry() -> None:
    """Remove all organisms from the registry.

    Useful for testing.
    """
    _organisms.clear()

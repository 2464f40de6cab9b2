"""
Field descriptor table of OrganParameterSet.

Persistence never inspects parameter sets reflectively. Each persisted field
is listed once in FIELD_DESCRIPTORS with its document name, its XML name(s),
a getter reading the value from a parameter set and a setter writing the
decoded value into the constructor keyword arguments.
"""
from dataclasses import dataclass, field
from operator import attrgetter
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from .exceptions import InvalidDataError
from .logging_config import get_logger
from .parameters import OrganParameterSet, Trait
from .spacing import SpacingShape

__all__ = [
    'FieldDescriptor',
    'FIELD_DESCRIPTORS',
    'FIELDS_BY_NAME',
    'FIELDS_BY_XML_NAME',
    'parameter_set_to_dict',
    'parameter_set_from_dict',
]

logger = get_logger(__name__)


def _encode_trait(trait: Trait) -> Dict[str, float]:
    return {'mean': trait.mean, 'sd': trait.sd}


def _decode_trait(raw: Any) -> Trait:
    if isinstance(raw, Mapping):
        if 'mean' not in raw:
            raise InvalidDataError("trait", f"missing 'mean' in {dict(raw)}")
        return Trait(float(raw['mean']), float(raw.get('sd', 0.0)))
    if isinstance(raw, (list, tuple)):
        if len(raw) != 2:
            raise InvalidDataError("trait", f"expected [mean, sd], got {list(raw)}")
        return Trait(float(raw[0]), float(raw[1]))
    return Trait(float(raw), 0.0)


def _decode_int(raw: Any) -> int:
    # XML attributes arrive as strings such as "1" or "1.0"
    if isinstance(raw, str):
        return int(float(raw))
    return int(raw)


def _encode_successors(pairs: List[Tuple[int, float]]) -> List[Dict[str, Any]]:
    return [{'type': subtype, 'probability': weight} for subtype, weight in pairs]


def _decode_successors(raw: Any) -> List[Tuple[int, float]]:
    if raw is None:
        return []
    pairs = []
    for entry in raw:
        try:
            pairs.append((int(entry['type']), float(entry['probability'])))
        except (KeyError, TypeError) as e:
            raise InvalidDataError(
                "successor entry", f"expected {{type, probability}}, got {entry!r}"
            ) from e
    return pairs


def _get_successors(parameter_set: OrganParameterSet) -> List[Tuple[int, float]]:
    return list(zip(parameter_set.successor_types, parameter_set.successor_weights))


def _set_successors(kwargs: Dict[str, Any], pairs: List[Tuple[int, float]]) -> None:
    kwargs['successor_types'] = [subtype for subtype, _ in pairs]
    kwargs['successor_weights'] = [weight for _, weight in pairs]


# kind -> (encode, decode)
_CODECS: Dict[str, Tuple[Callable[[Any], Any], Callable[[Any], Any]]] = {
    'int': (int, _decode_int),
    'float': (float, float),
    'str': (str, str),
    'trait': (_encode_trait, _decode_trait),
    'shape': (attrgetter('label'), SpacingShape.from_value),
    'successors': (_encode_successors, _decode_successors),
}


@dataclass(frozen=True)
class FieldDescriptor:
    """One persisted field of OrganParameterSet.

    Attributes:
        name: Key in YAML/TOML/JSON documents and constructor argument name
        kind: Codec key: int, float, str, trait, shape or successors
        xml_name: Parameter name in XML documents (the mean for traits)
        xml_dev_name: XML name of the standard deviation of a trait
        description: Short description with unit
        getter: Reads the field from a parameter set
        setter: Stores a decoded value into constructor keyword arguments
    """
    name: str
    kind: str
    xml_name: str
    description: str
    xml_dev_name: Optional[str] = None
    getter: Optional[Callable[[OrganParameterSet], Any]] = field(default=None, compare=False)
    setter: Optional[Callable[[Dict[str, Any], Any], None]] = field(default=None, compare=False)

    def get(self, parameter_set: OrganParameterSet) -> Any:
        if self.getter is not None:
            return self.getter(parameter_set)
        return getattr(parameter_set, self.name)

    def set(self, kwargs: Dict[str, Any], value: Any) -> None:
        if self.setter is not None:
            self.setter(kwargs, value)
        else:
            kwargs[self.name] = value

    def encode(self, parameter_set: OrganParameterSet) -> Any:
        """Document representation of the field of ``parameter_set``."""
        return _CODECS[self.kind][0](self.get(parameter_set))

    def decode(self, raw: Any) -> Any:
        """Python value of a document representation."""
        return _CODECS[self.kind][1](raw)


FIELD_DESCRIPTORS: Tuple[FieldDescriptor, ...] = (
    FieldDescriptor('subtype', 'int', 'subType', "Organ subtype identifier"),
    FieldDescriptor('name', 'str', 'name', "Subtype name"),
    FieldDescriptor('organ_type', 'str', 'organType', "Organ class"),
    FieldDescriptor('basal_zone', 'trait', 'lb', "Basal zone [cm]", 'lbs'),
    FieldDescriptor('apical_zone', 'trait', 'la', "Apical zone [cm]", 'las'),
    FieldDescriptor('spacing', 'trait', 'ln', "Inter-lateral distance [cm]", 'lns'),
    FieldDescriptor('spacing_shape', 'shape', 'lnf', "Inter-lateral distance shape"),
    FieldDescriptor('branch_count', 'trait', 'nob', "Number of branches [1]", 'nobs'),
    FieldDescriptor('growth_rate', 'trait', 'r', "Initial growth rate [cm day-1]", 'rs'),
    FieldDescriptor('radius', 'trait', 'a', "Radius [cm]", 'as'),
    FieldDescriptor('insertion_angle', 'trait', 'theta', "Angle to the parent organ [rad]", 'thetas'),
    FieldDescriptor('lifetime', 'trait', 'rlt', "Life time [day]", 'rlts'),
    FieldDescriptor('max_length', 'trait', 'k', "Maximal organ length [cm]", 'ks'),
    FieldDescriptor('tropism_type', 'int', 'tropismT', "Tropism type code"),
    FieldDescriptor('tropism_trials', 'float', 'tropismN', "Tropism number of trials"),
    FieldDescriptor('tropism_strength', 'float', 'tropismS', "Tropism expected change [rad cm-1]"),
    FieldDescriptor('segment_length', 'float', 'dx', "Maximal segment size [cm]"),
    FieldDescriptor('growth_function_type', 'int', 'gf', "Growth function code"),
    FieldDescriptor('revolution_rotation', 'float', 'RotBeta', "Revolution rotation [rad]"),
    FieldDescriptor('revolution_deviation', 'float', 'BetaDev', "Revolution rotation deviation [rad]"),
    FieldDescriptor('initial_revolution', 'float', 'InitBeta', "Initial revolution rotation [rad]"),
    FieldDescriptor('successors', 'successors', 'successor', "Lateral types and probabilities",
                    getter=_get_successors, setter=_set_successors),
)

FIELDS_BY_NAME: Dict[str, FieldDescriptor] = {d.name: d for d in FIELD_DESCRIPTORS}
FIELDS_BY_XML_NAME: Dict[str, FieldDescriptor] = {d.xml_name: d for d in FIELD_DESCRIPTORS}


def parameter_set_to_dict(parameter_set: OrganParameterSet) -> Dict[str, Any]:
    """Encode every descriptor field of ``parameter_set``, in table order."""
    return {d.name: d.encode(parameter_set) for d in FIELD_DESCRIPTORS}


def parameter_set_from_dict(data: Mapping[str, Any], **extra) -> OrganParameterSet:
    """Build a parameter set from a document mapping.

    Missing fields keep their defaults, unknown keys are logged and ignored.

    Args:
        data: Mapping of descriptor names to document values
        **extra: Additional constructor arguments (capabilities, organism, rng)

    Returns:
        A validated OrganParameterSet

    Raises:
        SuccessorMismatchError: If the successors are inconsistent
        InvalidDataError: If a value cannot be decoded
    """
    kwargs: Dict[str, Any] = {}
    for key, raw in data.items():
        descriptor = FIELDS_BY_NAME.get(key)
        if descriptor is None:
            logger.warning("Ignoring unknown parameter '%s'", key)
            continue
        try:
            value = descriptor.decode(raw)
        except (TypeError, ValueError) as e:
            raise InvalidDataError(f"parameter '{key}'", str(e)) from e
        descriptor.set(kwargs, value)
    kwargs.update(extra)
    return OrganParameterSet(**kwargs)

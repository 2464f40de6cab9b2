"""
PyOrgan: organ parameter realization for plant architecture models

Turns statistical organ parameter sets (mean and standard deviation of zone
lengths, spacing, branch count, growth rate, radius, angle and life time)
into concrete organ instances, and dices the subtype of laterals emerging at
branch points.

Quick Start:
    >>> from pyorgan import Organism, load_parameter_sets
    >>> plant = Organism("demo", seed=1)
    >>> main_stem, *_ = load_parameter_sets(organism=plant)
    >>> organ = main_stem.realize()
    >>> organ.maximal_length() > 0
    True
"""

# =============================================================================
# Package Metadata
# =============================================================================
__version__ = "0.1.0"
__author__ = "PyOrgan Development Team"

# =============================================================================
# Core Classes - Primary API
# =============================================================================
from .parameters import OrganInstance, OrganParameterSet, Trait, WEIGHT_TOLERANCE
from .organism import (
    Organism,
    get_organism,
    register_organism,
    unregister_organism,
)
from .spacing import SpacingShape, spacing_means, spacing_weights

# =============================================================================
# Capabilities
# =============================================================================
from .environment import (
    EnvironmentScale,
    NeutralScale,
    ConstantScale,
    DepthProfileScale,
    CallableScale,
)
from .growth import (
    GrowthFunction,
    ExponentialGrowth,
    LinearGrowth,
    CallableGrowth,
    create_growth_function,
)
from .tropism import (
    Tropism,
    TropismState,
    TropismType,
    RandomTropism,
    Gravitropism,
    AntiGravitropism,
    Plagiotropism,
    Exotropism,
    Hydrotropism,
    ObjectiveTropism,
    create_tropism,
)

# =============================================================================
# Persistence
# =============================================================================
from .fields import FIELD_DESCRIPTORS, parameter_set_from_dict, parameter_set_to_dict
from .config_loader import (
    ParameterFileLoader,
    get_parameter_loader,
    load_parameter_sets,
    save_parameter_sets,
)

# =============================================================================
# Exceptions and Logging
# =============================================================================
from .exceptions import (
    OrganError,
    ConfigurationError,
    SuccessorMismatchError,
    SubtypeNotFoundError,
    ParameterError,
    InvalidParameterError,
    OrganismNotFoundError,
    DataError,
    ParameterFileNotFoundError,
    InvalidDataError,
)
from .logging_config import setup_logging, get_logger

__all__ = [
    "__version__",
    # Core
    "OrganInstance",
    "OrganParameterSet",
    "Trait",
    "WEIGHT_TOLERANCE",
    "Organism",
    "get_organism",
    "register_organism",
    "unregister_organism",
    "SpacingShape",
    "spacing_means",
    "spacing_weights",
    # Capabilities
    "EnvironmentScale",
    "NeutralScale",
    "ConstantScale",
    "DepthProfileScale",
    "CallableScale",
    "GrowthFunction",
    "ExponentialGrowth",
    "LinearGrowth",
    "CallableGrowth",
    "create_growth_function",
    "Tropism",
    "TropismState",
    "TropismType",
    "RandomTropism",
    "Gravitropism",
    "AntiGravitropism",
    "Plagiotropism",
    "Exotropism",
    "Hydrotropism",
    "ObjectiveTropism",
    "create_tropism",
    # Persistence
    "FIELD_DESCRIPTORS",
    "parameter_set_from_dict",
    "parameter_set_to_dict",
    "ParameterFileLoader",
    "get_parameter_loader",
    "load_parameter_sets",
    "save_parameter_sets",
    # Exceptions and logging
    "OrganError",
    "ConfigurationError",
    "SuccessorMismatchError",
    "SubtypeNotFoundError",
    "ParameterError",
    "InvalidParameterError",
    "OrganismNotFoundError",
    "DataError",
    "ParameterFileNotFoundError",
    "InvalidDataError",
    "setup_logging",
    "get_logger",
]

"""
Shared pytest fixtures for PyOrgan tests.

This module provides commonly used parameter sets, random sources and
organisms, and resets the global logging and registry state between tests.
"""
import logging
import random

import pytest

from pyorgan.logging_config import LOGGER_NAME
from pyorgan.organism import Organism, clear_registry
from pyorgan.parameters import OrganParameterSet
from pyorgan.spacing import SpacingShape


# =============================================================================
# Global State
# =============================================================================

@pytest.fixture(autouse=True)
def reset_global_state():
    """Empty the organism registry and undo setup_logging after each test."""
    yield
    clear_registry()
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


# =============================================================================
# Random Sources
# =============================================================================

@pytest.fixture
def rng():
    """Seeded random source for reproducible draws."""
    return random.Random(20240611)


# =============================================================================
# Parameter Sets
# =============================================================================

@pytest.fixture
def deterministic_stem():
    """Stem with all standard deviations zero.

    Returns a parameter set with:
    - Basal zone: 2 cm, apical zone: 5 cm
    - Inter-lateral distance: 1 cm, uniform
    - Branch count: 4 (three inter-lateral distances)

    Every realization has maximal length 2 + 5 + 3 = 10 cm.
    """
    return OrganParameterSet(
        subtype=1,
        name="deterministic",
        basal_zone=(2.0, 0.0),
        apical_zone=(5.0, 0.0),
        spacing=(1.0, 0.0),
        branch_count=(4.0, 0.0),
    )


@pytest.fixture
def stochastic_stem():
    """Stem whose means lie within three standard deviations of zero.

    Sampling without clamping would regularly produce negative values.
    """
    return OrganParameterSet(
        subtype=2,
        name="stochastic",
        basal_zone=(0.5, 1.0),
        apical_zone=(1.0, 2.0),
        spacing=(0.3, 0.5),
        branch_count=(3.0, 4.0),
        growth_rate=(0.2, 0.5),
        radius=(0.05, 0.1),
        insertion_angle=(0.3, 0.5),
        lifetime=(10.0, 20.0),
        spacing_shape=SpacingShape.EXPONENTIAL_INCREASING,
    )


@pytest.fixture
def branching_stem():
    """Stem with two successor types weighted 0.7 / 0.3."""
    return OrganParameterSet(
        subtype=1,
        name="branching",
        successor_types=[2, 3],
        successor_weights=[0.7, 0.3],
    )


# =============================================================================
# Organisms
# =============================================================================

@pytest.fixture
def plant():
    """Registered organism with a seeded random source."""
    return Organism("test_plant", seed=7)

"""
Tests for OrganParameterSet realization and OrganInstance.
"""
import logging
import math
import random

import pytest

from pyorgan.environment import ConstantScale, NeutralScale
from pyorgan.exceptions import InvalidParameterError, SuccessorMismatchError
from pyorgan.growth import ExponentialGrowth, LinearGrowth
from pyorgan.parameters import OrganInstance, OrganParameterSet, Trait
from pyorgan.spacing import SpacingShape
from pyorgan.tropism import AntiGravitropism, Gravitropism, Plagiotropism


SHAPE_CASES = [
    pytest.param(SpacingShape.UNIFORM, id="uniform"),
    pytest.param(SpacingShape.LINEAR_INCREASING, id="linear_increasing"),
    pytest.param(SpacingShape.LINEAR_DECREASING, id="linear_decreasing"),
    pytest.param(SpacingShape.EXPONENTIAL_INCREASING, id="exponential_increasing"),
    pytest.param(SpacingShape.EXPONENTIAL_DECREASING, id="exponential_decreasing"),
]


class TestTrait:
    """Tests for the (mean, sd) trait."""

    def test_zero_trait_is_exactly_zero(self, rng):
        for _ in range(100):
            assert Trait(0.0, 0.0).sample(rng) == 0.0

    def test_deterministic_trait_consumes_no_random_numbers(self):
        rng = random.Random(3)
        state = rng.getstate()
        assert Trait(2.5, 0.0).sample(rng) == 2.5
        assert rng.getstate() == state

    def test_negative_mean_without_deviation_clamps(self):
        assert Trait(-1.0, 0.0).sample() == 0.0

    def test_samples_are_floored(self, rng):
        samples = [Trait(0.0, 1.0).sample(rng) for _ in range(1000)]
        assert min(samples) >= 0.0
        assert 0.0 in samples

    @pytest.mark.parametrize("value,expected", [
        pytest.param(3, Trait(3.0, 0.0), id="bare_mean"),
        pytest.param((1, 0.5), Trait(1.0, 0.5), id="pair"),
        pytest.param(Trait(2.0, 0.1), Trait(2.0, 0.1), id="trait"),
    ])
    def test_coerce(self, value, expected):
        assert Trait.coerce(value) == expected


class TestRealize:
    """Tests for OrganParameterSet.realize()."""

    def test_documented_example(self, deterministic_stem):
        organ = deterministic_stem.realize()
        assert organ.branch_count == 4
        assert organ.inter_lateral_distances == (1.0, 1.0, 1.0)
        assert organ.maximal_length() == 10.0

    def test_deterministic_realization_matches_estimate_exactly(self, deterministic_stem):
        first = deterministic_stem.realize()
        second = deterministic_stem.realize()
        assert first == second
        assert first.maximal_length() == deterministic_stem.expected_maximal_length()

    def test_linear_increasing_example(self):
        params = OrganParameterSet(spacing=(1.0, 0.0), branch_count=(5.0, 0.0),
                                   spacing_shape="linear_increasing")
        organ = params.realize()
        distances = organ.inter_lateral_distances
        assert len(distances) == 4
        assert all(a < b for a, b in zip(distances, distances[1:]))
        assert math.fsum(distances) / len(distances) == 1.0
        assert organ.maximal_length() == params.expected_maximal_length()

    @pytest.mark.parametrize("spacing", [0.5, 0.7, 0.3, 2.5, 1.1])
    @pytest.mark.parametrize("shape", SHAPE_CASES)
    def test_shapes_preserve_expected_length(self, shape, spacing):
        for branch_count in range(0, 40):
            params = OrganParameterSet(basal_zone=1.3, apical_zone=2.1, spacing=spacing,
                                       branch_count=branch_count, spacing_shape=shape)
            organ = params.realize()
            assert organ.maximal_length() == params.expected_maximal_length(), branch_count

    @pytest.mark.parametrize("shape", SHAPE_CASES)
    def test_invariants_hold_for_noisy_parameters(self, stochastic_stem, rng, shape):
        params = stochastic_stem.reconfigure(spacing_shape=shape)
        for _ in range(300):
            organ = params.realize(rng)
            assert len(organ.inter_lateral_distances) == max(organ.branch_count - 1, 0)
            assert organ.branch_count >= 0
            for value in (organ.basal_length, organ.apical_length, organ.growth_rate,
                          organ.radius, organ.insertion_angle, organ.lifetime):
                assert value >= 0.0
            assert all(d >= 0.0 for d in organ.inter_lateral_distances)

    def test_branch_count_is_rounded(self):
        assert OrganParameterSet(branch_count=(3.4, 0.0)).realize().branch_count == 3
        assert OrganParameterSet(branch_count=(3.6, 0.0)).realize().branch_count == 4

    @pytest.mark.parametrize("branch_count", [
        pytest.param(0.0, id="no_branches"),
        pytest.param(1.0, id="single_branch"),
    ])
    def test_no_distances_below_two_branches(self, branch_count):
        organ = OrganParameterSet(branch_count=(branch_count, 0.0)).realize()
        assert organ.inter_lateral_distances == ()

    def test_seeded_sources_reproduce(self, stochastic_stem):
        first = stochastic_stem.realize(random.Random(99))
        second = stochastic_stem.realize(random.Random(99))
        assert first == second

    def test_unseeded_draws_differ(self, stochastic_stem, rng):
        organs = {stochastic_stem.realize(rng) for _ in range(20)}
        assert len(organs) > 1

    def test_own_random_source_is_used(self, stochastic_stem):
        params = stochastic_stem.reconfigure(rng=random.Random(5))
        expected = stochastic_stem.realize(random.Random(5))
        assert params.realize() == expected

    def test_spacing_deviation_applies_per_distance(self, rng):
        params = OrganParameterSet(spacing=(1.0, 0.2), branch_count=(30.0, 0.0))
        distances = params.realize(rng).inter_lateral_distances
        assert len(distances) == 29
        assert len(set(distances)) > 1


class TestExpectedMaximalLength:
    """Tests for the mean based length estimate."""

    def test_formula(self):
        params = OrganParameterSet(basal_zone=(2.0, 1.0), apical_zone=(5.0, 1.0),
                                   spacing=(1.5, 0.3), branch_count=(4.0, 2.0))
        assert params.expected_maximal_length() == 2.0 + 5.0 + 3 * 1.5

    def test_no_spacing_below_one_branch(self):
        params = OrganParameterSet(basal_zone=2.0, apical_zone=5.0, spacing=1.0,
                                   branch_count=0.5)
        assert params.expected_maximal_length() == 7.0

    def test_fractional_branch_count_is_not_rounded(self):
        params = OrganParameterSet(basal_zone=2.0, apical_zone=5.0, spacing=1.0,
                                   branch_count=3.4)
        assert params.expected_maximal_length() == pytest.approx(9.4)
        assert params.realize().maximal_length() == 9.0


class TestConstruction:
    """Tests for validation and normalization at construction time."""

    def test_successor_length_mismatch_raises(self):
        with pytest.raises(SuccessorMismatchError):
            OrganParameterSet(successor_types=[2, 3], successor_weights=[1.0])

    def test_negative_deviation_is_zeroed(self, caplog):
        with caplog.at_level(logging.WARNING, logger="pyorgan"):
            params = OrganParameterSet(subtype=4, radius=(0.1, -0.5))
        assert params.radius == Trait(0.1, 0.0)
        assert "radius" in caplog.text

    def test_negative_weights_are_clamped(self, caplog):
        with caplog.at_level(logging.WARNING, logger="pyorgan"):
            params = OrganParameterSet(successor_types=[2, 3], successor_weights=[-0.5, 1.0])
        assert params.successor_weights == (0.0, 1.0)
        assert "successor_weights" in caplog.text

    def test_unnormalized_weights_are_kept(self, caplog):
        with caplog.at_level(logging.WARNING, logger="pyorgan"):
            params = OrganParameterSet(successor_types=[2, 3], successor_weights=[2.0, 2.0])
        assert params.successor_weights == (2.0, 2.0)
        assert "renormalized" in caplog.text

    @pytest.mark.parametrize("changes,field,expected", [
        pytest.param({'tropism_trials': 0}, 'tropism_trials', 1.0, id="no_trials"),
        pytest.param({'tropism_trials': float('nan')}, 'tropism_trials', 1.0, id="nan_trials"),
        pytest.param({'tropism_strength': -0.1}, 'tropism_strength', 0.0, id="negative_strength"),
        pytest.param({'tropism_type': 6}, 'tropism_type', 1, id="unknown_tropism"),
        pytest.param({'growth_function_type': 3}, 'growth_function_type', 1,
                     id="unknown_growth_function"),
    ])
    def test_capability_settings_are_normalized(self, caplog, changes, field, expected):
        with caplog.at_level(logging.WARNING, logger="pyorgan"):
            params = OrganParameterSet(subtype=5, **changes)
        assert getattr(params, field) == expected
        assert field in caplog.text
        assert params.tropism.n_trials >= 1
        assert params.tropism.sigma >= 0.0

    def test_unknown_codes_fall_back_to_defaults(self):
        params = OrganParameterSet(tropism_type=6, growth_function_type=3)
        assert isinstance(params.tropism, Gravitropism)
        assert isinstance(params.growth_function, ExponentialGrowth)

    def test_default_tropism_is_gravitropism(self):
        params = OrganParameterSet()
        assert params.tropism_type == 1
        assert isinstance(params.tropism, Gravitropism)

    def test_scales_default_to_neutral(self):
        params = OrganParameterSet()
        for scale in (params.environment_scale, params.elongation_scale, params.angle_scale):
            assert isinstance(scale, NeutralScale)

    def test_scales_are_shared_by_copy_and_reconfigure(self):
        elongation, angle = ConstantScale(0.5), ConstantScale(2.0)
        params = OrganParameterSet(elongation_scale=elongation, angle_scale=angle)
        for derived in (params.copy(organism=3), params.reconfigure(name="changed")):
            assert derived.elongation_scale is elongation
            assert derived.angle_scale is angle

    def test_max_length_trait(self):
        params = OrganParameterSet(max_length=(25.0, -1.0))
        assert params.max_length == Trait(25.0, 0.0)
        assert params.reconfigure(name="x").max_length == Trait(25.0, 0.0)
        assert OrganParameterSet().max_length == Trait(0.0, 0.0)

    def test_default_capabilities_follow_fields(self):
        params = OrganParameterSet(tropism_type=0, growth_function_type=2)
        assert isinstance(params.tropism, Plagiotropism)
        assert isinstance(params.growth_function, LinearGrowth)

    def test_reconfigure_rebuilds_capabilities(self):
        params = OrganParameterSet(growth_function_type=2)
        changed = params.reconfigure(growth_function_type=1, tropism_type=4)
        assert isinstance(changed.growth_function, ExponentialGrowth)
        assert isinstance(changed.tropism, AntiGravitropism)
        assert isinstance(params.growth_function, LinearGrowth)

    def test_reconfigure_rejects_unknown_fields(self):
        with pytest.raises(TypeError):
            OrganParameterSet().reconfigure(colour="green")

    def test_copy_shares_capabilities(self, branching_stem):
        copied = branching_stem.copy(organism=42)
        assert copied.organism == 42
        assert copied.tropism is branching_stem.tropism
        assert copied.growth_function is branching_stem.growth_function
        assert copied.environment_scale is branching_stem.environment_scale
        assert copied.successor_types == branching_stem.successor_types


class TestOrganInstance:
    """Tests for direct OrganInstance construction."""

    def _instance(self, **changes):
        values = dict(subtype=1, basal_length=1.0, apical_length=2.0, branch_count=3,
                      inter_lateral_distances=[0.5, 0.5], growth_rate=1.0, radius=0.1,
                      insertion_angle=0.5, lifetime=10.0)
        values.update(changes)
        return OrganInstance(**values)

    def test_maximal_length(self):
        assert self._instance().maximal_length() == 4.0

    def test_distances_become_tuple(self):
        assert self._instance().inter_lateral_distances == (0.5, 0.5)

    def test_distance_count_is_checked(self):
        with pytest.raises(InvalidParameterError):
            self._instance(inter_lateral_distances=[0.5])

    def test_negative_values_are_rejected(self):
        with pytest.raises(InvalidParameterError):
            self._instance(growth_rate=-1.0)

    def test_as_dict(self):
        data = self._instance().as_dict()
        assert data['inter_lateral_distances'] == [0.5, 0.5]
        assert data['branch_count'] == 3

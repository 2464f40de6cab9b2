"""
Tests for successor type selection at branch points.
"""
import random
from collections import Counter

import pytest

from pyorgan.environment import CallableScale, ConstantScale, DepthProfileScale
from pyorgan.parameters import OrganParameterSet

N_DRAWS = 20000


def frequencies(params, rng, position=(0.0, 0.0, 0.0), draws=N_DRAWS):
    counts = Counter(params.choose_successor_type(position, rng) for _ in range(draws))
    return {subtype: count / draws for subtype, count in counts.items()}


class TestChooseSuccessorType:
    """Tests for OrganParameterSet.choose_successor_type()."""

    def test_frequencies_converge(self, branching_stem, rng):
        observed = frequencies(branching_stem, rng)
        assert observed[2] == pytest.approx(0.7, abs=0.02)
        assert observed[3] == pytest.approx(0.3, abs=0.02)
        assert None not in observed

    def test_no_successors_means_no_selection(self, rng):
        params = OrganParameterSet()
        assert all(params.choose_successor_type((1.0, 2.0, 3.0), rng) is None
                   for _ in range(100))

    def test_single_successor_is_always_chosen(self, rng):
        params = OrganParameterSet(successor_types=[5], successor_weights=[1.0])
        assert frequencies(params, rng, draws=500) == {5: 1.0}

    def test_zero_weight_type_is_never_chosen(self, rng):
        params = OrganParameterSet(successor_types=[2, 3, 4], successor_weights=[0.0, 1.0, 0.0])
        assert frequencies(params, rng, draws=1000) == {3: 1.0}

    def test_weights_are_renormalized(self, rng):
        params = OrganParameterSet(successor_types=[2, 3], successor_weights=[3.0, 1.0])
        observed = frequencies(params, rng)
        assert observed[2] == pytest.approx(0.75, abs=0.02)

    def test_all_zero_weights_mean_no_selection(self, rng):
        params = OrganParameterSet(successor_types=[2, 3], successor_weights=[0.0, 0.0])
        assert params.choose_successor_type((0.0, 0.0, 0.0), rng) is None

    def test_declaration_order_decides(self):
        params = OrganParameterSet(successor_types=[2, 3], successor_weights=[0.5, 0.5])

        class FixedDraw:
            def __init__(self, value):
                self.value = value

            def random(self):
                return self.value

        assert params.choose_successor_type(rng=FixedDraw(0.0)) == 2
        assert params.choose_successor_type(rng=FixedDraw(0.4999)) == 2
        assert params.choose_successor_type(rng=FixedDraw(0.5)) == 3
        assert params.choose_successor_type(rng=FixedDraw(0.9999999)) == 3

    def test_seeded_choice_reproduces(self, branching_stem):
        first = [branching_stem.choose_successor_type(rng=random.Random(11)) for _ in range(5)]
        second = [branching_stem.choose_successor_type(rng=random.Random(11)) for _ in range(5)]
        assert first == second


class TestEnvironmentScaledSelection:
    """Tests for successor selection gated by the environment scale."""

    def test_zero_scale_means_no_selection(self, rng):
        params = OrganParameterSet(successor_types=[2, 3], successor_weights=[0.7, 0.3],
                                   environment_scale=ConstantScale(0.0))
        assert all(params.choose_successor_type((0.0, 0.0, -1.0), rng) is None
                   for _ in range(100))

    def test_positive_scale_keeps_ratio(self, rng):
        params = OrganParameterSet(successor_types=[2, 3], successor_weights=[0.7, 0.3],
                                   environment_scale=ConstantScale(0.25))
        observed = frequencies(params, rng)
        assert observed[2] == pytest.approx(0.7, abs=0.02)

    def test_scale_depends_on_position(self, rng):
        # branching only in the top 10 cm of soil
        scale = DepthProfileScale(depths=[0.0, 10.0, 10.001], values=[1.0, 1.0, 0.0])
        params = OrganParameterSet(successor_types=[2], successor_weights=[1.0],
                                   environment_scale=scale)
        assert params.choose_successor_type((0.0, 0.0, -5.0), rng) == 2
        assert params.choose_successor_type((0.0, 0.0, -20.0), rng) is None

    def test_scale_receives_position(self, rng):
        seen = []

        def record(position):
            seen.append(tuple(position))
            return 1.0

        params = OrganParameterSet(successor_types=[2], successor_weights=[1.0],
                                   environment_scale=CallableScale(record))
        params.choose_successor_type((1.0, 2.0, 3.0), rng)
        assert seen == [(1.0, 2.0, 3.0)]

    def test_negative_scale_counts_as_zero(self, rng):
        params = OrganParameterSet(successor_types=[2], successor_weights=[1.0],
                                   environment_scale=CallableScale(lambda position: -2.0))
        assert params.choose_successor_type((0.0, 0.0, 0.0), rng) is None

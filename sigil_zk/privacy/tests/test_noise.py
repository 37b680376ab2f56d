"""
Tests for the noise mechanisms and private queries.
"""

import math

import numpy as np
import pytest

from ..config import DifferentialPrivacyConfig
from ..noise import (
    GaussianMechanism,
    LaplaceMechanism,
    clamp,
    make_mechanism,
    noise_variance,
    parallel_composition,
    private_aggregate,
    private_count,
    private_histogram,
    private_max,
    private_mean,
    private_sum,
    sequential_composition,
)


def rng(seed=1234):
    return np.random.default_rng(seed)


class TestMechanisms:
    """Tests for Laplace and Gaussian noise."""

    def test_laplace_scale_and_variance(self):
        mech = LaplaceMechanism(0.5, 2.0)
        assert mech.scale == 4.0
        assert mech.variance == 32.0

    def test_laplace_samples_match_variance(self):
        mech = LaplaceMechanism(1.0, 1.0, rng())
        samples = mech.sample(200_000)
        assert abs(samples.mean()) < 0.05
        assert samples.var() == pytest.approx(mech.variance, rel=0.05)

    def test_gaussian_sigma(self):
        mech = GaussianMechanism(1.0, 1.0, delta=1e-5, rng=rng())
        assert mech.sigma == pytest.approx(math.sqrt(2 * math.log(1.25e5)))
        samples = mech.sample(200_000)
        assert samples.std() == pytest.approx(mech.sigma, rel=0.05)

    def test_seeded_noise_is_reproducible(self):
        a = LaplaceMechanism(1.0, 1.0, rng(7)).add(50)
        b = LaplaceMechanism(1.0, 1.0, rng(7)).add(50)
        assert a == b

    @pytest.mark.parametrize("epsilon", [0, -0.5])
    def test_epsilon_must_be_positive(self, epsilon):
        with pytest.raises(ValueError):
            LaplaceMechanism(epsilon)

    def test_gaussian_delta_range(self):
        with pytest.raises(ValueError):
            GaussianMechanism(1.0, delta=0)

    def test_privatize_stays_in_bounds(self):
        mech = LaplaceMechanism(0.01, 1.0, rng())
        for value in (-50, 0, 50, 150):
            assert 0 <= mech.privatize(value, (0, 100)) <= 100

    def test_make_mechanism(self):
        config = DifferentialPrivacyConfig(mechanism="gaussian", delta=1e-6)
        mech = make_mechanism(config, rng(), epsilon=2.0)
        assert isinstance(mech, GaussianMechanism)
        assert mech.epsilon == 2.0
        assert mech.delta == 1e-6
        assert isinstance(make_mechanism(DifferentialPrivacyConfig()), LaplaceMechanism)

    def test_noise_variance(self):
        assert noise_variance("laplace", 1.0, 1.0) == 2.0
        assert noise_variance("gaussian", 1.0, 1.0, 1e-5) == pytest.approx(
            GaussianMechanism(1.0, 1.0, 1e-5).variance
        )
        assert noise_variance("unknown", 1.0, 1.0) == 0.0


class TestQueries:
    """Tests for the private query functions."""

    def test_count_is_non_negative_int(self):
        result = private_count([], 0.1, rng())
        assert isinstance(result, int)
        assert result >= 0

    def test_count_close_with_large_epsilon(self):
        assert private_count(list(range(100)), 1000.0, rng()) == 100

    def test_sum_and_mean_close_with_large_epsilon(self):
        values = [10.0, 20.0, 30.0]
        assert private_sum(values, 1000.0, 1.0, rng()) == pytest.approx(60.0, abs=0.1)
        assert private_mean(values, 1000.0, 1.0, rng()) == pytest.approx(20.0, abs=0.1)

    def test_mean_of_nothing(self):
        assert private_mean([], 1.0, 1.0, rng()) == 0.0

    def test_max_picks_a_candidate(self):
        values = [1.0, 5.0, 9.0]
        assert private_max(values, 1.0, 1.0, rng()) in values

    def test_max_prefers_large_values_with_large_epsilon(self):
        assert private_max([1.0, 2.0, 50.0], 100.0, 1.0, rng()) == 50.0

    def test_max_laplace_variant(self):
        assert private_max([1.0, 9.0], 1000.0, 1.0, rng(), exponential=False) == pytest.approx(9.0, abs=0.1)

    def test_max_of_nothing(self):
        with pytest.raises(ValueError):
            private_max([], 1.0, 1.0)

    def test_histogram(self):
        hist = private_histogram([1, 2, 2, 3, 3, 3, 9], 4, 1000.0, rng())
        assert len(hist.edges) == 5
        assert hist.edges[0] == 1.0
        assert hist.edges[-1] == 9.0
        assert hist.counts == (3, 3, 0, 1)
        assert hist.to_dict()["counts"] == [3, 3, 0, 1]

    def test_histogram_counts_never_negative(self):
        hist = private_histogram([1.0] * 3, 8, 0.01, rng())
        assert all(c >= 0 for c in hist.counts)

    def test_histogram_needs_bins_and_values(self):
        with pytest.raises(ValueError):
            private_histogram([1.0], 0, 1.0)
        with pytest.raises(ValueError):
            private_histogram([], 3, 1.0)

    def test_aggregate(self):
        totals = private_aggregate([[1, 2], [10]], 2000.0, 1.0, rng())
        assert totals == [pytest.approx(3.0, abs=0.1), pytest.approx(10.0, abs=0.1)]
        assert private_aggregate([], 1.0, 1.0) == []


class TestComposition:
    """Tests for privacy loss composition."""

    def test_sequential(self):
        eps, delta = sequential_composition([(1.0, 1e-5), (0.5, 1e-5)])
        assert eps == 1.5
        assert delta == pytest.approx(2e-5)

    def test_parallel(self):
        assert parallel_composition([(1.0, 1e-6), (0.5, 1e-5)]) == (1.0, 1e-5)
        assert parallel_composition([]) == (0.0, 0.0)


def test_clamp():
    assert clamp(-1, 0, 10) == 0
    assert clamp(11, 0, 10) == 10
    assert clamp(5, 0, 10) == 5

"""
⚠️ DRAFT — requires crypto review before production use

Differential-privacy noise mechanisms and queries.

Every mechanism draws from an injectable numpy Generator so tests can fix
the seed. Noise scale is sensitivity / epsilon; the Gaussian mechanism uses
sigma = sensitivity * sqrt(2 ln(1.25 / delta)) / epsilon.
"""

import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .config import DifferentialPrivacyConfig


def _check_epsilon(epsilon: float) -> None:
    if epsilon <= 0:
        raise ValueError(f"epsilon must be positive, got {epsilon}")


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


# ============================================================================
# MECHANISMS
# ============================================================================


class NoiseMechanism:
    """Additive noise calibrated to (epsilon, sensitivity)."""

    name = "none"

    def __init__(
        self,
        epsilon: float,
        sensitivity: float = 1.0,
        rng: Optional[np.random.Generator] = None,
    ):
        _check_epsilon(epsilon)
        if sensitivity <= 0:
            raise ValueError(f"sensitivity must be positive, got {sensitivity}")
        self.epsilon = float(epsilon)
        self.sensitivity = float(sensitivity)
        self.rng = rng if rng is not None else np.random.default_rng()

    @property
    def scale(self) -> float:
        return self.sensitivity / self.epsilon

    @property
    def variance(self) -> float:
        raise NotImplementedError

    def sample(self, size: Optional[int] = None):
        raise NotImplementedError

    def add(self, value: float) -> float:
        return float(value) + float(self.sample())

    def privatize(self, value: float, bounds: Tuple[float, float]) -> float:
        """Clamp to bounds, add noise, clamp again."""
        lo, hi = bounds
        return clamp(self.add(clamp(value, lo, hi)), lo, hi)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(epsilon={self.epsilon}, sensitivity={self.sensitivity})"


class LaplaceMechanism(NoiseMechanism):
    name = "laplace"

    @property
    def variance(self) -> float:
        return 2 * self.scale ** 2

    def sample(self, size: Optional[int] = None):
        return self.rng.laplace(0.0, self.scale, size)


class GaussianMechanism(NoiseMechanism):
    name = "gaussian"

    def __init__(
        self,
        epsilon: float,
        sensitivity: float = 1.0,
        delta: float = 1e-5,
        rng: Optional[np.random.Generator] = None,
    ):
        super().__init__(epsilon, sensitivity, rng)
        if not 0 < delta < 1:
            raise ValueError(f"delta must be in (0, 1), got {delta}")
        self.delta = float(delta)

    @property
    def sigma(self) -> float:
        return self.sensitivity * math.sqrt(2 * math.log(1.25 / self.delta)) / self.epsilon

    @property
    def variance(self) -> float:
        return self.sigma ** 2

    def sample(self, size: Optional[int] = None):
        return self.rng.normal(0.0, self.sigma, size)


def make_mechanism(
    config: DifferentialPrivacyConfig,
    rng: Optional[np.random.Generator] = None,
    epsilon: Optional[float] = None,
    sensitivity: Optional[float] = None,
) -> NoiseMechanism:
    """Mechanism named by the config, optionally with a different epsilon."""
    eps = config.epsilon if epsilon is None else epsilon
    sens = config.sensitivity if sensitivity is None else sensitivity
    if config.mechanism == "gaussian":
        return GaussianMechanism(eps, sens, delta=config.delta, rng=rng)
    if config.mechanism == "laplace":
        return LaplaceMechanism(eps, sens, rng=rng)
    raise ValueError(f"Unknown mechanism: {config.mechanism}")


def noise_variance(mechanism: str, epsilon: float, sensitivity: float, delta: float = 1e-5) -> float:
    """Variance of the noise a mechanism adds; 0 for unknown mechanisms."""
    _check_epsilon(epsilon)
    if mechanism == "laplace":
        return 2 * (sensitivity / epsilon) ** 2
    if mechanism == "gaussian":
        sigma = sensitivity * math.sqrt(2 * math.log(1.25 / delta)) / epsilon
        return sigma ** 2
    return 0.0


# ============================================================================
# QUERIES
# ============================================================================


def private_count(
    data: Sequence, epsilon: float, rng: Optional[np.random.Generator] = None
) -> int:
    noisy = LaplaceMechanism(epsilon, 1.0, rng).add(len(data))
    return max(0, int(round(noisy)))


def private_sum(
    values: Iterable[float],
    epsilon: float,
    sensitivity: float,
    rng: Optional[np.random.Generator] = None,
) -> float:
    return LaplaceMechanism(epsilon, sensitivity, rng).add(float(sum(values)))


def private_mean(
    values: Sequence[float],
    epsilon: float,
    sensitivity: float,
    rng: Optional[np.random.Generator] = None,
) -> float:
    """
    Noisy mean with half the budget spent on the mean itself.

    The sensitivity of a mean over n values is sensitivity / n. Empty input
    returns 0.
    """
    if len(values) == 0:
        return 0.0
    mean = float(np.mean(values))
    return LaplaceMechanism(epsilon / 2, sensitivity / len(values), rng).add(mean)


def private_max(
    values: Sequence[float],
    epsilon: float,
    sensitivity: float,
    rng: Optional[np.random.Generator] = None,
    exponential: bool = True,
) -> float:
    """
    Maximum via the exponential mechanism.

    Each candidate is selected with probability proportional to
    exp(epsilon * value / (2 * sensitivity)). With exponential=False the
    true maximum plus Laplace noise is returned instead.
    """
    if len(values) == 0:
        raise ValueError("private_max needs at least one value")
    rng = rng if rng is not None else np.random.default_rng()
    arr = np.asarray(values, dtype=float)
    if not exponential:
        return LaplaceMechanism(epsilon, sensitivity, rng).add(float(arr.max()))

    _check_epsilon(epsilon)
    logits = epsilon * arr / (2 * sensitivity)
    weights = np.exp(logits - logits.max())
    probabilities = weights / weights.sum()
    return float(arr[rng.choice(len(arr), p=probabilities)])


@dataclass(frozen=True)
class PrivateHistogram:
    edges: Tuple[float, ...]
    counts: Tuple[int, ...]

    def to_dict(self) -> Dict[str, List]:
        return {"edges": list(self.edges), "counts": list(self.counts)}


def private_histogram(
    values: Sequence[float],
    bins: int,
    epsilon: float,
    rng: Optional[np.random.Generator] = None,
) -> PrivateHistogram:
    """
    Equal-width histogram between min and max with per-bin Laplace noise.

    The budget is divided evenly across bins; counts are clamped at zero and
    rounded.
    """
    if bins < 1:
        raise ValueError(f"bins must be >= 1, got {bins}")
    if len(values) == 0:
        raise ValueError("private_histogram needs at least one value")
    counts, edges = np.histogram(np.asarray(values, dtype=float), bins=bins)
    mechanism = LaplaceMechanism(epsilon / bins, 1.0, rng)
    noisy = counts + mechanism.sample(bins)
    return PrivateHistogram(
        edges=tuple(float(e) for e in edges),
        counts=tuple(int(round(max(0.0, c))) for c in noisy),
    )


# ============================================================================
# COMPOSITION
# ============================================================================


def sequential_composition(parameters: Iterable[Tuple[float, float]]) -> Tuple[float, float]:
    """(epsilon, delta) of running every mechanism on the same data."""
    epsilon = 0.0
    delta = 0.0
    for eps, dlt in parameters:
        epsilon += eps
        delta += dlt
    return epsilon, delta


def parallel_composition(parameters: Iterable[Tuple[float, float]]) -> Tuple[float, float]:
    """(epsilon, delta) of running mechanisms on disjoint partitions."""
    params = list(parameters)
    if not params:
        return 0.0, 0.0
    return max(p[0] for p in params), max(p[1] for p in params)


def private_aggregate(
    datasets: Sequence[Sequence[float]],
    epsilon: float,
    sensitivity: float,
    rng: Optional[np.random.Generator] = None,
) -> List[float]:
    """Noisy sum per dataset with the budget split evenly across datasets."""
    if not datasets:
        return []
    share = epsilon / len(datasets)
    return [private_sum(values, share, sensitivity, rng) for values in datasets]

"""
⚠️ DRAFT — requires crypto review before production use

Statistics aggregator.

Weighted statistics over up to `capacity` non-negative integer values.
Means, deviations and bounds are fixed-point with scale 100; epsilon is
fixed-point with scale 1000.

    mean        = sum(w * v) * 100 / sum(w)
    variance    = sum(w * d^2) / (sum(w) * 100)          d = v * 100 - mean
    outlier     : |d| > outlier_threshold * 100          (threshold in value units)
    robust mean = weighted mean of non-outliers
    skewness    = |sum(w * d^3)| * 100 / (sum(w) * sigma^3), plus a sign bit
    interval    = mean -/+ z * sqrt(variance * 100 / n) / 100, clamped to domain
    noise       = u - b, u = H(seed, statistic) mod (2b + 1), b = sensitivity * 1000 / epsilon

Noise is derived in-circuit from a private seed, so it is deterministic for
a given witness and bounded by the Laplace scale b. Noised values are
clamped at zero.
"""

from typing import Any, List, Mapping

from ..base import Circuit, check_capacity, require, require_vector
from ..config import (
    COUNT_BITS,
    EPSILON_SCALE,
    FIELD_BITS,
    FIXED_POINT_SCALE,
    STATISTICS_CAPACITY,
    VALUE_BITS,
    WIDE_BITS,
    Z_SCORE_SCALED,
)
from ..constraints import ConstraintSystem
from ..exceptions import InputRangeViolation, UnsatisfiedConstraint
from ..field import hash_many
from ..gadgets import (
    apply_sign,
    bool_and,
    count_active,
    div_floor,
    enforce_range,
    enforce_true,
    greater_equal,
    greater_than,
    in_range,
    is_equal,
    is_zero,
    isqrt,
    less_equal,
    mul,
    num_to_bits,
    safe_divisor,
    select,
    signed_abs,
    total,
)
from ..statements import CircuitId

_NOISE_BITS = 64


def noise_bound(sensitivity: int, epsilon_fixed: int) -> int:
    """Laplace scale b = sensitivity / epsilon in value units."""
    if epsilon_fixed <= 0:
        raise ValueError("epsilon must be positive")
    return sensitivity * EPSILON_SCALE // epsilon_fixed


class StatisticsAggregator(Circuit):
    circuit_id = CircuitId.STATISTICS_AGGREGATOR
    capacity_params = ("capacity",)

    def __init__(self, capacity: int = STATISTICS_CAPACITY):
        self.capacity = check_capacity("capacity", capacity)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _weighted_mean(cs: ConstraintSystem, values, weights, label: str) -> int:
        numerator = total([mul(cs, w, v) for w, v in zip(weights, values)])
        return div_floor(
            cs,
            numerator * FIXED_POINT_SCALE,
            safe_divisor(cs, total(weights), f"{label}.weight"),
            WIDE_BITS,
            label,
        )

    @staticmethod
    def _noised(
        cs: ConstraintSystem, value: int, bound: int, seed: int, stream: int, label: str
    ) -> int:
        digest = hash_many([seed, value, stream], "dp_noise")
        bits = num_to_bits(cs, digest, FIELD_BITS, f"{label}.digest")
        low = total([bit << i for i, bit in enumerate(bits[:_NOISE_BITS])])
        modulus = 2 * bound + 1
        quotient = div_floor(cs, low, modulus, WIDE_BITS, f"{label}.reduce")
        u = cs.intermediate(low - quotient * modulus)
        # value + u - bound, clamped at zero
        shifted = value + u
        positive = greater_equal(cs, shifted, bound, WIDE_BITS, f"{label}.clamp")
        return select(cs, positive, shifted - bound, 0)

    def synthesize(
        self,
        cs: ConstraintSystem,
        public_inputs: Mapping[str, Any],
        private_inputs: Mapping[str, Any],
    ) -> None:
        n = self.capacity
        public = {
            name: cs.public(name, public_inputs[name])
            for name in self.spec.public_input_schema
        }
        lo = public["domain_min"] * FIXED_POINT_SCALE
        hi = public["domain_max"] * FIXED_POINT_SCALE

        values = cs.private("values", require_vector(private_inputs, "values", n))
        weights = cs.private("weights", require_vector(private_inputs, "weights", n))
        mask = cs.private("mask", require_vector(private_inputs, "mask", n))
        seed = cs.private("noise_seed", require(private_inputs, "noise_seed"))

        count = count_active(cs, mask, "stats.mask")
        for i in range(n):
            label = f"stats.value[{i}]"
            inside = in_range(
                cs, values[i], public["domain_min"], public["domain_max"], VALUE_BITS, label
            )
            cs.enforce(
                mul(cs, mask[i], 1 - inside) == 0,
                label,
                InputRangeViolation,
                f"stats: value {i} outside the declared domain",
            )
            cs.enforce(mul(cs, 1 - mask[i], weights[i]) == 0, f"stats.weight[{i}].inactive")
            cs.enforce(mul(cs, 1 - mask[i], values[i]) == 0, f"stats.value[{i}].inactive")
            num_to_bits(cs, weights[i], COUNT_BITS, f"stats.weight[{i}]")

        weight_sum = total(weights)
        enforce_true(
            cs,
            1 - is_zero(cs, weight_sum, "stats.weight_sum"),
            "stats.weight_sum",
            UnsatisfiedConstraint,
            "stats: no active value carries weight",
        )

        mean = self._weighted_mean(cs, values, weights, "stats.mean")
        enforce_range(cs, mean, lo, hi, WIDE_BITS, "stats.mean_range")

        # deviations, variance, skewness
        magnitudes: List[int] = []
        square_terms, cube_terms = [], []
        for i in range(n):
            label = f"stats.dev[{i}]"
            deviation = cs.intermediate(values[i] * FIXED_POINT_SCALE - mean)
            magnitude, negative = signed_abs(cs, deviation, VALUE_BITS + 8, label)
            magnitudes.append(magnitude)
            square = mul(cs, magnitude, magnitude)
            square_terms.append(mul(cs, weights[i], square))
            cube_terms.append(
                mul(cs, weights[i], apply_sign(cs, mul(cs, square, magnitude), negative))
            )

        variance = div_floor(
            cs, total(square_terms), weight_sum * FIXED_POINT_SCALE, WIDE_BITS, "stats.variance"
        )
        sigma = isqrt(
            cs,
            div_floor(cs, total(square_terms), weight_sum, WIDE_BITS, "stats.second_moment"),
            WIDE_BITS,
            "stats.sigma",
        )
        third, skew_negative = signed_abs(cs, total(cube_terms), WIDE_BITS, "stats.third_moment")
        sigma_cubed = mul(cs, mul(cs, sigma, sigma), sigma)
        skewness = div_floor(
            cs,
            third * FIXED_POINT_SCALE,
            safe_divisor(cs, mul(cs, weight_sum, sigma_cubed), "stats.skew_divisor"),
            WIDE_BITS,
            "stats.skewness",
        )

        # outliers and robust mean
        threshold = public["outlier_threshold"] * FIXED_POINT_SCALE
        flags = []
        for i in range(n):
            far = greater_than(cs, magnitudes[i], threshold, WIDE_BITS, f"stats.outlier[{i}]")
            flags.append(bool_and(cs, mask[i], far))
        outlier_count = total(flags)
        kept_weights = [mul(cs, w, 1 - f) for w, f in zip(weights, flags)]
        robust_mean = self._weighted_mean(cs, values, kept_weights, "stats.robust_mean")
        has_kept = 1 - is_zero(cs, total(kept_weights), "stats.kept")
        robust_ok = in_range(cs, robust_mean, lo, hi, WIDE_BITS, "stats.robust_range")
        cs.enforce(
            mul(cs, has_kept, 1 - robust_ok) == 0,
            "stats.robust_range",
            InputRangeViolation,
            "stats: robust mean outside the declared domain",
        )

        # confidence interval
        z = 0
        matched = []
        for level, z_scaled in sorted(Z_SCORE_SCALED.items()):
            hit = is_equal(cs, public["confidence_level"], level, f"stats.confidence{level}")
            matched.append(hit)
            z = total([z, z_scaled * hit])
        enforce_true(
            cs,
            total(matched),
            "stats.confidence",
            InputRangeViolation,
            f"stats: confidence level must be one of {sorted(Z_SCORE_SCALED)}",
        )
        standard_error = isqrt(
            cs,
            div_floor(
                cs, variance * FIXED_POINT_SCALE, safe_divisor(cs, count, "stats.n"),
                WIDE_BITS, "stats.se_squared",
            ),
            WIDE_BITS,
            "stats.standard_error",
        )
        margin = div_floor(cs, mul(cs, z, standard_error), 100, WIDE_BITS, "stats.margin")
        room_below = greater_equal(cs, mean, lo + margin, WIDE_BITS, "stats.ci_lower")
        ci_lower = select(cs, room_below, mean - margin, lo)
        room_above = less_equal(cs, mean + margin, hi, WIDE_BITS, "stats.ci_upper")
        ci_upper = select(cs, room_above, mean + margin, hi)
        enforce_range(cs, ci_lower, lo, hi, WIDE_BITS, "stats.ci_lower_range")
        enforce_range(cs, ci_upper, lo, hi, WIDE_BITS, "stats.ci_upper_range")

        # differential privacy disclosure
        bound = div_floor(
            cs, public["sensitivity"] * EPSILON_SCALE, public["epsilon"], WIDE_BITS, "stats.noise_scale"
        )
        count_bound = div_floor(cs, EPSILON_SCALE, public["epsilon"], WIDE_BITS, "stats.count_scale")
        noised_sum = self._noised(cs, total(values), bound, seed, 1, "stats.noised_sum")
        noised_count = self._noised(cs, count, count_bound, seed, 2, "stats.noised_count")

        cs.output("mean", mean)
        cs.output("variance", variance)
        cs.output("outlier_count", outlier_count)
        cs.output("robust_mean", robust_mean)
        cs.output("skewness", skewness)
        cs.output("skewness_negative", skew_negative)
        cs.output("ci_lower", ci_lower)
        cs.output("ci_upper", ci_upper)
        cs.output("noised_sum", noised_sum)
        cs.output("noised_count", noised_count)

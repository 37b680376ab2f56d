"""
Diversity credential.

Seven dimensions (languages, technologies, project types, domains,
contribution types, architectural patterns, team sizes), each a fixed list
of (category hash, score 0-100, active bit) slots.

    breadth  = active count * 100 / capacity
    depth    = mean score of active entries
    index    = weighted sum over dimensions / 100
    diversity = (60 * breadth index + 40 * depth index) / 100
"""

from typing import Any, Dict, Mapping, Sequence

from ..base import Circuit, check_capacity, require, require_vector
from ..config import (
    COUNT_BITS,
    DIVERSITY_BREADTH_WEIGHT,
    DIVERSITY_DEPTH_WEIGHT,
    DIVERSITY_DIMENSION_CAPACITY,
    DIVERSITY_DIMENSIONS,
    DIVERSITY_MIN_LANGUAGES,
    DIVERSITY_MIN_TECHNOLOGIES,
    DIVERSITY_WEIGHTS,
    SCORE_BITS,
    WIDE_BITS,
)
from ..constraints import ConstraintSystem
from ..exceptions import InputRangeViolation
from ..gadgets import (
    count_active,
    div_floor,
    enforce_distinct,
    enforce_sentinel_slots,
    enforce_true,
    greater_equal,
    less_equal,
    mul,
    safe_divisor,
    total,
)
from ..statements import CircuitId

_LANGUAGES = DIVERSITY_DIMENSIONS.index("languages")
_TECHNOLOGIES = DIVERSITY_DIMENSIONS.index("technologies")


def evaluate_diversity(
    dimension_scores: Sequence[Sequence[int]],
    capacity: int = DIVERSITY_DIMENSION_CAPACITY,
) -> Dict[str, int]:
    """Off-circuit indices for per-dimension lists of active entry scores."""
    breadth = [len(scores) * 100 // capacity for scores in dimension_scores]
    depth = [sum(scores) // max(1, len(scores)) for scores in dimension_scores]
    breadth_index = sum(w * b for w, b in zip(DIVERSITY_WEIGHTS, breadth)) // 100
    depth_index = sum(w * d for w, d in zip(DIVERSITY_WEIGHTS, depth)) // 100
    diversity_index = (
        DIVERSITY_BREADTH_WEIGHT * breadth_index + DIVERSITY_DEPTH_WEIGHT * depth_index
    ) // 100
    return {
        "diversity_index": diversity_index,
        "breadth_index": breadth_index,
        "depth_index": depth_index,
    }


class DiversityCredential(Circuit):
    circuit_id = CircuitId.DIVERSITY_CREDENTIAL
    capacity_params = ("capacity",)

    def __init__(self, capacity: int = DIVERSITY_DIMENSION_CAPACITY):
        self.capacity = check_capacity("capacity", capacity)

    def synthesize(
        self,
        cs: ConstraintSystem,
        public_inputs: Mapping[str, Any],
        private_inputs: Mapping[str, Any],
    ) -> None:
        k = self.capacity
        size = len(DIVERSITY_DIMENSIONS) * k
        min_diversity = cs.public("min_diversity_index", public_inputs["min_diversity_index"])
        min_breadth = cs.public("min_breadth_index", public_inputs["min_breadth_index"])
        min_depth = cs.public("min_depth_index", public_inputs["min_depth_index"])
        timestamp = cs.public("timestamp", public_inputs["timestamp"])

        user = cs.private("user_address", require(private_inputs, "user_address"))
        hashes = cs.private("category_hashes", require_vector(private_inputs, "category_hashes", size))
        scores = cs.private("category_scores", require_vector(private_inputs, "category_scores", size))
        mask = cs.private("category_mask", require_vector(private_inputs, "category_mask", size))

        counts, breadths, depths = [], [], []
        for d, name in enumerate(DIVERSITY_DIMENSIONS):
            label = f"diversity.{name}"
            window = slice(d * k, (d + 1) * k)
            dim_hashes, dim_scores, dim_mask = hashes[window], scores[window], mask[window]

            count = count_active(cs, dim_mask, f"{label}.mask")
            enforce_sentinel_slots(cs, dim_hashes, dim_mask, f"{label}.slots")
            enforce_distinct(cs, dim_hashes, dim_mask, f"{label}.distinct")
            for i, (score, flag) in enumerate(zip(dim_scores, dim_mask)):
                enforce_true(
                    cs,
                    less_equal(cs, score, 100, SCORE_BITS, f"{label}.score[{i}]"),
                    f"{label}.score[{i}]",
                    InputRangeViolation,
                    f"{label}: score above 100",
                )
                cs.enforce(mul(cs, 1 - flag, score) == 0, f"{label}.inactive[{i}]")

            counts.append(count)
            breadths.append(div_floor(cs, count * 100, k, COUNT_BITS, f"{label}.breadth"))
            depths.append(
                div_floor(
                    cs,
                    total(dim_scores),
                    safe_divisor(cs, count, f"{label}.count"),
                    COUNT_BITS,
                    f"{label}.depth",
                )
            )

        breadth_index = div_floor(
            cs, total([w * b for w, b in zip(DIVERSITY_WEIGHTS, breadths)]), 100,
            COUNT_BITS, "diversity.breadth_index",
        )
        depth_index = div_floor(
            cs, total([w * d for w, d in zip(DIVERSITY_WEIGHTS, depths)]), 100,
            COUNT_BITS, "diversity.depth_index",
        )
        diversity_index = div_floor(
            cs,
            total([DIVERSITY_BREADTH_WEIGHT * breadth_index, DIVERSITY_DEPTH_WEIGHT * depth_index]),
            100,
            COUNT_BITS,
            "diversity.index",
        )

        checks = [
            (greater_equal(cs, counts[_LANGUAGES], DIVERSITY_MIN_LANGUAGES, COUNT_BITS,
                           "diversity.min_languages"),
             f"at least {DIVERSITY_MIN_LANGUAGES} languages are required"),
            (greater_equal(cs, counts[_TECHNOLOGIES], DIVERSITY_MIN_TECHNOLOGIES, COUNT_BITS,
                           "diversity.min_technologies"),
             f"at least {DIVERSITY_MIN_TECHNOLOGIES} technologies are required"),
            (greater_equal(cs, diversity_index, min_diversity, WIDE_BITS, "diversity.min_index"),
             "diversity index below the public minimum"),
            (greater_equal(cs, breadth_index, min_breadth, WIDE_BITS, "diversity.min_breadth"),
             "breadth index below the public minimum"),
            (greater_equal(cs, depth_index, min_depth, WIDE_BITS, "diversity.min_depth"),
             "depth index below the public minimum"),
        ]
        for bit, message in checks:
            enforce_true(cs, bit, "diversity.valid", InputRangeViolation, f"diversity: {message}")

        cs.output("is_valid", 1)
        cs.output("diversity_index", diversity_index)
        cs.output("breadth_index", breadth_index)
        cs.output("depth_index", depth_index)
        cs.output(
            "credential_hash",
            self.credential_hash(
                user,
                [diversity_index, breadth_index, depth_index, min_diversity, min_breadth, min_depth],
                timestamp,
            ),
        )

"""
Leadership credential.

Seven dimensions, each a fixed list of activity scores (0-10):
mentoring, architecture decisions, code review, projects led, team
interactions, innovations, community contributions.

    dimension score  = sum(scores) * 100 / (10 * capacity)
    leadership index = min(100, weighted(dimension scores) * (100 + tenure bonus) / 100)
    impact score     = (2 * projects led + innovations + community) / 4
    maturity level   = max(1, number of maturity indicators set)

Tenure bonus is +10/+20/+30 percent at 5/10/15 years.
"""

from typing import Any, Dict, List, Mapping, Sequence

from ..base import Circuit, check_capacity, require, require_vector
from ..config import (
    COUNT_BITS,
    LEADERSHIP_ACTIVITY_CAPACITY,
    LEADERSHIP_DIMENSIONS,
    LEADERSHIP_MATURITY_INDICATORS,
    LEADERSHIP_MAX_ACTIVITY_SCORE,
    LEADERSHIP_WEIGHTS,
    SCORE_BITS,
    TENURE_BONUS_TIERS,
    WIDE_BITS,
)
from ..constraints import ConstraintSystem
from ..exceptions import InputRangeViolation
from ..gadgets import (
    count_active,
    div_floor,
    enforce_true,
    greater_equal,
    is_zero,
    less_equal,
    min_value,
    mul,
    select,
    total,
)
from ..statements import CircuitId

_MENTORING = LEADERSHIP_DIMENSIONS.index("mentoring")
_PROJECTS_LED = LEADERSHIP_DIMENSIONS.index("projects_led")
_INNOVATIONS = LEADERSHIP_DIMENSIONS.index("innovations")
_COMMUNITY = LEADERSHIP_DIMENSIONS.index("community_contributions")


def tenure_bonus(years: int) -> int:
    """Highest matching tenure tier, in percent."""
    for minimum, bonus in TENURE_BONUS_TIERS:
        if years >= minimum:
            return bonus
    return 0


def evaluate_leadership(
    activity_scores: Sequence[Sequence[int]],
    tenure_years: int,
    indicators: Sequence[int],
    capacity: int = LEADERSHIP_ACTIVITY_CAPACITY,
) -> Dict[str, Any]:
    """Off-circuit evaluation of the values the circuit outputs."""
    dims = [
        sum(scores) * 100 // (LEADERSHIP_MAX_ACTIVITY_SCORE * capacity)
        for scores in activity_scores
    ]
    weighted = sum(w * d for w, d in zip(LEADERSHIP_WEIGHTS, dims)) // 100
    index = min(100, weighted * (100 + tenure_bonus(tenure_years)) // 100)
    impact = (2 * dims[_PROJECTS_LED] + dims[_INNOVATIONS] + dims[_COMMUNITY]) // 4
    return {
        "dimension_scores": dims,
        "leadership_index": index,
        "impact_score": impact,
        "maturity_level": max(1, sum(indicators)),
    }


class LeadershipCredential(Circuit):
    circuit_id = CircuitId.LEADERSHIP_CREDENTIAL
    capacity_params = ("capacity",)

    def __init__(self, capacity: int = LEADERSHIP_ACTIVITY_CAPACITY):
        self.capacity = check_capacity("capacity", capacity)

    def _dimension(
        self, cs: ConstraintSystem, d: int, scores: List[int], mask: List[int]
    ):
        label = f"leadership.{LEADERSHIP_DIMENSIONS[d]}"
        count = count_active(cs, mask, f"{label}.mask")
        for i, (score, flag) in enumerate(zip(scores, mask)):
            enforce_true(
                cs,
                less_equal(cs, score, LEADERSHIP_MAX_ACTIVITY_SCORE, SCORE_BITS, f"{label}[{i}]"),
                f"{label}.max[{i}]",
                InputRangeViolation,
                f"{label}: activity score above {LEADERSHIP_MAX_ACTIVITY_SCORE}",
            )
            cs.enforce(mul(cs, 1 - flag, score) == 0, f"{label}.inactive[{i}]")
        dimension_score = div_floor(
            cs,
            total(scores) * 100,
            LEADERSHIP_MAX_ACTIVITY_SCORE * self.capacity,
            COUNT_BITS,
            f"{label}.score",
        )
        return dimension_score, count

    def synthesize(
        self,
        cs: ConstraintSystem,
        public_inputs: Mapping[str, Any],
        private_inputs: Mapping[str, Any],
    ) -> None:
        k = self.capacity
        dimensions = len(LEADERSHIP_DIMENSIONS)
        min_index = cs.public("min_leadership_index", public_inputs["min_leadership_index"])
        min_impact = cs.public("min_impact_score", public_inputs["min_impact_score"])
        min_tenure = cs.public("min_tenure_years", public_inputs["min_tenure_years"])
        timestamp = cs.public("timestamp", public_inputs["timestamp"])

        user = cs.private("user_address", require(private_inputs, "user_address"))
        scores = cs.private(
            "activity_scores", require_vector(private_inputs, "activity_scores", dimensions * k)
        )
        mask = cs.private(
            "activity_mask", require_vector(private_inputs, "activity_mask", dimensions * k)
        )
        tenure = cs.private("tenure_years", require(private_inputs, "tenure_years"))
        indicators = cs.private(
            "maturity_indicators",
            require_vector(private_inputs, "maturity_indicators", LEADERSHIP_MATURITY_INDICATORS),
        )

        dims, counts = [], []
        for d in range(dimensions):
            window = slice(d * k, (d + 1) * k)
            score, count = self._dimension(cs, d, scores[window], mask[window])
            dims.append(score)
            counts.append(count)

        weighted = div_floor(
            cs,
            total([w * s for w, s in zip(LEADERSHIP_WEIGHTS, dims)]),
            100,
            COUNT_BITS,
            "leadership.weighted",
        )

        bonus, previous = 0, 0
        for minimum, percent in sorted(TENURE_BONUS_TIERS):
            reached = greater_equal(cs, tenure, minimum, SCORE_BITS, f"leadership.tenure{minimum}")
            bonus = total([bonus, (percent - previous) * reached])
            previous = percent
        boosted = div_floor(
            cs, mul(cs, weighted, 100 + bonus), 100, COUNT_BITS, "leadership.boosted"
        )
        index = min_value(cs, boosted, 100, COUNT_BITS, "leadership.cap")

        impact = div_floor(
            cs,
            total([2 * dims[_PROJECTS_LED], dims[_INNOVATIONS], dims[_COMMUNITY]]),
            4,
            COUNT_BITS,
            "leadership.impact",
        )

        indicator_count = count_active(cs, indicators, "leadership.maturity")
        maturity = select(
            cs, is_zero(cs, indicator_count, "leadership.maturity_zero"), 1, indicator_count
        )

        checks = [
            (greater_equal(cs, index, min_index, WIDE_BITS, "leadership.min_index"),
             "leadership index below the public minimum"),
            (greater_equal(cs, impact, min_impact, WIDE_BITS, "leadership.min_impact"),
             "impact score below the public minimum"),
            (greater_equal(cs, tenure, min_tenure, SCORE_BITS, "leadership.min_tenure"),
             "tenure below the public minimum"),
            (greater_equal(cs, counts[_PROJECTS_LED], 1, COUNT_BITS, "leadership.led"),
             "at least one led project is required"),
            (greater_equal(cs, counts[_MENTORING], 1, COUNT_BITS, "leadership.mentored"),
             "at least one mentoring activity is required"),
        ]
        for bit, message in checks:
            enforce_true(cs, bit, "leadership.valid", InputRangeViolation, f"leadership: {message}")

        cs.output("is_valid", 1)
        cs.output("dimension_scores", dims)
        cs.output("leadership_index", index)
        cs.output("impact_score", impact)
        cs.output("maturity_level", maturity)
        cs.output(
            "credential_hash",
            self.credential_hash(
                user, [*dims, index, impact, maturity, min_index, min_impact, min_tenure], timestamp
            ),
        )

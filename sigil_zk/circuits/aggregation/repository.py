"""
Repository aggregator.

Combines per-repository values across a portfolio. A repository is active
when its slot is used and it has at least `min_repository_commits` commits;
every sum and score below only counts active repositories.

- commit and LOC totals must lie in public ranges (ranges, not exact values,
  are disclosed)
- diversity score = min(100, 20 * distinct active repository hashes)
- consistency score = mean over active repositories of
  active_days * 100 / span_days
- owned active repositories < active repositories
- some active repository has at least `k_anonymity_floor` collaborators
- at least one repository is active
"""

from typing import Any, Dict, List, Mapping, Sequence

from ..base import Circuit, check_capacity, require, require_vector
from ..config import (
    AGGREGATOR_REPOSITORY_CAPACITY,
    COUNT_BITS,
    LOC_BITS,
    REPOSITORY_DIVERSITY_POINTS,
    TIMESTAMP_BITS,
    WIDE_BITS,
)
from ..constraints import ConstraintSystem
from ..exceptions import InputRangeViolation, UnsatisfiedConstraint
from ..gadgets import (
    any_of,
    bool_and,
    count_active,
    div_floor,
    enforce_range,
    enforce_true,
    greater_equal,
    is_equal,
    less_equal,
    less_than,
    min_value,
    mul,
    safe_divisor,
    select,
    total,
)
from ..statements import CircuitId

SLOT_FIELDS = (
    "repo_hashes",
    "repo_commits",
    "repo_loc",
    "repo_is_owner",
    "repo_collaborators",
    "repo_first_day",
    "repo_last_day",
    "repo_active_days",
    "repo_mask",
)


def evaluate_portfolio(repositories: Sequence[Mapping[str, int]], min_commits: int) -> Dict[str, int]:
    """
    Off-circuit evaluation of the aggregator outputs.

    Each repository mapping carries hash, commits, loc, first_day, last_day
    and active_days.
    """
    active = [r for r in repositories if r["commits"] >= min_commits]
    distinct = len({r["hash"] for r in active})
    densities = [
        min(100, r["active_days"] * 100 // (r["last_day"] - r["first_day"] + 1))
        for r in active
    ]
    return {
        "active_repositories": len(active),
        "diversity_score": min(100, REPOSITORY_DIVERSITY_POINTS * distinct),
        "consistency_score": sum(densities) // max(1, len(active)),
        "total_commits": sum(r["commits"] for r in active),
        "total_loc": sum(r["loc"] for r in active),
    }


class RepositoryAggregator(Circuit):
    circuit_id = CircuitId.REPOSITORY_AGGREGATOR
    capacity_params = ("capacity",)

    def __init__(self, capacity: int = AGGREGATOR_REPOSITORY_CAPACITY):
        self.capacity = check_capacity("capacity", capacity)

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
        user = cs.private("user_address", require(private_inputs, "user_address"))
        slots: Dict[str, List[int]] = {
            name: cs.private(name, require_vector(private_inputs, name, n))
            for name in SLOT_FIELDS
        }
        hashes, commits = slots["repo_hashes"], slots["repo_commits"]
        mask = slots["repo_mask"]

        count_active(cs, mask, "aggregate.mask")
        cs.enforce_booleans(slots["repo_is_owner"], "aggregate.owner")

        active: List[int] = []
        for i in range(n):
            busy = greater_equal(
                cs, commits[i], public["min_repository_commits"], COUNT_BITS, f"aggregate.busy[{i}]"
            )
            active.append(bool_and(cs, mask[i], busy))
        active_count = total(active)

        total_commits = total([mul(cs, a, c) for a, c in zip(active, commits)])
        enforce_range(
            cs,
            total_commits,
            public["min_total_commits"],
            public["max_total_commits"],
            COUNT_BITS,
            "aggregate.total_commits",
        )
        total_loc = total([mul(cs, a, loc) for a, loc in zip(active, slots["repo_loc"])])
        enforce_range(
            cs,
            total_loc,
            public["min_total_loc"],
            public["max_total_loc"],
            LOC_BITS,
            "aggregate.total_loc",
        )

        # a hash counts once: only its first active occurrence is new
        distinct = []
        for i in range(n):
            seen_before = any_of(
                cs,
                [
                    bool_and(cs, active[j], is_equal(cs, hashes[i], hashes[j], f"aggregate.eq[{j},{i}]"))
                    for j in range(i)
                ],
            )
            distinct.append(mul(cs, active[i], 1 - seen_before))
        diversity = min_value(
            cs, REPOSITORY_DIVERSITY_POINTS * total(distinct), 100, COUNT_BITS, "aggregate.diversity"
        )

        densities = []
        for i in range(n):
            label = f"aggregate.span[{i}]"
            first, last = slots["repo_first_day"][i], slots["repo_last_day"][i]
            ordered = less_equal(cs, first, last, TIMESTAMP_BITS, label)
            cs.enforce(mul(cs, active[i], 1 - ordered) == 0, f"{label}.ordered")
            span = select(cs, active[i], last - first + 1, 1)
            density = div_floor(
                cs, slots["repo_active_days"][i] * 100, span, WIDE_BITS, f"{label}.density"
            )
            densities.append(
                mul(cs, active[i], min_value(cs, density, 100, WIDE_BITS, f"{label}.cap"))
            )
        consistency = div_floor(
            cs,
            total(densities),
            safe_divisor(cs, active_count, "aggregate.active"),
            COUNT_BITS,
            "aggregate.consistency",
        )

        enforce_true(
            cs,
            greater_equal(cs, active_count, 1, COUNT_BITS, "aggregate.any_active"),
            "aggregate.any_active",
            UnsatisfiedConstraint,
            "aggregate: no repository meets the activity threshold",
        )

        owned = total([mul(cs, a, o) for a, o in zip(active, slots["repo_is_owner"])])
        enforce_true(
            cs,
            less_than(cs, owned, active_count, COUNT_BITS, "aggregate.ownership"),
            "aggregate.ownership",
            UnsatisfiedConstraint,
            "aggregate: every active repository is owned by the user",
        )

        collaborative = any_of(
            cs,
            [
                bool_and(
                    cs,
                    a,
                    greater_equal(
                        cs, c, public["k_anonymity_floor"], COUNT_BITS, f"aggregate.k[{i}]"
                    ),
                )
                for i, (a, c) in enumerate(zip(active, slots["repo_collaborators"]))
            ],
        )
        enforce_true(
            cs,
            collaborative,
            "aggregate.collaboration",
            InputRangeViolation,
            "aggregate: no active repository meets the collaborator floor",
        )

        cs.output("is_valid", 1)
        cs.output("active_repositories", active_count)
        cs.output("diversity_score", diversity)
        cs.output("consistency_score", consistency)
        cs.output(
            "credential_hash",
            self.credential_hash(
                user,
                [
                    active_count,
                    diversity,
                    consistency,
                    public["min_total_commits"],
                    public["max_total_commits"],
                    public["min_total_loc"],
                    public["max_total_loc"],
                    public["k_anonymity_floor"],
                ],
                public["timestamp"],
            ),
        )

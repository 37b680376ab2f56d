"""
Collaboration credential.

Proves the collaborator count lies in a public range, that the user is not
the sole contributor (contribution percentage below 100) and that the
derived collaboration score meets a public minimum. Collaborators are
anonymized hashes and must be distinct.

Score (0-100):
    team size     20 at >= 2, 30 at >= 3, 40 at >= 5 collaborators
    balance       40 if 10 <= pct <= 70, else 20 if pct <= 80
    collaboration 20 if >= 3 collaborators and pct <= 50
"""

from typing import Any, Mapping

from ..base import Circuit, check_capacity, require, require_vector
from ..config import COUNT_BITS, DEFAULT_COLLABORATOR_CAPACITY, PERCENT_BITS, SCORE_BITS
from ..constraints import ConstraintSystem
from ..exceptions import InputRangeViolation
from ..gadgets import (
    bool_and,
    count_active,
    enforce_distinct,
    enforce_range,
    enforce_sentinel_slots,
    enforce_true,
    greater_equal,
    in_range,
    less_equal,
    less_than,
    total,
)
from ..statements import CircuitId


def collaboration_score(collaborators: int, contribution_pct: int) -> int:
    """Off-circuit evaluation of the score the circuit derives."""
    team = 0
    if collaborators >= 5:
        team = 40
    elif collaborators >= 3:
        team = 30
    elif collaborators >= 2:
        team = 20

    if 10 <= contribution_pct <= 70:
        balance = 40
    elif contribution_pct <= 80:
        balance = 20
    else:
        balance = 0

    bonus = 20 if collaborators >= 3 and contribution_pct <= 50 else 0
    return team + balance + bonus


def derive_collaboration_score(
    cs: ConstraintSystem, count: int, pct: int, label: str = "collaboration"
) -> int:
    ge2 = greater_equal(cs, count, 2, COUNT_BITS, f"{label}.team2")
    ge3 = greater_equal(cs, count, 3, COUNT_BITS, f"{label}.team3")
    ge5 = greater_equal(cs, count, 5, COUNT_BITS, f"{label}.team5")
    team = total([20 * ge2, 10 * ge3, 10 * ge5])

    balanced = in_range(cs, pct, 10, 70, PERCENT_BITS, f"{label}.balanced")
    tolerable = less_equal(cs, pct, 80, PERCENT_BITS, f"{label}.tolerable")
    balance = total([20 * tolerable, 20 * balanced])

    shared = less_equal(cs, pct, 50, PERCENT_BITS, f"{label}.shared")
    bonus = 20 * bool_and(cs, ge3, shared)

    return cs.intermediate(team + balance + bonus)


def enforce_collaboration_claim(
    cs: ConstraintSystem,
    hashes,
    mask,
    contribution_pct: int,
    min_collaborators: int,
    max_collaborators: int,
    min_score: int,
    label: str = "collaboration",
) -> int:
    """
    Collaboration sub-claim shared by the collaboration and repository
    credentials.

    Returns:
        The derived collaboration score

    Raises:
        InputRangeViolation: If the count, the percentage or the score is
            outside its declared bound
        DuplicateClaimViolation: If two collaborators share a hash
    """
    count = count_active(cs, mask, f"{label}.mask")
    enforce_range(
        cs, count, min_collaborators, max_collaborators, COUNT_BITS, f"{label}.count"
    )
    enforce_sentinel_slots(cs, hashes, mask, f"{label}.slots")
    enforce_distinct(cs, hashes, mask, f"{label}.distinct")

    not_sole = less_than(cs, contribution_pct, 100, PERCENT_BITS, f"{label}.not_sole")
    enforce_true(
        cs,
        not_sole,
        f"{label}.not_sole",
        InputRangeViolation,
        f"{label}: contribution percentage must be below 100",
    )

    score = derive_collaboration_score(cs, count, contribution_pct, label)
    enforce_true(
        cs,
        greater_equal(cs, score, min_score, SCORE_BITS, f"{label}.score"),
        f"{label}.score",
        InputRangeViolation,
        f"{label}: collaboration score below the public minimum",
    )
    return score


class CollaborationCredential(Circuit):
    circuit_id = CircuitId.COLLABORATION_CREDENTIAL
    capacity_params = ("capacity",)

    def __init__(self, capacity: int = DEFAULT_COLLABORATOR_CAPACITY):
        self.capacity = check_capacity("capacity", capacity)

    def synthesize(
        self,
        cs: ConstraintSystem,
        public_inputs: Mapping[str, Any],
        private_inputs: Mapping[str, Any],
    ) -> None:
        n = self.capacity
        min_c = cs.public("min_collaborators", public_inputs["min_collaborators"])
        max_c = cs.public("max_collaborators", public_inputs["max_collaborators"])
        min_score = cs.public(
            "min_collaboration_score", public_inputs["min_collaboration_score"]
        )
        timestamp = cs.public("timestamp", public_inputs["timestamp"])

        user = cs.private("user_address", require(private_inputs, "user_address"))
        hashes = cs.private(
            "collaborator_hashes", require_vector(private_inputs, "collaborator_hashes", n)
        )
        mask = cs.private(
            "collaborator_mask", require_vector(private_inputs, "collaborator_mask", n)
        )
        pct = cs.private(
            "contribution_percentage", require(private_inputs, "contribution_percentage")
        )

        score = enforce_collaboration_claim(
            cs, hashes, mask, pct, min_c, max_c, min_score
        )

        cs.output("is_valid", 1)
        cs.output("collaboration_score", score)
        cs.output(
            "credential_hash",
            self.credential_hash(user, [min_c, max_c, min_score, score], timestamp),
        )

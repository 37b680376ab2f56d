"""
Dynamic language credential.

Proves that exactly `language_count` distinct languages were used, each
above a minimum number of attributed lines, and publishes a canonical
fingerprint of the language set. The fingerprint hashes the count with the
fingerprints sorted in descending order, so two provers claiming the same
set publish the same value regardless of slot order.

Capacity is one of the compiled tiers (5, 10, 20, 50).
"""

from typing import Any, List, Mapping, Optional, Sequence

from ..base import Circuit, require, require_vector
from ..capacity import get_language_capacity, validate_capacity
from ..config import COUNT_BITS, FINGERPRINT_BITS, LOC_BITS
from ..constraints import ConstraintSystem
from ..exceptions import InputRangeViolation
from ..field import hash_many
from ..gadgets import (
    assert_bits,
    count_active,
    enforce_distinct,
    enforce_non_increasing,
    enforce_permutation,
    enforce_sentinel_slots,
    greater_equal,
    is_equal,
    mul,
)
from ..statements import CircuitId


def canonical_order(hashes: Sequence[int]) -> List[int]:
    """Prover-side sorted vector: descending, zero sentinels last."""
    return sorted(hashes, reverse=True)


def language_set_fingerprint(count: int, hashes: Sequence[int]) -> int:
    """Off-circuit fingerprint of a language set (any slot order)."""
    return hash_many([count, *canonical_order(hashes)], "language_set")


def enforce_language_claim(
    cs: ConstraintSystem,
    hashes: Sequence[int],
    lines: Sequence[int],
    mask: Sequence[int],
    sorted_hashes: Sequence[int],
    language_count: int,
    min_lines: int,
    label: str = "language",
) -> int:
    """
    Language sub-claim shared by the language and repository credentials.

    Returns:
        The canonical language-set fingerprint

    Raises:
        InputRangeViolation: If the active count differs from the claim or
            an active slot falls below the usage minimum
        DuplicateClaimViolation: If two active slots share a fingerprint
    """
    assert_bits(cs, language_count, COUNT_BITS, f"{label}.count_bits")
    active = count_active(cs, mask, f"{label}.mask")
    cs.enforce(
        is_equal(cs, active, language_count, f"{label}.count") == 1,
        f"{label}.count",
        InputRangeViolation,
        f"{label}: {active} active languages, claimed {language_count}",
    )

    for i, h in enumerate(hashes):
        assert_bits(cs, h, FINGERPRINT_BITS, f"{label}.hash_bits[{i}]")
    enforce_sentinel_slots(cs, hashes, mask, f"{label}.slots")

    for i, (used, flag) in enumerate(zip(lines, mask)):
        enough = greater_equal(cs, used, min_lines, LOC_BITS, f"{label}.usage[{i}]")
        # inactive slots are vacuously valid
        cs.enforce(
            mul(cs, flag, 1 - enough) == 0,
            f"{label}.usage[{i}]",
            InputRangeViolation,
            f"{label}: slot {i} below the minimum usage threshold",
        )

    enforce_distinct(cs, hashes, mask, f"{label}.distinct")

    enforce_non_increasing(cs, sorted_hashes, FINGERPRINT_BITS, f"{label}.sorted")
    enforce_permutation(cs, hashes, sorted_hashes, f"{label}.permutation")

    return hash_many([language_count, *sorted_hashes], "language_set")


class LanguageCredential(Circuit):
    """
    Example:
        >>> circuit = LanguageCredential(capacity=5)
        >>> witness = circuit.generate_witness(public, private)
        >>> witness.output("language_set_fingerprint")
    """

    circuit_id = CircuitId.LANGUAGE_CREDENTIAL
    capacity_params = ("capacity",)

    def __init__(self, capacity: Optional[int] = None):
        self.capacity = validate_capacity(get_language_capacity(capacity))

    def synthesize(
        self,
        cs: ConstraintSystem,
        public_inputs: Mapping[str, Any],
        private_inputs: Mapping[str, Any],
    ) -> None:
        n = self.capacity
        language_count = cs.public("language_count", public_inputs["language_count"])
        min_lines = cs.public("min_language_lines", public_inputs["min_language_lines"])
        timestamp = cs.public("timestamp", public_inputs["timestamp"])

        user = cs.private("user_address", require(private_inputs, "user_address"))
        hashes = cs.private("language_hashes", require_vector(private_inputs, "language_hashes", n))
        lines = cs.private("language_lines", require_vector(private_inputs, "language_lines", n))
        mask = cs.private("language_mask", require_vector(private_inputs, "language_mask", n))
        sorted_hashes = cs.private(
            "language_sorted", require_vector(private_inputs, "language_sorted", n)
        )

        set_fingerprint = enforce_language_claim(
            cs, hashes, lines, mask, sorted_hashes, language_count, min_lines
        )

        cs.output("is_valid", 1)
        cs.output("language_set_fingerprint", set_fingerprint)
        cs.output(
            "credential_hash",
            self.credential_hash(
                user, [language_count, min_lines, set_fingerprint], timestamp
            ),
        )

"""
Circuit registry for credential and aggregation circuits.
Defines circuit identifiers, versions, and public-signal schemas.
"""

from enum import Enum
from dataclasses import dataclass
from typing import Any, Dict, Sequence, Tuple


class CircuitId(Enum):
    """Circuit identifiers"""

    # Credential circuits
    REPOSITORY_CREDENTIAL = "repository_credential_v1"
    LANGUAGE_CREDENTIAL = "language_credential_v1"
    COLLABORATION_CREDENTIAL = "collaboration_credential_v1"
    LEADERSHIP_CREDENTIAL = "leadership_credential_v1"
    DIVERSITY_CREDENTIAL = "diversity_credential_v1"

    # Aggregation circuits
    REPOSITORY_AGGREGATOR = "repository_aggregator_v1"
    STATISTICS_AGGREGATOR = "statistics_aggregator_v1"


SCALAR = "field"
VECTOR = "field[]"


@dataclass
class CircuitSpec:
    """
    Specification for a circuit.

    Attributes:
        circuit_id: Circuit identifier
        version: Circuit version (for future upgrades)
        public_input_schema: Public inputs in signal order (name -> kind)
        output_schema: Outputs in signal order (name -> kind)
        witness_schema: Private witness components (for documentation)
        description: Human-readable claim description
    """

    circuit_id: CircuitId
    version: int
    public_input_schema: Dict[str, str]
    output_schema: Dict[str, str]
    witness_schema: Dict[str, str]
    description: str


# Registry of all supported circuits
CIRCUIT_REGISTRY: Dict[CircuitId, CircuitSpec] = {
    CircuitId.REPOSITORY_CREDENTIAL: CircuitSpec(
        circuit_id=CircuitId.REPOSITORY_CREDENTIAL,
        version=1,
        public_input_schema={
            "commit_root": SCALAR,
            "repo_hash": SCALAR,
            "owner_hash": SCALAR,
            "min_commits": SCALAR,
            "max_commits": SCALAR,
            "min_loc": SCALAR,
            "max_loc": SCALAR,
            "language_count": SCALAR,
            "min_language_lines": SCALAR,
            "min_collaborators": SCALAR,
            "max_collaborators": SCALAR,
            "min_collaboration_score": SCALAR,
            "timestamp": SCALAR,
        },
        output_schema={
            "is_valid": SCALAR,
            "is_not_owner": SCALAR,
            "language_set_fingerprint": SCALAR,
            "collaboration_score": SCALAR,
            "credential_hash": SCALAR,
        },
        witness_schema={
            "user_address": SCALAR,
            "public_key": VECTOR,
            "signature": VECTOR,
            "commit_hashes": VECTOR,
            "commit_additions": VECTOR,
            "commit_deletions": VECTOR,
            "commit_mask": VECTOR,
            "merkle_siblings": VECTOR,
            "merkle_directions": VECTOR,
            "language_hashes": VECTOR,
            "language_lines": VECTOR,
            "language_mask": VECTOR,
            "language_sorted": VECTOR,
            "collaborator_hashes": VECTOR,
            "collaborator_mask": VECTOR,
            "contribution_percentage": SCALAR,
        },
        description="Prove commit membership, LOC range, languages, "
        "collaboration, non-ownership and a signed repository binding",
    ),
    CircuitId.LANGUAGE_CREDENTIAL: CircuitSpec(
        circuit_id=CircuitId.LANGUAGE_CREDENTIAL,
        version=1,
        public_input_schema={
            "language_count": SCALAR,
            "min_language_lines": SCALAR,
            "timestamp": SCALAR,
        },
        output_schema={
            "is_valid": SCALAR,
            "language_set_fingerprint": SCALAR,
            "credential_hash": SCALAR,
        },
        witness_schema={
            "user_address": SCALAR,
            "language_hashes": VECTOR,
            "language_lines": VECTOR,
            "language_mask": VECTOR,
            "language_sorted": VECTOR,
        },
        description="Prove usage of exactly N distinct languages above a threshold",
    ),
    CircuitId.COLLABORATION_CREDENTIAL: CircuitSpec(
        circuit_id=CircuitId.COLLABORATION_CREDENTIAL,
        version=1,
        public_input_schema={
            "min_collaborators": SCALAR,
            "max_collaborators": SCALAR,
            "min_collaboration_score": SCALAR,
            "timestamp": SCALAR,
        },
        output_schema={
            "is_valid": SCALAR,
            "collaboration_score": SCALAR,
            "credential_hash": SCALAR,
        },
        witness_schema={
            "user_address": SCALAR,
            "collaborator_hashes": VECTOR,
            "collaborator_mask": VECTOR,
            "contribution_percentage": SCALAR,
        },
        description="Prove team size in range and not being the sole contributor",
    ),
    CircuitId.LEADERSHIP_CREDENTIAL: CircuitSpec(
        circuit_id=CircuitId.LEADERSHIP_CREDENTIAL,
        version=1,
        public_input_schema={
            "min_leadership_index": SCALAR,
            "min_impact_score": SCALAR,
            "min_tenure_years": SCALAR,
            "timestamp": SCALAR,
        },
        output_schema={
            "is_valid": SCALAR,
            "dimension_scores": VECTOR,
            "leadership_index": SCALAR,
            "impact_score": SCALAR,
            "maturity_level": SCALAR,
            "credential_hash": SCALAR,
        },
        witness_schema={
            "user_address": SCALAR,
            "activity_scores": VECTOR,
            "activity_mask": VECTOR,
            "tenure_years": SCALAR,
            "maturity_indicators": VECTOR,
        },
        description="Prove weighted leadership index, impact and tenure thresholds",
    ),
    CircuitId.DIVERSITY_CREDENTIAL: CircuitSpec(
        circuit_id=CircuitId.DIVERSITY_CREDENTIAL,
        version=1,
        public_input_schema={
            "min_diversity_index": SCALAR,
            "min_breadth_index": SCALAR,
            "min_depth_index": SCALAR,
            "timestamp": SCALAR,
        },
        output_schema={
            "is_valid": SCALAR,
            "diversity_index": SCALAR,
            "breadth_index": SCALAR,
            "depth_index": SCALAR,
            "credential_hash": SCALAR,
        },
        witness_schema={
            "user_address": SCALAR,
            "category_hashes": VECTOR,
            "category_scores": VECTOR,
            "category_mask": VECTOR,
        },
        description="Prove breadth and depth across seven diversity dimensions",
    ),
    CircuitId.REPOSITORY_AGGREGATOR: CircuitSpec(
        circuit_id=CircuitId.REPOSITORY_AGGREGATOR,
        version=1,
        public_input_schema={
            "min_repository_commits": SCALAR,
            "min_total_commits": SCALAR,
            "max_total_commits": SCALAR,
            "min_total_loc": SCALAR,
            "max_total_loc": SCALAR,
            "k_anonymity_floor": SCALAR,
            "timestamp": SCALAR,
        },
        output_schema={
            "is_valid": SCALAR,
            "active_repositories": SCALAR,
            "diversity_score": SCALAR,
            "consistency_score": SCALAR,
            "credential_hash": SCALAR,
        },
        witness_schema={
            "user_address": SCALAR,
            "repo_hashes": VECTOR,
            "repo_commits": VECTOR,
            "repo_loc": VECTOR,
            "repo_is_owner": VECTOR,
            "repo_collaborators": VECTOR,
            "repo_first_day": VECTOR,
            "repo_last_day": VECTOR,
            "repo_active_days": VECTOR,
            "repo_mask": VECTOR,
        },
        description="Prove portfolio totals, diversity, consistency and non-ownership",
    ),
    CircuitId.STATISTICS_AGGREGATOR: CircuitSpec(
        circuit_id=CircuitId.STATISTICS_AGGREGATOR,
        version=1,
        public_input_schema={
            "domain_min": SCALAR,
            "domain_max": SCALAR,
            "outlier_threshold": SCALAR,
            "epsilon": SCALAR,
            "sensitivity": SCALAR,
            "confidence_level": SCALAR,
        },
        output_schema={
            "mean": SCALAR,
            "variance": SCALAR,
            "outlier_count": SCALAR,
            "robust_mean": SCALAR,
            "skewness": SCALAR,
            "skewness_negative": SCALAR,
            "ci_lower": SCALAR,
            "ci_upper": SCALAR,
            "noised_sum": SCALAR,
            "noised_count": SCALAR,
        },
        witness_schema={
            "values": VECTOR,
            "weights": VECTOR,
            "mask": VECTOR,
            "noise_seed": SCALAR,
        },
        description="Outlier-robust weighted statistics with DP disclosure",
    ),
}


def format_circuit_id(circuit_id: CircuitId, capacities: Sequence[int] = ()) -> str:
    """
    Artifact identifier for a compiled circuit shape.

    Example:
        >>> format_circuit_id(CircuitId.LANGUAGE_CREDENTIAL, (10,))
        'language_credential_v1@10'
        >>> format_circuit_id(CircuitId.REPOSITORY_CREDENTIAL, (256, 10, 16))
        'repository_credential_v1@256x10x16'
    """
    if not capacities:
        return circuit_id.value
    return f"{circuit_id.value}@{'x'.join(str(c) for c in capacities)}"


def parse_circuit_id(value: str) -> Tuple[CircuitId, Tuple[int, ...]]:
    """
    Inverse of format_circuit_id.

    Raises:
        ValueError: If the identifier is unknown or malformed
    """
    if not isinstance(value, str):
        raise ValueError(f"circuit id must be a string, got {type(value)}")
    base, _, suffix = value.partition("@")
    try:
        circuit_id = CircuitId(base)
    except ValueError:
        raise ValueError(f"Unknown circuit id: {value!r}")
    if not suffix:
        return circuit_id, ()
    parts = suffix.split("x")
    if not all(part.isdigit() for part in parts):
        raise ValueError(f"Malformed circuit capacity in {value!r}")
    return circuit_id, tuple(int(part) for part in parts)


def validate_public_inputs(circuit_id: CircuitId, public_inputs: Dict[str, Any]) -> None:
    """
    Validate public inputs match the circuit schema.

    Raises:
        ValueError: If inputs don't match schema
    """
    if circuit_id not in CIRCUIT_REGISTRY:
        raise ValueError(f"Unknown circuit id: {circuit_id}")

    spec = CIRCUIT_REGISTRY[circuit_id]

    for name, kind in spec.public_input_schema.items():
        if name not in public_inputs:
            raise ValueError(
                f"Missing required field '{name}' for {circuit_id.value}"
            )
        value = public_inputs[name]
        if kind == VECTOR:
            if not isinstance(value, (list, tuple)) or not all(
                isinstance(v, int) for v in value
            ):
                raise ValueError(
                    f"Field '{name}' must be a list of ints for {circuit_id.value}"
                )
        elif not isinstance(value, int) or isinstance(value, bool):
            raise ValueError(
                f"Field '{name}' must be int for {circuit_id.value}, "
                f"got {type(value).__name__}"
            )

    unexpected = set(public_inputs) - set(spec.public_input_schema)
    if unexpected:
        raise ValueError(
            f"Unexpected public inputs for {circuit_id.value}: {sorted(unexpected)}"
        )

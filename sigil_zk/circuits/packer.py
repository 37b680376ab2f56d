"""
Circuit input packing and fail-fast validation.

Turns analyzer output into the fixed-capacity public/private vectors each
circuit expects. Everything a circuit would reject is rejected here first,
before the expensive evaluation starts: too many entries raise
CapacityExceeded (never truncated), values outside the field raise
ValueError, and claims whose actual value misses the declared range raise
InputRangeViolation.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from nacl.signing import SigningKey

from .config import (
    AGGREGATOR_REPOSITORY_CAPACITY,
    DEFAULT_COLLABORATOR_CAPACITY,
    DEFAULT_COMMIT_CAPACITY,
    DEFAULT_LANGUAGE_CAPACITY,
    DIVERSITY_DIMENSION_CAPACITY,
    DIVERSITY_DIMENSIONS,
    EPSILON_SCALE,
    FIELD_PRIME,
    LEADERSHIP_ACTIVITY_CAPACITY,
    LEADERSHIP_DIMENSIONS,
    LEADERSHIP_MATURITY_INDICATORS,
    STATISTICS_CAPACITY,
    Z_SCORE_SCALED,
)
from .exceptions import CapacityExceeded, InputRangeViolation
from .field import (
    address_from_label,
    address_from_public_key,
    fingerprint,
    hash_bytes,
    identity_commitment,
)
from .credentials.repository import signature_message
from .gadgets import sign_message
from .merkle import build_tree, hash_leaf, split_path, tree_depth

Inputs = Tuple[Dict[str, Any], Dict[str, Any]]


# ============================================================================
# VALIDATION
# ============================================================================


def pad(values: Sequence[int], capacity: int, what: str, fill: int = 0) -> List[int]:
    """
    Pad to capacity with the sentinel.

    Raises:
        CapacityExceeded: If there are more values than slots
    """
    if len(values) > capacity:
        raise CapacityExceeded(what, len(values), capacity)
    return list(values) + [fill] * (capacity - len(values))


def check_field_elements(name: str, values: Sequence[int]) -> None:
    """
    Raises:
        ValueError: If a value is negative, not an int, or not below P
    """
    for i, value in enumerate(values):
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"{name}[{i}] must be int, got {type(value).__name__}")
        if not 0 <= value < FIELD_PRIME:
            raise ValueError(f"{name}[{i}] is not a canonical field element")


def precheck_range(name: str, actual: int, lo: int, hi: int) -> None:
    """
    Off-circuit mirror of the bounded-range constraint.

    Raises:
        InputRangeViolation: If actual is outside [lo, hi]
    """
    if lo > hi:
        raise ValueError(f"{name}: empty range [{lo}, {hi}]")
    if not lo <= actual <= hi:
        raise InputRangeViolation(
            f"{name}: actual value {actual} outside declared range [{lo}, {hi}]",
            label=name,
        )


def precheck_languages(languages: Sequence[Tuple[str, int]], min_lines: int) -> None:
    for name, lines in languages:
        if lines < min_lines:
            raise InputRangeViolation(
                f"language {name!r}: {lines} lines below minimum {min_lines}",
                label="language.usage",
            )


def commit_element(sha: str) -> int:
    """Field element for a commit sha."""
    if not sha:
        raise ValueError("commit sha cannot be empty")
    return hash_bytes(sha.encode("utf-8"), domain="commit_leaf")


# ============================================================================
# SLOT BUILDERS
# ============================================================================


def build_commit_inputs(
    commits: Sequence[Tuple[str, int, int]], capacity: int = DEFAULT_COMMIT_CAPACITY
) -> Dict[str, Any]:
    """
    Build the commit tree and per-slot membership paths.

    Args:
        commits: (sha, additions, deletions) per commit
        capacity: Commit slots in the circuit

    Returns:
        Dict with commit_root and the commit_* / merkle_* private vectors
    """
    if not commits:
        raise ValueError("at least one commit is required")
    if len(commits) > capacity:
        raise CapacityExceeded("commits", len(commits), capacity)

    depth = tree_depth(capacity)
    hashes = [commit_element(sha) for sha, _, _ in commits]
    additions = [int(a) for _, a, _ in commits]
    deletions = [int(d) for _, _, d in commits]
    check_field_elements("commit_additions", additions)
    check_field_elements("commit_deletions", deletions)

    leaves = [hash_leaf(h, a, d) for h, a, d in zip(hashes, additions, deletions)]
    root, paths = build_tree(leaves, depth=depth)

    siblings: List[int] = []
    directions: List[int] = []
    for i in range(capacity):
        if i < len(leaves):
            s, d = split_path(paths[i])
        else:
            s, d = [0] * depth, [0] * depth
        siblings.extend(s)
        directions.extend(d)

    return {
        "commit_root": root,
        "commit_hashes": pad(hashes, capacity, "commits"),
        "commit_additions": pad(additions, capacity, "commits"),
        "commit_deletions": pad(deletions, capacity, "commits"),
        "commit_mask": pad([1] * len(hashes), capacity, "commits"),
        "merkle_siblings": siblings,
        "merkle_directions": directions,
    }


def build_language_inputs(
    languages: Sequence[Tuple[str, int]], capacity: int
) -> Dict[str, List[int]]:
    """
    Args:
        languages: (language name, attributed lines) per language

    Raises:
        CapacityExceeded: If there are more languages than slots
        ValueError: If a language is listed twice
    """
    names = [name for name, _ in languages]
    if len(set(names)) != len(names):
        raise ValueError("each language may appear only once")
    hashes = [fingerprint(name) for name in names]
    lines = [int(n) for _, n in languages]
    check_field_elements("language_lines", lines)
    padded = pad(hashes, capacity, "languages")
    return {
        "language_hashes": padded,
        "language_lines": pad(lines, capacity, "languages"),
        "language_mask": pad([1] * len(hashes), capacity, "languages"),
        "language_sorted": sorted(padded, reverse=True),
    }


def build_collaborator_inputs(
    collaborator_ids: Sequence[str], capacity: int = DEFAULT_COLLABORATOR_CAPACITY
) -> Dict[str, List[int]]:
    """Collaborator slots from anonymized identity strings."""
    hashes = [address_from_label(cid) for cid in collaborator_ids]
    return {
        "collaborator_hashes": pad(hashes, capacity, "collaborators"),
        "collaborator_mask": pad([1] * len(hashes), capacity, "collaborators"),
    }


# ============================================================================
# PER-CIRCUIT PACKERS
# ============================================================================


def pack_repository_credential(
    *,
    signing_key: SigningKey,
    repository: str,
    owner: str,
    commits: Sequence[Tuple[str, int, int]],
    languages: Sequence[Tuple[str, int]],
    collaborator_ids: Sequence[str],
    contribution_percentage: int,
    commit_range: Tuple[int, int],
    loc_range: Tuple[int, int],
    min_language_lines: int,
    collaborator_range: Tuple[int, int],
    min_collaboration_score: int,
    timestamp: int,
    commit_capacity: int = DEFAULT_COMMIT_CAPACITY,
    language_capacity: int = DEFAULT_LANGUAGE_CAPACITY,
    collaborator_capacity: int = DEFAULT_COLLABORATOR_CAPACITY,
) -> Inputs:
    """
    Pack a repository credential for the holder of `signing_key`.

    The user signs H(repo_hash, commit_root) while packing.

    Raises:
        CapacityExceeded: If any list exceeds its capacity
        InputRangeViolation: If an actual value misses its declared range
    """
    precheck_range("commits.count", len(commits), *commit_range)
    precheck_range("loc", sum(a + d for _, a, d in commits), *loc_range)
    precheck_range("collaboration.count", len(collaborator_ids), *collaborator_range)
    precheck_languages(languages, min_language_lines)

    commit_inputs = build_commit_inputs(commits, commit_capacity)
    commit_root = commit_inputs.pop("commit_root")
    repo_hash = hash_bytes(repository.encode("utf-8"), domain="identity")
    public_key = bytes(signing_key.verify_key)

    public = {
        "commit_root": commit_root,
        "repo_hash": repo_hash,
        "owner_hash": owner_hash(owner),
        "min_commits": commit_range[0],
        "max_commits": commit_range[1],
        "min_loc": loc_range[0],
        "max_loc": loc_range[1],
        "language_count": len(languages),
        "min_language_lines": min_language_lines,
        "min_collaborators": collaborator_range[0],
        "max_collaborators": collaborator_range[1],
        "min_collaboration_score": min_collaboration_score,
        "timestamp": timestamp,
    }
    private = {
        "user_address": address_from_public_key(public_key),
        "public_key": public_key,
        "signature": sign_message(signing_key, signature_message(repo_hash, commit_root)),
        **commit_inputs,
        **build_language_inputs(languages, language_capacity),
        **build_collaborator_inputs(collaborator_ids, collaborator_capacity),
        "contribution_percentage": int(contribution_percentage),
    }
    return public, private


def owner_hash(owner: str) -> int:
    """Public owner hash for a login-identified repository owner."""
    return identity_commitment(address_from_label(owner))


def pack_language_credential(
    *,
    user_address: int,
    languages: Sequence[Tuple[str, int]],
    min_language_lines: int,
    timestamp: int,
    capacity: int,
) -> Inputs:
    precheck_languages(languages, min_language_lines)
    public = {
        "language_count": len(languages),
        "min_language_lines": min_language_lines,
        "timestamp": timestamp,
    }
    private = {"user_address": user_address, **build_language_inputs(languages, capacity)}
    return public, private


def pack_collaboration_credential(
    *,
    user_address: int,
    collaborator_ids: Sequence[str],
    contribution_percentage: int,
    collaborator_range: Tuple[int, int],
    min_collaboration_score: int,
    timestamp: int,
    capacity: int = DEFAULT_COLLABORATOR_CAPACITY,
) -> Inputs:
    precheck_range("collaboration.count", len(collaborator_ids), *collaborator_range)
    public = {
        "min_collaborators": collaborator_range[0],
        "max_collaborators": collaborator_range[1],
        "min_collaboration_score": min_collaboration_score,
        "timestamp": timestamp,
    }
    private = {
        "user_address": user_address,
        **build_collaborator_inputs(collaborator_ids, capacity),
        "contribution_percentage": int(contribution_percentage),
    }
    return public, private


def pack_leadership_credential(
    *,
    user_address: int,
    activities: Mapping[str, Sequence[int]],
    tenure_years: int,
    maturity_indicators: Sequence[bool],
    min_leadership_index: int,
    min_impact_score: int,
    min_tenure_years: int,
    timestamp: int,
    capacity: int = LEADERSHIP_ACTIVITY_CAPACITY,
) -> Inputs:
    """
    Args:
        activities: Dimension name -> activity scores (0-10)
    """
    unknown = set(activities) - set(LEADERSHIP_DIMENSIONS)
    if unknown:
        raise ValueError(f"Unknown leadership dimensions: {sorted(unknown)}")
    if len(maturity_indicators) != LEADERSHIP_MATURITY_INDICATORS:
        raise ValueError(
            f"expected {LEADERSHIP_MATURITY_INDICATORS} maturity indicators"
        )

    scores: List[int] = []
    mask: List[int] = []
    for name in LEADERSHIP_DIMENSIONS:
        entries = list(activities.get(name, ()))
        scores.extend(pad(entries, capacity, f"leadership.{name}"))
        mask.extend(pad([1] * len(entries), capacity, f"leadership.{name}"))
    check_field_elements("activity_scores", scores)

    public = {
        "min_leadership_index": min_leadership_index,
        "min_impact_score": min_impact_score,
        "min_tenure_years": min_tenure_years,
        "timestamp": timestamp,
    }
    private = {
        "user_address": user_address,
        "activity_scores": scores,
        "activity_mask": mask,
        "tenure_years": int(tenure_years),
        "maturity_indicators": [1 if flag else 0 for flag in maturity_indicators],
    }
    return public, private


def pack_diversity_credential(
    *,
    user_address: int,
    categories: Mapping[str, Mapping[str, int]],
    min_diversity_index: int,
    min_breadth_index: int,
    min_depth_index: int,
    timestamp: int,
    capacity: int = DIVERSITY_DIMENSION_CAPACITY,
) -> Inputs:
    """
    Args:
        categories: Dimension name -> {category label: score 0-100}
    """
    unknown = set(categories) - set(DIVERSITY_DIMENSIONS)
    if unknown:
        raise ValueError(f"Unknown diversity dimensions: {sorted(unknown)}")

    hashes: List[int] = []
    scores: List[int] = []
    mask: List[int] = []
    for name in DIVERSITY_DIMENSIONS:
        entries = dict(categories.get(name, {}))
        hashes.extend(pad([fingerprint(label) for label in entries], capacity, f"diversity.{name}"))
        scores.extend(pad([int(s) for s in entries.values()], capacity, f"diversity.{name}"))
        mask.extend(pad([1] * len(entries), capacity, f"diversity.{name}"))
    check_field_elements("category_scores", scores)

    public = {
        "min_diversity_index": min_diversity_index,
        "min_breadth_index": min_breadth_index,
        "min_depth_index": min_depth_index,
        "timestamp": timestamp,
    }
    private = {
        "user_address": user_address,
        "category_hashes": hashes,
        "category_scores": scores,
        "category_mask": mask,
    }
    return public, private


def pack_repository_aggregator(
    *,
    user_address: int,
    repositories: Sequence[Mapping[str, Any]],
    min_repository_commits: int,
    total_commit_range: Tuple[int, int],
    total_loc_range: Tuple[int, int],
    k_anonymity_floor: int,
    timestamp: int,
    capacity: int = AGGREGATOR_REPOSITORY_CAPACITY,
) -> Inputs:
    """
    Args:
        repositories: Mappings with name, commits, loc, is_owner,
            collaborators, first_day, last_day, active_days (days are
            integer day numbers)
    """
    if len(repositories) > capacity:
        raise CapacityExceeded("repositories", len(repositories), capacity)

    active = [r for r in repositories if r["commits"] >= min_repository_commits]
    precheck_range("aggregate.total_commits", sum(r["commits"] for r in active), *total_commit_range)
    precheck_range("aggregate.total_loc", sum(r["loc"] for r in active), *total_loc_range)

    def column(key: str, convert=int) -> List[int]:
        return pad([convert(r[key]) for r in repositories], capacity, "repositories")

    private = {
        "user_address": user_address,
        "repo_hashes": pad(
            [hash_bytes(r["name"].encode("utf-8"), domain="identity") for r in repositories],
            capacity,
            "repositories",
        ),
        "repo_commits": column("commits"),
        "repo_loc": column("loc"),
        "repo_is_owner": column("is_owner", lambda v: 1 if v else 0),
        "repo_collaborators": column("collaborators"),
        "repo_first_day": column("first_day"),
        "repo_last_day": column("last_day"),
        "repo_active_days": column("active_days"),
        "repo_mask": pad([1] * len(repositories), capacity, "repositories"),
    }
    for key in ("repo_commits", "repo_loc", "repo_first_day", "repo_last_day", "repo_active_days"):
        check_field_elements(key, private[key])

    public = {
        "min_repository_commits": min_repository_commits,
        "min_total_commits": total_commit_range[0],
        "max_total_commits": total_commit_range[1],
        "min_total_loc": total_loc_range[0],
        "max_total_loc": total_loc_range[1],
        "k_anonymity_floor": k_anonymity_floor,
        "timestamp": timestamp,
    }
    return public, private


def pack_statistics(
    *,
    values: Sequence[int],
    domain: Tuple[int, int],
    outlier_threshold: int,
    epsilon: float,
    sensitivity: int,
    noise_seed: int,
    weights: Optional[Sequence[int]] = None,
    confidence_level: int = 95,
    capacity: int = STATISTICS_CAPACITY,
) -> Inputs:
    """
    Args:
        epsilon: Real-valued epsilon; encoded fixed-point (x1000)
    """
    if weights is None:
        weights = [1] * len(values)
    if len(weights) != len(values):
        raise ValueError("values and weights must have equal length")
    if confidence_level not in Z_SCORE_SCALED:
        raise ValueError(f"confidence level must be one of {sorted(Z_SCORE_SCALED)}")
    epsilon_fixed = int(round(epsilon * EPSILON_SCALE))
    if epsilon_fixed <= 0:
        raise ValueError("epsilon must be positive")
    for i, value in enumerate(values):
        precheck_range(f"stats.value[{i}]", value, *domain)
    check_field_elements("weights", list(weights))

    public = {
        "domain_min": domain[0],
        "domain_max": domain[1],
        "outlier_threshold": outlier_threshold,
        "epsilon": epsilon_fixed,
        "sensitivity": sensitivity,
        "confidence_level": confidence_level,
    }
    private = {
        "values": pad(list(values), capacity, "statistics"),
        "weights": pad(list(weights), capacity, "statistics"),
        "mask": pad([1] * len(values), capacity, "statistics"),
        "noise_seed": noise_seed,
    }
    return public, private

"""
⚠️ DRAFT — requires crypto review before production use

Circuit configuration for Sigil contribution credentials.

This is a PROTOTYPE implementation for testing and validation.
DO NOT use in production without security audit.

All capacities here are build-time constants. A circuit instance is
specialized for one capacity and never resizes at runtime.
"""

# ============================================================================
# FIELD SELECTION
# ============================================================================

# BN254 scalar field (alt_bn128), the field used by Groth16/PLONK verifiers
FIELD_NAME = "bn254"
FIELD_PRIME = (
    21888242871839275222246405745257275088548364400416034343698204186575808495617
)
FIELD_BITS = 254

# ============================================================================
# ALGEBRAIC HASH (MiMC-style sponge)
# ============================================================================

HASH_ROUNDS = 91
HASH_EXPONENT = 7  # gcd(7, FIELD_PRIME - 1) == 1, so x^7 is a permutation
HASH_ROUND_SEED = b"SIGIL_MIMC7_ROUND_CONSTANTS_V1"
HASH_MAX_ARITY = 128
HASH_LIMB_BYTES = 31  # bytes packed per field element (< 254 bits)

# Language and category fingerprints are truncated to this many bits
FINGERPRINT_BITS = 64

# ============================================================================
# DOMAIN SEPARATION
# ============================================================================

DOMAIN_SEPARATOR_PREFIX = b"SIGIL_ZK_V1_"

DOMAIN_SEPARATORS = {
    "merkle_node": DOMAIN_SEPARATOR_PREFIX + b"MERKLE_NODE",
    "commit_leaf": DOMAIN_SEPARATOR_PREFIX + b"COMMIT_LEAF",
    "identity": DOMAIN_SEPARATOR_PREFIX + b"IDENTITY",
    "fingerprint": DOMAIN_SEPARATOR_PREFIX + b"FINGERPRINT",
    "language_set": DOMAIN_SEPARATOR_PREFIX + b"LANGUAGE_SET",
    "signature_message": DOMAIN_SEPARATOR_PREFIX + b"SIGNATURE_MESSAGE",
    "credential": DOMAIN_SEPARATOR_PREFIX + b"CREDENTIAL",
    "permutation": DOMAIN_SEPARATOR_PREFIX + b"PERMUTATION",
    "dp_noise": DOMAIN_SEPARATOR_PREFIX + b"DP_NOISE",
    "proof_transcript": DOMAIN_SEPARATOR_PREFIX + b"PROOF_TRANSCRIPT",
}

# ============================================================================
# BIT WIDTHS (per field, chosen so no comparison can wrap the field)
# ============================================================================

SCORE_BITS = 8  # 0-100 scores, 0-10 activity scores
PERCENT_BITS = 8
COUNT_BITS = 32  # commits, collaborators, languages
LOC_BITS = 40  # lines of code per commit and per repository
TIMESTAMP_BITS = 48  # unix seconds and day numbers
VALUE_BITS = 64  # statistics aggregator inputs
WIDE_BITS = 128  # sums of squares / cubes in statistics

# ============================================================================
# CAPACITIES
# ============================================================================

# Language credential tiers. Fixed at build time.
LANGUAGE_CAPACITY_TIERS = (5, 10, 20, 50)
DEFAULT_LANGUAGE_CAPACITY = 10

DEFAULT_COMMIT_CAPACITY = 256
DEFAULT_COLLABORATOR_CAPACITY = 16
LEADERSHIP_ACTIVITY_CAPACITY = 10
DIVERSITY_DIMENSION_CAPACITY = 10
AGGREGATOR_REPOSITORY_CAPACITY = 20
STATISTICS_CAPACITY = 32

# ============================================================================
# FIXED-POINT ARITHMETIC
# ============================================================================

FIXED_POINT_SCALE = 100  # two decimal places for means and deviations
EPSILON_SCALE = 1000  # epsilon 1.0 == 1000 in circuits
Z_SCORE_SCALED = {90: 165, 95: 196, 99: 258}  # z * 100 per confidence level
DEFAULT_CONFIDENCE_LEVEL = 95

# ============================================================================
# SCORING WEIGHTS (behavioural contracts, percentages summing to 100)
# ============================================================================

LEADERSHIP_DIMENSIONS = (
    "mentoring",
    "architecture_decisions",
    "code_review",
    "projects_led",
    "team_interactions",
    "innovations",
    "community_contributions",
)
LEADERSHIP_WEIGHTS = (20, 20, 15, 15, 10, 10, 10)
LEADERSHIP_MAX_ACTIVITY_SCORE = 10
# (minimum years, bonus percent); highest matching tier wins
TENURE_BONUS_TIERS = ((15, 30), (10, 20), (5, 10))
LEADERSHIP_MATURITY_INDICATORS = 5

DIVERSITY_DIMENSIONS = (
    "languages",
    "technologies",
    "project_types",
    "domains",
    "contribution_types",
    "architectural_patterns",
    "team_sizes",
)
DIVERSITY_WEIGHTS = (20, 20, 15, 15, 10, 10, 10)
DIVERSITY_BREADTH_WEIGHT = 60
DIVERSITY_DEPTH_WEIGHT = 40
DIVERSITY_MIN_LANGUAGES = 2
DIVERSITY_MIN_TECHNOLOGIES = 2

REPOSITORY_DIVERSITY_POINTS = 20  # per distinct active repository, capped at 100

# ============================================================================
# PROOF SERIALIZATION
# ============================================================================

SERIALIZATION_FORMAT = "CBOR"
PROOF_VERSION = 1
PROOF_BACKEND_NAME = "sigil-transcript"
MAX_PROOF_SIZE_BYTES = 64 * 1024

# ============================================================================
# VALIDATION
# ============================================================================


def validate_config() -> bool:
    """
    Validate configuration parameters.

    Returns:
        True if configuration is valid

    Raises:
        AssertionError: If configuration is invalid
    """
    assert FIELD_PRIME.bit_length() == FIELD_BITS, "Field size mismatch"
    assert HASH_ROUNDS >= 64, "Too few hash rounds"
    assert FINGERPRINT_BITS < FIELD_BITS, "Fingerprint wider than field"
    assert WIDE_BITS + 2 < FIELD_BITS, "Comparisons would wrap the field"
    assert tuple(sorted(LANGUAGE_CAPACITY_TIERS)) == LANGUAGE_CAPACITY_TIERS
    assert DEFAULT_LANGUAGE_CAPACITY in LANGUAGE_CAPACITY_TIERS
    assert sum(LEADERSHIP_WEIGHTS) == 100, "Leadership weights must sum to 100"
    assert len(LEADERSHIP_WEIGHTS) == len(LEADERSHIP_DIMENSIONS)
    assert sum(DIVERSITY_WEIGHTS) == 100, "Diversity weights must sum to 100"
    assert len(DIVERSITY_WEIGHTS) == len(DIVERSITY_DIMENSIONS)
    assert DIVERSITY_BREADTH_WEIGHT + DIVERSITY_DEPTH_WEIGHT == 100
    assert DEFAULT_CONFIDENCE_LEVEL in Z_SCORE_SCALED

    return True


# Auto-validate on import
validate_config()

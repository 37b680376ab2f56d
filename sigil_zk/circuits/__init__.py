"""Public API for the credential circuit library."""

from .base import Circuit
from .capacity import get_language_capacity, set_language_capacity, smallest_tier_for
from .constraints import ConstraintSystem, Witness
from .exceptions import (
    CapacityExceeded,
    ConfigurationError,
    DuplicateClaimViolation,
    InputRangeViolation,
    InsufficientDataError,
    MerkleProofMismatch,
    PrivacyBudgetExceeded,
    ProofGenerationError,
    ProofVerificationError,
    SigilError,
    SignatureMismatch,
    UnsatisfiedConstraint,
)
from .factory import get_circuit
from .prover import TranscriptProver
from .statements import CIRCUIT_REGISTRY, CircuitId
from .types import Proof

__all__ = [
    "CIRCUIT_REGISTRY",
    "CapacityExceeded",
    "Circuit",
    "CircuitId",
    "ConfigurationError",
    "ConstraintSystem",
    "DuplicateClaimViolation",
    "InputRangeViolation",
    "InsufficientDataError",
    "MerkleProofMismatch",
    "PrivacyBudgetExceeded",
    "Proof",
    "ProofGenerationError",
    "ProofVerificationError",
    "SigilError",
    "SignatureMismatch",
    "TranscriptProver",
    "UnsatisfiedConstraint",
    "Witness",
    "get_circuit",
    "get_language_capacity",
    "set_language_capacity",
    "smallest_tier_for",
]

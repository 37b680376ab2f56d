"""
⚠️ DRAFT — requires crypto review before production use

Custom exceptions for Sigil credentials.

Constraint violations are raised while a witness is being generated: the
constraint system is unsatisfiable and no proof can be produced. The
remaining errors are raised off-circuit before proving is attempted.
"""


class SigilError(Exception):
    """Base exception for credential errors."""

    pass


class ConfigurationError(SigilError):
    """Configuration error."""

    pass


class ProofGenerationError(SigilError):
    """Error during proof generation."""

    pass


class ProofVerificationError(SigilError):
    """Error during proof verification."""

    pass


# ============================================================================
# IN-CIRCUIT (UNSATISFIABLE WITNESS)
# ============================================================================


class UnsatisfiedConstraint(ProofGenerationError):
    """A constraint does not hold for the supplied witness."""

    def __init__(self, message: str, label: str = ""):
        super().__init__(message)
        self.label = label


class InputRangeViolation(UnsatisfiedConstraint):
    """Actual value lies outside the declared public range."""

    pass


class DuplicateClaimViolation(UnsatisfiedConstraint):
    """Two active set entries share the same hash."""

    pass


class MerkleProofMismatch(UnsatisfiedConstraint):
    """Sibling path does not resolve to the claimed root."""

    pass


class SignatureMismatch(UnsatisfiedConstraint):
    """Signature does not bind the claimed signer to the message."""

    pass


# ============================================================================
# OFF-CIRCUIT
# ============================================================================


class InsufficientDataError(SigilError):
    """Fewer records than the component's minimum."""

    pass


class PrivacyBudgetExceeded(SigilError):
    """Requested epsilon exceeds the user's remaining privacy budget."""

    def __init__(self, user_id: str, requested: float, remaining: float):
        super().__init__(
            f"Privacy budget exceeded for {user_id!r}: requested "
            f"epsilon={requested:g}, remaining={remaining:g}"
        )
        self.user_id = user_id
        self.requested = requested
        self.remaining = remaining


class CapacityExceeded(SigilError):
    """More real entries than the fixed array capacity."""

    def __init__(self, what: str, count: int, capacity: int):
        super().__init__(
            f"{what}: {count} entries exceed fixed capacity {capacity}"
        )
        self.what = what
        self.count = count
        self.capacity = capacity

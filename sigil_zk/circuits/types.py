"""
⚠️ DRAFT — requires crypto review before production use

Proof artifact shared with external verifiers and storage.

The artifact shape {circuit_id, public_signals, proof_bytes, credential_hash}
is a compatibility contract: verifier contracts and storage both depend on
it, so fields are only ever added behind a PROOF_VERSION bump.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

try:
    import cbor2
except ImportError:
    raise ImportError(
        "cbor2 is required for proof serialization. "
        "Install with: pip install cbor2"
    )

from .config import FIELD_PRIME, MAX_PROOF_SIZE_BYTES, PROOF_VERSION
from .exceptions import ProofVerificationError


# ============================================================================
# PROOF
# ============================================================================


@dataclass
class Proof:
    """
    Zero-knowledge credential proof.

    Attributes:
        circuit_id: Identifier of the circuit (see statements.CircuitId)
        public_signals: Ordered public signals (outputs, then public inputs)
        proof_bytes: Opaque proof produced by the proving backend
        credential_hash: Deterministic commitment over the claim; stable
            lookup and anti-replay key

    Serialization:
        - Primary: CBOR with version field
        - Compatibility: JSON via to_dict() (signals as decimal strings)

    Example:
        >>> proof = prover.prove(circuit, inputs)
        >>> data = proof.serialize()
        >>> restored = Proof.deserialize(data)
        >>> assert restored == proof
    """

    circuit_id: str
    public_signals: List[int] = field(default_factory=list)
    proof_bytes: bytes = b""
    credential_hash: int = 0

    def __post_init__(self):
        if not isinstance(self.circuit_id, str) or not self.circuit_id:
            raise ValueError("circuit_id must be a non-empty string")
        if not isinstance(self.proof_bytes, (bytes, bytearray)):
            raise TypeError("proof_bytes must be bytes")
        for signal in self.public_signals:
            if not isinstance(signal, int) or not 0 <= signal < FIELD_PRIME:
                raise ValueError("public signals must be canonical field elements")
        if not isinstance(self.credential_hash, int) or not 0 <= self.credential_hash < FIELD_PRIME:
            raise ValueError("credential_hash must be a canonical field element")

    # ========================================================================
    # SERIALIZATION (CBOR)
    # ========================================================================

    def serialize(self) -> bytes:
        """
        Serialize proof to bytes using CBOR.

        Returns:
            bytes: CBOR-encoded proof

        Raises:
            ProofVerificationError: If serialization fails
        """
        try:
            data = {
                "v": PROOF_VERSION,
                "c": self.circuit_id,
                "s": list(self.public_signals),
                "p": bytes(self.proof_bytes),
                "h": self.credential_hash,
            }
            return cbor2.dumps(data)
        except Exception as e:
            raise ProofVerificationError(f"Failed to serialize proof: {e}")

    @classmethod
    def deserialize(cls, data: bytes) -> "Proof":
        """
        Deserialize proof from CBOR bytes.

        Raises:
            ValueError: If version is unsupported or fields are missing
            ProofVerificationError: If the bytes are not valid CBOR
        """
        if len(data) > MAX_PROOF_SIZE_BYTES:
            raise ValueError("Proof exceeds maximum size")
        try:
            obj = cbor2.loads(data)
        except Exception as e:
            raise ProofVerificationError(f"Failed to deserialize proof: {e}")

        if not isinstance(obj, dict):
            raise ValueError("Invalid proof format: missing required fields")

        version = obj.get("v", 1)
        if version != PROOF_VERSION:
            raise ValueError(
                f"Unsupported proof version: {version} "
                f"(expected {PROOF_VERSION})"
            )

        if any(key not in obj for key in ("c", "s", "p", "h")):
            raise ValueError("Invalid proof format: missing required fields")

        return cls(
            circuit_id=obj["c"],
            public_signals=list(obj["s"]),
            proof_bytes=obj["p"],
            credential_hash=obj["h"],
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to a JSON-compatible dictionary.

        Field elements are decimal strings, proof bytes are hex.
        """
        return {
            "circuit_id": self.circuit_id,
            "public_signals": [str(s) for s in self.public_signals],
            "proof_bytes": bytes(self.proof_bytes).hex(),
            "credential_hash": str(self.credential_hash),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Proof":
        try:
            return cls(
                circuit_id=data["circuit_id"],
                public_signals=[int(s) for s in data["public_signals"]],
                proof_bytes=bytes.fromhex(data["proof_bytes"]),
                credential_hash=int(data["credential_hash"]),
            )
        except KeyError as e:
            raise ValueError(f"Invalid proof format: missing {e}")

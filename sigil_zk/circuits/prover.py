"""
⚠️ DRAFT — requires crypto review before production use

Transcript proving backend.

Proof construction here is a simulated backend: the circuit is evaluated
to a witness (which fails on any unsatisfied constraint), the private
witness is committed under fresh random blinding, and the proof binds that
commitment to the circuit id, the public signals and the credential hash
with a domain-separated SHA3 transcript.

It is NOT zero-knowledge-sound against a malicious prover. It exists so
the proof artifact, serialization and verification flow can be exercised
end to end before a SNARK backend is plugged in behind the same interface.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

try:
    import cbor2
except ImportError:
    raise ImportError(
        "cbor2 is required for proof serialization. "
        "Install with: pip install cbor2"
    )

from .base import Circuit
from .config import DOMAIN_SEPARATORS, PROOF_BACKEND_NAME, PROOF_VERSION
from .constraints import Witness
from .exceptions import ProofGenerationError, UnsatisfiedConstraint
from .field import field_to_bytes, hash_many
from .security import RandomnessSource, constant_time_compare, transcript_digest
from .statements import parse_circuit_id
from .types import Proof

logger = logging.getLogger(__name__)

_BLINDING_LEN = 32
_COMMITMENT_LEN = 32


def _encode_signals(signals: Sequence[int]) -> bytes:
    return b"".join(field_to_bytes(s) for s in signals)


class TranscriptProver:
    """
    Example:
        >>> prover = TranscriptProver()
        >>> proof = prover.prove(circuit, public_inputs, private_inputs)
        >>> assert prover.verify(proof)
    """

    _BACKEND_NAME = PROOF_BACKEND_NAME
    _BACKEND_VERSION = "0.1.0"

    def __init__(self, rng: Optional[RandomnessSource] = None) -> None:
        self.rng = rng or RandomnessSource()

    @property
    def backend_name(self) -> str:
        return self._BACKEND_NAME

    @property
    def backend_version(self) -> str:
        return self._BACKEND_VERSION

    # ------------------------------------------------------------------
    # Transcript
    # ------------------------------------------------------------------

    def _commit_witness(self, witness: Witness) -> bytes:
        blinding = self.rng.get_random_bytes(_BLINDING_LEN)
        return transcript_digest(
            DOMAIN_SEPARATORS["proof_transcript"] + b"_WITNESS",
            [blinding, _encode_signals(witness.private_values)],
        )

    def _digest(
        self,
        circuit_id: str,
        public_signals: Sequence[int],
        credential_hash: int,
        commitment: bytes,
        constraint_count: int,
    ) -> bytes:
        return transcript_digest(
            DOMAIN_SEPARATORS["proof_transcript"],
            [
                f"{self.backend_name}:{self.backend_version}".encode("utf-8"),
                circuit_id.encode("utf-8"),
                _encode_signals(public_signals),
                field_to_bytes(credential_hash),
                commitment,
                constraint_count.to_bytes(8, "big"),
            ],
        )

    # ------------------------------------------------------------------
    # Proving
    # ------------------------------------------------------------------

    def prove(
        self,
        circuit: Circuit,
        public_inputs: Dict[str, Any],
        private_inputs: Dict[str, Any],
    ) -> Proof:
        """
        Evaluate the circuit and produce a proof.

        Raises:
            UnsatisfiedConstraint: If the claim does not hold (no proof exists)
            ValueError, TypeError: If inputs are malformed
            ProofGenerationError: For any other failure
        """
        if not isinstance(circuit, Circuit):
            raise TypeError("circuit must be a Circuit")
        if not isinstance(public_inputs, dict):
            raise ValueError("public_inputs must be a dict")
        if not isinstance(private_inputs, dict):
            raise ValueError("private_inputs must be a dict")

        try:
            witness = circuit.generate_witness(public_inputs, private_inputs)
        except UnsatisfiedConstraint as e:
            logger.info("%s: witness unsatisfiable at %r", circuit.artifact_id, e.label)
            raise
        except (ValueError, TypeError):
            raise
        except Exception as e:
            raise ProofGenerationError(f"Failed to generate witness: {e}") from e

        return self.prove_witness(witness)

    def prove_witness(self, witness: Witness) -> Proof:
        """Produce a proof for an already evaluated witness."""
        try:
            signals = witness.public_signals
            credential_hash = witness.outputs.get("credential_hash")
            if credential_hash is None:
                credential_hash = hash_many(signals, "credential")
            commitment = self._commit_witness(witness)
            digest = self._digest(
                witness.circuit_id,
                signals,
                credential_hash,
                commitment,
                witness.constraint_count,
            )
            proof_bytes = cbor2.dumps(
                {
                    "v": PROOF_VERSION,
                    "w": commitment,
                    "n": witness.constraint_count,
                    "d": digest,
                }
            )
        except Exception as e:
            raise ProofGenerationError(f"Failed to generate proof: {e}") from e

        logger.debug(
            "%s: proof generated over %d constraints",
            witness.circuit_id,
            witness.constraint_count,
        )
        return Proof(
            circuit_id=witness.circuit_id,
            public_signals=signals,
            proof_bytes=proof_bytes,
            credential_hash=credential_hash,
        )

    # ------------------------------------------------------------------
    # Verification
    # ------------------------------------------------------------------

    def verify(self, proof: Proof, expected_circuit_id: Optional[str] = None) -> bool:
        """Return True iff the proof is well formed and its transcript checks."""
        try:
            if not isinstance(proof, Proof):
                return False
            if expected_circuit_id is not None and proof.circuit_id != expected_circuit_id:
                return False
            parse_circuit_id(proof.circuit_id)

            body = cbor2.loads(proof.proof_bytes)
            if not isinstance(body, dict) or body.get("v") != PROOF_VERSION:
                return False
            commitment, count, digest = body.get("w"), body.get("n"), body.get("d")
            if not isinstance(commitment, bytes) or len(commitment) != _COMMITMENT_LEN:
                return False
            if not isinstance(count, int) or count <= 0:
                return False
            if not isinstance(digest, bytes):
                return False

            expected = self._digest(
                proof.circuit_id,
                proof.public_signals,
                proof.credential_hash,
                commitment,
                count,
            )
            return constant_time_compare(expected, digest)
        except Exception:
            return False

    def batch_verify(self, proofs: List[Proof]) -> bool:
        if proofs is None:
            return True
        if not isinstance(proofs, list):
            return False
        return all(self.verify(proof) for proof in proofs)

    def get_backend_info(self) -> Dict[str, Any]:
        return {
            "name": self.backend_name,
            "version": self.backend_version,
            "proof_version": PROOF_VERSION,
            "features": ["witness_generation", "transcript_binding", "batch_verify"],
            "security": "simulated_only",
        }

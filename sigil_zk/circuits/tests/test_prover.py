"""
Tests for the transcript proving backend.
"""

import dataclasses

import pytest

from ..credentials import LanguageCredential
from ..exceptions import InputRangeViolation, ProofGenerationError
from ..field import P, address_from_label
from ..packer import pack_language_credential
from ..prover import TranscriptProver
from ..types import Proof

LANGUAGES = [("Python", 5000), ("Rust", 1200), ("Go", 800)]


@pytest.fixture
def circuit():
    return LanguageCredential(capacity=5)


@pytest.fixture
def inputs():
    return pack_language_credential(
        user_address=address_from_label("alice"),
        languages=LANGUAGES,
        min_language_lines=500,
        timestamp=1700000000,
        capacity=5,
    )


@pytest.fixture
def prover():
    return TranscriptProver()


@pytest.fixture
def proof(prover, circuit, inputs):
    public, private = inputs
    return prover.prove(circuit, public, private)


class TestProve:
    """Tests for proof generation."""

    def test_proof_verifies(self, prover, proof, circuit):
        assert proof.circuit_id == circuit.artifact_id
        assert prover.verify(proof)
        assert prover.verify(proof, expected_circuit_id="language_credential_v1@5")

    def test_public_signals_outputs_first(self, proof):
        # is_valid, fingerprint, credential_hash, then the three public inputs
        assert len(proof.public_signals) == 6
        assert proof.public_signals[0] == 1
        assert proof.public_signals[2] == proof.credential_hash
        assert proof.public_signals[3:] == [3, 500, 1700000000]

    def test_fresh_blinding_same_credential_hash(self, prover, circuit, inputs, proof):
        public, private = inputs
        again = prover.prove(circuit, public, private)
        assert again.credential_hash == proof.credential_hash
        assert again.proof_bytes != proof.proof_bytes
        assert prover.verify(again)

    def test_unsatisfiable_claim_raises(self, prover, circuit, inputs):
        public, private = inputs
        with pytest.raises(InputRangeViolation):
            prover.prove(circuit, {**public, "language_count": 2}, private)

    def test_missing_private_input(self, prover, circuit, inputs):
        public, private = inputs
        del private["language_sorted"]
        with pytest.raises(ValueError):
            prover.prove(circuit, public, private)

    def test_rejects_non_circuit(self, prover, inputs):
        with pytest.raises(TypeError):
            prover.prove(object(), *inputs)

    def test_prove_witness_requires_witness(self, prover):
        with pytest.raises(ProofGenerationError):
            prover.prove_witness(None)


class TestVerify:
    """Tests for proof verification and tamper detection."""

    def test_serialized_proof_verifies(self, prover, proof):
        assert prover.verify(Proof.deserialize(proof.serialize()))

    def test_tampered_signal(self, prover, proof):
        signals = list(proof.public_signals)
        signals[1] = (signals[1] + 1) % P
        assert not prover.verify(dataclasses.replace(proof, public_signals=signals))

    def test_tampered_threshold(self, prover, proof):
        signals = list(proof.public_signals)
        signals[4] = 100
        assert not prover.verify(dataclasses.replace(proof, public_signals=signals))

    def test_tampered_credential_hash(self, prover, proof):
        tampered = dataclasses.replace(proof, credential_hash=proof.credential_hash ^ 1)
        assert not prover.verify(tampered)

    def test_wrong_circuit_id(self, prover, proof):
        assert not prover.verify(proof, expected_circuit_id="language_credential_v1@10")
        relabeled = dataclasses.replace(proof, circuit_id="language_credential_v1@10")
        assert not prover.verify(relabeled)

    def test_garbage_proof_bytes(self, prover, proof):
        assert not prover.verify(dataclasses.replace(proof, proof_bytes=b"\x00\x01garbage"))

    def test_non_proof(self, prover):
        assert not prover.verify("not a proof")

    def test_batch_verify(self, prover, proof):
        bad = dataclasses.replace(proof, credential_hash=proof.credential_hash ^ 1)
        assert prover.batch_verify([proof, proof])
        assert not prover.batch_verify([proof, bad])
        assert prover.batch_verify(None)

    def test_backend_info(self, prover):
        info = prover.get_backend_info()
        assert info["name"] == "sigil-transcript"
        assert info["security"] == "simulated_only"

"""
Tests for the circuit registry, identifiers and the proof artifact.
"""

import cbor2
import pytest

from ..config import PROOF_VERSION
from ..exceptions import ProofVerificationError
from ..field import P
from ..statements import (
    CIRCUIT_REGISTRY,
    CircuitId,
    format_circuit_id,
    parse_circuit_id,
    validate_public_inputs,
)
from ..types import Proof


class TestCircuitIdentifiers:
    """Tests for artifact identifiers."""

    def test_every_circuit_is_registered(self):
        assert set(CIRCUIT_REGISTRY) == set(CircuitId)

    def test_format_single_capacity(self):
        assert format_circuit_id(CircuitId.LANGUAGE_CREDENTIAL, (10,)) == "language_credential_v1@10"

    def test_format_multiple_capacities(self):
        value = format_circuit_id(CircuitId.REPOSITORY_CREDENTIAL, (256, 10, 16))
        assert value == "repository_credential_v1@256x10x16"
        assert parse_circuit_id(value) == (CircuitId.REPOSITORY_CREDENTIAL, (256, 10, 16))

    def test_parse_without_capacity(self):
        assert parse_circuit_id("statistics_aggregator_v1") == (CircuitId.STATISTICS_AGGREGATOR, ())

    @pytest.mark.parametrize(
        "value", ["unknown_v1", "language_credential_v1@ten", "language_credential_v1@10x", 42]
    )
    def test_parse_rejects(self, value):
        with pytest.raises(ValueError):
            parse_circuit_id(value)


class TestPublicInputValidation:
    """Tests for schema validation of public inputs."""

    def _inputs(self):
        return {"language_count": 2, "min_language_lines": 100, "timestamp": 1700000000}

    def test_valid(self):
        validate_public_inputs(CircuitId.LANGUAGE_CREDENTIAL, self._inputs())

    def test_missing_field(self):
        inputs = self._inputs()
        del inputs["timestamp"]
        with pytest.raises(ValueError, match="timestamp"):
            validate_public_inputs(CircuitId.LANGUAGE_CREDENTIAL, inputs)

    def test_unexpected_field(self):
        inputs = {**self._inputs(), "extra": 1}
        with pytest.raises(ValueError):
            validate_public_inputs(CircuitId.LANGUAGE_CREDENTIAL, inputs)

    def test_bool_is_not_a_field_element(self):
        inputs = {**self._inputs(), "language_count": True}
        with pytest.raises(ValueError):
            validate_public_inputs(CircuitId.LANGUAGE_CREDENTIAL, inputs)


class TestProofArtifact:
    """Tests for Proof validation and serialization."""

    def _proof(self):
        return Proof(
            circuit_id="language_credential_v1@10",
            public_signals=[1, 2, P - 1],
            proof_bytes=b"\x01\x02",
            credential_hash=12345,
        )

    def test_cbor_serialization(self):
        proof = self._proof()
        assert Proof.deserialize(proof.serialize()) == proof

    def test_dict_form_uses_strings(self):
        data = self._proof().to_dict()
        assert data["public_signals"][2] == str(P - 1)
        assert data["proof_bytes"] == "0102"
        assert Proof.from_dict(data) == self._proof()

    def test_rejects_non_canonical_signal(self):
        with pytest.raises(ValueError):
            Proof(circuit_id="x", public_signals=[P], proof_bytes=b"", credential_hash=0)

    def test_rejects_empty_circuit_id(self):
        with pytest.raises(ValueError):
            Proof(circuit_id="", public_signals=[], proof_bytes=b"", credential_hash=0)

    def test_unsupported_version(self):
        data = cbor2.dumps({"v": PROOF_VERSION + 1, "c": "x", "s": [], "p": b"", "h": 0})
        with pytest.raises(ValueError, match="Unsupported proof version"):
            Proof.deserialize(data)

    def test_missing_fields(self):
        with pytest.raises(ValueError):
            Proof.deserialize(cbor2.dumps({"v": PROOF_VERSION, "c": "x"}))

    def test_truncated_bytes(self):
        with pytest.raises(ProofVerificationError):
            Proof.deserialize(b"")

    def test_from_dict_missing_key(self):
        with pytest.raises(ValueError):
            Proof.from_dict({"circuit_id": "x"})

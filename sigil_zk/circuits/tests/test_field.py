"""
Tests for field arithmetic, the algebraic hash and identity helpers.
"""

import pytest

from ..config import FINGERPRINT_BITS, HASH_MAX_ARITY
from ..field import (
    P,
    address_from_label,
    algebraic_hash,
    field_from_bytes,
    field_to_bytes,
    fingerprint,
    hash_bytes,
    hash_many,
    identity_commitment,
    to_field,
    to_signed,
)


class TestFieldElements:
    """Tests for field element conversion."""

    def test_negative_wraps(self):
        assert to_field(-1) == P - 1

    def test_rejects_non_int(self):
        with pytest.raises(TypeError):
            to_field("7")

    def test_bytes_encoding_is_32_bytes(self):
        encoded = field_to_bytes(P - 1)
        assert len(encoded) == 32
        assert field_from_bytes(encoded) == P - 1

    def test_to_signed(self):
        assert to_signed(P - 5) == -5
        assert to_signed(5) == 5


class TestAlgebraicHash:
    """Tests for the circuit-friendly hash."""

    def test_deterministic_and_non_zero(self):
        h = algebraic_hash(1, 2, 3)
        assert h == algebraic_hash(1, 2, 3)
        assert 0 < h < P

    def test_order_sensitive(self):
        assert algebraic_hash(1, 2) != algebraic_hash(2, 1)

    def test_length_sensitive(self):
        assert algebraic_hash(1) != algebraic_hash(1, 0)

    def test_domain_separation(self):
        assert hash_many([1, 2], "credential") != hash_many([1, 2], "dp_noise")

    def test_arity_limit(self):
        with pytest.raises(ValueError):
            algebraic_hash(*range(HASH_MAX_ARITY + 10))

    def test_hash_bytes_distinguishes_trailing_zero(self):
        assert hash_bytes(b"a") != hash_bytes(b"a\x00")


class TestIdentity:
    """Tests for fingerprints and identity commitments."""

    def test_fingerprint_width(self):
        fp = fingerprint("Python")
        assert 0 < fp < 2 ** FINGERPRINT_BITS

    def test_fingerprint_rejects_empty(self):
        with pytest.raises(ValueError):
            fingerprint("")

    def test_labels_map_to_distinct_addresses(self):
        assert address_from_label("alice") != address_from_label("bob")

    def test_identity_commitment_hides_address(self):
        address = address_from_label("alice")
        assert identity_commitment(address) != address

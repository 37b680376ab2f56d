"""
Tests for value blinding.
"""

import pytest

from ..blinding import ValueBlinder, blind_value, derive_blinding_factor

SECRET = b"\x42" * 32


def test_factor_is_deterministic_per_context():
    a = derive_blinding_factor(SECRET, "alice", "score")
    assert a == derive_blinding_factor(SECRET, "alice", "score")
    assert len(a) == 32
    assert a != derive_blinding_factor(SECRET, "bob", "score")
    assert a != derive_blinding_factor(SECRET, "alice", "commits")


def test_short_secret_rejected():
    with pytest.raises(ValueError):
        derive_blinding_factor(b"short", "alice", "score")


def test_blinded_value_range():
    factor = derive_blinding_factor(SECRET, "alice", "score")
    assert 0 <= blind_value(87, factor) < 1000
    assert 0 <= blind_value(87, factor, modulus=7) < 7


class TestValueBlinder:
    """Tests for ValueBlinder."""

    def test_same_holder_recomputes(self):
        blinder = ValueBlinder(SECRET)
        assert blinder.blind("alice", "score", 87) == ValueBlinder(SECRET).blind("alice", "score", 87)

    def test_random_secret_per_instance(self):
        a = ValueBlinder()
        b = ValueBlinder()
        assert a.factor("alice", "score") != b.factor("alice", "score")

    def test_blind_fields(self):
        blinded = ValueBlinder(SECRET).blind_fields("alice", {"score": 87, "commits": 120})
        assert set(blinded) == {"score", "commits"}
        assert all(isinstance(v, int) and 0 <= v < 1000 for v in blinded.values())

    def test_membership_tags(self):
        tags = ValueBlinder(SECRET, set_size=50).membership_tags({"score": 87})
        assert len(tags) == 1
        assert tags[0].field == "score"
        assert tags[0].set_size == 50
        assert len(tags[0].proof_hash) == 64

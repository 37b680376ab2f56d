"""
Tests for the privacy release pipeline.
"""

import numpy as np
import pytest

from ...circuits.exceptions import PrivacyBudgetExceeded
from ..blinding import ValueBlinder
from ..budget import PrivacyBudgetLedger
from ..config import KAnonymityConfig, PrivacyConfig
from ..pipeline import (
    PrivacyPipeline,
    anonymization_level,
    digest,
    get_path,
    numeric_fields,
    set_path,
)


def sample():
    return {
        "language": "Python",
        "domain": "ml",
        "experience_level": 45,
        "proficiency_score": 80,
        "verified": True,
        "metrics": {"commits": 120, "stars": 30},
    }


def pipeline(total=10.0):
    config = PrivacyConfig(k_anonymity=KAnonymityConfig(suppression_threshold=0.0))
    return PrivacyPipeline(
        config,
        ledger=PrivacyBudgetLedger(total),
        rng=np.random.default_rng(3),
        blinder=ValueBlinder(b"\x07" * 32),
    )


class TestFieldAccess:
    """Tests for dotted-path helpers."""

    def test_numeric_fields_skip_bools_and_strings(self):
        assert numeric_fields(sample()) == [
            "experience_level",
            "proficiency_score",
            "metrics.commits",
            "metrics.stars",
        ]

    def test_get_and_set(self):
        data = {}
        set_path(data, "a.b", 1)
        assert data == {"a": {"b": 1}}
        assert get_path(data, "a.b") == 1
        assert get_path(data, "a.c") is None


class TestApply:
    """Tests for releasing data at each level."""

    def test_basic_only_charges_budget(self):
        p = pipeline()
        result = p.apply(sample(), "alice", "basic")
        assert result.released == sample()
        assert result.parameters == {}
        assert result.anonymization_level == 0.0
        assert p.ledger.remaining("alice") == 9.0

    def test_enhanced_adds_noise_and_generalizes(self):
        result = pipeline().apply(sample(), "alice", "enhanced")
        released = result.released
        assert released["language"] == "programming-language"
        assert released["domain"] == "technology"
        assert released["experience_level"] in ("junior", "mid-level", "senior")
        for path in ("proficiency_score", "metrics.commits", "metrics.stars"):
            value = get_path(released, path)
            assert isinstance(value, int)
            assert 0 <= value <= 100
        assert released["verified"] is True
        assert result.parameters["differential_privacy"]["fields_processed"] == 4
        assert result.parameters["k_anonymity"]["k"] == 5
        assert len(result.guarantees) == 2

    def test_maximum_blinds_numeric_fields(self):
        result = pipeline().apply(sample(), "alice", "maximum")
        for path in ("proficiency_score", "metrics.commits", "metrics.stars"):
            assert 0 <= get_path(result.released, path) < 1000
        assert result.parameters["blinding"] == {"set_size": 1000, "fields_blinded": 3}
        assert [t.field for t in result.membership_tags] == [
            "proficiency_score",
            "metrics.commits",
            "metrics.stars",
        ]
        assert "blinded set membership" in result.guarantees

    def test_original_is_not_mutated(self):
        data = sample()
        pipeline().apply(data, "alice", "maximum")
        assert data == sample()

    def test_default_level_comes_from_config(self):
        assert pipeline().apply(sample(), "alice").level == "enhanced"

    def test_unknown_level_charges_nothing(self):
        p = pipeline()
        with pytest.raises(ValueError):
            p.apply(sample(), "alice", "paranoid")
        assert p.ledger.remaining("alice") == 10.0

    def test_budget_exhaustion(self):
        p = pipeline(total=2.0)
        p.apply(sample(), "alice", "basic")
        p.apply(sample(), "alice", "basic")
        with pytest.raises(PrivacyBudgetExceeded):
            p.apply(sample(), "alice", "basic")
        assert len(p.operations) == 2

    def test_audit_trail(self):
        p = pipeline()
        data = sample()
        result = p.apply(data, "alice", "enhanced")
        (operation,) = p.operations
        assert operation.operation_id.startswith("privacy_op_")
        assert operation.privacy_budget_used == 1.0
        assert operation.input_hash == digest(data)
        assert operation.output_hash == digest(result.released)

    def test_audit_trail_disabled(self):
        p = PrivacyPipeline(PrivacyConfig(audit_trail=False), rng=np.random.default_rng(0))
        p.apply(sample(), "alice", "basic")
        assert p.operations == []


class TestReporting:
    """Tests for guarantees and risk reporting."""

    def test_full_protection(self):
        parameters = {
            "differential_privacy": {"epsilon": 0.5},
            "k_anonymity": {"k": 10},
            "blinding": {},
        }
        g = PrivacyPipeline.guarantees(parameters)
        assert g.differential_privacy_level == 90.0
        assert g.k_anonymity_level == 100.0
        assert g.zero_knowledge_level == 80.0
        assert g.overall_privacy_score == 90
        assert g.compliance.gdpr and g.compliance.hipaa and g.compliance.iso27001
        assert g.risk.linkage_risk == 0
        assert g.risk.overall_risk == "low"

    def test_no_protection(self):
        g = PrivacyPipeline.guarantees({})
        assert g.overall_privacy_score == 0
        assert not g.compliance.gdpr
        assert g.risk.reidentification_risk == 100
        assert g.risk.overall_risk == "high"

    def test_anonymization_level(self):
        assert anonymization_level({}) == 0.0
        assert anonymization_level({"differential_privacy": {"epsilon": 3.0}, "k_anonymity": {"k": 2}}) == 60.0
        assert anonymization_level({"differential_privacy": {"epsilon": 1.0}, "k_anonymity": {"k": 5}}) == 100.0

"""
Tests for privacy validation.
"""

import pytest

from ..config import BlindingConfig, KAnonymityConfig, PrivacyConfig
from ..validator import (
    PrivacyValidator,
    PrivacyViolation,
    PrivacyWarning,
    achieved_level,
    anonymized_with,
    contains_pii,
    is_valid_commitment,
)

COMMITMENT = "ab" * 32


def compliant_data(**overrides):
    params = {
        "epsilon": 1.0,
        "noise_mechanism": "laplace",
        "k": 5,
        "quasi_identifiers": ["language", "domain"],
        "equivalence_classes": [5, 7],
        "group_size": 5,
        "suppression_rate": 4.0,
    }
    params.update(overrides)
    return {"privacy_parameters": params, "commitments": {"repository": COMMITMENT}}


def requirements(result):
    return [v.requirement for v in result.violations]


def violation(severity):
    return PrivacyViolation("S", "R", "d", severity, "f")


class TestValidate:
    """Tests for PrivacyValidator.validate."""

    def test_compliant_data(self):
        result = PrivacyValidator().validate(compliant_data())
        assert result.is_compliant
        assert result.privacy_level == "maximum"
        assert result.violations == []
        assert result.warnings == []

    def test_basic_level_without_differential_privacy_warns(self):
        result = PrivacyValidator().validate({"privacy_parameters": {}}, "basic")
        assert result.is_compliant
        assert [w.kind for w in result.warnings] == ["OPTIONAL_PRIVACY_REQUIREMENT"]

    def test_enhanced_level_requires_k(self):
        data = compliant_data()
        del data["privacy_parameters"]["k"]
        result = PrivacyValidator().validate(data, "enhanced")
        assert not result.is_compliant
        assert requirements(result) == ["k_anonymity"]
        assert result.privacy_level == "enhanced"

    def test_maximum_level_requires_zero_knowledge(self):
        data = compliant_data()
        assert "zero_knowledge" in requirements(PrivacyValidator().validate(data, "maximum"))
        data["zk_proofs"] = {"range": {"proof": "..."}}
        assert PrivacyValidator().validate(data, "maximum").is_compliant

    def test_unknown_level(self):
        result = PrivacyValidator().validate(compliant_data(), "paranoid")
        assert requirements(result) == ["VALID_LEVEL"]

    def test_non_positive_epsilon_is_critical(self):
        result = PrivacyValidator().validate(compliant_data(epsilon=0))
        assert [v.requirement for v in result.by_severity("critical")] == ["POSITIVE_EPSILON"]
        assert result.privacy_level == "none"

    @pytest.mark.parametrize("epsilon,kind", [(50.0, "HIGH_EPSILON"), (0.001, "LOW_EPSILON")])
    def test_epsilon_warnings(self, epsilon, kind):
        result = PrivacyValidator().validate(compliant_data(epsilon=epsilon))
        assert result.is_compliant
        assert [w.kind for w in result.warnings] == [kind]

    def test_missing_noise_mechanism(self):
        result = PrivacyValidator().validate(compliant_data(noise_mechanism=None))
        assert requirements(result) == ["NOISE_MECHANISM"]

    def test_invalid_k(self):
        result = PrivacyValidator().validate(compliant_data(k=1))
        assert "VALID_K" in [v.requirement for v in result.by_severity("critical")]

    def test_missing_quasi_identifiers(self):
        result = PrivacyValidator().validate(compliant_data(quasi_identifiers=[]))
        assert requirements(result) == ["QUASI_IDENTIFIERS"]

    def test_small_equivalence_class(self):
        result = PrivacyValidator().validate(compliant_data(equivalence_classes=[5, 3, 8]))
        assert requirements(result) == ["EQUIVALENCE_CLASS_SIZE"]
        assert result.violations[0].field == "privacy_parameters.equivalence_classes[1]"

    def test_group_size_and_suppression(self):
        result = PrivacyValidator(min_group_size=10).validate(compliant_data(suppression_rate=25.0))
        assert requirements(result) == ["MIN_GROUP_SIZE"]
        assert [w.kind for w in result.warnings] == ["HIGH_SUPPRESSION_RATE"]

    def test_pii_is_critical(self):
        data = compliant_data()
        data["author"] = "alice@example.com"
        result = PrivacyValidator().validate(data)
        assert not result.is_compliant
        assert result.by_severity("critical")[0].field == "author"

    def test_sensitive_field_must_be_anonymized(self):
        validator = PrivacyValidator(sensitive_fields={"repository": "hash"})
        data = compliant_data()
        data["repository"] = "alice/secret-project"
        assert requirements(validator.validate(data)) == ["ANONYMIZATION_APPLIED"]
        data["repository"] = COMMITMENT
        assert validator.validate(data).is_compliant

    def test_zero_knowledge_structure(self):
        data = compliant_data()
        data["zk_proofs"] = {"range": {}}
        data["commitments"]["owner"] = "not-hex"
        result = PrivacyValidator().validate(data)
        assert sorted(requirements(result)) == ["VALID_COMMITMENT", "VALID_PROOF_STRUCTURE"]

    def test_witness_exposure_warns(self):
        data = compliant_data()
        data["witnesses"] = {"commits": [1, 2, 3]}
        result = PrivacyValidator().validate(data)
        assert [w.kind for w in result.warnings] == ["WITNESS_EXPOSURE"]


class TestValidateConfig:
    """Tests for validating a PrivacyConfig."""

    def test_default_config(self):
        result = PrivacyValidator().validate_config(PrivacyConfig())
        assert result.is_compliant
        assert result.privacy_level == "maximum"

    def test_maximum_without_blinding(self):
        config = PrivacyConfig(blinding=BlindingConfig(enabled=False), compliance_level="maximum")
        result = PrivacyValidator().validate_config(config)
        assert not result.is_compliant
        assert requirements(result) == ["zero_knowledge"]

    def test_high_suppression_threshold_warns(self):
        config = PrivacyConfig(k_anonymity=KAnonymityConfig(suppression_threshold=0.5))
        result = PrivacyValidator().validate_config(config)
        assert result.is_compliant
        assert [w.kind for w in result.warnings] == ["HIGH_SUPPRESSION_RATE"]


@pytest.mark.parametrize(
    "severities,warning_count,level",
    [
        (["critical"], 0, "none"),
        (["high"] * 3, 0, "basic"),
        (["high"], 0, "enhanced"),
        (["medium"] * 4, 0, "enhanced"),
        (["medium"], 0, "high"),
        ([], 6, "high"),
        (["low"], 5, "maximum"),
    ],
)
def test_achieved_level(severities, warning_count, level):
    warnings = [PrivacyWarning("W", "d", "f")] * warning_count
    assert achieved_level([violation(s) for s in severities], warnings) == level


def test_helpers():
    assert contains_pii("call 123-45-6789")
    assert contains_pii("host 10.0.0.1")
    assert not contains_pii("alice")
    assert not contains_pii(42)
    assert is_valid_commitment(COMMITMENT)
    assert not is_valid_commitment(COMMITMENT[:-1])
    assert anonymized_with("*", "suppress")
    assert anonymized_with("senior", "generalize")
    assert not anonymized_with("bob@example.com", "generalize")
    assert not anonymized_with("x", "encrypt")

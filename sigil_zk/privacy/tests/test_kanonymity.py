"""
Tests for k-anonymity generalization and suppression.
"""

import numpy as np
import pandas as pd
import pytest

from ..config import KAnonymityConfig
from ..kanonymity import (
    KAnonymizer,
    experience_band,
    generalize_domain,
    generalize_language,
    generalize_value,
    k_anonymity_score,
)


def anonymizer(**overrides):
    config = KAnonymityConfig(**overrides)
    return KAnonymizer(config, np.random.default_rng(0))


def record(language, domain, experience, score=50):
    return {
        "language": language,
        "domain": domain,
        "experience_level": experience,
        "proficiency_score": score,
    }


class TestGeneralization:
    """Tests for the per-field generalization rules."""

    def test_language(self):
        assert generalize_language("Python", 0) == "Python"
        assert generalize_language("Python", 1) == "data"
        assert generalize_language("Rust", 1) == "systems"
        assert generalize_language("Python", 2) == "programming-language"
        assert generalize_language("Brainfuck", 1) == "other"

    def test_domain(self):
        assert generalize_domain("blockchain", 1) == "blockchain"
        assert generalize_domain("blockchain", 2) == "technology"

    @pytest.mark.parametrize("value,band", [(0, "junior"), (29, "junior"), (30, "mid-level"), (70, "senior")])
    def test_experience_band(self, value, band):
        assert experience_band(value) == band

    def test_non_numeric_experience_passes_through(self):
        assert experience_band("senior") == "senior"
        assert experience_band(True) is True

    def test_unknown_field_passes_through(self):
        assert generalize_value("favourite_editor", "vim", 3) == "vim"

    def test_score_bounds(self):
        assert k_anonymity_score(5, 3, 0) == 90
        assert k_anonymity_score(10, 3, 0) == 100
        assert k_anonymity_score(2, 0, 5) == 0


class TestAnonymize:
    """Tests for anonymizing a table of records."""

    def test_small_classes_are_suppressed(self):
        records = [record("Python", "web", 80)] * 3 + [record("Rust", "web", 10)]
        result = anonymizer(k=3, suppression_threshold=0.0, generalization_levels={}).anonymize(records)
        assert result.suppressed_records == 1
        assert len(result.frame) == 3
        assert result.class_sizes == [3]
        assert result.is_k_anonymous
        assert result.suppression_rate == pytest.approx(0.25)

    def test_generalization_merges_classes(self):
        records = [record("Python", "web", 80), record("R", "ml", 75), record("SQL", "infra", 90)]
        result = anonymizer(k=3, suppression_threshold=0.0).anonymize(records)
        assert result.suppressed_records == 0
        assert set(result.frame["language"]) == {"programming-language"}
        assert set(result.frame["domain"]) == {"technology"}
        assert set(result.frame["experience_level"]) == {"senior"}

    def test_sensitive_attributes_blanked_at_full_threshold(self):
        records = [record("Python", "web", 80)] * 5
        result = anonymizer(k=5, suppression_threshold=1.0).anonymize(records)
        assert result.frame["proficiency_score"].isna().all()
        assert result.suppressed_cells == 5

    def test_accepts_a_dataframe(self):
        frame = pd.DataFrame([record("Go", "web", 40)] * 5)
        result = anonymizer(suppression_threshold=0.0).anonymize(frame)
        assert len(result.frame) == 5
        assert result.frame["language"].iloc[0] == "programming-language"

    def test_input_frame_is_not_modified(self):
        frame = pd.DataFrame([record("Go", "web", 40)] * 5)
        anonymizer().anonymize(frame)
        assert frame["language"].iloc[0] == "Go"

    def test_missing_quasi_identifiers(self):
        with pytest.raises(ValueError):
            anonymizer().anonymize([{"proficiency_score": 10}])


class TestAnonymizeRecord:
    """Tests for single-record anonymization."""

    def test_generalizations_are_reported(self):
        result = anonymizer(suppression_threshold=0.0).anonymize_record(record("Python", "ml", 45))
        assert result.record["language"] == "programming-language"
        assert result.record["experience_level"] == "mid-level"
        assert result.generalizations["language"] == {
            "original": "Python",
            "generalized": "programming-language",
            "level": 2,
        }
        assert result.suppressions == []
        assert result.score == k_anonymity_score(5, 3, 0)

    def test_full_suppression(self):
        result = anonymizer(suppression_threshold=1.0).anonymize_record(record("Python", "ml", 45))
        assert result.record["proficiency_score"] is None
        assert result.suppressions == ["proficiency_score"]

    def test_original_is_untouched(self):
        original = record("Python", "ml", 45)
        anonymizer().anonymize_record(original)
        assert original["language"] == "Python"

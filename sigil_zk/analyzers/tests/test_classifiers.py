"""
Tests for the keyword classifiers.
"""

import pytest

from ...circuits.exceptions import ConfigurationError
from ..classifiers import DEFAULT_TABLES, KeywordClassifier, load_classifiers


class TestKeywordClassifier:
    """Tests for KeywordClassifier matching."""

    def test_classify_is_case_insensitive(self):
        c = KeywordClassifier({"docs": ["readme", "doc"], "ci": ["workflow"]})
        assert c.classify("Update README.md") == {"docs"}
        assert c.classify("") == set()
        assert c.classify(None) == set()

    def test_matches_and_counts(self):
        c = KeywordClassifier.default("leadership")
        assert c.matches("Refactor the design", "architectural") == {"refactor", "design"}
        assert c.count(["fix typo", "add feature", "help newcomers"], "assistance") == 2
        assert c.match_count("merge review") == 2

    def test_string_keywords_rejected(self):
        with pytest.raises(ConfigurationError):
            KeywordClassifier({"docs": "readme"}, name="broken")

    def test_unknown_default_table(self):
        with pytest.raises(ConfigurationError):
            KeywordClassifier.default("nope")

    def test_overrides_replace_and_add_labels(self):
        c = KeywordClassifier.default("domains").with_overrides({"robotics": ["ros", "lidar"]})
        assert "robotics" in c.classify("ROS lidar driver")
        assert "blockchain" in c.labels


class TestLoadClassifiers:
    """Tests for loading classifier overrides from YAML."""

    def test_defaults_without_path(self):
        classifiers = load_classifiers()
        assert set(classifiers) == set(DEFAULT_TABLES)

    def test_yaml_overrides(self, tmp_path):
        path = tmp_path / "classifiers.yaml"
        path.write_text(
            "leadership:\n  architectural: [rfc]\ndomains:\n  robotics: [ros]\n",
            encoding="utf-8",
        )
        classifiers = load_classifiers(path)
        assert classifiers["leadership"].keywords("architectural") == ("rfc",)
        assert classifiers["leadership"].keywords("mentorship")
        assert classifiers["domains"].classify("ros nodes") == {"robotics"}

    def test_unknown_table_rejected(self, tmp_path):
        path = tmp_path / "classifiers.yaml"
        path.write_text("colors:\n  red: [crimson]\n", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            load_classifiers(path)

    def test_non_mapping_rejected(self, tmp_path):
        path = tmp_path / "classifiers.yaml"
        path.write_text("- leadership\n", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            load_classifiers(path)

"""
Tests for language detection and proficiency scoring.
"""

from datetime import datetime, timezone

import pytest

from ...circuits.exceptions import CapacityExceeded, ConfigurationError
from ...circuits.field import fingerprint
from ..language import (
    LanguageDetector,
    file_extension,
    language_for,
    polyglot_score,
    proficiency_score,
    shannon_diversity,
)
from ..records import CommitData, FileChange


def _commit(sha, author, day, files):
    return CommitData(
        sha=sha,
        author=author,
        message="",
        timestamp=datetime(2024, 1, day, tzinfo=timezone.utc),
        files=tuple(FileChange(name, additions=lines) for name, lines in files),
    )


COMMITS = [
    _commit("c1", "Alice", 1, [("src/main.py", 100), ("src/util.py", 50)]),
    _commit("c2", "alice", 2, [("core/lib.rs", 300), ("notes", 0)]),
    _commit("c3", "bob", 3, [("server/main.go", 1000)]),
]


class TestHelpers:
    """Tests for extension mapping and scoring helpers."""

    def test_file_extension(self):
        assert file_extension("src/App.TSX") == "tsx"
        assert file_extension("deploy/Dockerfile") == "dockerfile"
        assert file_extension("README") == ""
        assert language_for("a\\b\\main.rs") == "Rust"
        assert language_for("notes") is None

    def test_proficiency_tiers(self):
        assert proficiency_score("Python", 5000, 50, 20, 24) == 90
        assert proficiency_score("Rust", 100, 2, 2, 1) == 29
        assert proficiency_score("Python", 0, 0, 0, 0) == 0
        assert proficiency_score("Rust", 10**6, 10**3, 10**3, 10**3) == 100

    def test_shannon_diversity(self):
        assert shannon_diversity([10, 10]) == pytest.approx(1.0)
        assert shannon_diversity([5]) == 0.0
        assert shannon_diversity([0, 0]) == 0.0

    def test_polyglot_empty(self):
        assert polyglot_score([]) == 0


class TestLanguageDetector:
    """Tests for LanguageDetector.analyze."""

    def test_only_user_commits_counted(self):
        report = LanguageDetector().analyze(COMMITS, "alice")
        assert [a.language for a in report.languages] == ["Rust", "Python"]

    def test_proficiency_and_dominance(self):
        report = LanguageDetector().analyze(COMMITS, "alice")
        rust, python = report.languages
        assert rust.proficiency == 18
        assert python.proficiency == 12
        assert python.file_count == 2
        assert rust.dominance_percentage == pytest.approx(66.67)

    def test_circuit_inputs_padded_to_tier(self):
        inputs = LanguageDetector().analyze(COMMITS, "alice").circuit_inputs
        assert inputs.capacity == 5
        assert inputs.language_mask == (1, 1, 0, 0, 0)
        assert inputs.language_hashes[0] == fingerprint("Rust")
        assert inputs.language_hashes[2] == 0
        assert inputs.pairs == [("Rust", 300), ("Python", 150)]

    def test_min_lines_filter(self):
        report = LanguageDetector(min_lines=200).analyze(COMMITS, "alice")
        assert [a.language for a in report.languages] == ["Rust"]

    def test_max_languages(self):
        report = LanguageDetector(max_languages=1).analyze(COMMITS, "alice")
        assert report.summary.total_languages == 1
        assert report.summary.primary_language == "Rust"

    def test_capacity_exceeded(self):
        files = [(f"f.{ext}", 10) for ext in ("py", "rs", "go", "js", "ts", "rb")]
        commits = [_commit("c1", "alice", 1, files)]
        with pytest.raises(CapacityExceeded):
            LanguageDetector(capacity=5).analyze(commits, "alice")

    def test_invalid_capacity(self):
        with pytest.raises(ConfigurationError):
            LanguageDetector(capacity=7)

    def test_no_commits(self):
        report = LanguageDetector().analyze([], "alice")
        assert report.languages == ()
        assert report.summary.primary_language == "Unknown"
        assert report.circuit_inputs.pairs == []

"""
Tests for the collector records.
"""

from datetime import datetime, timezone

import pytest

from ..records import CommitData, CredentialClaim, FileChange, RepositoryData, parse_timestamp


def test_parse_timestamp_forms():
    expected = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    assert parse_timestamp("2024-01-02T03:04:05Z") == expected
    assert parse_timestamp("2024-01-02T03:04:05") == expected
    assert parse_timestamp(expected.timestamp()) == expected
    assert parse_timestamp(expected.replace(tzinfo=None)) == expected


def test_parse_timestamp_rejects_garbage():
    with pytest.raises(ValueError):
        parse_timestamp("yesterday")
    with pytest.raises(TypeError):
        parse_timestamp(True)


def test_file_change_rejects_negative_counts():
    with pytest.raises(ValueError):
        FileChange("a.py", additions=-1)


def test_commit_level_totals():
    commit = CommitData.from_dict(
        {"sha": "abc", "author": "alice", "timestamp": "2024-01-01T00:00:00Z", "additions": 7, "deletions": 3}
    )
    assert commit.additions == 7
    assert commit.deletions == 3
    assert commit.lines_changed == 10


class TestRepositoryData:
    """Tests for RepositoryData parsing."""

    def test_from_dict(self):
        repo = RepositoryData.from_dict(
            {
                "name": "octo/widgets",
                "owner": "Octo",
                "user": "alice",
                "commits": [
                    {"sha": "1", "author": "Alice", "timestamp": "2024-01-01T00:00:00Z"},
                    {"sha": "2", "author": "bob", "timestamp": "2024-01-02T00:00:00Z"},
                ],
                "collaborators": [{"login": "alice", "contributions": 4}, {"login": "bob"}],
                "topics": ["cli"],
                "created_at": "2023-06-01T00:00:00Z",
            }
        )
        assert not repo.is_owner
        assert [c.sha for c in repo.user_commits] == ["1"]
        assert repo.collaborators[1].contributions == 0
        assert repo.created_at.year == 2023

    def test_owner_match_ignores_case(self):
        repo = RepositoryData(name="octo/widgets", owner="Octo", user="octo")
        assert repo.is_owner

    def test_missing_identity_fields(self):
        with pytest.raises(ValueError):
            RepositoryData.from_dict({"name": "octo/widgets"})


class TestCredentialClaim:
    """Tests for CredentialClaim."""

    def test_holds_inside_range(self):
        assert CredentialClaim(100, 200, 120).holds
        assert not CredentialClaim(100, 200, 80).holds

    def test_threshold(self):
        assert not CredentialClaim(0, 10, 5, threshold=6).holds

    def test_empty_range(self):
        with pytest.raises(ValueError):
            CredentialClaim(10, 5, 7)

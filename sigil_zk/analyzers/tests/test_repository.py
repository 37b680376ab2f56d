"""
Tests for the repository analysis pipeline.
"""

import hashlib
from datetime import datetime, timedelta, timezone

import numpy as np
import pytest

from ...circuits.exceptions import CapacityExceeded
from ..collaboration import collaborator_hash
from ..records import CollaboratorData, CommitData, FileChange, RepositoryData
from ..repository import (
    PRIVACY_BUDGET_PER_REPOSITORY,
    RepositoryAnalyzer,
    activity_balance,
    bucket_range,
    code_quality_score,
    collaboration_pattern_score,
    repository_hash,
)

SALT = "test-salt"
AS_OF = datetime(2024, 3, 1, tzinfo=timezone.utc)


def _commits(author, count, start_day=0, message="implement parser stage", filename="src/parser.py"):
    return [
        CommitData(
            sha=f"{author}{i:038x}",
            author=author,
            message=message,
            timestamp=datetime(2024, 1, 1, 9, tzinfo=timezone.utc) + timedelta(days=start_day + i),
            files=(FileChange(filename, additions=40, deletions=10),),
        )
        for i in range(count)
    ]


def _repository(name="octo/widgets", owner="octo", alice=20, bob=10):
    return RepositoryData(
        name=name,
        owner=owner,
        user="alice",
        commits=tuple(_commits("alice", alice) + _commits("bob", bob, filename="src/lexer.rs")),
        collaborators=(
            CollaboratorData("alice", alice),
            CollaboratorData("bob", bob),
            CollaboratorData("carol", 5),
        ),
    )


class TestHelpers:
    """Tests for the repository scoring helpers."""

    def test_repository_hash(self):
        expected = hashlib.sha256(b"octo/widgets" + SALT.encode()).hexdigest()
        assert repository_hash("octo/widgets", SALT) == expected

    def test_repository_hash_env_salt(self, monkeypatch):
        monkeypatch.setenv("HASH_SALT", SALT)
        assert repository_hash("octo/widgets") == repository_hash("octo/widgets", SALT)

    def test_bucket_range(self):
        assert bucket_range(123, 10) == (120, 129)
        assert bucket_range(0, 100) == (0, 99)
        with pytest.raises(ValueError):
            bucket_range(5, 0)

    def test_code_quality(self):
        assert code_quality_score([]) == 50
        commits = _commits("alice", 3, filename="tests/test_parser.py")
        assert code_quality_score(commits) == 100

    def test_activity_balance(self):
        assert activity_balance([5]) == 0.0
        assert activity_balance([3, 3]) == pytest.approx(1.0)

    def test_collaboration_pattern_score(self):
        assert collaboration_pattern_score(3, 40, False, False) == 90
        assert collaboration_pattern_score(3, 40, True, False) == 70
        assert collaboration_pattern_score(3, 40, False, True) == 0
        assert collaboration_pattern_score(1, 90, False, False) == 0


class TestRepositoryAnalyzer:
    """Tests for RepositoryAnalyzer.analyze."""

    def test_metrics(self):
        analysis = RepositoryAnalyzer(salt=SALT, rng=np.random.default_rng(1)).analyze(
            _repository(), AS_OF
        )
        assert analysis.metrics.total_commits == 30
        assert analysis.metrics.total_lines_added == 1200
        assert analysis.metrics.active_days == 20
        assert analysis.metrics.language_count == 2
        assert analysis.metrics.repository_age == 59

    def test_collaboration_pattern(self):
        analysis = RepositoryAnalyzer(salt=SALT, rng=np.random.default_rng(1)).analyze(
            _repository(), AS_OF
        )
        assert not analysis.collaboration.is_owner
        assert not analysis.collaboration.is_sole_contributor
        assert analysis.collaboration.contribution_percentage == pytest.approx(66.67)

    def test_privacy_transform(self):
        analysis = RepositoryAnalyzer(salt=SALT, rng=np.random.default_rng(1)).analyze(
            _repository(), AS_OF
        )
        privacy = analysis.privacy
        assert privacy.repository_id == repository_hash("octo/widgets", SALT)
        assert privacy.commit_range[0] <= privacy.noisy_commits <= privacy.commit_range[1]
        assert privacy.loc_range[1] - privacy.loc_range[0] == 99
        assert privacy.privacy_budget_used == PRIVACY_BUDGET_PER_REPOSITORY == 3.0
        assert len(privacy.collaborator_ids) == 3

    def test_seeded_noise_is_reproducible(self):
        a = RepositoryAnalyzer(salt=SALT, rng=np.random.default_rng(5)).analyze(_repository(), AS_OF)
        b = RepositoryAnalyzer(salt=SALT, rng=np.random.default_rng(5)).analyze(_repository(), AS_OF)
        assert a.privacy == b.privacy

    def test_circuit_inputs(self):
        analysis = RepositoryAnalyzer(salt=SALT, rng=np.random.default_rng(1)).analyze(
            _repository(), AS_OF
        )
        inputs = analysis.circuit_inputs
        assert inputs.language["languages"] == [("Python", 800)]
        assert collaborator_hash("alice", SALT) not in inputs.collaboration["collaborator_ids"]
        assert len(inputs.collaboration["collaborator_ids"]) == 2
        assert inputs.repository["is_owner"] == 0
        assert inputs.consistency["activity_days"] == 20

    def test_collaborators_beyond_capacity_raise(self):
        commits = _commits("alice", 5)
        for i, author in enumerate(["bob", "carol", "dave", "erin", "frank", "grace"]):
            commits += _commits(author, 2, start_day=10 + 2 * i)
        repo = RepositoryData(name="octo/widgets", owner="octo", user="alice", commits=tuple(commits))

        with pytest.raises(CapacityExceeded) as exc:
            RepositoryAnalyzer(salt=SALT, max_collaborators=4).analyze(repo, AS_OF)
        assert exc.value.count == 6
        assert exc.value.capacity == 4

        analysis = RepositoryAnalyzer(salt=SALT, max_collaborators=6).analyze(repo, AS_OF)
        assert len(analysis.circuit_inputs.collaboration["collaborator_ids"]) == 6

    def test_record_counts_user_commits(self):
        analysis = RepositoryAnalyzer(salt=SALT, rng=np.random.default_rng(1)).analyze(
            _repository(), AS_OF
        )
        assert analysis.record.commit_count == 20
        assert analysis.record.total_lines_changed == 1000
        assert [u.name for u in analysis.record.languages] == ["Python"]

    def test_leadership_indicators(self):
        commits = _commits("alice", 3, message="refactor the design", filename="docs/guide.md")
        commits += _commits("alice", 1, start_day=5, message="ci", filename=".github/workflows/ci.yml")
        held = RepositoryAnalyzer(salt=SALT).leadership_indicators(commits)
        assert held == ("architectural_leadership", "documentation_leadership", "devops_leadership")


class TestPortfolio:
    """Tests for portfolio analysis on the worker pool."""

    @pytest.mark.trio
    async def test_analyze_portfolio(self):
        repos = [_repository(), _repository(name="alice/tool", owner="alice", alice=5, bob=0)]
        analyzer = RepositoryAnalyzer(salt=SALT, rng=np.random.default_rng(11))
        portfolio = await analyzer.analyze_portfolio(repos, AS_OF, max_workers=2)
        assert len(portfolio.repositories) == 2
        assert portfolio.total_commits == 25
        assert portfolio.owned_repositories == 1
        assert portfolio.language_lines == {"Python": 1000}
        assert portfolio.privacy_budget_used == pytest.approx(6.0)

    @pytest.mark.trio
    async def test_portfolio_independent_of_worker_count(self):
        repos = [_repository(name=f"octo/r{i}") for i in range(4)]
        one = await RepositoryAnalyzer(salt=SALT, rng=np.random.default_rng(2)).analyze_portfolio(
            repos, AS_OF, max_workers=1
        )
        four = await RepositoryAnalyzer(salt=SALT, rng=np.random.default_rng(2)).analyze_portfolio(
            repos, AS_OF, max_workers=4
        )
        assert [a.privacy for a in one.repositories] == [a.privacy for a in four.repositories]

"""
Repository analysis: one entry point that runs every analyzer over a
repository and produces circuit-ready, privacy-transformed inputs.

Pipeline per repository:

    1. Metrics: totals, active days, age, average commit size, commit
       frequency and a code-quality score
    2. Collaboration pattern (ownership, contribution share, leadership)
    3. Language proficiency (LanguageDetector)
    4. Temporal patterns (TemporalAnalyzer)
    5. Privacy transformations: salted identifiers, Laplace-noised counts
       and bucketed ranges
    6. Circuit inputs for the repository, language, collaboration and
       consistency credentials

Portfolios fan repositories out to the worker pool and join before any
totals are computed.
"""

import hashlib
import logging
import os
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

import numpy as np

from ..circuits.config import DEFAULT_COLLABORATOR_CAPACITY
from ..circuits.exceptions import CapacityExceeded
from ..privacy.noise import LaplaceMechanism
from ..workers import DEFAULT_WORKERS, map_jobs
from .classifiers import KeywordClassifier
from .collaboration import CollaborationAnalyzer, CollaborationReport
from .language import LanguageDetector, LanguageReport, language_for
from .records import CommitData, RepositoryData, RepositoryRecord, parse_timestamp
from .temporal import TemporalAnalyzer, TemporalReport, coefficient_of_variation

logger = logging.getLogger(__name__)

DEFAULT_REPOSITORY_SALT = "sigil_default_salt_2024"

COMMIT_BUCKET = 10
LOC_BUCKET = 100

# (sensitivity, epsilon) of each noisy release
COMMIT_NOISE = (1.0, 1.0)
LOC_NOISE = (10.0, 1.0)
COLLABORATOR_NOISE = (1.0, 1.0)
PRIVACY_BUDGET_PER_REPOSITORY = COMMIT_NOISE[1] + LOC_NOISE[1] + COLLABORATOR_NOISE[1]

MAX_ANONYMITY_K = 5
MEANINGFUL_MESSAGE_LENGTH = 10
HEALTHY_COMMIT_SIZE = (10, 500)


def repository_hash(name: str, salt: Optional[str] = None) -> str:
    """Hex sha256(name + salt); the salt defaults to HASH_SALT."""
    if salt is None:
        salt = os.environ.get("HASH_SALT") or DEFAULT_REPOSITORY_SALT
    return hashlib.sha256((name + salt).encode("utf-8")).hexdigest()


def bucket_range(value: int, size: int) -> Tuple[int, int]:
    """[b * size, (b + 1) * size - 1] for the bucket b holding value."""
    if size < 1:
        raise ValueError(f"bucket size must be >= 1, got {size}")
    bucket = value // size
    return bucket * size, (bucket + 1) * size - 1


def code_quality_score(commits: Sequence[CommitData]) -> int:
    score = 50.0
    if commits:
        avg = sum(c.lines_changed for c in commits) / len(commits)
        lo, hi = HEALTHY_COMMIT_SIZE
        if lo < avg < hi:
            score += 20
        meaningful = sum(1 for c in commits if len(c.message) > MEANINGFUL_MESSAGE_LENGTH)
        score += 20 * meaningful / len(commits)
        if any("test" in f.lower() or "spec" in f.lower() for c in commits for f in c.filenames):
            score += 10
    return int(round(min(100.0, max(0.0, score))))


def activity_balance(contributions: Sequence[int]) -> float:
    """1 / (1 + cv) over contribution counts, in [0, 1]; 0 below two people."""
    if len(contributions) <= 1:
        return 0.0
    return min(1.0, 1.0 / (1.0 + coefficient_of_variation(contributions)))


def collaboration_pattern_score(
    collaborators: int, contribution_pct: float, is_owner: bool, is_sole_contributor: bool
) -> int:
    """
    Team-size, balance and shared-work points; owners lose 20 and sole
    contributors score 0.
    """
    if is_sole_contributor:
        return 0
    score = -20 if is_owner else 0
    if collaborators >= 5:
        score += 40
    elif collaborators >= 3:
        score += 30
    elif collaborators >= 2:
        score += 20
    if 10 <= contribution_pct <= 70:
        score += 40
    elif contribution_pct <= 80:
        score += 20
    if collaborators >= 3 and contribution_pct <= 50:
        score += 20
    return min(100, max(0, score))


# ============================================================================
# RESULT TYPES
# ============================================================================


@dataclass(frozen=True)
class RepositoryMetrics:
    total_commits: int
    total_lines_added: int
    total_lines_deleted: int
    active_days: int
    collaborator_count: int
    language_count: int
    repository_age: int
    avg_commit_size: int
    commit_frequency: float
    code_quality_score: int


@dataclass(frozen=True)
class CollaborationPattern:
    is_owner: bool
    is_sole_contributor: bool
    contribution_percentage: float
    collaboration_score: int
    team_diversity_index: float
    leadership_indicators: Tuple[str, ...]
    mentorship_evidence: bool


@dataclass(frozen=True)
class PrivacyTransform:
    repository_id: str
    collaborator_ids: Tuple[str, ...]
    noisy_commits: int
    noisy_lines_added: int
    noisy_collaborators: int
    commit_range: Tuple[int, int]
    loc_range: Tuple[int, int]
    privacy_budget_used: float


@dataclass(frozen=True)
class RepositoryCircuitInputs:
    repository: Dict[str, Any]
    language: Dict[str, Any]
    collaboration: Dict[str, Any]
    consistency: Dict[str, Any]
    privacy: Dict[str, Any]


@dataclass(frozen=True)
class RepositoryAnalysis:
    repository_id: str
    metrics: RepositoryMetrics
    collaboration: CollaborationPattern
    collaboration_report: CollaborationReport
    languages: LanguageReport
    temporal: TemporalReport
    privacy: PrivacyTransform
    circuit_inputs: RepositoryCircuitInputs
    record: RepositoryRecord
    analyzed_at: datetime


@dataclass(frozen=True)
class PortfolioAnalysis:
    repositories: Tuple[RepositoryAnalysis, ...]
    total_commits: int
    total_lines_changed: int
    language_lines: Dict[str, int]
    owned_repositories: int
    privacy_budget_used: float


# ============================================================================
# ANALYZER
# ============================================================================


class RepositoryAnalyzer:
    """
    Args:
        salt: Identifier salt (defaults to HASH_SALT / built-in)
        rng: numpy Generator for the Laplace noise
        max_languages: Language slots reported in the language inputs
        max_collaborators: Collaborator slots in the collaboration inputs;
            a repository with more collaborators raises CapacityExceeded
        classifiers: Table name -> classifier overrides
    """

    def __init__(
        self,
        salt: Optional[str] = None,
        rng: Optional[np.random.Generator] = None,
        max_languages: int = 10,
        max_collaborators: int = DEFAULT_COLLABORATOR_CAPACITY,
        classifiers: Optional[Mapping[str, KeywordClassifier]] = None,
    ):
        if salt is None:
            salt = os.environ.get("HASH_SALT") or DEFAULT_REPOSITORY_SALT
        self.salt = salt
        self.rng = rng if rng is not None else np.random.default_rng()
        self.max_languages = max_languages
        self.max_collaborators = max_collaborators
        classifiers = dict(classifiers or {})
        self.leadership = classifiers.get("leadership") or KeywordClassifier.default("leadership")
        self.language_detector = LanguageDetector(
            max_languages=max_languages, classifiers=classifiers
        )
        self.collaboration_analyzer = CollaborationAnalyzer(
            salt=salt, classifier=self.leadership
        )
        self.temporal_analyzer = TemporalAnalyzer()

    def analyze(
        self,
        repository: RepositoryData,
        as_of: datetime,
        rng: Optional[np.random.Generator] = None,
    ) -> RepositoryAnalysis:
        as_of = parse_timestamp(as_of).astimezone(timezone.utc)
        rng = rng if rng is not None else self.rng

        metrics = self.metrics(repository, as_of)
        pattern = self.collaboration_pattern(repository)
        collaboration = self.collaboration_analyzer.analyze(repository)
        languages = self.language_detector.analyze(repository.commits, repository.user)
        temporal = self.temporal_analyzer.analyze(repository.commits, repository.user, as_of)
        privacy = self.privacy_transform(repository, metrics, rng)
        inputs = self.circuit_inputs(metrics, pattern, collaboration, languages, temporal, privacy)

        logger.info(
            "Analyzed %s: %d commits, %d languages, privacy budget %.1f",
            privacy.repository_id[:12],
            metrics.total_commits,
            len(languages.languages),
            privacy.privacy_budget_used,
        )
        return RepositoryAnalysis(
            repository_id=privacy.repository_id,
            metrics=metrics,
            collaboration=pattern,
            collaboration_report=collaboration,
            languages=languages,
            temporal=temporal,
            privacy=privacy,
            circuit_inputs=inputs,
            record=self.record(repository, privacy.repository_id, languages, collaboration),
            analyzed_at=as_of,
        )

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    @staticmethod
    def metrics(repository: RepositoryData, as_of: datetime) -> RepositoryMetrics:
        commits = repository.commits
        added = sum(c.additions for c in commits)
        deleted = sum(c.deletions for c in commits)
        days = {c.timestamp.astimezone(timezone.utc).date() for c in commits}

        age = 0
        if commits:
            first = min(c.timestamp for c in commits)
            age = max(0, int((as_of - first).total_seconds() // 86400))

        languages = {
            language
            for c in commits
            for f in c.filenames
            for language in [language_for(f)]
            if language
        }
        return RepositoryMetrics(
            total_commits=len(commits),
            total_lines_added=added,
            total_lines_deleted=deleted,
            active_days=len(days),
            collaborator_count=len(repository.collaborators),
            language_count=len(languages),
            repository_age=age,
            avg_commit_size=int(round((added + deleted) / len(commits))) if commits else 0,
            commit_frequency=round(len(commits) / age, 4) if age > 0 else 0.0,
            code_quality_score=code_quality_score(commits),
        )

    def collaboration_pattern(self, repository: RepositoryData) -> CollaborationPattern:
        commits = repository.commits
        mine = repository.user_commits
        authors = {c.author.lower() for c in commits}
        sole = authors == {repository.user.lower()}
        pct = 100 * len(mine) / len(commits) if commits else 0.0

        return CollaborationPattern(
            is_owner=repository.is_owner,
            is_sole_contributor=sole,
            contribution_percentage=round(pct, 2),
            collaboration_score=collaboration_pattern_score(
                len(repository.collaborators), pct, repository.is_owner, sole
            ),
            team_diversity_index=round(
                activity_balance([c.contributions for c in repository.collaborators]), 2
            ),
            leadership_indicators=self.leadership_indicators(mine),
            mentorship_evidence=self.leadership.count([c.message for c in mine], "mentorship") >= 3,
        )

    def leadership_indicators(self, commits: Sequence[CommitData]) -> Tuple[str, ...]:
        messages = [c.message for c in commits]
        file_lists = [" ".join(c.filenames) for c in commits]
        held = []
        if self.leadership.count(messages, "architectural") >= 3:
            held.append("architectural_leadership")
        if self.leadership.count(file_lists, "documentation") >= 2:
            held.append("documentation_leadership")
        if self.leadership.count(file_lists, "process") >= 1:
            held.append("devops_leadership")
        return tuple(held)

    def privacy_transform(
        self,
        repository: RepositoryData,
        metrics: RepositoryMetrics,
        rng: np.random.Generator,
    ) -> PrivacyTransform:
        def noisy(value: int, params: Tuple[float, float]) -> int:
            sensitivity, epsilon = params
            return max(0, int(round(LaplaceMechanism(epsilon, sensitivity, rng).add(value))))

        commits = noisy(metrics.total_commits, COMMIT_NOISE)
        lines = noisy(metrics.total_lines_added, LOC_NOISE)
        collaborators = noisy(metrics.collaborator_count, COLLABORATOR_NOISE)
        return PrivacyTransform(
            repository_id=repository_hash(repository.name, self.salt),
            collaborator_ids=tuple(
                hashlib.sha256((c.login + self.salt).encode("utf-8")).hexdigest()
                for c in repository.collaborators
            ),
            noisy_commits=commits,
            noisy_lines_added=lines,
            noisy_collaborators=collaborators,
            commit_range=bucket_range(commits, COMMIT_BUCKET),
            loc_range=bucket_range(lines, LOC_BUCKET),
            privacy_budget_used=PRIVACY_BUDGET_PER_REPOSITORY,
        )

    def circuit_inputs(
        self,
        metrics: RepositoryMetrics,
        pattern: CollaborationPattern,
        collaboration: CollaborationReport,
        languages: LanguageReport,
        temporal: TemporalReport,
        privacy: PrivacyTransform,
    ) -> RepositoryCircuitInputs:
        # top-N by proficiency; the detector already ranks and caps languages
        top = languages.languages[: self.max_languages]
        lang_inputs = languages.circuit_inputs
        collab_inputs = collaboration.circuit_inputs
        if len(collab_inputs.collaborator_ids) > self.max_collaborators:
            raise CapacityExceeded(
                "collaborators", len(collab_inputs.collaborator_ids), self.max_collaborators
            )
        return RepositoryCircuitInputs(
            repository={
                "repo_commitment": privacy.repository_id,
                "commit_range": privacy.commit_range,
                "loc_range": privacy.loc_range,
                "collaborator_count": privacy.noisy_collaborators,
                "is_owner": int(pattern.is_owner),
                "is_sole_contributor": int(pattern.is_sole_contributor),
            },
            language={
                "language_count": len(top),
                "capacity": lang_inputs.capacity,
                "languages": lang_inputs.pairs,
                "language_hashes": list(lang_inputs.language_hashes),
                "proficiency_scores": [a.proficiency for a in top],
                "loc_per_language": [a.total_lines for a in top],
            },
            collaboration={
                "collaborator_ids": list(collab_inputs.collaborator_ids),
                "contribution_percentage": collab_inputs.contribution_percentage,
                "team_diversity_score": int(round(pattern.team_diversity_index * 100)),
                "collaboration_score": collab_inputs.collaboration_score,
            },
            consistency={
                "consistency_score": temporal.consistency_score,
                "activity_days": metrics.active_days,
                "repository_age": metrics.repository_age,
                "commit_frequency": int(round(metrics.commit_frequency * 100)),
            },
            privacy={
                "epsilon": COMMIT_NOISE[1],
                "k": min(MAX_ANONYMITY_K, privacy.noisy_collaborators),
                "privacy_budget": privacy.privacy_budget_used,
            },
        )

    @staticmethod
    def record(
        repository: RepositoryData,
        repository_id: str,
        languages: LanguageReport,
        collaboration: CollaborationReport,
    ) -> RepositoryRecord:
        mine = repository.user_commits
        stamps = [c.timestamp for c in mine]
        return RepositoryRecord(
            identity_hash=repository_id,
            commit_count=len(mine),
            total_lines_changed=sum(c.lines_changed for c in mine),
            languages=tuple(u for u in languages.circuit_inputs.usages if u.active),
            collaborators=collaboration.collaborators,
            is_owner=repository.is_owner,
            first_activity=min(stamps) if stamps else None,
            last_activity=max(stamps) if stamps else None,
        )

    # ------------------------------------------------------------------
    # Portfolio
    # ------------------------------------------------------------------

    async def analyze_portfolio(
        self,
        repositories: Sequence[RepositoryData],
        as_of: datetime,
        max_workers: int = DEFAULT_WORKERS,
    ) -> PortfolioAnalysis:
        """
        Analyze every repository on the worker pool, then total the results.

        Each job gets its own Generator seeded from this analyzer's, so the
        outcome does not depend on scheduling order.
        """
        seeds = self.rng.integers(0, 2 ** 63, size=len(repositories))
        jobs = [
            (repo, np.random.default_rng(int(seed)))
            for repo, seed in zip(repositories, seeds)
        ]
        analyses = await map_jobs(
            lambda job: self.analyze(job[0], as_of, rng=job[1]), jobs, max_workers
        )
        return summarize_portfolio(analyses)


def summarize_portfolio(analyses: Sequence[RepositoryAnalysis]) -> PortfolioAnalysis:
    lines: Counter = Counter()
    for analysis in analyses:
        for language in analysis.languages.languages:
            lines[language.language] += language.total_lines
    return PortfolioAnalysis(
        repositories=tuple(analyses),
        total_commits=sum(a.record.commit_count for a in analyses),
        total_lines_changed=sum(a.record.total_lines_changed for a in analyses),
        language_lines=dict(lines.most_common()),
        owned_repositories=sum(1 for a in analyses if a.record.is_owner),
        privacy_budget_used=sum(a.privacy.privacy_budget_used for a in analyses),
    )

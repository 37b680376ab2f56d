"""
Collaboration analysis.

Reads one repository's commit history from the point of view of a single
user and derives team metrics, leadership indicators, team dynamics and the
anonymized collaborator inputs of the collaboration credential.

Collaborator identities never leave this module in clear: they are reduced
to salted SHA-256 prefixes. The salt comes from the HASH_SALT environment
variable when set.
"""

import hashlib
import logging
import os
from collections import OrderedDict
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Set, Tuple

import numpy as np

from ..circuits.credentials.collaboration import collaboration_score
from .classifiers import KeywordClassifier
from .records import CollaboratorRecord, CommitData, RepositoryData

logger = logging.getLogger(__name__)

DEFAULT_HASH_SALT = "sigil_collaboration_salt_2024"
COLLABORATOR_HASH_LENGTH = 16

# indicator -> (what is matched, minimum number of matching user commits)
LEADERSHIP_RULES: "OrderedDict[str, Tuple[str, int]]" = OrderedDict(
    [
        ("architectural", ("message", 3)),
        ("mentorship", ("message", 5)),
        ("process", ("files", 2)),
        ("documentation", ("files", 3)),
        ("code_review", ("message", 5)),
        ("project_management", ("message", 2)),
        ("innovation", ("message", 3)),
        ("team_building", ("message", 2)),
    ]
)
TEAM_BUILDING_ASSISTANCE_EVENTS = 5

MENTORSHIP_POINTS = {"mentorship": 40, "documentation": 20, "team_building": 30, "process": 10}
CORE_TEAM_SHARE = 0.8


def hash_salt() -> str:
    return os.environ.get("HASH_SALT") or DEFAULT_HASH_SALT


def collaborator_hash(login: str, salt: Optional[str] = None) -> str:
    """First 16 hex chars of sha256(login + salt)."""
    if not login:
        raise ValueError("collaborator login cannot be empty")
    salted = login + (salt if salt is not None else hash_salt())
    return hashlib.sha256(salted.encode("utf-8")).hexdigest()[:COLLABORATOR_HASH_LENGTH]


def gini(values: Sequence[float]) -> float:
    """Gini coefficient; 0 is perfect equality."""
    x = np.sort(np.asarray(values, dtype=float))
    n = x.size
    total = x.sum()
    if n == 0 or total == 0:
        return 0.0
    ranks = np.arange(1, n + 1)
    return float(np.sum((2 * ranks - n - 1) * x) / (n * total))


def team_diversity(contributions: Sequence[float]) -> float:
    """1 - gini over per-author contributions; 0 for a single author."""
    if len(contributions) <= 1:
        return 0.0
    if sum(contributions) == 0:
        return 0.0
    return 1.0 - gini(contributions)


def jaccard(a: Set[str], b: Set[str]) -> float:
    union = a | b
    return len(a & b) / len(union) if union else 0.0


# ============================================================================
# RESULT TYPES
# ============================================================================


@dataclass(frozen=True)
class CollaborationMetrics:
    total_collaborators: int
    active_collaborators: int
    contribution_distribution: Tuple[float, ...]
    team_diversity_score: float
    collaboration_intensity: float
    knowledge_sharing_score: int
    leadership_score: int


@dataclass(frozen=True)
class LeadershipIndicators:
    architectural: bool = False
    mentorship: bool = False
    process: bool = False
    documentation: bool = False
    code_review: bool = False
    project_management: bool = False
    innovation: bool = False
    team_building: bool = False

    @property
    def bits(self) -> Tuple[int, ...]:
        return tuple(int(getattr(self, name)) for name in LEADERSHIP_RULES)

    @property
    def count(self) -> int:
        return sum(self.bits)

    def held(self) -> List[str]:
        return [name for name in LEADERSHIP_RULES if getattr(self, name)]


@dataclass(frozen=True)
class TeamDynamics:
    core_team_size: int
    peripheral_contributors: int
    decision_style: str  # "centralized", "distributed" or "consensus"
    knowledge_distribution: str  # "concentrated", "balanced" or "dispersed"
    conflict_resolution_score: int


@dataclass(frozen=True)
class CollaborationCircuitInputs:
    """
    Inputs for the collaboration credential.

    collaborator_ids are the salted hashes of everyone but the user, in
    collaborator-list order; they are what the circuit packer takes.
    """

    collaborator_ids: Tuple[str, ...]
    contribution_percentage: int
    collaboration_score: int
    contribution_percentages: Tuple[int, ...]
    collaboration_scores: Tuple[int, ...]
    leadership_bits: Tuple[int, ...]
    team_diversity_score: int
    is_owner: bool
    is_sole_contributor: bool
    mentorship_score: int


@dataclass(frozen=True)
class CollaborationReport:
    metrics: CollaborationMetrics
    leadership: LeadershipIndicators
    dynamics: TeamDynamics
    circuit_inputs: CollaborationCircuitInputs
    collaborators: Tuple[CollaboratorRecord, ...]


# ============================================================================
# ANALYZER
# ============================================================================


class CollaborationAnalyzer:
    """
    Args:
        salt: Collaborator-hash salt (defaults to HASH_SALT / built-in)
        min_contributions: Contributions needed to count as active
        classifier: Leadership keyword classifier
    """

    def __init__(
        self,
        salt: Optional[str] = None,
        min_contributions: int = 1,
        classifier: Optional[KeywordClassifier] = None,
    ):
        self.salt = salt if salt is not None else hash_salt()
        self.min_contributions = min_contributions
        self.keywords = classifier or KeywordClassifier.default("leadership")

    def analyze(self, repository: RepositoryData) -> CollaborationReport:
        user = repository.user.lower()
        commits = repository.commits
        user_commits = repository.user_commits
        stats = self.contribution_stats(repository)
        overlap = self.file_overlap(commits, user)
        events = self.collaboration_events(commits, user)

        leadership = self.leadership_indicators(user_commits, events)
        metrics = self._metrics(repository, stats, user_commits, overlap, events)
        dynamics = self._dynamics(stats, user_commits, overlap, repository.is_owner)
        inputs, records = self._circuit_inputs(repository, stats, overlap, leadership, metrics)

        logger.debug(
            "%s: %d collaborators, contribution %d%%, leadership areas %s",
            repository.name,
            len(records),
            inputs.contribution_percentage,
            leadership.held(),
        )
        return CollaborationReport(
            metrics=metrics,
            leadership=leadership,
            dynamics=dynamics,
            circuit_inputs=inputs,
            collaborators=records,
        )

    # ------------------------------------------------------------------
    # Raw statistics
    # ------------------------------------------------------------------

    def contribution_stats(self, repository: RepositoryData) -> "OrderedDict[str, int]":
        """
        Contributions per lowercased login.

        Commit authors count their commits. Listed collaborators with no
        commits in the supplied history count their reported contributions.
        """
        stats: "OrderedDict[str, int]" = OrderedDict()
        for commit in repository.commits:
            key = commit.author.lower()
            stats[key] = stats.get(key, 0) + 1
        for collaborator in repository.collaborators:
            key = collaborator.login.lower()
            if key not in stats:
                stats[key] = collaborator.contributions
        return stats

    def file_overlap(self, commits: Sequence[CommitData], user: str) -> Dict[str, float]:
        """Jaccard overlap of each other author's files with the user's."""
        mine: Set[str] = set()
        theirs: "OrderedDict[str, Set[str]]" = OrderedDict()
        for commit in commits:
            names = {n for n in commit.filenames if n}
            author = commit.author.lower()
            if author == user:
                mine |= names
            else:
                theirs.setdefault(author, set()).update(names)
        return {author: jaccard(mine, files) for author, files in theirs.items()}

    def collaboration_events(self, commits: Sequence[CommitData], user: str) -> Dict[str, int]:
        merges = sum(
            1
            for c in commits
            if c.author.lower() == user and "merge" in c.message.lower()
        )
        assistance = self.keywords.count((c.message for c in commits), "assistance")
        return {"merge": merges, "assistance": assistance}

    # ------------------------------------------------------------------
    # Leadership
    # ------------------------------------------------------------------

    def _matching_commits(self, commits: Sequence[CommitData], label: str, source: str) -> int:
        if source == "files":
            texts = (" ".join(c.filenames) for c in commits)
        else:
            texts = (c.message for c in commits)
        return self.keywords.count(texts, label)

    def leadership_indicators(
        self, user_commits: Sequence[CommitData], events: Dict[str, int]
    ) -> LeadershipIndicators:
        flags = {
            name: self._matching_commits(user_commits, name, source) >= threshold
            for name, (source, threshold) in LEADERSHIP_RULES.items()
        }
        if events.get("assistance", 0) >= TEAM_BUILDING_ASSISTANCE_EVENTS:
            flags["team_building"] = True
        return LeadershipIndicators(**flags)

    def leadership_score(self, contribution_pct: float, user_commits: Sequence[CommitData]) -> int:
        if contribution_pct >= 50:
            score = 40
        elif contribution_pct >= 30:
            score = 30
        elif contribution_pct >= 20:
            score = 20
        elif contribution_pct >= 10:
            score = 10
        else:
            score = 0
        score += min(30, 3 * self._matching_commits(user_commits, "technical", "message"))
        score += min(30, 5 * self._matching_commits(user_commits, "process", "files"))
        return min(100, score)

    @staticmethod
    def mentorship_score(leadership: LeadershipIndicators) -> int:
        return min(
            100,
            sum(points for name, points in MENTORSHIP_POINTS.items() if getattr(leadership, name)),
        )

    # ------------------------------------------------------------------
    # Metrics and dynamics
    # ------------------------------------------------------------------

    def _metrics(
        self,
        repository: RepositoryData,
        stats: Dict[str, int],
        user_commits: Sequence[CommitData],
        overlap: Dict[str, float],
        events: Dict[str, int],
    ) -> CollaborationMetrics:
        total = sum(stats.values())
        distribution = tuple(100 * v / total if total else 0.0 for v in stats.values())
        pct = 100 * stats.get(repository.user.lower(), 0) / total if total else 0.0
        avg_overlap = float(np.mean(list(overlap.values()))) if overlap else 0.0

        authors = {c.author.lower() for c in repository.commits}
        intensity = min(50, 5 * len(authors)) + min(25, 2 * sum(events.values())) + 25 * avg_overlap

        docs = self._matching_commits(user_commits, "documentation", "files")
        helps = sum(
            1
            for c in user_commits
            if any(k in c.message.lower() for k in ("comment", "explain", "help"))
        )
        sharing = min(30, 5 * docs) + min(30, 3 * helps) + 40 * avg_overlap

        return CollaborationMetrics(
            total_collaborators=len(repository.collaborators),
            active_collaborators=sum(
                1 for c in repository.collaborators if c.contributions >= self.min_contributions
            ),
            contribution_distribution=distribution,
            team_diversity_score=round(team_diversity(list(stats.values())), 2),
            collaboration_intensity=round(min(100.0, intensity), 2),
            knowledge_sharing_score=int(round(min(100.0, sharing))),
            leadership_score=self.leadership_score(pct, user_commits),
        )

    def _dynamics(
        self,
        stats: Dict[str, int],
        user_commits: Sequence[CommitData],
        overlap: Dict[str, float],
        is_owner: bool,
    ) -> TeamDynamics:
        core = core_team_size(list(stats.values()))

        total = sum(stats.values())
        dominance = max(stats.values()) / total if total else 0.0
        if dominance > 0.7 or is_owner:
            style = "centralized"
        elif dominance < 0.3:
            style = "consensus"
        else:
            style = "distributed"

        if not overlap:
            knowledge = "concentrated"
        else:
            avg = float(np.mean(list(overlap.values())))
            if avg > 0.6:
                knowledge = "dispersed"
            elif avg > 0.3:
                knowledge = "balanced"
            else:
                knowledge = "concentrated"

        conflicts = sum(
            1
            for c in user_commits
            if "resolve" in c.message.lower() or "conflict" in c.message.lower()
        )
        return TeamDynamics(
            core_team_size=core,
            peripheral_contributors=len(stats) - core,
            decision_style=style,
            knowledge_distribution=knowledge,
            conflict_resolution_score=min(100, 20 * conflicts),
        )

    # ------------------------------------------------------------------
    # Circuit inputs
    # ------------------------------------------------------------------

    def _circuit_inputs(
        self,
        repository: RepositoryData,
        stats: Dict[str, int],
        overlap: Dict[str, float],
        leadership: LeadershipIndicators,
        metrics: CollaborationMetrics,
    ) -> Tuple[CollaborationCircuitInputs, Tuple[CollaboratorRecord, ...]]:
        user = repository.user.lower()
        total = sum(stats.values())

        others: "OrderedDict[str, str]" = OrderedDict()
        for collaborator in repository.collaborators:
            if collaborator.login.lower() != user:
                others.setdefault(collaborator.login.lower(), collaborator.login)
        for author in stats:
            if author != user and stats[author] > 0:
                others.setdefault(author, author)

        ids, pcts, scores, records = [], [], [], []
        for key, login in others.items():
            contributed = stats.get(key, 0)
            pct = 100 * contributed / total if total else 0.0
            score = min(100, int(round(min(50, 2 * contributed) + 50 * overlap.get(key, 0.0))))
            hashed = collaborator_hash(login.lower(), self.salt)
            ids.append(hashed)
            pcts.append(int(round(pct)))
            scores.append(score)
            records.append(
                CollaboratorRecord(
                    identity_hash=hashed,
                    contribution_percentage=round(pct, 2),
                    collaboration_score=score,
                )
            )

        # floored so any other contributor keeps the user below 100
        user_pct = 100 * stats.get(user, 0) // total if total else 0
        contributors = {a for a, n in stats.items() if n > 0}
        inputs = CollaborationCircuitInputs(
            collaborator_ids=tuple(ids),
            contribution_percentage=user_pct,
            collaboration_score=collaboration_score(len(ids), user_pct),
            contribution_percentages=tuple(pcts),
            collaboration_scores=tuple(scores),
            leadership_bits=leadership.bits,
            team_diversity_score=int(round(metrics.team_diversity_score * 100)),
            is_owner=repository.is_owner,
            is_sole_contributor=contributors == {user},
            mentorship_score=self.mentorship_score(leadership),
        )
        return inputs, tuple(records)


def core_team_size(contributions: Sequence[int]) -> int:
    """Smallest number of top contributors that together reach 80%."""
    ordered = sorted(contributions, reverse=True)
    total = sum(ordered)
    size, running = 0, 0
    for value in ordered:
        running += value
        size += 1
        if running >= total * CORE_TEAM_SHARE:
            break
    return size

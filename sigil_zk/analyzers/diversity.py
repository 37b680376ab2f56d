"""
Technical diversity across a repository portfolio.

Each repository is scored on its own (language spread, domains,
frameworks, project types, complexity, innovation). The portfolio is then
aggregated and the headline metrics are released through a differential
privacy mechanism. At least three repositories are required for an
aggregate.
"""

import logging
from collections import Counter, OrderedDict
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from ..circuits.config import DIVERSITY_DIMENSION_CAPACITY
from ..circuits.exceptions import InsufficientDataError
from ..privacy.config import DifferentialPrivacyConfig
from ..privacy.noise import make_mechanism
from .classifiers import KeywordClassifier
from .language import language_for, shannon_diversity
from .records import RepositoryData, parse_timestamp

logger = logging.getLogger(__name__)

MIN_REPOSITORIES = 3

LANGUAGE_FAMILIES: Dict[str, Tuple[str, ...]] = OrderedDict(
    [
        ("systems", ("C", "C++", "Rust", "Go", "Zig")),
        ("web", ("JavaScript", "TypeScript", "HTML", "CSS", "PHP")),
        ("mobile", ("Swift", "Kotlin", "Java", "Dart", "Objective-C")),
        ("data", ("Python", "R", "Julia", "Scala", "SQL")),
        ("functional", ("Haskell", "Clojure", "Erlang", "Elixir", "F#")),
        ("academic", ("MATLAB", "Mathematica", "Coq", "Agda")),
        ("emerging", ("Zig", "Nim", "Crystal", "V", "Carbon")),
    ]
)

VALUABLE_DOMAIN_PAIRS = (
    ("web-development", "blockchain"),
    ("machine-learning", "web-development"),
    ("security", "blockchain"),
    ("data-science", "fintech"),
    ("mobile-development", "machine-learning"),
)

COMPLEX_LANGUAGES = ("C++", "Rust", "Haskell", "Scala", "Solidity")
MODERN_LANGUAGES = ("TypeScript", "Rust", "Go", "Kotlin", "Swift", "Dart")
COMMON_STACKS = ("CSS-HTML-JavaScript", "Python", "Java", "C++")

PARADIGMS: Dict[str, Tuple[str, ...]] = OrderedDict(
    [
        ("object-oriented", ("Java", "C++", "C#", "Python")),
        ("functional", ("Haskell", "Clojure", "Erlang", "Elixir")),
        ("procedural", ("C", "Go", "Pascal")),
        ("scripting", ("JavaScript", "Python", "Ruby", "PHP")),
        ("systems", ("C", "C++", "Rust", "Go")),
    ]
)

ARCHITECTURE_DOMAINS = ("web-development", "mobile-development", "data-science")

TEAM_SIZE_BUCKETS = ((16, "large"), (6, "medium"), (2, "small"), (0, "solo"))

RECENT_ACTIVITY_DAYS = 30
NEW_PROJECT_DAYS = 365
AGGREGATE_BOUNDS = (0.0, 100.0)


def _std(values: Sequence[float]) -> float:
    """Population standard deviation; 0 for empty input."""
    return float(np.std(values)) if len(values) else 0.0


def _unique(items) -> List[str]:
    return list(OrderedDict.fromkeys(items))


def team_size_bucket(collaborators: int) -> str:
    for threshold, label in TEAM_SIZE_BUCKETS:
        if collaborators >= threshold:
            return label
    return "solo"


# ============================================================================
# RESULT TYPES
# ============================================================================


@dataclass(frozen=True)
class RepositoryDiversity:
    """Diversity profile of one repository."""

    name: str
    language_diversity: float
    domain_diversity: int
    framework_diversity: int
    project_type_diversity: int
    technical_complexity: int
    innovation_score: int
    primary_domain: str
    secondary_domains: Tuple[str, ...]
    frameworks: Tuple[str, ...]
    tech_stack: Tuple[str, ...]
    project_types: Tuple[str, ...]
    emerging_tech: Tuple[str, ...]
    trendiness_score: int
    uniqueness_score: int

    @property
    def domains(self) -> Tuple[str, ...]:
        return (self.primary_domain,) + self.secondary_domains

    @property
    def combined_diversity(self) -> float:
        return (
            self.language_diversity
            + self.domain_diversity
            + self.framework_diversity
            + self.project_type_diversity
        ) / 4


@dataclass(frozen=True)
class DiversityMetrics:
    project_diversity: int
    domain_diversity: int
    technical_breadth: int
    innovation_score: int
    adaptability_score: int

    def to_dict(self) -> Dict[str, int]:
        return {
            "project_diversity": self.project_diversity,
            "domain_diversity": self.domain_diversity,
            "technical_breadth": self.technical_breadth,
            "innovation_score": self.innovation_score,
            "adaptability_score": self.adaptability_score,
        }


@dataclass(frozen=True)
class PortfolioDiversity:
    overall_diversity: int
    language_count: int
    language_entropy: float
    modernity_score: float
    versatility_score: float
    domain_count: int
    domain_breadth: int
    domain_depth: int
    cross_domain_score: int
    framework_count: int
    paradigm_count: int
    architecture_patterns: int
    emerging_tech_adoption: int
    experimental_projects: int
    originality_score: int
    trend_following: int
    adaptability_score: int


@dataclass(frozen=True)
class DiversityReport:
    repositories: Tuple[RepositoryDiversity, ...]
    metrics: DiversityMetrics
    private_metrics: DiversityMetrics
    portfolio: PortfolioDiversity
    categories: Dict[str, Dict[str, int]]


# ============================================================================
# ANALYZER
# ============================================================================


class DiversityAnalyzer:
    """
    Args:
        privacy: Differential privacy parameters for the released metrics
        rng: numpy Generator used for noise
        classifiers: Table name -> classifier (domains, framework_categories,
            project_types, innovation, design_patterns, contribution_types)
        min_repositories: Smallest portfolio that can be aggregated
    """

    def __init__(
        self,
        privacy: Optional[DifferentialPrivacyConfig] = None,
        rng: Optional[np.random.Generator] = None,
        classifiers: Optional[Mapping[str, KeywordClassifier]] = None,
        min_repositories: int = MIN_REPOSITORIES,
    ):
        self.privacy = privacy or DifferentialPrivacyConfig()
        self.rng = rng if rng is not None else np.random.default_rng()
        classifiers = classifiers or {}

        def pick(name: str) -> KeywordClassifier:
            return classifiers.get(name) or KeywordClassifier.default(name)

        self.domains = pick("domains")
        self.framework_categories = pick("framework_categories")
        self.project_types = pick("project_types")
        self.innovation = pick("innovation")
        self.design_patterns = pick("design_patterns")
        self.contribution_types = pick("contribution_types")
        self.min_repositories = min_repositories

    # ------------------------------------------------------------------
    # Portfolio
    # ------------------------------------------------------------------

    def analyze(
        self, repositories: Sequence[RepositoryData], as_of: datetime
    ) -> DiversityReport:
        """
        Raises:
            InsufficientDataError: If fewer than min_repositories are given
        """
        if len(repositories) < self.min_repositories:
            raise InsufficientDataError(
                f"diversity analysis needs at least {self.min_repositories} "
                f"repositories, got {len(repositories)}"
            )
        as_of = parse_timestamp(as_of).astimezone(timezone.utc)
        analyses = [self.analyze_repository(r, as_of) for r in repositories]
        metrics = self.aggregate(analyses)
        report = DiversityReport(
            repositories=tuple(analyses),
            metrics=metrics,
            private_metrics=self.privatize(metrics),
            portfolio=self.portfolio(repositories, analyses),
            categories=self.circuit_categories(repositories, analyses),
        )
        logger.debug(
            "Diversity over %d repositories: project=%d domain=%d breadth=%d",
            len(analyses),
            metrics.project_diversity,
            metrics.domain_diversity,
            metrics.technical_breadth,
        )
        return report

    @staticmethod
    def aggregate(analyses: Sequence[RepositoryDiversity]) -> DiversityMetrics:
        all_domains = {d for a in analyses for d in a.domains}
        all_tech = {t for a in analyses for t in a.tech_stack}
        return DiversityMetrics(
            project_diversity=int(round(np.mean([a.combined_diversity for a in analyses]))),
            domain_diversity=min(100, 15 * len(all_domains)),
            technical_breadth=min(100, 5 * len(all_tech)),
            innovation_score=int(round(np.mean([a.innovation_score for a in analyses]))),
            adaptability_score=int(min(100, 10 * _std([a.language_diversity for a in analyses]))),
        )

    def privatize(self, metrics: DiversityMetrics) -> DiversityMetrics:
        """Clamp each metric to [0, 100], add noise with sensitivity 1, clamp and round."""
        mechanism = make_mechanism(self.privacy, self.rng, sensitivity=1.0)
        noisy = {
            key: int(round(mechanism.privatize(value, AGGREGATE_BOUNDS)))
            for key, value in metrics.to_dict().items()
        }
        return DiversityMetrics(**noisy)

    def portfolio(
        self,
        repositories: Sequence[RepositoryData],
        analyses: Sequence[RepositoryDiversity],
    ) -> PortfolioDiversity:
        lines: Counter = Counter()
        for repo in repositories:
            for language, count in self.repository_languages(repo).items():
                lines[language] += count
        languages = list(lines)
        entropy = round(shannon_diversity(list(lines.values())) * 100, 2)

        domains = _unique(d for a in analyses for d in a.domains)
        primary_counts = Counter(a.primary_domain for a in analyses)
        tech = {t for a in analyses for t in a.tech_stack}
        originality = int(round(np.mean([a.uniqueness_score for a in analyses])))
        breadth = min(100, 12 * len(domains))

        overall = (entropy * 0.3 + breadth * 0.25 + len(tech) * 0.25 + originality * 0.2) / 4
        adaptability = 2 * _std([a.language_diversity for a in analyses]) + 10 * len(primary_counts)

        return PortfolioDiversity(
            overall_diversity=int(round(overall)),
            language_count=len(languages),
            language_entropy=entropy,
            modernity_score=modernity_score(languages),
            versatility_score=versatility_score(languages),
            domain_count=len(domains),
            domain_breadth=breadth,
            domain_depth=min(100, 20 * max(primary_counts.values())),
            cross_domain_score=min(100, 10 * len(domains)),
            framework_count=len(tech),
            paradigm_count=paradigm_count(languages),
            architecture_patterns=sum(1 for d in ARCHITECTURE_DOMAINS if d in primary_counts),
            emerging_tech_adoption=min(100, 10 * sum(len(a.emerging_tech) for a in analyses)),
            experimental_projects=sum(1 for a in analyses if "experimental" in a.project_types),
            originality_score=originality,
            trend_following=int(round(np.mean([a.trendiness_score for a in analyses]))),
            adaptability_score=int(min(100, adaptability)),
        )

    def circuit_categories(
        self,
        repositories: Sequence[RepositoryData],
        analyses: Sequence[RepositoryDiversity],
    ) -> Dict[str, Dict[str, int]]:
        """
        Dimension -> {category: score} for the diversity credential.

        Language scores are line shares in percent; every other dimension
        scores 20 points per repository showing the category, capped at 100.
        Each dimension keeps its ten strongest categories.
        """
        lines: Counter = Counter()
        for repo in repositories:
            for language, count in self.repository_languages(repo).items():
                lines[language] += count
        total = sum(lines.values())
        languages = {
            name: int(round(100 * count / total)) if total else 0
            for name, count in lines.items()
        }

        def per_repo(groups) -> Dict[str, int]:
            seen: Counter = Counter()
            for labels in groups:
                seen.update(set(labels))
            return {label: min(100, 20 * n) for label, n in seen.items()}

        categories = {
            "languages": languages,
            "technologies": per_repo(a.frameworks for a in analyses),
            "project_types": per_repo(a.project_types for a in analyses),
            "domains": per_repo(a.domains for a in analyses),
            "contribution_types": per_repo(self._contribution_labels(r) for r in repositories),
            "architectural_patterns": per_repo(
                self.design_patterns.classify(" ".join(f for c in r.commits for f in c.filenames))
                for r in repositories
            ),
            "team_sizes": per_repo(
                [team_size_bucket(len(r.collaborators))] for r in repositories
            ),
        }
        return {dim: _top(scores, DIVERSITY_DIMENSION_CAPACITY) for dim, scores in categories.items()}

    def _contribution_labels(self, repository: RepositoryData) -> set:
        labels = set()
        for commit in repository.user_commits:
            labels |= self.contribution_types.classify(commit.message)
        return labels

    # ------------------------------------------------------------------
    # Single repository
    # ------------------------------------------------------------------

    @staticmethod
    def repository_languages(repository: RepositoryData) -> Dict[str, int]:
        """Declared language sizes, or lines attributed from commit files."""
        if repository.languages:
            return dict(repository.languages)
        lines: Counter = Counter()
        for commit in repository.commits:
            for change in commit.files:
                language = language_for(change.filename)
                if language:
                    lines[language] += change.additions + change.deletions
        return dict(lines)

    @staticmethod
    def text(repository: RepositoryData) -> str:
        return " ".join(
            [repository.name, repository.description] + list(repository.topics)
        ).lower()

    def analyze_repository(
        self, repository: RepositoryData, as_of: datetime
    ) -> RepositoryDiversity:
        text = self.text(repository)
        languages = self.repository_languages(repository)
        names = list(languages)

        domains = self.detect_domains(text, names)
        frameworks = sorted(self.framework_categories.matches(text))
        framework_families = self.framework_categories.classify(text)
        project_types = self.detect_project_types(text)
        emerging = self.detect_emerging_tech(text, names)

        framework_score = 0
        if frameworks:
            framework_score = min(60, 10 * len(frameworks)) + min(40, 8 * len(framework_families))

        return RepositoryDiversity(
            name=repository.name,
            language_diversity=round(shannon_diversity(list(languages.values())) * 100, 2),
            domain_diversity=domain_diversity(domains),
            framework_diversity=framework_score,
            project_type_diversity=min(100, 25 * len(project_types)),
            technical_complexity=technical_complexity(names, sum(languages.values())),
            innovation_score=self.innovation_score(repository, text, emerging, as_of),
            primary_domain=domains[0] if domains else "general",
            secondary_domains=tuple(domains[1:]),
            frameworks=tuple(frameworks),
            tech_stack=tuple(_unique(names + frameworks)),
            project_types=tuple(project_types),
            emerging_tech=tuple(emerging),
            trendiness_score=self.trendiness_score(repository, emerging, as_of),
            uniqueness_score=uniqueness_score(names, repository.is_owner),
        )

    def detect_domains(self, text: str, languages: Sequence[str]) -> List[str]:
        found = [label for label in self.domains.labels if label in self.domains.classify(text)]
        for family, members in LANGUAGE_FAMILIES.items():
            if any(language in members for language in languages):
                found.append(family)
        return _unique(found)

    def detect_project_types(self, text: str) -> List[str]:
        found = self.project_types.classify(text)
        return [label for label in self.project_types.labels if label in found] or ["application"]

    def detect_emerging_tech(self, text: str, languages: Sequence[str]) -> List[str]:
        tech = sorted(self.innovation.matches(text, "emerging"))
        tech += [l for l in languages if l in LANGUAGE_FAMILIES["emerging"]]
        return _unique(tech)

    def innovation_score(
        self,
        repository: RepositoryData,
        text: str,
        emerging: Sequence[str],
        as_of: datetime,
    ) -> int:
        score = 20 * len(self.innovation.matches(text, "indicator"))
        if emerging:
            score += 30
        created = repository.created_at or _first_commit(repository)
        if created is not None and (as_of - created).days < NEW_PROJECT_DAYS:
            score += 15
        return min(100, score)

    @staticmethod
    def trendiness_score(
        repository: RepositoryData, emerging: Sequence[str], as_of: datetime
    ) -> int:
        score = 0
        if repository.commits:
            last = max(c.timestamp for c in repository.commits)
            if (as_of - last).days <= RECENT_ACTIVITY_DAYS:
                score += 25
        score += 10 * len(emerging)
        return min(100, score)


# ============================================================================
# SCORING HELPERS
# ============================================================================


def domain_diversity(domains: Sequence[str]) -> int:
    """20 points per domain plus 15 per valuable pairing (at most 30)."""
    if not domains:
        return 0
    bonus = sum(15 for a, b in VALUABLE_DOMAIN_PAIRS if a in domains and b in domains)
    return min(100, min(100, 20 * len(domains)) + min(30, bonus))


def technical_complexity(languages: Sequence[str], code_size: int) -> int:
    score = 0
    if any(l in COMPLEX_LANGUAGES for l in languages):
        score += 30
    if len(languages) > 3:
        score += 20
    if code_size > 10000:
        score += 25
    if code_size > 50000:
        score += 25
    return min(100, score)


def uniqueness_score(languages: Sequence[str], is_owner: bool) -> int:
    score = 50
    if "-".join(sorted(languages)) not in COMMON_STACKS:
        score += 25
    if not is_owner:
        score += 10
    return min(100, score)


def modernity_score(languages: Sequence[str]) -> float:
    if not languages:
        return 0.0
    modern = sum(1 for l in languages if l in MODERN_LANGUAGES)
    return min(100.0, 100 * modern / len(languages))


def versatility_score(languages: Sequence[str]) -> float:
    covered = sum(
        1 for members in LANGUAGE_FAMILIES.values() if any(l in members for l in languages)
    )
    return min(100.0, 100 * covered / len(LANGUAGE_FAMILIES))


def paradigm_count(languages: Sequence[str]) -> int:
    return sum(
        1 for members in PARADIGMS.values() if any(l in members for l in languages)
    )


def _first_commit(repository: RepositoryData) -> Optional[datetime]:
    if not repository.commits:
        return None
    return min(c.timestamp for c in repository.commits)


def _top(scores: Mapping[str, int], limit: int) -> Dict[str, int]:
    ranked = sorted(scores.items(), key=lambda kv: (-kv[1], kv[0]))
    return OrderedDict(ranked[:limit])

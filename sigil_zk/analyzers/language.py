"""
Language detection and proficiency scoring.

Attributes every file a user touched to a language by extension, scores
each language on lines, commits, files, experience and language difficulty,
and packs the surviving languages into the fixed-capacity arrays the
language credential consumes.

Proficiency (0-100):
    lines       8 / 16 / 24 / 32 / 40  at 100 / 500 / 1000 / 2000 / 5000
    commits     5 / 10 / 15 / 20 / 25  at 2 / 5 / 10 / 25 / 50
    files       4 / 8 / 12 / 15        at 2 / 5 / 10 / 20
    experience  2 / 4 / 6 / 8 / 10     at 1 / 3 / 6 / 12 / 24 months
    language    +10 hard, +5 moderate
"""

import logging
import math
import posixpath
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Set, Tuple

from ..circuits.capacity import smallest_tier_for, validate_capacity
from ..circuits.exceptions import CapacityExceeded
from ..circuits.field import fingerprint
from .classifiers import KeywordClassifier
from .records import CommitData, FileChange, LanguageUsage, commits_by

logger = logging.getLogger(__name__)


EXTENSION_LANGUAGES: Dict[str, str] = {
    # web
    "js": "JavaScript", "jsx": "JavaScript", "ts": "TypeScript", "tsx": "TypeScript",
    "html": "HTML", "htm": "HTML", "css": "CSS", "scss": "SCSS", "sass": "Sass",
    "less": "Less", "vue": "Vue",
    # backend
    "py": "Python", "pyw": "Python", "java": "Java", "kt": "Kotlin", "kts": "Kotlin",
    "scala": "Scala", "rb": "Ruby", "php": "PHP", "go": "Go", "rs": "Rust",
    "cs": "C#", "fs": "F#", "vb": "Visual Basic",
    # systems
    "c": "C", "cpp": "C++", "cc": "C++", "cxx": "C++", "h": "C/C++", "hpp": "C++",
    "asm": "Assembly", "s": "Assembly",
    # mobile
    "swift": "Swift", "m": "Objective-C", "mm": "Objective-C++", "dart": "Dart",
    # functional
    "hs": "Haskell", "elm": "Elm", "clj": "Clojure", "cljs": "ClojureScript", "ml": "OCaml",
    # scripting
    "sh": "Shell", "bash": "Bash", "zsh": "Zsh", "ps1": "PowerShell", "bat": "Batch",
    "cmd": "Command",
    # data and config
    "sql": "SQL", "json": "JSON", "yaml": "YAML", "yml": "YAML", "xml": "XML",
    "toml": "TOML", "ini": "INI",
    # blockchain
    "sol": "Solidity", "vy": "Vyper",
    # other
    "r": "R", "jl": "Julia", "lua": "Lua", "pl": "Perl", "tex": "LaTeX", "md": "Markdown",
    "dockerfile": "Docker", "makefile": "Make",
}

_EXTENSIONLESS = ("dockerfile", "makefile")

LANGUAGE_BONUS = {
    "C++": 10, "Rust": 10, "Assembly": 10, "Haskell": 10, "Solidity": 10,
    "TypeScript": 5, "Go": 5, "Swift": 5, "Kotlin": 5,
}

BASE_COMPLEXITY = {
    "Assembly": 5,
    "C": 4, "C++": 4, "Rust": 4, "Haskell": 4,
    "Solidity": 3, "Go": 3,
    "TypeScript": 2, "JavaScript": 2, "Python": 2, "Java": 2,
}
MAX_COMPLEXITY = 5

LANGUAGE_CATEGORIES = {
    "JavaScript": "web_frontend", "TypeScript": "web_frontend", "HTML": "web_frontend",
    "CSS": "web_frontend",
    "Python": "web_backend", "Java": "web_backend", "Go": "web_backend",
    "Rust": "systems", "C++": "systems", "C": "systems",
    "Swift": "mobile", "Kotlin": "mobile", "Dart": "mobile",
    "Solidity": "blockchain",
    "Haskell": "functional",
    "Shell": "scripting",
    "R": "data_science",
}
CATEGORY_NAMES = (
    "web_frontend", "web_backend", "mobile", "systems",
    "data_science", "blockchain", "functional", "scripting",
)


def _tier(value: float, tiers: Sequence[Tuple[float, int]]) -> int:
    for threshold, points in tiers:
        if value >= threshold:
            return points
    return 0


_LINE_TIERS = ((5000, 40), (2000, 32), (1000, 24), (500, 16), (100, 8))
_COMMIT_TIERS = ((50, 25), (25, 20), (10, 15), (5, 10), (2, 5))
_FILE_TIERS = ((20, 15), (10, 12), (5, 8), (2, 4))
_EXPERIENCE_TIERS = ((24, 10), (12, 8), (6, 6), (3, 4), (1, 2))


def file_extension(filename: str) -> str:
    base = posixpath.basename(filename.replace("\\", "/")).lower()
    if base in _EXTENSIONLESS:
        return base
    if "." not in base:
        return ""
    return base.rsplit(".", 1)[1]


def language_for(filename: str) -> Optional[str]:
    return EXTENSION_LANGUAGES.get(file_extension(filename))


def proficiency_score(
    language: str, total_lines: int, commit_count: int, file_count: int, experience_months: float
) -> int:
    score = (
        _tier(total_lines, _LINE_TIERS)
        + _tier(commit_count, _COMMIT_TIERS)
        + _tier(file_count, _FILE_TIERS)
        + _tier(experience_months, _EXPERIENCE_TIERS)
        + LANGUAGE_BONUS.get(language, 0)
    )
    return min(100, score)


def experience_months(first_seen: datetime, last_seen: datetime) -> float:
    days = (last_seen - first_seen).total_seconds() / 86400
    return max(0.1, days / 30)


def shannon_diversity(lines: Sequence[int]) -> float:
    """Shannon entropy of line shares normalized by log2(n), in [0, 1]."""
    if len(lines) <= 1:
        return 0.0
    total = sum(lines)
    if total == 0:
        return 0.0
    entropy = 0.0
    for n in lines:
        p = n / total
        if p > 0:
            entropy -= p * math.log2(p)
    return entropy / math.log2(len(lines))


# ============================================================================
# RESULT TYPES
# ============================================================================


@dataclass(frozen=True)
class LanguageAnalysis:
    language: str
    extensions: Tuple[str, ...]
    total_lines: int
    commit_count: int
    file_count: int
    proficiency: int
    complexity_level: int
    frameworks: Tuple[str, ...]
    patterns: Tuple[str, ...]
    first_seen: datetime
    last_seen: datetime
    experience_months: float
    dominance_percentage: float


@dataclass(frozen=True)
class LanguageSummary:
    total_languages: int
    primary_language: str
    total_lines: int
    avg_proficiency: int
    avg_complexity: float
    diversity_index: float
    categories: Dict[str, List[str]]
    experience_span_months: float
    polyglot_score: int


@dataclass(frozen=True)
class LanguageCircuitInputs:
    """Fixed-capacity arrays; slot i is empty when mask[i] == 0."""

    capacity: int
    names: Tuple[str, ...]
    language_hashes: Tuple[int, ...]
    language_lines: Tuple[int, ...]
    language_mask: Tuple[int, ...]
    proficiency_scores: Tuple[int, ...]
    complexity_levels: Tuple[int, ...]
    commit_counts: Tuple[int, ...]
    experience_months: Tuple[int, ...]
    framework_counts: Tuple[int, ...]
    dominance_scores: Tuple[int, ...]

    @property
    def usages(self) -> Tuple[LanguageUsage, ...]:
        return tuple(
            LanguageUsage(
                name=self.names[i],
                fingerprint=self.language_hashes[i],
                lines=self.language_lines[i],
                proficiency=self.proficiency_scores[i],
                active=bool(self.language_mask[i]),
            )
            for i in range(self.capacity)
        )

    @property
    def pairs(self) -> List[Tuple[str, int]]:
        """(name, lines) for the active slots, as the language packer takes them."""
        return [
            (self.names[i], self.language_lines[i])
            for i in range(self.capacity)
            if self.language_mask[i]
        ]


@dataclass(frozen=True)
class LanguageReport:
    languages: Tuple[LanguageAnalysis, ...]
    circuit_inputs: LanguageCircuitInputs
    summary: LanguageSummary


@dataclass
class _Accumulator:
    files: List[FileChange] = field(default_factory=list)
    shas: "OrderedDict[str, None]" = field(default_factory=OrderedDict)
    extensions: "OrderedDict[str, None]" = field(default_factory=OrderedDict)
    total_lines: int = 0
    timestamps: List[datetime] = field(default_factory=list)


# ============================================================================
# DETECTOR
# ============================================================================


class LanguageDetector:
    """
    Args:
        min_lines: Languages with fewer attributed lines are dropped
        min_commits: Languages touched by fewer commits are dropped
        max_languages: Keep at most this many (highest proficiency first);
            None keeps all
        capacity: Circuit tier to pack into; None picks the smallest tier
            that holds the result
        classifiers: Table name -> classifier (frameworks, complexity,
            design_patterns are used)
    """

    def __init__(
        self,
        min_lines: int = 0,
        min_commits: int = 1,
        max_languages: Optional[int] = None,
        capacity: Optional[int] = None,
        classifiers: Optional[Dict[str, KeywordClassifier]] = None,
    ):
        if capacity is not None:
            validate_capacity(capacity)
        self.min_lines = min_lines
        self.min_commits = min_commits
        self.max_languages = max_languages
        self.capacity = capacity
        classifiers = classifiers or {}
        self.frameworks = classifiers.get("frameworks") or KeywordClassifier.default("frameworks")
        self.complexity = classifiers.get("complexity") or KeywordClassifier.default("complexity")
        self.design_patterns = (
            classifiers.get("design_patterns") or KeywordClassifier.default("design_patterns")
        )

    def analyze(self, commits: Sequence[CommitData], user: str) -> LanguageReport:
        """
        Raises:
            CapacityExceeded: If more languages survive filtering than the
                configured capacity holds
        """
        user_commits = commits_by(tuple(commits), user)
        all_lines = sum(c.additions for c in user_commits)

        analyses = [
            self._analyze_language(language, acc, all_lines)
            for language, acc in self._collect(user_commits).items()
        ]
        kept = self._filter(analyses)
        inputs = self._circuit_inputs(kept)
        summary = self._summary(kept)
        logger.debug(
            "%s: %d languages detected, %d kept, capacity %d",
            user,
            len(analyses),
            len(kept),
            inputs.capacity,
        )
        return LanguageReport(languages=tuple(kept), circuit_inputs=inputs, summary=summary)

    def _collect(self, commits: Sequence[CommitData]) -> "OrderedDict[str, _Accumulator]":
        data: "OrderedDict[str, _Accumulator]" = OrderedDict()
        for commit in commits:
            for change in commit.files:
                language = language_for(change.filename)
                if language is None:
                    continue
                acc = data.setdefault(language, _Accumulator())
                acc.files.append(change)
                acc.extensions[file_extension(change.filename)] = None
                acc.total_lines += change.additions
                acc.timestamps.append(commit.timestamp)
                acc.shas[commit.sha] = None
        return data

    def _analyze_language(self, language: str, acc: _Accumulator, all_lines: int) -> LanguageAnalysis:
        first, last = min(acc.timestamps), max(acc.timestamps)
        months = experience_months(first, last)
        filenames = [f.filename for f in acc.files]
        return LanguageAnalysis(
            language=language,
            extensions=tuple(acc.extensions),
            total_lines=acc.total_lines,
            commit_count=len(acc.shas),
            file_count=len(acc.files),
            proficiency=proficiency_score(
                language, acc.total_lines, len(acc.shas), len(acc.files), months
            ),
            complexity_level=self.complexity_level(language, filenames),
            frameworks=tuple(sorted(self.detect_frameworks(language, filenames))),
            patterns=tuple(sorted(self.detect_patterns(filenames))),
            first_seen=first,
            last_seen=last,
            experience_months=round(months, 1),
            dominance_percentage=round(100 * acc.total_lines / all_lines, 2) if all_lines else 0.0,
        )

    def complexity_level(self, language: str, filenames: Sequence[str]) -> int:
        score = 1 + 0.5 * sum(self.complexity.match_count(name) for name in filenames)
        score += BASE_COMPLEXITY.get(language, 1)
        return int(round(min(MAX_COMPLEXITY, score)))

    def detect_frameworks(self, language: str, filenames: Sequence[str]) -> Set[str]:
        found = set()
        for name in filenames:
            found |= self.frameworks.matches(name, language)
        return found

    def detect_patterns(self, filenames: Sequence[str]) -> Set[str]:
        found = set()
        for name in filenames:
            found |= self.design_patterns.classify(name)
        return found

    def _filter(self, analyses: List[LanguageAnalysis]) -> List[LanguageAnalysis]:
        kept = [
            a
            for a in analyses
            if a.total_lines >= self.min_lines and a.commit_count >= self.min_commits
        ]
        kept.sort(key=lambda a: (-a.proficiency, -a.total_lines, a.language))
        if self.max_languages is not None:
            kept = kept[: self.max_languages]
        return kept

    def _circuit_inputs(self, languages: List[LanguageAnalysis]) -> LanguageCircuitInputs:
        if self.capacity is None:
            capacity = smallest_tier_for(len(languages))
        else:
            capacity = self.capacity
            if len(languages) > capacity:
                raise CapacityExceeded("languages", len(languages), capacity)

        empty = capacity - len(languages)

        def column(values) -> tuple:
            return tuple(values) + (0,) * empty

        return LanguageCircuitInputs(
            capacity=capacity,
            names=tuple(a.language for a in languages) + ("",) * empty,
            language_hashes=column(fingerprint(a.language) for a in languages),
            language_lines=column(a.total_lines for a in languages),
            language_mask=column(1 for _ in languages),
            proficiency_scores=column(a.proficiency for a in languages),
            complexity_levels=column(a.complexity_level for a in languages),
            commit_counts=column(a.commit_count for a in languages),
            experience_months=column(int(round(a.experience_months)) for a in languages),
            framework_counts=column(len(a.frameworks) for a in languages),
            dominance_scores=column(int(round(a.dominance_percentage)) for a in languages),
        )

    def _summary(self, languages: List[LanguageAnalysis]) -> LanguageSummary:
        n = len(languages)
        seen = [t for a in languages for t in (a.first_seen, a.last_seen)]
        span = (max(seen) - min(seen)).total_seconds() / (86400 * 30) if seen else 0.0
        return LanguageSummary(
            total_languages=n,
            primary_language=languages[0].language if languages else "Unknown",
            total_lines=sum(a.total_lines for a in languages),
            avg_proficiency=int(round(sum(a.proficiency for a in languages) / n)) if n else 0,
            avg_complexity=round(sum(a.complexity_level for a in languages) / n, 1) if n else 0.0,
            diversity_index=round(shannon_diversity([a.total_lines for a in languages]), 2),
            categories=categorize([a.language for a in languages]),
            experience_span_months=round(span, 1),
            polyglot_score=polyglot_score(languages),
        )


def categorize(languages: Sequence[str]) -> Dict[str, List[str]]:
    categories: Dict[str, List[str]] = {name: [] for name in CATEGORY_NAMES}
    for language in languages:
        categories.setdefault(LANGUAGE_CATEGORIES.get(language, "other"), []).append(language)
    return categories


def polyglot_score(languages: Sequence[LanguageAnalysis]) -> int:
    if not languages:
        return 0
    score = min(50, 10 * len(languages))
    used = categorize([a.language for a in languages])
    score += 5 * sum(1 for members in used.values() if members)
    score += 5 * sum(1 for a in languages if a.proficiency >= 70)
    score += 5 * sum(1 for a in languages if a.complexity_level >= 3)
    return min(100, score)

"""Metric extraction from repository, commit and collaborator records."""

from .classifiers import KeywordClassifier, load_classifiers
from .collaboration import CollaborationAnalyzer, CollaborationReport, collaborator_hash
from .diversity import DiversityAnalyzer, DiversityReport
from .language import LanguageDetector, LanguageReport
from .records import (
    CollaboratorData,
    CommitData,
    CredentialClaim,
    FileChange,
    RepositoryData,
    RepositoryRecord,
)
from .repository import PortfolioAnalysis, RepositoryAnalysis, RepositoryAnalyzer
from .temporal import TemporalAnalyzer, TemporalReport

__all__ = [
    "CollaborationAnalyzer",
    "CollaborationReport",
    "CollaboratorData",
    "CommitData",
    "CredentialClaim",
    "DiversityAnalyzer",
    "DiversityReport",
    "FileChange",
    "KeywordClassifier",
    "LanguageDetector",
    "LanguageReport",
    "PortfolioAnalysis",
    "RepositoryAnalysis",
    "RepositoryAnalyzer",
    "RepositoryData",
    "RepositoryRecord",
    "TemporalAnalyzer",
    "TemporalReport",
    "collaborator_hash",
    "load_classifiers",
]

"""Credential circuits."""

from .collaboration import CollaborationCredential, collaboration_score
from .diversity import DiversityCredential, evaluate_diversity
from .language import LanguageCredential, language_set_fingerprint
from .leadership import LeadershipCredential, evaluate_leadership
from .repository import RepositoryCredential, signature_message

__all__ = [
    "CollaborationCredential",
    "DiversityCredential",
    "LanguageCredential",
    "LeadershipCredential",
    "RepositoryCredential",
    "collaboration_score",
    "evaluate_diversity",
    "evaluate_leadership",
    "language_set_fingerprint",
    "signature_message",
]

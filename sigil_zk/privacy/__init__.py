"""Differential privacy, k-anonymity, blinding and budget accounting."""

from .blinding import ValueBlinder
from .budget import BudgetEntry, BudgetStatus, PrivacyBudgetLedger
from .config import (
    BlindingConfig,
    BudgetConfig,
    DifferentialPrivacyConfig,
    KAnonymityConfig,
    PrivacyConfig,
    load_privacy_config,
    privacy_config_from_dict,
)
from .kanonymity import KAnonymityResult, KAnonymizer
from .noise import (
    GaussianMechanism,
    LaplaceMechanism,
    make_mechanism,
    private_aggregate,
    private_count,
    private_histogram,
    private_max,
    private_mean,
    private_sum,
)
from .pipeline import PrivacyPipeline, PrivacyPreservedData
from .validator import PrivacyValidationResult, PrivacyValidator

__all__ = [
    "BlindingConfig",
    "BudgetConfig",
    "BudgetEntry",
    "BudgetStatus",
    "DifferentialPrivacyConfig",
    "GaussianMechanism",
    "KAnonymityConfig",
    "KAnonymityResult",
    "KAnonymizer",
    "LaplaceMechanism",
    "PrivacyBudgetLedger",
    "PrivacyConfig",
    "PrivacyPipeline",
    "PrivacyPreservedData",
    "PrivacyValidationResult",
    "PrivacyValidator",
    "ValueBlinder",
    "load_privacy_config",
    "make_mechanism",
    "private_aggregate",
    "private_count",
    "private_histogram",
    "private_max",
    "private_mean",
    "private_sum",
    "privacy_config_from_dict",
]

"""
Privacy pipeline configuration.

Defaults reproduce the deployed parameters (epsilon 1.0, delta 1e-5,
k = 5, a total budget of 10 split 2.0 per credential family). Any subset
can be overridden from YAML:

    differential_privacy:
      epsilon: 0.5
      mechanism: gaussian
    k_anonymity:
      k: 10
    budget:
      total: 20.0
"""

import logging
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Tuple, Union

import yaml

from ..circuits.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

MECHANISMS = ("laplace", "gaussian")
PRIVACY_LEVELS = ("basic", "enhanced", "maximum")


# ============================================================================
# SECTIONS
# ============================================================================


@dataclass(frozen=True)
class DifferentialPrivacyConfig:
    epsilon: float = 1.0
    delta: float = 1e-5
    sensitivity: float = 1.0
    mechanism: str = "laplace"
    clamping_bounds: Tuple[float, float] = (0.0, 100.0)

    def validate(self) -> None:
        if self.epsilon <= 0:
            raise ConfigurationError(f"epsilon must be positive, got {self.epsilon}")
        if not 0 < self.delta < 1:
            raise ConfigurationError(f"delta must be in (0, 1), got {self.delta}")
        if self.sensitivity <= 0:
            raise ConfigurationError(
                f"sensitivity must be positive, got {self.sensitivity}"
            )
        if self.mechanism not in MECHANISMS:
            raise ConfigurationError(
                f"Unknown mechanism {self.mechanism!r}; expected one of {', '.join(MECHANISMS)}"
            )
        lo, hi = self.clamping_bounds
        if lo > hi:
            raise ConfigurationError(f"clamping bounds are empty: [{lo}, {hi}]")


@dataclass(frozen=True)
class KAnonymityConfig:
    k: int = 5
    quasi_identifiers: Tuple[str, ...] = ("language", "domain", "experience_level")
    sensitive_attributes: Tuple[str, ...] = (
        "proficiency_score",
        "commit_count",
        "repository_count",
    )
    suppression_threshold: float = 0.1
    generalization_levels: Dict[str, int] = field(
        default_factory=lambda: {"experience_level": 3, "language": 2, "domain": 2}
    )

    def validate(self) -> None:
        if self.k < 2:
            raise ConfigurationError(f"k must be at least 2, got {self.k}")
        if not 0 <= self.suppression_threshold <= 1:
            raise ConfigurationError(
                f"suppression_threshold must be in [0, 1], got {self.suppression_threshold}"
            )
        if not self.quasi_identifiers:
            raise ConfigurationError("at least one quasi-identifier is required")


@dataclass(frozen=True)
class BlindingConfig:
    enabled: bool = True
    set_size: int = 1000
    blinding_factor: bool = True


@dataclass(frozen=True)
class BudgetConfig:
    total: float = 10.0
    allocation: Dict[str, float] = field(
        default_factory=lambda: {
            "consistency": 2.0,
            "diversity": 2.0,
            "proficiency": 2.0,
            "collaboration": 2.0,
            "aggregation": 2.0,
        }
    )

    def validate(self) -> None:
        if self.total <= 0:
            raise ConfigurationError(f"budget total must be positive, got {self.total}")
        for operation, epsilon in self.allocation.items():
            if epsilon <= 0:
                raise ConfigurationError(
                    f"allocation for {operation!r} must be positive, got {epsilon}"
                )


@dataclass(frozen=True)
class PrivacyConfig:
    """Complete privacy pipeline configuration."""

    differential_privacy: DifferentialPrivacyConfig = field(
        default_factory=DifferentialPrivacyConfig
    )
    k_anonymity: KAnonymityConfig = field(default_factory=KAnonymityConfig)
    blinding: BlindingConfig = field(default_factory=BlindingConfig)
    budget: BudgetConfig = field(default_factory=BudgetConfig)
    compliance_level: str = "enhanced"
    audit_trail: bool = True

    def validate(self) -> "PrivacyConfig":
        self.differential_privacy.validate()
        self.k_anonymity.validate()
        self.budget.validate()
        if self.compliance_level not in PRIVACY_LEVELS:
            raise ConfigurationError(
                f"Unknown compliance level {self.compliance_level!r}; "
                f"expected one of {', '.join(PRIVACY_LEVELS)}"
            )
        return self

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ============================================================================
# LOADING
# ============================================================================

_SECTIONS = {
    "differential_privacy": DifferentialPrivacyConfig,
    "k_anonymity": KAnonymityConfig,
    "blinding": BlindingConfig,
    "budget": BudgetConfig,
}


def _build_section(name: str, cls, values: Any):
    if not isinstance(values, dict):
        raise ConfigurationError(f"section {name!r} must be a mapping")
    known = {f.name for f in fields(cls)}
    unknown = set(values) - known
    if unknown:
        raise ConfigurationError(
            f"section {name!r}: unknown keys {', '.join(sorted(unknown))}"
        )
    kwargs = dict(values)
    for key in ("clamping_bounds", "quasi_identifiers", "sensitive_attributes"):
        if key in kwargs:
            kwargs[key] = tuple(kwargs[key])
    try:
        return replace(cls(), **kwargs)
    except TypeError as e:
        raise ConfigurationError(f"section {name!r}: {e}") from e


def privacy_config_from_dict(data: Dict[str, Any]) -> PrivacyConfig:
    """Build and validate a PrivacyConfig from a plain mapping."""
    if not isinstance(data, dict):
        raise ConfigurationError("privacy configuration must be a mapping")

    kwargs: Dict[str, Any] = {}
    for key, value in data.items():
        if key in _SECTIONS:
            kwargs[key] = _build_section(key, _SECTIONS[key], value)
        elif key in ("compliance_level", "audit_trail"):
            kwargs[key] = value
        else:
            raise ConfigurationError(f"Unknown privacy configuration key {key!r}")
    return PrivacyConfig(**kwargs).validate()


def load_privacy_config(path: Union[str, Path]) -> PrivacyConfig:
    """
    Load a privacy configuration from YAML.

    Missing sections and keys keep their defaults. An empty file yields
    the default configuration.

    Raises:
        ConfigurationError: If the file is malformed or a value is invalid
    """
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"{path}: invalid YAML: {e}") from e

    config = privacy_config_from_dict(data or {})
    logger.debug(
        "Loaded privacy config from %s (epsilon=%s, k=%d)",
        path,
        config.differential_privacy.epsilon,
        config.k_anonymity.k,
    )
    return config

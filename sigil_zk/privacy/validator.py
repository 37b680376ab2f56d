"""
Privacy validation of credential inputs before they are released.

The validator inspects a plain mapping:

    {
        "privacy_parameters": {"epsilon": 1.0, "noise_mechanism": "laplace",
                               "k": 5, "quasi_identifiers": [...],
                               "equivalence_classes": [5, 7, 9],
                               "suppression_rate": 4.0},
        "commitments": {"repository": "<64 hex chars>"},
        "zk_proofs": {...},
        ...data fields...
    }

and reports violations (with severities) and warnings. The achieved
privacy level is derived from the severity counts.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .config import PrivacyConfig

logger = logging.getLogger(__name__)

SEVERITIES = ("critical", "high", "medium", "low")

PII_PATTERNS = (
    re.compile(r"\b\d{3}-\d{2}-\d{4}\b"),  # SSN
    re.compile(r"\b\d{4}\s?\d{4}\s?\d{4}\s?\d{4}\b"),  # card number
    re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b"),  # email
    re.compile(r"\b\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}\b"),  # IPv4
)
COMMITMENT_PATTERN = re.compile(r"^[0-9a-fA-F]{64}$")

# level -> (requirement, mandatory)
LEVEL_REQUIREMENTS: Dict[str, Tuple[Tuple[str, bool], ...]] = {
    "basic": (("differential_privacy", False),),
    "enhanced": (("differential_privacy", True), ("k_anonymity", True)),
    "maximum": (
        ("differential_privacy", True),
        ("k_anonymity", True),
        ("zero_knowledge", True),
    ),
}

HIGH_EPSILON = 10.0
LOW_EPSILON = 0.01


def contains_pii(value: Any) -> bool:
    return isinstance(value, str) and any(p.search(value) for p in PII_PATTERNS)


def is_valid_commitment(value: Any) -> bool:
    return isinstance(value, str) and bool(COMMITMENT_PATTERN.match(value))


def _get(data: Mapping[str, Any], path: str) -> Any:
    current: Any = data
    for key in path.split("."):
        if not isinstance(current, Mapping) or key not in current:
            return None
        current = current[key]
    return current


@dataclass(frozen=True)
class PrivacyViolation:
    standard: str
    requirement: str
    description: str
    severity: str
    field: str


@dataclass(frozen=True)
class PrivacyWarning:
    kind: str
    description: str
    field: str


@dataclass
class PrivacyValidationResult:
    is_compliant: bool
    privacy_level: str
    violations: List[PrivacyViolation] = field(default_factory=list)
    warnings: List[PrivacyWarning] = field(default_factory=list)

    def by_severity(self, severity: str) -> List[PrivacyViolation]:
        return [v for v in self.violations if v.severity == severity]


class PrivacyValidator:
    """
    Args:
        pii_fields: Dotted paths that must not contain PII
        sensitive_fields: Dotted path -> anonymization method
            ("hash", "generalize" or "suppress") that must have been applied
        min_group_size: Smallest acceptable anonymity group
        max_suppression: Largest suppression rate, in percent, before a warning
    """

    def __init__(
        self,
        pii_fields: Sequence[str] = ("user", "author", "email"),
        sensitive_fields: Optional[Mapping[str, str]] = None,
        min_group_size: int = 5,
        max_suppression: float = 10.0,
    ):
        self.pii_fields = tuple(pii_fields)
        self.sensitive_fields = dict(sensitive_fields or {})
        self.min_group_size = min_group_size
        self.max_suppression = max_suppression

    def validate(self, data: Mapping[str, Any], target_level: str = "enhanced") -> PrivacyValidationResult:
        violations: List[PrivacyViolation] = []
        warnings: List[PrivacyWarning] = []

        self._check_level(data, target_level, violations, warnings)
        self._check_classification(data, violations)
        self._check_anonymization(data, violations, warnings)
        self._check_epsilon(data, violations, warnings)
        self._check_k(data, violations)
        self._check_zero_knowledge(data, violations, warnings)

        blocking = [v for v in violations if v.severity in ("critical", "high")]
        result = PrivacyValidationResult(
            is_compliant=not blocking,
            privacy_level=achieved_level(violations, warnings),
            violations=violations,
            warnings=warnings,
        )
        logger.debug(
            "Privacy validation: %d violations, %d warnings, level %s",
            len(violations),
            len(warnings),
            result.privacy_level,
        )
        return result

    def validate_config(self, config: PrivacyConfig) -> PrivacyValidationResult:
        """Validate the parameters a PrivacyConfig would release with."""
        dp = config.differential_privacy
        ka = config.k_anonymity
        data = {
            "privacy_parameters": {
                "epsilon": dp.epsilon,
                "noise_mechanism": dp.mechanism,
                "k": ka.k,
                "quasi_identifiers": list(ka.quasi_identifiers),
                "suppression_rate": 100 * ka.suppression_threshold,
                "group_size": ka.k,
            }
        }
        if config.blinding.enabled:
            data["zk_proofs"] = {"blinding": {"set_size": config.blinding.set_size}}
        return self.validate(data, config.compliance_level)

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    def _check_level(self, data, level, violations, warnings) -> None:
        if level not in LEVEL_REQUIREMENTS:
            violations.append(
                PrivacyViolation(
                    "PRIVACY_LEVEL", "VALID_LEVEL", f"Unknown privacy level: {level}", "high", "privacy_level"
                )
            )
            return
        for requirement, mandatory in LEVEL_REQUIREMENTS[level]:
            if requirement_met(data, requirement):
                continue
            if mandatory:
                violations.append(
                    PrivacyViolation(
                        "PRIVACY_LEVEL",
                        requirement,
                        f"{level} privacy level requires {requirement}",
                        "high",
                        "privacy_parameters",
                    )
                )
            else:
                warnings.append(
                    PrivacyWarning(
                        "OPTIONAL_PRIVACY_REQUIREMENT",
                        f"Optional {requirement} not implemented for {level} level",
                        "privacy_parameters",
                    )
                )

    def _check_classification(self, data, violations) -> None:
        for path, method in self.sensitive_fields.items():
            value = _get(data, path)
            if value is not None and not anonymized_with(value, method):
                violations.append(
                    PrivacyViolation(
                        "DATA_CLASSIFICATION",
                        "ANONYMIZATION_APPLIED",
                        f"Sensitive field {path} not anonymized with {method}",
                        "high",
                        path,
                    )
                )
        for path in self.pii_fields:
            if contains_pii(_get(data, path)):
                violations.append(
                    PrivacyViolation(
                        "DATA_CLASSIFICATION", "PII_REMOVAL", f"PII detected in field {path}", "critical", path
                    )
                )

    def _check_anonymization(self, data, violations, warnings) -> None:
        group = _get(data, "privacy_parameters.group_size")
        if group is not None and group < self.min_group_size:
            violations.append(
                PrivacyViolation(
                    "ANONYMIZATION",
                    "MIN_GROUP_SIZE",
                    f"Group size {group} below minimum {self.min_group_size}",
                    "high",
                    "privacy_parameters.group_size",
                )
            )
        rate = _get(data, "privacy_parameters.suppression_rate")
        if rate is not None and rate > self.max_suppression:
            warnings.append(
                PrivacyWarning(
                    "HIGH_SUPPRESSION_RATE",
                    f"Suppression rate {rate}% exceeds {self.max_suppression}%",
                    "privacy_parameters.suppression_rate",
                )
            )

    def _check_epsilon(self, data, violations, warnings) -> None:
        epsilon = _get(data, "privacy_parameters.epsilon")
        if epsilon is None:
            return
        if epsilon <= 0:
            violations.append(
                PrivacyViolation(
                    "DIFFERENTIAL_PRIVACY",
                    "POSITIVE_EPSILON",
                    "Epsilon must be positive",
                    "critical",
                    "privacy_parameters.epsilon",
                )
            )
        elif epsilon > HIGH_EPSILON:
            warnings.append(
                PrivacyWarning("HIGH_EPSILON", "High epsilon gives weak protection", "privacy_parameters.epsilon")
            )
        elif epsilon < LOW_EPSILON:
            warnings.append(
                PrivacyWarning("LOW_EPSILON", "Very low epsilon destroys utility", "privacy_parameters.epsilon")
            )
        if not _get(data, "privacy_parameters.noise_mechanism"):
            violations.append(
                PrivacyViolation(
                    "DIFFERENTIAL_PRIVACY",
                    "NOISE_MECHANISM",
                    "Differential privacy requires a noise mechanism",
                    "high",
                    "privacy_parameters.noise_mechanism",
                )
            )

    def _check_k(self, data, violations) -> None:
        k = _get(data, "privacy_parameters.k")
        if k is None:
            return
        if isinstance(k, bool) or not isinstance(k, int) or k < 2:
            violations.append(
                PrivacyViolation("K_ANONYMITY", "VALID_K", "k must be an integer >= 2", "critical", "privacy_parameters.k")
            )
            return
        if not _get(data, "privacy_parameters.quasi_identifiers"):
            violations.append(
                PrivacyViolation(
                    "K_ANONYMITY",
                    "QUASI_IDENTIFIERS",
                    "k-anonymity requires quasi-identifiers",
                    "high",
                    "privacy_parameters.quasi_identifiers",
                )
            )
        for i, size in enumerate(_get(data, "privacy_parameters.equivalence_classes") or []):
            if size < k:
                violations.append(
                    PrivacyViolation(
                        "K_ANONYMITY",
                        "EQUIVALENCE_CLASS_SIZE",
                        f"Equivalence class {i} has size {size} < {k}",
                        "high",
                        f"privacy_parameters.equivalence_classes[{i}]",
                    )
                )

    def _check_zero_knowledge(self, data, violations, warnings) -> None:
        for name, proof in (_get(data, "zk_proofs") or {}).items():
            if not isinstance(proof, Mapping) or not proof:
                violations.append(
                    PrivacyViolation(
                        "ZERO_KNOWLEDGE", "VALID_PROOF_STRUCTURE", f"Invalid proof structure for {name}", "high", f"zk_proofs.{name}"
                    )
                )
        for name, commitment in (_get(data, "commitments") or {}).items():
            if not is_valid_commitment(commitment):
                violations.append(
                    PrivacyViolation(
                        "ZERO_KNOWLEDGE", "VALID_COMMITMENT", f"Invalid commitment format for {name}", "high", f"commitments.{name}"
                    )
                )
        if _get(data, "witnesses") is not None:
            warnings.append(
                PrivacyWarning("WITNESS_EXPOSURE", "Witnesses must not be part of public data", "witnesses")
            )


def requirement_met(data: Mapping[str, Any], requirement: str) -> bool:
    if requirement == "differential_privacy":
        epsilon = _get(data, "privacy_parameters.epsilon")
        return epsilon is not None and epsilon > 0
    if requirement == "k_anonymity":
        k = _get(data, "privacy_parameters.k")
        return k is not None and k >= 2
    if requirement == "zero_knowledge":
        return bool(_get(data, "zk_proofs"))
    return False


def anonymized_with(value: Any, method: str) -> bool:
    if method == "hash":
        return is_valid_commitment(value)
    if method == "generalize":
        return isinstance(value, str) and not contains_pii(value)
    if method == "suppress":
        return value is None or value == "*"
    return False


def achieved_level(violations: Sequence[PrivacyViolation], warnings: Sequence[PrivacyWarning]) -> str:
    """none < basic < enhanced < high < maximum, from violation severities."""
    counts = {s: sum(1 for v in violations if v.severity == s) for s in SEVERITIES}
    if counts["critical"]:
        return "none"
    if counts["high"] > 2:
        return "basic"
    if counts["high"] or counts["medium"] > 3:
        return "enhanced"
    if counts["medium"] or len(warnings) > 5:
        return "high"
    return "maximum"

"""
⚠️ DRAFT — requires crypto review before production use

Privacy-preserving release of aggregated credential data.

Levels:
    basic     budget accounting only
    enhanced  differential privacy on every numeric field + k-anonymity
              generalization of quasi-identifiers
    maximum   enhanced + per-user blinding of numeric fields

Every release charges the user's budget through the ledger before any data
is touched.
"""

import copy
import hashlib
import json
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from .blinding import MembershipTag, ValueBlinder
from .budget import PrivacyBudgetLedger
from .config import PRIVACY_LEVELS, PrivacyConfig
from .kanonymity import KAnonymizer
from .noise import make_mechanism, noise_variance

logger = logging.getLogger(__name__)

RELEASE_EPSILON = 1.0
RELEASE_OPERATION = "composition"


# ============================================================================
# NESTED FIELD ACCESS
# ============================================================================


def numeric_fields(data: Dict[str, Any], prefix: str = "") -> List[str]:
    """Dotted paths of every int/float leaf (bools excluded)."""
    paths: List[str] = []
    for key, value in data.items():
        path = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, bool):
            continue
        if isinstance(value, (int, float)):
            paths.append(path)
        elif isinstance(value, dict):
            paths.extend(numeric_fields(value, path))
    return paths


def get_path(data: Dict[str, Any], path: str) -> Any:
    current: Any = data
    for key in path.split("."):
        if not isinstance(current, dict) or key not in current:
            return None
        current = current[key]
    return current


def set_path(data: Dict[str, Any], path: str, value: Any) -> None:
    *parents, last = path.split(".")
    current = data
    for key in parents:
        current = current.setdefault(key, {})
    current[last] = value


def digest(data: Any) -> str:
    return hashlib.sha256(
        json.dumps(data, sort_keys=True, default=str).encode("utf-8")
    ).hexdigest()


# ============================================================================
# RESULT TYPES
# ============================================================================


@dataclass(frozen=True)
class ComplianceFlags:
    gdpr: bool
    ccpa: bool
    hipaa: bool
    iso27001: bool


@dataclass(frozen=True)
class RiskAssessment:
    reidentification_risk: int
    inference_risk: int
    linkage_risk: int
    overall_risk: str  # "low", "medium" or "high"


@dataclass(frozen=True)
class PrivacyGuarantees:
    differential_privacy_level: float
    k_anonymity_level: float
    zero_knowledge_level: float
    overall_privacy_score: int
    compliance: ComplianceFlags
    risk: RiskAssessment


@dataclass(frozen=True)
class PrivacyOperation:
    operation_id: str
    operation_type: str
    parameters: Dict[str, Any]
    privacy_budget_used: float
    timestamp: float
    input_hash: str
    output_hash: str


@dataclass
class PrivacyPreservedData:
    original: Dict[str, Any]
    released: Dict[str, Any]
    level: str
    parameters: Dict[str, Any]
    anonymization_level: float
    guarantees: List[str] = field(default_factory=list)
    membership_tags: List[MembershipTag] = field(default_factory=list)


# ============================================================================
# PIPELINE
# ============================================================================


class PrivacyPipeline:
    def __init__(
        self,
        config: Optional[PrivacyConfig] = None,
        ledger: Optional[PrivacyBudgetLedger] = None,
        rng: Optional[np.random.Generator] = None,
        blinder: Optional[ValueBlinder] = None,
    ):
        self.config = config or PrivacyConfig()
        self.ledger = ledger or PrivacyBudgetLedger.from_config(self.config.budget)
        self.rng = rng if rng is not None else np.random.default_rng()
        self.blinder = blinder or ValueBlinder(set_size=self.config.blinding.set_size)
        self.anonymizer = KAnonymizer(self.config.k_anonymity, self.rng)
        self.operations: List[PrivacyOperation] = []

    def apply(
        self, data: Dict[str, Any], user_id: str, level: Optional[str] = None
    ) -> PrivacyPreservedData:
        """
        Release data at the given privacy level.

        Raises:
            PrivacyBudgetExceeded: If the user cannot afford the release
            ValueError: If the level is unknown
        """
        level = level or self.config.compliance_level
        if level not in PRIVACY_LEVELS:
            raise ValueError(f"Unknown privacy level {level!r}")

        self.ledger.reserve(user_id, RELEASE_EPSILON, RELEASE_OPERATION)

        released = copy.deepcopy(data)
        parameters: Dict[str, Any] = {}
        guarantees: List[str] = []
        tags: List[MembershipTag] = []

        if level in ("enhanced", "maximum"):
            released, parameters["differential_privacy"] = self.differential_privacy(released)
            guarantees.append(
                f"epsilon-differential privacy with epsilon={self.config.differential_privacy.epsilon}"
            )
            released, parameters["k_anonymity"] = self.k_anonymity(released)
            guarantees.append(f"{self.config.k_anonymity.k}-anonymity")

        if level == "maximum" and self.config.blinding.enabled:
            released, parameters["blinding"], tags = self.blind(released, user_id)
            guarantees.append("blinded set membership")

        result = PrivacyPreservedData(
            original=data,
            released=released,
            level=level,
            parameters=parameters,
            anonymization_level=anonymization_level(parameters),
            guarantees=guarantees,
            membership_tags=tags,
        )
        if self.config.audit_trail:
            operation = PrivacyOperation(
                operation_id=f"privacy_op_{uuid.uuid4().hex[:16]}",
                operation_type=RELEASE_OPERATION,
                parameters=parameters,
                privacy_budget_used=RELEASE_EPSILON,
                timestamp=time.time(),
                input_hash=digest(data),
                output_hash=digest(released),
            )
            self.operations.append(operation)
            logger.debug("Privacy operation recorded: %s", operation.operation_id)
        return result

    # ------------------------------------------------------------------
    # Techniques
    # ------------------------------------------------------------------

    def differential_privacy(self, data: Dict[str, Any]) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        dp = self.config.differential_privacy
        mechanism = make_mechanism(dp, self.rng)
        fields = numeric_fields(data)
        for path in fields:
            value = get_path(data, path)
            set_path(data, path, int(round(mechanism.privatize(value, dp.clamping_bounds))))
        return data, {
            "epsilon": dp.epsilon,
            "delta": dp.delta,
            "sensitivity": dp.sensitivity,
            "mechanism": dp.mechanism,
            "fields_processed": len(fields),
            "noise_variance": noise_variance(dp.mechanism, dp.epsilon, dp.sensitivity, dp.delta),
        }

    def k_anonymity(self, data: Dict[str, Any]) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        result = self.anonymizer.anonymize_record(data)
        return result.record, {
            "k": self.config.k_anonymity.k,
            "generalizations": result.generalizations,
            "suppressions": result.suppressions,
            "k_anonymity_score": result.score,
        }

    def blind(
        self, data: Dict[str, Any], user_id: str
    ) -> Tuple[Dict[str, Any], Dict[str, Any], List[MembershipTag]]:
        fields = numeric_fields(data)
        values = {path: get_path(data, path) for path in fields}
        tags = self.blinder.membership_tags(values)
        for path, blinded in self.blinder.blind_fields(user_id, values).items():
            set_path(data, path, blinded)
        return data, {"set_size": self.blinder.set_size, "fields_blinded": len(fields)}, tags

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    @staticmethod
    def guarantees(parameters: Dict[str, Any]) -> PrivacyGuarantees:
        dp = parameters.get("differential_privacy")
        ka = parameters.get("k_anonymity")
        dp_level = max(0.0, 100 - 20 * dp["epsilon"]) if dp else 0.0
        k_level = float(min(100, 15 * ka["k"])) if ka else 0.0
        zk_level = 80.0 if "blinding" in parameters else 0.0
        overall = int(round(0.4 * dp_level + 0.3 * k_level + 0.3 * zk_level))

        compliance = ComplianceFlags(
            gdpr=bool(dp or ka),
            ccpa=bool(dp or ka),
            hipaa=bool(ka and ka["k"] >= 5),
            iso27001=len(parameters) >= 2,
        )
        return PrivacyGuarantees(
            differential_privacy_level=dp_level,
            k_anonymity_level=k_level,
            zero_knowledge_level=zk_level,
            overall_privacy_score=overall,
            compliance=compliance,
            risk=risk_assessment(parameters, overall),
        )


def anonymization_level(parameters: Dict[str, Any]) -> float:
    level = 0.0
    if "differential_privacy" in parameters:
        level += max(0.0, 100 - 20 * parameters["differential_privacy"]["epsilon"])
    if "k_anonymity" in parameters:
        level += min(50, 10 * parameters["k_anonymity"]["k"])
    if "blinding" in parameters:
        level += 30
    return min(100.0, level)


def risk_assessment(parameters: Dict[str, Any], overall_score: int) -> RiskAssessment:
    dp = parameters.get("differential_privacy")
    ka = parameters.get("k_anonymity")
    reidentification = max(0, 100 - overall_score)
    inference = max(0.0, 15 * dp["epsilon"]) if dp else 50.0
    linkage = max(0, 100 - 15 * ka["k"]) if ka else 70
    average = (reidentification + inference + linkage) / 3
    if average < 30:
        overall = "low"
    elif average < 60:
        overall = "medium"
    else:
        overall = "high"
    return RiskAssessment(
        reidentification_risk=int(round(reidentification)),
        inference_risk=int(round(inference)),
        linkage_risk=int(round(linkage)),
        overall_risk=overall,
    )

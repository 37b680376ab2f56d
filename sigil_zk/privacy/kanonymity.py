"""
k-anonymity by generalization and suppression.

Quasi-identifiers are generalized first (language -> family ->
"programming-language", domain -> "technology", numeric experience ->
junior / mid-level / senior). Records whose generalized quasi-identifier
combination occurs fewer than k times are suppressed. Sensitive attributes
of the surviving records are then randomly blanked at the configured
suppression rate.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

import numpy as np
import pandas as pd

from .config import KAnonymityConfig

logger = logging.getLogger(__name__)

LANGUAGE_FAMILIES: Dict[str, Tuple[str, ...]] = {
    "web": ("JavaScript", "TypeScript", "HTML", "CSS"),
    "systems": ("C", "C++", "Rust", "Go"),
    "data": ("Python", "R", "SQL"),
    "mobile": ("Swift", "Kotlin", "Java"),
}

_FAMILY_OF = {lang: family for family, langs in LANGUAGE_FAMILIES.items() for lang in langs}


def generalize_language(value: Any, level: int) -> Any:
    if not isinstance(value, str) or level <= 0:
        return value
    family = _FAMILY_OF.get(value)
    if family is None:
        return "other"
    return "programming-language" if level >= 2 else family


def generalize_domain(value: Any, level: int) -> Any:
    if not isinstance(value, str) or level < 2:
        return value
    return "technology"


def experience_band(value: Any) -> Any:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return value
    if value < 30:
        return "junior"
    if value < 70:
        return "mid-level"
    return "senior"


def generalize_value(field: str, value: Any, level: int = 1) -> Any:
    """Generalize one quasi-identifier value; unknown fields pass through."""
    if field == "language":
        return generalize_language(value, level)
    if field == "domain":
        return generalize_domain(value, level)
    if field == "experience_level" and level > 0:
        return experience_band(value)
    return value


def k_anonymity_score(k: int, generalized: int, suppressed: int) -> int:
    """15 per unit of k, +5 per generalized field, -10 per suppressed field."""
    return max(0, min(100, 15 * k + 5 * generalized - 10 * suppressed))


# ============================================================================
# RESULTS
# ============================================================================


@dataclass
class KAnonymityResult:
    frame: pd.DataFrame
    k: int
    generalized_fields: List[str]
    suppressed_records: int
    suppressed_cells: int
    class_sizes: List[int]
    score: int

    @property
    def is_k_anonymous(self) -> bool:
        return all(size >= self.k for size in self.class_sizes)

    @property
    def suppression_rate(self) -> float:
        total = len(self.frame) + self.suppressed_records
        return self.suppressed_records / total if total else 0.0


@dataclass
class RecordAnonymization:
    record: Dict[str, Any]
    generalizations: Dict[str, Dict[str, Any]]
    suppressions: List[str]
    score: int


# ============================================================================
# ANONYMIZER
# ============================================================================


class KAnonymizer:
    def __init__(
        self,
        config: Optional[KAnonymityConfig] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        self.config = config or KAnonymityConfig()
        self.rng = rng if rng is not None else np.random.default_rng()

    def level(self, field: str) -> int:
        return self.config.generalization_levels.get(field, 1)

    def generalize(self, frame: pd.DataFrame) -> pd.DataFrame:
        out = frame.copy()
        for field in self.config.quasi_identifiers:
            if field in out.columns:
                level = self.level(field)
                out[field] = out[field].map(lambda v, f=field, l=level: generalize_value(f, v, l))
        return out

    def quasi_identifiers_in(self, frame: pd.DataFrame) -> List[str]:
        present = [q for q in self.config.quasi_identifiers if q in frame.columns]
        if not present:
            raise ValueError(
                "none of the quasi-identifiers "
                f"{list(self.config.quasi_identifiers)} appear in the data"
            )
        return present

    def class_sizes(self, frame: pd.DataFrame) -> pd.Series:
        """Size of the equivalence class each row belongs to."""
        qis = self.quasi_identifiers_in(frame)
        if frame.empty:
            return pd.Series([], dtype="int64")
        return frame.groupby(qis, dropna=False)[qis[0]].transform("size")

    def anonymize(
        self, records: Union[pd.DataFrame, Iterable[Mapping[str, Any]]]
    ) -> KAnonymityResult:
        """
        Generalize, suppress small classes, then blank sensitive cells.

        Raises:
            ValueError: If no quasi-identifier column is present
        """
        frame = records if isinstance(records, pd.DataFrame) else pd.DataFrame(list(records))
        qis = self.quasi_identifiers_in(frame)
        generalized = self.generalize(frame)

        sizes = self.class_sizes(generalized)
        keep = sizes >= self.config.k
        dropped = int((~keep).sum())
        result = generalized[keep].reset_index(drop=True)

        cells = 0
        for field in self.config.sensitive_attributes:
            if field not in result.columns or result.empty:
                continue
            mask = self.rng.random(len(result)) < self.config.suppression_threshold
            if mask.any():
                result[field] = result[field].astype(object)
                result.loc[mask, field] = None
                cells += int(mask.sum())

        classes = (
            result.groupby(qis, dropna=False).size().tolist() if not result.empty else []
        )
        if dropped:
            logger.info(
                "k-anonymity (k=%d): suppressed %d of %d records",
                self.config.k,
                dropped,
                len(frame),
            )
        return KAnonymityResult(
            frame=result,
            k=self.config.k,
            generalized_fields=qis,
            suppressed_records=dropped,
            suppressed_cells=cells,
            class_sizes=[int(s) for s in classes],
            score=k_anonymity_score(self.config.k, len(qis), 1 if cells else 0),
        )

    def anonymize_record(self, record: Mapping[str, Any]) -> RecordAnonymization:
        """
        Generalize the quasi-identifiers of a single aggregate and randomly
        suppress its sensitive attributes. No class-size check is possible
        on one record.
        """
        out = dict(record)
        generalizations: Dict[str, Dict[str, Any]] = {}
        for field in self.config.quasi_identifiers:
            if out.get(field) is not None:
                level = self.level(field)
                new = generalize_value(field, out[field], level)
                generalizations[field] = {"original": out[field], "generalized": new, "level": level}
                out[field] = new

        suppressions = []
        for field in self.config.sensitive_attributes:
            if out.get(field) is not None and self.rng.random() < self.config.suppression_threshold:
                out[field] = None
                suppressions.append(field)

        return RecordAnonymization(
            record=out,
            generalizations=generalizations,
            suppressions=suppressions,
            score=k_anonymity_score(self.config.k, len(generalizations), len(suppressions)),
        )

"""
Per-user privacy budget ledger.

The ledger is the one piece of shared mutable state in the system. Epsilon
is tracked in fixed point (1e-6 units) so repeated reservations never
drift, and every reservation is a single locked check-then-record: a
request that does not fit leaves the ledger untouched.
"""

import logging
import math
import threading
import time
import uuid
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional

from ..circuits.exceptions import PrivacyBudgetExceeded
from .config import BudgetConfig

logger = logging.getLogger(__name__)

EPSILON_UNITS = 1_000_000


def to_units(epsilon: float) -> int:
    """Fixed-point units, rounded up so any positive epsilon costs at least one unit."""
    return math.ceil(round(epsilon * EPSILON_UNITS, 6))


def from_units(units: int) -> float:
    return units / EPSILON_UNITS


@dataclass(frozen=True)
class BudgetEntry:
    entry_id: str
    user_id: str
    operation: str
    epsilon: float
    timestamp: float


@dataclass(frozen=True)
class BudgetStatus:
    total: float
    consumed: float
    available: float

    @property
    def utilization_rate(self) -> float:
        return 100 * self.consumed / self.total if self.total else 0.0


class PrivacyBudgetLedger:
    """
    Args:
        total: Epsilon available to each user
        allocation: Default epsilon per operation name
        clock: Timestamp source for history entries
    """

    def __init__(
        self,
        total: float = 10.0,
        allocation: Optional[Mapping[str, float]] = None,
        clock: Callable[[], float] = time.time,
    ):
        if total <= 0:
            raise ValueError(f"total budget must be positive, got {total}")
        # rounded down so the ledger never grants more than the configured total
        self._total = math.floor(round(total * EPSILON_UNITS, 6))
        self.allocation = dict(allocation or {})
        self._clock = clock
        self._consumed: Dict[str, int] = {}
        self._history: List[BudgetEntry] = []
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: BudgetConfig) -> "PrivacyBudgetLedger":
        return cls(total=config.total, allocation=config.allocation)

    @property
    def total(self) -> float:
        return from_units(self._total)

    def reserve(
        self, user_id: str, epsilon: Optional[float] = None, operation: str = "query"
    ) -> BudgetEntry:
        """
        Atomically charge epsilon to a user.

        When epsilon is omitted the operation's allocation is charged.

        Raises:
            PrivacyBudgetExceeded: If the charge does not fit; nothing is
                recorded in that case
            ValueError: If epsilon is not positive or the operation has no
                allocation to fall back on
        """
        if epsilon is None:
            if operation not in self.allocation:
                raise ValueError(f"no epsilon given and no allocation for {operation!r}")
            epsilon = self.allocation[operation]
        if epsilon <= 0:
            raise ValueError(f"epsilon must be positive, got {epsilon}")
        units = to_units(epsilon)

        with self._lock:
            used = self._consumed.get(user_id, 0)
            if used + units > self._total:
                remaining = from_units(self._total - used)
                logger.warning(
                    "Budget rejected for %s: %s requested epsilon=%g, remaining=%g",
                    user_id,
                    operation,
                    epsilon,
                    remaining,
                )
                raise PrivacyBudgetExceeded(user_id, epsilon, remaining)
            self._consumed[user_id] = used + units
            entry = BudgetEntry(
                entry_id=uuid.uuid4().hex,
                user_id=user_id,
                operation=operation,
                epsilon=from_units(units),
                timestamp=self._clock(),
            )
            self._history.append(entry)

        logger.info(
            "Budget reserved for %s: %s epsilon=%g (%g of %g used)",
            user_id,
            operation,
            epsilon,
            from_units(used + units),
            self.total,
        )
        return entry

    def can_spend(self, user_id: str, epsilon: float) -> bool:
        with self._lock:
            return self._consumed.get(user_id, 0) + to_units(epsilon) <= self._total

    def remaining(self, user_id: str) -> float:
        with self._lock:
            return from_units(self._total - self._consumed.get(user_id, 0))

    def status(self, user_id: str) -> BudgetStatus:
        with self._lock:
            used = self._consumed.get(user_id, 0)
        return BudgetStatus(
            total=self.total,
            consumed=from_units(used),
            available=from_units(self._total - used),
        )

    def history(self, user_id: Optional[str] = None) -> List[BudgetEntry]:
        with self._lock:
            entries = list(self._history)
        if user_id is None:
            return entries
        return [e for e in entries if e.user_id == user_id]

    def reset(self, user_id: str) -> None:
        """Administrative reset; the history is kept."""
        with self._lock:
            self._consumed.pop(user_id, None)
        logger.info("Budget reset for %s", user_id)

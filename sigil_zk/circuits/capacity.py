"""
Capacity tier selection for the dynamic language credential.

Capacities are build-time constants: each tier is a separately compiled
circuit. Runtime code only chooses which tier to use.
"""

from __future__ import annotations

import os
from typing import Final

from .config import DEFAULT_LANGUAGE_CAPACITY, LANGUAGE_CAPACITY_TIERS
from .exceptions import CapacityExceeded, ConfigurationError

_VALID_TIERS: Final[tuple[int, ...]] = LANGUAGE_CAPACITY_TIERS
_DEFAULT_TIER: Final[int] = DEFAULT_LANGUAGE_CAPACITY
_ENV_VAR_NAME: Final[str] = "SIGIL_LANGUAGE_CAPACITY"

_capacity_override: int | None = None


def _format_valid_options() -> str:
    return ", ".join(str(tier) for tier in _VALID_TIERS)


def _normalize_capacity(value: int | str | None) -> int | None:
    if value is None or value == "":
        return None

    if isinstance(value, bool):
        raise ValueError(
            f"Invalid capacity: {value!r}. Valid options: {_format_valid_options()}"
        )

    if isinstance(value, str):
        if not value.strip().isdigit():
            raise ValueError(
                f"Invalid capacity: {value!r}. Valid options: {_format_valid_options()}"
            )
        value = int(value.strip())

    if not isinstance(value, int) or value not in _VALID_TIERS:
        raise ValueError(
            f"Invalid capacity: {value!r}. Valid options: {_format_valid_options()}"
        )

    return value


def get_language_capacity(prefer: int | str | None = None) -> int:
    """
    Resolve the language capacity tier in precedence order.

    Args:
        prefer: Optional preferred tier.

    Returns:
        Capacity tier.

    Raises:
        ValueError: If a provided tier is invalid.
    """
    preferred = _normalize_capacity(prefer)
    if preferred is not None:
        return preferred

    if _capacity_override is not None:
        return _capacity_override

    env_tier = _normalize_capacity(os.getenv(_ENV_VAR_NAME))
    if env_tier is not None:
        return env_tier

    return _DEFAULT_TIER


def set_language_capacity(value: int | str | None) -> None:
    """
    Set in-memory capacity override (testing only).

    Args:
        value: Tier to force, or None to clear the override.
    """
    global _capacity_override
    _capacity_override = _normalize_capacity(value)


def smallest_tier_for(count: int) -> int:
    """
    Smallest tier that holds `count` real entries.

    Raises:
        CapacityExceeded: If count is larger than the biggest tier
    """
    for tier in _VALID_TIERS:
        if count <= tier:
            return tier
    raise CapacityExceeded("languages", count, _VALID_TIERS[-1])


def validate_capacity(capacity: int) -> int:
    """
    Raises:
        ConfigurationError: If capacity is not a compiled tier
    """
    if isinstance(capacity, bool) or capacity not in _VALID_TIERS:
        raise ConfigurationError(
            f"Language capacity {capacity!r} is not a compiled tier "
            f"({_format_valid_options()})"
        )
    return capacity

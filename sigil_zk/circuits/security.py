"""
⚠️ DRAFT — requires crypto review before production use

Randomness and hashing for circuit inputs and proof transcripts.

Blinding values for proofs and holder secrets for value blinding all come
from RandomnessSource; transcript and field hashes are SHA3-256 based.
"""

import hashlib
import hmac
import os
import secrets
from typing import Iterable, Optional

from .config import FIELD_PRIME


# ============================================================================
# RANDOMNESS
# ============================================================================


class RandomnessSource:
    """
    OS-backed randomness that reseeds itself after a fork.

    A prover built before a worker process forks would otherwise share its
    generator state with the child.

    Example:
        >>> blinding = RandomnessSource().get_random_field_element()
        >>> 0 < blinding < FIELD_PRIME
        True
    """

    def __init__(self):
        self._reseed()

    def _reseed(self) -> None:
        self._pid = os.getpid()
        self._rng = secrets.SystemRandom()

    def _ensure_same_process(self) -> None:
        if os.getpid() != self._pid:
            self._reseed()

    def get_random_scalar(self, max_value: int) -> int:
        """Uniform integer in [0, max_value)."""
        self._ensure_same_process()
        return self._rng.randrange(0, max_value)

    def get_random_bytes(self, n: int) -> bytes:
        self._ensure_same_process()
        return secrets.token_bytes(n)

    def get_random_field_element(self) -> int:
        """Uniform non-zero field element; zero is the empty-slot sentinel."""
        return 1 + self.get_random_scalar(FIELD_PRIME - 1)


# ============================================================================
# HASHING
# ============================================================================


def hash_to_field(
    data: bytes, domain_sep: Optional[bytes] = None, modulus: int = FIELD_PRIME
) -> int:
    """
    SHA3-256(domain_sep || data) reduced mod `modulus`.

    Raises:
        TypeError: If data or domain_sep is not bytes
        ValueError: If data is empty or modulus <= 1
    """
    if not isinstance(data, bytes):
        raise TypeError(f"data must be bytes, got {type(data)}")
    if not data:
        raise ValueError("cannot hash empty data to a field element")
    if modulus <= 1:
        raise ValueError(f"modulus must be > 1, got {modulus}")
    if domain_sep:
        if not isinstance(domain_sep, bytes):
            raise TypeError(f"domain_sep must be bytes, got {type(domain_sep)}")
        data = domain_sep + data

    return int.from_bytes(hashlib.sha3_256(data).digest(), "big") % modulus


def transcript_digest(domain_sep: bytes, parts: Iterable[bytes]) -> bytes:
    """
    Length-prefixed SHA3-256 digest over a sequence of byte strings.

    Length prefixes prevent two different part lists from encoding to the
    same byte stream.

    Raises:
        ValueError: If the domain separator is empty
        TypeError: If any part is not bytes
    """
    if not isinstance(domain_sep, bytes) or not domain_sep:
        raise ValueError("Domain separator cannot be empty")

    h = hashlib.sha3_256()
    h.update(len(domain_sep).to_bytes(4, "big"))
    h.update(domain_sep)
    for part in parts:
        if not isinstance(part, bytes):
            raise TypeError(f"transcript parts must be bytes, got {type(part)}")
        h.update(len(part).to_bytes(4, "big"))
        h.update(part)
    return h.digest()


def constant_time_compare(a: bytes, b: bytes) -> bool:
    """Compare two byte strings in constant time."""
    return hmac.compare_digest(a, b)

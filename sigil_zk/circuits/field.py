"""
⚠️ DRAFT — requires crypto review before production use

Prime-field helpers and the circuit-native algebraic hash.

The hash is a MiMC-style sponge over the BN254 scalar field:

    E_k(x)  = x_r   where x_0 = x, x_{i+1} = (x_i + k + c_i)^7
    h_0     = arity
    h_{i+1} = E_{h_i}(m_i) + h_i + m_i

The final state is mapped into [1, P-1], so zero is never a hash output and
stays available as the unused-slot sentinel.
"""

from functools import lru_cache
from typing import Sequence, Tuple, Union

from .config import (
    DOMAIN_SEPARATORS,
    FIELD_PRIME,
    FINGERPRINT_BITS,
    HASH_EXPONENT,
    HASH_LIMB_BYTES,
    HASH_MAX_ARITY,
    HASH_ROUND_SEED,
    HASH_ROUNDS,
)
from .security import hash_to_field

P = FIELD_PRIME

FieldLike = Union[int, bool]


def to_field(value: FieldLike) -> int:
    """
    Reduce an integer into the field.

    Negative integers map to their additive inverse (P - |x|), which is how
    circuits represent signed intermediates.

    Raises:
        TypeError: If value is not an int
    """
    if not isinstance(value, int):
        raise TypeError(f"field elements must be int, got {type(value)}")
    return int(value) % P


def field_to_bytes(value: int) -> bytes:
    """Big-endian 32-byte encoding of a field element."""
    return to_field(value).to_bytes(32, "big")


def field_from_bytes(data: bytes) -> int:
    """Decode a big-endian encoding, rejecting values outside the field."""
    if not isinstance(data, (bytes, bytearray)):
        raise TypeError(f"data must be bytes, got {type(data)}")
    value = int.from_bytes(data, "big")
    if value >= P:
        raise ValueError("encoded value is not a canonical field element")
    return value


def to_signed(value: int) -> int:
    """Interpret a field element as a signed integer in (-P/2, P/2]."""
    value = to_field(value)
    return value - P if value > P // 2 else value


# ============================================================================
# ALGEBRAIC HASH
# ============================================================================


@lru_cache(maxsize=1)
def round_constants() -> Tuple[int, ...]:
    """Round constants derived from HASH_ROUND_SEED; c_0 is zero."""
    constants = [0]
    for i in range(1, HASH_ROUNDS):
        constants.append(hash_to_field(HASH_ROUND_SEED + i.to_bytes(4, "big")))
    return tuple(constants)


def _encrypt(x: int, key: int) -> int:
    for c in round_constants():
        x = pow((x + key + c) % P, HASH_EXPONENT, P)
    return (x + key) % P


def algebraic_hash(*elements: FieldLike) -> int:
    """
    Hash a fixed number of field elements.

    Args:
        *elements: 1..HASH_MAX_ARITY integers (reduced into the field)

    Returns:
        Field element in [1, P-1]

    Raises:
        ValueError: If arity is out of bounds
        TypeError: If an element is not an int

    Example:
        >>> h = algebraic_hash(1, 2)
        >>> assert h != 0
        >>> assert h != algebraic_hash(2, 1)
    """
    if not elements:
        raise ValueError("algebraic_hash needs at least one element")
    if len(elements) > HASH_MAX_ARITY:
        raise ValueError(
            f"algebraic_hash arity {len(elements)} exceeds {HASH_MAX_ARITY}"
        )

    state = len(elements)
    for element in elements:
        m = to_field(element)
        state = (_encrypt(m, state) + state + m) % P

    return state % (P - 1) + 1


@lru_cache(maxsize=None)
def domain_tag(name: str) -> int:
    """Field element for a named domain separator."""
    if name not in DOMAIN_SEPARATORS:
        raise ValueError(f"Unknown domain separator: {name!r}")
    return hash_to_field(DOMAIN_SEPARATORS[name])


def bytes_to_limbs(data: bytes) -> Tuple[int, ...]:
    """Split bytes into 31-byte big-endian limbs (each below the field)."""
    if not isinstance(data, (bytes, bytearray)):
        raise TypeError(f"data must be bytes, got {type(data)}")
    return tuple(
        int.from_bytes(data[i:i + HASH_LIMB_BYTES], "big")
        for i in range(0, len(data), HASH_LIMB_BYTES)
    )


def hash_bytes(data: bytes, domain: str = "identity") -> int:
    """
    Hash arbitrary bytes with the algebraic hash.

    Encoding is (domain tag, byte length, limbs...), so inputs of different
    length never share an encoding.
    """
    limbs = bytes_to_limbs(data)
    if len(limbs) + 2 > HASH_MAX_ARITY:
        raise ValueError("data too long for a single algebraic hash")
    return algebraic_hash(domain_tag(domain), len(data), *limbs)


def hash_many(elements: Sequence[int], domain: str) -> int:
    """Hash a variable-length vector as (domain tag, length, elements...)."""
    return algebraic_hash(domain_tag(domain), len(elements), *elements)


def fingerprint(text: str) -> int:
    """
    Non-zero 64-bit fingerprint of a label (language, category name).

    Raises:
        ValueError: If text is empty (empty slots use the zero sentinel)
    """
    if not isinstance(text, str):
        raise TypeError(f"text must be str, got {type(text)}")
    if not text:
        raise ValueError("Cannot fingerprint an empty label")
    digest = hash_bytes(text.encode("utf-8"), domain="fingerprint")
    return digest % ((1 << FINGERPRINT_BITS) - 1) + 1


def address_from_public_key(public_key: bytes) -> int:
    """Signer address: algebraic hash of a raw Ed25519 verify key."""
    return hash_bytes(bytes(public_key), domain="identity")


def address_from_label(label: str) -> int:
    """Address for identities known only by name (e.g. a repository owner)."""
    return hash_bytes(label.encode("utf-8"), domain="identity")


def identity_commitment(address: int) -> int:
    """Owner/user hash compared by the non-ownership constraint."""
    return algebraic_hash(domain_tag("identity"), address)

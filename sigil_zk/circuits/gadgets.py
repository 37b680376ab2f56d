"""
⚠️ DRAFT — requires crypto review before production use

Reusable constraint gadgets.

Every gadget takes the ConstraintSystem being evaluated, computes its
witness values and records the constraints a compiled circuit would carry.
Gadgets that return a bit never fail on their own; the enforce_* variants
raise the matching UnsatisfiedConstraint subclass.

Comparator inputs must fit the declared bit width. A value that does not
(for example a negative number, which wraps to P - |x|) is itself a range
violation.
"""

import math
from typing import List, Sequence, Tuple

from nacl.exceptions import BadSignatureError
from nacl.signing import SigningKey, VerifyKey

from .config import FIELD_PRIME
from .constraints import ConstraintSystem, ConstraintType
from .exceptions import (
    DuplicateClaimViolation,
    InputRangeViolation,
    MerkleProofMismatch,
    SignatureMismatch,
    UnsatisfiedConstraint,
)
from .field import (
    address_from_public_key,
    field_to_bytes,
    hash_many,
    to_field,
    to_signed,
)
from .merkle import hash_node

P = FIELD_PRIME


# ============================================================================
# ARITHMETIC AND BOOLEAN LOGIC
# ============================================================================


def mul(cs: ConstraintSystem, a: int, b: int) -> int:
    cs.record("mul", ConstraintType.MULTIPLICATION)
    return cs.intermediate(a * b)


def is_zero(cs: ConstraintSystem, x: int, label: str = "is_zero") -> int:
    """Return 1 if x == 0 else 0 (inverse-witness construction)."""
    x = to_field(x)
    inv = pow(x, -1, P) if x else 0
    out = (1 - x * inv) % P
    cs.record(f"{label}.inverse", ConstraintType.MULTIPLICATION)
    cs.enforce(x * out % P == 0, f"{label}.product")
    return cs.intermediate(out)


def is_equal(cs: ConstraintSystem, a: int, b: int, label: str = "is_equal") -> int:
    return is_zero(cs, to_field(a) - to_field(b), label)


def bool_and(cs: ConstraintSystem, a: int, b: int) -> int:
    return mul(cs, a, b)


def bool_or(cs: ConstraintSystem, a: int, b: int) -> int:
    return cs.intermediate(a + b - mul(cs, a, b))


def bool_not(cs: ConstraintSystem, a: int) -> int:
    return cs.intermediate(1 - a)


def all_of(cs: ConstraintSystem, bits: Sequence[int]) -> int:
    result = 1
    for bit in bits:
        result = mul(cs, result, bit)
    return result


def any_of(cs: ConstraintSystem, bits: Sequence[int]) -> int:
    none = 1
    for bit in bits:
        none = mul(cs, none, 1 - bit)
    return cs.intermediate(1 - none)


def select(cs: ConstraintSystem, cond: int, if_true: int, if_false: int) -> int:
    """cond ? if_true : if_false, for a boolean cond."""
    return cs.intermediate(if_false + mul(cs, cond, to_field(if_true) - to_field(if_false)))


def total(values: Sequence[int]) -> int:
    """Linear combination; costs no constraints."""
    return sum(values) % P


# ============================================================================
# BIT DECOMPOSITION AND COMPARATORS
# ============================================================================


def num_to_bits(
    cs: ConstraintSystem, x: int, n: int, label: str = "num_to_bits"
) -> List[int]:
    """
    Decompose x into n little-endian bits.

    Raises:
        InputRangeViolation: If x does not fit in n bits
    """
    x = to_field(x)
    cs.enforce(
        x < (1 << n),
        f"{label}.fits",
        InputRangeViolation,
        f"{label}: value does not fit in {n} bits",
        ConstraintType.RANGE,
    )
    cs.record(f"{label}.bits", ConstraintType.BOOLEAN, n)
    return [(x >> i) & 1 for i in range(n)]


def assert_bits(cs: ConstraintSystem, x: int, n: int, label: str) -> None:
    """Range-check x to [0, 2**n) without keeping the bits."""
    num_to_bits(cs, x, n, label)


def _less_than_unchecked(cs: ConstraintSystem, a: int, b: int, n: int, label: str) -> int:
    bits = num_to_bits(cs, to_field(a) + (1 << n) - to_field(b), n + 1, label)
    return cs.intermediate(1 - bits[n])


def less_than(cs: ConstraintSystem, a: int, b: int, n: int, label: str = "lt") -> int:
    """Return 1 if a < b, for n-bit a and b."""
    assert_bits(cs, a, n, f"{label}.a")
    assert_bits(cs, b, n, f"{label}.b")
    return _less_than_unchecked(cs, a, b, n, label)


def less_equal(cs: ConstraintSystem, a: int, b: int, n: int, label: str = "le") -> int:
    return bool_not(cs, less_than(cs, b, a, n, label))


def greater_than(cs: ConstraintSystem, a: int, b: int, n: int, label: str = "gt") -> int:
    return less_than(cs, b, a, n, label)


def greater_equal(cs: ConstraintSystem, a: int, b: int, n: int, label: str = "ge") -> int:
    return bool_not(cs, less_than(cs, a, b, n, label))


def min_value(cs: ConstraintSystem, a: int, b: int, n: int, label: str = "min") -> int:
    return select(cs, less_than(cs, a, b, n, label), a, b)


def max_value(cs: ConstraintSystem, a: int, b: int, n: int, label: str = "max") -> int:
    return select(cs, less_than(cs, a, b, n, label), b, a)


# ============================================================================
# BOUNDED RANGE PROOF
# ============================================================================


def in_range(
    cs: ConstraintSystem, value: int, lo: int, hi: int, n: int, label: str = "range"
) -> int:
    """
    Return 1 iff lo <= value <= hi (both boundaries accept).

    All three operands must fit in n bits.
    """
    above = greater_equal(cs, value, lo, n, f"{label}.lo")
    below = less_equal(cs, value, hi, n, f"{label}.hi")
    return bool_and(cs, above, below)


def enforce_range(
    cs: ConstraintSystem, value: int, lo: int, hi: int, n: int, label: str = "range"
) -> None:
    """
    Require lo <= value <= hi.

    Raises:
        InputRangeViolation: If the value is outside [lo, hi]
    """
    ok = in_range(cs, value, lo, hi, n, label)
    cs.enforce(
        ok == 1,
        label,
        InputRangeViolation,
        f"{label}: value outside declared range [{to_signed(lo)}, {to_signed(hi)}]",
        ConstraintType.RANGE,
    )


def enforce_true(
    cs: ConstraintSystem,
    bit: int,
    label: str,
    error_cls=UnsatisfiedConstraint,
    message: str = "",
) -> None:
    cs.enforce(bit == 1, label, error_cls, message)


# ============================================================================
# INTEGER DIVISION, SQUARE ROOT, SIGNED MAGNITUDE
# ============================================================================


def div_floor(
    cs: ConstraintSystem, a: int, b: int, n: int, label: str = "div"
) -> int:
    """
    floor(a / b) for n-bit a and non-zero n-bit b.

    The prover supplies (q, r); the circuit checks a == q*b + r and r < b.
    """
    a, b = to_field(a), to_field(b)
    assert_bits(cs, a, n, f"{label}.a")
    cs.enforce(is_zero(cs, b, f"{label}.b") == 0, f"{label}.nonzero_divisor")
    q, r = divmod(a, b)
    cs.enforce_equal(q * b + r, a, f"{label}.quotient")
    cs.enforce(
        less_than(cs, r, b, n, f"{label}.remainder") == 1, f"{label}.remainder_bound"
    )
    return cs.intermediate(q)


def safe_divisor(cs: ConstraintSystem, x: int, label: str = "safe_divisor") -> int:
    """x, or 1 when x is zero (guards averages over empty sets)."""
    return cs.intermediate(x + is_zero(cs, x, label))


def isqrt(cs: ConstraintSystem, x: int, n: int, label: str = "isqrt") -> int:
    """floor(sqrt(x)) for n-bit x; checks s^2 <= x < (s+1)^2."""
    x = to_field(x)
    assert_bits(cs, x, n, f"{label}.x")
    s = math.isqrt(x)
    square = mul(cs, s, s)
    next_square = mul(cs, s + 1, s + 1)
    cs.enforce(
        less_equal(cs, square, x, n + 1, f"{label}.lower") == 1, f"{label}.lower_bound"
    )
    cs.enforce(
        less_than(cs, x, next_square, n + 1, f"{label}.upper") == 1, f"{label}.upper_bound"
    )
    return cs.intermediate(s)


def signed_abs(
    cs: ConstraintSystem, x: int, n: int, label: str = "abs"
) -> Tuple[int, int]:
    """
    Split a signed field element into (|x|, sign bit).

    Raises:
        InputRangeViolation: If |x| does not fit in n bits
    """
    x = to_field(x)
    negative = 1 if to_signed(x) < 0 else 0
    magnitude = (P - x) % P if negative else x
    cs.enforce_boolean(negative, f"{label}.sign")
    assert_bits(cs, magnitude, n, f"{label}.magnitude")
    cs.enforce_equal(
        select(cs, negative, P - magnitude, magnitude), x, f"{label}.recompose"
    )
    return cs.intermediate(magnitude), negative


def apply_sign(cs: ConstraintSystem, magnitude: int, negative: int) -> int:
    return select(cs, negative, P - to_field(magnitude), magnitude)


# ============================================================================
# MERKLE MEMBERSHIP
# ============================================================================


def merkle_root(
    cs: ConstraintSystem,
    leaf: int,
    siblings: Sequence[int],
    directions: Sequence[int],
    label: str = "merkle",
) -> int:
    """
    Recompute the root from a leaf and its sibling path.

    Direction bit 1 means the sibling sits on the left at that level.
    """
    if len(siblings) != len(directions):
        raise ValueError("siblings and directions must have equal length")
    cs.enforce_booleans(directions, f"{label}.direction")
    current = to_field(leaf)
    for level, (sibling, direction) in enumerate(zip(siblings, directions)):
        left = select(cs, direction, sibling, current)
        right = select(cs, direction, current, sibling)
        current = hash_node(left, right)
        cs.record(f"{label}.node[{level}]", ConstraintType.HASH)
    return current


def verify_merkle_membership(
    cs: ConstraintSystem,
    leaf: int,
    root: int,
    siblings: Sequence[int],
    directions: Sequence[int],
    label: str = "merkle",
) -> int:
    """Return 1 iff the path resolves to root."""
    computed = merkle_root(cs, leaf, siblings, directions, label)
    return is_equal(cs, computed, root, f"{label}.root")


def enforce_merkle_membership(
    cs: ConstraintSystem,
    leaf: int,
    root: int,
    siblings: Sequence[int],
    directions: Sequence[int],
    label: str = "merkle",
) -> None:
    """
    Raises:
        MerkleProofMismatch: If the path does not resolve to root
    """
    ok = verify_merkle_membership(cs, leaf, root, siblings, directions, label)
    cs.enforce(
        ok == 1, label, MerkleProofMismatch, f"{label}: path does not resolve to root"
    )


# ============================================================================
# DUPLICATE-FREE SET MEMBERSHIP
# ============================================================================


def duplicate_count(
    cs: ConstraintSystem,
    hashes: Sequence[int],
    flags: Sequence[int],
    label: str = "distinct",
) -> int:
    """
    Count active pairs that share a hash.

    Each pair contributes flag_i * flag_j * (h_i == h_j), so inactive
    slots never count.
    """
    if len(hashes) != len(flags):
        raise ValueError("hashes and flags must have equal length")
    cs.enforce_booleans(flags, f"{label}.flag")
    counter = 0
    for i in range(len(hashes)):
        for j in range(i + 1, len(hashes)):
            both = bool_and(cs, flags[i], flags[j])
            same = is_equal(cs, hashes[i], hashes[j], f"{label}.eq[{i},{j}]")
            counter += mul(cs, both, same)
    return counter % P


def enforce_distinct(
    cs: ConstraintSystem,
    hashes: Sequence[int],
    flags: Sequence[int],
    label: str = "distinct",
) -> None:
    """
    Raises:
        DuplicateClaimViolation: If two active entries share a hash
    """
    duplicates = duplicate_count(cs, hashes, flags, label)
    cs.enforce(
        duplicates == 0,
        label,
        DuplicateClaimViolation,
        f"{label}: two active entries share the same hash",
    )


def enforce_sentinel_slots(
    cs: ConstraintSystem,
    hashes: Sequence[int],
    flags: Sequence[int],
    label: str = "slots",
) -> None:
    """Active slots hold a non-zero hash; inactive slots hold the zero sentinel."""
    for i, (h, flag) in enumerate(zip(hashes, flags)):
        empty = is_zero(cs, h, f"{label}.zero[{i}]")
        cs.enforce(mul(cs, flag, empty) == 0, f"{label}.active_nonzero[{i}]")
        cs.enforce(mul(cs, 1 - flag, h) == 0, f"{label}.inactive_sentinel[{i}]")


def count_active(cs: ConstraintSystem, flags: Sequence[int], label: str = "mask") -> int:
    cs.enforce_booleans(flags, f"{label}.flag")
    return total(flags)


# ============================================================================
# ORDERING AND PERMUTATION
# ============================================================================


def enforce_non_increasing(
    cs: ConstraintSystem, values: Sequence[int], n: int, label: str = "sorted"
) -> None:
    for i in range(len(values) - 1):
        ok = greater_equal(cs, values[i], values[i + 1], n, f"{label}[{i}]")
        cs.enforce(ok == 1, f"{label}.order[{i}]")


def enforce_permutation(
    cs: ConstraintSystem,
    original: Sequence[int],
    permuted: Sequence[int],
    label: str = "permutation",
) -> None:
    """
    Grand-product multiset check: prod(r - a_i) == prod(r - b_i).

    The challenge r is derived from both vectors, so the prover cannot pick
    it after choosing a non-permutation.
    """
    if len(original) != len(permuted):
        raise ValueError("permutation vectors must have equal length")
    challenge = hash_many(list(original) + list(permuted), "permutation")
    lhs, rhs = 1, 1
    for a, b in zip(original, permuted):
        lhs = mul(cs, lhs, challenge - a) % P
        rhs = mul(cs, rhs, challenge - b) % P
    cs.enforce(lhs == rhs, label)


# ============================================================================
# SIGNATURE VERIFICATION
# ============================================================================


def verify_signature(
    cs: ConstraintSystem,
    message_hash: int,
    signature: bytes,
    public_key: bytes,
    signer_address: int,
    label: str = "signature",
) -> int:
    """
    Return 1 iff public_key hashes to signer_address and signature is a
    valid Ed25519 signature over the 32-byte encoding of message_hash.
    """
    address_ok = is_equal(
        cs, address_from_public_key(public_key), signer_address, f"{label}.address"
    )
    cs.record(label, ConstraintType.SIGNATURE)
    try:
        VerifyKey(bytes(public_key)).verify(field_to_bytes(message_hash), bytes(signature))
        signature_ok = 1
    except (BadSignatureError, ValueError, TypeError):
        signature_ok = 0
    return bool_and(cs, address_ok, signature_ok)


def enforce_signature(
    cs: ConstraintSystem,
    message_hash: int,
    signature: bytes,
    public_key: bytes,
    signer_address: int,
    label: str = "signature",
) -> None:
    """
    Raises:
        SignatureMismatch: If the signature does not bind signer to message
    """
    ok = verify_signature(cs, message_hash, signature, public_key, signer_address, label)
    cs.enforce(ok == 1, label, SignatureMismatch, f"{label}: signature does not verify")


def sign_message(signing_key: SigningKey, message_hash: int) -> bytes:
    """Off-circuit helper: Ed25519 signature over a field element."""
    return signing_key.sign(field_to_bytes(message_hash)).signature

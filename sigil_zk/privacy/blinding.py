"""
⚠️ DRAFT — requires crypto review before production use

Value blinding for the maximum privacy level.

Each (user, field) pair gets its own blinding factor derived with HKDF
from a holder secret. A blinded value is a one-way reduction of the value
and its factor; it cannot be inverted, only recomputed by the holder.
"""

import hashlib
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from ..circuits.security import RandomnessSource

BLINDING_FACTOR_BYTES = 32
BLINDED_MODULUS = 1000
HKDF_SALT = b"SIGIL_ZK_V1_BLINDING"


def derive_blinding_factor(
    secret: bytes, user_id: str, field: str, length: int = BLINDING_FACTOR_BYTES
) -> bytes:
    """HKDF-SHA256(secret) with the user and field as context."""
    if not isinstance(secret, bytes) or len(secret) < 16:
        raise ValueError("blinding secret must be at least 16 bytes")
    info = b"sigil-blinding:" + user_id.encode("utf-8") + b":" + field.encode("utf-8")
    return HKDF(
        algorithm=hashes.SHA256(),
        length=length,
        salt=HKDF_SALT,
        info=info,
    ).derive(secret)


def blind_value(value: Any, factor: bytes, modulus: int = BLINDED_MODULUS) -> int:
    """First 32 bits of sha256("<value>_<factor hex>"), reduced mod modulus."""
    digest = hashlib.sha256(f"{value}_{factor.hex()}".encode("utf-8")).hexdigest()
    return int(digest[:8], 16) % modulus


@dataclass(frozen=True)
class MembershipTag:
    field: str
    set_size: int
    proof_hash: str


class ValueBlinder:
    """
    Example:
        >>> blinder = ValueBlinder(secret=b"\\x01" * 32)
        >>> blinder.blind("alice", "score", 87) == blinder.blind("alice", "score", 87)
        True
    """

    def __init__(self, secret: Optional[bytes] = None, set_size: int = 1000):
        self._secret = secret if secret is not None else RandomnessSource().get_random_bytes(32)
        self.set_size = set_size

    def factor(self, user_id: str, field: str) -> bytes:
        return derive_blinding_factor(self._secret, user_id, field)

    def blind(self, user_id: str, field: str, value: Any) -> int:
        return blind_value(value, self.factor(user_id, field))

    def blind_fields(self, user_id: str, values: Mapping[str, Any]) -> Dict[str, int]:
        return {field: self.blind(user_id, field, value) for field, value in values.items()}

    def membership_tags(self, values: Mapping[str, Any]) -> List[MembershipTag]:
        return [
            MembershipTag(
                field=field,
                set_size=self.set_size,
                proof_hash=hashlib.sha256(
                    f"{field}_{value}_{self.set_size}".encode("utf-8")
                ).hexdigest(),
            )
            for field, value in values.items()
        ]

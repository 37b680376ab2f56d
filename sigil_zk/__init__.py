"""
Privacy-preserving developer credentials.

Repository and commit records are analyzed into contribution metrics,
released under differential privacy and k-anonymity, and packed into
arithmetic circuits whose proofs attest to a claim without revealing the
underlying repositories.

⚠️  EXPERIMENTAL - the proving backend is simulated, not zero-knowledge sound
"""

__version__ = "0.1.0"

DISCLAIMER = (
    "sigil-zk is experimental. Proofs come from a simulated transcript "
    "backend and must not be relied on as zero-knowledge proofs."
)


def print_disclaimer() -> None:
    print(f"⚠️  {DISCLAIMER}")

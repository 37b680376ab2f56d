"""
End-to-end credential scenarios.

Each scenario packs inputs the way a holder would, proves, and verifies
with a fresh prover instance.
"""
import pytest
from nacl.signing import SigningKey

from sigil_zk.circuits.aggregation import StatisticsAggregator
from sigil_zk.circuits.credentials import RepositoryCredential
from sigil_zk.circuits.exceptions import InputRangeViolation, PrivacyBudgetExceeded
from sigil_zk.circuits.packer import pack_repository_credential, pack_statistics
from sigil_zk.circuits.prover import TranscriptProver
from sigil_zk.circuits.types import Proof
from sigil_zk.privacy import PrivacyBudgetLedger

CAPACITIES = {"commit_capacity": 128, "language_capacity": 10, "collaborator_capacity": 16}
LANGUAGES = [("Python", 4000), ("Rust", 2500), ("Go", 1200), ("Shell", 600), ("TypeScript", 300)]
SIGNING_KEY = SigningKey(b"\x11" * 32)


def _repository_inputs(commit_count):
    return pack_repository_credential(
        signing_key=SIGNING_KEY,
        repository="octo/widgets",
        owner="octo",
        commits=[(f"{i:040x}", 30 + i % 7, i % 3) for i in range(commit_count)],
        languages=LANGUAGES,
        collaborator_ids=["bob-hash", "carol-hash", "dave-hash"],
        contribution_percentage=40,
        commit_range=(100, 200),
        loc_range=(1000, 100000),
        min_language_lines=200,
        collaborator_range=(2, 10),
        min_collaboration_score=50,
        timestamp=1700000000,
        **CAPACITIES,
    )


class TestRepositoryScenarios:
    """Repository credential proved over a full commit history."""

    def test_claim_in_range_proves_and_verifies(self):
        circuit = RepositoryCredential(**CAPACITIES)
        public, private = _repository_inputs(120)

        proof = TranscriptProver().prove(circuit, public, private)
        assert proof.public_signals[0] == 1
        received = Proof.deserialize(proof.serialize())
        assert TranscriptProver().verify(received, expected_circuit_id=circuit.artifact_id)

        again = TranscriptProver().prove(circuit, *_repository_inputs(120))
        assert again.credential_hash == proof.credential_hash

    def test_claim_outside_range_produces_no_proof(self):
        with pytest.raises(InputRangeViolation):
            _repository_inputs(80)

    def test_circuit_rejects_forged_range(self):
        circuit = RepositoryCredential(**CAPACITIES)
        public, private = _repository_inputs(120)
        with pytest.raises(InputRangeViolation):
            TranscriptProver().prove(circuit, {**public, "max_commits": 110}, private)


class TestStatisticsScenario:
    """Statistics over lines-of-code values with one extreme value."""

    def test_outlier_is_flagged_and_excluded(self):
        values = [120] * 9 + [1200]
        public, private = pack_statistics(
            values=values,
            domain=(0, 5000),
            outlier_threshold=300,
            epsilon=1.0,
            sensitivity=1000,
            noise_seed=7,
            capacity=16,
        )
        circuit = StatisticsAggregator(capacity=16)
        witness = circuit.generate_witness(public, private)

        assert witness.output("outlier_count") == 1
        mean = witness.output("mean")
        robust = witness.output("robust_mean")
        assert abs(mean - robust) > 0.05 * mean

        prover = TranscriptProver()
        assert prover.verify(prover.prove(circuit, public, private))


class TestBudgetScenario:
    """Privacy budget of 10 spent in allocations of 2."""

    def test_sixth_allocation_rejected(self):
        ledger = PrivacyBudgetLedger(total=10.0)
        for operation in ("consistency", "diversity", "proficiency", "collaboration", "aggregation"):
            ledger.reserve("alice", 2.0, operation)
        assert ledger.remaining("alice") == 0.0

        with pytest.raises(PrivacyBudgetExceeded):
            ledger.reserve("alice", 1e-6, "extra")
        assert len(ledger.history("alice")) == 5

"""
Tests for the collaboration credential and its score.
"""

import pytest

from ...exceptions import DuplicateClaimViolation, InputRangeViolation
from ...field import address_from_label
from ...packer import pack_collaboration_credential
from ..collaboration import CollaborationCredential, collaboration_score

USER = address_from_label("alice")


def _prove(collaborators, pct, collaborator_range=(1, 10), min_score=0, capacity=8):
    public, private = pack_collaboration_credential(
        user_address=USER,
        collaborator_ids=collaborators,
        contribution_percentage=pct,
        collaborator_range=collaborator_range,
        min_collaboration_score=min_score,
        timestamp=1700000000,
        capacity=capacity,
    )
    return CollaborationCredential(capacity=capacity).generate_witness(public, private)


@pytest.mark.parametrize(
    "collaborators,pct,score",
    [
        (1, 90, 0),
        (2, 60, 60),
        (3, 40, 90),
        (3, 75, 50),
        (5, 30, 100),
        (6, 85, 40),
        (4, 5, 70),
    ],
)
def test_score_table(collaborators, pct, score):
    assert collaboration_score(collaborators, pct) == score


class TestCollaborationCredential:
    """Tests for CollaborationCredential witness generation."""

    @pytest.mark.parametrize("count,pct", [(2, 60), (3, 40), (5, 30), (4, 75), (1, 85)])
    def test_circuit_matches_score(self, count, pct):
        witness = _prove([f"dev{i}" for i in range(count)], pct)
        assert witness.output("is_valid") == 1
        assert witness.output("collaboration_score") == collaboration_score(count, pct)

    def test_score_below_minimum(self):
        with pytest.raises(InputRangeViolation):
            _prove(["a", "b"], 60, min_score=80)

    def test_sole_contributor(self):
        with pytest.raises(InputRangeViolation):
            _prove(["a", "b"], 100)

    def test_count_outside_range(self):
        with pytest.raises(InputRangeViolation):
            CollaborationCredential(capacity=8).generate_witness(
                *_packed_with_range(["a", "b", "c"], (1, 2))
            )

    def test_duplicate_collaborator(self):
        with pytest.raises(DuplicateClaimViolation):
            _prove(["a", "b", "a"], 40)


def _packed_with_range(collaborators, collaborator_range):
    public, private = pack_collaboration_credential(
        user_address=USER,
        collaborator_ids=collaborators,
        contribution_percentage=40,
        collaborator_range=(1, 10),
        min_collaboration_score=0,
        timestamp=1700000000,
        capacity=8,
    )
    public = {
        **public,
        "min_collaborators": collaborator_range[0],
        "max_collaborators": collaborator_range[1],
    }
    return public, private

"""
⚠️ DRAFT — requires crypto review before production use

Repository contribution credential.

Composes six sub-claims over one repository:

1. every active commit leaf H(commit_hash, additions, deletions) is a member
   of the commit tree under the public root, and the active commit count
   lies in the public commit range
2. total LOC is the exact sum of per-commit deltas and lies in the public
   LOC range
3. the language sub-claim (see language.py)
4. the collaboration sub-claim (see collaboration.py)
5. non-ownership: H(user) differs from the public owner hash
6. an Ed25519 signature by the user over H(repo_hash, commit_root)

is_valid is the AND of the six results. Any failing sub-claim makes the
witness unsatisfiable; there is no partial credit.

Active commit slots come first and their leaf indices strictly increase,
so one commit cannot be counted twice.
"""

from typing import Any, List, Mapping, Optional

from ..base import Circuit, check_capacity, require, require_vector
from ..capacity import get_language_capacity, validate_capacity
from ..config import (
    COUNT_BITS,
    DEFAULT_COLLABORATOR_CAPACITY,
    DEFAULT_COMMIT_CAPACITY,
    LOC_BITS,
)
from ..constraints import ConstraintSystem
from ..exceptions import (
    DuplicateClaimViolation,
    InputRangeViolation,
    MerkleProofMismatch,
    SignatureMismatch,
    UnsatisfiedConstraint,
)
from ..field import bytes_to_limbs, hash_many, identity_commitment
from ..gadgets import (
    all_of,
    assert_bits,
    bool_not,
    count_active,
    enforce_true,
    in_range,
    is_equal,
    less_than,
    mul,
    total,
    verify_merkle_membership,
    verify_signature,
)
from ..merkle import hash_leaf, tree_depth
from ..statements import CircuitId
from .collaboration import enforce_collaboration_claim
from .language import enforce_language_claim


def signature_message(repo_hash: int, commit_root: int) -> int:
    """Message the user signs to bind themselves to a repository snapshot."""
    return hash_many([repo_hash, commit_root], "signature_message")


class RepositoryCredential(Circuit):
    """
    Example:
        >>> circuit = RepositoryCredential(commit_capacity=128, language_capacity=10)
        >>> witness = circuit.generate_witness(public, private)
        >>> assert witness.output("is_valid") == 1
    """

    circuit_id = CircuitId.REPOSITORY_CREDENTIAL
    capacity_params = ("commit_capacity", "language_capacity", "collaborator_capacity")

    def __init__(
        self,
        commit_capacity: int = DEFAULT_COMMIT_CAPACITY,
        language_capacity: Optional[int] = None,
        collaborator_capacity: int = DEFAULT_COLLABORATOR_CAPACITY,
    ):
        self.commit_capacity = check_capacity("commit_capacity", commit_capacity)
        self.language_capacity = validate_capacity(
            get_language_capacity(language_capacity)
        )
        self.collaborator_capacity = check_capacity(
            "collaborator_capacity", collaborator_capacity
        )
        self.depth = tree_depth(self.commit_capacity)

    # ------------------------------------------------------------------
    # Sub-claims
    # ------------------------------------------------------------------

    def _commit_membership(
        self, cs: ConstraintSystem, commit_root: int, private_inputs: Mapping[str, Any]
    ) -> tuple:
        n, depth = self.commit_capacity, self.depth
        hashes = cs.private("commit_hashes", require_vector(private_inputs, "commit_hashes", n))
        additions = cs.private(
            "commit_additions", require_vector(private_inputs, "commit_additions", n)
        )
        deletions = cs.private(
            "commit_deletions", require_vector(private_inputs, "commit_deletions", n)
        )
        mask = cs.private("commit_mask", require_vector(private_inputs, "commit_mask", n))
        siblings = cs.private(
            "merkle_siblings", require_vector(private_inputs, "merkle_siblings", n * depth)
        )
        directions = cs.private(
            "merkle_directions",
            require_vector(private_inputs, "merkle_directions", n * depth),
        )

        count = count_active(cs, mask, "commits.mask")
        member_bits: List[int] = []
        indices: List[int] = []
        for i in range(n):
            path = slice(i * depth, (i + 1) * depth)
            leaf = hash_leaf(hashes[i], additions[i], deletions[i])
            member = verify_merkle_membership(
                cs, leaf, commit_root, siblings[path], directions[path], f"commits.merkle[{i}]"
            )
            # inactive slots are vacuously members
            member_bits.append(cs.intermediate(1 - mul(cs, mask[i], 1 - member)))
            indices.append(
                total([bit << level for level, bit in enumerate(directions[path])])
            )

        for i in range(n - 1):
            # active slots form a prefix
            cs.enforce(mul(cs, mask[i + 1], 1 - mask[i]) == 0, f"commits.prefix[{i}]")
            ordered = less_than(cs, indices[i], indices[i + 1], depth + 1, f"commits.order[{i}]")
            cs.enforce(
                mul(cs, mask[i + 1], 1 - ordered) == 0,
                f"commits.order[{i}]",
                DuplicateClaimViolation,
                f"commits: slot {i + 1} repeats or precedes an earlier leaf",
            )

        membership = all_of(cs, member_bits)
        enforce_true(
            cs,
            membership,
            "commits.membership",
            MerkleProofMismatch,
            "commits: an active leaf is not a member of the commit tree",
        )

        deltas = []
        for i in range(n):
            assert_bits(cs, additions[i], LOC_BITS, f"commits.additions[{i}]")
            assert_bits(cs, deletions[i], LOC_BITS, f"commits.deletions[{i}]")
            deltas.append(mul(cs, mask[i], additions[i] + deletions[i]))
        return membership, count, total(deltas)

    def synthesize(
        self,
        cs: ConstraintSystem,
        public_inputs: Mapping[str, Any],
        private_inputs: Mapping[str, Any],
    ) -> None:
        public = {name: cs.public(name, public_inputs[name]) for name in self.spec.public_input_schema}

        user = cs.private("user_address", require(private_inputs, "user_address"))
        public_key = bytes(require(private_inputs, "public_key"))
        signature = bytes(require(private_inputs, "signature"))
        cs.private("public_key", list(bytes_to_limbs(public_key)))
        cs.private("signature", list(bytes_to_limbs(signature)))

        # (1) commit membership and count
        membership, commit_count, loc = self._commit_membership(
            cs, public["commit_root"], private_inputs
        )
        count_ok = in_range(
            cs, commit_count, public["min_commits"], public["max_commits"], COUNT_BITS, "commits.count"
        )
        enforce_true(
            cs,
            count_ok,
            "commits.count",
            InputRangeViolation,
            f"commits: {commit_count} active commits outside the declared range",
        )
        commits_ok = all_of(cs, [membership, count_ok])

        # (2) lines of code
        loc_ok = in_range(cs, loc, public["min_loc"], public["max_loc"], LOC_BITS, "loc")
        enforce_true(
            cs, loc_ok, "loc", InputRangeViolation, "loc: total outside the declared range"
        )

        # (3) languages
        m = self.language_capacity
        language_fingerprint = enforce_language_claim(
            cs,
            cs.private("language_hashes", require_vector(private_inputs, "language_hashes", m)),
            cs.private("language_lines", require_vector(private_inputs, "language_lines", m)),
            cs.private("language_mask", require_vector(private_inputs, "language_mask", m)),
            cs.private("language_sorted", require_vector(private_inputs, "language_sorted", m)),
            public["language_count"],
            public["min_language_lines"],
        )
        languages_ok = 1

        # (4) collaboration
        c = self.collaborator_capacity
        score = enforce_collaboration_claim(
            cs,
            cs.private(
                "collaborator_hashes", require_vector(private_inputs, "collaborator_hashes", c)
            ),
            cs.private(
                "collaborator_mask", require_vector(private_inputs, "collaborator_mask", c)
            ),
            cs.private(
                "contribution_percentage", require(private_inputs, "contribution_percentage")
            ),
            public["min_collaborators"],
            public["max_collaborators"],
            public["min_collaboration_score"],
        )
        collaboration_ok = 1

        # (5) non-ownership
        is_not_owner = bool_not(
            cs, is_equal(cs, identity_commitment(user), public["owner_hash"], "ownership")
        )
        enforce_true(
            cs,
            is_not_owner,
            "ownership",
            UnsatisfiedConstraint,
            "ownership: user address matches the repository owner",
        )

        # (6) signature binding user to repository snapshot
        signed = verify_signature(
            cs,
            signature_message(public["repo_hash"], public["commit_root"]),
            signature,
            public_key,
            user,
        )
        enforce_true(
            cs, signed, "signature", SignatureMismatch, "signature: does not verify"
        )

        is_valid = all_of(
            cs, [commits_ok, loc_ok, languages_ok, collaboration_ok, is_not_owner, signed]
        )

        cs.output("is_valid", is_valid)
        cs.output("is_not_owner", is_not_owner)
        cs.output("language_set_fingerprint", language_fingerprint)
        cs.output("collaboration_score", score)
        cs.output(
            "credential_hash",
            self.credential_hash(
                user,
                [
                    public["repo_hash"],
                    public["commit_root"],
                    public["min_commits"],
                    public["max_commits"],
                    public["min_loc"],
                    public["max_loc"],
                    language_fingerprint,
                    score,
                    is_not_owner,
                ],
                public["timestamp"],
            ),
        )

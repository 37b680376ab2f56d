"""
Tests for circuit input packing and fail-fast validation.
"""

import pytest

from ..exceptions import CapacityExceeded, InputRangeViolation
from ..field import P
from ..merkle import compute_root, hash_leaf, tree_depth
from ..packer import (
    build_collaborator_inputs,
    build_commit_inputs,
    build_language_inputs,
    check_field_elements,
    pack_statistics,
    pad,
    precheck_range,
)


class TestPadding:
    """Tests for fixed-capacity padding."""

    def test_pads_with_sentinel(self):
        assert pad([3, 4], 4, "things") == [3, 4, 0, 0]

    def test_exact_capacity(self):
        assert pad([1, 2, 3], 3, "things") == [1, 2, 3]

    def test_overflow_is_never_truncated(self):
        with pytest.raises(CapacityExceeded) as exc_info:
            pad([1, 2, 3], 2, "things")
        assert exc_info.value.count == 3
        assert exc_info.value.capacity == 2


class TestValidation:
    """Tests for pre-circuit checks."""

    def test_field_elements(self):
        check_field_elements("v", [0, 1, P - 1])
        for bad in ([-1], [P], [1.5], [True]):
            with pytest.raises(ValueError):
                check_field_elements("v", bad)

    def test_precheck_range(self):
        precheck_range("x", 5, 5, 10)
        with pytest.raises(InputRangeViolation) as exc_info:
            precheck_range("x", 11, 5, 10)
        assert exc_info.value.label == "x"

    def test_empty_range(self):
        with pytest.raises(ValueError):
            precheck_range("x", 5, 10, 5)


class TestSlotBuilders:
    """Tests for commit, language and collaborator slot builders."""

    def test_commit_paths_lead_to_root(self):
        commits = [(f"sha{i}", i, 1) for i in range(5)]
        packed = build_commit_inputs(commits, capacity=8)
        depth = tree_depth(8)
        assert len(packed["merkle_siblings"]) == 8 * depth
        assert packed["commit_mask"] == [1] * 5 + [0] * 3
        for i in range(5):
            siblings = packed["merkle_siblings"][i * depth:(i + 1) * depth]
            directions = packed["merkle_directions"][i * depth:(i + 1) * depth]
            leaf = hash_leaf(
                packed["commit_hashes"][i],
                packed["commit_additions"][i],
                packed["commit_deletions"][i],
            )
            path = [(s, bool(d)) for s, d in zip(siblings, directions)]
            assert compute_root(leaf, path) == packed["commit_root"]

    def test_commit_overflow(self):
        with pytest.raises(CapacityExceeded):
            build_commit_inputs([(f"sha{i}", 1, 1) for i in range(9)], capacity=8)

    def test_language_slots(self):
        packed = build_language_inputs([("Python", 10), ("Rust", 20)], capacity=5)
        assert packed["language_mask"] == [1, 1, 0, 0, 0]
        assert packed["language_sorted"] == sorted(packed["language_hashes"], reverse=True)
        assert packed["language_sorted"][-3:] == [0, 0, 0]

    def test_duplicate_language_rejected(self):
        with pytest.raises(ValueError):
            build_language_inputs([("Python", 10), ("Python", 20)], capacity=5)

    def test_fifty_one_languages_overflow(self):
        languages = [(f"lang{i}", 100) for i in range(51)]
        with pytest.raises(CapacityExceeded):
            build_language_inputs(languages, capacity=50)

    def test_collaborator_slots(self):
        packed = build_collaborator_inputs(["a", "b"], capacity=4)
        assert packed["collaborator_mask"] == [1, 1, 0, 0]
        assert packed["collaborator_hashes"][2:] == [0, 0]


class TestStatisticsPacking:
    """Tests for the statistics packer."""

    def test_epsilon_is_fixed_point(self):
        public, private = pack_statistics(
            values=[1, 2, 3],
            domain=(0, 10),
            outlier_threshold=5,
            epsilon=0.5,
            sensitivity=1,
            noise_seed=7,
            capacity=4,
        )
        assert public["epsilon"] == 500
        assert private["weights"] == [1, 1, 1, 0]

    def test_value_outside_domain(self):
        with pytest.raises(InputRangeViolation):
            pack_statistics(
                values=[1, 20],
                domain=(0, 10),
                outlier_threshold=5,
                epsilon=1.0,
                sensitivity=1,
                noise_seed=7,
                capacity=4,
            )

    def test_unknown_confidence_level(self):
        with pytest.raises(ValueError):
            pack_statistics(
                values=[1],
                domain=(0, 10),
                outlier_threshold=5,
                epsilon=1.0,
                sensitivity=1,
                noise_seed=7,
                confidence_level=80,
                capacity=4,
            )

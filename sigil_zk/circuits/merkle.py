"""
Merkle tree utilities for commit-membership claims.
Uses the algebraic hash with domain separation for node hashing.
"""

from typing import Dict, List, Optional, Sequence, Tuple

from .field import algebraic_hash, domain_tag

# Padding leaf for fixed-depth trees; never a real leaf hash
ZERO_LEAF = 0

AuthPath = List[Tuple[int, bool]]


def hash_leaf(*elements: int) -> int:
    """
    Hash a commit leaf.

    Args:
        *elements: Leaf content as field elements
            (commit hash, additions, deletions)

    Returns:
        Non-zero field element

    Example:
        leaf = hash_leaf(commit_hash, 120, 4)
    """
    return algebraic_hash(domain_tag("commit_leaf"), *elements)


def hash_node(left: int, right: int) -> int:
    """
    Hash two Merkle node hashes.

    Note:
        Uses fixed left||right ordering (no sorting), so direction bits
        are part of what the path proves.
    """
    return algebraic_hash(domain_tag("merkle_node"), left, right)


def tree_depth(leaf_count: int) -> int:
    """Smallest depth whose tree holds leaf_count leaves."""
    if leaf_count <= 0:
        raise ValueError("leaf_count must be positive")
    return max(0, (leaf_count - 1).bit_length())


def build_tree(
    leaves: Sequence[int], depth: Optional[int] = None
) -> Tuple[int, Dict[int, AuthPath]]:
    """
    Build a Merkle tree and generate authentication paths.

    Args:
        leaves: List of leaf hashes
        depth: Optional fixed depth; leaves are padded with ZERO_LEAF up to
            2**depth so every path has exactly `depth` entries

    Returns:
        (root, auth_paths)
        - root: Merkle root
        - auth_paths: Dict mapping leaf_index -> [(sibling, is_left), ...]
          for the supplied (non-padding) leaves

    Algorithm:
        - If odd number of nodes at any level, duplicate the last node
        - Build tree bottom-up
        - Track sibling positions for authentication paths
    """
    if not leaves:
        raise ValueError("Cannot build tree with zero leaves")

    real_count = len(leaves)
    nodes = list(leaves)
    if depth is not None:
        if depth < 0:
            raise ValueError("depth must be non-negative")
        if real_count > (1 << depth):
            raise ValueError(
                f"{real_count} leaves do not fit a tree of depth {depth}"
            )
        nodes.extend([ZERO_LEAF] * ((1 << depth) - real_count))

    if len(nodes) == 1:
        return nodes[0], {0: []}

    auth_paths: Dict[int, AuthPath] = {i: [] for i in range(len(nodes))}
    current_level: List[Tuple[int, List[int]]] = [
        (node, [i]) for i, node in enumerate(nodes)
    ]

    while len(current_level) > 1:
        next_level: List[Tuple[int, List[int]]] = []

        for i in range(0, len(current_level), 2):
            left_hash, left_indices = current_level[i]

            if i + 1 < len(current_level):
                right_hash, right_indices = current_level[i + 1]
                duplicated = False
            else:
                right_hash, right_indices = left_hash, left_indices
                duplicated = True

            parent = hash_node(left_hash, right_hash)

            # Left child: sibling on the right. Right child: sibling on the left.
            for leaf_idx in left_indices:
                auth_paths[leaf_idx].append((right_hash, False))
            if not duplicated:
                for leaf_idx in right_indices:
                    auth_paths[leaf_idx].append((left_hash, True))

            if duplicated:
                combined_indices = list(left_indices)
            else:
                combined_indices = left_indices + right_indices
            next_level.append((parent, combined_indices))

        current_level = next_level

    root = current_level[0][0]
    return root, {i: auth_paths[i] for i in range(real_count)}


def compute_root(leaf: int, path: AuthPath) -> int:
    """Fold an authentication path into the root it implies."""
    current = leaf
    for sibling, is_left in path:
        if is_left:
            current = hash_node(sibling, current)
        else:
            current = hash_node(current, sibling)
    return current


def verify_path(leaf: int, path: AuthPath, root: int) -> bool:
    """
    Verify a Merkle authentication path.

    Args:
        leaf: Leaf hash
        path: Authentication path [(sibling, is_left), ...]
        root: Expected root

    Returns:
        True if path is valid, False otherwise
    """
    return compute_root(leaf, path) == root


def split_path(path: AuthPath) -> Tuple[List[int], List[int]]:
    """Split a path into circuit vectors (siblings, direction bits)."""
    siblings = [sibling for sibling, _ in path]
    directions = [1 if is_left else 0 for _, is_left in path]
    return siblings, directions

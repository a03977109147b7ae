"""
Inclusion proofs and their verification.

A proof is the list of sibling digests on the path from a leaf to the root,
leaf first. Positions are always passed as the logical leaf index (0-based
among caller-supplied leaves). Verification converts it to the absolute
array index, M + index with M = 2 ** len(proof), and uses that index's
parity to decide whether the running digest is a left or right child.

Lookups by value report the first matching leaf. Padding leaves repeat the
last element's digest, and distinct elements may share a digest, so a
duplicated element always resolves to its first position.
"""

from __future__ import annotations

import hmac
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Sequence

from hashtree import layout
from hashtree.hashing import HashFunction, default_hasher

if TYPE_CHECKING:
    from hashtree.tree import MerkleTree


@dataclass(frozen=True)
class MerkleProof:
    """Inclusion proof for a leaf in a Merkle tree.

    Attributes:
        leaf: The leaf digest being proven.
        leaf_index: Logical position of the leaf in the tree.
        siblings: Sibling digests from the leaf up to (excluding) the root.
        root: The root digest the proof was generated against.
    """

    leaf: bytes
    leaf_index: int
    siblings: tuple[bytes, ...]
    root: bytes

    @property
    def root_hex(self) -> str:
        return self.root.hex()

    def __len__(self) -> int:
        return len(self.siblings)


def verify(
    leaf_digest: bytes,
    logical_index: int,
    proof: Sequence[bytes],
    expected_root: bytes,
    hasher: HashFunction | None = None,
) -> bool:
    """Recompute the root from a leaf digest and its proof.

    Uses constant-time comparison for the root check.
    Fail-closed: returns False for out-of-range positions and malformed input.
    """
    hasher = hasher or default_hasher()

    capacity = 1 << len(proof)
    if not 0 <= logical_index < capacity:
        return False

    try:
        current = leaf_digest
        index = layout.leaf_index(logical_index, capacity)

        for sibling_digest in proof:
            if index % 2 == 0:
                current = hasher.combine(current, sibling_digest)
            else:
                current = hasher.combine(sibling_digest, current)
            index = layout.parent(index)

        return hmac.compare_digest(current, expected_root)
    except TypeError:
        return False


def verify_proof(proof: MerkleProof, hasher: HashFunction | None = None) -> bool:
    """Verify a MerkleProof against the root it carries."""
    return verify(proof.leaf, proof.leaf_index, proof.siblings, proof.root, hasher)


def verify_element(
    tree: MerkleTree,
    element: Any,
    expected_root: bytes | None = None,
) -> bool:
    """Check that an element is a member of a live tree.

    Looks up the element's first logical position, then verifies its proof
    against ``expected_root`` (the tree's own root by default).
    Returns False if the element is not in the tree.
    """
    position = tree.index_of(element)
    if position is None:
        return False

    root = tree.root if expected_root is None else expected_root
    return verify(
        tree.leaf_digest(position),
        position,
        tree.proof(position),
        root,
        tree.hasher,
    )

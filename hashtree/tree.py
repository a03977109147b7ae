"""
Merkle tree construction, proof generation and copy-on-write mutation.

The tree is a complete binary tree stored in a flat array of 2 * M digests
(see hashtree.layout). M is the smallest power of two holding every leaf;
leaves past the last element repeat its digest.

    nodes[i] = combine(nodes[2i], nodes[2i + 1])    for 1 <= i < M

Trees are immutable. add() and delete() rebuild a new tree from the edited
leaf list and leave the original untouched, so a published tree can be read
from any number of threads without locking.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Sequence

from hashtree import layout
from hashtree.errors import ElementNotFound, IndexOutOfRange, InvalidInput
from hashtree.hashing import HashFunction, default_hasher, encode_element
from hashtree.leaves import hash_leaves, pad_to_power_of_two
from hashtree.proof import MerkleProof

log = logging.getLogger(__name__)


class MerkleTree:
    """Balanced Merkle tree over an ordered list of leaf digests.

    Usage:
        tree = MerkleTree.from_elements(["hey", "hey2"])
        proof = tree.proof(0)
        assert verify(tree.leaf_digest(0), 0, proof, tree.root)
        bigger = tree.add("hey3")
    """

    def __init__(
        self,
        nodes: tuple[bytes, ...],
        size: int,
        hasher: HashFunction,
    ) -> None:
        self._nodes = nodes
        self._size = size
        self._hasher = hasher

    @classmethod
    def from_elements(
        cls,
        elements: Iterable[Any],
        hasher: HashFunction | None = None,
    ) -> MerkleTree:
        """Build a tree by hashing each element into a leaf.

        Args:
            elements: bytes, str or objects with a digest() method.
                      Must have at least one element.
            hasher: Hash function, SHA-256 if omitted.

        Raises:
            InvalidInput: If elements is empty.
            TypeError: If an element cannot be encoded to bytes.
        """
        hasher = hasher or default_hasher()
        elements = list(elements)
        if not elements:
            raise InvalidInput("Cannot build Merkle tree from empty element list")
        return cls.from_leaf_digests(hash_leaves(elements, hasher), hasher)

    @classmethod
    def from_leaf_digests(
        cls,
        digests: Sequence[bytes],
        hasher: HashFunction | None = None,
    ) -> MerkleTree:
        """Build a tree from already-hashed leaves.

        Raises:
            InvalidInput: If digests is empty or a digest has the wrong size.
        """
        hasher = hasher or default_hasher()
        if not digests:
            raise InvalidInput("Cannot build Merkle tree from empty leaf list")

        for i, digest in enumerate(digests):
            if not isinstance(digest, (bytes, bytearray)):
                raise InvalidInput(
                    f"Leaf {i} is {type(digest).__name__}, expected bytes"
                )
            if len(digest) != hasher.digest_size:
                raise InvalidInput(
                    f"Leaf {i} is {len(digest)} bytes "
                    f"(expected {hasher.digest_size} for {hasher.name})"
                )

        size = len(digests)
        leaves = pad_to_power_of_two([bytes(d) for d in digests])
        capacity = len(leaves)

        nodes = [b""] * capacity + leaves
        for i in range(capacity - 1, 0, -1):
            nodes[i] = hasher.combine(
                nodes[layout.left_child(i)], nodes[layout.right_child(i)]
            )

        log.debug(
            "Built Merkle tree: %d leaves, capacity %d, %d nodes",
            size, capacity, len(nodes),
        )
        return cls(tuple(nodes), size, hasher)

    @classmethod
    def from_hex_digests(
        cls,
        hex_digests: Iterable[str],
        hasher: HashFunction | None = None,
    ) -> MerkleTree:
        """Build a tree from hex-encoded leaf digests.

        Convenience wrapper; an ``<algorithm>:`` prefix such as ``sha256:``
        is stripped.
        """
        digests = []
        for hx in hex_digests:
            hx = hx.strip()
            if ":" in hx:
                hx = hx.split(":", 1)[1]
            try:
                digests.append(bytes.fromhex(hx))
            except ValueError:
                raise InvalidInput(f"Invalid hex in digest: {hx!r}")
        return cls.from_leaf_digests(digests, hasher)

    # -- storage ----------------------------------------------------------

    @property
    def nodes(self) -> tuple[bytes, ...]:
        """All 2 * capacity slots; slot 0 is unused."""
        return self._nodes

    @property
    def size(self) -> int:
        """Number of logical (non-padding) leaves."""
        return self._size

    @property
    def capacity(self) -> int:
        """Leaf slots in the tree, a power of two >= size."""
        return len(self._nodes) // 2

    @property
    def root_index(self) -> int:
        return layout.ROOT_INDEX

    @property
    def root(self) -> bytes:
        return self._nodes[layout.ROOT_INDEX]

    @property
    def root_hex(self) -> str:
        return self.root.hex()

    @property
    def hasher(self) -> HashFunction:
        return self._hasher

    def is_leaf(self, index: int) -> bool:
        return layout.is_leaf(index, self.capacity)

    def leaves(self) -> list[bytes]:
        """Logical leaf digests in order, without padding."""
        start = self.capacity
        return list(self._nodes[start : start + self._size])

    def leaf_digest(self, position: int) -> bytes:
        index = layout.leaf_index(self._check_position(position), self.capacity)
        return self._nodes[index]

    def _check_position(self, position: int) -> int:
        if position < 0 or position >= self._size:
            raise IndexOutOfRange(
                f"Leaf index {position} out of range [0, {self._size})"
            )
        return position

    # -- lookup -----------------------------------------------------------

    def digest_of(self, element: Any) -> bytes:
        """Leaf digest an element would have in this tree."""
        return self._hasher.hash(encode_element(element))

    def index_of_digest(self, digest: bytes) -> int | None:
        """First logical position holding digest, or None."""
        start = self.capacity
        for position in range(self._size):
            if self._nodes[start + position] == digest:
                return position
        return None

    def index_of(self, element: Any) -> int | None:
        return self.index_of_digest(self.digest_of(element))

    def __contains__(self, element: Any) -> bool:
        return self.index_of(element) is not None

    # -- proofs -----------------------------------------------------------

    def _siblings(self, position: int) -> list[bytes]:
        path = layout.path_to_root(layout.leaf_index(position, self.capacity))
        return [self._nodes[layout.sibling(i)] for i in path]

    def proof(self, target: Any) -> list[bytes]:
        """Sibling digests from a leaf up to the root.

        Args:
            target: A logical leaf index (int), or an element to look up.

        Returns:
            The proof, leaf first. Empty if target is an element that is not
            in the tree. Single-leaf trees also have an empty proof.

        Raises:
            IndexOutOfRange: If target is an int outside [0, size).
        """
        if isinstance(target, int) and not isinstance(target, bool):
            return self._siblings(self._check_position(target))

        position = self.index_of(target)
        if position is None:
            return []
        return self._siblings(position)

    def proof_for_digest(self, digest: bytes) -> list[bytes]:
        """Proof for the first leaf holding digest, empty if absent."""
        position = self.index_of_digest(digest)
        if position is None:
            return []
        return self._siblings(position)

    def get_proof(self, position: int) -> MerkleProof:
        """Generate a self-contained inclusion proof.

        Args:
            position: 0-based index into the logical leaves.

        Returns:
            A MerkleProof that can be verified with verify_proof().

        Raises:
            IndexOutOfRange: If position is out of range.
        """
        self._check_position(position)
        return MerkleProof(
            leaf=self.leaf_digest(position),
            leaf_index=position,
            siblings=tuple(self._siblings(position)),
            root=self.root,
        )

    # -- mutation ---------------------------------------------------------

    def add_digest(self, digest: bytes) -> MerkleTree:
        """New tree with an extra leaf digest appended."""
        tree = MerkleTree.from_leaf_digests(self.leaves() + [digest], self._hasher)
        log.debug(
            "Added leaf %s: size %d -> %d, capacity %d -> %d",
            bytes(digest).hex(), self._size, tree.size, self.capacity, tree.capacity,
        )
        return tree

    def add(self, element: Any) -> MerkleTree:
        """New tree with element appended as the last logical leaf."""
        return self.add_digest(self.digest_of(element))

    def delete_digest(self, digest: bytes) -> MerkleTree:
        """New tree without the first leaf holding digest.

        Raises:
            ElementNotFound: If no logical leaf holds digest.
            InvalidInput: If the leaf is the only one in the tree.
        """
        position = self.index_of_digest(digest)
        if position is None:
            log.debug("Delete failed, leaf %s not in tree", bytes(digest).hex())
            raise ElementNotFound(bytes(digest))
        if self._size == 1:
            raise InvalidInput("Cannot delete the only leaf of a Merkle tree")

        leaves = self.leaves()
        del leaves[position]
        tree = MerkleTree.from_leaf_digests(leaves, self._hasher)
        log.debug(
            "Deleted leaf %d: size %d -> %d, capacity %d -> %d",
            position, self._size, tree.size, self.capacity, tree.capacity,
        )
        return tree

    def delete(self, element: Any) -> MerkleTree:
        """New tree without the first occurrence of element."""
        return self.delete_digest(self.digest_of(element))

    # -- dunder -----------------------------------------------------------

    def __len__(self) -> int:
        return self._size

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MerkleTree):
            return NotImplemented
        return self._size == other._size and self._nodes == other._nodes

    def __hash__(self) -> int:
        return hash((self._size, self.root))

    def __repr__(self) -> str:
        return (
            f"MerkleTree(size={self._size}, capacity={self.capacity}, "
            f"root={self.root_hex[:16]}...)"
        )


def build(elements: Iterable[Any], hasher: HashFunction | None = None) -> MerkleTree:
    return MerkleTree.from_elements(elements, hasher)


def root_digest(tree: MerkleTree) -> bytes:
    return tree.root


def proof(tree: MerkleTree, target: Any) -> list[bytes]:
    return tree.proof(target)


def add(tree: MerkleTree, element: Any) -> MerkleTree:
    return tree.add(element)


def delete(tree: MerkleTree, element: Any) -> MerkleTree:
    return tree.delete(element)

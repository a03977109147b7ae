"""
Index arithmetic for a complete binary tree stored in a flat array.

    index 0        unused
    index 1        root
    2i, 2i + 1     children of i
    [M, 2M)        leaves, M = leaf capacity (a power of two)

Leaf position p (0-based, among leaves) lives at absolute index M + p.
"""

from __future__ import annotations

ROOT_INDEX = 1


def left_child(index: int) -> int:
    return index * 2


def right_child(index: int) -> int:
    return index * 2 + 1


def sibling(index: int) -> int:
    """Sibling of a non-root node: even indices are left children."""
    if index % 2 == 0:
        return index + 1
    return index - 1


def parent(index: int) -> int:
    return index // 2


def is_leaf(index: int, capacity: int) -> bool:
    return capacity <= index < 2 * capacity


def leaf_index(position: int, capacity: int) -> int:
    """Absolute array index of the leaf at a 0-based position."""
    return capacity + position


def path_to_root(index: int) -> list[int]:
    """Absolute indices from a node up to (excluding) the root."""
    path = []
    while index > ROOT_INDEX:
        path.append(index)
        index = parent(index)
    return path

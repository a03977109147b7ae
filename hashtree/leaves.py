"""
Leaf normalization: element hashing and power-of-two padding.

Padding duplicates the digest of the last element until the leaf count is a
power of two. Proof generation and verification treat padding leaves as
ordinary leaves, so the padding value must stay deterministic.
"""

from __future__ import annotations

from typing import Any, Iterable, Sequence

from hashtree.errors import InvalidInput
from hashtree.hashing import HashFunction, default_hasher, encode_element


def is_power_of_two(n: int) -> bool:
    return n > 0 and (n & (n - 1)) == 0


def next_power_of_two(n: int) -> int:
    """Smallest power of two >= n (n must be positive)."""
    if n < 1:
        raise InvalidInput(f"No power of two for a count of {n}")
    return 1 << (n - 1).bit_length()


def hash_leaves(
    elements: Iterable[Any],
    hasher: HashFunction | None = None,
) -> list[bytes]:
    """Hash each element into a leaf digest, preserving order."""
    hasher = hasher or default_hasher()
    return [hasher.hash(encode_element(e)) for e in elements]


def pad_to_power_of_two(digests: Sequence[bytes]) -> list[bytes]:
    """Return a copy of digests extended with copies of the last one.

    Raises:
        InvalidInput: If digests is empty (there is no last digest to repeat).
    """
    if not digests:
        raise InvalidInput("Cannot pad an empty leaf list")

    padded = list(digests)
    padded.extend([padded[-1]] * (next_power_of_two(len(padded)) - len(padded)))
    return padded

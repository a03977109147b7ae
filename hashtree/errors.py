"""
Exceptions raised by hashtree.

Each error also derives from the matching built-in (ValueError, KeyError,
IndexError) so callers can catch either form.
"""

from __future__ import annotations


class HashTreeError(Exception):
    """Base class for all hashtree errors."""


class InvalidInput(HashTreeError, ValueError):
    """Input cannot be turned into a tree (empty sequence, bad digests, bad config)."""


class ElementNotFound(HashTreeError, KeyError):
    """The element's digest is not among the tree's logical leaves."""

    def __init__(self, digest: bytes) -> None:
        self.digest = digest
        super().__init__(f"Element not present in tree (digest {digest.hex()})")

    def __str__(self) -> str:
        # KeyError would repr() the message
        return self.args[0]


class IndexOutOfRange(HashTreeError, IndexError):
    """A logical leaf index outside [0, size)."""

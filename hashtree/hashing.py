"""
Hash functions used to build and verify trees.

A hash function provides two operations:

    hash(data)            -> digest of a byte string (used for leaves)
    combine(left, right)  -> hash(left || right) (used for internal nodes)

combine() is order sensitive: proofs record which side a node sits on, so
swapping operands must change the result.

Hashers are stateless. Every call creates a fresh hash object, so one hasher
can be shared between trees and threads.

Backends:
    hashlib       - stdlib, default (SHA-256)
    cryptography  - requires the `cryptography` package, imported lazily.
                    Install with: pip install hashtree[crypto]
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from hashtree.errors import InvalidInput


_LEAF_PREFIX = b"\x00"
_INTERNAL_PREFIX = b"\x01"

DEFAULT_ALGORITHM = "sha256"
BACKENDS = ("hashlib", "cryptography")


class HashFunction(Protocol):
    name: str
    digest_size: int

    def hash(self, data: bytes) -> bytes: ...

    def combine(self, left: bytes, right: bytes) -> bytes: ...


@runtime_checkable
class Digestible(Protocol):
    """Elements that know their own canonical byte encoding.

    The bytes returned by digest() are what gets hashed into the leaf,
    not the leaf digest itself.
    """

    def digest(self) -> bytes: ...


def encode_element(element: Any) -> bytes:
    """Return the bytes fed to the hash function for an element.

    bytes-like values are used as-is, str is UTF-8 encoded and objects
    implementing ``digest()`` supply their own encoding.

    Raises:
        TypeError: If the element has no byte encoding.
    """
    if isinstance(element, (bytes, bytearray, memoryview)):
        return bytes(element)
    if isinstance(element, str):
        return element.encode("utf-8")
    if isinstance(element, Digestible):
        data = element.digest()
        if not isinstance(data, (bytes, bytearray)):
            raise TypeError(
                f"{type(element).__name__}.digest() must return bytes, "
                f"got {type(data).__name__}"
            )
        return bytes(data)
    raise TypeError(
        f"Cannot hash element of type {type(element).__name__}: "
        "expected bytes, str or an object with a digest() method"
    )


@dataclass(frozen=True)
class HashlibHasher:
    """Hash function backed by a stdlib hashlib algorithm."""

    name: str = DEFAULT_ALGORITHM
    digest_size: int = field(init=False)

    def __post_init__(self) -> None:
        if self.name.startswith("shake_"):
            raise InvalidInput(f"Variable-length digest not supported: {self.name}")
        try:
            size = hashlib.new(self.name).digest_size
        except ValueError:
            raise InvalidInput(f"Unknown hashlib algorithm: {self.name!r}")
        object.__setattr__(self, "digest_size", size)

    def hash(self, data: bytes) -> bytes:
        return hashlib.new(self.name, data).digest()

    def combine(self, left: bytes, right: bytes) -> bytes:
        return hashlib.new(self.name, left + right).digest()


def _import_hashes():
    """Lazily import cryptography's hash primitives.

    Raises ImportError with a helpful message if not installed.
    """
    try:
        from cryptography.hazmat.primitives import hashes

        return hashes
    except ImportError:
        raise ImportError(
            "cryptography is required for the 'cryptography' hash backend. "
            "Install with: pip install hashtree[crypto]"
        )


def _cryptography_algorithms(hashes) -> dict:
    return {
        "sha224": hashes.SHA224,
        "sha256": hashes.SHA256,
        "sha384": hashes.SHA384,
        "sha512": hashes.SHA512,
        "sha512_256": hashes.SHA512_256,
        "sha3_224": hashes.SHA3_224,
        "sha3_256": hashes.SHA3_256,
        "sha3_384": hashes.SHA3_384,
        "sha3_512": hashes.SHA3_512,
        "blake2b": lambda: hashes.BLAKE2b(64),
        "blake2s": lambda: hashes.BLAKE2s(32),
    }


@dataclass(frozen=True)
class CryptographyHasher:
    """Hash function backed by ``cryptography.hazmat.primitives.hashes``.

    Supported names: sha224, sha256, sha384, sha512, sha512_256, sha3_224,
    sha3_256, sha3_384, sha3_512, blake2b, blake2s.
    """

    name: str = DEFAULT_ALGORITHM
    digest_size: int = field(init=False)

    def __post_init__(self) -> None:
        algorithm = self._algorithm()
        object.__setattr__(self, "digest_size", algorithm.digest_size)

    def _algorithm(self):
        hashes = _import_hashes()
        factory = _cryptography_algorithms(hashes).get(self.name)
        if factory is None:
            raise InvalidInput(f"Unknown cryptography algorithm: {self.name!r}")
        return factory()

    def hash(self, data: bytes) -> bytes:
        hashes = _import_hashes()
        ctx = hashes.Hash(self._algorithm())
        ctx.update(data)
        return ctx.finalize()

    def combine(self, left: bytes, right: bytes) -> bytes:
        return self.hash(left + right)


@dataclass(frozen=True)
class DomainSeparatedHasher:
    """Wraps another hash function with leaf/internal prefixes.

    Leaf hash:     H(0x00 + data)
    Internal hash: H(0x01 + left + right)

    This prevents second-preimage attacks where an internal node could be
    confused with a leaf. Trees built with it have different roots than
    trees built with the bare hasher.
    """

    base: HashFunction

    @property
    def name(self) -> str:
        return f"{self.base.name}+ds"

    @property
    def digest_size(self) -> int:
        return self.base.digest_size

    def hash(self, data: bytes) -> bytes:
        return self.base.hash(_LEAF_PREFIX + data)

    def combine(self, left: bytes, right: bytes) -> bytes:
        return self.base.hash(_INTERNAL_PREFIX + left + right)


def get_hasher(
    name: str = DEFAULT_ALGORITHM,
    backend: str = "hashlib",
    domain_separation: bool = False,
) -> HashFunction:
    """Look up a hash function by algorithm and backend name.

    Raises:
        InvalidInput: If the backend or algorithm is unknown.
        ImportError: If the cryptography backend is requested but not installed.
    """
    if backend == "hashlib":
        hasher: HashFunction = HashlibHasher(name)
    elif backend == "cryptography":
        hasher = CryptographyHasher(name)
    else:
        raise InvalidInput(
            f"Unknown hash backend: {backend!r} (expected one of {', '.join(BACKENDS)})"
        )

    if domain_separation:
        hasher = DomainSeparatedHasher(hasher)
    return hasher


_DEFAULT = HashlibHasher(DEFAULT_ALGORITHM)


def default_hasher() -> HashFunction:
    """SHA-256 via hashlib."""
    return _DEFAULT

"""
hashtree - Merkle trees with inclusion proofs and copy-on-write updates.

Provides:
    - MerkleTree - flat-array binary hash tree; add()/delete() return new trees
    - build / root_digest / proof / add / delete - functional wrappers
    - verify / verify_element / verify_proof - proof checking
    - HashlibHasher / CryptographyHasher / DomainSeparatedHasher - hash functions
    - load_config / load_hasher - TOML hash configuration

All modules use stdlib only except the cryptography hash backend.
Install with: pip install hashtree[crypto]
"""

__version__ = "0.1.0"

from hashtree.errors import (
    HashTreeError,
    InvalidInput,
    ElementNotFound,
    IndexOutOfRange,
)
from hashtree.hashing import (
    HashFunction,
    Digestible,
    HashlibHasher,
    CryptographyHasher,
    DomainSeparatedHasher,
    default_hasher,
    get_hasher,
)
from hashtree.proof import MerkleProof, verify, verify_element, verify_proof
from hashtree.tree import MerkleTree, build, root_digest, proof, add, delete
from hashtree.config import load_config, load_hasher

__all__ = [
    "HashTreeError",
    "InvalidInput",
    "ElementNotFound",
    "IndexOutOfRange",
    "HashFunction",
    "Digestible",
    "HashlibHasher",
    "CryptographyHasher",
    "DomainSeparatedHasher",
    "default_hasher",
    "get_hasher",
    "MerkleProof",
    "verify",
    "verify_element",
    "verify_proof",
    "MerkleTree",
    "build",
    "root_digest",
    "proof",
    "add",
    "delete",
    "load_config",
    "load_hasher",
]

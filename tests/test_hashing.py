"""
Tests for hash functions, leaf normalization and configuration.

TestHashlibHasher        - stdlib hasher contract, order sensitivity
TestDomainSeparation     - leaf/internal prefixes
TestCryptographyHasher   - cryptography backend (skipped if not installed)
TestEncodeElement        - element to bytes encoding
TestLeafNormalizer       - hash_leaves, padding, power-of-two helpers
TestConfig               - TOML config loading and hasher selection
"""

from __future__ import annotations

import hashlib
import logging
from unittest import TestCase

import pytest


# Skip cryptography backend tests if cryptography is not installed
try:
    import cryptography
    HAS_CRYPTO = True
except ImportError:
    HAS_CRYPTO = False

skip_no_crypto = pytest.mark.skipif(
    not HAS_CRYPTO,
    reason="cryptography package not installed",
)


# ══════════════════════════════════════════════════════════════════════════
# Hash Function Tests
# ══════════════════════════════════════════════════════════════════════════


class TestHashlibHasher(TestCase):
    """Tests for hashtree.hashing.HashlibHasher."""

    def test_default_is_sha256(self):
        from hashtree.hashing import default_hasher

        hasher = default_hasher()
        assert hasher.name == "sha256"
        assert hasher.digest_size == 32
        assert hasher.hash(b"hey") == hashlib.sha256(b"hey").digest()

    def test_combine_is_hash_of_concatenation(self):
        from hashtree.hashing import HashlibHasher

        hasher = HashlibHasher()
        left, right = hasher.hash(b"l"), hasher.hash(b"r")
        assert hasher.combine(left, right) == hasher.hash(left + right)

    def test_combine_is_order_sensitive(self):
        from hashtree.hashing import HashlibHasher

        hasher = HashlibHasher()
        a, b = hasher.hash(b"a"), hasher.hash(b"b")
        assert hasher.combine(a, b) != hasher.combine(b, a)

    def test_other_algorithms(self):
        from hashtree.hashing import HashlibHasher

        assert HashlibHasher("sha512").digest_size == 64
        assert HashlibHasher("sha3_256").hash(b"x") == hashlib.sha3_256(b"x").digest()

    def test_unknown_algorithm(self):
        from hashtree.hashing import HashlibHasher
        from hashtree.errors import InvalidInput

        with pytest.raises(InvalidInput, match="Unknown hashlib algorithm"):
            HashlibHasher("not-a-hash")

    def test_variable_length_rejected(self):
        from hashtree.hashing import HashlibHasher
        from hashtree.errors import InvalidInput

        with pytest.raises(InvalidInput, match="Variable-length"):
            HashlibHasher("shake_128")

    def test_get_hasher(self):
        from hashtree.hashing import get_hasher, HashlibHasher

        assert get_hasher() == HashlibHasher("sha256")
        assert get_hasher("sha512").digest_size == 64

    def test_get_hasher_unknown_backend(self):
        from hashtree.hashing import get_hasher
        from hashtree.errors import InvalidInput

        with pytest.raises(InvalidInput, match="Unknown hash backend"):
            get_hasher("sha256", backend="openssl-cli")


class TestDomainSeparation(TestCase):
    """Tests for hashtree.hashing.DomainSeparatedHasher."""

    def test_prefixes(self):
        from hashtree.hashing import DomainSeparatedHasher, HashlibHasher

        hasher = DomainSeparatedHasher(HashlibHasher())
        assert hasher.hash(b"data") == hashlib.sha256(b"\x00data").digest()
        assert hasher.combine(b"l", b"r") == hashlib.sha256(b"\x01lr").digest()
        assert hasher.name == "sha256+ds"
        assert hasher.digest_size == 32

    def test_leaf_and_internal_differ(self):
        """Leaf hashes and internal hashes must differ even with same data."""
        from hashtree.hashing import get_hasher

        hasher = get_hasher(domain_separation=True)
        data = b"test"
        assert hasher.hash(data + data) != hasher.combine(data, data)

    def test_tree_with_domain_separation(self):
        from hashtree import MerkleTree, verify
        from hashtree.hashing import get_hasher

        hasher = get_hasher(domain_separation=True)
        tree = MerkleTree.from_elements(["a", "b", "c"], hasher)
        plain = MerkleTree.from_elements(["a", "b", "c"])
        assert tree.root != plain.root

        for p in range(3):
            assert verify(tree.leaf_digest(p), p, tree.proof(p), tree.root, hasher)
            # The plain hasher cannot reproduce the root
            assert not verify(tree.leaf_digest(p), p, tree.proof(p), tree.root)


@skip_no_crypto
class TestCryptographyHasher(TestCase):
    """Tests for hashtree.hashing.CryptographyHasher."""

    def test_matches_hashlib(self):
        from hashtree.hashing import CryptographyHasher

        hasher = CryptographyHasher("sha256")
        assert hasher.digest_size == 32
        assert hasher.hash(b"hey") == hashlib.sha256(b"hey").digest()
        assert hasher.combine(b"l", b"r") == hashlib.sha256(b"lr").digest()

    def test_sha3_and_blake2(self):
        from hashtree.hashing import CryptographyHasher

        assert CryptographyHasher("sha3_256").hash(b"x") == hashlib.sha3_256(b"x").digest()
        assert CryptographyHasher("blake2b").hash(b"x") == hashlib.blake2b(b"x").digest()
        assert CryptographyHasher("blake2s").digest_size == 32

    def test_same_root_as_hashlib_backend(self):
        from hashtree import MerkleTree
        from hashtree.hashing import get_hasher

        elements = [f"doc-{i}" for i in range(6)]
        tree1 = MerkleTree.from_elements(elements, get_hasher("sha256", backend="cryptography"))
        tree2 = MerkleTree.from_elements(elements, get_hasher("sha256", backend="hashlib"))
        assert tree1.root == tree2.root

    def test_tree_proofs(self):
        from hashtree import MerkleTree, verify_proof
        from hashtree.hashing import CryptographyHasher

        hasher = CryptographyHasher("sha3_512")
        tree = MerkleTree.from_elements([f"leaf-{i}" for i in range(5)], hasher)
        assert len(tree.root) == 64
        for p in range(5):
            assert verify_proof(tree.get_proof(p), hasher)

    def test_unknown_algorithm(self):
        from hashtree.hashing import CryptographyHasher
        from hashtree.errors import InvalidInput

        with pytest.raises(InvalidInput, match="Unknown cryptography algorithm"):
            CryptographyHasher("md4")


# ══════════════════════════════════════════════════════════════════════════
# Element Encoding Tests
# ══════════════════════════════════════════════════════════════════════════


class TestEncodeElement(TestCase):
    """Tests for hashtree.hashing.encode_element."""

    def test_bytes_like(self):
        from hashtree.hashing import encode_element

        assert encode_element(b"abc") == b"abc"
        assert encode_element(bytearray(b"abc")) == b"abc"
        assert encode_element(memoryview(b"abc")) == b"abc"

    def test_str_is_utf8(self):
        from hashtree.hashing import encode_element

        assert encode_element("héllo") == "héllo".encode("utf-8")

    def test_digestible(self):
        from hashtree.hashing import Digestible, encode_element

        class Doc:
            def digest(self) -> bytes:
                return b"doc-bytes"

        assert isinstance(Doc(), Digestible)
        assert encode_element(Doc()) == b"doc-bytes"

    def test_digestible_must_return_bytes(self):
        from hashtree.hashing import encode_element

        class Bad:
            def digest(self):
                return "text"

        with pytest.raises(TypeError, match="must return bytes"):
            encode_element(Bad())

    def test_unsupported_type(self):
        from hashtree.hashing import encode_element

        with pytest.raises(TypeError, match="Cannot hash element"):
            encode_element(42)
        with pytest.raises(TypeError):
            encode_element(None)


# ══════════════════════════════════════════════════════════════════════════
# Leaf Normalizer Tests
# ══════════════════════════════════════════════════════════════════════════


class TestLeafNormalizer(TestCase):
    """Tests for hashtree.leaves."""

    def test_is_power_of_two(self):
        from hashtree.leaves import is_power_of_two

        assert [n for n in range(0, 33) if is_power_of_two(n)] == [1, 2, 4, 8, 16, 32]
        assert not is_power_of_two(-4)

    def test_next_power_of_two(self):
        from hashtree.leaves import next_power_of_two

        assert next_power_of_two(1) == 1
        assert next_power_of_two(2) == 2
        assert next_power_of_two(3) == 4
        assert next_power_of_two(9) == 16
        assert next_power_of_two(1024) == 1024

    def test_next_power_of_two_rejects_zero(self):
        from hashtree.leaves import next_power_of_two
        from hashtree.errors import InvalidInput

        with pytest.raises(InvalidInput):
            next_power_of_two(0)

    def test_hash_leaves_preserves_order(self):
        from hashtree.leaves import hash_leaves

        digests = hash_leaves(["a", "b", "c"])
        assert digests == [hashlib.sha256(x).digest() for x in (b"a", b"b", b"c")]

    def test_hash_leaves_custom_hasher(self):
        from hashtree.leaves import hash_leaves
        from hashtree.hashing import HashlibHasher

        digests = hash_leaves([b"a"], HashlibHasher("sha512"))
        assert digests == [hashlib.sha512(b"a").digest()]

    def test_pad(self):
        from hashtree.leaves import pad_to_power_of_two

        assert pad_to_power_of_two([b"a", b"b", b"c"]) == [b"a", b"b", b"c", b"c"]
        assert pad_to_power_of_two([b"a"] * 5) == [b"a"] * 8
        assert pad_to_power_of_two([b"x", b"y", b"z", b"w", b"v"])[-3:] == [b"v"] * 3

    def test_pad_already_power_of_two(self):
        from hashtree.leaves import pad_to_power_of_two

        assert pad_to_power_of_two([b"a"]) == [b"a"]
        assert pad_to_power_of_two([b"a", b"b", b"c", b"d"]) == [b"a", b"b", b"c", b"d"]

    def test_pad_does_not_mutate_input(self):
        from hashtree.leaves import pad_to_power_of_two

        digests = [b"a", b"b", b"c"]
        pad_to_power_of_two(digests)
        assert digests == [b"a", b"b", b"c"]

    def test_pad_empty_raises(self):
        from hashtree.leaves import pad_to_power_of_two
        from hashtree.errors import InvalidInput

        with pytest.raises(InvalidInput, match="empty"):
            pad_to_power_of_two([])


# ══════════════════════════════════════════════════════════════════════════
# Config Tests
# ══════════════════════════════════════════════════════════════════════════


class TestConfig:
    """Tests for hashtree.config."""

    def test_missing_file_gives_defaults(self, tmp_path):
        from hashtree.config import load_config, DEFAULT_CONFIG

        config = load_config(tmp_path / "absent.toml")
        assert config == DEFAULT_CONFIG
        assert config is not DEFAULT_CONFIG

    def test_load_values(self, tmp_path):
        from hashtree.config import load_config

        path = tmp_path / "config.toml"
        path.write_text(
            'algorithm = "sha512"\n'
            "domain_separation = true\n"
            'unrelated = "ignored"\n',
            encoding="utf-8",
        )
        config = load_config(path)
        assert config["algorithm"] == "sha512"
        assert config["backend"] == "hashlib"
        assert config["domain_separation"] is True
        assert "unrelated" not in config

    def test_invalid_toml_falls_back(self, tmp_path, caplog):
        from hashtree.config import load_config, DEFAULT_CONFIG

        path = tmp_path / "config.toml"
        path.write_text("algorithm = [unterminated\n", encoding="utf-8")
        with caplog.at_level(logging.WARNING, logger="hashtree.config"):
            config = load_config(path)
        assert config == DEFAULT_CONFIG
        assert "Failed to load config" in caplog.text

    def test_hasher_from_config(self):
        from hashtree.config import hasher_from_config
        from hashtree.hashing import DomainSeparatedHasher, HashlibHasher

        hasher = hasher_from_config({"algorithm": "sha512", "domain_separation": True})
        assert isinstance(hasher, DomainSeparatedHasher)
        assert hasher.base == HashlibHasher("sha512")

    def test_hasher_from_config_bad_types(self):
        from hashtree.config import hasher_from_config
        from hashtree.errors import InvalidInput

        with pytest.raises(InvalidInput, match="must be strings"):
            hasher_from_config({"algorithm": 256})
        with pytest.raises(InvalidInput, match="true or false"):
            hasher_from_config({"domain_separation": "yes"})

    def test_load_hasher(self, tmp_path):
        from hashtree import MerkleTree, load_hasher, verify_element

        path = tmp_path / "config.toml"
        path.write_text('algorithm = "sha3_256"\n', encoding="utf-8")
        hasher = load_hasher(path)
        assert hasher.name == "sha3_256"

        tree = MerkleTree.from_elements(["a", "b", "c"], hasher)
        assert tree.root != MerkleTree.from_elements(["a", "b", "c"]).root
        assert verify_element(tree, "b")

    @skip_no_crypto
    def test_load_hasher_cryptography_backend(self, tmp_path):
        from hashtree import load_hasher
        from hashtree.hashing import CryptographyHasher

        path = tmp_path / "config.toml"
        path.write_text(
            'algorithm = "blake2b"\nbackend = "cryptography"\n',
            encoding="utf-8",
        )
        assert load_hasher(path) == CryptographyHasher("blake2b")

"""
Hash functions and utilities for zkmodexp.

Implements SHA-256 hashing used for circuit digests, key fingerprints,
witness commitments and attestation transcripts.
"""

import logging

logger = logging.getLogger(__name__)
from dataclasses import dataclass
from typing import Iterable, Union

from cryptography.hazmat.primitives import hashes

HASH_SIZE = 32


@dataclass(frozen=True)
class Hash:
    """Immutable hash value with comparison and string representation."""

    value: bytes

    def __post_init__(self) -> None:
        if len(self.value) != HASH_SIZE:
            raise ValueError("Hash must be exactly 32 bytes")

    def __str__(self) -> str:
        return self.value.hex()

    def __repr__(self) -> str:
        return f"Hash('{self.value.hex()}')"

    @classmethod
    def from_hex(cls, hex_string: str) -> "Hash":
        """Create a Hash from a hexadecimal string."""
        return cls(bytes.fromhex(hex_string))

    @classmethod
    def zero(cls) -> "Hash":
        """Create a zero hash (all zeros)."""
        return cls(b"\x00" * HASH_SIZE)

    def to_hex(self) -> str:
        """Convert hash to hexadecimal string."""
        return self.value.hex()


class SHA256Hasher:
    """SHA-256 hasher."""

    @staticmethod
    def hash(data: Union[bytes, str]) -> Hash:
        """
        Hash data using SHA-256.

        Args:
            data: Data to hash (bytes or string)

        Returns:
            Hash object containing the SHA-256 hash
        """
        if isinstance(data, str):
            data = data.encode("utf-8")

        digest = hashes.Hash(hashes.SHA256())
        digest.update(data)
        return Hash(digest.finalize())

    @staticmethod
    def hash_list(items: Iterable[Union[bytes, str]]) -> Hash:
        """
        Hash a sequence of items, length-prefixing each one.

        The prefix keeps ``[b"ab", b"c"]`` and ``[b"a", b"bc"]`` distinct.

        Args:
            items: Items to hash

        Returns:
            Hash of the framed items
        """
        digest = hashes.Hash(hashes.SHA256())
        for item in items:
            if isinstance(item, str):
                item = item.encode("utf-8")
            digest.update(len(item).to_bytes(4, byteorder="big"))
            digest.update(item)
        return Hash(digest.finalize())

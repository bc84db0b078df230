"""
ECDSA over secp256k1 for attestation transcripts.

The proving key signs the SHA-256 transcript of a proof; the verification
key checks it. Signatures travel inside proofs as fixed 64-byte ``r || s``.
"""

import logging

logger = logging.getLogger(__name__)
from dataclasses import dataclass
from typing import Tuple, Union

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import (
    decode_dss_signature,
    encode_dss_signature,
)
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from .hashing import Hash

SECP256K1_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
SCALAR_SIZE = 32
SIGNATURE_SIZE = 2 * SCALAR_SIZE

Message = Union[bytes, str, Hash]
_ALGORITHM = ec.ECDSA(hashes.SHA256())


def _to_bytes(message: Message) -> bytes:
    if isinstance(message, Hash):
        return message.value
    if isinstance(message, str):
        return message.encode("utf-8")
    return message


def _require_secp256k1(key, role: str) -> None:
    if not isinstance(key.curve, ec.SECP256K1):
        raise ValueError(f"{role} key must use secp256k1 curve")


@dataclass(frozen=True)
class Signature:
    """ECDSA signature with both scalars in ``[1, n)``."""

    r: int
    s: int

    def __post_init__(self) -> None:
        for scalar in (self.r, self.s):
            if not 0 < scalar < SECP256K1_ORDER:
                raise ValueError("Signature scalars must lie in [1, curve order)")

    @classmethod
    def from_bytes(cls, data: bytes) -> "Signature":
        """Decode fixed-width ``r || s``."""
        if len(data) != SIGNATURE_SIZE:
            raise ValueError(f"Signature must be exactly {SIGNATURE_SIZE} bytes")
        return cls(
            int.from_bytes(data[:SCALAR_SIZE], "big"),
            int.from_bytes(data[SCALAR_SIZE:], "big"),
        )

    def to_bytes(self) -> bytes:
        return self.r.to_bytes(SCALAR_SIZE, "big") + self.s.to_bytes(SCALAR_SIZE, "big")

    def to_der(self) -> bytes:
        return encode_dss_signature(self.r, self.s)

    def __str__(self) -> str:
        return f"Signature({self.to_bytes().hex()[:16]}...)"


@dataclass(frozen=True, eq=False)
class PublicKey:
    """Verification half of a transcript signing key."""

    _key: ec.EllipticCurvePublicKey

    def __post_init__(self) -> None:
        _require_secp256k1(self._key, "Public")

    @classmethod
    def from_bytes(cls, data: bytes) -> "PublicKey":
        """Decode a SEC1 point, compressed (33 bytes) or not (65 bytes)."""
        prefixes = {33: (0x02, 0x03), 65: (0x04,)}
        if len(data) not in prefixes:
            raise ValueError("Public key must be 33 (compressed) or 65 (uncompressed) bytes")
        if data[0] not in prefixes[len(data)]:
            raise ValueError(f"Invalid public key prefix 0x{data[0]:02x}")
        try:
            point = ec.EllipticCurvePublicKey.from_encoded_point(ec.SECP256K1(), data)
        except ValueError as e:
            raise ValueError(f"Invalid public key: {e}") from e
        return cls(point)

    @classmethod
    def from_hex(cls, hex_string: str) -> "PublicKey":
        return cls.from_bytes(bytes.fromhex(hex_string))

    def to_bytes(self, compressed: bool = True) -> bytes:
        point_format = PublicFormat.CompressedPoint if compressed else PublicFormat.UncompressedPoint
        return self._key.public_bytes(Encoding.X962, point_format)

    def to_hex(self, compressed: bool = True) -> str:
        return self.to_bytes(compressed).hex()

    def verify(self, signature: Signature, message: Message) -> bool:
        """True iff ``signature`` was made over ``message`` by the matching key."""
        try:
            self._key.verify(signature.to_der(), _to_bytes(message), _ALGORITHM)
        except InvalidSignature:
            return False
        return True

    def __eq__(self, other: object) -> bool:
        return isinstance(other, PublicKey) and self.to_bytes() == other.to_bytes()

    def __hash__(self) -> int:
        return hash(self.to_bytes())

    def __repr__(self) -> str:
        return f"PublicKey.from_hex('{self.to_hex()}')"


@dataclass(frozen=True, repr=False)
class PrivateKey:
    """Signing half of a transcript signing key. Never printed."""

    _key: ec.EllipticCurvePrivateKey

    def __post_init__(self) -> None:
        _require_secp256k1(self._key, "Private")

    @classmethod
    def generate(cls) -> "PrivateKey":
        return cls(ec.generate_private_key(ec.SECP256K1()))

    @classmethod
    def from_bytes(cls, data: bytes) -> "PrivateKey":
        """Load a key from its 32-byte big-endian scalar."""
        if len(data) != SCALAR_SIZE:
            raise ValueError("Private key must be exactly 32 bytes")
        return cls(ec.derive_private_key(int.from_bytes(data, "big"), ec.SECP256K1()))

    def to_bytes(self) -> bytes:
        return self._key.private_numbers().private_value.to_bytes(SCALAR_SIZE, "big")

    def get_public_key(self) -> PublicKey:
        return PublicKey(self._key.public_key())

    def sign(self, message: Message) -> Signature:
        """Sign ``message`` (hashed with SHA-256 by the signer)."""
        r, s = decode_dss_signature(self._key.sign(_to_bytes(message), _ALGORITHM))
        return Signature(r, s)

    def __repr__(self) -> str:
        return "PrivateKey(<redacted>)"

    __str__ = __repr__


class ECDSASigner:
    """Key pair factory for trusted setups."""

    @staticmethod
    def generate_keypair() -> Tuple[PrivateKey, PublicKey]:
        private_key = PrivateKey.generate()
        return private_key, private_key.get_public_key()

"""
Prime field arithmetic for the proving system.

Public inputs and every intermediate value of the modular-exponentiation
circuit live in the scalar field of the BN254 curve. Products of two 32-bit
operands fit in the field without wrapping, so a field multiply followed by
an integer reduction equals the true modular product.
"""

from dataclasses import dataclass
from typing import Union

# BN254 scalar field modulus r
FIELD_MODULUS = (
    21888242871839275222246405745257275088548364400416034343698204186575808495617
)
FIELD_BITS = FIELD_MODULUS.bit_length()
FIELD_ELEMENT_SIZE = 32

FieldLike = Union["FieldElement", int]


@dataclass(frozen=True, order=True)
class FieldElement:
    """Immutable element of the BN254 scalar field."""

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError("Field element value must be an int")
        if not 0 <= self.value < FIELD_MODULUS:
            raise ValueError("Field element out of range")

    @classmethod
    def coerce(cls, value: int) -> "FieldElement":
        """Embed an arbitrary integer into the field by reduction."""
        return cls(value % FIELD_MODULUS)

    @classmethod
    def from_bytes(cls, data: bytes) -> "FieldElement":
        """Decode a fixed-width big-endian word, reducing it into the field."""
        if len(data) != FIELD_ELEMENT_SIZE:
            raise ValueError(
                f"Field element encoding must be exactly {FIELD_ELEMENT_SIZE} bytes"
            )
        return cls.coerce(int.from_bytes(data, byteorder="big"))

    @classmethod
    def zero(cls) -> "FieldElement":
        return cls(0)

    @classmethod
    def one(cls) -> "FieldElement":
        return cls(1)

    def to_bytes(self) -> bytes:
        """Encode as a 32-byte big-endian word."""
        return self.value.to_bytes(FIELD_ELEMENT_SIZE, byteorder="big")

    def to_hex(self) -> str:
        return "0x" + self.to_bytes().hex()

    def is_boolean(self) -> bool:
        """True iff the element satisfies ``x * (x - 1) == 0``."""
        return self * (self - 1) == FieldElement.zero()

    def __int__(self) -> int:
        return self.value

    def __index__(self) -> int:
        return self.value

    def __add__(self, other: FieldLike) -> "FieldElement":
        return FieldElement((self.value + _as_int(other)) % FIELD_MODULUS)

    __radd__ = __add__

    def __sub__(self, other: FieldLike) -> "FieldElement":
        return FieldElement((self.value - _as_int(other)) % FIELD_MODULUS)

    def __rsub__(self, other: FieldLike) -> "FieldElement":
        return FieldElement((_as_int(other) - self.value) % FIELD_MODULUS)

    def __mul__(self, other: FieldLike) -> "FieldElement":
        return FieldElement((self.value * _as_int(other)) % FIELD_MODULUS)

    __rmul__ = __mul__

    def __neg__(self) -> "FieldElement":
        return FieldElement((-self.value) % FIELD_MODULUS)

    def __str__(self) -> str:
        return str(self.value)

    def __repr__(self) -> str:
        return f"FieldElement({self.value})"


def _as_int(value: FieldLike) -> int:
    if isinstance(value, FieldElement):
        return value.value
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"Unsupported field operand: {type(value).__name__}")
    return value % FIELD_MODULUS


def select(bit: FieldElement, when_one: FieldElement, when_zero: FieldElement) -> FieldElement:
    """Branchless selection ``bit * when_one + (1 - bit) * when_zero``.

    Raises:
        ValueError: If ``bit`` is not 0 or 1.
    """
    if not bit.is_boolean():
        raise ValueError(f"Selector must be boolean, got {bit.value}")
    return bit * when_one + (FieldElement.one() - bit) * when_zero

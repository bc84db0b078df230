"""
Core ZKP types and interfaces.

This module defines the fundamental types for the modular-exponentiation
proof system: status codes, the three failure tiers, configuration, the
reference proof encoding and the manager that wires the components together.
"""

import logging
import os
import struct
import time
from dataclasses import dataclass, field, fields
from enum import IntEnum
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Union

from ...errors import ConfigurationError, CryptographicError, ErrorCategory
from ..field import FIELD_BITS, FIELD_ELEMENT_SIZE, FIELD_MODULUS, FieldElement
from ..hashing import HASH_SIZE
from ..signatures import SIGNATURE_SIZE, Signature

if TYPE_CHECKING:
    from .circuits import ModExpCircuit, Witness
    from .generation import ProofGenerator, TrustedSetup
    from .verification import ProofVerifier, RecordingVerifier

logger = logging.getLogger(__name__)

PublicInputLike = Union[FieldElement, int, bytes, bytearray]

DEFAULT_CIRCUIT_ID = "modexp_u32"
DEFAULT_OPERAND_BITS = 32
# keeps (2**bits - 1)**2 below the field modulus
MAX_OPERAND_BITS = (FIELD_BITS - 1) // 2


class ZKPStatus(IntEnum):
    """Status codes for ZKP operations."""

    SUCCESS = 0
    INVALID_PROOF = 1
    WITNESS_REJECTED = 2
    MALFORMED_PROOF = 3
    MALFORMED_PUBLIC_INPUT = 4
    ARITY_MISMATCH = 5
    KEY_MISMATCH = 6
    GENERATION_FAILED = 7


class ZKPError(CryptographicError):
    """Base exception for ZKP operations."""

    def __init__(
        self,
        message: str,
        status: ZKPStatus = ZKPStatus.GENERATION_FAILED,
        details: Optional[Dict[str, Any]] = None,
        **kwargs,
    ):
        super().__init__(message, error_code=status.name, **kwargs)
        self.status = status
        self.details = details or {}

    def _fields(self) -> Dict[str, Any]:
        data = super()._fields()
        data.update({"status": self.status.name, "details": self.details})
        return data


class WitnessConstructionError(ZKPError):
    """The witness cannot be built or does not satisfy the relation.

    Raised before any proof exists: the prover reports "cannot prove".
    """

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("status", ZKPStatus.WITNESS_REJECTED)
        super().__init__(message, category=ErrorCategory.WITNESS, **kwargs)


class StructuralVerificationError(ZKPError):
    """A proof or its public inputs cannot be interpreted at all.

    Distinct from a verifier returning ``False``, which means the proof was
    understood and rejected.
    """

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("status", ZKPStatus.MALFORMED_PROOF)
        super().__init__(message, category=ErrorCategory.VERIFICATION, **kwargs)


class MalformedProofError(StructuralVerificationError):
    """Proof bytes are truncated, oversized or carry a bad header."""


class MalformedPublicInputError(StructuralVerificationError):
    """A public input is not a field element or a 32-byte word."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, status=ZKPStatus.MALFORMED_PUBLIC_INPUT, **kwargs)


class PublicInputArityError(StructuralVerificationError):
    """The number of public inputs differs from the relation's arity."""

    def __init__(self, expected: int, actual: int, **kwargs):
        super().__init__(
            f"Expected {expected} public input(s), got {actual}",
            status=ZKPStatus.ARITY_MISMATCH,
            details={"expected": expected, "actual": actual},
            **kwargs,
        )
        self.expected = expected
        self.actual = actual


class VerifyingKeyMismatchError(StructuralVerificationError):
    """The proof was produced for a different verification key or circuit."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, status=ZKPStatus.KEY_MISMATCH, **kwargs)


def normalize_public_input(value: PublicInputLike) -> FieldElement:
    """Convert a boundary public input into a field element.

    Accepts a FieldElement, a non-negative int below the field modulus, or a
    32-byte big-endian word (reduced into the field).
    """
    if isinstance(value, FieldElement):
        return value
    if isinstance(value, (bytes, bytearray)):
        if len(value) != FIELD_ELEMENT_SIZE:
            raise MalformedPublicInputError(
                f"Public input must be {FIELD_ELEMENT_SIZE} bytes, got {len(value)}"
            )
        return FieldElement.from_bytes(bytes(value))
    if isinstance(value, int) and not isinstance(value, bool):
        if not 0 <= value < FIELD_MODULUS:
            raise MalformedPublicInputError("Public input outside the field range")
        return FieldElement(value)
    raise MalformedPublicInputError(
        f"Unsupported public input type: {type(value).__name__}"
    )


def public_input_values(
    public_inputs: Sequence[PublicInputLike], expected: int
) -> List[PublicInputLike]:
    """Materialise a public-input vector.

    A bare word or string counts as zero inputs; anything that is not
    iterable is a malformed vector.
    """
    if isinstance(public_inputs, (bytes, bytearray, str)):
        raise PublicInputArityError(expected, 0)
    try:
        return list(public_inputs)
    except TypeError as e:
        raise MalformedPublicInputError(
            f"Public inputs must be a sequence, got {type(public_inputs).__name__}"
        ) from e


def encode_public_inputs(public_inputs: Sequence[FieldElement]) -> List[bytes]:
    """Encode field elements as fixed-width big-endian words."""
    return [element.to_bytes() for element in public_inputs]


@dataclass
class ZKPConfig:
    """Configuration for ZKP operations."""

    # Relation
    circuit_id: str = DEFAULT_CIRCUIT_ID
    operand_bits: int = DEFAULT_OPERAND_BITS
    public_input_count: int = 1

    # Verification limits
    max_proof_size: int = 4096

    # Recording verifier
    verifier_id: str = "modexp-recording-verifier"
    max_event_log: Optional[int] = None

    environment_overrides: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Apply environment variable overrides.

        An override only replaces a field still holding its default, so
        values passed to the constructor win over the environment.
        """
        self._apply_environment_overrides()

    def _apply_environment_overrides(self) -> None:
        env_mappings = {
            "ZKMODEXP_CIRCUIT_ID": ("circuit_id", str),
            "ZKMODEXP_OPERAND_BITS": ("operand_bits", int),
            "ZKMODEXP_MAX_PROOF_SIZE": ("max_proof_size", int),
            "ZKMODEXP_VERIFIER_ID": ("verifier_id", str),
        }
        defaults = {f.name: f.default for f in fields(self)}

        for env_var, (attr_name, attr_type) in env_mappings.items():
            env_value = os.getenv(env_var)
            if env_value is None or getattr(self, attr_name) != defaults[attr_name]:
                continue
            try:
                value = attr_type(env_value)
            except ValueError as e:
                raise ConfigurationError(
                    f"Invalid environment variable {env_var}={env_value}: {e}",
                    config_key=env_var,
                    config_value=env_value,
                ) from e
            setattr(self, attr_name, value)
            self.environment_overrides[env_var] = value

    def validate(self) -> None:
        """Validate configuration parameters."""
        if not self.circuit_id:
            raise ConfigurationError("circuit_id cannot be empty", config_key="circuit_id")
        if not 1 <= self.operand_bits <= MAX_OPERAND_BITS:
            raise ConfigurationError(
                f"operand_bits must be between 1 and {MAX_OPERAND_BITS}",
                config_key="operand_bits",
                config_value=self.operand_bits,
            )
        if self.public_input_count != 1:
            raise ConfigurationError(
                "The modular exponentiation relation has exactly one public input",
                config_key="public_input_count",
                config_value=self.public_input_count,
            )
        if self.max_proof_size < PROOF_SIZE:
            raise ConfigurationError(
                f"max_proof_size must be at least {PROOF_SIZE}",
                config_key="max_proof_size",
                config_value=self.max_proof_size,
            )
        if not self.verifier_id:
            raise ConfigurationError("verifier_id cannot be empty", config_key="verifier_id")
        if self.max_event_log is not None and self.max_event_log <= 0:
            raise ConfigurationError(
                "max_event_log must be positive",
                config_key="max_event_log",
                config_value=self.max_event_log,
            )

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            "circuit_id": self.circuit_id,
            "operand_bits": self.operand_bits,
            "public_input_count": self.public_input_count,
            "max_proof_size": self.max_proof_size,
            "verifier_id": self.verifier_id,
            "max_event_log": self.max_event_log,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ZKPConfig":
        """Create configuration from dictionary."""
        return cls(
            circuit_id=data.get("circuit_id", DEFAULT_CIRCUIT_ID),
            operand_bits=data.get("operand_bits", DEFAULT_OPERAND_BITS),
            public_input_count=data.get("public_input_count", 1),
            max_proof_size=data.get("max_proof_size", 4096),
            verifier_id=data.get("verifier_id", "modexp-recording-verifier"),
            max_event_log=data.get("max_event_log"),
        )


PROOF_MAGIC = b"ZKME"
PROOF_VERSION = 1
_PROOF_LAYOUT = struct.Struct(
    f">4sB{HASH_SIZE}s{HASH_SIZE}s{HASH_SIZE}s{SIGNATURE_SIZE}s"
)
PROOF_SIZE = _PROOF_LAYOUT.size


@dataclass(frozen=True)
class Proof:
    """Decoded form of a reference attestation proof.

    Callers handle proofs as opaque ``bytes``; only the backend that
    produced a proof decodes it.
    """

    circuit_digest: bytes
    key_digest: bytes
    commitment: bytes
    signature: Signature
    version: int = PROOF_VERSION

    def to_bytes(self) -> bytes:
        """Serialize proof to bytes."""
        return _PROOF_LAYOUT.pack(
            PROOF_MAGIC,
            self.version,
            self.circuit_digest,
            self.key_digest,
            self.commitment,
            self.signature.to_bytes(),
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> "Proof":
        """Deserialize proof from bytes.

        Raises:
            MalformedProofError: If the bytes cannot be decoded.
        """
        if not isinstance(data, (bytes, bytearray)):
            raise MalformedProofError(
                f"Proof must be bytes, got {type(data).__name__}"
            )
        if len(data) != PROOF_SIZE:
            raise MalformedProofError(
                f"Proof must be {PROOF_SIZE} bytes, got {len(data)}",
                details={"length": len(data)},
            )

        magic, version, circuit_digest, key_digest, commitment, raw_sig = (
            _PROOF_LAYOUT.unpack(bytes(data))
        )
        if magic != PROOF_MAGIC:
            raise MalformedProofError("Invalid proof magic")
        if version != PROOF_VERSION:
            raise MalformedProofError(f"Unsupported proof version: {version}")

        try:
            signature = Signature.from_bytes(raw_sig)
        except ValueError as e:
            raise MalformedProofError(f"Invalid proof signature encoding: {e}") from e

        return cls(
            circuit_digest=circuit_digest,
            key_digest=key_digest,
            commitment=commitment,
            signature=signature,
            version=version,
        )


@dataclass
class ProofResult:
    """Result of proof generation."""

    proof: bytes
    public_inputs: List[FieldElement]
    generation_time: float = 0.0
    metadata: Dict[str, Any] = field(default_factory=dict)


class ZKPManager:
    """Main manager for ZKP operations.

    Wires a circuit, its trusted setup, a proof generator and a verifier
    from one :class:`ZKPConfig`.
    """

    def __init__(self, config: Optional[ZKPConfig] = None, setup: Optional["TrustedSetup"] = None):
        self.config = config or ZKPConfig()
        self.config.validate()
        self.circuit: Optional["ModExpCircuit"] = None
        self.setup = setup
        self.generator: Optional["ProofGenerator"] = None
        self.verifier: Optional["ProofVerifier"] = None
        self._initialized = False

    def initialize(self) -> None:
        """Initialize the ZKP manager."""
        if self._initialized:
            return

        from .circuits import ModExpCircuit
        from .generation import AttestationProofGenerator, TrustedSetup
        from .verification import ProofVerifier

        self.circuit = ModExpCircuit(self.config.circuit_id, self.config.operand_bits)
        self.circuit.build()

        if self.setup is None:
            self.setup = TrustedSetup.generate(self.circuit)
        elif self.setup.circuit_id != self.circuit.circuit_id:
            raise ConfigurationError(
                "Trusted setup was generated for a different circuit",
                config_key="circuit_id",
                config_value=self.setup.circuit_id,
            )

        self.generator = AttestationProofGenerator(self.circuit, self.setup)
        self.generator.initialize()
        self.verifier = ProofVerifier(self.setup.verification_key, self.config)

        self._initialized = True
        logger.info(
            "ZKP manager initialized for circuit %s (%d-bit operands)",
            self.config.circuit_id,
            self.config.operand_bits,
        )

    def generate_proof(
        self, witness: "Witness", claimed_output: Optional[PublicInputLike] = None
    ) -> ProofResult:
        """Generate a proof that ``witness`` satisfies the relation."""
        self._require_initialized()
        start_time = time.time()
        result = self.generator.generate_proof(witness, claimed_output)
        result.generation_time = time.time() - start_time
        return result

    def verify_proof(self, proof: bytes, public_inputs: Sequence[PublicInputLike]) -> bool:
        """Verify a proof against its public inputs."""
        self._require_initialized()
        return self.verifier.verify(proof, public_inputs)

    def create_recording_verifier(self) -> "RecordingVerifier":
        """Create a recording verifier delegating to this manager's verifier."""
        self._require_initialized()
        from .verification import RecordingVerifier

        return RecordingVerifier(
            self.verifier,
            verifier_id=self.config.verifier_id,
            max_event_log=self.config.max_event_log,
        )

    def get_circuit_info(self) -> Dict[str, Any]:
        """Get information about the circuit."""
        self._require_initialized()
        return self.circuit.get_circuit_info()

    def cleanup(self) -> None:
        """Release the generator and verifier."""
        self.generator = None
        self.verifier = None
        self._initialized = False

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise ZKPError("ZKP manager not initialized")

    @property
    def is_initialized(self) -> bool:
        """Check if manager is initialized."""
        return self._initialized

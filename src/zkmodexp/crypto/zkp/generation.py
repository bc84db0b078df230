"""
ZKP proof generation components.

This module provides the key material and the reference attestation prover.
The prover only signs a transcript after it has built a complete circuit
assignment and checked every constraint, so a proof exists only for
witnesses that satisfy the relation.
"""

import json
import logging
import secrets
import time
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from ..field import FieldElement
from ..hashing import Hash, SHA256Hasher
from ..signatures import ECDSASigner, PrivateKey, PublicKey
from .circuits import ModExpCircuit, Witness
from .core import (
    Proof,
    ProofResult,
    PublicInputLike,
    StructuralVerificationError,
    WitnessConstructionError,
    ZKPError,
    encode_public_inputs,
    normalize_public_input,
)

logger = logging.getLogger(__name__)

TRANSCRIPT_DOMAIN = b"zkmodexp/attestation/v1"
COMMITMENT_SALT_SIZE = 32


def attestation_message(
    circuit_digest: bytes,
    key_digest: bytes,
    commitment: bytes,
    public_inputs: Sequence[FieldElement],
) -> Hash:
    """Transcript hash that the proving key signs."""
    return SHA256Hasher.hash_list(
        [TRANSCRIPT_DOMAIN, circuit_digest, key_digest, commitment]
        + encode_public_inputs(public_inputs)
    )


@dataclass(frozen=True)
class VerificationKey:
    """Verification key for checking proofs of one circuit."""

    public_key: PublicKey
    circuit_id: str
    circuit_digest: bytes

    def get_hash(self) -> Hash:
        """Fingerprint embedded in every proof made for this key."""
        return SHA256Hasher.hash_list(
            [self.public_key.to_bytes(), self.circuit_id, self.circuit_digest]
        )

    def validate(self) -> bool:
        """Validate verification key."""
        return bool(self.circuit_id) and len(self.circuit_digest) == 32

    def to_bytes(self) -> bytes:
        """Serialize verification key to bytes."""
        data = {
            "public_key": self.public_key.to_hex(),
            "circuit_id": self.circuit_id,
            "circuit_digest": self.circuit_digest.hex(),
        }
        return json.dumps(data, sort_keys=True).encode("utf-8")

    @classmethod
    def from_bytes(cls, data: bytes) -> "VerificationKey":
        """Deserialize verification key from bytes."""
        try:
            parsed = json.loads(data.decode("utf-8"))
            key = cls(
                public_key=PublicKey.from_hex(parsed["public_key"]),
                circuit_id=parsed["circuit_id"],
                circuit_digest=bytes.fromhex(parsed["circuit_digest"]),
            )
        except (UnicodeDecodeError, json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            raise StructuralVerificationError(f"Invalid verification key: {e}") from e
        if not key.validate():
            raise StructuralVerificationError("Invalid verification key")
        return key


@dataclass(frozen=True)
class ProvingKey:
    """Proving key for generating proofs."""

    private_key: PrivateKey
    circuit_id: str
    circuit_digest: bytes

    def validate(self) -> bool:
        """Validate proving key."""
        return bool(self.circuit_id) and len(self.circuit_digest) == 32


@dataclass
class TrustedSetup:
    """Key pair bound to one circuit."""

    setup_id: str
    circuit_id: str
    proving_key: ProvingKey
    verification_key: VerificationKey
    created_at: float = field(default_factory=time.time)

    @classmethod
    def generate(cls, circuit: ModExpCircuit) -> "TrustedSetup":
        """Generate a fresh key pair for ``circuit``."""
        private_key, public_key = ECDSASigner.generate_keypair()
        digest = circuit.digest().value
        setup = cls(
            setup_id=uuid.uuid4().hex,
            circuit_id=circuit.circuit_id,
            proving_key=ProvingKey(private_key, circuit.circuit_id, digest),
            verification_key=VerificationKey(public_key, circuit.circuit_id, digest),
        )
        logger.info("Generated trusted setup %s for circuit %s", setup.setup_id, circuit.circuit_id)
        return setup

    def validate(self) -> bool:
        """Validate setup data."""
        if not self.setup_id or not self.circuit_id:
            return False
        if not self.proving_key.validate() or not self.verification_key.validate():
            return False
        if self.proving_key.private_key.get_public_key() != self.verification_key.public_key:
            return False
        return self.proving_key.circuit_digest == self.verification_key.circuit_digest


class ProofGenerator(ABC):
    """Abstract base class for proof generators."""

    def __init__(self, circuit: ModExpCircuit, setup: TrustedSetup):
        self.circuit = circuit
        self.setup = setup
        self._initialized = False

    @abstractmethod
    def initialize(self) -> None:
        """Initialize the proof generator."""
        pass

    @abstractmethod
    def generate_proof(
        self, witness: Witness, claimed_output: Optional[PublicInputLike] = None
    ) -> ProofResult:
        """Generate a proof for ``witness``."""
        pass

    @property
    def is_initialized(self) -> bool:
        """Check if generator is initialized."""
        return self._initialized


class AttestationProofGenerator(ProofGenerator):
    """Reference prover: signs a salted witness commitment and the public
    inputs once the witness is known to satisfy the circuit."""

    def initialize(self) -> None:
        """Check that the setup matches the circuit."""
        if self._initialized:
            return
        if not self.setup.validate():
            raise ZKPError("Invalid trusted setup")
        if self.setup.proving_key.circuit_digest != self.circuit.digest().value:
            raise ZKPError("Trusted setup does not match circuit")
        self._initialized = True

    def generate_proof(
        self, witness: Witness, claimed_output: Optional[PublicInputLike] = None
    ) -> ProofResult:
        """Generate a proof that ``witness`` satisfies the relation.

        Args:
            witness: Private operands.
            claimed_output: Optional value the caller intends to disclose.

        Returns:
            ProofResult holding the opaque proof bytes and public inputs.

        Raises:
            WitnessConstructionError: If the witness cannot be built, does
                not satisfy the circuit, or contradicts ``claimed_output``.
        """
        if not self._initialized:
            raise ZKPError("Proof generator not initialized")

        start_time = time.time()
        assignment = self.circuit.generate_witness(witness)
        if not self.circuit.verify_witness(assignment):
            raise WitnessConstructionError("Witness does not satisfy the circuit")

        public_inputs: List[FieldElement] = assignment.public_inputs
        if claimed_output is not None:
            if normalize_public_input(claimed_output) != public_inputs[0]:
                raise WitnessConstructionError(
                    "Claimed output does not match the relation for this witness"
                )

        salt = secrets.token_bytes(COMMITMENT_SALT_SIZE)
        commitment = SHA256Hasher.hash_list([salt, witness.to_bytes()]).value
        circuit_digest = self.setup.proving_key.circuit_digest
        key_digest = self.setup.verification_key.get_hash().value

        message = attestation_message(circuit_digest, key_digest, commitment, public_inputs)
        signature = self.setup.proving_key.private_key.sign(message)

        proof = Proof(
            circuit_digest=circuit_digest,
            key_digest=key_digest,
            commitment=commitment,
            signature=signature,
        )

        logger.debug("Generated proof for circuit %s", self.circuit.circuit_id)
        return ProofResult(
            proof=proof.to_bytes(),
            public_inputs=public_inputs,
            generation_time=time.time() - start_time,
            metadata={
                "generator": "attestation",
                "circuit_id": self.circuit.circuit_id,
                "setup_id": self.setup.setup_id,
            },
        )

"""
Zero-knowledge proofs of modular exponentiation.

This module proves knowledge of private ``(base, exponent, modulus)`` with
``base^exponent mod modulus == y`` for a public ``y``, and records the outcome
of verifying such proofs.

Key Features:
- Fixed-shape, branchless square-and-multiply circuit over the BN254 scalar field
- Verifier capability that any proof backend can satisfy
- Recording verifier that keeps the last outcome and emits audit events
- Distinct failure tiers for unprovable witnesses, rejected proofs and
  malformed input

Security Considerations:
- The circuit shape does not depend on the exponent's value
- Malformed proofs and public inputs raise instead of returning False
- A failed structural check leaves recorded state untouched
"""

from .circuits import (
    Constraint,
    ConstraintSystem,
    ConstraintType,
    ModExpCircuit,
    RoundState,
    Witness,
    WitnessAssignment,
    pow_mod,
    square_and_multiply,
)
from .core import (
    PROOF_SIZE,
    MalformedProofError,
    MalformedPublicInputError,
    Proof,
    ProofResult,
    PublicInputArityError,
    StructuralVerificationError,
    VerifyingKeyMismatchError,
    WitnessConstructionError,
    ZKPConfig,
    ZKPError,
    ZKPManager,
    ZKPStatus,
    normalize_public_input,
    public_input_values,
)
from .generation import (
    AttestationProofGenerator,
    ProofGenerator,
    ProvingKey,
    TrustedSetup,
    VerificationKey,
)
from .verification import (
    ProofVerifier,
    RecordingVerifier,
    VerificationEvent,
    VerificationRecord,
    Verifier,
)

__all__ = [
    # Core types
    "ZKPConfig",
    "ZKPError",
    "ZKPManager",
    "ZKPStatus",
    "Proof",
    "ProofResult",
    "PROOF_SIZE",
    "normalize_public_input",
    "public_input_values",
    # Errors
    "WitnessConstructionError",
    "StructuralVerificationError",
    "MalformedProofError",
    "MalformedPublicInputError",
    "PublicInputArityError",
    "VerifyingKeyMismatchError",
    # Circuits
    "ModExpCircuit",
    "Witness",
    "WitnessAssignment",
    "RoundState",
    "Constraint",
    "ConstraintSystem",
    "ConstraintType",
    "pow_mod",
    "square_and_multiply",
    # Generation
    "ProofGenerator",
    "AttestationProofGenerator",
    "ProvingKey",
    "VerificationKey",
    "TrustedSetup",
    # Verification
    "Verifier",
    "ProofVerifier",
    "RecordingVerifier",
    "VerificationRecord",
    "VerificationEvent",
]

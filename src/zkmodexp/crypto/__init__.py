"""
Cryptographic primitives for zkmodexp.

This module provides the functions needed for:
- Prime field arithmetic over the BN254 scalar field
- Hash functions (SHA-256)
- Digital signatures (ECDSA)
- Zero-Knowledge Proofs of modular exponentiation
"""

from .field import FIELD_MODULUS, FieldElement, select
from .hashing import Hash, SHA256Hasher
from .signatures import ECDSASigner, PrivateKey, PublicKey, Signature

# ZKP imports
from .zkp import (
    ModExpCircuit,
    ProofVerifier,
    RecordingVerifier,
    StructuralVerificationError,
    VerificationEvent,
    VerificationRecord,
    Verifier,
    Witness,
    WitnessConstructionError,
    ZKPConfig,
    ZKPError,
    ZKPManager,
    pow_mod,
)

__all__ = [
    "FIELD_MODULUS",
    "FieldElement",
    "select",
    "Hash",
    "SHA256Hasher",
    "ECDSASigner",
    "PrivateKey",
    "PublicKey",
    "Signature",
    "ModExpCircuit",
    "Witness",
    "pow_mod",
    "Verifier",
    "ProofVerifier",
    "RecordingVerifier",
    "VerificationRecord",
    "VerificationEvent",
    "ZKPConfig",
    "ZKPError",
    "ZKPManager",
    "WitnessConstructionError",
    "StructuralVerificationError",
]

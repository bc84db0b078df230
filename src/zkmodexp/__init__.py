"""
zkmodexp: zero-knowledge proofs of modular exponentiation.

A prover shows it knows ``(base, exponent, modulus)`` whose modular power
equals a public value, and a recording verifier keeps an auditable record of
the most recent verification outcome.
"""

__version__ = "0.1.0"

from .crypto.field import FieldElement
from .crypto.zkp import (
    ModExpCircuit,
    ProofVerifier,
    RecordingVerifier,
    StructuralVerificationError,
    Verifier,
    Witness,
    WitnessConstructionError,
    ZKPConfig,
    ZKPManager,
    pow_mod,
)
from .errors import ZKModExpError

__all__ = [
    "__version__",
    "FieldElement",
    "ModExpCircuit",
    "Witness",
    "pow_mod",
    "Verifier",
    "ProofVerifier",
    "RecordingVerifier",
    "ZKPConfig",
    "ZKPManager",
    "ZKModExpError",
    "WitnessConstructionError",
    "StructuralVerificationError",
]

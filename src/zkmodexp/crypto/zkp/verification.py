"""
ZKP verification components.

This module provides the verifier capability, the reference proof verifier
and the recording verifier that keeps an audit record of the most recent
verification.
"""

import logging
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from typing import (
    Any,
    Callable,
    Deque,
    Dict,
    List,
    Optional,
    Protocol,
    Sequence,
    Tuple,
    runtime_checkable,
)

from ...errors import ConfigurationError
from ..field import FieldElement
from ..hashing import Hash, SHA256Hasher
from .core import (
    MalformedProofError,
    Proof,
    PublicInputArityError,
    PublicInputLike,
    VerifyingKeyMismatchError,
    ZKPConfig,
    encode_public_inputs,
    normalize_public_input,
    public_input_values,
)
from .generation import VerificationKey, attestation_message

logger = logging.getLogger(__name__)


@runtime_checkable
class Verifier(Protocol):
    """Capability to check a proof against its public inputs.

    Implementations must be side-effect free and deterministic. They return
    ``False`` for a well-formed proof that does not attest the inputs and
    raise :class:`StructuralVerificationError` when the proof or inputs
    cannot be interpreted.
    """

    def verify(self, proof: bytes, public_inputs: Sequence[PublicInputLike]) -> bool:
        ...


class ProofVerifier:
    """Verifier for proofs made by the attestation prover."""

    def __init__(self, verification_key: VerificationKey, config: Optional[ZKPConfig] = None):
        self.config = config or ZKPConfig()
        self.verification_key = verification_key
        self.public_input_count = self.config.public_input_count
        self.max_proof_size = self.config.max_proof_size
        self._key_digest = verification_key.get_hash().value

    def normalize_public_inputs(
        self, public_inputs: Sequence[PublicInputLike]
    ) -> List[FieldElement]:
        """Check arity and convert each public input to a field element."""
        public_inputs = public_input_values(public_inputs, self.public_input_count)
        if len(public_inputs) != self.public_input_count:
            raise PublicInputArityError(self.public_input_count, len(public_inputs))
        return [normalize_public_input(value) for value in public_inputs]

    def decode_proof(self, proof: bytes) -> Proof:
        """Decode and bind a proof to this verifier's key."""
        if isinstance(proof, (bytes, bytearray)) and len(proof) > self.max_proof_size:
            raise MalformedProofError(f"Proof data too large: {len(proof)} bytes")

        decoded = Proof.from_bytes(proof)
        if decoded.key_digest != self._key_digest:
            raise VerifyingKeyMismatchError("Proof was produced for a different verification key")
        if decoded.circuit_digest != self.verification_key.circuit_digest:
            raise VerifyingKeyMismatchError("Proof was produced for a different circuit")
        return decoded

    def verify(self, proof: bytes, public_inputs: Sequence[PublicInputLike]) -> bool:
        """Verify a proof.

        Returns:
            True iff the proof attests a satisfying witness for
            ``public_inputs``.

        Raises:
            StructuralVerificationError: If the proof or inputs are malformed,
                the arity is wrong, or the key does not match.
        """
        decoded = self.decode_proof(proof)
        elements = self.normalize_public_inputs(public_inputs)

        message = attestation_message(
            decoded.circuit_digest, decoded.key_digest, decoded.commitment, elements
        )
        is_valid = self.verification_key.public_key.verify(decoded.signature, message)
        logger.debug(
            "Verified proof for circuit %s: %s",
            self.verification_key.circuit_id,
            is_valid,
        )
        return is_valid

    def get_verification_stats(self) -> Dict[str, Any]:
        """Get verifier parameters."""
        return {
            "circuit_id": self.verification_key.circuit_id,
            "public_input_count": self.public_input_count,
            "max_proof_size": self.max_proof_size,
            "key_digest": self._key_digest.hex(),
        }


@dataclass(frozen=True)
class VerificationRecord:
    """Outcome of the most recent recorded verification."""

    last_result: bool = False
    last_public_inputs: Tuple[FieldElement, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        """Convert record to dictionary."""
        return {
            "last_result": self.last_result,
            "last_public_inputs": [e.to_hex() for e in self.last_public_inputs],
        }


@dataclass(frozen=True)
class VerificationEvent:
    """Audit event emitted once per recorded verification."""

    EVENT_NAME = "VerificationRecorded"

    result: bool
    log_index: int
    verifier_id: str
    public_inputs_hash: Hash
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary."""
        return {
            "event": self.EVENT_NAME,
            "result": self.result,
            "log_index": self.log_index,
            "verifier_id": self.verifier_id,
            "public_inputs_hash": self.public_inputs_hash.to_hex(),
            "timestamp": self.timestamp,
        }


EventListener = Callable[[VerificationEvent], None]


class RecordingVerifier:
    """Verifier wrapper that records the last outcome and emits audit events.

    Holds any object satisfying :class:`Verifier` and delegates to it. Each
    instance admits one state-changing operation at a time.
    """

    def __init__(
        self,
        verifier: Verifier,
        verifier_id: str = "modexp-recording-verifier",
        max_event_log: Optional[int] = None,
    ):
        if not isinstance(verifier, Verifier):
            raise TypeError("verifier must provide verify(proof, public_inputs)")
        if max_event_log is not None and max_event_log <= 0:
            raise ConfigurationError(
                "max_event_log must be positive",
                config_key="max_event_log",
                config_value=max_event_log,
            )
        self._verifier = verifier
        self.verifier_id = verifier_id
        self._record = VerificationRecord()
        self._events: Deque[VerificationEvent] = deque(maxlen=max_event_log)
        self._event_count = 0
        self._listeners: List[EventListener] = []
        self._lock = threading.RLock()

    @property
    def verifier(self) -> Verifier:
        return self._verifier

    @property
    def record(self) -> VerificationRecord:
        return self._record

    @property
    def last_result(self) -> bool:
        return self._record.last_result

    @property
    def last_public_inputs(self) -> Tuple[FieldElement, ...]:
        return self._record.last_public_inputs

    def verify(self, proof: bytes, public_inputs: Sequence[PublicInputLike]) -> bool:
        """Delegate to the wrapped verifier without recording anything."""
        return self._verifier.verify(proof, public_inputs)

    def verify_and_store(
        self, proof: bytes, public_inputs: Sequence[PublicInputLike]
    ) -> bool:
        """Verify, then replace the record and emit one audit event.

        If normalisation or the wrapped verifier raises, the exception
        propagates and neither the record nor the event log changes.
        """
        with self._lock:
            expected = getattr(self._verifier, "public_input_count", 1)
            values = public_input_values(public_inputs, expected)
            elements = tuple(normalize_public_input(value) for value in values)
            result = bool(self._verifier.verify(proof, list(elements)))

            event = VerificationEvent(
                result=result,
                log_index=self._event_count,
                verifier_id=self.verifier_id,
                public_inputs_hash=SHA256Hasher.hash_list(encode_public_inputs(elements)),
            )
            self._record = VerificationRecord(last_result=result, last_public_inputs=elements)
            self._events.append(event)
            self._event_count += 1

            logger.info(
                "Recorded verification %d on %s: result=%s",
                event.log_index,
                self.verifier_id,
                result,
            )
            self._notify(event)
            return result

    def subscribe(self, listener: EventListener) -> None:
        """Register a callback invoked with each new event."""
        with self._lock:
            self._listeners.append(listener)

    def unsubscribe(self, listener: EventListener) -> None:
        """Remove a previously registered callback."""
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def get_events(self, result: Optional[bool] = None) -> List[VerificationEvent]:
        """Get logged events, optionally only those with the given result."""
        with self._lock:
            if result is None:
                return list(self._events)
            return [event for event in self._events if event.result == result]

    @property
    def event_count(self) -> int:
        """Total number of events emitted, including any evicted from the log."""
        return self._event_count

    def _notify(self, event: VerificationEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception(
                    "Event listener failed for event %d on %s",
                    event.log_index,
                    self.verifier_id,
                )

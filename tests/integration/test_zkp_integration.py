"""
Integration tests for the modular exponentiation proof system.

This module tests the integration between the circuit, prover, verifier and
recording verifier in end-to-end workflows.
"""

import json
import logging
from concurrent.futures import ThreadPoolExecutor

import pytest

from zkmodexp import __version__
from zkmodexp.crypto.field import FieldElement
from zkmodexp.crypto.zkp import (
    MalformedProofError,
    ProofVerifier,
    RecordingVerifier,
    TrustedSetup,
    VerificationKey,
    Verifier,
    VerifyingKeyMismatchError,
    Witness,
    WitnessConstructionError,
    ZKPConfig,
    ZKPManager,
)
from zkmodexp.logging import LogConfig, LogLevel, setup_logging, shutdown_logging


@pytest.fixture(autouse=True)
def clear_environment(monkeypatch):
    for name in (
        "ZKMODEXP_CIRCUIT_ID",
        "ZKMODEXP_OPERAND_BITS",
        "ZKMODEXP_MAX_PROOF_SIZE",
        "ZKMODEXP_VERIFIER_ID",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(scope="module")
def manager():
    manager = ZKPManager()
    manager.initialize()
    yield manager
    manager.cleanup()


class TestZKPIntegration:
    """Test ZKP system integration."""

    def test_package_version(self):
        """Test the package exposes a version."""
        assert __version__

    def test_end_to_end_workflow(self, manager):
        """Test proving, verifying and recording in one flow."""
        recording = manager.create_recording_verifier()

        result = manager.generate_proof(Witness(3, 6, 7))
        assert result.public_inputs == [FieldElement(1)]

        assert recording.verify_and_store(result.proof, result.public_inputs) is True
        assert recording.last_result is True
        assert recording.last_public_inputs == (FieldElement(1),)
        assert recording.verifier_id == "modexp-recording-verifier"

        event = recording.get_events()[0]
        assert event.result is True
        assert event.verifier_id == recording.verifier_id

    def test_unprovable_witnesses(self, manager):
        """Test that invalid witnesses never reach the verifier."""
        with pytest.raises(WitnessConstructionError):
            manager.generate_proof(Witness(3, 6, 0))

    def test_claimed_output_mismatch(self, manager):
        """Test that a false claim cannot be proven."""
        with pytest.raises(WitnessConstructionError):
            manager.generate_proof(Witness(2, 10, 1000), claimed_output=25)

    def test_three_tiers_distinct(self, manager):
        """Test that cannot-prove, rejected and malformed stay distinct."""
        recording = manager.create_recording_verifier()
        result = manager.generate_proof(Witness(2, 10, 1000))

        assert recording.verify_and_store(result.proof, [24]) is True
        assert recording.verify_and_store(result.proof, [23]) is False

        with pytest.raises(MalformedProofError):
            recording.verify_and_store(result.proof[:100], [24])

        assert recording.last_result is False
        assert recording.last_public_inputs == (FieldElement(23),)
        assert len(recording.get_events()) == 2

    def test_verifier_from_serialized_key(self, manager):
        """Test verifying with a key restored from bytes."""
        key = VerificationKey.from_bytes(manager.setup.verification_key.to_bytes())
        verifier = ProofVerifier(key, manager.config)
        result = manager.generate_proof(Witness(5, 3, 13))

        assert verifier.verify(result.proof, [pow(5, 3, 13)])

    def test_shared_setup_between_managers(self, manager):
        """Test that a second manager with the same setup verifies proofs."""
        other = ZKPManager(setup=manager.setup)
        other.initialize()

        result = manager.generate_proof(Witness(7, 11, 19))
        assert other.verify_proof(result.proof, result.public_inputs)

    def test_separate_setups_incompatible(self, manager):
        """Test that a fresh setup cannot verify another setup's proofs."""
        other = ZKPManager()
        other.initialize()

        result = manager.generate_proof(Witness(7, 11, 19))
        with pytest.raises(VerifyingKeyMismatchError):
            other.verify_proof(result.proof, result.public_inputs)

    def test_narrow_operand_configuration(self):
        """Test a manager configured for 8-bit operands."""
        manager = ZKPManager(ZKPConfig(circuit_id="modexp_u8", operand_bits=8))
        manager.initialize()

        assert manager.get_circuit_info()["constraint_count"] == 50
        result = manager.generate_proof(Witness(200, 255, 251, operand_bits=8))
        assert manager.verify_proof(result.proof, [pow(200, 255, 251)])

        with pytest.raises(WitnessConstructionError):
            manager.generate_proof(Witness(3, 6, 7))

    def test_environment_configured_manager(self, monkeypatch):
        """Test a manager configured from the environment."""
        monkeypatch.setenv("ZKMODEXP_OPERAND_BITS", "16")
        monkeypatch.setenv("ZKMODEXP_CIRCUIT_ID", "modexp_u16")
        monkeypatch.setenv("ZKMODEXP_VERIFIER_ID", "env-verifier")

        manager = ZKPManager()
        manager.initialize()
        recording = manager.create_recording_verifier()
        result = manager.generate_proof(Witness(300, 5, 1000, operand_bits=16))

        assert recording.verify_and_store(result.proof, result.public_inputs)
        assert recording.get_events()[0].verifier_id == "env-verifier"

    def test_bounded_event_log_from_config(self):
        """Test the event log limit flows from configuration."""
        manager = ZKPManager(ZKPConfig(max_event_log=3))
        manager.initialize()
        recording = manager.create_recording_verifier()
        result = manager.generate_proof(Witness(3, 6, 7))

        for _ in range(5):
            recording.verify_and_store(result.proof, [1])

        assert len(recording.get_events()) == 3
        assert recording.event_count == 5

    def test_recording_verifier_stacks(self, manager):
        """Test wrapping a recording verifier in another one."""
        inner = manager.create_recording_verifier()
        outer = RecordingVerifier(inner, verifier_id="outer")
        result = manager.generate_proof(Witness(3, 6, 7))

        assert isinstance(inner, Verifier)
        assert outer.verify_and_store(result.proof, [1]) is True
        assert outer.last_result is True
        assert inner.get_events() == []

    def test_concurrent_recording(self, manager):
        """Test concurrent verify_and_store calls on one instance."""
        recording = manager.create_recording_verifier()
        proofs = [manager.generate_proof(Witness(3, e, 7)) for e in range(4)]

        def submit(index):
            result = proofs[index % 4]
            return recording.verify_and_store(result.proof, result.public_inputs)

        with ThreadPoolExecutor(max_workers=4) as executor:
            results = list(executor.map(submit, range(16)))

        assert all(results)
        assert [e.log_index for e in recording.get_events()] == list(range(16))

    def test_structured_logging(self, manager, tmp_path):
        """Test that recorded verifications are logged as JSON."""
        path = tmp_path / "audit.log"
        setup_logging(LogConfig(level=LogLevel.INFO, handlers=["file"], file_path=str(path)))
        try:
            recording = manager.create_recording_verifier()
            result = manager.generate_proof(Witness(3, 6, 7))
            recording.verify_and_store(result.proof, [1])
        finally:
            shutdown_logging()
            root = logging.getLogger("zkmodexp")
            root.propagate = True
            root.setLevel(logging.NOTSET)

        entries = [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]
        recorded = [e for e in entries if e["message"].startswith("Recorded verification")]
        assert len(recorded) == 1
        assert recorded[0]["logger"] == "zkmodexp.crypto.zkp.verification"

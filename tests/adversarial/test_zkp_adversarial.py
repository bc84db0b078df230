"""
Adversarial and fuzz tests for the modular exponentiation proof system.

These tests attempt to break the verifier with forged, malformed and
replayed proofs to ensure each failure lands in the right tier.
"""

import random
import secrets

import pytest

from zkmodexp.crypto.field import FIELD_MODULUS, FieldElement
from zkmodexp.crypto.signatures import PrivateKey
from zkmodexp.crypto.zkp import (
    PROOF_SIZE,
    MalformedProofError,
    Proof,
    StructuralVerificationError,
    Witness,
    WitnessConstructionError,
    ZKPManager,
)
from zkmodexp.crypto.zkp.circuits import ModExpCircuit
from zkmodexp.crypto.zkp.generation import attestation_message


@pytest.fixture(scope="module")
def manager():
    manager = ZKPManager()
    manager.initialize()
    return manager


@pytest.fixture(scope="module")
def valid(manager):
    return manager.generate_proof(Witness(2, 10, 1000))


class TestForgery:
    """Attempts to produce accepted proofs without a satisfying witness."""

    def test_forged_signature_with_other_key(self, manager, valid):
        """Test a proof signed by an attacker key over a false output."""
        proof = Proof.from_bytes(valid.proof)
        attacker = PrivateKey.generate()
        message = attestation_message(
            proof.circuit_digest, proof.key_digest, proof.commitment, [FieldElement(25)]
        )
        forged = Proof(
            circuit_digest=proof.circuit_digest,
            key_digest=proof.key_digest,
            commitment=proof.commitment,
            signature=attacker.sign(message),
        )

        assert manager.verify_proof(forged.to_bytes(), [25]) is False

    def test_reused_signature_new_commitment(self, manager, valid):
        """Test that a signature does not transfer to a new commitment."""
        proof = Proof.from_bytes(valid.proof)
        replayed = Proof(
            circuit_digest=proof.circuit_digest,
            key_digest=proof.key_digest,
            commitment=secrets.token_bytes(32),
            signature=proof.signature,
        )
        assert manager.verify_proof(replayed.to_bytes(), [24]) is False

    def test_congruent_output_outside_field_range(self, manager, valid):
        """Test that an int public input of y + r is malformed, not accepted."""
        with pytest.raises(StructuralVerificationError):
            manager.verify_proof(valid.proof, [24 + FIELD_MODULUS])

    def test_negative_output(self, manager, valid):
        """Test that a negative public input is malformed."""
        with pytest.raises(StructuralVerificationError):
            manager.verify_proof(valid.proof, [24 - FIELD_MODULUS])

    def test_unsatisfying_assignment_not_provable(self, manager):
        """Test that a tampered assignment is caught before signing."""
        circuit = ModExpCircuit()
        assignment = circuit.generate_witness(Witness(3, 6, 7))
        assignment.set_value("result_32", 2)
        assert not circuit.verify_witness(assignment)

        with pytest.raises(WitnessConstructionError):
            manager.generate_proof(Witness(3, 6, 7), claimed_output=2)


class TestMalformedInput:
    """Malformed proofs and inputs always raise structural errors."""

    @pytest.mark.parametrize(
        "data",
        [
            b"",
            b"ZKME",
            b"\xff" * PROOF_SIZE,
            b"ZKME\x01" + b"\x00" * (PROOF_SIZE - 5),
            b"\x00" * (PROOF_SIZE * 10),
        ],
    )
    def test_malformed_proofs(self, manager, data):
        """Test hand-crafted malformed proofs."""
        with pytest.raises(MalformedProofError):
            manager.verify_proof(data, [24])

    @pytest.mark.parametrize("data", [None, 12345, "ZKME", ["ZKME"]])
    def test_non_bytes_proofs(self, manager, data):
        """Test proofs of the wrong type."""
        with pytest.raises(MalformedProofError):
            manager.verify_proof(data, [24])

    def test_truncations(self, manager, valid):
        """Test every truncation of a valid proof."""
        for length in range(PROOF_SIZE):
            with pytest.raises(MalformedProofError):
                manager.verify_proof(valid.proof[:length], [24])

    def test_random_mutations(self, manager, valid):
        """Test random byte mutations land in tier two or three only."""
        rng = random.Random(1234)
        for _ in range(200):
            mutated = bytearray(valid.proof)
            position = rng.randrange(len(mutated))
            mutated[position] ^= rng.randrange(1, 256)
            try:
                result = manager.verify_proof(bytes(mutated), [24])
            except StructuralVerificationError:
                continue
            assert result is False

    @pytest.mark.parametrize(
        "public_inputs",
        [[], [24, 24], [b"\x18"], [b"\x00" * 64], ["24"], [24.0], [None], [True]],
    )
    def test_malformed_public_inputs(self, manager, valid, public_inputs):
        """Test structurally invalid public inputs."""
        with pytest.raises(StructuralVerificationError):
            manager.verify_proof(valid.proof, public_inputs)


class TestRecordingUnderAttack:
    """Recorded state survives hostile input."""

    def test_state_survives_malformed_stream(self, manager, valid):
        """Test that a stream of bad calls never changes the record."""
        recording = manager.create_recording_verifier()
        recording.verify_and_store(valid.proof, [24])
        record = recording.record

        rng = random.Random(99)
        for _ in range(50):
            data = bytes(rng.randrange(256) for _ in range(rng.randrange(PROOF_SIZE)))
            with pytest.raises(StructuralVerificationError):
                recording.verify_and_store(data, [24])

        assert recording.record is record
        assert len(recording.get_events()) == 1

    def test_rejections_overwrite_success(self, manager, valid):
        """Test that a later rejection replaces an earlier success."""
        recording = manager.create_recording_verifier()
        assert recording.verify_and_store(valid.proof, [24]) is True
        assert recording.verify_and_store(valid.proof, [0]) is False
        assert recording.last_result is False
        assert recording.last_public_inputs == (FieldElement(0),)

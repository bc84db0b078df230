"""
Property-based tests for the modular exponentiation proof system using
Hypothesis.

These tests verify that the relation and the verifier maintain their
properties across a wide range of witnesses.
"""

import pytest
from hypothesis import HealthCheck, example, given, settings
from hypothesis import strategies as st

from zkmodexp.crypto.field import FIELD_MODULUS, FieldElement
from zkmodexp.crypto.zkp import (
    ModExpCircuit,
    StructuralVerificationError,
    Witness,
    ZKPManager,
    pow_mod,
    square_and_multiply,
)

U32 = st.integers(min_value=0, max_value=2**32 - 1)
NONZERO_U32 = st.integers(min_value=1, max_value=2**32 - 1)


@pytest.fixture(scope="module")
def manager():
    manager = ZKPManager()
    manager.initialize()
    return manager


class TestRelationProperties:
    """Properties of the fixed-shape evaluation."""

    @given(base=U32, exponent=U32, modulus=NONZERO_U32)
    @example(base=3, exponent=6, modulus=7)
    @example(base=2, exponent=10, modulus=1000)
    @example(base=2**32 - 1, exponent=2**32 - 1, modulus=2**32 - 1)
    def test_matches_builtin_pow(self, base, exponent, modulus):
        """The circuit agrees with Python's modular power."""
        assert pow_mod(base, exponent, modulus) == pow(base, exponent, modulus)

    @given(base=U32, modulus=NONZERO_U32)
    def test_zero_exponent(self, base, modulus):
        """A zero exponent yields 1 mod modulus."""
        assert pow_mod(base, 0, modulus) == 1 % modulus

    @given(base=U32, exponent=U32)
    def test_modulus_one(self, base, exponent):
        """A modulus of one yields zero."""
        assert pow_mod(base, exponent, 1) == 0

    @given(base=U32, exponent=U32, modulus=NONZERO_U32)
    def test_result_below_modulus(self, base, exponent, modulus):
        """The output is always reduced."""
        assert 0 <= pow_mod(base, exponent, modulus) < modulus

    @given(base=U32, exponent=U32, modulus=NONZERO_U32)
    def test_round_count_fixed(self, base, exponent, modulus):
        """Every witness takes exactly 32 rounds."""
        rounds = list(square_and_multiply(Witness(base, exponent, modulus)))
        assert len(rounds) == 32
        assert all(state.bit.is_boolean() for state in rounds)

    @given(
        bits=st.integers(min_value=1, max_value=12),
        data=st.data(),
    )
    def test_any_width(self, bits, data):
        """The evaluation is correct for narrower operand widths."""
        limit = 2**bits - 1
        base = data.draw(st.integers(min_value=0, max_value=limit))
        exponent = data.draw(st.integers(min_value=0, max_value=limit))
        modulus = data.draw(st.integers(min_value=1, max_value=limit))
        assert pow_mod(base, exponent, modulus, bits=bits) == pow(base, exponent, modulus)


class TestCircuitProperties:
    """Properties of the constraint system."""

    @settings(max_examples=25, deadline=None)
    @given(base=U32, exponent=U32, modulus=NONZERO_U32)
    def test_honest_assignment_satisfies(self, base, exponent, modulus):
        """Every honest assignment satisfies every constraint."""
        circuit = ModExpCircuit()
        assignment = circuit.generate_witness(Witness(base, exponent, modulus))
        assert circuit.verify_witness(assignment)
        assert assignment.public_inputs == [FieldElement(pow(base, exponent, modulus))]

    @settings(max_examples=25, deadline=None)
    @given(base=U32, exponent=U32, modulus=NONZERO_U32, delta=st.integers(min_value=1, max_value=2**32))
    def test_wrong_output_unsatisfiable(self, base, exponent, modulus, delta):
        """Changing the public output breaks the circuit."""
        circuit = ModExpCircuit()
        assignment = circuit.generate_witness(Witness(base, exponent, modulus))
        assignment.set_value("y", assignment.get_value("y") + delta, is_public=True)
        assert not circuit.verify_witness(assignment)


class TestVerifierProperties:
    """Properties of proving and verifying."""

    @settings(max_examples=20, deadline=None, suppress_health_check=[HealthCheck.function_scoped_fixture])
    @given(base=U32, exponent=U32, modulus=NONZERO_U32)
    def test_round_trip(self, manager, base, exponent, modulus):
        """A proof of a satisfying witness verifies against its output."""
        witness = Witness(base, exponent, modulus)
        result = manager.generate_proof(witness)
        assert manager.verify_proof(result.proof, result.public_inputs) is True
        assert manager.verify_proof(result.proof, [pow(base, exponent, modulus)]) is True

    @settings(max_examples=20, deadline=None, suppress_health_check=[HealthCheck.function_scoped_fixture])
    @given(
        base=U32,
        exponent=U32,
        modulus=NONZERO_U32,
        bit=st.integers(min_value=0, max_value=255),
    )
    def test_public_input_bit_flip(self, manager, base, exponent, modulus, bit):
        """Flipping one bit of the encoded output makes verification fail."""
        result = manager.generate_proof(Witness(base, exponent, modulus))
        word = bytearray(result.public_inputs[0].to_bytes())
        word[bit // 8] ^= 1 << (bit % 8)
        assert manager.verify_proof(result.proof, [bytes(word)]) is False

    @settings(max_examples=50, deadline=None, suppress_health_check=[HealthCheck.function_scoped_fixture])
    @given(data=st.binary(max_size=400))
    def test_random_bytes_never_verify(self, manager, data):
        """Arbitrary bytes are either rejected or structurally invalid."""
        try:
            assert manager.verify_proof(data, [1]) is False
        except StructuralVerificationError:
            pass

    @settings(max_examples=50, deadline=None, suppress_health_check=[HealthCheck.function_scoped_fixture])
    @given(value=st.integers(min_value=FIELD_MODULUS, max_value=2**256 - 1))
    def test_oversized_words_are_reduced(self, manager, value):
        """A 32-byte word is interpreted modulo the field."""
        result = manager.generate_proof(Witness(3, 6, 7))
        expected = value % FIELD_MODULUS == 1
        assert manager.verify_proof(result.proof, [value.to_bytes(32, "big")]) is expected

"""
ZKP circuit for modular exponentiation.

This module defines the relation ``y = base^exponent mod modulus`` as a
fixed-shape arithmetic circuit: a constraint system whose size depends only
on the operand width, a witness type for the private operands, and the
branchless square-and-multiply evaluation that fills in every variable.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional

from ...errors import ConfigurationError, create_validation_error
from ..field import FieldElement, select
from ..hashing import Hash, SHA256Hasher
from .core import (
    DEFAULT_CIRCUIT_ID,
    DEFAULT_OPERAND_BITS,
    MAX_OPERAND_BITS,
    PublicInputLike,
    WitnessConstructionError,
    normalize_public_input,
)

logger = logging.getLogger(__name__)

PUBLIC_OUTPUT = "y"


def check_operand_bits(bits: int) -> int:
    """Validate an operand width, returning it unchanged."""
    if isinstance(bits, bool) or not isinstance(bits, int):
        raise ConfigurationError("operand_bits must be an int", config_key="operand_bits")
    if not 1 <= bits <= MAX_OPERAND_BITS:
        raise ConfigurationError(
            f"operand_bits must be between 1 and {MAX_OPERAND_BITS}",
            config_key="operand_bits",
            config_value=bits,
        )
    return bits


@dataclass(frozen=True, repr=False)
class Witness:
    """Private operands of the relation.

    Raises:
        WitnessConstructionError: If an operand is outside the unsigned
            ``operand_bits`` range or ``modulus`` is zero.
    """

    base: int
    exponent: int
    modulus: int
    operand_bits: int = DEFAULT_OPERAND_BITS

    def __post_init__(self) -> None:
        check_operand_bits(self.operand_bits)
        limit = 1 << self.operand_bits
        for name in ("base", "exponent", "modulus"):
            value = getattr(self, name)
            expected = f"unsigned {self.operand_bits}-bit int"
            if isinstance(value, bool) or not isinstance(value, int):
                raise WitnessConstructionError(
                    f"{name} must be an int",
                    details={"field": name},
                    cause=create_validation_error(name, type(value).__name__, expected),
                )
            if not 0 <= value < limit:
                raise WitnessConstructionError(
                    f"{name} must fit in {self.operand_bits} unsigned bits",
                    details={"field": name},
                    cause=create_validation_error(name, value, expected),
                )
        if self.modulus == 0:
            raise WitnessConstructionError("modulus must be non-zero")

    def to_bytes(self) -> bytes:
        """Fixed-width big-endian encoding of the operands."""
        width = (self.operand_bits + 7) // 8
        return b"".join(
            value.to_bytes(width, byteorder="big")
            for value in (self.base, self.exponent, self.modulus)
        )

    def __repr__(self) -> str:
        return f"Witness(<private>, operand_bits={self.operand_bits})"


@dataclass(frozen=True)
class RoundState:
    """Values produced by one square-and-multiply round."""

    index: int
    bit: FieldElement
    candidate: FieldElement
    result: FieldElement
    base: FieldElement
    exponent: int


def _reduce(value: FieldElement, modulus: int) -> FieldElement:
    if modulus == 0:
        raise WitnessConstructionError("modulus must be non-zero")
    return FieldElement(value.value % modulus)


def square_and_multiply(witness: Witness) -> Iterator[RoundState]:
    """Run the fixed-length, branchless right-to-left exponentiation.

    Yields exactly ``witness.operand_bits`` rounds whatever the exponent's
    magnitude. The result register starts at ``1 mod modulus`` so that a
    modulus of one always yields zero.
    """
    modulus = witness.modulus
    if modulus == 0:
        raise WitnessConstructionError("modulus must be non-zero")

    base = _reduce(FieldElement(witness.base), modulus)
    result = _reduce(FieldElement.one(), modulus)
    exponent = witness.exponent

    for index in range(witness.operand_bits):
        bit = FieldElement(exponent & 1)
        candidate = _reduce(result * base, modulus)
        result = select(bit, candidate, result)
        base = _reduce(base * base, modulus)
        exponent >>= 1
        yield RoundState(index, bit, candidate, result, base, exponent)


def pow_mod(
    base: int, exponent: int, modulus: int, bits: int = DEFAULT_OPERAND_BITS
) -> int:
    """Compute ``base^exponent mod modulus`` with the fixed-shape circuit."""
    witness = Witness(base, exponent, modulus, bits)
    result = None
    for state in square_and_multiply(witness):
        result = state.result
    return int(result)


class ConstraintType(Enum):
    """Types of constraints in the circuit."""

    RANGE = "range"
    NON_ZERO = "non_zero"
    CONSTANT = "constant"
    EQUALITY = "equality"
    MOD_REDUCE = "mod_reduce"
    BOOLEAN = "boolean"
    DECOMPOSITION = "decomposition"
    MOD_MUL = "mod_mul"
    SELECT = "select"


@dataclass
class Constraint:
    """Represents a constraint in a circuit."""

    constraint_id: str
    constraint_type: ConstraintType
    variables: List[str]
    parameters: Dict[str, Any] = field(default_factory=dict)
    description: str = ""

    def __post_init__(self):
        """Validate constraint after initialization."""
        if not self.constraint_id:
            raise ValueError("constraint_id cannot be empty")
        if not self.variables:
            raise ValueError("constraint must have at least one variable")


@dataclass
class ConstraintSystem:
    """Represents a system of constraints for a circuit."""

    constraints: List[Constraint] = field(default_factory=list)
    variables: Dict[str, str] = field(default_factory=dict)  # variable_name -> type
    public_variables: List[str] = field(default_factory=list)
    private_variables: List[str] = field(default_factory=list)

    def add_constraint(self, constraint: Constraint) -> None:
        """Add a constraint to the system."""
        for var in constraint.variables:
            if var not in self.variables:
                raise ValueError(f"Variable {var} not defined in constraint system")

        self.constraints.append(constraint)

    def add_variable(self, name: str, var_type: str, is_public: bool = False) -> None:
        """Add a variable to the constraint system."""
        if name in self.variables:
            raise ValueError(f"Variable {name} already exists")

        self.variables[name] = var_type
        if is_public:
            self.public_variables.append(name)
        else:
            self.private_variables.append(name)

    def validate(self) -> bool:
        """Validate the constraint system."""
        for constraint in self.constraints:
            for var in constraint.variables:
                if var not in self.variables:
                    return False

        if set(self.public_variables) & set(self.private_variables):
            return False

        return True

    def get_constraint_count(self) -> int:
        """Get the number of constraints."""
        return len(self.constraints)

    def get_variable_count(self) -> int:
        """Get the number of variables."""
        return len(self.variables)


@dataclass
class WitnessAssignment:
    """Assignment of a value to every variable of a circuit."""

    values: Dict[str, int] = field(default_factory=dict)
    public_values: Dict[str, int] = field(default_factory=dict)

    def set_value(self, variable: str, value: int, is_public: bool = False) -> None:
        """Set a value for a variable."""
        self.values[variable] = value
        if is_public:
            self.public_values[variable] = value

    def get_value(self, variable: str) -> Optional[int]:
        """Get the value of a variable."""
        return self.values.get(variable)

    def validate_against_system(self, system: ConstraintSystem) -> bool:
        """Check that every variable of ``system`` has a value."""
        for var in system.public_variables:
            if var not in self.public_values:
                return False

        for var in system.variables:
            if var not in self.values:
                return False

        return True

    @property
    def public_inputs(self) -> List[FieldElement]:
        """Public inputs in the relation's declared order."""
        return [FieldElement.coerce(self.public_values[PUBLIC_OUTPUT])]


class ModExpCircuit:
    """Circuit proving knowledge of ``(base, exponent, modulus)`` with
    ``base^exponent mod modulus == y``.

    Every round contributes the same five constraints, so the constraint
    count is ``5 * operand_bits + 10`` for any witness.
    """

    def __init__(
        self, circuit_id: str = DEFAULT_CIRCUIT_ID, operand_bits: int = DEFAULT_OPERAND_BITS
    ):
        if not circuit_id:
            raise ConfigurationError("circuit_id cannot be empty", config_key="circuit_id")
        self.circuit_id = circuit_id
        self.operand_bits = check_operand_bits(operand_bits)
        self.constraint_system = ConstraintSystem()
        self._built = False
        self._digest: Optional[Hash] = None

    def build(self) -> None:
        """Build the circuit by adding constraints and variables."""
        if self._built:
            return

        cs = self.constraint_system
        bits = self.operand_bits
        operand_type = f"u{bits}"

        for name in ("base", "exponent", "modulus"):
            cs.add_variable(name, operand_type)
        cs.add_variable(PUBLIC_OUTPUT, "field", is_public=True)
        cs.add_variable("one", "field")
        cs.add_variable("base_0", "field")
        cs.add_variable("result_0", "field")
        cs.add_variable("exponent_0", operand_type)

        for name in ("base", "exponent", "modulus"):
            cs.add_constraint(
                Constraint(
                    f"range_{name}",
                    ConstraintType.RANGE,
                    [name],
                    {"bits": bits},
                    f"{name} fits in {bits} unsigned bits",
                )
            )
        cs.add_constraint(
            Constraint("modulus_non_zero", ConstraintType.NON_ZERO, ["modulus"])
        )
        cs.add_constraint(
            Constraint("one", ConstraintType.CONSTANT, ["one"], {"value": 1})
        )
        cs.add_constraint(
            Constraint(
                "reduce_base",
                ConstraintType.MOD_REDUCE,
                ["base_0", "base", "modulus"],
                description="base is reduced once before the first round",
            )
        )
        cs.add_constraint(
            Constraint(
                "init_result",
                ConstraintType.MOD_REDUCE,
                ["result_0", "one", "modulus"],
            )
        )
        cs.add_constraint(
            Constraint("init_exponent", ConstraintType.EQUALITY, ["exponent_0", "exponent"])
        )

        for i in range(bits):
            nxt = i + 1
            cs.add_variable(f"bit_{i}", "bit")
            cs.add_variable(f"candidate_{i}", "field")
            cs.add_variable(f"result_{nxt}", "field")
            cs.add_variable(f"base_{nxt}", "field")
            cs.add_variable(f"exponent_{nxt}", operand_type)

            cs.add_constraint(
                Constraint(f"bit_{i}_boolean", ConstraintType.BOOLEAN, [f"bit_{i}"])
            )
            cs.add_constraint(
                Constraint(
                    f"exponent_{i}_decomposition",
                    ConstraintType.DECOMPOSITION,
                    [f"exponent_{i}", f"exponent_{nxt}", f"bit_{i}"],
                )
            )
            cs.add_constraint(
                Constraint(
                    f"candidate_{i}",
                    ConstraintType.MOD_MUL,
                    [f"candidate_{i}", f"result_{i}", f"base_{i}", "modulus"],
                )
            )
            cs.add_constraint(
                Constraint(
                    f"select_{i}",
                    ConstraintType.SELECT,
                    [f"result_{nxt}", f"bit_{i}", f"candidate_{i}", f"result_{i}"],
                )
            )
            cs.add_constraint(
                Constraint(
                    f"square_{i}",
                    ConstraintType.MOD_MUL,
                    [f"base_{nxt}", f"base_{i}", f"base_{i}", "modulus"],
                )
            )

        cs.add_constraint(
            Constraint(
                "exponent_exhausted",
                ConstraintType.CONSTANT,
                [f"exponent_{bits}"],
                {"value": 0},
            )
        )
        cs.add_constraint(
            Constraint("output", ConstraintType.EQUALITY, [PUBLIC_OUTPUT, f"result_{bits}"])
        )

        if not cs.validate():
            raise ValueError("Invalid constraint system")
        self._built = True

    def _check_witness(self, witness: Witness) -> None:
        if witness.operand_bits != self.operand_bits:
            raise WitnessConstructionError(
                f"Witness uses {witness.operand_bits}-bit operands, "
                f"circuit expects {self.operand_bits}"
            )

    def trace(self, witness: Witness) -> List[RoundState]:
        """Return every round of the evaluation for ``witness``."""
        self._check_witness(witness)
        return list(square_and_multiply(witness))

    def evaluate(self, witness: Witness) -> int:
        """Compute the relation's output for ``witness``."""
        return int(self.trace(witness)[-1].result)

    def public_inputs_of(self, witness: Witness) -> List[FieldElement]:
        """Public inputs a proof for ``witness`` is checked against."""
        return [FieldElement.coerce(self.evaluate(witness))]

    def is_satisfied(self, witness: Witness, y: PublicInputLike) -> bool:
        """True iff ``y`` equals the field-embedded output for ``witness``."""
        return self.public_inputs_of(witness)[0] == normalize_public_input(y)

    def generate_witness(self, witness: Witness) -> WitnessAssignment:
        """Assign every circuit variable for ``witness``."""
        if not self._built:
            self.build()
        rounds = self.trace(witness)

        assignment = WitnessAssignment()
        assignment.set_value("base", witness.base)
        assignment.set_value("exponent", witness.exponent)
        assignment.set_value("modulus", witness.modulus)
        assignment.set_value("one", 1)
        assignment.set_value("base_0", witness.base % witness.modulus)
        assignment.set_value("result_0", 1 % witness.modulus)
        assignment.set_value("exponent_0", witness.exponent)

        for state in rounds:
            i, nxt = state.index, state.index + 1
            assignment.set_value(f"bit_{i}", int(state.bit))
            assignment.set_value(f"candidate_{i}", int(state.candidate))
            assignment.set_value(f"result_{nxt}", int(state.result))
            assignment.set_value(f"base_{nxt}", int(state.base))
            assignment.set_value(f"exponent_{nxt}", state.exponent)

        assignment.set_value(PUBLIC_OUTPUT, int(rounds[-1].result), is_public=True)

        if not assignment.validate_against_system(self.constraint_system):
            raise WitnessConstructionError("Incomplete assignment for constraint system")
        return assignment

    def verify_witness(self, assignment: WitnessAssignment) -> bool:
        """Verify that an assignment satisfies all constraints."""
        if not self._built:
            self.build()
        if not assignment.validate_against_system(self.constraint_system):
            return False

        for constraint in self.constraint_system.constraints:
            if not self._verify_constraint(constraint, assignment):
                logger.debug(
                    "Constraint %s failed for circuit %s",
                    constraint.constraint_id,
                    self.circuit_id,
                )
                return False

        return True

    def _verify_constraint(
        self, constraint: Constraint, assignment: WitnessAssignment
    ) -> bool:
        """Verify a single constraint."""
        values = [assignment.get_value(var) for var in constraint.variables]
        kind = constraint.constraint_type

        if kind == ConstraintType.RANGE:
            return 0 <= values[0] < (1 << constraint.parameters["bits"])

        elif kind == ConstraintType.NON_ZERO:
            return values[0] != 0

        elif kind == ConstraintType.CONSTANT:
            return values[0] == constraint.parameters["value"]

        elif kind == ConstraintType.EQUALITY:
            return values[0] == values[1]

        elif kind == ConstraintType.MOD_REDUCE:
            out, source, modulus = values
            return modulus != 0 and out == source % modulus

        elif kind == ConstraintType.BOOLEAN:
            return FieldElement.coerce(values[0]).is_boolean()

        elif kind == ConstraintType.DECOMPOSITION:
            current, shifted, bit = values
            return current == 2 * shifted + bit

        elif kind == ConstraintType.MOD_MUL:
            out, left, right, modulus = values
            if modulus == 0:
                return False
            product = FieldElement.coerce(left) * FieldElement.coerce(right)
            return out == product.value % modulus

        elif kind == ConstraintType.SELECT:
            out, bit, when_one, when_zero = (FieldElement.coerce(v) for v in values)
            if not bit.is_boolean():
                return False
            return out == select(bit, when_one, when_zero)

        return False

    def digest(self) -> Hash:
        """SHA-256 over the circuit id and its constraint layout."""
        if self._digest is None:
            if not self._built:
                self.build()
            items = [self.circuit_id, str(self.operand_bits)]
            for constraint in self.constraint_system.constraints:
                items.append(constraint.constraint_id)
                items.append(constraint.constraint_type.value)
                items.extend(constraint.variables)
            self._digest = SHA256Hasher.hash_list(items)
        return self._digest

    def get_circuit_info(self) -> Dict[str, Any]:
        """Get information about the circuit."""
        if not self._built:
            self.build()

        return {
            "circuit_id": self.circuit_id,
            "operand_bits": self.operand_bits,
            "rounds": self.operand_bits,
            "constraint_count": self.constraint_system.get_constraint_count(),
            "variable_count": self.constraint_system.get_variable_count(),
            "public_variables": list(self.constraint_system.public_variables),
            "digest": self.digest().to_hex(),
        }

    @property
    def is_built(self) -> bool:
        """Check if circuit is built."""
        return self._built

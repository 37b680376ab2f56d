"""
Base class for credential and aggregation circuits.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Sequence, Tuple

from .constraints import ConstraintSystem, Witness
from .field import hash_bytes, hash_many, to_field
from .statements import (
    CIRCUIT_REGISTRY,
    CircuitId,
    CircuitSpec,
    format_circuit_id,
    validate_public_inputs,
)


class Circuit(ABC):
    """
    A constraint system template specialized for fixed capacities.

    Subclasses declare `circuit_id`, name their capacity attributes in
    `capacity_params` (in artifact-id order) and implement `synthesize`,
    which reads the inputs, declares signals on the ConstraintSystem and
    raises an UnsatisfiedConstraint subclass when the claim does not hold.
    """

    circuit_id: CircuitId
    capacity_params: Tuple[str, ...] = ()

    @property
    def capacities(self) -> Tuple[int, ...]:
        return tuple(getattr(self, name) for name in self.capacity_params)

    @property
    def artifact_id(self) -> str:
        """Identifier stamped on proofs produced for this circuit."""
        return format_circuit_id(self.circuit_id, self.capacities)

    @property
    def spec(self) -> CircuitSpec:
        return CIRCUIT_REGISTRY[self.circuit_id]

    def generate_witness(
        self, public_inputs: Dict[str, Any], private_inputs: Dict[str, Any]
    ) -> Witness:
        """
        Evaluate the circuit.

        Raises:
            ValueError: If public inputs don't match the schema or a private
                input is missing or mis-sized
            UnsatisfiedConstraint: If the claim does not hold
        """
        validate_public_inputs(self.circuit_id, public_inputs)
        cs = ConstraintSystem(self.artifact_id)
        self.synthesize(cs, public_inputs, private_inputs)
        return cs.witness()

    @abstractmethod
    def synthesize(
        self,
        cs: ConstraintSystem,
        public_inputs: Mapping[str, Any],
        private_inputs: Mapping[str, Any],
    ) -> None:
        """Declare signals and constraints."""

    def credential_hash(
        self, user_address: int, claims: Sequence[int], timestamp: int
    ) -> int:
        """Commitment binding the user, the claim values and a timestamp."""
        circuit_tag = hash_bytes(self.artifact_id.encode("utf-8"), domain="credential")
        return hash_many(
            [circuit_tag, to_field(user_address), *claims, to_field(timestamp)],
            "credential",
        )


def check_capacity(name: str, value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"{name} must be a positive int, got {value!r}")
    return value


def require(private_inputs: Mapping[str, Any], name: str) -> Any:
    """Fetch a private input, raising ValueError when missing."""
    if name not in private_inputs:
        raise ValueError(f"Missing private input '{name}'")
    return private_inputs[name]


def require_vector(
    private_inputs: Mapping[str, Any], name: str, length: int
) -> List[int]:
    """Fetch a private vector of exactly `length` ints."""
    value = require(private_inputs, name)
    if not isinstance(value, (list, tuple)):
        raise ValueError(f"Private input '{name}' must be a list")
    if len(value) != length:
        raise ValueError(
            f"Private input '{name}' has {len(value)} entries, expected {length}"
        )
    return list(value)

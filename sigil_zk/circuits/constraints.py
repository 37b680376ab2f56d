"""
Constraint system and witness containers.

A circuit is evaluated against a fresh ConstraintSystem. Every gadget
registers the constraints it adds; a constraint that does not hold raises
immediately, which is how an unsatisfiable witness surfaces. Successful
evaluation yields a Witness whose public signals are the ordered outputs
followed by the ordered public inputs.
"""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Sequence, Type, Union

from .exceptions import UnsatisfiedConstraint
from .field import to_field

logger = logging.getLogger(__name__)

Signal = Union[int, List[int]]


class ConstraintType(Enum):
    """Kinds of constraints recorded by the system."""

    EQUALITY = "equality"
    BOOLEAN = "boolean"
    MULTIPLICATION = "multiplication"
    RANGE = "range"
    HASH = "hash"
    SIGNATURE = "signature"


@dataclass
class Constraint:
    """A single recorded constraint."""

    label: str
    constraint_type: ConstraintType

    def __post_init__(self):
        if not self.label:
            raise ValueError("constraint label cannot be empty")


def _flatten(values: Dict[str, Signal]) -> List[int]:
    flat: List[int] = []
    for value in values.values():
        if isinstance(value, list):
            flat.extend(value)
        else:
            flat.append(value)
    return flat


@dataclass
class Witness:
    """
    Satisfying assignment produced by a successful circuit evaluation.

    Attributes:
        circuit_id: Identifier of the evaluated circuit
        public_inputs: Named public inputs in declaration order
        private_inputs: Named private inputs in declaration order
        outputs: Named outputs in declaration order
        constraint_count: Number of constraints checked
    """

    circuit_id: str
    public_inputs: Dict[str, Signal] = field(default_factory=dict)
    private_inputs: Dict[str, Signal] = field(default_factory=dict)
    outputs: Dict[str, Signal] = field(default_factory=dict)
    constraint_count: int = 0

    @property
    def public_signals(self) -> List[int]:
        """Outputs first, then public inputs, flattened."""
        return _flatten(self.outputs) + _flatten(self.public_inputs)

    @property
    def public_signal_names(self) -> List[str]:
        names: List[str] = []
        for source in (self.outputs, self.public_inputs):
            for name, value in source.items():
                if isinstance(value, list):
                    names.extend(f"{name}[{i}]" for i in range(len(value)))
                else:
                    names.append(name)
        return names

    @property
    def private_values(self) -> List[int]:
        return _flatten(self.private_inputs)

    def output(self, name: str) -> Signal:
        return self.outputs[name]

    def to_bytes(self) -> bytes:
        """Serialize witness to deterministic JSON (values hex-encoded)."""

        def encode(values: Dict[str, Signal]) -> Dict[str, object]:
            return {
                k: [hex(x) for x in v] if isinstance(v, list) else hex(v)
                for k, v in values.items()
            }

        data = {
            "circuit_id": self.circuit_id,
            "public_inputs": encode(self.public_inputs),
            "private_inputs": encode(self.private_inputs),
            "outputs": encode(self.outputs),
            "constraint_count": self.constraint_count,
        }
        return json.dumps(data, sort_keys=True).encode("utf-8")


class ConstraintSystem:
    """
    Records signals and constraints while a circuit is evaluated.

    Example:
        >>> cs = ConstraintSystem("example")
        >>> x = cs.private("x", 3)
        >>> cs.enforce_equal(x * x, 9, "square")
    """

    def __init__(self, circuit_id: str):
        self.circuit_id = circuit_id
        self.public_inputs: Dict[str, Signal] = {}
        self.private_inputs: Dict[str, Signal] = {}
        self.outputs: Dict[str, Signal] = {}
        self.constraints: List[Constraint] = []
        self.intermediate_count = 0

    # ------------------------------------------------------------------
    # Signals
    # ------------------------------------------------------------------

    def _register(self, bucket: Dict[str, Signal], name: str, value) -> Signal:
        if name in self.public_inputs or name in self.private_inputs or name in self.outputs:
            raise ValueError(f"Signal {name!r} already declared")
        if isinstance(value, (list, tuple)):
            signal: Signal = [to_field(v) for v in value]
        else:
            signal = to_field(value)
        bucket[name] = signal
        return signal

    def public(self, name: str, value) -> Signal:
        """Declare a public input (scalar or array)."""
        return self._register(self.public_inputs, name, value)

    def private(self, name: str, value) -> Signal:
        """Declare a private input (scalar or array)."""
        return self._register(self.private_inputs, name, value)

    def output(self, name: str, value) -> Signal:
        """Declare a public output (scalar or array)."""
        return self._register(self.outputs, name, value)

    def intermediate(self, value: int) -> int:
        """Allocate an intermediate signal."""
        self.intermediate_count += 1
        return to_field(value)

    # ------------------------------------------------------------------
    # Constraints
    # ------------------------------------------------------------------

    def enforce(
        self,
        condition: bool,
        label: str,
        error_cls: Type[UnsatisfiedConstraint] = UnsatisfiedConstraint,
        message: str = "",
        constraint_type: ConstraintType = ConstraintType.EQUALITY,
    ) -> None:
        """
        Record a constraint and fail if it does not hold.

        Raises:
            UnsatisfiedConstraint: (or the given subclass) if condition is False
        """
        self.constraints.append(Constraint(label, constraint_type))
        if not condition:
            logger.debug("%s: constraint %r unsatisfied", self.circuit_id, label)
            raise error_cls(
                message or f"{self.circuit_id}: constraint {label!r} unsatisfied",
                label=label,
            )

    def enforce_equal(
        self,
        a: int,
        b: int,
        label: str,
        error_cls: Type[UnsatisfiedConstraint] = UnsatisfiedConstraint,
        message: str = "",
    ) -> None:
        self.enforce(to_field(a) == to_field(b), label, error_cls, message)

    def enforce_boolean(self, x: int, label: str) -> None:
        x = to_field(x)
        self.enforce(
            x * (x - 1) == 0, label, constraint_type=ConstraintType.BOOLEAN
        )

    def enforce_booleans(self, values: Sequence[int], label: str) -> None:
        for i, x in enumerate(values):
            self.enforce_boolean(x, f"{label}[{i}]")

    def record(self, label: str, constraint_type: ConstraintType, count: int = 1) -> None:
        """Record constraints whose satisfaction is implied by construction."""
        for _ in range(count):
            self.constraints.append(Constraint(label, constraint_type))

    @property
    def constraint_count(self) -> int:
        return len(self.constraints)

    def witness(self) -> Witness:
        """Freeze the evaluated signals into a Witness."""
        return Witness(
            circuit_id=self.circuit_id,
            public_inputs=dict(self.public_inputs),
            private_inputs=dict(self.private_inputs),
            outputs=dict(self.outputs),
            constraint_count=self.constraint_count,
        )

"""
Circuit factory.

Circuit classes are registered by dotted path and imported lazily, so
importing the factory does not build every circuit module.
"""

from __future__ import annotations

import importlib
from typing import Final, Union

from .base import Circuit
from .statements import CircuitId, parse_circuit_id

CIRCUIT_CLASS_REGISTRY: Final[dict[CircuitId, str]] = {
    CircuitId.REPOSITORY_CREDENTIAL: "credentials.repository.RepositoryCredential",
    CircuitId.LANGUAGE_CREDENTIAL: "credentials.language.LanguageCredential",
    CircuitId.COLLABORATION_CREDENTIAL: "credentials.collaboration.CollaborationCredential",
    CircuitId.LEADERSHIP_CREDENTIAL: "credentials.leadership.LeadershipCredential",
    CircuitId.DIVERSITY_CREDENTIAL: "credentials.diversity.DiversityCredential",
    CircuitId.REPOSITORY_AGGREGATOR: "aggregation.repository.RepositoryAggregator",
    CircuitId.STATISTICS_AGGREGATOR: "aggregation.statistics.StatisticsAggregator",
}


def _load_circuit_class(circuit_id: CircuitId) -> type[Circuit]:
    import_path = CIRCUIT_CLASS_REGISTRY[circuit_id]
    module_path, _, class_name = import_path.rpartition(".")
    resolved_module_path = f"{__package__}.{module_path}"
    try:
        module = importlib.import_module(resolved_module_path)
    except ModuleNotFoundError as exc:
        raise ImportError(
            f"Unable to import circuit module {resolved_module_path!r} "
            f"for {circuit_id.value!r}"
        ) from exc

    try:
        circuit_cls = getattr(module, class_name)
    except AttributeError as exc:
        raise ImportError(
            f"Circuit class {class_name!r} not found in module "
            f"{resolved_module_path!r}"
        ) from exc

    if not isinstance(circuit_cls, type) or not issubclass(circuit_cls, Circuit):
        raise TypeError(f"Circuit reference {import_path!r} is not a Circuit subclass")

    return circuit_cls


def get_circuit(circuit_id: Union[str, CircuitId], **params) -> Circuit:
    """
    Instantiate a circuit by identifier.

    Args:
        circuit_id: CircuitId, base id ("language_credential_v1") or artifact
            id carrying capacities ("language_credential_v1@20")
        **params: Capacity keyword arguments; override capacities parsed
            from the artifact id

    Returns:
        Circuit: New circuit instance.

    Raises:
        ValueError: If the identifier is unknown or carries the wrong number
            of capacities
        ImportError: If the circuit class cannot be imported
    """
    if isinstance(circuit_id, CircuitId):
        base, capacities = circuit_id, ()
    else:
        base, capacities = parse_circuit_id(circuit_id)

    circuit_cls = _load_circuit_class(base)
    if capacities:
        names = circuit_cls.capacity_params
        if len(capacities) != len(names):
            raise ValueError(
                f"{base.value} expects {len(names)} capacities, got {len(capacities)}"
            )
        params = {**dict(zip(names, capacities)), **params}

    return circuit_cls(**params)

"""
Tests for the circuit factory.
"""

import pytest

from ..aggregation import StatisticsAggregator
from ..credentials import LanguageCredential, RepositoryCredential
from ..factory import CIRCUIT_CLASS_REGISTRY, get_circuit
from ..statements import CircuitId


def test_registry_covers_every_circuit():
    assert set(CIRCUIT_CLASS_REGISTRY) == set(CircuitId)


@pytest.mark.parametrize("circuit_id", list(CircuitId))
def test_every_circuit_loads(circuit_id):
    circuit = get_circuit(circuit_id)
    assert circuit.circuit_id is circuit_id
    assert circuit.spec.circuit_id is circuit_id


def test_capacity_from_artifact_id():
    circuit = get_circuit("language_credential_v1@20")
    assert isinstance(circuit, LanguageCredential)
    assert circuit.capacity == 20
    assert circuit.artifact_id == "language_credential_v1@20"


def test_repository_capacities_from_artifact_id():
    circuit = get_circuit("repository_credential_v1@16x5x4")
    assert isinstance(circuit, RepositoryCredential)
    assert circuit.capacities == (16, 5, 4)
    assert circuit.depth == 4


def test_keyword_capacity():
    circuit = get_circuit(CircuitId.STATISTICS_AGGREGATOR, capacity=8)
    assert isinstance(circuit, StatisticsAggregator)
    assert circuit.artifact_id == "statistics_aggregator_v1@8"


def test_wrong_capacity_count():
    with pytest.raises(ValueError):
        get_circuit("repository_credential_v1@16")


def test_unknown_circuit():
    with pytest.raises(ValueError):
        get_circuit("nonexistent_v1")

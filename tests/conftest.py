"""Shared pytest fixtures for mural-priority tests."""

from datetime import UTC, datetime

import pytest

from mural_priority.models import ClientProfile, Loyalty, PreventiveStatus
from mural_priority.scoring import ScoringModel
from mural_priority.storage import MemoryKeyValueStore, SqliteKeyValueStore
from mural_priority.store import SuggestionStateStore

FIXED_NOW = datetime(2025, 6, 15, 12, 0, tzinfo=UTC)


@pytest.fixture
def now():
    return FIXED_NOW


@pytest.fixture
def model():
    """Scoring model with a fixed clock."""
    return ScoringModel(clock=lambda: FIXED_NOW)


@pytest.fixture
def profile():
    """A plain, non-enterprise client profile."""
    return ClientProfile(
        name="Cliente Comum Teste",
        email="pedro@empresa.com",
        total_clients=300,
        preventive_status=PreventiveStatus.NONE,
        nps=9,
        loyalty=Loyalty.NONE,
        suggestion_count=1,
        tenure_years=1,
        created_at=datetime(2025, 6, 1, tzinfo=UTC),
    )


@pytest.fixture
def memory_storage():
    return MemoryKeyValueStore()


@pytest.fixture
def store(memory_storage):
    return SuggestionStateStore(memory_storage)


@pytest.fixture
def db_path(tmp_path):
    """Path of a SQLite database with the kv_store table created."""
    path = tmp_path / "test_mural.db"
    SqliteKeyValueStore(path).set("bootstrap", "{}")
    return path


@pytest.fixture
def clients_yaml(tmp_path):
    """A client profile file matching the sample suggestions."""
    path = tmp_path / "clients.yaml"
    path.write_text(
        """
clients:
  - name: "VETORIAL.NET INFORMATICA E SERVICOS DE INTERNET LTDA"
    email: carlos@empresa.com
    total_clients: 12000
    preventive_status: "Preventivo Crítico"
    nps: 2
    loyalty: Total
    suggestion_count: 8
    tenure_years: 6
    created_at: "2023-01-10"
  - name: "Cliente Comum Teste"
    email: pedro@empresa.com
    total_clients: 300
    preventive_status: "N/A"
    nps: 9
    loyalty: "Sem fidelidade"
    suggestion_count: 1
    tenure_years: 1
    created_at: "2025-06-01"
"""
    )
    return path

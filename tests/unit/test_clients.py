"""Tests for the client directory."""

from pathlib import Path

from mural_priority.clients import DEFAULT_PROFILE, ClientDirectory
from mural_priority.models import ClientProfile, Loyalty, PreventiveStatus


def test_lookup_is_case_insensitive():
    directory = ClientDirectory([ClientProfile(name="Ana Corp", email="ana@empresa.com")])
    assert directory.lookup("ANA@Empresa.com").name == "Ana Corp"
    assert "Ana@empresa.com " in directory


def test_unknown_email_gets_default_profile():
    directory = ClientDirectory()
    profile = directory.lookup("who@nowhere.com")

    assert profile.name == DEFAULT_PROFILE.name
    assert profile.email == "who@nowhere.com"
    assert profile.nps == 5
    assert profile.suggestion_count == 1
    assert profile.loyalty is Loyalty.NONE


def test_profiles_without_email_are_skipped():
    directory = ClientDirectory([ClientProfile(name="Nameless", email="  ")])
    assert len(directory) == 0


def test_from_yaml(clients_yaml):
    directory = ClientDirectory.from_yaml(clients_yaml)

    assert len(directory) == 2
    carlos = directory.lookup("carlos@empresa.com")
    assert carlos.preventive_status is PreventiveStatus.CRITICAL
    assert carlos.loyalty is Loyalty.FULL
    assert carlos.total_clients == 12000


def test_from_yaml_missing_file():
    directory = ClientDirectory.from_yaml(Path("/nonexistent/clients.yaml"))
    assert len(directory) == 0

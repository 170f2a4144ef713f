"""Tests for mural-priority data models."""

from datetime import UTC, date, datetime

import pytest

from mural_priority.models import (
    ClientProfile,
    DevelopmentStatus,
    Loyalty,
    PreventiveStatus,
    PriorityTier,
    SuggestionRecord,
    SuggestionState,
    normalize_state_fields,
    parse_timestamp,
)


class TestEnumParsing:
    """Label parsing never fails on unknown input."""

    @pytest.mark.parametrize(
        "label,expected",
        [
            ("Urgent", PreventiveStatus.URGENT),
            ("Preventivo Urgente", PreventiveStatus.URGENT),
            ("preventivo crítico", PreventiveStatus.CRITICAL),
            ("ATTENTION", PreventiveStatus.ATTENTION),
            ("N/A", PreventiveStatus.NONE),
            (None, PreventiveStatus.NONE),
            ("something else", PreventiveStatus.NONE),
        ],
    )
    def test_preventive_status(self, label, expected):
        assert PreventiveStatus.parse(label) is expected

    @pytest.mark.parametrize(
        "label,expected",
        [
            ("Total", Loyalty.FULL),
            ("full", Loyalty.FULL),
            ("Parcial", Loyalty.PARTIAL),
            ("Sem fidelidade", Loyalty.NONE),
            ("none", Loyalty.NONE),
            ("gold", None),
        ],
    )
    def test_loyalty(self, label, expected):
        assert Loyalty.parse(label) is expected

    @pytest.mark.parametrize(
        "label,expected",
        [
            ("in-development", DevelopmentStatus.IN_DEVELOPMENT),
            ("IN_DEVELOPMENT", DevelopmentStatus.IN_DEVELOPMENT),
            ("testing", DevelopmentStatus.TESTING),
            ("shipped", None),
        ],
    )
    def test_development_status(self, label, expected):
        assert DevelopmentStatus.parse(label) is expected

    @pytest.mark.parametrize(
        "label,expected",
        [(5, PriorityTier.LEVEL_5), ("1", PriorityTier.LEVEL_1), ("urgent", PriorityTier.URGENT), ("x", None)],
    )
    def test_priority_tier(self, label, expected):
        assert PriorityTier.parse(label) is expected


class TestParseTimestamp:
    """Timestamp parsing."""

    def test_iso_with_z(self):
        assert parse_timestamp("2024-03-01T10:00:00Z") == datetime(2024, 3, 1, 10, tzinfo=UTC)

    def test_naive_becomes_utc(self):
        assert parse_timestamp("2024-03-01").tzinfo is UTC

    def test_date_object(self):
        assert parse_timestamp(date(2024, 3, 1)) == datetime(2024, 3, 1, tzinfo=UTC)

    @pytest.mark.parametrize("value", [None, "", "last tuesday"])
    def test_unparseable_is_none(self, value):
        assert parse_timestamp(value) is None


class TestClientProfile:
    """ClientProfile construction."""

    def test_from_dict(self):
        profile = ClientProfile.from_dict(
            {
                "name": "RAZAOINFO INTERNET LTDA",
                "email": "ana@empresa.com",
                "total_clients": "25000",
                "preventive_status": "Preventivo Atenção",
                "nps": 8,
                "loyalty": "Parcial",
                "suggestion_count": 2,
                "tenure_years": 3,
                "created_at": "2024-01-15",
            }
        )
        assert profile.total_clients == 25000
        assert profile.preventive_status is PreventiveStatus.ATTENTION
        assert profile.loyalty is Loyalty.PARTIAL
        assert profile.created_at == datetime(2024, 1, 15, tzinfo=UTC)

    def test_from_dict_defaults_bad_values(self):
        profile = ClientProfile.from_dict(
            {"name": "X", "total_clients": "many", "nps": "?", "loyalty": "gold"}
        )
        assert profile.total_clients == 0
        assert profile.nps is None
        assert profile.loyalty is None
        assert profile.preventive_status is PreventiveStatus.NONE

    def test_to_dict(self):
        profile = ClientProfile(name="X", email="x@example.com", nps=3)
        data = profile.to_dict()
        assert data["preventive_status"] == "none"
        assert data["loyalty"] == "none"
        assert data["created_at"] is None


class TestSuggestionRecord:
    def test_from_dict_defaults_counters(self):
        record = SuggestionRecord.from_dict({"id": 7, "title": "Dark mode", "votes": None})
        assert record.id == "7"
        assert record.votes == 0
        assert record.comments == 0


class TestSuggestionState:
    """SuggestionState serialization."""

    def test_empty(self):
        state = SuggestionState()
        assert state.is_empty()
        assert state.to_dict() == {}
        assert state.to_wire() == {}

    def test_to_dict_omits_absent_fields(self):
        state = SuggestionState(development_status=DevelopmentStatus.TESTING)
        assert state.to_dict() == {"development_status": "testing"}

    def test_wire_format_is_camel_case(self):
        state = SuggestionState(
            jira_task_code="MUR-1",
            is_in_roadmap=True,
            roadmap_id="r1",
            development_status=DevelopmentStatus.IN_DEVELOPMENT,
        )
        assert state.to_wire() == {
            "jiraTaskCode": "MUR-1",
            "isInRoadmap": True,
            "roadmapId": "r1",
            "developmentStatus": "in-development",
        }

    def test_from_wire(self):
        state = SuggestionState.from_wire(
            {"jiraTaskCode": "MUR-2", "isArchived": True, "developmentStatus": "completed"}
        )
        assert state.jira_task_code == "MUR-2"
        assert state.is_archived is True
        assert state.development_status is DevelopmentStatus.COMPLETED

    def test_from_wire_drops_unknown_keys(self):
        state = SuggestionState.from_wire({"jiraTaskCode": "MUR-3", "color": "red"})
        assert state == SuggestionState(jira_task_code="MUR-3")


class TestNormalizeStateFields:
    def test_accepts_both_spellings(self):
        assert normalize_state_fields({"roadmapId": "r1", "is_archived": 1}) == {
            "roadmap_id": "r1",
            "is_archived": True,
        }

    def test_keeps_explicit_none(self):
        assert normalize_state_fields({"roadmap_id": None}) == {"roadmap_id": None}

    def test_drops_bad_status(self):
        assert normalize_state_fields({"development_status": "shipped"}) == {}

    @pytest.mark.parametrize(
        "raw,expected",
        [("false", False), ("True", True), ("0", False), ("sim", True), (0, False), (1, True)],
    )
    def test_parses_flag_labels(self, raw, expected):
        assert normalize_state_fields({"isInRoadmap": raw}) == {"is_in_roadmap": expected}

    @pytest.mark.parametrize("raw", ["maybe", [], {"x": 1}])
    def test_drops_unparseable_flags(self, raw, caplog):
        assert normalize_state_fields({"is_archived": raw, "roadmapId": "r1"}) == {
            "roadmap_id": "r1"
        }
        assert "is_archived" in caplog.text


class TestDirectConstruction:
    """Raw values passed to the constructors are coerced, never rejected."""

    def test_client_profile_coerces_raw_values(self):
        profile = ClientProfile(
            name=None,
            email=None,
            total_clients=None,
            preventive_status="Preventivo Urgente",
            nps="7.6",
            loyalty="Total",
            suggestion_count="4",
            tenure_years=None,
            created_at="2024-03-01",
        )

        assert profile.name == ""
        assert profile.email == ""
        assert profile.total_clients == 0
        assert profile.preventive_status is PreventiveStatus.URGENT
        assert profile.nps == 8
        assert profile.loyalty is Loyalty.FULL
        assert profile.suggestion_count == 4
        assert profile.tenure_years == 0
        assert profile.created_at == datetime(2024, 3, 1, tzinfo=UTC)

    def test_client_profile_keeps_absent_loyalty(self):
        assert ClientProfile(name="X", loyalty=None).loyalty is None
        assert ClientProfile(name="X", loyalty="gold").loyalty is None

    def test_suggestion_record_coerces_counters(self):
        record = SuggestionRecord(id=3, votes=None, comments="5", email=None)
        assert record.id == "3"
        assert record.votes == 0
        assert record.comments == 5
        assert record.email == ""

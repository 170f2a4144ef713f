"""
Data models for mural-priority.

Customer profiles feed the scoring model, suggestion records feed the
ranking, and suggestion states hold the administrative lifecycle tracked by
the state store.
"""

import logging
from collections.abc import Mapping
from dataclasses import asdict, dataclass, fields
from datetime import UTC, date, datetime
from enum import Enum
from functools import total_ordering
from typing import Any

logger = logging.getLogger(__name__)


def _normalize_label(value: Any) -> str:
    return str(value).strip().casefold().replace("_", " ").replace("-", " ")


class PreventiveStatus(str, Enum):
    """Churn-risk classification assigned to a customer account."""

    URGENT = "urgent"
    CRITICAL = "critical"
    ATTENTION = "attention"
    NONE = "none"

    @classmethod
    def parse(cls, value: Any) -> "PreventiveStatus":
        """Parse a label, falling back to NONE for anything unrecognized."""
        if isinstance(value, cls):
            return value
        if value is None:
            return cls.NONE
        status = _PREVENTIVE_ALIASES.get(_normalize_label(value))
        if status is None:
            logger.debug(f"Unrecognized preventive status {value!r}, using none")
            return cls.NONE
        return status


_PREVENTIVE_ALIASES = {
    "urgent": PreventiveStatus.URGENT,
    "preventivo urgente": PreventiveStatus.URGENT,
    "critical": PreventiveStatus.CRITICAL,
    "preventivo crítico": PreventiveStatus.CRITICAL,
    "preventivo critico": PreventiveStatus.CRITICAL,
    "attention": PreventiveStatus.ATTENTION,
    "preventivo atenção": PreventiveStatus.ATTENTION,
    "preventivo atencao": PreventiveStatus.ATTENTION,
    "none": PreventiveStatus.NONE,
    "n/a": PreventiveStatus.NONE,
    "": PreventiveStatus.NONE,
}


class Loyalty(str, Enum):
    """Contract loyalty level of a customer account."""

    FULL = "full"
    PARTIAL = "partial"
    NONE = "none"

    @classmethod
    def parse(cls, value: Any) -> "Loyalty | None":
        """Parse a label. Unrecognized labels return None (scored as 0)."""
        if isinstance(value, cls):
            return value
        if value is None:
            return cls.NONE
        loyalty = _LOYALTY_ALIASES.get(_normalize_label(value))
        if loyalty is None:
            logger.debug(f"Unrecognized loyalty level {value!r}")
        return loyalty


_LOYALTY_ALIASES = {
    "full": Loyalty.FULL,
    "total": Loyalty.FULL,
    "partial": Loyalty.PARTIAL,
    "parcial": Loyalty.PARTIAL,
    "none": Loyalty.NONE,
    "sem fidelidade": Loyalty.NONE,
}


class DevelopmentStatus(str, Enum):
    """Development stage of a suggestion."""

    BACKLOG = "backlog"
    IN_DEVELOPMENT = "in-development"
    TESTING = "testing"
    COMPLETED = "completed"

    @classmethod
    def parse(cls, value: Any) -> "DevelopmentStatus | None":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower().replace("_", "-"))
        except ValueError:
            return None


class SortMode(str, Enum):
    """Primary key used when ranking suggestions."""

    SCORE = "score"
    VOTES = "votes"
    COMMENTS = "comments"

    @classmethod
    def parse(cls, value: Any) -> "SortMode | None":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None


@total_ordering
class PriorityTier(Enum):
    """Priority bucket derived from a score. LEVEL_5 is the least urgent."""

    LEVEL_5 = 5
    LEVEL_4 = 4
    LEVEL_3 = 3
    LEVEL_2 = 2
    LEVEL_1 = 1
    URGENT = "Urgent"

    @property
    def urgency(self) -> int:
        """Position in the total order, 0 (LEVEL_5) through 5 (URGENT)."""
        return _TIER_URGENCY[self]

    @classmethod
    def parse(cls, value: Any) -> "PriorityTier | None":
        if isinstance(value, cls):
            return value
        text = str(value).strip()
        if text.lower() in ("urgent", "urgente"):
            return cls.URGENT
        try:
            return cls(int(text))
        except ValueError:
            return None

    def __lt__(self, other):
        if other.__class__ is self.__class__:
            return self.urgency < other.urgency
        return NotImplemented


_TIER_URGENCY = {
    PriorityTier.LEVEL_5: 0,
    PriorityTier.LEVEL_4: 1,
    PriorityTier.LEVEL_3: 2,
    PriorityTier.LEVEL_2: 3,
    PriorityTier.LEVEL_1: 4,
    PriorityTier.URGENT: 5,
}


def parse_timestamp(value: Any) -> datetime | None:
    """Parse a date, datetime or ISO 8601 string into an aware datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=UTC)
    try:
        parsed = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
    except ValueError:
        logger.debug(f"Unparseable timestamp {value!r}")
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def _as_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _as_float(value: Any, default: float = 0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


_TRUE_LABELS = {"true", "yes", "1", "sim"}
_FALSE_LABELS = {"false", "no", "0", "não", "nao", ""}


def _as_bool(value: Any) -> bool | None:
    """Parse a flag; None when the value is not recognizably true or false."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int | float):
        return bool(value)
    if isinstance(value, str):
        label = value.strip().casefold()
        if label in _TRUE_LABELS:
            return True
        if label in _FALSE_LABELS:
            return False
    return None


@dataclass(frozen=True)
class ClientProfile:
    """Snapshot of a customer account used as scoring input."""

    name: str
    email: str = ""
    total_clients: int = 0
    preventive_status: PreventiveStatus = PreventiveStatus.NONE
    nps: int | None = None
    loyalty: Loyalty | None = Loyalty.NONE
    suggestion_count: int = 0
    tenure_years: float = 0
    created_at: datetime | None = None

    def __post_init__(self):
        # Scoring never rejects a profile, so raw values are coerced here
        nps = self.nps
        if nps is not None:
            try:
                nps = int(round(float(nps)))
            except (TypeError, ValueError):
                nps = None
        loyalty = self.loyalty
        if loyalty is not None:
            loyalty = Loyalty.parse(loyalty)
        for name, value in (
            ("name", "" if self.name is None else str(self.name)),
            ("email", "" if self.email is None else str(self.email)),
            ("total_clients", _as_int(self.total_clients)),
            ("preventive_status", PreventiveStatus.parse(self.preventive_status)),
            ("nps", nps),
            ("loyalty", loyalty),
            ("suggestion_count", _as_int(self.suggestion_count)),
            ("tenure_years", _as_float(self.tenure_years)),
            ("created_at", parse_timestamp(self.created_at)),
        ):
            object.__setattr__(self, name, value)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ClientProfile":
        """Create from a plain mapping (e.g., a YAML client list entry)."""
        return cls(
            name=data.get("name") or "",
            email=data.get("email") or "",
            total_clients=data.get("total_clients"),
            preventive_status=data.get("preventive_status"),
            nps=data.get("nps"),
            # A missing loyalty label means no loyalty contract
            loyalty=Loyalty.parse(data.get("loyalty")),
            suggestion_count=data.get("suggestion_count"),
            tenure_years=data.get("tenure_years"),
            created_at=data.get("created_at"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "email": self.email,
            "total_clients": self.total_clients,
            "preventive_status": self.preventive_status.value,
            "nps": self.nps,
            "loyalty": self.loyalty.value if self.loyalty else None,
            "suggestion_count": self.suggestion_count,
            "tenure_years": self.tenure_years,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass
class SuggestionRecord:
    """A suggestion as supplied by the data source."""

    id: str
    title: str = ""
    email: str = ""
    votes: int = 0
    comments: int = 0
    created_at: datetime | None = None
    status: str | None = None
    module: str | None = None

    def __post_init__(self):
        self.id = str(self.id)
        self.email = "" if self.email is None else str(self.email)
        self.votes = _as_int(self.votes)
        self.comments = _as_int(self.comments)
        self.created_at = parse_timestamp(self.created_at)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SuggestionRecord":
        """Create from dictionary. Counters default to 0 when missing or bad."""
        return cls(
            id=str(data["id"]),
            title=str(data.get("title", "")),
            email=data.get("email") or "",
            votes=data.get("votes"),
            comments=data.get("comments"),
            created_at=data.get("created_at"),
            status=data.get("status"),
            module=data.get("module"),
        )


# Persisted (camelCase) names of SuggestionState fields
STATE_WIRE_NAMES = {
    "jira_task_code": "jiraTaskCode",
    "is_in_roadmap": "isInRoadmap",
    "roadmap_id": "roadmapId",
    "development_status": "developmentStatus",
    "is_archived": "isArchived",
}
_STATE_FIELD_NAMES = {
    **{name: name for name in STATE_WIRE_NAMES},
    **{wire: name for name, wire in STATE_WIRE_NAMES.items()},
}


def normalize_state_fields(data: Mapping[str, Any]) -> dict[str, Any]:
    """
    Map a partial state (snake_case or camelCase keys) onto SuggestionState
    field names and types.

    Explicit None values are kept so they clear the field on merge. Unknown
    keys, unrecognized development statuses and unparseable flags are logged
    and dropped.
    """
    normalized: dict[str, Any] = {}
    for key, value in data.items():
        name = _STATE_FIELD_NAMES.get(key)
        if name is None:
            logger.warning(f"Ignoring unknown suggestion state field {key!r}")
            continue
        if value is None:
            normalized[name] = None
        elif name == "development_status":
            status = DevelopmentStatus.parse(value)
            if status is None:
                logger.warning(f"Ignoring unrecognized development status {value!r}")
                continue
            normalized[name] = status
        elif name in ("is_in_roadmap", "is_archived"):
            flag = _as_bool(value)
            if flag is None:
                logger.warning(f"Ignoring unrecognized {name} value {value!r}")
                continue
            normalized[name] = flag
        else:
            normalized[name] = str(value)
    return normalized


@dataclass(frozen=True)
class SuggestionState:
    """Administrative lifecycle of a suggestion. None means absent."""

    jira_task_code: str | None = None
    is_in_roadmap: bool | None = None
    roadmap_id: str | None = None
    development_status: DevelopmentStatus | None = None
    is_archived: bool | None = None

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))

    def to_dict(self) -> dict[str, Any]:
        """Present fields only, with enum values unwrapped."""
        result = {}
        for name, value in asdict(self).items():
            if value is None:
                continue
            result[name] = value.value if isinstance(value, Enum) else value
        return result

    def to_wire(self) -> dict[str, Any]:
        """Present fields in the persisted camelCase format."""
        return {STATE_WIRE_NAMES[name]: value for name, value in self.to_dict().items()}

    @classmethod
    def from_wire(cls, data: Mapping[str, Any]) -> "SuggestionState":
        """Create from a persisted mapping; unknown keys are dropped."""
        return cls(**normalize_state_fields(data))

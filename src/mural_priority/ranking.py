"""
Prioritized suggestion view.

Combines the scoring model with vote and comment counters into an ordered
ranking, and provides the filters and summary figures used by the
prioritization dashboard.
"""

import logging
from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field, replace
from typing import Any, Protocol

from .clients import ClientDirectory
from .models import (
    ClientProfile,
    Loyalty,
    PreventiveStatus,
    PriorityTier,
    SortMode,
    SuggestionRecord,
)
from .scoring import ScoreBreakdown, ScoringModel
from .store import SuggestionStateStore

logger = logging.getLogger(__name__)

TOP_CLIENTS = 5


class Rankable(Protocol):
    votes: int
    comments: int


@dataclass
class PrioritizedSuggestion:
    """A suggestion with its author's profile and score breakdown."""

    record: SuggestionRecord
    client: ClientProfile
    breakdown: ScoreBreakdown

    @property
    def id(self) -> str:
        return self.record.id

    @property
    def title(self) -> str:
        return self.record.title

    @property
    def votes(self) -> int:
        return self.record.votes

    @property
    def comments(self) -> int:
        return self.record.comments

    @property
    def score(self) -> int:
        """Effective score: client score plus the vote contribution."""
        return self.breakdown.total

    @property
    def tier(self) -> PriorityTier:
        return self.breakdown.tier

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "title": self.title,
            "email": self.record.email,
            "client": self.client.name,
            "votes": self.votes,
            "comments": self.comments,
            "score": self.score,
            "tier": self.tier.value,
            "breakdown": self.breakdown.to_dict(),
        }


def _sort_key(mode: SortMode):
    if mode is SortMode.VOTES:
        return lambda item: item.votes
    if mode is SortMode.COMMENTS:
        return lambda item: item.comments
    return lambda item: item.score


def rank(items: Iterable[Rankable], mode: SortMode | str = SortMode.SCORE) -> list:
    """
    Order items by the selected value, highest first.

    The sort is stable: items with equal values keep their input order.
    """
    parsed = SortMode.parse(mode)
    if parsed is None:
        logger.warning(f"Unknown sort mode {mode!r}, sorting by score")
        parsed = SortMode.SCORE
    # sorted() keeps equal elements in input order even with reverse=True
    return sorted(items, key=_sort_key(parsed), reverse=True)


class Prioritizer:
    """Scores suggestion records against their authors' client profiles."""

    def __init__(self, directory: ClientDirectory, model: ScoringModel | None = None):
        self.directory = directory
        self.model = model or ScoringModel()

    def prioritize_one(self, record: SuggestionRecord) -> PrioritizedSuggestion:
        client = self.directory.lookup(record.email)
        scored = client
        if client.created_at is None and record.created_at is not None:
            # Without an account date, age the suggestion itself
            scored = replace(client, created_at=record.created_at)
        return PrioritizedSuggestion(
            record=record,
            client=client,
            breakdown=self.model.breakdown(scored, votes=record.votes),
        )

    def prioritize(
        self,
        records: Iterable[SuggestionRecord],
        mode: SortMode | str = SortMode.SCORE,
    ) -> list[PrioritizedSuggestion]:
        """Score every record and rank the results."""
        scored = [self.prioritize_one(record) for record in records]
        logger.debug(f"Prioritized {len(scored)} suggestion(s)")
        return rank(scored, mode)


@dataclass
class PrioritizationFilters:
    """Dashboard filters. The defaults filter nothing except archived items."""

    sort_by: SortMode = SortMode.SCORE
    tiers: set[PriorityTier] = field(default_factory=set)
    preventive_statuses: set[PreventiveStatus] = field(default_factory=set)
    loyalties: set[Loyalty] = field(default_factory=set)
    enterprise: str = "all"  # all, yes, no
    nps_range: tuple[int, int] = (0, 10)
    score_range: tuple[int, int | None] = (0, None)
    show_archived: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PrioritizationFilters":
        """Create from a dictionary; unrecognized labels are ignored."""
        filters = cls()
        if "sort_by" in data:
            sort_by = SortMode.parse(data["sort_by"])
            if sort_by is None:
                logger.warning(f"Unknown sort mode {data['sort_by']!r}, sorting by score")
            else:
                filters.sort_by = sort_by
        if "tiers" in data:
            filters.tiers = {
                t for t in (PriorityTier.parse(v) for v in data["tiers"]) if t is not None
            }
        if "preventive_statuses" in data:
            filters.preventive_statuses = {
                PreventiveStatus.parse(v) for v in data["preventive_statuses"]
            }
        if "loyalties" in data:
            filters.loyalties = {
                lv for lv in (Loyalty.parse(v) for v in data["loyalties"]) if lv is not None
            }
        if "enterprise" in data:
            filters.enterprise = str(data["enterprise"]).lower()
        if "nps_range" in data:
            low, high = data["nps_range"]
            filters.nps_range = (int(low), int(high))
        if "score_range" in data:
            low, high = data["score_range"]
            filters.score_range = (int(low), int(high) if high is not None else None)
        if "show_archived" in data:
            filters.show_archived = bool(data["show_archived"])
        return filters

    def active_count(self) -> int:
        """Number of filters that differ from their defaults."""
        default = PrioritizationFilters()
        count = 0
        for name in (
            "tiers",
            "preventive_statuses",
            "loyalties",
            "enterprise",
            "nps_range",
            "score_range",
            "show_archived",
        ):
            if getattr(self, name) != getattr(default, name):
                count += 1
        return count

    def matches(
        self,
        item: PrioritizedSuggestion,
        store: SuggestionStateStore | None = None,
    ) -> bool:
        if not self.show_archived and store is not None and store.is_archived(item.id):
            return False
        if self.tiers and item.tier not in self.tiers:
            return False
        if (
            self.preventive_statuses
            and item.client.preventive_status not in self.preventive_statuses
        ):
            return False
        if self.loyalties and item.client.loyalty not in self.loyalties:
            return False
        is_enterprise = item.breakdown.enterprise > 0
        if self.enterprise == "yes" and not is_enterprise:
            return False
        if self.enterprise == "no" and is_enterprise:
            return False
        if self.nps_range != (0, 10):
            low, high = self.nps_range
            if item.client.nps is None or not low <= item.client.nps <= high:
                return False
        low, high = self.score_range
        if item.score < low or (high is not None and item.score > high):
            return False
        return True

    def apply(
        self,
        items: Iterable[PrioritizedSuggestion],
        store: SuggestionStateStore | None = None,
    ) -> list[PrioritizedSuggestion]:
        """Keep matching items, ranked by the selected sort mode."""
        return rank((item for item in items if self.matches(item, store)), self.sort_by)


@dataclass
class PrioritizationSummary:
    """Headline figures for the prioritization dashboard."""

    total_suggestions: int = 0
    unique_clients: int = 0
    average_score: int = 0
    top_clients_by_score: list[tuple[str, int]] = field(default_factory=list)
    top_clients_by_count: list[tuple[str, int]] = field(default_factory=list)
    tier_distribution: dict[str, int] = field(default_factory=dict)
    status_distribution: dict[str, int] = field(default_factory=dict)
    module_distribution: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "total_suggestions": self.total_suggestions,
            "unique_clients": self.unique_clients,
            "average_score": self.average_score,
            "top_clients_by_score": [
                {"name": name, "value": value} for name, value in self.top_clients_by_score
            ],
            "top_clients_by_count": [
                {"name": name, "value": value} for name, value in self.top_clients_by_count
            ],
            "tier_distribution": self.tier_distribution,
            "status_distribution": self.status_distribution,
            "module_distribution": self.module_distribution,
        }


def _top(totals: dict[str, int]) -> list[tuple[str, int]]:
    # Stable: equal totals keep first-seen order
    return sorted(totals.items(), key=lambda pair: pair[1], reverse=True)[:TOP_CLIENTS]


def summarize(items: Sequence[PrioritizedSuggestion]) -> PrioritizationSummary:
    """Aggregate a list of prioritized suggestions."""
    if not items:
        return PrioritizationSummary()

    client_scores: dict[str, int] = {}
    client_counts: dict[str, int] = {}
    for item in items:
        name = item.client.name
        client_scores[name] = client_scores.get(name, 0) + item.score
        client_counts[name] = client_counts.get(name, 0) + 1

    tiers = Counter(str(item.tier.value) for item in items)
    statuses = Counter(item.record.status for item in items if item.record.status)
    modules = Counter(item.record.module for item in items if item.record.module)

    return PrioritizationSummary(
        total_suggestions=len(items),
        unique_clients=len(client_scores),
        average_score=round(sum(item.score for item in items) / len(items)),
        top_clients_by_score=_top(client_scores),
        top_clients_by_count=_top(client_counts),
        tier_distribution=dict(tiers),
        status_distribution=dict(statuses),
        module_distribution=dict(modules),
    )

"""
Multi-factor scoring model for customer suggestions.

Each factor is scored independently from a ClientProfile and the points are
summed. Lookup tables come from ScoringConfig; nothing here raises on bad
input. Unrecognized or missing values fall back to a defined sub-score.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from .config import ScoringConfig, Thresholds
from .models import ClientProfile, PriorityTier

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _number(value: Any) -> float:
    """Numeric factor input; anything non-numeric counts as 0."""
    if isinstance(value, int | float) and not isinstance(value, bool):
        return value
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0


def _bucket(value: float, buckets: Thresholds, overflow: int) -> int:
    """Points of the first bucket whose upper bound is >= value."""
    for bound, points in buckets:
        if value <= bound:
            return points
    return overflow


def months_between(start: datetime, end: datetime) -> int:
    """Calendar-month difference, ignoring the day of month."""
    return (end.year - start.year) * 12 + (end.month - start.month)


@dataclass
class ScoreBreakdown:
    """Points contributed by each factor, plus total and tier."""

    customers: int
    preventive: int
    enterprise: int
    account_age: int
    nps: int
    loyalty: int
    suggestion_volume: int
    tenure: int
    votes: int
    total: int
    tier: PriorityTier

    @property
    def client_score(self) -> int:
        """Total without the vote contribution."""
        return self.total - self.votes

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "customers": self.customers,
            "preventive": self.preventive,
            "enterprise": self.enterprise,
            "account_age": self.account_age,
            "nps": self.nps,
            "loyalty": self.loyalty,
            "suggestion_volume": self.suggestion_volume,
            "tenure": self.tenure,
            "votes": self.votes,
            "total": self.total,
            "tier": self.tier.value,
        }


class ScoringModel:
    """
    Scores client profiles and maps scores onto priority tiers.

    Args:
        config: Lookup tables (defaults to the standard ScoringConfig)
        clock: Returns "now" for the account-age factor
    """

    def __init__(self, config: ScoringConfig | None = None, clock: Clock | None = None):
        self.config = config or ScoringConfig()
        self._clock = clock or _utcnow

    # -------------------------------------------------------------------------
    # Factors
    # -------------------------------------------------------------------------

    def customer_points(self, total_clients: int) -> int:
        buckets = self.config.customer_buckets
        # Saturates at the largest bucket
        return _bucket(max(_number(total_clients), 0), buckets, buckets[-1][1])

    def preventive_points(self, profile: ClientProfile) -> int:
        return self.config.preventive_points.get(profile.preventive_status, 0)

    def enterprise_points(self, name: str) -> int:
        if name and name.upper() in self.config.enterprise_clients:
            return self.config.enterprise_points
        return 0

    def account_age_points(self, created_at: datetime | None) -> int:
        buckets = self.config.account_age_buckets
        months = months_between(created_at, self._clock()) if created_at else 0
        return _bucket(months, buckets, buckets[-1][1])

    def nps_points(self, nps: Any) -> int:
        try:
            grade = int(round(float(nps)))
        except (TypeError, ValueError):
            return 0
        return self.config.nps_points.get(min(max(grade, 0), 10), 0)

    def loyalty_points(self, profile: ClientProfile) -> int:
        if profile.loyalty is None:
            return 0
        return self.config.loyalty_points.get(profile.loyalty, 0)

    def suggestion_volume_points(self, count: int) -> int:
        return _bucket(
            _number(count),
            self.config.suggestion_volume_buckets,
            self.config.suggestion_volume_overflow,
        )

    def tenure_points(self, years: float) -> int:
        return _bucket(_number(years), self.config.tenure_buckets, self.config.tenure_overflow)

    def vote_points(self, votes: int) -> int:
        """Per-suggestion vote contribution, applied on top of the client score."""
        return int(max(_number(votes), 0)) * self.config.points_per_vote

    # -------------------------------------------------------------------------
    # Public contract
    # -------------------------------------------------------------------------

    def breakdown(self, profile: ClientProfile, votes: int = 0) -> ScoreBreakdown:
        """Score every factor for a profile and a suggestion's vote count."""
        parts = {
            "customers": self.customer_points(profile.total_clients),
            "preventive": self.preventive_points(profile),
            "enterprise": self.enterprise_points(profile.name),
            "account_age": self.account_age_points(profile.created_at),
            "nps": self.nps_points(profile.nps),
            "loyalty": self.loyalty_points(profile),
            "suggestion_volume": self.suggestion_volume_points(profile.suggestion_count),
            "tenure": self.tenure_points(profile.tenure_years),
            "votes": self.vote_points(votes),
        }
        total = sum(parts.values())
        logger.debug(f"Scored {profile.email or profile.name!r}: {total} ({parts})")
        return ScoreBreakdown(**parts, total=total, tier=self.tier(total))

    def score(self, profile: ClientProfile) -> int:
        """Client score: the sum of all factors except votes."""
        return self.breakdown(profile).total

    def tier(self, score: int) -> PriorityTier:
        """Map a score onto its tier; bounds are inclusive."""
        for bound, tier in self.config.tier_thresholds:
            if score <= bound:
                return tier
        return PriorityTier.URGENT


_default_model = ScoringModel()


def score(profile: ClientProfile) -> int:
    """Score a profile with the default configuration."""
    return _default_model.score(profile)


def tier(score: int) -> PriorityTier:
    """Map a score onto a tier with the default configuration."""
    return _default_model.tier(score)

"""
Configuration for mural-priority.

Scoring tables are immutable and versioned so a deployment (or a test) can
substitute them without touching the scoring logic.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

import yaml

from .models import Loyalty, PreventiveStatus, PriorityTier

DEFAULT_STORAGE_KEY = "suggestionStates"

DEFAULT_ENTERPRISE_CLIENTS = (
    "ALCANS TELECOM LTDA",
    "VETORIAL.NET INFORMATICA E SERVICOS DE INTERNET LTDA",
    "NETFACIL LOCACAO E SERVICOS LTDA",
    "BRASREDE TELECOMUNICACOES LTDA",
    "RAZAOINFO INTERNET LTDA",
    "BITCOM PROVEDOR DE SERVICOS DE INTERNET LTDA",
    "BRPHONIA PROVEDOR IP LTDA",
    "LINK SETE SERVICOS DE INTERNET E REDES LTDA",
    "NAVE NET SERVICOS DE INTERNET LTDA",
    "ADYL.NET ACESSO A INTERNET LTDA",
    "PRO-SERVICOS DE INTERNET LTDA",
    "DIRECT WIFI INFORMATICA LTDA",
    "SEA TELECOM LTDA",
    "ONLINE TELECOMUNICACOES LTDA",
    "AONET SERVICOS DE COMUNICACAO LTDA",
    "ONNET TELECOMUNICACOES LTDA",
)

# (upper bound inclusive, points), ascending
Thresholds = tuple[tuple[int, int], ...]


def _frozen(mapping: Mapping) -> Mapping:
    return MappingProxyType(dict(mapping))


def _thresholds(pairs: Any) -> Thresholds:
    """Accept a {bound: points} mapping or a list of [bound, points] pairs."""
    items = pairs.items() if isinstance(pairs, Mapping) else pairs
    return tuple(sorted((int(bound), int(points)) for bound, points in items))


@dataclass(frozen=True)
class ScoringConfig:
    """Lookup tables for the scoring model."""

    version: str = "1"
    customer_buckets: Thresholds = (
        (5000, 10),
        (10000, 20),
        (15000, 30),
        (20000, 40),
        (30000, 50),
        (50000, 60),
        (60000, 80),
    )
    preventive_points: Mapping[PreventiveStatus, int] = field(
        default_factory=lambda: _frozen(
            {
                PreventiveStatus.URGENT: 50,
                PreventiveStatus.CRITICAL: 40,
                PreventiveStatus.ATTENTION: 30,
                PreventiveStatus.NONE: 0,
            }
        )
    )
    enterprise_clients: frozenset[str] = frozenset(DEFAULT_ENTERPRISE_CLIENTS)
    enterprise_points: int = 100
    # Whole months since account creation; anything older gets the last value
    account_age_buckets: Thresholds = ((1, 1), (3, 3), (6, 8), (12, 15))
    nps_points: Mapping[int, int] = field(
        default_factory=lambda: _frozen(
            {0: 50, 1: 80, 2: 90, 3: 70, 4: 60, 5: 50, 6: 40, 7: 30, 8: 20, 9: 20, 10: 20}
        )
    )
    loyalty_points: Mapping[Loyalty, int] = field(
        default_factory=lambda: _frozen(
            {Loyalty.FULL: 50, Loyalty.PARTIAL: 10, Loyalty.NONE: 30}
        )
    )
    suggestion_volume_buckets: Thresholds = ((3, 75), (10, 50), (25, 30))
    suggestion_volume_overflow: int = 10
    tenure_buckets: Thresholds = ((5, 10), (9, 20))
    tenure_overflow: int = 30
    points_per_vote: int = 2
    tier_thresholds: tuple[tuple[int, PriorityTier], ...] = (
        (100, PriorityTier.LEVEL_5),
        (150, PriorityTier.LEVEL_4),
        (250, PriorityTier.LEVEL_3),
        (300, PriorityTier.LEVEL_2),
        (400, PriorityTier.LEVEL_1),
    )

    def __post_init__(self):
        # Allow-list comparison is case-insensitive
        object.__setattr__(
            self,
            "enterprise_clients",
            frozenset(name.upper() for name in self.enterprise_clients),
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ScoringConfig":
        """Create config from a dictionary; missing tables keep their defaults."""
        default = cls()
        overrides: dict[str, Any] = {}

        if "version" in data:
            overrides["version"] = str(data["version"])
        if "customer_buckets" in data:
            overrides["customer_buckets"] = _thresholds(data["customer_buckets"])
        if "preventive_points" in data:
            table = dict(default.preventive_points)
            for label, points in data["preventive_points"].items():
                table[PreventiveStatus.parse(label)] = int(points)
            overrides["preventive_points"] = _frozen(table)
        if "enterprise_clients" in data:
            overrides["enterprise_clients"] = frozenset(data["enterprise_clients"])
        if "enterprise_points" in data:
            overrides["enterprise_points"] = int(data["enterprise_points"])
        if "account_age_buckets" in data:
            overrides["account_age_buckets"] = _thresholds(data["account_age_buckets"])
        if "nps_points" in data:
            table = dict(default.nps_points)
            table.update({int(k): int(v) for k, v in data["nps_points"].items()})
            overrides["nps_points"] = _frozen(table)
        if "loyalty_points" in data:
            table = dict(default.loyalty_points)
            for label, points in data["loyalty_points"].items():
                loyalty = Loyalty.parse(label)
                if loyalty is not None:
                    table[loyalty] = int(points)
            overrides["loyalty_points"] = _frozen(table)
        if "suggestion_volume_buckets" in data:
            overrides["suggestion_volume_buckets"] = _thresholds(
                data["suggestion_volume_buckets"]
            )
        if "suggestion_volume_overflow" in data:
            overrides["suggestion_volume_overflow"] = int(data["suggestion_volume_overflow"])
        if "tenure_buckets" in data:
            overrides["tenure_buckets"] = _thresholds(data["tenure_buckets"])
        if "tenure_overflow" in data:
            overrides["tenure_overflow"] = int(data["tenure_overflow"])
        if "points_per_vote" in data:
            overrides["points_per_vote"] = int(data["points_per_vote"])
        if "tier_thresholds" in data:
            tiers = []
            for bound, label in _tier_pairs(data["tier_thresholds"]):
                tier = PriorityTier.parse(label)
                if tier is None:
                    raise ValueError(f"Unknown priority tier in config: {label!r}")
                tiers.append((int(bound), tier))
            overrides["tier_thresholds"] = tuple(sorted(tiers, key=lambda t: t[0]))

        return cls(**overrides)

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary for JSON serialization."""
        return {
            "version": self.version,
            "customer_buckets": [list(pair) for pair in self.customer_buckets],
            "preventive_points": {k.value: v for k, v in self.preventive_points.items()},
            "enterprise_clients": sorted(self.enterprise_clients),
            "enterprise_points": self.enterprise_points,
            "account_age_buckets": [list(pair) for pair in self.account_age_buckets],
            "nps_points": dict(self.nps_points),
            "loyalty_points": {k.value: v for k, v in self.loyalty_points.items()},
            "suggestion_volume_buckets": [list(p) for p in self.suggestion_volume_buckets],
            "suggestion_volume_overflow": self.suggestion_volume_overflow,
            "tenure_buckets": [list(pair) for pair in self.tenure_buckets],
            "tenure_overflow": self.tenure_overflow,
            "points_per_vote": self.points_per_vote,
            "tier_thresholds": [[bound, tier.value] for bound, tier in self.tier_thresholds],
        }


def _tier_pairs(value: Any) -> list[tuple[Any, Any]]:
    if isinstance(value, Mapping):
        return list(value.items())
    return [tuple(pair) for pair in value]


@dataclass
class ApiConfig:
    """Suggestion board API connection configuration."""

    base_url: str = "http://127.0.0.1:8000/api"
    timeout_seconds: float = 10.0
    api_key: str | None = None
    api_key_env: str | None = None

    def get_api_key(self) -> str | None:
        """Get API key from config or environment."""
        if self.api_key:
            return self.api_key
        if self.api_key_env:
            return os.environ.get(self.api_key_env)
        return None


@dataclass
class MuralConfig:
    """Complete mural-priority configuration."""

    db_path: Path = field(default_factory=lambda: Path("mural.db"))
    storage: str = "sqlite"  # sqlite, memory
    storage_key: str = DEFAULT_STORAGE_KEY
    clients_path: Path | None = None

    api: ApiConfig = field(default_factory=ApiConfig)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MuralConfig":
        """Create config from a dictionary (e.g., from YAML)."""
        config = cls()

        mural = data.get("mural", {}) or {}
        if "db_path" in mural:
            config.db_path = Path(mural["db_path"])
        if "storage" in mural:
            config.storage = mural["storage"]
        if "storage_key" in mural:
            config.storage_key = mural["storage_key"]
        if mural.get("clients_path"):
            config.clients_path = Path(mural["clients_path"])

        if "api" in data:
            api = data["api"] or {}
            config.api = ApiConfig(
                base_url=api.get("base_url", config.api.base_url),
                timeout_seconds=api.get("timeout_seconds", 10.0),
                api_key=api.get("api_key"),
                api_key_env=api.get("api_key_env"),
            )

        if "scoring" in data:
            config.scoring = ScoringConfig.from_dict(data["scoring"] or {})

        return config

    @classmethod
    def from_yaml(cls, path: Path) -> "MuralConfig":
        """Load config from a YAML file. A missing file yields defaults."""
        if not path.exists():
            return cls()

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        config = cls.from_dict(data)

        # Relative paths are resolved against the config file's directory
        if config.clients_path and not config.clients_path.is_absolute():
            config.clients_path = path.parent / config.clients_path

        return config

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary for JSON serialization."""
        return {
            "mural": {
                "db_path": str(self.db_path),
                "storage": self.storage,
                "storage_key": self.storage_key,
                "clients_path": str(self.clients_path) if self.clients_path else None,
            },
            "api": {
                "base_url": self.api.base_url,
                "timeout_seconds": self.api.timeout_seconds,
            },
            "scoring": self.scoring.to_dict(),
        }

"""
Client directory: resolves a suggestion author's email to a ClientProfile.
"""

import logging
from collections.abc import Iterable
from dataclasses import replace
from pathlib import Path

import yaml

from .models import ClientProfile, Loyalty, PreventiveStatus

logger = logging.getLogger(__name__)

# Used for authors whose email is not in the directory
DEFAULT_PROFILE = ClientProfile(
    name="Unidentified Client",
    email="",
    total_clients=0,
    preventive_status=PreventiveStatus.NONE,
    nps=5,
    loyalty=Loyalty.NONE,
    suggestion_count=1,
    tenure_years=0,
)


class ClientDirectory:
    """Case-insensitive email lookup over a set of client profiles."""

    def __init__(self, profiles: Iterable[ClientProfile] = ()):
        self._by_email: dict[str, ClientProfile] = {}
        for profile in profiles:
            key = profile.email.strip().lower()
            if not key:
                logger.warning(f"Skipping client {profile.name!r} without an email")
                continue
            self._by_email[key] = profile

    def __len__(self) -> int:
        return len(self._by_email)

    def __contains__(self, email: str) -> bool:
        return email.strip().lower() in self._by_email

    def lookup(self, email: str) -> ClientProfile:
        """Profile for an email, or the default profile carrying that email."""
        profile = self._by_email.get(email.strip().lower())
        if profile is None:
            return replace(DEFAULT_PROFILE, email=email)
        return profile

    @classmethod
    def from_yaml(cls, path: Path) -> "ClientDirectory":
        """Load a `clients:` list from YAML. A missing file yields no clients."""
        if not path.exists():
            logger.warning(f"Client file not found: {path}")
            return cls()

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        entries = data.get("clients", []) if isinstance(data, dict) else data
        profiles = [ClientProfile.from_dict(entry) for entry in entries or []]
        logger.info(f"Loaded {len(profiles)} client profile(s) from {path}")
        return cls(profiles)

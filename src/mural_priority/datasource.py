"""
Suggestion board API client.

Supplies suggestion records, the suggestion-status catalogue and comment
counts. Catalogue and counts are cached with a single in-flight load so
concurrent callers share one request.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

import httpx

from .config import ApiConfig
from .models import SuggestionRecord

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CacheState(str, Enum):
    """Lifecycle of a SingleFlightCache."""

    EMPTY = "empty"
    LOADING = "loading"
    READY = "ready"


class SingleFlightCache(Generic[T]):
    """
    Caches the result of an async loader.

    While a load is in flight every caller awaits the same load. A failed
    load leaves the cache EMPTY and raises to all of its awaiters.
    """

    def __init__(self, loader: Callable[[], Awaitable[T]]):
        self._loader = loader
        self._value: T | None = None
        self._inflight: asyncio.Future | None = None
        self.state = CacheState.EMPTY

    @property
    def value(self) -> T | None:
        """Cached value, or None unless READY."""
        return self._value if self.state is CacheState.READY else None

    async def get(self) -> T:
        if self.state is CacheState.READY:
            return self._value
        if self._inflight is None:
            self.state = CacheState.LOADING
            self._inflight = asyncio.ensure_future(self._load())
        # Shielded so one cancelled caller does not cancel the shared load
        return await asyncio.shield(self._inflight)

    async def _load(self) -> T:
        try:
            value = await self._loader()
        except Exception:
            self.state = CacheState.EMPTY
            raise
        finally:
            self._inflight = None
        self._value = value
        self.state = CacheState.READY
        return value

    def invalidate(self) -> None:
        """Drop the cached value. A load already in flight still completes."""
        self._value = None
        if self._inflight is None:
            self.state = CacheState.EMPTY


@dataclass
class SuggestionStatus:
    """An entry of the suggestion-status catalogue."""

    id: str
    name: str
    color: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SuggestionStatus":
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or data.get("nome") or ""),
            color=data.get("color"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "color": self.color}


def _entries(data: Any, what: str) -> list[dict[str, Any]]:
    """Validate a list-of-objects payload; raises ValueError on a bad shape."""
    if not isinstance(data, list):
        raise ValueError(f"Expected a list of {what}, got {type(data).__name__}")
    for item in data:
        if not isinstance(item, dict) or "id" not in item:
            raise ValueError(f"Malformed {what} entry: {item!r}")
    return data


class MuralApiClient:
    """
    Client for the suggestion board API.

    Args:
        base_url: API root, e.g. "https://mural.example.com/api"
        timeout_seconds: Request timeout in seconds
        api_key: Bearer token sent with every request, if set
    """

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 10.0,
        api_key: str | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout_seconds
        self.api_key = api_key
        self._statuses: SingleFlightCache[list[SuggestionStatus]] = SingleFlightCache(
            self.fetch_statuses
        )
        self._comment_counts: dict[str, SingleFlightCache[int]] = {}

    @classmethod
    def from_config(cls, config: ApiConfig) -> "MuralApiClient":
        return cls(
            base_url=config.base_url,
            timeout_seconds=config.timeout_seconds,
            api_key=config.get_api_key(),
        )

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def _get_json(self, path: str, params: dict[str, str] | None = None) -> Any:
        url = f"{self.base_url}{path}"
        logger.debug(f"GET {url}")
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.get(url, headers=self._headers(), params=params)
            response.raise_for_status()
            return response.json()

    # -------------------------------------------------------------------------
    # Uncached requests
    # -------------------------------------------------------------------------

    async def fetch_statuses(self) -> list[SuggestionStatus]:
        """Fetch the status catalogue, ordered by name."""
        data = await self._get_json("/suggestion_statuses")
        entries = _entries(data, "statuses")
        statuses = [SuggestionStatus.from_dict(item) for item in entries]
        return sorted(statuses, key=lambda s: s.name)

    async def fetch_suggestions(self, include_private: bool = False) -> list[SuggestionRecord]:
        """Fetch suggestion records; private ones only when asked."""
        params = {"include_private": "true"} if include_private else None
        data = await self._get_json("/suggestions", params=params)
        if isinstance(data, dict):
            data = data.get("suggestions", [])
        return [SuggestionRecord.from_dict(item) for item in _entries(data, "suggestions")]

    async def fetch_comment_count(self, suggestion_id: str) -> int:
        data = await self._get_json(f"/suggestions/{suggestion_id}/comments/count")
        if isinstance(data, dict):
            data = data.get("count")
        if data is None:
            return 0
        if isinstance(data, bool) or not isinstance(data, int | float | str):
            raise ValueError(f"Unexpected comment count payload: {data!r}")
        return int(data)

    # -------------------------------------------------------------------------
    # Cached lookups
    # -------------------------------------------------------------------------

    async def get_statuses(self) -> list[SuggestionStatus]:
        """Cached status catalogue; empty on HTTP errors or a malformed payload."""
        try:
            return await self._statuses.get()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Could not load suggestion statuses: {e}")
            return []

    async def get_comment_count(self, suggestion_id: str, refresh: bool = False) -> int:
        """Cached comment count for a suggestion; 0 if it cannot be fetched or parsed."""
        cache = self._comment_counts.get(suggestion_id)
        if cache is None:
            cache = SingleFlightCache(lambda: self.fetch_comment_count(suggestion_id))
            self._comment_counts[suggestion_id] = cache
        if refresh:
            cache.invalidate()
        try:
            return await cache.get()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Could not load comment count for {suggestion_id}: {e}")
            return 0

"""
Suggestion state store.

Owns the map of suggestion id to SuggestionState, persists the whole map
under a single storage key on every update, and notifies observers through
a ChangeBus.
"""

import json
import logging
from collections import deque
from collections.abc import Mapping
from dataclasses import replace
from typing import Any

from .config import DEFAULT_STORAGE_KEY
from .events import ChangeBus, Subscriber, Subscription
from .models import DevelopmentStatus, SuggestionState, normalize_state_fields
from .storage import KeyValueStore, StorageError

logger = logging.getLogger(__name__)

EMPTY_STATE = SuggestionState()


class SuggestionStateStore:
    """
    Persisted, observable store of suggestion lifecycle states.

    Args:
        storage: Blob storage backend
        bus: Change notification bus (a private one is created if omitted)
        storage_key: Key holding the serialized state map
    """

    def __init__(
        self,
        storage: KeyValueStore,
        bus: ChangeBus | None = None,
        storage_key: str = DEFAULT_STORAGE_KEY,
    ):
        self.storage = storage
        self.bus = bus if bus is not None else ChangeBus()
        self.storage_key = storage_key
        self._states: dict[str, SuggestionState] = self._load()
        self._pending: deque[tuple[str, SuggestionState]] = deque()
        self._notifying = False

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def _load(self) -> dict[str, SuggestionState]:
        """Read the persisted map. Any failure starts from an empty map."""
        try:
            raw = self.storage.get(self.storage_key)
        except StorageError:
            logger.exception("Could not read persisted suggestion states, starting empty")
            return {}
        if raw is None:
            logger.info("No persisted suggestion states found, starting empty")
            return {}

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error(f"Malformed persisted suggestion states, starting empty: {e}")
            return {}
        if not isinstance(data, dict):
            logger.error(
                f"Persisted suggestion states should be an object, got "
                f"{type(data).__name__}; starting empty"
            )
            return {}

        states = {}
        for suggestion_id, entry in data.items():
            if not isinstance(entry, dict):
                logger.warning(f"Skipping malformed state for suggestion {suggestion_id}")
                continue
            states[str(suggestion_id)] = SuggestionState.from_wire(entry)
        logger.info(f"Loaded {len(states)} suggestion state(s)")
        return states

    def _persist(self) -> None:
        payload = json.dumps(
            {suggestion_id: state.to_wire() for suggestion_id, state in self._states.items()}
        )
        try:
            self.storage.set(self.storage_key, payload)
        except StorageError:
            # Best effort: the in-memory state keeps the mutation
            logger.exception("Could not persist suggestion states")

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get(self, suggestion_id: str) -> SuggestionState:
        """Stored state, or an empty state if the suggestion has none."""
        return self._states.get(suggestion_id, EMPTY_STATE)

    def all_states(self) -> dict[str, SuggestionState]:
        """Snapshot of every stored state."""
        return dict(self._states)

    def has_jira_task(self, suggestion_id: str) -> bool:
        return bool(self.get(suggestion_id).jira_task_code)

    def is_in_roadmap(self, suggestion_id: str) -> bool:
        return bool(self.get(suggestion_id).is_in_roadmap)

    def is_archived(self, suggestion_id: str) -> bool:
        return bool(self.get(suggestion_id).is_archived)

    def get_development_status(self, suggestion_id: str) -> DevelopmentStatus:
        return self.get(suggestion_id).development_status or DevelopmentStatus.BACKLOG

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def subscribe(self, callback: Subscriber) -> Subscription:
        """Register an observer of (suggestion_id, state) changes."""
        return self.bus.subscribe(callback)

    def update(
        self,
        suggestion_id: str,
        partial: Mapping[str, Any] | None = None,
        **fields,
    ) -> None:
        """
        Merge fields into a suggestion's state, persist, then notify.

        Fields present overwrite, absent fields are preserved, and explicit
        None clears. An update made from inside a subscriber is applied and
        persisted at once; its notification is delivered after the current
        one finishes.
        """
        changes = normalize_state_fields({**(partial or {}), **fields})
        merged = replace(self.get(suggestion_id), **changes)
        self._states[suggestion_id] = merged
        self._persist()

        self._pending.append((suggestion_id, merged))
        if self._notifying:
            return

        self._notifying = True
        try:
            while self._pending:
                pending_id, state = self._pending.popleft()
                self.bus.publish(pending_id, state)
        finally:
            self._notifying = False

    # -------------------------------------------------------------------------
    # Administrative actions
    # -------------------------------------------------------------------------

    def link_to_jira(self, suggestion_id: str, jira_code: str) -> None:
        self.update(suggestion_id, jira_task_code=jira_code)

    def add_to_roadmap(self, suggestion_id: str, roadmap_id: str) -> None:
        self.update(
            suggestion_id,
            is_in_roadmap=True,
            roadmap_id=roadmap_id,
            development_status=DevelopmentStatus.IN_DEVELOPMENT,
        )

    def remove_from_roadmap(self, suggestion_id: str) -> None:
        self.update(
            suggestion_id,
            is_in_roadmap=False,
            roadmap_id=None,
            development_status=DevelopmentStatus.BACKLOG,
        )

    def update_development_status(
        self, suggestion_id: str, status: DevelopmentStatus | str
    ) -> None:
        self.update(suggestion_id, development_status=status)

    def archive_suggestion(self, suggestion_id: str) -> None:
        self.update(suggestion_id, is_archived=True)

    def unarchive_suggestion(self, suggestion_id: str) -> None:
        self.update(suggestion_id, is_archived=False)

"""
In-process change notification bus.

Observers register a callback and get back a Subscription token; calling
the token removes that registration and nothing else.
"""

import itertools
import logging
from collections.abc import Callable

from .models import SuggestionState

logger = logging.getLogger(__name__)

Subscriber = Callable[[str, SuggestionState], None]


class Subscription:
    """Capability to remove one registration from a ChangeBus."""

    def __init__(self, bus: "ChangeBus", token: int):
        self._bus = bus
        self._token = token
        self.active = True

    def unsubscribe(self) -> None:
        """Remove the registration. Further calls do nothing."""
        if self.active:
            self._bus._remove(self._token)
            self.active = False

    def __call__(self) -> None:
        self.unsubscribe()


class ChangeBus:
    """Synchronous publish/subscribe for suggestion state changes."""

    def __init__(self):
        self._subscribers: dict[int, Subscriber] = {}
        self._tokens = itertools.count(1)

    def __len__(self) -> int:
        return len(self._subscribers)

    def subscribe(self, callback: Subscriber) -> Subscription:
        token = next(self._tokens)
        self._subscribers[token] = callback
        return Subscription(self, token)

    def _remove(self, token: int) -> None:
        self._subscribers.pop(token, None)

    def publish(self, suggestion_id: str, state: SuggestionState) -> int:
        """
        Call every subscriber registered when publishing starts.

        A failing subscriber is logged and skipped. Returns the number of
        subscribers that failed.
        """
        failures = 0
        for token, callback in list(self._subscribers.items()):
            # Unsubscribed by an earlier callback in this pass
            if token not in self._subscribers:
                continue
            try:
                callback(suggestion_id, state)
            except Exception:
                failures += 1
                logger.exception(f"Subscriber failed handling change to {suggestion_id}")
        return failures

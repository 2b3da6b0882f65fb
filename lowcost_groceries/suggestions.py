"""AI name suggestions: the clarify lookup and the tracker of pending lookups.

Lookups run concurrently and may finish in any order. Each one only ever
touches its own tracker entry, found by id at completion time; an entry that
was removed in the meantime is simply gone and the result is dropped.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from typing import Callable, Iterator

from .api_client import ApiError, GroceryApiClient
from .cart import Notify
from .config import MAX_ALTERNATIVES
from .models import Notice, PendingStatus, PendingSuggestion, SuggestionResult

logger = logging.getLogger(__name__)


class SuggestionClient:
    def __init__(self, api: GroceryApiClient, *, notify: Notify):
        self.api = api
        self._notify = notify

    async def fetch_suggestions(self, text: str, context_names: list[str]) -> SuggestionResult | None:
        """Look up canonical names for ``text``; ``None`` means "enter it manually"."""
        try:
            return await asyncio.to_thread(self.api.clarify, text, list(context_names))
        except ApiError as e:
            logger.warning("Suggestion lookup for %r failed: %s", text, e)
            self._notify(Notice("Failed to get AI suggestions. Try again!"))
            return None


def offered_names(result: SuggestionResult | None) -> list[str]:
    """Selectable names for a result: the best match first, then alternatives."""
    if result is None or result.suggested is None:
        return []
    names = [result.suggested.name]
    names.extend(alt.name for alt in result.alternatives[:MAX_ALTERNATIVES])
    return names


class PendingSuggestions:
    def __init__(self, *, on_change: Callable[[], None]):
        self._entries: dict[int, PendingSuggestion] = {}
        self._ids = itertools.count(1)
        self._on_change = on_change

    def __iter__(self) -> Iterator[PendingSuggestion]:
        # dicts keep insertion order, which is submission order
        return iter(list(self._entries.values()))

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, pending_id: int) -> PendingSuggestion | None:
        return self._entries.get(pending_id)

    def create(self, original_text: str) -> PendingSuggestion:
        entry = PendingSuggestion(id=next(self._ids), original_text=original_text)
        self._entries[entry.id] = entry
        self._on_change()
        return entry

    def resolve(self, pending_id: int, result: SuggestionResult | None) -> bool:
        """Apply a finished lookup to its entry. Returns False if it no longer applies."""
        entry = self._entries.get(pending_id)
        if entry is None:
            logger.debug("Dropping suggestions for removed entry %s", pending_id)
            return False
        if entry.status is not PendingStatus.LOADING:
            logger.debug("Entry %s already %s; ignoring late result", pending_id, entry.status.value)
            return False

        if result is None:
            entry.status = PendingStatus.ERROR
        else:
            entry.status = PendingStatus.COMPLETE
            entry.suggestions = result
            if result.suggested is None:
                logger.info("No suggestion returned for %r", entry.original_text)
        self._on_change()
        return True

    def reload(self, pending_id: int) -> PendingSuggestion | None:
        """Move an errored entry back to loading for a retry."""
        entry = self._entries.get(pending_id)
        if entry is None or entry.status is not PendingStatus.ERROR:
            return None
        entry.status = PendingStatus.LOADING
        entry.suggestions = None
        self._on_change()
        return entry

    def remove(self, pending_id: int) -> bool:
        if self._entries.pop(pending_id, None) is None:
            return False
        self._on_change()
        return True

    def clear(self) -> None:
        self._entries.clear()

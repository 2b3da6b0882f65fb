"""Root controller tying the cart, suggestions, and job polling to one session."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from .api_client import GroceryApiClient
from .config import MAX_ITEMS, MIN_ITEM_LENGTH, Config
from .models import Job, Notice, Phase, PendingStatus
from .polling import JobController
from .session import Session, is_valid_zip, normalize_zip
from .suggestions import SuggestionClient, offered_names
from .view import View, project

logger = logging.getLogger(__name__)


class ShoppingAssistant:
    """Accepts user actions, moves the session between phases, and re-renders.

    ``on_change`` receives a fresh :class:`View` after every state change.
    Operations that are not allowed right now (wrong phase, full cart,
    duplicate, bad zip) return False/None and may leave a notice; they never
    raise.
    """

    def __init__(
        self,
        api: GroceryApiClient,
        *,
        on_change: Callable[[View], None] | None = None,
        poll_interval_s: float = 2.0,
        max_items: int = MAX_ITEMS,
    ):
        self._on_change = on_change
        self.session = Session(on_change=self._render, max_items=max_items)
        self.suggester = SuggestionClient(api, notify=self.session.notify)
        self.jobs = JobController(api, self.session, poll_interval_s=poll_interval_s, on_change=self._render)
        self._lookups: set[asyncio.Task] = set()

    @classmethod
    def from_config(cls, cfg: Config, **kwargs) -> "ShoppingAssistant":
        api = GroceryApiClient(api_url=cfg.api_url, timeout_s=cfg.timeout_s)
        return cls(api, poll_interval_s=cfg.poll_interval_s, max_items=cfg.max_items, **kwargs)

    @property
    def phase(self) -> Phase:
        return self.session.phase.current

    def view(self) -> View:
        return project(self.session)

    def drain_notices(self) -> list[Notice]:
        return self.session.drain_notices()

    def _render(self) -> None:
        if self._on_change is not None:
            self._on_change(project(self.session))

    # Phase 1: building the cart

    def submit_item_text(self, text: str) -> asyncio.Task | None:
        """Queue an AI lookup for ``text``; returns the running lookup task."""
        if self.phase != Phase.BUILDING:
            return None
        text = (text or "").strip()
        if len(text) < MIN_ITEM_LENGTH:
            return None
        entry = self.session.pending.create(text)
        return self._start_lookup(entry.id, text)

    def retry(self, pending_id: int) -> asyncio.Task | None:
        entry = self.session.pending.reload(pending_id)
        if entry is None:
            return None
        return self._start_lookup(entry.id, entry.original_text)

    def _start_lookup(self, pending_id: int, text: str) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(self._lookup(pending_id, text))
        self._lookups.add(task)
        task.add_done_callback(self._lookups.discard)
        return task

    async def _lookup(self, pending_id: int, text: str) -> None:
        result = await self.suggester.fetch_suggestions(text, self.session.cart.names())
        self.session.pending.resolve(pending_id, result)

    async def wait_for_suggestions(self) -> None:
        while self._lookups:
            await asyncio.wait(list(self._lookups))

    def select_suggestion(self, pending_id: int, name: str) -> bool:
        entry = self.session.pending.get(pending_id)
        if entry is None or entry.status is not PendingStatus.COMPLETE:
            return False
        if name not in offered_names(entry.suggestions):
            return False
        added = self.session.cart.add(name)
        self.session.pending.remove(pending_id)
        return added

    def add_manual(self, pending_id: int) -> bool:
        """Add an entry's original text as typed, for when no suggestion fits."""
        entry = self.session.pending.get(pending_id)
        if entry is None or entry.status is PendingStatus.LOADING:
            return False
        added = self.session.cart.add(entry.original_text)
        self.session.pending.remove(pending_id)
        return added

    def add_item(self, name: str) -> bool:
        """Add a name straight to the cart, skipping the suggestion lookup."""
        if self.phase != Phase.BUILDING:
            return False
        name = (name or "").strip()
        if not name:
            return False
        added = self.session.cart.add(name)
        self._render()
        return added

    def remove_item(self, index: int) -> None:
        self.session.cart.remove(index)
        self._render()

    def clear_cart(self, *, confirmed: bool) -> bool:
        if not confirmed or not len(self.session.cart):
            return False
        self.session.cart.clear()
        self._render()
        return True

    def continue_to_location(self) -> bool:
        if self.phase != Phase.BUILDING or not len(self.session.cart):
            return False
        self.session.phase.go_to(Phase.LOCATION)
        return True

    # Phase 2: location

    def back_to_cart(self) -> bool:
        if self.phase != Phase.LOCATION:
            return False
        self.session.phase.go_to(Phase.BUILDING)
        return True

    def set_zip(self, raw: str) -> str:
        self.session.zip_code = normalize_zip(raw)
        self._render()
        return self.session.zip_code

    def set_prioritize_nearby(self, value: bool) -> None:
        self.session.prioritize_nearby = bool(value)
        self._render()

    async def find_prices(self) -> Job | None:
        s = self.session
        if self.phase != Phase.LOCATION or not len(s.cart):
            return None
        if not is_valid_zip(s.zip_code):
            s.notify(Notice("Enter a 5-digit zip code"))
            self._render()
            return None
        return await self.jobs.submit(s.cart.names(), s.zip_code, prioritize_nearby=s.prioritize_nearby)

    # Phases 3 and 4

    async def wait_for_results(self) -> None:
        await self.jobs.wait()

    def new_search(self) -> None:
        # Suggestion lookups still in flight finish against a cleared tracker.
        self.jobs.reset()
        self.session.reset()
        logger.debug("Session reset")

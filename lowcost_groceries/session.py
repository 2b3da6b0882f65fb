from __future__ import annotations

import logging
import re
from typing import Callable

from .cart import Cart
from .config import MAX_ITEMS, ZIP_LENGTH
from .models import Job, Notice, Phase
from .suggestions import PendingSuggestions

logger = logging.getLogger(__name__)

_NON_DIGITS = re.compile(r"\D")


def normalize_zip(raw: str) -> str:
    """Keep only digits, capped at the zip length, the way the field accepts typing."""
    return _NON_DIGITS.sub("", raw or "")[:ZIP_LENGTH]


def is_valid_zip(zip_code: str | None) -> bool:
    return bool(zip_code) and len(zip_code) == ZIP_LENGTH and zip_code.isdigit()


class PhaseNavigator:
    def __init__(self, *, on_change: Callable[[], None]):
        self.current = Phase.BUILDING
        self._on_change = on_change

    def go_to(self, phase: Phase) -> None:
        if phase != self.current:
            logger.debug("Phase %s -> %s", self.current.name, phase.name)
        self.current = Phase(phase)
        self._on_change()


class Session:
    """Everything one shopping run knows, from the first item to the results."""

    def __init__(self, *, on_change: Callable[[], None], max_items: int = MAX_ITEMS):
        self.notices: list[Notice] = []
        self.cart = Cart(notify=self.notify, max_items=max_items)
        self.pending = PendingSuggestions(on_change=on_change)
        self.phase = PhaseNavigator(on_change=on_change)
        self.zip_code = ""
        self.prioritize_nearby = False

        # Polling state for the single active job.
        self.job: Job | None = None
        self.poll_count = 0
        self.progress = 0
        self.status_text = ""

    def notify(self, notice: Notice) -> None:
        logger.info("Notice: %s", notice.message)
        self.notices.append(notice)

    def drain_notices(self) -> list[Notice]:
        out, self.notices = self.notices, []
        return out

    def reset_job(self) -> None:
        self.job = None
        self.poll_count = 0
        self.progress = 0
        self.status_text = ""

    def reset(self) -> None:
        self.cart.clear()
        self.pending.clear()
        self.zip_code = ""
        self.prioritize_nearby = False
        self.reset_job()
        self.phase.go_to(Phase.BUILDING)

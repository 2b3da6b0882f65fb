from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum


class Phase(IntEnum):
    BUILDING = 1
    LOCATION = 2
    POLLING = 3
    RESULTS = 4


class PendingStatus(str, Enum):
    LOADING = "loading"
    COMPLETE = "complete"
    ERROR = "error"


class JobStatus(str, Enum):
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETE = "complete"
    FAILED = "failed"


@dataclass(frozen=True)
class CartItem:
    name: str


@dataclass(frozen=True)
class Suggestion:
    name: str


@dataclass(frozen=True)
class SuggestionResult:
    """Canonical name candidates returned by the clarify endpoint."""

    # None when the backend answered with its no-suggestion shape.
    suggested: Suggestion | None
    alternatives: tuple[Suggestion, ...] = ()


@dataclass
class PendingSuggestion:
    id: int
    original_text: str
    status: PendingStatus = PendingStatus.LOADING
    suggestions: SuggestionResult | None = None


@dataclass(frozen=True)
class Product:
    name: str
    merchant: str
    price: float
    location: str | None = None


@dataclass
class Job:
    id: str
    # None while the backend reports a status this client does not know.
    status: JobStatus | None = JobStatus.QUEUED
    queue_position: int | None = None
    results: dict[str, list[Product]] = field(default_factory=dict)
    total_time: float | None = None  # seconds, as reported by the backend
    zip_code: str | None = None


@dataclass(frozen=True)
class Notice:
    message: str
    duration_s: float = 3.0

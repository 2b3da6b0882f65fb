"""Pure projection from session state to what the user should see."""

from __future__ import annotations

from dataclasses import dataclass

from .models import Notice, Phase, PendingStatus
from .results import ResultsView, build_results
from .session import Session, is_valid_zip
from .suggestions import offered_names


@dataclass(frozen=True)
class SuggestionOption:
    name: str
    best: bool = False


@dataclass(frozen=True)
class PendingCard:
    id: int
    original_text: str
    status: PendingStatus
    options: tuple[SuggestionOption, ...] = ()
    retry_available: bool = False
    manual_available: bool = False


@dataclass(frozen=True)
class View:
    phase: Phase

    cart: tuple[str, ...]
    cart_count: str
    continue_enabled: bool
    clear_visible: bool

    pending: tuple[PendingCard, ...]

    zip_code: str
    find_prices_enabled: bool

    status_text: str
    progress: int
    job_id_display: str

    results: ResultsView | None = None

    # Notices raised since the consumer last drained them.
    notices: tuple[Notice, ...] = ()


def project_pending(session: Session) -> tuple[PendingCard, ...]:
    cards: list[PendingCard] = []
    for entry in session.pending:
        if entry.status is PendingStatus.COMPLETE:
            names = offered_names(entry.suggestions)
            cards.append(PendingCard(
                id=entry.id,
                original_text=entry.original_text,
                status=entry.status,
                options=tuple(SuggestionOption(n, best=(i == 0)) for i, n in enumerate(names)),
                manual_available=not names,
            ))
        elif entry.status is PendingStatus.ERROR:
            cards.append(PendingCard(
                id=entry.id,
                original_text=entry.original_text,
                status=entry.status,
                retry_available=True,
                manual_available=True,
            ))
        else:
            cards.append(PendingCard(id=entry.id, original_text=entry.original_text, status=entry.status))
    return tuple(cards)


def project(session: Session) -> View:
    cart = tuple(session.cart.names())
    job = session.job

    results = None
    if session.phase.current == Phase.RESULTS and job is not None:
        results = build_results(list(cart), job, fallback_zip=session.zip_code)

    return View(
        phase=session.phase.current,
        cart=cart,
        cart_count=f"{len(cart)}/{session.cart.max_items}",
        continue_enabled=bool(cart),
        clear_visible=bool(cart),
        pending=project_pending(session),
        zip_code=session.zip_code,
        find_prices_enabled=is_valid_zip(session.zip_code),
        status_text=session.status_text,
        progress=session.progress,
        job_id_display=(job.id[:8] + "...") if job is not None else "",
        results=results,
        notices=tuple(session.notices),
    )

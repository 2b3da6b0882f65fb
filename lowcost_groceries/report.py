from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path

from .models import Phase, PendingStatus
from .results import ResultsView, other_stores_label
from .view import PendingCard, View


def _money(price: float) -> str:
    return f"${price:.2f}"


def pending_text(card: PendingCard) -> list[str]:
    if card.status is PendingStatus.LOADING:
        return [f'  "{card.original_text}"  Getting AI suggestions...']
    if card.status is PendingStatus.ERROR:
        return [f'  Failed to get suggestions for "{card.original_text}"  [retry]']

    lines = [f'  Suggestions for "{card.original_text}"']
    if not card.options:
        lines.append("     (no suggestions, add it as typed)")
    for opt in card.options:
        tag = "  [Best Match]" if opt.best else ""
        lines.append(f"     - {opt.name}{tag}")
    return lines


def cart_text(view: View) -> str:
    lines = [f"Cart {view.cart_count}"]
    if not view.cart:
        lines.append("  Your list is empty")
    for i, name in enumerate(view.cart, 1):
        lines.append(f"  {i}. {name}")
    for card in view.pending:
        lines.extend(pending_text(card))
    return "\n".join(lines)


def results_text(results: ResultsView) -> str:
    s = results.summary
    lines = [
        f"Found {s.items_found}/{s.total_items} items in {s.zip_code}  "
        f"Products: {s.total_products}  Time: {s.processing_time}",
        "",
    ]
    for item in results.items:
        lines.append(f"  {item.name}")
        if item.group is None:
            lines.append("     No products found")
            continue
        shown = item.group.shown
        lines.append(f"     BEST PRICE {_money(item.group.price)}  {shown.name}")
        merchant = f"     at {shown.merchant}"
        if item.group.collapsed:
            merchant += f"  ({other_stores_label(len(item.group.collapsed))})"
        lines.append(merchant)
        if shown.location:
            lines.append(f"     {shown.location}")
    return "\n".join(lines)


def view_text(view: View) -> str:
    if view.phase == Phase.BUILDING:
        return cart_text(view)
    if view.phase == Phase.LOCATION:
        zip_code = view.zip_code or "-----"
        return f"{len(view.cart)} items ready. Zip code: {zip_code}"
    if view.phase == Phase.POLLING:
        job = f"[{view.job_id_display}] " if view.job_id_display else ""
        return f"{job}{view.status_text or 'Submitting cart...'}  {view.progress}%"
    if view.results is not None:
        return results_text(view.results)
    return ""


def write_json(results: ResultsView, path: str = "artifacts/results.json") -> str:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(json.dumps(asdict(results), indent=2))
    return str(out)

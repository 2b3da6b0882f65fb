from __future__ import annotations

from dataclasses import dataclass

from .models import Job, Product


@dataclass(frozen=True)
class PriceGroup:
    """Products tied at the lowest price for one cart item."""

    best: tuple[Product, ...]

    @property
    def price(self) -> float:
        return self.best[0].price

    @property
    def shown(self) -> Product:
        return self.best[0]

    @property
    def collapsed(self) -> tuple[Product, ...]:
        return self.best[1:]


@dataclass(frozen=True)
class ItemResult:
    name: str
    group: PriceGroup | None  # None when nothing was found for this item

    @property
    def found(self) -> bool:
        return self.group is not None


@dataclass(frozen=True)
class ResultsSummary:
    items_found: int
    total_items: int
    total_products: int
    zip_code: str
    processing_time: str  # "12.3s", or "-" when the backend did not say


@dataclass(frozen=True)
class ResultsView:
    items: tuple[ItemResult, ...]
    summary: ResultsSummary


def best_price_group(products: list[Product]) -> PriceGroup | None:
    if not products:
        return None
    # sorted() is stable, so equal prices keep the order the server sent them in
    ordered = sorted(products, key=lambda p: p.price)
    lowest = ordered[0].price
    return PriceGroup(best=tuple(p for p in ordered if p.price == lowest))


def build_results(cart_names: list[str], job: Job, *, fallback_zip: str = "") -> ResultsView:
    results = job.results or {}

    items = tuple(
        ItemResult(name=name, group=best_price_group(results.get(name, [])))
        for name in cart_names
    )

    summary = ResultsSummary(
        items_found=sum(1 for products in results.values() if products),
        total_items=len(cart_names),
        total_products=sum(len(products) for products in results.values()),
        zip_code=job.zip_code or fallback_zip,
        processing_time=f"{job.total_time:.1f}s" if job.total_time else "-",
    )
    return ResultsView(items=items, summary=summary)


def other_stores_label(count: int) -> str:
    return f"+ {count} other store{'s' if count > 1 else ''}"

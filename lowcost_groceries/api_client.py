from __future__ import annotations

import logging
from typing import Any

import requests

from .http import HttpClient
from .models import Job, JobStatus, Product, Suggestion, SuggestionResult

logger = logging.getLogger(__name__)


class ApiError(RuntimeError):
    """Base class for failures talking to the pricing backend."""


class NetworkFailure(ApiError):
    """The request never produced an HTTP response."""


class ServerFailure(ApiError):
    """The backend answered with a non-2xx status or an unusable body."""

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class GroceryApiClient:
    def __init__(self, *, api_url: str, timeout_s: float = 30.0):
        self.http = HttpClient(base_url=api_url, timeout_s=timeout_s)

    def clarify(self, item: str, context: list[str]) -> SuggestionResult:
        data = self._post_json("/api/clarify", {"item": item, "context": list(context)})
        try:
            return parse_suggestion_result(data)
        except (AttributeError, TypeError, ValueError) as e:
            raise ServerFailure(f"Unexpected clarify response for {item!r}: {e}")

    def submit_cart(self, items: list[str], zipcode: str, *, prioritize_nearby: bool = False) -> str:
        data = self._post_json(
            "/api/cart",
            {"items": list(items), "zipcode": zipcode, "prioritize_nearby": prioritize_nearby},
        )
        job_id = data.get("job_id")
        if not job_id:
            raise ServerFailure("Cart submission returned no job_id")
        return str(job_id)

    def get_results(self, job_id: str) -> Job:
        data = self._get_json(f"/api/results/{job_id}")
        try:
            return parse_job(job_id, data)
        except (AttributeError, TypeError, ValueError) as e:
            raise ServerFailure(f"Unexpected results response for job {job_id}: {e}")

    def _post_json(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        try:
            resp = self.http.post_json(path, body)
        except requests.RequestException as e:
            raise NetworkFailure(f"Request to {path} failed: {e}") from e
        return self._decode(resp, path)

    def _get_json(self, path: str) -> dict[str, Any]:
        try:
            resp = self.http.get(path)
        except requests.RequestException as e:
            raise NetworkFailure(f"Request to {path} failed: {e}") from e
        return self._decode(resp, path)

    def _decode(self, resp: requests.Response, path: str) -> dict[str, Any]:
        if not 200 <= resp.status_code < 300:
            raise ServerFailure(
                f"API error {resp.status_code} for {path}: {resp.text[:500]}",
                status_code=resp.status_code,
            )
        try:
            data = resp.json()
        except ValueError as e:
            raise ServerFailure(f"Failed to decode JSON for {path}: {e}", status_code=resp.status_code)
        if not isinstance(data, dict):
            raise ServerFailure(f"Expected a JSON object for {path}", status_code=resp.status_code)
        return data


def parse_suggestion_result(data: dict[str, Any]) -> SuggestionResult:
    suggested = None
    raw = data.get("suggested")
    if isinstance(raw, dict) and raw.get("name"):
        suggested = Suggestion(name=str(raw["name"]))

    alternatives: list[Suggestion] = []
    raw_alts = data.get("alternatives") or []
    if not isinstance(raw_alts, list):
        raise ServerFailure(f"Expected a list of alternatives, got {type(raw_alts).__name__}")
    for alt in raw_alts:
        if isinstance(alt, dict) and alt.get("name"):
            alternatives.append(Suggestion(name=str(alt["name"])))

    return SuggestionResult(suggested=suggested, alternatives=tuple(alternatives))


def parse_product(row: dict[str, Any]) -> Product | None:
    try:
        price = float(row["price"])
    except (KeyError, TypeError, ValueError):
        return None
    location = row.get("location")
    return Product(
        name=str(row.get("name") or row.get("title") or "Product"),
        merchant=str(row.get("merchant") or ""),
        price=price,
        location=str(location) if location else None,
    )


def parse_job(job_id: str, data: dict[str, Any]) -> Job:
    raw_status = data.get("status")
    try:
        status = JobStatus(raw_status)
    except ValueError:
        # Unrecognised statuses keep the job polling without changing anything.
        logger.warning("Unknown status %r for job %s", raw_status, job_id)
        status = None

    raw_results = data.get("results") or {}
    if not isinstance(raw_results, dict):
        raise ServerFailure(f"Expected results keyed by item, got {type(raw_results).__name__}")

    results: dict[str, list[Product]] = {}
    for item_name, rows in raw_results.items():
        if not isinstance(rows, list):
            raise ServerFailure(f"Expected a product list for {item_name!r}, got {type(rows).__name__}")
        products: list[Product] = []
        for row in rows or []:
            p = parse_product(row) if isinstance(row, dict) else None
            if p is None:
                logger.warning("Dropping product without a usable price for %r: %r", item_name, row)
                continue
            products.append(p)
        results[str(item_name)] = products

    qp = data.get("queue_position")
    total_time = data.get("total_time")
    zip_code = data.get("zip_code")
    return Job(
        id=job_id,
        status=status,
        queue_position=int(qp) if isinstance(qp, (int, float)) else None,
        results=results,
        total_time=float(total_time) if isinstance(total_time, (int, float)) else None,
        zip_code=str(zip_code) if zip_code else None,
    )

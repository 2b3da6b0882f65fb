import itertools
import threading

import pytest

from lowcost_groceries.api_client import NetworkFailure
from lowcost_groceries.models import Job, JobStatus, Product, Suggestion, SuggestionResult


class FakeApi:
    """In-memory stand-in for GroceryApiClient.

    ``gates`` holds an Event per item text; a clarify call for that text
    blocks until the test sets it, which lets tests finish lookups in any order.
    """

    def __init__(self):
        self.suggestions = {}
        self.gates = {}
        self.clarify_calls = []

        self.job_ids = None
        self._job_counter = itertools.count(1)
        self.submit_error = None
        self.submitted = []

        self.statuses = []
        self.result_calls = []

    def clarify(self, item, context):
        self.clarify_calls.append((item, list(context)))
        gate = self.gates.get(item)
        if gate is not None:
            gate.wait(timeout=5)
        res = self.suggestions.get(item)
        if isinstance(res, Exception):
            raise res
        if res is None:
            return SuggestionResult(suggested=Suggestion(item.title()))
        return res

    def submit_cart(self, items, zipcode, *, prioritize_nearby=False):
        self.submitted.append((list(items), zipcode, prioritize_nearby))
        if self.submit_error is not None:
            raise self.submit_error
        if self.job_ids:
            return self.job_ids.pop(0)
        return f"job-{next(self._job_counter)}"

    def get_results(self, job_id):
        self.result_calls.append(job_id)
        if not self.statuses:
            return Job(id=job_id, status=JobStatus.QUEUED, queue_position=1)
        nxt = self.statuses.pop(0)
        if isinstance(nxt, Exception):
            raise nxt
        return Job(
            id=job_id,
            status=nxt.status,
            queue_position=nxt.queue_position,
            results=nxt.results,
            total_time=nxt.total_time,
            zip_code=nxt.zip_code,
        )


def job(status, **kwargs):
    return Job(id="", status=status, **kwargs)


def product(merchant, price, name="Product", location=None):
    return Product(name=name, merchant=merchant, price=price, location=location)


def suggestions(best, *alts):
    return SuggestionResult(
        suggested=Suggestion(best) if best else None,
        alternatives=tuple(Suggestion(a) for a in alts),
    )


@pytest.fixture
def api():
    return FakeApi()


@pytest.fixture
def network_error():
    return NetworkFailure("connection refused")


@pytest.fixture
def gate():
    def _gate(fake, text):
        ev = threading.Event()
        fake.gates[text] = ev
        return ev

    return _gate

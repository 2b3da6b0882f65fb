"""Cart submission and result polling for the single active pricing job."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from .api_client import ApiError, GroceryApiClient
from .models import Job, JobStatus, Notice, Phase
from .session import Session

logger = logging.getLogger(__name__)

Tick = Callable[[], Awaitable[None]]


class PollTimer:
    """A repeating timer that fires immediately, then every ``interval_s``.

    Only one loop runs at a time: ``start`` stops the previous one first.
    """

    def __init__(self, interval_s: float):
        self.interval_s = interval_s
        self._task: asyncio.Task | None = None
        self._last: asyncio.Task | None = None

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, tick: Tick) -> asyncio.Task:
        self.stop()
        task = asyncio.get_running_loop().create_task(self._run(tick))
        self._task = self._last = task
        return task

    def stop(self) -> None:
        task, self._task = self._task, None
        if task is None or task.done():
            return
        # A tick may stop its own timer; the loop notices and exits after it.
        if task is not _current_task():
            task.cancel()

    async def wait(self) -> None:
        """Block until the most recently started loop has ended."""
        if self._last is not None:
            await asyncio.wait([self._last])

    async def _run(self, tick: Tick) -> None:
        me = asyncio.current_task()
        while self._task is me:
            await tick()
            if self._task is not me:
                break
            await asyncio.sleep(self.interval_s)


def _current_task() -> asyncio.Task | None:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None


class JobController:
    def __init__(
        self,
        api: GroceryApiClient,
        session: Session,
        *,
        poll_interval_s: float = 2.0,
        on_change: Callable[[], None],
    ):
        self.api = api
        self.session = session
        self.timer = PollTimer(poll_interval_s)
        self._on_change = on_change
        self._generation = 0

    async def submit(self, items: list[str], zip_code: str, *, prioritize_nearby: bool = False) -> Job | None:
        s = self.session
        self.timer.stop()
        self._generation += 1
        generation = self._generation
        s.reset_job()
        s.phase.go_to(Phase.POLLING)

        try:
            job_id = await asyncio.to_thread(
                self.api.submit_cart, list(items), zip_code, prioritize_nearby=prioritize_nearby
            )
        except ApiError as e:
            if generation != self._generation:
                return None
            logger.warning("Cart submission failed: %s", e)
            s.notify(Notice("Failed to submit cart. Please try again."))
            s.phase.go_to(Phase.LOCATION)
            return None

        if generation != self._generation:
            logger.debug("Discarding job %s from a superseded submission", job_id)
            return None

        job = Job(id=job_id)
        s.job = job
        s.status_text = "Job queued, waiting for worker..."
        logger.info("Submitted %d items for %s as job %s", len(items), zip_code, job_id)
        self.start_polling(job_id)
        return job

    def start_polling(self, job_id: str) -> asyncio.Task:
        self.session.poll_count = 0
        return self.timer.start(lambda: self._poll(job_id))

    def reset(self) -> None:
        self.timer.stop()
        self._generation += 1

    async def wait(self) -> None:
        await self.timer.wait()

    def _is_current(self, job_id: str) -> bool:
        job = self.session.job
        return job is not None and job.id == job_id and self.session.phase.current == Phase.POLLING

    async def _poll(self, job_id: str) -> None:
        s = self.session
        if not self._is_current(job_id):
            logger.debug("Ignoring stale poll tick for job %s", job_id)
            return

        s.poll_count += 1
        s.progress = max(s.progress, min(s.poll_count * 10, 90))
        self._on_change()

        try:
            update = await asyncio.to_thread(self.api.get_results, job_id)
        except ApiError as e:
            if not self._is_current(job_id):
                return
            logger.warning("Polling job %s failed: %s", job_id, e)
            self.timer.stop()
            s.reset_job()
            s.notify(Notice("Error fetching results. Please try again."))
            s.phase.go_to(Phase.LOCATION)
            return

        if not self._is_current(job_id):
            logger.debug("Ignoring late status for job %s", job_id)
            return

        logger.debug("Job %s poll #%d: %s", job_id, s.poll_count, update.status)
        if update.status is JobStatus.COMPLETE:
            self.timer.stop()
            s.job = update
            s.progress = 100
            s.status_text = "Complete"
            s.phase.go_to(Phase.RESULTS)
        elif update.status is JobStatus.FAILED:
            self.timer.stop()
            s.reset_job()
            s.notify(Notice("Search failed. Please try again."))
            s.phase.go_to(Phase.LOCATION)
        elif update.status is JobStatus.PROCESSING:
            s.job.status = JobStatus.PROCESSING
            s.status_text = "Processing your items..."
            self._on_change()
        elif update.status is JobStatus.QUEUED:
            s.job.status = JobStatus.QUEUED
            s.job.queue_position = update.queue_position
            position = update.queue_position if update.queue_position is not None else "?"
            s.status_text = f"Queued (position: {position})"
            self._on_change()

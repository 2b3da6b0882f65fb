import asyncio

import pytest

from conftest import job, product
from lowcost_groceries.api_client import ServerFailure
from lowcost_groceries.models import JobStatus, Phase
from lowcost_groceries.polling import JobController, PollTimer
from lowcost_groceries.session import Session


def _controller(api, interval=0):
    progress = []
    session = Session(on_change=lambda: None)
    ctrl = JobController(
        api, session, poll_interval_s=interval, on_change=lambda: progress.append(session.progress)
    )
    return ctrl, session, progress


@pytest.mark.asyncio
async def test_timer_fires_immediately_then_repeats():
    ticks = []
    timer = PollTimer(interval_s=0)

    async def tick():
        ticks.append(1)
        if len(ticks) == 3:
            timer.stop()

    timer.start(tick)
    await timer.wait()
    assert len(ticks) == 3
    assert not timer.active


@pytest.mark.asyncio
async def test_timer_first_tick_not_delayed():
    ticks = []
    timer = PollTimer(interval_s=60)

    async def tick():
        ticks.append(1)

    timer.start(tick)
    await asyncio.sleep(0.01)
    assert ticks == [1]
    timer.stop()
    await timer.wait()
    assert not timer.active


@pytest.mark.asyncio
async def test_timer_start_replaces_previous():
    timer = PollTimer(interval_s=60)

    async def tick():
        pass

    first = timer.start(tick)
    second = timer.start(tick)
    await asyncio.sleep(0.01)
    assert first.cancelled() or first.done()
    assert not second.done()
    timer.stop()
    await timer.wait()


@pytest.mark.asyncio
async def test_full_polling_protocol(api):
    api.job_ids = ["abc123"]
    api.statuses = [
        job(JobStatus.QUEUED, queue_position=3),
        job(JobStatus.PROCESSING),
        job(JobStatus.COMPLETE, results={"bread": [product("A", 2.25)]}),
    ]
    ctrl, session, progress = _controller(api)

    submitted = await ctrl.submit(["bread"], "02139")
    assert submitted.id == "abc123"
    await ctrl.wait()

    assert session.phase.current == Phase.RESULTS
    assert session.progress == 100
    assert session.job.results["bread"][0].merchant == "A"
    assert api.result_calls == ["abc123"] * 3
    assert not ctrl.timer.active

    await asyncio.sleep(0.05)
    assert len(api.result_calls) == 3


@pytest.mark.asyncio
async def test_progress_is_monotonic_and_capped(api):
    api.statuses = [job(JobStatus.PROCESSING)] * 12 + [job(JobStatus.COMPLETE)]
    ctrl, session, progress = _controller(api)

    await ctrl.submit(["bread"], "02139")
    await ctrl.wait()

    assert progress == sorted(progress)
    assert max(progress) == 90
    assert session.progress == 100


@pytest.mark.asyncio
async def test_status_text(api):
    api.statuses = [job(JobStatus.QUEUED), job(JobStatus.QUEUED, queue_position=2), job(JobStatus.PROCESSING)]
    seen = []
    session = Session(on_change=lambda: None)
    ctrl = JobController(api, session, poll_interval_s=0, on_change=lambda: seen.append(session.status_text))

    await ctrl.submit(["bread"], "02139")
    while len(api.result_calls) < 4:
        await asyncio.sleep(0.01)
    ctrl.reset()
    await ctrl.wait()

    assert "Queued (position: ?)" in seen
    assert "Queued (position: 2)" in seen
    assert "Processing your items..." in seen


@pytest.mark.asyncio
async def test_submit_failure_returns_to_location(api):
    api.submit_error = ServerFailure("bad gateway", status_code=502)
    ctrl, session, _ = _controller(api)
    phases = []
    session.phase._on_change = lambda: phases.append(session.phase.current)

    assert await ctrl.submit(["bread"], "02139") is None
    assert phases == [Phase.POLLING, Phase.LOCATION]
    assert session.notices[-1].message == "Failed to submit cart. Please try again."
    assert not ctrl.timer.active


@pytest.mark.asyncio
async def test_failed_status_stops_polling(api):
    api.statuses = [job(JobStatus.PROCESSING), job(JobStatus.FAILED)]
    ctrl, session, _ = _controller(api)

    await ctrl.submit(["bread"], "02139")
    await ctrl.wait()

    assert session.phase.current == Phase.LOCATION
    assert session.job is None
    assert session.notices[-1].message == "Search failed. Please try again."
    assert len(api.result_calls) == 2


@pytest.mark.asyncio
async def test_poll_error_aborts_without_retry(api, network_error):
    api.statuses = [job(JobStatus.QUEUED), network_error, job(JobStatus.COMPLETE)]
    ctrl, session, _ = _controller(api)

    await ctrl.submit(["bread"], "02139")
    await ctrl.wait()

    assert session.phase.current == Phase.LOCATION
    assert session.notices[-1].message == "Error fetching results. Please try again."
    assert len(api.result_calls) == 2
    await asyncio.sleep(0.05)
    assert len(api.result_calls) == 2


@pytest.mark.asyncio
async def test_repeated_submits_leave_one_timer(api):
    ctrl, session, _ = _controller(api, interval=0.01)
    tasks = []
    for _ in range(5):
        await ctrl.submit(["bread"], "02139")
        tasks.append(ctrl.timer._task)

    await asyncio.sleep(0.05)
    assert all(t.done() for t in tasks[:-1])
    assert not tasks[-1].done()
    assert ctrl.timer.active
    assert session.job.id == "job-5"

    ctrl.reset()
    await ctrl.wait()
    assert not ctrl.timer.active


@pytest.mark.asyncio
async def test_reset_stops_timer(api):
    ctrl, session, _ = _controller(api, interval=60)
    await ctrl.submit(["bread"], "02139")
    assert ctrl.timer.active

    ctrl.reset()
    await ctrl.wait()
    assert not ctrl.timer.active
    calls = len(api.result_calls)
    await asyncio.sleep(0.05)
    assert len(api.result_calls) == calls


@pytest.mark.asyncio
async def test_stale_tick_is_ignored(api):
    ctrl, session, _ = _controller(api, interval=60)
    await ctrl.submit(["bread"], "02139")
    await asyncio.sleep(0.01)
    ctrl.timer.stop()
    count = session.poll_count

    # a tick for a job that is no longer the current one changes nothing
    await ctrl._poll("job-old")
    assert session.poll_count == count
    assert "job-old" not in api.result_calls

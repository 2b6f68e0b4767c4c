"""Tests for the scrape job store on a throwaway SQLite database.

Covers creation, oldest-first claiming, claim exclusivity under
concurrency, the one-way lifecycle and the maintenance queries.
"""

from __future__ import annotations

import asyncio
from datetime import timedelta

import pytest

from slotverse.core.exceptions import JobStateError
from slotverse.core.job_store import JobStore
from slotverse.core.models.base import utcnow


async def _create(store: JobStore, count: int, **kwargs) -> list[int]:
    ids = []
    for i in range(count):
        job = await store.create(f"https://example.com/slots/game-{i}", **kwargs)
        ids.append(job.id)
    return ids


@pytest.mark.asyncio
class TestCreateAndRead:
    async def test_create_is_pending(self, job_store: JobStore) -> None:
        job = await job_store.create(
            "https://example.com/slots/starburst",
            platform="discord",
            callback_channel="123",
            callback_token="interaction-token",
            requested_by="discord:42",
        )

        stored = await job_store.get(job.id)
        assert stored is not None
        assert stored.status == "pending"
        assert stored.platform == "discord"
        assert stored.callback_token == "interaction-token"
        assert stored.started_at is None
        assert stored.error_message is None
        assert stored.result_payload is None

    async def test_get_unknown_returns_none(self, job_store: JobStore) -> None:
        assert await job_store.get(999) is None

    async def test_list_recent_newest_first(self, job_store: JobStore) -> None:
        ids = await _create(job_store, 3)

        recent = await job_store.list_recent()

        assert [job.id for job in recent] == list(reversed(ids))

    async def test_list_recent_limit(self, job_store: JobStore) -> None:
        await _create(job_store, 5)

        assert len(await job_store.list_recent(limit=2)) == 2

    async def test_count_recent_for_requester(self, job_store: JobStore) -> None:
        await _create(job_store, 3, requested_by="telegram:7")
        await _create(job_store, 1, requested_by="telegram:8")

        since = utcnow() - timedelta(hours=1)
        assert await job_store.count_recent_for_requester("telegram:7", since) == 3
        assert await job_store.count_recent_for_requester("telegram:9", since) == 0


@pytest.mark.asyncio
class TestClaimPending:
    async def test_claims_oldest_first(self, job_store: JobStore) -> None:
        ids = await _create(job_store, 4)

        claimed = await job_store.claim_pending(2)

        assert [job.id for job in claimed] == ids[:2]
        assert all(job.status == "processing" for job in claimed)
        assert all(job.started_at is not None for job in claimed)

    async def test_claimed_jobs_are_not_claimed_again(self, job_store: JobStore) -> None:
        ids = await _create(job_store, 3)

        first = await job_store.claim_pending(2)
        second = await job_store.claim_pending(5)

        assert [job.id for job in second] == ids[2:]
        assert {job.id for job in first}.isdisjoint(job.id for job in second)

    async def test_claimed_jobs_leave_the_backlog(self, job_store: JobStore) -> None:
        await _create(job_store, 3)

        await job_store.claim_pending(2)

        assert await job_store.count_pending() == 1

    async def test_zero_limit_claims_nothing(self, job_store: JobStore) -> None:
        await _create(job_store, 1)

        assert await job_store.claim_pending(0) == []
        assert (await job_store.list_recent())[0].status == "pending"

    async def test_empty_store(self, job_store: JobStore) -> None:
        assert await job_store.claim_pending(3) == []

    async def test_concurrent_claims_are_disjoint(self, session_factory) -> None:
        stores = [JobStore(session_factory) for _ in range(3)]
        await _create(stores[0], 6)

        results = await asyncio.gather(*(store.claim_pending(4) for store in stores))

        claimed_ids = [job.id for batch in results for job in batch]
        assert len(claimed_ids) == len(set(claimed_ids))
        assert 4 <= len(claimed_ids) <= 6


@pytest.mark.asyncio
class TestFinish:
    async def test_complete_with_result(self, job_store: JobStore) -> None:
        job = await job_store.create("https://example.com/slots/starburst")
        await job_store.claim_pending(1)

        finished = await job_store.finish(job.id, "completed", result={"games_found": 1})

        assert finished.status == "completed"
        assert finished.result_payload == {"games_found": 1}
        assert finished.error_message is None
        assert finished.completed_at is not None

    async def test_fail_with_error(self, job_store: JobStore) -> None:
        job = await job_store.create("https://example.com/slots/starburst")
        await job_store.claim_pending(1)

        finished = await job_store.finish(job.id, "failed", error="timeout: too slow")

        assert finished.status == "failed"
        assert finished.error_message == "timeout: too slow"
        assert finished.result_payload is None

    async def test_finish_pending_job_is_rejected(self, job_store: JobStore) -> None:
        job = await job_store.create("https://example.com/slots/starburst")

        with pytest.raises(JobStateError):
            await job_store.finish(job.id, "completed", result={"games_found": 1})

        assert (await job_store.get(job.id)).status == "pending"

    async def test_terminal_state_is_final(self, job_store: JobStore) -> None:
        job = await job_store.create("https://example.com/slots/starburst")
        await job_store.claim_pending(1)
        await job_store.finish(job.id, "failed", error="internal: boom")

        with pytest.raises(JobStateError):
            await job_store.finish(job.id, "completed", result={"games_found": 1})

    @pytest.mark.parametrize(
        ("status", "kwargs"),
        [
            ("completed", {}),
            ("completed", {"result": {}, "error": "x"}),
            ("failed", {}),
            ("failed", {"error": "x", "result": {}}),
            ("processing", {"result": {}}),
        ],
    )
    async def test_inconsistent_arguments(self, job_store: JobStore, status, kwargs) -> None:
        job = await job_store.create("https://example.com/slots/starburst")
        await job_store.claim_pending(1)

        with pytest.raises(JobStateError):
            await job_store.finish(job.id, status, **kwargs)

    async def test_unknown_job(self, job_store: JobStore) -> None:
        with pytest.raises(JobStateError):
            await job_store.finish(12345, "failed", error="internal: gone")


@pytest.mark.asyncio
class TestMaintenance:
    async def test_fail_stale(self, job_store: JobStore) -> None:
        ids = await _create(job_store, 2)
        await job_store.claim_pending(1)

        failed = await job_store.fail_stale(timedelta(minutes=-1))

        assert failed == [ids[0]]
        stale = await job_store.get(ids[0])
        assert stale.status == "failed"
        assert stale.error_message.startswith("internal: ")
        assert (await job_store.get(ids[1])).status == "pending"

    async def test_fail_stale_ignores_recent_jobs(self, job_store: JobStore) -> None:
        await _create(job_store, 1)
        await job_store.claim_pending(1)

        assert await job_store.fail_stale(timedelta(minutes=30)) == []

    async def test_delete_finished_before(self, job_store: JobStore) -> None:
        ids = await _create(job_store, 3)
        await job_store.claim_pending(2)
        await job_store.finish(ids[0], "completed", result={"games_found": 1})

        deleted = await job_store.delete_finished_before(utcnow() + timedelta(minutes=1))

        assert deleted == 1
        assert await job_store.get(ids[0]) is None
        assert (await job_store.get(ids[1])).status == "processing"
        assert (await job_store.get(ids[2])).status == "pending"

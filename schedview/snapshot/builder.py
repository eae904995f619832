"""
SnapshotBuilder: assembles the scheduler → groups → jobs → triggers view.

Design:
- Liveness first: a shut-down engine yields a SHUTDOWN snapshot with no
  groups, and None from the detail lookups, without touching the
  hierarchy queries
- Sibling queries (groups, jobs in a group, triggers of a job) fan out as
  asyncio tasks; a per-call semaphore caps in-flight engine queries.
  gather() keeps results in the engine's reported order
- Status and trigger type are resolved inline as each trigger is built
- get_snapshot() is all-or-nothing: the first failed query cancels its
  siblings and propagates. Only the job-definition fetch in
  get_job_detail() is isolated, and turns into sentinel detail content

The builder keeps no state between calls, so one instance can serve any
number of concurrent callers.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Sequence, TypeVar

from schedview.core.config import SnapshotConfig
from schedview.core.types import (
    Job,
    JobDetail,
    JobGroup,
    SchedulerSnapshot,
    Trigger,
    TriggerGroup,
)
from schedview.engine.base import EngineMetadata, JobDefinition, JobKey, SchedulingEngine, TriggerKey
from schedview.engine.triggers import TriggerDefinition
from schedview.snapshot.classifier import DEFAULT_CLASSIFIER, TriggerTypeClassifier
from schedview.snapshot.fetchers import (
    FetchOutcome,
    FetchResult,
    fetch_job_definition,
    fetch_job_group_names,
    fetch_job_keys,
    fetch_metadata,
    fetch_trigger,
    fetch_trigger_group_names,
    fetch_trigger_state,
    fetch_triggers_of_job,
)
from schedview.snapshot.status import resolve_scheduler_status, resolve_trigger_status

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

UNAVAILABLE_KEY = "Data"


class _Traversal:
    """Fan-out state for a single public call. Never shared between calls."""

    def __init__(self, engine: SchedulingEngine, max_concurrency: int) -> None:
        self.engine = engine
        self._concurrent = max_concurrency > 1
        self._limit = asyncio.Semaphore(max_concurrency)

    async def query(
        self,
        fetcher: Callable[..., Awaitable[FetchResult[Any]]],
        *args: Any,
    ) -> Any:
        """Run one fetcher under the concurrency cap; failures propagate."""
        async with self._limit:
            result = await fetcher(self.engine, *args)
        return result.unwrap()

    async def map(
        self,
        func: Callable[[T], Awaitable[R]],
        items: Sequence[T],
    ) -> list[R]:
        """Apply `func` to every item, results in input order."""
        if not self._concurrent or len(items) < 2:
            return [await func(item) for item in items]

        tasks = [asyncio.ensure_future(func(item)) for item in items]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise


class SnapshotBuilder:
    """
    Read-only view builder over a SchedulingEngine.

    Usage:
        builder = SnapshotBuilder(engine)

        snapshot = await builder.get_snapshot()
        detail = await builder.get_job_detail("invoice", "billing")
        trigger = await builder.get_trigger_detail("nightly", "billing")
    """

    def __init__(
        self,
        engine: SchedulingEngine,
        config: SnapshotConfig | None = None,
        classifier: TriggerTypeClassifier = DEFAULT_CLASSIFIER,
    ) -> None:
        self._engine = engine
        self._config = config or SnapshotConfig()
        self._classifier = classifier

    @property
    def engine(self) -> SchedulingEngine:
        return self._engine

    # ── Public operations ────────────────────────────────────────────────────

    async def get_snapshot(self) -> SchedulerSnapshot:
        """
        Build the full hierarchy.

        Raises whatever the engine raised if any query fails; there is no
        partial snapshot.

        A shut-down engine only answers the metadata query. Its snapshot has
        jobs_total=0 and no groups, and the job-key count is not requested.
        """
        engine = self._engine
        run = self._traversal()
        is_shutdown = engine.is_shutdown

        metadata: EngineMetadata = await run.query(fetch_metadata) or EngineMetadata()

        if is_shutdown:
            logger.debug(f"Engine {engine.name!r} is shut down, skipping hierarchy")
            jobs_total = 0
            group_names: list[str] = []
            trigger_group_names: list[str] = []
        else:
            jobs_total = len(await run.query(fetch_job_keys) or [])
            group_names = await run.query(fetch_job_group_names) or []
            trigger_group_names = await run.query(fetch_trigger_group_names) or []

        status = resolve_scheduler_status(is_shutdown, group_names, engine.is_started)

        job_groups = await run.map(
            lambda group: self._build_job_group(run, group), group_names
        )
        trigger_groups = [TriggerGroup(name) for name in trigger_group_names]

        jobs_in_groups = sum(g.job_count for g in job_groups)
        if jobs_in_groups != jobs_total:
            # Separate queries; the engine changed between them
            logger.debug(
                f"jobs_total={jobs_total} but groups hold {jobs_in_groups} jobs"
            )

        snapshot = SchedulerSnapshot(
            name=engine.name,
            instance_id=engine.instance_id,
            status=status,
            is_remote=metadata.is_remote,
            jobs_executed=metadata.jobs_executed,
            jobs_total=jobs_total,
            scheduler_type=metadata.scheduler_type,
            running_since=metadata.running_since,
            job_groups=tuple(job_groups),
            trigger_groups=tuple(trigger_groups),
        )
        logger.info(
            f"Snapshot of {engine.name!r}: status={status.value}, "
            f"{len(job_groups)} job groups, {jobs_total} jobs"
        )
        return snapshot

    async def get_job_detail(self, name: str, group: str) -> JobDetail | None:
        """
        Detail for one job, or None if the engine is down or the job is gone.

        The job's basic data is gathered before the definition is fetched.
        If the engine cannot produce the definition, the detail carries a
        sentinel entry instead of raising.
        """
        if self._engine.is_shutdown:
            return None

        key = JobKey(name, group)
        job = await self._build_job(self._traversal(), key)

        result = await fetch_job_definition(self._engine, key)
        if result.outcome in (FetchOutcome.DETAIL_UNAVAILABLE, FetchOutcome.FAILED):
            logger.warning(f"Job detail for {key} not available: {result.error}")
            return self._unavailable_detail(job)
        if result.outcome == FetchOutcome.NOT_FOUND:
            return None

        definition: JobDefinition = result.value
        return JobDetail(
            job=job,
            job_data_map=dict(definition.job_data),
            job_properties=_job_properties(definition),
        )

    async def get_trigger_detail(self, name: str, group: str) -> Trigger | None:
        """Full data for one trigger, or None if the engine is down or it is gone."""
        if self._engine.is_shutdown:
            return None

        run = self._traversal()
        definition = await run.query(fetch_trigger, TriggerKey(name, group))
        if definition is None:
            return None
        return await self._build_trigger(run, definition)

    # ── Assembly ─────────────────────────────────────────────────────────────

    def _traversal(self) -> _Traversal:
        return _Traversal(self._engine, self._config.max_concurrency)

    async def _build_job_group(self, run: _Traversal, group: str) -> JobGroup:
        keys: list[JobKey] = await run.query(fetch_job_keys, group) or []
        jobs = await run.map(
            lambda key: self._build_job(run, JobKey(key.name, group)), keys
        )
        return JobGroup(name=group, jobs=tuple(jobs))

    async def _build_job(self, run: _Traversal, key: JobKey) -> Job:
        definitions = await run.query(fetch_triggers_of_job, key) or []
        triggers = await run.map(
            lambda definition: self._build_trigger(run, definition), definitions
        )
        return Job(name=key.name, group=key.group, triggers=tuple(triggers))

    async def _build_trigger(
        self, run: _Traversal, definition: TriggerDefinition
    ) -> Trigger:
        state = await run.query(fetch_trigger_state, definition.key)
        return Trigger(
            name=definition.key.name,
            group=definition.key.group,
            status=resolve_trigger_status(state),
            start_date=definition.start_time,
            end_date=definition.end_time,
            next_fire_date=definition.next_fire_time,
            previous_fire_date=definition.previous_fire_time,
            trigger_type=self._classifier.classify(definition),
        )

    def _unavailable_detail(self, job: Job) -> JobDetail:
        text = self._config.unavailable_detail_text
        return JobDetail(
            job=job,
            job_data_map={UNAVAILABLE_KEY: text},
            job_properties={UNAVAILABLE_KEY: text},
            detail_available=False,
        )


def _job_properties(definition: JobDefinition) -> dict[str, Any]:
    return {
        "Description": definition.description,
        "Full name": definition.key.name,
        "Job type": definition.job_type_name,
        "Durable": definition.durable,
        "ConcurrentExecutionDisallowed": definition.concurrent_execution_disallowed,
        "PersistJobDataAfterExecution": definition.persist_job_data_after_execution,
        "RequestsRecovery": definition.requests_recovery,
    }

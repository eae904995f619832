"""
In-memory scheduling engine: for tests, demos and the CLI.

Dict-backed, keeps insertion order for groups, jobs and triggers.
Nothing fires on its own: callers drive the state with start(),
shutdown(), set_trigger_state() and fire_trigger().
"""

from __future__ import annotations

import asyncio
import importlib
import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable

from schedview.core.errors import EngineError, EngineStateError, JobTypeUnavailableError
from schedview.engine.base import (
    EngineMetadata,
    JobDefinition,
    JobKey,
    SchedulingEngine,
    TriggerKey,
    TriggerState,
)
from schedview.engine.triggers import TriggerDefinition

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryEngine(SchedulingEngine):
    """
    In-memory engine.

    Usage:
        engine = InMemoryEngine(name="demo")
        engine.add_job(JobDefinition(JobKey("report", "billing"), "billing.jobs.Report"))
        engine.add_trigger(SimpleTriggerDefinition(...))
        engine.start()

    With remote=True the engine behaves like a proxy to a scheduler in
    another process: job definitions whose job_type cannot be imported
    here raise JobTypeUnavailableError.

    Every query except get_metadata() raises EngineError once the engine
    has been shut down.
    """

    def __init__(
        self,
        name: str = "InMemoryScheduler",
        instance_id: str = "NON_CLUSTERED",
        remote: bool = False,
        scheduler_type: str | None = None,
        jobs_executed: int = 0,
        latency: float = 0.0,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._name = name
        self._instance_id = instance_id
        self._remote = remote
        self._scheduler_type = scheduler_type or type(self).__name__
        self._latency = latency
        self._clock = clock or _utcnow

        self._jobs: dict[str, dict[str, JobDefinition]] = {}
        self._triggers: dict[TriggerKey, TriggerDefinition] = {}
        self._trigger_groups: dict[str, list[TriggerKey]] = {}
        self._states: dict[TriggerKey, TriggerState] = {}

        self._started = False
        self._shutdown = False
        self._running_since: datetime | None = None
        self._jobs_executed = jobs_executed

    # ── Lifecycle ────────────────────────────────────────────────────────────

    @property
    def name(self) -> str:
        return self._name

    @property
    def instance_id(self) -> str:
        return self._instance_id

    @property
    def is_shutdown(self) -> bool:
        return self._shutdown

    @property
    def is_started(self) -> bool:
        return self._started

    def start(self) -> None:
        if self._shutdown:
            raise EngineStateError("Cannot start a scheduler that has been shut down")
        if not self._started:
            self._started = True
            self._running_since = self._clock()
            logger.debug(f"Engine {self._name!r} started")

    def shutdown(self) -> None:
        self._shutdown = True
        self._started = False
        logger.debug(f"Engine {self._name!r} shut down")

    # ── Mutation ─────────────────────────────────────────────────────────────

    def add_job(self, job: JobDefinition, replace_existing: bool = False) -> None:
        group = self._jobs.setdefault(job.key.group, {})
        if job.key.name in group and not replace_existing:
            raise EngineStateError(f"Job {job.key} already exists")
        group[job.key.name] = job

    def add_trigger(self, trigger: TriggerDefinition) -> TriggerDefinition:
        """
        Store a trigger for an existing job.

        A trigger without next_fire_time gets one computed from its
        previous fire time (or now). Returns the stored definition.
        """
        if self._find_job(trigger.job_key) is None:
            raise EngineStateError(
                f"Trigger {trigger.key} refers to unknown job {trigger.job_key}"
            )
        if trigger.key in self._triggers:
            raise EngineStateError(f"Trigger {trigger.key} already exists")

        if trigger.next_fire_time is None:
            trigger = replace(
                trigger,
                next_fire_time=trigger.fire_time_after(
                    trigger.previous_fire_time or self._clock()
                ),
            )
        self._triggers[trigger.key] = trigger
        self._trigger_groups.setdefault(trigger.key.group, []).append(trigger.key)
        self._states[trigger.key] = (
            TriggerState.NORMAL if trigger.next_fire_time else TriggerState.COMPLETE
        )
        return trigger

    def remove_job(self, key: JobKey) -> bool:
        """Remove a job and its triggers. Returns True if it existed."""
        group = self._jobs.get(key.group)
        if not group or key.name not in group:
            return False
        del group[key.name]
        if not group:
            del self._jobs[key.group]
        for trigger_key in [k for k, t in self._triggers.items() if t.job_key == key]:
            self._remove_trigger(trigger_key)
        return True

    def set_trigger_state(self, key: TriggerKey, state: TriggerState) -> None:
        if key not in self._triggers:
            raise EngineStateError(f"Unknown trigger {key}")
        self._states[key] = state

    def fire_trigger(self, key: TriggerKey) -> TriggerDefinition:
        """
        Record that a trigger fired at its next fire time.

        Advances the fire times, bumps the executed-jobs counter and marks
        the trigger COMPLETE when its schedule is exhausted.
        """
        trigger = self._triggers.get(key)
        if trigger is None:
            raise EngineStateError(f"Unknown trigger {key}")
        fired_at = trigger.next_fire_time
        if fired_at is None:
            raise EngineStateError(f"Trigger {key} has no remaining fire times")

        trigger = replace(
            trigger,
            previous_fire_time=fired_at,
            next_fire_time=trigger.fire_time_after(fired_at),
        )
        self._triggers[key] = trigger
        self._jobs_executed += 1
        if trigger.next_fire_time is None:
            self._states[key] = TriggerState.COMPLETE
        logger.debug(f"Trigger {key} fired at {fired_at.isoformat()}")
        return trigger

    # ── Queries ──────────────────────────────────────────────────────────────

    async def get_metadata(self) -> EngineMetadata:
        await self._round_trip()
        return EngineMetadata(
            is_remote=self._remote,
            jobs_executed=self._jobs_executed,
            running_since=self._running_since,
            scheduler_type=self._scheduler_type,
        )

    async def get_job_keys(self, group: str | None = None) -> list[JobKey]:
        await self._query("get_job_keys")
        if group is None:
            return [job.key for jobs in self._jobs.values() for job in jobs.values()]
        return [job.key for job in self._jobs.get(group, {}).values()]

    async def get_job_group_names(self) -> list[str]:
        await self._query("get_job_group_names")
        return list(self._jobs)

    async def get_trigger_group_names(self) -> list[str]:
        await self._query("get_trigger_group_names")
        return list(self._trigger_groups)

    async def get_job_definition(self, key: JobKey) -> JobDefinition | None:
        await self._query("get_job_definition")
        job = self._find_job(key)
        if job is not None and self._remote:
            _resolve_job_type(job.job_type)
        return job

    async def get_triggers_of_job(self, key: JobKey) -> list[TriggerDefinition]:
        await self._query("get_triggers_of_job")
        return [t for t in self._triggers.values() if t.job_key == key]

    async def get_trigger(self, key: TriggerKey) -> TriggerDefinition | None:
        await self._query("get_trigger")
        return self._triggers.get(key)

    async def get_trigger_state(self, key: TriggerKey) -> TriggerState:
        await self._query("get_trigger_state")
        return self._states.get(key, TriggerState.NONE)

    # ── Helpers ──────────────────────────────────────────────────────────────

    async def _round_trip(self) -> None:
        # Always yield so concurrent callers interleave as they would remotely
        await asyncio.sleep(self._latency)

    async def _query(self, operation: str) -> None:
        await self._round_trip()
        if self._shutdown:
            raise EngineError(
                f"Scheduler {self._name!r} has been shut down", operation=operation
            )

    def _find_job(self, key: JobKey) -> JobDefinition | None:
        return self._jobs.get(key.group, {}).get(key.name)

    def _remove_trigger(self, key: TriggerKey) -> None:
        del self._triggers[key]
        self._states.pop(key, None)
        keys = self._trigger_groups[key.group]
        keys.remove(key)
        if not keys:
            del self._trigger_groups[key.group]


def _resolve_job_type(job_type: str) -> type:
    """Import a dotted job type path, as a remote client must to rebuild it."""
    module_name, _, class_name = job_type.rpartition(".")
    try:
        module = importlib.import_module(module_name) if module_name else None
        resolved = getattr(module, class_name)
    except (ImportError, AttributeError, ValueError) as e:
        raise JobTypeUnavailableError(
            f"Cannot load job type {job_type!r}: {e}", job_type=job_type
        ) from e
    if not isinstance(resolved, type):
        raise JobTypeUnavailableError(
            f"Job type {job_type!r} is not a class", job_type=job_type
        )
    return resolved

"""
State loader: builds an InMemoryEngine from a TOML or JSON description.

File shape (TOML):

    [scheduler]
    name = "billing"
    started = true

    [[jobs]]
    name = "invoice"
    group = "billing"
    type = "billing.jobs.InvoiceJob"
    data = { retries = "3" }

    [[jobs.triggers]]
    name = "nightly"
    kind = "cron"              # simple | cron | calendar | daily
    expression = "0 2 * * *"
    start = 2024-01-01T00:00:00Z
    state = "paused"           # optional raw engine state

JSON files use the same structure.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, time, timedelta, timezone
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError

from schedview.core.errors import EngineStateError
from schedview.engine.base import DEFAULT_GROUP, JobDefinition, JobKey, TriggerKey, TriggerState
from schedview.engine.memory import InMemoryEngine
from schedview.engine.triggers import (
    REPEAT_INDEFINITELY,
    CalendarIntervalTriggerDefinition,
    CronTriggerDefinition,
    DailyTimeIntervalTriggerDefinition,
    IntervalUnit,
    SimpleTriggerDefinition,
    TriggerDefinition,
)

logger = logging.getLogger(__name__)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# File Schema
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class SchedulerSpec(BaseModel):
    name: str = "InMemoryScheduler"
    instance_id: str = "NON_CLUSTERED"
    remote: bool = False
    scheduler_type: str | None = None
    started: bool = False
    shutdown: bool = False
    jobs_executed: int = 0


class TriggerSpec(BaseModel):
    name: str
    group: str | None = None  # defaults to the job's group
    kind: Literal["simple", "cron", "calendar", "daily"] = "simple"
    start: datetime
    end: datetime | None = None
    next_fire: datetime | None = None
    previous_fire: datetime | None = None
    description: str | None = None
    state: TriggerState | None = None

    # simple
    interval_seconds: float = 0
    repeat_count: int = REPEAT_INDEFINITELY
    # cron
    expression: str | None = None
    # calendar / daily
    interval: int = 1
    unit: IntervalUnit | None = None
    # daily
    start_time_of_day: time = time(0, 0)
    end_time_of_day: time = time(23, 59, 59)
    days_of_week: list[int] = Field(default_factory=lambda: list(range(7)))


class JobSpec(BaseModel):
    name: str
    group: str = DEFAULT_GROUP
    type: str
    description: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)
    durable: bool = False
    concurrent_execution_disallowed: bool = False
    persist_job_data_after_execution: bool = False
    requests_recovery: bool = False
    triggers: list[TriggerSpec] = Field(default_factory=list)


class StateFile(BaseModel):
    scheduler: SchedulerSpec = Field(default_factory=SchedulerSpec)
    jobs: list[JobSpec] = Field(default_factory=list)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Loading
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def load_engine(path: Path) -> InMemoryEngine:
    """Read a .toml or .json state file and build the engine it describes."""
    path = Path(path).expanduser()
    if not path.exists():
        raise EngineStateError(f"State file not found: {path}")

    try:
        if path.suffix.lower() == ".json":
            data = json.loads(path.read_text(encoding="utf-8"))
        else:
            try:
                import tomllib
            except ImportError:
                import tomli as tomllib  # type: ignore[no-redef]
            with open(path, "rb") as f:
                data = tomllib.load(f)
    except (OSError, ValueError) as e:
        raise EngineStateError(f"Failed to read state file {path}: {e}") from e

    engine = build_engine(data)
    logger.debug(f"Loaded engine {engine.name!r} from {path}")
    return engine


def build_engine(data: dict[str, Any]) -> InMemoryEngine:
    """Build an InMemoryEngine from an already-parsed state dict."""
    try:
        state = StateFile.model_validate(data)
    except ValidationError as e:
        raise EngineStateError(f"Invalid engine state: {e}") from e

    spec = state.scheduler
    engine = InMemoryEngine(
        name=spec.name,
        instance_id=spec.instance_id,
        remote=spec.remote,
        scheduler_type=spec.scheduler_type,
        jobs_executed=spec.jobs_executed,
    )
    if spec.started:
        engine.start()

    for job_spec in state.jobs:
        job_key = JobKey(job_spec.name, job_spec.group)
        engine.add_job(
            JobDefinition(
                key=job_key,
                job_type=job_spec.type,
                description=job_spec.description,
                job_data=dict(job_spec.data),
                durable=job_spec.durable,
                concurrent_execution_disallowed=job_spec.concurrent_execution_disallowed,
                persist_job_data_after_execution=job_spec.persist_job_data_after_execution,
                requests_recovery=job_spec.requests_recovery,
            )
        )
        for trigger_spec in job_spec.triggers:
            try:
                trigger = engine.add_trigger(_make_trigger(trigger_spec, job_key))
            except ValueError as e:
                raise EngineStateError(
                    f"Invalid trigger {trigger_spec.name!r} on job {job_key}: {e}"
                ) from e
            if trigger_spec.state is not None:
                engine.set_trigger_state(trigger.key, trigger_spec.state)

    if spec.shutdown:
        engine.shutdown()
    return engine


def _utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def _make_trigger(spec: TriggerSpec, job_key: JobKey) -> TriggerDefinition:
    common: dict[str, Any] = {
        "key": TriggerKey(spec.name, spec.group or job_key.group),
        "job_key": job_key,
        "start_time": _utc(spec.start),
        "end_time": _utc(spec.end),
        "next_fire_time": _utc(spec.next_fire),
        "previous_fire_time": _utc(spec.previous_fire),
        "description": spec.description,
    }

    if spec.kind == "simple":
        return SimpleTriggerDefinition(
            **common,
            repeat_interval=timedelta(seconds=spec.interval_seconds),
            repeat_count=spec.repeat_count if spec.interval_seconds else 0,
        )
    if spec.kind == "cron":
        if not spec.expression:
            raise ValueError("cron triggers need an expression")
        return CronTriggerDefinition(**common, expression=spec.expression)
    if spec.kind == "calendar":
        return CalendarIntervalTriggerDefinition(
            **common,
            repeat_interval=spec.interval,
            repeat_interval_unit=spec.unit or IntervalUnit.DAY,
        )
    return DailyTimeIntervalTriggerDefinition(
        **common,
        start_time_of_day=spec.start_time_of_day,
        end_time_of_day=spec.end_time_of_day,
        repeat_interval=spec.interval,
        repeat_interval_unit=spec.unit or IntervalUnit.MINUTE,
        days_of_week=frozenset(spec.days_of_week),
    )

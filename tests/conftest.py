"""Shared test fixtures for schedview."""

from datetime import datetime, time, timedelta, timezone

import pytest

from schedview.core.config import SchedViewConfig, SnapshotConfig
from schedview.engine.base import JobDefinition, JobKey, TriggerKey, TriggerState
from schedview.engine.memory import InMemoryEngine
from schedview.engine.triggers import (
    CalendarIntervalTriggerDefinition,
    CronTriggerDefinition,
    DailyTimeIntervalTriggerDefinition,
    IntervalUnit,
    SimpleTriggerDefinition,
)
from schedview.snapshot.builder import SnapshotBuilder

NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)
START = datetime(2024, 1, 1, tzinfo=timezone.utc)


def populate(engine: InMemoryEngine) -> InMemoryEngine:
    """
    Two job groups:

        billing: invoice (nightly cron [paused], retry simple), reconcile (no triggers)
        reports: weekly (calendar), digest (daily window [complete])
    """
    invoice = JobKey("invoice", "billing")
    engine.add_job(
        JobDefinition(
            key=invoice,
            job_type="billing.jobs.InvoiceJob",
            description="Generate invoices",
            job_data={"retries": "3"},
            durable=True,
            requests_recovery=True,
        )
    )
    engine.add_job(JobDefinition(key=JobKey("reconcile", "billing"), job_type="billing.jobs.Reconcile"))
    weekly = JobKey("weekly", "reports")
    digest = JobKey("digest", "reports")
    engine.add_job(JobDefinition(key=weekly, job_type="collections.OrderedDict"))
    engine.add_job(JobDefinition(key=digest, job_type="collections.Counter"))

    engine.add_trigger(
        CronTriggerDefinition(
            key=TriggerKey("nightly", "billing"),
            job_key=invoice,
            start_time=START,
            expression="0 2 * * *",
        )
    )
    engine.add_trigger(
        SimpleTriggerDefinition(
            key=TriggerKey("retry", "billing"),
            job_key=invoice,
            start_time=START,
            repeat_interval=timedelta(hours=1),
            repeat_count=-1,
        )
    )
    engine.add_trigger(
        CalendarIntervalTriggerDefinition(
            key=TriggerKey("weekly", "reports"),
            job_key=weekly,
            start_time=START,
            repeat_interval=1,
            repeat_interval_unit=IntervalUnit.WEEK,
        )
    )
    engine.add_trigger(
        DailyTimeIntervalTriggerDefinition(
            key=TriggerKey("digest", "reports"),
            job_key=digest,
            start_time=START,
            start_time_of_day=time(9, 0),
            end_time_of_day=time(17, 0),
            repeat_interval=30,
        )
    )
    engine.set_trigger_state(TriggerKey("nightly", "billing"), TriggerState.PAUSED)
    engine.set_trigger_state(TriggerKey("digest", "reports"), TriggerState.COMPLETE)
    return engine


@pytest.fixture
def config():
    """Create a default config without loading from disk."""
    return SchedViewConfig()


@pytest.fixture
def engine():
    """A started engine with two job groups."""
    engine = populate(InMemoryEngine(name="billing-scheduler", clock=lambda: NOW))
    engine.start()
    return engine


@pytest.fixture
def empty_engine():
    return InMemoryEngine(name="empty", clock=lambda: NOW)


@pytest.fixture
def builder(engine):
    return SnapshotBuilder(engine)


@pytest.fixture
def sequential_builder(engine):
    return SnapshotBuilder(engine, config=SnapshotConfig(max_concurrency=1))

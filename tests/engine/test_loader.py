"""Tests for schedview/engine/loader.py"""

import json
from datetime import datetime, timedelta, timezone

import pytest

from schedview.core.errors import EngineStateError
from schedview.engine.base import JobKey, TriggerKey, TriggerState
from schedview.engine.loader import build_engine, load_engine
from schedview.engine.triggers import (
    CronTriggerDefinition,
    DailyTimeIntervalTriggerDefinition,
    SimpleTriggerDefinition,
)

STATE_TOML = """
[scheduler]
name = "billing"
instance_id = "node-1"
started = true
jobs_executed = 12

[[jobs]]
name = "invoice"
group = "billing"
type = "billing.jobs.InvoiceJob"
description = "Generate invoices"
durable = true
data = { retries = "3" }

[[jobs.triggers]]
name = "nightly"
kind = "cron"
expression = "0 2 * * *"
start = 2024-01-01T00:00:00Z
state = "paused"

[[jobs.triggers]]
name = "retry"
kind = "simple"
interval_seconds = 3600
start = 2024-01-01T00:00:00Z

[[jobs]]
name = "digest"
group = "reports"
type = "reports.Digest"

[[jobs.triggers]]
name = "office-hours"
kind = "daily"
start = 2024-01-01T00:00:00Z
start_time_of_day = 09:00:00
end_time_of_day = 17:00:00
interval = 15
unit = "minute"
days_of_week = [0, 1, 2, 3, 4]
"""


@pytest.mark.asyncio
class TestLoadEngine:
    async def test_toml_state(self, tmp_path):
        path = tmp_path / "state.toml"
        path.write_text(STATE_TOML)

        engine = load_engine(path)

        assert engine.name == "billing"
        assert engine.instance_id == "node-1"
        assert engine.is_started is True
        assert (await engine.get_metadata()).jobs_executed == 12
        assert await engine.get_job_group_names() == ["billing", "reports"]

        definition = await engine.get_job_definition(JobKey("invoice", "billing"))
        assert definition.job_data == {"retries": "3"}
        assert definition.durable is True

        nightly = await engine.get_trigger(TriggerKey("nightly", "billing"))
        assert isinstance(nightly, CronTriggerDefinition)
        assert await engine.get_trigger_state(nightly.key) == TriggerState.PAUSED

        retry = await engine.get_trigger(TriggerKey("retry", "billing"))
        assert isinstance(retry, SimpleTriggerDefinition)
        assert retry.repeat_interval == timedelta(hours=1)
        assert retry.next_fire_time is not None

        office = await engine.get_trigger(TriggerKey("office-hours", "reports"))
        assert isinstance(office, DailyTimeIntervalTriggerDefinition)
        assert office.days_of_week == frozenset({0, 1, 2, 3, 4})

    async def test_json_state_with_naive_dates(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text(json.dumps({
            "jobs": [{
                "name": "cleanup",
                "type": "ops.Cleanup",
                "triggers": [{
                    "name": "once",
                    "start": "2030-01-01T00:00:00",
                    "repeat_count": 0,
                }],
            }],
        }))

        engine = load_engine(path)
        trigger = await engine.get_trigger(TriggerKey("once", "DEFAULT"))

        assert trigger.start_time == datetime(2030, 1, 1, tzinfo=timezone.utc)
        assert trigger.next_fire_time == trigger.start_time

    async def test_shutdown_flag(self):
        engine = build_engine({"scheduler": {"started": True, "shutdown": True}})
        assert engine.is_shutdown is True


class TestLoadErrors:
    def test_missing_file(self, tmp_path):
        with pytest.raises(EngineStateError, match="not found"):
            load_engine(tmp_path / "nope.toml")

    def test_malformed_toml(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text("[scheduler\nname =")
        with pytest.raises(EngineStateError, match="Failed to read"):
            load_engine(path)

    def test_schema_violation(self):
        with pytest.raises(EngineStateError, match="Invalid engine state"):
            build_engine({"jobs": [{"name": "no-type"}]})

    def test_cron_without_expression(self):
        state = {
            "jobs": [{
                "name": "j",
                "type": "x.J",
                "triggers": [{"name": "t", "kind": "cron", "start": "2024-01-01T00:00:00Z"}],
            }],
        }
        with pytest.raises(EngineStateError, match="need an expression"):
            build_engine(state)

    def test_duplicate_trigger(self):
        trigger = {"name": "t", "start": "2024-01-01T00:00:00Z"}
        state = {"jobs": [{"name": "j", "type": "x.J", "triggers": [trigger, trigger]}]}
        with pytest.raises(EngineStateError, match="already exists"):
            build_engine(state)

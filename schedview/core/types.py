"""
schedview snapshot types: the read model handed to consumers.

All types are frozen dataclasses. Sequences are tuples and mappings are
read-only proxies, so nothing can change after the builder returns.
Every type can render itself as a JSON-ready dict via to_dict().
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Enums
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class SchedulerStatus(str, Enum):
    """Coarse display status of the scheduler as a whole."""

    SHUTDOWN = "shutdown"
    EMPTY = "empty"  # no job groups exist
    STARTED = "started"
    READY = "ready"  # initialized but not started


class ActivityStatus(str, Enum):
    """Coarse display status of a trigger."""

    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETE = "complete"


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _frozen_map(data: Mapping[str, Any] | None) -> Mapping[str, Any]:
    return MappingProxyType(dict(data or {}))


def _plain(value: Any) -> Any:
    """JSON-friendly form of a job-data value; only unknown objects become str."""
    if isinstance(value, Enum):
        return _plain(value.value)
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Mapping):
        return {str(k): _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_plain(v) for v in value]
    return str(value)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Snapshot Entities
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


@dataclass(frozen=True, slots=True)
class Trigger:
    """One trigger as it stood when it was read."""

    name: str
    group: str
    status: ActivityStatus
    start_date: datetime
    trigger_type: str
    end_date: datetime | None = None
    next_fire_date: datetime | None = None
    previous_fire_date: datetime | None = None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "group": self.group,
            "status": self.status.value,
            "start_date": _iso(self.start_date),
            "end_date": _iso(self.end_date),
            "next_fire_date": _iso(self.next_fire_date),
            "previous_fire_date": _iso(self.previous_fire_date),
            "trigger_type": self.trigger_type,
        }


@dataclass(frozen=True, slots=True)
class Job:
    """A job and the triggers attached to it."""

    name: str
    group: str
    triggers: tuple[Trigger, ...] = ()

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "group": self.group,
            "triggers": [t.to_dict() for t in self.triggers],
        }


@dataclass(frozen=True, slots=True)
class JobGroup:
    """A named group of jobs, in the order the engine listed them."""

    name: str
    jobs: tuple[Job, ...] = ()

    @property
    def job_count(self) -> int:
        return len(self.jobs)

    def to_dict(self) -> dict:
        return {"name": self.name, "jobs": [j.to_dict() for j in self.jobs]}


@dataclass(frozen=True, slots=True)
class TriggerGroup:
    """A trigger group. Names only, triggers are reached through their jobs."""

    name: str

    def to_dict(self) -> dict:
        return {"name": self.name}


@dataclass(frozen=True, slots=True)
class JobDetail:
    """
    On-demand detail for one job.

    When the engine cannot produce the job definition, job_data_map and
    job_properties each hold a single sentinel entry under "Data" and
    detail_available is False. `job` is populated either way.
    """

    job: Job
    job_data_map: Mapping[str, Any] = field(default_factory=dict)
    job_properties: Mapping[str, Any] = field(default_factory=dict)
    detail_available: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "job_data_map", _frozen_map(self.job_data_map))
        object.__setattr__(self, "job_properties", _frozen_map(self.job_properties))

    def to_dict(self) -> dict:
        return {
            "job": self.job.to_dict(),
            "job_data_map": {k: _plain(v) for k, v in self.job_data_map.items()},
            "job_properties": {k: _plain(v) for k, v in self.job_properties.items()},
            "detail_available": self.detail_available,
        }


@dataclass(frozen=True, slots=True)
class SchedulerSnapshot:
    """
    Point-in-time view of the whole scheduler.

    jobs_total comes from its own all-job-keys query, so it can briefly
    disagree with the sum of job counts across job_groups if the engine
    changed in between.
    """

    name: str
    instance_id: str
    status: SchedulerStatus
    is_remote: bool
    jobs_executed: int
    jobs_total: int
    scheduler_type: str
    running_since: datetime | None = None
    job_groups: tuple[JobGroup, ...] = ()
    trigger_groups: tuple[TriggerGroup, ...] = ()

    def find_job(self, name: str, group: str) -> Job | None:
        for job_group in self.job_groups:
            if job_group.name != group:
                continue
            for job in job_group.jobs:
                if job.name == name:
                    return job
        return None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "instance_id": self.instance_id,
            "status": self.status.value,
            "is_remote": self.is_remote,
            "jobs_executed": self.jobs_executed,
            "jobs_total": self.jobs_total,
            "running_since": _iso(self.running_since),
            "scheduler_type": self.scheduler_type,
            "job_groups": [g.to_dict() for g in self.job_groups],
            "trigger_groups": [g.to_dict() for g in self.trigger_groups],
        }

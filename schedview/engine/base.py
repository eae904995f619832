"""
Scheduling engine interface: the read-only query contract.

schedview never drives the engine. It only reads from it through the
methods below, any of which may suspend (a remote engine is a network
round-trip away) and any of which may fail.

Implementations:
    InMemoryEngine: dict-backed, for tests, demos and the CLI
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from schedview.engine.triggers import TriggerDefinition

DEFAULT_GROUP = "DEFAULT"


class TriggerState(str, Enum):
    """Raw trigger state as reported by the engine."""

    NONE = "none"
    NORMAL = "normal"
    PAUSED = "paused"
    COMPLETE = "complete"
    ERROR = "error"
    BLOCKED = "blocked"


@dataclass(frozen=True, slots=True)
class JobKey:
    name: str
    group: str = DEFAULT_GROUP

    def __str__(self) -> str:
        return f"{self.group}.{self.name}"


@dataclass(frozen=True, slots=True)
class TriggerKey:
    name: str
    group: str = DEFAULT_GROUP

    def __str__(self) -> str:
        return f"{self.group}.{self.name}"


@dataclass(frozen=True, slots=True)
class EngineMetadata:
    """Engine-wide facts reported alongside the job data."""

    is_remote: bool = False
    jobs_executed: int = 0
    running_since: datetime | None = None
    scheduler_type: str = ""


@dataclass(frozen=True)
class JobDefinition:
    """
    A job as the engine stores it.

    job_type is the dotted path of the job implementation class,
    e.g. "billing.jobs.InvoiceJob".
    """

    key: JobKey
    job_type: str
    description: str | None = None
    job_data: dict[str, Any] = field(default_factory=dict)
    durable: bool = False
    concurrent_execution_disallowed: bool = False
    persist_job_data_after_execution: bool = False
    requests_recovery: bool = False

    @property
    def job_type_name(self) -> str:
        """Short class name of the job type."""
        return self.job_type.rsplit(".", 1)[-1]


class SchedulingEngine(ABC):
    """
    Abstract base class for a queryable scheduling engine.

    Keys come back in the engine's own order and schedview preserves it.
    Lookups for things that do not exist return None (or an empty list),
    they do not raise.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @property
    @abstractmethod
    def instance_id(self) -> str:
        ...

    @property
    @abstractmethod
    def is_shutdown(self) -> bool:
        ...

    @property
    @abstractmethod
    def is_started(self) -> bool:
        ...

    @abstractmethod
    async def get_metadata(self) -> EngineMetadata:
        ...

    @abstractmethod
    async def get_job_keys(self, group: str | None = None) -> list[JobKey]:
        """Job keys in one group, or in every group when group is None."""
        ...

    @abstractmethod
    async def get_job_group_names(self) -> list[str]:
        ...

    @abstractmethod
    async def get_trigger_group_names(self) -> list[str]:
        ...

    @abstractmethod
    async def get_job_definition(self, key: JobKey) -> JobDefinition | None:
        """
        Full job definition, or None if no such job.

        Raises:
            JobTypeUnavailableError: the job's implementation type cannot
                be resolved by this engine deployment.
        """
        ...

    @abstractmethod
    async def get_triggers_of_job(self, key: JobKey) -> list[TriggerDefinition]:
        ...

    @abstractmethod
    async def get_trigger(self, key: TriggerKey) -> TriggerDefinition | None:
        ...

    @abstractmethod
    async def get_trigger_state(self, key: TriggerKey) -> TriggerState:
        ...

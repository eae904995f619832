"""
Entity fetchers: one engine query each, outcome normalized to a FetchResult.

A fetcher never raises (cancellation aside). It reports one of:
    FOUND               value present
    NOT_FOUND           entity does not exist; not an error
    DETAIL_UNAVAILABLE  engine cannot materialize the job type
    FAILED              anything else the engine raised

Callers decide per operation whether to isolate a failure or to
propagate it with unwrap().
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Generic, TypeVar

from schedview.core.errors import JobTypeUnavailableError
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

T = TypeVar("T")


class FetchOutcome(str, Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    DETAIL_UNAVAILABLE = "detail_unavailable"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class FetchResult(Generic[T]):
    """Tagged outcome of one engine query."""

    outcome: FetchOutcome
    value: T | None = None
    error: BaseException | None = None

    @staticmethod
    def found(value: T) -> FetchResult[T]:
        return FetchResult(FetchOutcome.FOUND, value=value)

    @staticmethod
    def not_found() -> FetchResult[Any]:
        return FetchResult(FetchOutcome.NOT_FOUND)

    @staticmethod
    def unavailable(error: BaseException) -> FetchResult[Any]:
        return FetchResult(FetchOutcome.DETAIL_UNAVAILABLE, error=error)

    @staticmethod
    def failed(error: BaseException) -> FetchResult[Any]:
        return FetchResult(FetchOutcome.FAILED, error=error)

    @property
    def ok(self) -> bool:
        return self.outcome == FetchOutcome.FOUND

    def unwrap(self) -> T | None:
        """Value for FOUND, None for NOT_FOUND, re-raise the error otherwise."""
        if self.error is not None:
            raise self.error
        return self.value


async def _run(operation: str, query: Awaitable[T | None]) -> FetchResult[T]:
    try:
        value = await query
    except JobTypeUnavailableError as e:
        logger.debug(f"{operation}: detail unavailable ({e})")
        return FetchResult.unavailable(e)
    except Exception as e:
        logger.debug(f"{operation} failed: {e!r}")
        return FetchResult.failed(e)
    if value is None:
        return FetchResult.not_found()
    return FetchResult.found(value)


# ── Engine-wide ──────────────────────────────────────────────────────────────


async def fetch_metadata(engine: SchedulingEngine) -> FetchResult[EngineMetadata]:
    return await _run("get_metadata", engine.get_metadata())


async def fetch_job_keys(
    engine: SchedulingEngine, group: str | None = None
) -> FetchResult[list[JobKey]]:
    """Job keys in `group`, or across all groups when group is None."""
    return await _run(f"get_job_keys({group})", engine.get_job_keys(group))


async def fetch_job_group_names(engine: SchedulingEngine) -> FetchResult[list[str]]:
    return await _run("get_job_group_names", engine.get_job_group_names())


async def fetch_trigger_group_names(engine: SchedulingEngine) -> FetchResult[list[str]]:
    return await _run("get_trigger_group_names", engine.get_trigger_group_names())


# ── Per-entity ───────────────────────────────────────────────────────────────


async def fetch_job_definition(
    engine: SchedulingEngine, key: JobKey
) -> FetchResult[JobDefinition]:
    return await _run(f"get_job_definition({key})", engine.get_job_definition(key))


async def fetch_triggers_of_job(
    engine: SchedulingEngine, key: JobKey
) -> FetchResult[list[TriggerDefinition]]:
    return await _run(f"get_triggers_of_job({key})", engine.get_triggers_of_job(key))


async def fetch_trigger(
    engine: SchedulingEngine, key: TriggerKey
) -> FetchResult[TriggerDefinition]:
    return await _run(f"get_trigger({key})", engine.get_trigger(key))


async def fetch_trigger_state(
    engine: SchedulingEngine, key: TriggerKey
) -> FetchResult[TriggerState]:
    return await _run(f"get_trigger_state({key})", engine.get_trigger_state(key))

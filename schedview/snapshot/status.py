"""
Status resolution: raw engine state to display status.

Pure functions. The trigger projection is deliberately lossy: every state
that is not paused or complete shows as active.
"""

from __future__ import annotations

from typing import Sequence

from schedview.core.types import ActivityStatus, SchedulerStatus
from schedview.engine.base import TriggerState


def resolve_scheduler_status(
    is_shutdown: bool,
    job_group_names: Sequence[str] | None,
    is_started: bool,
) -> SchedulerStatus:
    """Shutdown wins over emptiness, emptiness over the started flag."""
    if is_shutdown:
        return SchedulerStatus.SHUTDOWN
    if not job_group_names:
        return SchedulerStatus.EMPTY
    if is_started:
        return SchedulerStatus.STARTED
    return SchedulerStatus.READY


def resolve_trigger_status(state: TriggerState | str | None) -> ActivityStatus:
    if state == TriggerState.PAUSED:
        return ActivityStatus.PAUSED
    if state == TriggerState.COMPLETE:
        return ActivityStatus.COMPLETE
    return ActivityStatus.ACTIVE

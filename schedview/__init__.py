"""
schedview, read-only, point-in-time snapshots of a job scheduler.

Public API:
    from schedview import SnapshotBuilder, InMemoryEngine, SchedulerSnapshot
"""

__version__ = "0.1.0"

# Core
from schedview.core.config import SchedViewConfig, SnapshotConfig
from schedview.core.errors import (
    ConfigError,
    EngineError,
    EngineStateError,
    JobTypeUnavailableError,
    SchedViewError,
)
from schedview.core.types import (
    ActivityStatus,
    Job,
    JobDetail,
    JobGroup,
    SchedulerSnapshot,
    SchedulerStatus,
    Trigger,
    TriggerGroup,
)

# Engine
from schedview.engine.base import JobDefinition, JobKey, SchedulingEngine, TriggerKey, TriggerState
from schedview.engine.memory import InMemoryEngine

# Snapshot
from schedview.snapshot.builder import SnapshotBuilder
from schedview.snapshot.classifier import DEFAULT_CLASSIFIER, TriggerTypeClassifier

__all__ = [
    # Core
    "SchedViewConfig",
    "SnapshotConfig",
    "SchedViewError",
    "ConfigError",
    "EngineError",
    "EngineStateError",
    "JobTypeUnavailableError",
    "SchedulerSnapshot",
    "SchedulerStatus",
    "ActivityStatus",
    "JobGroup",
    "Job",
    "JobDetail",
    "Trigger",
    "TriggerGroup",
    # Engine
    "SchedulingEngine",
    "InMemoryEngine",
    "JobDefinition",
    "JobKey",
    "TriggerKey",
    "TriggerState",
    # Snapshot
    "SnapshotBuilder",
    "TriggerTypeClassifier",
    "DEFAULT_CLASSIFIER",
]

"""
Trigger type classification: trigger variant to display tag.

Lookup walks the trigger's MRO, so a subclass of a known variant inherits
its tag. Anything unknown falls back to its class name; classify() never
raises.

Usage:
    classify(trigger)                          # "cron", "simple", ...

    custom = DEFAULT_CLASSIFIER.with_variant(HolidayTrigger, "holiday")
    builder = SnapshotBuilder(engine, classifier=custom)
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Mapping

from schedview.engine.triggers import (
    CalendarIntervalTriggerDefinition,
    CronTriggerDefinition,
    DailyTimeIntervalTriggerDefinition,
    SimpleTriggerDefinition,
)


class TriggerTypeClassifier:
    """Immutable mapping of trigger classes to tags."""

    def __init__(self, tags: Mapping[type, str] | None = None) -> None:
        self._tags: Mapping[type, str] = MappingProxyType(dict(tags or {}))

    @property
    def tags(self) -> Mapping[type, str]:
        return self._tags

    def with_variant(self, trigger_class: type, tag: str) -> TriggerTypeClassifier:
        """Return a new classifier that also knows `trigger_class`."""
        if not tag:
            raise ValueError("Trigger type tag must not be empty")
        return TriggerTypeClassifier({**self._tags, trigger_class: tag})

    def classify(self, trigger: Any) -> str:
        for cls in type(trigger).__mro__:
            tag = self._tags.get(cls)
            if tag:
                return tag
        return type(trigger).__name__


DEFAULT_CLASSIFIER = TriggerTypeClassifier(
    {
        SimpleTriggerDefinition: "simple",
        CronTriggerDefinition: "cron",
        CalendarIntervalTriggerDefinition: "calendar_interval",
        DailyTimeIntervalTriggerDefinition: "daily_time_interval",
    }
)


def classify(trigger: Any) -> str:
    """Classify with the default variant table."""
    return DEFAULT_CLASSIFIER.classify(trigger)

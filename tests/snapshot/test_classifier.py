"""Tests for schedview/snapshot/classifier.py"""

from dataclasses import dataclass
from datetime import datetime, timezone

import pytest

from schedview.engine.base import JobKey, TriggerKey
from schedview.engine.triggers import (
    CalendarIntervalTriggerDefinition,
    CronTriggerDefinition,
    DailyTimeIntervalTriggerDefinition,
    SimpleTriggerDefinition,
    TriggerDefinition,
)
from schedview.snapshot.classifier import DEFAULT_CLASSIFIER, TriggerTypeClassifier, classify

START = datetime(2024, 1, 1, tzinfo=timezone.utc)
COMMON = {"key": TriggerKey("t", "g"), "job_key": JobKey("j", "g"), "start_time": START}


@dataclass(frozen=True, kw_only=True)
class HolidayTrigger(TriggerDefinition):
    """A custom variant nobody registered."""

    def _next_after(self, after):
        return None


@dataclass(frozen=True, kw_only=True)
class BusinessHoursCron(CronTriggerDefinition):
    pass


@pytest.mark.parametrize(
    "trigger, tag",
    [
        (SimpleTriggerDefinition(**COMMON), "simple"),
        (CronTriggerDefinition(**COMMON, expression="0 9 * * *"), "cron"),
        (CalendarIntervalTriggerDefinition(**COMMON), "calendar_interval"),
        (DailyTimeIntervalTriggerDefinition(**COMMON), "daily_time_interval"),
    ],
)
def test_known_variants(trigger, tag):
    assert classify(trigger) == tag


def test_unknown_variant_falls_back_to_class_name():
    assert classify(HolidayTrigger(**COMMON)) == "HolidayTrigger"


def test_non_trigger_object_does_not_raise():
    assert classify(object()) == "object"


def test_subclass_inherits_base_tag():
    assert classify(BusinessHoursCron(**COMMON, expression="0 9 * * 1-5")) == "cron"


def test_with_variant_returns_new_classifier():
    custom = DEFAULT_CLASSIFIER.with_variant(HolidayTrigger, "holiday")

    assert custom.classify(HolidayTrigger(**COMMON)) == "holiday"
    # Default is untouched
    assert DEFAULT_CLASSIFIER.classify(HolidayTrigger(**COMMON)) == "HolidayTrigger"
    # Existing tags survive
    assert custom.classify(SimpleTriggerDefinition(**COMMON)) == "simple"


def test_more_specific_registration_wins():
    custom = DEFAULT_CLASSIFIER.with_variant(BusinessHoursCron, "business_hours")
    assert custom.classify(BusinessHoursCron(**COMMON, expression="0 9 * * 1-5")) == "business_hours"
    assert custom.classify(CronTriggerDefinition(**COMMON, expression="0 9 * * *")) == "cron"


def test_empty_tag_rejected():
    with pytest.raises(ValueError):
        DEFAULT_CLASSIFIER.with_variant(HolidayTrigger, "")


def test_tags_are_read_only():
    with pytest.raises(TypeError):
        DEFAULT_CLASSIFIER.tags[HolidayTrigger] = "holiday"


def test_empty_classifier_uses_class_names():
    assert TriggerTypeClassifier().classify(SimpleTriggerDefinition(**COMMON)) == "SimpleTriggerDefinition"

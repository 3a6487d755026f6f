"""Insight detection and lifecycle engine."""

from .engine import InsightEngine, RuleReport
from .events import EventType, RecordPayload, TriggerEvent
from .models import Insight, InsightKind
from .retention import RetentionSweeper, SweepReport

__all__ = [
    "EventType",
    "Insight",
    "InsightEngine",
    "InsightKind",
    "RecordPayload",
    "RetentionSweeper",
    "RuleReport",
    "SweepReport",
    "TriggerEvent",
]

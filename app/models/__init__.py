from .daily_metric import DailyMetric
from .procrastination_event import ProcrastinationEvent, EventKind

__all__ = [
    "DailyMetric",
    "ProcrastinationEvent",
    "EventKind",
]

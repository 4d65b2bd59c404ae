from __future__ import annotations
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .models import DispatchReport


class EventHubError(Exception):
    """Base class for errors raised by the hub's own operations."""


class InvalidTopic(EventHubError, ValueError):
    def __init__(self, topic: Any, reason: str = "topic must be a non-empty string or an Enum member") -> None:
        super().__init__(f"Invalid topic {topic!r}: {reason}")
        self.topic = topic


class InvalidObserver(EventHubError, TypeError):
    def __init__(self, observer: Any) -> None:
        super().__init__(f"Observer must be callable, got {type(observer).__name__}")
        self.observer = observer


class DispatchError(EventHubError):
    """
    Raised by publish() only when the hub runs with raise_errors=True.

    Every observer in the snapshot has already been invoked by the time this
    is raised; the full report is attached.
    """

    def __init__(self, report: "DispatchReport") -> None:
        n = len(report.failures)
        first = report.failures[0].error if report.failures else None
        super().__init__(
            f"{n} observer(s) failed for topic {report.topic!r}"
            + (f" (first: {type(first).__name__}: {first})" if first is not None else "")
        )
        self.report = report

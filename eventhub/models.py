from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Union


# A topic is either a plain name or an Enum member ("symbol")
Topic = Union[str, Enum]

# observer(topic, payload); return value is ignored by the hub
Observer = Callable[[Topic, Any], Any]


@dataclass(frozen=True)
class SubscriptionHandle:
    id: int
    topic: Topic


@dataclass
class Subscription:
    handle: SubscriptionHandle
    observer: Observer


@dataclass(frozen=True)
class ObserverFailure:
    handle: SubscriptionHandle
    observer: Observer
    error: Exception


@dataclass
class DispatchReport:
    topic: Topic
    notified: int = 0                   # observers invoked (failed ones included)
    failures: List[ObserverFailure] = field(default_factory=list)

    @property
    def delivered(self) -> int:
        return self.notified - len(self.failures)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def failed_observers(self) -> List[Observer]:
        return [f.observer for f in self.failures]

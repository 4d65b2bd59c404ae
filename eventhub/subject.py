from __future__ import annotations
from typing import Any, Optional

from .hub import EventHub
from .models import DispatchReport, Observer, SubscriptionHandle, Topic


class Subject:
    """
    Domain-object base that owns (or is handed) its own EventHub.

    Subclasses call notify() when their state changes; observers attach
    without the subject knowing anything about them beyond a handle.
    """

    def __init__(self, hub: Optional[EventHub] = None) -> None:
        self._hub = hub if hub is not None else EventHub()

    @property
    def hub(self) -> EventHub:
        return self._hub

    def attach(self, topic: Topic, observer: Observer) -> SubscriptionHandle:
        return self._hub.subscribe(topic, observer)

    def detach(self, handle: SubscriptionHandle) -> bool:
        return self._hub.unsubscribe(handle)

    def detach_all(self, topic: Optional[Topic] = None) -> int:
        return self._hub.clear(topic)

    def notify(self, topic: Topic, payload: Any = None) -> DispatchReport:
        return self._hub.publish(topic, payload)

from __future__ import annotations
from typing import Any, Callable, Generic, Optional, Type, TypeVar

from .hub import EventHub, check_topic, topic_key
from .models import DispatchReport, SubscriptionHandle, Topic

T = TypeVar("T")


class Channel(Generic[T]):
    """
    Typed view of a single topic on a hub.

    Publishers and subscribers that share a Channel agree on the payload
    type; the hub itself still sees an opaque payload. Subscribers receive
    the payload only (the topic is fixed).
    """

    def __init__(self, hub: EventHub, topic: Topic, payload_type: Optional[Type[T]] = None) -> None:
        self.hub = hub
        self.topic = check_topic(topic)
        self.payload_type = payload_type

    def subscribe(self, fn: Callable[[T], Any]) -> SubscriptionHandle:
        if not callable(fn):
            # let the hub raise its own InvalidObserver
            return self.hub.subscribe(self.topic, fn)

        def _deliver(_topic: Topic, payload: Any) -> Any:
            return fn(payload)

        _deliver.__qualname__ = f"Channel({self.topic!r}).{getattr(fn, '__qualname__', repr(fn))}"
        return self.hub.subscribe(self.topic, _deliver)

    def unsubscribe(self, handle: SubscriptionHandle) -> bool:
        # only this channel's topic; other topics' handles are unknown here
        if topic_key(getattr(handle, "topic", None)) != topic_key(self.topic):
            return False
        return self.hub.unsubscribe(handle)

    def publish(self, payload: T) -> DispatchReport:
        if self.payload_type is not None and not isinstance(payload, self.payload_type):
            raise TypeError(
                f"Channel {self.topic!r} expects {self.payload_type.__name__}, "
                f"got {type(payload).__name__}"
            )
        return self.hub.publish(self.topic, payload)

    def subscriber_count(self) -> int:
        return self.hub.subscriber_count(self.topic)

    def __repr__(self) -> str:
        kind = self.payload_type.__name__ if self.payload_type is not None else "Any"
        return f"Channel({self.topic!r}, {kind})"

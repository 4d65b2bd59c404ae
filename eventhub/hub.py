# In-process pub/sub hub: topic -> ordered observers, synchronous isolated dispatch.
from __future__ import annotations
import itertools
import logging
import threading
from enum import Enum
from typing import Any, Dict, List, Optional, TYPE_CHECKING

import config
from .errors import DispatchError, InvalidObserver, InvalidTopic
from .models import (
    DispatchReport,
    Observer,
    ObserverFailure,
    Subscription,
    SubscriptionHandle,
    Topic,
)

if TYPE_CHECKING:
    from .monitor import DispatchMonitor

logger = logging.getLogger(__name__)

# Process-wide so a handle from one hub never matches a subscription in another
_handle_ids = itertools.count(1)


def check_topic(topic: Any) -> Topic:
    """Return topic unchanged if well-formed, else raise InvalidTopic."""
    if isinstance(topic, Enum):
        return topic
    if not isinstance(topic, str):
        raise InvalidTopic(topic)
    if not topic.strip():
        raise InvalidTopic(topic, "topic must not be empty or blank")
    return topic


def topic_key(topic: Topic) -> Any:
    """
    Registry key for a topic. Enum members are keyed by their class too, so
    a str-mixin member never aliases the plain string equal to its value.
    """
    if isinstance(topic, Enum):
        return (type(topic), topic.name)
    return topic


class EventHub:
    """
    Registry of observers keyed by topic, with synchronous fan-out.

    Dispatch rules:
      - publish() snapshots the topic's subscriber list under the lock and
        invokes observers outside it, in subscription order.
      - Observers subscribed during a dispatch are not called in that same
        publish; observers unsubscribed during a dispatch ARE still called
        if they were in the snapshot.
      - A failing observer is recorded in the DispatchReport and never stops
        delivery to the rest. With raise_errors=True a DispatchError is
        raised only after the whole snapshot has been notified.

    The hub keeps strong references to observers; removal is explicit
    (unsubscribe / clear).
    """

    def __init__(
        self,
        raise_errors: Optional[bool] = None,
        prune_empty: Optional[bool] = None,
        log_failures: Optional[bool] = None,
        monitor: Optional["DispatchMonitor"] = None,
    ) -> None:
        self.raise_errors = config.RAISE_OBSERVER_ERRORS if raise_errors is None else raise_errors
        self.prune_empty = config.PRUNE_EMPTY_TOPICS if prune_empty is None else prune_empty
        self.log_failures = config.LOG_OBSERVER_FAILURES if log_failures is None else log_failures
        self.monitor = monitor

        self._subs: Dict[Any, List[Subscription]] = {}  # topic_key -> subscriptions
        self._lock = threading.RLock()

    # -------------------------------------------------------------- subscribe --

    def subscribe(self, topic: Topic, observer: Observer) -> SubscriptionHandle:
        check_topic(topic)
        if not callable(observer):
            raise InvalidObserver(observer)

        with self._lock:
            handle = SubscriptionHandle(id=next(_handle_ids), topic=topic)
            self._subs.setdefault(topic_key(topic), []).append(Subscription(handle, observer))

        logger.debug("subscribe %r -> handle %d (%r)", topic, handle.id, observer)
        return handle

    def unsubscribe(self, handle: SubscriptionHandle) -> bool:
        """Remove exactly one subscription. Unknown or stale handles are a no-op."""
        key = self._handle_key(handle)
        if key is None:
            return False

        with self._lock:
            subs = self._subs.get(key)
            if not subs:
                return False
            for i, sub in enumerate(subs):
                if sub.handle == handle:
                    del subs[i]
                    break
            else:
                return False
            if not subs and self.prune_empty:
                del self._subs[key]

        logger.debug("unsubscribe %r handle %d", handle.topic, handle.id)
        return True

    def clear(self, topic: Optional[Topic] = None) -> int:
        """Drop every subscription for topic (or for all topics). Returns how many went."""
        with self._lock:
            if topic is None:
                removed = sum(len(v) for v in self._subs.values())
                self._subs.clear()
            else:
                check_topic(topic)
                subs = self._subs.get(topic_key(topic))
                if subs is None:
                    return 0
                removed = len(subs)
                if self.prune_empty:
                    del self._subs[topic_key(topic)]
                else:
                    subs.clear()

        logger.debug("clear %r: %d subscription(s) removed", "*" if topic is None else topic, removed)
        return removed

    # ---------------------------------------------------------------- publish --

    def publish(self, topic: Topic, payload: Any = None) -> DispatchReport:
        check_topic(topic)

        with self._lock:
            snapshot = list(self._subs.get(topic_key(topic), ()))

        report = DispatchReport(topic=topic)
        for sub in snapshot:
            report.notified += 1
            try:
                sub.observer(topic, payload)
            except Exception as exc:
                report.failures.append(ObserverFailure(sub.handle, sub.observer, exc))
                if self.log_failures:
                    logger.exception(
                        "Observer %r (handle %d) failed for topic %r",
                        sub.observer, sub.handle.id, topic,
                    )

        if self.monitor is not None:
            self.monitor.record(report)

        if report.failures and self.raise_errors:
            raise DispatchError(report)
        return report

    # ------------------------------------------------------------ diagnostics --

    def subscriber_count(self, topic: Optional[Topic] = None) -> int:
        with self._lock:
            if topic is None:
                return sum(len(v) for v in self._subs.values())
            check_topic(topic)
            return len(self._subs.get(topic_key(topic), ()))

    def topics(self) -> List[Topic]:
        """Topics with at least one subscriber, in first-subscription order."""
        with self._lock:
            return [subs[0].handle.topic for subs in self._subs.values() if subs]

    def is_subscribed(self, handle: SubscriptionHandle) -> bool:
        key = self._handle_key(handle)
        if key is None:
            return False
        with self._lock:
            return any(s.handle == handle for s in self._subs.get(key, ()))

    def stats(self) -> Dict[Topic, int]:
        with self._lock:
            return {subs[0].handle.topic: len(subs) for subs in self._subs.values() if subs}

    def __len__(self) -> int:
        return self.subscriber_count()

    def __contains__(self, topic: object) -> bool:
        try:
            check_topic(topic)
        except InvalidTopic:
            return False
        with self._lock:
            return bool(self._subs.get(topic_key(topic)))

    @staticmethod
    def _handle_key(handle: Any) -> Any:
        # Hand-built handles may carry any topic; those can never match
        if not isinstance(handle, SubscriptionHandle):
            return None
        try:
            return topic_key(check_topic(handle.topic))
        except InvalidTopic:
            return None

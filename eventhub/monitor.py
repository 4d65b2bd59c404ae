from __future__ import annotations
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional
import csv
import logging
import os
import threading
import time

import config
from .models import DispatchReport

logger = logging.getLogger(__name__)

# Default for log_path: read config.DISPATCH_LOG_PATH when the monitor is built.
# None still means "no journal".
CONFIG_LOG_PATH = object()


def topic_name(topic) -> str:
    """Readable name for str or Enum topics (journal + stats keys)."""
    if isinstance(topic, Enum):
        return f"{type(topic).__name__}.{topic.name}"
    return str(topic)


@dataclass
class DispatchStats:
    """Aggregated statistics over every publish seen by a monitor."""
    publish_count: int = 0
    notified_total: int = 0
    failure_count: int = 0
    empty_publishes: int = 0
    per_topic: Counter = field(default_factory=Counter)

    def record(self, report: DispatchReport) -> None:
        self.publish_count += 1
        self.notified_total += report.notified
        self.failure_count += len(report.failures)
        if report.notified == 0:
            self.empty_publishes += 1
        self.per_topic[topic_name(report.topic)] += 1

    @property
    def failure_rate(self) -> float:
        return self.failure_count / self.notified_total if self.notified_total else 0.0


class DispatchMonitor:
    """
    Collects DispatchStats and, optionally, journals every publish to CSV.

    One row per publish call:
      time_s, seq, topic, notified, delivered, failed, errors
    """

    def __init__(self, log_path: Optional[str] = CONFIG_LOG_PATH) -> None:
        if log_path is CONFIG_LOG_PATH:
            log_path = config.DISPATCH_LOG_PATH
        self.stats = DispatchStats()
        self.log_path = log_path
        self.log_file = None
        self.log_writer = None
        self._t0 = time.monotonic()
        self._lock = threading.Lock()

        if self.log_path is not None:
            log_dir = os.path.dirname(self.log_path)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)

            self.log_file = open(self.log_path, "w", newline="", encoding="utf-8")
            self.log_writer = csv.writer(self.log_file)
            self.log_writer.writerow(config.JOURNAL_FIELDS)
            logger.debug("dispatch journal opened at %s", self.log_path)

    def record(self, report: DispatchReport) -> None:
        # publish() calls this outside the hub lock
        with self._lock:
            self._record(report)

    def _record(self, report: DispatchReport) -> None:
        self.stats.record(report)

        if self.log_writer is not None:
            errors = config.JOURNAL_ERROR_SEP.join(
                f"{type(f.error).__name__}: {f.error}".replace(config.JOURNAL_ERROR_SEP, ",")
                for f in report.failures
            )
            self.log_writer.writerow([
                f"{time.monotonic() - self._t0:.6f}",
                self.stats.publish_count,
                topic_name(report.topic),
                report.notified,
                report.delivered,
                len(report.failures),
                errors,
            ])

    def summary(self) -> DispatchStats:
        return self.stats

    def close(self) -> None:
        """Flush and close the journal file (if any)."""
        with self._lock:
            if self.log_file is not None:
                self.log_file.close()
                self.log_file = None
                self.log_writer = None

    def __enter__(self) -> "DispatchMonitor":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

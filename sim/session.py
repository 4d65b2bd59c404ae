from __future__ import annotations
from typing import Dict, List, Optional
import logging

from eventhub.errors import DispatchError
from eventhub.hub import EventHub
from eventhub.models import DispatchReport, SubscriptionHandle
from eventhub.monitor import CONFIG_LOG_PATH, DispatchMonitor
from sim.scenarios import Inbox, Scenario

logger = logging.getLogger(__name__)


class Session:
    """Runs one scripted scenario against a fresh hub + monitor."""

    def __init__(
        self,
        scenario: Scenario,
        log_path: str | None = CONFIG_LOG_PATH,
        raise_errors: Optional[bool] = None,
        log_failures: Optional[bool] = None,
    ) -> None:
        self.scenario = scenario
        self.monitor = DispatchMonitor(log_path)
        self.hub = EventHub(
            raise_errors=raise_errors,
            log_failures=log_failures,
            monitor=self.monitor,
        )

        self.inbox: Inbox = []
        self.reports: List[DispatchReport] = []
        try:
            self.handles: Dict[str, SubscriptionHandle] = scenario.setup(self.hub, self.inbox)
        except BaseException:
            self.monitor.close()
            raise
        self.step_index = 0

    @property
    def done(self) -> bool:
        return self.step_index >= len(self.scenario.steps)

    def step(self) -> Optional[DispatchReport]:
        """Execute the next scripted step. Returns the report for publish steps."""
        if self.done:
            return None

        action, *args = self.scenario.steps[self.step_index]
        self.step_index += 1

        if action == "publish":
            topic, payload = args
            try:
                report = self.hub.publish(topic, payload)
            except DispatchError as exc:
                self.reports.append(exc.report)
                raise
            self.reports.append(report)
            return report

        if action == "unsubscribe":
            (name,) = args
            removed = self.hub.unsubscribe(self.handles[name])
            logger.info("%s: unsubscribe %s -> %s", self.scenario.name, name, removed)
            return None

        raise RuntimeError(f"Unknown step {action!r} in scenario {self.scenario.name!r}")

    def run(self) -> List[DispatchReport]:
        while not self.done:
            self.step()
        return self.reports

    def close(self) -> None:
        """Flush the dispatch journal."""
        self.monitor.close()

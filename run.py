import argparse
import logging
import sys

import config
from eventhub.errors import DispatchError
from eventhub.models import DispatchReport
from eventhub.monitor import topic_name
from sim.scenarios import SCENARIOS
from sim.session import Session


def load_scenario(key: str):
    fn = SCENARIOS.get(key)
    if fn is None:
        print(f"Unknown scenario {key!r}, falling back to {config.DEFAULT_SCENARIO!r}")
        fn = SCENARIOS[config.DEFAULT_SCENARIO]
    return fn()


def format_report(report: DispatchReport) -> str:
    line = (f"{topic_name(report.topic):12s} notified={report.notified} "
            f"delivered={report.delivered} failed={len(report.failures)}")
    for f in report.failures:
        name = getattr(f.observer, "__qualname__", repr(f.observer))
        line += f"\n    ! {name} (handle {f.handle.id}): {type(f.error).__name__}: {f.error}"
    return line


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Run a scripted pub/sub scenario.")
    parser.add_argument(
        "--scenario", "-s",
        help=f"scenario key ({'/'.join(SCENARIOS)})",
        default=config.DEFAULT_SCENARIO,
    )
    parser.add_argument(
        "--log",
        help="dispatch journal CSV path ('-' to disable)",
        default=config.DISPATCH_LOG_PATH,
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="raise DispatchError when any observer fails",
    )
    parser.add_argument("--verbose", "-v", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format=config.LOG_FORMAT,
    )
    scenario = load_scenario(args.scenario)
    log_path = None if args.log == "-" else args.log

    session = Session(
        scenario,
        log_path=log_path,
        raise_errors=args.strict,
        log_failures=args.verbose,  # tracebacks only when asked for
    )
    print(f"Scenario: {scenario.name} - {scenario.description}")

    status = 0
    try:
        while not session.done:
            report = session.step()
            if report is not None:
                print(format_report(report))
    except DispatchError as e:
        print(format_report(e.report))
        print(f"Aborted (--strict): {e}")
        status = 1
    finally:
        session.close()

    print()
    print("Deliveries:")
    for name, topic, payload in session.inbox:
        print(f"  {name:10s} <- {topic_name(topic)} {payload!r}")

    stats = session.monitor.summary()
    print()
    print(f"publishes={stats.publish_count} notified={stats.notified_total} "
          f"failures={stats.failure_count} empty={stats.empty_publishes}")
    if log_path:
        print(f"Dispatch journal written to: {log_path}")
    return status


if __name__ == "__main__":
    sys.exit(main())

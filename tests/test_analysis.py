import csv

import pytest

import analysis
import config
from eventhub.hub import EventHub
from eventhub.monitor import DispatchMonitor


def _write_journal(path):
    def bad(topic, payload):
        raise KeyError(payload)

    with DispatchMonitor(log_path=str(path)) as mon:
        hub = EventHub(monitor=mon, log_failures=False)
        hub.subscribe("login", lambda topic, payload: None)
        hub.subscribe("login", bad)
        hub.subscribe("tick", lambda topic, payload: None)

        hub.publish("login", "alice")
        hub.publish("login", "bob")
        hub.publish("tick", 1)
        hub.publish("nobody", None)


def test_load_and_metrics(tmp_path):
    path = tmp_path / "journal.csv"
    _write_journal(path)

    rows = analysis.load_log(str(path))
    assert [r.seq for r in rows] == [1, 2, 3, 4]
    assert rows[0].errors == ["KeyError: 'alice'"]

    basic = analysis.compute_basic_counts(rows)
    assert basic["publishes"] == 4
    assert basic["topics"] == 3
    assert basic["notified_total"] == 5
    assert basic["failed_total"] == 2
    assert basic["empty_publishes"] == 1

    fanout = analysis.compute_fanout(rows)
    assert fanout["login"]["publishes"] == 2
    assert fanout["login"]["avg_notified"] == pytest.approx(2.0)
    assert fanout["tick"]["max_notified"] == 1

    failures = analysis.compute_failures(rows)
    assert failures["failure_rate"] == pytest.approx(2 / 5)
    assert failures["publishes_with_failures"] == 2
    assert failures["error.KeyError"] == 2


def test_missing_column_is_reported(tmp_path):
    path = tmp_path / "broken.csv"
    with path.open("w", newline="", encoding="utf-8") as f:
        w = csv.writer(f)
        w.writerow(["time_s", "topic"])
        w.writerow(["0.1", "login"])

    with pytest.raises(RuntimeError, match="Missing expected column"):
        analysis.load_log(str(path))


def test_empty_journal_metrics(tmp_path):
    path = tmp_path / "empty.csv"
    with path.open("w", newline="", encoding="utf-8") as f:
        csv.writer(f).writerow(config.JOURNAL_FIELDS)

    rows = analysis.load_log(str(path))
    assert rows == []
    assert analysis.compute_failures(rows)["failure_rate"] == 0.0
    assert analysis.compute_fanout(rows) == {}


def test_main_writes_summary(tmp_path, capsys):
    path = tmp_path / "journal.csv"
    out_csv = tmp_path / "summary.csv"
    _write_journal(path)

    analysis.main([str(path), "--out-csv", str(out_csv)])
    out = capsys.readouterr().out

    assert "=== Basic Counts ===" in out
    assert "=== Topic login ===" in out
    with out_csv.open(newline="", encoding="utf-8") as f:
        summary = list(csv.DictReader(f))
    assert summary[0]["basic.publishes"] == "4"
    assert summary[0]["topic[login].failed"] == "2"

#!/usr/bin/env python3
"""
Dispatch journal analysis script.

Reads a dispatch_log.csv produced by DispatchMonitor and computes:

- Basic counts:
    * Number of publishes, observers notified, failures
    * Publishes that reached nobody

- Per-topic fan-out:
    * Publishes, average / max observers notified per topic

- Failure metrics:
    * Failure rate over all notifications
    * Publishes with at least one failure
    * Most frequent error types

Usage:
    python analysis.py logs/dispatch_log.csv
    python analysis.py logs/dispatch_log.csv --out-csv summary.csv
"""

import argparse
import csv
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from typing import Dict, List

import config


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------

@dataclass
class LogRow:
    time_s: float
    seq: int
    topic: str
    notified: int
    delivered: int
    failed: int
    errors: List[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# I/O
# ---------------------------------------------------------------------------

def load_log(path: str) -> List[LogRow]:
    """
    Load the dispatch journal CSV into a list of LogRow objects, in publish order.
    """
    rows: List[LogRow] = []
    with open(path, newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        for r in reader:
            try:
                errors = r["errors"] or ""
                rows.append(
                    LogRow(
                        time_s=float(r["time_s"]),
                        seq=int(r["seq"]),
                        topic=r["topic"],
                        notified=int(r["notified"]),
                        delivered=int(r["delivered"]),
                        failed=int(r["failed"]),
                        errors=[e.strip() for e in errors.split(config.JOURNAL_ERROR_SEP) if e.strip()],
                    )
                )
            except KeyError as e:
                raise RuntimeError(f"Missing expected column in CSV: {e}")
            except ValueError as e:
                raise RuntimeError(f"Malformed row {reader.line_num} in {path}: {e}")
    rows.sort(key=lambda x: x.seq)
    return rows


def error_type(entry: str) -> str:
    """'ValueError: bad payload' -> 'ValueError'"""
    return entry.split(":", 1)[0].strip()


# ---------------------------------------------------------------------------
# Metric computations
# ---------------------------------------------------------------------------

def compute_basic_counts(rows: List[LogRow]) -> Dict[str, float]:
    notified = sum(r.notified for r in rows)
    failed = sum(r.failed for r in rows)
    return {
        "publishes": len(rows),
        "topics": len({r.topic for r in rows}),
        "notified_total": notified,
        "delivered_total": sum(r.delivered for r in rows),
        "failed_total": failed,
        "empty_publishes": sum(1 for r in rows if r.notified == 0),
    }


def compute_fanout(rows: List[LogRow]) -> Dict[str, Dict[str, float]]:
    """
    Per-topic fan-out: how many observers each publish reached.
    """
    by_topic: Dict[str, List[LogRow]] = defaultdict(list)
    for r in rows:
        by_topic[r.topic].append(r)

    out: Dict[str, Dict[str, float]] = {}
    for topic, seq in by_topic.items():
        counts = [r.notified for r in seq]
        out[topic] = {
            "publishes": len(seq),
            "avg_notified": sum(counts) / len(counts),
            "max_notified": max(counts),
            "failed": sum(r.failed for r in seq),
        }
    return out


def compute_failures(rows: List[LogRow], top: int = 5) -> Dict[str, float]:
    notified = sum(r.notified for r in rows)
    failed = sum(r.failed for r in rows)

    types = Counter()
    for r in rows:
        for e in r.errors:
            types[error_type(e)] += 1

    metrics: Dict[str, float] = {
        "failure_rate": failed / notified if notified else 0.0,
        "publishes_with_failures": sum(1 for r in rows if r.failed),
        "clean_publish_ratio": (
            sum(1 for r in rows if not r.failed) / len(rows) if rows else 0.0
        ),
    }
    for name, n in types.most_common(top):
        metrics[f"error.{name}"] = n
    return metrics


# ---------------------------------------------------------------------------
# Main / reporting
# ---------------------------------------------------------------------------

def print_block(title: str, metrics: Dict[str, float]) -> None:
    print(title)
    for k in sorted(metrics.keys()):
        print(f"{k:25s}: {metrics[k]}")
    print()


def write_metrics_csv(path: str, blocks: Dict[str, Dict[str, float]]) -> None:
    """
    Flatten named metric blocks into a single-row CSV for easy comparison
    across runs.
    """
    flat: Dict[str, float] = {}
    for block_name, metrics in blocks.items():
        for k, v in metrics.items():
            flat[f"{block_name}.{k}"] = v

    fieldnames = sorted(flat.keys())
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()
        writer.writerow(flat)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Analyze a dispatch journal CSV.")
    parser.add_argument("csv_path", help="Path to dispatch_log.csv")
    parser.add_argument(
        "--out-csv",
        help="Optional path to write a single-row CSV summary of all metrics.",
        default=None,
    )
    args = parser.parse_args(argv)

    rows = load_log(args.csv_path)

    basic = compute_basic_counts(rows)
    fanout = compute_fanout(rows)
    failures = compute_failures(rows)

    print_block("=== Basic Counts ===", basic)
    for topic in sorted(fanout):
        print_block(f"=== Topic {topic} ===", fanout[topic])
    print_block("=== Failure Metrics ===", failures)

    if args.out_csv:
        all_blocks = {"basic": basic, "failures": failures}
        for topic, metrics in fanout.items():
            all_blocks[f"topic[{topic}]"] = metrics
        write_metrics_csv(args.out_csv, all_blocks)
        print(f"Metric summary written to: {args.out_csv}")


if __name__ == "__main__":
    main()

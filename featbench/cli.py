"""Command line entry point.

    featbench run benchmark.yaml [--no-descriptors] [--repeat N] [--manifest]
    featbench detectors
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from pathlib import Path
from threading import Lock
from typing import TextIO

from featbench.benchmark_config import build_dataset, build_detectors, load_benchmark_config
from featbench.core.errors import AppError
from featbench.core.events import (
    DatasetLoaded,
    DetectorFailed,
    DetectorRecomputed,
    DetectorUpToDate,
    EventBus,
)
from featbench.core.observability.logging_config import setup_logging
from featbench.core.observability.run_manifest import register_run
from featbench.core.version import get_version_string
from featbench.detectors import available_types
from featbench.storage import FramesStorage, HealthReport

log = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_DETECTOR_FAILED = 1
EXIT_ERROR = 2


class _PassCounter:
    """Counts storage events of one compute_all pass."""

    def __init__(self, bus: EventBus) -> None:
        self._lock = Lock()
        self.reset()
        bus.subscribe(DatasetLoaded, lambda _e: self._bump("loaded"))
        bus.subscribe(DetectorRecomputed, lambda _e: self._bump("recomputed"))
        bus.subscribe(DetectorUpToDate, lambda _e: self._bump("up_to_date"))
        bus.subscribe(DetectorFailed, lambda _e: self._bump("failed"))

    def reset(self) -> None:
        self.counts = {"loaded": 0, "recomputed": 0, "up_to_date": 0, "failed": 0}

    def _bump(self, key: str) -> None:
        with self._lock:
            self.counts[key] += 1


def _summary(storage: FramesStorage, report: HealthReport) -> dict[str, dict[str, object]]:
    failed = {issue.name: issue.message for issue in report}
    summary: dict[str, dict[str, object]] = {}
    for entry in storage.entries:
        frames = [len(f) for f in entry.frames if f is not None]
        summary[entry.name] = {
            "status": "failed" if entry.name in failed else "ok",
            "images": len(frames),
            "frames": sum(frames),
            "descriptors": any(d is not None for d in entry.descriptors),
            "error": failed.get(entry.name, ""),
        }
    return summary


def _print_summary(summary: dict[str, dict[str, object]], out: TextIO) -> None:
    width = max([len("detector"), *(len(n) for n in summary)])
    out.write(f"{'detector':<{width}}  status  images  frames  descriptors\n")
    for name, row in summary.items():
        out.write(
            f"{name:<{width}}  {row['status']:<6}  {row['images']:>6}  {row['frames']:>6}"
            f"  {'yes' if row['descriptors'] else 'no'}\n"
        )
        if row["error"]:
            out.write(f"{'':<{width}}  ! {row['error']}\n")


def run_benchmark(
    config_path: Path,
    *,
    compute_descriptors: bool | None = None,
    repeat: int = 1,
    manifest: bool = False,
    out: TextIO | None = None,
) -> int:
    out = out or sys.stdout
    cfg = load_benchmark_config(config_path)
    if compute_descriptors is not None:
        cfg.options = dataclasses.replace(cfg.options, compute_descriptors=compute_descriptors)

    dataset = build_dataset(cfg.dataset)
    bus = EventBus()
    counter = _PassCounter(bus)
    report = HealthReport()
    with FramesStorage(dataset, cfg.options, event_bus=bus) as storage:
        storage.add_detectors(build_detectors(cfg.detectors))
        for i in range(max(1, repeat)):
            counter.reset()
            report = storage.compute_all()
            c = counter.counts
            out.write(
                f"pass {i + 1}: dataset {'loaded' if c['loaded'] else 'unchanged'}, "
                f"{c['recomputed']} recomputed, {c['up_to_date']} up to date, "
                f"{len(report)} failed\n"
            )
        summary = _summary(storage, report)

    _print_summary(summary, out)
    if manifest:
        run_dir = register_run(config=cfg.to_dict(), results=summary)
        out.write(f"run manifest: {run_dir / 'run_manifest.json'}\n")
    return EXIT_OK if report.ok else EXIT_DETECTOR_FAILED


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="featbench", description="Cached feature detector benchmark"
    )
    parser.add_argument("--version", action="version", version=get_version_string())
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING...")
    parser.add_argument("--json-logs", action="store_true", default=None, help="log as JSON lines")
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="compute frames of the detectors in a benchmark file")
    run.add_argument("config", type=Path, help="benchmark YAML file")
    run.add_argument(
        "--no-descriptors",
        dest="compute_descriptors",
        action="store_false",
        default=None,
        help="compute frames only",
    )
    run.add_argument("--repeat", type=int, default=1, help="number of passes over the same storage")
    run.add_argument("--manifest", action="store_true", help="write a run manifest")

    sub.add_parser("detectors", help="list detector types usable in benchmark files")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(level=args.log_level, json_logs=args.json_logs)

    if args.command == "detectors":
        for name in available_types():
            print(name)
        return EXIT_OK

    try:
        return run_benchmark(
            args.config,
            compute_descriptors=args.compute_descriptors,
            repeat=args.repeat,
            manifest=args.manifest,
        )
    except AppError as e:
        log.error("%s", e)
        return EXIT_ERROR

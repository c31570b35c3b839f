from __future__ import annotations

"""JSON-lines event records for validation runs and engines."""

import csv
import json
import threading
from collections import Counter, defaultdict
from pathlib import Path
from typing import Any

from ...config import Config


class MetricAggregator:
    """Count event records per run and append them to ``metrics.csv``.

    The file is tall: one ``run,category,count`` row per category so runs
    logging different categories share a header.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self.counts: defaultdict[str, Counter[str]] = defaultdict(Counter)
        self._lock = threading.Lock()

    def add(self, run: str, category: str) -> None:
        with self._lock:
            self.counts[run][category] += 1

    def flush(self, run: str) -> None:
        """Write and forget the counts accumulated for ``run``."""

        with self._lock:
            counts = self.counts.pop(run, Counter())
            self.path.parent.mkdir(parents=True, exist_ok=True)
            new_file = not self.path.exists()
            with self.path.open("a", newline="") as fh:
                writer = csv.DictWriter(fh, fieldnames=["run", "category", "count"])
                if new_file:
                    writer.writeheader()
                for category in sorted(counts):
                    writer.writerow(
                        {"run": run, "category": category, "count": counts[category]}
                    )


_AGGREGATORS: dict[Path, MetricAggregator] = {}


def _get_aggregator(output_dir: str | Path | None = None) -> MetricAggregator:
    path = Path(output_dir or Config.output_dir) / "metrics.csv"
    return _AGGREGATORS.setdefault(path, MetricAggregator(path))


def log_record(
    category: str,
    label: str,
    *,
    run: str | None = None,
    iteration: int | None = None,
    value: dict[str, Any] | None = None,
    metadata: dict[str, Any] | None = None,
    output_dir: str | Path | None = None,
    path: Path | None = None,
    **extra: Any,
) -> None:
    """Append one record to ``<output_dir>/<category>_log.jsonl``.

    ``output_dir`` falls back to :attr:`Config.output_dir` and ``path``
    overrides the destination entirely. Records carrying a ``run`` id are
    counted towards that run's ``metrics.csv`` rows.
    """

    if path is None:
        path = Path(output_dir or Config.output_dir) / f"{category}_log.jsonl"
    path.parent.mkdir(parents=True, exist_ok=True)
    data: dict[str, Any] = {"label": label}
    if run is not None:
        data["run"] = run
    if iteration is not None:
        data["iteration"] = iteration
    data.update(value or {})
    if metadata is not None:
        data["metadata"] = metadata
    data.update(extra)
    with path.open("a") as fh:
        fh.write(json.dumps(data) + "\n")
    if run is not None:
        _get_aggregator(output_dir).add(run, category)


def flush_metrics(run: str, output_dir: str | Path | None = None) -> None:
    """Write the record counts of ``run`` to ``metrics.csv``."""

    _get_aggregator(output_dir).flush(run)

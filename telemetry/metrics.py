"""Statistics record persistence."""

from __future__ import annotations

import csv
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
import subprocess
from typing import Any, Dict, List

import numpy as np

TIMING_KEYS = (
    "reference_time",
    "preprocess_time",
    "elapsed",
    "postprocess_time",
    "total_time",
)


def _git_commit() -> str:
    """Return the current git commit hash or ``"unknown"``."""

    try:
        return (
            subprocess.check_output(
                ["git", "rev-parse", "--short", "HEAD"], stderr=subprocess.DEVNULL
            )
            .decode()
            .strip()
        )
    except Exception:  # pragma: no cover - best effort only
        return "unknown"


_GIT = _git_commit()


def _timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def write_stats_json(
    stats: Any,
    *,
    jsonfile: str | Path | None = None,
    jsondir: str | Path | None = None,
) -> Path | None:
    """Serialise a run statistics record to JSON.

    Parameters
    ----------
    stats:
        Object exposing ``to_dict()`` (normally a ``RunStats``) or a mapping.
    jsonfile:
        Exact destination file.
    jsondir:
        Directory receiving ``hits_<graph>_<timestamp>.json`` when
        ``jsonfile`` is not given.

    Returns
    -------
    Path or None
        The written path, or ``None`` when neither destination is set.
    """

    data = stats.to_dict() if hasattr(stats, "to_dict") else dict(stats)
    data.setdefault("git", _GIT)
    data.setdefault("time", _timestamp())
    if jsonfile is not None:
        path = Path(jsonfile)
    elif jsondir is not None:
        stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%f")
        path = Path(jsondir) / f"hits_{data.get('graph', 'graph')}_{stamp}.json"
    else:
        return None
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, sort_keys=True))
    return path


@dataclass
class StatsLogger:
    """Collect run statistics and emit them to disk."""

    out_dir: Path
    records: List[Dict[str, Any]] = field(default_factory=list)

    def log(self, stats: Any, **extra: Any) -> None:
        """Store one run's statistics flattened to a CSV friendly row."""

        data = stats.to_dict() if hasattr(stats, "to_dict") else dict(stats)
        cfg = data.pop("config", {})
        entry: Dict[str, Any] = {
            "git": _GIT,
            "ts": _timestamp(),
            **extra,
            **{k: v for k, v in data.items() if not isinstance(v, (list, dict))},
            **{f"cfg_{k}": v for k, v in cfg.items() if not isinstance(v, list)},
            **data.get("invariants", {}),
        }
        if data.get("top_hub"):
            entry["top_hub_vertex"] = data["top_hub"][0][0]
        if data.get("top_authority"):
            entry["top_authority_vertex"] = data["top_authority"][0][0]
        self.records.append(entry)

    def summary(self) -> Dict[str, Any]:
        """Return aggregate timings and the pass rate of validated runs."""

        agg: Dict[str, float] = {}
        for key in TIMING_KEYS:
            vals = [r[key] for r in self.records if r.get(key) is not None]
            if vals:
                agg[f"mean_{key}"] = float(np.mean(vals))
                agg[f"std_{key}"] = float(np.std(vals))
        validated = [r for r in self.records if r.get("validation") != "UNVALIDATED"]
        passed = sum(1 for r in validated if r.get("validation") == "PASS")
        return {
            "runs": len(self.records),
            "validated": len(validated),
            "passed": passed,
            "pass_rate": passed / len(validated) if validated else None,
            "total_errors": int(sum(r.get("num_errors", 0) for r in self.records)),
            "git": _GIT,
            "time": _timestamp(),
            "timings": agg,
        }

    def flush(self) -> Dict[str, Any]:
        """Write ``stats.csv`` and ``summary.json`` and return the summary."""

        self.out_dir.mkdir(parents=True, exist_ok=True)
        if self.records:
            fieldnames: List[str] = list(self.records[0].keys())
            for rec in self.records[1:]:
                for key in rec.keys():
                    if key not in fieldnames:
                        fieldnames.append(key)
            with (self.out_dir / "stats.csv").open("w", newline="") as fh:
                writer = csv.DictWriter(fh, fieldnames=fieldnames)
                writer.writeheader()
                writer.writerows(self.records)
        summary = self.summary()
        (self.out_dir / "summary.json").write_text(json.dumps(summary, indent=2))
        return summary

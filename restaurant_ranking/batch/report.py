from __future__ import annotations

from pathlib import Path

import pandas as pd

from .stats import BatchSummary

REPORT_COLUMNS = [
    "restaurant_id",
    "name",
    "status",
    "score",
    "tag_count",
    "error",
    "duration_ms",
]


def outcomes_frame(summary: BatchSummary) -> pd.DataFrame:
    rows = [
        {
            "restaurant_id": o.restaurant_id,
            "name": o.name,
            "status": o.status.value,
            "score": o.score,
            "tag_count": o.tag_count,
            "error": o.error,
            "duration_ms": round(o.duration_ms, 1),
        }
        for o in summary.outcomes
    ]
    return pd.DataFrame(rows, columns=REPORT_COLUMNS)


def write_report(summary: BatchSummary, path: Path) -> Path:
    """Write one row per restaurant so failed ones can be found and re-run."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    outcomes_frame(summary).to_csv(path, index=False)
    return path

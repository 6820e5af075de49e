"""Output helpers for persisting score reports."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Sequence

import pandas as pd

from .models import ScoreReport


def write_report(path: Path, report: ScoreReport) -> Path:
    """Write a single report to *path* as JSON and return the path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(report.to_dict(), indent=2), encoding="utf-8")
    return path


def write_reports(path: Path, reports: Sequence[ScoreReport]) -> Path:
    """Write *reports* to *path* as a JSON array and return the path."""
    serialised = [report.to_dict() for report in reports]
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(serialised, indent=2), encoding="utf-8")
    return path


def reports_frame(reports: Sequence[ScoreReport]) -> pd.DataFrame:
    """Return one flat row per report."""
    rows: list[dict[str, Any]] = []
    for report in reports:
        row: dict[str, Any] = {
            "source": report.metadata.source_name,
            "derived": report.metadata.derived_name,
            "global": report.global_score,
            "structural": report.structural_score,
            "score": report.composite_label,
            "explanation": report.explanation,
            "timestamp": report.metadata.timestamp,
        }
        if report.components is not None:
            row.update(report.components.as_dict())
        rows.append(row)
    return pd.DataFrame(rows)


def write_report_table(path: Path, reports: Sequence[ScoreReport]) -> Path:
    """Write *reports* as a Parquet table and return the path."""
    df = reports_frame(reports)
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_parquet(path, index=False, engine="pyarrow")
    return path

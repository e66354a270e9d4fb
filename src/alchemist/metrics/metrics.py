# src/alchemist/metrics/metrics.py
from __future__ import annotations

import json
import math
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any

import pandas as pd

from alchemist.errors import DataError
from alchemist.schemas.models import Client, Task, ValidationSummary, Worker
from alchemist.validator.validator import CHECKS, qualified_worker_count


def collect_metrics(
    clients: Sequence[Client],
    workers: Sequence[Worker],
    tasks: Sequence[Task],
    summary: ValidationSummary,
) -> dict[str, Any]:
    """
    @brief
    Builds a JSON-serializable profile of the dataset and its validation run.

    @details
    Contents:
        - entity counts
        - error/warning counts, overall and per check
        - distinct worker skills and required skills nobody covers
        - mean number of qualified workers per task
        - mean client priority (valid 1..5 levels only)
    """
    if not isinstance(summary, ValidationSummary):
        raise DataError(
            f"summary must be a ValidationSummary, got {type(summary).__name__}",
            source="metrics.collect_metrics",
        )

    # (1) Issues per check and severity
    issues_df = _issues_frame(summary)
    per_check = _issues_per_check(issues_df)

    # (2) Skill coverage
    worker_skills = {s for w in workers for s in w.skills}
    required_skills = {s for t in tasks for s in t.required_skills}
    uncovered = sorted(required_skills - worker_skills)

    # (3) Qualified workers per task and client priorities
    qualified = pd.Series([qualified_worker_count(t, workers) for t in tasks], dtype="float64")
    priorities = pd.Series([c.priority_level for c in clients], dtype="int64")
    valid_priorities = priorities[(priorities >= 1) & (priorities <= 5)]

    # (4) Assemble final metrics structure
    metrics = {
        "timestamp": _utc_now_iso(),
        "valid": bool(summary.valid),
        "num_clients": len(clients),
        "num_workers": len(workers),
        "num_tasks": len(tasks),
        "num_errors": len(summary.errors),
        "num_warnings": len(summary.warnings),
        "issues_per_check": per_check,
        "num_distinct_skills": len(worker_skills),
        "uncovered_skills": uncovered,
        "mean_qualified_workers": _mean(qualified),
        "mean_client_priority": _mean(valid_priorities),
    }

    # (5) Validate numerical integrity and serializability
    _assert_finite(metrics)
    json.dumps(metrics, ensure_ascii=False)
    return metrics


# ----------------- internal -----------------


def _issues_frame(summary: ValidationSummary) -> pd.DataFrame:
    rows = [
        {"check": i.check or "unknown", "severity": i.severity}
        for i in [*summary.errors, *summary.warnings]
    ]
    return pd.DataFrame(rows, columns=["check", "severity"])


def _issues_per_check(df: pd.DataFrame) -> dict[str, dict[str, int]]:
    """
    @brief
    Counts issues per (check, severity).

    @details
    Every known check is present with zero counts so that consecutive
    metrics files are directly comparable.
    """
    out: dict[str, dict[str, int]] = {c: {"error": 0, "warning": 0} for c in CHECKS}
    if df.empty:
        return out
    counts = df.groupby(["check", "severity"]).size()
    for (check, severity), n in counts.items():
        out.setdefault(str(check), {"error": 0, "warning": 0})[str(severity)] = int(n)
    return out


def _mean(series: pd.Series) -> float:
    if series.empty:
        return 0.0
    return round(float(series.mean()), 4)


def _assert_finite(obj: Any) -> None:
    """Recursively rejects NaN/Inf values."""
    if isinstance(obj, float) and (math.isnan(obj) or math.isinf(obj)):
        raise DataError("NaN/Inf encountered in metrics", source="metrics.collect_metrics")
    if isinstance(obj, dict):
        for v in obj.values():
            _assert_finite(v)
    elif isinstance(obj, (list | tuple)):
        for v in obj:
            _assert_finite(v)


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


__all__ = ["collect_metrics"]

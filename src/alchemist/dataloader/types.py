# src/alchemist/dataloader/types.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

EntityKind = Literal["clients", "workers", "tasks"]


@dataclass(slots=True)
class LoadResult:
    """
    Structured result of a data loading step.

    Fields:
        success: True if no row-level issues were found, False otherwise.
        records: Parsed entities (Client, Worker or Task), in file order.
                 Rows with issues are left out.
        errors: List of issue dicts with per-row context (used for reporting).
                Each item contains at least: kind, line_no, message, entity_id (may be None).
        total_rows: Total number of data rows observed in the file (excludes header).
        kept_rows: Number of successfully parsed rows (len(records)).
    """

    success: bool
    records: list[Any] = field(default_factory=list)
    errors: list[dict[str, Any]] = field(default_factory=list)
    total_rows: int = 0
    kept_rows: int = 0

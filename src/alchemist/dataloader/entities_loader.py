# src/alchemist/dataloader/entities_loader.py
from __future__ import annotations

import csv
import logging
import zipfile
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any

import pandas as pd
from pydantic import ValidationError as PydanticValidationError

from alchemist.dataloader.normalize import (
    parse_list_cell,
    parse_numeric_list_cell,
    parse_phase_cell,
)
from alchemist.dataloader.types import EntityKind, LoadResult
from alchemist.errors import DataError
from alchemist.schemas.models import Client, Task, Worker

logger = logging.getLogger(__name__)

_INT = "int"
_TEXT = "text"
_LIST = "list"
_NUM_LIST = "numeric_list"
_PHASES = "phases"

# Canonical columns per entity kind, with the cell parser each one uses.
COLUMNS: dict[str, dict[str, str]] = {
    "clients": {
        "ClientID": _TEXT,
        "ClientName": _TEXT,
        "PriorityLevel": _INT,
        "RequestedTaskIDs": _LIST,
        "GroupTag": _TEXT,
        "AttributesJSON": _TEXT,
    },
    "workers": {
        "WorkerID": _TEXT,
        "WorkerName": _TEXT,
        "Skills": _LIST,
        "AvailableSlots": _NUM_LIST,
        "MaxLoadPerPhase": _INT,
        "WorkerGroup": _TEXT,
        "QualificationLevel": _TEXT,
    },
    "tasks": {
        "TaskID": _TEXT,
        "TaskName": _TEXT,
        "Category": _TEXT,
        "Duration": _INT,
        "RequiredSkills": _LIST,
        "PreferredPhases": _PHASES,
        "MaxConcurrent": _INT,
    },
}

ID_COLUMNS: dict[str, str] = {"clients": "ClientID", "workers": "WorkerID", "tasks": "TaskID"}

_MODELS: dict[str, type[Client] | type[Worker] | type[Task]] = {
    "clients": Client,
    "workers": Worker,
    "tasks": Task,
}

SUPPORTED_EXTENSIONS = (".csv", ".xlsx")


def _parse_int(raw: str) -> int:
    """Integer cell; integral floats such as ``"3.0"`` (spreadsheet export) are accepted."""
    try:
        return int(raw)
    except ValueError:
        value = float(raw)
        if not value.is_integer():
            raise ValueError(f"{raw!r} is not an integer") from None
        return int(value)


def _as_str_list(raw: str) -> list[str]:
    return [str(item).strip() for item in parse_list_cell(raw) if str(item).strip()]


_PARSERS: dict[str, Callable[[str], Any]] = {
    _TEXT: lambda raw: raw,
    _INT: _parse_int,
    _LIST: _as_str_list,
    _NUM_LIST: parse_numeric_list_cell,
    _PHASES: parse_phase_cell,
}


class EntitiesLoader:
    """
    File (CSV or XLSX) → LoadResult[Client | Worker | Task].

    Rules:
      - Column names must match the canonical names exactly (``ClientID``,
        ``RequestedTaskIDs``...); other columns are ignored.
      - List cells: JSON array or comma list. ``PreferredPhases`` also
        accepts an inclusive ``start-end`` range, expanded on load.
      - Blank cells fall back to the model defaults; the validator reports
        the resulting missing or out-of-range values.
      - Row-level problems (an integer cell that does not parse, a model
        construction failure) → issue + continue; the row is left out.
      - Fully blank rows are skipped silently.

    Fatal errors (DataError raised immediately):
      - unknown entity kind
      - missing / unreadable file, unsupported extension
      - no header row, missing ID column
    """

    def load(self, path: Path, kind: EntityKind) -> LoadResult:
        if kind not in COLUMNS:
            raise DataError(
                message=f"Unknown entity kind: {kind!r}",
                source="EntitiesLoader.load",
                suggested_action=f"Use one of: {', '.join(COLUMNS)}",
            )
        rows = self._read_rows(path, kind)
        result = self._rows_to_result(rows, kind)
        self._report_summary(path, kind, result)
        return result

    # ------------------------------
    # Reading
    # ------------------------------
    def _read_rows(self, path: Path, kind: str) -> list[dict[str, str]]:
        if not isinstance(path, Path):
            raise DataError(
                message=f"Invalid path type: expected pathlib.Path, got {type(path).__name__}",
                source="EntitiesLoader._read_rows",
                suggested_action=f"Pass a pathlib.Path pointing to the {kind} file.",
            )
        if not path.exists():
            raise DataError(
                message=f"Input file not found: {path}",
                source="EntitiesLoader._read_rows",
                suggested_action="Verify the file path in config.yaml.",
            )
        suffix = path.suffix.lower()
        if suffix not in SUPPORTED_EXTENSIONS:
            raise DataError(
                message=f"Unsupported file type: {path.suffix or '(none)'}",
                source="EntitiesLoader._read_rows",
                suggested_action="Upload a .csv or .xlsx file.",
            )

        if suffix == ".csv":
            header, rows = self._read_csv(path)
        else:
            header, rows = self._read_xlsx(path)
        self._validate_header(header, kind)
        return rows

    def _read_csv(self, path: Path) -> tuple[tuple[str, ...], list[dict[str, str]]]:
        try:
            with path.open("r", encoding="utf-8-sig", newline="") as f:
                reader = csv.DictReader(f, delimiter=",")
                if reader.fieldnames is None:
                    raise DataError(
                        message="CSV has no header row.",
                        source="EntitiesLoader._read_csv",
                        suggested_action="Ensure the first line contains column names.",
                    )
                header = tuple((name or "").strip() for name in reader.fieldnames)
                rows = [self._strip_row(r) for r in reader]
        except OSError as e:
            raise DataError(
                message=f"Unable to read CSV: {e}",
                source="EntitiesLoader._read_csv",
                suggested_action="Check file permissions and that the file is not locked.",
            ) from e
        except (csv.Error, UnicodeDecodeError) as e:
            raise DataError(
                message=f"Malformed CSV: {e}",
                source="EntitiesLoader._read_csv",
                suggested_action="Save the file as UTF-8 comma-separated values.",
            ) from e
        return header, rows

    def _read_xlsx(self, path: Path) -> tuple[tuple[str, ...], list[dict[str, str]]]:
        # First sheet only; every cell as text so list and JSON cells survive
        try:
            df = pd.read_excel(
                path, sheet_name=0, dtype=str, keep_default_na=False, engine="openpyxl"
            )
        except (OSError, ValueError, zipfile.BadZipFile) as e:
            raise DataError(
                message=f"Unable to read spreadsheet: {e}",
                source="EntitiesLoader._read_xlsx",
                suggested_action="Check that the file is a valid .xlsx workbook.",
            ) from e
        header = tuple(str(c).strip() for c in df.columns)
        df.columns = list(header)
        rows = [self._strip_row(r) for r in df.to_dict(orient="records")]
        if not header:
            raise DataError(
                message="Spreadsheet has no header row.",
                source="EntitiesLoader._read_xlsx",
                suggested_action="Ensure the first row contains column names.",
            )
        return header, rows

    def _validate_header(self, header: Iterable[str], kind: str) -> None:
        header = tuple(header)
        id_column = ID_COLUMNS[kind]
        if id_column not in header:
            raise DataError(
                message=f"Invalid header: missing required column {id_column}",
                source="EntitiesLoader._validate_header",
                suggested_action=f"Add columns: {','.join(COLUMNS[kind])}",
            )
        missing = [c for c in COLUMNS[kind] if c not in header]
        if missing:
            logger.warning(
                "%s file lacks column(s) %s; defaults will be used", kind, ", ".join(missing)
            )

    def _strip_row(self, row: dict[Any, Any]) -> dict[str, str]:
        return {
            str(k).strip(): (v.strip() if isinstance(v, str) else ("" if v is None else str(v)))
            for k, v in row.items()
            if k is not None
        }

    # ------------------------------
    # Conversion
    # ------------------------------
    def _rows_to_result(self, rows: list[dict[str, str]], kind: str) -> LoadResult:
        issues: list[dict[str, Any]] = []
        records: list[Any] = []
        columns = COLUMNS[kind]
        model = _MODELS[kind]
        id_column = ID_COLUMNS[kind]
        total = 0

        for line_no, row in enumerate(rows, start=2):  # header = line 1
            if not any(row.get(c) for c in columns):
                continue
            total += 1
            entity_id = row.get(id_column) or None

            # parse cells
            payload: dict[str, Any] = {}
            bad_cell: str | None = None
            for column, parser in columns.items():
                raw = row.get(column, "")
                if raw == "":
                    continue
                try:
                    payload[column] = _PARSERS[parser](raw)
                except ValueError as e:
                    bad_cell = f"{column}: {e}"
                    break
            if bad_cell is not None:
                issues.append(
                    {
                        "kind": "schema_error",
                        "line_no": line_no,
                        "entity_id": entity_id,
                        "message": f"Unparseable cell {bad_cell}",
                    }
                )
                continue

            # construct model
            try:
                records.append(model.model_validate(payload))
            except PydanticValidationError as e:
                issues.append(
                    {
                        "kind": "schema_error",
                        "line_no": line_no,
                        "entity_id": entity_id,
                        "message": f"{model.__name__} construction failed: {e}",
                    }
                )

        return LoadResult(
            success=not issues,
            records=records,
            errors=issues,
            total_rows=total,
            kept_rows=len(records),
        )

    def _report_summary(self, path: Path, kind: str, result: LoadResult) -> None:
        if result.success:
            logger.info(
                "EntitiesLoader OK: %s kept=%d/%d from %s",
                kind,
                result.kept_rows,
                result.total_rows,
                path,
            )
        else:
            counts: dict[str, int] = {}
            for it in result.errors:
                counts[it["kind"]] = counts.get(it["kind"], 0) + 1
            summary = ", ".join(f"{k}={v}" for k, v in counts.items())
            logger.error(
                "EntitiesLoader failed: %d issue(s) across %d %s row(s) in %s [%s]",
                len(result.errors),
                result.total_rows,
                kind,
                path,
                summary or "no-summary",
            )


def load_entities(path: Path, kind: EntityKind) -> LoadResult:
    """Thin facade over ``EntitiesLoader().load``."""
    return EntitiesLoader().load(path, kind)


__all__ = ["COLUMNS", "EntitiesLoader", "ID_COLUMNS", "load_entities"]

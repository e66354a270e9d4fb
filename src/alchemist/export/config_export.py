# src/alchemist/export/config_export.py
from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from alchemist.errors import DataError
from alchemist.metrics.logger import atomic_write_text
from alchemist.schemas.models import (
    Client,
    ExportDocument,
    PriorityWeight,
    Task,
    ValidationSummary,
    Worker,
)
from alchemist.schemas.rules import Rule, RuleSet

logger = logging.getLogger(__name__)


def _as_list(items: Any, name: str) -> list[Any]:
    """
    @brief
    Normalizes an input collection to a list.

    @details
    Accepts lists, tuples, generators and a RuleSet. Plain dicts and
    strings are rejected: iterating them yields keys or characters.

    @raises
        DataError if the input is not a supported collection.
    """
    if isinstance(items, list):
        return items
    if isinstance(items, RuleSet):
        return list(items)
    if isinstance(items, (Mapping, str, bytes)) or not isinstance(items, Iterable):
        raise DataError(
            f"Unsupported {name} type: {type(items).__name__}",
            source="export.build_export_document",
            suggested_action=f"Pass {name} as a list.",
        )
    return list(items)


def build_export_document(
    clients: Sequence[Client],
    workers: Sequence[Worker],
    tasks: Sequence[Task],
    rules: Sequence[Rule] | RuleSet,
    prioritization: Sequence[PriorityWeight],
) -> ExportDocument:
    """
    @brief
    Assemble the consolidated configuration document.

    @details
    Collections are copied as-is in their current order; no validation
    status is consulted. Items that are not model instances are validated
    through the document schema.

    @raises
        DataError
            If a collection has the wrong shape or an item fails the schema.
    """
    payload = {
        "clients": _as_list(clients, "clients"),
        "workers": _as_list(workers, "workers"),
        "tasks": _as_list(tasks, "tasks"),
        "rules": _as_list(rules, "rules"),
        "prioritization": _as_list(prioritization, "prioritization"),
    }
    try:
        return ExportDocument.model_validate(payload)
    except PydanticValidationError as e:
        raise DataError(
            f"Export document does not match schema: {e}",
            source="export.build_export_document",
            suggested_action="Pass Client/Worker/Task/Rule/PriorityWeight records.",
        ) from e


def export_payload(doc: ExportDocument) -> dict[str, Any]:
    """Canonical JSON-ready mapping (export field names)."""
    return doc.model_dump(mode="json", by_alias=True)


def write_export_json(doc: ExportDocument, out_path: Path) -> Path:
    """
    @brief
    Writes the export document as UTF-8 JSON.

    @details
    Indented by two spaces, canonical field names, atomic replacement of
    the target so a reader never sees a half-written document.

    @params
        doc : ExportDocument
            Assembled document.
        out_path : Path
            Destination file path.

    @returns
        Path to the written file.

    @raises
        DataError on write failure.
    """
    if not isinstance(doc, ExportDocument):
        raise DataError(
            f"doc must be an ExportDocument, got {type(doc).__name__}",
            source="export.write_export_json",
            suggested_action="Build the document with build_export_document().",
        )

    # (1) Serialize with canonical names
    text = json.dumps(export_payload(doc), ensure_ascii=False, indent=2)

    # (2) Atomic write via temporary file replacement
    out_path = Path(out_path)
    atomic_write_text(out_path, text + "\n")
    logger.info(
        "Export written: %s (clients=%d workers=%d tasks=%d rules=%d)",
        out_path,
        len(doc.clients),
        len(doc.workers),
        len(doc.tasks),
        len(doc.rules),
    )
    return out_path


def read_export_json(path: Path) -> ExportDocument:
    """
    @brief
    Load a previously written export document.

    @raises
        DataError
            If the file is missing, unreadable, not JSON or fails the schema.
    """
    path = Path(path)
    if not path.exists():
        raise DataError(
            f"Export file not found: {path}",
            source="export.read_export_json",
            suggested_action="Verify the path or run the export first.",
        )
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise DataError(
            f"Export file is not valid JSON: {e}",
            source="export.read_export_json",
        ) from e
    except OSError as e:
        raise DataError(
            f"Unable to read export file: {e}",
            source="export.read_export_json",
            suggested_action="Check file permissions.",
        ) from e

    try:
        return ExportDocument.model_validate(data)
    except PydanticValidationError as e:
        raise DataError(
            f"Export file does not match schema: {e}",
            source="export.read_export_json",
            suggested_action="Regenerate the export with write_export_json().",
        ) from e


def dump_summary(summary: ValidationSummary) -> dict[str, Any]:
    """ValidationSummary → JSON-ready mapping (entityType/entityId naming)."""
    return summary.model_dump(mode="json", by_alias=True)


def load_summary(payload: Mapping[str, Any]) -> ValidationSummary:
    """
    Inverse of :func:`dump_summary`.

    Raises:
        DataError: if the payload does not describe a summary.
    """
    try:
        return ValidationSummary.model_validate(payload)
    except PydanticValidationError as e:
        raise DataError(
            f"Invalid validation summary payload: {e}",
            source="export.load_summary",
        ) from e


__all__ = [
    "build_export_document",
    "dump_summary",
    "export_payload",
    "load_summary",
    "read_export_json",
    "write_export_json",
]

# src/alchemist/dataloader/postload_handler.py
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from alchemist.dataloader.types import LoadResult
from alchemist.errors import DataError
from alchemist.metrics.logger import atomic_write_text

logger = logging.getLogger(__name__)


class LoadResultHandler:
    """
    @brief
    Turns a LoadResult into entities for validation, or into an error report.

    @details
    On success the parsed records are passed downstream. On failure the
    per-row issues are written to ``load_errors_<kind>.json`` inside
    ``output_dir`` and ``None`` is returned, so the orchestrator can stop
    the pipeline while keeping the detailed context.
    """

    def __init__(self, output_dir: Path) -> None:
        self.output_dir = output_dir

    def report_path(self, kind: str) -> Path:
        return self.output_dir / f"load_errors_{kind}.json"

    def handle(self, result: LoadResult, kind: str) -> list[Any] | None:
        """
        @brief
        Pass records downstream or persist the load issues.

        @returns
            The parsed records on success, otherwise None.

        @raises
            DataError
                If the error report cannot be written.
        """
        # (1) Success path: pass parsed entities downstream
        if result.success:
            logger.info("PostLoad: %d %s ready for validation.", result.kept_rows, kind)
            return result.records

        # (2) Failure path: persist structured issues
        out_path = self.report_path(kind)
        payload = {
            "kind": kind,
            "total_rows": result.total_rows,
            "kept_rows": result.kept_rows,
            "issues": result.errors,
        }
        try:
            atomic_write_text(out_path, json.dumps(payload, ensure_ascii=False, indent=2))
        except DataError as e:
            raise DataError(
                message=f"Failed to write load error report for {kind}: {e.args[0]}",
                source="LoadResultHandler.handle",
                suggested_action="Check output directory permissions.",
            ) from e

        logger.error(
            "PostLoad: %s input failed with %d issue(s). See %s",
            kind,
            len(result.errors),
            out_path,
        )
        return None


__all__ = ["LoadResultHandler"]

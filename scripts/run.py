# scripts/run.py
from __future__ import annotations

import argparse
import json
import logging
import sys
import time
import traceback
from pathlib import Path
from typing import Any

from alchemist.dataloader.config_loader import ConfigLoader
from alchemist.dataloader.entities_loader import EntitiesLoader
from alchemist.dataloader.postload_handler import LoadResultHandler
from alchemist.dataloader.rules_loader import RulesLoader
from alchemist.errors import AlchemistError, DataError
from alchemist.export.config_export import build_export_document, write_export_json
from alchemist.metrics.logger import atomic_write_text, write_metrics
from alchemist.metrics.metrics import collect_metrics
from alchemist.priorities.profiles import resolve_weights
from alchemist.schemas.models import Config
from alchemist.schemas.rules import RuleSet
from alchemist.suggestions.heuristics import suggest_corrections
from alchemist.validator import validate_and_report


def _setup_logging(level: str = "INFO") -> None:
    """
    @brief
    Initializes global logging configuration.

    @details
    Console format is shared by every pipeline stage. Calling it again
    after the config is loaded adjusts the level only.
    """
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")
    logging.getLogger().setLevel(level)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="alchemist-run",
        description=(
            "Run the Alchemist pipeline: load → validate → suggest → metrics → export"
        ),
    )
    parser.add_argument(
        "--config",
        type=str,
        default="config/config.yaml",
        help="Path to config YAML (default: config/config.yaml)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Output directory for artifacts (overrides output_dir in config)",
    )
    return parser.parse_args(argv)


def _load_entities(cfg: Config, output_dir: Path) -> dict[str, list[Any]]:
    """
    @brief
    Load clients, workers and tasks from the configured files.

    @details
    A kind without a configured file is an empty collection. All kinds are
    loaded before failing so that every load_errors_<kind>.json is written
    in one run.

    @raises
        DataError
            If any file had row-level issues.
    """
    loader = EntitiesLoader()
    handler = LoadResultHandler(output_dir=output_dir)
    files = {"clients": cfg.clients_file, "workers": cfg.workers_file, "tasks": cfg.tasks_file}

    loaded: dict[str, list[Any]] = {}
    failed: list[Path] = []
    for kind, file_name in files.items():
        if not file_name:
            logging.warning("No %s file configured; using an empty collection", kind)
            loaded[kind] = []
            continue
        logging.info("Loading %s: %s", kind, file_name)
        records = handler.handle(loader.load(Path(file_name), kind), kind)  # type: ignore[arg-type]
        if records is None:
            failed.append(handler.report_path(kind))
            continue
        loaded[kind] = records

    if failed:
        raise DataError(
            message="Input load failed, see " + ", ".join(p.as_posix() for p in failed),
            source="scripts.run",
            suggested_action="Fix the reported rows and rerun the pipeline.",
        )
    return loaded


def run_pipeline(config_path: Path, output_dir: Path | None = None) -> dict[str, Any]:
    """
    @brief
    Executes the full Alchemist pipeline.

    @details
    Performs sequential steps:
    (1) Load configuration, entities, rules and priority weights.
    (2) Validate and write validation_report.json.
    (3) Write correction suggestions and dataset metrics.
    (4) Write the export document (when valid, or when allowed for invalid data).

    @returns
        Dictionary with the validity flag, pass/fail decision for the exit
        code, issue counts and artifact paths.

    @raises
        AlchemistError
            On configuration, data, rule or I/O failures.
    """
    # (1) Configuration and output directory
    t0 = time.perf_counter()
    overrides = {"output_dir": str(output_dir)} if output_dir is not None else None
    cfg = ConfigLoader().load(config_path, overrides=overrides)
    _setup_logging(cfg.log_level)
    out_dir = Path(cfg.output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    # (2) Inputs
    entities = _load_entities(cfg, out_dir)
    clients, workers, tasks = entities["clients"], entities["workers"], entities["tasks"]
    rules = RulesLoader().load(Path(cfg.rules_file)) if cfg.rules_file else RuleSet()
    weights = resolve_weights(cfg.priority_profile)

    # (3) Validation
    logging.info(
        "Validating %d clients, %d workers, %d tasks…", len(clients), len(workers), len(tasks)
    )
    summary = validate_and_report(
        clients, workers, tasks, write_report=cfg.validation.write_report, out_dir=out_dir
    )
    report_path = out_dir / "validation_report.json" if cfg.validation.write_report else None

    # (4) Correction suggestions
    suggestions_path: Path | None = None
    if cfg.validation.suggest_corrections and summary.errors:
        suggestions = suggest_corrections(summary.errors, clients, workers, tasks)
        suggestions_path = out_dir / "suggestions.json"
        payload = [s.model_dump(mode="json", by_alias=True) for s in suggestions]
        atomic_write_text(suggestions_path, json.dumps(payload, ensure_ascii=False, indent=2))

    # (5) Metrics
    metrics_path: Path | None = None
    if cfg.metrics.save_metrics:
        metrics_path = write_metrics(collect_metrics(clients, workers, tasks, summary), out_dir)

    # (6) Export
    export_path: Path | None = None
    if summary.valid or cfg.export.allow_invalid:
        doc = build_export_document(clients, workers, tasks, rules, weights)
        export_path = write_export_json(doc, out_dir / cfg.export.filename)
    else:
        logging.warning("Export skipped: data has validation errors and allow_invalid is off.")

    passed = summary.valid and not (cfg.validation.fail_on_warnings and summary.warnings)
    logging.info("Pipeline finished in %.2f s", time.perf_counter() - t0)

    return {
        "valid": summary.valid,
        "passed": passed,
        "num_errors": len(summary.errors),
        "num_warnings": len(summary.warnings),
        "artifacts": {
            "validation_report": report_path,
            "suggestions": suggestions_path,
            "metrics": metrics_path,
            "export": export_path,
        },
    }


def main(argv: list[str] | None = None) -> int:
    """
    @brief
    CLI entry point for the Alchemist pipeline.

    @details
    Exit codes suitable for shell integration:
      0 – data is valid (and warning-free when fail_on_warnings is set)
      1 – controlled failure (config/data/rules) or invalid data
      2 – unexpected crash
    """
    _setup_logging()
    args = _parse_args(argv)
    output_dir = Path(args.output) if args.output else None

    try:
        result = run_pipeline(Path(args.config), output_dir)
        written = [p.name for p in result["artifacts"].values() if p is not None]
        logging.info("Artifacts: %s", ", ".join(written) or "none")
        return 0 if result["passed"] else 1

    except AlchemistError as e:
        logging.error(str(e))
        return 1
    except Exception:
        logging.error("Unexpected error occurred:")
        traceback.print_exc()
        return 2


if __name__ == "__main__":
    sys.exit(main())

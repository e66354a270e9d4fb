# src/alchemist/validator/validator.py
from __future__ import annotations

import json
import logging
import math
from collections import Counter
from collections.abc import Sequence
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from alchemist.errors import ValidationError
from alchemist.schemas.models import (
    Client,
    EntityType,
    Task,
    ValidationIssue,
    ValidationSummary,
    Worker,
)

logger = logging.getLogger(__name__)

# Fixed execution order of the checks; also the order of keys in reports.
CHECKS: tuple[str, ...] = (
    "RequiredFields",
    "DuplicateIds",
    "MalformedLists",
    "OutOfRange",
    "BrokenJson",
    "UnknownReferences",
    "SkillCoverage",
    "ConcurrencyFeasibility",
    "Overload",
)

PRIORITY_MIN = 1
PRIORITY_MAX = 5


# ----------------------------
# AUXILIARY FUNCTIONS
# ----------------------------
def is_numeric(value: Any) -> bool:
    """
    @brief
    Check whether a list element is coercible to a number.

    @details
    Accepts finite or infinite ints/floats and strings that ``float()``
    parses after stripping. Booleans, ``None``, NaN and blank strings are
    rejected.
    """
    if isinstance(value, bool) or value is None:
        return False
    if isinstance(value, (int, float)):
        return not (isinstance(value, float) and math.isnan(value))
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return False
        try:
            return not math.isnan(float(text))
        except ValueError:
            return False
    return False


def is_valid_json(text: str) -> bool:
    try:
        json.loads(text)
    except (TypeError, ValueError):
        return False
    return True


def qualified_worker_count(task: Task, workers: Sequence[Worker]) -> int:
    """
    @brief
    Count workers whose skills are a superset of the task's required skills.

    @details
    Skill names are compared by exact string equality. A task with no
    required skills is satisfiable by every worker.
    """
    required = set(task.required_skills)
    return sum(1 for w in workers if required.issubset(w.skills))


def _require_collection(name: str, items: Any, model: type) -> None:
    if items is None or not isinstance(items, (list, tuple)):
        raise ValidationError(
            message=f"{name} must be a list of {model.__name__}, got {type(items).__name__}",
            source="validator._require_collection",
            suggested_action="Pass parsed entity collections (empty lists are allowed).",
        )
    for idx, item in enumerate(items):
        if not isinstance(item, model):
            raise ValidationError(
                message=f"{name}[{idx}] is {type(item).__name__}, expected {model.__name__}",
                source="validator._require_collection",
                suggested_action=f"Build records with {model.__name__}.model_validate().",
            )


# ---------------------------
# VALIDATOR CLASS (instance core)
# ----------------------------
class Validator:
    """
    @brief
    Multi-entity consistency validator for clients, workers and tasks.

    @details
    Runs nine independent checks in a fixed order. Every data problem is
    recorded as a ValidationIssue; a finding in one check never skips
    another. Inputs are only read, never mutated.

    Raises ValidationError only for structurally invalid inputs
    (a collection that is not a list of the expected model).
    """

    # ---------- Constructor ----------
    def __init__(
        self,
        clients: Sequence[Client],
        workers: Sequence[Worker],
        tasks: Sequence[Task],
    ) -> None:
        """
        @brief
        Initialize validation context.

        @params
            clients : Sequence[Client]
                Client records in input order.
            workers : Sequence[Worker]
                Worker records in input order.
            tasks : Sequence[Task]
                Task records in input order.

        @raises
            ValidationError
                If any collection is None, not a list/tuple, or holds
                objects of the wrong type.
        """
        # (1) Fail fast on contract violations
        _require_collection("clients", clients, Client)
        _require_collection("workers", workers, Worker)
        _require_collection("tasks", tasks, Task)

        self.clients = clients
        self.workers = workers
        self.tasks = tasks

        # (2) Initialize accumulators for validation outcomes
        self.errors: list[ValidationIssue] = []
        self.warnings: list[ValidationIssue] = []

    # ---------- Public lifecycle API ----------
    def run_all_checks(self) -> None:
        """
        @brief
        Execute the full validation sequence.

        @details
        Checks run unconditionally and in the order of ``CHECKS``; findings
        within a check follow input collection order.
        """
        self._check_required_fields()
        self._check_duplicate_ids()
        self._check_malformed_lists()
        self._check_out_of_range()
        self._check_broken_json()
        self._check_unknown_references()
        self._check_skill_coverage()
        self._check_concurrency_feasibility()
        self._check_overloaded_workers()

    def build_summary(self) -> ValidationSummary:
        """
        @brief
        Assemble accumulated findings into a ValidationSummary.

        @details
        ``valid`` is True iff no errors were recorded; warnings are reported
        but never affect validity.
        """
        return ValidationSummary(
            valid=not self.errors,
            errors=list(self.errors),
            warnings=list(self.warnings),
        )

    @staticmethod
    def build_report(summary: ValidationSummary) -> dict[str, Any]:
        """
        @brief
        Build the persisted report payload for a summary.

        @details
        Adds a UTC timestamp and per-check error/warning counts to the
        alias-dumped summary. Kept separate from the summary itself so that
        repeated validations of the same data compare equal.
        """
        error_counts = Counter(e.check for e in summary.errors)
        warning_counts = Counter(w.check for w in summary.warnings)
        report = summary.model_dump(mode="json", by_alias=True)
        report["timestamp"] = datetime.now(timezone.utc).isoformat(timespec="seconds")
        report["checks"] = {
            name: {"errors": error_counts.get(name, 0), "warnings": warning_counts.get(name, 0)}
            for name in CHECKS
        }
        return report

    def save_report(
        self,
        summary: ValidationSummary,
        out_dir: Path | None = None,
        filename: str = "validation_report.json",
    ) -> Path:
        """
        Writes the report atomically to disk.

        Args:
            summary: Result of a validation run.
            out_dir: Target directory (defaults to 'data/output').
            filename: Target filename (default 'validation_report.json').

        Returns:
            Path to the written JSON file.
        """
        target_dir = out_dir or Path("data/output")
        target_dir.mkdir(parents=True, exist_ok=True)
        final_path = target_dir / filename

        tmp_path = final_path.with_suffix(".tmp")

        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(self.build_report(summary), f, indent=2, ensure_ascii=False)
            tmp_path.replace(final_path)
        except OSError as e:
            raise ValidationError(
                f"Failed to write validation report: {e}",
                source="Validator.save_report",
                suggested_action="Check disk permissions and free space.",
            ) from e

        logger.info("Validation report saved: %s", final_path)
        return final_path

    # ---------- Checks (one method per check) ----------
    def _check_required_fields(self) -> None:
        """
        @brief
        Required identifiers, names and skill lists (check 1).

        @details
        When the ID itself is missing the finding is attributed to the
        entity name, or to ``"unknown"`` if that is also empty.
        """
        # (1) Clients: ClientID, ClientName
        for c in self.clients:
            if not c.client_id:
                self._add_error(
                    entity_type="client",
                    entity_id=c.client_name or "unknown",
                    field="ClientID",
                    message="ClientID is required",
                    check="RequiredFields",
                )
            if not c.client_name:
                self._add_error(
                    entity_type="client",
                    entity_id=c.client_id or "unknown",
                    field="ClientName",
                    message="ClientName is required",
                    check="RequiredFields",
                )

        # (2) Workers: WorkerID, WorkerName, Skills
        for w in self.workers:
            if not w.worker_id:
                self._add_error(
                    entity_type="worker",
                    entity_id=w.worker_name or "unknown",
                    field="WorkerID",
                    message="WorkerID is required",
                    check="RequiredFields",
                )
            if not w.worker_name:
                self._add_error(
                    entity_type="worker",
                    entity_id=w.worker_id or "unknown",
                    field="WorkerName",
                    message="WorkerName is required",
                    check="RequiredFields",
                )
            if not w.skills:
                self._add_error(
                    entity_type="worker",
                    entity_id=w.worker_id or w.worker_name or "unknown",
                    field="Skills",
                    message="Skills are required",
                    check="RequiredFields",
                )

        # (3) Tasks: TaskID, TaskName, RequiredSkills
        for t in self.tasks:
            if not t.task_id:
                self._add_error(
                    entity_type="task",
                    entity_id=t.task_name or "unknown",
                    field="TaskID",
                    message="TaskID is required",
                    check="RequiredFields",
                )
            if not t.task_name:
                self._add_error(
                    entity_type="task",
                    entity_id=t.task_id or "unknown",
                    field="TaskName",
                    message="TaskName is required",
                    check="RequiredFields",
                )
            if not t.required_skills:
                self._add_error(
                    entity_type="task",
                    entity_id=t.task_id or t.task_name or "unknown",
                    field="RequiredSkills",
                    message="RequiredSkills are required",
                    check="RequiredFields",
                )

    def _check_duplicate_ids(self) -> None:
        """
        @brief
        Repeated identifiers within each collection (check 2).

        @details
        The first occurrence is accepted; every later occurrence is an error.
        """
        groups: list[tuple[EntityType, str, list[str]]] = [
            ("client", "ClientID", [c.client_id for c in self.clients]),
            ("worker", "WorkerID", [w.worker_id for w in self.workers]),
            ("task", "TaskID", [t.task_id for t in self.tasks]),
        ]
        for entity_type, field_name, ids in groups:
            seen: set[str] = set()
            for entity_id in ids:
                if entity_id in seen:
                    self._add_error(
                        entity_type=entity_type,
                        entity_id=entity_id,
                        field=field_name,
                        message=f"Duplicate {field_name} found",
                        check="DuplicateIds",
                    )
                seen.add(entity_id)

    def _check_malformed_lists(self) -> None:
        """
        @brief
        Numeric list contents for AvailableSlots and PreferredPhases (check 3).
        """
        # (1) Worker slots must be a list of numbers
        for w in self.workers:
            slots = w.available_slots
            if not isinstance(slots, list) or not all(is_numeric(s) for s in slots):
                self._add_error(
                    entity_type="worker",
                    entity_id=w.worker_id,
                    field="AvailableSlots",
                    message="AvailableSlots must be a numeric array",
                    check="MalformedLists",
                    context={"value": list(slots) if isinstance(slots, list) else slots},
                )

        # (2) Task phases: ranges are expected to be expanded by the loader
        for t in self.tasks:
            phases = t.preferred_phases
            if isinstance(phases, str):
                self._add_error(
                    entity_type="task",
                    entity_id=t.task_id,
                    field="PreferredPhases",
                    message="PreferredPhases is in an unexpected string format",
                    check="MalformedLists",
                    context={"value": phases},
                )
            elif not all(is_numeric(p) for p in phases):
                self._add_error(
                    entity_type="task",
                    entity_id=t.task_id,
                    field="PreferredPhases",
                    message="PreferredPhases must contain only numbers",
                    check="MalformedLists",
                    context={"value": list(phases)},
                )

    def _check_out_of_range(self) -> None:
        """
        @brief
        Numeric bounds on PriorityLevel, Duration and MaxConcurrent (check 4).
        """
        for c in self.clients:
            if not PRIORITY_MIN <= c.priority_level <= PRIORITY_MAX:
                self._add_error(
                    entity_type="client",
                    entity_id=c.client_id,
                    field="PriorityLevel",
                    message=f"PriorityLevel must be between {PRIORITY_MIN} and {PRIORITY_MAX}",
                    check="OutOfRange",
                    context={"value": c.priority_level},
                )

        for t in self.tasks:
            if t.duration < 1:
                self._add_error(
                    entity_type="task",
                    entity_id=t.task_id,
                    field="Duration",
                    message="Duration must be at least 1",
                    check="OutOfRange",
                    context={"value": t.duration},
                )

        for t in self.tasks:
            if t.max_concurrent < 1:
                self._add_error(
                    entity_type="task",
                    entity_id=t.task_id,
                    field="MaxConcurrent",
                    message="MaxConcurrent must be at least 1",
                    check="OutOfRange",
                    context={"value": t.max_concurrent},
                )

    def _check_broken_json(self) -> None:
        """Non-empty AttributesJSON must parse (check 5)."""
        for c in self.clients:
            if c.attributes_json and not is_valid_json(c.attributes_json):
                self._add_error(
                    entity_type="client",
                    entity_id=c.client_id,
                    field="AttributesJSON",
                    message="AttributesJSON contains invalid JSON",
                    check="BrokenJson",
                )

    def _check_unknown_references(self) -> None:
        """
        @brief
        RequestedTaskIDs must resolve to existing tasks (check 6).

        @details
        One error per unresolved reference, in request order.
        """
        known = {t.task_id for t in self.tasks}
        for c in self.clients:
            for task_id in c.requested_task_ids:
                if task_id not in known:
                    self._add_error(
                        entity_type="client",
                        entity_id=c.client_id,
                        field="RequestedTaskIDs",
                        message=f"Unknown TaskID '{task_id}' in RequestedTaskIDs",
                        check="UnknownReferences",
                        context={"task_id": task_id},
                    )

    def _check_skill_coverage(self) -> None:
        """
        @brief
        Every required skill is offered by at least one worker (check 7).

        @details
        Exact string comparison; one error per (task, uncovered skill).
        """
        offered = {skill for w in self.workers for skill in w.skills}
        for t in self.tasks:
            for skill in t.required_skills:
                if skill not in offered:
                    self._add_error(
                        entity_type="task",
                        entity_id=t.task_id,
                        field="RequiredSkills",
                        message=f"No worker has the required skill '{skill}'",
                        check="SkillCoverage",
                        context={"skill": skill},
                    )

    def _check_concurrency_feasibility(self) -> None:
        """
        @brief
        Enough qualified workers for each task's MaxConcurrent (check 8).
        """
        for t in self.tasks:
            qualified = qualified_worker_count(t, self.workers)
            if qualified < t.max_concurrent:
                self._add_error(
                    entity_type="task",
                    entity_id=t.task_id,
                    field="MaxConcurrent",
                    message=(
                        f"MaxConcurrent ({t.max_concurrent}) exceeds the number of "
                        f"qualified workers ({qualified})"
                    ),
                    check="ConcurrencyFeasibility",
                    context={"max_concurrent": t.max_concurrent, "qualified_workers": qualified},
                )

    def _check_overloaded_workers(self) -> None:
        """
        @brief
        Soft capacity concern: fewer slots than the per-phase load (check 9).

        @details
        The only check that produces warnings instead of errors.
        """
        for w in self.workers:
            slot_count = len(w.available_slots)
            if slot_count < w.max_load_per_phase:
                self._add_warning(
                    entity_type="worker",
                    entity_id=w.worker_id,
                    field="MaxLoadPerPhase",
                    message=(
                        f"MaxLoadPerPhase ({w.max_load_per_phase}) exceeds available slots "
                        f"({slot_count})"
                    ),
                    check="Overload",
                    context={
                        "max_load_per_phase": w.max_load_per_phase,
                        "available_slots": slot_count,
                    },
                )

    # ---------- Utilities ----------
    def _add_error(
        self,
        entity_type: EntityType,
        entity_id: str,
        field: str,
        message: str,
        check: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        self.errors.append(
            ValidationIssue(
                entity_type=entity_type,
                entity_id=entity_id,
                field=field,
                message=message,
                severity="error",
                check=check,
                context=context or {},
            )
        )

    def _add_warning(
        self,
        entity_type: EntityType,
        entity_id: str,
        field: str,
        message: str,
        check: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        self.warnings.append(
            ValidationIssue(
                entity_type=entity_type,
                entity_id=entity_id,
                field=field,
                message=message,
                severity="warning",
                check=check,
                context=context or {},
            )
        )


# ----------------------------
# THIN FACADES
# ----------------------------
def validate_all(
    clients: Sequence[Client],
    workers: Sequence[Worker],
    tasks: Sequence[Task],
) -> ValidationSummary:
    """
    @brief
    Validate the three entity collections and return a summary.

    @details
    Pure and deterministic: no I/O, inputs are not mutated, and identical
    inputs yield identical (order-stable) summaries.

    @raises
        ValidationError
            Only for structurally invalid arguments.
    """
    validator = Validator(clients, workers, tasks)
    validator.run_all_checks()
    summary = validator.build_summary()
    logger.info(
        "Validation finished: valid=%s errors=%d warnings=%d",
        summary.valid,
        len(summary.errors),
        len(summary.warnings),
    )
    return summary


def validate_and_report(
    clients: Sequence[Client],
    workers: Sequence[Worker],
    tasks: Sequence[Task],
    *,
    write_report: bool = True,
    out_dir: Path | None = None,
    filename: str = "validation_report.json",
) -> ValidationSummary:
    """
    @brief
    Validate and optionally persist the report as JSON.

    @returns
        The in-memory summary regardless of write mode.
    """
    validator = Validator(clients, workers, tasks)
    validator.run_all_checks()
    summary = validator.build_summary()
    if write_report:
        validator.save_report(summary, out_dir=out_dir, filename=filename)
    return summary


__all__ = [
    "CHECKS",
    "Validator",
    "is_numeric",
    "qualified_worker_count",
    "validate_all",
    "validate_and_report",
]

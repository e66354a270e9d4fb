# src/alchemist/suggestions/heuristics.py
"""
@brief
Local (non-AI) correction suggestions for validation errors.

@details
Each heuristic maps one error category to at most one field-level fix:
    - SkillCoverage          → replace the missing skill with a similar worker skill
    - ConcurrencyFeasibility → lower MaxConcurrent to the qualified-worker count
    - UnknownReferences      → replace the unresolved task id with a similar TaskID
    - BrokenJson             → replace AttributesJSON with "{}"

Suggestions never mutate state. ``apply_suggestions`` returns new
collections and refuses stale suggestions; callers re-validate afterwards.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from pydantic import Field

from alchemist.schemas.base import _StrictBaseModel
from alchemist.schemas.models import Client, EntityType, Task, ValidationIssue, Worker
from alchemist.validator.validator import is_valid_json, qualified_worker_count

logger = logging.getLogger(__name__)

# Canonical field name → model attribute, per entity type.
_FIELD_ATTRS: dict[str, dict[str, str]] = {
    "client": {
        "RequestedTaskIDs": "requested_task_ids",
        "AttributesJSON": "attributes_json",
    },
    "task": {
        "RequiredSkills": "required_skills",
        "MaxConcurrent": "max_concurrent",
    },
    "worker": {},
}


class CorrectionSuggestion(_StrictBaseModel):
    """
    @brief
    One proposed field-level fix.

    @details
    ``current_value`` is the field value observed when the suggestion was
    generated; applying checks it again to detect concurrent edits.
    """

    model_config = {"frozen": True}

    entity_id: str = Field(..., alias="entityId")
    entity_type: EntityType = Field(..., alias="entityType")
    field: str
    current_value: Any = Field(None, alias="currentValue")
    suggested_value: Any = Field(None, alias="suggestedValue")
    explanation: str = ""


@dataclass(slots=True)
class AppliedCorrections:
    """
    Result of applying suggestions to copies of the entity collections.

    Fields:
        clients, workers, tasks: New collections (inputs are left untouched).
        applied: Suggestions written into the copies.
        skipped: Stale or unresolvable suggestions (entity missing or the
                 field changed since the suggestion was generated).
    """

    clients: list[Client]
    workers: list[Worker]
    tasks: list[Task]
    applied: list[CorrectionSuggestion] = field(default_factory=list)
    skipped: list[CorrectionSuggestion] = field(default_factory=list)

    @property
    def needs_revalidation(self) -> bool:
        return bool(self.applied)


def _similar(candidates: Sequence[str], value: str) -> str | None:
    """First candidate that contains ``value`` or is contained in it (case-sensitive)."""
    for candidate in candidates:
        if candidate and candidate != value and (value in candidate or candidate in value):
            return candidate
    return None


class _Context:
    """Lookup tables shared by the heuristics for one suggestion run."""

    def __init__(
        self, clients: Sequence[Client], workers: Sequence[Worker], tasks: Sequence[Task]
    ) -> None:
        self.workers = workers
        self.clients = clients
        self.tasks = tasks
        self.skills = list(dict.fromkeys(s for w in workers for s in w.skills))
        self.task_ids = list(dict.fromkeys(t.task_id for t in tasks))

    # IDs may repeat: each lookup returns the entity that shows the problem.
    def task(self, task_id: str, shows: Callable[[Task], bool]) -> Task | None:
        return next((t for t in self.tasks if t.task_id == task_id and shows(t)), None)

    def client(self, client_id: str, shows: Callable[[Client], bool]) -> Client | None:
        return next((c for c in self.clients if c.client_id == client_id and shows(c)), None)


# ------------------------------
# Heuristics (one per error category)
# ------------------------------
def _fix_unknown_skill(issue: ValidationIssue, ctx: _Context) -> CorrectionSuggestion | None:
    missing = issue.context.get("skill")
    if not missing:
        return None
    task = ctx.task(issue.entity_id, lambda t: missing in t.required_skills)
    if task is None:
        return None
    similar = _similar(ctx.skills, missing)
    if similar is None:
        return None
    return CorrectionSuggestion(
        entity_id=issue.entity_id,
        entity_type="task",
        field="RequiredSkills",
        current_value=list(task.required_skills),
        suggested_value=[similar if s == missing else s for s in task.required_skills],
        explanation=f"Replace unknown skill '{missing}' with available skill '{similar}'",
    )


def _fix_concurrency(issue: ValidationIssue, ctx: _Context) -> CorrectionSuggestion | None:
    task = ctx.task(
        issue.entity_id,
        lambda t: qualified_worker_count(t, ctx.workers) < t.max_concurrent
        and t.max_concurrent == issue.context.get("max_concurrent", t.max_concurrent),
    )
    if task is None:
        return None
    qualified = qualified_worker_count(task, ctx.workers)
    return CorrectionSuggestion(
        entity_id=issue.entity_id,
        entity_type="task",
        field="MaxConcurrent",
        current_value=task.max_concurrent,
        suggested_value=qualified,
        explanation=(
            f"Reduce MaxConcurrent to {qualified}, which is the number of qualified workers"
        ),
    )


def _fix_unknown_task(issue: ValidationIssue, ctx: _Context) -> CorrectionSuggestion | None:
    unknown = issue.context.get("task_id")
    if not unknown:
        return None
    client = ctx.client(issue.entity_id, lambda c: unknown in c.requested_task_ids)
    if client is None:
        return None
    similar = _similar(ctx.task_ids, unknown)
    if similar is None:
        return None
    return CorrectionSuggestion(
        entity_id=issue.entity_id,
        entity_type="client",
        field="RequestedTaskIDs",
        current_value=list(client.requested_task_ids),
        suggested_value=[similar if t == unknown else t for t in client.requested_task_ids],
        explanation=f"Replace unknown task ID '{unknown}' with valid task ID '{similar}'",
    )


def _fix_broken_json(issue: ValidationIssue, ctx: _Context) -> CorrectionSuggestion | None:
    client = ctx.client(
        issue.entity_id, lambda c: bool(c.attributes_json) and not is_valid_json(c.attributes_json)
    )
    if client is None:
        return None
    return CorrectionSuggestion(
        entity_id=issue.entity_id,
        entity_type="client",
        field="AttributesJSON",
        current_value=client.attributes_json,
        suggested_value="{}",
        explanation="Fix invalid JSON by using an empty object",
    )


_HEURISTICS: dict[str, Callable[[ValidationIssue, _Context], CorrectionSuggestion | None]] = {
    "SkillCoverage": _fix_unknown_skill,
    "ConcurrencyFeasibility": _fix_concurrency,
    "UnknownReferences": _fix_unknown_task,
    "BrokenJson": _fix_broken_json,
}


def suggest_corrections(
    issues: Sequence[ValidationIssue],
    clients: Sequence[Client],
    workers: Sequence[Worker],
    tasks: Sequence[Task],
) -> list[CorrectionSuggestion]:
    """
    @brief
    Propose field-level fixes for validation errors.

    @details
    Only ``severity == "error"`` issues are considered. Issues without a
    heuristic or without a plausible candidate produce nothing. Identical
    suggestions are emitted once, in issue order.

    @returns
        List of CorrectionSuggestion records (possibly empty).
    """
    ctx = _Context(clients, workers, tasks)
    out: list[CorrectionSuggestion] = []
    seen: set[tuple[str, str, str, str]] = set()

    for issue in issues:
        if issue.severity != "error":
            continue
        heuristic = _HEURISTICS.get(issue.check)
        if heuristic is None:
            continue
        suggestion = heuristic(issue, ctx)
        if suggestion is None:
            continue
        key = (
            suggestion.entity_type,
            suggestion.entity_id,
            suggestion.field,
            repr(suggestion.suggested_value),
        )
        if key in seen:
            continue
        seen.add(key)
        out.append(suggestion)

    logger.info("Generated %d correction suggestion(s) for %d issue(s)", len(out), len(issues))
    return out


def apply_suggestions(
    suggestions: Sequence[CorrectionSuggestion],
    clients: Sequence[Client],
    workers: Sequence[Worker],
    tasks: Sequence[Task],
) -> AppliedCorrections:
    """
    @brief
    Apply suggestions to copies of the entity collections.

    @details
    Suggestions are matched by (entityType, entityId, field) and applied to
    every entity with that id whose field still equals ``current_value``.
    A suggestion is skipped when no entity matches (missing entity, or the
    data changed after the suggestion was generated). Applied suggestions
    require a fresh validation run.
    """
    collections: dict[str, list[Any]] = {
        "client": list(clients),
        "worker": list(workers),
        "task": list(tasks),
    }
    id_attrs = {"client": "client_id", "worker": "worker_id", "task": "task_id"}
    result = AppliedCorrections(
        clients=collections["client"], workers=collections["worker"], tasks=collections["task"]
    )

    for s in suggestions:
        attr = _FIELD_ATTRS.get(s.entity_type, {}).get(s.field)
        items = collections[s.entity_type]
        matches = (
            []
            if attr is None
            else [
                idx
                for idx, e in enumerate(items)
                if getattr(e, id_attrs[s.entity_type]) == s.entity_id
                and getattr(e, attr) == s.current_value
            ]
        )
        if not matches:
            logger.warning(
                "Skipping stale suggestion for %s %s field %s",
                s.entity_type,
                s.entity_id,
                s.field,
            )
            result.skipped.append(s)
            continue

        for idx in matches:
            items[idx] = items[idx].model_copy(update={attr: s.suggested_value}, deep=True)
        result.applied.append(s)

    return result


__all__ = [
    "AppliedCorrections",
    "CorrectionSuggestion",
    "apply_suggestions",
    "suggest_corrections",
]

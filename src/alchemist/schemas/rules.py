# src/alchemist/schemas/rules.py
"""
@brief
Business-rule data model: five rule variants discriminated by ``type``.

@details
Each variant carries its own parameter record. Rules are pure configuration:
they are checked for structural completeness when constructed and are never
cross-checked against entity data here (that belongs to the downstream
allocation engine).
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from typing import Annotated, Any, Literal

from pydantic import Field, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError

from alchemist.errors import RuleError
from alchemist.schemas.base import _StrictBaseModel

GroupType = Literal["client", "worker"]
PatternTemplate = Literal["phaseConstraint", "skillRequirement", "priorityBoost", "custom"]

RULE_TYPES: tuple[str, ...] = (
    "coRun",
    "slotRestriction",
    "loadLimit",
    "phaseWindow",
    "patternMatch",
)


# ------------------------------------------------------------
# Parameter records
# ------------------------------------------------------------
class CoRunParams(_StrictBaseModel):
    """Tasks that must be scheduled within the same phase."""

    tasks: list[str] = Field(..., description="At least two distinct task IDs")

    @field_validator("tasks")
    @classmethod
    def _distinct_tasks(cls, value: list[str]) -> list[str]:
        unique = list(dict.fromkeys(t for t in value if t))
        if len(unique) < 2:
            raise ValueError("coRun requires at least 2 distinct task IDs")
        return unique


class SlotRestrictionParams(_StrictBaseModel):
    group_type: GroupType = Field(..., alias="groupType")
    group_name: str = Field(..., alias="groupName", min_length=1)
    min_common_slots: int = Field(..., alias="minCommonSlots", ge=1)


class LoadLimitParams(_StrictBaseModel):
    worker_group: str = Field(..., alias="workerGroup", min_length=1)
    max_slots_per_phase: int = Field(..., alias="maxSlotsPerPhase", ge=1)


class PhaseWindowParams(_StrictBaseModel):
    task_id: str = Field(..., alias="taskId", min_length=1)
    allowed_phases: list[int] = Field(..., alias="allowedPhases", min_length=1)

    @field_validator("allowed_phases")
    @classmethod
    def _ascending_phases(cls, value: list[int]) -> list[int]:
        return sorted(set(value))


class PatternMatchParams(_StrictBaseModel):
    pattern: str = Field(..., min_length=1, description="Regular expression")
    template: PatternTemplate
    additional_params: dict[str, Any] = Field(default_factory=dict, alias="additionalParams")

    @field_validator("pattern")
    @classmethod
    def _compilable(cls, value: str) -> str:
        try:
            re.compile(value)
        except re.error as e:
            raise ValueError(f"invalid regular expression: {e}") from e
        return value


# ------------------------------------------------------------
# Rule variants
# ------------------------------------------------------------
class _RuleBase(_StrictBaseModel):
    id: str = Field(..., min_length=1, description="Unique rule identifier")
    description: str = Field("", description="Human-readable summary")
    priority: int | None = Field(None, description="Optional relative priority")


class CoRunRule(_RuleBase):
    type: Literal["coRun"] = "coRun"
    parameters: CoRunParams


class SlotRestrictionRule(_RuleBase):
    type: Literal["slotRestriction"] = "slotRestriction"
    parameters: SlotRestrictionParams


class LoadLimitRule(_RuleBase):
    type: Literal["loadLimit"] = "loadLimit"
    parameters: LoadLimitParams


class PhaseWindowRule(_RuleBase):
    type: Literal["phaseWindow"] = "phaseWindow"
    parameters: PhaseWindowParams


class PatternMatchRule(_RuleBase):
    type: Literal["patternMatch"] = "patternMatch"
    parameters: PatternMatchParams


Rule = Annotated[
    CoRunRule | SlotRestrictionRule | LoadLimitRule | PhaseWindowRule | PatternMatchRule,
    Field(discriminator="type"),
]

RULE_ADAPTER: TypeAdapter[Any] = TypeAdapter(Rule)


def parse_rule(payload: Any) -> Rule:
    """
    @brief
    Validate a foreign rule payload (dict with ``type`` and ``parameters``).

    @raises
        RuleError
            If the type tag is unknown or the parameters are incomplete.
    """
    try:
        return RULE_ADAPTER.validate_python(payload)
    except PydanticValidationError as e:
        raise RuleError(
            message=f"Invalid rule payload: {e}",
            source="schemas.rules.parse_rule",
            suggested_action=f"Use one of the rule types {', '.join(RULE_TYPES)} with complete parameters.",
        ) from e


# ------------------------------------------------------------
# Ordered rule collection
# ------------------------------------------------------------
class RuleSet:
    """
    @brief
    Ordered collection of rules keyed by unique ``id``.

    @details
    Insertion order is preserved and is the export order. Deletion is by id.
    """

    def __init__(self, rules: Iterable[Rule] | None = None) -> None:
        self._rules: list[Rule] = []
        for rule in rules or []:
            self.add(rule)

    def add(self, rule: Rule) -> None:
        if self.get(rule.id) is not None:
            raise RuleError(
                message=f"Duplicate rule id: {rule.id}",
                source="RuleSet.add",
                suggested_action="Generate a fresh id or remove the existing rule first.",
            )
        self._rules.append(rule)

    def remove(self, rule_id: str) -> Rule:
        for idx, rule in enumerate(self._rules):
            if rule.id == rule_id:
                return self._rules.pop(idx)
        raise RuleError(
            message=f"Unknown rule id: {rule_id}",
            source="RuleSet.remove",
        )

    def get(self, rule_id: str) -> Rule | None:
        return next((r for r in self._rules if r.id == rule_id), None)

    def __iter__(self) -> Iterator[Rule]:
        return iter(list(self._rules))

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, rule_id: object) -> bool:
        return any(r.id == rule_id for r in self._rules)

    def to_list(self) -> list[dict[str, Any]]:
        return [r.model_dump(mode="json", by_alias=True) for r in self._rules]

    @classmethod
    def from_list(cls, items: Iterable[Any]) -> RuleSet:
        return cls(parse_rule(item) for item in items)


__all__ = [
    "CoRunParams",
    "CoRunRule",
    "LoadLimitParams",
    "LoadLimitRule",
    "PatternMatchParams",
    "PatternMatchRule",
    "PhaseWindowParams",
    "PhaseWindowRule",
    "RULE_TYPES",
    "Rule",
    "RuleSet",
    "SlotRestrictionParams",
    "SlotRestrictionRule",
    "parse_rule",
]

# src/alchemist/rules/builder.py
from __future__ import annotations

import json
import logging
import uuid
from collections.abc import Callable, Mapping
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from alchemist.dataloader.normalize import expand_phases, parse_list_cell
from alchemist.errors import RuleError
from alchemist.schemas.rules import (
    RULE_TYPES,
    CoRunRule,
    LoadLimitRule,
    PatternMatchRule,
    PhaseWindowRule,
    Rule,
    SlotRestrictionRule,
)

logger = logging.getLogger(__name__)


def parse_allowed_phases(value: Any) -> list[int]:
    """
    @brief
    Derive ``allowedPhases`` for a phase-window rule.

    @details
    Accepts a list of integers, a comma list (``"1,3,5"``) or an inclusive
    range (``"2-4"``). The result is ascending and non-empty.

    @raises
        RuleError
            If a token is not an integer or nothing remains after expansion.
    """
    # (1) Explicit list passes through after integer coercion
    if isinstance(value, (list, tuple)):
        try:
            phases = sorted({int(v) for v in value})
        except (TypeError, ValueError) as e:
            raise RuleError(
                message=f"allowedPhases must contain integers, got {list(value)!r}",
                source="rules.parse_allowed_phases",
            ) from e
    # (2) Text is expanded as a range or comma list
    else:
        text = str(value or "")
        try:
            phases = expand_phases(text)
        except ValueError as e:
            raise RuleError(
                message=f"Cannot parse allowedPhases {text!r}: {e}",
                source="rules.parse_allowed_phases",
                suggested_action="Use a comma list (1,3,5) or a range (1-5).",
            ) from e

    if not phases:
        raise RuleError(
            message=f"allowedPhases {value!r} expands to no phases",
            source="rules.parse_allowed_phases",
            suggested_action="Use a non-empty comma list or a range with start <= end.",
        )
    return phases


def _parse_additional_params(value: Any) -> dict[str, Any]:
    if value is None or value == "":
        return {}
    if isinstance(value, Mapping):
        return dict(value)
    try:
        parsed = json.loads(str(value))
    except json.JSONDecodeError as e:
        raise RuleError(
            message=f"additionalParams is not valid JSON: {e}",
            source="rules.RuleBuilder",
            suggested_action='Provide a JSON object, e.g. {"param1": "value1"}.',
        ) from e
    if not isinstance(parsed, dict):
        raise RuleError(
            message="additionalParams must be a JSON object",
            source="rules.RuleBuilder",
        )
    return parsed


class RuleBuilder:
    """
    @brief
    Builds typed rules from raw authoring input.

    @details
    The authoring form is a plain mapping using the canonical parameter
    names (``tasks``, ``groupType``, ``allowedPhases``...). Each rule type
    has its own builder method that derives parameters and a default
    description. Every failure is reported as ``RuleError``; nothing is
    added to a rule set here.
    """

    def __init__(self, id_factory: Callable[[], str] | None = None) -> None:
        self._id_factory = id_factory or (lambda: str(uuid.uuid4()))
        self._builders: dict[str, Callable[[Mapping[str, Any]], dict[str, Any]]] = {
            "coRun": self._co_run,
            "slotRestriction": self._slot_restriction,
            "loadLimit": self._load_limit,
            "phaseWindow": self._phase_window,
            "patternMatch": self._pattern_match,
        }

    def build(
        self,
        rule_type: str,
        form: Mapping[str, Any],
        *,
        rule_id: str | None = None,
        description: str | None = None,
        priority: int | None = None,
    ) -> Rule:
        """
        @brief
        Construct one rule of the requested type.

        @params
            rule_type : str
                One of ``RULE_TYPES``.
            form : Mapping[str, Any]
                Raw parameter values from the authoring flow.
            rule_id : str | None
                Explicit id; a UUID4 string is generated when omitted.
            description : str | None
                Overrides the generated description.
            priority : int | None
                Optional relative priority.

        @returns
            A validated rule instance.

        @raises
            RuleError
                Unknown type, invalid JSON parameters or incomplete structure.
        """
        # (1) Resolve the per-type builder
        builder = self._builders.get(rule_type)
        if builder is None:
            raise RuleError(
                message=f"Unknown rule type: {rule_type}",
                source="RuleBuilder.build",
                suggested_action=f"Use one of: {', '.join(RULE_TYPES)}",
            )

        # (2) Derive parameters and default description
        payload = builder(form)
        payload["id"] = rule_id or self._id_factory()
        if description:
            payload["description"] = description
        payload["priority"] = priority

        # (3) Validate against the typed model
        model = _MODELS[rule_type]
        try:
            rule = model.model_validate(payload)
        except PydanticValidationError as e:
            raise RuleError(
                message=f"Invalid {rule_type} rule: {e}",
                source="RuleBuilder.build",
                suggested_action="Complete all required rule parameters.",
            ) from e

        logger.debug("Built %s rule %s", rule_type, rule.id)
        return rule

    # ---------- Per-type parameter derivation ----------
    def _co_run(self, form: Mapping[str, Any]) -> dict[str, Any]:
        tasks = list(dict.fromkeys(str(t) for t in parse_list_cell(form.get("tasks"))))
        if len(tasks) < 2:
            raise RuleError(
                message=f"coRun requires at least 2 distinct task IDs, got {len(tasks)}",
                source="RuleBuilder._co_run",
                suggested_action="Select two or more different tasks.",
            )
        return {
            "type": "coRun",
            "parameters": {"tasks": tasks},
            "description": f"Tasks {', '.join(tasks)} must run together",
        }

    def _slot_restriction(self, form: Mapping[str, Any]) -> dict[str, Any]:
        group_type = form.get("groupType", "client")
        group_name = form.get("groupName", "")
        min_slots = form.get("minCommonSlots", 1)
        label = "Client" if group_type == "client" else "Worker"
        return {
            "type": "slotRestriction",
            "parameters": {
                "groupType": group_type,
                "groupName": group_name,
                "minCommonSlots": min_slots,
            },
            "description": f"{label} group {group_name} requires at least {min_slots} common slots",
        }

    def _load_limit(self, form: Mapping[str, Any]) -> dict[str, Any]:
        group = form.get("workerGroup", "")
        max_slots = form.get("maxSlotsPerPhase", 1)
        return {
            "type": "loadLimit",
            "parameters": {"workerGroup": group, "maxSlotsPerPhase": max_slots},
            "description": f"Worker group {group} has a maximum of {max_slots} slots per phase",
        }

    def _phase_window(self, form: Mapping[str, Any]) -> dict[str, Any]:
        task_id = form.get("taskId", "")
        raw = form.get("allowedPhases", "")
        phases = parse_allowed_phases(raw)
        shown = raw if isinstance(raw, str) else ", ".join(str(p) for p in phases)
        return {
            "type": "phaseWindow",
            "parameters": {"taskId": task_id, "allowedPhases": phases},
            "description": f"Task {task_id} can only run in phases {shown}",
        }

    def _pattern_match(self, form: Mapping[str, Any]) -> dict[str, Any]:
        pattern = form.get("pattern", "")
        template = form.get("template", "")
        return {
            "type": "patternMatch",
            "parameters": {
                "pattern": pattern,
                "template": template,
                "additionalParams": _parse_additional_params(form.get("additionalParams")),
            },
            "description": f"Pattern match rule: {pattern} with template {template}",
        }


_MODELS: dict[str, Any] = {
    "coRun": CoRunRule,
    "slotRestriction": SlotRestrictionRule,
    "loadLimit": LoadLimitRule,
    "phaseWindow": PhaseWindowRule,
    "patternMatch": PatternMatchRule,
}


def build_rule(rule_type: str, form: Mapping[str, Any], **kwargs: Any) -> Rule:
    """Thin facade over ``RuleBuilder().build``."""
    return RuleBuilder().build(rule_type, form, **kwargs)


__all__ = ["RuleBuilder", "build_rule", "parse_allowed_phases"]

# tests/rules/test_builder.py
from __future__ import annotations

import itertools
import uuid

import pytest

from alchemist.errors import RuleError
from alchemist.rules.builder import RuleBuilder, build_rule, parse_allowed_phases
from alchemist.schemas.rules import CoRunRule, PatternMatchRule, PhaseWindowRule


@pytest.fixture()
def builder() -> RuleBuilder:
    """Builder with predictable ids (rule-1, rule-2, ...)."""
    counter = itertools.count(1)
    return RuleBuilder(id_factory=lambda: f"rule-{next(counter)}")


# -----------------------------
# allowedPhases derivation
# -----------------------------
@pytest.mark.parametrize(
    "raw, expected",
    [
        ("2-4", [2, 3, 4]),
        (" 1 - 3 ", [1, 2, 3]),
        ("1,3,5", [1, 3, 5]),
        ("5, 1, 3, 1", [1, 3, 5]),
        ("7", [7]),
        ([3, 1, 2], [1, 2, 3]),
    ],
)
def test_parse_allowed_phases(raw, expected) -> None:
    assert parse_allowed_phases(raw) == expected


@pytest.mark.parametrize("raw", ["", "4-2", "1,x", ",,", None, ["a"]])
def test_parse_allowed_phases_rejects_bad_input(raw) -> None:
    with pytest.raises(RuleError):
        parse_allowed_phases(raw)


# -----------------------------
# Per-type construction
# -----------------------------
def test_co_run_from_comma_list(builder: RuleBuilder) -> None:
    # --- Act ---
    rule = builder.build("coRun", {"tasks": "T1, T2"})

    # --- Assert ---
    assert isinstance(rule, CoRunRule)
    assert rule.id == "rule-1"
    assert rule.parameters.tasks == ["T1", "T2"]
    assert rule.description == "Tasks T1, T2 must run together"


def test_co_run_needs_two_distinct_tasks(builder: RuleBuilder) -> None:
    with pytest.raises(RuleError) as e:
        builder.build("coRun", {"tasks": ["T1", "T1"]})
    assert "at least 2 distinct" in str(e.value)


def test_slot_restriction_description(builder: RuleBuilder) -> None:
    rule = builder.build(
        "slotRestriction", {"groupType": "worker", "groupName": "GroupA", "minCommonSlots": 2}
    )
    assert rule.description == "Worker group GroupA requires at least 2 common slots"
    assert rule.parameters.group_type == "worker"


def test_load_limit_description(builder: RuleBuilder) -> None:
    rule = builder.build("loadLimit", {"workerGroup": "GroupB", "maxSlotsPerPhase": 3})
    assert rule.description == "Worker group GroupB has a maximum of 3 slots per phase"


def test_phase_window_keeps_range_text_in_description(builder: RuleBuilder) -> None:
    rule = builder.build("phaseWindow", {"taskId": "T3", "allowedPhases": "2-4"})

    assert isinstance(rule, PhaseWindowRule)
    assert rule.parameters.allowed_phases == [2, 3, 4]
    assert rule.description == "Task T3 can only run in phases 2-4"


def test_pattern_match_parses_additional_params_json(builder: RuleBuilder) -> None:
    rule = builder.build(
        "patternMatch",
        {"pattern": "^T", "template": "priorityBoost", "additionalParams": '{"boost": 2}'},
    )

    assert isinstance(rule, PatternMatchRule)
    assert rule.parameters.additional_params == {"boost": 2}
    assert rule.description == "Pattern match rule: ^T with template priorityBoost"


@pytest.mark.parametrize("extra", ["{not json", "[1, 2]"])
def test_pattern_match_bad_additional_params(builder: RuleBuilder, extra: str) -> None:
    with pytest.raises(RuleError):
        builder.build(
            "patternMatch", {"pattern": "^T", "template": "custom", "additionalParams": extra}
        )


def test_incomplete_parameters_raise_rule_error(builder: RuleBuilder) -> None:
    with pytest.raises(RuleError):
        builder.build("loadLimit", {"workerGroup": ""})


def test_unknown_type_raises(builder: RuleBuilder) -> None:
    with pytest.raises(RuleError) as e:
        builder.build("precedenceOverride", {})
    assert "Unknown rule type" in str(e.value)


def test_explicit_id_description_and_priority(builder: RuleBuilder) -> None:
    rule = builder.build(
        "coRun",
        {"tasks": ["T1", "T2"]},
        rule_id="custom",
        description="Pair them",
        priority=3,
    )
    assert (rule.id, rule.description, rule.priority) == ("custom", "Pair them", 3)


def test_default_ids_are_uuid4() -> None:
    rule = build_rule("coRun", {"tasks": ["T1", "T2"]})
    assert uuid.UUID(rule.id).version == 4

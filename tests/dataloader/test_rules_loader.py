# tests/dataloader/test_rules_loader.py
from __future__ import annotations

import json
from pathlib import Path

import pytest

from alchemist.dataloader.rules_loader import RulesLoader
from alchemist.errors import DataError, RuleError
from alchemist.schemas.rules import CoRunRule, LoadLimitRule

RULES = [
    {"id": "r1", "type": "coRun", "parameters": {"tasks": ["T1", "T2"]}},
    {
        "id": "r2",
        "type": "loadLimit",
        "description": "GroupA cap",
        "priority": 2,
        "parameters": {"workerGroup": "GroupA", "maxSlotsPerPhase": 3},
    },
]


def test_load_yaml_list(tmp_path: Path) -> None:
    # --- Arrange ---
    p = tmp_path / "rules.yaml"
    p.write_text(
        "- id: r1\n"
        "  type: coRun\n"
        "  parameters:\n"
        "    tasks: [T1, T2]\n"
        "- id: r2\n"
        "  type: loadLimit\n"
        "  parameters: {workerGroup: GroupA, maxSlotsPerPhase: 3}\n",
        encoding="utf-8",
    )

    # --- Act ---
    rules = RulesLoader().load(p)

    # --- Assert ---
    assert [r.id for r in rules] == ["r1", "r2"]
    assert isinstance(rules.get("r1"), CoRunRule)
    assert isinstance(rules.get("r2"), LoadLimitRule)


def test_load_json_export_shape(tmp_path: Path) -> None:
    # A previously exported document can serve as a rules file
    p = tmp_path / "allocation_config.json"
    p.write_text(json.dumps({"clients": [], "rules": RULES}), encoding="utf-8")

    rules = RulesLoader().load(p)

    assert len(rules) == 2
    assert rules.get("r2").priority == 2


def test_empty_file_gives_empty_rule_set(tmp_path: Path) -> None:
    p = tmp_path / "rules.yml"
    p.write_text("", encoding="utf-8")

    assert len(RulesLoader().load(p)) == 0


def test_invalid_rule_raises_rule_error(tmp_path: Path) -> None:
    # --- Arrange ---
    p = tmp_path / "rules.json"
    bad = [{"id": "r1", "type": "coRun", "parameters": {"tasks": ["T1"]}}]
    p.write_text(json.dumps(bad), encoding="utf-8")

    # --- Act / Assert ---
    with pytest.raises(RuleError) as e:
        RulesLoader().load(p)

    # --- Assert ---
    assert "rules.json" in str(e.value)


def test_duplicate_rule_ids_raise_rule_error(tmp_path: Path) -> None:
    p = tmp_path / "rules.json"
    p.write_text(json.dumps([RULES[0], RULES[0]]), encoding="utf-8")

    with pytest.raises(RuleError):
        RulesLoader().load(p)


@pytest.mark.parametrize(
    "name, text",
    [
        ("rules.json", "{not json"),
        ("rules.yaml", "- id: [unclosed"),
        ("rules.json", '"just a string"'),
        ("rules.yaml", "- 1\n- 2\n"),
        ("rules.toml", "x = 1"),
    ],
)
def test_unreadable_or_misshaped_file_raises_data_error(tmp_path: Path, name, text) -> None:
    p = tmp_path / name
    p.write_text(text, encoding="utf-8")

    with pytest.raises(DataError):
        RulesLoader().load(p)


def test_missing_file_raises_data_error(tmp_path: Path) -> None:
    with pytest.raises(DataError) as e:
        RulesLoader().load(tmp_path / "none.yaml")
    assert "Rules file not found" in str(e.value)

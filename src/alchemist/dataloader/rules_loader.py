# src/alchemist/dataloader/rules_loader.py
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import yaml

from alchemist.errors import DataError, RuleError
from alchemist.schemas.rules import RuleSet

logger = logging.getLogger(__name__)


class RulesLoader:
    """
    @brief
    Reads a rules file (YAML or JSON) into a ``RuleSet``.

    @details
    The file holds either a top-level list of rule objects or a mapping
    with a ``rules`` key (the shape of an export document). Each rule uses
    the export layout: ``id``, ``type``, ``description``, ``parameters``
    and optional ``priority``.

    Failures:
        DataError  - missing/unreadable file, bad syntax, wrong root shape
        RuleError  - a rule object that does not describe a valid rule,
                     or a duplicate rule id
    """

    def load(self, path: Path) -> RuleSet:
        data = self._read(path)
        items = self._extract_items(data, path)

        try:
            rules = RuleSet.from_list(items)
        except RuleError as e:
            raise RuleError(
                message=f"Invalid rule in {path.name}: {e.args[0]}",
                source="RulesLoader.load",
                suggested_action=e.suggested_action or "Fix the rule definition and reload.",
            ) from e

        logger.info("RulesLoader OK: %d rule(s) from %s", len(rules), path)
        return rules

    def _read(self, path: Path) -> Any:
        if not isinstance(path, Path):
            raise DataError(
                message=f"Invalid path type: expected pathlib.Path, got {type(path).__name__}",
                source="RulesLoader._read",
            )
        if not path.exists():
            raise DataError(
                message=f"Rules file not found: {path}",
                source="RulesLoader._read",
                suggested_action="Verify rules_file in config.yaml or remove it.",
            )

        suffix = path.suffix.lower()
        try:
            with path.open("r", encoding="utf-8") as f:
                if suffix == ".json":
                    return json.load(f)
                if suffix in {".yaml", ".yml"}:
                    return yaml.safe_load(f)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise DataError(
                message=f"Rules file parsing failed: {e}",
                source="RulesLoader._read",
                suggested_action="Fix the file syntax.",
            ) from e
        except OSError as e:
            raise DataError(
                message=f"Unable to read rules file: {e}",
                source="RulesLoader._read",
                suggested_action="Check file permissions.",
            ) from e

        raise DataError(
            message=f"Unsupported rules file type: {path.suffix or '(none)'}",
            source="RulesLoader._read",
            suggested_action="Use .json, .yaml or .yml.",
        )

    def _extract_items(self, data: Any, path: Path) -> list[dict[str, Any]]:
        # Empty file: no rules
        if data is None:
            return []
        if isinstance(data, dict):
            data = data.get("rules", [])
        if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
            raise DataError(
                message=f"Rules file {path.name} must contain a list of rule objects",
                source="RulesLoader._extract_items",
                suggested_action="Use a top-level list, or a mapping with a 'rules' list.",
            )
        return data


__all__ = ["RulesLoader"]

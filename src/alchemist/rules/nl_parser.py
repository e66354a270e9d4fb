# src/alchemist/rules/nl_parser.py
"""
Keyword-based rule parser.

Turns a plain-English description into a rule without any external AI
service. Recognition is deliberately simple: it looks for trigger phrases
plus entity identifiers (TaskIDs, worker groups, client group tags) and
numbers mentioned in the text.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass

from alchemist.errors import RuleError
from alchemist.rules.builder import RuleBuilder
from alchemist.schemas.models import Client, Task, Worker
from alchemist.schemas.rules import Rule

logger = logging.getLogger(__name__)

_CO_RUN_PHRASES = ("run together", "co-run", "corun")
_PHASE_PHRASES = ("phase", "window")
_LOAD_PHRASES = ("load limit", "max load", "maximum load")
_SLOT_PHRASES = ("slot restriction", "common slots", "minimum slots")
_PHASE_RANGE_RE = re.compile(r"phase\s*(\d+)\s*-\s*(\d+)")
_MAX_IMPLICIT_PHASE = 10


@dataclass(frozen=True, slots=True)
class RuleParseResult:
    """
    Outcome of parsing one description.

    Fields:
        success: True if a rule was recognised and built.
        message: Human-readable explanation for the user.
        rule: The built rule, or None when nothing matched.
    """

    success: bool
    message: str
    rule: Rule | None = None


def _mentioned(candidates: Sequence[str], text: str) -> list[str]:
    seen: list[str] = []
    for value in candidates:
        if value and value.lower() in text and value not in seen:
            seen.append(value)
    return seen


def parse_rule_description(
    description: str,
    clients: Sequence[Client],
    workers: Sequence[Worker],
    tasks: Sequence[Task],
    *,
    builder: RuleBuilder | None = None,
) -> RuleParseResult:
    """
    @brief
    Build a rule from a natural-language description.

    @details
    Tries, in order: co-run, phase window, load limit, slot restriction.
    Returns an unsuccessful result (never raises) when no pattern matches
    or the matched parameters do not form a valid rule.
    """
    builder = builder or RuleBuilder()
    text = description.lower()

    # (1) Collect entity mentions and numbers
    task_ids = _mentioned([t.task_id for t in tasks], text)
    worker_groups = _mentioned([w.worker_group for w in workers], text)
    client_groups = _mentioned([c.group_tag for c in clients], text)
    numbers = [int(n) for n in re.findall(r"\d+", text)]

    try:
        # (2) Co-run
        if any(p in text for p in _CO_RUN_PHRASES) and len(task_ids) >= 2:
            rule = builder.build("coRun", {"tasks": task_ids})
            return RuleParseResult(True, "Created a co-run rule for the specified tasks.", rule)

        # (3) Phase window
        if any(p in text for p in _PHASE_PHRASES) and len(task_ids) == 1 and numbers:
            range_match = _PHASE_RANGE_RE.search(text)
            if range_match:
                phases = f"{range_match.group(1)}-{range_match.group(2)}"
            else:
                phases = ",".join(
                    str(n) for n in numbers if 1 <= n <= _MAX_IMPLICIT_PHASE
                )
            if phases:
                rule = builder.build(
                    "phaseWindow", {"taskId": task_ids[0], "allowedPhases": phases}
                )
                return RuleParseResult(
                    True, "Created a phase window rule for the specified task.", rule
                )

        # (4) Load limit
        if any(p in text for p in _LOAD_PHRASES) and len(worker_groups) == 1 and numbers:
            max_load = next((n for n in numbers if n >= 1), 1)
            rule = builder.build(
                "loadLimit", {"workerGroup": worker_groups[0], "maxSlotsPerPhase": max_load}
            )
            return RuleParseResult(
                True, "Created a load limit rule for the specified worker group.", rule
            )

        # (5) Slot restriction (worker group wins over client group)
        if (
            any(p in text for p in _SLOT_PHRASES)
            and (len(worker_groups) == 1 or len(client_groups) == 1)
            and numbers
        ):
            min_slots = next((n for n in numbers if n >= 1), 1)
            if len(worker_groups) == 1:
                group_type, group_name = "worker", worker_groups[0]
            else:
                group_type, group_name = "client", client_groups[0]
            rule = builder.build(
                "slotRestriction",
                {"groupType": group_type, "groupName": group_name, "minCommonSlots": min_slots},
            )
            return RuleParseResult(
                True,
                f"Created a slot restriction rule for the specified {group_type} group.",
                rule,
            )
    except RuleError as e:
        logger.info("Recognised rule pattern but construction failed: %s", e)
        return RuleParseResult(False, f"Could not build the rule: {e.args[0]}")

    return RuleParseResult(
        False,
        "I couldn't create a rule from your description. "
        "Please try providing more details or use different phrasing.",
    )


__all__ = ["RuleParseResult", "parse_rule_description"]

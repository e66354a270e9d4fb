# src/alchemist/dataloader/normalize.py
"""
Cell-level normalization shared by the entity loaders and the rule builder.

List cells accept a JSON array (``["a", "b"]``) or a comma list (``a, b``).
Phase cells additionally accept an inclusive ``start-end`` range.
"""

from __future__ import annotations

import json
import re
from typing import Any

_RANGE_RE = re.compile(r"^\s*(\d+)\s*-\s*(\d+)\s*$")


def expand_phases(value: str) -> list[int]:
    """
    @brief
    Expand a phase expression into an explicit ascending integer sequence.

    @details
    ``"2-4"`` becomes ``[2, 3, 4]`` (both ends inclusive; an inverted range
    is empty). Otherwise the text is treated as a comma list: blank tokens
    are ignored, the result is sorted and de-duplicated.

    @raises
        ValueError
            If a comma-list token is not an integer.
    """
    match = _RANGE_RE.match(value)
    if match:
        start, end = int(match.group(1)), int(match.group(2))
        return list(range(start, end + 1))

    phases: set[int] = set()
    for token in value.split(","):
        token = token.strip()
        if not token:
            continue
        phases.add(int(token))
    return sorted(phases)


def _number_or_raw(token: str) -> Any:
    try:
        return int(token)
    except ValueError:
        pass
    try:
        return float(token)
    except ValueError:
        return token


def parse_list_cell(value: Any) -> list[Any]:
    """Normalize a list-valued cell into a Python list of stripped strings."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    text = str(value).strip()
    if not text:
        return []
    if text.startswith("[") and text.endswith("]"):
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError:
            text = text[1:-1]
        else:
            if isinstance(parsed, list):
                return parsed
    return [item.strip() for item in text.split(",") if item.strip()]


def parse_numeric_list_cell(value: Any) -> list[Any]:
    """
    Like :func:`parse_list_cell` but converts numeric tokens to numbers.

    Tokens that do not parse are kept verbatim so the validator can report
    them as malformed list elements.
    """
    items = parse_list_cell(value)
    return [_number_or_raw(item) if isinstance(item, str) else item for item in items]


def parse_phase_cell(value: Any) -> list[Any] | str:
    """
    @brief
    Normalize a PreferredPhases cell.

    @details
    Handles JSON arrays, ``start-end`` ranges and comma lists. A value that
    looks like a range but cannot be expanded is returned unchanged as a
    string so the validator flags it as an unexpected format.
    """
    if isinstance(value, list):
        return value
    if value is None:
        return []
    text = str(value).strip()
    if not text:
        return []
    if _RANGE_RE.match(text):
        return expand_phases(text)
    if "-" in text and not text.startswith("["):
        return text
    return parse_numeric_list_cell(text)


__all__ = [
    "expand_phases",
    "parse_list_cell",
    "parse_numeric_list_cell",
    "parse_phase_cell",
]

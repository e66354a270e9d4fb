# tests/dataloader/test_normalize.py
from __future__ import annotations

import pytest

from alchemist.dataloader.normalize import (
    expand_phases,
    parse_list_cell,
    parse_numeric_list_cell,
    parse_phase_cell,
)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("2-4", [2, 3, 4]),
        ("3-3", [3]),
        ("4-2", []),
        ("1,3,5", [1, 3, 5]),
        ("3, 1, 3", [1, 3]),
        ("", []),
    ],
)
def test_expand_phases(text: str, expected: list[int]) -> None:
    assert expand_phases(text) == expected


def test_expand_phases_rejects_non_integers() -> None:
    with pytest.raises(ValueError):
        expand_phases("1,two")


@pytest.mark.parametrize(
    "cell, expected",
    [
        ('["a", "b"]', ["a", "b"]),
        ("a, b ,c", ["a", "b", "c"]),
        ("[a, b]", ["a", "b"]),
        ("", []),
        (None, []),
        (["x"], ["x"]),
    ],
)
def test_parse_list_cell(cell, expected) -> None:
    assert parse_list_cell(cell) == expected


def test_parse_numeric_list_keeps_unparseable_tokens() -> None:
    assert parse_numeric_list_cell("1, 2.5, x") == [1, 2.5, "x"]
    assert parse_numeric_list_cell("[1, 2]") == [1, 2]


@pytest.mark.parametrize(
    "cell, expected",
    [
        ("1-3", [1, 2, 3]),
        ("[2, 4]", [2, 4]),
        ("1,3", [1, 3]),
        ("", []),
        ("1-x", "1-x"),
    ],
)
def test_parse_phase_cell(cell, expected) -> None:
    assert parse_phase_cell(cell) == expected

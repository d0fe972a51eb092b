from __future__ import annotations

import pytest

from modal_engine.buffer import BufferDocument, Selection, text_between
from modal_engine.errors import InvalidCommandArguments, InvalidPattern
from modal_engine.selectors import BetweenArgs, select_between


def select(text: str, selection: Selection, **args: object) -> Selection:
    document = BufferDocument.from_text(text)
    return select_between(document, selection, BetweenArgs.from_args(args))


def selected_text(text: str, selection: Selection) -> str:
    return text_between(BufferDocument.from_text(text), selection.start, selection.end)


def test_selects_between_parentheses() -> None:
    text = "call(arg1, arg2)"

    result = select(text, Selection.caret((0, 13)), **{"from": "(", "to": ")"})

    assert selected_text(text, result) == "arg1, arg2"


def test_inclusive_folds_delimiters_in() -> None:
    text = "call(arg1, arg2)"

    result = select(
        text, Selection.caret((0, 13)), **{"from": "(", "to": ")", "inclusive": True}
    )

    assert selected_text(text, result) == "(arg1, arg2)"


def test_direction_is_preserved() -> None:
    result = select(
        "call(arg1, arg2)", Selection((0, 14), (0, 12)), **{"from": "(", "to": ")"}
    )

    assert result == Selection((0, 15), (0, 5))
    assert result.is_reversed


def test_missing_delimiter_falls_back_to_scope_bounds() -> None:
    result = select("no brackets here", Selection.caret((0, 5)), **{"from": "[", "to": "]"})

    assert result == Selection((0, 0), (0, 16))


def test_omitted_side_keeps_current_bound() -> None:
    result = select("key = value;", Selection.caret((0, 8)), to=";")

    assert result == Selection((0, 8), (0, 11))


def test_no_delimiters_leaves_selection_unchanged() -> None:
    origin = Selection((0, 1), (0, 3))

    assert select("abcdef", origin) is origin


def test_line_scope_versus_document_scope() -> None:
    text = "fn(\n  body\n)"
    origin = Selection.caret((1, 3))

    line_only = select(text, origin, **{"from": "(", "to": ")"})
    whole = select(text, origin, **{"from": "(", "to": ")", "docScope": True})

    assert line_only == Selection((1, 0), (1, 6))
    assert whole == Selection((0, 3), (2, 0))


def test_regex_left_delimiter_uses_last_match() -> None:
    result = select("a1 b22 c333 x", Selection.caret((0, 12)), **{"from": r"\d+", "regex": True})

    assert result == Selection((0, 11), (0, 12))


def test_case_sensitivity() -> None:
    insensitive = select("aXbxc", Selection.caret((0, 4)), **{"from": "X"})
    sensitive = select("aXbxc", Selection.caret((0, 4)), **{"from": "X", "caseSensitive": True})

    assert insensitive.start == (0, 4)
    assert sensitive.start == (0, 2)


def test_invalid_regex_raises() -> None:
    with pytest.raises(InvalidPattern):
        select("text", Selection.caret((0, 2)), **{"from": "(", "regex": True})


@pytest.mark.parametrize(
    "raw",
    [{"from": 1}, {"to": ["x"]}, {"inclusive": "yes"}, {"docScope": 1}],
)
def test_between_args_validation(raw: dict) -> None:
    with pytest.raises(InvalidCommandArguments):
        BetweenArgs.from_args(raw)

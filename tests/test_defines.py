from __future__ import annotations

from pathlib import Path

import pytest

from svls.linter import build_defines, parse_define, resolve_include_paths, unescape_literal
from svls.model import MacroDefinition


def test_parse_define_without_value() -> None:
    assert parse_define("DEBUG") == MacroDefinition("DEBUG", None)


def test_parse_define_with_plain_value() -> None:
    assert parse_define("WIDTH=8") == MacroDefinition("WIDTH", "8")


def test_parse_define_with_quoted_value() -> None:
    assert parse_define('NAME="a b"') == MacroDefinition("NAME", "a b")


def test_parse_define_splits_on_first_equals() -> None:
    assert parse_define("EXPR=a=b") == MacroDefinition("EXPR", "a=b")


def test_parse_define_empty_value_is_distinct_from_no_value() -> None:
    assert parse_define("EMPTY=") == MacroDefinition("EMPTY", "")
    assert parse_define("EMPTY=").value is not None
    assert parse_define("EMPTY").value is None


def test_parse_define_invalid_escape_drops_value() -> None:
    assert parse_define(r'NAME="a\qb"') == MacroDefinition("NAME", None)
    assert parse_define("NAME=trailing\\") == MacroDefinition("NAME", None)


def test_unescape_literal() -> None:
    assert unescape_literal(r'"tab\there"') == "tab\there"
    assert unescape_literal(r"'it\'s'") == "it's"
    assert unescape_literal(r"back\\slash") == "back\\slash"
    assert unescape_literal(r"\u{41}\u{1F600}") == "A\U0001F600"
    assert unescape_literal('"unbalanced') == '"unbalanced'
    for bad in (r"\x41", r"\u41", r"\u{zz}", r"\u{41"):
        with pytest.raises(ValueError):
            unescape_literal(bad)


def test_build_defines_scenario() -> None:
    assert build_defines(["WIDTH=8", "DEBUG"]) == {"WIDTH": "8", "DEBUG": None}


def test_build_defines_later_entry_wins() -> None:
    assert build_defines(["A=1", "A=2"]) == {"A": "2"}


def test_resolve_include_paths_joins_root() -> None:
    root = Path("/work/proj")
    assert resolve_include_paths(root, ["include", "rtl/pkg"]) == [
        Path("/work/proj/include"),
        Path("/work/proj/rtl/pkg"),
    ]
    assert resolve_include_paths(Path(""), ["include"]) == [Path("include")]


def test_macro_definition_as_predefine() -> None:
    assert MacroDefinition("A").as_predefine() == "A"
    assert MacroDefinition("A", "").as_predefine() == "A="
    assert MacroDefinition("A", "8").as_predefine() == "A=8"

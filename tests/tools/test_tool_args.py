"""Tests for fontspine.tools.args."""

from pathlib import Path

from fontspine.tools.args import flatten_args, options_to_args


class TestOptionsToArgs:
    def test_short_and_long_keys(self):
        assert options_to_args({"mono": True, "o": "x"}) == ["--mono", "-o", "x"]

    def test_false_and_none_omitted(self):
        assert options_to_args({"term": False}) == []
        assert options_to_args({"italize": None, "pwid": False}) == []

    def test_values_stringified_in_order(self):
        args = options_to_args({"main": Path("a.ttf"), "asian": "b.ttf", "italize": True, "family": "Sarasa Mono"})
        assert args == ["--main", "a.ttf", "--asian", "b.ttf", "--italize", "--family", "Sarasa Mono"]

    def test_numbers(self):
        assert options_to_args({"jobs": 4}) == ["--jobs", "4"]


class TestFlattenArgs:
    def test_nested_groups(self):
        assert flatten_args("otfccbuild", ["-o", "out.ttf"], [["-k", "-s"]], None) == [
            "otfccbuild",
            "-o",
            "out.ttf",
            "-k",
            "-s",
        ]

    def test_tuples_paths_and_none(self):
        assert flatten_args(("7z", "a"), [Path("x.7z"), None], []) == ["7z", "a", "x.7z"]

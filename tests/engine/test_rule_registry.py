"""Tests for fontspine.engine.rules and fontspine.engine.keys."""

import pytest

from fontspine.core.errors import DuplicateRuleError, UnknownRuleError
from fontspine.engine import Artifact, RuleRegistry, TaskKey


@pytest.fixture
def rules():
    rules = RuleRegistry()

    @rules.oracle("version")
    def version(ctx):
        """Project version"""
        return "1.0.0"

    @rules.task("kanji0")
    async def kanji0(ctx, region, style):
        return None

    @rules.file("prod", lambda paths, family, region, style: f"out/ttf/{family}-{region}-{style}.ttf")
    async def prod(ctx, out, family, region, style):
        """Final production font.

        Longer description that is not listed.
        """

    @rules.phony("all", description="Everything")
    async def build_all(ctx):
        pass

    return rules


class TestRegistry:
    def test_lookup(self, rules):
        assert rules.lookup("kanji0").kind == "task"
        assert "prod" in rules
        assert rules.has("version")

    def test_unknown_rule(self, rules):
        with pytest.raises(UnknownRuleError):
            rules.lookup("pass3")

    def test_duplicate_rule(self, rules):
        with pytest.raises(DuplicateRuleError):

            @rules.task("kanji0")
            def again(ctx):
                pass

    def test_source_rule_always_registered(self):
        assert RuleRegistry().list_rules() == [("source", "source")]

    def test_list_rules_sorted_and_filtered(self, rules):
        assert rules.list_rules("file") == [("file", "prod")]
        assert rules.list_rules() == [
            ("file", "prod"),
            ("oracle", "version"),
            ("phony", "all"),
            ("source", "source"),
            ("task", "kanji0"),
        ]
        assert len(rules) == 5

    def test_descriptions(self, rules):
        described = {row["stage"]: row["description"] for row in rules.list_with_metadata()}
        assert described["version"] == "Project version"
        assert described["prod"] == "Final production font."
        assert described["all"] == "Everything"
        assert described["kanji0"] == ""

    def test_target_from_stage_name(self, rules):
        target = rules.target("kanji0", "cl", "regular")
        assert target.rule is rules.lookup("kanji0")
        assert target.params == ("cl", "regular")


class TestKeys:
    def test_key_string(self, rules):
        target = rules.lookup("prod")("mono", "cl", "regular")
        assert target.key == TaskKey("prod", ("mono", "cl", "regular"))
        assert str(target) == "prod::mono::cl::regular"

    def test_parameterless_key(self, rules):
        assert str(rules.lookup("version")().key) == "version"

    def test_equal_requests_share_key(self, rules):
        kanji0 = rules.lookup("kanji0")
        assert kanji0("cl", "regular").key == kanji0("cl", "regular").key
        assert kanji0("cl", "regular").key != kanji0("sc", "regular").key

    def test_key_to_dict(self):
        assert TaskKey("pass1", ("mono", "cl", "bold")).to_dict() == {
            "stage": "pass1",
            "params": ["mono", "cl", "bold"],
        }

    def test_artifact(self, tmp_path):
        artifact = Artifact(tmp_path / "kanji0" / "cl-regular.ttf")
        assert artifact.name == "cl-regular"
        assert artifact.dir == tmp_path / "kanji0"
        assert artifact.sibling("cl-regular.otd") == tmp_path / "kanji0" / "cl-regular.otd"
        assert artifact.full == str(tmp_path / "kanji0" / "cl-regular.ttf")

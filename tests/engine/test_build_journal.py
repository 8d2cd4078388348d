"""
Tests for fontspine.engine.journal and incremental rebuilds.

Tests cover:
- Loading missing, corrupt and foreign journal files
- Saving and reloading entries
- Skipping up-to-date tasks on a second run
- Re-running tasks whose recorded inputs changed
- Early cutoff when a re-run produces the same value
"""

import json

import pytest

from fontspine.core.errors import DependencyFailedError
from fontspine.engine import BuildContext, DependencyRecord, Journal, JournalEntry, RuleRegistry
from fontspine.engine.journal import JOURNAL_FORMAT


class TestJournalFile:
    """Persistence of the journal."""

    def test_missing_file_is_empty(self, tmp_path):
        journal = Journal.load(tmp_path / "journal.json")
        assert len(journal) == 0
        assert journal.path == tmp_path / "journal.json"

    def test_corrupt_file_is_empty(self, tmp_path):
        path = tmp_path / "journal.json"
        path.write_text("{ truncated")
        assert len(Journal.load(path)) == 0

    def test_other_format_is_ignored(self, tmp_path):
        path = tmp_path / "journal.json"
        path.write_text(json.dumps({"format": JOURNAL_FORMAT + 1, "entries": {"a": {}}}))
        assert len(Journal.load(path)) == 0

    def test_bad_entries_are_skipped(self, tmp_path):
        path = tmp_path / "journal.json"
        good = {"stage": "a", "params": [], "fingerprint": "f"}
        path.write_text(json.dumps({"format": JOURNAL_FORMAT, "entries": {"a": good, "b": {"params": []}}}))
        journal = Journal.load(path)
        assert "a" in journal
        assert "b" not in journal

    def test_save_and_reload(self, tmp_path):
        path = tmp_path / "build" / "journal.json"
        journal = Journal(path)
        entry = JournalEntry(
            stage="pass1",
            params=["mono", "cl", "regular"],
            fingerprint="abc",
            deps=[DependencyRecord("config", [], "def", 0), DependencyRecord("as0", ["mono", "regular"], "123", 1)],
        )
        journal.record("pass1::mono::cl::regular", entry)
        journal.save()

        loaded = Journal.load(path)
        assert loaded.get("pass1::mono::cl::regular") == entry
        assert not path.with_name("journal.json.tmp").exists()

    def test_in_memory_save_is_noop(self):
        Journal().save()

    def test_other_definition_is_ignored(self, tmp_path):
        path = tmp_path / "journal.json"
        journal = Journal(path, definition="stages-v1")
        journal.record("a", JournalEntry("a", [], "f"))
        journal.save()

        assert "a" in Journal.load(path, "stages-v1")
        reloaded = Journal.load(path, "stages-v2")
        assert len(reloaded) == 0
        assert reloaded.definition == "stages-v2"

    def test_discard(self):
        journal = Journal()
        journal.record("a", JournalEntry("a", [], "f"))
        journal.discard("a")
        journal.discard("a")
        assert "a" not in journal


@pytest.fixture
def graph():
    """A small graph: ``setting`` oracle -> ``derived`` task -> ``written`` file."""
    rules = RuleRegistry()
    state = {"setting": 1, "derived_calls": 0, "written_calls": 0}

    @rules.oracle("setting")
    def setting(ctx):
        return state["setting"]

    @rules.task("derived")
    async def derived(ctx):
        state["derived_calls"] += 1
        value = await ctx.need(setting)
        return "odd" if value % 2 else "even"

    @rules.file("written", lambda paths: "build/written.txt")
    async def written(ctx, out):
        state["written_calls"] += 1
        out.path.write_text(await ctx.need(derived))

    return rules, state


def run_twice(settings, rules, target, between=None):
    journal = Journal(settings.resolve("build/journal.json"))
    first = BuildContext(settings, rules, journal=journal)
    first.run(target)
    if between is not None:
        between()
    second = BuildContext(settings, rules, journal=Journal.load(journal.path))
    second.run(target)
    return first, second


class TestIncremental:
    """Second runs skip work whose inputs are unchanged."""

    def test_second_run_skips_everything(self, settings, graph):
        rules, state = graph
        first, second = run_twice(settings, rules, rules.lookup("written"))

        assert sorted(first.report.executed) == ["derived", "written"]
        assert second.report.executed == []
        assert sorted(second.report.skipped) == ["derived", "written"]
        assert state["derived_calls"] == 1
        assert state["written_calls"] == 1

    def test_skipped_task_restores_value(self, settings, graph):
        rules, _ = graph
        journal = Journal()
        BuildContext(settings, rules, journal=journal).run(rules.lookup("derived"))
        assert BuildContext(settings, rules, journal=journal).run(rules.lookup("derived")) == "odd"

    def test_changed_oracle_reruns_dependents(self, settings, graph):
        rules, state = graph

        def change():
            state["setting"] = 2

        _, second = run_twice(settings, rules, rules.lookup("written"), change)

        assert sorted(second.report.executed) == ["derived", "written"]
        assert settings.resolve("build/written.txt").read_text() == "even"

    def test_same_value_stops_propagation(self, settings, graph):
        rules, state = graph

        def change():
            state["setting"] = 3

        _, second = run_twice(settings, rules, rules.lookup("written"), change)

        assert second.report.executed == ["derived"]
        assert second.report.skipped == ["written"]
        assert state["written_calls"] == 1

    def test_deleted_output_is_rebuilt(self, settings, graph):
        rules, _ = graph
        output = settings.resolve("build/written.txt")

        _, second = run_twice(settings, rules, rules.lookup("written"), output.unlink)

        assert second.report.executed == ["written"]
        assert output.read_text() == "odd"

    def test_touched_source_reruns_reader(self, settings):
        rules = RuleRegistry()
        source = settings.root / "recipe.js"
        source.write_text("// v1")
        calls = []

        @rules.task("reader")
        async def reader(ctx):
            await ctx.need(ctx.source("recipe.js"))
            calls.append(1)

        def touch():
            source.write_text("// version 2")

        run_twice(settings, rules, rules.lookup("reader"), touch)
        assert len(calls) == 2

    def test_removed_rule_invalidates_entry(self, settings):
        journal = Journal()
        journal.record(
            "task",
            JournalEntry("task", [], "f", value=1, deps=[DependencyRecord("gone", [], "x")]),
        )
        rules = RuleRegistry()

        @rules.task("task")
        def task(ctx):
            return 2

        assert BuildContext(settings, rules, journal=journal).run(task) == 2

    def test_journal_saved_after_failure(self, settings):
        rules = RuleRegistry()

        @rules.task("good")
        def good(ctx):
            return 1

        @rules.task("bad")
        def bad(ctx):
            raise RuntimeError("x")

        path = settings.resolve("build/journal.json")
        with pytest.raises(DependencyFailedError):
            BuildContext(settings, rules, journal=Journal(path)).run(good, bad)

        reloaded = Journal.load(path)
        assert "good" in reloaded
        assert "bad" not in reloaded

    def test_changed_definition_reruns_everything(self, settings, graph):
        rules, state = graph
        path = settings.resolve(settings.journal_file)
        BuildContext(settings, rules, definition="stages-v1").run(rules.lookup("written"))

        same = BuildContext(settings, rules, definition="stages-v1")
        same.run(rules.lookup("written"))
        assert same.report.executed == []

        edited = BuildContext(settings, rules, definition="stages-v2")
        edited.run(rules.lookup("written"))
        assert sorted(edited.report.executed) == ["derived", "written"]
        assert state["written_calls"] == 2
        assert "written" in Journal.load(path, "stages-v2")

"""Incremental task engine: rules, keys, journal and the build context."""

from fontspine.engine.context import BuildContext, BuildReport, TaskEvent
from fontspine.engine.journal import DependencyRecord, Journal, JournalEntry
from fontspine.engine.keys import Artifact, Target, TaskKey
from fontspine.engine.rules import FileRule, Oracle, Phony, Rule, RuleRegistry, SourceFile, TaskRule

__all__ = [
    "Artifact",
    "BuildContext",
    "BuildReport",
    "DependencyRecord",
    "FileRule",
    "Journal",
    "JournalEntry",
    "Oracle",
    "Phony",
    "Rule",
    "RuleRegistry",
    "SourceFile",
    "Target",
    "TaskEvent",
    "TaskKey",
    "TaskRule",
]

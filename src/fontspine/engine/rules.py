"""Rule kinds and the rule registry.

Manifesto:
    The dependency graph must be statically inspectable. Instead of
    closures that create tasks on the fly, every stage is a named rule in
    a :class:`RuleRegistry`; calling a rule with parameter values yields a
    :class:`~fontspine.engine.keys.Target` whose key is structural
    (stage + params). The registry can list every stage, and the journal
    can turn a recorded ``(stage, params)`` back into a target.

ARCHITECTURE
────────────
::

    RuleRegistry
      ├── .oracle(name)          ─ once-per-run value (config, version)
      ├── .task(stage)           ─ journaled action, JSON-able result
      ├── .file(stage, path_fn)  ─ journaled action producing one file
      ├── .phony(name)           ─ always-run entry point
      ├── .lookup(stage)         ─ stage name → rule
      └── .list_rules()          ─ (kind, stage) pairs

    SourceFile ("source")        ─ pre-existing input file, registered
                                   in every registry

Rule actions receive the :class:`~fontspine.engine.context.BuildContext`
first; file actions also receive the output :class:`Artifact`::

    rules = RuleRegistry()

    @rules.file("non-kanji0", lambda paths, region, style: paths.build / "non-kanji0" / f"{region}-{style}.ttf")
    async def non_kanji(ctx, out, region, style):
        otd = await ctx.need(shs_otd(region, style))
        ...

    target = non_kanji("cl", "regular")

Tags:
    fontspine, engine, registry, rules, task-graph

Doc-Types:
    api-reference
"""

from __future__ import annotations

import inspect
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any

from fontspine.core.errors import DuplicateRuleError, MissingOutputError, MissingSourceError, UnknownRuleError
from fontspine.engine.keys import Artifact, Target

if TYPE_CHECKING:
    from fontspine.engine.context import BuildContext
    from fontspine.engine.journal import JournalEntry

PathFunction = Callable[..., Path]


async def _invoke(action: Callable[..., Any], *args: Any) -> Any:
    result = action(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


class Rule:
    """Base class of every rule kind."""

    kind = "rule"
    journaled = True

    def __init__(self, stage: str, action: Callable[..., Any], description: str | None = None):
        self.stage = stage
        self.action = action
        self.description = description or (inspect.getdoc(action) or "").split("\n", 1)[0]

    def __call__(self, *params: Any) -> Target:
        return Target(self, tuple(params))

    def output_path(self, ctx: BuildContext, params: tuple[Any, ...]) -> Path | None:
        return None

    async def execute(self, ctx: BuildContext, target: Target) -> Any:
        return await _invoke(self.action, ctx, *target.params)

    def restore(self, ctx: BuildContext, target: Target, entry: JournalEntry) -> Any:
        """Result of a task skipped as up to date."""
        return entry.value

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.stage!r})"


class Oracle(Rule):
    """A read-only value computed at most once per run.

    Oracles are not journaled: they are recomputed every run and their
    fingerprint is the hash of the value, so a changed config invalidates
    exactly the tasks that read it.
    """

    kind = "oracle"
    journaled = False


class TaskRule(Rule):
    """A journaled action whose result is a JSON-compatible value (or ``None``)."""

    kind = "task"


class Phony(Rule):
    """An entry point that always runs; its dependencies still skip."""

    kind = "phony"
    journaled = False


class FileRule(Rule):
    """A journaled action that produces exactly one file.

    ``path_fn(paths, *params)`` returns the canonical output path; relative
    paths resolve against the project root. The output directory exists
    before the action runs, and an action that returns without writing the
    file fails the task.
    """

    kind = "file"

    def __init__(
        self,
        stage: str,
        path_fn: PathFunction,
        action: Callable[..., Any],
        description: str | None = None,
    ):
        super().__init__(stage, action, description)
        self.path_fn = path_fn

    def output_path(self, ctx: BuildContext, params: tuple[Any, ...]) -> Path:
        return ctx.resolve(self.path_fn(ctx.paths, *params))

    async def execute(self, ctx: BuildContext, target: Target) -> Artifact:
        out = Artifact(self.output_path(ctx, target.params))
        out.dir.mkdir(parents=True, exist_ok=True)
        await _invoke(self.action, ctx, out, *target.params)
        if not out.path.exists():
            raise MissingOutputError(out.full, key=str(target.key))
        return out

    def restore(self, ctx: BuildContext, target: Target, entry: JournalEntry) -> Artifact:
        return Artifact(self.output_path(ctx, target.params))


class SourceFile(Rule):
    """A file that must exist before the build; never produced by a task."""

    kind = "source"
    journaled = False

    def __init__(self) -> None:
        super().__init__("source", self._check, "Pre-existing input file")

    @staticmethod
    def _check(ctx: BuildContext, relative: str) -> Artifact:
        path = ctx.resolve(relative)
        if not path.is_file():
            raise MissingSourceError(str(path))
        return Artifact(path)


class RuleRegistry:
    """Stage name → rule lookup.

    Example:
        >>> rules = RuleRegistry()
        >>> @rules.oracle("dep::version")
        ... def version(ctx):
        ...     return "1.0.0"
        >>> rules.lookup("dep::version") is version
        True
    """

    def __init__(self) -> None:
        self._rules: dict[str, Rule] = {}
        self.source = self.register(SourceFile())

    def register(self, rule: Rule) -> Rule:
        """Register a rule.

        Raises:
            DuplicateRuleError: If the stage name is taken
        """
        if rule.stage in self._rules:
            raise DuplicateRuleError(rule.stage)
        self._rules[rule.stage] = rule
        return rule

    def oracle(self, name: str, description: str | None = None) -> Callable[[Callable[..., Any]], Oracle]:
        def decorator(action: Callable[..., Any]) -> Oracle:
            return self.register(Oracle(name, action, description))  # type: ignore[return-value]

        return decorator

    def task(self, stage: str, description: str | None = None) -> Callable[[Callable[..., Any]], TaskRule]:
        def decorator(action: Callable[..., Any]) -> TaskRule:
            return self.register(TaskRule(stage, action, description))  # type: ignore[return-value]

        return decorator

    def file(
        self,
        stage: str,
        path_fn: PathFunction,
        description: str | None = None,
    ) -> Callable[[Callable[..., Any]], FileRule]:
        def decorator(action: Callable[..., Any]) -> FileRule:
            return self.register(FileRule(stage, path_fn, action, description))  # type: ignore[return-value]

        return decorator

    def phony(self, name: str, description: str | None = None) -> Callable[[Callable[..., Any]], Phony]:
        def decorator(action: Callable[..., Any]) -> Phony:
            return self.register(Phony(name, action, description))  # type: ignore[return-value]

        return decorator

    def lookup(self, stage: str) -> Rule:
        """Get the rule registered for ``stage``.

        Raises:
            UnknownRuleError: If no rule has that stage name
        """
        try:
            return self._rules[stage]
        except KeyError:
            raise UnknownRuleError(stage) from None

    def has(self, stage: str) -> bool:
        return stage in self._rules

    def target(self, stage: str, *params: Any) -> Target:
        """Build a target from a stage name (journal replay, CLI)."""
        return self.lookup(stage)(*params)

    def list_rules(self, kind: str | None = None) -> list[tuple[str, str]]:
        """List ``(kind, stage)`` pairs, optionally filtered by kind."""
        return sorted((rule.kind, stage) for stage, rule in self._rules.items() if kind is None or rule.kind == kind)

    def list_with_metadata(self, kind: str | None = None) -> list[dict[str, Any]]:
        """Rules with their descriptions, for ``fontspine rules``."""
        return [
            {"kind": k, "stage": stage, "description": self._rules[stage].description}
            for k, stage in self.list_rules(kind)
        ]

    def __contains__(self, stage: str) -> bool:
        return stage in self._rules

    def __len__(self) -> int:
        return len(self._rules)

"""Build context — ``need()``, memoization and change detection.

WHY
───
Every stage of the font build is an action that asks for the things it
depends on with ``await ctx.need(...)``. The context makes each distinct
:class:`~fontspine.engine.keys.TaskKey` run at most once per run, skips
journaled work whose recorded inputs are unchanged, and turns a failure
anywhere below a task into a failure of that task without hiding what
originally went wrong.

ARCHITECTURE
────────────
::

    BuildContext(settings, registry, runner=..., paths=..., config=...)
      ├── .need(*targets)     ─ build deps concurrently, return results
      ├── .source(path)       ─ target for a pre-existing input file
      ├── .build(*targets)    ─ top-level entry, saves the journal
      ├── .run(*targets)      ─ asyncio.run(build(...))
      └── .report             ─ BuildReport (executed/skipped/failed/events)

    need(A, B)
      │  record edge requester → A, requester → B   (cycle check)
      ▼
    one asyncio.Task per key  ──►  _build(target)
                                    ├── journal entry current?  → skip
                                    └── execute rule action     → record

Change detection replays the recorded dependencies group by group (one
group per ``need()`` call the action made), so a changed oracle early in
the list stops the check before later, now-irrelevant dependencies are
built.

Failures:
    - the action's own exception becomes :class:`TaskFailedError`
    - a requester of a failed key gets :class:`DependencyFailedError`
      after *all* its siblings settled
    - with ``fail_fast`` the first failure stops new tasks from starting
      (:class:`BuildAbortedError`)

Tags:
    fontspine, engine, asyncio, memoization, incremental-build

Doc-Types:
    api-reference
"""

from __future__ import annotations

import asyncio
import itertools
import time
import uuid
from collections.abc import Iterable, Iterator
from contextvars import ContextVar
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from fontspine.core.errors import (
    BuildAbortedError,
    BuildError,
    CycleDetectedError,
    DependencyFailedError,
    ExternalToolError,
    FontSpineError,
    TaskFailedError,
    root_cause,
)
from fontspine.core.hashing import compute_hash, file_fingerprint, value_fingerprint
from fontspine.core.logging import LogContext, get_logger
from fontspine.core.settings import BuildSettings
from fontspine.engine.journal import DependencyRecord, Journal, JournalEntry
from fontspine.engine.keys import Artifact, Target, TaskKey
from fontspine.engine.rules import Rule, RuleRegistry

logger = get_logger(__name__)

# Rule kinds that keep running after a fail-fast abort and stay out of the
# executed/skipped lists.
_TRIVIAL_KINDS = frozenset({"oracle", "source"})


@dataclass
class _Frame:
    """Dependencies collected by the action currently running."""

    key: TaskKey
    deps: list[DependencyRecord] = field(default_factory=list)
    groups: int = 0

    def next_group(self) -> int:
        group = self.groups
        self.groups += 1
        return group

    def reset(self) -> None:
        self.deps.clear()
        self.groups = 0


_current_frame: ContextVar[_Frame | None] = ContextVar("fontspine_frame", default=None)


@dataclass
class TaskEvent:
    """One start or finish of an action, in run order."""

    seq: int
    kind: str
    key: str
    at: float
    ok: bool | None = None


@dataclass
class BuildReport:
    """What happened during one run."""

    executed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: dict[str, TaskFailedError] = field(default_factory=dict)
    blocked: list[str] = field(default_factory=list)
    events: list[TaskEvent] = field(default_factory=list)
    _seq: Iterator[int] = field(default_factory=itertools.count, repr=False)

    def started(self, key: str) -> None:
        self.events.append(TaskEvent(next(self._seq), "start", key, time.perf_counter()))

    def finished(self, key: str, ok: bool) -> None:
        self.events.append(TaskEvent(next(self._seq), "finish", key, time.perf_counter(), ok))

    def event(self, kind: str, key: str) -> TaskEvent | None:
        """First event of ``kind`` for ``key``."""
        return next((e for e in self.events if e.kind == kind and e.key == key), None)

    @property
    def succeeded(self) -> bool:
        return not self.failed and not self.blocked

    def to_dict(self) -> dict[str, Any]:
        return {
            "executed": list(self.executed),
            "skipped": list(self.skipped),
            "failed": {key: str(root_cause(error)) for key, error in self.failed.items()},
            "blocked": list(self.blocked),
        }


def _flatten(requests: Iterable[Any]) -> Iterator[Target]:
    for request in requests:
        if isinstance(request, Target):
            yield request
        elif isinstance(request, Rule):
            yield request()
        elif isinstance(request, (list, tuple)):
            yield from _flatten(request)
        else:
            raise TypeError(f"cannot need {request!r}")


class BuildContext:
    """State of one build run.

    Parameters
    ----------
    settings:
        Directories, job counts and fail-fast mode.
    registry:
        Rules the journal can replay dependencies from.
    runner:
        External-tool runner handed to actions (``ctx.runner``).
    paths:
        Object passed to file rules' path functions.
    journal:
        Journal to use; loaded from ``settings.journal_file`` when omitted.
    config:
        Preloaded configuration returned by the config oracle.
    definition:
        Fingerprint of the rule code; a journal written by other code is
        ignored. Only used when the journal is loaded here.
    """

    def __init__(
        self,
        settings: BuildSettings,
        registry: RuleRegistry,
        *,
        runner: Any = None,
        paths: Any = None,
        journal: Journal | None = None,
        config: Any = None,
        definition: str = "",
    ):
        self.settings = settings
        self.registry = registry
        self.runner = runner
        self.paths = paths
        self.config = config
        if journal is None:
            journal = Journal.load(settings.resolve(settings.journal_file), definition)
        self.journal = journal
        self.run_id = uuid.uuid4().hex[:12]
        self.report = BuildReport()
        self._tasks: dict[TaskKey, asyncio.Task[Any]] = {}
        self._fingerprints: dict[TaskKey, str] = {}
        self._edges: dict[TaskKey, set[TaskKey]] = {}
        self._aborted = False

    # ── Helpers for actions ──────────────────────────────────────────

    def resolve(self, relative: str | Path) -> Path:
        return self.settings.resolve(relative)

    def source(self, relative: str | Path) -> Target:
        """Target for a file that must already exist.

        Paths are keyed in POSIX form, relative to the root when given
        relative, so journal keys do not depend on where the project lives.
        """
        return self.registry.source(Path(relative).as_posix())

    @property
    def aborted(self) -> bool:
        return self._aborted

    # ── need() ───────────────────────────────────────────────────────

    async def need(self, *requests: Any) -> Any:
        """Ensure every requested target is built and return the results.

        A single target returns its result directly; several targets, or
        a list, return a flat list in request order.

        Raises:
            DependencyFailedError: If any requested target failed (raised
                only after every requested target settled)
            CycleDetectedError: If a request would close a cycle
        """
        targets = list(_flatten(requests))
        single = len(requests) == 1 and not isinstance(requests[0], (list, tuple))
        results = await self._need_targets(_current_frame.get(), targets)
        return results[0] if single else results

    async def _need_targets(self, frame: _Frame | None, targets: list[Target]) -> list[Any]:
        requester = frame.key if frame is not None else None
        if requester is not None:
            for target in targets:
                self._add_edge(requester, target.key)

        outcomes = await asyncio.gather(*(self._schedule(t) for t in targets), return_exceptions=True)

        failed: list[BuildError] = []
        group = frame.next_group() if frame is not None else 0
        for target, outcome in zip(targets, outcomes):
            if isinstance(outcome, BaseException):
                if isinstance(outcome, BuildError):
                    failed.append(outcome)
                else:
                    failed.append(TaskFailedError(str(target.key), outcome))
            elif frame is not None:
                key = target.key
                frame.deps.append(DependencyRecord(key.stage, list(key.params), self._fingerprints[key], group))

        if failed:
            raise DependencyFailedError(str(requester) if requester is not None else None, failed)
        return list(outcomes)

    def _schedule(self, target: Target) -> asyncio.Task[Any]:
        key = target.key
        task = self._tasks.get(key)
        if task is None:
            task = asyncio.get_running_loop().create_task(self._build(target), name=str(key))
            self._tasks[key] = task
        return task

    def _add_edge(self, src: TaskKey, dst: TaskKey) -> None:
        path = self._find_path(dst, src)
        if path is not None:
            raise CycleDetectedError([str(src), *(str(k) for k in path)])
        self._edges.setdefault(src, set()).add(dst)

    def _find_path(self, start: TaskKey, goal: TaskKey) -> list[TaskKey] | None:
        stack: list[tuple[TaskKey, list[TaskKey]]] = [(start, [start])]
        seen: set[TaskKey] = set()
        while stack:
            node, path = stack.pop()
            if node == goal:
                return path
            if node in seen:
                continue
            seen.add(node)
            for nxt in self._edges.get(node, ()):
                stack.append((nxt, [*path, nxt]))
        return None

    # ── Task execution ───────────────────────────────────────────────

    async def _build(self, target: Target) -> Any:
        rule = target.rule
        key = target.key
        key_str = str(key)
        frame = _Frame(key)
        token = _current_frame.set(frame)
        try:
            with LogContext(task=key_str):
                return await self._build_in_frame(rule, target, frame)
        finally:
            _current_frame.reset(token)

    async def _build_in_frame(self, rule: Rule, target: Target, frame: _Frame) -> Any:
        key = target.key
        key_str = str(key)
        trivial = rule.kind in _TRIVIAL_KINDS
        started = False
        try:
            if self._aborted and not trivial:
                raise BuildAbortedError(key_str)

            if rule.journaled:
                entry = self.journal.get(key_str)
                if entry is not None and await self._is_current(rule, target, entry, frame):
                    self._fingerprints[key] = entry.fingerprint
                    self.journal.record(key_str, self._entry(rule, target, entry.fingerprint, entry.value, frame))
                    self.report.skipped.append(key_str)
                    logger.debug("task.skip")
                    return rule.restore(self, target, entry)
                frame.reset()

            if self._aborted and not trivial:
                raise BuildAbortedError(key_str)

            if not trivial:
                self.report.started(key_str)
                started = True
                logger.info("task.start", kind=rule.kind)
            result = await rule.execute(self, target)
            fingerprint = self._fingerprint(key, result)
            self._fingerprints[key] = fingerprint
            if rule.journaled:
                value = None if isinstance(result, Artifact) else result
                self.journal.record(key_str, self._entry(rule, target, fingerprint, value, frame))
            if started:
                self.report.finished(key_str, ok=True)
                self.report.executed.append(key_str)
                logger.debug("task.finish")
            return result

        except (DependencyFailedError, BuildAbortedError) as exc:
            self.journal.discard(key_str)
            if started:
                self.report.finished(key_str, ok=False)
            if not trivial:
                self.report.blocked.append(key_str)
            logger.debug("task.blocked", cause=str(root_cause(exc)))
            raise

        except Exception as exc:
            self.journal.discard(key_str)
            if started:
                self.report.finished(key_str, ok=False)
            error = TaskFailedError(key_str, exc)
            self.report.failed[key_str] = error
            fields: dict[str, Any] = {"error": str(exc), "error_type": type(exc).__name__}
            if isinstance(exc, ExternalToolError):
                fields["command"] = exc.command
                fields["exit_code"] = exc.exit_code
                fields["output"] = exc.output
            elif isinstance(exc, FontSpineError):
                fields.update(exc.context.to_dict())
            logger.error("task.failed", **fields)
            if self.settings.fail_fast and not self._aborted:
                self._aborted = True
                logger.warning("build.aborting", cause=key_str)
            raise error from exc

    async def _is_current(self, rule: Rule, target: Target, entry: JournalEntry, frame: _Frame) -> bool:
        out = rule.output_path(self, target.params)
        if out is not None and file_fingerprint(out) != entry.fingerprint:
            return False

        groups: dict[int, list[DependencyRecord]] = {}
        for dep in entry.deps:
            groups.setdefault(dep.group, []).append(dep)

        for group in sorted(groups):
            records = groups[group]
            if not all(self.registry.has(dep.stage) for dep in records):
                return False
            targets = [self.registry.target(dep.stage, *dep.params) for dep in records]
            try:
                await self._need_targets(frame, targets)
            except FontSpineError:
                return False
            for dep in records:
                if self._fingerprints.get(TaskKey(dep.stage, tuple(dep.params))) != dep.fingerprint:
                    return False
        return True

    def _fingerprint(self, key: TaskKey, result: Any) -> str:
        if isinstance(result, Artifact):
            return file_fingerprint(result.path) or compute_hash(self.run_id, key)
        if result is None:
            return compute_hash(self.run_id, key)
        if isinstance(result, BaseModel):
            return value_fingerprint(result.model_dump(mode="json"))
        return value_fingerprint(result)

    @staticmethod
    def _entry(rule: Rule, target: Target, fingerprint: str, value: Any, frame: _Frame) -> JournalEntry:
        return JournalEntry(
            stage=rule.stage,
            params=list(target.params),
            fingerprint=fingerprint,
            value=value,
            deps=list(frame.deps),
        )

    # ── Entry points ─────────────────────────────────────────────────

    async def build(self, *targets: Any) -> Any:
        """Build ``targets`` from the top level, saving the journal afterwards."""
        started = time.perf_counter()
        with LogContext(run_id=self.run_id):
            logger.info("build.start", targets=[str(t) for t in _flatten(targets)])
            try:
                return await self.need(*targets)
            finally:
                self.journal.save()
                logger.info(
                    "build.complete",
                    executed=len(self.report.executed),
                    skipped=len(self.report.skipped),
                    failed=len(self.report.failed),
                    blocked=len(self.report.blocked),
                    duration_s=round(time.perf_counter() - started, 3),
                )

    def run(self, *targets: Any) -> Any:
        """Synchronous wrapper around :meth:`build`."""
        return asyncio.run(self.build(*targets))


__all__ = ["BuildContext", "BuildReport", "TaskEvent"]

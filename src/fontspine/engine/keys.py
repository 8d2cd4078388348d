"""Task identity: keys, targets and artifacts.

A :class:`TaskKey` names one unit of work: the stage plus its parameter
values. Two requests with equal keys denote the same work and share one
execution per run. A :class:`Target` is what a requester hands to
``ctx.need()``; an :class:`Artifact` is the file a file rule produced.

Example::

    target = pass1("mono", "cl", "regular")
    target.key                  # TaskKey("pass1", ("mono", "cl", "regular"))
    str(target.key)             # "pass1::mono::cl::regular"

    artifact = await ctx.need(target)
    artifact.full               # "/work/build/pass1/mono-cl-regular.ttf"
    artifact.name               # "mono-cl-regular"
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from fontspine.engine.rules import Rule

KEY_SEPARATOR = "::"


@dataclass(frozen=True)
class TaskKey:
    """Structural identity of one unit of work."""

    stage: str
    params: tuple[Any, ...] = ()

    def __str__(self) -> str:
        return KEY_SEPARATOR.join([self.stage, *(str(p) for p in self.params)])

    def to_dict(self) -> dict[str, Any]:
        return {"stage": self.stage, "params": list(self.params)}


@dataclass(frozen=True)
class Target:
    """A request for a rule applied to concrete parameters."""

    rule: Rule
    params: tuple[Any, ...] = ()

    @property
    def key(self) -> TaskKey:
        return TaskKey(self.rule.stage, self.params)

    def __str__(self) -> str:
        return str(self.key)


@dataclass(frozen=True)
class Artifact:
    """A file produced by a file rule (or a required source file)."""

    path: Path

    @property
    def full(self) -> str:
        return str(self.path)

    @property
    def dir(self) -> Path:
        return self.path.parent

    @property
    def name(self) -> str:
        """Basename without the final extension."""
        return self.path.stem

    def sibling(self, filename: str) -> Path:
        """Path of another file in the same directory."""
        return self.path.parent / filename

    def __str__(self) -> str:
        return str(self.path)

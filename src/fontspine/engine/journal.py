"""Build journal — which tasks are known to be up to date.

WHY
───
Rebuilding hundreds of font variants takes hours. The journal records,
for every journaled task that succeeded, the fingerprints of the
dependencies it used and the fingerprint of what it produced. On the next
run a task whose recorded dependencies still carry the same fingerprints
(and whose output file is unchanged) is skipped.

ARCHITECTURE
────────────
::

    Journal(path)
      ├── .load(path)            ─ read JSON; missing/corrupt → empty
      ├── .get(key)              ─ JournalEntry | None
      ├── .record(key, entry)    ─ after a successful execution
      ├── .discard(key)          ─ after a failure
      └── .save()                ─ atomic write (tmp file + replace)

A journal also carries the fingerprint of the build definition that
wrote it. Loading with a different definition starts empty, so a change
to a stage or a tool wrapper rebuilds everything it may have affected.

    JournalEntry
      stage, params, fingerprint, value
      deps: [DependencyRecord(stage, params, fingerprint, group)]

Dependencies are stored as ``(stage, params)`` rather than key strings so
the registry can turn them back into targets.

Tags:
    fontspine, engine, journal, change-detection

Doc-Types:
    api-reference
"""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from fontspine.core.logging import get_logger

logger = get_logger(__name__)

JOURNAL_FORMAT = 1


@dataclass
class DependencyRecord:
    """A dependency as seen by the task that needed it.

    ``group`` numbers the ``need()`` call that requested it; dependencies
    requested together are re-checked together.
    """

    stage: str
    params: list[Any]
    fingerprint: str
    group: int = 0


@dataclass
class JournalEntry:
    """The recorded outcome of one successful execution."""

    stage: str
    params: list[Any]
    fingerprint: str
    value: Any = None
    deps: list[DependencyRecord] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> JournalEntry:
        return cls(
            stage=data["stage"],
            params=list(data.get("params", [])),
            fingerprint=data["fingerprint"],
            value=data.get("value"),
            deps=[DependencyRecord(**dep) for dep in data.get("deps", [])],
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class Journal:
    """Persisted map of task key → :class:`JournalEntry`."""

    def __init__(
        self,
        path: Path | None = None,
        entries: dict[str, JournalEntry] | None = None,
        definition: str = "",
    ):
        self.path = path
        self.definition = definition
        self._entries: dict[str, JournalEntry] = entries or {}

    @classmethod
    def load(cls, path: Path, definition: str = "") -> Journal:
        """Load a journal.

        Starts empty if the file is missing or unreadable, or was written
        by a different build definition.
        """
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return cls(path, definition=definition)
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("journal.unreadable", path=str(path), error=str(exc))
            return cls(path, definition=definition)

        if not isinstance(data, dict) or data.get("format") != JOURNAL_FORMAT:
            logger.warning("journal.format_mismatch", path=str(path))
            return cls(path, definition=definition)

        if data.get("definition", "") != definition:
            logger.info("journal.definition_changed", path=str(path))
            return cls(path, definition=definition)

        entries: dict[str, JournalEntry] = {}
        for key, raw in data.get("entries", {}).items():
            try:
                entries[key] = JournalEntry.from_dict(raw)
            except (KeyError, TypeError):
                logger.warning("journal.bad_entry", key=key)
        return cls(path, entries, definition)

    def get(self, key: str) -> JournalEntry | None:
        return self._entries.get(key)

    def record(self, key: str, entry: JournalEntry) -> None:
        self._entries[key] = entry

    def discard(self, key: str) -> None:
        self._entries.pop(key, None)

    def save(self) -> None:
        """Write the journal atomically. A journal without a path is in-memory only."""
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "format": JOURNAL_FORMAT,
            "definition": self.definition,
            "entries": {key: entry.to_dict() for key, entry in sorted(self._entries.items())},
        }
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text(json.dumps(payload, indent=1, default=str), encoding="utf-8")
        os.replace(tmp, self.path)
        logger.debug("journal.saved", path=str(self.path), entries=len(self._entries))

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

"""File helpers used by stage actions.

Temporaries are removed only when the stage succeeds; after a failure
they stay on disk for inspection::

    with scratch(tmp_otd):
        await run_recipe(runner, "make/kanji/build.js", {"main": src, "o": tmp_otd})
        await otfcc_build_as_is(runner, tmp_otd, out)
"""

from __future__ import annotations

import shutil
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from fontspine.core.logging import get_logger

logger = get_logger(__name__)


def remove(path: str | Path) -> None:
    """Delete a file if it exists."""
    Path(path).unlink(missing_ok=True)


def ensure_dir(path: str | Path) -> Path:
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def move(src: str | Path, dst: str | Path) -> None:
    """Move ``src`` to ``dst``, replacing an existing file."""
    dst = Path(dst)
    ensure_dir(dst.parent)
    remove(dst)
    shutil.move(str(src), str(dst))


def copy(src: str | Path, dst: str | Path) -> None:
    dst = Path(dst)
    ensure_dir(dst.parent)
    shutil.copyfile(src, dst)


@contextmanager
def scratch(*paths: str | Path) -> Iterator[None]:
    """Remove ``paths`` when the block completes without an exception."""
    yield
    for path in paths:
        remove(path)
    logger.debug("scratch.cleaned", count=len(paths))


__all__ = ["copy", "ensure_dir", "move", "remove", "scratch"]

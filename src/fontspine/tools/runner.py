"""External process runner with bounded concurrency.

WHY
───
Every stage of the pipeline is one or two external programs. The runner
is the single place where they are launched: it bounds how many run at
once, captures their output, and turns a non-zero exit into an
:class:`~fontspine.core.errors.ExternalToolError` that carries the argv
and the diagnostics, so a failing compiler never fails silently.

ARCHITECTURE
────────────
::

    ToolRunner(settings)
      ├── .run(*parts, cwd=None)     ─ flatten argv, acquire slot, execute
      ├── ._execute(argv, cwd)       ─ asyncio subprocess, (code, out, err)
      └── .tools                     ─ ToolPaths from settings

    Semaphore(settings.effective_jobs) bounds concurrent processes.

Tests replace ``_execute`` (see ``tests/_support/fake_tools.py``).

Tags:
    fontspine, tools, subprocess, asyncio, concurrency

Doc-Types:
    api-reference
"""

from __future__ import annotations

import asyncio
import time
from pathlib import Path
from typing import Any

from fontspine.core.errors import ExternalToolError
from fontspine.core.logging import get_logger
from fontspine.core.settings import BuildSettings, ToolPaths
from fontspine.tools.args import flatten_args

logger = get_logger(__name__)


class ToolRunner:
    """Runs external tools, at most ``settings.effective_jobs`` at a time.

    Parameters
    ----------
    settings : BuildSettings
        Supplies the project root (default working directory), the job
        limit and the tool executables.
    """

    def __init__(self, settings: BuildSettings) -> None:
        self.settings = settings
        self.max_concurrency = settings.effective_jobs
        self._semaphore: asyncio.Semaphore | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def tools(self) -> ToolPaths:
        return self.settings.tools

    def argv(self, tool: str) -> list[str]:
        """Command prefix for a named tool (``ToolPaths`` field)."""
        return self.tools.argv(tool)

    def _slots(self) -> asyncio.Semaphore:
        # A semaphore is bound to the loop it first waits on; each run gets its own.
        loop = asyncio.get_running_loop()
        if self._semaphore is None or self._loop is not loop:
            self._semaphore = asyncio.Semaphore(self.max_concurrency)
            self._loop = loop
        return self._semaphore

    async def run(self, *parts: Any, cwd: str | Path | None = None) -> str:
        """Run one external command and return its standard output.

        Args:
            *parts: Program and arguments; nested lists are flattened and
                ``None`` entries dropped.
            cwd: Working directory (default: project root).

        Raises:
            ExternalToolError: If the process exits non-zero or cannot be
                started.
        """
        argv = flatten_args(*parts)
        workdir = Path(cwd) if cwd is not None else self.settings.root

        async with self._slots():
            logger.debug("tool.run", argv=argv, cwd=str(workdir))
            started = time.perf_counter()
            try:
                code, stdout, stderr = await self._execute(argv, workdir)
            except OSError as exc:
                logger.error("tool.failed", argv=argv, error=str(exc))
                raise ExternalToolError(argv, -1, stderr=str(exc), cwd=str(workdir)) from exc

        duration = round(time.perf_counter() - started, 3)
        if code != 0:
            error = ExternalToolError(argv, code, stdout=stdout, stderr=stderr, cwd=str(workdir))
            logger.error("tool.failed", argv=argv, exit_code=code, output=error.output, duration_s=duration)
            raise error

        logger.debug("tool.done", tool=argv[0] if argv else None, duration_s=duration)
        return stdout

    async def _execute(self, argv: list[str], cwd: Path) -> tuple[int, str, str]:
        process = await asyncio.create_subprocess_exec(
            *argv,
            cwd=str(cwd),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, stderr = await process.communicate()
        return (
            process.returncode if process.returncode is not None else -1,
            stdout.decode("utf-8", errors="replace"),
            stderr.decode("utf-8", errors="replace"),
        )


__all__ = ["ToolRunner"]

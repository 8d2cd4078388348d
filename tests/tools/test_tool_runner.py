"""Tests for fontspine.tools.runner.ToolRunner."""

import asyncio

import pytest

from fontspine.core.errors import ExternalToolError
from fontspine.core.settings import BuildSettings
from fontspine.tools.runner import ToolRunner


class ScriptedRunner(ToolRunner):
    """Returns a fixed result and tracks how many processes overlap."""

    def __init__(self, settings, result=(0, "ok", "")):
        super().__init__(settings)
        self.result = result
        self.seen = []
        self.active = 0
        self.peak = 0

    async def _execute(self, argv, cwd):
        self.seen.append((argv, cwd))
        self.active += 1
        self.peak = max(self.peak, self.active)
        await asyncio.sleep(0.001)
        self.active -= 1
        if isinstance(self.result, BaseException):
            raise self.result
        return self.result


class TestRun:
    @pytest.mark.asyncio
    async def test_returns_stdout_and_flattens(self, settings):
        runner = ScriptedRunner(settings)
        assert await runner.run(runner.argv("otfccdump"), ["-o", "a.otd"], None, "a.ttf") == "ok"
        argv, cwd = runner.seen[0]
        assert argv == ["otfccdump", "-o", "a.otd", "a.ttf"]
        assert cwd == settings.root

    @pytest.mark.asyncio
    async def test_explicit_cwd(self, settings, tmp_path):
        runner = ScriptedRunner(settings)
        await runner.run("7z", "a", cwd=tmp_path / "out")
        assert runner.seen[0][1] == tmp_path / "out"

    @pytest.mark.asyncio
    async def test_non_zero_exit(self, settings):
        runner = ScriptedRunner(settings, result=(2, "partial", "error: table 'glyf' corrupt"))
        with pytest.raises(ExternalToolError) as exc_info:
            await runner.run("otfccbuild", "a.otd", "-o", "a.ttf")
        err = exc_info.value
        assert err.exit_code == 2
        assert err.command == ["otfccbuild", "a.otd", "-o", "a.ttf"]
        assert "glyf" in err.output
        assert err.cwd == str(settings.root)

    @pytest.mark.asyncio
    async def test_cannot_start(self, settings):
        runner = ScriptedRunner(settings, result=FileNotFoundError("otc2otf"))
        with pytest.raises(ExternalToolError) as exc_info:
            await runner.run("otc2otf", "x.ttc")
        assert exc_info.value.exit_code == -1

    @pytest.mark.asyncio
    async def test_concurrency_bounded_by_jobs(self, tmp_path):
        runner = ScriptedRunner(BuildSettings(root=tmp_path, jobs=2))
        await asyncio.gather(*(runner.run("ttx", str(i)) for i in range(8)))
        assert len(runner.seen) == 8
        assert runner.peak == 2

    def test_reusable_across_event_loops(self, tmp_path):
        runner = ScriptedRunner(BuildSettings(root=tmp_path, jobs=1))

        async def burst():
            await asyncio.gather(*(runner.run("ttx", str(i)) for i in range(3)))

        asyncio.run(burst())
        asyncio.run(burst())
        assert len(runner.seen) == 6


class TestRealProcess:
    @pytest.mark.asyncio
    async def test_missing_executable(self, settings):
        runner = ToolRunner(settings)
        with pytest.raises(ExternalToolError) as exc_info:
            await runner.run("fontspine-no-such-tool-xyz")
        assert exc_info.value.exit_code == -1

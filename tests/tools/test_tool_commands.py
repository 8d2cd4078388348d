"""Tests for fontspine.tools.commands argv shapes and side effects."""

import pytest

from fontspine.core.errors import ExternalToolError
from fontspine.tools.commands import (
    OTFCC_AS_IS_FLAGS,
    OTFCC_OPTIMIZE_FLAGS,
    SEVEN_ZIP_FLAGS,
    TTCIZE_FLAGS,
    chlorophytum,
    otc2otf,
    otfcc_build_as_is,
    otfcc_build_optimize,
    otfcc_dump,
    run_recipe,
    sanitize_ttf,
    seven_zip_compress,
    ttcize,
)
from tests._support.fake_tools import FakeToolRunner


@pytest.fixture
def runner(settings):
    return FakeToolRunner(settings)


class TestOtfcc:
    @pytest.mark.asyncio
    async def test_build_as_is_removes_input(self, runner, tmp_path):
        src = tmp_path / "a.otd"
        src.write_text("{}")
        await otfcc_build_as_is(runner, src, tmp_path / "a.ttf")

        (call,) = runner.calls("otfccbuild")
        assert call.extra == [str(src), "-o", str(tmp_path / "a.ttf"), *OTFCC_AS_IS_FLAGS]
        assert not src.exists()
        assert (tmp_path / "a.ttf").exists()

    @pytest.mark.asyncio
    async def test_build_optimize_flags(self, runner, tmp_path):
        await otfcc_build_optimize(runner, tmp_path / "a.otd", tmp_path / "a.ttf")
        assert runner.calls("otfccbuild")[0].extra[-len(OTFCC_OPTIMIZE_FLAGS) :] == OTFCC_OPTIMIZE_FLAGS

    @pytest.mark.asyncio
    async def test_failed_build_keeps_input(self, runner, tmp_path):
        src = tmp_path / "a.otd"
        src.write_text("{}")
        runner.fail("otfccbuild", "a.otd")
        with pytest.raises(ExternalToolError):
            await otfcc_build_as_is(runner, src, tmp_path / "a.ttf")
        assert src.exists()

    @pytest.mark.asyncio
    async def test_dump(self, runner, tmp_path):
        await otfcc_dump(runner, tmp_path / "a.ttf", tmp_path / "a.otd")
        assert runner.calls("otfccdump")[0].extra == ["-o", str(tmp_path / "a.otd"), str(tmp_path / "a.ttf")]


class TestRecipes:
    @pytest.mark.asyncio
    async def test_run_recipe_options(self, runner):
        await run_recipe(runner, "make/pass1/build.js", {"main": "a.ttf", "o": "b.ttf", "mono": True, "type": False})
        (call,) = runner.calls("node")
        assert call.extra == [
            "run",
            "--recipe",
            "make/pass1/build.js",
            "--main",
            "a.ttf",
            "-o",
            "b.ttf",
            "--mono",
        ]

    @pytest.mark.asyncio
    async def test_sanitize_chain(self, runner, tmp_path):
        ttf = tmp_path / "x.tmp.ttf"
        ttf.write_text("raw")
        target = tmp_path / "x.ttf"

        await sanitize_ttf(runner, target, ttf)

        assert [call.tool for call in runner.invocations] == ["ttx", "ttx", "ttfautohint"]
        assert runner.invocations[2].extra == [f"{ttf}.2.ttf", str(target)]
        assert target.exists()
        assert not ttf.exists()
        assert not (tmp_path / "x.tmp.ttf.ttx").exists()

    @pytest.mark.asyncio
    async def test_sanitize_without_hinting_copies(self, runner, tmp_path):
        ttf = tmp_path / "x.tmp.ttf"
        ttf.write_text("raw")
        await sanitize_ttf(runner, tmp_path / "x.ttf", ttf, hint=False)
        assert runner.calls("ttfautohint") == []
        assert (tmp_path / "x.ttf").exists()


class TestPackagingTools:
    @pytest.mark.asyncio
    async def test_ttcize_keeps_order(self, runner, tmp_path):
        fonts = [tmp_path / "b.ttf", tmp_path / "a.ttf"]
        await ttcize(runner, tmp_path / "x.ttc", fonts)
        (call,) = runner.calls("ttcize")
        assert call.extra == [*TTCIZE_FLAGS, "-o", str(tmp_path / "x.ttc"), *map(str, fonts)]

    @pytest.mark.asyncio
    async def test_seven_zip_runs_in_directory(self, runner, tmp_path):
        directory = tmp_path / "out" / "ttf"
        directory.mkdir(parents=True)
        (directory / "a.ttf").write_text("a")
        archive = tmp_path / "out" / "fonts.7z"

        await seven_zip_compress(runner, directory, archive, ["a.ttf"])

        (call,) = runner.calls("seven_zip")
        assert call.cwd == directory
        assert call.extra == ["a", *SEVEN_ZIP_FLAGS, "../fonts.7z", "a.ttf"]
        assert runner.archives[archive.resolve()] == ["a.ttf"]

    @pytest.mark.asyncio
    async def test_otc2otf_splits_next_to_container(self, settings, tmp_path):
        runner = FakeToolRunner(settings, {"SourceHanSans-Regular.ttc": ["SourceHanSansK-Regular.otf"]})
        await otc2otf(runner, tmp_path / "SourceHanSans-Regular.ttc")
        assert (tmp_path / "SourceHanSansK-Regular.otf").exists()

    @pytest.mark.asyncio
    async def test_chlorophytum_subcommand(self, runner):
        await chlorophytum(runner, "hint", ["-c", "p.json"], ["a.otd", "a.hint.gz"])
        (call,) = runner.calls("chlorophytum", "hint")
        assert call.extra == ["hint", "-c", "p.json", "a.otd", "a.hint.gz"]

"""Wrappers for the external font tools.

Each wrapper fixes the flags one tool is always called with; stage actions
only supply paths and option maps.

=====================  ======================================================
Wrapper                Command
=====================  ======================================================
otfcc_build_as_is      ``otfccbuild SRC -o DST -k -s --keep-average-char-width -q``
otfcc_build_optimize   ``otfccbuild SRC -o DST -O3 -s --keep-average-char-width -q``
otfcc_dump             ``otfccdump -o OUT SRC``
otc2otf                ``otc2otf CONTAINER``
otf2ttf                ``otf2ttf -o OUT SRC``
run_recipe             ``node run --recipe RECIPE <options>``
sanitize_ttf           ``ttx`` → ``ttx`` → ``ttfautohint`` (or copy)
ttcize                 ``otfcc-ttcize -x --common-width 1000 ... -o OUT FONTS``
chlorophytum           ``node .../_startup COMMAND ARGS``
seven_zip_compress     ``7z a -t7z -mmt=on -m0=LZMA:a=0:d=256m:fb=256 ARCHIVE FILES``
=====================  ======================================================

Both otfcc builds delete their OTD input once the binary is written.
"""

from __future__ import annotations

import os
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

from fontspine.tools.args import options_to_args
from fontspine.tools.files import copy, scratch
from fontspine.tools.runner import ToolRunner

OTFCC_AS_IS_FLAGS = ["-k", "-s", "--keep-average-char-width", "-q"]
OTFCC_OPTIMIZE_FLAGS = ["-O3", "-s", "--keep-average-char-width", "-q"]
TTCIZE_FLAGS = ["-x", "--common-width", "1000", "--common-height", "1000"]
SEVEN_ZIP_FLAGS = ["-t7z", "-mmt=on", "-m0=LZMA:a=0:d=256m:fb=256"]

# str, Path or Artifact
PathArg = Any


async def otfcc_build_as_is(runner: ToolRunner, src: PathArg, dst: PathArg) -> None:
    """Compile an OTD to a binary font keeping glyph order and metrics."""
    with scratch(str(src)):
        await runner.run(runner.argv("otfccbuild"), src, ["-o", dst], OTFCC_AS_IS_FLAGS)


async def otfcc_build_optimize(runner: ToolRunner, src: PathArg, dst: PathArg) -> None:
    """Compile an OTD to a binary font with full optimization."""
    with scratch(str(src)):
        await runner.run(runner.argv("otfccbuild"), src, ["-o", dst], OTFCC_OPTIMIZE_FLAGS)


async def otfcc_dump(runner: ToolRunner, src: PathArg, out: PathArg) -> None:
    await runner.run(runner.argv("otfccdump"), ["-o", out], src)


async def otc2otf(runner: ToolRunner, container: PathArg) -> None:
    """Split a font collection; the parts land next to the container."""
    await runner.run(runner.argv("otc2otf"), container)


async def otf2ttf(runner: ToolRunner, src: PathArg, out: PathArg) -> None:
    await runner.run(runner.argv("otf2ttf"), ["-o", out], src)


async def run_recipe(runner: ToolRunner, recipe: str, options: Mapping[str, Any]) -> None:
    """Run a build recipe through the project's recipe runner script."""
    await runner.run(
        runner.argv("node"),
        runner.settings.recipe_runner,
        ["--recipe", recipe],
        options_to_args(options),
    )


async def sanitize_ttf(runner: ToolRunner, target: PathArg, ttf: PathArg, hint: bool = True) -> None:
    """Round-trip ``ttf`` through ttx, then autohint (or copy) into ``target``.

    ``ttf`` and the intermediate files are removed on success.
    """
    tmp_ttx = f"{ttf}.ttx"
    tmp_ttf = f"{ttf}.2.ttf"
    with scratch(str(ttf), tmp_ttx, tmp_ttf):
        await runner.run(runner.argv("ttx"), "-q", ["-o", tmp_ttx], ttf)
        await runner.run(runner.argv("ttx"), "-q", ["-o", tmp_ttf], tmp_ttx)
        if hint:
            await runner.run(runner.argv("ttfautohint"), tmp_ttf, target)
        else:
            copy(tmp_ttf, target)


async def ttcize(runner: ToolRunner, out: PathArg, fonts: Sequence[PathArg]) -> None:
    """Merge fonts into a TrueType collection, in the order given."""
    await runner.run(runner.argv("ttcize"), TTCIZE_FLAGS, ["-o", out], list(fonts))


async def chlorophytum(runner: ToolRunner, command: str, *args: Any) -> None:
    """Invoke a hinting-engine subcommand (``hint``, ``instruct``, ``integrate``)."""
    await runner.run(runner.argv("chlorophytum"), command, list(args))


async def seven_zip_compress(
    runner: ToolRunner,
    directory: PathArg,
    archive: PathArg,
    files: Sequence[str],
) -> None:
    """Add ``files`` (relative to ``directory``) to ``archive``.

    The archiver runs inside ``directory`` so the archive holds bare file
    names; the archive path is passed relative to it.
    """
    directory = Path(str(directory))
    relative = os.path.relpath(str(archive), str(directory))
    await runner.run(runner.argv("seven_zip"), "a", SEVEN_ZIP_FLAGS, relative, list(files), cwd=directory)


__all__ = [
    "chlorophytum",
    "otc2otf",
    "otf2ttf",
    "otfcc_build_as_is",
    "otfcc_build_optimize",
    "otfcc_dump",
    "run_recipe",
    "sanitize_ttf",
    "seven_zip_compress",
    "ttcize",
]

"""Production: final fonts, collections, archives and entry points.

::

    prod(family, region, style)    pass 2 merge of hinted parts → out/ttf
    ttf-font-files                 every prod in the matrix
    ttc-file(style)                one collection per style → out/ttc
    ttc-font-files                 every ttc-file in style order
    ttf-archive(version)           7z of out/ttf, upright/italic pairs
    ttc-archive(version)           7z of out/ttc
    all / ttf / ttc                phony entry points
    variant(family, region, style) one production font (development)

Tags:
    fontspine, pipeline, production, packaging

Doc-Types:
    api-reference
"""

from __future__ import annotations

from fontspine.core.logging import get_logger
from fontspine.engine.context import BuildContext
from fontspine.engine.keys import Artifact
from fontspine.pipeline.hinting import hinted_hangul, hinted_kanji, hinted_pass1
from fontspine.pipeline.oracles import build_config, scripts, version
from fontspine.pipeline.registry import rules
from fontspine.tools import otfcc_build_optimize, remove, run_recipe, seven_zip_compress, ttcize

logger = get_logger(__name__)


@rules.file("prod", lambda paths, family, region, style: paths.ttf_dir / paths.prod_name(family, region, style))
async def prod(ctx: BuildContext, out: Artifact, family: str, region: str, style: str) -> None:
    """Final font: hinted composite merged with hinted ideographs"""
    config, _, _ = await ctx.need(build_config, scripts, version)
    weight = config.deitalized_name(style)
    main, kanji, hangul = await ctx.need(
        hinted_pass1(weight, family, region, style),
        hinted_kanji(weight, region, weight),
        hinted_hangul(weight, region, weight),
    )
    tmp_otd = out.sibling(f"{out.name}.otd")
    await run_recipe(
        ctx.runner,
        ctx.paths.recipe("pass2/build.js"),
        {
            "main": main.full,
            "kanji": kanji.full,
            "hangul": hangul.full,
            "o": tmp_otd,
            "italize": weight != style,
        },
    )
    await otfcc_build_optimize(ctx.runner, tmp_otd, out)


@rules.task("ttf-font-files")
async def ttf_font_files(ctx: BuildContext) -> None:
    """Every production font of the matrix"""
    config = await ctx.need(build_config)
    await ctx.need([prod(family, region, style) for family, region, style in config.variants()])


@rules.file("ttc-file", lambda paths, style: paths.ttc_dir / paths.ttc_name(style))
async def ttc_file(ctx: BuildContext, out: Artifact, style: str) -> None:
    """Collection of every family and region of one style"""
    config = await ctx.need(build_config)
    fonts = await ctx.need(
        [prod(family, region, style) for family in config.family_order for region in config.subfamily_order]
    )
    await ttcize(ctx.runner, out, fonts)


@rules.task("ttc-font-files")
async def ttc_font_files(ctx: BuildContext) -> None:
    """Every collection, in style order"""
    config = await ctx.need(build_config)
    await ctx.need([ttc_file(style) for style in config.style_order])


@rules.file("ttf-archive", lambda paths, version: paths.ttf_archive(version))
async def ttf_archive(ctx: BuildContext, out: Artifact, version: str) -> None:
    """Archive of every production font"""
    config = await ctx.need(build_config)
    await ctx.need(ttf_font_files)
    remove(out.path)

    # styleOrder interleaves upright and italic styles; one call per pair.
    for upright, italic in config.style_pairs():
        files = [
            ctx.paths.prod_name(family, region, style)
            for style in (upright, italic)
            if style is not None
            for family in config.family_order
            for region in config.subfamily_order
        ]
        await seven_zip_compress(ctx.runner, ctx.paths.ttf_dir, out, files)
    logger.info("archive.written", path=out.full)


@rules.file("ttc-archive", lambda paths, version: paths.ttc_archive(version))
async def ttc_archive(ctx: BuildContext, out: Artifact, version: str) -> None:
    """Archive of every collection"""
    config = await ctx.need(build_config)
    await ctx.need(ttc_font_files)
    remove(out.path)
    files = [ctx.paths.ttc_name(style) for style in config.style_order]
    await seven_zip_compress(ctx.runner, ctx.paths.ttc_dir, out, files)
    logger.info("archive.written", path=out.full)


# ── Entry points ─────────────────────────────────────────────────────


@rules.phony("ttf")
async def ttf(ctx: BuildContext) -> str:
    """TTF archive of the current version"""
    release = await ctx.need(version)
    archive = await ctx.need(ttf_archive(release))
    return archive.full


@rules.phony("ttc")
async def ttc(ctx: BuildContext) -> str:
    """TTC archive of the current version"""
    release = await ctx.need(version)
    archive = await ctx.need(ttc_archive(release))
    return archive.full


@rules.phony("all")
async def build_all(ctx: BuildContext) -> list[str]:
    """Both archives"""
    return await ctx.need(ttf, ttc)


@rules.phony("variant")
async def variant(ctx: BuildContext, family: str, region: str, style: str) -> str:
    """One production font"""
    config = await ctx.need(build_config)
    config.check_variant(family, region, style)
    font = await ctx.need(prod(family, region, style))
    return font.full


__all__ = [
    "build_all",
    "prod",
    "ttc",
    "ttc_archive",
    "ttc_file",
    "ttc_font_files",
    "ttf",
    "ttf_archive",
    "ttf_font_files",
    "variant",
]

"""Font assembly: from source containers to unhinted composites.

Stages, in dependency order::

    break-ttc(weight)                   split the multi-region container
      └─ shs-otd(region, weight)        per-region font data (OTD)
           ├─ non-kanji0(region, style)
           │    ├─ ws0(family, region, style)
           │    └─ as0(family, region, style)
           ├─ kanji0(region, style)
           └─ hangul0(region, style)
    latin-source(group, style)          Latin outlines, TrueType
    pass1(family, region, style)        Latin + punctuation, sanitized

Every action computes arguments and paths only; the glyph work happens in
the recipe scripts and font tools it calls.

Tags:
    fontspine, pipeline, assembly, stages

Doc-Types:
    api-reference
"""

from __future__ import annotations

from fontspine.config.models import LatinGroupConfig
from fontspine.core.logging import get_logger
from fontspine.engine.context import BuildContext
from fontspine.engine.keys import Artifact
from fontspine.pipeline.oracles import build_config, scripts
from fontspine.pipeline.registry import rules
from fontspine.tools import (
    copy,
    ensure_dir,
    move,
    otc2otf,
    otf2ttf,
    otfcc_build_as_is,
    otfcc_dump,
    run_recipe,
    sanitize_ttf,
    scratch,
)

logger = get_logger(__name__)


# ── Source containers ────────────────────────────────────────────────


@rules.task("break-ttc")
async def break_ttc(ctx: BuildContext, weight: str) -> None:
    """Split the source container of one weight into per-region fonts"""
    config = await ctx.need(build_config)
    source_map = config.source_map
    container = await ctx.need(ctx.source(ctx.paths.source("shs", source_map.container_name(weight))))
    await otc2otf(ctx.runner, container)

    target_dir = ensure_dir(ctx.paths.shs_build)
    for region in source_map.region:
        part = source_map.part_name(region, weight)
        produced = container.sibling(part)
        if not produced.exists():
            # Moved by an earlier, interrupted run.
            logger.debug("break_ttc.part_absent", part=part)
            continue
        move(produced, target_dir / part)


@rules.file("shs-otd", lambda paths, region, weight: paths.shs_build / f"{region}-{weight}.otd")
async def shs_otd(ctx: BuildContext, out: Artifact, region: str, weight: str) -> None:
    """Dump one region/weight of the split container to OTD"""
    config = await ctx.need(build_config)
    await ctx.need(break_ttc(weight))
    part_path = ctx.paths.shs_build / config.source_map.part_name(region, weight)
    part = await ctx.need(ctx.source(ctx.paths.relative(part_path)))

    tmp = out.sibling(f"{out.name}.tmp.ttf")
    with scratch(tmp):
        if ctx.settings.strict_source_metrics:
            await ctx.need(scripts)
            await run_recipe(ctx.runner, ctx.paths.recipe("quadify/index.js"), {"main": part.full, "o": tmp})
        else:
            await otf2ttf(ctx.runner, part, tmp)
        await otfcc_dump(ctx.runner, tmp, out)


# ── Synthesis ────────────────────────────────────────────────────────


async def _recipe_then_build(ctx: BuildContext, out: Artifact, recipe: str, main: Artifact, **flags: bool) -> None:
    tmp_otd = out.sibling(f"{out.name}.otd")
    await run_recipe(ctx.runner, ctx.paths.recipe(recipe), {"main": main.full, "o": tmp_otd, **flags})
    await otfcc_build_as_is(ctx.runner, tmp_otd, out)


@rules.file("non-kanji0", lambda paths, region, style: paths.stage_dir("non-kanji0") / f"{region}-{style}.ttf")
async def non_kanji(ctx: BuildContext, out: Artifact, region: str, style: str) -> None:
    """Non-ideographic glyphs of one region"""
    await ctx.need(build_config, scripts)
    source = await ctx.need(shs_otd(region, style))
    await _recipe_then_build(ctx, out, "non-kanji/build.js", source)


async def _punctuation(ctx: BuildContext, out: Artifact, recipe: str, family: str, region: str, style: str) -> None:
    config, _ = await ctx.need(build_config, scripts)
    source = await ctx.need(non_kanji(region, style))
    await _recipe_then_build(ctx, out, recipe, source, **config.family_flags(family))


@rules.file("ws0", lambda paths, family, region, style: paths.stage_dir("ws0") / f"{family}-{region}-{style}.ttf")
async def ws0(ctx: BuildContext, out: Artifact, family: str, region: str, style: str) -> None:
    """Wide-spaced punctuation for one family"""
    await _punctuation(ctx, out, "punct/ws.js", family, region, style)


@rules.file("as0", lambda paths, family, region, style: paths.stage_dir("as0") / f"{family}-{region}-{style}.ttf")
async def as0(ctx: BuildContext, out: Artifact, family: str, region: str, style: str) -> None:
    """Narrow (Asian) punctuation for one family"""
    await _punctuation(ctx, out, "punct/as.js", family, region, style)


@rules.file("latin-source", lambda paths, group, style: paths.build / f"latin-{group}" / f"{group}-{style}.ttf")
async def latin_source(ctx: BuildContext, out: Artifact, group: str, style: str) -> None:
    """Latin outlines of one group and style, as TrueType"""
    config, _ = await ctx.need(build_config, scripts)
    latin = config.latin_groups.get(group) or LatinGroupConfig()
    extension = "otf" if latin.is_cff else "ttf"
    source = await ctx.need(ctx.source(ctx.paths.source(group, f"{group}-{latin.file_suffix(style)}.{extension}")))
    if latin.is_cff:
        await run_recipe(ctx.runner, ctx.paths.recipe("quadify/index.js"), {"main": source.full, "o": out.full})
    else:
        copy(source.path, out.path)


@rules.file("pass1", lambda paths, family, region, style: paths.stage_dir("pass1") / f"{family}-{region}-{style}.ttf")
async def pass1(ctx: BuildContext, out: Artifact, family: str, region: str, style: str) -> None:
    """Unhinted Latin + punctuation composite"""
    config, _ = await ctx.need(build_config, scripts)
    weight = config.deitalized_name(style)
    latin, asian, ws = await ctx.need(
        latin_source(config.latin_group_of(family), style),
        as0(family, region, weight),
        ws0(family, region, weight),
    )
    tmp = f"{out.full}.tmp.ttf"
    await run_recipe(
        ctx.runner,
        ctx.paths.recipe("pass1/build.js"),
        {
            "main": latin.full,
            "asian": asian.full,
            "ws": ws.full,
            "o": tmp,
            "family": family,
            "subfamily": config.region_display_name(region),
            "style": style,
            "italize": config.is_italic_variant(style),
            **config.family_flags(family),
        },
    )
    await sanitize_ttf(ctx.runner, out, tmp, hint=True)


@rules.file("kanji0", lambda paths, region, style: paths.stage_dir("kanji0") / f"{region}-{style}.ttf")
async def kanji0(ctx: BuildContext, out: Artifact, region: str, style: str) -> None:
    """Unhinted ideographs of one region"""
    await ctx.need(build_config, scripts)
    source = await ctx.need(shs_otd(region, style))
    await _recipe_then_build(ctx, out, "kanji/build.js", source)


@rules.file("hangul0", lambda paths, region, style: paths.stage_dir("hangul0") / f"{region}-{style}.ttf")
async def hangul0(ctx: BuildContext, out: Artifact, region: str, style: str) -> None:
    """Unhinted Hangul of one region"""
    await ctx.need(build_config, scripts)
    source = await ctx.need(shs_otd(region, style))
    await _recipe_then_build(ctx, out, "hangul/build.js", source)


__all__ = [
    "as0",
    "break_ttc",
    "hangul0",
    "kanji0",
    "latin_source",
    "non_kanji",
    "pass1",
    "shs_otd",
    "ws0",
]

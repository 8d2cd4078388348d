"""Hinting chain controller.

WHY
───
The hinting engine works per weight in three phases. *Analyze* finds
stems and zones across every font of a weight; *instruct* turns the
analysis into TrueType instructions; *integrate* writes them into each
font. Instruct phases must run in weight order, lightest first, so the
instructions of heavier weights are generated after those of lighter
ones. Analyze phases are independent and run as soon as their inputs
exist.

ARCHITECTURE
────────────
::

    weight-chain                          ordered hintable styles
      └─ WeightChain → ChainStage(weight, position, previous)

    hint-kanji-otd / hint-hangul-otd / hint-pass1-otd
      └─ build/hf-<w>/<kind>-....otd      (unhinted OTD dumps)

    hint-analyze(w)    chlorophytum hint     -c params -h cache --jobs N  otd hint.gz ...
    hint-instruct(w)   chlorophytum instruct -c params  otd hint.gz instr.gz ...
        needs hint-instruct(previous) and hint-analyze(w)

    hinted-kanji / hinted-hangul / hinted-pass1
      └─ chlorophytum integrate -c params instr.gz in.otd out.otd
         otfccbuild → build/hfo-<w>/<kind>-....ttf

Each stage of the chain names its predecessor explicitly, so the
ordering edge is visible in the rule graph instead of being derived by
index arithmetic inside an action.

Tags:
    fontspine, pipeline, hinting, ordering

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass

from fontspine.config.models import BuildConfig
from fontspine.core.errors import InvalidConfigError
from fontspine.core.logging import get_logger
from fontspine.engine.context import BuildContext
from fontspine.engine.keys import Artifact, Target
from fontspine.pipeline.assembly import hangul0, kanji0, pass1
from fontspine.pipeline.oracles import build_config, hint_jobs
from fontspine.pipeline.registry import rules
from fontspine.tools import chlorophytum, otfcc_build_as_is, otfcc_dump

logger = get_logger(__name__)


# ── Weight chain ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class ChainStage:
    """One weight of the chain and the weight hinted before it."""

    weight: str
    position: int
    previous: str | None


class WeightChain:
    """Hintable weights in order, each linked to its predecessor.

    Example:
        >>> chain = WeightChain(["light", "regular", "bold"])
        >>> chain.stage("regular")
        ChainStage(weight='regular', position=1, previous='light')
    """

    def __init__(self, weights: Sequence[str]) -> None:
        self.weights = list(weights)
        self._stages = {
            weight: ChainStage(weight, i, self.weights[i - 1] if i > 0 else None)
            for i, weight in enumerate(self.weights)
        }

    @classmethod
    def from_config(cls, config: BuildConfig) -> WeightChain:
        return cls(config.weight_chain())

    def stage(self, weight: str) -> ChainStage:
        try:
            return self._stages[weight]
        except KeyError:
            raise InvalidConfigError("weight", weight, f"{weight!r} is not a hintable weight") from None

    def __iter__(self) -> Iterator[ChainStage]:
        return (self._stages[weight] for weight in self.weights)

    def __len__(self) -> int:
        return len(self.weights)


@rules.task("weight-chain")
async def weight_chain(ctx: BuildContext) -> list[str]:
    """Hintable styles in hinting order"""
    config = await ctx.need(build_config)
    return config.weight_chain()


# ── Hinting inputs ───────────────────────────────────────────────────


@rules.file(
    "hint-kanji-otd",
    lambda paths, weight, region, style: paths.hint_dir(weight) / f"kanji-{region}-{style}.otd",
)
async def kanji_otd(ctx: BuildContext, out: Artifact, weight: str, region: str, style: str) -> None:
    font = await ctx.need(kanji0(region, style))
    await otfcc_dump(ctx.runner, font, out)


@rules.file(
    "hint-hangul-otd",
    lambda paths, weight, region, style: paths.hint_dir(weight) / f"hangul-{region}-{style}.otd",
)
async def hangul_otd(ctx: BuildContext, out: Artifact, weight: str, region: str, style: str) -> None:
    font = await ctx.need(hangul0(region, style))
    await otfcc_dump(ctx.runner, font, out)


@rules.file(
    "hint-pass1-otd",
    lambda paths, weight, family, region, style: paths.hint_dir(weight) / f"pass1-{family}-{region}-{style}.otd",
)
async def pass1_otd(ctx: BuildContext, out: Artifact, weight: str, family: str, region: str, style: str) -> None:
    font = await ctx.need(pass1(family, region, style))
    await otfcc_dump(ctx.runner, font, out)


def otd_dependencies(config: BuildConfig, weight: str) -> tuple[list[Target], list[Target]]:
    """Every OTD hinted together for ``weight``.

    Returns the ideograph/Hangul dumps (two per region) and the pass-1
    dumps of every family, region and style whose canonical weight is
    ``weight``.
    """
    ideographs: list[Target] = []
    for region in config.subfamily_order:
        ideographs.append(kanji_otd(weight, region, weight))
        ideographs.append(hangul_otd(weight, region, weight))

    composites: list[Target] = []
    for family in config.family_order:
        for region in config.subfamily_order:
            for style in config.styles_of_weight(weight):
                composites.append(pass1_otd(weight, family, region, style))
    return ideographs, composites


def hint_arguments(otds: Iterable[Artifact]) -> list[str]:
    """``[otd, otd.hint.gz, ...]`` for ``chlorophytum hint``."""
    args: list[str] = []
    for otd in otds:
        args += [otd.full, str(otd.sibling(f"{otd.name}.hint.gz"))]
    return args


def instruct_arguments(otds: Iterable[Artifact]) -> list[str]:
    """``[otd, otd.hint.gz, otd.instr.gz, ...]`` for ``chlorophytum instruct``."""
    args: list[str] = []
    for otd in otds:
        args += [otd.full, str(otd.sibling(f"{otd.name}.hint.gz")), str(otd.sibling(f"{otd.name}.instr.gz"))]
    return args


async def _hinting_inputs(ctx: BuildContext, config: BuildConfig, weight: str) -> list[Artifact]:
    ideographs, composites = otd_dependencies(config, weight)
    return await ctx.need(ideographs + composites)


# ── Chain phases ─────────────────────────────────────────────────────


@rules.task("hint-analyze")
async def hint_analyze(ctx: BuildContext, weight: str) -> None:
    """Analyze every font of one weight"""
    config, jobs, params = await ctx.need(build_config, hint_jobs, ctx.source(ctx.paths.hint_params(weight)))
    otds = await _hinting_inputs(ctx, config, weight)
    logger.info("hint.analyze", weight=weight, fonts=len(otds), jobs=jobs)
    await chlorophytum(
        ctx.runner,
        "hint",
        ["-c", params],
        ["-h", ctx.paths.hint_cache(weight)],
        ["--jobs", jobs],
        hint_arguments(otds),
    )


@rules.task("hint-instruct")
async def hint_instruct(ctx: BuildContext, weight: str) -> None:
    """Generate instructions for one weight, after the previous weight"""
    config, params = await ctx.need(build_config, ctx.source(ctx.paths.hint_params(weight)))
    stage = WeightChain(await ctx.need(weight_chain)).stage(weight)
    otds = await _hinting_inputs(ctx, config, weight)

    if stage.previous is not None:
        await ctx.need(hint_instruct(stage.previous), hint_analyze(weight))
    else:
        await ctx.need(hint_analyze(weight))

    logger.info("hint.instruct", weight=weight, position=stage.position, previous=stage.previous)
    await chlorophytum(ctx.runner, "instruct", ["-c", params], instruct_arguments(otds))


# ── Integration ──────────────────────────────────────────────────────


async def _integrate(ctx: BuildContext, out: Artifact, weight: str) -> None:
    params = await ctx.need(ctx.source(ctx.paths.hint_params(weight)))
    await ctx.need(hint_instruct(weight))
    hint_dir = ctx.paths.hint_dir(weight)
    hinted_otd = out.sibling(f"{out.name}.otd")
    await chlorophytum(
        ctx.runner,
        "integrate",
        ["-c", params],
        [hint_dir / f"{out.name}.instr.gz", hint_dir / f"{out.name}.otd", hinted_otd],
    )
    await otfcc_build_as_is(ctx.runner, hinted_otd, out)


@rules.file(
    "hinted-kanji",
    lambda paths, weight, region, style: paths.hint_out_dir(weight) / f"kanji-{region}-{style}.ttf",
)
async def hinted_kanji(ctx: BuildContext, out: Artifact, weight: str, region: str, style: str) -> None:
    await _integrate(ctx, out, weight)


@rules.file(
    "hinted-hangul",
    lambda paths, weight, region, style: paths.hint_out_dir(weight) / f"hangul-{region}-{style}.ttf",
)
async def hinted_hangul(ctx: BuildContext, out: Artifact, weight: str, region: str, style: str) -> None:
    await _integrate(ctx, out, weight)


@rules.file(
    "hinted-pass1",
    lambda paths, weight, family, region, style: paths.hint_out_dir(weight) / f"pass1-{family}-{region}-{style}.ttf",
)
async def hinted_pass1(ctx: BuildContext, out: Artifact, weight: str, family: str, region: str, style: str) -> None:
    await _integrate(ctx, out, weight)


__all__ = [
    "ChainStage",
    "WeightChain",
    "hangul_otd",
    "hint_analyze",
    "hint_arguments",
    "hint_instruct",
    "hinted_hangul",
    "hinted_kanji",
    "hinted_pass1",
    "instruct_arguments",
    "kanji_otd",
    "otd_dependencies",
    "pass1_otd",
    "weight_chain",
]

"""Run-wide inputs: configuration, version, toolchain and recipe scripts.

Oracles are computed once per run and fingerprinted by value, so a task
that read the configuration is re-run exactly when the configuration
changed. ``scripts`` is a journaled task over every recipe file: editing
any recipe, or upgrading the toolchain, invalidates every stage that runs
a recipe.

Tags:
    fontspine, pipeline, oracles, change-detection

Doc-Types:
    api-reference
"""

from __future__ import annotations

import os
from pathlib import PurePosixPath

from fontspine.config import BuildConfig, load_config, load_dependency_snapshot, load_version
from fontspine.core.logging import get_logger
from fontspine.engine.context import BuildContext
from fontspine.pipeline.registry import rules

logger = get_logger(__name__)


@rules.oracle("config")
def build_config(ctx: BuildContext) -> BuildConfig:
    """Validated build configuration"""
    if ctx.config is None:
        ctx.config = load_config(ctx.resolve(ctx.settings.config_file))
    return ctx.config


@rules.oracle("version")
def version(ctx: BuildContext) -> str:
    """Release version from the project metadata file"""
    return load_version(ctx.resolve(ctx.settings.metadata_file))


@rules.oracle("dependencies")
def dependencies(ctx: BuildContext) -> dict[str, dict[str, str]]:
    """Declared and installed toolchain package versions"""
    return load_dependency_snapshot(ctx.settings.root, ctx.resolve(ctx.settings.metadata_file))


@rules.oracle("hint-jobs")
def hint_jobs(ctx: BuildContext) -> int:
    """Parallelism passed to the hinting engine"""
    return ctx.settings.hint_jobs or os.cpu_count() or 1


@rules.oracle("scripts-structure")
def scripts_structure(ctx: BuildContext) -> list[str]:
    """Recipe files under the recipe directory"""
    recipe_dir = ctx.resolve(ctx.settings.recipe_dir)
    if not recipe_dir.is_dir():
        logger.warning("scripts.no_recipe_dir", path=str(recipe_dir))
        return []
    found = (path for path in recipe_dir.glob(ctx.settings.recipe_pattern) if path.is_file())
    return sorted(
        str(PurePosixPath(ctx.settings.recipe_dir, path.relative_to(recipe_dir).as_posix())) for path in found
    )


@rules.task("scripts")
async def scripts(ctx: BuildContext) -> None:
    """Recipe scripts and toolchain, as one dependency"""
    await ctx.need(dependencies)
    script_list = await ctx.need(scripts_structure)
    await ctx.need([ctx.source(path) for path in script_list])


__all__ = ["build_config", "dependencies", "hint_jobs", "scripts", "scripts_structure", "version"]

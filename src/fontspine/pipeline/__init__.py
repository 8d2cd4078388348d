"""The font build pipeline.

Importing this package registers every stage in :data:`rules`.

Example::

    from fontspine.core.settings import get_settings
    from fontspine.pipeline import build_all, create_context

    ctx = create_context(get_settings())
    ctx.run(build_all)
"""

from __future__ import annotations

import functools
from pathlib import Path
from typing import Any

import fontspine
from fontspine.config.models import BuildConfig
from fontspine.core.hashing import compute_hash, content_fingerprint
from fontspine.core.settings import BuildSettings
from fontspine.engine.context import BuildContext
from fontspine.engine.journal import Journal
from fontspine.pipeline import assembly, hinting, layout, oracles, production
from fontspine.pipeline.hinting import (
    ChainStage,
    WeightChain,
    hint_arguments,
    instruct_arguments,
    otd_dependencies,
)
from fontspine.pipeline.layout import Layout
from fontspine.pipeline.production import build_all, prod, ttc, ttf, variant
from fontspine.pipeline.registry import rules
from fontspine.tools import args, commands, files, runner as tool_runner
from fontspine.tools.runner import ToolRunner

_DEFINITION_MODULES = (assembly, hinting, layout, oracles, production, args, commands, files, tool_runner)


@functools.cache
def build_definition() -> str:
    """Fingerprint of the code that decides what each stage runs.

    Journals written by a different definition are discarded, so editing a
    stage or a tool wrapper rebuilds the outputs it produced.
    """
    sources = [Path(module.__file__) for module in _DEFINITION_MODULES]
    return compute_hash(fontspine.__version__, content_fingerprint(sources))


def create_context(
    settings: BuildSettings,
    *,
    runner: Any = None,
    config: BuildConfig | None = None,
    journal: Journal | None = None,
) -> BuildContext:
    """Build context wired to the pipeline's rules and layout."""
    return BuildContext(
        settings,
        rules,
        runner=runner if runner is not None else ToolRunner(settings),
        paths=Layout(settings),
        journal=journal,
        config=config,
        definition=build_definition(),
    )


__all__ = [
    "ChainStage",
    "Layout",
    "WeightChain",
    "assembly",
    "build_all",
    "build_definition",
    "create_context",
    "hint_arguments",
    "hinting",
    "instruct_arguments",
    "layout",
    "oracles",
    "otd_dependencies",
    "prod",
    "production",
    "rules",
    "ttc",
    "ttf",
    "variant",
]

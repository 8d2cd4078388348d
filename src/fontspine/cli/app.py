"""
Root Typer application for the fontspine CLI.

::

    fontspine [--root DIR] [--config PATH] [--jobs N] [--fail-fast]
              [--log-level L] [--log-format console|json] COMMAND

    all | ttf | ttc                  build archives
    variant FAMILY REGION STYLE      build one production font
    rules [--kind K] [--json]        list registered stages
    plan [--json]                    variant matrix and weight chain
    version                          tool and project versions

Exit codes: 0 success, 1 build failure, 2 configuration error.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import typer
from pydantic import ValidationError

from fontspine import __version__
from fontspine.cli.utils import (
    EXIT_BUILD_FAILED,
    EXIT_CONFIG_ERROR,
    console,
    err_console,
    print_error,
    print_json,
    print_report,
    rows_table,
)
from fontspine.config import BuildConfig, load_config, load_version
from fontspine.core.errors import BuildError, ConfigError, root_cause
from fontspine.core.logging import configure_logging, get_logger
from fontspine.core.settings import BuildSettings, get_settings
from fontspine.pipeline import build_all, create_context, rules, ttc, ttf, variant
from fontspine.tools.runner import ToolRunner

logger = get_logger(__name__)

app = typer.Typer(
    name="fontspine",
    help="fontspine — incremental build of a CJK font family from source parts.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


@dataclass
class CliOptions:
    """Global options, shared by every command through ``ctx.obj``."""

    root: Path | None = None
    config: str | None = None
    jobs: int | None = None
    fail_fast: bool = False
    log_level: str | None = None
    log_format: str | None = None

    def settings(self) -> BuildSettings:
        return get_settings(
            root=self.root,
            config_file=self.config,
            jobs=self.jobs,
            fail_fast=self.fail_fast or None,
            log_level=self.log_level,
            log_format=self.log_format,
        )


@app.callback()
def _global_options(
    ctx: typer.Context,
    root: Path | None = typer.Option(None, "--root", help="Project root (default: current directory)."),
    config: str | None = typer.Option(None, "--config", "-c", help="Build configuration file."),
    jobs: int | None = typer.Option(None, "--jobs", "-j", min=1, help="Concurrent external processes."),
    fail_fast: bool = typer.Option(False, "--fail-fast", help="Start no new task after the first failure."),
    log_level: str | None = typer.Option(None, "--log-level", help="DEBUG, INFO, WARNING or ERROR."),
    log_format: str | None = typer.Option(None, "--log-format", help="console or json."),
) -> None:
    """fontspine CLI — build, inspect and package the font matrix."""
    ctx.obj = CliOptions(root, config, jobs, fail_fast, log_level, log_format)


# ── Shared plumbing ──────────────────────────────────────────────────────


def _options(ctx: typer.Context) -> CliOptions:
    return ctx.obj if isinstance(ctx.obj, CliOptions) else CliOptions()


def _load(options: CliOptions) -> tuple[BuildSettings, BuildConfig]:
    """Settings and validated configuration, or exit 2."""
    try:
        settings = options.settings()
    except ValidationError as exc:
        err_console.print(f"[bold red]Error[/bold red] (CONFIG): invalid settings\n{exc}")
        raise typer.Exit(code=EXIT_CONFIG_ERROR) from exc

    configure_logging(settings.log_level, settings.log_format, force=True)
    try:
        config = load_config(settings.resolve(settings.config_file))
    except ConfigError as exc:
        print_error(exc)
        raise typer.Exit(code=EXIT_CONFIG_ERROR) from exc
    return settings, config


def _build(loaded: tuple[BuildSettings, BuildConfig], *targets: Any) -> Any:
    settings, config = loaded
    context = create_context(settings, runner=ToolRunner(settings), config=config)
    try:
        result = context.run(*targets)
    except BuildError as exc:
        print_report(context.report)
        cause = root_cause(exc)
        if isinstance(cause, ConfigError):
            print_error(cause)
            raise typer.Exit(code=EXIT_CONFIG_ERROR) from exc
        raise typer.Exit(code=EXIT_BUILD_FAILED) from exc
    print_report(context.report)
    return result


# ── Build commands ───────────────────────────────────────────────────────


@app.command("all")
def build_all_command(ctx: typer.Context) -> None:
    """Build the TTF and TTC archives."""
    for archive in _build(_load(_options(ctx)), build_all):
        console.print(f"[bold green]✓[/bold green] {archive}")


@app.command("ttf")
def ttf_command(ctx: typer.Context) -> None:
    """Build every TTF and the TTF archive."""
    console.print(f"[bold green]✓[/bold green] {_build(_load(_options(ctx)), ttf)}")


@app.command("ttc")
def ttc_command(ctx: typer.Context) -> None:
    """Build every TTC and the TTC archive."""
    console.print(f"[bold green]✓[/bold green] {_build(_load(_options(ctx)), ttc)}")


@app.command("variant")
def variant_command(
    ctx: typer.Context,
    family: str = typer.Argument(..., help="Family, e.g. mono"),
    region: str = typer.Argument(..., help="Region, e.g. sc"),
    style: str = typer.Argument(..., help="Style, e.g. bolditalic"),
) -> None:
    """Build one production font."""
    loaded = _load(_options(ctx))
    config = loaded[1]
    try:
        config.check_variant(family, region, style)
    except ConfigError as exc:
        print_error(exc)
        raise typer.Exit(code=EXIT_CONFIG_ERROR) from exc
    console.print(f"[bold green]✓[/bold green] {_build(loaded, variant(family, region, style))}")


# ── Inspection commands ──────────────────────────────────────────────────


@app.command("rules")
def rules_command(
    kind: str | None = typer.Option(None, "--kind", "-k", help="oracle, task, file, phony or source"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List registered stages."""
    entries = rules.list_with_metadata(kind)
    if json_out:
        print_json(entries)
        return
    console.print(
        rows_table(
            "Stages",
            ["Kind", "Stage", "Description"],
            [[e["kind"], e["stage"], e["description"]] for e in entries],
        )
    )


@app.command("plan")
def plan_command(ctx: typer.Context, json_out: bool = typer.Option(False, "--json")) -> None:
    """Show the variant matrix and the hinting weight chain."""
    settings, config = _load(_options(ctx))
    variants = [
        {
            "family": family,
            "region": region,
            "style": style,
            "weight": config.deitalized_name(style),
            "italic": config.is_italic_variant(style),
            "file": f"{settings.prefix}-{family}-{region}-{style}.ttf",
        }
        for family, region, style in config.variants()
    ]
    chain = config.weight_chain()
    if json_out:
        print_json({"variants": variants, "weight_chain": chain, "style_pairs": config.style_pairs()})
        return

    console.print(
        rows_table(
            f"{len(variants)} variants",
            ["Family", "Region", "Style", "Weight", "Italic", "File"],
            [[v["family"], v["region"], v["style"], v["weight"], v["italic"], v["file"]] for v in variants],
        )
    )
    console.print("Weight chain: " + " → ".join(chain))


@app.command("version")
def version_command(ctx: typer.Context) -> None:
    """Show the fontspine version and the project version."""
    console.print(f"fontspine {__version__}")
    try:
        settings = _options(ctx).settings()
        project_version = load_version(settings.resolve(settings.metadata_file))
    except (ConfigError, ValidationError) as exc:
        logger.debug("version.unavailable", error=str(exc))
        return
    console.print(f"project {project_version}")


def main() -> None:
    """Console-script entry point."""
    app()

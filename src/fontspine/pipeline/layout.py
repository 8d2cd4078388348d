"""Canonical artifact locations.

Every file the pipeline reads or writes is named here, so the path
functions of the file rules stay one-liners and tests can predict where a
stage puts its output.

::

    build/shs/<region>-<weight>.otd           shs-otd
    build/non-kanji0/<region>-<style>.ttf     non-kanji0
    build/ws0|as0/<family>-<region>-<style>.ttf
    build/latin-<group>/<group>-<style>.ttf   latin-source
    build/pass1/<family>-<region>-<style>.ttf pass1
    build/kanji0|hangul0/<region>-<style>.ttf
    build/hf-<weight>/...otd                  hinting input (+ .hint.gz, .instr.gz)
    build/hfo-<weight>/...ttf                 hinted output
    out/ttf/<prefix>-<family>-<region>-<style>.ttf
    out/ttc/<prefix>-<style>.ttc
    out/<archive name>.7z

Source paths (``sources/...``, ``hinting-params/...``, recipes) are kept
relative to the project root; they become source-file task keys.
"""

from __future__ import annotations

from pathlib import Path, PurePosixPath

from fontspine.core.settings import BuildSettings


class Layout:
    """Directory layout of one project."""

    def __init__(self, settings: BuildSettings) -> None:
        self.settings = settings
        self.root = settings.root
        self.build = settings.resolve(settings.build_dir)
        self.out = settings.resolve(settings.out_dir)
        self.prefix = settings.prefix

    # ── Build tree ───────────────────────────────────────────────────

    def stage_dir(self, stage: str) -> Path:
        return self.build / stage

    @property
    def shs_build(self) -> Path:
        return self.build / "shs"

    def hint_dir(self, weight: str) -> Path:
        return self.build / f"hf-{weight}"

    def hint_out_dir(self, weight: str) -> Path:
        return self.build / f"hfo-{weight}"

    def hint_cache(self, weight: str) -> Path:
        return self.hint_dir(weight) / "cache.gz"

    # ── Output tree ──────────────────────────────────────────────────

    @property
    def ttf_dir(self) -> Path:
        return self.out / "ttf"

    @property
    def ttc_dir(self) -> Path:
        return self.out / "ttc"

    def prod_name(self, family: str, region: str, style: str) -> str:
        return f"{self.prefix}-{family}-{region}-{style}.ttf"

    def ttc_name(self, style: str) -> str:
        return f"{self.prefix}-{style}.ttc"

    def ttf_archive(self, version: str) -> Path:
        return self.out / self.settings.ttf_archive_name.format(version=version)

    def ttc_archive(self, version: str) -> Path:
        return self.out / self.settings.ttc_archive_name.format(version=version)

    # ── Root-relative inputs ─────────────────────────────────────────

    def source(self, *parts: str) -> PurePosixPath:
        return PurePosixPath(self.settings.sources_dir, *parts)

    def hint_params(self, weight: str) -> PurePosixPath:
        return PurePosixPath(self.settings.hinting_params_dir, f"{weight}.json")

    def recipe(self, name: str) -> str:
        """Recipe path as passed to ``--recipe`` (e.g. ``make/kanji/build.js``)."""
        return str(PurePosixPath(self.settings.recipe_dir, name))

    def relative(self, path: Path) -> PurePosixPath:
        """``path`` relative to the root, for source-file keys.

        Paths outside the root stay absolute.
        """
        if path.is_relative_to(self.root):
            return PurePosixPath(path.relative_to(self.root).as_posix())
        return PurePosixPath(path.as_posix())


__all__ = ["Layout"]

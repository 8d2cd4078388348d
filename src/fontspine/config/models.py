"""Build configuration models.

:class:`BuildConfig` is the immutable description of *what* the build
produces: the family x region x style matrix, the style-to-weight mapping,
per-family spacing flags, Latin groups and the layout of the multi-font
source containers. It is validated once when loaded; an inconsistent
config never reaches the pipeline.

JSON keys follow the original ``config.json`` (camelCase); Python
attributes are snake_case.

Example::

    config = BuildConfig.model_validate(json.loads(text))
    config.deitalized_name("bolditalic")   # -> "bold"
    config.weight_chain()                  # -> ["extralight", "light", "regular", ...]

Tags:
    fontspine, configuration, pydantic, validation

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from fontspine.core.errors import InvalidConfigError


class _ConfigModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class FamilyConfig(_ConfigModel):
    """Per-family flags passed to the punctuation and pass-1 recipes."""

    is_mono: bool = Field(default=False, alias="isMono")
    is_type: bool = Field(default=False, alias="isType")
    is_pwid: bool = Field(default=False, alias="isPWID")
    is_term: bool = Field(default=False, alias="isTerm")
    latin_group: str = Field(alias="latinGroup")

    def flags(self) -> dict[str, bool]:
        """Spacing flags as a recipe option map."""
        return {"mono": self.is_mono, "type": self.is_type, "pwid": self.is_pwid, "term": self.is_term}


class SubfamilyConfig(_ConfigModel):
    """A region (orthographic subfamily) and its display name."""

    name: str


class StyleConfig(_ConfigModel):
    """A style and, for italic styles, the upright style it derives from."""

    upright_style_map: str | None = Field(default=None, alias="uprightStyleMap")
    italic: bool | None = None

    @property
    def is_italic(self) -> bool:
        if self.italic is not None:
            return self.italic
        return self.upright_style_map is not None


class LatinGroupConfig(_ConfigModel):
    """Where the Latin outlines of a group come from."""

    is_cff: bool = Field(default=False, alias="isCff")
    style_to_file_suffix_map: dict[str, str] = Field(default_factory=dict, alias="styleToFileSuffixMap")

    def file_suffix(self, style: str) -> str:
        return self.style_to_file_suffix_map.get(style, style)


class SourceContainerMap(_ConfigModel):
    """Layout of the multi-font source containers.

    ``region`` maps a region id to the file part of its split font;
    ``style`` maps a weight to the file suffix of its container.
    """

    default_region: str = Field(alias="defaultRegion")
    region: dict[str, str]
    style: dict[str, str]

    def container_name(self, weight: str) -> str:
        return f"{self.default_region}-{self.style[weight]}.ttc"

    def part_name(self, region: str, weight: str) -> str:
        return f"{self.region[region]}-{self.style[weight]}.otf"


class BuildConfig(_ConfigModel):
    """Immutable build configuration for one run."""

    families: dict[str, FamilyConfig]
    subfamilies: dict[str, SubfamilyConfig]
    styles: dict[str, StyleConfig]
    family_order: list[str] = Field(alias="familyOrder")
    subfamily_order: list[str] = Field(alias="subfamilyOrder")
    style_order: list[str] = Field(alias="styleOrder")
    latin_groups: dict[str, LatinGroupConfig] = Field(default_factory=dict, alias="latinGroups")
    source_map: SourceContainerMap = Field(alias="shsSourceMap")

    @model_validator(mode="after")
    def _check_references(self) -> BuildConfig:
        for name, family in self.families.items():
            if family.latin_group not in self.latin_groups:
                raise ValueError(f"families.{name}.latinGroup: undefined Latin group {family.latin_group!r}")
        for name, style in self.styles.items():
            target = style.upright_style_map
            if target is None:
                continue
            if target not in self.styles:
                raise ValueError(f"styles.{name}.uprightStyleMap: undefined style {target!r}")
            if self.styles[target].upright_style_map is not None:
                raise ValueError(f"styles.{name}.uprightStyleMap: {target!r} is not an upright style")
        for field_name, names, table in (
            ("familyOrder", self.family_order, self.families),
            ("subfamilyOrder", self.subfamily_order, self.subfamilies),
            ("styleOrder", self.style_order, self.styles),
        ):
            for name in names:
                if name not in table:
                    raise ValueError(f"{field_name}: undefined entry {name!r}")
        for weight in self.weight_chain():
            if weight not in self.source_map.style:
                raise ValueError(f"shsSourceMap.style: no container suffix for weight {weight!r}")
        for region in self.subfamily_order:
            if region not in self.source_map.region:
                raise ValueError(f"shsSourceMap.region: no file part for region {region!r}")
        return self

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BuildConfig:
        """Validate raw config data, raising :class:`InvalidConfigError`."""
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            first = exc.errors()[0]
            location = ".".join(str(part) for part in first["loc"]) or "config"
            raise InvalidConfigError(location, first.get("input"), first["msg"]) from exc

    # ── Style resolution ─────────────────────────────────────────

    def deitalized_name(self, style: str) -> str:
        """Canonical weight name of ``style``.

        Each ``-`` separated part that names an italic style is replaced
        by its upright style; other parts are kept. Applying this twice
        gives the same result as applying it once.
        """
        parts = []
        for part in str(style).split("-"):
            entry = self.styles.get(part)
            parts.append((entry.upright_style_map or part) if entry else part)
        return "-".join(parts)

    def is_italic_variant(self, style: str) -> bool:
        return self.deitalized_name(style) != style

    def weight_chain(self) -> list[str]:
        """Hintable styles (no upright map) in declaration order."""
        return [name for name, style in self.styles.items() if style.upright_style_map is None]

    def styles_of_weight(self, weight: str) -> list[str]:
        """Every style whose canonical weight is ``weight``."""
        return [style for style in self.styles if self.deitalized_name(style) == weight]

    # ── Family lookups ───────────────────────────────────────────

    def family_flags(self, family: str) -> dict[str, bool]:
        return self.families[family].flags()

    def latin_group_of(self, family: str) -> str:
        return self.families[family].latin_group

    def region_display_name(self, region: str) -> str:
        return self.subfamilies[region].name

    # ── Matrix ───────────────────────────────────────────────────

    def variants(self) -> Iterator[tuple[str, str, str]]:
        """Every ``(family, region, style)`` in config order."""
        for family in self.family_order:
            for region in self.subfamily_order:
                for style in self.style_order:
                    yield family, region, style

    def check_variant(self, family: str, region: str, style: str) -> None:
        """Raise :class:`InvalidConfigError` unless the variant is in the matrix."""
        for kind, name, order in (
            ("family", family, self.family_order),
            ("region", region, self.subfamily_order),
            ("style", style, self.style_order),
        ):
            if name not in order:
                raise InvalidConfigError(kind, name, f"unknown {kind} {name!r}; expected one of {', '.join(order)}")

    def style_pairs(self) -> list[tuple[str | None, str | None]]:
        """``style_order`` grouped into (upright, italic) pairs."""
        order = self.style_order
        return [
            (order[j], order[j + 1] if j + 1 < len(order) else None)
            for j in range(0, len(order), 2)
        ]

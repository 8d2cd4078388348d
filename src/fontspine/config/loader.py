"""
Static JSON loaders for the build configuration, version and toolchain.

These are the raw reads behind the oracles in
:mod:`fontspine.pipeline.oracles`; each is called once per run.

Tags:
    fontspine, configuration, json, loader

Doc-Types:
    api-reference
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from fontspine.config.models import BuildConfig
from fontspine.core.errors import InvalidConfigError, MissingConfigError


def read_json(path: Path) -> Any:
    """Read a JSON document, mapping I/O and syntax errors to config errors."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise MissingConfigError(str(path), cause=exc) from exc
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise InvalidConfigError(str(path), None, f"{path}: malformed JSON ({exc.msg} at line {exc.lineno})") from exc


def load_config(path: Path) -> BuildConfig:
    """Load and validate ``config.json``."""
    data = read_json(path)
    if not isinstance(data, dict):
        raise InvalidConfigError(str(path), type(data).__name__, f"{path}: expected a JSON object")
    return BuildConfig.from_dict(data)


def load_version(path: Path) -> str:
    """Read the ``version`` string from the project metadata file."""
    data = read_json(path)
    version = data.get("version") if isinstance(data, dict) else None
    if not isinstance(version, str) or not version:
        raise InvalidConfigError(f"{path.name}:version", version, f"{path}: no version string")
    return version


def load_dependency_snapshot(root: Path, metadata_path: Path) -> dict[str, dict[str, str]]:
    """Declared and installed versions of the toolchain packages.

    Returns ``{"requirements": {...}, "actual": {...}}``. A package that is
    declared but not installed is reported with an empty version, so the
    snapshot still changes once it gets installed.
    """
    data = read_json(metadata_path)
    requirements: dict[str, str] = dict(data.get("dependencies") or {}) if isinstance(data, dict) else {}
    actual: dict[str, str] = {}
    for name in sorted(requirements):
        package_json = root / "node_modules" / name / "package.json"
        try:
            actual[name] = str(json.loads(package_json.read_text(encoding="utf-8")).get("version", ""))
        except (OSError, json.JSONDecodeError):
            actual[name] = ""
    return {"requirements": requirements, "actual": actual}

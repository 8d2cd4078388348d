"""Build configuration: models, validation and JSON loaders."""

from fontspine.config.loader import load_config, load_dependency_snapshot, load_version, read_json
from fontspine.config.models import (
    BuildConfig,
    FamilyConfig,
    LatinGroupConfig,
    SourceContainerMap,
    StyleConfig,
    SubfamilyConfig,
)

__all__ = [
    "BuildConfig",
    "FamilyConfig",
    "LatinGroupConfig",
    "SourceContainerMap",
    "StyleConfig",
    "SubfamilyConfig",
    "load_config",
    "load_dependency_snapshot",
    "load_version",
    "read_json",
]

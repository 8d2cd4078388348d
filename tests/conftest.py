"""
Shared pytest fixtures and configuration for fontspine tests.

This module provides:
- Environment isolation (no ``FONTSPINE_*`` variable leaks into a test)
- Throwaway project trees with config, sources and recipes
- ``FakeToolRunner`` instances wired to those projects

Usage:
    def test_something(project, fake_runner):
        ctx = create_context(project.settings, runner=fake_runner, config=project.config)
        ctx.run(ttf)
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest
import structlog

from fontspine.core.settings import BuildSettings, clear_settings_cache
from tests._support.fake_tools import FakeToolRunner, runner_for
from tests._support.project import TWO_WEIGHT_CONFIG, Project, make_project

# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    for item in items:
        test_path = Path(item.fspath).relative_to(Path(__file__).parent)
        if "pipeline" in test_path.parts or "cli" in test_path.parts:
            item.add_marker(pytest.mark.integration)
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch):
    """Strip FONTSPINE_* variables and cached settings around every test."""
    for name in list(os.environ):
        if name.startswith("FONTSPINE_"):
            monkeypatch.delenv(name, raising=False)
    clear_settings_cache()
    structlog.contextvars.clear_contextvars()
    yield
    clear_settings_cache()
    structlog.contextvars.clear_contextvars()


# =============================================================================
# Projects
# =============================================================================


@pytest.fixture
def settings(tmp_path: Path) -> BuildSettings:
    """Settings rooted at an empty temporary directory."""
    return BuildSettings(root=tmp_path, jobs=2)


@pytest.fixture
def project(tmp_path: Path) -> Project:
    """One family, one region, regular + italic."""
    return make_project(tmp_path)


@pytest.fixture
def two_weight_project(tmp_path: Path) -> Project:
    """Two families, two regions, light and regular with italics."""
    return make_project(tmp_path, TWO_WEIGHT_CONFIG)


@pytest.fixture
def fake_runner(project: Project) -> FakeToolRunner:
    return runner_for(project)

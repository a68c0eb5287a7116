"""
Global test configuration with environment isolation and shared fixtures.
"""

from collections.abc import Mapping
import os

import pytest

from closure_build.config import FrozenConfig, resolve_config
from tests.helpers import FakeRunner


# --- Environment Isolation (Autouse) ---
@pytest.fixture(autouse=True)
def isolate_closure_build_env(request, monkeypatch, tmp_path):
    """Ensure a clean CLOSURE_BUILD_* environment for each test.

    - Removes all CLOSURE_BUILD_* variables and debug toggles
    - Points pyproject discovery at a file that does not exist, so a
      developer's project configuration never leaks into tests

    Escape hatch: @pytest.mark.allow_env_pollution keeps the env unchanged.
    """
    if request.node.get_closest_marker("allow_env_pollution"):
        return

    for key in list(os.environ.keys()):
        if key.startswith("CLOSURE_BUILD_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.delenv("DEBUG", raising=False)
    monkeypatch.setenv(
        "CLOSURE_BUILD_PYPROJECT_PATH", str(tmp_path / "no-such-pyproject.toml")
    )


def pytest_configure(config):
    """Configure custom markers for test organization."""
    markers = [
        "unit: Fast, isolated unit tests",
        "integration: Tests using real sockets, processes or cache directories",
        "allow_env_pollution: Skip CLOSURE_BUILD_* environment isolation",
    ]
    for marker in markers:
        config.addinivalue_line("markers", marker)


# --- Core Fixtures ---


@pytest.fixture
def frozen_config() -> FrozenConfig:
    """Default configuration, independent of the environment."""
    return resolve_config().to_frozen()


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def make_sources(tmp_path):
    """Write source files into a fresh directory and return their paths."""

    def _make(files: Mapping[str, str]) -> list[str]:
        src_dir = tmp_path / "src"
        src_dir.mkdir(exist_ok=True)
        paths = []
        for name, content in files.items():
            path = src_dir / name
            path.write_text(content, encoding="utf-8")
            paths.append(str(path))
        return paths

    return _make

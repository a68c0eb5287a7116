"""File-based configuration loading with profile support.

Configuration lives in the project's pyproject.toml under
``[tool.closure_build]``, with named profiles under
``[tool.closure_build.profiles.<name>]``.
"""

import os
from pathlib import Path
import tomllib
from typing import Any

PYPROJECT_PATH_ENV = "CLOSURE_BUILD_PYPROJECT_PATH"
_TOOL_SECTION = "closure_build"


class ConfigFileError(Exception):
    """Raised when configuration file loading fails."""

    def __init__(
        self, file_path: Path, message: str, cause: Exception | None = None
    ) -> None:
        """Initialize with file path, message, and optional cause."""
        self.file_path = file_path
        self.message = message
        self.cause = cause
        super().__init__(f"Config file error in {file_path}: {message}")


class FileConfigLoader:
    """Loads configuration from pyproject.toml with profile support."""

    def load_project_config(
        self, project_root: Path | None = None, profile: str | None = None
    ) -> dict[str, Any]:
        """Load configuration from pyproject.toml.

        Args:
            project_root: Directory to search for pyproject.toml. If None,
                         searches current directory and parents.
            profile: Optional profile name to load from
                    [tool.closure_build.profiles.<name>] instead of the base
                    section.

        Returns:
            Dictionary of configuration values; empty if there is no file or
            no closure_build section.

        Raises:
            ConfigFileError: If the file cannot be parsed or the profile is missing.
        """
        pyproject_path = self._find_pyproject_toml(project_root)
        if not pyproject_path:
            return {}

        section = self._read_section(pyproject_path)
        if not section:
            if profile:
                raise ConfigFileError(
                    pyproject_path,
                    f"Profile '{profile}' not found. Available profiles: []",
                )
            return {}

        if profile:
            profiles = section.get("profiles", {})
            if profile not in profiles:
                available = list(profiles.keys()) if profiles else []
                raise ConfigFileError(
                    pyproject_path,
                    f"Profile '{profile}' not found. Available profiles: {available}",
                )
            return dict(profiles[profile])

        config = dict(section)
        config.pop("profiles", None)
        return config

    def list_available_profiles(self, project_root: Path | None = None) -> list[str]:
        """List profile names defined in the project's pyproject.toml."""
        pyproject_path = self._find_pyproject_toml(project_root)
        if not pyproject_path:
            return []
        try:
            section = self._read_section(pyproject_path)
        except ConfigFileError:
            return []
        return list(section.get("profiles", {}).keys())

    def _read_section(self, pyproject_path: Path) -> dict[str, Any]:
        try:
            with pyproject_path.open(mode="rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise ConfigFileError(
                pyproject_path, f"Failed to parse TOML: {e}", cause=e
            ) from e

        section = data.get("tool", {}).get(_TOOL_SECTION, {})
        if not isinstance(section, dict):
            raise ConfigFileError(
                pyproject_path, f"[tool.{_TOOL_SECTION}] must be a table"
            )
        return section

    def _find_pyproject_toml(self, start_dir: Path | None = None) -> Path | None:
        """Find pyproject.toml by searching up the directory tree.

        The CLOSURE_BUILD_PYPROJECT_PATH environment variable, when set, names
        the file directly.
        """
        explicit = os.getenv(PYPROJECT_PATH_ENV)
        if explicit:
            path = Path(explicit)
            return path if path.exists() else None

        current = Path(start_dir if start_dir is not None else Path.cwd()).resolve()

        while current != current.parent:  # Stop at filesystem root
            pyproject_path = current / "pyproject.toml"
            if pyproject_path.exists():
                return pyproject_path
            current = current.parent

        return None

"""Configuration resolution with precedence handling.

Merges configuration from all sources in this order of precedence:
Programmatic > Environment > pyproject.toml > Defaults
"""

import logging
import os
from pathlib import Path
from typing import Any

from .env_loader import EnvironmentConfigLoader
from .file_loader import ConfigFileError, FileConfigLoader
from .schema import BuildSettings, schema_defaults
from .types import ConfigOrigin, ResolvedConfig

log = logging.getLogger(__name__)

PROFILE_ENV = "CLOSURE_BUILD_PROFILE"


class ConfigResolver:
    """Resolves configuration from multiple sources with proper precedence."""

    def __init__(self) -> None:  # noqa: D107
        self.file_loader = FileConfigLoader()
        self.env_loader = EnvironmentConfigLoader()

    def resolve(
        self,
        programmatic: dict[str, Any] | None = None,
        *,
        profile: str | None = None,
        project_root: Path | None = None,
    ) -> ResolvedConfig:
        """Resolve configuration from all sources with proper precedence.

        Args:
            programmatic: Programmatic overrides (highest precedence)
            profile: Profile name to load from pyproject.toml
            project_root: Directory to search for pyproject.toml

        Returns:
            ResolvedConfig with merged values and source tracking.

        Raises:
            ValueError: If validation fails.
            ConfigFileError: If the configuration file is malformed.
        """
        merged: dict[str, Any] = {}
        origin: dict[str, ConfigOrigin] = {}

        def _apply(values: dict[str, Any], source: ConfigOrigin) -> None:
            for field, value in values.items():
                if field in merged:  # Only override known fields
                    merged[field] = value
                    origin[field] = source
                else:
                    log.debug("Ignoring unknown config field %r from %s", field, source)

        if profile is None:
            profile = os.getenv(PROFILE_ENV)

        # Step 1: Schema defaults
        for field, value in schema_defaults().items():
            merged[field] = value
            origin[field] = "default"

        # Step 2: pyproject.toml
        _apply(
            self.file_loader.load_project_config(
                project_root=project_root, profile=profile
            ),
            "file",
        )

        # Step 3: Environment
        try:
            _apply(self.env_loader.load_env_config(), "env")
        except ValueError as e:
            raise ValueError(f"Environment configuration error: {e}") from e

        # Step 4: Programmatic overrides
        if programmatic:
            _apply(programmatic, "programmatic")

        # Step 5: Validate the merged result
        try:
            final = BuildSettings(**merged).to_dict()
        except Exception as e:
            raise ValueError(f"Configuration validation failed: {e}") from e

        return ResolvedConfig(**final, origin=origin)

    def list_available_profiles(self, project_root: Path | None = None) -> list[str]:
        """List profile names available in the project file."""
        return self.file_loader.list_available_profiles(project_root)


__all__ = ["ConfigFileError", "ConfigResolver"]

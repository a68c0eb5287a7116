"""Configuration management for closure-build.

Resolve-once, freeze-then-flow configuration:
- ResolvedConfig: Post-resolution configuration with origin metadata
- FrozenConfig: Immutable configuration for pipeline execution
- SourceMap: Audit tracking of configuration value origins
"""

from .api import (
    config_scope,
    list_available_profiles,
    resolve_config,
    resolve_frozen_config,
)
from .file_loader import ConfigFileError, FileConfigLoader
from .resolver import ConfigResolver
from .schema import BuildSettings
from .types import ConfigOrigin, FrozenConfig, ResolvedConfig, SourceMap

__all__ = [  # noqa: RUF022
    # Main API
    "resolve_config",
    "resolve_frozen_config",
    "list_available_profiles",
    "config_scope",
    # Core types
    "ResolvedConfig",
    "FrozenConfig",
    "SourceMap",
    "ConfigOrigin",
    # Advanced usage
    "BuildSettings",
    "ConfigResolver",
    "FileConfigLoader",
    "ConfigFileError",
]

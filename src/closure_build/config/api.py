"""Public API for the configuration system.

Provides `resolve_config()` and the `config_scope()` context manager, which
temporarily installs a resolved configuration for resolution at entry time.
"""

from collections.abc import Generator
from contextlib import contextmanager
import contextvars
from pathlib import Path
from typing import Any

from .resolver import ConfigResolver
from .types import FrozenConfig, ResolvedConfig

_resolver = ConfigResolver()

_ambient_resolved_config: contextvars.ContextVar[ResolvedConfig] = (
    contextvars.ContextVar("closure_build_resolved_config")
)


def resolve_config(
    programmatic: dict[str, Any] | None = None,
    *,
    profile: str | None = None,
    project_root: Path | None = None,
) -> ResolvedConfig:
    """Resolve configuration from all sources with proper precedence.

    Inside a `config_scope()`, the scoped configuration is the base and only
    `programmatic` overrides are applied on top of it.

    Args:
        programmatic: Dictionary of overrides (highest precedence). Only known
                     configuration fields are used.
        profile: Profile name to load from pyproject.toml. If None, uses the
                CLOSURE_BUILD_PROFILE environment variable if set.
        project_root: Directory to search for pyproject.toml. If None,
                     searches current directory and parents.

    Returns:
        ResolvedConfig with merged values and source tracking for audit.

    Raises:
        ValueError: If validation fails or environment values are invalid.
        ConfigFileError: If the configuration file exists but is malformed.

    Example:
        config = resolve_config({"service_port": 8080})
        frozen = config.to_frozen()
    """
    try:
        ambient = _ambient_resolved_config.get()
    except LookupError:
        return _resolver.resolve(
            programmatic=programmatic, profile=profile, project_root=project_root
        )
    if programmatic:
        return ambient.with_overrides(**programmatic)
    return ambient


def resolve_frozen_config(
    programmatic: dict[str, Any] | None = None, *, profile: str | None = None
) -> FrozenConfig:
    """Shortcut for `resolve_config(...).to_frozen()`."""
    return resolve_config(programmatic, profile=profile).to_frozen()


def list_available_profiles(project_root: Path | None = None) -> list[str]:
    """List all configuration profiles defined in pyproject.toml."""
    return _resolver.list_available_profiles(project_root)


@contextmanager
def config_scope(config: ResolvedConfig) -> Generator[None]:
    """Temporarily use a different resolved configuration.

    Only affects `resolve_config()` calls made within the scope; a
    FrozenConfig already handed to a pipeline does not change.
    """
    token = _ambient_resolved_config.set(config)
    try:
        yield
    finally:
        _ambient_resolved_config.reset(token)

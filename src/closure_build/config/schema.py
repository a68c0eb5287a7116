"""Configuration schema and validation using Pydantic.

This module defines the settings schema that validates and coerces
configuration values from the environment, pyproject.toml and programmatic
overrides into the correct types with proper defaults.
"""

from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from closure_build.constants import (
    DEFAULT_COMPILER_JAR,
    DEFAULT_JAVA_BINARY,
    DEFAULT_SERVICE_HOST,
    DEFAULT_SERVICE_PATH,
    DEFAULT_SERVICE_PORT,
    DEFAULT_TEMPLATE_COMPILER_JAR,
    DEFAULT_TEMPLATE_RUNTIME,
    MAX_RESPONSE_BYTES,
    NETWORK_TIMEOUT,
    SUBPROCESS_TIMEOUT,
)

ENV_PREFIX = "CLOSURE_BUILD_"


class BuildSettings(BaseSettings):
    """Pydantic settings schema for the compiler toolchain and service.

    Integrates with environment variables using the CLOSURE_BUILD_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=None,
        case_sensitive=False,
        extra="ignore",  # Ignore unknown env vars for forward compatibility
    )

    # --- Local toolchain ---

    java_binary: str = Field(
        default=DEFAULT_JAVA_BINARY,
        description="Java executable used to run the compiler jars",
        min_length=1,
    )

    compiler_jar: Path = Field(
        default=Path(DEFAULT_COMPILER_JAR),
        description="Closure Compiler jar",
    )

    template_compiler_jar: Path = Field(
        default=Path(DEFAULT_TEMPLATE_COMPILER_JAR),
        description="Soy template to JavaScript compiler jar",
    )

    template_runtime: Path = Field(
        default=Path(DEFAULT_TEMPLATE_RUNTIME),
        description="Runtime support script required by compiled templates",
    )

    subprocess_timeout: float = Field(
        default=SUBPROCESS_TIMEOUT,
        description="Seconds a compiler process may run before it is killed",
        gt=0,
    )

    # --- Compiler service ---

    service_host: str = Field(
        default=DEFAULT_SERVICE_HOST,
        description="Compiler service host",
        min_length=1,
    )

    service_port: int = Field(
        default=DEFAULT_SERVICE_PORT,
        description="Compiler service TCP port",
        ge=1,
        le=65535,
    )

    service_path: str = Field(
        default=DEFAULT_SERVICE_PATH,
        description="Compiler service request path",
    )

    network_timeout: float = Field(
        default=NETWORK_TIMEOUT,
        description="Seconds allowed for connecting to and reading from the service",
        gt=0,
    )

    max_response_bytes: int = Field(
        default=MAX_RESPONSE_BYTES,
        description="Upper bound on the size of a service response",
        gt=0,
    )

    referer: str = Field(
        default="",
        description="Referer header sent with service requests",
    )

    @field_validator("service_path")
    @classmethod
    def require_absolute_path(cls, v: str) -> str:
        """Request paths must start with a slash."""
        if not v.startswith("/"):
            raise ValueError(f"service_path must start with '/': {v!r}")
        return v

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary suitable for SourceMap annotation."""
        return {name: getattr(self, name) for name in type(self).model_fields}


def schema_defaults() -> dict[str, Any]:
    """Return the declared default of every settings field.

    Unlike instantiating `BuildSettings()`, this never consults the environment.
    """
    return {
        name: field.default for name, field in BuildSettings.model_fields.items()
    }

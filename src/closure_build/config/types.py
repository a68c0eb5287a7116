"""Core configuration data types for closure-build.

This module defines the fundamental data structures used throughout the
configuration system, following the resolve-once, freeze-then-flow pattern.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, NamedTuple

# --- Source Tracking Types ---

ConfigOrigin = Literal["programmatic", "env", "file", "default"]
SourceMap = Mapping[str, ConfigOrigin]


class ResolvedConfig(NamedTuple):
    """Configuration after resolution from all sources, before freezing.

    Carries an origin map recording where each value came from, for audit
    output. Convert to `FrozenConfig` before handing it to the pipeline.
    """

    java_binary: str
    compiler_jar: Path
    template_compiler_jar: Path
    template_runtime: Path
    subprocess_timeout: float
    service_host: str
    service_port: int
    service_path: str
    network_timeout: float
    max_response_bytes: int
    referer: str

    origin: SourceMap

    def to_frozen(self) -> "FrozenConfig":
        """Convert to the immutable configuration used in the pipeline."""
        values = self._asdict()
        values.pop("origin")
        return FrozenConfig(**values)

    def with_overrides(self, **overrides: object) -> "ResolvedConfig":
        """Create a new ResolvedConfig with programmatic overrides applied.

        Unknown fields are ignored.
        """
        new_values = self._asdict()
        new_origin = dict(self.origin)

        for field, value in overrides.items():
            if field in new_values and field != "origin":
                new_values[field] = value
                new_origin[field] = "programmatic"

        new_values["origin"] = new_origin
        return ResolvedConfig(**new_values)

    def audit(self) -> str:
        """Human-readable report of each field's value and origin."""
        lines = []
        for field in self._fields:
            if field == "origin" or field not in self.origin:
                continue
            lines.append(f"{field}: {self.origin[field]}:{getattr(self, field)}")
        return "\n".join(lines)


@dataclass(frozen=True)
class FrozenConfig:
    """Immutable configuration attached to the pipeline and server.

    Any attempt to modify this object will raise an exception.
    """

    java_binary: str
    compiler_jar: Path
    template_compiler_jar: Path
    template_runtime: Path
    subprocess_timeout: float
    service_host: str
    service_port: int
    service_path: str
    network_timeout: float
    max_response_bytes: int
    referer: str

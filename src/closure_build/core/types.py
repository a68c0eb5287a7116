"""Core data types that flow through the compilation pipeline.

This module defines the immutable data structures that describe a build: the
finalized request, the parsed reply of the compiler service, and the result
type that pipeline handlers return instead of raising.
"""

from __future__ import annotations

import dataclasses
import enum
from pathlib import Path
from types import MappingProxyType
import typing

from closure_build.constants import OUTPUT_PLACEHOLDER

T = typing.TypeVar("T")


def _freeze_mapping(
    m: dict[str, T] | typing.Mapping[str, T] | None,
) -> typing.Mapping[str, T]:
    """Return an immutable mapping view (empty when None)."""
    if isinstance(m, MappingProxyType):
        return m
    return MappingProxyType(dict(m or {}))


def _require(
    *,
    condition: bool,
    message: str,
    exc: type[Exception] = ValueError,
    field_name: str | None = None,
) -> None:
    """Centralized validation with optional field context for clearer errors."""
    if not condition:
        if field_name:
            raise exc(f"{field_name}: {message}")
        raise exc(message)


# --- Result Monad ---
# Handlers return Success|Failure so that a failed compile is an ordinary
# value in the data flow rather than an exception to catch.

TSuccess = typing.TypeVar("TSuccess")
TFailure = typing.TypeVar("TFailure", bound=Exception)


@dataclasses.dataclass(frozen=True, slots=True)
class Success[TSuccess]:
    """A successful result in the pipeline."""

    value: TSuccess


@dataclasses.dataclass(frozen=True, slots=True)
class Failure[TFailure]:
    """A failure in the pipeline, containing the error."""

    error: TFailure


Result = Success[TSuccess] | Failure[TFailure]


# --- Compiler Options ---


class CompilationLevel(enum.StrEnum):
    """Optimization level passed to the script compiler."""

    WHITESPACE_ONLY = "WHITESPACE_ONLY"
    SIMPLE = "SIMPLE_OPTIMIZATIONS"
    ADVANCED = "ADVANCED_OPTIMIZATIONS"

    @classmethod
    def from_code(cls, code: str | None) -> CompilationLevel:
        """Map a one-letter mode code ('w', 's', 'a') to a level.

        Unknown or missing codes fall back to whitespace-only.
        """
        if code == "s":
            return cls.SIMPLE
        if code == "a":
            return cls.ADVANCED
        return cls.WHITESPACE_ONLY


class WarningLevel(enum.StrEnum):
    """Verbosity of compiler diagnostics."""

    QUIET = "QUIET"
    DEFAULT = "DEFAULT"
    VERBOSE = "VERBOSE"


# --- Build Request ---


@dataclasses.dataclass(frozen=True, slots=True)
class BuildRequest:
    """A finalized, immutable description of one build.

    Sources are compiled (and concatenated) in the order given. Externs are
    declaration-only inputs whose order does not matter.
    """

    sources: tuple[str, ...]
    externs: tuple[str, ...] = ()
    compilation_level: CompilationLevel = CompilationLevel.WHITESPACE_ONLY
    warning_level: WarningLevel = WarningLevel.DEFAULT
    use_closure_library: bool = False
    pretty_print: bool = False
    local_compile: bool = False
    debug: bool = True
    cache_dir: Path | None = None
    code_url_prefix: str | None = None
    output_wrapper: str | None = None

    def __post_init__(self) -> None:
        """Validate field types and the output wrapper placeholder."""
        _require(
            condition=isinstance(self.sources, tuple)
            and all(isinstance(s, str) and s.strip() for s in self.sources),
            message="must be a tuple of non-empty path strings",
            field_name="sources",
            exc=TypeError,
        )
        _require(
            condition=isinstance(self.externs, tuple)
            and all(isinstance(s, str) and s.strip() for s in self.externs),
            message="must be a tuple of non-empty path strings",
            field_name="externs",
            exc=TypeError,
        )
        _require(
            condition=isinstance(self.compilation_level, CompilationLevel),
            message="must be a CompilationLevel",
            field_name="compilation_level",
            exc=TypeError,
        )
        _require(
            condition=isinstance(self.warning_level, WarningLevel),
            message="must be a WarningLevel",
            field_name="warning_level",
            exc=TypeError,
        )
        _require(
            condition=self.cache_dir is None or isinstance(self.cache_dir, Path),
            message="must be a Path or None",
            field_name="cache_dir",
            exc=TypeError,
        )
        if self.output_wrapper is not None:
            _require(
                condition=OUTPUT_PLACEHOLDER in self.output_wrapper,
                message=f"must contain the {OUTPUT_PLACEHOLDER} placeholder",
                field_name="output_wrapper",
            )

    @property
    def caching_enabled(self) -> bool:
        """True when a cache directory has been configured."""
        return self.cache_dir is not None


# --- Compiler Service Reply ---


@dataclasses.dataclass(frozen=True, slots=True)
class ResponseNode:
    """One element of the compiler service's reply document."""

    tag: str
    value: str | tuple[ResponseNode, ...]
    attributes: typing.Mapping[str, str] = dataclasses.field(
        default_factory=lambda: MappingProxyType({})
    )

    def __post_init__(self) -> None:
        """Freeze attributes for immutability."""
        object.__setattr__(self, "attributes", _freeze_mapping(self.attributes))

    @property
    def children(self) -> tuple[ResponseNode, ...]:
        """Child nodes, or an empty tuple for a text node."""
        return self.value if isinstance(self.value, tuple) else ()

    @property
    def text(self) -> str:
        """Text value, or an empty string for a node with children."""
        return self.value if isinstance(self.value, str) else ""


@dataclasses.dataclass(frozen=True, slots=True)
class CompileStatistics:
    """Size and timing figures reported by the compiler service."""

    original_size: str = ""
    original_gzip_size: str = ""
    compressed_size: str = ""
    compressed_gzip_size: str = ""
    compile_time: str = ""


@dataclasses.dataclass(frozen=True, slots=True)
class CompilerMessage:
    """A single warning or error reported by the compiler service."""

    type: str
    description: str
    lineno: str = ""
    charno: str = ""
    line: str = ""


@dataclasses.dataclass(frozen=True, slots=True)
class CompilerReport:
    """Everything extracted from one compiler service reply."""

    compiled_code: str = ""
    statistics: CompileStatistics = dataclasses.field(
        default_factory=CompileStatistics
    )
    warnings: tuple[CompilerMessage, ...] = ()
    errors: tuple[CompilerMessage, ...] = ()
    server_errors: tuple[str, ...] = ()


# --- Serving ---


@dataclasses.dataclass(frozen=True, slots=True)
class ArtifactResponse:
    """What the caller should send back to the client.

    A status of 304 means the client copy is current: send the headers and
    no body.
    """

    status: int
    body: bytes
    headers: typing.Mapping[str, str]
    etag: str | None = None
    last_modified: int | None = None

    def __post_init__(self) -> None:
        """Freeze headers for immutability."""
        object.__setattr__(self, "headers", _freeze_mapping(self.headers))

    @property
    def not_modified(self) -> bool:
        """True when the client's cached copy may be reused."""
        return self.status == 304  # noqa: PLR2004

"""Core types and request construction for closure-build."""

from .builder import BuildRequestBuilder
from .types import (
    ArtifactResponse,
    BuildRequest,
    CompilationLevel,
    CompileStatistics,
    CompilerMessage,
    CompilerReport,
    Failure,
    ResponseNode,
    Result,
    Success,
    WarningLevel,
)

__all__ = [  # noqa: RUF022
    "BuildRequestBuilder",
    "BuildRequest",
    "CompilationLevel",
    "WarningLevel",
    "ResponseNode",
    "CompileStatistics",
    "CompilerMessage",
    "CompilerReport",
    "ArtifactResponse",
    "Result",
    "Success",
    "Failure",
]

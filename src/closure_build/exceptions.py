"""Exceptions raised by the closure-build orchestrator."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from closure_build.pipeline.diagnostics import CompileDiagnostic


class ClosureBuildError(Exception):
    """Base exception for closure-build errors"""  # noqa: D415


class ConfigurationError(ClosureBuildError):
    """Raised when a build request or its environment is unusable.

    Examples: an empty source list, a cache directory that cannot be written,
    or a source file that does not exist.
    """


class SubprocessError(ClosureBuildError):
    """Raised when a local compiler process fails.

    Any output on stderr counts as a failure, regardless of the exit code.
    """

    def __init__(
        self, message: str, diagnostic: CompileDiagnostic | None = None
    ) -> None:
        """Initialize with a message and the captured diagnostic, if any."""
        super().__init__(message)
        self.diagnostic = diagnostic


class NetworkError(ClosureBuildError):
    """Raised when the compiler service cannot be reached or read"""  # noqa: D415


class ProtocolError(ClosureBuildError):
    """Raised when a response is malformed (bad chunk framing, bad XML)"""  # noqa: D415


class RemoteCompileError(ClosureBuildError):
    """Raised when the compiler service answers but refuses the request"""  # noqa: D415


class PipelineError(ClosureBuildError):
    """Raised when a pipeline stage fails to produce an artifact."""

    def __init__(
        self,
        message: str,
        stage_name: str | None = None,
        underlying_error: Exception | None = None,
    ) -> None:
        """Initialize with the failing stage and the error it reported."""
        super().__init__(
            f"Pipeline failed at stage '{stage_name}': {message}"
            if stage_name
            else message
        )
        self.stage_name = stage_name
        self.underlying_error = underlying_error

"""Entry point of the compilation pipeline.

`CompilerPipeline` picks the local or remote handler for a request and runs
it once. Failures are never retried: they come back as `Failure` values for
the caller to surface.
"""

from __future__ import annotations

import logging

from closure_build.config import FrozenConfig
from closure_build.core.types import BuildRequest, Failure, Result, Success
from closure_build.exceptions import ClosureBuildError, ConfigurationError
from closure_build.telemetry import TelemetryContext, TelemetryContextProtocol

from .base import CompileHandler
from .local_compiler import LocalCompileHandler
from .process import ProcessRunner
from .remote_compiler import HttpPoster, RemoteCompileHandler

log = logging.getLogger(__name__)

type CompileResult = Result[bytes, ClosureBuildError]


class CompilerPipeline:
    """Compiles build requests locally or through the compiler service."""

    def __init__(
        self,
        config: FrozenConfig,
        *,
        runner: ProcessRunner | None = None,
        client: HttpPoster | None = None,
        telemetry: TelemetryContextProtocol | None = None,
    ) -> None:
        """Initialize both handlers.

        Args:
            config: Toolchain and service configuration.
            runner: Optional process runner replacing real subprocesses.
            client: Optional HTTP client replacing the raw socket client.
            telemetry: Optional telemetry context (no-op by default).
        """
        self.config = config
        self.local = LocalCompileHandler(config, runner=runner)
        self.remote = RemoteCompileHandler(config, client=client)
        self._telemetry = telemetry or TelemetryContext()

    def handler_for(
        self, request: BuildRequest
    ) -> CompileHandler:
        """Return the handler that will compile `request`."""
        return self.local if request.local_compile else self.remote

    async def run(self, request: BuildRequest) -> CompileResult:
        """Compile `request`.

        Returns:
            Success with the artifact bytes, or Failure with the error.
        """
        if not request.sources:
            return Failure(ConfigurationError("No sources to compile"))

        handler = self.handler_for(request)
        ctx = self._telemetry
        with ctx(handler.stage_name, sources=len(request.sources)):
            result = await handler.handle(request)

        if isinstance(result, Failure):
            ctx.count("compile.failure", stage=handler.stage_name)
            log.warning("%s failed: %s", handler.stage_name, result.error)
        elif isinstance(result, Success):
            ctx.count("compile.success", stage=handler.stage_name)
            log.debug(
                "%s produced %d bytes", handler.stage_name, len(result.value)
            )
        return result

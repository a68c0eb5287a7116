"""Protocol shared by the local and remote compile handlers."""

from typing import Protocol

from closure_build.core.types import BuildRequest, Result
from closure_build.exceptions import ClosureBuildError


class CompileHandler(Protocol):
    """Turns a build request into artifact bytes.

    Compile errors are returned as `Failure` rather than raised; whether a
    failed compile is fatal is the caller's decision. `stage_name` names the
    telemetry scope and the stage reported in `PipelineError`.
    """

    stage_name: str

    async def handle(
        self, request: BuildRequest
    ) -> Result[bytes, ClosureBuildError]: ...  # noqa: D102

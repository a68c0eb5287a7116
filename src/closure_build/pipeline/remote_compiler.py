"""Compilation through the Closure Compiler web service.

Sources are either posted inline as one ``js_code`` blob or, when a code URL
prefix is configured, referenced as ``code_url`` entries the service fetches
itself (avoiding the service's request size limit). The XML reply is parsed
into a `CompilerReport` and rendered into the final artifact.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from datetime import datetime
import logging
from pathlib import Path
import re
from typing import Protocol
from urllib.parse import urlencode

from closure_build.config import FrozenConfig
from closure_build.constants import OUTPUT_INFO_FIELDS, REPEATABLE_PARAMETERS
from closure_build.core.types import (
    BuildRequest,
    CompilerMessage,
    CompilerReport,
    CompileStatistics,
    Failure,
    ResponseNode,
    Result,
    Success,
)
from closure_build.exceptions import (
    ClosureBuildError,
    ConfigurationError,
    NetworkError,
    ProtocolError,
    RemoteCompileError,
)
from closure_build.transport.http import RawHttpClient, RawHttpResponse
from closure_build.transport.response_tree import parse_response_tree

from .diagnostics import compose_artifact

log = logging.getLogger(__name__)

_INDEX_SUFFIX = re.compile(r"_\d+$")

# Reply tag -> CompileStatistics field
_STATISTIC_FIELDS = {
    "originalSize": "original_size",
    "originalGzipSize": "original_gzip_size",
    "compressedSize": "compressed_size",
    "compressedGzipSize": "compressed_gzip_size",
    "compileTime": "compile_time",
}


class HttpPoster(Protocol):
    """The part of `RawHttpClient` the remote handler depends on."""

    async def post(  # noqa: D102
        self,
        host: str,
        path: str,
        headers: Mapping[str, str] | None,
        body: bytes,
        *,
        port: int = 80,
    ) -> RawHttpResponse: ...


def read_sources(sources: Sequence[str]) -> bytes:
    """Concatenate source file bytes in order, separated by a blank line.

    Contents are posted as they are on disk, whatever their encoding.

    Raises:
        ConfigurationError: If a source cannot be read.
    """
    contents = []
    for src in sources:
        try:
            contents.append(Path(src).read_bytes())
        except OSError as e:
            raise ConfigurationError(f"Unable to read source {src}: {e}") from e
    return b"\n\n".join(contents)


def build_parameters(request: BuildRequest) -> list[tuple[str, str | bytes]]:
    """Build the ordered request parameters for `request`.

    Repeatable parameters carry an index suffix here (``code_url_0``,
    ``output_info_1``) which `encode_parameters` strips. The order of the
    output_info entries matters to the service and is fixed.
    """
    params: list[tuple[str, str | bytes]] = []
    if request.code_url_prefix:
        params += [
            (f"code_url_{i}", f"{request.code_url_prefix}{src}")
            for i, src in enumerate(request.sources)
        ]
    else:
        params.append(("js_code", read_sources(request.sources)))

    params += [
        ("compilation_level", request.compilation_level.value),
        ("output_format", "xml"),
        ("warning_level", request.warning_level.value),
    ]
    if request.pretty_print:
        params.append(("formatting", "pretty_print"))
    if request.use_closure_library:
        params.append(("use_closure_library", "true"))
    params += [
        (f"output_info_{i}", info) for i, info in enumerate(OUTPUT_INFO_FIELDS, 1)
    ]
    return params


def encode_parameters(params: Iterable[tuple[str, str | bytes]]) -> bytes:
    """URL-encode parameters, collapsing indexed names of repeatable ones."""
    wire = []
    for key, value in params:
        base = _INDEX_SUFFIX.sub("", key)
        wire.append((base if base in REPEATABLE_PARAMETERS else key, value))
    return urlencode(wire).encode("ascii")


def _messages(node: ResponseNode) -> tuple[CompilerMessage, ...]:
    return tuple(
        CompilerMessage(
            type=child.attributes.get("type", ""),
            description=child.text,
            lineno=child.attributes.get("lineno", ""),
            charno=child.attributes.get("charno", ""),
            line=child.attributes.get("line", ""),
        )
        for child in node.children
    )


def extract_report(nodes: Iterable[ResponseNode]) -> CompilerReport:
    """Pull compiled code, statistics, warnings and errors out of a reply."""
    code = ""
    warnings: tuple[CompilerMessage, ...] = ()
    errors: tuple[CompilerMessage, ...] = ()
    server_errors: tuple[str, ...] = ()
    stats: dict[str, str] = {}

    for node in nodes:
        match node.tag:
            case "compiledCode":
                code = node.text
            case "warnings":
                warnings = _messages(node)
            case "errors":
                errors = _messages(node)
            case "statistics":
                stats = {
                    _STATISTIC_FIELDS[s.tag]: s.text
                    for s in node.children
                    if s.tag in _STATISTIC_FIELDS
                }
            case "serverErrors":
                server_errors = tuple(c.text for c in node.children) or (node.text,)

    return CompilerReport(
        compiled_code=code,
        statistics=CompileStatistics(**stats),
        warnings=warnings,
        errors=errors,
        server_errors=server_errors,
    )


class RemoteCompileHandler:
    """Compiles a build request through the compiler service."""

    stage_name = "compile.remote"

    def __init__(
        self,
        config: FrozenConfig,
        *,
        client: HttpPoster | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:  # noqa: D107
        self.config = config
        self.client = client or RawHttpClient(
            timeout=config.network_timeout,
            max_response_bytes=config.max_response_bytes,
        )
        self._clock = clock or (lambda: datetime.now().astimezone())

    async def handle(self, request: BuildRequest) -> Result[bytes, ClosureBuildError]:
        """Submit `request` to the service and return the artifact bytes."""
        if not request.sources:
            return Failure(ConfigurationError("No sources to compile"))
        try:
            body = encode_parameters(build_parameters(request))
        except ConfigurationError as e:
            return Failure(e)

        try:
            response = await self.client.post(
                self.config.service_host,
                self.config.service_path,
                {"Referer": self.config.referer},
                body,
                port=self.config.service_port,
            )
        except (NetworkError, ProtocolError) as e:
            return Failure(e)

        if not response.ok:
            log.error(
                "Compiler service rejected request: %s", response.status_line
            )
            return Failure(
                RemoteCompileError(
                    f"Compiler service returned {response.status_line!r}"
                )
            )

        try:
            report = extract_report(parse_response_tree(response.body))
        except ProtocolError as e:
            log.error("Unreadable compiler service reply: %s", e)
            return Failure(e)

        if report.server_errors:
            log.error("Compiler service errors: %s", "; ".join(report.server_errors))
            return Failure(
                RemoteCompileError(
                    "Compiler service refused the request: "
                    + "; ".join(report.server_errors)
                )
            )

        artifact = compose_artifact(
            report, debug=request.debug, generated_at=self._clock()
        )
        return Success(artifact.encode("utf-8"))

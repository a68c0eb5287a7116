"""Serving compiled artifacts with cache validation.

`ArtifactServer.write` is the single entry point a web handler calls: it
decides between the cached artifact and a fresh compile and answers
conditional requests with 304 when the client copy is current. The HTTP
layer itself stays with the caller, which receives an `ArtifactResponse`.
"""

from __future__ import annotations

from datetime import UTC
from email.utils import formatdate, parsedate_to_datetime
import logging
import os

from closure_build.cache import CacheEntry, CacheStore
from closure_build.config import FrozenConfig, resolve_frozen_config
from closure_build.constants import CONTENT_TYPE
from closure_build.core.types import ArtifactResponse, BuildRequest, Failure
from closure_build.exceptions import ConfigurationError, PipelineError
from closure_build.pipeline import CompilerPipeline
from closure_build.telemetry import TelemetryContext, TelemetryContextProtocol

log = logging.getLogger(__name__)


def http_date(timestamp: float) -> str:
    """Format `timestamp` as an RFC 7231 HTTP date."""
    return formatdate(timestamp, usegmt=True)


def parse_http_date(value: str | None) -> int | None:
    """Parse an HTTP date into epoch seconds, or None if absent or invalid."""
    if not value:
        return None
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        log.debug("Ignoring unparsable If-Modified-Since: %r", value)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return int(parsed.timestamp())


def _validators(etag: str, mtime: int) -> dict[str, str]:
    return {
        "Content-Type": CONTENT_TYPE,
        "Last-Modified": http_date(mtime),
        "ETag": f'"{etag}"',
    }


def etag_matches(if_none_match: str | None, etag: str) -> bool:
    """Check an If-None-Match header value against a bare `etag`."""
    if not if_none_match:
        return False
    for candidate in if_none_match.split(","):
        tag = candidate.strip()
        if tag == "*":
            return True
        tag = tag.removeprefix("W/").strip('"')
        if tag == etag:
            return True
    return False


class ArtifactServer:
    """Produces the response for one artifact request."""

    def __init__(
        self,
        config: FrozenConfig | None = None,
        *,
        pipeline: CompilerPipeline | None = None,
        telemetry: TelemetryContextProtocol | None = None,
    ) -> None:
        """Initialize the server.

        Args:
            config: Frozen configuration; resolved from the environment when
                omitted.
            pipeline: Compiler pipeline to use; built from `config` by default.
            telemetry: Optional telemetry context (no-op by default).
        """
        self._telemetry = telemetry or TelemetryContext()
        if pipeline is None:
            pipeline = CompilerPipeline(
                config or resolve_frozen_config(), telemetry=self._telemetry
            )
        self.pipeline = pipeline

    async def write(
        self,
        request: BuildRequest,
        *,
        caller_script_path: str | os.PathLike[str] | None = None,
        if_modified_since: str | None = None,
        if_none_match: str | None = None,
    ) -> ArtifactResponse:
        """Return the artifact for `request`, compiling it when needed.

        Args:
            request: The build to serve.
            caller_script_path: Script that assembled the build; edits to it
                invalidate the cached artifact like edits to a source.
            if_modified_since: Raw ``If-Modified-Since`` request header.
            if_none_match: Raw ``If-None-Match`` request header.

        Returns:
            An `ArtifactResponse` with status 200, or 304 when the client's
            cached copy is current.

        Raises:
            PipelineError: If compilation fails.
            ConfigurationError: If a source is missing or the cache directory
                cannot be written.
        """
        if not request.sources:
            raise ConfigurationError("No sources to compile")

        ctx = self._telemetry
        with ctx("serve"):
            if request.cache_dir is None:
                body = await self._compile(request)
                return ArtifactResponse(
                    status=200, body=body, headers={"Content-Type": CONTENT_TYPE}
                )

            store = CacheStore(request.cache_dir)
            entry = store.entry_for(request)
            if store.needs_recompile(entry, request, caller_script_path):
                ctx.count("cache.miss")
                log.debug("Recompiling %s", entry.fingerprint)
                store.ensure_writable()
                body = await self._compile(request)
                store.write(entry, body)
                return self._response(store, entry, body)

            ctx.count("cache.hit")
            log.debug("Serving cached %s", entry.fingerprint)
            return self._conditional_response(
                store, entry, if_modified_since, if_none_match
            )

    async def _compile(self, request: BuildRequest) -> bytes:
        result = await self.pipeline.run(request)
        if isinstance(result, Failure):
            stage = self.pipeline.handler_for(request).stage_name
            raise PipelineError(str(result.error), stage, result.error) from (
                result.error
            )
        return result.value

    def _response(
        self, store: CacheStore, entry: CacheEntry, body: bytes
    ) -> ArtifactResponse:
        etag = store.etag(entry)
        mtime = store.last_modified(entry)
        return ArtifactResponse(
            status=200,
            body=body,
            headers=_validators(etag, mtime),
            etag=etag,
            last_modified=mtime,
        )

    def _conditional_response(
        self,
        store: CacheStore,
        entry: CacheEntry,
        if_modified_since: str | None,
        if_none_match: str | None,
    ) -> ArtifactResponse:
        etag = store.etag(entry)
        mtime = store.last_modified(entry)
        headers = _validators(etag, mtime)

        # If-Modified-Since only counts when If-None-Match is absent
        if if_none_match:
            not_modified = etag_matches(if_none_match, etag)
        else:
            since = parse_http_date(if_modified_since)
            not_modified = since is not None and since >= mtime

        if not_modified:
            return ArtifactResponse(
                status=304,
                body=b"",
                headers=headers,
                etag=etag,
                last_modified=mtime,
            )

        return ArtifactResponse(
            status=200,
            body=store.read(entry),
            headers=headers,
            etag=etag,
            last_modified=mtime,
        )

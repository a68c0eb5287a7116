"""Minimal HTTP/1.1 client over a raw TCP stream.

Sends one ``Connection: close`` POST and reads until the peer closes. Only
what the compiler service exchange needs is implemented: a fixed header set,
header/body splitting, and chunked transfer decoding.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from contextlib import suppress
from dataclasses import dataclass, field
import logging

from closure_build.constants import (
    MAX_RESPONSE_BYTES,
    NETWORK_TIMEOUT,
    READ_BUFFER_SIZE,
)
from closure_build.exceptions import NetworkError, ProtocolError

from .chunked import decode_chunked

log = logging.getLogger(__name__)

_CRLF = "\r\n"
_HEADER_TERMINATOR = b"\r\n\r\n"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


@dataclass(frozen=True, slots=True)
class RawHttpResponse:
    """A response split into status line, headers and (decoded) body.

    Header names are lower-cased.
    """

    status_line: str
    status_code: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def ok(self) -> bool:  # noqa: D102
        return 200 <= self.status_code < 300  # noqa: PLR2004


def build_request(
    host: str, path: str, headers: Mapping[str, str] | None, body: bytes
) -> bytes:
    """Serialize a POST request.

    The Host, Referer, Content-Type, Content-Length and Connection headers
    are always sent, in that order. `headers` may supply Referer or
    Content-Type values; other entries are appended.
    """
    extra = dict(headers or {})
    fixed = {
        "Host": host,
        "Referer": extra.pop("Referer", ""),
        "Content-Type": extra.pop("Content-Type", FORM_CONTENT_TYPE),
        "Content-Length": str(len(body)),
        "Connection": "close",
    }
    for name in ("Host", "Content-Length", "Connection"):
        extra.pop(name, None)

    lines = [f"POST {path} HTTP/1.1"]
    lines.extend(f"{name}: {value}" for name, value in {**fixed, **extra}.items())
    head = _CRLF.join(lines) + _CRLF + _CRLF
    return head.encode("latin-1") + body


def parse_response(raw: bytes) -> RawHttpResponse:
    """Split a raw response at the first blank line and decode the body.

    Raises:
        ProtocolError: If there is no header terminator or the status line
            is not HTTP.
    """
    head, sep, body = raw.partition(_HEADER_TERMINATOR)
    if not sep:
        raise ProtocolError("Response has no header terminator")

    head_lines = head.decode("latin-1").split(_CRLF)
    status_line = head_lines[0]
    parts = status_line.split(" ", 2)
    if len(parts) < 2 or not parts[0].startswith("HTTP/"):  # noqa: PLR2004
        raise ProtocolError(f"Malformed status line: {status_line!r}")
    try:
        status_code = int(parts[1])
    except ValueError:
        raise ProtocolError(f"Malformed status code: {status_line!r}") from None

    headers: dict[str, str] = {}
    for line in head_lines[1:]:
        name, colon, value = line.partition(":")
        if colon:
            headers[name.strip().lower()] = value.strip()

    if "chunked" in headers.get("transfer-encoding", "").lower():
        body = decode_chunked(body)

    return RawHttpResponse(
        status_line=status_line,
        status_code=status_code,
        headers=headers,
        body=body,
    )


class RawHttpClient:
    """Posts form data over a plain TCP connection.

    Each read is bounded by `read_timeout` (defaulting to `timeout`), the
    exchange as a whole by `timeout`, and the response may not exceed
    `max_response_bytes`.
    """

    def __init__(
        self,
        *,
        timeout: float = NETWORK_TIMEOUT,
        max_response_bytes: int = MAX_RESPONSE_BYTES,
        read_size: int = READ_BUFFER_SIZE,
        read_timeout: float | None = None,
    ) -> None:  # noqa: D107
        self.timeout = timeout
        self.read_timeout = timeout if read_timeout is None else read_timeout
        self.max_response_bytes = max_response_bytes
        self.read_size = read_size

    async def post(
        self,
        host: str,
        path: str,
        headers: Mapping[str, str] | None,
        body: bytes,
        *,
        port: int = 80,
    ) -> RawHttpResponse:
        """Send a POST and return the parsed response.

        Raises:
            NetworkError: If the connection cannot be opened, fails, or times out.
            ProtocolError: If the response is malformed or too large.
        """
        request = build_request(host, path, headers, body)
        try:
            async with asyncio.timeout(self.timeout):
                raw = await self._exchange(host, port, request)
        except TimeoutError as e:
            log.error("Timed out talking to %s:%d%s", host, port, path)
            raise NetworkError(f"Timed out talking to {host}:{port}") from e
        except OSError as e:
            log.error("Socket error talking to %s:%d%s: %s", host, port, path, e)
            raise NetworkError(f"Unable to talk to {host}:{port}: {e}") from e

        return parse_response(raw)

    async def _exchange(self, host: str, port: int, request: bytes) -> bytes:
        reader, writer = await asyncio.open_connection(host, port)
        try:
            writer.write(request)
            await writer.drain()

            received = bytearray()
            while True:
                async with asyncio.timeout(self.read_timeout):
                    data = await reader.read(self.read_size)
                if not data:
                    break
                received += data
                if len(received) > self.max_response_bytes:
                    raise ProtocolError(
                        f"Response exceeds {self.max_response_bytes} bytes"
                    )
            log.debug("Received %d bytes from %s:%d", len(received), host, port)
            return bytes(received)
        finally:
            writer.close()
            with suppress(OSError):
                await writer.wait_closed()

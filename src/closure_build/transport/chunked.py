"""HTTP/1.1 chunked transfer-encoding decoder.

A chunked body is a sequence of ``<hex size>[;extensions]\\r\\n<data>\\r\\n``
frames ending with a zero-size chunk (optionally followed by trailers, which
are not consumed here). Chunk boundaries bear no relation to how the bytes
arrived from the socket, so decoding always works on the fully buffered body.
"""

from __future__ import annotations

import re

from closure_build.exceptions import ProtocolError

_CRLF = b"\r\n"
_HEX_SIZE = re.compile(rb"[0-9A-Fa-f]+")


def _parse_chunk_size(line: bytes) -> int:
    size_field = line.split(b";", 1)[0].strip()
    if not _HEX_SIZE.fullmatch(size_field):
        raise ProtocolError(f"Invalid chunk size line: {line[:40]!r}")
    return int(size_field, 16)


def decode_chunked(raw: bytes) -> bytes:
    """Reassemble a chunked body into contiguous bytes.

    Stops at the zero-size chunk, or cleanly when the buffer ends on a chunk
    boundary without one.

    Raises:
        ProtocolError: On a malformed size line or a chunk shorter than its
            declared size.
    """
    out = bytearray()
    pos = 0
    end = len(raw)

    while pos < end:
        line_end = raw.find(_CRLF, pos)
        if line_end == -1:
            # Stray whitespace after the last chunk is tolerated.
            if raw[pos:].strip():
                raise ProtocolError("Truncated chunk size line")
            break

        size = _parse_chunk_size(raw[pos:line_end])
        pos = line_end + len(_CRLF)
        if size == 0:
            break

        if pos + size > end:
            raise ProtocolError(
                f"Chunk declares {size} bytes but only {end - pos} remain"
            )
        out += raw[pos : pos + size]
        pos += size

        trailer = raw[pos : pos + len(_CRLF)]
        if trailer == _CRLF:
            pos += len(_CRLF)
        elif trailer:
            raise ProtocolError("Chunk data not followed by CRLF")

    return bytes(out)

"""Wire-level helpers: raw HTTP client, chunked decoding, reply parsing."""

from .chunked import decode_chunked
from .http import RawHttpClient, RawHttpResponse, build_request, parse_response
from .response_tree import parse_response_tree

__all__ = [
    "RawHttpClient",
    "RawHttpResponse",
    "build_request",
    "decode_chunked",
    "parse_response",
    "parse_response_tree",
]

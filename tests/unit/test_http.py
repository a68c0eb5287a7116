"""Request serialization and response parsing for the raw HTTP client."""

import pytest

from closure_build.exceptions import ProtocolError
from closure_build.transport import build_request, parse_response


@pytest.mark.unit
class TestBuildRequest:
    def test_fixed_headers_in_order(self):
        raw = build_request("example.com", "/compile", {"Referer": "r"}, b"a=1")
        head, _, body = raw.partition(b"\r\n\r\n")
        assert head.decode().split("\r\n") == [
            "POST /compile HTTP/1.1",
            "Host: example.com",
            "Referer: r",
            "Content-Type: application/x-www-form-urlencoded",
            "Content-Length: 3",
            "Connection: close",
        ]
        assert body == b"a=1"

    def test_extra_headers_follow_fixed_ones(self):
        raw = build_request("h", "/", {"X-Trace": "1"}, b"")
        lines = raw.decode().split("\r\n")
        assert lines[5] == "Connection: close"
        assert lines[6] == "X-Trace: 1"

    def test_content_length_cannot_be_overridden(self):
        raw = build_request("h", "/", {"Content-Length": "999"}, b"abcd")
        assert b"Content-Length: 4\r\n" in raw
        assert b"999" not in raw

    def test_missing_referer_is_sent_empty(self):
        raw = build_request("h", "/", None, b"")
        assert b"Referer: \r\n" in raw


@pytest.mark.unit
class TestParseResponse:
    def test_plain_body(self):
        resp = parse_response(
            b"HTTP/1.1 200 OK\r\nContent-Type: text/xml\r\n\r\n<a/>"
        )
        assert resp.status_code == 200
        assert resp.status_line == "HTTP/1.1 200 OK"
        assert resp.headers["content-type"] == "text/xml"
        assert resp.body == b"<a/>"
        assert resp.ok

    def test_chunked_body_is_decoded(self):
        raw = (
            b"HTTP/1.1 200 OK\r\nTransfer-Encoding: Chunked\r\n\r\n"
            b"2\r\n<a\r\n2\r\n/>\r\n0\r\n\r\n"
        )
        assert parse_response(raw).body == b"<a/>"

    def test_only_first_blank_line_splits_head_from_body(self):
        resp = parse_response(b"HTTP/1.1 200 OK\r\n\r\none\r\n\r\ntwo")
        assert resp.body == b"one\r\n\r\ntwo"

    def test_non_success_status_is_not_ok(self):
        resp = parse_response(b"HTTP/1.0 503 Service Unavailable\r\n\r\n")
        assert resp.status_code == 503
        assert not resp.ok

    @pytest.mark.parametrize(
        "raw",
        [
            b"HTTP/1.1 200 OK\r\nContent-Type: text/xml\r\n",
            b"garbage\r\n\r\n",
            b"HTTP/1.1 abc OK\r\n\r\n",
        ],
    )
    def test_malformed_responses_raise(self, raw):
        with pytest.raises(ProtocolError):
            parse_response(raw)

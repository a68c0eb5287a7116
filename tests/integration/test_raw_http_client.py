"""RawHttpClient against a local asyncio TCP server."""

import asyncio

import pytest

from closure_build.exceptions import NetworkError, ProtocolError
from closure_build.transport import RawHttpClient


async def serve_once(reply: bytes, received: list[bytes], *, delay: float = 0.0):
    async def handle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        head = await reader.readuntil(b"\r\n\r\n")
        length = next(
            int(line.split(b":", 1)[1])
            for line in head.split(b"\r\n")
            if line.lower().startswith(b"content-length:")
        )
        body = await reader.readexactly(length)
        received.append(head + body)
        if delay:
            await asyncio.sleep(delay)
        writer.write(reply)
        await writer.drain()
        writer.close()

    server = await asyncio.start_server(handle, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    return server, port


@pytest.mark.integration
@pytest.mark.asyncio
async def test_chunked_reply_is_reassembled():
    reply = (
        b"HTTP/1.1 200 OK\r\nTransfer-Encoding: chunked\r\n\r\n"
        b"5\r\n<a>he\r\n6\r\nllo</a\r\n1\r\n>\r\n0\r\n\r\n"
    )
    received: list[bytes] = []
    server, port = await serve_once(reply, received)
    async with server:
        client = RawHttpClient(timeout=5, read_size=3)
        response = await client.post(
            "127.0.0.1", "/compile", {"Referer": "http://me/"}, b"js_code=1", port=port
        )

    assert response.status_code == 200
    assert response.body == b"<a>hello</a>"
    (request,) = received
    assert request.startswith(b"POST /compile HTTP/1.1\r\nHost: 127.0.0.1\r\n")
    assert b"Referer: http://me/\r\n" in request
    assert request.endswith(b"\r\n\r\njs_code=1")


@pytest.mark.integration
@pytest.mark.asyncio
async def test_connection_refused_is_network_error():
    server, port = await serve_once(b"", [])
    server.close()
    await server.wait_closed()

    with pytest.raises(NetworkError):
        await RawHttpClient(timeout=5).post("127.0.0.1", "/", None, b"", port=port)


@pytest.mark.integration
@pytest.mark.asyncio
async def test_slow_server_times_out():
    server, port = await serve_once(b"HTTP/1.1 200 OK\r\n\r\n", [], delay=2)
    async with server:
        with pytest.raises(NetworkError, match="Timed out"):
            await RawHttpClient(timeout=0.2).post(
                "127.0.0.1", "/", None, b"", port=port
            )


@pytest.mark.integration
@pytest.mark.asyncio
async def test_oversized_reply_is_protocol_error():
    reply = b"HTTP/1.1 200 OK\r\n\r\n" + b"x" * 2048
    server, port = await serve_once(reply, [])
    async with server:
        with pytest.raises(ProtocolError, match="exceeds"):
            await RawHttpClient(timeout=5, max_response_bytes=1024).post(
                "127.0.0.1", "/", None, b"", port=port
            )


@pytest.mark.integration
@pytest.mark.asyncio
async def test_stalled_read_times_out_before_overall_deadline():
    server, port = await serve_once(b"HTTP/1.1 200 OK\r\n\r\n", [], delay=2)
    async with server:
        client = RawHttpClient(timeout=30, read_timeout=0.2)
        started = asyncio.get_running_loop().time()
        with pytest.raises(NetworkError, match="Timed out"):
            await client.post("127.0.0.1", "/", None, b"", port=port)
        elapsed = asyncio.get_running_loop().time() - started

    assert elapsed < 1.5

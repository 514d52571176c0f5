import asyncio
import os
import socket
import sys

import pytest


PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from netscan.probe import OpenConnection, PortProbe  # noqa: E402


def _unused_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.mark.asyncio
async def test_probe_open_port() -> None:
    async def handle(reader, writer):
        await reader.read()
        writer.close()

    server = await asyncio.start_server(handle, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    async with server:
        connection = await PortProbe(timeout=2.0, read_timeout=0.5).probe("127.0.0.1", port)
        assert isinstance(connection, OpenConnection)
        assert connection.host == "127.0.0.1"
        assert connection.port == port
        assert connection.read_timeout == 0.5
        await connection.close()


@pytest.mark.asyncio
async def test_probe_closed_port_returns_none() -> None:
    assert await PortProbe(timeout=2.0).probe("127.0.0.1", _unused_port()) is None


@pytest.mark.asyncio
async def test_probe_timeout_returns_none() -> None:
    # TEST-NET-1 is never routed; the connect either times out or fails fast
    assert await PortProbe().probe("192.0.2.1", 80, timeout=0.2) is None

"""
TCP connect probing.

A successful connect means the port is open; refused, timed out and
unreachable are all reported the same way (closed/filtered).
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class OpenConnection:
    """An established TCP connection to an open port."""
    host: str
    port: int
    reader: asyncio.StreamReader
    writer: asyncio.StreamWriter
    read_timeout: float = 2.0

    async def close(self):
        self.writer.close()
        try:
            await self.writer.wait_closed()
        except OSError as e:
            logger.debug(f"Error closing {self.host}:{self.port} - {e}")


class PortProbe:
    """TCP connect prober."""

    def __init__(self, timeout: float = 3.0, read_timeout: float = 2.0):
        self.timeout = timeout
        self.read_timeout = read_timeout

    async def probe(self, host: str, port: int, timeout: Optional[float] = None) -> Optional[OpenConnection]:
        """Try to connect to ``host:port``; None means closed or filtered."""
        timeout = self.timeout if timeout is None else timeout
        try:
            reader, writer = await asyncio.wait_for(
                asyncio.open_connection(host, port),
                timeout=timeout
            )
        except asyncio.TimeoutError:
            return None
        except (OSError, ValueError) as e:
            logger.debug(f"Connect to {host}:{port} failed - {e}")
            return None

        return OpenConnection(host, port, reader, writer, read_timeout=self.read_timeout)

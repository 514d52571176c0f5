"""
Banner Grabbing Module

Sends a minimal HTTP request to an open port and derives a one-line service
identity from whatever comes back:
- The value of an HTTP ``Server:`` header
- Otherwise a short greeting line (SSH, SMTP, FTP style banners)
- Otherwise a fixed placeholder
"""

import asyncio
import logging

from .probe import OpenConnection

logger = logging.getLogger(__name__)

PROBE_REQUEST = b"GET / HTTP/1.1\r\n\r\n"
NO_SERVICE_INFO = "Service info not available."


def remove_blank_lines(text: str):
    """Split ``text`` into lines, dropping the ones that are only whitespace."""
    lines = (line[:-1] if line.endswith("\r") else line for line in text.split("\n"))
    return [line for line in lines if line.strip()]


def parse_server(banner: str) -> str:
    """Extract the service identity from a raw response."""
    lines = remove_blank_lines(banner)
    short_reply = len(lines) <= 2

    greeting = None
    server = None
    for line in lines:
        # binary protocols
        if line[0] == "\x00":
            break

        if ":" not in line:
            if short_reply and greeting is None:
                greeting = line
            continue

        key, value = line.split(":", 1)
        if key.strip().lower() == "server":
            server = value.strip()
            break

    if server:
        return server
    if greeting:
        return greeting
    return NO_SERVICE_INFO


class BannerGrabber:
    """Reads a banner from an already open connection."""

    def __init__(self, read_size: int = 1024):
        self.read_size = read_size

    async def grab(self, connection: OpenConnection) -> str:
        """Probe ``connection`` and return its service identity; always closes it."""
        try:
            connection.writer.write(PROBE_REQUEST)
            await asyncio.wait_for(connection.writer.drain(), timeout=connection.read_timeout)
            data = await asyncio.wait_for(
                connection.reader.read(self.read_size),
                timeout=connection.read_timeout
            )
        except asyncio.TimeoutError:
            logger.debug(f"Banner read from {connection.host}:{connection.port} timed out")
            return NO_SERVICE_INFO
        except OSError as e:
            logger.debug(f"Banner grab error for {connection.host}:{connection.port} - {e}")
            return NO_SERVICE_INFO
        finally:
            await connection.close()

        return parse_server(data.decode("utf-8", errors="replace"))

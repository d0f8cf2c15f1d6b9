"""
Sidecar Output Handling

Port discovery from the sidecar's stdout, and background draining of its
stdout/stderr once the port is known.
"""

import asyncio
import re
from collections.abc import Callable

from ..config import bridge_logger

# Ordered: the first pattern that yields a usable port wins
PORT_PATTERNS = [
    re.compile(r":(\d+)"),
    re.compile(r"port (\d+)"),
    re.compile(r"listening.*?(\d+)"),
    re.compile(r"localhost:(\d+)"),
    re.compile(r"127\.0\.0\.1:(\d+)"),
]


def extract_port_from_line(line: str) -> int | None:
    """
    Extract a listening port from one line of server output.

    Matches lines like "Server listening on 127.0.0.1:41234" or
    "listening on port 3001". Port 0 and values above 65535 are skipped.
    """
    for pattern in PORT_PATTERNS:
        match = pattern.search(line)
        if not match:
            continue
        port = int(match.group(1))
        if 0 < port <= 65535:
            return port
    return None


async def discover_port(stream: asyncio.StreamReader, attempts: int = 100, interval: float = 0.1) -> int | None:
    """
    Read stdout lines until one announces a port.

    Args:
        stream: The sidecar's stdout
        attempts: Number of bounded reads
        interval: Seconds allowed per read

    Returns:
        The discovered port, or None on EOF, read error or exhausted attempts
    """
    for _ in range(attempts):
        try:
            raw = await asyncio.wait_for(stream.readline(), timeout=interval)
        except TimeoutError:
            continue
        except (OSError, ValueError) as e:
            bridge_logger.error(f"Error reading OpenCode stdout: {e}")
            break

        if not raw:
            break

        line = raw.decode("utf-8", errors="replace").strip()
        bridge_logger.debug(f"OpenCode stdout: {line}")

        port = extract_port_from_line(line)
        if port is not None:
            return port

    return None


async def drain_stream(stream: asyncio.StreamReader, level: str, sink: Callable[[str, str], None]):
    """Forward every remaining line of a pipe to sink(level, line) until EOF."""
    try:
        while True:
            raw = await stream.readline()
            if not raw:
                break
            line = raw.decode("utf-8", errors="replace").rstrip()
            if line:
                sink(level, line)
    except asyncio.CancelledError:
        raise
    except Exception as e:
        bridge_logger.error(f"Output reader for OpenCode server failed: {e}")

"""Shared HTTP client configuration."""

import httpx

from canvas_xhr._version import __version__

DEFAULT_CONNECT_TIMEOUT = 30.0
DEFAULT_READ_TIMEOUT = 60.0
USER_AGENT = f"canvas-xhr/{__version__}"


def build_timeout(connect_timeout: float, read_timeout: float) -> httpx.Timeout:
    """Build an httpx timeout from the connect/read pair.

    Args:
        connect_timeout: Seconds allowed for establishing the connection.
        read_timeout: Seconds allowed for each read and write.

    Returns:
        Configured httpx.Timeout instance.
    """
    return httpx.Timeout(
        read_timeout,
        connect=connect_timeout,
        pool=connect_timeout,
    )


def create_http_client(
    *,
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
    read_timeout: float = DEFAULT_READ_TIMEOUT,
) -> httpx.Client:
    """Create configured HTTP client.

    Redirects are never followed by the client itself; the transport decides
    per method.

    Args:
        connect_timeout: Connection timeout in seconds.
        read_timeout: Read timeout in seconds.

    Returns:
        Configured httpx.Client instance.
    """
    return httpx.Client(
        timeout=build_timeout(connect_timeout, read_timeout),
        follow_redirects=False,
        headers={"User-Agent": USER_AGENT},
    )

"""
Handles HTTP downloads of artwork and audio streams over a shared connection pool.
"""

import asyncio
import logging

import aiohttp

log = logging.getLogger(__name__)

_connection_pool: aiohttp.ClientSession | None = None
_pool_lock = asyncio.Lock()


async def get_connection_pool() -> aiohttp.ClientSession:
    """
    Gets or creates the shared aiohttp ClientSession.

    Only one connection pool is created for the lifetime of the run. Items
    are processed one at a time, so a small pool is enough.
    """
    global _connection_pool
    async with _pool_lock:
        if _connection_pool and not _connection_pool.closed:
            return _connection_pool

        connector = aiohttp.TCPConnector(
            limit=4,
            ttl_dns_cache=600,
            keepalive_timeout=30,
            enable_cleanup_closed=True,
        )
        timeout = aiohttp.ClientTimeout(total=None, sock_connect=15, sock_read=90)
        _connection_pool = aiohttp.ClientSession(connector=connector, timeout=timeout)
        log.debug("Created shared download pool.")

    return _connection_pool


async def close_connection_pool() -> None:
    """Closes the shared global connection pool."""
    global _connection_pool
    async with _pool_lock:
        if _connection_pool and not _connection_pool.closed:
            await _connection_pool.close()
            _connection_pool = None
            log.debug("Shared download pool closed.")


class Downloader:
    """Fetches small remote assets with retries and exponential backoff."""

    def __init__(self, max_attempts: int = 3, base_delay: float = 1.5):
        self.max_attempts = max_attempts
        self.base_delay = base_delay

    async def fetch_bytes(self, url: str) -> bytes:
        """
        Downloads a URL into memory.

        Raises:
            aiohttp.ClientError, asyncio.TimeoutError: After the last failed attempt.
        """
        last_exception: Exception | None = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                session = await get_connection_pool()
                async with session.get(url, allow_redirects=True) as response:
                    response.raise_for_status()
                    return await response.read()
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                last_exception = e
                log.debug(
                    f"Download attempt {attempt}/{self.max_attempts} for "
                    f"'{url}' failed: {e}."
                )
                if attempt < self.max_attempts:
                    await asyncio.sleep(self.base_delay * (2 ** (attempt - 1)))

        raise last_exception


# Copyright (c) 2025 streamresolve and contributors. All rights reserved.
# Licensed under the MIT license. See LICENSE file in the project root for details.

"""HTTP session management for API calls and segment downloads."""

import asyncio
import json
import logging
import ssl
from types import TracebackType
from typing import Any

import aiohttp
from aiohttp import ClientTimeout

from streamresolve.streaming.config import StreamingConfig
from streamresolve.streaming.exceptions import UpstreamHttpError

logger = logging.getLogger(__name__)


class SessionManager:
    """Manages one aiohttp session per source."""

    def __init__(self, config: StreamingConfig) -> None:
        self.config = config
        self._sessions: dict[str, aiohttp.ClientSession] = {}
        self._session_lock = asyncio.Lock()

    async def get_session(self, source: str | None = None) -> aiohttp.ClientSession:
        """Get or create a session for a specific source."""
        session_key = source or "default"

        async with self._session_lock:
            if session_key not in self._sessions or self._sessions[session_key].closed:
                self._sessions[session_key] = await self._create_session(source)

            return self._sessions[session_key]

    async def _create_session(self, source: str | None = None) -> aiohttp.ClientSession:
        """Create a new HTTP session."""
        timeout_seconds = self.config.get_timeout_for_source(source)

        # Streams can outlive any total timeout, so only bound connect and reads
        timeout = ClientTimeout(
            total=None,
            connect=timeout_seconds / 2,
            sock_read=timeout_seconds,
        )

        if not self.config.verify_ssl:
            ssl_context = ssl.create_default_context()
            ssl_context.check_hostname = False
            ssl_context.verify_mode = ssl.CERT_NONE
            ssl_param: ssl.SSLContext | bool = ssl_context
        else:
            ssl_param = True

        connector = aiohttp.TCPConnector(
            limit=self.config.max_connections * 2,
            limit_per_host=self.config.max_connections,
            ssl=ssl_param,
        )

        logger.debug("Creating HTTP session for %s", source or "default")
        return aiohttp.ClientSession(
            connector=connector,
            timeout=timeout,
            headers=self.config.get_headers_for_source(source),
            raise_for_status=False,  # Status codes are handled by callers
        )

    async def close_session(self, source: str | None = None) -> None:
        """Close a specific session."""
        session_key = source or "default"

        async with self._session_lock:
            if session_key in self._sessions:
                session = self._sessions[session_key]
                if not session.closed:
                    await session.close()
                del self._sessions[session_key]

    async def close_all_sessions(self) -> None:
        """Close all sessions."""
        async with self._session_lock:
            for session in self._sessions.values():
                if not session.closed:
                    await session.close()
            self._sessions.clear()

    async def __aenter__(self) -> "SessionManager":
        """Async context manager entry."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Async context manager exit."""
        await self.close_all_sessions()


async def read_error_body(response: aiohttp.ClientResponse) -> Any:
    """Read an error body, decoding JSON when possible."""
    text = await response.text()
    try:
        return json.loads(text)
    except ValueError:
        return text[:500]


async def raise_for_upstream_status(
    response: aiohttp.ClientResponse, what: str
) -> None:
    """Raise UpstreamHttpError for error responses, keeping the decoded body."""
    if response.status < 400:
        return

    body = await read_error_body(response)
    logger.debug("Error response for %s: %s", what, body)
    msg = f"Fetching {what} failed with status code {response.status}"
    raise UpstreamHttpError(
        msg,
        status=response.status,
        body=body,
        details={"url": str(response.url)},
    )

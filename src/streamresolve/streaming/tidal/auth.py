# Copyright (c) 2025 streamresolve and contributors. All rights reserved.
# Licensed under the MIT license. See LICENSE file in the project root for details.

"""TIDAL token endpoints."""

import logging
import time
from collections.abc import Callable

import aiohttp
from pydantic import ValidationError

from streamresolve.streaming.auth import Credential, TokenAuthority
from streamresolve.streaming.exceptions import NetworkError
from streamresolve.streaming.session import SessionManager, read_error_body
from streamresolve.streaming.tidal.models import (
    TIDAL_API_BASE,
    TIDAL_AUTH_BASE,
    TidalSession,
)

logger = logging.getLogger(__name__)

TIDAL_USER_AGENT = "TIDAL_ANDROID/1039 okhttp/3.14.9"


def tidal_headers(client_id: str, access_token: str) -> dict[str, str]:
    """Headers sent with every authenticated TIDAL request."""
    return {
        "X-Tidal-Token": client_id,
        "Authorization": f"Bearer {access_token}",
        "Accept-Encoding": "gzip",
        "User-Agent": TIDAL_USER_AGENT,
    }


class TidalAuthority(TokenAuthority):
    """Refresh, session probe and session details for TIDAL."""

    def __init__(
        self,
        session_manager: SessionManager,
        client_id: str,
        client_secret: str,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.session_manager = session_manager
        self.client_id = client_id
        self.client_secret = client_secret
        self._clock = clock

    async def refresh(self, credential: Credential) -> Credential | None:
        """Exchange the refresh token at the OAuth token endpoint."""
        session = await self.session_manager.get_session("tidal")
        form = {
            "refresh_token": credential.refresh_token,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "grant_type": "refresh_token",
        }

        try:
            async with session.post(f"{TIDAL_AUTH_BASE}oauth2/token", data=form) as response:
                if response.status >= 500:
                    msg = f"Token endpoint unavailable (status {response.status})"
                    raise NetworkError(msg, status_code=response.status)
                if response.status != 200:
                    body = await read_error_body(response)
                    logger.warning("TIDAL rejected the refresh token: %s", body)
                    return None
                data = await response.json()
        except aiohttp.ClientError as e:
            msg = f"Token refresh request failed: {e}"
            raise NetworkError(msg) from e

        return credential.model_copy(
            update={
                "access_token": data["access_token"],
                # The refresh token is only rotated sometimes
                "refresh_token": data.get("refresh_token") or credential.refresh_token,
                "expires_at": self._clock() + float(data.get("expires_in", 0)),
            }
        )

    async def session_valid(self, credential: Credential) -> bool:
        """Probe the sessions endpoint with the current access token."""
        session = await self.session_manager.get_session("tidal")
        try:
            async with session.get(
                f"{TIDAL_API_BASE}sessions",
                headers=tidal_headers(self.client_id, credential.access_token),
            ) as response:
                logger.debug("TIDAL session probe returned %d", response.status)
                return response.status < 400
        except aiohttp.ClientError as e:
            msg = f"Session probe failed: {e}"
            raise NetworkError(msg) from e

    async def complete_session(self, credential: Credential) -> Credential:
        """Fill in country code and user ID from the sessions endpoint."""
        session = await self.session_manager.get_session("tidal")
        try:
            async with session.get(
                f"{TIDAL_API_BASE}sessions",
                headers=tidal_headers(self.client_id, credential.access_token),
            ) as response:
                if response.status != 200:
                    logger.warning(
                        "Could not read TIDAL session details (status %d)", response.status
                    )
                    return credential
                data = await response.json()
        except aiohttp.ClientError as e:
            msg = f"Session request failed: {e}"
            raise NetworkError(msg) from e

        try:
            details = TidalSession.model_validate(data)
        except ValidationError:
            logger.warning("Unexpected TIDAL session response: %s", data)
            return credential

        logger.debug("TIDAL session country is %s", details.country_code)
        return credential.model_copy(
            update={
                "country_code": details.country_code,
                "user_id": str(details.user_id) if details.user_id is not None else None,
            }
        )

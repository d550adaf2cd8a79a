# Copyright (c) 2025 streamresolve and contributors. All rights reserved.
# Licensed under the MIT license. See LICENSE file in the project root for details.

"""TIDAL API client implementation."""

import asyncio
import logging
from typing import Any

import aiohttp

from streamresolve.streaming.auth import Credential, TokenManager
from streamresolve.streaming.exceptions import AuthenticationError, NetworkError
from streamresolve.streaming.session import SessionManager, raise_for_upstream_status
from streamresolve.streaming.tidal.auth import tidal_headers
from streamresolve.streaming.tidal.models import TIDAL_API_BASE, TidalPlaybackInfo

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 100


class TidalClient:
    """TIDAL API client.

    Every request goes through the token manager, which keeps the access
    token fresh and retries once after a rejected session.
    """

    def __init__(
        self,
        session_manager: SessionManager,
        token_manager: TokenManager,
        client_id: str,
        locale: str = "en_US",
        device_type: str = "TV",
    ) -> None:
        self.session_manager = session_manager
        self.token_manager = token_manager
        self.client_id = client_id
        self.locale = locale
        self.device_type = device_type

    async def get(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        base: str = TIDAL_API_BASE,
    ) -> Any:
        """GET an API path and decode the JSON response."""

        async def call(credential: Credential) -> Any:
            return await self._request(credential, path, params or {}, base)

        return await self.token_manager.authenticated_call(call)

    async def _request(
        self,
        credential: Credential,
        path: str,
        params: dict[str, Any],
        base: str,
    ) -> Any:
        query = {
            "countryCode": credential.country_code or "",
            "locale": self.locale,
            "deviceType": self.device_type,
            **params,
        }
        query = {key: self._format_param(value) for key, value in query.items()}

        session = await self.session_manager.get_session("tidal")
        try:
            async with session.get(
                f"{base}{path}",
                params=query,
                headers=tidal_headers(self.client_id, credential.access_token),
            ) as response:
                await raise_for_upstream_status(response, path)
                return await response.json()
        except aiohttp.ClientError as e:
            msg = f"API request failed: {e}"
            raise NetworkError(msg) from e

    @staticmethod
    def _format_param(value: Any) -> str:
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)

    async def paginate(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        limit: int | None = None,
        offset: int = 0,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> list[dict[str, Any]]:
        """
        Collect ``items`` from a paged endpoint.

        The first page reports the total; the remaining pages up to ``limit``
        (or the total when no limit is given) are fetched concurrently.
        """
        params = dict(params or {})
        first_size = page_size if limit is None else min(page_size, limit)
        page = await self.get(path, {**params, "limit": first_size, "offset": offset})
        items: list[dict[str, Any]] = list(page.get("items", []))

        total = int(page.get("totalNumberOfItems", offset + len(items))) - offset
        if limit is not None:
            total = min(total, limit)

        if len(items) < first_size or len(items) >= total:
            return items[:total] if total >= 0 else items

        requests = []
        next_offset = offset + first_size
        while next_offset < offset + total:
            size = min(page_size, offset + total - next_offset)
            requests.append(
                self.get(path, {**params, "limit": size, "offset": next_offset})
            )
            next_offset += size

        for next_page in await asyncio.gather(*requests):
            items.extend(next_page.get("items", []))

        logger.debug("Collected %d items from %s", len(items), path)
        return items[:total]

    async def get_track(self, track_id: str | int) -> dict[str, Any]:
        """Get track information."""
        return await self.get(f"tracks/{track_id}")

    async def get_track_contributors(self, track_id: str | int) -> list[dict[str, Any]]:
        """Get the contributors of a track."""
        response = await self.get(f"tracks/{track_id}/contributors")
        return response.get("items", [])

    async def get_album(self, album_id: str | int) -> dict[str, Any]:
        """Get album information."""
        return await self.get(f"albums/{album_id}")

    async def get_playlist(self, playlist_id: str) -> dict[str, Any]:
        """Get playlist information."""
        return await self.get(f"playlists/{playlist_id}")

    async def get_artist(self, artist_id: str | int) -> dict[str, Any]:
        """Get artist information."""
        return await self.get(f"artists/{artist_id}")

    async def isrc_lookup(self, isrc: str) -> list[dict[str, Any]]:
        """Find tracks by ISRC."""
        response = await self.get("tracks", {"isrc": isrc})
        return response.get("items", [])

    async def get_playback_info(
        self, track_id: str | int, quality: str
    ) -> TidalPlaybackInfo:
        """Get the playback manifest of a track at a quality tier."""
        response = await self.get(
            f"tracks/{track_id}/playbackinfopostpaywall/v4",
            {
                "playbackmode": "STREAM",
                "assetpresentation": "FULL",
                "audioquality": quality,
                "prefetch": False,
            },
        )
        return TidalPlaybackInfo.model_validate(response)

    async def get_subscription(self) -> dict[str, Any]:
        """Get the subscription of the logged-in user."""
        credential = await self.token_manager.ensure_valid()
        if not credential.user_id:
            msg = "TIDAL session did not report a user ID"
            raise AuthenticationError(msg, source="tidal")
        return await self.get(f"users/{credential.user_id}/subscription")

# Copyright (c) 2025 streamresolve and contributors. All rights reserved.
# Licensed under the MIT license. See LICENSE file in the project root for details.

"""Catalog lookups composing several TIDAL calls into one record."""

import asyncio
import logging
from typing import Any

from streamresolve.models.enums import EntityType
from streamresolve.streaming.exceptions import ContentNotFoundError
from streamresolve.streaming.tidal.client import TidalClient
from streamresolve.streaming.tidal.models import (
    TidalAlbum,
    TidalArtist,
    TidalPlaylist,
    TidalRecord,
    TidalTrack,
)
from streamresolve.streaming.utils import group_credits, merge_enrichment

logger = logging.getLogger(__name__)

ARTIST_PREVIEW_LIMIT = 20


class TidalCatalog:
    """Fetch provider-native records for TIDAL entities."""

    def __init__(self, client: TidalClient) -> None:
        self.client = client

    async def fetch_entity(self, entity_type: EntityType, entity_id: str) -> TidalRecord:
        """Fetch the full record of an entity."""
        logger.debug("Fetching TIDAL %s %s", entity_type, entity_id)
        match entity_type:
            case EntityType.TRACK:
                return await self.get_track(entity_id)
            case EntityType.ALBUM:
                return TidalAlbum.from_api(await self.client.get_album(entity_id))
            case EntityType.PLAYLIST:
                return TidalPlaylist.from_api(await self.client.get_playlist(entity_id))
            case EntityType.ARTIST:
                return await self.get_artist(entity_id)

    async def fetch_children(
        self,
        entity_type: EntityType,
        entity_id: str,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[TidalTrack]:
        """Fetch the tracks contained in an album, playlist or artist."""
        match entity_type:
            case EntityType.ALBUM:
                items = await self.client.paginate(
                    f"albums/{entity_id}/items/credits",
                    {"replace": True, "includeContributors": True},
                    limit=limit,
                    offset=offset,
                )
                return [
                    TidalTrack.from_api(
                        self._with_credits(item["item"], item.get("credits", []))
                    )
                    for item in items
                    if item.get("type", "track") == "track"
                ]
            case EntityType.PLAYLIST:
                items = await self.client.paginate(
                    f"playlists/{entity_id}/tracks", limit=limit, offset=offset
                )
                return [TidalTrack.from_api(item) for item in items]
            case EntityType.ARTIST:
                items = await self.client.paginate(
                    f"artists/{entity_id}/toptracks",
                    limit=ARTIST_PREVIEW_LIMIT if limit is None else limit,
                    offset=offset,
                )
                return [TidalTrack.from_api(item) for item in items]
            case _:
                return []

    async def get_track(self, track_id: str | int) -> TidalTrack:
        """Fetch a track with its contributors and full album merged in."""
        track = await self.client.get_track(track_id)
        album_id = (track.get("album") or {}).get("id")

        if album_id is not None:
            contributors, album = await asyncio.gather(
                self.client.get_track_contributors(track_id),
                self.client.get_album(album_id),
            )
        else:
            contributors, album = await self.client.get_track_contributors(track_id), {}

        merged = self._with_credits(track, contributors)
        merged["album"] = merge_enrichment(track.get("album") or {}, album)
        return TidalTrack.from_api(merged)

    async def get_artist(self, artist_id: str | int) -> TidalArtist:
        """Fetch an artist with a preview of albums and top tracks."""
        artist, albums, top_tracks = await asyncio.gather(
            self.client.get_artist(artist_id),
            self.client.get(f"artists/{artist_id}/albums", {"limit": ARTIST_PREVIEW_LIMIT}),
            self.client.get(f"artists/{artist_id}/toptracks", {"limit": ARTIST_PREVIEW_LIMIT}),
        )
        record = TidalArtist.from_api(artist)
        record.albums = [TidalAlbum.from_api(item) for item in albums.get("items", [])]
        record.top_tracks = [TidalTrack.from_api(item) for item in top_tracks.get("items", [])]
        return record

    async def isrc_lookup(self, isrc: str) -> TidalTrack:
        """Find the full track record for an ISRC."""
        items = await self.client.isrc_lookup(isrc)
        if not items:
            msg = f"ISRC {isrc} is not available on TIDAL"
            raise ContentNotFoundError(msg, details={"isrc": isrc})
        return await self.get_track(items[0]["id"])

    @staticmethod
    def _with_credits(
        track: dict[str, Any], contributors: list[dict[str, Any]]
    ) -> dict[str, Any]:
        return merge_enrichment(track, {"credits": group_credits(contributors)})

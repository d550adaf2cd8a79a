# Copyright (c) 2025 streamresolve and contributors. All rights reserved.
# Licensed under the MIT license. See LICENSE file in the project root for details.

"""Enums for streaming sources, entity types and delivery modes."""

from enum import StrEnum


class StreamingSource(StrEnum):
    """Streaming sources recognized by the URL parser."""

    QOBUZ = "qobuz"
    TIDAL = "tidal"
    UNKNOWN = "unknown"


class EntityType(StrEnum):
    """Kinds of catalog entities addressable by URL."""

    ARTIST = "artist"
    ALBUM = "album"
    TRACK = "track"
    PLAYLIST = "playlist"

    @property
    def is_playable(self) -> bool:
        """Whether the entity resolves to an audio stream."""
        return self is EntityType.TRACK


class DeliveryMode(StrEnum):
    """How a rendition's audio is delivered by the origin."""

    DIRECT = "direct"
    SEGMENTED = "segmented"


class TidalQuality(StrEnum):
    """TIDAL audio quality tiers, best first."""

    HI_RES_LOSSLESS = "HI_RES_LOSSLESS"
    HI_RES = "HI_RES"
    LOSSLESS = "LOSSLESS"
    HIGH = "HIGH"
    LOW = "LOW"

    @property
    def is_lossless(self) -> bool:
        """Check if the tier is delivered as FLAC."""
        return self in (
            TidalQuality.HI_RES_LOSSLESS,
            TidalQuality.HI_RES,
            TidalQuality.LOSSLESS,
        )

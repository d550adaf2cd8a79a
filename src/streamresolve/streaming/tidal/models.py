# Copyright (c) 2025 streamresolve and contributors. All rights reserved.
# Licensed under the MIT license. See LICENSE file in the project root for details.

"""TIDAL-specific models and data structures."""

import base64
import binascii
import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from streamresolve.models.base import ProviderRecord
from streamresolve.models.enums import TidalQuality
from streamresolve.streaming.exceptions import UnsupportedManifestError

TIDAL_AUTH_BASE = "https://auth.tidal.com/v1/"
TIDAL_API_BASE = "https://api.tidal.com/v1/"

# Playback-info audioQuality values that are delivered as FLAC
LOSSLESS_AUDIO_QUALITIES = frozenset({"LOSSLESS", "HI_RES", "HI_RES_LOSSLESS"})


class TidalRecord(ProviderRecord):
    """Base class for TIDAL API records, which use camelCase keys."""

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "TidalRecord":
        """Build the record from a raw response, keeping the raw data."""
        return cls.model_validate({**data, "raw_data": data})


class TidalTrack(TidalRecord):
    """TIDAL track record."""

    id: int = Field(..., description="Track ID")
    title: str = Field(..., description="Track title")
    version: str | None = Field(None, description="Track version")
    duration: int | None = Field(None, description="Duration in seconds")
    track_number: int | None = Field(None, alias="trackNumber")
    volume_number: int | None = Field(None, alias="volumeNumber")
    isrc: str | None = Field(None, description="ISRC code")
    explicit: bool = Field(default=False, description="Explicit content flag")
    copyright: str | None = Field(None, description="Copyright line")
    url: str | None = Field(None, description="Public track URL")
    audio_quality: str | None = Field(None, alias="audioQuality")
    media_metadata: dict[str, Any] = Field(default_factory=dict, alias="mediaMetadata")
    artists: list[dict[str, Any]] = Field(default_factory=list)
    album: dict[str, Any] = Field(default_factory=dict)
    credits: dict[str, list[str]] = Field(
        default_factory=dict, description="Contributor names grouped by role"
    )

    @property
    def advertised_qualities(self) -> list[TidalQuality]:
        """Quality tiers the track is offered in, best first."""
        tags = {str(tag).upper() for tag in self.media_metadata.get("tags", [])}
        quality = (self.audio_quality or "").upper()

        advertised: list[TidalQuality] = []
        if quality == "HI_RES_LOSSLESS" or "HIRES_LOSSLESS" in tags:
            advertised.append(TidalQuality.HI_RES_LOSSLESS)
        if quality == "HI_RES" or "MQA" in tags:
            advertised.append(TidalQuality.HI_RES)
        if quality in LOSSLESS_AUDIO_QUALITIES or "LOSSLESS" in tags:
            advertised.append(TidalQuality.LOSSLESS)
        advertised.extend([TidalQuality.HIGH, TidalQuality.LOW])
        return advertised


class TidalAlbum(TidalRecord):
    """TIDAL album record."""

    id: int = Field(..., description="Album ID")
    title: str = Field(..., description="Album title")
    version: str | None = Field(None, description="Album version")
    duration: int | None = Field(None, description="Duration in seconds")
    number_of_tracks: int | None = Field(None, alias="numberOfTracks")
    number_of_volumes: int | None = Field(None, alias="numberOfVolumes")
    release_date: str | None = Field(None, alias="releaseDate")
    upc: str | None = Field(None, description="Universal Product Code")
    cover: str | None = Field(None, description="Cover image ID")
    url: str | None = Field(None, description="Public album URL")
    audio_quality: str | None = Field(None, alias="audioQuality")
    artists: list[dict[str, Any]] = Field(default_factory=list)


class TidalArtist(TidalRecord):
    """TIDAL artist record with albums and top tracks attached."""

    id: int = Field(..., description="Artist ID")
    name: str = Field(..., description="Artist name")
    picture: str | None = Field(None, description="Picture image ID")
    url: str | None = Field(None, description="Public artist URL")
    albums: list[TidalAlbum] = Field(default_factory=list)
    top_tracks: list[TidalTrack] = Field(default_factory=list)


class TidalPlaylist(TidalRecord):
    """TIDAL playlist record."""

    uuid: str = Field(..., description="Playlist UUID")
    title: str = Field(..., description="Playlist title")
    description: str | None = Field(None, description="Playlist description")
    number_of_tracks: int | None = Field(None, alias="numberOfTracks")
    duration: int | None = Field(None, description="Duration in seconds")
    creator: dict[str, Any] = Field(default_factory=dict)
    url: str | None = Field(None, description="Public playlist URL")


class TidalDirectManifest(BaseModel):
    """Manifest of a single-file delivery."""

    model_config = ConfigDict(populate_by_name=True)

    mime_type: str = Field(..., alias="mimeType")
    codecs: str | None = Field(None, description="Codec of the file")
    urls: list[str] = Field(..., min_length=1, description="File URLs, first is used")


class TidalPlaybackInfo(BaseModel):
    """Playback information for one track at one quality."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    track_id: int = Field(..., alias="trackId")
    audio_quality: str = Field(..., alias="audioQuality")
    manifest_mime_type: str = Field(..., alias="manifestMimeType")
    manifest: str = Field(..., description="Base64-encoded manifest")

    @property
    def is_segmented(self) -> bool:
        """Check if the manifest describes a DASH delivery."""
        return self.manifest_mime_type == "application/dash+xml"

    @property
    def is_lossless(self) -> bool:
        """Check if the delivered tier is FLAC."""
        return self.audio_quality.upper() in LOSSLESS_AUDIO_QUALITIES

    def decoded_manifest(self) -> bytes:
        """Decode the base64 manifest."""
        try:
            return base64.b64decode(self.manifest)
        except (binascii.Error, ValueError) as e:
            msg = "Playback manifest is not valid base64"
            raise UnsupportedManifestError(msg, mime_type=self.manifest_mime_type) from e

    def direct_manifest(self) -> TidalDirectManifest:
        """Parse the JSON manifest of a direct delivery."""
        try:
            return TidalDirectManifest.model_validate(json.loads(self.decoded_manifest()))
        except (ValueError, ValidationError) as e:
            msg = f"Invalid {self.manifest_mime_type} manifest"
            raise UnsupportedManifestError(msg, mime_type=self.manifest_mime_type) from e


class TidalSession(BaseModel):
    """Response of the sessions endpoint."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    country_code: str = Field(..., alias="countryCode")
    user_id: int | str | None = Field(None, alias="userId")


class TidalSubscription(BaseModel):
    """Subscription state of the logged-in account."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    status: str | None = Field(None, description="Subscription status")
    valid_until: str | None = Field(None, alias="validUntil")
    highest_sound_quality: str | None = Field(None, alias="highestSoundQuality")
    premium_access: bool = Field(default=False, alias="premiumAccess")
    subscription: dict[str, Any] = Field(default_factory=dict)

    @property
    def plan_type(self) -> str | None:
        """Subscription plan name, e.g. HIFI."""
        return self.subscription.get("type")

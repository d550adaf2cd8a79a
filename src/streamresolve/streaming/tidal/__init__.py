# Copyright (c) 2025 streamresolve and contributors. All rights reserved.
# Licensed under the MIT license. See LICENSE file in the project root for details.

"""TIDAL provider module."""

from streamresolve.streaming.tidal.auth import TidalAuthority
from streamresolve.streaming.tidal.catalog import TidalCatalog
from streamresolve.streaming.tidal.client import TidalClient
from streamresolve.streaming.tidal.models import (
    TidalAlbum,
    TidalArtist,
    TidalPlaybackInfo,
    TidalPlaylist,
    TidalSubscription,
    TidalTrack,
)
from streamresolve.streaming.tidal.provider import TidalProvider

__all__ = [
    "TidalAlbum",
    "TidalArtist",
    "TidalAuthority",
    "TidalCatalog",
    "TidalClient",
    "TidalPlaybackInfo",
    "TidalPlaylist",
    "TidalProvider",
    "TidalSubscription",
    "TidalTrack",
]

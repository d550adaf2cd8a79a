# Copyright (c) 2025 streamresolve and contributors. All rights reserved.
# Licensed under the MIT license. See LICENSE file in the project root for details.

"""URL parsing and service detection for music streaming services."""

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from urllib.parse import urlparse

from streamresolve.models.enums import EntityType, StreamingSource
from streamresolve.streaming.exceptions import (
    StreamResolveError,
    UnrecognizedEntityError,
    UnsupportedUrlError,
)

_DEFAULT_TYPES: Mapping[str, EntityType] = {
    "artist": EntityType.ARTIST,
    "album": EntityType.ALBUM,
    "track": EntityType.TRACK,
    "playlist": EntityType.PLAYLIST,
}


@dataclass(frozen=True)
class ResolvedEntity:
    """Result of URL parsing."""

    service: StreamingSource
    entity_type: EntityType
    provider_id: str
    url: str


@dataclass(frozen=True)
class URLShape:
    """One recognized URL layout of a service.

    ``pattern`` is matched against the URL path and must capture ``type``
    and ``id``; ``entity_types`` maps the captured type to an EntityType.
    """

    service: StreamingSource
    hosts: frozenset[str]
    pattern: re.Pattern[str]
    entity_types: Mapping[str, EntityType] = field(default_factory=lambda: _DEFAULT_TYPES)


# Most specific hosts first; the first shape whose pattern matches wins
URL_SHAPES: tuple[URLShape, ...] = (
    URLShape(
        service=StreamingSource.TIDAL,
        hosts=frozenset({"tidal.com", "www.tidal.com", "listen.tidal.com"}),
        pattern=re.compile(r"^/(?:browse/)?(?P<type>[^/]+)/(?P<id>[^/]+)/?$"),
    ),
    URLShape(
        service=StreamingSource.QOBUZ,
        hosts=frozenset({"play.qobuz.com", "open.qobuz.com"}),
        pattern=re.compile(r"^/(?P<type>[^/]+)/(?P<id>[^/]+)/?$"),
        entity_types={
            "artist": EntityType.ARTIST,
            "album": EntityType.ALBUM,
            "track": EntityType.TRACK,
        },
    ),
    URLShape(
        service=StreamingSource.QOBUZ,
        hosts=frozenset({"qobuz.com", "www.qobuz.com"}),
        # Store links carry a locale and a slug: /fr-fr/album/some-title/0886447
        pattern=re.compile(
            r"^/[a-z]{2}-[a-z]{2}/(?P<type>[^/]+)/[^/]+/(?P<id>[^/]+)/?$"
        ),
        entity_types={
            "interpreter": EntityType.ARTIST,
            "album": EntityType.ALBUM,
            "track": EntityType.TRACK,
        },
    ),
)


class URLParser:
    """Parser for music streaming service URLs."""

    def __init__(self, shapes: tuple[URLShape, ...] = URL_SHAPES) -> None:
        self.shapes = shapes

    def parse_url(self, url: str) -> ResolvedEntity:
        """
        Parse a music streaming URL into its service, entity type and ID.

        Raises:
            UnsupportedUrlError: The host belongs to no known service
            UnrecognizedEntityError: The host is known but the path is not
        """
        if not url or not url.strip():
            msg = "URL cannot be empty"
            raise UnsupportedUrlError(msg, url=url)

        url = url.strip()
        if not url.startswith(("http://", "https://")):
            url = "https://" + url

        try:
            parsed = urlparse(url)
        except ValueError as e:
            msg = f"Invalid URL format: {e}"
            raise UnsupportedUrlError(msg, url=url) from e

        shapes = self._shapes_for_host(parsed.hostname or "")
        if not shapes:
            msg = f"URL not supported: {url}"
            raise UnsupportedUrlError(msg, url=url)

        for shape in shapes:
            match = shape.pattern.match(parsed.path)
            if match is None:
                continue
            entity_type = shape.entity_types.get(match.group("type").lower())
            if entity_type is None:
                msg = f"URL unrecognised: {match.group('type')} links are not supported"
                raise UnrecognizedEntityError(msg, url=url)
            return ResolvedEntity(
                service=shape.service,
                entity_type=entity_type,
                provider_id=match.group("id"),
                url=url,
            )

        msg = f"URL unrecognised: {url}"
        raise UnrecognizedEntityError(msg, url=url)

    def detect_service(self, url: str) -> StreamingSource:
        """Detect the streaming service from the URL's host alone."""
        url = url.strip()
        if not url.startswith(("http://", "https://")):
            url = "https://" + url
        try:
            host = urlparse(url).hostname or ""
        except ValueError:
            return StreamingSource.UNKNOWN

        shapes = self._shapes_for_host(host)
        return shapes[0].service if shapes else StreamingSource.UNKNOWN

    def _shapes_for_host(self, host: str) -> list[URLShape]:
        host = host.lower()
        return [shape for shape in self.shapes if host in shape.hosts]

    def is_supported_service(self, url: str) -> bool:
        """Check if the URL is from a supported streaming service."""
        return self.detect_service(url) != StreamingSource.UNKNOWN

    def get_supported_services(self) -> list[StreamingSource]:
        """Get list of supported streaming services."""
        return list(dict.fromkeys(shape.service for shape in self.shapes))


# Convenience functions
def parse_music_url(url: str) -> ResolvedEntity:
    """Parse a music streaming URL."""
    parser = URLParser()
    return parser.parse_url(url)


def validate_music_url(url: str) -> tuple[bool, str]:
    """Validate a music streaming URL."""
    try:
        parse_music_url(url)
    except StreamResolveError as e:
        return False, e.message
    return True, "Valid URL"


def detect_service_from_url(url: str) -> StreamingSource:
    """Detect streaming service from URL."""
    return URLParser().detect_service(url)


def get_content_type_from_url(url: str) -> EntityType:
    """Get content type from URL."""
    return parse_music_url(url).entity_type

# Copyright (c) 2025 streamresolve and contributors. All rights reserved.
# Licensed under the MIT license. See LICENSE file in the project root for details.

"""Entry point resolving URLs into metadata and stream factories."""

import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from types import TracebackType

from streamresolve.config.user import UserConfig
from streamresolve.core.url_parser import ResolvedEntity, URLParser
from streamresolve.models.base import ProviderRecord
from streamresolve.models.enums import EntityType, StreamingSource
from streamresolve.streaming.assembler import StreamHandle
from streamresolve.streaming.exceptions import (
    UnrecognizedEntityError,
    UnsupportedUrlError,
)
from streamresolve.streaming.providers.base import BaseStreamingProvider
from streamresolve.streaming.providers.factory import ProviderFactory
from streamresolve.streaming.quality import QualityRequest
from streamresolve.streaming.session import SessionManager

logger = logging.getLogger(__name__)

StreamFactory = Callable[..., Awaitable[StreamHandle]]


@dataclass
class ResolveResult:
    """Metadata of a resolved URL, plus a stream factory for playable items.

    The stream factory does no work until it is awaited.
    """

    entity: ResolvedEntity
    metadata: ProviderRecord
    children: list[ProviderRecord] = field(default_factory=list)
    stream_factory: StreamFactory | None = None

    @property
    def type(self) -> EntityType:
        """Entity type of the resolved URL."""
        return self.entity.entity_type

    @property
    def is_playable(self) -> bool:
        """Check if the result can be streamed."""
        return self.stream_factory is not None


class Resolver:
    """Resolve streaming-service URLs through registered providers."""

    def __init__(
        self,
        providers: Mapping[StreamingSource, BaseStreamingProvider] | None = None,
        parser: URLParser | None = None,
        session_manager: SessionManager | None = None,
    ) -> None:
        self.providers: dict[StreamingSource, BaseStreamingProvider] = dict(
            providers or {}
        )
        self.parser = parser or URLParser()
        self.session_manager = session_manager

    @classmethod
    def from_config(cls, config: UserConfig) -> "Resolver":
        """Build a resolver with every provider the configuration supports."""
        logging.getLogger("streamresolve").setLevel(config.streaming.log_level)

        session_manager = SessionManager(config.streaming)
        providers = {
            service: ProviderFactory.create_provider(
                service,
                config.streaming,
                session_manager,
                config.get_service_config(service.value),
            )
            for service in ProviderFactory.get_supported_services()
        }
        return cls(providers, session_manager=session_manager)

    def register(self, provider: BaseStreamingProvider) -> None:
        """Register a provider for its streaming source."""
        self.providers[provider.streaming_source] = provider

    async def resolve(
        self,
        url: str,
        include_children: bool = True,
        children_limit: int | None = None,
    ) -> ResolveResult:
        """
        Resolve a URL into provider metadata.

        Args:
            url: Track, album, artist or playlist URL
            include_children: Fetch the tracks of container entities
            children_limit: Maximum number of children to fetch

        Returns:
            The resolved entity with metadata, children and, for tracks, a
            stream factory accepting an optional QualityRequest
        """
        entity = self.parser.parse_url(url)
        provider = self.providers.get(entity.service)
        if provider is None:
            msg = f"No provider registered for {entity.service.value}"
            raise UnsupportedUrlError(msg, url=url)
        if not provider.can_resolve(entity.entity_type):
            msg = f"{provider.service_name} does not support {entity.entity_type} links"
            raise UnrecognizedEntityError(msg, url=url)

        metadata = await provider.fetch_entity(entity.entity_type, entity.provider_id)

        children: list[ProviderRecord] = []
        if include_children and not entity.entity_type.is_playable:
            children = await provider.fetch_children(
                entity.entity_type, entity.provider_id, limit=children_limit
            )

        stream_factory = None
        if entity.entity_type.is_playable:

            async def stream_factory(quality: QualityRequest | None = None) -> StreamHandle:
                return await provider.open_stream(entity.provider_id, quality, metadata)

        logger.info(
            "Resolved %s %s on %s (%d children)",
            entity.entity_type,
            entity.provider_id,
            provider.service_name,
            len(children),
        )
        return ResolveResult(
            entity=entity,
            metadata=metadata,
            children=children,
            stream_factory=stream_factory,
        )

    async def close(self) -> None:
        """Clean up providers and close HTTP sessions."""
        for provider in self.providers.values():
            await provider.cleanup()
        if self.session_manager is not None:
            await self.session_manager.close_all_sessions()

    async def __aenter__(self) -> "Resolver":
        """Async context manager entry."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Async context manager exit."""
        await self.close()

# Copyright (c) 2025 streamresolve and contributors. All rights reserved.
# Licensed under the MIT license. See LICENSE file in the project root for details.

"""Base abstract class for streaming providers."""

from abc import ABC, abstractmethod

from streamresolve.config.base import ServiceConfig
from streamresolve.models.base import ProviderRecord
from streamresolve.models.enums import EntityType, StreamingSource
from streamresolve.streaming.assembler import StreamHandle
from streamresolve.streaming.config import StreamingConfig
from streamresolve.streaming.quality import QualityRequest
from streamresolve.streaming.session import SessionManager


class BaseStreamingProvider(ABC):
    """Abstract base class for all streaming providers."""

    def __init__(
        self,
        config: StreamingConfig,
        session_manager: SessionManager,
        service_config: ServiceConfig,
    ) -> None:
        """Initialize the provider with shared settings and its service config."""
        self.config = config
        self.session_manager = session_manager
        self.service_config = service_config

    @property
    @abstractmethod
    def service_name(self) -> str:
        """Get the name of the streaming service."""
        ...

    @property
    @abstractmethod
    def streaming_source(self) -> StreamingSource:
        """Get the StreamingSource enum value."""
        ...

    @property
    @abstractmethod
    def supported_entity_types(self) -> list[EntityType]:
        """Get list of supported entity types."""
        ...

    @abstractmethod
    async def fetch_entity(
        self, entity_type: EntityType, entity_id: str
    ) -> ProviderRecord:
        """Fetch the provider-native record of an entity."""
        ...

    @abstractmethod
    async def fetch_children(
        self,
        entity_type: EntityType,
        entity_id: str,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[ProviderRecord]:
        """Fetch the playable children of a container entity."""
        ...

    @abstractmethod
    async def open_stream(
        self,
        track_id: str,
        quality: QualityRequest | None = None,
        record: ProviderRecord | None = None,
    ) -> StreamHandle:
        """
        Select a rendition of a track and open its audio stream.

        ``record`` is the already fetched track, saving a lookup when given.
        """
        ...

    def default_quality(self) -> QualityRequest:
        """Quality request built from the service configuration."""
        return QualityRequest(
            label=self.service_config.quality,
            strict=self.service_config.strict_quality,
        )

    def can_resolve(self, entity_type: EntityType) -> bool:
        """Check if the provider supports the given entity type."""
        return entity_type in self.supported_entity_types

    async def cleanup(self) -> None:
        """Clean up resources. Override in subclasses if needed."""

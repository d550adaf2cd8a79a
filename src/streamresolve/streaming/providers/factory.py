# Copyright (c) 2025 streamresolve and contributors. All rights reserved.
# Licensed under the MIT license. See LICENSE file in the project root for details.

"""Factory for creating streaming providers based on streaming service."""

import logging
from typing import ClassVar

from streamresolve.config.base import ServiceConfig
from streamresolve.models.enums import StreamingSource
from streamresolve.streaming.config import StreamingConfig
from streamresolve.streaming.providers.base import BaseStreamingProvider
from streamresolve.streaming.session import SessionManager
from streamresolve.streaming.tidal.provider import TidalProvider

logger = logging.getLogger(__name__)


class ProviderFactory:
    """Factory for creating service-specific streaming providers."""

    _providers: ClassVar[dict[StreamingSource, type[BaseStreamingProvider]]] = {
        StreamingSource.TIDAL: TidalProvider,
    }

    @classmethod
    def create_provider(
        cls,
        service: StreamingSource,
        config: StreamingConfig,
        session_manager: SessionManager,
        service_config: ServiceConfig,
    ) -> BaseStreamingProvider:
        """Create a streaming provider for the specified service."""
        if service not in cls._providers:
            supported_services = ", ".join(s.value for s in cls._providers)
            msg = (
                f"Unsupported streaming service: {service.value}. "
                f"Supported services: {supported_services}"
            )
            raise ValueError(msg)

        provider_class = cls._providers[service]
        logger.info("Creating streaming provider for service: %s", service.value)
        return provider_class(config, session_manager, service_config)

    @classmethod
    def get_supported_services(cls) -> list[StreamingSource]:
        """Get list of supported streaming services."""
        return list(cls._providers.keys())

    @classmethod
    def is_service_supported(cls, service: StreamingSource) -> bool:
        """Check if a streaming service is supported."""
        return service in cls._providers

    @classmethod
    def register_provider(
        cls,
        service: StreamingSource,
        provider_class: type[BaseStreamingProvider],
    ) -> None:
        """Register a new streaming provider for a service."""
        if not issubclass(provider_class, BaseStreamingProvider):
            msg = "Provider class must inherit from BaseStreamingProvider"
            raise TypeError(msg)

        logger.info("Registering streaming provider for service: %s", service.value)
        cls._providers[service] = provider_class

# Copyright (c) 2025 streamresolve and contributors. All rights reserved.
# Licensed under the MIT license. See LICENSE file in the project root for details.

"""TIDAL streaming provider."""

import logging
import time
from collections.abc import Callable

from streamresolve.config.services import TidalConfig
from streamresolve.models.base import ProviderRecord
from streamresolve.models.enums import DeliveryMode, EntityType, StreamingSource
from streamresolve.models.playback import OUTPUT_PLACEHOLDER, Rendition, TranscodeSpec
from streamresolve.streaming.assembler import StreamAssembler, StreamHandle
from streamresolve.streaming.auth import CredentialStore, TokenManager
from streamresolve.streaming.config import StreamingConfig
from streamresolve.streaming.exceptions import NoApplicableFormatError
from streamresolve.streaming.manifest import ManifestDecoder
from streamresolve.streaming.providers.base import BaseStreamingProvider
from streamresolve.streaming.quality import QualityRequest, QualitySelector
from streamresolve.streaming.session import SessionManager
from streamresolve.streaming.tidal.auth import TidalAuthority
from streamresolve.streaming.tidal.catalog import TidalCatalog
from streamresolve.streaming.tidal.client import TidalClient
from streamresolve.streaming.tidal.models import (
    TidalPlaybackInfo,
    TidalSubscription,
    TidalTrack,
)

logger = logging.getLogger(__name__)

TIDAL_CODEC_PREFERENCE = ("flac", "aac")

# Remux the DASH segments without re-encoding
_REMUX_ARGUMENTS = ["-hide_banner", "-loglevel", "error", "-i", "-", "-c:a", "copy"]


def transcode_spec_for(audio_quality: str) -> TranscodeSpec:
    """
    Decoder invocation for a delivered TIDAL tier.

    AAC tiers are remuxed into an M4A file, which needs a seekable output;
    FLAC tiers are remuxed straight to stdout.
    """
    if audio_quality.upper() in ("LOW", "HIGH"):
        return TranscodeSpec(
            mime_type="audio/mp4",
            arguments=[*_REMUX_ARGUMENTS, "-y", OUTPUT_PLACEHOLDER],
            output_file="data.m4a",
        )
    return TranscodeSpec(
        mime_type="audio/flac",
        arguments=[*_REMUX_ARGUMENTS, "-f", "flac", "-"],
    )


class TidalProvider(BaseStreamingProvider):
    """TIDAL provider wiring the token lifecycle, catalog and stream assembly."""

    def __init__(
        self,
        config: StreamingConfig,
        session_manager: SessionManager,
        service_config: TidalConfig,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(config, session_manager, service_config)
        self.tidal_config = service_config

        self.authority = TidalAuthority(
            session_manager,
            client_id=service_config.client_id,
            client_secret=service_config.get_client_secret(),
            clock=clock,
        )
        self.token_manager = TokenManager(
            CredentialStore(
                service_config.to_credential(),
                on_change=service_config.apply_credential,
            ),
            self.authority,
            source="tidal",
            clock=clock,
        )
        self.client = TidalClient(
            session_manager, self.token_manager, service_config.client_id
        )
        self.catalog = TidalCatalog(self.client)
        self.selector = QualitySelector(TIDAL_CODEC_PREFERENCE)
        self.decoder = ManifestDecoder()
        self.assembler = StreamAssembler(config, session_manager)

    @property
    def service_name(self) -> str:
        """Get the name of the streaming service."""
        return "TIDAL"

    @property
    def streaming_source(self) -> StreamingSource:
        """Get the StreamingSource enum value."""
        return StreamingSource.TIDAL

    @property
    def supported_entity_types(self) -> list[EntityType]:
        """Get list of supported entity types."""
        return list(EntityType)

    async def fetch_entity(
        self, entity_type: EntityType, entity_id: str
    ) -> ProviderRecord:
        """Fetch the provider-native record of an entity."""
        return await self.catalog.fetch_entity(entity_type, entity_id)

    async def fetch_children(
        self,
        entity_type: EntityType,
        entity_id: str,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[ProviderRecord]:
        """Fetch the tracks of an album, playlist or artist."""
        return list(
            await self.catalog.fetch_children(entity_type, entity_id, limit, offset)
        )

    def renditions_for(self, track: TidalTrack) -> list[Rendition]:
        """Renditions a track advertises, best first."""
        return [
            Rendition(
                quality_label=quality.value,
                mime_type="audio/flac" if quality.is_lossless else "audio/mp4",
                codec="flac" if quality.is_lossless else "aac",
            )
            for quality in track.advertised_qualities
        ]

    async def open_stream(
        self,
        track_id: str,
        quality: QualityRequest | None = None,
        record: ProviderRecord | None = None,
    ) -> StreamHandle:
        """Select a rendition of a track and open its audio stream."""
        request = quality or self.default_quality()
        if isinstance(record, TidalTrack):
            track = record
        else:
            track = TidalTrack.from_api(await self.client.get_track(track_id))

        rendition = self.selector.select(request, self.renditions_for(track))
        info = await self.client.get_playback_info(track_id, rendition.quality_label)
        delivered = info.audio_quality.upper()
        if request.strict and delivered != rendition.quality_label:
            msg = f"Could not find {request.label} format, TIDAL delivered {delivered}"
            raise NoApplicableFormatError(
                msg, requested=request.label, available=[delivered]
            )
        rendition = self.resolve_rendition(rendition, info)
        logger.info(
            "Streaming TIDAL track %s (%s requested, %s delivered, %s)",
            track_id,
            rendition.quality_label,
            info.audio_quality,
            rendition.delivery_mode,
        )

        if rendition.delivery_mode is DeliveryMode.DIRECT:
            return await self.assembler.open_direct(
                str(rendition.source), rendition.mime_type
            )

        plan = self.decoder.parse(rendition.source or b"", info.manifest_mime_type)
        return await self.assembler.assemble(plan, transcode_spec_for(info.audio_quality))

    @staticmethod
    def resolve_rendition(rendition: Rendition, info: TidalPlaybackInfo) -> Rendition:
        """Attach the delivery mode and source from playback info."""
        if info.is_segmented:
            return rendition.model_copy(
                update={
                    "delivery_mode": DeliveryMode.SEGMENTED,
                    "source": info.decoded_manifest(),
                }
            )

        manifest = info.direct_manifest()
        return rendition.model_copy(
            update={
                "delivery_mode": DeliveryMode.DIRECT,
                "source": manifest.urls[0],
                "mime_type": manifest.mime_type,
                "codec": manifest.codecs or rendition.codec,
            }
        )

    async def isrc_lookup(self, isrc: str) -> TidalTrack:
        """Find a track by ISRC."""
        return await self.catalog.isrc_lookup(isrc)

    async def get_account_info(self) -> TidalSubscription:
        """Get the subscription state of the configured account."""
        return TidalSubscription.model_validate(await self.client.get_subscription())

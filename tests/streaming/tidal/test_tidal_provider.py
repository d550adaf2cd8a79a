# Copyright (c) 2025 streamresolve and contributors. All rights reserved.
# Licensed under the MIT license. See LICENSE file in the project root for details.

"""Tests for the TIDAL provider."""

from unittest.mock import patch

import pytest
from fakes import FakeResponse
from tidal_payloads import (
    PLAYBACK_URL,
    STREAM_URL,
    TRACK_ID,
    TRACK_URL,
    add_segment_routes,
    dash_playback,
    direct_playback,
    track_payload,
)

from streamresolve.models.enums import EntityType, StreamingSource
from streamresolve.models.playback import OUTPUT_PLACEHOLDER, TranscodeSpec
from streamresolve.streaming.exceptions import (
    NoApplicableFormatError,
    SegmentFetchError,
)
from streamresolve.streaming.quality import QualityRequest
from streamresolve.streaming.tidal.models import TIDAL_API_BASE, TidalTrack
from streamresolve.streaming.tidal.provider import transcode_spec_for

COPY_TO_FILE = TranscodeSpec(
    mime_type="audio/mp4",
    arguments=[
        "-c",
        "import sys; open(sys.argv[1], 'wb').write(sys.stdin.buffer.read())",
        OUTPUT_PLACEHOLDER,
    ],
    output_file="data.m4a",
)


def add_direct_routes(fake_http, audio_quality="LOSSLESS"):
    fake_http.add("GET", TRACK_URL, FakeResponse(json_body=track_payload()))
    fake_http.add("GET", PLAYBACK_URL, FakeResponse(json_body=direct_playback(audio_quality)))
    fake_http.add(
        "GET",
        STREAM_URL,
        FakeResponse(
            body=b"fLaC-stream", content_type="application/octet-stream", content_length=11
        ),
    )


class TestTranscodeSpecFor:
    """Test decoder invocations per delivered tier."""

    @pytest.mark.parametrize("quality", ["LOW", "HIGH", "high"])
    def test_aac_tiers_write_m4a_files(self, quality):
        """Test AAC tiers are remuxed into a scratch M4A file."""
        spec = transcode_spec_for(quality)

        assert spec.writes_to_file
        assert spec.output_file == "data.m4a"
        assert spec.mime_type == "audio/mp4"
        assert spec.arguments[-1] == OUTPUT_PLACEHOLDER

    @pytest.mark.parametrize("quality", ["LOSSLESS", "HI_RES_LOSSLESS"])
    def test_flac_tiers_stream_to_stdout(self, quality):
        """Test FLAC tiers are remuxed to stdout."""
        spec = transcode_spec_for(quality)

        assert not spec.writes_to_file
        assert spec.mime_type == "audio/flac"
        assert spec.arguments[-3:] == ["-f", "flac", "-"]


class TestTidalProvider:
    """Test the TidalProvider class."""

    def test_properties(self, tidal_provider):
        """Test the provider identity."""
        assert tidal_provider.service_name == "TIDAL"
        assert tidal_provider.streaming_source is StreamingSource.TIDAL
        assert all(tidal_provider.can_resolve(t) for t in EntityType)

    def test_default_quality_from_config(self, tidal_provider):
        """Test the configured tier becomes the default request."""
        assert tidal_provider.default_quality() == QualityRequest("LOSSLESS", strict=False)

    def test_renditions_best_first(self, tidal_provider):
        """Test renditions mirror the advertised tiers."""
        track = TidalTrack.from_api(track_payload())

        renditions = tidal_provider.renditions_for(track)

        assert [r.quality_label for r in renditions] == ["LOSSLESS", "HIGH", "LOW"]
        assert [r.codec for r in renditions] == ["flac", "aac", "aac"]

    def test_refreshed_credential_is_written_back(self, tidal_provider, tidal_config):
        """Test replacing the credential updates the stored tokens."""
        store = tidal_provider.token_manager.store
        store.replace(store.get().model_copy(update={"access_token": "access-9"}))

        assert tidal_config.to_credential().access_token == "access-9"


class TestOpenStream:
    """Test stream opening."""

    @pytest.mark.asyncio
    async def test_direct_delivery(self, tidal_provider, fake_http):
        """Test a BTS manifest opens the file URL with its declared type."""
        add_direct_routes(fake_http)

        handle = await tidal_provider.open_stream(str(TRACK_ID))

        assert handle.mime_type == "audio/flac"
        assert handle.size_bytes == 11
        assert await handle.read() == b"fLaC-stream"
        params = fake_http.calls_to(PLAYBACK_URL)[0]["params"]
        assert params["audioquality"] == "LOSSLESS"

    @pytest.mark.asyncio
    async def test_record_saves_track_lookup(self, tidal_provider, fake_http):
        """Test a given track record is used instead of fetching it."""
        add_direct_routes(fake_http)
        record = TidalTrack.from_api(track_payload())

        handle = await tidal_provider.open_stream(str(TRACK_ID), record=record)
        await handle.aclose()

        assert fake_http.calls_to(TRACK_URL) == []

    @pytest.mark.asyncio
    async def test_downgrade_when_not_strict(self, tidal_provider, fake_http):
        """Test a missing tier falls back to the best FLAC rendition."""
        add_direct_routes(fake_http)

        handle = await tidal_provider.open_stream(
            str(TRACK_ID), QualityRequest("HI_RES_LOSSLESS")
        )
        await handle.aclose()

        params = fake_http.calls_to(PLAYBACK_URL)[0]["params"]
        assert params["audioquality"] == "LOSSLESS"

    @pytest.mark.asyncio
    async def test_strict_quality_is_not_downgraded(self, tidal_provider, fake_http):
        """Test a strict request for an unadvertised tier fails before playback."""
        fake_http.add(
            "GET",
            TRACK_URL,
            FakeResponse(json_body=track_payload(audioQuality="HIGH", mediaMetadata={})),
        )

        with pytest.raises(NoApplicableFormatError) as exc_info:
            await tidal_provider.open_stream(
                str(TRACK_ID), QualityRequest("HI_RES_LOSSLESS", strict=True)
            )

        assert exc_info.value.available == ["HIGH", "LOW"]
        assert fake_http.calls_to(PLAYBACK_URL) == []

    @pytest.mark.asyncio
    async def test_strict_quality_rejects_lower_delivery(self, tidal_provider, fake_http):
        """Test a strict request fails when TIDAL delivers a lower tier."""
        fake_http.add(
            "GET",
            TRACK_URL,
            FakeResponse(
                json_body=track_payload(
                    mediaMetadata={"tags": ["LOSSLESS", "HIRES_LOSSLESS"]}
                )
            ),
        )
        fake_http.add(
            "GET", PLAYBACK_URL, FakeResponse(json_body=direct_playback("LOSSLESS"))
        )

        with pytest.raises(NoApplicableFormatError) as exc_info:
            await tidal_provider.open_stream(
                str(TRACK_ID), QualityRequest("HI_RES_LOSSLESS", strict=True)
            )

        assert exc_info.value.requested == "HI_RES_LOSSLESS"
        assert exc_info.value.available == ["LOSSLESS"]
        assert fake_http.calls_to(STREAM_URL) == []

    @pytest.mark.asyncio
    async def test_segmented_delivery(self, tidal_provider, fake_http):
        """Test a DASH manifest is assembled through the decoder."""
        fake_http.add(
            "GET",
            TRACK_URL,
            FakeResponse(json_body=track_payload(audioQuality="HIGH", mediaMetadata={})),
        )
        fake_http.add("GET", PLAYBACK_URL, FakeResponse(json_body=dash_playback(3)))
        bodies = add_segment_routes(fake_http, 3)

        with patch(
            "streamresolve.streaming.tidal.provider.transcode_spec_for",
            return_value=COPY_TO_FILE,
        ) as spec_for:
            handle = await tidal_provider.open_stream(str(TRACK_ID), QualityRequest("HIGH"))

        spec_for.assert_called_once_with("HIGH")
        assert handle.mime_type == "audio/mp4"
        assert await handle.read() == b"".join(bodies)

    @pytest.mark.asyncio
    async def test_segmented_failure_cleans_up(
        self, tidal_provider, fake_http, streaming_config
    ):
        """Test a failing segment surfaces its index and leaves no scratch space."""
        fake_http.add(
            "GET",
            TRACK_URL,
            FakeResponse(json_body=track_payload(audioQuality="HIGH", mediaMetadata={})),
        )
        fake_http.add("GET", PLAYBACK_URL, FakeResponse(json_body=dash_playback(3)))
        add_segment_routes(fake_http, 3, failing=1)

        with (
            patch(
                "streamresolve.streaming.tidal.provider.transcode_spec_for",
                return_value=COPY_TO_FILE,
            ),
            pytest.raises(SegmentFetchError) as exc_info,
        ):
            await tidal_provider.open_stream(str(TRACK_ID), QualityRequest("HIGH"))

        assert exc_info.value.index == 1
        scratch = streaming_config.temp_directory
        assert not scratch.exists() or list(scratch.iterdir()) == []


class TestAccountInfo:
    """Test account lookups."""

    @pytest.mark.asyncio
    async def test_subscription(self, tidal_provider, fake_http):
        """Test the subscription of the configured user is fetched."""
        fake_http.add(
            "GET",
            f"{TIDAL_API_BASE}users/184/subscription",
            FakeResponse(
                json_body={
                    "status": "ACTIVE",
                    "premiumAccess": True,
                    "subscription": {"type": "HIFI"},
                }
            ),
        )

        subscription = await tidal_provider.get_account_info()

        assert subscription.plan_type == "HIFI"
        assert subscription.premium_access

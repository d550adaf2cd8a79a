# Copyright (c) 2025 streamresolve and contributors. All rights reserved.
# Licensed under the MIT license. See LICENSE file in the project root for details.

"""Tests for TIDAL models."""

import pytest
from fakes import encode_manifest
from tidal_payloads import STREAM_URL, direct_playback, track_payload

from streamresolve.models.enums import TidalQuality
from streamresolve.streaming.exceptions import UnsupportedManifestError
from streamresolve.streaming.tidal.models import (
    TidalPlaybackInfo,
    TidalSession,
    TidalSubscription,
    TidalTrack,
)


class TestTidalTrack:
    """Test the TidalTrack model."""

    def test_from_api(self):
        """Test camelCase fields map and the raw payload is kept."""
        payload = track_payload()

        track = TidalTrack.from_api(payload)

        assert track.id == 95691774
        assert track.title == "Sunflower"
        assert track.track_number == 1
        assert track.audio_quality == "LOSSLESS"
        assert track.raw_data == payload
        assert track.display_title == "Sunflower"

    def test_lossless_track_qualities(self):
        """Test a LOSSLESS track advertises everything below hi-res."""
        track = TidalTrack.from_api(track_payload())

        assert track.advertised_qualities == [
            TidalQuality.LOSSLESS,
            TidalQuality.HIGH,
            TidalQuality.LOW,
        ]

    def test_hires_tag(self):
        """Test the hi-res media tag adds the top tier."""
        track = TidalTrack.from_api(
            track_payload(mediaMetadata={"tags": ["LOSSLESS", "HIRES_LOSSLESS"]})
        )

        assert track.advertised_qualities[0] is TidalQuality.HI_RES_LOSSLESS
        assert len(track.advertised_qualities) == 4

    def test_mqa_track_qualities(self):
        """Test an MQA track advertises HI_RES above LOSSLESS."""
        track = TidalTrack.from_api(
            track_payload(audioQuality="HI_RES", mediaMetadata={"tags": ["MQA"]})
        )

        assert track.advertised_qualities == [
            TidalQuality.HI_RES,
            TidalQuality.LOSSLESS,
            TidalQuality.HIGH,
            TidalQuality.LOW,
        ]

    def test_lossy_track_qualities(self):
        """Test an AAC-only track advertises the lossy tiers only."""
        track = TidalTrack.from_api(track_payload(audioQuality="HIGH", mediaMetadata={}))

        assert track.advertised_qualities == [TidalQuality.HIGH, TidalQuality.LOW]


class TestTidalPlaybackInfo:
    """Test the TidalPlaybackInfo model."""

    def test_direct_manifest(self):
        """Test a BTS manifest decodes to its file URL."""
        info = TidalPlaybackInfo.model_validate(direct_playback())

        manifest = info.direct_manifest()

        assert not info.is_segmented
        assert info.is_lossless
        assert manifest.mime_type == "audio/flac"
        assert manifest.urls == [STREAM_URL]

    def test_invalid_base64(self):
        """Test an undecodable manifest is rejected."""
        info = TidalPlaybackInfo.model_validate(
            {**direct_playback(), "manifest": "not base64!"}
        )

        with pytest.raises(UnsupportedManifestError):
            info.decoded_manifest()

    def test_manifest_without_urls(self):
        """Test a BTS manifest must carry at least one URL."""
        info = TidalPlaybackInfo.model_validate(
            {**direct_playback(), "manifest": encode_manifest({"mimeType": "audio/flac", "urls": []})}
        )

        with pytest.raises(UnsupportedManifestError):
            info.direct_manifest()


class TestTidalAccountModels:
    """Test session and subscription models."""

    def test_session(self):
        """Test session details parse with extra fields ignored."""
        session = TidalSession.model_validate(
            {"sessionId": "x", "userId": 184, "countryCode": "NO"}
        )

        assert session.country_code == "NO"
        assert session.user_id == 184

    def test_subscription(self):
        """Test the plan type comes from the nested subscription."""
        subscription = TidalSubscription.model_validate(
            {
                "status": "ACTIVE",
                "highestSoundQuality": "HI_RES_LOSSLESS",
                "premiumAccess": True,
                "subscription": {"type": "HIFI", "offlineGracePeriod": 30},
            }
        )

        assert subscription.premium_access
        assert subscription.plan_type == "HIFI"

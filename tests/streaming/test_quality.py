# Copyright (c) 2025 streamresolve and contributors. All rights reserved.
# Licensed under the MIT license. See LICENSE file in the project root for details.

"""Tests for rendition selection."""

import pytest

from streamresolve.models.playback import Rendition
from streamresolve.streaming.exceptions import NoApplicableFormatError
from streamresolve.streaming.quality import QualityRequest, QualitySelector


def rendition(label: str, codec: str) -> Rendition:
    mime_type = "audio/flac" if codec == "flac" else "audio/mp4"
    return Rendition(quality_label=label, mime_type=mime_type, codec=codec)


@pytest.fixture
def selector():
    """Selector preferring FLAC over AAC."""
    return QualitySelector(("flac", "aac"))


@pytest.fixture
def full_ladder():
    """All TIDAL tiers, best first."""
    return [
        rendition("HI_RES_LOSSLESS", "flac"),
        rendition("LOSSLESS", "flac"),
        rendition("HIGH", "aac"),
        rendition("LOW", "aac"),
    ]


@pytest.fixture
def lossy_ladder():
    """Only the AAC tiers."""
    return [rendition("HIGH", "aac"), rendition("LOW", "aac")]


class TestQualitySelector:
    """Test the QualitySelector fallback chain."""

    def test_preferred_label_wins(self, selector, full_ladder):
        """Test an advertised preferred label is chosen."""
        chosen = selector.select(QualityRequest("LOSSLESS"), full_ladder)

        assert chosen.quality_label == "LOSSLESS"

    def test_strict_label_match(self, selector, full_ladder):
        """Test a strict request returns the exact label."""
        chosen = selector.select(QualityRequest("HIGH", strict=True), full_ladder)

        assert chosen.quality_label == "HIGH"

    def test_strict_top_tier_is_never_downgraded(self, selector, lossy_ladder):
        """Test a strict request for a missing tier fails."""
        with pytest.raises(NoApplicableFormatError) as exc_info:
            selector.select(QualityRequest("HI_RES_LOSSLESS", strict=True), lossy_ladder)

        assert exc_info.value.requested == "HI_RES_LOSSLESS"
        assert exc_info.value.available == ["HIGH", "LOW"]
        assert "HI_RES_LOSSLESS" in exc_info.value.message

    def test_missing_preferred_falls_back_by_codec(self, selector, lossy_ladder):
        """Test a non-strict request downgrades through the codec chain."""
        chosen = selector.select(QualityRequest("HI_RES_LOSSLESS"), lossy_ladder)

        assert chosen.quality_label == "HIGH"

    def test_codec_preference_order(self, full_ladder):
        """Test the declared codec order decides the fallback."""
        selector = QualitySelector(("aac", "flac"))

        chosen = selector.select(QualityRequest("MISSING"), full_ladder)

        assert chosen.quality_label == "HIGH"

    def test_codec_prefix_match(self, selector):
        """Test codec families match by prefix, e.g. mp4a variants."""
        available = [
            Rendition(quality_label="A", mime_type="audio/mp4", codec="mp4a.40.2"),
            Rendition(quality_label="B", mime_type="audio/flac", codec="FLAC"),
        ]

        assert selector.select(QualityRequest(), available).quality_label == "B"

    def test_any_rendition_as_last_resort(self, selector):
        """Test an unknown codec is still chosen when nothing else matches."""
        available = [Rendition(quality_label="X", mime_type="audio/ogg", codec="opus")]

        assert selector.select(QualityRequest(), available).quality_label == "X"

    def test_empty_list_fails(self, selector):
        """Test nothing advertised raises NoApplicableFormatError."""
        with pytest.raises(NoApplicableFormatError):
            selector.select(QualityRequest("LOSSLESS"), [])

    def test_selection_is_stable(self, selector, full_ladder):
        """Test identical inputs yield the identical choice."""
        request = QualityRequest("MISSING")

        first = selector.select(request, full_ladder)
        second = selector.select(request, full_ladder)

        assert first is second
        assert first.quality_label == "HI_RES_LOSSLESS"

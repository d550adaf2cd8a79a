# Copyright (c) 2025 streamresolve and contributors. All rights reserved.
# Licensed under the MIT license. See LICENSE file in the project root for details.

"""Models describing playable renditions and segmented delivery plans."""

from pydantic import Field, field_validator

from streamresolve.models.base import StreamResolveBaseModel
from streamresolve.models.enums import DeliveryMode

# Substituted with the scratch file path when a decoder writes to a file
OUTPUT_PLACEHOLDER = "{output}"


class Rendition(StreamResolveBaseModel):
    """A quality/format variant of a playable entity's audio."""

    quality_label: str = Field(..., description="Provider quality label")
    mime_type: str = Field(..., description="MIME type of the delivered audio")
    codec: str = Field(default="", description="Codec family, e.g. flac or aac")
    delivery_mode: DeliveryMode | None = Field(
        None, description="Delivery mode, known once playback info is fetched"
    )
    source: str | bytes | None = Field(
        None, description="Direct URL or raw manifest bytes"
    )

    @property
    def is_resolved(self) -> bool:
        """Check if the rendition carries a fetchable source."""
        return self.delivery_mode is not None and self.source is not None


class Segment(StreamResolveBaseModel):
    """One fetchable chunk of a segmented rendition."""

    url: str = Field(..., description="Absolute segment URL")
    sequence_index: int = Field(..., ge=0, description="Zero-based position")


class SegmentPlan(StreamResolveBaseModel):
    """Ordered list of segments plus the container they make up."""

    segments: list[Segment] = Field(..., description="Segments in playback order")
    container: str = Field(default="mp4", description="Container of the segments")
    mime_type: str = Field(default="audio/mp4", description="MIME type of the bytes")
    codec: str | None = Field(None, description="Codec declared by the manifest")

    @field_validator("segments")
    @classmethod
    def validate_contiguous(cls, v: list[Segment]) -> list[Segment]:
        """Validate sequence indices run 0..N-1 in list order."""
        for position, segment in enumerate(v):
            if segment.sequence_index != position:
                msg = (
                    f"Segment at position {position} has sequence index "
                    f"{segment.sequence_index}"
                )
                raise ValueError(msg)
        return v

    def __len__(self) -> int:
        return len(self.segments)

    @property
    def urls(self) -> list[str]:
        """Segment URLs in order."""
        return [segment.url for segment in self.segments]

    @classmethod
    def from_urls(
        cls,
        urls: list[str],
        container: str = "mp4",
        mime_type: str = "audio/mp4",
        codec: str | None = None,
    ) -> "SegmentPlan":
        """Build a plan numbering the URLs in the given order."""
        return cls(
            segments=[
                Segment(url=url, sequence_index=index) for index, url in enumerate(urls)
            ],
            container=container,
            mime_type=mime_type,
            codec=codec,
        )


class TranscodeSpec(StreamResolveBaseModel):
    """Arguments for the external decoder and the shape of its output."""

    mime_type: str = Field(..., description="MIME type of the decoder output")
    arguments: list[str] = Field(..., description="Decoder arguments after the binary")
    output_file: str | None = Field(
        None,
        description="File name inside the scratch dir; stdout is used when unset",
    )

    @property
    def writes_to_file(self) -> bool:
        """Check if the decoder output lands in a scratch file."""
        return self.output_file is not None

    def build_arguments(self, output_path: str | None = None) -> list[str]:
        """Arguments with the output placeholder substituted."""
        if output_path is None:
            return list(self.arguments)
        return [arg.replace(OUTPUT_PLACEHOLDER, output_path) for arg in self.arguments]

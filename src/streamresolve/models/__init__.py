# Copyright (c) 2025 streamresolve and contributors. All rights reserved.
# Licensed under the MIT license. See LICENSE file in the project root for details.

"""Data models shared across streamresolve."""

from streamresolve.models.base import ProviderRecord, StreamResolveBaseModel
from streamresolve.models.enums import (
    DeliveryMode,
    EntityType,
    StreamingSource,
    TidalQuality,
)
from streamresolve.models.playback import (
    OUTPUT_PLACEHOLDER,
    Rendition,
    Segment,
    SegmentPlan,
    TranscodeSpec,
)

__all__ = [
    "OUTPUT_PLACEHOLDER",
    "DeliveryMode",
    "EntityType",
    "ProviderRecord",
    "Rendition",
    "Segment",
    "SegmentPlan",
    "StreamResolveBaseModel",
    "StreamingSource",
    "TidalQuality",
    "TranscodeSpec",
]

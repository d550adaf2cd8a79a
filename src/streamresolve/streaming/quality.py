# Copyright (c) 2025 streamresolve and contributors. All rights reserved.
# Licensed under the MIT license. See LICENSE file in the project root for details.

"""Deterministic rendition selection."""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from streamresolve.models.playback import Rendition
from streamresolve.streaming.exceptions import NoApplicableFormatError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QualityRequest:
    """A caller's quality wish.

    ``strict`` demands exactly ``label`` and fails instead of downgrading.
    """

    label: str | None = None
    strict: bool = False


class QualitySelector:
    """Pick one rendition through a fixed fallback chain.

    The chain stops at the first non-empty filtered set and takes its first
    element, so the provider's best-first ordering decides ties:

    1. strict label: exact match or NoApplicableFormatError
    2. preferred label: exact match when advertised
    3. codec families in the provider's declared order
    4. any remaining rendition
    """

    def __init__(self, codec_preference: Sequence[str] = ()) -> None:
        self.codec_preference = tuple(codec.lower() for codec in codec_preference)

    def select(self, request: QualityRequest, available: Sequence[Rendition]) -> Rendition:
        """Select a rendition for ``request`` from ``available``."""
        labels = [rendition.quality_label for rendition in available]

        if request.strict:
            matches = self._filter(available, lambda r: r.quality_label == request.label)
            if not matches:
                msg = f"Could not find {request.label} format"
                raise NoApplicableFormatError(
                    msg, requested=request.label, available=labels
                )
            return matches[0]

        if request.label:
            matches = self._filter(available, lambda r: r.quality_label == request.label)
            if matches:
                return matches[0]

        for codec in self.codec_preference:
            matches = self._filter(
                available, lambda r, codec=codec: r.codec.lower().startswith(codec)
            )
            if matches:
                logger.debug("Falling back to %s rendition %s", codec, matches[0].quality_label)
                return matches[0]

        if available:
            return available[0]

        msg = "Could not find applicable format"
        raise NoApplicableFormatError(msg, requested=request.label, available=labels)

    @staticmethod
    def _filter(
        available: Sequence[Rendition], predicate: Callable[[Rendition], bool]
    ) -> list[Rendition]:
        return [rendition for rendition in available if predicate(rendition)]

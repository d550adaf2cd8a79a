# Copyright (c) 2025 streamresolve and contributors. All rights reserved.
# Licensed under the MIT license. See LICENSE file in the project root for details.

"""Segmented-delivery manifest parsing (MPEG-DASH and HLS)."""

import logging
import math
import re
from pathlib import PurePosixPath
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup, Tag

from streamresolve.models.playback import SegmentPlan
from streamresolve.streaming.exceptions import UnsupportedManifestError

logger = logging.getLogger(__name__)

DASH_MIME_TYPES = frozenset({"application/dash+xml"})
HLS_MIME_TYPES = frozenset(
    {
        "application/vnd.apple.mpegurl",
        "application/x-mpegurl",
        "audio/mpegurl",
        "audio/x-mpegurl",
    }
)

_TEMPLATE_RE = re.compile(r"\$(Number|RepresentationID|Bandwidth|Time)(?:%0(\d+)d)?\$")
_DURATION_RE = re.compile(
    r"^P(?:(?P<days>\d+)D)?"
    r"(?:T(?:(?P<hours>\d+)H)?(?:(?P<minutes>\d+)M)?(?:(?P<seconds>[\d.]+)S)?)?$"
)


def parse_iso_duration(value: str) -> float:
    """Convert an ISO 8601 duration such as ``PT3M25.5S`` to seconds."""
    match = _DURATION_RE.match(value.strip())
    if match is None:
        msg = f"Invalid duration: {value}"
        raise ValueError(msg)
    parts = match.groupdict()
    return (
        int(parts["days"] or 0) * 86400
        + int(parts["hours"] or 0) * 3600
        + int(parts["minutes"] or 0) * 60
        + float(parts["seconds"] or 0)
    )


class ManifestDecoder:
    """Turn a manifest into an ordered SegmentPlan.

    The plan mirrors the manifest's declared order exactly; nothing is
    reordered or deduplicated here.
    """

    def parse(
        self, manifest: bytes | str, mime_type: str, base_url: str | None = None
    ) -> SegmentPlan:
        """Parse ``manifest`` according to its declared MIME type."""
        dialect = mime_type.split(";")[0].strip().lower()
        data = manifest.encode("utf-8") if isinstance(manifest, str) else manifest

        if dialect in DASH_MIME_TYPES:
            plan = self._parse_dash(data, base_url or "")
        elif dialect in HLS_MIME_TYPES:
            plan = self._parse_hls(data, base_url or "")
        else:
            msg = f"Unsupported manifest type: {mime_type}"
            raise UnsupportedManifestError(msg, mime_type=mime_type)

        logger.debug("Parsed %s manifest into %d segments", dialect, len(plan))
        return plan

    def _parse_dash(self, data: bytes, base_url: str) -> SegmentPlan:
        soup = BeautifulSoup(data, "lxml-xml")
        mpd = soup.find("MPD")
        if not isinstance(mpd, Tag):
            msg = "Manifest has no MPD element"
            raise UnsupportedManifestError(msg, mime_type="application/dash+xml")

        period, adaptation, representation = self._select_representation(mpd)
        for element in (mpd, period, adaptation, representation):
            base_url = self._join_base_url(base_url, element)

        template = representation.find("SegmentTemplate") or adaptation.find(
            "SegmentTemplate", recursive=False
        )
        segment_list = representation.find("SegmentList") or adaptation.find(
            "SegmentList", recursive=False
        )
        if isinstance(template, Tag):
            urls = self._expand_template(mpd, representation, template, base_url)
        elif isinstance(segment_list, Tag):
            urls = self._expand_segment_list(segment_list, base_url)
        else:
            msg = "Representation declares neither SegmentTemplate nor SegmentList"
            raise UnsupportedManifestError(msg, mime_type="application/dash+xml")

        if not urls:
            msg = "Manifest declares no segments"
            raise UnsupportedManifestError(msg, mime_type="application/dash+xml")

        mime = str(
            representation.get("mimeType") or adaptation.get("mimeType") or "audio/mp4"
        )
        codec = representation.get("codecs") or adaptation.get("codecs")
        return SegmentPlan.from_urls(
            urls,
            container=mime.split("/")[-1],
            mime_type=mime,
            codec=str(codec) if codec else None,
        )

    @staticmethod
    def _select_representation(mpd: Tag) -> tuple[Tag, Tag, Tag]:
        """Return the first audio representation with its parents."""
        for period in mpd.find_all("Period"):
            for adaptation in period.find_all("AdaptationSet"):
                content_type = str(adaptation.get("contentType") or "")
                mime = str(adaptation.get("mimeType") or "")
                if content_type and content_type != "audio":
                    continue
                if mime and not mime.startswith("audio/"):
                    continue
                representation = adaptation.find("Representation")
                if isinstance(representation, Tag):
                    return period, adaptation, representation

        msg = "Manifest has no audio representation"
        raise UnsupportedManifestError(msg, mime_type="application/dash+xml")

    @staticmethod
    def _join_base_url(base_url: str, element: Tag) -> str:
        node = element.find("BaseURL", recursive=False)
        if isinstance(node, Tag) and node.get_text(strip=True):
            return urljoin(base_url, node.get_text(strip=True))
        return base_url

    def _expand_template(
        self, mpd: Tag, representation: Tag, template: Tag, base_url: str
    ) -> list[str]:
        values = {
            "RepresentationID": str(representation.get("id") or ""),
            "Bandwidth": str(representation.get("bandwidth") or ""),
        }
        media = str(template.get("media") or "")
        start_number = int(str(template.get("startNumber") or "1"))
        urls: list[str] = []

        initialization = template.get("initialization")
        if initialization:
            urls.append(urljoin(base_url, self._substitute(str(initialization), values)))

        if not media:
            return urls

        timeline = template.find("SegmentTimeline")
        if isinstance(timeline, Tag):
            times = self._timeline_times(timeline)
        else:
            times = self._duration_times(mpd, template)

        for offset, start_time in enumerate(times):
            segment_values = {
                **values,
                "Number": str(start_number + offset),
                "Time": str(start_time),
            }
            urls.append(urljoin(base_url, self._substitute(media, segment_values)))
        return urls

    @staticmethod
    def _timeline_times(timeline: Tag) -> list[int]:
        """Start time of every segment, expanding ``r`` repeats."""
        times: list[int] = []
        current = 0
        for entry in timeline.find_all("S"):
            if entry.get("t") is not None:
                current = int(str(entry.get("t")))
            duration = int(str(entry.get("d") or "0"))
            for _ in range(int(str(entry.get("r") or "0")) + 1):
                times.append(current)
                current += duration
        return times

    @staticmethod
    def _duration_times(mpd: Tag, template: Tag) -> list[int]:
        duration = int(str(template.get("duration") or "0"))
        presentation = mpd.get("mediaPresentationDuration")
        if not duration or not presentation:
            msg = "SegmentTemplate has neither a timeline nor a usable duration"
            raise UnsupportedManifestError(msg, mime_type="application/dash+xml")
        timescale = int(str(template.get("timescale") or "1"))
        try:
            total = parse_iso_duration(str(presentation))
        except ValueError as e:
            raise UnsupportedManifestError(str(e), mime_type="application/dash+xml") from e
        count = math.ceil(total * timescale / duration)
        return [index * duration for index in range(count)]

    @staticmethod
    def _expand_segment_list(segment_list: Tag, base_url: str) -> list[str]:
        urls: list[str] = []
        initialization = segment_list.find("Initialization")
        if isinstance(initialization, Tag) and initialization.get("sourceURL"):
            urls.append(urljoin(base_url, str(initialization.get("sourceURL"))))
        urls.extend(
            urljoin(base_url, str(entry.get("media")))
            for entry in segment_list.find_all("SegmentURL")
            if entry.get("media")
        )
        return urls

    @staticmethod
    def _substitute(template: str, values: dict[str, str]) -> str:
        def replace(match: re.Match[str]) -> str:
            name, width = match.groups()
            value = values.get(name, "")
            if width and value.isdigit():
                return value.zfill(int(width))
            return value

        return _TEMPLATE_RE.sub(replace, template).replace("$$", "$")

    def _parse_hls(self, data: bytes, base_url: str) -> SegmentPlan:
        try:
            text = data.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            msg = "HLS playlist is not valid UTF-8"
            raise UnsupportedManifestError(msg, mime_type="application/vnd.apple.mpegurl") from e

        lines = [line.strip() for line in text.splitlines() if line.strip()]
        if not lines or lines[0] != "#EXTM3U":
            msg = "HLS playlist is missing the #EXTM3U header"
            raise UnsupportedManifestError(msg, mime_type="application/vnd.apple.mpegurl")

        urls: list[str] = []
        has_map = False
        for line in lines[1:]:
            if line.startswith("#EXT-X-STREAM-INF"):
                msg = "Master playlists must be resolved to a media playlist first"
                raise UnsupportedManifestError(msg, mime_type="application/vnd.apple.mpegurl")
            if line.startswith("#EXT-X-KEY") and "METHOD=NONE" not in line:
                msg = "Encrypted HLS playlists are not supported"
                raise UnsupportedManifestError(msg, mime_type="application/vnd.apple.mpegurl")
            if line.startswith("#EXT-X-MAP"):
                uri = re.search(r'URI="([^"]+)"', line)
                if uri:
                    urls.append(urljoin(base_url, uri.group(1)))
                    has_map = True
                continue
            if not line.startswith("#"):
                urls.append(urljoin(base_url, line))

        if not urls or (has_map and len(urls) == 1):
            msg = "HLS playlist declares no segments"
            raise UnsupportedManifestError(msg, mime_type="application/vnd.apple.mpegurl")

        if has_map:
            container = "mp4"
        else:
            container = PurePosixPath(urlparse(urls[0]).path).suffix.lstrip(".") or "mpegts"
        mime = {"mp4": "audio/mp4", "m4s": "audio/mp4", "mp3": "audio/mpeg"}.get(
            container, f"audio/{container}"
        )
        return SegmentPlan.from_urls(urls, container=container, mime_type=mime)

# Copyright (c) 2025 streamresolve and contributors. All rights reserved.
# Licensed under the MIT license. See LICENSE file in the project root for details.

"""Example usage of the resolver."""

import asyncio
import logging
from pathlib import Path

import aiofiles

from streamresolve.config.user import UserConfig
from streamresolve.core.url_parser import URLParser
from streamresolve.streaming.exceptions import StreamResolveError
from streamresolve.streaming.quality import QualityRequest
from streamresolve.streaming.resolver import Resolver

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def example_url_parsing():
    """Parse URLs to determine service and content type."""
    url_parser = URLParser()

    urls = [
        "https://tidal.com/browse/track/95691774",
        "https://listen.tidal.com/album/95691773",
        "https://open.qobuz.com/album/0886447",
        "https://www.qobuz.com/fr-fr/interpreter/some-artist/123456",
        "https://www.deezer.com/album/123456",
    ]

    for url in urls:
        try:
            entity = url_parser.parse_url(url)
        except StreamResolveError as e:
            logger.info("%s: %s", url, e.message)
            continue
        logger.info("%s: %s %s %s", url, entity.service, entity.entity_type, entity.provider_id)


async def example_save_track(config_path: Path, url: str, output_dir: Path):
    """Resolve a track link and write its audio to a file."""
    config = UserConfig.from_toml_file(str(config_path))

    async with Resolver.from_config(config) as resolver:
        try:
            result = await resolver.resolve(url)
            logger.info("Resolved %s", result.metadata.display_title)

            if not result.is_playable:
                for child in result.children:
                    logger.info("  %s", child.display_title)
                return

            handle = await result.stream_factory(QualityRequest("LOSSLESS"))
            suffix = ".flac" if handle.mime_type == "audio/flac" else ".m4a"
            target = output_dir / f"{result.entity.provider_id}{suffix}"
            async with handle, aiofiles.open(target, "wb") as f:
                async for chunk in handle:
                    await f.write(chunk)
            logger.info("Wrote %s", target)
        except StreamResolveError:
            logger.exception("Resolving %s failed", url)

    # Tokens may have been refreshed while resolving
    config.to_json_file(str(config_path.with_suffix(".json")))


async def main():
    """Run all examples."""
    output_dir = Path("./streams")
    output_dir.mkdir(exist_ok=True)

    example_url_parsing()
    await example_save_track(
        Path("./streamresolve.toml"),
        "https://tidal.com/browse/track/95691774",
        output_dir,
    )


if __name__ == "__main__":
    asyncio.run(main())

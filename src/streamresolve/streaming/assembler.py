# Copyright (c) 2025 streamresolve and contributors. All rights reserved.
# Licensed under the MIT license. See LICENSE file in the project root for details.

"""Assemble direct and segmented deliveries into one byte stream."""

import asyncio
import contextlib
import logging
import shutil
import tempfile
from collections import deque
from collections.abc import AsyncIterator, Awaitable, Callable
from pathlib import Path
from types import TracebackType
from typing import TypeVar

import aiofiles
import aiohttp

from streamresolve.models.playback import Segment, SegmentPlan, TranscodeSpec
from streamresolve.streaming.config import StreamingConfig
from streamresolve.streaming.exceptions import (
    NetworkError,
    SegmentFetchError,
    TranscodeError,
)
from streamresolve.streaming.session import SessionManager, raise_for_upstream_status

logger = logging.getLogger(__name__)

CloseCallback = Callable[[], Awaitable[None] | None]
T = TypeVar("T")


def _require_pipe(stream: T | None, name: str) -> T:
    if stream is None:
        msg = f"Decoder {name} is not connected"
        raise TranscodeError(msg)
    return stream


class StreamHandle:
    """An audio byte stream handed to the caller.

    Iterate it (``async for chunk in handle``), ``read()`` it whole, or use it
    as an async context manager. Closing the handle, exhausting it or an
    error while reading releases the connection, stops the decoder and
    removes any scratch space.
    """

    def __init__(
        self,
        mime_type: str,
        chunks: AsyncIterator[bytes],
        size_bytes: int | None = None,
        on_close: CloseCallback | None = None,
    ) -> None:
        self.mime_type = mime_type
        self.size_bytes = size_bytes
        self._chunks = chunks
        self._on_close = on_close
        self._closed = False

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[bytes]:
        try:
            async for chunk in self._chunks:
                yield chunk
        finally:
            await self.aclose()

    async def read(self) -> bytes:
        """Read the whole stream into memory."""
        buffer = bytearray()
        async for chunk in self:
            buffer.extend(chunk)
        return bytes(buffer)

    @property
    def closed(self) -> bool:
        """Check if the handle has released its resources."""
        return self._closed

    async def aclose(self) -> None:
        """Release every resource behind the stream."""
        if self._closed:
            return
        self._closed = True
        try:
            aclose = getattr(self._chunks, "aclose", None)
            if aclose is not None:
                await aclose()
        finally:
            if self._on_close is not None:
                result = self._on_close()
                if result is not None:
                    await result

    async def __aenter__(self) -> "StreamHandle":
        """Async context manager entry."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Async context manager exit."""
        await self.aclose()


class ScratchDirectory:
    """Temporary directory for decoder output, removable more than once."""

    def __init__(self, parent: Path, prefix: str) -> None:
        parent.mkdir(parents=True, exist_ok=True)
        self.path = Path(tempfile.mkdtemp(prefix=prefix, dir=parent))

    def file(self, name: str) -> Path:
        """Path of a file inside the directory."""
        return self.path / name

    def remove(self) -> None:
        """Remove the directory and everything in it."""
        if self.path.exists():
            shutil.rmtree(self.path)
            logger.debug("Removed scratch directory %s", self.path)


class StreamAssembler:
    """Fetch deliveries and produce StreamHandles."""

    def __init__(
        self,
        config: StreamingConfig,
        session_manager: SessionManager,
        source: str = "cdn",
    ) -> None:
        self.config = config
        self.session_manager = session_manager
        self.source = source

    async def open_direct(self, url: str, mime_type: str | None = None) -> StreamHandle:
        """Open a single-file delivery and forward its bytes untouched."""
        session = await self.session_manager.get_session(self.source)
        try:
            response = await session.get(url)
        except aiohttp.ClientError as e:
            msg = f"Stream request failed: {e}"
            raise NetworkError(msg) from e

        try:
            await raise_for_upstream_status(response, "stream")
        except BaseException:
            response.release()
            raise

        content_type = mime_type or response.content_type
        logger.debug(
            "Opened direct stream (%s, %s bytes)", content_type, response.content_length
        )
        return StreamHandle(
            content_type,
            self._iter_response(response),
            size_bytes=response.content_length,
            on_close=response.release,
        )

    async def _iter_response(self, response: aiohttp.ClientResponse) -> AsyncIterator[bytes]:
        try:
            async for chunk in response.content.iter_chunked(self.config.chunk_size):
                yield chunk
        except aiohttp.ClientError as e:
            msg = f"Stream interrupted: {e}"
            raise NetworkError(msg) from e
        finally:
            response.release()

    async def assemble(
        self, plan: SegmentPlan, transcode: TranscodeSpec | None = None
    ) -> StreamHandle:
        """
        Turn a segment plan into one stream.

        Without ``transcode`` the segment bytes are forwarded as they are.
        With a stdout transcode the decoder starts on the first read. With a
        file transcode the decoder runs to completion first, because the
        target container cannot be written to a pipe.
        """
        if transcode is None:
            return StreamHandle(plan.mime_type, self.iter_segments(plan))
        if not transcode.writes_to_file:
            return StreamHandle(transcode.mime_type, self._transcode_to_stdout(plan, transcode))
        return await self._transcode_to_file(plan, transcode)

    async def iter_segments(self, plan: SegmentPlan) -> AsyncIterator[bytes]:
        """
        Yield segment bodies strictly in sequence order.

        Up to ``prefetch_segments`` fetches run ahead of the segment being
        forwarded. Segments that arrive early wait in their task until it is
        their turn, so arrival order never leaks into the output.
        """
        window = self.config.prefetch_segments + 1
        pending = iter(plan.segments)
        in_flight: deque[asyncio.Task[bytes]] = deque()

        def schedule_next() -> None:
            segment = next(pending, None)
            if segment is not None:
                in_flight.append(asyncio.create_task(self._fetch_segment(segment)))

        for _ in range(window):
            schedule_next()

        try:
            while in_flight:
                data = await in_flight.popleft()
                schedule_next()
                yield data
        finally:
            for task in in_flight:
                task.cancel()
            await asyncio.gather(*in_flight, return_exceptions=True)

    async def _fetch_segment(self, segment: Segment) -> bytes:
        session = await self.session_manager.get_session(self.source)
        try:
            async with session.get(segment.url) as response:
                if response.status >= 400:
                    msg = (
                        f"Segment {segment.sequence_index} failed with status "
                        f"code {response.status}"
                    )
                    raise SegmentFetchError(
                        msg,
                        index=segment.sequence_index,
                        status_code=response.status,
                        details={"url": segment.url},
                    )
                return await response.read()
        except aiohttp.ClientError as e:
            msg = f"Segment {segment.sequence_index} could not be fetched: {e}"
            raise SegmentFetchError(
                msg, index=segment.sequence_index, details={"url": segment.url}
            ) from e

    async def _transcode_to_stdout(
        self, plan: SegmentPlan, transcode: TranscodeSpec
    ) -> AsyncIterator[bytes]:
        process = await self._spawn(transcode.build_arguments())
        feeder = asyncio.create_task(self._feed(process, plan))
        diagnostics = asyncio.create_task(self._collect_diagnostics(process))
        try:
            stdout = _require_pipe(process.stdout, "stdout")
            while chunk := await stdout.read(self.config.chunk_size):
                yield chunk
            await feeder
            returncode = await process.wait()
            if returncode != 0:
                msg = f"Decoder exited with status {returncode}"
                raise TranscodeError(
                    msg,
                    diagnostics=await diagnostics,
                    returncode=returncode,
                )
        finally:
            await self._shutdown(process, feeder, diagnostics)

    async def _transcode_to_file(
        self, plan: SegmentPlan, transcode: TranscodeSpec
    ) -> StreamHandle:
        scratch = ScratchDirectory(self.config.temp_directory, self.config.scratch_prefix)
        output = scratch.file(transcode.output_file or "output")
        try:
            process = await self._spawn(
                transcode.build_arguments(str(output)),
                stdout=asyncio.subprocess.DEVNULL,
            )
            feeder = asyncio.create_task(self._feed(process, plan))
            diagnostics = asyncio.create_task(self._collect_diagnostics(process))
            try:
                await feeder
                returncode = await process.wait()
                if returncode != 0:
                    msg = f"Decoder exited with status {returncode}"
                    raise TranscodeError(
                        msg,
                        diagnostics=await diagnostics,
                        returncode=returncode,
                    )
            finally:
                await self._shutdown(process, feeder, diagnostics)
        except BaseException:
            scratch.remove()
            raise

        return StreamHandle(
            transcode.mime_type,
            self._iter_file(output, scratch),
            on_close=scratch.remove,
        )

    async def _iter_file(self, path: Path, scratch: ScratchDirectory) -> AsyncIterator[bytes]:
        try:
            async with aiofiles.open(path, "rb") as f:
                while chunk := await f.read(self.config.chunk_size):
                    yield chunk
        finally:
            scratch.remove()

    async def _spawn(
        self, arguments: list[str], stdout: int = asyncio.subprocess.PIPE
    ) -> asyncio.subprocess.Process:
        logger.debug("Starting decoder: %s %s", self.config.decoder_path, " ".join(arguments))
        try:
            return await asyncio.create_subprocess_exec(
                self.config.decoder_path,
                *arguments,
                stdin=asyncio.subprocess.PIPE,
                stdout=stdout,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            logger.exception("Failed to start decoder %s", self.config.decoder_path)
            msg = f"Could not start decoder {self.config.decoder_path}: {e}"
            raise TranscodeError(msg) from e

    async def _feed(self, process: asyncio.subprocess.Process, plan: SegmentPlan) -> None:
        """Write segments to the decoder's stdin, waiting whenever its pipe is full."""
        stdin = _require_pipe(process.stdin, "stdin")
        try:
            async for data in self.iter_segments(plan):
                stdin.write(data)
                await stdin.drain()
        except (BrokenPipeError, ConnectionResetError):
            # The decoder stopped reading; its exit status reports why
            logger.debug("Decoder closed its input early")
        finally:
            if not stdin.is_closing():
                stdin.close()
            with contextlib.suppress(BrokenPipeError, ConnectionResetError):
                await stdin.wait_closed()

    async def _collect_diagnostics(self, process: asyncio.subprocess.Process) -> str:
        """Keep the tail of the decoder's stderr for error reports."""
        stderr = _require_pipe(process.stderr, "stderr")
        limit = self.config.diagnostics_limit
        buffer = bytearray()
        while chunk := await stderr.read(4096):
            buffer.extend(chunk)
            if len(buffer) > limit:
                del buffer[:-limit]
        return buffer.decode("utf-8", errors="replace").strip()

    async def _shutdown(
        self,
        process: asyncio.subprocess.Process,
        *tasks: asyncio.Task,
    ) -> None:
        """Stop the feeder and the decoder, waiting a bounded time for exit."""
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

        if process.returncode is None:
            with contextlib.suppress(ProcessLookupError):
                process.terminate()
            try:
                await asyncio.wait_for(
                    process.wait(), timeout=self.config.process_shutdown_timeout
                )
            except TimeoutError:
                logger.warning("Decoder did not exit in time, killing it")
                with contextlib.suppress(ProcessLookupError):
                    process.kill()
                await process.wait()

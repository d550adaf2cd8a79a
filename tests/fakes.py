# Copyright (c) 2025 streamresolve and contributors. All rights reserved.
# Licensed under the MIT license. See LICENSE file in the project root for details.

"""Fake aiohttp objects shared by the test suite."""

import asyncio
import base64
import inspect
import json
from collections import deque
from collections.abc import Callable
from typing import Any


class FakeStreamReader:
    """Stands in for ``aiohttp.StreamReader``."""

    def __init__(self, body: bytes) -> None:
        self._body = body

    async def iter_chunked(self, n: int):
        for start in range(0, len(self._body), n):
            yield self._body[start : start + n]


class FakeResponse:
    """Stands in for ``aiohttp.ClientResponse``."""

    def __init__(
        self,
        status: int = 200,
        json_body: Any = None,
        body: bytes = b"",
        content_type: str = "application/json",
        content_length: int | None = None,
        delay: float = 0.0,
    ) -> None:
        if json_body is not None:
            body = json.dumps(json_body).encode("utf-8")
        self.status = status
        self.content_type = content_type
        self.content_length = content_length
        self.url = ""
        self.released = False
        self.delay = delay
        self._body = body
        self.content = FakeStreamReader(body)

    async def json(self) -> Any:
        return json.loads(self._body)

    async def text(self) -> str:
        return self._body.decode("utf-8")

    async def read(self) -> bytes:
        if self.delay:
            await asyncio.sleep(self.delay)
        return self._body

    def release(self) -> None:
        self.released = True


class FakeRequest:
    """Awaitable and async context manager, like aiohttp's request context."""

    def __init__(self, http: "FakeHttp", method: str, url: str, kwargs: dict) -> None:
        self._http = http
        self._method = method
        self._url = url
        self._kwargs = kwargs
        self._response: FakeResponse | None = None

    def __await__(self):
        return self._http.dispatch(self._method, self._url, self._kwargs).__await__()

    async def __aenter__(self) -> FakeResponse:
        self._response = await self._http.dispatch(self._method, self._url, self._kwargs)
        return self._response

    async def __aexit__(self, *exc_info) -> None:
        if self._response is not None:
            self._response.release()


class FakeHttp:
    """A routing fake for ``aiohttp.ClientSession``.

    Routes are keyed by method and URL without query string. A route holds
    either a queue of responses (the last one repeats) or a handler called
    with the request keyword arguments.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], deque | Callable] = {}
        self.calls: list[tuple[str, str, dict]] = []
        self.closed = False

    def add(self, method: str, url: str, *responses: FakeResponse | Callable) -> None:
        if len(responses) == 1 and callable(responses[0]):
            self.routes[(method, url)] = responses[0]
        else:
            self.routes[(method, url)] = deque(responses)

    def get(self, url: str, **kwargs) -> FakeRequest:
        return FakeRequest(self, "GET", url, kwargs)

    def post(self, url: str, **kwargs) -> FakeRequest:
        return FakeRequest(self, "POST", url, kwargs)

    def calls_to(self, url: str, method: str = "GET") -> list[dict]:
        return [kwargs for m, u, kwargs in self.calls if m == method and u == url]

    async def dispatch(self, method: str, url: str, kwargs: dict) -> FakeResponse:
        self.calls.append((method, url, kwargs))
        route = self.routes.get((method, url))
        if route is None:
            msg = f"Unexpected request {method} {url}"
            raise AssertionError(msg)

        if callable(route):
            response = route(kwargs)
            if inspect.isawaitable(response):
                response = await response
        elif len(route) > 1:
            response = route.popleft()
        else:
            response = route[0]

        if isinstance(response, Exception):
            raise response
        response.url = url
        return response

    async def close(self) -> None:
        self.closed = True


def encode_manifest(data: str | bytes | dict) -> str:
    """Base64-encode a manifest the way playback info carries it."""
    if isinstance(data, dict):
        data = json.dumps(data)
    if isinstance(data, str):
        data = data.encode("utf-8")
    return base64.b64encode(data).decode("ascii")

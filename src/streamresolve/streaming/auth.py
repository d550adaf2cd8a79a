# Copyright (c) 2025 streamresolve and contributors. All rights reserved.
# Licensed under the MIT license. See LICENSE file in the project root for details.

"""Access credentials and their refresh lifecycle."""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import TypeVar

from pydantic import BaseModel, ConfigDict, Field

from streamresolve.streaming.exceptions import (
    CredentialsExhaustedError,
    TransientAuthError,
    UpstreamHttpError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Credential(BaseModel):
    """An access/refresh token pair with its expiry."""

    model_config = ConfigDict(frozen=True)

    access_token: str = Field(..., description="Bearer token for API calls")
    refresh_token: str = Field(..., description="Token exchanged for new access tokens")
    expires_at: float = Field(
        default=0.0, description="Expiry as seconds since the epoch"
    )
    country_code: str | None = Field(None, description="Account country or region")
    user_id: str | None = Field(None, description="Account user ID")

    def is_expired(self, now: float | None = None) -> bool:
        """Check if the access token is past its expiry."""
        return (time.time() if now is None else now) > self.expires_at


class CredentialStore:
    """Holds the current credential and notifies listeners on replacement."""

    def __init__(
        self,
        credential: Credential,
        on_change: Callable[[Credential], None] | None = None,
    ) -> None:
        self._credential = credential
        self._on_change = on_change

    def get(self) -> Credential:
        """Get the current credential."""
        return self._credential

    def replace(self, credential: Credential) -> None:
        """Replace the credential wholesale."""
        self._credential = credential
        if self._on_change is not None:
            self._on_change(credential)


class TokenAuthority(ABC):
    """Provider endpoints backing the token lifecycle."""

    @abstractmethod
    async def refresh(self, credential: Credential) -> Credential | None:
        """
        Exchange the refresh token for a new credential.

        Returns None when the provider rejects the refresh token. Transport
        failures are raised.
        """
        ...

    @abstractmethod
    async def session_valid(self, credential: Credential) -> bool:
        """Probe whether the provider still accepts the credential."""
        ...

    async def complete_session(self, credential: Credential) -> Credential:
        """Fill in account identifiers some providers need after a refresh."""
        return credential


class TokenManager:
    """
    Keeps a credential valid and wraps authenticated calls.

    Refreshes are single-flight: callers that observed the same stale
    credential wait on one refresh and then use its result. Once a refresh
    is rejected every further call fails fast until ``reset`` is called.
    """

    def __init__(
        self,
        store: CredentialStore,
        authority: TokenAuthority,
        source: str | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.authority = authority
        self.source = source
        self._clock = clock
        self._refresh_lock = asyncio.Lock()
        self._auth_failed = False
        self._incomplete: Credential | None = None
        self.refresh_count = 0

    @property
    def auth_failed(self) -> bool:
        """Check if a refresh has been rejected for this client."""
        return self._auth_failed

    def reset(self, credential: Credential) -> None:
        """Install externally obtained credentials and clear the failure flag."""
        self.store.replace(credential)
        self._auth_failed = False
        self._incomplete = None

    async def ensure_valid(self) -> Credential:
        """Return a credential that is unexpired at call time."""
        self._check_failed()
        credential = self.store.get()
        if credential.is_expired(self._clock()):
            logger.debug("Access token expired, refreshing before the call")
            credential = await self._refresh(credential)
        if not credential.country_code and credential is not self._incomplete:
            credential = await self._complete_session(credential)
        return credential

    async def authenticated_call(self, call: Callable[[Credential], Awaitable[T]]) -> T:
        """
        Issue one outbound call with refresh-and-retry handling.

        A 401 triggers a session probe. If the probe still accepts the
        session the error is surfaced as TransientAuthError; otherwise the
        credential is refreshed once and the call retried once.
        """
        credential = await self.ensure_valid()
        try:
            return await call(credential)
        except UpstreamHttpError as e:
            if not e.is_unauthorized:
                raise
            unauthorized = e

        current = self.store.get()
        if current is credential:
            if await self.authority.session_valid(current):
                logger.warning("Unauthorized response with a valid session, not refreshing")
                msg = "Request was rejected although the session is valid"
                raise TransientAuthError(
                    msg, source=self.source, upstream=unauthorized
                ) from unauthorized
            logger.info("Session rejected by %s, refreshing tokens", self.source)
            current = await self._refresh(current)
        else:
            logger.debug("Credential replaced by a concurrent refresh, retrying")

        return await call(current)

    async def _refresh(self, stale: Credential) -> Credential:
        """Refresh unless another caller already replaced ``stale``."""
        async with self._refresh_lock:
            self._check_failed()
            current = self.store.get()
            if current is not stale:
                return current

            refreshed = await self.authority.refresh(stale)
            if refreshed is None:
                self._auth_failed = True
                msg = "Refreshing tokens failed, new credentials are required"
                raise CredentialsExhaustedError(msg, source=self.source)

            self.refresh_count += 1
            if not refreshed.country_code:
                refreshed = await self.authority.complete_session(refreshed)
                if not refreshed.country_code:
                    self._incomplete = refreshed
            self.store.replace(refreshed)
            logger.info("Refreshed tokens for %s", self.source)
            return refreshed

    async def _complete_session(self, credential: Credential) -> Credential:
        async with self._refresh_lock:
            current = self.store.get()
            if current is not credential:
                return current
            completed = await self.authority.complete_session(credential)
            if not completed.country_code:
                # Not retried until the credential is replaced
                logger.warning("No country code for %s, continuing without one", self.source)
                self._incomplete = completed
            if completed != credential:
                self.store.replace(completed)
            return completed

    def _check_failed(self) -> None:
        if self._auth_failed:
            msg = "Last refresh was rejected, get new tokens"
            raise CredentialsExhaustedError(msg, source=self.source)

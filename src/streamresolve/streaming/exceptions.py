# Copyright (c) 2025 streamresolve and contributors. All rights reserved.
# Licensed under the MIT license. See LICENSE file in the project root for details.

"""Exceptions raised while resolving URLs and assembling streams."""

from typing import Any


class StreamResolveError(Exception):
    """Base exception for resolution and streaming errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class UnsupportedUrlError(StreamResolveError):
    """Exception raised when a URL's host is not recognized."""

    def __init__(
        self,
        message: str,
        url: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.url = url


class UnrecognizedEntityError(StreamResolveError):
    """Exception raised when a known host's path maps to no entity type."""

    def __init__(
        self,
        message: str,
        url: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.url = url


class NetworkError(StreamResolveError):
    """Exception raised for transport-level failures."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.status_code = status_code


class UpstreamHttpError(StreamResolveError):
    """Exception raised when a provider answers with an error status."""

    def __init__(
        self,
        message: str,
        status: int,
        body: Any = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.status = status
        self.body = body

    @property
    def is_unauthorized(self) -> bool:
        """Check if the error body (or status when there is none) signals 401."""
        if isinstance(self.body, dict) and "status" in self.body:
            return str(self.body["status"]) == "401"
        return self.status == 401


class AuthenticationError(StreamResolveError):
    """Exception raised for authentication-related errors."""

    def __init__(
        self,
        message: str,
        source: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.source = source


class CredentialsExhaustedError(AuthenticationError):
    """Exception raised once a refresh has been rejected; terminal for the client."""


class TransientAuthError(AuthenticationError):
    """Exception raised for a 401 the session probe did not confirm."""

    def __init__(
        self,
        message: str,
        source: str | None = None,
        upstream: UpstreamHttpError | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, source, details)
        self.upstream = upstream


class NoApplicableFormatError(StreamResolveError):
    """Exception raised when no rendition survives quality selection."""

    def __init__(
        self,
        message: str,
        requested: str | None = None,
        available: list[str] | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.requested = requested
        self.available = available or []


class UnsupportedManifestError(StreamResolveError):
    """Exception raised for unrecognized or malformed manifests."""

    def __init__(
        self,
        message: str,
        mime_type: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.mime_type = mime_type


class SegmentFetchError(StreamResolveError):
    """Exception raised when a segment cannot be fetched."""

    def __init__(
        self,
        message: str,
        index: int,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.index = index
        self.status_code = status_code


class TranscodeError(StreamResolveError):
    """Exception raised when the external decoder exits unsuccessfully."""

    def __init__(
        self,
        message: str,
        diagnostics: str = "",
        returncode: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.diagnostics = diagnostics
        self.returncode = returncode


class ContentNotFoundError(StreamResolveError):
    """Exception raised when a lookup matches nothing on the provider."""

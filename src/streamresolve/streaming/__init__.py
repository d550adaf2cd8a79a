# Copyright (c) 2025 streamresolve and contributors. All rights reserved.
# Licensed under the MIT license. See LICENSE file in the project root for details.

"""Token lifecycle, manifest decoding and stream assembly for streamresolve.

The resolver entry point lives in ``streamresolve.streaming.resolver``.
"""

from streamresolve.streaming.assembler import StreamAssembler, StreamHandle
from streamresolve.streaming.auth import (
    Credential,
    CredentialStore,
    TokenAuthority,
    TokenManager,
)
from streamresolve.streaming.config import StreamingConfig
from streamresolve.streaming.exceptions import (
    AuthenticationError,
    ContentNotFoundError,
    CredentialsExhaustedError,
    NetworkError,
    NoApplicableFormatError,
    SegmentFetchError,
    StreamResolveError,
    TranscodeError,
    TransientAuthError,
    UnrecognizedEntityError,
    UnsupportedManifestError,
    UnsupportedUrlError,
    UpstreamHttpError,
)
from streamresolve.streaming.manifest import ManifestDecoder
from streamresolve.streaming.quality import QualityRequest, QualitySelector
from streamresolve.streaming.session import SessionManager

__all__ = [
    "AuthenticationError",
    "ContentNotFoundError",
    "Credential",
    "CredentialStore",
    "CredentialsExhaustedError",
    "ManifestDecoder",
    "NetworkError",
    "NoApplicableFormatError",
    "QualityRequest",
    "QualitySelector",
    "SegmentFetchError",
    "SessionManager",
    "StreamAssembler",
    "StreamHandle",
    "StreamResolveError",
    "StreamingConfig",
    "TokenAuthority",
    "TokenManager",
    "TranscodeError",
    "TransientAuthError",
    "UnrecognizedEntityError",
    "UnsupportedManifestError",
    "UnsupportedUrlError",
    "UpstreamHttpError",
]

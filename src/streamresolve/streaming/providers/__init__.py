# Copyright (c) 2025 streamresolve and contributors. All rights reserved.
# Licensed under the MIT license. See LICENSE file in the project root for details.

"""Streaming providers module for streamresolve.

The provider registry lives in ``streamresolve.streaming.providers.factory``,
which imports the concrete providers.
"""

from streamresolve.streaming.providers.base import BaseStreamingProvider

__all__ = [
    "BaseStreamingProvider",
]

"""pyredirects: a compact Bloom-filter cache for redirect-existence checks.

The producer side (`FilterPublisher`, `refresh_site`) builds one filter per
site from the authoritative redirect list and publishes it to a snapshot
store; the consumer side (`RedirectResolver`) reads that snapshot per request
and only falls through to the expensive exact lookup on a possible hit.
"""

from __future__ import annotations

__all__ = [
    "BloomFilter",
    "DEFAULT_ERROR_RATE",
    "EdgeConfigSettings",
    "EdgeConfigStore",
    "FileStore",
    "FilterPublisher",
    "FilterStore",
    "InvalidParametersError",
    "MalformedFilterError",
    "MemoryStore",
    "PublishResult",
    "RedirectFilterError",
    "RedirectInfo",
    "RedirectResolver",
    "StoreUnavailableError",
    "build_filter",
    "create_bloom_filter",
    "normalize_path",
    "optimal_parameters",
    "refresh_site",
]

from .bloom import BloomFilter
from .builder import DEFAULT_ERROR_RATE, build_filter, create_bloom_filter, optimal_parameters
from .config import EdgeConfigSettings
from .consumer import RedirectResolver
from .errors import (
    InvalidParametersError,
    MalformedFilterError,
    RedirectFilterError,
    StoreUnavailableError,
)
from .paths import normalize_path
from .producer import FilterPublisher, PublishResult, RedirectInfo, refresh_site
from .store import EdgeConfigStore, FileStore, FilterStore, MemoryStore

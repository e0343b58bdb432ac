"""Per-request redirect check backed by the published filter.

Decision table for a request path:

    snapshot says "definitely absent"   -> no redirect, skip the exact lookup
    snapshot says "possibly present"    -> exact lookup
    snapshot absent / unreadable        -> exact lookup (fail open)

The exact lookup may still find nothing after a possible hit; that is a plain
false positive and is returned as ``None``.
"""
from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Optional

from .bloom import BloomFilter
from .errors import MalformedFilterError, RedirectFilterError, StoreUnavailableError
from .paths import normalize_path
from .producer import RedirectInfo
from .store import FilterStore

__all__ = ["ExactLookup", "RedirectResolver"]

logger = logging.getLogger(__name__)

ExactLookup = Callable[[str, str], Awaitable[Optional[RedirectInfo]]]


class RedirectResolver:
    """Checks request paths against a site's filter before the exact lookup."""

    def __init__(self, store: FilterStore, lookup: ExactLookup):
        self._store = store
        self._lookup = lookup

    async def probe(self, path: str, site_name: str) -> Optional[bool]:
        """``False``: no redirect. ``True``: possible redirect. ``None``: unknown."""
        key = normalize_path(path)
        try:
            record = await self._store.get(site_name)
            if record is None:
                logger.warning("No redirect filter published for %s", site_name)
                return None
            # private instance per call, nothing shared across requests
            bf = BloomFilter.from_dict(record)
        except StoreUnavailableError as exc:
            logger.warning("Redirect filter store unavailable for %s: %s", site_name, exc)
            return None
        except MalformedFilterError as exc:
            logger.warning("Malformed redirect filter for %s: %s", site_name, exc)
            return None
        except RedirectFilterError as exc:
            logger.warning("Cannot read redirect filter for %s: %s", site_name, exc)
            return None
        return bf.has(key)

    async def resolve(self, path: str, site_name: str) -> Optional[RedirectInfo]:
        verdict = await self.probe(path, site_name)
        if verdict is False:
            logger.debug("Bloom filter does not contain %s, skipping.", path)
            return None
        if verdict:
            logger.debug("Bloom filter contains %s, forwarding to exact lookup.", path)
        redirect = await self._lookup(normalize_path(path), site_name)
        if redirect is None and verdict:
            logger.debug("False positive for %s on %s", path, site_name)
        return redirect

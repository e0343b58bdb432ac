"""Out-of-band publishing of redirect filters.

Runs once per invalidation event (e.g. a CMS publish webhook): fetch the
authoritative redirect list, build a filter over the normalised patterns and
replace the site's snapshot with a single upsert.
"""
from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

from .builder import DEFAULT_ERROR_RATE, create_bloom_filter
from .config import EdgeConfigSettings
from .paths import normalize_path
from .store import EdgeConfigStore, FilterStore

__all__ = ["RedirectInfo", "RedirectSource", "FilterPublisher", "PublishResult", "refresh_site"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RedirectInfo:
    """One redirect rule as delivered by the content API."""

    pattern: str
    target: str
    redirect_type: str = "REDIRECT_301"
    is_query_string_preserved: bool = False
    locale: Optional[str] = None


class RedirectSource(Protocol):
    async def fetch_redirects(self, site_name: str) -> list[RedirectInfo]: ...


class FilterPublisher:
    """Builds a site's filter and replaces its snapshot in *store*."""

    def __init__(self, store: FilterStore, *, error_rate: float = DEFAULT_ERROR_RATE):
        self._store = store
        self._error_rate = error_rate

    async def publish(self, site_name: str, patterns: Iterable[str]) -> dict[str, Any]:
        keys = [normalize_path(p) for p in patterns]
        record = create_bloom_filter(keys, self._error_rate)
        await self._store.upsert(site_name, record)
        logger.info(
            "Published redirect filter for %s: %d keys, %d bits, %d hashes",
            site_name,
            len(keys),
            len(record["bitArray"]),
            record["hashFunctions"],
        )
        return record

    async def refresh(self, site_name: str, source: RedirectSource) -> dict[str, Any]:
        redirects = await source.fetch_redirects(site_name)
        return await self.publish(site_name, (r.pattern for r in redirects))


@dataclass
class PublishResult:
    ok: bool
    site_name: Optional[str] = None
    key_count: int = 0
    items: list[dict[str, Any]] = field(default_factory=list)
    error: Optional[str] = None


async def refresh_site(
    settings: EdgeConfigSettings,
    source: RedirectSource,
    store: Optional[FilterStore] = None,
    *,
    error_rate: float = DEFAULT_ERROR_RATE,
) -> PublishResult:
    """Webhook entry point: rebuild and publish the filter for ``settings.site_name``.

    Failures are logged and reported through :class:`PublishResult` instead of
    being raised, so the caller can map them onto an HTTP status.
    """
    if not settings.can_publish:
        return PublishResult(ok=False, error="Edge config endpoint or token or siteName is not set")
    site_name = settings.site_name or ""

    owned = store is None
    target = store if store is not None else EdgeConfigStore(settings)
    try:
        redirects = await source.fetch_redirects(site_name)
        record = await FilterPublisher(target, error_rate=error_rate).publish(
            site_name, (r.pattern for r in redirects)
        )
    except Exception as exc:
        logger.exception("Failed to publish redirect filter for %s", site_name)
        return PublishResult(ok=False, site_name=site_name, error=str(exc))
    finally:
        if owned:
            await target.aclose()

    items = [
        {
            "operation": "upsert",
            "key": site_name,
            "value": json.dumps(record, separators=(",", ":")),
        }
    ]
    return PublishResult(
        ok=True,
        site_name=site_name,
        key_count=len(redirects),
        items=items,
    )

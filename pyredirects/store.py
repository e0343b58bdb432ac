"""Snapshot stores holding one serialized filter per site.

Every backend implements the same two calls:

    get(site_name)             -> record | None
    upsert(site_name, record)  -> None   (full replacement, last writer wins)

Backends never retry. Transport failures surface as
:class:`~pyredirects.errors.StoreUnavailableError`; payloads that cannot be
decoded surface as :class:`~pyredirects.errors.MalformedFilterError`.
"""
from __future__ import annotations

import asyncio
import contextlib
import copy
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Optional
from urllib.parse import quote

import httpx
import msgpack

from .config import EdgeConfigSettings
from .errors import InvalidParametersError, MalformedFilterError, StoreUnavailableError

__all__ = ["FilterStore", "MemoryStore", "FileStore", "EdgeConfigStore"]

logger = logging.getLogger(__name__)

Record = dict[str, Any]


class FilterStore:
    """Base class for snapshot stores."""

    async def get(self, site_name: str) -> Optional[Record]:
        raise NotImplementedError

    async def upsert(self, site_name: str, record: Record) -> None:
        raise NotImplementedError

    async def aclose(self) -> None:
        """Release any connections held by the store."""


class MemoryStore(FilterStore):
    """In-process store, handy for tests and single-process deployments."""

    def __init__(self) -> None:
        self._records: dict[str, Record] = {}

    async def get(self, site_name: str) -> Optional[Record]:
        record = self._records.get(site_name)
        return copy.deepcopy(record) if record is not None else None

    async def upsert(self, site_name: str, record: Record) -> None:
        self._records[site_name] = copy.deepcopy(record)


class FileStore(FilterStore):
    """Directory of msgpack-encoded snapshots, one ``<site>.bloom`` file per site."""

    _SUFFIX = ".bloom"

    def __init__(self, directory: str | Path):
        self._dir = Path(directory)

    def path_for(self, site_name: str) -> Path:
        if not site_name:
            raise InvalidParametersError("site name must not be empty")
        return self._dir / (quote(site_name, safe="") + self._SUFFIX)

    async def get(self, site_name: str) -> Optional[Record]:
        return await asyncio.to_thread(self._get_sync, self.path_for(site_name))

    async def upsert(self, site_name: str, record: Record) -> None:
        blob = msgpack.packb(record, use_bin_type=True)
        await asyncio.to_thread(self._write_sync, self.path_for(site_name), blob)

    # ------------------------------------------------------------------
    # Internal sync helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _get_sync(path: Path) -> Optional[Record]:
        try:
            blob = path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StoreUnavailableError(f"cannot read snapshot {path}: {exc}") from exc
        try:
            record = msgpack.unpackb(blob, raw=False)
        except (ValueError, msgpack.UnpackException) as exc:
            raise MalformedFilterError(f"snapshot {path} is not valid msgpack") from exc
        if not isinstance(record, dict):
            raise MalformedFilterError(f"snapshot {path} does not hold a filter record")
        return record

    def _write_sync(self, path: Path, blob: bytes) -> None:
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
            # readers only ever see a complete snapshot
            fd, tmp = tempfile.mkstemp(dir=self._dir, suffix=".tmp")
            try:
                with os.fdopen(fd, "wb") as fp:
                    fp.write(blob)
                os.replace(tmp, path)
            except BaseException:
                with contextlib.suppress(OSError):
                    os.unlink(tmp)
                raise
        except OSError as exc:
            raise StoreUnavailableError(f"cannot write snapshot {path}: {exc}") from exc
        logger.debug("Wrote snapshot %s (%d bytes)", path, len(blob))


class EdgeConfigStore(FilterStore):
    """Vercel Edge Config backend.

    Writes go through the management API as a single ``upsert`` item whose
    value is the JSON-encoded record; reads use the Edge Config read API
    (``GET <read_url>/item/<site>``).
    """

    def __init__(self, settings: EdgeConfigSettings, client: Optional[httpx.AsyncClient] = None):
        self._settings = settings
        self._owns_client = client is None
        self._client = client if client is not None else httpx.AsyncClient(
            timeout=settings.timeout,
            headers={"Accept": "application/json"},
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "EdgeConfigStore":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def get(self, site_name: str) -> Optional[Record]:
        if not self._settings.read_url:
            raise StoreUnavailableError("Edge Config read URL is not set")
        url = self._settings.read_url.rstrip("/") + f"/item/{quote(site_name, safe='')}"
        headers = {}
        if self._settings.read_token:
            headers["Authorization"] = f"Bearer {self._settings.read_token}"
        try:
            resp = await self._client.get(url, headers=headers)
        except httpx.HTTPError as exc:
            raise StoreUnavailableError(f"Edge Config read failed: {exc}") from exc

        if resp.status_code == 404:
            return None
        if resp.status_code != 200:
            raise StoreUnavailableError(f"Edge Config read failed: HTTP {resp.status_code}")

        try:
            value = resp.json()
            # the producer stores the record as JSON text
            if isinstance(value, str):
                value = json.loads(value)
        except ValueError as exc:
            raise MalformedFilterError(f"Edge Config item {site_name!r} is not valid JSON") from exc
        if value is None:
            return None
        if not isinstance(value, dict):
            raise MalformedFilterError(f"Edge Config item {site_name!r} is not a filter record")
        return value

    async def upsert(self, site_name: str, record: Record) -> None:
        if not self._settings.endpoint or not self._settings.token:
            raise StoreUnavailableError("Edge Config endpoint or token is not set")
        items = [
            {
                "operation": "upsert",
                "key": site_name,
                "value": json.dumps(record, separators=(",", ":")),
            }
        ]
        try:
            resp = await self._client.patch(
                self._settings.endpoint,
                headers={
                    "Authorization": f"Bearer {self._settings.token}",
                    "Content-Type": "application/json",
                },
                json={"items": items},
            )
        except httpx.HTTPError as exc:
            logger.error("Failed to update Edge Config: %s", exc)
            raise StoreUnavailableError(f"Failed to update Edge Config: {exc}") from exc

        if not resp.is_success:
            logger.error("Failed to update Edge Config: HTTP %d %s", resp.status_code, resp.text)
            raise StoreUnavailableError(f"Failed to update Edge Config: {resp.reason_phrase}")

"""Connection settings for the Edge Config snapshot store.

Settings are a plain value passed to the store at the call site; nothing in
the package reads the environment implicitly.
"""
from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

__all__ = ["EdgeConfigSettings", "DEFAULT_TIMEOUT_SECONDS"]

DEFAULT_TIMEOUT_SECONDS = 3.0


@dataclass(frozen=True)
class EdgeConfigSettings:
    site_name: Optional[str] = None
    endpoint: Optional[str] = None  # write API (PATCH)
    token: Optional[str] = None
    read_url: Optional[str] = None  # read API base, e.g. https://edge-config.vercel.com/<id>
    read_token: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT_SECONDS

    @property
    def can_publish(self) -> bool:
        return bool(self.site_name and self.endpoint and self.token)

    @property
    def can_read(self) -> bool:
        return bool(self.read_url)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EdgeConfigSettings":
        """Read settings from *environ* (``os.environ`` plus ``.env`` by default)."""
        if environ is None:
            load_dotenv()
            environ = os.environ
        return cls(
            site_name=environ.get("SITECORE_SITE_NAME") or None,
            endpoint=environ.get("EDGE_CONFIG_ENDPOINT") or None,
            token=environ.get("EDGE_CONFIG_VERCEL_TOKEN") or None,
            read_url=environ.get("EDGE_CONFIG_READ_URL") or None,
            read_token=environ.get("EDGE_CONFIG_READ_TOKEN") or None,
            timeout=float(environ.get("EDGE_CONFIG_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS)),
        )

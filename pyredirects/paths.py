"""Key normalisation shared by the producer and the consumer."""
from __future__ import annotations

__all__ = ["normalize_path"]


def normalize_path(path: str) -> str:
    """Drop the query string and any trailing slashes.

    >>> normalize_path("/promo/?utm=1")
    '/promo'
    """
    return path.split("?", 1)[0].rstrip("/")

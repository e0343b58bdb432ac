"""Sizing math and construction helpers for redirect filters."""
from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from typing import Any

from .bloom import BloomFilter
from .errors import InvalidParametersError

__all__ = ["DEFAULT_ERROR_RATE", "optimal_parameters", "build_filter", "create_bloom_filter"]

logger = logging.getLogger(__name__)

DEFAULT_ERROR_RATE = 0.0001  # 0.01 %


def _check_error_rate(error_rate: float) -> None:
    if isinstance(error_rate, bool) or not isinstance(error_rate, (int, float)):
        raise InvalidParametersError(f"error rate must be a number, got {error_rate!r}")
    if math.isnan(error_rate) or not 0 < error_rate < 1:
        raise InvalidParametersError(f"error rate must be in (0, 1), got {error_rate!r}")


def optimal_parameters(n: int, error_rate: float = DEFAULT_ERROR_RATE) -> tuple[int, int]:
    """Return ``(m, k)`` for *n* keys at *error_rate*.

    m = ceil(-n * ln(p) / ln(2)^2)
    k = ceil((m / n) * ln(2))

    An empty key set gets the smallest usable filter, ``(1, 1)``.
    """
    _check_error_rate(error_rate)
    if n < 0:
        raise InvalidParametersError(f"key count must be >= 0, got {n}")
    if n == 0:
        return 1, 1
    m = math.ceil(-(n * math.log(error_rate)) / math.log(2) ** 2)
    k = math.ceil((m / n) * math.log(2))
    return m, k


def build_filter(keys: Iterable[str], error_rate: float = DEFAULT_ERROR_RATE) -> BloomFilter:
    """Size a filter for *keys* and add every key once."""
    keys = list(keys)
    m, k = optimal_parameters(len(keys), error_rate)
    bf = BloomFilter(m, k)
    for key in keys:
        bf.add(key)
    logger.debug("Built bloom filter: n=%d m=%d k=%d p=%g", len(keys), m, k, error_rate)
    return bf


def create_bloom_filter(keys: Iterable[str], error_rate: float = DEFAULT_ERROR_RATE) -> dict[str, Any]:
    """Build a filter and return it in the form published to the store."""
    return build_filter(keys, error_rate).to_dict()

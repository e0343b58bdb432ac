"""A *very* small Bloom filter for redirect-existence checks.

Main goals:
    • no false negatives: a path that was added always reports ``True``
    • serialisable to a plain JSON record so it can be published to a
      key-value store and rebuilt on every request

The hash family is pinned (version 1) and matches the JavaScript producer:

    h = (h * 31 + code_unit + i) | 0      for every UTF-16 code unit
    index_i = abs(h) % m

so snapshots written on either side can be read by the other.
"""
from __future__ import annotations

import json
import struct
from collections.abc import Iterator
from typing import Any, ClassVar

from .errors import MalformedFilterError

__all__ = ["BloomFilter", "HASH_VERSION"]

HASH_VERSION = 1

_INT32_MASK = 0xFFFFFFFF
_INT32_SIGN = 0x80000000


def _to_int32(value: int) -> int:
    value &= _INT32_MASK
    return value - (1 << 32) if value & _INT32_SIGN else value


def _code_units(key: str) -> tuple[int, ...]:
    data = key.encode("utf-16-le", "surrogatepass")
    return struct.unpack(f"<{len(data) // 2}H", data)


class BloomFilter:
    """Simple Bloom filter backed by a packed bit-array."""

    _BITS_FIELD: ClassVar[str] = "bitArray"
    _HASHES_FIELD: ClassVar[str] = "hashFunctions"
    _VERSION_FIELD: ClassVar[str] = "version"

    def __init__(self, m: int, k: int):
        self._m = m  # bits
        self._k = k  # hash functions
        self._bits = bytearray((m + 7) // 8)

    @property
    def size(self) -> int:
        return self._m

    @property
    def hash_count(self) -> int:
        return self._k

    # -------------------------------------------------------
    # Hash helpers
    # -------------------------------------------------------
    def _hashes(self, key: str) -> Iterator[int]:
        units = _code_units(key)
        for i in range(self._k):
            h = 0
            for c in units:
                h = _to_int32(h * 31 + c + i)
            yield abs(h) % self._m

    def _bit(self, pos: int) -> int:
        return (self._bits[pos // 8] >> (pos % 8)) & 1

    # -------------------------------------------------------
    # API
    # -------------------------------------------------------
    def add(self, key: str) -> None:
        for pos in self._hashes(key):
            self._bits[pos // 8] |= 1 << (pos % 8)

    def has(self, key: str) -> bool:
        """Return ``False`` if *key* was definitely never added."""
        return all(self._bit(pos) for pos in self._hashes(key))

    __contains__ = has

    def __repr__(self) -> str:  # pragma: no cover
        return f"BloomFilter(m={self._m}, k={self._k})"

    # -------------------------------------------------------
    # Serialisation 📦
    # -------------------------------------------------------
    def to_dict(self) -> dict[str, Any]:
        """Wire record ``{bitArray, hashFunctions, version}``; the list is a fresh copy."""
        return {
            self._BITS_FIELD: [self._bit(pos) for pos in range(self._m)],
            self._HASHES_FIELD: self._k,
            self._VERSION_FIELD: HASH_VERSION,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_dict(cls, record: Any) -> "BloomFilter":
        """Rebuild a filter from a wire record, validating every field.

        Records without a ``version`` come from older producers and are read
        as version 1.
        """
        if not isinstance(record, dict):
            raise MalformedFilterError(f"filter record must be an object, got {type(record).__name__}")
        version = record.get(cls._VERSION_FIELD, HASH_VERSION)
        if version != HASH_VERSION or isinstance(version, bool):
            raise MalformedFilterError(f"unsupported hash family version: {version!r}")
        bits = record.get(cls._BITS_FIELD)
        if not isinstance(bits, list) or not bits:
            raise MalformedFilterError(f"{cls._BITS_FIELD!r} must be a non-empty list")
        k = record.get(cls._HASHES_FIELD)
        if not isinstance(k, int) or isinstance(k, bool) or k < 1:
            raise MalformedFilterError(f"{cls._HASHES_FIELD!r} must be an integer >= 1, got {k!r}")
        bf = cls(len(bits), k)
        for pos, bit in enumerate(bits):
            if isinstance(bit, bool) or bit not in (0, 1):
                raise MalformedFilterError(f"bit {pos} is {bit!r}, expected 0 or 1")
            if bit:
                bf._bits[pos // 8] |= 1 << (pos % 8)
        return bf

    @classmethod
    def from_json(cls, payload: str | bytes | dict[str, Any]) -> "BloomFilter":
        if isinstance(payload, dict):
            return cls.from_dict(payload)
        try:
            record = json.loads(payload)
        except (TypeError, ValueError) as exc:
            raise MalformedFilterError(f"filter payload is not valid JSON: {exc}") from exc
        return cls.from_dict(record)

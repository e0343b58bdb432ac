"""Command line helpers.

    python -m pyredirects build keys.txt -o filter.json
    python -m pyredirects check filter.json /promo /about
    python -m pyredirects publish --site mysite keys.txt [--store-dir snapshots/]
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional, TextIO

from .bloom import BloomFilter
from .builder import DEFAULT_ERROR_RATE, build_filter
from .config import EdgeConfigSettings
from .errors import MalformedFilterError, RedirectFilterError
from .paths import normalize_path
from .producer import FilterPublisher
from .store import EdgeConfigStore, FileStore, FilterStore

logger = logging.getLogger("pyredirects")


def _read_keys(source: str) -> list[str]:
    fp: TextIO = sys.stdin if source == "-" else open(source, encoding="utf-8")
    try:
        return [line.strip() for line in fp if line.strip()]
    finally:
        if fp is not sys.stdin:
            fp.close()


def _cmd_build(args: argparse.Namespace) -> int:
    keys = [normalize_path(k) for k in _read_keys(args.keys)]
    payload = build_filter(keys, args.error_rate).to_json()
    if args.output:
        args.output.write_text(payload + "\n", encoding="utf-8")
        logger.info("Wrote filter for %d keys to %s", len(keys), args.output)
    else:
        print(payload)
    return 0


def _cmd_check(args: argparse.Namespace) -> int:
    try:
        payload = args.snapshot.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise MalformedFilterError(f"snapshot {args.snapshot} is not UTF-8 text") from exc
    bf = BloomFilter.from_json(payload)
    for path in args.paths:
        verdict = "possible" if bf.has(normalize_path(path)) else "absent"
        print(f"{verdict}\t{path}")
    return 0


async def _publish(args: argparse.Namespace) -> int:
    keys = _read_keys(args.keys)
    store: FilterStore
    if args.store_dir:
        store = FileStore(args.store_dir)
    else:
        store = EdgeConfigStore(EdgeConfigSettings.from_env())
    try:
        await FilterPublisher(store, error_rate=args.error_rate).publish(args.site, keys)
    finally:
        await store.aclose()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pyredirects", description="Redirect bloom filter tools")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p_build = sub.add_parser("build", help="Build a filter from a file of paths (one per line)")
    p_build.add_argument("keys", help="Path file, or - for stdin")
    p_build.add_argument("-e", "--error-rate", type=float, default=DEFAULT_ERROR_RATE)
    p_build.add_argument("-o", "--output", type=Path, help="Write JSON here instead of stdout")
    p_build.set_defaults(func=_cmd_build)

    p_check = sub.add_parser("check", help="Query a JSON snapshot for one or more paths")
    p_check.add_argument("snapshot", type=Path)
    p_check.add_argument("paths", nargs="+")
    p_check.set_defaults(func=_cmd_check)

    p_pub = sub.add_parser("publish", help="Build and publish a site's filter")
    p_pub.add_argument("keys", help="Path file, or - for stdin")
    p_pub.add_argument("--site", required=True)
    p_pub.add_argument("-e", "--error-rate", type=float, default=DEFAULT_ERROR_RATE)
    p_pub.add_argument("--store-dir", type=Path, help="Publish to a local FileStore instead of Edge Config")
    p_pub.set_defaults(func=lambda a: asyncio.run(_publish(a)))
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return args.func(args)
    except (RedirectFilterError, OSError) as exc:
        logger.error("%s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())

"""Command line front end for address lookups."""

import argparse
import asyncio
import json

from iplookup.client import IPinfo, IPinfoCore, IPinfoLite, IPinfoPlus
from iplookup.config import settings
from iplookup.exceptions import IPinfoError
from iplookup.utils.logging import get_logger, setup_logging

CLIENTS = {
    "standard": IPinfo,
    "lite": IPinfoLite,
    "core": IPinfoCore,
    "plus": IPinfoPlus,
}

logger = get_logger(__name__)


async def _lookup(args: argparse.Namespace) -> int:
    client_cls = CLIENTS[args.tier]
    async with client_cls(args.token) as client:
        details = await client.get_details(args.ip)
    if args.json:
        print(json.dumps(details.all, indent=2, ensure_ascii=False))
    else:
        for name, value in details.all.items():
            if value is not None:
                print(f"{name}: {value}")
    return 0


async def _batch(args: argparse.Namespace) -> int:
    async with CLIENTS["standard"](args.token) as client:
        results = await client.get_batch_details(
            args.keys, chunk_size=args.chunk_size, timeout=args.timeout, filter=args.filter
        )
    if args.json:
        print(json.dumps(results, indent=2, ensure_ascii=False))
    else:
        for key in args.keys:
            print(f"{key}: {results.get(key, 'ERROR: not resolved')}")
    return 0 if len(results) == len(set(args.keys)) else 2


async def _map(args: argparse.Namespace) -> int:
    async with CLIENTS["standard"](args.token) as client:
        print(await client.get_map_url(args.ips))
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="iplookup", description="IP/ASN metadata lookups via IPinfo")
    p.add_argument("--token", default=settings.access_token, help="API token (default: $IPINFO_ACCESS_TOKEN)")
    p.add_argument("--json", action="store_true", help="Print raw JSON")
    p.add_argument("--log-level", default=settings.log_level)
    sub = p.add_subparsers(dest="command", required=True)

    lookup = sub.add_parser("lookup", help="Look up one address (default: your own)")
    lookup.add_argument("ip", nargs="?", default=None)
    lookup.add_argument("--tier", choices=sorted(CLIENTS), default="standard")
    lookup.set_defaults(func=_lookup)

    batch = sub.add_parser("batch", help="Look up many addresses or ASNs at once")
    batch.add_argument("keys", nargs="+", help="e.g. 8.8.8.8 8.8.8.8/hostname AS123")
    batch.add_argument("--chunk-size", type=int, default=0)
    batch.add_argument("--timeout", type=float, default=None)
    batch.add_argument("--filter", action="store_true")
    batch.set_defaults(func=_batch)

    map_cmd = sub.add_parser("map", help="Create a map of addresses and print its URL")
    map_cmd.add_argument("ips", nargs="+")
    map_cmd.set_defaults(func=_map)

    return p


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)
    try:
        return int(asyncio.run(args.func(args)))
    except IPinfoError as e:
        logger.error(f"{args.command} failed: {e}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())

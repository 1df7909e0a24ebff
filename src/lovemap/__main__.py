"""Entry point: python -m lovemap <command>

- resolve:        Resolve a coordinate to a place name (prints name and provenance)
- add:            Resolve a name, then store a new memory
- list:           List stored memories, optionally for one user
- anniversaries:  Memories whose anniversary is coming up
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from lovemap.config import LoveMapConfig, load_config
from lovemap.models import MEMORY_TYPES, USER_IDS, LatLng
from lovemap.places.base import PlaceResolutionRequest, PlaceResolutionResult


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )


async def _resolve(config: LoveMapConfig, args: argparse.Namespace) -> PlaceResolutionResult:
    from lovemap.places.google import GooglePlacesClient
    from lovemap.places.resolver import PlaceResolver

    async with GooglePlacesClient(config.places) as client:
        resolver = PlaceResolver(client, nearby_radius=config.places.nearby_radius)
        return await resolver.resolve(
            PlaceResolutionRequest(
                LatLng(args.lat, args.lng),
                place_id=args.place_id,
                known_name=args.name,
            )
        )


def _cmd_resolve(config: LoveMapConfig, args: argparse.Namespace) -> int:
    result = asyncio.run(_resolve(config, args))
    print(f"{result.name}\t{result.provenance.value}")
    return 0


def _cmd_add(config: LoveMapConfig, args: argparse.Namespace) -> int:
    from lovemap.memory.store import MemoryStore

    result = asyncio.run(_resolve(config, args))
    store = MemoryStore(config.memory_dir)
    record = store.create(
        lat=args.lat,
        lng=args.lng,
        type=args.type,
        added_by=args.by,
        memo=args.memo,
        name=result.name,
        date=args.date,
    )
    print(f"{record.id}\t{record.name}\t({result.provenance.value})")
    return 0


def _cmd_list(config: LoveMapConfig, args: argparse.Namespace) -> int:
    from lovemap.memory.store import MemoryStore

    store = MemoryStore(config.memory_dir)
    for r in store.list(added_by=args.by):
        print(f"{r.date}  {r.type:<9} {r.added_by:<5} {r.name or '-'}  ({r.lat:.5f}, {r.lng:.5f})")
    return 0


def _cmd_anniversaries(config: LoveMapConfig, args: argparse.Namespace) -> int:
    from lovemap.anniversaries import upcoming_anniversaries
    from lovemap.memory.store import MemoryStore

    store = MemoryStore(config.memory_dir)
    for a in upcoming_anniversaries(store.list(), days_ahead=args.days):
        when = "today" if a.days_until == 0 else f"in {a.days_until} days"
        print(f"{a.anniversary_date}  {when:<12} {a.years_ago}y  {a.record.name or a.record.id}")
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="lovemap", description="LoveMap command line")
    sub = parser.add_subparsers(dest="command", required=True)

    def add_location_args(p: argparse.ArgumentParser) -> None:
        p.add_argument("lat", type=float)
        p.add_argument("lng", type=float)
        p.add_argument("--place-id", help="Exact place identifier from the map click")
        p.add_argument("--name", help="Known place name (skips lookups)")

    p_resolve = sub.add_parser("resolve", help="Resolve a coordinate to a place name")
    add_location_args(p_resolve)
    p_resolve.set_defaults(func=_cmd_resolve)

    p_add = sub.add_parser("add", help="Add a memory at a coordinate")
    add_location_args(p_add)
    p_add.add_argument("--type", choices=MEMORY_TYPES, required=True)
    p_add.add_argument("--by", choices=USER_IDS, required=True)
    p_add.add_argument("--memo", default="")
    p_add.add_argument("--date", help="YYYY-MM-DD (default: today)")
    p_add.set_defaults(func=_cmd_add)

    p_list = sub.add_parser("list", help="List memories")
    p_list.add_argument("--by", choices=USER_IDS)
    p_list.set_defaults(func=_cmd_list)

    p_ann = sub.add_parser("anniversaries", help="Upcoming memory anniversaries")
    p_ann.add_argument("--days", type=int, default=30)
    p_ann.set_defaults(func=_cmd_anniversaries)

    return parser


def main(argv: list[str] | None = None) -> None:
    args = _build_parser().parse_args(argv)
    config = load_config()
    _setup_logging(config.log_level)
    sys.exit(args.func(config, args))


if __name__ == "__main__":
    main()

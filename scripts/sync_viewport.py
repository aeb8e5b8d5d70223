#!/usr/bin/env python3
"""Sync a headless viewport against a live OGC API - Features collection.

Runs the first reconciliation cycle for ``--bbox``/``--zoom`` and then one
cycle per ``--pan``, printing which tiles were requested and how many
features the source holds afterwards.

Usage
-----
::

    python scripts/sync_viewport.py \\
        --url https://demo.pygeoapi.io/master --collection lakes \\
        --bbox -10 40 10 55 --zoom 5 \\
        --pan=-5,45,5,50@6 --param properties=name

``--url`` and ``--collection`` fall back to ``OGC_URL`` and
``OGC_COLLECTION_ID``.

Options::

    --param KEY=VALUE    Extra query parameter (repeatable)
    --static             Use the static zoom band policy
    --json               Print the final GeoJSON instead of a summary
    --output FILE        Write the final GeoJSON to FILE
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pyogcfeatures import BBox, CollectionConfig, CycleResult, HeadlessMapView, OgcFeatureCollection  # noqa: E402
from pyogcfeatures.config import FetchOptions  # noqa: E402


def _parse_pan(value: str) -> tuple[BBox, float | None]:
    coords, _, zoom = value.partition("@")
    parts = [float(p) for p in coords.split(",")]
    if len(parts) != 4:
        raise argparse.ArgumentTypeError(f"expected W,S,E,N[@ZOOM], got {value!r}")
    return BBox.from_corners(*parts), float(zoom) if zoom else None


def _parse_param(value: str) -> tuple[str, str]:
    key, sep, val = value.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"expected KEY=VALUE, got {value!r}")
    return key, val


def _describe(label: str, result: CycleResult, source: OgcFeatureCollection) -> str:
    if result.skipped:
        return f"{label}: zoom {result.zoom:g} below min zoom, skipped"
    total = len((source.feature_collection or {}).get("features", []))
    line = (
        f"{label}: zoom {result.zoom:g} band {result.band} primary {result.primary_tile} "
        f"requested {len(result.requested)} failed {len(result.failed)} "
        f"added {result.features_added} total {total}"
    )
    if result.tolerance is not None:
        line += f" tolerance {result.tolerance:.6f}"
    return line


async def main() -> int:
    parser = argparse.ArgumentParser(description="Run reconciliation cycles against a live collection.")
    parser.add_argument("--url", help="Service landing page URL (default: $OGC_URL)")
    parser.add_argument("--collection", help="Collection id (default: $OGC_COLLECTION_ID)")
    parser.add_argument("--bbox", nargs=4, type=float, metavar=("W", "S", "E", "N"), required=True)
    parser.add_argument("--zoom", type=float, required=True, help="Initial map zoom")
    parser.add_argument("--pixel-width", type=int, default=1024, help="Viewport width in pixels")
    parser.add_argument("--pan", action="append", type=_parse_pan, default=[], help="W,S,E,N[@ZOOM] (repeatable)")
    parser.add_argument("--param", action="append", type=_parse_param, default=[], help="KEY=VALUE (repeatable)")
    parser.add_argument("--static", action="store_true", help="Use the static zoom band policy")
    parser.add_argument("--min-zoom", type=float, help="Minimum zoom to request at")
    parser.add_argument("--limit", type=int, help="Items per request")
    parser.add_argument("--max-pages", type=int, help="Follow up to N pages per tile")
    parser.add_argument("--simplify-factor", type=float, help="Report the simplification tolerance")
    parser.add_argument("--timeout", type=float, help="Per-request timeout in seconds")
    parser.add_argument("--json", action="store_true", dest="json_mode", help="Print the final GeoJSON")
    parser.add_argument("--output", "-o", help="Write the final GeoJSON to FILE")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    overrides: dict[str, Any] = {"use_static_zoom_level": args.static, "params": dict(args.param)}
    if args.url:
        overrides["url"] = args.url
    if args.collection:
        overrides["collection_id"] = args.collection
    if args.min_zoom is not None:
        overrides["min_zoom"] = args.min_zoom
    if args.limit is not None:
        overrides["limit"] = args.limit
    if args.max_pages is not None:
        overrides["max_pages"] = args.max_pages
    if args.simplify_factor is not None:
        overrides["simplify_factor"] = args.simplify_factor
    if args.timeout is not None:
        overrides["fetch_options"] = FetchOptions(timeout=args.timeout)
    config = CollectionConfig.from_env(**overrides)

    view = HeadlessMapView(BBox.from_corners(*args.bbox), args.zoom, pixel_width=args.pixel_width)
    out: list[str] = []

    source = OgcFeatureCollection("features", view, config)
    try:
        out.append(_describe("initial", await source.start(), source))
        # Cycles are run directly rather than through move events so each
        # result can be reported.
        source.disable()
        for i, (bounds, zoom) in enumerate(args.pan, start=1):
            view.move_to(bounds, zoom)
            out.append(_describe(f"pan {i}", await source.reconcile(), source))
        final = source.feature_collection or {}
    finally:
        await source.close()

    payload = json.dumps(final, indent=2, ensure_ascii=False)
    if args.output:
        Path(args.output).write_text(payload, encoding="utf-8")
        print(f"GeoJSON written to {args.output}", file=sys.stderr)
    if args.json_mode:
        print(payload)
    else:
        print("\n".join(out))
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))

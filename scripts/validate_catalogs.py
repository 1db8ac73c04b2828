#!/usr/bin/env python3
"""Validate the coordinate catalogs shipped under data/coordinates/.

Loads the catalog of every sex/view combination straight from its
source (no repository fallback) and reports:
    - Missing or unreadable catalogs
    - Empty catalogs
    - Coordinates outside the diagram's reference image

Missing and empty catalogs fail the run. Out-of-bounds coordinates only
warn unless --strict is given.

Usage:
    python scripts/validate_catalogs.py

    # Validate another directory, failing on out-of-bounds points:
    python scripts/validate_catalogs.py --dir /path/to/coordinates --strict

    # Save the report:
    python scripts/validate_catalogs.py --output catalog_report.json
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Dict, List

from loguru import logger

# Ensure project root is on PYTHONPATH
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config.settings import settings  # noqa: E402
from src.diagrams import get_diagram_config  # noqa: E402
from src.models import DiagramConfig, Sex, ViewType  # noqa: E402
from src.repository import CatalogNotFoundError, JsonCoordinateSource  # noqa: E402


def out_of_bounds(diagram: DiagramConfig, coordinates: Dict) -> List[str]:
    """Keys whose point lies outside the reference image."""
    ref = diagram.reference_dimensions
    return [
        key for key, c in coordinates.items()
        if not (0 <= c.x <= ref.width and 0 <= c.y <= ref.height)
    ]


async def validate(source: JsonCoordinateSource) -> Dict[str, Dict]:
    report: Dict[str, Dict] = {}
    for sex in Sex:
        for view in ViewType:
            diagram = get_diagram_config(sex, view)
            entry = {"path": str(source.path_for(diagram.diagram_id))}
            try:
                catalog = await source.load(diagram.diagram_id)
            except CatalogNotFoundError as e:
                entry.update(status="missing", error=str(e))
                report[diagram.diagram_id] = entry
                continue

            outside = out_of_bounds(diagram, catalog.coordinates)
            entry.update(
                status="empty" if catalog.is_empty else "ok",
                points=len(catalog),
                out_of_bounds=outside,
            )
            report[diagram.diagram_id] = entry
    return report


def main():
    parser = argparse.ArgumentParser(description="Validate diagram coordinate catalogs")
    parser.add_argument("--dir", "-d", type=str, default=None,
                        help=f"Coordinates directory (default: {settings.COORDINATES_DIR})")
    parser.add_argument("--strict", action="store_true",
                        help="Treat out-of-bounds coordinates as failures")
    parser.add_argument("--output", "-o", type=str, default=None,
                        help="Path to save the report as JSON")
    args = parser.parse_args()

    source = JsonCoordinateSource(args.dir)

    print("=" * 70)
    print("EXAMINATION DIAGRAM MAPPER -- CATALOG VALIDATION")
    print("=" * 70)
    print(f"  Coordinates directory: {source.directory}")
    print(f"  Strict: {args.strict}")
    print()

    report = asyncio.run(validate(source))

    failures = 0
    for diagram_id, entry in report.items():
        status = entry["status"]
        if status == "missing":
            failures += 1
            logger.error(f"{diagram_id}: {entry['error']}")
            continue
        if status == "empty":
            failures += 1
            logger.error(f"{diagram_id}: catalog has no coordinates")
            continue

        outside = entry["out_of_bounds"]
        if outside:
            logger.warning(f"{diagram_id}: {len(outside)} point(s) outside the image: {', '.join(outside)}")
            if args.strict:
                failures += 1
        print(f"  {diagram_id:<28} {entry['points']:>4} points")

    if args.output:
        with open(args.output, "w") as f:
            json.dump(report, f, indent=2)
        logger.info(f"Report written to {args.output}")

    print()
    print(f"  {len(report)} catalogs checked, {failures} failure(s)")
    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())

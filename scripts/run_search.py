#!/usr/bin/env python3
"""Script to run a dish search against a JSON catalog from the command line."""

import asyncio
import argparse
import json
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from supra.catalog.provider import JsonCatalogProvider
from supra.config import configure_logging
from supra.search.engine import SupraSearchEngine


async def main():
    parser = argparse.ArgumentParser(
        description="Search the restaurant catalog with text and/or a food photo"
    )
    parser.add_argument(
        "catalog",
        help="Path to a JSON file of restaurants with nested dishes",
    )
    parser.add_argument(
        "--query",
        "-q",
        default="",
        help="Free-text request, e.g. 'cheesy bread'",
    )
    parser.add_argument(
        "--image",
        "-i",
        default=None,
        help="Path to a food photo",
    )
    parser.add_argument(
        "--preferences",
        "-p",
        default="",
        help="Standing preferences and allergies, e.g. 'no nuts'",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=10,
        help="Maximum number of dishes (default: 10)",
    )
    parser.add_argument(
        "--stream",
        action="store_true",
        help="Print the raw backend answer as it streams in",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Verbose output",
    )

    args = parser.parse_args()

    configure_logging("DEBUG" if args.verbose else "WARNING")

    if not args.query and not args.image:
        print("Error: provide --query, --image or both")
        sys.exit(1)

    provider = JsonCatalogProvider(args.catalog)
    if not provider.load():
        print(f"Error: could not load catalog: {args.catalog}")
        sys.exit(1)

    engine = SupraSearchEngine(catalog_provider=provider)

    if args.stream:
        async for fragment in engine.search_stream(
            query=args.query,
            image=args.image,
            preferences=args.preferences,
            limit=args.limit,
        ):
            print(fragment, end="", flush=True)
        print()
        return

    outcome = await engine.search(
        query=args.query,
        image=args.image,
        preferences=args.preferences,
        limit=args.limit,
    )

    if outcome.status == "error":
        print(f"Search failed: {outcome.message}")
        sys.exit(1)

    print(json.dumps(outcome.model_dump(exclude_none=True), ensure_ascii=False, indent=2))


if __name__ == "__main__":
    asyncio.run(main())

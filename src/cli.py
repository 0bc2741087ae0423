#!/usr/bin/env python3
"""Command-line interface for USDA FoodData Central lookups."""

import argparse
import json
import logging
import sys
from typing import Any, List, Optional

from src.catalog.client import CatalogClient, SearchOptions, DEFAULT_DATA_TYPES
from src.catalog.config import CatalogConfig


EXIT_OK = 0
EXIT_NOT_FOUND = 1
EXIT_CONFIG_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Search and inspect foods in USDA FoodData Central"
    )
    parser.add_argument(
        "--config",
        type=str,
        help="Path to YAML config with a 'usda' section (default: environment variables)"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log cache, quota and transport activity to stderr"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    search = subparsers.add_parser("search", help="Search foods by text")
    search.add_argument("query", type=str)
    search.add_argument(
        "--data-type",
        action="append",
        dest="data_types",
        help=f"USDA data type filter, repeatable (default: {', '.join(DEFAULT_DATA_TYPES)})"
    )
    search.add_argument("--page-size", type=int, default=10)
    search.add_argument("--page", type=int, default=1)

    detail = subparsers.add_parser("detail", help="Show nutrients for one FDC id")
    detail.add_argument("fdc_id", type=int)
    detail.add_argument(
        "--serving-grams",
        type=float,
        default=100.0,
        help="Scale per-100g nutrients to this serving weight (default: 100)"
    )

    batch = subparsers.add_parser("batch", help="Fetch details for several FDC ids")
    batch.add_argument("fdc_ids", type=int, nargs="+")

    return parser


def load_config(config_path: Optional[str]) -> CatalogConfig:
    if config_path:
        return CatalogConfig.from_yaml(config_path)
    return CatalogConfig.from_env()


def _summarize(client: CatalogClient, food: dict) -> dict:
    return {
        "fdcId": food.get("fdcId"),
        "description": food.get("description"),
        "dataType": food.get("dataType"),
        "nutrientCount": client.count_available_nutrients(food),
        "maxNutrientCount": client.get_max_nutrient_count(),
    }


def run(args: argparse.Namespace, client: CatalogClient) -> int:
    """Execute a parsed command and print JSON to stdout.

    Returns:
        Process exit code
    """
    output: Any
    if args.command == "search":
        options = SearchOptions(
            data_types=tuple(args.data_types or DEFAULT_DATA_TYPES),
            page_size=args.page_size,
            page_number=args.page,
        )
        foods = client.search(args.query, options)
        output = [_summarize(client, food) for food in foods]
        found = bool(foods)
    elif args.command == "detail":
        detail = client.get_detail(args.fdc_id)
        found = detail is not None
        if found:
            per_100g = client.map_nutrients(detail.get("foodNutrients"))
            output = {
                **_summarize(client, detail),
                "servingGrams": args.serving_grams,
                "nutrients": client.scale_nutrients_to_serving(per_100g, args.serving_grams),
            }
        else:
            output = None
    else:
        details = client.get_detail_batch(args.fdc_ids)
        output = [_summarize(client, food) for food in details]
        found = bool(details)

    print(json.dumps(output, indent=2))
    if not found:
        print("No results (or USDA unavailable with nothing cached)", file=sys.stderr)
        return EXIT_NOT_FOUND
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        config = load_config(args.config)
    except (ValueError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    try:
        return run(args, CatalogClient(config))
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR


if __name__ == "__main__":
    sys.exit(main())

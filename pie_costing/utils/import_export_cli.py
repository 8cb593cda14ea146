"""
Pie Costing CLI Utility

Simple command-line interface for bulk imports, recalculation and cost
reports. No UI required - designed for programmatic and scripted use.

Usage Examples:
    # Import the ingredient catalog (CSV with "Ingredient Name", "Unit",
    # "Cost per Unit (R)", "Supplier", "Category" columns)
    pie-costing import-ingredients ingredients.csv

    # Import per-product labor rates (CSV with "Pie Name", "Cost per Hour",
    # "Minutes per Pie" columns)
    pie-costing import-labor labor.csv

    # Import recipes (JSON list of recipe records)
    pie-costing import-recipes recipes.json

    # Recalculate every recipe after ingredient prices changed
    pie-costing recalculate

    # Show the cost breakdown of one recipe
    pie-costing show-recipe 12
"""

import argparse
import logging
import sys
from typing import List, Optional

from pie_costing.services import import_service, recipe_service
from pie_costing.services.database import close_connections, initialize_app_database
from pie_costing.services.exceptions import ServiceError
from pie_costing.utils.config import get_config


def import_ingredients_cmd(input_file: str) -> int:
    """Import ingredient catalog rows from a CSV file."""
    print(f"Importing ingredients from {input_file}...")
    try:
        rows = import_service.read_csv_rows(input_file)
        result = import_service.import_ingredients(rows)
    except (OSError, ServiceError) as e:
        print(f"ERROR: {e}")
        return 1

    print(result.get_summary())
    return 1 if result.has_errors else 0


def import_labor_cmd(input_file: str, use_name_map: bool = True) -> int:
    """Import per-product labor rates from a CSV file."""
    print(f"Importing labor rates from {input_file}...")
    try:
        rows = import_service.read_csv_rows(input_file)
        if use_name_map:
            result = import_service.import_labor_rates(rows)
        else:
            result = import_service.import_labor_rates(rows, pie_name_map=None)
    except (OSError, ServiceError) as e:
        print(f"ERROR: {e}")
        return 1

    print(result.get_summary())
    return 1 if result.has_errors else 0


def import_recipes_cmd(input_file: str) -> int:
    """Import recipe records from a JSON file."""
    print(f"Importing recipes from {input_file}...")
    try:
        records = import_service.read_json_records(input_file)
        result = import_service.import_recipes(records)
    except (OSError, ValueError, ServiceError) as e:
        print(f"ERROR: {e}")
        return 1

    print(result.get_summary())
    return 1 if result.has_errors else 0


def recalculate_cmd() -> int:
    """Recalculate every recipe from current ingredient costs."""
    print("Recalculating all recipes...")
    try:
        count = recipe_service.recalculate_all_recipes()
    except ServiceError as e:
        print(f"ERROR: {e}")
        return 1

    print(f"Recalculated {count} recipe(s).")
    return 0


def show_recipe_cmd(recipe_id: int) -> int:
    """Print the cost breakdown of one recipe."""
    try:
        report = recipe_service.get_recipe_cost_breakdown(recipe_id)
    except ServiceError as e:
        print(f"ERROR: {e}")
        return 1

    print(f"\n{report['pie_name']} - {report['variant']} (batch of {report['batch_size']})")
    print("-" * 60)
    for line in report["ingredients"]:
        print(
            f"  {line['ingredient_name']:<30} {line['quantity']:>10} {line['unit']:<6}"
            f" @ {line['cost_per_unit']:>8} = {line['line_cost']:>10}"
        )
    print("-" * 60)
    print(f"  Ingredients:       {report['total_ingredient_cost']:>10}")
    print(
        f"  Labor:             {report['total_labor_cost']:>10}"
        f"  ({report['total_labor_hours']} h @ {report['labor_hourly_rate']})"
    )
    print(f"  Batch total:       {report['total_batch_cost']:>10}")
    print(f"  Cost per pie:      {report['cost_per_pie']:>10}")
    print(
        f"  Selling price:     {report['selling_price']:>10}"
        f"  (markup {report['markup_percentage']}%)"
    )
    if report["is_stale"]:
        print("\nNOTE: stored prices are out of date; run 'recalculate' to refresh them.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    config = get_config()
    parser = argparse.ArgumentParser(
        prog="pie-costing",
        description=f"Import and costing utility for {config.app_name}",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Import ingredient catalog:
    pie-costing import-ingredients ingredients.csv

  Import labor rates (Afrikaans pie names are translated by default):
    pie-costing import-labor labor.csv
    pie-costing import-labor labor.csv --no-name-map

  Import recipes:
    pie-costing import-recipes recipes.json

  Recalculate all recipes:
    pie-costing recalculate

  Show a recipe's cost breakdown:
    pie-costing show-recipe 12
""",
    )

    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {config.app_version}"
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    ingredients_parser = subparsers.add_parser(
        "import-ingredients", help="Import ingredient catalog from CSV"
    )
    ingredients_parser.add_argument("file", help="CSV file path")

    labor_parser = subparsers.add_parser("import-labor", help="Import labor rates from CSV")
    labor_parser.add_argument("file", help="CSV file path")
    labor_parser.add_argument(
        "--no-name-map",
        dest="use_name_map",
        action="store_false",
        help="Use pie names exactly as they appear in the file",
    )

    recipes_parser = subparsers.add_parser("import-recipes", help="Import recipes from JSON")
    recipes_parser.add_argument("file", help="JSON file path")

    subparsers.add_parser("recalculate", help="Recalculate all recipe costs")

    show_parser = subparsers.add_parser("show-recipe", help="Show a recipe's cost breakdown")
    show_parser.add_argument("recipe_id", type=int, help="Recipe ID")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    config = get_config()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Initialize database (required for all operations)
    initialize_app_database()

    try:
        if args.command == "import-ingredients":
            return import_ingredients_cmd(args.file)
        elif args.command == "import-labor":
            return import_labor_cmd(args.file, use_name_map=args.use_name_map)
        elif args.command == "import-recipes":
            return import_recipes_cmd(args.file)
        elif args.command == "recalculate":
            return recalculate_cmd()
        else:
            return show_recipe_cmd(args.recipe_id)
    finally:
        close_connections()


if __name__ == "__main__":
    sys.exit(main())

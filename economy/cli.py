"""
Command-line interface for the economy engine.

Provides commands for:
- Computing a base shell price
- Sampling the randomized price a user would see
- Aggregating approved hours from a JSON export
- Recalculating stored prices after a rate change
"""

import argparse
import json
import sys
from datetime import datetime, UTC
from pathlib import Path

from economy.approval import aggregate_for_users
from economy.config import get_rate_config
from economy.errors import EconomyError
from economy.metrics import EngineMetrics, configure_logger
from economy.models import CostType, GlobalRateConfig, Project, ShopItem
from economy.pricing import positive_rate, quote_base_price, sample_price
from economy.recalculator import PriceRecalculator
from economy.storage import SQLiteStorage


def _rates(args) -> GlobalRateConfig:
    rates = get_rate_config()
    if getattr(args, "rate", None) is not None:
        rates.dollars_per_hour = args.rate
    if getattr(args, "min_percent", None) is not None:
        rates.price_random_min_percent = args.min_percent
    if getattr(args, "max_percent", None) is not None:
        rates.price_random_max_percent = args.max_percent
    return rates.validate()


def cmd_price(args):
    """Compute the base price of an item."""
    config = json.loads(args.config) if args.config else None
    item = ShopItem(
        id="cli",
        usd_cost=args.usd_cost,
        cost_type=CostType(args.cost_type),
        config=config,
        base_price=args.base_price,
    )
    rates = _rates(args)
    quote = quote_base_price(item, rates)

    print("\n" + "=" * 60)
    print("BASE PRICE")
    print("=" * 60)
    print(f"USD Cost: ${args.usd_cost:.2f}")
    print(f"Cost Type: {item.cost_type.value}")
    print(f"Dollars/Hour: ${rates.dollars_per_hour:.2f}")
    print(f"Mode: {quote.mode.value}")
    if quote.hours is not None:
        print(f"Hours: {quote.hours:.4f}")
    print(f"Price: {quote.price} shells")
    print("=" * 60)


def cmd_sample(args):
    """Show the randomized price a user sees."""
    at = datetime.fromisoformat(args.at) if args.at else datetime.now(UTC)
    item = ShopItem(id=args.item_id, base_price=args.base_price, use_randomized_pricing=True)
    rates = _rates(args)
    price = sample_price(item, args.user_id, at, rates)

    print(f"Item {args.item_id} for user {args.user_id} at {at.isoformat()}: "
          f"{price} shells (base {args.base_price}, band "
          f"{rates.price_random_min_percent:g}%-{rates.price_random_max_percent:g}%)")


def cmd_aggregate(args):
    """Aggregate approved hours per user from a JSON file."""
    data = json.loads(Path(args.file).read_text())
    projects_by_user = {
        user_id: [Project.from_dict(p, user_id=user_id) for p in projects]
        for user_id, projects in data.items()
    }

    metrics = EngineMetrics(enable_logging=args.verbose)
    batch = aggregate_for_users(projects_by_user, metrics=metrics)

    print("\n" + "=" * 60)
    print("APPROVED HOURS")
    print("=" * 60)
    for user_id, hours in batch.hours.items():
        marker = "  (lookup failed)" if user_id in batch.errors else ""
        print(f"  {user_id}: {hours:.2f}h{marker}")
    print("=" * 60)

    if args.output:
        Path(args.output).write_text(json.dumps(batch.hours, indent=2))
        print(f"\nResults saved to: {args.output}")


def cmd_recalculate(args):
    """Recalculate stored prices for a new rate."""
    configure_logger("economy.recalculator")
    rate = positive_rate("dollars_per_hour", args.rate)
    storage = SQLiteStorage(db_path=args.db)
    try:
        storage.set_config_value("dollars_per_hour", str(rate))
        recalculator = PriceRecalculator(persist=storage.update_base_price)
        result = recalculator.recalculate(storage.list_items(), rate)
    finally:
        storage.close()

    print("\n" + "=" * 60)
    print("PRICE RECALCULATION")
    print("=" * 60)
    for key, value in result.summary().items():
        print(f"  {key}: {value}")
    for item_id, error in result.errors.items():
        print(f"  FAILED {item_id}: {error}")
    print("=" * 60)

    if result.errors:
        sys.exit(2)


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Economy Engine CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Price a $25 item at $10/hour
  economy price --usd-cost 25 --rate 10

  # Price a progress item
  economy price --cost-type config --config '{"hours_equal_to_one_percent_progress": 2}'

  # See what a user is shown this hour
  economy sample --item-id sticker --user-id user_1 --base-price 40

  # Aggregate approved hours
  economy aggregate projects.json

  # Recalculate stored prices after a rate change
  economy recalculate --db economy.db --rate 12.5
""",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    price_parser = subparsers.add_parser("price", help="Compute an item's base price")
    price_parser.add_argument("--usd-cost", "-u", type=float, default=0.0, help="Item cost in USD")
    price_parser.add_argument("--rate", "-r", type=float, help="Dollars per hour")
    price_parser.add_argument("--cost-type", "-t", default="fixed",
                              choices=[c.value for c in CostType])
    price_parser.add_argument("--config", "-c", help="Item config as JSON")
    price_parser.add_argument("--base-price", type=int, default=0,
                              help="Current price, kept when config is not recognized")

    sample_parser = subparsers.add_parser("sample", help="Sample a user's randomized price")
    sample_parser.add_argument("--item-id", "-i", required=True)
    sample_parser.add_argument("--user-id", "-u", required=True)
    sample_parser.add_argument("--base-price", "-b", type=int, required=True)
    sample_parser.add_argument("--at", help="ISO timestamp, defaults to now")
    sample_parser.add_argument("--min-percent", type=float)
    sample_parser.add_argument("--max-percent", type=float)

    agg_parser = subparsers.add_parser("aggregate", help="Aggregate approved hours")
    agg_parser.add_argument("file", help="JSON file mapping user id to projects")
    agg_parser.add_argument("--output", "-o", help="Path to save results JSON")
    agg_parser.add_argument("--verbose", "-v", action="store_true", help="Log per-user outcomes")

    recalc_parser = subparsers.add_parser("recalculate", help="Recalculate stored prices")
    recalc_parser.add_argument("--db", default="economy.db", help="SQLite database path")
    recalc_parser.add_argument("--rate", "-r", type=float, required=True, help="New dollars per hour")

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    commands = {
        "price": cmd_price,
        "sample": cmd_sample,
        "aggregate": cmd_aggregate,
        "recalculate": cmd_recalculate,
    }

    handler = commands.get(args.command)
    if handler is None:
        parser.print_help()
        sys.exit(1)

    try:
        handler(args)
    except (EconomyError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()

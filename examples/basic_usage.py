"""
Basic usage of the economy engine.

Shows approved hours for one user, base prices for a few shop items, the
randomized price two users see, and a recalculation after a rate change.
"""

from datetime import datetime, UTC, timedelta

from economy import (
    CostType,
    InMemoryStorage,
    Project,
    ShopItem,
    TimeLink,
    aggregate_approved_hours,
    compute_base_price,
    get_rate_config,
    recalculate_fixed_prices,
    sample_price,
)


def approved_hours_demo():
    print("=" * 60)
    print("APPROVED HOURS")
    print("=" * 60)

    projects = [
        Project(
            id=f"project_{i}",
            user_id="user_123",
            shipped=True,
            links=[TimeLink(id=f"link_{i}", project_id=f"project_{i}", raw_hours=hours)],
            approved_hours=20,
        )
        for i, hours in enumerate([50, 40, 30, 20, 10])
    ]

    print(f"Projects: {len(projects)} (only the top 4 by hours count)")
    print(f"Approved hours: {aggregate_approved_hours(projects)}")
    print()


def pricing_demo():
    print("=" * 60)
    print("PRICING")
    print("=" * 60)

    rates = get_rate_config()
    storage = InMemoryStorage()
    items = [
        ShopItem(id="sticker", name="Sticker pack", usd_cost=5),
        ShopItem(id="hoodie", name="Hoodie", usd_cost=40),
        ShopItem(
            id="progress",
            name="1% island progress",
            cost_type=CostType.CONFIG,
            config={"hours_equal_to_one_percent_progress": 1.5},
            use_randomized_pricing=False,
        ),
    ]
    for item in items:
        item.base_price = compute_base_price(item, rates)
        storage.save_item(item)
        print(f"{item.name:<22} {item.base_price:>5} shells")
    print()

    now = datetime.now(UTC)
    hoodie = storage.get_item("hoodie")
    for user_id in ["alice", "bob"]:
        this_hour = sample_price(hoodie, user_id, now, rates)
        next_hour = sample_price(hoodie, user_id, now + timedelta(hours=1), rates)
        print(f"Hoodie for {user_id}: {this_hour} now, {next_hour} next hour")
    print()

    print("Rate changes to $15/hour...")
    result = recalculate_fixed_prices(storage.list_items(), 15, persist=storage.update_base_price)
    print(f"Summary: {result.summary()}")
    for item in storage.list_items():
        print(f"{item.name:<22} {item.base_price:>5} shells")


if __name__ == "__main__":
    approved_hours_demo()
    pricing_demo()

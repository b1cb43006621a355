"""
Sample Data Seeder

Generates a realistic sample ledger for trying out the MagicSell backend:
- Shops as customers, with Poole/Bournemouth postcodes
- Orders spread over recent weeks with a weekday pattern
- A mix of statuses and payment methods
- Derived analytics computed from the seeded orders

Run with: python -m magicsell.scripts.seed_data [--weeks 6] [--seed 42]
"""

import argparse
import random
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List

from magicsell.config import get_settings
from magicsell.core.log_config import configure_logging
from magicsell.schemas.order import OrderStatus, PaymentMethod
from magicsell.services.notifier import utc_now_iso
from magicsell.services.recalculation import recalculate
from magicsell.services.storage import build_storage


SHOP_DATA = [
    {"shopName": "Parkstone Stores", "customerPostcode": "BH14 8PL", "customerAddress": "12 Ashley Rd, Parkstone"},
    {"shopName": "Sandbanks Deli", "customerPostcode": "BH13 7QN", "customerAddress": "3 Banks Rd, Sandbanks"},
    {"shopName": "Westbourne News", "customerPostcode": "BH4 9DT", "customerAddress": "88 Poole Rd, Westbourne"},
    {"shopName": "Canford Cliffs Mini Market", "customerPostcode": "BH13 7ES", "customerAddress": "22 Haven Rd"},
    {"shopName": "Hamworthy Express", "customerPostcode": "BH15 4AB", "customerAddress": "5 Blandford Rd, Hamworthy"},
    {"shopName": "Broadstone Corner Shop", "customerPostcode": "BH18 8AA", "customerAddress": "40 The Broadway"},
    {"shopName": "Lilliput Convenience", "customerPostcode": "BH14 8JX", "customerAddress": "1 Lilliput Rd"},
    {"shopName": "Bournemouth Central", "customerPostcode": "BH1 2BU", "customerAddress": "101 Old Christchurch Rd"},
]

CONTACT_NAMES = [
    "James Smith", "Maria Garcia", "David Brown", "Jennifer Wilson",
    "Michael Taylor", "Lisa Moore", "Robert Clark", "Patricia Lewis",
]

# Weekday multipliers, Monday first
DOW_MULTIPLIERS = [0.9, 0.95, 1.0, 1.0, 1.15, 1.25, 0.7]

PAYMENT_METHODS = [m.value for m in PaymentMethod]


def create_customers() -> List[Dict[str, Any]]:
    print(f"Creating {len(SHOP_DATA)} customers...")
    customers = []
    for i, shop in enumerate(SHOP_DATA):
        customers.append({
            "id": i + 1,
            **shop,
            "customerName": CONTACT_NAMES[i % len(CONTACT_NAMES)],
            "customerPhone": f"07700 900{i:03d}",
        })
    return customers


def create_orders(customers: List[Dict[str, Any]], weeks: int, now: datetime) -> List[Dict[str, Any]]:
    """
    Generate orders with a weekday pattern.

    Orders older than two days are delivered (a few cancelled); recent ones
    are still pending or in process.
    """
    print(f"Creating {weeks} weeks of orders...")
    orders = []
    start = (now - timedelta(weeks=weeks)).replace(hour=0, minute=0, second=0, microsecond=0)

    day = start
    while day.date() < now.date():
        per_day = max(1, round(4 * DOW_MULTIPLIERS[day.weekday()] * random.uniform(0.7, 1.3)))
        for _ in range(per_day):
            order_id = len(orders) + 1
            customer = random.choice(customers)
            created = day + timedelta(hours=random.randint(8, 19), minutes=random.randint(0, 59))
            age = now - created

            if age > timedelta(days=2):
                status = OrderStatus.CANCELLED.value if random.random() < 0.05 else OrderStatus.DELIVERED.value
            else:
                status = random.choice([OrderStatus.PENDING.value, OrderStatus.IN_PROCESS.value])

            delivered_at = None
            if status == OrderStatus.DELIVERED.value:
                delivered_at = utc_now_iso(created + timedelta(hours=random.randint(2, 30)))

            orders.append({
                "id": order_id,
                "shopName": customer["shopName"],
                "customerName": customer["customerName"],
                "customerPhone": customer["customerPhone"],
                "customerAddress": customer["customerAddress"],
                "customerPostcode": customer["customerPostcode"],
                "totalAmount": round(random.gauss(180, 60), 2) if random.random() > 0.02 else 0,
                "status": status,
                "paymentMethod": random.choice(PAYMENT_METHODS),
                "createdAt": utc_now_iso(created),
                "deliveredAt": delivered_at,
                "deliveryNotes": "Left with shop staff" if delivered_at else "",
                "basketNo": order_id,
                "deliveryNo": f"D{order_id:03d}",
            })
        day += timedelta(days=1)

    print(f"Created {len(orders)} orders")
    return orders


def seed_all(weeks: int = 6) -> None:
    """Replace the configured store's contents with a sample ledger."""
    print("\n" + "=" * 50)
    print("SEEDING MAGICSELL DATA")
    print("=" * 50 + "\n")

    settings = get_settings()
    storage = build_storage(settings)
    now = datetime.now(timezone.utc)

    customers = create_customers()
    orders = create_orders(customers, weeks, now)
    analytics = recalculate(orders, now=now)

    storage.replace_many({
        "orders": orders,
        "customers": customers,
        **analytics.collections(),
    })

    print("\n" + "=" * 50)
    print("SEEDING COMPLETE")
    print("=" * 50)
    print(f"\nStorage: {storage.name}")
    for name, count in storage.stats().items():
        print(f"  {name}: {count}")
    print("\n")


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Seed a sample MagicSell ledger")
    parser.add_argument("--weeks", type=int, default=6)
    parser.add_argument("--seed", type=int, default=None, help="Random seed for repeatable data")
    args = parser.parse_args()

    configure_logging(get_settings())
    if args.seed is not None:
        random.seed(args.seed)
    seed_all(weeks=args.weeks)


if __name__ == "__main__":
    main()

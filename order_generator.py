#!/usr/bin/env python3
"""
order_generator.py

Generates synthetic purchase orders and writes them to MongoDB.

Each stored document looks like:
    {"total": 57.41, "lineItems": [{"sku": "QK", "price": 12.99}, ...]}

Run as a script (or `seed-orders`) to insert SEED_COUNT orders.
"""

import logging
import random
import string
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from faker import Faker

import bench_settings
from order_store import OrderStore

logger = logging.getLogger(__name__)

# ---------------- CONFIG ----------------
MIN_ITEMS, MAX_ITEMS = 1, 10
MIN_PRICE_CENTS, MAX_PRICE_CENTS = 99, 4999
SKU_LENGTH = 2
# every letter three times, so a sku may repeat a letter ("AA")
SKU_POOL: List[str] = list(string.ascii_uppercase) * 3

fake = Faker()


# ---------------- MODEL ----------------
@dataclass(frozen=True)
class LineItem:
    sku: str
    price: float

    def to_document(self) -> Dict[str, Any]:
        return {"sku": self.sku, "price": self.price}

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "LineItem":
        return cls(sku=doc["sku"], price=doc["price"])


@dataclass(frozen=True)
class OrderEvent:
    """One purchase. `total` is the sum of the line item prices."""
    total: float
    line_items: List[LineItem]
    id: Any = None

    def to_document(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "lineItems": [item.to_document() for item in self.line_items],
        }

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "OrderEvent":
        return cls(
            total=doc["total"],
            line_items=[LineItem.from_document(i) for i in doc.get("lineItems", [])],
            id=doc.get("_id"),
        )


# ---------------- GENERATORS ----------------
def generate_price() -> float:
    return fake.random_int(min=MIN_PRICE_CENTS, max=MAX_PRICE_CENTS) / 100


def generate_sku() -> str:
    return "".join(fake.random.sample(SKU_POOL, SKU_LENGTH))


def generate_order(store: OrderStore, item_count: Optional[int] = None) -> OrderEvent:
    """
    Build a random order with `item_count` line items (1-10 when omitted),
    insert it into `store` and return it.
    """
    if item_count is None:
        item_count = fake.random_int(min=MIN_ITEMS, max=MAX_ITEMS)

    line_items: List[LineItem] = []
    total = 0
    for _ in range(item_count):
        price = generate_price()
        total += price
        line_items.append(LineItem(sku=generate_sku(), price=price))

    order = OrderEvent(total=total, line_items=line_items)
    inserted_id = store.insert(order.to_document())
    return OrderEvent(total=order.total, line_items=order.line_items, id=inserted_id)


# ---------------- SEEDING ----------------
def seed_random(seed: int) -> None:
    random.seed(seed)
    Faker.seed(seed)


def seed_orders(store: OrderStore, count: int) -> int:
    """Insert `count` generated orders one at a time. Returns how many were written."""
    for n in range(1, count + 1):
        generate_order(store)
        if n % bench_settings.PROGRESS_EVERY == 0:
            print(f"  inserted {n:,} / {count:,} orders")
    return count


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    count = bench_settings.seed_count()
    seed = bench_settings.random_seed()
    if seed is not None:
        seed_random(seed)
        logger.info("Random source seeded with %d", seed)

    store = OrderStore.from_settings()
    print(f"Seeding {count:,} orders...")
    seed_orders(store, count)
    print(f"Seeding completed. Collection now holds {store.count():,} orders.")


if __name__ == "__main__":
    main()

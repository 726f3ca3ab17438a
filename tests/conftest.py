import mongomock
import pytest

from order_store import OrderStore


@pytest.fixture
def collection():
    return mongomock.MongoClient()["purchase_bench"]["order_events"]


@pytest.fixture
def store(collection):
    # mongomock cannot run JavaScript; the in-process path is exercised instead
    return OrderStore(collection, server_javascript=False)


def make_order(*line_items):
    """Build a stored order document from (sku, price) pairs."""
    items = [{"sku": sku, "price": price} for sku, price in line_items]
    return {"total": sum(i["price"] for i in items), "lineItems": items}

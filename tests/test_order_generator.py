import re

import pytest

import order_generator
from order_generator import LineItem, OrderEvent, generate_order, seed_orders

SKU_RE = re.compile(r"^[A-Z]{2}$")


@pytest.fixture(autouse=True)
def seeded():
    order_generator.seed_random(1234)


def test_generated_orders_hold_invariants(store):
    for _ in range(200):
        order = generate_order(store)

        assert 1 <= len(order.line_items) <= 10
        assert order.total == sum(item.price for item in order.line_items)
        for item in order.line_items:
            assert 0.99 <= item.price <= 49.99
            assert round(item.price, 2) == item.price
            assert SKU_RE.match(item.sku)


def test_explicit_item_count(store):
    order = generate_order(store, item_count=4)
    assert len(order.line_items) == 4


def test_order_is_persisted(store, collection):
    order = generate_order(store, item_count=3)

    assert collection.count_documents({}) == 1
    doc = collection.find_one({"_id": order.id})
    assert doc["total"] == order.total
    assert [i["sku"] for i in doc["lineItems"]] == [i.sku for i in order.line_items]
    assert OrderEvent.from_document(doc) == order


def test_sku_letters_can_repeat():
    skus = {order_generator.generate_sku() for _ in range(5000)}
    assert any(sku[0] == sku[1] for sku in skus)


def test_seed_random_is_reproducible():
    order_generator.seed_random(7)
    first = [order_generator.generate_price() for _ in range(5)]
    order_generator.seed_random(7)
    assert [order_generator.generate_price() for _ in range(5)] == first


def test_document_round_trip():
    order = OrderEvent(total=3.5, line_items=[LineItem("AB", 1.25), LineItem("CD", 2.25)])
    assert order.to_document() == {
        "total": 3.5,
        "lineItems": [{"sku": "AB", "price": 1.25}, {"sku": "CD", "price": 2.25}],
    }


def test_seed_orders_inserts_count(store, collection):
    assert seed_orders(store, 25) == 25
    assert collection.count_documents({}) == 25


def test_seed_orders_zero_does_nothing(store, collection, capsys):
    assert seed_orders(store, 0) == 0
    assert collection.count_documents({}) == 0
    assert capsys.readouterr().out == ""


def test_main_reads_seed_count(monkeypatch, store, collection, capsys):
    monkeypatch.setenv("SEED_COUNT", "3")
    monkeypatch.delenv("RANDOM_SEED", raising=False)
    monkeypatch.setattr(order_generator.OrderStore, "from_settings", classmethod(lambda cls: store))

    order_generator.main()

    assert collection.count_documents({}) == 3
    assert "Collection now holds 3 orders" in capsys.readouterr().out

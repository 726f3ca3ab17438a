"""
metric_strategies.py

Four ways of computing the same two metrics over the order_events collection:

- naive        : pull every order into Python and compute there
- server_eval  : an imperative JavaScript fold executed by the server
- map_reduce   : a mapReduce job (map / reduce / finalize)
- aggregation  : the native aggregation pipeline

average_purchase() -> mean order total, or None for an empty collection
top_products()     -> [(sku, purchases), ...] by purchases desc, then sku asc
"""

import enum
from abc import ABC, abstractmethod
from collections import Counter
from typing import List, Optional, Tuple, Union

from order_generator import OrderEvent
from order_store import MapReduceJob, OrderStore, ServerScript

ProductCount = Tuple[str, int]


def rank_products(counts) -> List[ProductCount]:
    """Sort (sku, count) pairs by count descending, ties broken by sku."""
    return sorted(((sku, int(n)) for sku, n in counts), key=lambda p: (-p[1], p[0]))


class StrategyKind(enum.Enum):
    NAIVE = "naive"
    SERVER_EVAL = "server_eval"
    MAP_REDUCE = "map_reduce"
    AGGREGATION = "aggregation"


class MetricStrategy(ABC):
    kind: StrategyKind

    def __init__(self, store: OrderStore):
        self.store = store

    @abstractmethod
    def average_purchase(self) -> Optional[float]:
        ...

    @abstractmethod
    def top_products(self) -> List[ProductCount]:
        ...


# ---------------- NAIVE ----------------
class NaiveStrategy(MetricStrategy):
    kind = StrategyKind.NAIVE

    def _orders(self) -> List[OrderEvent]:
        return [OrderEvent.from_document(doc) for doc in self.store.find_all()]

    def average_purchase(self):
        orders = self._orders()
        if not orders:
            return None
        return sum(order.total for order in orders) / len(orders)

    def top_products(self):
        items = [item for order in self._orders() for item in order.line_items]
        return rank_products(Counter(item.sku for item in items).items())


# ---------------- SERVER SCRIPT ----------------
def _sum_totals(state, doc):
    state["sum"] += doc["total"]
    state["count"] += 1
    return state


def _count_skus(state, doc):
    for item in doc.get("lineItems", []):
        state[item["sku"]] = state.get(item["sku"], 0) + 1
    return state


AVERAGE_SCRIPT = ServerScript(
    init_js="function() { return { sum: 0, count: 0 }; }",
    accumulate_js="""
        function(state, total) {
            state.sum += total;
            state.count += 1;
            return state;
        }
    """,
    accumulate_args=["$total"],
    merge_js="""
        function(a, b) {
            return { sum: a.sum + b.sum, count: a.count + b.count };
        }
    """,
    finalize_js="function(state) { return state.sum / state.count; }",
    init=lambda: {"sum": 0, "count": 0},
    accumulate=_sum_totals,
    finalize=lambda state: state["sum"] / state["count"],
)

PRODUCTS_SCRIPT = ServerScript(
    init_js="function() { return {}; }",
    accumulate_js="""
        function(products, lineItems) {
            (lineItems || []).forEach(function(item) {
                var sku = item.sku;
                if (!products[sku]) products[sku] = 0;
                products[sku] += 1;
            });
            return products;
        }
    """,
    accumulate_args=["$lineItems"],
    merge_js="""
        function(a, b) {
            for (var sku in b) {
                a[sku] = (a[sku] || 0) + b[sku];
            }
            return a;
        }
    """,
    init=dict,
    accumulate=_count_skus,
)


class ServerEvalStrategy(MetricStrategy):
    kind = StrategyKind.SERVER_EVAL

    def average_purchase(self):
        return self.store.run_script(AVERAGE_SCRIPT)

    def top_products(self):
        products = self.store.run_script(PRODUCTS_SCRIPT) or {}
        return rank_products(products.items())


# ---------------- MAP REDUCE ----------------
def _reduce_sums(key, values):
    return {
        "sum": sum(v["sum"] for v in values),
        "count": sum(v["count"] for v in values),
    }


def _finalize_average(key, value):
    return dict(value, avg=value["sum"] / value["count"])


AVERAGE_JOB = MapReduceJob(
    map_js="function() { emit('avg', { sum: this.total, count: 1 }); }",
    reduce_js="""
        function(key, values) {
            var result = { sum: 0, count: 0 };
            values.forEach(function(value) {
                result.sum += value.sum;
                result.count += value.count;
            });
            return result;
        }
    """,
    finalize_js="""
        function(key, value) {
            value.avg = value.sum / value.count;
            return value;
        }
    """,
    mapper=lambda doc: [("avg", {"sum": doc["total"], "count": 1})],
    reducer=_reduce_sums,
    finalizer=_finalize_average,
)

PRODUCTS_JOB = MapReduceJob(
    map_js="""
        function() {
            (this.lineItems || []).forEach(function(item) {
                emit(item.sku, { purchases: 1 });
            });
        }
    """,
    reduce_js="""
        function(key, values) {
            var result = { purchases: 0 };
            values.forEach(function(value) {
                result.purchases += value.purchases;
            });
            return result;
        }
    """,
    mapper=lambda doc: [(item["sku"], {"purchases": 1}) for item in doc.get("lineItems", [])],
    reducer=lambda key, values: {"purchases": sum(v["purchases"] for v in values)},
)


class MapReduceStrategy(MetricStrategy):
    kind = StrategyKind.MAP_REDUCE

    def average_purchase(self):
        results = self.store.map_reduce(AVERAGE_JOB)
        if not results:
            return None
        return results[0]["value"]["avg"]

    def top_products(self):
        results = self.store.map_reduce(PRODUCTS_JOB)
        return rank_products((doc["_id"], doc["value"]["purchases"]) for doc in results)


# ---------------- AGGREGATION ----------------
class AggregationStrategy(MetricStrategy):
    kind = StrategyKind.AGGREGATION

    def average_purchase(self):
        pipeline = [
            {"$group": {"_id": None, "avg": {"$avg": "$total"}}},
        ]
        docs = self.store.aggregate(pipeline)
        if not docs:
            return None
        return docs[0]["avg"]

    def top_products(self):
        pipeline = [
            {"$unwind": "$lineItems"},
            {"$group": {"_id": "$lineItems.sku", "purchases": {"$sum": 1}}},
            {"$sort": {"purchases": -1, "_id": 1}},
        ]
        return [(doc["_id"], int(doc["purchases"])) for doc in self.store.aggregate(pipeline)]


# ---------------- SELECTOR ----------------
STRATEGIES = {
    StrategyKind.NAIVE: NaiveStrategy,
    StrategyKind.SERVER_EVAL: ServerEvalStrategy,
    StrategyKind.MAP_REDUCE: MapReduceStrategy,
    StrategyKind.AGGREGATION: AggregationStrategy,
}


def select_strategy(kind: Union[StrategyKind, str], store: OrderStore) -> MetricStrategy:
    """Return the strategy for `kind` (enum member or its value) bound to `store`."""
    try:
        kind = StrategyKind(kind)
    except ValueError:
        choices = ", ".join(k.value for k in StrategyKind)
        raise ValueError(f"Unknown strategy {kind!r}; expected one of: {choices}") from None
    return STRATEGIES[kind](store)

#!/usr/bin/env python3
"""
benchmark_metrics.py

Times every metric strategy against the seeded order_events collection.

Output follows Ruby's Benchmark report layout, e.g.:

    naive:
                       user     system      total        real
    avg purchase   1.210000   0.040000   1.250000 (  1.402113)
    top products   2.020000   0.050000   2.070000 (  2.318402)
    total:         3.230000   0.090000   3.320000 (  3.720515)
"""

import logging
import os
import time
from typing import Callable, List, NamedTuple, Tuple

import bench_settings
from metric_strategies import MetricStrategy, StrategyKind, select_strategy
from order_store import OrderStore

logger = logging.getLogger(__name__)

CAPTION = "      user     system      total        real"


class Timing(NamedTuple):
    user: float
    system: float
    total: float
    real: float

    def __add__(self, other: "Timing") -> "Timing":
        return Timing(*(a + b for a, b in zip(self, other)))

    def format(self) -> str:
        return f"{self.user:10.6f} {self.system:10.6f} {self.total:10.6f} ({self.real:10.6f})"


ZERO = Timing(0.0, 0.0, 0.0, 0.0)


def measure(fn: Callable[[], object], repeat: int = 1) -> Timing:
    """Call `fn` `repeat` times; CPU time comes from os.times(), wall time from perf_counter()."""
    start_times = os.times()
    start = time.perf_counter()
    for _ in range(repeat):
        fn()
    real = time.perf_counter() - start
    end_times = os.times()

    user = end_times.user - start_times.user
    system = end_times.system - start_times.system
    return Timing(user, system, user + system, real)


def run_benchmark(strategy: MetricStrategy, repeat: int, out=print) -> List[Tuple[str, Timing]]:
    width = bench_settings.LABEL_WIDTH
    out(f"{strategy.kind.value}:")
    out(" " * width + CAPTION)

    rows = []
    for label, fn in (
        ("avg purchase", strategy.average_purchase),
        ("top products", strategy.top_products),
    ):
        timing = measure(fn, repeat)
        rows.append((label, timing))
        out(f"{label:<{width}} {timing.format()}")

    total = sum((t for _, t in rows), ZERO)
    rows.append(("total:", total))
    out(f"{'total:':<{width}} {total.format()}")
    out("")
    return rows


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    repeat = bench_settings.bench_repeat()
    store = OrderStore.from_settings()
    print(f"Benchmarking {store.count():,} orders, {repeat} run(s) per metric\n")

    for kind in StrategyKind:
        run_benchmark(select_strategy(kind, store), repeat)


if __name__ == "__main__":
    main()

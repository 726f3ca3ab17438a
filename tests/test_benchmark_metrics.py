import pytest

import benchmark_metrics
from benchmark_metrics import Timing, measure, run_benchmark
from metric_strategies import StrategyKind


class CountingStrategy:
    kind = StrategyKind.MAP_REDUCE

    def __init__(self):
        self.calls = {"avg": 0, "top": 0}

    def average_purchase(self):
        self.calls["avg"] += 1
        return 1.0

    def top_products(self):
        self.calls["top"] += 1
        return []


def test_timing_addition():
    total = Timing(1.0, 0.5, 1.5, 2.0) + Timing(0.25, 0.25, 0.5, 1.0)
    assert total == Timing(1.25, 0.75, 2.0, 3.0)


def test_timing_format():
    assert Timing(1.0, 0.0, 1.0, 1.5).format() == "  1.000000   0.000000   1.000000 (  1.500000)"


def test_measure_repeats():
    calls = []
    timing = measure(lambda: calls.append(1), repeat=12)

    assert len(calls) == 12
    assert timing.real >= 0
    assert timing.total == pytest.approx(timing.user + timing.system)


def test_run_benchmark_report():
    strategy = CountingStrategy()
    lines = []

    rows = run_benchmark(strategy, repeat=3, out=lines.append)

    assert strategy.calls == {"avg": 3, "top": 3}
    assert [label for label, _ in rows] == ["avg purchase", "top products", "total:"]
    assert rows[2][1] == rows[0][1] + rows[1][1]
    assert lines[0] == "map_reduce:"
    assert lines[1].split() == ["user", "system", "total", "real"]
    assert lines[2].startswith("avg purchase ")
    assert lines[3].startswith("top products ")
    assert lines[4].startswith("total:       ")
    assert lines[-1] == ""


def test_main_runs_every_strategy(monkeypatch, store, capsys):
    monkeypatch.setenv("BENCH_REPEAT", "1")
    monkeypatch.setattr(benchmark_metrics.OrderStore, "from_settings", classmethod(lambda cls: store))
    store.insert({"total": 2.0, "lineItems": [{"sku": "AA", "price": 2.0}]})

    benchmark_metrics.main()

    out = capsys.readouterr().out
    headers = [line for line in out.splitlines() if line.endswith(":") and not line.startswith("total")]
    assert headers == ["naive:", "server_eval:", "map_reduce:", "aggregation:"]
    assert out.count("total:") == 4

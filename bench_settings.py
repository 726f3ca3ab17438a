"""
bench_settings.py

Environment-driven configuration for the seeding and benchmarking commands.
A `.env` file next to the working directory is honoured when present.
"""

import os
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

# ---------------- DEFAULTS ----------------
DEFAULT_MONGO_URI = "mongodb://localhost:27017"
DEFAULT_MONGO_DB = "purchase_bench"
DEFAULT_COLLECTION = "order_events"
DEFAULT_SEED_COUNT = 1_000_000
DEFAULT_BENCH_REPEAT = 12

LABEL_WIDTH = 12
PROGRESS_EVERY = 10_000

_FALSE_VALUES = ("0", "false", "no", "off")


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw.replace("_", ""))
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def mongo_uri() -> str:
    return os.getenv("MONGO_URI", DEFAULT_MONGO_URI)


def mongo_db() -> str:
    return os.getenv("MONGO_DB", DEFAULT_MONGO_DB)


def orders_collection() -> str:
    return os.getenv("ORDERS_COLLECTION", DEFAULT_COLLECTION)


def seed_count() -> int:
    """Number of orders the seeding command inserts (SEED_COUNT)."""
    count = _int_env("SEED_COUNT", DEFAULT_SEED_COUNT)
    if count < 0:
        raise ValueError(f"SEED_COUNT must not be negative, got {count}")
    return count


def bench_repeat() -> int:
    """How many times each metric is computed per timing sample (BENCH_REPEAT)."""
    repeat = _int_env("BENCH_REPEAT", DEFAULT_BENCH_REPEAT)
    if repeat < 1:
        raise ValueError(f"BENCH_REPEAT must be at least 1, got {repeat}")
    return repeat


def server_javascript() -> bool:
    raw = os.getenv("SERVER_JAVASCRIPT", "1")
    return raw.strip().lower() not in _FALSE_VALUES


def random_seed() -> Optional[int]:
    raw = os.getenv("RANDOM_SEED")
    if raw is None or raw.strip() == "":
        return None
    return _int_env("RANDOM_SEED", 0)

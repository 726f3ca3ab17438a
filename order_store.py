"""
order_store.py

Thin document-store client for the order_events collection.

Wraps a pymongo collection (or anything speaking the same API, e.g. a
mongomock collection in tests) and exposes the five primitives the metric
strategies need: insert, fetch-all, aggregation pipelines, map-reduce jobs
and server-side scripts.

MongoDB dropped `$eval` in 4.2, so a "server-side script" is run as a
`$accumulator` inside a single `$group` stage. When the server cannot run
JavaScript (`server_javascript=False`), map-reduce jobs and scripts execute
their Python twins in-process over `find_all()` instead.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Tuple

from bson.code import Code
from pymongo import MongoClient

import bench_settings

logger = logging.getLogger(__name__)

Document = Dict[str, Any]


# ---------------- JOB DESCRIPTIONS ----------------
@dataclass(frozen=True)
class MapReduceJob:
    """
    A map-reduce job in two dialects.

    `map_js`/`reduce_js`/`finalize_js` are shipped to the server. The Python
    callables compute the same thing in-process:
      mapper(doc)             -> iterable of (key, value)
      reducer(key, values)    -> value
      finalizer(key, value)   -> value
    """
    map_js: str
    reduce_js: str
    mapper: Callable[[Document], Iterable[Tuple[Any, Any]]]
    reducer: Callable[[Any, List[Any]], Any]
    finalize_js: Optional[str] = None
    finalizer: Optional[Callable[[Any, Any], Any]] = None


@dataclass(frozen=True)
class ServerScript:
    """
    An imperative fold over every document of the collection.

    The JavaScript half follows the `$accumulator` contract (init, accumulate,
    merge, finalize). The Python half mirrors it with `accumulate(state, doc)`.
    """
    init_js: str
    accumulate_js: str
    merge_js: str
    init: Callable[[], Any]
    accumulate: Callable[[Any, Document], Any]
    accumulate_args: List[str] = field(default_factory=list)
    finalize_js: Optional[str] = None
    finalize: Optional[Callable[[Any], Any]] = None


# ---------------- STORE ----------------
class OrderStore:
    def __init__(self, collection, server_javascript: bool = True):
        self.collection = collection
        self.server_javascript = server_javascript

    @classmethod
    def from_settings(cls) -> "OrderStore":
        client = MongoClient(bench_settings.mongo_uri())
        db = client[bench_settings.mongo_db()]
        store = cls(
            db[bench_settings.orders_collection()],
            server_javascript=bench_settings.server_javascript(),
        )
        logger.info(
            "Using %s.%s (server JavaScript %s)",
            db.name,
            store.collection.name,
            "enabled" if store.server_javascript else "disabled",
        )
        return store

    # -- plain CRUD --
    def insert(self, document: Document) -> Any:
        return self.collection.insert_one(document).inserted_id

    def find_all(self) -> Iterator[Document]:
        return iter(self.collection.find({}))

    def count(self) -> int:
        return self.collection.count_documents({})

    def clear(self) -> int:
        return self.collection.delete_many({}).deleted_count

    # -- server-side computation --
    def aggregate(self, pipeline: List[Document]) -> List[Document]:
        return list(self.collection.aggregate(pipeline))

    def map_reduce(self, job: MapReduceJob) -> List[Document]:
        """Run `job` and return `[{"_id": key, "value": value}, ...]`."""
        if not self.server_javascript:
            return self._map_reduce_in_process(job)

        options: Dict[str, Any] = {"out": {"inline": 1}}
        if job.finalize_js:
            options["finalize"] = Code(job.finalize_js)
        result = self.collection.database.command(
            "mapReduce",
            self.collection.name,
            map=Code(job.map_js),
            reduce=Code(job.reduce_js),
            **options,
        )
        return result["results"]

    def run_script(self, script: ServerScript) -> Any:
        """Fold `script` over the whole collection; None when it is empty."""
        if not self.server_javascript:
            return self._run_script_in_process(script)

        accumulator: Document = {
            "init": script.init_js,
            "accumulate": script.accumulate_js,
            "accumulateArgs": list(script.accumulate_args),
            "merge": script.merge_js,
            "lang": "js",
        }
        if script.finalize_js:
            accumulator["finalize"] = script.finalize_js
        docs = self.aggregate(
            [{"$group": {"_id": None, "result": {"$accumulator": accumulator}}}]
        )
        if not docs:
            return None
        return docs[0]["result"]

    # -- in-process fallbacks --
    def _map_reduce_in_process(self, job: MapReduceJob) -> List[Document]:
        logger.debug("Running map-reduce in-process (no server JavaScript)")
        emitted: Dict[Any, List[Any]] = defaultdict(list)
        for doc in self.find_all():
            for key, value in job.mapper(doc):
                emitted[key].append(value)

        results = []
        for key in sorted(emitted):
            values = emitted[key]
            # the server skips reduce for keys emitted exactly once
            value = values[0] if len(values) == 1 else job.reducer(key, values)
            if job.finalizer is not None:
                value = job.finalizer(key, value)
            results.append({"_id": key, "value": value})
        return results

    def _run_script_in_process(self, script: ServerScript) -> Any:
        logger.debug("Running server script in-process (no server JavaScript)")
        docs = self.find_all()
        first = next(docs, None)
        if first is None:
            return None
        state = script.accumulate(script.init(), first)
        for doc in docs:
            state = script.accumulate(state, doc)
        if script.finalize is not None:
            return script.finalize(state)
        return state

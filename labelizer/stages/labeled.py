from __future__ import annotations

from typing import Optional

from labelizer.items import StreamItem
from labelizer.record_store import RecordStore
from labelizer.stages.transform import DEFAULT_MAX_CONCURRENCY, ConcurrentTransform
from labelizer.utils import content_hash, get_logger

logger = get_logger(__name__)


# Hash lookup and set mutation stay synchronous inside each item function:
# no await between them, so concurrent items never interleave on the set.

def not_labeled(store: RecordStore, *, max_concurrency: int = DEFAULT_MAX_CONCURRENCY) -> ConcurrentTransform:
    def _filter(item: StreamItem) -> Optional[StreamItem]:
        if item.is_null():
            return item
        if store.contains(content_hash(item.contents)):
            logger.debug("labeled.skip: path=%s", item.path)
            return None
        return item

    return ConcurrentTransform(_filter, max_concurrency=max_concurrency, name="not_labeled")


def label(store: RecordStore, *, max_concurrency: int = DEFAULT_MAX_CONCURRENCY) -> ConcurrentTransform:
    def _label(item: StreamItem) -> StreamItem:
        if item.is_null():
            return item
        store.add(content_hash(item.contents))
        return item

    return ConcurrentTransform(_label, max_concurrency=max_concurrency, name="label")


def dump(
    store: RecordStore,
    *,
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    per_item: bool = True,
) -> ConcurrentTransform:
    """Persist the record set as items go by.

    ``per_item=True`` rewrites the record file for every non-null item.
    ``per_item=False`` writes once when the stream ends, and only if a
    non-null item passed through.
    """
    # non-null items seen since the last flush
    pending = {"count": 0}

    def _dump(item: StreamItem) -> StreamItem:
        if item.is_null():
            return item
        if per_item:
            store.persist()
        else:
            pending["count"] += 1
        return item

    def _flush() -> None:
        count = pending["count"]
        if not count:
            return
        store.persist()
        pending["count"] = 0
        logger.info("labeled.dump: persisted once for items=%d path=%s", count, store.path)

    return ConcurrentTransform(
        _dump,
        max_concurrency=max_concurrency,
        flush=None if per_item else _flush,
        name="dump",
    )

import asyncio
import time
import uuid
from typing import Any, Callable, List, Optional

from labelizer.errors import LabelizerError
from labelizer.record_store import DEFAULT_RECORD_PATH, RecordStore
from labelizer.stages import labeled
from labelizer.stages.transform import DEFAULT_MAX_CONCURRENCY, ConcurrentTransform, Source, chain, collect
from labelizer.utils import get_logger, load_config

logger = get_logger(__name__)


class Labelizer:
    """One shared RecordStore and the three stage factories built on it.

    Example::

        lz = Labelizer()
        out = run_pipeline(iter_items("src"), lz.not_labeled(), process, lz.label(), lz.dump())
    """

    def __init__(
        self,
        store: Optional[RecordStore] = None,
        *,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        persist_per_item: bool = True,
    ) -> None:
        self.store = store if store is not None else RecordStore()
        self.max_concurrency = max_concurrency
        self.persist_per_item = persist_per_item

    @classmethod
    def from_config(cls, config_path: str) -> "Labelizer":
        settings = load_config(config_path)
        store = RecordStore(settings.record_path or DEFAULT_RECORD_PATH)
        logger.info(
            "config loaded record=%s max_concurrency=%d persist=%s",
            store.path,
            settings.max_concurrency,
            settings.persist,
        )
        return cls(store, max_concurrency=settings.max_concurrency, persist_per_item=settings.persist_per_item)

    def not_labeled(self) -> ConcurrentTransform:
        return labeled.not_labeled(self.store, max_concurrency=self.max_concurrency)

    def label(self) -> ConcurrentTransform:
        return labeled.label(self.store, max_concurrency=self.max_concurrency)

    def dump(self) -> ConcurrentTransform:
        return labeled.dump(self.store, max_concurrency=self.max_concurrency, per_item=self.persist_per_item)


async def arun_pipeline(source: Source, *stages: Callable[[Source], Any]) -> List[Any]:
    run_id = uuid.uuid4().hex[:8]
    logger.info("=== run start id=%s stages=%d ===", run_id, len(stages))
    t0 = time.monotonic()
    try:
        out = await collect(chain(source, *stages))
        logger.info("run finished items=%d took_ms=%d", len(out), int((time.monotonic() - t0) * 1000))
        return out
    except LabelizerError:
        # already logged where it was raised
        raise
    except Exception as e:
        logger.error("Pipeline execution failed: %s", e)
        raise
    finally:
        logger.info("=== run end id=%s ===", run_id)


def run_pipeline(source: Source, *stages: Callable[[Source], Any]) -> List[Any]:
    """Run stages end to end on a fresh event loop and return what comes out."""
    return asyncio.run(arun_pipeline(source, *stages))

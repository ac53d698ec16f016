from __future__ import annotations

import asyncio
import inspect
import typing as t

from labelizer.errors import LabelizerError, StageError
from labelizer.utils import get_logger

logger = get_logger(__name__)

T = t.TypeVar("T")

DEFAULT_MAX_CONCURRENCY = 8

ItemFn = t.Callable[[t.Any], t.Any]
Source = t.Union[t.Iterable[t.Any], t.AsyncIterable[t.Any]]


async def _maybe_await(value):
    if inspect.isawaitable(value):
        return await value
    return value


async def _aiter(source: Source) -> t.AsyncIterator[t.Any]:
    if hasattr(source, "__aiter__"):
        async for item in source:  # type: ignore[union-attr]
            yield item
    else:
        for item in source:  # type: ignore[union-attr]
            yield item


class ConcurrentTransform:
    """Run a per-item function over a stream with bounded concurrency.

    ``fn(item)`` returns the item to forward it, ``None`` to drop it, or
    raises to fail the stream.  Output comes out in completion order.
    ``flush`` runs once after every item completed successfully.
    """

    def __init__(
        self,
        fn: ItemFn,
        *,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        flush: t.Optional[t.Callable[[], t.Any]] = None,
        name: t.Optional[str] = None,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be >= 1, got {max_concurrency}")
        self.fn = fn
        self.max_concurrency = max_concurrency
        self.flush = flush
        self.name = name or getattr(fn, "__name__", "stage")

    async def _apply(self, item):
        try:
            return await _maybe_await(self.fn(item))
        except LabelizerError as e:
            if e.stage is None:
                e.stage = self.name
            raise
        except Exception as e:
            logger.error("stage.%s: failed err=%s", self.name, e)
            raise StageError(f"Stage {self.name} failed: {e}", stage=self.name) from e

    async def __call__(self, source: Source) -> t.AsyncIterator[t.Any]:
        pending: t.Set[asyncio.Task] = set()
        seen = forwarded = 0
        try:
            async for item in _aiter(source):
                if len(pending) >= self.max_concurrency:
                    done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
                    for task in done:
                        out = task.result()
                        if out is not None:
                            forwarded += 1
                            yield out
                pending.add(asyncio.ensure_future(self._apply(item)))
                seen += 1

            while pending:
                done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
                for task in done:
                    out = task.result()
                    if out is not None:
                        forwarded += 1
                        yield out
        finally:
            for task in pending:
                task.cancel()

        if self.flush is not None:
            try:
                await _maybe_await(self.flush())
            except LabelizerError as e:
                if e.stage is None:
                    e.stage = self.name
                raise
            except Exception as e:
                logger.error("stage.%s: flush failed err=%s", self.name, e)
                raise StageError(f"Stage {self.name} flush failed: {e}", stage=self.name) from e
        logger.debug("stage.%s: items=%d forwarded=%d", self.name, seen, forwarded)


def chain(source: Source, *stages: t.Callable[[Source], t.AsyncIterator[t.Any]]) -> t.AsyncIterator[t.Any]:
    stream: Source = source
    for stage in stages:
        stream = stage(stream)
    return _aiter(stream)


async def collect(stream: t.AsyncIterable[T]) -> t.List[T]:
    return [item async for item in stream]

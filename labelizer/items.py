from __future__ import annotations

import os
import typing as t
from dataclasses import dataclass
from pathlib import Path

from labelizer.utils import get_logger

logger = get_logger(__name__)


@dataclass
class StreamItem:
    """One file travelling through the pipeline.

    ``contents`` is ``None`` for directories and placeholder entries.
    """

    path: str
    contents: t.Optional[t.Union[bytes, bytearray, memoryview, str]] = None
    base: t.Optional[str] = None

    def is_null(self) -> bool:
        return self.contents is None

    @property
    def relative(self) -> str:
        if not self.base:
            return self.path
        return os.path.relpath(self.path, self.base)


def iter_items(root: t.Union[str, Path], pattern: str = "**/*") -> t.Iterator[StreamItem]:
    root = Path(root)
    count = 0
    for p in sorted(root.glob(pattern)):
        if not p.exists():
            # broken symlink
            logger.debug("items.skip: dangling path=%s", p)
            continue
        if p.is_dir():
            yield StreamItem(path=str(p), contents=None, base=str(root))
        else:
            yield StreamItem(path=str(p), contents=p.read_bytes(), base=str(root))
        count += 1
    logger.debug("items.walk: root=%s pattern=%s items=%d", root, pattern, count)

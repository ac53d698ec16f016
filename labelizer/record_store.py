"""RecordStore: the set of labeled content hashes, backed by a JSON file.

The set is loaded lazily on first access and never reloaded.  Insertion
order is kept (hashes from disk first) so rewrites of the record file
produce small diffs.
"""

from __future__ import annotations

import json
import os
from typing import Dict, Iterator, List

from labelizer.errors import FileWriteError, RecordParseError
from labelizer.utils import get_logger

logger = get_logger(__name__)

DEFAULT_RECORD_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), "labeled.json")


class RecordStore:
    def __init__(self, path: str = DEFAULT_RECORD_PATH) -> None:
        self.path = path
        # dict keys as an ordered set
        self._hashes: Dict[str, None] = {}
        self._loaded = False

    @property
    def loaded(self) -> bool:
        return self._loaded

    def load(self) -> None:
        if self._loaded:
            return
        if not os.path.exists(self.path):
            self._hashes = {}
            self._loaded = True
            logger.info("record.load: missing file, starting empty path=%s", self.path)
            return

        with open(self.path, "rb") as f:
            raw = f.read()
        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.error("record.load: invalid JSON path=%s err=%s", self.path, e)
            raise RecordParseError(f"Record file is not valid JSON: {self.path}", path=self.path) from e

        if not isinstance(data, list) or not all(isinstance(h, str) for h in data):
            logger.error("record.load: expected an array of strings path=%s", self.path)
            raise RecordParseError(
                f"Record file must hold a JSON array of strings: {self.path}",
                path=self.path,
                details={"type": type(data).__name__},
            )

        self._hashes = dict.fromkeys(data)
        self._loaded = True
        logger.info("record.load: hashes=%d path=%s", len(self._hashes), self.path)

    def contains(self, digest: str) -> bool:
        self.load()
        return digest in self._hashes

    def add(self, digest: str) -> None:
        self.load()
        self._hashes.setdefault(digest, None)

    def persist(self) -> None:
        self.load()
        payload = json.dumps(list(self._hashes), indent=2)
        try:
            parent = os.path.dirname(self.path)
            if parent:
                os.makedirs(parent, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                f.write(payload)
        except OSError as e:
            logger.error("record.persist: write failed path=%s err=%s", self.path, e)
            raise FileWriteError(f"Cannot write record file: {self.path}", path=self.path) from e
        logger.debug("record.persist: hashes=%d path=%s", len(self._hashes), self.path)

    def hashes(self) -> List[str]:
        self.load()
        return list(self._hashes)

    def __contains__(self, digest: object) -> bool:
        return isinstance(digest, str) and self.contains(digest)

    def __len__(self) -> int:
        self.load()
        return len(self._hashes)

    def __iter__(self) -> Iterator[str]:
        return iter(self.hashes())

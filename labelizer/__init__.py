"""Labelizer package.

Skip files whose contents were already processed, using content hashes
kept in a JSON record.  Import from the submodules directly
(``labelizer.pipeline``, ``labelizer.record_store``, ``labelizer.stages``):
importing them configures logging, which should not happen at package
import time or during test collection.
"""

__all__: list[str] = []

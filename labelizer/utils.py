import os
import json
import hashlib
import datetime as dt
import logging
from logging.handlers import TimedRotatingFileHandler
from typing import Any, Optional

import yaml
from jsonschema import validate, Draft202012Validator
from jsonschema.exceptions import ValidationError
from pydantic import BaseModel, Field

from labelizer.errors import ConfigError, HashComputeError

# ---------- Hashing ----------

def content_hash(contents: Any) -> str:
    """Hex SHA-512 digest of a content buffer.

    ``str`` contents are hashed as UTF-8. Anything that is not a byte buffer
    or a string raises ``HashComputeError``.
    """
    if isinstance(contents, str):
        contents = contents.encode("utf-8")
    kind = type(contents).__name__
    if not isinstance(contents, (bytes, bytearray, memoryview)):
        get_logger(__name__).error("hash.compute: unsupported type=%s", kind)
        raise HashComputeError(f"Cannot hash contents of type {kind}", details={"type": kind})
    try:
        return hashlib.sha512(contents).hexdigest()
    except (BufferError, TypeError, ValueError) as e:
        # e.g. a non-contiguous memoryview
        get_logger(__name__).error("hash.compute: failed type=%s err=%s", kind, e)
        raise HashComputeError(f"Cannot hash contents of type {kind}: {e}", details={"type": kind}) from e

# ---------- Config validation ----------

def load_file(path: str) -> str:
    with open(path, "r", encoding="utf-8") as f:
        return f.read()

def validate_config(cfg: dict):
    here = os.path.dirname(os.path.abspath(__file__))
    schema_path = os.path.join(here, "schemas", "config.schema.json")
    schema = json.loads(load_file(schema_path))
    try:
        validate(instance=cfg, schema=schema, cls=Draft202012Validator)
    except ValidationError as e:
        raise ConfigError(f"Config validation error: {e.message} at {list(e.path)}") from e


class LabelizerSettings(BaseModel):
    record_path: Optional[str] = None
    max_concurrency: int = Field(default=8, ge=1)
    persist: str = "per_item"

    @property
    def persist_per_item(self) -> bool:
        return self.persist == "per_item"


def load_config(path: str) -> LabelizerSettings:
    """Read a YAML config file, validate it and resolve relative paths.

    ``record_path`` is resolved against the directory holding the config
    file, so a config can live next to its record.
    """
    try:
        cfg = yaml.safe_load(load_file(path)) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Config is not valid YAML: {path}") from e
    validate_config(cfg)
    settings = LabelizerSettings(**cfg)
    if settings.record_path and not os.path.isabs(settings.record_path):
        base = os.path.dirname(os.path.abspath(path))
        settings.record_path = os.path.join(base, settings.record_path)
    return settings

# ---------- Logging ----------

_LOGGER_INITIALIZED = False

class JsonFormatter(logging.Formatter):
    def format(self, record):
        payload = {
            "ts": dt.datetime.fromtimestamp(record.created, dt.timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)

def _build_logger():
    global _LOGGER_INITIALIZED
    if _LOGGER_INITIALIZED:
        return

    level = os.getenv("LOG_LEVEL", "INFO").upper()
    # Empty LOG_DIR disables the file handler
    log_dir = os.getenv("LOG_DIR", "logs")
    json_mode = os.getenv("LOG_JSON", "false").lower() == "true"

    logger = logging.getLogger("labelizer")
    logger.setLevel(getattr(logging, level, logging.INFO))

    if json_mode:
        fmt = JsonFormatter()
    else:
        fmt = logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")

    ch = logging.StreamHandler()
    ch.setLevel(logger.level)
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        fh = TimedRotatingFileHandler(os.path.join(log_dir, "labelizer.log"), when="D", backupCount=7, encoding="utf-8")
        fh.setLevel(logger.level)
        fh.setFormatter(fmt)
        logger.addHandler(fh)

    _LOGGER_INITIALIZED = True

def get_logger(name: str = None) -> logging.Logger:
    _build_logger()
    return logging.getLogger(name if name else __name__)

import logging
import os
from functools import cache
from pathlib import Path
from typing import Any, NewType

from yarl import URL

from fhir_terminology.config.constants import (
    DEFAULT_CACHE_SIZE,
    DEFAULT_CACHE_TTL_MS,
    DEFAULT_TERMINOLOGY_SERVER_URL,
    DEFAULT_TIMEOUT_MS,
)

LOG_LEVEL = logging.getLevelNamesMapping().get(os.getenv("LOG_LEVEL", ""), logging.WARNING)

TimeoutMs = NewType("TimeoutMs", int)
CacheTtlMs = NewType("CacheTtlMs", int)
CacheSize = NewType("CacheSize", int)


@cache
def config() -> dict[str, Any]:
    terminology_server_url = URL(os.getenv("TERMINOLOGY_SERVER_URL", DEFAULT_TERMINOLOGY_SERVER_URL))
    terminology_timeout_ms = TimeoutMs(int(os.getenv("TERMINOLOGY_TIMEOUT_MS", str(DEFAULT_TIMEOUT_MS))))
    terminology_cache_ttl_ms = CacheTtlMs(int(os.getenv("TERMINOLOGY_CACHE_TTL_MS", str(DEFAULT_CACHE_TTL_MS))))
    terminology_cache_size = CacheSize(int(os.getenv("TERMINOLOGY_CACHE_SIZE", str(DEFAULT_CACHE_SIZE))))
    value_set_directory = Path(directory) if (directory := os.getenv("VALUE_SET_DIRECTORY")) else None
    log_level = LOG_LEVEL

    return {
        "terminology_server_url": terminology_server_url,
        "terminology_timeout_ms": terminology_timeout_ms,
        "terminology_cache_ttl_ms": terminology_cache_ttl_ms,
        "terminology_cache_size": terminology_cache_size,
        "value_set_directory": value_set_directory,
        "log_level": log_level,
    }

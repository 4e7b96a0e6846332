from __future__ import annotations
import logging

from ..config import Settings
from .base import EventStore
from .memory import MemoryEventStore
from .redis_store import RedisEventStore

logger = logging.getLogger(__name__)


def build_store(settings: Settings) -> EventStore:
    if settings.store_backend == "redis":
        logger.info("using Redis event store at %s (prefix=%s)", settings.redis_url, settings.redis_prefix)
        return RedisEventStore.from_url(settings.redis_url, prefix=settings.redis_prefix)
    if settings.store_backend == "memory":
        logger.info("using in-memory event store")
        return MemoryEventStore()
    raise ValueError(f"unknown store backend: {settings.store_backend!r}")

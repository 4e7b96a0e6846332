from __future__ import annotations
import logging
from typing import Dict, List

import redis
from pydantic import ValidationError

from ..events import CATEGORY_MODELS, RETENTION, Category, Record
from .base import EventStore, StoreUnavailable, stamp

logger = logging.getLogger(__name__)


class RedisEventStore(EventStore):
    """
    One Redis list of JSON records per category, RPUSH'd and LTRIM'd to the
    retention cap, plus INCR counters.

    The push and the trim go out in one non-transactional pipeline. Two
    writers can still interleave so a list may briefly exceed its cap until
    the next append trims it.
    """

    name = "redis"

    def __init__(self, client: redis.Redis, prefix: str = "analytics", retention: Dict[Category, int] = None):
        self.r = client
        self.prefix = prefix
        self.retention = dict(RETENTION)
        if retention:
            self.retention.update(retention)

    @classmethod
    def from_url(cls, url: str, prefix: str = "analytics") -> "RedisEventStore":
        return cls(redis.Redis.from_url(url, decode_responses=True), prefix=prefix)

    def key(self, category: Category) -> str:
        return f"{self.prefix}:{Category(category).value}"

    def counter_key(self, name: str) -> str:
        return f"{self.prefix}:counter:{name}"

    def append(self, category: Category, record: Record) -> str:
        category = Category(category)
        record = stamp(record)
        key = self.key(category)
        try:
            pipe = self.r.pipeline(transaction=False)
            pipe.rpush(key, record.model_dump_json(by_alias=True, exclude_unset=True))
            pipe.ltrim(key, -self.retention[category], -1)
            pipe.execute()
        except redis.exceptions.RedisError as e:
            logger.error("append to %s failed: %s", key, e)
            raise StoreUnavailable(f"Failed to append to {key}: {e}") from e
        logger.debug("appended %s to %s", record.id, key)
        return record.id

    def read_all(self, category: Category) -> List[Record]:
        category = Category(category)
        key = self.key(category)
        try:
            raw = self.r.lrange(key, 0, -1)
        except redis.exceptions.RedisError as e:
            logger.error("read of %s failed: %s", key, e)
            raise StoreUnavailable(f"Failed to read {key}: {e}") from e
        model = CATEGORY_MODELS[category]
        try:
            return [model.model_validate_json(item) for item in raw]
        except ValidationError as e:
            logger.error("corrupt record in %s: %s", key, e)
            raise StoreUnavailable(f"Corrupt record in {key}") from e

    def length(self, category: Category) -> int:
        key = self.key(category)
        try:
            return int(self.r.llen(key))
        except redis.exceptions.RedisError as e:
            logger.error("llen of %s failed: %s", key, e)
            raise StoreUnavailable(f"Failed to read {key}: {e}") from e

    def incr_counter(self, name: str) -> int:
        key = self.counter_key(name)
        try:
            return int(self.r.incr(key))
        except redis.exceptions.RedisError as e:
            logger.error("incr of %s failed: %s", key, e)
            raise StoreUnavailable(f"Failed to increment {key}: {e}") from e

    def read_counter(self, name: str) -> int:
        key = self.counter_key(name)
        try:
            value = self.r.get(key)
        except redis.exceptions.RedisError as e:
            logger.error("get of %s failed: %s", key, e)
            raise StoreUnavailable(f"Failed to read {key}: {e}") from e
        return int(value) if value is not None else 0

    def ping(self) -> bool:
        try:
            return bool(self.r.ping())
        except redis.exceptions.RedisError:
            return False

    def close(self):
        self.r.close()

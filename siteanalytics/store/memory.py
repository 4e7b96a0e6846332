from __future__ import annotations
import logging
import threading
from collections import deque
from typing import Deque, Dict, List

from ..events import RETENTION, Category, Record
from .base import EventStore, stamp

logger = logging.getLogger(__name__)


class MemoryEventStore(EventStore):
    """Process-local ring buffers; one instance per process, injected into the app."""

    name = "memory"

    def __init__(self, retention: Dict[Category, int] = None):
        caps = dict(RETENTION)
        if retention:
            caps.update(retention)
        self._lists: Dict[Category, Deque[Record]] = {c: deque(maxlen=caps[c]) for c in Category}
        self._counters: Dict[str, int] = {}
        self._lock = threading.Lock()

    def append(self, category: Category, record: Record) -> str:
        record = stamp(record)
        with self._lock:
            # deque(maxlen) drops from the left, i.e. the oldest record
            self._lists[Category(category)].append(record)
        logger.debug("appended %s to %s", record.id, category)
        return record.id

    def read_all(self, category: Category) -> List[Record]:
        with self._lock:
            return list(self._lists[Category(category)])

    def length(self, category: Category) -> int:
        with self._lock:
            return len(self._lists[Category(category)])

    def incr_counter(self, name: str) -> int:
        with self._lock:
            self._counters[name] = self._counters.get(name, 0) + 1
            return self._counters[name]

    def read_counter(self, name: str) -> int:
        with self._lock:
            return self._counters.get(name, 0)

    def ping(self) -> bool:
        return True

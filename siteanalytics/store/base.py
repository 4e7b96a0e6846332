from __future__ import annotations
import uuid
from abc import ABC, abstractmethod
from typing import List

from ..events import Category, Record, utcnow


class StoreUnavailable(Exception):
    """The backing list/counter store could not be reached or answered badly."""


class EventStore(ABC):
    """
    Append-only, capped record lists keyed by category plus named counters.

    read_all() returns records in insertion order (oldest first) for every
    backing. Counters are independent of the lists: trimming never touches
    them, so a counter and a list length are allowed to drift apart.
    """

    name = "abstract"

    @abstractmethod
    def append(self, category: Category, record: Record) -> str:
        ...

    @abstractmethod
    def read_all(self, category: Category) -> List[Record]:
        ...

    @abstractmethod
    def length(self, category: Category) -> int:
        ...

    @abstractmethod
    def incr_counter(self, name: str) -> int:
        ...

    @abstractmethod
    def read_counter(self, name: str) -> int:
        ...

    @abstractmethod
    def ping(self) -> bool:
        ...

    def close(self):
        pass


def stamp(record: Record) -> Record:
    """Fill in id/timestamp when the caller left them out."""
    update = {}
    if record.id is None:
        update["id"] = str(uuid.uuid4())
    if record.timestamp is None:
        update["timestamp"] = utcnow()
    return record.model_copy(update=update) if update else record

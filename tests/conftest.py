from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from siteanalytics.app import create_app
from siteanalytics.config import Settings
from siteanalytics.store.memory import MemoryEventStore
from siteanalytics.store.redis_store import RedisEventStore

NOW = datetime(2026, 10, 17, 12, 0, 0, tzinfo=timezone.utc)


class FakePipeline:
    def __init__(self, client):
        self.client = client
        self.calls = []

    def rpush(self, *args):
        self.calls.append(("rpush", args))
        return self

    def ltrim(self, *args):
        self.calls.append(("ltrim", args))
        return self

    def execute(self):
        out = [getattr(self.client, name)(*args) for name, args in self.calls]
        self.calls = []
        return out


class FakeRedis:
    """Just enough of the redis-py list/counter surface for RedisEventStore."""

    def __init__(self):
        self.lists = {}
        self.values = {}

    @staticmethod
    def _span(n, start, end):
        s = start + n if start < 0 else start
        e = end + n if end < 0 else end
        return max(s, 0), e + 1

    def pipeline(self, transaction=True):
        return FakePipeline(self)

    def rpush(self, key, *values):
        self.lists.setdefault(key, []).extend(values)
        return len(self.lists[key])

    def ltrim(self, key, start, end):
        items = self.lists.get(key, [])
        s, e = self._span(len(items), start, end)
        self.lists[key] = items[s:e]
        return True

    def lrange(self, key, start, end):
        items = self.lists.get(key, [])
        s, e = self._span(len(items), start, end)
        return items[s:e]

    def llen(self, key):
        return len(self.lists.get(key, []))

    def incr(self, key):
        self.values[key] = str(int(self.values.get(key, 0)) + 1)
        return int(self.values[key])

    def get(self, key):
        return self.values.get(key)

    def ping(self):
        return True

    def close(self):
        pass


def ts(**delta):
    """Instant relative to NOW, e.g. ts(hours=-2)."""
    return NOW + timedelta(**delta)


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture(params=["memory", "redis"])
def store(request):
    if request.param == "memory":
        return MemoryEventStore()
    return RedisEventStore(FakeRedis(), prefix="test")


@pytest.fixture
def memory_store():
    return MemoryEventStore()


@pytest.fixture
def client(memory_store):
    return TestClient(create_app(store=memory_store, settings=Settings()))

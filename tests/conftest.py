import random

import pytest
from fastapi.testclient import TestClient

from packet_run.local_store import LocalStore
from packet_run.obstacle_generator import ObstacleGenerator
from packet_run.physics_engine import GameEngine
from packet_run.server import create_app

TEST_SALT = "test-salt"


class FakeClock:
    """Manually advanced stand-in for time.monotonic."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class FakeRedis:
    """In-memory subset of redis.asyncio.Redis: sorted sets and counters."""

    def __init__(self):
        self.zsets = {}
        self.counters = {}
        self.expiries = {}

    def _descending(self, name):
        # Redis orders equal scores by member, reversed for ZREVRANGE
        return sorted(self.zsets.get(name, {}).items(),
                      key=lambda kv: (kv[1], kv[0]), reverse=True)

    async def zadd(self, name, mapping):
        zset = self.zsets.setdefault(name, {})
        added = sum(1 for member in mapping if member not in zset)
        for member, score in mapping.items():
            zset[member] = float(score)
        return added

    async def zrevrange(self, name, start, end, withscores=False):
        rows = self._descending(name)
        rows = rows[start:] if end == -1 else rows[start:end + 1]
        return rows if withscores else [member for member, _ in rows]

    async def zrevrangebyscore(self, name, max, min, withscores=False):
        high = float("inf") if max == "+inf" else float(max)
        low = float("-inf") if min == "-inf" else float(min)
        rows = [row for row in self._descending(name) if low <= row[1] <= high]
        return rows if withscores else [member for member, _ in rows]

    async def delete(self, *names):
        removed = 0
        for name in names:
            removed += int(self.zsets.pop(name, None) is not None)
            removed += int(self.counters.pop(name, None) is not None)
        return removed

    async def incr(self, name):
        self.counters[name] = self.counters.get(name, 0) + 1
        return self.counters[name]

    async def expire(self, name, seconds):
        self.expiries[name] = seconds
        return True


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload

    @property
    def ok(self):
        return 200 <= self.status_code < 400

    def json(self):
        if self._payload is None:
            raise ValueError("no body")
        return self._payload


class FakeSession:
    """Stands in for requests.Session."""

    def __init__(self, get=None, post=None):
        self.get_result = get if get is not None else FakeResponse(200, [])
        self.post_result = post if post is not None else FakeResponse(201, {"ok": True})
        self.posted = []

    def get(self, url, timeout=None):
        if isinstance(self.get_result, Exception):
            raise self.get_result
        return self.get_result

    def post(self, url, json=None, timeout=None):
        self.posted.append(json)
        if isinstance(self.post_result, Exception):
            raise self.post_result
        return self.post_result


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def engine(clock):
    return GameEngine(generator=ObstacleGenerator(rng=random.Random(7)), clock=clock)


@pytest.fixture
def local_store(tmp_path):
    return LocalStore(tmp_path / "packet_run.json")


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def api_client(fake_redis):
    app = create_app(redis=fake_redis, salt=TEST_SALT, min_ms_per_point=1000, rate_limit_max=100)
    with TestClient(app) as client:
        yield client

"""
Shared fixtures: geohash instances and an in-memory stand-in for the Redis
commands used by the cell cache.
"""
import fnmatch

import pytest

from geohash import BASE4, BASE32, Geohash


class FakePipeline:
    def __init__(self, client):
        self.client = client
        self.calls = []

    def __getattr__(self, name):
        def queue(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            return self

        return queue

    def execute(self):
        results = [
            getattr(self.client, name)(*args, **kwargs)
            for name, args, kwargs in self.calls
        ]
        self.calls = []
        return results


class FakeRedis:
    """Just enough of redis.Redis (decode_responses=True) for GeoCellCache."""

    def __init__(self):
        self.zsets = {}
        self.hashes = {}
        self.strings = {}
        self.ttls = {}

    def pipeline(self):
        return FakePipeline(self)

    def zadd(self, key, mapping):
        zset = self.zsets.setdefault(key, {})
        added = sum(1 for member in mapping if member not in zset)
        zset.update({member: float(score) for member, score in mapping.items()})
        return added

    def zrem(self, key, member):
        return 1 if self.zsets.get(key, {}).pop(member, None) is not None else 0

    def zrange(self, key, start, end, withscores=False):
        items = sorted(self.zsets.get(key, {}).items(), key=lambda item: item[1])
        if withscores:
            return items
        return [member for member, _ in items]

    def hset(self, key, mapping):
        self.hashes.setdefault(key, {}).update(
            {field: str(value) for field, value in mapping.items()}
        )
        return len(mapping)

    def hgetall(self, key):
        return dict(self.hashes.get(key, {}))

    def get(self, key):
        return self.strings.get(key)

    def set(self, key, value, ex=None):
        self.strings[key] = str(value)
        if ex is not None:
            self.ttls[key] = ex
        return True

    def expire(self, key, seconds):
        self.ttls[key] = seconds
        return True

    def delete(self, *keys):
        deleted = 0
        for key in keys:
            if self.zsets.pop(key, None) is not None:
                deleted += 1
            elif self.hashes.pop(key, None) is not None:
                deleted += 1
            elif self.strings.pop(key, None) is not None:
                deleted += 1
            self.ttls.pop(key, None)
        return deleted

    def keys(self):
        return list(self.zsets) + list(self.hashes) + list(self.strings)

    def scan_iter(self, match="*"):
        return iter([key for key in self.keys() if fnmatch.fnmatchcase(key, match)])


@pytest.fixture
def geo32():
    return Geohash(precision=12, alphabet=BASE32)


@pytest.fixture
def geo4():
    return Geohash(precision=32, alphabet=BASE4)


@pytest.fixture
def fake_redis():
    return FakeRedis()

from __future__ import annotations
"""In-process critical sections keyed by arbitrary hashable tuples.

Keys are hashed onto a fixed table of shard locks. ``hold`` acquires every
shard touched by the requested keys in ascending shard order, so two holders
of overlapping key sets can never deadlock. Unrelated keys may share a shard;
that only costs throughput.

Usage:
    locks = KeyedLocks()
    with locks.hold(('user-shop', user_id, shop_id), ('group', group_id)):
        ...
"""
import threading
from contextlib import contextmanager
from typing import Hashable, Iterator, List

DEFAULT_SHARDS = 64


class KeyedLocks:
    def __init__(self, shards: int = DEFAULT_SHARDS):
        if shards < 1:
            raise ValueError('shards must be >= 1')
        self._locks: List[threading.Lock] = [threading.Lock() for _ in range(shards)]

    def shard_of(self, key: Hashable) -> int:
        return hash(key) % len(self._locks)

    @contextmanager
    def hold(self, *keys: Hashable) -> Iterator[None]:
        indexes = sorted({self.shard_of(k) for k in keys})
        acquired: List[threading.Lock] = []
        try:
            for idx in indexes:
                lock = self._locks[idx]
                lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()


def user_shop_key(user_id: int, shop_id: int):
    return ('user-shop', user_id, shop_id)


def group_key(group_id: int):
    return ('group', group_id)


def shop_groups_key(shop_id: int):
    # guards name uniqueness and the default reference of one shop
    return ('shop-groups', shop_id)


# Shared by every service instance in the process
engine_locks = KeyedLocks()

__all__ = ['KeyedLocks', 'engine_locks', 'user_shop_key', 'group_key', 'shop_groups_key']

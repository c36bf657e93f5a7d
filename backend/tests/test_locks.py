import threading
import pytest
from shopauthz.utils.locks import KeyedLocks, user_shop_key, group_key


def test_hold_is_exclusive_per_key():
    locks = KeyedLocks(shards=8)
    counter = {'n': 0}

    def work():
        for _ in range(200):
            with locks.hold(user_shop_key(1, 1)):
                value = counter['n']
                counter['n'] = value + 1

    threads = [threading.Thread(target=work) for _ in range(4)]
    for t in threads: t.start()
    for t in threads: t.join(timeout=10)
    assert counter['n'] == 800


def test_opposite_key_orders_do_not_deadlock():
    locks = KeyedLocks(shards=16)
    a, b = group_key(1), user_shop_key(2, 3)

    def forward():
        for _ in range(300):
            with locks.hold(a, b):
                pass

    def backward():
        for _ in range(300):
            with locks.hold(b, a):
                pass

    threads = [threading.Thread(target=forward), threading.Thread(target=backward)]
    for t in threads: t.start()
    for t in threads: t.join(timeout=10)
    assert not any(t.is_alive() for t in threads)


def test_same_shard_keys_do_not_self_deadlock():
    locks = KeyedLocks(shards=1)
    with locks.hold(group_key(1), group_key(2), user_shop_key(1, 1)):
        pass


def test_locks_released_on_error():
    locks = KeyedLocks(shards=2)
    with pytest.raises(RuntimeError):
        with locks.hold(group_key(1)):
            raise RuntimeError('boom')
    with locks.hold(group_key(1)):
        pass


def test_invalid_shard_count():
    with pytest.raises(ValueError):
        KeyedLocks(shards=0)

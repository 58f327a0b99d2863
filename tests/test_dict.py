import threading

import pytest

from miniredis.dict import ConcurrentDict, compute_capacity, fnv64a


def test_compute_capacity_minimum():
    assert compute_capacity(1) == 16
    assert compute_capacity(16) == 16


@pytest.mark.parametrize("param", [17, 100, 1000, 1 << 10, (1 << 16) + 1, 1 << 16])
def test_compute_capacity_is_next_power_of_two(param):
    size = compute_capacity(param)
    assert size >= param
    assert size & (size - 1) == 0
    assert size // 2 < param


def test_fnv64a_empty_is_offset_basis():
    assert fnv64a("") == 0xCBF29CE484222325


def test_fnv64a_is_deterministic_and_64_bit():
    assert fnv64a("key") == fnv64a("key")
    assert fnv64a("key") != fnv64a("kez")
    assert 0 <= fnv64a("some long key") < 2**64


def test_put_get_delete():
    d = ConcurrentDict(16)
    assert d.put("a", 1) == 1
    assert d.put("a", 2) == 1
    assert d.get("a") == 2
    assert len(d) == 1
    assert d.delete("a") == 1
    assert d.delete("a") == 0
    assert d.get("a", "missing") == "missing"
    assert len(d) == 0


def test_contains_with_none_value():
    d = ConcurrentDict(16)
    d.put("member", None)
    assert "member" in d
    assert "other" not in d


def test_put_if_absent():
    d = ConcurrentDict(16)
    assert d.put_if_absent("k", "v1") == 1
    assert d.put_if_absent("k", "v2") == 0
    assert d.get("k") == "v1"
    assert len(d) == 1


def test_items_and_len_track_entries():
    d = ConcurrentDict(32)
    expected = {f"key{n}": n for n in range(50)}
    for key, value in expected.items():
        d.put(key, value)
    assert dict(d.items()) == expected
    assert len(d) == len(expected)


def test_for_each_stops_when_consumer_returns_false():
    d = ConcurrentDict(16)
    for n in range(10):
        d.put(str(n), n)
    seen = []

    def consumer(key, value):
        seen.append((key, value))
        return False

    d.for_each(consumer)
    assert len(seen) == 1
    key, value = seen[0]
    assert d.get(key) == value
    assert value == int(key)
    assert len(d) == 10


def test_for_each_visits_everything():
    d = ConcurrentDict(16)
    for n in range(20):
        d.put(str(n), n)
    total = []
    d.for_each(lambda key, value: total.append(value) or True)
    assert sorted(total) == list(range(20))


def test_for_each_may_delete():
    d = ConcurrentDict(16)
    for n in range(10):
        d.put(str(n), n)
    d.for_each(lambda key, value: bool(d.delete(key)))
    assert len(d) == 0


def test_for_each_without_lock_visits_everything():
    d = ConcurrentDict(16)
    for n in range(5):
        d.put(str(n), n)
    keys = []
    d.for_each_without_lock(lambda key, value: keys.append(key) or True)
    assert sorted(keys) == ["0", "1", "2", "3", "4"]


def test_write_lock_blocks_writers_until_released():
    d = ConcurrentDict(16)
    d.rw_locks(["a"], [])
    writer = threading.Thread(target=d.put, args=("a", 1))
    writer.start()
    writer.join(0.2)
    assert writer.is_alive()
    d.rw_unlocks(["a"], [])
    writer.join(2)
    assert not writer.is_alive()
    assert d.get("a") == 1


def test_read_lock_allows_readers():
    d = ConcurrentDict(16)
    d.put("a", "value")
    d.rw_locks([], ["a"])
    try:
        assert d.get("a") == "value"
    finally:
        d.rw_unlocks([], ["a"])
    assert d.put("a", "new") == 1
    assert d.get("a") == "new"
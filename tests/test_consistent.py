import pytest

from miniredis.consistent import DEFAULT_REPLICAS, ConsistentHash


def numeric_hash(data: bytes) -> int:
    return int(data.decode())


def test_empty_ring_returns_empty_string():
    assert ConsistentHash().get("anything") == ""


def test_default_replicas():
    assert ConsistentHash().replicas == DEFAULT_REPLICAS


def test_single_node_takes_everything():
    ring = ConsistentHash()
    ring.add("node-a")
    assert {ring.get(f"key{i}") for i in range(50)} == {"node-a"}


def test_lookup_is_deterministic_and_within_nodes():
    ring = ConsistentHash()
    ring.add("a", "b", "c")
    for i in range(100):
        key = f"k{i}"
        assert ring.get(key) in {"a", "b", "c"}
        assert ring.get(key) == ring.get(key)


@pytest.mark.parametrize(
    "key, node",
    [("2", "5"), ("5", "5"), ("16", "7"), ("30", "5"), ("26", "7")],
)
def test_custom_hash_placement(key, node):
    # node "5" sits at 5, 15, 25; node "7" at 7, 17, 27
    ring = ConsistentHash(3, numeric_hash)
    ring.add("5", "7")
    assert ring.get(key) == node


def test_delete_moves_keys_to_remaining_node():
    ring = ConsistentHash(3, numeric_hash)
    ring.add("5", "7")
    ring.delete("7")
    assert ring.get("16") == "5"
    ring.delete("5")
    assert ring.get("16") == ""


def test_delete_keeps_other_assignments():
    ring = ConsistentHash()
    ring.add("a", "b", "c")
    before = {f"k{i}": ring.get(f"k{i}") for i in range(200)}
    ring.delete("c")
    for key, node in before.items():
        if node != "c":
            assert ring.get(key) == node
        else:
            assert ring.get(key) in {"a", "b"}
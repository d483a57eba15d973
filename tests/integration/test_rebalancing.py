"""
Integration tests for key movement when the ring changes.

These check the properties that make the ring consistent: keys spread
evenly, and membership changes only move the keys they have to.
"""
from conhash.cluster.consistent_hash import ConsistentHash
from conhash.cluster.node import ServerNode

NUM_KEYS = 10000


def shard(i: int) -> ServerNode:
    return ServerNode(host=f"shard-{i}", port=7000)


def make_ring(num_nodes: int, num_replicas: int = 150) -> ConsistentHash:
    ring = ConsistentHash()
    for i in range(num_nodes):
        ring.add(shard(i), num_replicas)
    return ring


def owners(ring: ConsistentHash) -> dict[str, str]:
    return {
        f"key:{i}": ring.get_str(f"key:{i}").name()
        for i in range(NUM_KEYS)
    }


def test_every_key_resolves():
    """Test that a non-empty ring never fails a lookup"""
    ring = make_ring(1, num_replicas=1)
    
    for i in range(1000):
        assert ring.get_str(f"key:{i}") == shard(0)


def test_distribution_with_many_keys():
    """Test that keys are distributed relatively evenly"""
    ring = make_ring(3)
    
    distribution = {}
    for node_name in owners(ring).values():
        distribution[node_name] = distribution.get(node_name, 0) + 1
    
    assert len(distribution) == 3
    # Each node should get roughly 1/3 of keys
    for node_name, count in distribution.items():
        assert 2000 < count < 4700, f"{node_name} got {count} keys (expected ~3333)"
    
    print(f"Distribution: {distribution}")


def test_rebalancing_minimal_keys_moved():
    """Test that adding a node only moves keys onto that node"""
    ring = make_ring(2)
    before = owners(ring)
    
    ring.add(shard(2), 150)
    after = owners(ring)
    
    moved = [key for key in before if before[key] != after[key]]
    
    # Every moved key went to the new node
    assert all(after[key] == "shard-2:7000" for key in moved)
    
    # With 3 nodes, about 1/3 of keys should move
    move_percent = len(moved) / NUM_KEYS * 100
    assert 20 < move_percent < 47, f"{move_percent}% keys moved (expected ~33%)"
    
    print(f"Added 1 node: {move_percent:.1f}% of keys moved")


def test_unrelated_removal_is_stable():
    """Test that removing a node only moves that node's keys"""
    ring = make_ring(5)
    before = owners(ring)
    
    ring.remove(shard(3))
    after = owners(ring)
    
    for key, node_name in before.items():
        if node_name != "shard-3:7000":
            assert after[key] == node_name
        else:
            assert after[key] != node_name


def test_remove_then_readd_restores_routing():
    """Test that re-adding a removed node restores the original mapping"""
    ring = make_ring(4)
    before = owners(ring)
    
    ring.remove(shard(1))
    ring.add(shard(1), 150)
    
    assert ring.len() == 600
    assert owners(ring) == before

"""
Consistent Hashing implementation with virtual nodes.

Consistent hashing distributes keys across nodes such that:
1. Keys are evenly distributed
2. Adding/removing nodes only affects ~K/n of keys
3. Same key always maps to same node (deterministic)

Virtual nodes (replicas) improve distribution by giving each physical
node multiple positions on the hash ring. Replica i of a node named
"name" sits at hash("name:i").
"""
import copy
import logging
from typing import Generic, Optional, TypeVar

from conhash.cluster.hashing import HashFunction, md5_hash
from conhash.cluster.node import Node
from conhash.cluster.ring_store import RingStore

logger = logging.getLogger(__name__)

N = TypeVar("N", bound=Node)


class ConsistentHash(Generic[N]):
    """
    Consistent hash ring with a configurable number of replicas per node.
    
    To find which node owns a key, we hash the key and take the first
    virtual node at or after that position, wrapping past the largest
    digest back to the smallest.
    
    Example with 2 nodes and 3 replicas each:
        Node A: positions [100, 500, 900]
        Node B: positions [200, 600, 800]
        Ring: [100→A, 200→B, 500→A, 600→B, 800→B, 900→A]
        
        Key "foo" hashes to 550 → next position is 600 → goes to Node B
        Key "bar" hashes to 950 → wraps around to 100 → goes to Node A
    
    Two virtual nodes hashing to the same digest overwrite each other
    (last add wins). This is not detected; with 16-byte digests it is
    rare enough to ignore.
    
    The ring does no locking. Callers sharing one instance must
    serialize add/remove themselves.
    """
    
    def __init__(self, hash_fn: Optional[HashFunction] = None):
        """
        Initialize an empty ring.
        
        Args:
            hash_fn: Callable mapping bytes to a digest. Defaults to MD5.
        """
        self.hash_fn: HashFunction = hash_fn or md5_hash
        self.ring: RingStore[N] = RingStore()
        self.replica_counts: dict[str, int] = {}  # node name → num replicas
    
    @classmethod
    def with_hash(cls, hash_fn: HashFunction) -> "ConsistentHash[N]":
        """Construct a ring bound to a custom hash function."""
        return cls(hash_fn=hash_fn)
    
    def _replica_digest(self, node_name: str, replica: int) -> bytes:
        return self.hash_fn(f"{node_name}:{replica}".encode("utf-8"))
    
    def add(self, node: N, num_replicas: int) -> None:
        """
        Add a node with num_replicas virtual nodes.
        
        Adding a node whose name is already on the ring replaces its
        previous virtual nodes instead of duplicating them. Zero replicas
        registers the node without making it reachable.
        
        Args:
            node: Node to place; a copy is stored at every replica
            num_replicas: Number of virtual nodes for this node
        """
        node_name = node.name()
        logger.debug(f"Adding node {node_name!r} with {num_replicas} replicas")
        
        # Remove it first
        self.remove(node)
        
        self.replica_counts[node_name] = num_replicas
        for replica in range(num_replicas):
            digest = self._replica_digest(node_name, replica)
            logger.debug(
                f"Adding node {node_name!r} of replica {replica}, "
                f"hashed key is {digest.hex()}"
            )
            self.ring.insert(digest, copy.copy(node))
    
    def _find(self, key: bytes) -> Optional[tuple[bytes, N]]:
        if not self.ring:
            logger.debug("The ring is empty")
            return None
        
        digest = self.hash_fn(key)
        logger.debug(f"Getting key {key!r}, hashed key is {digest.hex()}")
        
        entry = self.ring.successor_or_wrap(digest)
        if entry[0] < digest:
            logger.debug("Search to the end, coming back to the head ...")
        logger.debug(f"Found node {entry[1].name()!r}")
        return entry
    
    def get(self, key: bytes) -> Optional[N]:
        """
        Find which node owns a key.
        
        Args:
            key: The key to look up
            
        Returns:
            Node owning this key, or None if the ring is empty
        """
        entry = self._find(key)
        return entry[1] if entry else None
    
    def get_str(self, key: str) -> Optional[N]:
        """Find which node owns a string key (UTF-8 encoded)."""
        return self.get(key.encode("utf-8"))
    
    def get_mut(self, key: bytes) -> Optional[N]:
        """
        Find the node owning a key, as the ring's own stored object.
        
        Changes made to the returned node affect the ring's copy at that
        slot only, never the value originally passed to add().
        """
        entry = self._find(key)
        if entry is None:
            return None
        return self.ring.get(entry[0])
    
    def get_str_mut(self, key: str) -> Optional[N]:
        """String-key variant of get_mut()."""
        return self.get_mut(key.encode("utf-8"))
    
    def remove(self, node: N) -> None:
        """
        Remove a node with all of its virtual nodes.
        
        Removing a node that is not on the ring does nothing.
        """
        node_name = node.name()
        logger.debug(f"Removing node {node_name!r}")
        
        num_replicas = self.replica_counts.pop(node_name, None)
        if num_replicas is None:
            logger.debug(f"Node {node_name!r} not exists")
            return
        
        logger.debug(f"Node {node_name!r} replicas {num_replicas}")
        
        for replica in range(num_replicas):
            self.ring.remove_exact(self._replica_digest(node_name, replica))
    
    def len(self) -> int:
        """Number of virtual nodes on the ring"""
        return len(self.ring)
    
    def is_empty(self) -> bool:
        return self.len() == 0
    
    def replicas(self, node_name: str) -> Optional[int]:
        """Registered replica count for a node name, or None."""
        return self.replica_counts.get(node_name)
    
    def node_names(self) -> list[str]:
        """Names of all registered nodes, sorted"""
        return sorted(self.replica_counts)
    
    def get_distribution(self) -> dict[str, int]:
        """
        Get statistics on how virtual nodes are distributed.
        
        Counts the entries actually on the ring, so a node that lost a
        slot to a digest collision shows one fewer.
        
        Returns:
            Dictionary mapping node name → count of virtual nodes
        """
        distribution: dict[str, int] = {name: 0 for name in self.replica_counts}
        
        for node in self.ring.values():
            name = node.name()
            distribution[name] = distribution.get(name, 0) + 1
        
        return distribution
    
    def __len__(self) -> int:
        return self.len()
    
    def __bool__(self) -> bool:
        return not self.is_empty()
    
    def __contains__(self, node: N) -> bool:
        return node.name() in self.replica_counts

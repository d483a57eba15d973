"""
Lookup benchmark for a large ring.

Builds a ring of NODES nodes with NODES replicas each (a million virtual
nodes at the default) and times get_str() and a lock-guarded
get_str_mut(), the way a shared mutable ring would be used.

Usage:
    python benchmarks/bench_lookup.py [NODES] [ITERATIONS]
"""
import logging
import sys
import threading
import time

from conhash.cluster.consistent_hash import ConsistentHash
from conhash.cluster.node import ServerNode

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("benchmark")


def build_ring(num_nodes: int) -> ConsistentHash[ServerNode]:
    ring: ConsistentHash[ServerNode] = ConsistentHash()
    for i in range(num_nodes):
        ring.add(ServerNode(host="localhost", port=10000 + i), num_nodes)
    return ring


def run_benchmark(num_nodes: int = 1000, iterations: int = 100000) -> dict:
    """Time both lookup paths and return ns per lookup for each"""
    start = time.perf_counter()
    ring = build_ring(num_nodes)
    logger.info(
        "Built ring with %d virtual nodes in %.2fs",
        len(ring),
        time.perf_counter() - start,
    )
    
    start = time.perf_counter()
    for _ in range(iterations):
        ring.get_str("")
    get_ns = (time.perf_counter() - start) / iterations * 1e9
    
    lock = threading.Lock()
    start = time.perf_counter()
    for _ in range(iterations):
        with lock:
            ring.get_str_mut("")
    get_mut_ns = (time.perf_counter() - start) / iterations * 1e9
    
    logger.info("get: %.0f ns/lookup", get_ns)
    logger.info("get_mut: %.0f ns/lookup", get_mut_ns)
    return {"get": get_ns, "get_mut": get_mut_ns}


if __name__ == "__main__":
    nodes = int(sys.argv[1]) if len(sys.argv) > 1 else 1000
    iters = int(sys.argv[2]) if len(sys.argv) > 2 else 100000
    run_benchmark(nodes, iters)

"""
Hash functions used to place virtual nodes and keys on the ring.

A hash function is any callable taking bytes and returning a digest as
bytes. Digests are compared lexicographically, so the ring only needs
them to be deterministic; their width and algorithm are up to the caller.
"""
import hashlib
from typing import Callable

HashFunction = Callable[[bytes], bytes]


def md5_hash(data: bytes) -> bytes:
    """Default hash function: 16-byte MD5 digest."""
    return hashlib.md5(data).digest()


def get_hash_function(algorithm: str) -> HashFunction:
    """
    Resolve a hashlib algorithm name to a hash function.
    
    Args:
        algorithm: Name accepted by hashlib.new (e.g. "md5", "sha256")
        
    Returns:
        Callable mapping bytes to the algorithm's digest
        
    Raises:
        ValueError: If hashlib does not provide the algorithm, or if the
                    algorithm has a variable-length digest (shake_*)
    """
    name = algorithm.lower()
    if name == "md5":
        return md5_hash
    
    try:
        probe = hashlib.new(name)
    except ValueError:
        raise ValueError(f"Unsupported hash algorithm: {algorithm}") from None
    
    if probe.digest_size == 0:
        raise ValueError(f"Hash algorithm {algorithm} has no fixed digest size")
    
    def _hash(data: bytes) -> bytes:
        return hashlib.new(name, data).digest()
    
    _hash.__name__ = f"{name}_hash"
    return _hash

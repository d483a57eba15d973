"""
Ring configuration.

Settings come from environment variables, the same way the rest of the
deployment is configured:
    CONHASH_HASH_ALGORITHM  hashlib algorithm name (default "md5")
    CONHASH_NUM_REPLICAS    virtual nodes per node (default 160)
"""
import os

from pydantic import BaseModel, Field, field_validator

from conhash.cluster.consistent_hash import ConsistentHash
from conhash.cluster.hashing import get_hash_function

DEFAULT_HASH_ALGORITHM = "md5"
DEFAULT_NUM_REPLICAS = 160


class RingSettings(BaseModel):
    """Hash algorithm and default replica count for a ring"""
    hash_algorithm: str = DEFAULT_HASH_ALGORITHM
    num_replicas: int = Field(default=DEFAULT_NUM_REPLICAS, ge=0)
    
    @field_validator("hash_algorithm")
    @classmethod
    def _check_algorithm(cls, value: str) -> str:
        # Raises ValueError for algorithms hashlib can't use
        get_hash_function(value)
        return value.lower()
    
    @classmethod
    def from_env(cls) -> "RingSettings":
        return cls(
            hash_algorithm=os.getenv("CONHASH_HASH_ALGORITHM", DEFAULT_HASH_ALGORITHM),
            num_replicas=os.getenv("CONHASH_NUM_REPLICAS", DEFAULT_NUM_REPLICAS),
        )
    
    def build_ring(self) -> ConsistentHash:
        """Create an empty ring using the configured hash algorithm."""
        return ConsistentHash.with_hash(get_hash_function(self.hash_algorithm))

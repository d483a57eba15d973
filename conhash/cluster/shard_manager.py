"""
Shard Manager for distributing data across multiple storage engines.

The ShardManager coordinates multiple StorageEngine instances, using
consistent hashing to route each key to the appropriate shard.

The hash ring itself does no locking, so every ring mutation and every
routed operation here runs under the manager's asyncio.Lock.
"""
import asyncio
import logging
from typing import Optional

from conhash.cluster.consistent_hash import ConsistentHash
from conhash.config import RingSettings
from conhash.storage.engine import StorageEngine

logger = logging.getLogger(__name__)


class Shard:
    """
    Ring node for one shard.
    
    The ring copies the node into each virtual slot; copies are shallow,
    so all of them share this shard's StorageEngine.
    """
    
    def __init__(self, shard_id: str, engine: Optional[StorageEngine] = None):
        self.shard_id = shard_id
        self.engine = engine or StorageEngine(shard_id)
    
    def name(self) -> str:
        return self.shard_id
    
    def __repr__(self) -> str:
        return f"Shard({self.shard_id!r})"


class ShardManager:
    """
    Manages multiple in-memory shards with consistent hashing.
    
    Usage:
        manager = ShardManager(["shard-0", "shard-1", "shard-2"])
        await manager.initialize()
        
        await manager.put("user:123", "alice")  # Routed to shard
        value = await manager.get("user:123")   # Same shard
        
        await manager.add_shard("shard-3")      # Moves ~1/4 of keys
        await manager.close()
    """
    
    def __init__(
        self,
        shard_ids: list[str],
        num_replicas: Optional[int] = None,
        settings: Optional[RingSettings] = None,
    ):
        """
        Initialize shard manager.
        
        Args:
            shard_ids: List of shard identifiers (e.g., ["shard-0", "shard-1"])
            num_replicas: Virtual nodes per shard; overrides settings
            settings: Ring settings, read from the environment if omitted
        """
        self.settings = settings or RingSettings.from_env()
        self.num_replicas = (
            num_replicas if num_replicas is not None else self.settings.num_replicas
        )
        self.shard_ids = list(shard_ids)
        self.shards: dict[str, Shard] = {}
        self.hash_ring: ConsistentHash[Shard] = self.settings.build_ring()
        self.lock = asyncio.Lock()
        
        logger.info(f"Initializing ShardManager with {len(self.shard_ids)} shards")
    
    async def initialize(self) -> None:
        """Create a storage engine for each shard and build the hash ring."""
        async with self.lock:
            for shard_id in self.shard_ids:
                shard = Shard(shard_id)
                self.shards[shard_id] = shard
                self.hash_ring.add(shard, self.num_replicas)
        
        logger.info(f"ShardManager initialized: {len(self.shards)} shards")
        logger.info(f"Virtual node distribution: {self.hash_ring.get_distribution()}")
    
    def _get_shard(self, key: str) -> Shard:
        """
        Get the shard responsible for a key.
        
        Raises:
            RuntimeError: If the hash ring is empty
        """
        shard = self.hash_ring.get_str(key)
        
        if shard is None:
            raise RuntimeError("Hash ring is empty - no shards available")
        
        return self.shards[shard.shard_id]
    
    async def get(self, key: str) -> Optional[str]:
        """
        Get value for a key.
        
        Returns:
            Value if found, None otherwise
        """
        async with self.lock:
            return await self._get_shard(key).engine.get(key)
    
    async def put(self, key: str, value: str) -> None:
        async with self.lock:
            await self._get_shard(key).engine.put(key, value)
    
    async def delete(self, key: str) -> bool:
        """
        Delete a key-value pair.
        
        Returns:
            True if key existed and was deleted, False otherwise
        """
        async with self.lock:
            return await self._get_shard(key).engine.delete(key)
    
    async def exists(self, key: str) -> bool:
        async with self.lock:
            return await self._get_shard(key).engine.exists(key)
    
    async def size(self) -> int:
        """Total number of keys across all shards"""
        total = 0
        for shard in self.shards.values():
            total += await shard.engine.size()
        return total
    
    async def add_shard(self, shard_id: str) -> int:
        """
        Add a shard and move over the keys it now owns.
        
        Only keys whose owner changed are moved; with N shards before the
        add, that is roughly 1/(N+1) of all keys.
        
        Returns:
            Number of keys moved to the new shard
        """
        async with self.lock:
            if shard_id in self.shards:
                logger.warning(f"Shard {shard_id} already exists")
                return 0
            
            shard = Shard(shard_id)
            self.shards[shard_id] = shard
            self.hash_ring.add(shard, self.num_replicas)
            
            moved = 0
            for other in list(self.shards.values()):
                if other is shard:
                    continue
                for key, value in await other.engine.items():
                    if self._get_shard(key) is shard:
                        await shard.engine.put(key, value)
                        await other.engine.delete(key)
                        moved += 1
        
        logger.info(f"Added shard {shard_id}, moved {moved} keys")
        return moved
    
    async def remove_shard(self, shard_id: str) -> int:
        """
        Remove a shard and re-route its keys to their new owners.
        
        Returns:
            Number of keys moved off the removed shard
            
        Raises:
            RuntimeError: If this is the last shard and it still holds keys
        """
        async with self.lock:
            shard = self.shards.get(shard_id)
            if shard is None:
                logger.warning(f"Shard {shard_id} not found")
                return 0
            
            items = await shard.engine.items()
            if items and len(self.shards) == 1:
                raise RuntimeError(
                    f"Cannot remove last shard {shard_id} while it holds {len(items)} keys"
                )
            
            self.hash_ring.remove(shard)
            del self.shards[shard_id]
            
            for key, value in items:
                await self._get_shard(key).engine.put(key, value)
            await shard.engine.clear()
        
        logger.info(f"Removed shard {shard_id}, moved {len(items)} keys")
        return len(items)
    
    async def get_stats(self) -> dict:
        """
        Get statistics about shard distribution.
        
        Returns:
            Dictionary with:
            - total_keys: Total keys across all shards
            - num_shards: Number of shards
            - shards: Dict mapping shard_id → key count
            - vnodes_per_shard: Virtual node distribution
        """
        shard_stats = {}
        total_keys = 0
        
        for shard_id, shard in self.shards.items():
            count = await shard.engine.size()
            shard_stats[shard_id] = count
            total_keys += count
        
        return {
            "total_keys": total_keys,
            "num_shards": len(self.shards),
            "shards": shard_stats,
            "vnodes_per_shard": self.hash_ring.get_distribution()
        }
    
    async def close(self) -> None:
        """Take every shard off the ring and drop its data."""
        async with self.lock:
            for shard_id, shard in self.shards.items():
                self.hash_ring.remove(shard)
                await shard.engine.clear()
                logger.debug(f"Closed shard {shard_id}")
            self.shards.clear()
        
        logger.info("All shards closed")

"""
In-memory key-value storage for a single shard.

Each shard placed on the hash ring owns one StorageEngine. The engine is
never copied: every virtual node of a shard points at the same engine.
"""
from typing import Optional
import asyncio
import logging

logger = logging.getLogger(__name__)


class StorageEngine:
    """
    In-memory key-value storage guarded by an asyncio.Lock.
    
    Usage:
        engine = StorageEngine("shard-0")
        await engine.put("key", "value")
        value = await engine.get("key")
        await engine.delete("key")
    """
    
    def __init__(self, shard_id: str):
        self.shard_id = shard_id
        self.lock = asyncio.Lock()
        self.store: dict[str, str] = {}
    
    async def get(self, key: str) -> Optional[str]:
        """
        Retrieve value for a key.
        
        Returns:
            The value if key exists, None otherwise
        """
        async with self.lock:
            return self.store.get(key)
    
    async def put(self, key: str, value: str) -> None:
        async with self.lock:
            self.store[key] = value
        
        logger.debug(f"PUT {key} on {self.shard_id} (size: {len(value)} bytes)")
    
    async def delete(self, key: str) -> bool:
        """
        Delete a key-value pair.
        
        Returns:
            True if key existed and was deleted, False otherwise
        """
        async with self.lock:
            if key not in self.store:
                return False
            del self.store[key]
        
        logger.debug(f"DELETE {key} on {self.shard_id}")
        return True
    
    async def exists(self, key: str) -> bool:
        async with self.lock:
            return key in self.store
    
    async def size(self) -> int:
        async with self.lock:
            return len(self.store)
    
    async def items(self) -> list[tuple[str, str]]:
        """Snapshot of all key-value pairs"""
        async with self.lock:
            return list(self.store.items())
    
    async def clear(self) -> None:
        async with self.lock:
            self.store.clear()

"""
Sorted storage for ring entries.

The store maps digest → node and keeps digests in order so the owner of
a position can be found by binary search instead of a linear scan. Rings
with a thousand nodes at a thousand replicas each hold a million entries,
so both insertion and lookup have to stay logarithmic.
"""
from typing import Generic, Iterator, Optional, TypeVar

from sortedcontainers import SortedDict

N = TypeVar("N")


class RingStore(Generic[N]):
    """
    Ordered digest → node mapping.
    
    Example with four entries:
        Store: [0x10→A, 0x40→B, 0x80→A, 0xc0→C]
        
        successor_or_wrap(0x50) → (0x80, A)
        successor_or_wrap(0xd0) → (0x10, A)   (wraps to the smallest)
    """
    
    def __init__(self):
        self._entries: SortedDict = SortedDict()
    
    def insert(self, digest: bytes, node: N) -> None:
        """
        Store a node at a digest.
        
        An entry already stored at the same digest is overwritten; digest
        collisions are not detected.
        """
        self._entries[digest] = node
    
    def remove_exact(self, digest: bytes) -> None:
        """Delete the entry at exactly this digest, if there is one."""
        self._entries.pop(digest, None)
    
    def successor_or_wrap(self, digest: bytes) -> Optional[tuple[bytes, N]]:
        """
        Find the first entry at or after a digest, clockwise.
        
        Args:
            digest: Position on the ring
            
        Returns:
            (digest, node) of the smallest stored key >= digest, or of the
            smallest key overall if digest is past the end. None if empty.
        """
        if not self._entries:
            return None
        
        idx = self._entries.bisect_left(digest)
        
        # Wrap around if we're past the end
        if idx == len(self._entries):
            return self.iter_smallest()
        
        return self._entries.peekitem(idx)
    
    def iter_smallest(self) -> Optional[tuple[bytes, N]]:
        """Entry with the smallest digest, or None if empty."""
        if not self._entries:
            return None
        return self._entries.peekitem(0)
    
    def get(self, digest: bytes) -> Optional[N]:
        return self._entries.get(digest)
    
    def values(self) -> Iterator[N]:
        return iter(self._entries.values())
    
    def __len__(self) -> int:
        return len(self._entries)
    
    def __iter__(self) -> Iterator[bytes]:
        return iter(self._entries)

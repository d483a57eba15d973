"""
Node capability expected by the hash ring.
"""
from typing import Protocol

from pydantic import BaseModel


class Node(Protocol):
    """
    Anything the ring can place: it needs a stable, unique name.
    
    The ring stores a shallow copy (copy.copy) of the node at each of its
    virtual-node slots, so nodes should be cheap to copy or hold heavy
    state behind a shared reference.
    """
    
    def name(self) -> str:
        ...


class ServerNode(BaseModel):
    """A backend addressed by host and port, named "host:port"."""
    host: str
    port: int
    
    def name(self) -> str:
        return f"{self.host}:{self.port}"

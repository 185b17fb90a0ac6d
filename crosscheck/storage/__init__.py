# Storage package for the CrossCheck engine
"""
Fact Store implementations.

    FactStore          - the async repository contract
    InMemoryFactStore  - dict-backed, for tests and embedding
    JsonFactStore      - one JSON array per record kind in a data directory
"""

from .json_store import JsonFactStore
from .repository import FactStore, InMemoryFactStore

__all__ = ["FactStore", "InMemoryFactStore", "JsonFactStore"]

"""
Persistence - stores for the engine state.

Any object with `load(key) -> Optional[str]` and `save(key, blob)` can be
used as a store; `delete(key)` is optional.
"""

from typing import Optional, Protocol

from recall.persistence.database import SqlAlchemyStore, get_engine
from recall.persistence.memory import MemoryStore
from recall.persistence.snapshot import build_payload, decode_state, encode_state


class KeyValueStore(Protocol):
    def load(self, key: str) -> Optional[str]: ...

    def save(self, key: str, blob: str) -> None: ...


__all__ = [
    "KeyValueStore",
    "MemoryStore",
    "SqlAlchemyStore",
    "build_payload",
    "decode_state",
    "encode_state",
    "get_engine",
]

# chainproof/storage/__init__.py
# Reference implementations of the persistence collaborator.

from .base import ChainStore
from .memory_store import InMemoryChainStore
from .json_store import JsonFileChainStore

__all__ = [
    "ChainStore",
    "InMemoryChainStore",
    "JsonFileChainStore",
]

"""
Storage layer: a whole-document key-value store and the collection
repository built on it.
"""

from picklewickel.store.kv import SqlKeyValueStore
from picklewickel.store.repository import Collection, CollectionRepository

__all__ = [
    "SqlKeyValueStore",
    "Collection",
    "CollectionRepository",
]

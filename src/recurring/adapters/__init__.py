"""Adapters - I/O implementations of ports."""

from .file_store import FileDocumentStore
from .memory_store import MemoryDocumentStore

__all__ = [
    "FileDocumentStore",
    "MemoryDocumentStore",
]

"""
Storage engines for the content repository.

This module provides the pluggable engine interface supporting:
- Filesystem (reference engine, files and directories as nodes)
- In-memory (for testing and custom schemas)

Invariants:
    - Engines expose their types through a frozen TypeRegistry
    - Every operation is keyed by an absolute "/"-separated path
    - Streams from get_handle() are owned by the caller

How to change safely:
    - New engines must subclass Engine and register with @register_engine
    - Keep path_exists consistent with nodes_in/properties_in
"""

from .base import (
    READ_MODE,
    Engine,
    PathStatus,
    create_engine,
    load_engine,
    register_engine,
    registered_engines,
)
from .filesystem import FileSystemEngine
from .memory import MemoryEngine

__all__ = [
    # Contract and types
    "Engine",
    "PathStatus",
    "READ_MODE",
    # Factory
    "register_engine",
    "registered_engines",
    "load_engine",
    "create_engine",
    # Implementations
    "FileSystemEngine",
    "MemoryEngine",
]

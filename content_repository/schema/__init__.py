"""
Schema module for the content repository.

This module provides the type system for nodes and properties:
- Value types (ValueType, ValueKind) for raw value conversion
- Property types (PropertyType) for mutability and requiredness
- Node types (NodeType) with inheritance resolution
- A registry (TypeRegistry) owning the types of one engine

Invariants:
    - Types are immutable once constructed
    - Registries are read-only once frozen
    - Inheritance is by name, resolved through the registry

How to change safely:
    - Add new types with new names
    - Validate the registry (validate_all) before freezing
"""

from .registry import TypeRegistry
from .types import WILDCARD, NodeType, PropertyType
from .values import HANDLE, SCALAR, ValueKind, ValueType

__all__ = [
    # Values
    "ValueType",
    "ValueKind",
    "SCALAR",
    "HANDLE",
    # Types
    "PropertyType",
    "NodeType",
    "WILDCARD",
    # Registry
    "TypeRegistry",
]

"""
Content Repository - typed, hierarchical node store over pluggable engines.

This package implements a content repository built on:
- Nodes addressed by "/"-separated paths, each with properties and children
- Node, property and value types with name-based inheritance
- Storage engines that resolve types and raw values by path

Architecture:
    ┌─────────────┐     ┌─────────────┐     ┌─────────────────┐
    │ Node /      │────▶│ Repository  │────▶│     Engine      │
    │ Property    │     │             │     │ (fs / memory)   │
    └─────────────┘     └─────────────┘     └────────┬────────┘
                                                     │
                                                     ▼
                                            ┌─────────────────┐
                                            │  TypeRegistry   │
                                            │ node/prop/value │
                                            └─────────────────┘

Invariants:
    - Node and Property objects are views; the engine is the only state
    - Type registries are frozen once their engine is constructed
    - Supertypes are names resolved through the registry

How to change safely:
    - New storage back ends implement engine.Engine
    - Schema changes go through a TypeRegistry, never mutate types
"""

from .config import RepositorySettings
from .engine import Engine, FileSystemEngine, MemoryEngine, PathStatus
from .errors import (
    ConfigError,
    EngineLoadError,
    ImmutablePropertyError,
    InheritanceCycleError,
    NotFoundError,
    RepositoryError,
    RequiredPropertyError,
    UnknownPropertyError,
    UnsupportedModeError,
    ValidationError,
)
from .node import Node
from .property import Property
from .repository import Repository, attach
from .schema import NodeType, PropertyType, TypeRegistry, ValueKind, ValueType
from .value import Value

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Entry points
    "attach",
    "Repository",
    "RepositorySettings",
    # Views
    "Node",
    "Property",
    "Value",
    # Schema
    "NodeType",
    "PropertyType",
    "ValueType",
    "ValueKind",
    "TypeRegistry",
    # Engines
    "Engine",
    "PathStatus",
    "FileSystemEngine",
    "MemoryEngine",
    # Errors
    "RepositoryError",
    "ConfigError",
    "InheritanceCycleError",
    "ValidationError",
    "ImmutablePropertyError",
    "RequiredPropertyError",
    "NotFoundError",
    "UnknownPropertyError",
    "UnsupportedModeError",
    "EngineLoadError",
]

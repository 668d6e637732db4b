"""
Repository: the entry point wrapping a storage engine.

Example:
    >>> from content_repository import attach
    >>> repository = attach("filesystem", root="/srv/content")
    >>> root = repository.root_node()
    >>> root.type().name
    'fs:directory'
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from .config import RepositorySettings
from .engine.base import Engine, PathStatus, create_engine, load_engine
from .errors import NotFoundError
from .node import Node
from .paths import ROOT, normalize_path, split_property_path
from .property import Property
from .schema import NodeType, PropertyType, TypeRegistry

logger = logging.getLogger(__name__)


class Repository:
    """A typed, hierarchical view over an engine."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    @classmethod
    def attach(cls, engine: str, **options: Any) -> Repository:
        """Construct an engine by name and wrap it.

        Raises:
            EngineLoadError: If the engine name cannot be resolved
        """
        repository = cls(create_engine(engine, **options))
        logger.info(f"Attached {engine} repository")
        return repository

    @classmethod
    def from_settings(cls, settings: Optional[RepositorySettings] = None) -> Repository:
        """Attach the engine named in settings (environment by default)."""
        settings = settings or RepositorySettings()
        engine_cls = load_engine(settings.engine)
        from_settings = getattr(engine_cls, "from_settings", None)
        if from_settings is not None:
            return cls(from_settings(settings))
        return cls(engine_cls())

    @property
    def engine(self) -> Engine:
        return self._engine

    @property
    def registry(self) -> TypeRegistry:
        return self._engine.registry

    @property
    def namespaces(self) -> Mapping[str, str]:
        """Namespace prefix to URI, as declared by the engine."""
        return dict(self._engine.namespaces)

    def node_type(self, type_name: str) -> Optional[NodeType]:
        """Look up a node type by name.

        Raises:
            ValueError: If no name is given
        """
        if not type_name:
            raise ValueError("no type name given for lookup")
        return self._engine.node_type_named(type_name)

    def property_type(self, type_name: str) -> Optional[PropertyType]:
        """Look up a property type by name.

        Raises:
            ValueError: If no name is given
        """
        if not type_name:
            raise ValueError("no type name given for lookup")
        return self._engine.property_type_named(type_name)

    def root_node(self) -> Node:
        return Node(self, ROOT)

    def node(self, path: str) -> Node:
        """Node at ``path``.

        Raises:
            NotFoundError: If no node exists there
        """
        path = normalize_path(path)
        if self._engine.path_exists(path) is not PathStatus.NODE_EXISTS:
            raise NotFoundError(f'no node found at path "{path}"', path)
        return Node(self, path)

    def property(self, path: str) -> Property:
        """Property at ``path`` ("<node path>/<ns:name>").

        Raises:
            NotFoundError: If no property exists there
        """
        node_path, name = split_property_path(path)
        return Node(self, node_path).property(name)


def attach(engine: str, **options: Any) -> Repository:
    """Construct an engine by name and wrap it in a Repository.

    Args:
        engine: Engine name ("filesystem", "memory", ...) or qualified class name
        **options: Engine constructor arguments

    Raises:
        EngineLoadError: If the engine name cannot be resolved
        ConfigError: If the engine rejects its options
    """
    return Repository.attach(engine, **options)

"""
In-memory engine for testing.

This module provides a simple in-memory engine for:
- Unit tests of the node and property views
- Trying out custom schemas without touching the filesystem
- Local development

Unlike the filesystem engine, the tree is built through add_node() and
set_property(), and every write is validated against the schema:
abstract types, allowed child names and types, property mutability and
requiredness.

Invariants:
    - All data is lost when the engine is discarded
    - The registry is frozen before any node is created
    - The root node always exists and cannot be removed

How to change safely:
    - Keep the read operations identical in behavior to the Engine
      contract so view tests stay meaningful
"""

from __future__ import annotations

import io
import logging
from typing import IO, Any, Dict, List, Mapping, Optional

from ..errors import ConfigError, NotFoundError, RequiredPropertyError, ValidationError
from ..paths import ROOT, basename, dirname, normalize_path, split_property_path
from ..schema import NodeType, PropertyType, TypeRegistry
from .base import READ_MODE, Engine, PathStatus, register_engine

logger = logging.getLogger(__name__)

MEM_NAMESPACE = "http://contentment.org/content-repository/engine/memory"

DEFAULT_SCHEMA: Dict[str, Any] = {
    "property_types": [
        {"name": "mem:text", "updatable": True, "removable": True},
        {"name": "mem:label", "updatable": True, "auto_created": True, "default": ""},
    ],
    "node_types": [
        {
            "name": "mem:node",
            "abstract": True,
            "child_properties": {"mem:title": "mem:label"},
            "mutable": True,
        },
        {
            "name": "mem:folder",
            "supertypes": ["mem:node"],
            "child_nodes": {"*": ["mem:node"]},
            "mutable": True,
        },
        {
            "name": "mem:document",
            "supertypes": ["mem:node"],
            "child_properties": {"mem:body": "mem:text"},
            "mutable": True,
        },
    ],
}


@register_engine("memory", "Memory")
class MemoryEngine(Engine):
    """In-memory implementation of the Engine contract.

    Attributes:
        root_type: Node type name of the root node

    Example:
        >>> engine = MemoryEngine()
        >>> engine.add_node("/notes", "mem:document", {"mem:body": "hello"})
        '/notes'
        >>> engine.get_scalar("/notes/mem:body")
        'hello'
    """

    def __init__(
        self,
        registry: Optional[TypeRegistry] = None,
        schema: Optional[Mapping[str, Any]] = None,
        root_type: str = "mem:folder",
        namespaces: Optional[Mapping[str, str]] = None,
    ) -> None:
        """Initialize an empty tree holding only the root node.

        Args:
            registry: Types to use; frozen here if it is not already
            schema: Schema document used when no registry is given
            root_type: Node type of the root node
            namespaces: Namespace prefixes to advertise

        Raises:
            ConfigError: If both registry and schema are given, or the
                root type is unknown or abstract
        """
        if registry is not None and schema is not None:
            raise ConfigError('Give either "registry" or "schema", not both.')
        default_schema = registry is None and schema is None
        if registry is None:
            registry = TypeRegistry.from_dict(schema if schema is not None else DEFAULT_SCHEMA)
        if not registry.frozen:
            registry.freeze()
        super().__init__(registry)

        node_type = registry.node_type(root_type)
        if node_type is None:
            raise ConfigError(f"Unknown root node type '{root_type}'", root_type=root_type)
        if node_type.abstract:
            raise ConfigError(f"Root node type '{root_type}' is abstract", root_type=root_type)

        self.root_type = root_type
        if namespaces is not None:
            self.namespaces = dict(namespaces)
        elif default_schema:
            self.namespaces = {"mem": MEM_NAMESPACE}

        self._nodes: Dict[str, str] = {}
        self._children: Dict[str, List[str]] = {}
        self._properties: Dict[str, Dict[str, Any]] = {}
        self._create(ROOT, node_type, {})

    def _require_node(self, path: str) -> str:
        path = normalize_path(path)
        if path not in self._nodes:
            raise NotFoundError(f'no node found at path "{path}"', path)
        return path

    def _node_type(self, path: str) -> NodeType:
        return self.registry.node_type(self._nodes[path])

    def _property_type(self, node_type: NodeType, node_path: str, name: str) -> PropertyType:
        type_name = node_type.effective_child_properties().get(name)
        if type_name is None:
            raise NotFoundError(
                f'no property named "{name}" for node "{node_path}"',
                normalize_path(node_path, name),
            )
        return self.registry.property_type(type_name)

    def _create(self, path: str, node_type: NodeType, properties: Mapping[str, Any]) -> None:
        values: Dict[str, Any] = {}
        for name, type_name in node_type.effective_child_properties().items():
            property_type = self.registry.property_type(type_name)
            if property_type.auto_created and property_type.default is not None:
                values[name] = property_type.deflate(property_type.default)

        for name, value in properties.items():
            property_type = self._property_type(node_type, path, name)
            if value is None:
                values.pop(name, None)
                continue
            property_type.value_type.check(value)
            values[name] = property_type.deflate(value)

        for name, type_name in node_type.effective_child_properties().items():
            property_type = self.registry.property_type(type_name)
            if not property_type.removable and name not in values:
                raise RequiredPropertyError(property_type.name)

        self._nodes[path] = node_type.name
        self._children[path] = []
        self._properties[path] = values
        logger.debug(f"Created node {path} ({node_type.name})")

        for child_name, type_names in node_type.effective_child_nodes().items():
            if child_name == "*" or len(type_names) != 1:
                continue
            child_type = self.registry.node_type(type_names[0])
            if child_type.auto_created and not child_type.abstract:
                self.add_node(normalize_path(path, child_name), child_type.name)

    def add_node(
        self,
        path: str,
        type_name: str,
        properties: Optional[Mapping[str, Any]] = None,
    ) -> str:
        """Create a node.

        Args:
            path: Path of the new node
            type_name: Its node type
            properties: Initial property values (validated by value type)

        Returns:
            The normalised path of the new node

        Raises:
            NotFoundError: If the parent does not exist
            ValidationError: If the node exists, the type is unknown or
                abstract, or the parent does not allow the child
        """
        path = normalize_path(path)
        if path in self._nodes:
            raise ValidationError(f'node already exists at path "{path}"')

        parent_path = self._require_node(dirname(path))
        node_type = self.registry.node_type(type_name)
        if node_type is None:
            raise ValidationError(f"Unknown node type '{type_name}'")
        if node_type.abstract:
            raise ValidationError(f"Node type '{type_name}' is abstract and cannot back a node")

        parent_type = self._node_type(parent_path)
        name = basename(path)
        if not parent_type.allows_child(name, type_name):
            raise ValidationError(
                f"Node type '{parent_type.name}' does not allow a child "
                f"'{name}' of type '{type_name}'"
            )

        self._create(path, node_type, properties or {})
        self._children[parent_path].append(name)
        return path

    def remove_node(self, path: str) -> None:
        """Remove a node and everything below it.

        Raises:
            NotFoundError: If the node does not exist
            ValidationError: If the node is the root or its type is required
        """
        path = self._require_node(path)
        if path == ROOT:
            raise ValidationError("The root node cannot be removed")
        node_type = self._node_type(path)
        if node_type.required:
            raise ValidationError(f"Node at \"{path}\" is required and may not be removed")

        self._children[dirname(path)].remove(basename(path))
        self._discard(path)

    def _discard(self, path: str) -> None:
        for child in self._children.pop(path):
            self._discard(normalize_path(path, child))
        del self._nodes[path]
        del self._properties[path]
        logger.debug(f"Removed node {path}")

    def set_property(self, path: str, value: Any) -> None:
        """Store a property value; None removes the property.

        Raises:
            NotFoundError: If the node is missing or does not define the property
            ValidationError: If the property type rejects the value
        """
        node_path, name = split_property_path(path)
        node_path = self._require_node(node_path)
        property_type = self._property_type(self._node_type(node_path), node_path, name)

        property_type.check(value)
        if value is None:
            self._properties[node_path].pop(name, None)
        else:
            self._properties[node_path][name] = property_type.deflate(value)

    def path_exists(self, path: str) -> PathStatus:
        path = normalize_path(path)
        if path in self._nodes:
            return PathStatus.NODE_EXISTS
        node_path, name = split_property_path(path)
        if name in self._properties.get(node_path, {}):
            return PathStatus.PROPERTY_EXISTS
        return PathStatus.NOT_EXISTS

    def node_type_of(self, path: str) -> NodeType:
        return self._node_type(self._require_node(path))

    def nodes_in(self, path: str) -> List[str]:
        path = self._require_node(path)
        # insertion order is only meaningful for ordered node types
        if self._node_type(path).ordered:
            return list(self._children[path])
        return sorted(self._children[path])

    def properties_in(self, path: str) -> List[str]:
        """Names of the properties that currently hold a value.

        Unlike the filesystem engine, where every defined property always
        has a value, a removable property that was never set or has been
        removed is not listed. This keeps properties_in consistent with
        path_exists and get_scalar.
        """
        return list(self._properties[self._require_node(path)])

    def get_scalar(self, path: str) -> Any:
        node_path, name = split_property_path(path)
        values = self._properties[self._require_node(node_path)]
        if name not in values:
            raise NotFoundError(
                f'no "{name}" property associated with node at "{node_path}"', path
            )
        return values[name]

    def get_handle(self, path: str, mode: Optional[str] = READ_MODE) -> IO[Any]:
        self.check_mode(mode, path)
        value = self.get_scalar(path)
        if isinstance(value, bytes):
            return io.BytesIO(value)
        return io.StringIO(str(value))

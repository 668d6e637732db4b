"""
Type registry for the content repository.

The TypeRegistry is the authority for the value, property and node types
an engine exposes. It provides:
- Registration of value, property and node types
- Lookup by name
- Schema validation (unknown references, inheritance cycles)
- Freeze mechanism to prevent modification after initialization

Invariants:
    - Registry is mutable during engine initialization, frozen afterwards
    - Once frozen, no new types can be registered
    - Type names are unique per kind
    - Each engine owns its own registry; there is no process-wide table

How to change safely:
    - Register all types before calling freeze()
    - Node types only resolve supertypes once registered here

Example:
    >>> registry = TypeRegistry()
    >>> registry.register_property_type(PropertyType(name="my:text", updatable=True))
    >>> registry.register_node_type(NodeType(name="my:doc", child_properties={"my:body": "my:text"}))
    >>> registry.freeze()
    >>> registry.node_type("my:doc").name
    'my:doc'
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterator, List, Mapping, Optional

from ..errors import (
    ConfigError,
    DuplicateRegistrationError,
    InheritanceCycleError,
    RegistryFrozenError,
)
from .types import WILDCARD, NodeType, PropertyType
from .values import BUILTIN_VALUE_TYPES, ValueKind, ValueType

logger = logging.getLogger(__name__)


class TypeRegistry:
    """Registry for value, property and node type definitions.

    Attributes:
        frozen: Whether the registry is frozen (immutable)

    Example:
        >>> registry = TypeRegistry()
        >>> registry.register_node_type(NodeType(name="my:leaf"))
        >>> registry.node_type("my:leaf")
        NodeType(name='my:leaf', ...)
    """

    def __init__(self) -> None:
        """Initialize an empty, mutable registry holding the built-in value types."""
        self._value_types: Dict[str, ValueType] = {}
        self._property_types: Dict[str, PropertyType] = {}
        self._node_types: Dict[str, NodeType] = {}
        self._frozen = False

        for value_type in BUILTIN_VALUE_TYPES:
            self.register_value_type(value_type)

    @property
    def frozen(self) -> bool:
        """Whether the registry is frozen."""
        return self._frozen

    def _check_mutable(self, kind: str, name: str) -> None:
        if self._frozen:
            raise RegistryFrozenError(
                f"Cannot register {kind} '{name}': registry is frozen"
            )

    def register_value_type(self, value_type: ValueType) -> None:
        """Register a value type definition.

        Raises:
            RegistryFrozenError: If registry is frozen
            DuplicateRegistrationError: If the name is already registered
        """
        self._check_mutable("value type", value_type.name)
        if value_type.name in self._value_types:
            raise DuplicateRegistrationError(
                f"Value type name '{value_type.name}' already registered",
                value_type.name,
            )
        self._value_types[value_type.name] = value_type
        logger.debug(f"Registered value type: {value_type.name}")

    def register_property_type(self, property_type: PropertyType) -> None:
        """Register a property type definition.

        Raises:
            RegistryFrozenError: If registry is frozen
            DuplicateRegistrationError: If the name is already registered
        """
        self._check_mutable("property type", property_type.name)
        if property_type.name in self._property_types:
            raise DuplicateRegistrationError(
                f"Property type name '{property_type.name}' already registered",
                property_type.name,
            )
        if property_type.value_type.name not in self._value_types:
            logger.warning(
                f"Property type '{property_type.name}' uses unregistered "
                f"value type '{property_type.value_type.name}'"
            )
        self._property_types[property_type.name] = property_type
        logger.debug(f"Registered property type: {property_type.name}")

    def register_node_type(self, node_type: NodeType) -> None:
        """Register a node type definition and bind it to this registry.

        Supertypes do not need to be registered first; they are resolved
        by name when effective maps are computed.

        Raises:
            RegistryFrozenError: If registry is frozen
            DuplicateRegistrationError: If the name is already registered
        """
        self._check_mutable("node type", node_type.name)
        if node_type.name in self._node_types:
            raise DuplicateRegistrationError(
                f"Node type name '{node_type.name}' already registered",
                node_type.name,
            )
        node_type.bind(self)
        self._node_types[node_type.name] = node_type
        logger.debug(
            f"Registered node type: {node_type.name} (supertypes={list(node_type.supertypes)})"
        )

    def value_type(self, name: str) -> Optional[ValueType]:
        """Get a value type by name, or None."""
        return self._value_types.get(name)

    def property_type(self, name: str) -> Optional[PropertyType]:
        """Get a property type by name, or None."""
        return self._property_types.get(name)

    def node_type(self, name: str) -> Optional[NodeType]:
        """Get a node type by name, or None."""
        return self._node_types.get(name)

    def value_types(self) -> Iterator[ValueType]:
        """Iterate over all registered value types."""
        yield from self._value_types.values()

    def property_types(self) -> Iterator[PropertyType]:
        """Iterate over all registered property types."""
        yield from self._property_types.values()

    def node_types(self) -> Iterator[NodeType]:
        """Iterate over all registered node types."""
        yield from self._node_types.values()

    def validate_all(self) -> List[str]:
        """Validate all registered types for consistency.

        Returns:
            List of validation errors (empty if valid)
        """
        errors: List[str] = []

        for node in self._node_types.values():
            for supertype in node.supertypes:
                if supertype not in self._node_types:
                    errors.append(
                        f"Node type '{node.name}' inherits from unknown node type '{supertype}'"
                    )

            for child_name, type_names in node.child_nodes.items():
                for type_name in type_names:
                    if type_name not in self._node_types:
                        label = "any child" if child_name == WILDCARD else f"child '{child_name}'"
                        errors.append(
                            f"Node type '{node.name}' allows {label} of unknown node type '{type_name}'"
                        )

            for prop_name, type_name in node.child_properties.items():
                if type_name not in self._property_types:
                    errors.append(
                        f"Property '{prop_name}' in node type '{node.name}' "
                        f"references unknown property type '{type_name}'"
                    )

        if errors:
            return errors

        reported: set[frozenset[str]] = set()
        for node in self._node_types.values():
            try:
                node.ancestors()
            except InheritanceCycleError as e:
                members = frozenset(e.cycle)
                if members not in reported:
                    reported.add(members)
                    errors.append(e.message)

        return errors

    def freeze(self) -> None:
        """Validate and freeze the registry.

        After freezing, no new types can be registered and node types
        may memoise their effective maps.

        Raises:
            RegistryFrozenError: If already frozen
            ConfigError: If validate_all() reports problems
        """
        if self._frozen:
            raise RegistryFrozenError("Registry is already frozen")

        errors = self.validate_all()
        if errors:
            raise ConfigError(
                f"Invalid schema: {'; '.join(errors)}",
                code="INVALID_SCHEMA",
                errors=errors,
            )

        self._frozen = True
        logger.info(
            f"Type registry frozen with {len(self._node_types)} node types, "
            f"{len(self._property_types)} property types, "
            f"{len(self._value_types)} value types"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert registry to dictionary representation.

        Returns:
            Dictionary with 'value_types', 'property_types' and
            'node_types' lists, sorted by name for determinism.
        """
        return {
            "value_types": [
                self._value_types[name].to_dict() for name in sorted(self._value_types)
            ],
            "property_types": [
                self._property_types[name].to_dict() for name in sorted(self._property_types)
            ],
            "node_types": [
                self._node_types[name].to_dict() for name in sorted(self._node_types)
            ],
        }

    def to_json(self, indent: Optional[int] = 2) -> str:
        """Convert registry to JSON string."""
        return json.dumps(self.to_dict(), indent=indent, sort_keys=True)

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        value_types: Optional[List[ValueType]] = None,
    ) -> TypeRegistry:
        """Create registry from dictionary representation.

        Value types are matched by name. Serialised value types that are
        not built in and not passed in ``value_types`` are registered
        without hooks.

        Args:
            data: Dictionary with 'property_types' and 'node_types'
            value_types: Value types carrying hooks to register first

        Returns:
            New TypeRegistry with types registered (not frozen)
        """
        registry = cls()
        for value_type in value_types or ():
            registry.register_value_type(value_type)
        for value_data in data.get("value_types", []):
            if registry.value_type(value_data["name"]) is None:
                registry.register_value_type(
                    ValueType(
                        name=value_data["name"],
                        kind=ValueKind.from_str(value_data.get("kind", "scalar")),
                        description=value_data.get("description", ""),
                    )
                )
        for prop_data in data.get("property_types", []):
            registry.register_property_type(
                PropertyType.from_dict(prop_data, registry.value_type)
            )
        for node_data in data.get("node_types", []):
            registry.register_node_type(NodeType.from_dict(node_data))
        return registry

    @classmethod
    def from_json(cls, json_str: str) -> TypeRegistry:
        """Create registry from JSON string."""
        return cls.from_dict(json.loads(json_str))

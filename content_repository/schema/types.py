"""
Core type definitions for the content repository schema.

This module defines the schema descriptors for the node hierarchy:
- PropertyType: A named field on a node, with mutability rules
- NodeType: A node schema with child nodes, properties and supertypes

Invariants:
    - Names are namespaced strings ("ns:local") and identify a type
    - Types are immutable once constructed
    - Supertypes are referenced by name and resolved through the owning
      registry on demand, never held directly
    - Effective maps are the supertypes' effective maps folded in
      declaration order (later wins), overlaid by own declarations

How to change safely:
    - Add new types to a registry, never mutate a registered one
    - Run TypeRegistry.validate_all() after changing a schema document

Example:
    >>> from content_repository.schema import NodeType, PropertyType, TypeRegistry
    >>> registry = TypeRegistry()
    >>> registry.register_property_type(PropertyType(name="my:text", updatable=True))
    >>> registry.register_node_type(NodeType(
    ...     name="my:base", abstract=True,
    ...     child_properties={"my:title": "my:text"},
    ... ))
    >>> registry.register_node_type(NodeType(name="my:page", supertypes=("my:base",)))
    >>> registry.node_type("my:page").effective_child_properties()
    {'my:title': 'my:text'}
"""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field as dataclass_field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from ..errors import (
    ConfigError,
    ImmutablePropertyError,
    InheritanceCycleError,
    RequiredPropertyError,
)
from .values import SCALAR, ValueType

if TYPE_CHECKING:
    from .registry import TypeRegistry

WILDCARD = "*"


@dataclass(frozen=True)
class PropertyType:
    """Definition of a property that may be attached to a node.

    Attributes:
        name: Namespaced identifier
        value_type: Conversion and validation of the stored value
        auto_created: Whether the property is created with its node
        updatable: Whether the stored value may change
        removable: Whether the property may be unset or deleted
        default: Value used when the property is auto-created
        engine_default: Whether the engine derives the value itself
            (e.g. from file metadata) instead of using ``default``
        description: Human-readable description

    Invariants:
        - An auto-created property must have a derivable default
        - check() rejects writes to non-updatable properties before
          looking at the value

    Example:
        >>> title = PropertyType(name="my:title", updatable=True, removable=False)
        >>> title.check("Hello")
        >>> title.check(None)
        Traceback (most recent call last):
        ...
        content_repository.errors.RequiredPropertyError: ...
    """

    name: str
    value_type: ValueType = SCALAR
    auto_created: bool = False
    updatable: bool = False
    removable: bool = False
    default: Any = None
    engine_default: bool = False
    description: str = ""

    def __post_init__(self) -> None:
        """Validate property type definition."""
        if not self.name:
            raise ConfigError('The "name" argument must be given.')
        if self.auto_created and self.default is None and not self.engine_default:
            raise ConfigError(
                'The "default" argument must be given if "auto_created" is true.',
                property_type=self.name,
            )

    def check(self, value: Any) -> None:
        """Check that a value may be stored in a property of this type.

        Precedence is fixed: immutability, then requiredness, then the
        value type's own check.

        Raises:
            ImmutablePropertyError: If the type is not updatable
            RequiredPropertyError: If value is None and the type is not removable
            ValidationError: If the value type rejects the value
        """
        if not self.updatable:
            raise ImmutablePropertyError(self.name)

        if not self.removable and value is None:
            raise RequiredPropertyError(self.name)

        if value is None:
            return

        self.value_type.check(value)

    def inflate(self, raw: Any) -> Any:
        """Inflate a stored value through the value type."""
        return self.value_type.inflate(raw)

    def deflate(self, value: Any) -> Any:
        """Deflate a value through the value type."""
        return self.value_type.deflate(value)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation for serialization."""
        result: Dict[str, Any] = {
            "name": self.name,
            "value_type": self.value_type.name,
        }
        if self.auto_created:
            result["auto_created"] = True
        if self.updatable:
            result["updatable"] = True
        if self.removable:
            result["removable"] = True
        if self.default is not None:
            result["default"] = self.default
        if self.engine_default:
            result["engine_default"] = True
        if self.description:
            result["description"] = self.description
        return result

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        value_types: Callable[[str], Optional[ValueType]],
    ) -> PropertyType:
        """Create from dictionary representation.

        Args:
            data: Serialised property type
            value_types: Lookup returning a value type by name

        Raises:
            ConfigError: If the value type name is unknown
        """
        value_type_name = data.get("value_type", SCALAR.name)
        value_type = value_types(value_type_name)
        if value_type is None:
            raise ConfigError(
                f"Property type '{data.get('name')}' references unknown "
                f"value type '{value_type_name}'"
            )
        return cls(
            name=data.get("name", ""),
            value_type=value_type,
            auto_created=data.get("auto_created", False),
            updatable=data.get("updatable", False),
            removable=data.get("removable", False),
            default=data.get("default"),
            engine_default=data.get("engine_default", False),
            description=data.get("description", ""),
        )

    def __hash__(self) -> int:
        return hash(self.name)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PropertyType):
            return NotImplemented
        return self.name == other.name


def _normalize_child_nodes(
    child_nodes: Mapping[str, Union[str, Tuple[str, ...], List[str]]],
) -> Mapping[str, Tuple[str, ...]]:
    normalized: Dict[str, Tuple[str, ...]] = {}
    for child_name, type_names in child_nodes.items():
        if isinstance(type_names, str):
            normalized[child_name] = (type_names,)
        else:
            normalized[child_name] = tuple(type_names)
    return MappingProxyType(normalized)


@dataclass(frozen=True)
class NodeType:
    """Definition of a node type.

    Attributes:
        name: Namespaced identifier
        abstract: May only be inherited from, never back a node
        supertypes: Names of the node types inherited from, in order
        child_nodes: Child node name (or "*") to allowed node type names
        child_properties: Property name to property type name
        auto_created: Created implicitly with its parent
        mutable: Whether the node itself may be modified
        required: Whether the node may not be removed from its parent
        ordered: Whether child node order is significant
        description: Human-readable description

    Invariants:
        - Only child_nodes and child_properties are inherited
        - A supertype is a name looked up through the registry the type
          is registered with
        - Cycles in the supertype graph raise InheritanceCycleError

    Example:
        >>> directory = NodeType(
        ...     name="fs:directory",
        ...     supertypes=("fs:object",),
        ...     child_nodes={"*": "fs:object"},
        ... )
    """

    name: str
    abstract: bool = False
    supertypes: Tuple[str, ...] = dataclass_field(default_factory=tuple)
    child_nodes: Mapping[str, Tuple[str, ...]] = dataclass_field(default_factory=dict)
    child_properties: Mapping[str, str] = dataclass_field(default_factory=dict)
    auto_created: bool = False
    mutable: bool = False
    required: bool = False
    ordered: bool = False
    description: str = ""
    _registry: Optional[TypeRegistry] = dataclass_field(
        default=None, init=False, repr=False, compare=False
    )
    _memo: Dict[str, Any] = dataclass_field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        """Validate and normalise node type definition."""
        if not self.name:
            raise ConfigError('The "name" argument must be given.')
        if isinstance(self.supertypes, str):
            object.__setattr__(self, "supertypes", (self.supertypes,))
        else:
            object.__setattr__(self, "supertypes", tuple(self.supertypes))
        object.__setattr__(self, "child_nodes", _normalize_child_nodes(self.child_nodes))
        object.__setattr__(
            self, "child_properties", MappingProxyType(dict(self.child_properties))
        )

    def bind(self, registry: TypeRegistry) -> None:
        """Attach the registry used to resolve supertype names.

        Called by TypeRegistry.register_node_type. Supertypes stay names
        and are looked up through this registry on demand.
        """
        object.__setattr__(self, "_registry", registry)
        self._memo.clear()

    @property
    def registry(self) -> TypeRegistry:
        """The registry this type resolves supertypes through.

        Raises:
            ConfigError: If the type has not been registered
        """
        registry = self._registry
        if registry is None:
            raise ConfigError(
                f"Node type '{self.name}' is not bound to a registry",
                node_type=self.name,
            )
        return registry

    def _supertype(self, name: str) -> NodeType:
        supertype = self.registry.node_type(name)
        if supertype is None:
            raise ConfigError(
                f"Node type '{self.name}' inherits from unknown node type '{name}'",
                node_type=self.name,
                supertype=name,
            )
        return supertype

    def _effective(self, attr: str, chain: Tuple[str, ...]) -> Dict[str, Any]:
        if self.name in chain:
            start = chain.index(self.name)
            raise InheritanceCycleError(list(chain[start:]) + [self.name])

        if attr in self._memo:
            return dict(self._memo[attr])

        merged: Dict[str, Any] = {}
        for supertype_name in self.supertypes:
            supertype = self._supertype(supertype_name)
            merged.update(supertype._effective(attr, chain + (self.name,)))
        merged.update(getattr(self, attr))

        if self.supertypes and self.registry.frozen:
            self._memo[attr] = dict(merged)
        return merged

    def effective_child_nodes(self) -> Dict[str, Tuple[str, ...]]:
        """All allowed child nodes, including those inherited.

        Returns:
            Mapping of child name (or "*") to allowed node type names
        """
        return self._effective("child_nodes", ())

    def effective_child_properties(self) -> Dict[str, str]:
        """All allowed properties, including those inherited.

        Returns:
            Mapping of property name to property type name
        """
        return self._effective("child_properties", ())

    def ancestors(self) -> List[str]:
        """All transitive supertype names, nearest first, without duplicates.

        Raises:
            InheritanceCycleError: If the supertype graph has a cycle
        """
        found: List[str] = []

        def visit(node_type: NodeType, chain: Tuple[str, ...]) -> None:
            for supertype_name in node_type.supertypes:
                if supertype_name in chain:
                    start = chain.index(supertype_name)
                    raise InheritanceCycleError(list(chain[start:]) + [supertype_name])
                if supertype_name not in found:
                    found.append(supertype_name)
                visit(node_type._supertype(supertype_name), chain + (supertype_name,))

        visit(self, (self.name,))
        return found

    def is_subtype_of(self, name: str) -> bool:
        """Whether this type is ``name`` or inherits from it."""
        if name == self.name:
            return True
        if not self.supertypes:
            return False
        return name in self.ancestors()

    def allowed_child_types(self, child_name: str) -> Tuple[str, ...]:
        """Node type names allowed for a child called ``child_name``.

        Explicitly listed names win; anything else falls back to the
        wildcard entry.
        """
        child_nodes = self.effective_child_nodes()
        if child_name in child_nodes:
            return child_nodes[child_name]
        return child_nodes.get(WILDCARD, ())

    def allows_child(self, child_name: str, type_name: str) -> bool:
        """Whether a child node of type ``type_name`` may be called ``child_name``."""
        child_type = self.registry.node_type(type_name)
        if child_type is None:
            return False
        return any(child_type.is_subtype_of(allowed) for allowed in self.allowed_child_types(child_name))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        result: Dict[str, Any] = {"name": self.name}
        if self.abstract:
            result["abstract"] = True
        if self.supertypes:
            result["supertypes"] = list(self.supertypes)
        if self.child_nodes:
            result["child_nodes"] = {k: list(v) for k, v in self.child_nodes.items()}
        if self.child_properties:
            result["child_properties"] = dict(self.child_properties)
        for flag in ("auto_created", "mutable", "required", "ordered"):
            if getattr(self, flag):
                result[flag] = True
        if self.description:
            result["description"] = self.description
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> NodeType:
        """Create from dictionary representation."""
        return cls(
            name=data.get("name", ""),
            abstract=data.get("abstract", False),
            supertypes=tuple(data.get("supertypes", ())),
            child_nodes=data.get("child_nodes", {}),
            child_properties=data.get("child_properties", {}),
            auto_created=data.get("auto_created", False),
            mutable=data.get("mutable", False),
            required=data.get("required", False),
            ordered=data.get("ordered", False),
            description=data.get("description", ""),
        )

    def __hash__(self) -> int:
        """Hash based on name (stable identifier)."""
        return hash(self.name)

    def __eq__(self, other: object) -> bool:
        """Equality based on name."""
        if not isinstance(other, NodeType):
            return NotImplemented
        return self.name == other.name

"""
Property view.

A Property is identified by its parent node and its name. Its type is
looked up in the parent node type's effective property map on every
call.
"""

from __future__ import annotations

from difflib import get_close_matches
from typing import TYPE_CHECKING

from .errors import UnknownPropertyError
from .paths import normalize_path
from .value import Value

if TYPE_CHECKING:
    from .node import Node
    from .schema import PropertyType


class Property:
    """A named, typed field attached to one node."""

    def __init__(self, node: Node, name: str) -> None:
        self._node = node
        self._name = name

    @property
    def parent(self) -> Node:
        """The node this property belongs to."""
        return self._node

    @property
    def name(self) -> str:
        return self._name

    @property
    def path(self) -> str:
        return normalize_path(self._node.path, self._name)

    def type(self) -> PropertyType:
        """Property type from the parent node type's effective map.

        Raises:
            UnknownPropertyError: If the node type does not define this name
        """
        node_type = self._node.type()
        property_types = node_type.effective_child_properties()
        type_name = property_types.get(self._name)
        if type_name is None:
            raise UnknownPropertyError(
                self._name,
                node_type.name,
                get_close_matches(self._name, list(property_types), n=3),
            )

        property_type = self._node.repository.property_type(type_name)
        if property_type is None:
            raise UnknownPropertyError(self._name, node_type.name)
        return property_type

    def value(self) -> Value:
        """Value wrapper for reading and staging changes."""
        return Value(self._node.repository.engine, self.path, self.type())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Property):
            return NotImplemented
        return self._node == other._node and self._name == other._name

    def __hash__(self) -> int:
        return hash((self._node, self._name))

    def __repr__(self) -> str:
        return f"Property({self.path!r})"

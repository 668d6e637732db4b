"""
Node view.

A Node is identified by its repository and path. It holds no state
beyond memoised derived values (its name); children, properties and
type are read from the engine on every call, so external changes to the
backing store are visible immediately.

Invariants:
    - The root node is named "/" and is its own parent
    - Child paths are normalised ("." and ".." resolved)
"""

from __future__ import annotations

from functools import cached_property
from typing import TYPE_CHECKING, List

from .engine.base import PathStatus
from .errors import NotFoundError
from .paths import ROOT, basename, dirname, normalize_path
from .property import Property

if TYPE_CHECKING:
    from .repository import Repository
    from .schema import NodeType


class Node:
    """A path-addressed entity in the repository hierarchy.

    Example:
        >>> root = repository.root_node()
        >>> [child.name for child in root.nodes()]
        ['baz', 'foo']
        >>> root.parent.path
        '/'
    """

    def __init__(self, repository: Repository, path: str) -> None:
        self._repository = repository
        self._path = normalize_path(path)

    @property
    def repository(self) -> Repository:
        return self._repository

    @property
    def path(self) -> str:
        return self._path

    @cached_property
    def name(self) -> str:
        """Last path segment; the root node is called "/"."""
        return basename(self._path)

    @property
    def parent(self) -> Node:
        """The parent node. The root is its own parent."""
        return Node(self._repository, dirname(self._path))

    @property
    def is_root(self) -> bool:
        return self._path == ROOT

    def exists(self) -> bool:
        """Whether the engine still has a node at this path."""
        return self._repository.engine.path_exists(self._path) is PathStatus.NODE_EXISTS

    def type(self) -> NodeType:
        """Node type, as reported by the engine."""
        return self._repository.engine.node_type_of(self._path)

    def nodes(self) -> List[Node]:
        """Child nodes, freshly read from the engine."""
        return [
            Node(self._repository, normalize_path(self._path, name))
            for name in self._repository.engine.nodes_in(self._path)
        ]

    def properties(self) -> List[Property]:
        """Properties, freshly read from the engine."""
        return [Property(self, name) for name in self._repository.engine.properties_in(self._path)]

    def node(self, name: str) -> Node:
        """Child node called ``name``.

        Raises:
            NotFoundError: If there is no such child
        """
        child = Node(self._repository, normalize_path(self._path, name))
        if self._repository.engine.path_exists(child.path) is not PathStatus.NODE_EXISTS:
            raise NotFoundError(f'no node found at path "{child.path}"', child.path)
        return child

    def property(self, name: str) -> Property:
        """Property called ``name``.

        Raises:
            NotFoundError: If the node has no such property
        """
        prop = Property(self, name)
        if self._repository.engine.path_exists(prop.path) is not PathStatus.PROPERTY_EXISTS:
            raise NotFoundError(f'no property found at path "{prop.path}"', prop.path)
        return prop

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Node):
            return NotImplemented
        return self._repository is other._repository and self._path == other._path

    def __hash__(self) -> int:
        return hash((id(self._repository), self._path))

    def __repr__(self) -> str:
        return f"Node({self._path!r})"

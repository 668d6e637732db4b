"""
Base class and factory for repository storage engines.

This module defines the Engine contract every back end must implement,
the PathStatus result of existence checks, and the name -> class mapping
used to attach engines.

Invariants:
    - Every operation is keyed by an absolute, "/"-separated path
    - An engine owns exactly one TypeRegistry, frozen after construction
    - Operations are synchronous and surface failures immediately

How to change safely:
    - Contract changes require updating all implementations
    - New engines register themselves with @register_engine
"""

from __future__ import annotations

import inspect
import logging
import re
from abc import ABC, abstractmethod
from enum import Enum
from typing import IO, Any, Callable, Dict, List, Mapping, Optional, Type, TypeVar

from ..errors import ConfigError, EngineLoadError, NotFoundError, UnsupportedModeError
from ..paths import split_property_path
from ..schema import NodeType, PropertyType, TypeRegistry

logger = logging.getLogger(__name__)

READ_MODE = "<"

_ENGINE_NAME = re.compile(r"^[\w.:]+$")

_engines: Dict[str, Type["Engine"]] = {}

E = TypeVar("E", bound=Type["Engine"])


class PathStatus(Enum):
    """Result of Engine.path_exists."""

    NODE_EXISTS = "node"
    PROPERTY_EXISTS = "property"
    NOT_EXISTS = "none"


class Engine(ABC):
    """Contract for repository storage engines.

    Subclasses build and freeze a TypeRegistry in their constructor and
    implement the path operations. Type lookups and property type
    resolution are shared.

    Attributes:
        registry: Types exposed by this engine
        namespaces: Short namespace prefix to URI, informational only
    """

    namespaces: Mapping[str, str] = {}

    def __init__(self, registry: TypeRegistry) -> None:
        self.registry = registry

    def node_type_named(self, name: str) -> Optional[NodeType]:
        """Look up a node type by name."""
        return self.registry.node_type(name)

    def property_type_named(self, name: str) -> Optional[PropertyType]:
        """Look up a property type by name."""
        return self.registry.property_type(name)

    def property_type_of(self, path: str) -> PropertyType:
        """Property type of the property at ``path``.

        Raises:
            NotFoundError: If the parent node is missing or its type does
                not define the property
        """
        node_path, name = split_property_path(path)
        node_type = self.node_type_of(node_path)
        property_types = node_type.effective_child_properties()

        if name not in property_types:
            raise NotFoundError(f'no property named "{name}" for node "{node_path}"', path)

        property_type = self.property_type_named(property_types[name])
        if property_type is None:
            raise ConfigError(
                f"Node type '{node_type.name}' references unknown property type "
                f"'{property_types[name]}'"
            )
        return property_type

    def check_mode(self, mode: Optional[str], path: str) -> None:
        """Reject any stream mode other than read.

        An empty or missing mode means read.

        Raises:
            UnsupportedModeError: If mode is given and is not "<"
        """
        if mode and mode != READ_MODE:
            raise UnsupportedModeError(mode, path)

    @abstractmethod
    def path_exists(self, path: str) -> PathStatus:
        """Whether ``path`` names a node, a property, or nothing."""
        ...

    @abstractmethod
    def node_type_of(self, path: str) -> NodeType:
        """Node type of the node at ``path``.

        Raises:
            NotFoundError: If no node exists at path
        """
        ...

    @abstractmethod
    def nodes_in(self, path: str) -> List[str]:
        """Names of the child nodes of the node at ``path``.

        Raises:
            NotFoundError: If no node exists at path
        """
        ...

    @abstractmethod
    def properties_in(self, path: str) -> List[str]:
        """Names of the properties of the node at ``path``.

        Raises:
            NotFoundError: If no node exists at path
        """
        ...

    @abstractmethod
    def get_scalar(self, path: str) -> Any:
        """Raw value of the property at ``path``.

        Raises:
            NotFoundError: If the property does not exist
        """
        ...

    @abstractmethod
    def get_handle(self, path: str, mode: Optional[str] = READ_MODE) -> IO[Any]:
        """Stream over the value of the property at ``path``.

        The caller owns the returned stream and must close it.

        Raises:
            UnsupportedModeError: If mode is not supported
            NotFoundError: If the property does not exist
        """
        ...


def register_engine(name: str, *aliases: str) -> Callable[[E], E]:
    """Class decorator registering an engine under a name.

    The engine is also reachable by its fully qualified class name.

    Example:
        >>> @register_engine("memory", "Memory")
        ... class MemoryEngine(Engine):
        ...     ...
    """

    def decorator(cls: E) -> E:
        qualified = f"{cls.__module__}.{cls.__qualname__}"
        for key in (name, *aliases, qualified):
            existing = _engines.get(key)
            if existing is not None and existing is not cls:
                raise ConfigError(
                    f"Engine name '{key}' already registered for {existing.__qualname__}"
                )
            _engines[key] = cls
        logger.debug(f"Registered engine: {name} ({qualified})")
        return cls

    return decorator


def registered_engines() -> List[str]:
    """Short names and aliases of all registered engines."""
    _load_builtin_engines()
    return sorted(key for key, cls in _engines.items() if "." not in key)


def _load_builtin_engines() -> None:
    from . import filesystem, memory  # noqa: F401


def load_engine(name: str) -> Type[Engine]:
    """Resolve an engine identifier to its class.

    Args:
        name: Short name (e.g. "filesystem"), alias (e.g. "FileSystem")
            or fully qualified class name

    Returns:
        Engine class

    Raises:
        EngineLoadError: If the identifier is malformed or unknown
    """
    _load_builtin_engines()

    if not name or not _ENGINE_NAME.match(name):
        raise EngineLoadError(
            f"The given content repository engine, {name!r}, does not appear to be an engine name.",
            name,
        )

    engine_cls = _engines.get(name)
    if engine_cls is None:
        known = ", ".join(registered_engines())
        raise EngineLoadError(
            f"Failed to load engine '{name}': no such engine (known engines: {known})",
            name,
        )
    return engine_cls


def create_engine(name: str, **options: Any) -> Engine:
    """Construct an engine by name.

    Errors raised by the engine's constructor propagate unchanged.

    Raises:
        EngineLoadError: If the engine cannot be resolved
        ConfigError: If an option is not accepted by the engine
    """
    engine_cls = load_engine(name)
    accepted = inspect.signature(engine_cls).parameters
    unknown = sorted(key for key in options if key not in accepted)
    if any(p.kind is inspect.Parameter.VAR_KEYWORD for p in accepted.values()):
        unknown = []
    if unknown:
        raise ConfigError(
            f"Engine '{name}' does not accept option(s): {', '.join(unknown)}",
            engine=name,
            options=unknown,
        )
    logger.debug(f"Creating engine {engine_cls.__qualname__} with options {sorted(options)}")
    return engine_cls(**options)

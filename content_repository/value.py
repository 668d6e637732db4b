"""
Value wrapper for repository properties.

A Value ties a property path to its property type. Reads go to the
engine and are inflated; writes are checked against the property type
and held as a pending value until an engine persists them.

Invariants:
    - set() runs PropertyType.check before anything is stored
    - set(None) is the same as deleting the property
    - Without a pending value, get() always reads through to the engine
"""

from __future__ import annotations

from typing import IO, TYPE_CHECKING, Any, Optional

from .engine.base import READ_MODE

if TYPE_CHECKING:
    from .engine.base import Engine
    from .schema import PropertyType

_UNSET = object()


class Value:
    """Validated access to one property's value.

    Example:
        >>> value = node.property("fs:mode").value()
        >>> value.get()
        33188
        >>> value.set(0o100600)
        >>> value.has_changed
        True
    """

    def __init__(self, engine: Engine, path: str, property_type: PropertyType) -> None:
        self._engine = engine
        self._path = path
        self._type = property_type
        self._pending: Any = _UNSET

    @property
    def path(self) -> str:
        return self._path

    @property
    def type(self) -> PropertyType:
        return self._type

    @property
    def has_changed(self) -> bool:
        """Whether a value has been set since this wrapper was created."""
        return self._pending is not _UNSET

    @property
    def deleted(self) -> bool:
        """Whether the pending change deletes the property."""
        return self._pending is None

    def get_scalar(self) -> Any:
        """Raw stored value, straight from the engine."""
        return self._engine.get_scalar(self._path)

    def get_handle(self, mode: Optional[str] = READ_MODE) -> IO[Any]:
        """Stream over the stored value. The caller must close it."""
        return self._engine.get_handle(self._path, mode)

    def get(self) -> Any:
        """Inflated value: the pending value if one is set, else the stored one."""
        if self._pending is not _UNSET:
            return self._pending
        return self._type.inflate(self.get_scalar())

    def set(self, value: Any) -> None:
        """Check and stage a new value.

        Raises:
            ImmutablePropertyError: If the property type is not updatable
            RequiredPropertyError: If value is None and the type is not removable
            ValidationError: If the value type rejects the value
        """
        self._type.check(value)
        self._pending = value

    def delete(self) -> None:
        """Stage deletion of the property."""
        self.set(None)

    def deflated(self) -> Any:
        """Stored form of the current value."""
        value = self.get()
        if value is None:
            return None
        return self._type.deflate(value)

    def __repr__(self) -> str:
        return f"Value(path={self._path!r}, type={self._type.name!r})"

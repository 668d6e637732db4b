"""
Value types for the content repository schema.

A value type describes how a raw stored value is turned into a usable
in-memory value (inflate), back into its stored form (deflate), and how
a candidate value is validated (check).

Invariants:
    - check() never mutates the value or the value type
    - deflate(inflate(x)) == x for every x accepted by check()
    - The base value type accepts everything and converts nothing

How to change safely:
    - Custom conversions are supplied as hooks, never by mutating a
      shared instance, since one value type serves every property of a
      property type

Example:
    >>> upper = ValueType(
    ...     name="my:upper",
    ...     inflater=str.upper,
    ...     deflater=str.lower,
    ... )
    >>> upper.deflate(upper.inflate("hello"))
    'hello'
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from ..errors import ConfigError, ValidationError


class ValueKind(Enum):
    """Storage kind of a value.

    Lets an engine decide whether to materialize the whole value or
    expose it as a stream.
    """

    SCALAR = "scalar"
    HANDLE = "handle"

    @classmethod
    def from_str(cls, value: str) -> ValueKind:
        """Convert string representation to ValueKind.

        Raises:
            ConfigError: If value is not a valid kind
        """
        for kind in cls:
            if kind.value == value:
                return kind
        valid = [k.value for k in cls]
        raise ConfigError(f"Invalid value kind '{value}'. Valid kinds: {valid}")


@dataclass(frozen=True)
class ValueType:
    """Definition of a raw value representation.

    Attributes:
        name: Namespaced identifier (e.g. "rs:scalar")
        kind: Whether the value is a scalar or a stream
        checker: Optional callable raising ValidationError (or returning
            False) for invalid values
        inflater: Optional raw -> value conversion
        deflater: Optional value -> raw conversion
        description: Human-readable description
    """

    name: str
    kind: ValueKind = ValueKind.SCALAR
    checker: Optional[Callable[[Any], Any]] = None
    inflater: Optional[Callable[[Any], Any]] = None
    deflater: Optional[Callable[[Any], Any]] = None
    description: str = ""

    def __post_init__(self) -> None:
        if not self.name:
            raise ConfigError('The "name" argument must be given.')

    def check(self, value: Any) -> None:
        """Validate a value.

        Raises:
            ValidationError: If the checker rejects the value
        """
        if self.checker is None:
            return
        if self.checker(value) is False:
            raise ValidationError(
                f"Value {value!r} is not valid for value type '{self.name}'",
                property_type=None,
            )

    def inflate(self, raw: Any) -> Any:
        """Convert a stored value into its in-memory form."""
        if self.inflater is None:
            return raw
        return self.inflater(raw)

    def deflate(self, value: Any) -> Any:
        """Convert an in-memory value into its stored form."""
        if self.deflater is None:
            return value
        return self.deflater(value)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation. Hooks are not serialised."""
        result: dict[str, Any] = {"name": self.name, "kind": self.kind.value}
        if self.description:
            result["description"] = self.description
        return result


SCALAR = ValueType(name="rs:scalar", kind=ValueKind.SCALAR, description="Plain scalar value")
HANDLE = ValueType(name="rs:handle", kind=ValueKind.HANDLE, description="Streamed value")

BUILTIN_VALUE_TYPES = (SCALAR, HANDLE)

"""
Error types for the content repository.

This module defines every exception raised by the library:
- RepositoryError: Base exception
- ConfigError: Bad construction arguments or schema definitions
- ValidationError: A property value was rejected
- NotFoundError: A path does not resolve to a node or property
- UnknownPropertyError: A property name is not defined for a node type
- UnsupportedModeError: A stream was requested in an unsupported mode
- EngineLoadError: An engine identifier could not be resolved

Invariants:
    - All errors inherit from RepositoryError
    - Errors carry a machine readable code plus a details dict
    - Nothing is retried or recovered internally
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class RepositoryError(Exception):
    """Base exception for all content repository errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "REPOSITORY_ERROR"
        self.details = details or {}


class ConfigError(RepositoryError):
    """Invalid construction arguments.

    Raised when:
    - A type is created without a name
    - An auto-created property type has no derivable default
    - A filesystem root does not exist or is not a directory
    - A schema references unknown types
    """

    def __init__(self, message: str, code: str = "CONFIG_ERROR", **details: Any) -> None:
        super().__init__(message, code=code, details=details)


class InheritanceCycleError(ConfigError):
    """The supertype graph of a node type contains a cycle."""

    def __init__(self, cycle: List[str]) -> None:
        super().__init__(
            f"Inheritance cycle detected: {' -> '.join(cycle)}",
            code="INHERITANCE_CYCLE",
            cycle=cycle,
        )
        self.cycle = cycle


class RegistryFrozenError(ConfigError):
    """Raised when attempting to modify a frozen registry."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="REGISTRY_FROZEN")


class DuplicateRegistrationError(ConfigError):
    """Raised when attempting to register a type name twice."""

    def __init__(self, message: str, name: str) -> None:
        super().__init__(message, code="DUPLICATE_REGISTRATION", name=name)
        self.name = name


class ValidationError(RepositoryError):
    """Property value was rejected.

    Raised when a value type's check fails. The two subclasses below
    are raised by PropertyType.check before the value type is consulted.
    """

    def __init__(
        self,
        message: str,
        property_type: Optional[str] = None,
        code: str = "VALIDATION_ERROR",
    ) -> None:
        super().__init__(
            message,
            code=code,
            details={"property_type": property_type},
        )
        self.property_type = property_type


class ImmutablePropertyError(ValidationError):
    """Attempted to change a property whose type is not updatable."""

    def __init__(self, property_type: str) -> None:
        super().__init__(
            "Cannot change immutable property.",
            property_type=property_type,
            code="IMMUTABLE_PROPERTY",
        )


class RequiredPropertyError(ValidationError):
    """Attempted to unset a property whose type is not removable."""

    def __init__(self, property_type: str) -> None:
        super().__init__(
            "This property is required and may not be unset or deleted.",
            property_type=property_type,
            code="REQUIRED_PROPERTY",
        )


class NotFoundError(RepositoryError):
    """Path does not resolve to a node or property.

    Attributes:
        path: The repository path that was looked up
    """

    def __init__(self, message: str, path: str) -> None:
        super().__init__(message, code="NOT_FOUND", details={"path": path})
        self.path = path


class UnknownPropertyError(RepositoryError):
    """Property name is not defined for a node type.

    Includes suggestions for similar property names.

    Attributes:
        property_name: The unknown property
        type_name: The node type that was consulted
        suggestions: Similar property names
    """

    def __init__(
        self,
        property_name: str,
        type_name: str,
        suggestions: Optional[List[str]] = None,
    ) -> None:
        suggestions = suggestions or []
        msg = f"Unknown property '{property_name}' for node type '{type_name}'"
        if suggestions:
            msg += f". Did you mean: {', '.join(suggestions)}?"

        super().__init__(
            msg,
            code="UNKNOWN_PROPERTY",
            details={
                "property_name": property_name,
                "type_name": type_name,
                "suggestions": suggestions,
            },
        )
        self.property_name = property_name
        self.type_name = type_name
        self.suggestions = suggestions


class UnsupportedModeError(RepositoryError):
    """A stream was requested in a mode the engine does not support."""

    def __init__(self, mode: str, path: Optional[str] = None) -> None:
        super().__init__(
            f'invalid mode "{mode}" given',
            code="UNSUPPORTED_MODE",
            details={"mode": mode, "path": path},
        )
        self.mode = mode
        self.path = path


class EngineLoadError(RepositoryError):
    """An engine identifier could not be resolved to an engine class."""

    def __init__(self, message: str, engine: str) -> None:
        super().__init__(message, code="ENGINE_LOAD_ERROR", details={"engine": engine})
        self.engine = engine

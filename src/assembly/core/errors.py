"""
Structured error types for the distribution assembly.

Every failure raised while building or persisting the distribution tree is an
``AssemblyError`` subclass. Errors carry a category for routing, a structured
context (which node, which index value, which path) and an optional chained
cause. Nothing in the assembly retries: every error is fatal to the subtree
that raised it and surfaces to the caller of ``materialize``/``write``.

Manifesto:
    - **Typed hierarchy:** Contract, data, signing and storage failures are
      distinct types, so callers decide per sibling what to abort
    - **Rich context:** Errors know the node and index value they belong to
    - **Error chaining:** The original exception is kept as ``cause``
    - **No swallowing:** Errors are raised, never logged-and-continued

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                        AssemblyError                             │
        │              (category, context, cause)                          │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │  ContractError        ExportError       SigningError             │
        │  (CONTRACT)           (DATA)            (SIGNING)                │
        │       │                                                          │
        │  EmptyTrailError      StorageError      ConfigError              │
        │  TrailTypeError       (STORAGE)         (CONFIG)                 │
        │  NameCollisionError                          │                   │
        │  DuplicateIndexError                    MissingConfigError       │
        │                                         InvalidConfigError       │
        │  ValidationError      BuildCancelledError                        │
        │  (VALIDATION)         (CANCELLED)                                │
        └─────────────────────────────────────────────────────────────────┘

Examples:
    >>> error = SigningError("Private key not found").with_context(node="hour", index="03")
    >>> error.to_dict()["category"]
    'SIGNING'

Tags:
    errors, exceptions, error-handling, assembly

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Error categories for classification and routing."""

    CONTRACT = "CONTRACT"
    DATA = "DATA"
    SIGNING = "SIGNING"
    STORAGE = "STORAGE"
    CONFIG = "CONFIG"
    VALIDATION = "VALIDATION"
    CANCELLED = "CANCELLED"
    INTERNAL = "INTERNAL"
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Attributes:
        node: Name of the tree node (e.g. ``"hour"``) where the error occurred
        index: Formatted index value of the child being built (e.g. ``"03"``)
        path: Filesystem path being written, if any
        metadata: Additional key-value pairs
    """

    node: str | None = None
    index: str | None = None
    path: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["node", "index", "path"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class AssemblyError(Exception):
    """
    Base exception for all assembly errors.

    Subclasses set ``default_category``. Context can be added after creation
    with ``with_context()``, which is how a node annotates an error raised by
    one of its children before re-raising it.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> AssemblyError:
        """
        Add context to this error (fluent API).

        Usage:
            raise StorageError("Write failed").with_context(path="/out/index")
        """
        for key, value in kwargs.items():
            if key != "metadata" and hasattr(self.context, key):
                # Innermost context wins; outer nodes only fill gaps.
                if getattr(self.context, key) is None:
                    setattr(self.context, key, value)
            else:
                self.context.metadata.setdefault(key, value)
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONTRACT VIOLATIONS (programming errors in tree wiring)
# =============================================================================


class ContractError(AssemblyError):
    """A node was wired incorrectly. Indicates a programming error."""

    default_category = ErrorCategory.CONTRACT


class EmptyTrailError(ContractError):
    """``peek``/``pop`` on an empty ancestry trail."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Cannot {operation} an empty ancestry trail")


class TrailTypeError(ContractError):
    """The top of the trail is not of the index type expected at this depth."""

    def __init__(self, expected: type | tuple[type, ...], actual: Any):
        self.expected = expected
        self.actual = actual
        names = (
            " | ".join(t.__name__ for t in expected)
            if isinstance(expected, tuple)
            else expected.__name__
        )
        super().__init__(
            f"Expected index of type {names} on top of trail, "
            f"got {type(actual).__name__}: {actual!r}"
        )


class NameCollisionError(ContractError):
    """Two siblings would be persisted under the same name."""

    def __init__(self, name: str, values: list[Any] | None = None):
        self.name = name
        self.values = values or []
        detail = f" (index values {self.values!r})" if self.values else ""
        super().__init__(f"Sibling name collision on {name!r}{detail}")


class DuplicateIndexError(ContractError):
    """A child-index supplier returned the same index value twice."""

    def __init__(self, value: Any):
        self.value = value
        super().__init__(f"Child-index supplier returned duplicate value {value!r}")


# =============================================================================
# DATA / SIGNING / STORAGE
# =============================================================================


class ExportError(AssemblyError):
    """Export payload could not be built for a bucket."""

    default_category = ErrorCategory.DATA


class SigningError(AssemblyError):
    """Key material unavailable or signature computation failed."""

    default_category = ErrorCategory.SIGNING


class StorageError(AssemblyError):
    """Persisting a writable to disk failed."""

    default_category = ErrorCategory.STORAGE


# =============================================================================
# CONFIGURATION / VALIDATION
# =============================================================================


class ConfigError(AssemblyError):
    """
    Configuration error.

    Never recoverable at runtime - configuration must be fixed.
    """

    default_category = ErrorCategory.CONFIG


class MissingConfigError(ConfigError):
    """Required configuration is missing."""

    def __init__(self, key: str, message: str | None = None, **kwargs: Any):
        self.key = key
        super().__init__(message or f"Missing required configuration: {key}", **kwargs)


class InvalidConfigError(ConfigError):
    """Configuration value is invalid."""

    def __init__(self, key: str, value: Any, message: str | None = None):
        self.key = key
        self.value = value
        super().__init__(message or f"Invalid configuration for {key}: {value!r}")


class ValidationError(AssemblyError):
    """Input record failed validation."""

    default_category = ErrorCategory.VALIDATION

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        constraint: str | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value
        self.constraint = constraint

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.field:
            result["field"] = self.field
        if self.value is not None:
            result["value"] = repr(self.value)
        if self.constraint:
            result["constraint"] = self.constraint
        return result


class BuildCancelledError(AssemblyError):
    """The build was cancelled before every child was materialized."""

    default_category = ErrorCategory.CANCELLED


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def categorize_error(error: Exception) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, AssemblyError):
        return error.category
    if isinstance(error, OSError):
        return ErrorCategory.STORAGE
    if isinstance(error, (ValueError, TypeError)):
        return ErrorCategory.VALIDATION
    return ErrorCategory.UNKNOWN


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "AssemblyError",
    "ContractError",
    "EmptyTrailError",
    "TrailTypeError",
    "NameCollisionError",
    "DuplicateIndexError",
    "ExportError",
    "SigningError",
    "StorageError",
    "ConfigError",
    "MissingConfigError",
    "InvalidConfigError",
    "ValidationError",
    "BuildCancelledError",
    "categorize_error",
]

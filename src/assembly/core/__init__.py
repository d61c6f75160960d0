"""Assembly Core -- errors, structured logging and settings.

Architecture::

    errors.py          Structured error hierarchy (AssemblyError, ContractError)
    logging.py         structlog configuration and context helpers
    settings.py        pydantic-settings configuration (ASSEMBLY_* env vars)
"""

from assembly.core.errors import (
    AssemblyError,
    BuildCancelledError,
    ConfigError,
    ContractError,
    DuplicateIndexError,
    EmptyTrailError,
    ErrorCategory,
    ErrorContext,
    ExportError,
    InvalidConfigError,
    MissingConfigError,
    NameCollisionError,
    SigningError,
    StorageError,
    TrailTypeError,
    ValidationError,
    categorize_error,
)
from assembly.core.logging import (
    LogContext,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    unbind_context,
)

__all__ = [
    "AssemblyError",
    "BuildCancelledError",
    "ConfigError",
    "ContractError",
    "DuplicateIndexError",
    "EmptyTrailError",
    "ErrorCategory",
    "ErrorContext",
    "ExportError",
    "InvalidConfigError",
    "MissingConfigError",
    "NameCollisionError",
    "SigningError",
    "StorageError",
    "TrailTypeError",
    "ValidationError",
    "categorize_error",
    "LogContext",
    "bind_context",
    "clear_context",
    "configure_logging",
    "get_logger",
    "unbind_context",
    # "AssemblySettings", "get_settings"  # via assembly.core.settings (pydantic-settings)
]

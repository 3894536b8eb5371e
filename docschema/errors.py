# File: docschema/errors.py
"""
docschema - Error Taxonomy
==========================
Typed exceptions raised by the array-operation processor and the
mutation/resolver layer.

Every error carries:
    - a component tag (which module raised it),
    - an ISO-8601 timestamp,
    - structured metadata (operation kind, field name, ids ...),
    - an ``ErrorCode``, a severity and a retryable flag.

The inference and rendering stages never raise on sample data; they
degrade to best-effort types instead.  Only malformed configuration
surfaces as ``ConfigurationError`` there.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("docschema.errors")


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class ErrorCode(str, Enum):
    """Machine-readable error codes."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    ETAG_MISMATCH = "ETAG_MISMATCH"
    CONFLICT = "CONFLICT"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"


class ErrorSeverity(str, Enum):
    """How bad an error is for the caller."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# ---------------------------------------------------------------------------
# Base error
# ---------------------------------------------------------------------------


class DocSchemaError(Exception):
    """Base class for every error raised by docschema."""

    code: ErrorCode = ErrorCode.VALIDATION_ERROR
    severity: ErrorSeverity = ErrorSeverity.MEDIUM
    retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        component: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message: str = message
        self.component: str = component
        self.metadata: Dict[str, Any] = dict(metadata or {})
        self.timestamp: str = datetime.now(timezone.utc).isoformat()

    def to_dict(self) -> Dict[str, Any]:
        """JSON-serialisable representation (used for logs and GraphQL extensions)."""
        return {
            "name": type(self).__name__,
            "message": self.message,
            "code": self.code.value,
            "severity": self.severity.value,
            "retryable": self.retryable,
            "component": self.component,
            "timestamp": self.timestamp,
            "metadata": self.metadata,
        }

    def __repr__(self) -> str:
        return f"<{type(self).__name__} [{self.code.value}] {self.component}: {self.message}>"


# ---------------------------------------------------------------------------
# Concrete errors
# ---------------------------------------------------------------------------


class ValidationError(DocSchemaError):
    """Malformed input: empty identifiers, bad array-operation parameters, ..."""

    code = ErrorCode.VALIDATION_ERROR
    severity = ErrorSeverity.LOW


class NotFoundError(DocSchemaError):
    """Target document is absent."""

    code = ErrorCode.NOT_FOUND
    severity = ErrorSeverity.LOW


class ConcurrencyConflictError(DocSchemaError):
    """
    The supplied concurrency token does not match the stored one.

    Retryable: the caller is expected to re-read and try again.
    """

    code = ErrorCode.ETAG_MISMATCH
    severity = ErrorSeverity.MEDIUM
    retryable = True

    def __init__(
        self,
        message: str,
        *,
        component: str,
        provided_etag: Optional[str] = None,
        current_etag: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        merged: Dict[str, Any] = dict(metadata or {})
        merged.setdefault("providedEtag", provided_etag)
        merged.setdefault("currentEtag", current_etag)
        super().__init__(message, component=component, metadata=merged)
        self.provided_etag: Optional[str] = provided_etag
        self.current_etag: Optional[str] = current_etag


class ConflictError(DocSchemaError):
    """A create collided with an existing document."""

    code = ErrorCode.CONFLICT
    severity = ErrorSeverity.MEDIUM


class ConfigurationError(DocSchemaError):
    """Invalid configuration or unreadable input file."""

    code = ErrorCode.CONFIGURATION_ERROR
    severity = ErrorSeverity.HIGH


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ErrorCode",
    "ErrorSeverity",
    "DocSchemaError",
    "ValidationError",
    "NotFoundError",
    "ConcurrencyConflictError",
    "ConflictError",
    "ConfigurationError",
]

logger.debug("docschema.errors loaded — %d public symbols.", len(__all__))

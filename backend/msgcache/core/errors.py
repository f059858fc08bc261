"""Error Hierarchy — typed, categorized exceptions for every message store failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Setup, corrupt-state, unsupported-version and migration errors are fatal (CRITICAL)
    - Caller contract violations (duplicate id, wrong event type, bad tag) are ERROR
    - The originating driver exception is always chained via `raise ... from e`

Design Decisions:
    - Single hierarchy with MessageCacheError base: callers can catch one type
    - ErrorContext as dataclass: rich observability without coupling to logging
    - No user-facing formatting here; the API layer owns presentation
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and caller handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    CONFLICT = "conflict"
    SCHEMA = "schema"
    DATABASE = "database"
    DECODE = "decode"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    message_id: str | None = None
    topic: str | None = None
    schema_version: int | None = None
    debug_info: dict[str, Any] | None = None


class MessageCacheError(Exception):
    """Base exception for all message store errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()

    @property
    def fatal(self) -> bool:
        """True when the store cannot be used after this error."""
        return self.severity == ErrorSeverity.CRITICAL

    def log_extra(self) -> dict:
        """Fields for `logger.error(..., extra=err.log_extra())`."""
        return {
            "error_code": self.code,
            "message_id": self.context.message_id,
            "topic": self.context.topic,
            "schema_version": self.context.schema_version,
        }


# ─── Setup & Schema Errors (fatal) ───────────────────────────────

class StoreSetupError(MessageCacheError):
    """Storage could not be opened or initialized."""
    def __init__(self, location: str, reason: str, context: ErrorContext | None = None):
        super().__init__(
            f"Cannot open message store at '{location}': {reason}",
            "STORE_SETUP_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context,
        )
        self.location = location


class CorruptStoreError(MessageCacheError):
    """Message table exists but the schema version record is missing or unreadable."""
    def __init__(self, reason: str, context: ErrorContext | None = None):
        super().__init__(
            f"Cannot determine schema version: {reason}; cache file may be corrupt",
            "CORRUPT_STORE", ErrorCategory.SCHEMA,
            ErrorSeverity.CRITICAL, context,
        )


class UnsupportedSchemaVersionError(MessageCacheError):
    """Persisted schema is newer than this release understands."""
    def __init__(self, found: int, current: int, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.schema_version = found
        super().__init__(
            f"Unexpected schema version found: {found} (this release supports up to {current})",
            "UNSUPPORTED_SCHEMA_VERSION", ErrorCategory.SCHEMA,
            ErrorSeverity.CRITICAL, ctx,
        )
        self.found = found
        self.current = current


class MigrationError(MessageCacheError):
    """A migration step failed or is missing; store left at from_version."""
    def __init__(
        self, from_version: int, to_version: int, reason: str,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.schema_version = from_version
        super().__init__(
            f"Schema migration {from_version} -> {to_version} failed: {reason}",
            "MIGRATION_FAILED", ErrorCategory.SCHEMA,
            ErrorSeverity.CRITICAL, ctx,
        )
        self.from_version = from_version
        self.to_version = to_version


# ─── Caller Contract Errors ──────────────────────────────────────

class DuplicateMessageError(MessageCacheError):
    """A message with this id is already stored."""
    def __init__(self, message_id: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.message_id = message_id
        super().__init__(
            f"Message '{message_id}' already exists",
            "DUPLICATE_MESSAGE_ID", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, ctx,
        )
        self.message_id = message_id


class UnexpectedMessageTypeError(MessageCacheError):
    """Only message events can be stored."""
    def __init__(self, event: str, context: ErrorContext | None = None):
        super().__init__(
            f"Unexpected message type: '{event}' events cannot be stored",
            "UNEXPECTED_MESSAGE_TYPE", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context,
        )
        self.event = event


class TagEncodingError(MessageCacheError):
    """Tag cannot be encoded without breaking the decode round trip."""
    def __init__(self, tag: str, reason: str, context: ErrorContext | None = None):
        super().__init__(
            f"Tag {tag!r} cannot be stored: {reason}",
            "INVALID_TAG", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context,
        )
        self.tag = tag


# ─── Infrastructure Errors ───────────────────────────────────────

class RowDecodeError(MessageCacheError):
    """A stored row could not be turned back into a Message."""
    def __init__(self, message_id: str | None, reason: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.message_id = message_id
        super().__init__(
            f"Cannot decode stored message '{message_id}': {reason}",
            "ROW_DECODE_ERROR", ErrorCategory.DECODE,
            ErrorSeverity.ERROR, ctx,
        )


class StoreReadError(MessageCacheError):
    """A read query failed."""
    def __init__(self, operation: str, reason: str, context: ErrorContext | None = None):
        super().__init__(
            f"Read failed in {operation}: {reason}",
            "STORE_READ_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.ERROR, context,
        )
        self.operation = operation


class StoreWriteError(MessageCacheError):
    """A write query failed."""
    def __init__(self, operation: str, reason: str, context: ErrorContext | None = None):
        super().__init__(
            f"Write failed in {operation}: {reason}",
            "STORE_WRITE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.ERROR, context,
        )
        self.operation = operation

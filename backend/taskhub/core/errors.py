"""Error Hierarchy — typed, categorized exceptions for all TaskHub failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
      and a stable type tag consumed by clients
    - Domain errors (400-level) are raised at the point of detection and propagate
      unmodified to the HTTP boundary
    - to_response() produces the REST envelope; to_chat_message() produces the
      Discord-facing text
    - Signature verifiers never raise these; they fail closed to bool/None

Design Decisions:
    - Single hierarchy with TaskHubError base: FastAPI global handler catches all
    - ErrorContext as dataclass: rich observability without coupling to logging
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    PERMISSION = "permission"
    RESOURCE_NOT_FOUND = "resource_not_found"
    CONFLICT = "conflict"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    user_id: str | None = None
    project_id: str | None = None
    task_id: str | None = None
    debug_info: dict[str, Any] | None = None
    retry_after_ms: int | None = None


class TaskHubError(Exception):
    """Base exception for all TaskHub errors."""

    type_tag: str = "InternalError"

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "type": self.type_tag,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
            }
        }

    def to_chat_message(self) -> str:
        """Short user-facing text for chat surfaces."""
        return f"❌ {self.message}"


# ─── Domain Errors (400-level) ──────────────────────────────────

class ValidationError(TaskHubError):
    """Input failed a field-level or cross-entity rule."""

    type_tag = "ValidationError"

    def __init__(
        self, message: str, field: str | None = None,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field

    def to_response(self) -> dict:
        response = super().to_response()
        if self.field:
            response["error"]["field"] = self.field
        return response


class AuthenticationError(TaskHubError):
    """Signature or session could not be verified."""

    type_tag = "AuthenticationError"

    def __init__(
        self, message: str = "Authentication required",
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, "AUTHENTICATION_REQUIRED", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, context, 401,
        )


class PermissionDeniedError(TaskHubError):
    """Authenticated, but not authorized for this resource."""

    type_tag = "PermissionError"

    def __init__(
        self, message: str = "Access denied", context: ErrorContext | None = None,
    ):
        super().__init__(
            message, "PERMISSION_DENIED", ErrorCategory.PERMISSION,
            ErrorSeverity.WARNING, context, 403,
        )


class ResourceNotFoundError(TaskHubError):
    """Requested resource does not exist."""

    type_tag = "NotFoundError"

    def __init__(
        self, resource_type: str, resource_id: str | None = None,
        message: str | None = None, context: ErrorContext | None = None,
    ):
        super().__init__(
            message or f"{resource_type} not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class ConflictError(TaskHubError):
    """Uniqueness violation (duplicate name, already linked, already a member)."""

    type_tag = "ConflictError"

    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "CONFLICT", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(TaskHubError):
    """Database operation failed."""

    type_tag = "DatabaseError"

    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation

    def to_chat_message(self) -> str:
        return "❌ Storage is temporarily unavailable. Please try again."


class AssistantAPIError(TaskHubError):
    """Anthropic API call failed."""

    type_tag = "AssistantError"

    def __init__(
        self,
        message: str,
        api_error_type: str,
        retry_after_ms: int | None = None,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.retry_after_ms = retry_after_ms
        super().__init__(
            f"Assistant API error ({api_error_type}): {message}",
            "ASSISTANT_API_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, ctx, 503,
        )
        self.api_error_type = api_error_type

    def to_chat_message(self) -> str:
        return "❌ The assistant is unavailable right now. Please try again later."

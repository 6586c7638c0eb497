"""Error Hierarchy — typed, categorized exceptions for every betting failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are the caller's fault; dependency errors (503) are not
    - to_response() produces the REST envelope used by the API error handlers
    - Nothing here is retried internally: retry policy belongs to the front-end

Design Decisions:
    - Single hierarchy with BetPoolError base: one FastAPI handler catches all
    - ErrorContext as dataclass: observability fields without coupling to logging
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
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    CONFIGURATION = "configuration"
    DEPENDENCY = "dependency"
    CONFLICT = "conflict"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    bet_id: str | None = None
    user: str | None = None
    option: str | None = None
    debug_info: dict[str, Any] | None = None


class BetPoolError(Exception):
    """Base exception for all betpool errors."""

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
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "bet_id": self.context.bet_id,
                    "user": self.context.user,
                    "option": self.context.option,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class InvalidStateError(BetPoolError):
    """Operation is illegal for the bet's current status."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "INVALID_STATE", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )


class UnknownOptionError(BetPoolError):
    """Option key does not name any option of the bet."""
    def __init__(self, option: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.option = option
        super().__init__(
            f'Betting option "{option}" does not exist.',
            "UNKNOWN_OPTION", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, ctx, 400,
        )
        self.option = option


class InvalidAmountError(BetPoolError):
    """Stake is negative or not a whole number."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "INVALID_AMOUNT", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )


class ConfigError(BetPoolError):
    """Bet cannot be created: no options, or no ledger to escrow with."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "CONFIG_ERROR", ErrorCategory.CONFIGURATION,
            ErrorSeverity.ERROR, context, 400,
        )


class InsufficientFundsError(BetPoolError):
    """Ledger refused to hold more than the user can cover."""
    def __init__(
        self, user: str, requested: int, available: int,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.user = user
        super().__init__(
            f"{user} cannot reserve {requested}; only {available} available.",
            "INSUFFICIENT_FUNDS", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, ctx, 400,
        )
        self.requested = requested
        self.available = available


class ResourceNotFoundError(BetPoolError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )


# ─── Dependency Errors (503) ────────────────────────────────────

class DependencyError(BetPoolError):
    """A store or ledger round-trip failed."""
    def __init__(
        self,
        message: str,
        dependency: str,
        operation: str,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{dependency.capitalize()} {operation} failed: {message}",
            "DEPENDENCY_ERROR", ErrorCategory.DEPENDENCY,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.dependency = dependency
        self.operation = operation

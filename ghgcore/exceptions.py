"""ghgcore exception hierarchy.

Every error raised by the emissions engines carries a stable error code, a
context dictionary and the time it occurred, so callers can log it, return it
over an API, or decide whether to retry.

Exception Hierarchy:
    GHGCoreException (base)
    ├── CalculationException
    │   ├── ValidationError
    │   ├── CalculationError
    │   └── ConfigurationError
    └── DataException
        ├── InvalidSchema
        ├── MissingData
        ├── UnitConversionError
        └── DataAccessError
            └── RequestTimeoutError

Example:
    >>> from ghgcore.exceptions import ValidationError
    >>> raise ValidationError(
    ...     message="Company ID is required",
    ...     field="company_id",
    ...     scope="scope1",
    ... )

Author: ghgcore maintainers
Date: October 2026
Status: Production Ready
"""

from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
import json
import re
import traceback as tb


# ==============================================================================
# Base Exception
# ==============================================================================

class GHGCoreException(Exception):
    """Base exception for all ghgcore errors.

    Attributes:
        message: Human-readable error message
        error_code: Stable error identifier (e.g. "GHG_CALC_VALIDATION_ERROR")
        context: Dictionary with error-specific details
        timestamp: When the error occurred (UTC)
        traceback_str: Stack at the point the error was constructed
    """

    ERROR_PREFIX = "GHG"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self._generate_error_code()
        self.context = context or {}
        self.timestamp = datetime.now(timezone.utc)
        self.traceback_str = "".join(tb.format_stack()[:-1])

    def _generate_error_code(self) -> str:
        """Derive the error code from the class name.

        Returns:
            Code like "GHG_DATA_MISSING_DATA"
        """
        error_type = re.sub(r'(?<!^)(?=[A-Z])', '_', self.__class__.__name__).upper()
        return f"{self.ERROR_PREFIX}_{error_type}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to a JSON-safe dictionary."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "traceback": self.traceback_str,
        }

    def to_json(self) -> str:
        """Convert exception to a JSON string."""
        return json.dumps(self.to_dict(), indent=2, default=str)

    def __str__(self) -> str:
        return f"[{self.error_code}] - {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message='{self.message}', "
            f"error_code='{self.error_code}')"
        )


# ==============================================================================
# Calculation Exceptions
# ==============================================================================

class CalculationException(GHGCoreException):
    """Base exception for calculation-engine errors."""
    ERROR_PREFIX = "GHG_CALC"


class ValidationError(CalculationException):
    """A calculation request failed its guard checks.

    Raised before any factor lookup happens, with the offending field.

    Example:
        >>> raise ValidationError(
        ...     message="Quantity must be greater than 0 for entry 2",
        ...     field="fuel_data[1].amount",
        ...     scope="scope1",
        ... )
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        field: Optional[str] = None,
        scope: Optional[str] = None,
    ):
        """Initialize validation error.

        Args:
            message: Error message
            context: Error context
            field: Dotted path of the offending request field
            scope: Scope being calculated (scope1, scope2, scope3)
        """
        context = context or {}
        if field:
            context["field"] = field
        if scope:
            context["scope"] = scope
        self.field = field
        self.scope = scope
        super().__init__(message, context=context)


class CalculationError(CalculationException):
    """A calculation or store operation failed after passing its guards.

    The original exception is kept on ``__cause__`` by raising with
    ``raise ... from cause``; its type and message are also stored in the
    context so the error survives serialization.
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        scope: Optional[str] = None,
        operation: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        context = context or {}
        if scope:
            context["scope"] = scope
        if operation:
            context["operation"] = operation
        if cause is not None:
            context["cause"] = str(cause)
            context["cause_type"] = type(cause).__name__
        self.scope = scope
        self.operation = operation
        super().__init__(message, context=context)


class ConfigurationError(CalculationException):
    """The engine is missing a collaborator or has an invalid setting.

    Example:
        >>> raise ConfigurationError(
        ...     message="No calculation store configured",
        ...     context={"operation": "get_calculations"},
        ... )
    """
    pass


# ==============================================================================
# Data Exceptions
# ==============================================================================

class DataException(GHGCoreException):
    """Base exception for data access and data shape errors."""
    ERROR_PREFIX = "GHG_DATA"


class InvalidSchema(DataException):
    """Data does not match the expected shape.

    Example:
        >>> raise InvalidSchema(
        ...     message="Request does not match any calculation shape",
        ...     schema_errors=[{"field": "fuel_data[0].amount", "message": "..."}],
        ... )
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        schema_errors: Optional[List[Dict[str, Any]]] = None,
    ):
        """Initialize schema error.

        Args:
            message: Error message
            context: Error context
            schema_errors: List of {"field", "message"} entries
        """
        context = context or {}
        self.schema_errors = list(schema_errors or [])
        if self.schema_errors:
            context["schema_errors"] = self.schema_errors
        super().__init__(message, context=context)


class MissingData(DataException):
    """Required data, usually an emission factor, was not found.

    Example:
        >>> raise MissingData(
        ...     message="No emission factor found for fuel type 'peat'",
        ...     data_type="emission_factor",
        ...     context={"fuel_type": "peat"},
        ... )
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        data_type: Optional[str] = None,
        missing_fields: Optional[List[str]] = None,
    ):
        context = context or {}
        if data_type:
            context["data_type"] = data_type
        if missing_fields:
            context["missing_fields"] = missing_fields
        super().__init__(message, context=context)


class UnitConversionError(DataException):
    """An activity quantity cannot be converted to the factor's unit."""

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        from_unit: Optional[str] = None,
        to_unit: Optional[str] = None,
    ):
        context = context or {}
        if from_unit:
            context["from_unit"] = from_unit
        if to_unit:
            context["to_unit"] = to_unit
        super().__init__(message, context=context)


class DataAccessError(DataException):
    """Reading from or writing to an external collaborator failed.

    Example:
        >>> raise DataAccessError(
        ...     message="Backend returned HTTP 503",
        ...     data_source="http://localhost:8000/v1",
        ...     operation="get_emissions_factors",
        ... )
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        data_source: Optional[str] = None,
        operation: Optional[str] = None,
        status_code: Optional[int] = None,
        cause: Optional[BaseException] = None,
    ):
        """Initialize data access error.

        Args:
            message: Error message
            context: Error context
            data_source: Collaborator that failed (URL, store name)
            operation: Operation that failed
            status_code: HTTP status, when the failure was an HTTP response
            cause: Original exception
        """
        context = context or {}
        if data_source:
            context["data_source"] = data_source
        if operation:
            context["operation"] = operation
        if status_code is not None:
            context["status_code"] = status_code
        if cause is not None:
            context["cause"] = str(cause)
            context["cause_type"] = type(cause).__name__
        self.status_code = status_code
        super().__init__(message, context=context)


class RequestTimeoutError(DataAccessError):
    """A collaborator did not answer within the configured timeout."""
    pass


# ==============================================================================
# Exception Utilities
# ==============================================================================

def format_exception_chain(exc: BaseException) -> str:
    """Format an exception and its ``__cause__`` chain for logging.

    Args:
        exc: Exception to format

    Returns:
        One line per exception, ghgcore errors followed by their context
    """
    lines = []
    current: Optional[BaseException] = exc

    while current is not None:
        if isinstance(current, GHGCoreException):
            lines.append(str(current))
            lines.append(f"  Context: {current.context}")
        else:
            lines.append(f"{type(current).__name__}: {current}")
        current = current.__cause__

    return "\n".join(lines)


def is_retriable(exc: BaseException) -> bool:
    """Check whether the failed operation may succeed if repeated.

    The engines never retry themselves; this helper is for the transport
    layer that owns the retry policy.

    Args:
        exc: Exception to check

    Returns:
        True if the operation could be retried
    """
    non_retriable_types = (ValidationError, InvalidSchema, MissingData, UnitConversionError)
    if isinstance(exc, non_retriable_types):
        return False

    if isinstance(exc, DataAccessError):
        # 4xx responses will not change on retry
        if exc.status_code is not None and 400 <= exc.status_code < 500:
            return exc.status_code == 429
        return True

    if isinstance(exc, CalculationError):
        cause = exc.__cause__
        return cause is not None and is_retriable(cause)

    return False

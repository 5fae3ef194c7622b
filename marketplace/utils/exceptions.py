"""
Custom Exception Classes for the Marketplace API
"""
from typing import Dict, Any
from fastapi import HTTPException


class MarketplaceBaseException(Exception):
    """Base exception for the marketplace core"""

    def __init__(
        self,
        message: str,
        error_code: str = None,
        details: Dict[str, Any] = None,
        cause: Exception = None
    ):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        self.cause = cause
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/response"""
        result = {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details
        }
        if self.cause:
            result["cause"] = str(self.cause)
        return result


class ValidationError(MarketplaceBaseException):
    """Raised when input is malformed or contradictory"""

    def __init__(self, message: str, field: str = None, value: Any = None, **kwargs):
        details = kwargs.pop('details', None) or {}
        if field:
            details['field'] = field
        if value is not None:
            details['invalid_value'] = str(value)
        super().__init__(message, error_code="VALIDATION", details=details, **kwargs)


class NotFoundError(MarketplaceBaseException):
    """Raised when a referenced entity does not exist"""

    def __init__(self, message: str, resource: str = None, resource_id: str = None, **kwargs):
        details = kwargs.pop('details', None) or {}
        if resource:
            details['resource'] = resource
        if resource_id:
            details['resource_id'] = resource_id
        super().__init__(message, error_code="NOT_FOUND", details=details, **kwargs)


class AuthorizationError(MarketplaceBaseException):
    """Raised when the caller lacks the required relationship to a resource"""

    def __init__(self, message: str = "Insufficient permissions", resource: str = None, **kwargs):
        details = kwargs.pop('details', None) or {}
        if resource:
            details['resource'] = resource
        super().__init__(message, error_code="AUTHORIZATION", details=details, **kwargs)


class BusinessLogicError(MarketplaceBaseException):
    """Raised when an operation is refused by a business rule"""

    def __init__(self, message: str, rule: str = None, **kwargs):
        details = kwargs.pop('details', None) or {}
        if rule:
            details['business_rule'] = rule
        super().__init__(message, error_code="BUSINESS_RULE", details=details, **kwargs)


class DatabaseError(MarketplaceBaseException):
    """Raised when database operations fail"""

    def __init__(self, message: str, operation: str = None, collection: str = None, **kwargs):
        details = kwargs.pop('details', None) or {}
        if operation:
            details['operation'] = operation
        if collection:
            details['collection'] = collection
        super().__init__(message, error_code="DATABASE_ERROR", details=details, **kwargs)


def map_to_http_exception(exc: MarketplaceBaseException) -> HTTPException:
    """Map custom exceptions to HTTP exceptions"""

    status_code_mapping = {
        ValidationError: 400,
        AuthorizationError: 403,
        NotFoundError: 404,
        BusinessLogicError: 409,
        DatabaseError: 500,
    }

    status_code = status_code_mapping.get(type(exc), 500)

    detail = {
        "error": exc.to_dict(),
        "message": exc.message
    }

    return HTTPException(status_code=status_code, detail=detail)


class ExceptionContext:
    """Context manager for handling exceptions with additional context"""

    def __init__(self, operation: str, logger=None, **context):
        self.operation = operation
        self.logger = logger
        self.context = context

    def __enter__(self):
        if self.logger:
            self.logger.debug(f"Starting operation: {self.operation}", extra=self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            if self.logger:
                self.logger.debug(f"Operation completed: {self.operation}", extra=self.context)
            return False

        # Domain exceptions travel as-is
        if isinstance(exc_val, MarketplaceBaseException):
            if self.logger:
                self.logger.warning(
                    f"Operation refused: {self.operation} - {exc_val}",
                    extra={**self.context, "error_code": exc_val.error_code}
                )
            return False

        if not isinstance(exc_val, Exception):
            return False

        if self.logger:
            self.logger.error(
                f"Operation failed: {self.operation} - {exc_val}",
                extra={**self.context, "exception_type": exc_type.__name__}
            )

        if isinstance(exc_val, (KeyError, ValueError, TypeError)):
            raise ValidationError(
                f"Validation error in {self.operation}: {str(exc_val)}",
                details=dict(self.context),
                cause=exc_val
            ) from exc_val

        raise DatabaseError(
            f"Database error in {self.operation}: {str(exc_val)}",
            operation=self.operation,
            details=dict(self.context),
            cause=exc_val
        ) from exc_val

"""
Custom Exception Classes for the screening service
"""
from typing import Dict, Any
from fastapi import HTTPException


class ScreeningBaseException(Exception):
    """Base exception for the screening service"""

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


class ValidationError(ScreeningBaseException):
    """Raised when input validation fails"""

    def __init__(self, message: str, field: str = None, value: Any = None, **kwargs):
        details = kwargs.pop('details', {})
        if field:
            details['field'] = field
        if value is not None:
            details['invalid_value'] = str(value)
        super().__init__(message, error_code="VALIDATION_ERROR", details=details, **kwargs)


class NotFoundError(ScreeningBaseException):
    """Raised when a resume, vacancy, analysis or parsed text does not exist"""

    def __init__(self, message: str, resource: str = None, resource_id: str = None, **kwargs):
        details = kwargs.pop('details', {})
        if resource:
            details['resource'] = resource
        if resource_id:
            details['resource_id'] = resource_id
        super().__init__(message, error_code="NOT_FOUND", details=details, **kwargs)


class ProfileNotReadyError(ScreeningBaseException):
    """Raised when a resume profile exists but is not in the ok state"""

    def __init__(self, resume_id: str, status: str, reason: str = "", **kwargs):
        self.resume_id = resume_id
        self.status = status
        details = kwargs.pop('details', {})
        details.update({"resume_id": resume_id, "status": status})
        if reason:
            details['reason'] = reason
        super().__init__(
            f"Resume profile is not ready (status: {status})",
            error_code="PROFILE_NOT_READY",
            details=details,
            **kwargs
        )


class DatabaseError(ScreeningBaseException):
    """Raised when database operations fail"""

    def __init__(self, message: str, operation: str = None, collection: str = None, **kwargs):
        details = kwargs.pop('details', {})
        if operation:
            details['operation'] = operation
        if collection:
            details['collection'] = collection
        super().__init__(message, error_code="DATABASE_ERROR", details=details, **kwargs)


class ConfigurationError(ScreeningBaseException):
    """Raised when configuration is invalid or missing"""

    def __init__(self, message: str, config_key: str = None, config_value: Any = None, **kwargs):
        details = kwargs.pop('details', {})
        if config_key:
            details['config_key'] = config_key
        if config_value is not None:
            details['config_value'] = str(config_value)
        super().__init__(message, error_code="CONFIGURATION_ERROR", details=details, **kwargs)


class ExternalServiceError(ScreeningBaseException):
    """Raised when the text-generation service call fails"""

    def __init__(self, message: str, service_name: str = None, status_code: int = None, **kwargs):
        details = kwargs.pop('details', {})
        if service_name:
            details['service_name'] = service_name
        if status_code:
            details['status_code'] = status_code
        super().__init__(message, error_code="EXTERNAL_SERVICE_ERROR", details=details, **kwargs)


class ResponseParseError(ScreeningBaseException):
    """Raised when a text-generation response holds no decodable JSON object"""

    def __init__(self, message: str, target: str = None, raw_excerpt: str = None, **kwargs):
        details = kwargs.pop('details', {})
        if target:
            details['target'] = target
        if raw_excerpt is not None:
            details['raw_excerpt'] = raw_excerpt[:200]
        super().__init__(message, error_code="RESPONSE_PARSE_ERROR", details=details, **kwargs)


# HTTP Exception Mapping
def map_to_http_exception(exc: ScreeningBaseException) -> HTTPException:
    """Map custom exceptions to HTTP exceptions"""

    status_code_mapping = {
        ValidationError: 400,
        ConfigurationError: 400,
        NotFoundError: 404,
        ProfileNotReadyError: 409,
        DatabaseError: 500,
        ExternalServiceError: 502,
        ResponseParseError: 502,
    }

    status_code = status_code_mapping.get(type(exc), 500)

    detail = {
        "error": exc.to_dict(),
        "message": exc.message
    }

    return HTTPException(status_code=status_code, detail=detail)


class ExceptionContext:
    """Context manager that logs an operation and wraps foreign exceptions"""

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

        if self.logger:
            self.logger.error(
                f"Operation failed: {self.operation} - {exc_val}",
                extra={**self.context, "exception_type": exc_type.__name__}
            )

        # Re-raise custom exceptions and cancellation as-is
        if isinstance(exc_val, ScreeningBaseException) or not isinstance(exc_val, Exception):
            return False

        raise DatabaseError(
            f"Database error in {self.operation}: {str(exc_val)}",
            operation=self.operation,
            details=dict(self.context),
            cause=exc_val
        ) from exc_val

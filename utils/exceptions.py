from typing import Optional, Dict, Any
from fastapi import HTTPException

from .errors import ErrorDetail, ErrorCode

class APIError(HTTPException):
    """
    API layer exceptions.
    """
    def __init__(
        self,
        error: ErrorDetail,
        details: Optional[Dict[str, Any]] = None,
        override_message: Optional[str] = None,
    ):
        self.error_code = error.code
        self.details = details or {}
        #override message if provided
        message = override_message or error.message
        super().__init__(status_code=error.status_code, detail=message)

class CoreServiceException(Exception):
    """
    Core layer services
    It carries complete error information through an ErrorDetail object.
    """
    default_error: ErrorDetail = ErrorCode.COMMON_INTERNAL_ERROR

    def __init__(
        self,
        override_message: Optional[str] = None,
        details: Optional[Any] = None,
        error: Optional[ErrorDetail] = None,
    ):
        """
        Args:
            override_message (Optional[str]): override the default message of the ErrorDetail.
            details (Optional[Any]): additional structured error information (e.g. command exit code).
            error (Optional[ErrorDetail]): ErrorCode defined ErrorDetail, defaults to the class's own.
        """
        error = error or self.default_error
        self.status_code = error.status_code
        self.error_code = error.code
        self.details = details or {}
        self.message = override_message or error.message
        super().__init__(self.message)


class InputError(CoreServiceException):
    """Malformed address, missing credentials or empty payload. Never retried."""
    default_error = ErrorCode.WHITELIST_INVALID_INPUT

class RemoteError(CoreServiceException):
    """Network, HTTP or parse failure of a geolocation/notification call."""
    default_error = ErrorCode.WHITELIST_REMOTE_ERROR

class PersistenceError(CoreServiceException):
    """The rendered proxy configuration could not be written."""
    default_error = ErrorCode.WHITELIST_PERSISTENCE_ERROR

class ProxyValidationError(CoreServiceException):
    """The proxy's validate command rejected the configuration, failed to spawn or timed out."""
    default_error = ErrorCode.WHITELIST_PROXY_VALIDATION_FAILED

class ProxyReloadError(CoreServiceException):
    """The proxy's reload command failed after validation passed."""
    default_error = ErrorCode.WHITELIST_PROXY_RELOAD_FAILED

class ServiceUnavailableError(CoreServiceException):
    """The whitelist coordinator is no longer running."""
    default_error = ErrorCode.WHITELIST_SERVICE_STOPPED

class ConfigError(CoreServiceException):
    default_error = ErrorCode.CONFIG_INVALID

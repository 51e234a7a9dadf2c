from fastapi import status

class ErrorDetail:
    def __init__(self, status_code: int, code: str, message: str):
        self.status_code = status_code
        self.code = code
        self.message = message

class ErrorCode:
    """System error code and message definitions"""

    # Common errors
    COMMON_INTERNAL_ERROR = ErrorDetail(status.HTTP_500_INTERNAL_SERVER_ERROR, "COMMON_INTERNAL_ERROR", "An unexpected internal server error occurred.")
    COMMON_NOT_FOUND = ErrorDetail(status.HTTP_404_NOT_FOUND, "COMMON_NOT_FOUND", "The requested resource does not exist")
    COMMON_VALIDATION_ERROR = ErrorDetail(status.HTTP_400_BAD_REQUEST, "COMMON_VALIDATION_ERROR", "Data validation failed")
    COMMON_SERVICE_UNAVAILABLE = ErrorDetail(status.HTTP_503_SERVICE_UNAVAILABLE, "COMMON_SERVICE_UNAVAILABLE", "Service unavailable")
    COMMON_BAD_REQUEST = ErrorDetail(status.HTTP_400_BAD_REQUEST, "COMMON_BAD_REQUEST", "Bad request")

    # Gate (token submission) errors
    GATE_INVALID_TOKEN = ErrorDetail(status.HTTP_403_FORBIDDEN, "GATE_INVALID_TOKEN", "Invalid token")
    GATE_UNSUPPORTED_CONTENT_TYPE = ErrorDetail(status.HTTP_400_BAD_REQUEST, "GATE_UNSUPPORTED_CONTENT_TYPE", "Form must be submitted as application/x-www-form-urlencoded")
    GATE_INVALID_ADDRESS = ErrorDetail(status.HTTP_400_BAD_REQUEST, "GATE_INVALID_ADDRESS", "Client address could not be resolved")

    # Whitelist core errors
    WHITELIST_INVALID_INPUT = ErrorDetail(status.HTTP_400_BAD_REQUEST, "WHITELIST_INVALID_INPUT", "Invalid input")
    WHITELIST_REMOTE_ERROR = ErrorDetail(status.HTTP_502_BAD_GATEWAY, "WHITELIST_REMOTE_ERROR", "Remote service call failed")
    WHITELIST_PERSISTENCE_ERROR = ErrorDetail(status.HTTP_500_INTERNAL_SERVER_ERROR, "WHITELIST_PERSISTENCE_ERROR", "Failed to write proxy configuration file")
    WHITELIST_PROXY_VALIDATION_FAILED = ErrorDetail(status.HTTP_500_INTERNAL_SERVER_ERROR, "WHITELIST_PROXY_VALIDATION_FAILED", "Proxy rejected the generated configuration")
    WHITELIST_PROXY_RELOAD_FAILED = ErrorDetail(status.HTTP_500_INTERNAL_SERVER_ERROR, "WHITELIST_PROXY_RELOAD_FAILED", "Proxy reload failed")
    WHITELIST_SERVICE_STOPPED = ErrorDetail(status.HTTP_503_SERVICE_UNAVAILABLE, "WHITELIST_SERVICE_STOPPED", "Whitelist service has stopped")

    # Configuration errors
    CONFIG_INVALID = ErrorDetail(status.HTTP_500_INTERNAL_SERVER_ERROR, "CONFIG_INVALID", "Configuration is missing or invalid")

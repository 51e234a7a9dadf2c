# ipgate/schemas/__init__.py
from .common import UnifiedAPIResponse
from .auth import AuthResult
from .config import (
    AppConfig,
    ServerConfig,
    ListenConfig,
    WhitelistConfig,
    WhitelistServiceConfig,
    MessageConfig,
    BaiduLocationConfig,
    LoggingConfig,
    LogFileConfig,
)
__all__ = [
    "UnifiedAPIResponse",
    "AuthResult",
    "AppConfig",
    "ServerConfig",
    "ListenConfig",
    "WhitelistConfig",
    "WhitelistServiceConfig",
    "MessageConfig",
    "BaiduLocationConfig",
    "LoggingConfig",
    "LogFileConfig",
]

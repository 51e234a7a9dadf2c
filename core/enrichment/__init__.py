# ipgate/core/enrichment/__init__.py
from typing import Optional

from schemas.config import AppConfig
from .base import BaseLocationService, BaseNotifier
from .cache import ExpiringLRUCache
from .location import BaiduLocationService
from .notifier import BarkNotifier


def build_location_service(config: AppConfig) -> Optional[BaseLocationService]:
    """Location lookups are enabled only when both ak and referrer are configured."""
    if config.baidu_location.ak and config.baidu_location.referrer:
        return BaiduLocationService(ak=config.baidu_location.ak, referrer=config.baidu_location.referrer)
    return None


def build_notifier(config: AppConfig) -> Optional[BaseNotifier]:
    if config.message.bark:
        return BarkNotifier(endpoint=config.message.bark)
    return None


__all__ = [
    "BaseLocationService",
    "BaseNotifier",
    "ExpiringLRUCache",
    "BaiduLocationService",
    "BarkNotifier",
    "build_location_service",
    "build_notifier",
]

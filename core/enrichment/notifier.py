# ipgate/core/enrichment/notifier.py
from urllib.parse import quote_plus

import requests

from utils.exceptions import InputError, RemoteError
from .base import BaseNotifier
import logging

logger = logging.getLogger(f"ipgate.{__name__}")

DEFAULT_TIMEOUT_SECONDS = 15


class BarkNotifier(BaseNotifier):
    """Sends push messages through a Bark endpoint (`GET <endpoint>/<form-encoded message>`)."""

    def __init__(self, endpoint: str, timeout: float = DEFAULT_TIMEOUT_SECONDS, session: requests.Session = None):
        self.endpoint = endpoint
        self.timeout = timeout
        self._session = session or requests.Session()

    def notify(self, text: str) -> None:
        if not text or not self.endpoint:
            raise InputError("Notification text and endpoint must not be empty")
        logger.debug(f"Sending message: {text}")
        url = f"{self.endpoint.rstrip('/')}/{quote_plus(text, safe='')}"
        try:
            resp = self._session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise RemoteError(f"Notification request failed: {e}") from e
        if not resp.ok:
            raise RemoteError(f"Notification failed: HTTP {resp.status_code}", details={"status_code": resp.status_code})

"""
Best-effort alert delivery.

Notifications must never raise: a failed alert is logged and dropped so the
error that triggered it stays the one the caller sees.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Optional

import requests

from .config import NotifySettings

logger = logging.getLogger("futures_bot")

LINE_NOTIFY_URL = "https://notify-api.line.me/api/notify"


class NotificationSink(ABC):
    """Every concrete sink must implement notify()."""

    @abstractmethod
    def notify(self, message: str) -> None:
        """Deliver *message*; never raise."""
        raise NotImplementedError


class LogNotificationSink(NotificationSink):
    """Writes alerts to the application log only."""

    def notify(self, message: str) -> None:
        logger.warning("ALERT: %s", message)


class LineNotifySink(NotificationSink):
    """Pushes alerts through the LINE Notify API."""

    def __init__(
        self,
        token: str,
        session: Optional[requests.Session] = None,
        url: str = LINE_NOTIFY_URL,
        timeout: float = 5.0,
    ):
        self.url = url
        self.timeout = timeout
        self._session = session if session is not None else requests.Session()
        self._session.headers.update({"Authorization": f"Bearer {token}"})

    def notify(self, message: str) -> None:
        try:
            response = self._session.post(
                self.url, data={"message": message}, timeout=self.timeout
            )
        except requests.RequestException as exc:
            logger.warning("LINE notify failed: %s", exc)
            return
        if not response.ok:
            logger.warning(
                "LINE notify rejected (HTTP %s): %s", response.status_code, response.text
            )
            return
        logger.debug("LINE notify sent: %s", message)


def build_notifier(settings: NotifySettings) -> NotificationSink:
    """Return a LINE sink when a token is configured, else a log sink."""
    if settings.line_notify_token:
        return LineNotifySink(settings.line_notify_token)
    return LogNotificationSink()

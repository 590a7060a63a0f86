"""
Notification delivery channels.

Delivery SDKs (FCM, SMTP/SES, SMS gateway, WhatsApp Business) live outside
this service. NotificationSender is the seam the outbox worker delivers
through; LoggingNotificationSender is the default and just logs.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

logger = logging.getLogger("payout_accounts.notifications")


class NotificationSender(ABC):
    """Delivers one message on one channel. Raise to have the job retried."""

    @abstractmethod
    async def send_push(
        self, recipient_id: str, title: str, body: str, priority: str, data: Optional[dict[str, Any]] = None
    ) -> None:
        ...

    @abstractmethod
    async def send_email(
        self, to: str, subject: str, text: str, priority: str, metadata: Optional[dict[str, Any]] = None
    ) -> None:
        ...

    @abstractmethod
    async def send_sms(
        self, to: str, body: str, priority: str, metadata: Optional[dict[str, Any]] = None
    ) -> None:
        ...

    @abstractmethod
    async def send_whatsapp(
        self, to: str, body: str, priority: str, metadata: Optional[dict[str, Any]] = None
    ) -> None:
        ...


class LoggingNotificationSender(NotificationSender):
    async def send_push(self, recipient_id, title, body, priority, data=None):
        logger.info("PUSH | to=%s priority=%s | %s: %s", recipient_id, priority, title, body)

    async def send_email(self, to, subject, text, priority, metadata=None):
        logger.info("EMAIL | to=%s priority=%s | %s", to, priority, subject)

    async def send_sms(self, to, body, priority, metadata=None):
        logger.info("SMS | to=%s priority=%s | %s", to, priority, body)

    async def send_whatsapp(self, to, body, priority, metadata=None):
        logger.info("WHATSAPP | to=%s priority=%s | %s", to, priority, body)

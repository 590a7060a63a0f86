"""
Notification fan-out.

One event becomes up to four outbox jobs: push (always), email (when the
user has an address), SMS and WhatsApp (when the user has a mobile number).
Each channel is queued independently; a failure to queue one is logged and
never stops the others.
"""

import logging
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from payout_accounts.jobs.queue import enqueue
from payout_accounts.models.account import AcademyUser
from payout_accounts.models.enums import JobType, NotificationEvent
from payout_accounts.notifications.messages import build_messages

logger = logging.getLogger("payout_accounts.notifications")

PRIORITY = "high"


async def fan_out(
    session: AsyncSession,
    user: AcademyUser,
    event: NotificationEvent,
    account_id: str,
    data: Optional[dict[str, Any]] = None,
    **context: Any,
) -> list[JobType]:
    """
    Queue `event` on every channel the user can be reached on.

    Returns:
        The channels that were successfully queued.
    """
    messages = build_messages(event, user_name=user.display_name, account_id=account_id, **context)
    metadata = {"type": event.value, "account_id": account_id, "recipient": "academy"}

    channels: list[tuple[JobType, dict[str, Any]]] = [
        (JobType.NOTIFY_PUSH, {
            "recipient_type": "academy",
            "recipient_id": user.id,
            "title": messages.push_title,
            "body": messages.push_body,
            "priority": PRIORITY,
            "data": {"type": event.value, "account_id": account_id, **(data or {})},
        }),
    ]
    if user.email:
        channels.append((JobType.NOTIFY_EMAIL, {
            "to": user.email,
            "subject": messages.email_subject,
            "text": messages.email_text,
            "priority": PRIORITY,
            "metadata": metadata,
        }))
    if user.mobile:
        channels.append((JobType.NOTIFY_SMS, {
            "to": user.mobile,
            "body": messages.sms_text,
            "priority": PRIORITY,
            "metadata": metadata,
        }))
        channels.append((JobType.NOTIFY_WHATSAPP, {
            "to": user.mobile,
            "body": messages.whatsapp_text,
            "priority": PRIORITY,
            "metadata": metadata,
        }))

    queued: list[JobType] = []
    for job_type, payload in channels:
        try:
            await enqueue(session, job_type, payload, payout_account_id=account_id)
            queued.append(job_type)
        except SQLAlchemyError as e:
            logger.error(
                "Failed to queue %s for %s (account=%s): %s",
                job_type.value,
                event.value,
                account_id,
                e,
            )
    return queued

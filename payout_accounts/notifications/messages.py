"""Message templates for payout account notifications, one set per event."""

from dataclasses import dataclass
from typing import Callable

from payout_accounts.config import settings
from payout_accounts.models.enums import NotificationEvent


@dataclass(frozen=True)
class ChannelMessages:
    push_title: str
    push_body: str
    email_subject: str
    email_text: str
    sms_text: str
    whatsapp_text: str


def _signature() -> str:
    return f"Team {settings.company_name}\n{settings.frontend_url}"


def _account_created(user_name: str, account_id: str, status: str, **_) -> ChannelMessages:
    return ChannelMessages(
        push_title="Payout account created",
        push_body=f"Your payout account has been created and is currently {status}.",
        email_subject="Your payout account has been created",
        email_text=(
            f"Hi {user_name},\n\n"
            f"Your payout account ({account_id}) has been created. Current status: {status}.\n"
            "We will let you know as soon as it is ready to receive payouts.\n\n"
            f"{_signature()}"
        ),
        sms_text=f"Your payout account {account_id} has been created. Status: {status}. - {settings.company_name}",
        whatsapp_text=(
            f"Your payout account *{account_id}* has been created.\n"
            f"Status: *{status}*\n"
            "We will notify you once it is activated."
        ),
    )


def _bank_details_updated(user_name: str, account_id: str, **_) -> ChannelMessages:
    return ChannelMessages(
        push_title="Bank details updated",
        push_body="Your bank details were received and are being submitted for verification.",
        email_subject="Bank details updated for your payout account",
        email_text=(
            f"Hi {user_name},\n\n"
            f"The bank details for payout account {account_id} have been updated and submitted for verification.\n"
            "If you did not make this change, contact support immediately.\n\n"
            f"{_signature()}"
        ),
        sms_text=f"Bank details for payout account {account_id} were updated. Not you? Contact support. - {settings.company_name}",
        whatsapp_text=(
            f"Bank details for payout account *{account_id}* were updated and submitted for verification.\n"
            "If you did not make this change, contact support immediately."
        ),
    )


def _account_activated(user_name: str, account_id: str, **_) -> ChannelMessages:
    return ChannelMessages(
        push_title="Payout account activated",
        push_body="Your payout account is active. You can now receive payouts.",
        email_subject="Your payout account is now active",
        email_text=(
            f"Hi {user_name},\n\n"
            f"Good news: payout account {account_id} has been activated and can now receive payouts.\n\n"
            f"{_signature()}"
        ),
        sms_text=f"Your payout account {account_id} is now active. - {settings.company_name}",
        whatsapp_text=f"Your payout account *{account_id}* is now *active* and ready to receive payouts.",
    )


def _account_needs_clarification(
    user_name: str, account_id: str, requirements_text: str, **_
) -> ChannelMessages:
    return ChannelMessages(
        push_title="Action required on your payout account",
        push_body=f"More information is needed: {requirements_text}",
        email_subject="Action required: your payout account needs more information",
        email_text=(
            f"Hi {user_name},\n\n"
            f"Payout account {account_id} needs more information before it can be activated:\n"
            f"{requirements_text}\n\n"
            f"Please update your details at {settings.frontend_url}.\n\n"
            f"{_signature()}"
        ),
        sms_text=(
            f"Action required on payout account {account_id}. Check your email or app for details. "
            f"- {settings.company_name}"
        ),
        whatsapp_text=(
            f"Payout account *{account_id}* needs more information:\n{requirements_text}"
        ),
    )


def _account_rejected(user_name: str, account_id: str, reason: str, **_) -> ChannelMessages:
    return ChannelMessages(
        push_title="Payout account rejected",
        push_body=f"Your payout account was rejected: {reason}",
        email_subject="Your payout account was rejected",
        email_text=(
            f"Hi {user_name},\n\n"
            f"Payout account {account_id} was rejected.\nReason: {reason}\n\n"
            "Please contact support if you believe this is a mistake.\n\n"
            f"{_signature()}"
        ),
        sms_text=f"Payout account {account_id} was rejected: {reason}. - {settings.company_name}",
        whatsapp_text=f"Payout account *{account_id}* was *rejected*.\nReason: {reason}",
    )


TEMPLATES: dict[NotificationEvent, Callable[..., ChannelMessages]] = {
    NotificationEvent.ACCOUNT_CREATED: _account_created,
    NotificationEvent.BANK_DETAILS_UPDATED: _bank_details_updated,
    NotificationEvent.ACCOUNT_ACTIVATED: _account_activated,
    NotificationEvent.ACCOUNT_NEEDS_CLARIFICATION: _account_needs_clarification,
    NotificationEvent.ACCOUNT_REJECTED: _account_rejected,
}


def build_messages(event: NotificationEvent, **context) -> ChannelMessages:
    return TEMPLATES[event](**context)

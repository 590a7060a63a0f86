"""
Provider webhooks.

POST /webhooks/razorpay — Account and route product events. Any event that
names a known linked account triggers a status sync; the payload itself is
never trusted for state, only as a hint of which account to reconcile.
"""

import hashlib
import hmac
import json
import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from payout_accounts.api.deps import get_provider
from payout_accounts.config import settings
from payout_accounts.database import get_session
from payout_accounts.engine.reconciler import reconcile_account
from payout_accounts.errors import BadRequestError
from payout_accounts.providers import PayoutProvider
from payout_accounts.repository import AccountRepository
from payout_accounts.schemas import ApiResponse

logger = logging.getLogger("payout_accounts.webhooks")

router = APIRouter(prefix="/webhooks", tags=["webhooks"])

SYNC_EVENT_PREFIXES = ("account.", "product.route.")


def compute_signature(secret: str, body: bytes) -> str:
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def verify_signature(secret: str, body: bytes, signature: Optional[str]) -> bool:
    if not secret or not signature:
        return False
    return hmac.compare_digest(compute_signature(secret, body), signature)


def linked_account_id(event: dict[str, Any]) -> Optional[str]:
    """Linked account named by a webhook event, if any."""
    entity = (((event.get("payload") or {}).get("account") or {}).get("entity") or {})
    return entity.get("id") or event.get("account_id")


@router.post("/razorpay", response_model=ApiResponse[dict])
async def razorpay_webhook(
    request: Request,
    x_razorpay_signature: Optional[str] = Header(None),
    session: AsyncSession = Depends(get_session),
    provider: PayoutProvider = Depends(get_provider),
):
    body = await request.body()
    if not verify_signature(settings.razorpay_webhook_secret, body, x_razorpay_signature):
        logger.warning("Rejected Razorpay webhook with invalid signature")
        raise BadRequestError("Invalid webhook signature")

    try:
        event = json.loads(body)
    except json.JSONDecodeError as e:
        raise BadRequestError("Invalid webhook payload") from e
    if not isinstance(event, dict):
        raise BadRequestError("Invalid webhook payload")

    event_name = str(event.get("event") or "")
    account_id = linked_account_id(event)
    result = {"event": event_name, "synced": False}

    if not event_name.startswith(SYNC_EVENT_PREFIXES) or not account_id:
        logger.info("Ignoring Razorpay webhook %s", event_name or "<unnamed>")
        return ApiResponse[dict](success=True, statusCode=200, message="Webhook ignored", data=result)

    account = await AccountRepository(session).get_by_provider_account(account_id)
    if account is None:
        logger.info("Razorpay webhook %s for unknown account %s", event_name, account_id)
        return ApiResponse[dict](success=True, statusCode=200, message="Webhook ignored", data=result)

    logger.info("Razorpay webhook %s, syncing payout account %s", event_name, account.id)
    outcome = await reconcile_account(session, provider, account)
    await session.commit()

    result.update(synced=True, activation_status=outcome.new_status.value)
    return ApiResponse[dict](success=True, statusCode=200, message="Webhook processed", data=result)

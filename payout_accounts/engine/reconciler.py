"""
Status synchronizer: the single writer of activation state.

Reconciles a payout account's cached activation status, requirements and
rejection reason with what the provider reports, then fires the side effects
of a transition. The flow:

  1. Fetch account-level status from the provider (failure propagates)
  2. Fetch product-configuration status when a configuration exists; it is
     the payout-readiness authority and wins over the account-level status
     (failure is logged and the account-level status is used)
  3. Normalize the status and recompute the deduplicated requirement list
  4. Persist (version-checked)
  5. On transition only: audit + notification fan-out keyed by the new status

Bank-detail updates, the GET endpoint, the sync endpoint and provider
webhooks all reconcile through reconcile_account().
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from payout_accounts.audit.logger import create_audit_trail
from payout_accounts.config import settings
from payout_accounts.engine.retry import ProviderError, with_retry
from payout_accounts.engine.sanitize import sanitize_account
from payout_accounts.errors import ApiError, NotFoundError, UpstreamError
from payout_accounts.models.account import PayoutAccount
from payout_accounts.models.enums import (
    ActionScale,
    ActionType,
    ActivationStatus,
    NotificationEvent,
    ProductConfigurationStatus,
)
from payout_accounts.notifications.dispatcher import fan_out
from payout_accounts.providers.base import PayoutProvider
from payout_accounts.repository import AccountRepository

logger = logging.getLogger("payout_accounts.reconciler")

DEFAULT_REQUIREMENTS_TEXT = "Additional information"
DEFAULT_REJECTION_REASON = "Account verification failed"
TERMINAL_STATUSES = {ActivationStatus.ACTIVATED, ActivationStatus.REJECTED}


@dataclass
class ReconcileResult:
    """Outcome of one reconciliation."""

    account: PayoutAccount
    previous_status: ActivationStatus
    new_status: ActivationStatus

    @property
    def changed(self) -> bool:
        return self.previous_status != self.new_status


def normalize_status(raw: Optional[str]) -> ActivationStatus:
    """
    Map a provider activation status onto ours.

    Anything that is not activated, needs_clarification or rejected
    (created, requested, under_review, suspended, missing) is still pending.
    """
    try:
        return ActivationStatus(raw)
    except ValueError:
        return ActivationStatus.PENDING


def format_requirements(requirements: Any) -> Optional[list[str]]:
    """
    Flatten provider requirements into a deduplicated list of descriptions.

    Objects contribute their description, else their field_reference, else
    their JSON; strings are used verbatim. First occurrence wins.
    """
    if requirements is None:
        return None
    if isinstance(requirements, str):
        return [requirements]
    if not isinstance(requirements, list):
        return None

    formatted: list[str] = []
    seen: set[str] = set()
    for req in requirements:
        if isinstance(req, dict):
            text = req.get("description") or req.get("field_reference") or json.dumps(req, sort_keys=True)
        else:
            text = str(req)
        if text not in seen:
            seen.add(text)
            formatted.append(text)
    return formatted


async def reconcile_account(
    session: AsyncSession,
    provider: PayoutProvider,
    account: PayoutAccount,
) -> ReconcileResult:
    """
    Bring `account` in line with the provider and fire transition side effects.

    Does not commit; the caller owns the transaction.

    Raises:
        UpstreamError: If the account-level status cannot be fetched.
        ConcurrentModificationError: If the account changed underneath us.
    """
    repo = AccountRepository(session)

    try:
        remote = await with_retry(
            provider.get_account_details,
            account.razorpay_account_id,
            max_retries=settings.provider_read_retries,
        )
    except ProviderError as e:
        logger.error("Failed to fetch provider status for account %s: %s", account.id, e)
        raise UpstreamError(f"Failed to fetch account status: {e.message}") from e

    product_status: Optional[str] = None
    product_requirements: Any = None
    if account.product_configuration_id:
        try:
            product = await with_retry(
                provider.get_product_configuration_details,
                account.razorpay_account_id,
                account.product_configuration_id,
                max_retries=settings.provider_read_retries,
            )
            product_status = product.activation_status
            product_requirements = product.requirements
            logger.info(
                "Product configuration status synced: account=%s product_status=%s account_status=%s",
                account.id,
                product_status,
                remote.activation_status,
            )
        except ProviderError as e:
            logger.warning("Failed to fetch product configuration status during sync for %s: %s", account.id, e)

    previous_status = normalize_status(account.activation_status)
    new_status = normalize_status(product_status or remote.activation_status)

    if product_requirements is not None:
        requirements = product_requirements
    elif isinstance(remote.requirements, list):
        requirements = remote.requirements
    else:
        requirements = None
    formatted = format_requirements(requirements)

    if account.activation_status != new_status.value:
        account.activation_status = new_status.value
    if account.activation_requirements != formatted:
        account.activation_requirements = formatted
    if normalize_status(remote.activation_status) == ActivationStatus.REJECTED:
        account.rejection_reason = remote.rejection_reason or None
    if product_status is not None:
        readiness = (
            ProductConfigurationStatus.CONFIGURED
            if product_status == ActivationStatus.ACTIVATED.value
            else ProductConfigurationStatus.PENDING
        )
        if account.product_configuration_status != readiness.value:
            account.product_configuration_status = readiness.value

    await repo.save(account)

    result = ReconcileResult(account=account, previous_status=previous_status, new_status=new_status)
    if result.changed:
        await _on_transition(session, repo, result, requirements)
    return result


async def _on_transition(
    session: AsyncSession,
    repo: AccountRepository,
    result: ReconcileResult,
    raw_requirements: Any,
) -> None:
    account = result.account
    previous, new = result.previous_status, result.new_status

    if previous in TERMINAL_STATUSES:
        logger.warning(
            "Payout account %s left terminal status %s for %s as reported by the provider",
            account.id,
            previous.value,
            new.value,
        )
    logger.info("Payout account %s status changed: %s -> %s", account.id, previous.value, new.value)

    await create_audit_trail(
        session,
        ActionType.PAYOUT_ACCOUNT_STATUS_CHANGED,
        ActionScale.HIGH,
        f"Payout account status changed from {previous.value} to {new.value}",
        "PayoutAccount",
        account.id,
        user_id=account.user_id,
        metadata={
            "previous_status": previous.value,
            "new_status": new.value,
            "razorpay_account_id": account.razorpay_account_id,
            "requirements": raw_requirements,
        },
    )

    if new == ActivationStatus.PENDING:
        return

    user = await repo.get_user(account.user_id)
    if user is None:
        logger.warning("Owner %s of payout account %s not found, skipping notifications", account.user_id, account.id)

    if new == ActivationStatus.ACTIVATED:
        await create_audit_trail(
            session,
            ActionType.PAYOUT_ACCOUNT_ACTIVATED,
            ActionScale.CRITICAL,
            "Payout account activated",
            "PayoutAccount",
            account.id,
            user_id=account.user_id,
            metadata={"razorpay_account_id": account.razorpay_account_id},
        )
        if user is not None:
            await fan_out(session, user, NotificationEvent.ACCOUNT_ACTIVATED, account.id)

    elif new == ActivationStatus.NEEDS_CLARIFICATION:
        requirements_text = ", ".join(account.activation_requirements or []) or DEFAULT_REQUIREMENTS_TEXT
        if user is not None:
            await fan_out(
                session,
                user,
                NotificationEvent.ACCOUNT_NEEDS_CLARIFICATION,
                account.id,
                data={"requirements": account.activation_requirements},
                requirements_text=requirements_text,
            )

    elif new == ActivationStatus.REJECTED:
        reason = account.rejection_reason or DEFAULT_REJECTION_REASON
        await create_audit_trail(
            session,
            ActionType.PAYOUT_ACCOUNT_REJECTED,
            ActionScale.CRITICAL,
            f"Payout account rejected: {reason}",
            "PayoutAccount",
            account.id,
            user_id=account.user_id,
            metadata={"razorpay_account_id": account.razorpay_account_id, "reason": reason},
        )
        if user is not None:
            await fan_out(
                session,
                user,
                NotificationEvent.ACCOUNT_REJECTED,
                account.id,
                data={"reason": reason},
                reason=reason,
            )


async def sync_account_status(
    session: AsyncSession,
    provider: PayoutProvider,
    account_id: str,
) -> dict[str, Any]:
    """
    Reconcile one active account (by its public id) and commit.

    Returns:
        The sanitized account.

    Raises:
        NotFoundError: If there is no active account with that id.
    """
    repo = AccountRepository(session)
    account = await repo.get_active(account_id)
    if account is None:
        raise NotFoundError("Payout account not found")

    try:
        await reconcile_account(session, provider, account)
        await session.commit()
    except ApiError:
        raise
    except Exception as e:
        logger.exception("Error syncing account status for %s", account_id)
        raise UpstreamError("Failed to sync account status") from e

    return sanitize_account(account)

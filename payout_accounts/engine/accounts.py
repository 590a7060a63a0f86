"""
Payout account operations: create, update bank details, get.

Account creation runs the whole onboarding sequence against the provider in
one request:

  1. Linked account from the KYC details (failure aborts)
  2. Stakeholder decision, queued for the worker
  3. Route product configuration request (failure leaves the account degraded)
  4. Persist, audit, notify
  5. Bank details, when supplied, through the same routine as the update
     endpoint

Side effects after the linked account exists are best-effort: each is logged
on failure and never undoes the account. Activation state is only ever
written by the reconciler.
"""

import logging
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from payout_accounts.audit.logger import RequestContext, create_audit_trail
from payout_accounts.config import settings
from payout_accounts.engine.kyc import (
    bank_details_job_payload,
    build_linked_account_payload,
    decide_stakeholder,
)
from payout_accounts.engine.reconciler import format_requirements, normalize_status, reconcile_account
from payout_accounts.engine.retry import ProviderError, with_retry
from payout_accounts.engine.sanitize import sanitize_account
from payout_accounts.errors import ApiError, ConcurrentModificationError, ConflictError, NotFoundError, UpstreamError
from payout_accounts.jobs.queue import enqueue_payout_bank_details_update, enqueue_payout_stakeholder_create
from payout_accounts.models.account import AcademyUser, PayoutAccount
from payout_accounts.models.enums import (
    ActionScale,
    ActionType,
    BankDetailsStatus,
    NotificationEvent,
    ProductConfigurationStatus,
)
from payout_accounts.notifications.dispatcher import fan_out
from payout_accounts.providers.base import PayoutProvider
from payout_accounts.repository import DUPLICATE_ACCOUNT_MESSAGE, AccountRepository
from payout_accounts.schemas import BankInformation, CreatePayoutAccountRequest

logger = logging.getLogger("payout_accounts.accounts")

PRODUCT_CONFIGURATION_MISSING = "Product configuration not found. Please contact support."


async def create_payout_account(
    session: AsyncSession,
    provider: PayoutProvider,
    user_id: str,
    request: CreatePayoutAccountRequest,
    context: Optional[RequestContext] = None,
) -> dict[str, Any]:
    """
    Onboard an academy user onto the payout provider.

    Returns:
        The sanitized account.

    Raises:
        NotFoundError: Unknown user.
        ConflictError: The user already has an active account.
        UpstreamError: The provider refused to create the linked account.
    """
    repo = AccountRepository(session)

    user = await repo.get_user(user_id)
    if user is None:
        raise NotFoundError("User not found")

    if await repo.get_active_for_user(user_id) is not None:
        raise ConflictError(DUPLICATE_ACCOUNT_MESSAGE)

    try:
        kyc = request.kyc_details
        try:
            linked = await provider.create_linked_account(build_linked_account_payload(kyc))
        except ProviderError as e:
            logger.error("Linked account creation failed for user %s: %s", user_id, e)
            raise UpstreamError(f"Failed to create payout account: {e.message}") from e
        logger.info("Linked account %s created for user %s (%s)", linked.id, user_id, kyc.business_type.value)

        stakeholder = decide_stakeholder(kyc, request.stakeholder)
        if not stakeholder.should_create:
            if request.stakeholder is not None:
                logger.warning("Skipping stakeholder for %s: %s", linked.id, stakeholder.message)
            else:
                logger.error("Cannot create stakeholder for %s: %s", linked.id, stakeholder.message)

        product_id: Optional[str] = None
        try:
            product = await provider.request_product_configuration(linked.id)
            product_id = product.id
        except ProviderError as e:
            logger.error("Product configuration request failed for %s, continuing without it: %s", linked.id, e)

        account = PayoutAccount(
            user_id=user_id,
            razorpay_account_id=linked.id,
            kyc_details=kyc.model_dump(mode="json"),
            bank_information=None,
            activation_status=normalize_status(linked.activation_status).value,
            activation_requirements=format_requirements(
                linked.requirements if isinstance(linked.requirements, list) else None
            ),
            product_configuration_id=product_id,
            product_configuration_status=ProductConfigurationStatus.PENDING.value if product_id else None,
            bank_details_status=None,
            metadata_={
                "provider": provider.name,
                "stakeholder_auto_created": stakeholder.auto_created,
            },
            is_active=True,
        )
        await repo.add(account)
        account_id = account.id

        if stakeholder.should_create:
            try:
                await enqueue_payout_stakeholder_create(
                    session, linked.id, stakeholder.data, account.id, stakeholder.auto_created
                )
            except SQLAlchemyError as e:
                logger.error("Failed to queue stakeholder creation for %s: %s", account.id, e)

        await create_audit_trail(
            session,
            ActionType.PAYOUT_ACCOUNT_CREATED,
            ActionScale.CRITICAL,
            f"Payout account created for {kyc.legal_business_name}",
            "PayoutAccount",
            account.id,
            user_id=user_id,
            metadata={
                "razorpay_account_id": linked.id,
                "business_type": kyc.business_type.value,
                "activation_status": account.activation_status,
                "product_configuration_id": product_id,
                "stakeholder_auto_created": stakeholder.auto_created,
            },
            context=context,
        )
        await fan_out(
            session,
            user,
            NotificationEvent.ACCOUNT_CREATED,
            account.id,
            data={"status": account.activation_status},
            status=account.activation_status,
        )

        if request.bank_information is not None:
            try:
                await _apply_bank_details(session, provider, user, account, request.bank_information, context)
            except ConcurrentModificationError:
                raise
            except ApiError as e:
                logger.warning("Bank details not applied during creation of %s: %s", account_id, e.message)

        await session.commit()
    except ApiError:
        raise
    except Exception as e:
        logger.exception("Unexpected error creating payout account for user %s", user_id)
        raise UpstreamError("Failed to create payout account") from e

    return sanitize_account(account)


async def update_bank_details(
    session: AsyncSession,
    provider: PayoutProvider,
    user_id: str,
    bank: BankInformation,
    context: Optional[RequestContext] = None,
) -> dict[str, Any]:
    """
    Record new settlement bank details and queue their submission.

    Raises:
        NotFoundError: Unknown user or no active account.
        UpstreamError: No product configuration could be found or requested.
    """
    repo = AccountRepository(session)

    user = await repo.get_user(user_id)
    if user is None:
        raise NotFoundError("User not found")

    account = await repo.get_active_for_user(user_id)
    if account is None:
        raise NotFoundError("Payout account not found. Please create a payout account first.")

    account_id = account.id
    try:
        await _apply_bank_details(session, provider, user, account, bank, context)
        await session.commit()
    except ApiError:
        raise
    except Exception as e:
        logger.exception("Unexpected error updating bank details for %s", account_id)
        raise UpstreamError("Failed to update bank details") from e

    return sanitize_account(account)


async def get_payout_account(
    session: AsyncSession,
    provider: PayoutProvider,
    user_id: str,
    sync: bool = True,
) -> Optional[dict[str, Any]]:
    """
    The user's active account, optionally reconciled with the provider first.

    A failed sync is logged and the cached state is returned.

    Returns:
        The sanitized account, or None if the user has none.
    """
    repo = AccountRepository(session)

    if await repo.get_user(user_id) is None:
        raise NotFoundError("User not found")

    account = await repo.get_active_for_user(user_id)
    if account is None:
        return None

    if sync:
        account_id = account.id
        try:
            await reconcile_account(session, provider, account)
            await session.commit()
        except ApiError as e:
            logger.warning("Status sync failed for %s, returning cached state: %s", account_id, e.message)
            await session.rollback()
            account = await repo.get_active_for_user(user_id)

    return sanitize_account(account)


async def _resolve_product_configuration(provider: PayoutProvider, account: PayoutAccount) -> str:
    """Stored id, else the provider's existing configuration, else a new request."""
    if account.product_configuration_id:
        return account.product_configuration_id

    try:
        product = await with_retry(
            provider.get_product_configuration,
            account.razorpay_account_id,
            max_retries=settings.provider_read_retries,
        )
        logger.info("Found existing product configuration %s for %s", product.id, account.id)
    except ProviderError as e:
        logger.warning("No product configuration found for %s, requesting one: %s", account.id, e)
        try:
            product = await provider.request_product_configuration(account.razorpay_account_id)
        except ProviderError as e2:
            logger.error("Product configuration request failed for %s: %s", account.id, e2)
            raise UpstreamError(PRODUCT_CONFIGURATION_MISSING) from e2

    account.product_configuration_id = product.id
    if account.product_configuration_status is None:
        account.product_configuration_status = ProductConfigurationStatus.PENDING.value
    return product.id


async def _apply_bank_details(
    session: AsyncSession,
    provider: PayoutProvider,
    user: AcademyUser,
    account: PayoutAccount,
    bank: BankInformation,
    context: Optional[RequestContext],
) -> None:
    repo = AccountRepository(session)
    product_id = await _resolve_product_configuration(provider, account)

    account.bank_information = {
        "account_number": bank.account_number,
        "ifsc_code": bank.ifsc_code,
        "account_holder_name": bank.account_holder_name,
        "bank_name": bank.bank_name or None,
    }
    account.bank_details_status = BankDetailsStatus.PENDING.value
    await repo.save(account)

    try:
        await reconcile_account(session, provider, account)
    except ConcurrentModificationError:
        raise
    except ApiError as e:
        logger.warning("Status sync after bank details update failed for %s: %s", account.id, e.message)

    try:
        await enqueue_payout_bank_details_update(
            session,
            account.razorpay_account_id,
            product_id,
            bank_details_job_payload(bank, user.email, user.mobile),
            account.id,
        )
    except SQLAlchemyError as e:
        logger.error("Failed to queue bank details submission for %s: %s", account.id, e)

    await create_audit_trail(
        session,
        ActionType.PAYOUT_ACCOUNT_BANK_DETAILS_UPDATED,
        ActionScale.HIGH,
        "Payout account bank details updated",
        "PayoutAccount",
        account.id,
        user_id=user.id,
        metadata={
            "product_configuration_id": product_id,
            "ifsc_code": bank.ifsc_code,
            "account_number_last4": bank.account_number[-4:],
        },
        context=context,
    )
    await fan_out(session, user, NotificationEvent.BANK_DETAILS_UPDATED, account.id)

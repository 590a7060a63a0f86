"""
Academy payout account endpoints.

GET   /academy/payout-account              — The caller's account (synced with the provider by default).
POST  /academy/payout-account              — Onboard the caller onto the payout provider.
PUT   /academy/payout-account/bank-details — Set settlement bank details (PATCH accepted too).
POST  /academy/payout-account/sync         — Force a status sync with the provider.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from payout_accounts.api.deps import get_current_user_id, get_provider, get_request_context
from payout_accounts.audit.logger import RequestContext
from payout_accounts.database import get_session
from payout_accounts.engine.accounts import create_payout_account, get_payout_account, update_bank_details
from payout_accounts.engine.reconciler import sync_account_status
from payout_accounts.errors import NotFoundError
from payout_accounts.providers import PayoutProvider
from payout_accounts.repository import AccountRepository
from payout_accounts.schemas import (
    ApiResponse,
    BankInformation,
    CreatePayoutAccountRequest,
    PayoutAccountView,
)

router = APIRouter(prefix="/academy/payout-account", tags=["payout-account"])

AccountResponse = ApiResponse[PayoutAccountView]


@router.get("", response_model=AccountResponse)
async def get_account(
    sync: bool = Query(True, description="Reconcile with the provider before returning"),
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
    provider: PayoutProvider = Depends(get_provider),
):
    account = await get_payout_account(session, provider, user_id, sync=sync)
    if account is None:
        raise NotFoundError("Payout account not found")
    return AccountResponse(success=True, statusCode=200, message="Payout account retrieved successfully", data=account)


@router.post("", response_model=AccountResponse, status_code=201)
async def create_account(
    body: CreatePayoutAccountRequest,
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
    provider: PayoutProvider = Depends(get_provider),
    context: RequestContext = Depends(get_request_context),
):
    """
    Create the caller's payout account.

    Creates the provider linked account, queues the stakeholder, requests the
    route product configuration and, when bank details are included, queues
    their submission. 409 if the caller already has an active account.
    """
    account = await create_payout_account(session, provider, user_id, body, context)
    return AccountResponse(success=True, statusCode=201, message="Payout account created successfully", data=account)


@router.api_route("/bank-details", methods=["PUT", "PATCH"], response_model=AccountResponse)
async def put_bank_details(
    body: BankInformation,
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
    provider: PayoutProvider = Depends(get_provider),
    context: RequestContext = Depends(get_request_context),
):
    account = await update_bank_details(session, provider, user_id, body, context)
    return AccountResponse(success=True, statusCode=200, message="Bank details updated successfully", data=account)


@router.post("/sync", response_model=AccountResponse)
@router.post("/sync-status", response_model=AccountResponse)
async def sync_account(
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
    provider: PayoutProvider = Depends(get_provider),
):
    """Pull the latest activation status from the provider. Upstream failures surface as 500."""
    account = await AccountRepository(session).get_active_for_user(user_id)
    if account is None:
        raise NotFoundError("Payout account not found")
    synced = await sync_account_status(session, provider, account.id)
    return AccountResponse(success=True, statusCode=200, message="Account status synced successfully", data=synced)

"""Liveness endpoint."""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from payout_accounts.api.deps import get_provider
from payout_accounts.database import get_session
from payout_accounts.providers import PayoutProvider

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(
    session: AsyncSession = Depends(get_session),
    provider: PayoutProvider = Depends(get_provider),
):
    await session.execute(text("SELECT 1"))
    return {"status": "ok", "provider": provider.name}

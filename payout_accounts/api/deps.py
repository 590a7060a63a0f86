"""Shared request dependencies."""

from functools import lru_cache
from typing import Optional

from fastapi import Header, Request

from payout_accounts.audit.logger import RequestContext
from payout_accounts.errors import UnauthorizedError
from payout_accounts.providers import PayoutProvider, build_provider


@lru_cache
def get_provider() -> PayoutProvider:
    """Process-wide provider client, built from settings on first use."""
    return build_provider()


async def get_current_user_id(x_user_id: Optional[str] = Header(None)) -> str:
    """Academy user making the request (authentication happens upstream)."""
    if not x_user_id or not x_user_id.strip():
        raise UnauthorizedError("Authentication required")
    return x_user_id.strip()


def get_request_context(request: Request) -> RequestContext:
    forwarded = request.headers.get("x-forwarded-for")
    ip_address = forwarded.split(",")[0].strip() if forwarded else (request.client.host if request.client else None)
    return RequestContext(ip_address=ip_address, user_agent=request.headers.get("user-agent"))

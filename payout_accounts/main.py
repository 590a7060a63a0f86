"""
Payout Accounts — academy payout onboarding API.

Onboards academy owners onto Razorpay Route as linked accounts, keeps their
activation status in sync with the provider, and hands slow or flaky provider
work (stakeholders, bank details, notifications) to the outbox worker.

Start the server:
    uvicorn payout_accounts.main:app --reload

Start the worker:
    python -m payout_accounts.jobs.worker
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from payout_accounts.api.deps import get_provider
from payout_accounts.api.health import router as health_router
from payout_accounts.api.payout_accounts import router as payout_account_router
from payout_accounts.api.webhooks import router as webhooks_router
from payout_accounts.config import settings
from payout_accounts.database import init_db
from payout_accounts.errors import ApiError

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger("payout_accounts.api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize database on startup, close the provider client on shutdown."""
    await init_db()
    yield
    if get_provider.cache_info().currsize:
        await get_provider().aclose()


app = FastAPI(
    title="Payout Accounts",
    description=(
        "Academy payout account onboarding on Razorpay Route: KYC-backed linked "
        "accounts, stakeholder and bank-detail submission through a durable outbox, "
        "provider-authoritative activation status and immutable audit trails."
    ),
    version="0.1.0",
    lifespan=lifespan,
)


def _envelope(status_code: int, message: str, data=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "statusCode": status_code, "message": message, "data": data},
    )


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return _envelope(exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(p) for p in err["loc"] if p != "body"), "message": err["msg"]}
        for err in exc.errors()
    ]
    return _envelope(400, "Validation failed", {"errors": errors})


app.include_router(health_router)
app.include_router(payout_account_router, prefix="/api")
app.include_router(webhooks_router, prefix="/api")

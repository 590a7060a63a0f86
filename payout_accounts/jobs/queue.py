"""
Durable job queues backed by the outbox table.

Jobs are written in a SAVEPOINT inside the caller's transaction, so they
commit together with the state change that needs them, and roll back with it.
The outbox worker picks them up after commit.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from payout_accounts.config import settings
from payout_accounts.models.account import OutboxJob
from payout_accounts.models.enums import JobStatus, JobType

logger = logging.getLogger("payout_accounts.jobs.queue")


async def enqueue(
    session: AsyncSession,
    job_type: JobType,
    payload: dict[str, Any],
    payout_account_id: Optional[str] = None,
    delay_seconds: float = 0.0,
    max_attempts: Optional[int] = None,
) -> OutboxJob:
    """
    Add a job to the outbox.

    Raises:
        SQLAlchemyError: If the job could not be written. Callers treat this
            as a degraded outcome and log it.
    """
    job = OutboxJob(
        job_type=job_type.value,
        payload=payload,
        payout_account_id=payout_account_id,
        status=JobStatus.PENDING.value,
        attempts=0,
        max_attempts=max_attempts or settings.outbox_max_attempts,
        next_attempt_at=datetime.now(timezone.utc) + timedelta(seconds=delay_seconds),
    )
    async with session.begin_nested():
        session.add(job)

    logger.info(
        "Job queued: type=%s account=%s delay=%.1fs",
        job_type.value,
        payout_account_id or "-",
        delay_seconds,
    )
    return job


async def enqueue_payout_stakeholder_create(
    session: AsyncSession,
    account_id: str,
    stakeholder_data: dict[str, Any],
    payout_account_id: str,
    auto_created: bool,
) -> OutboxJob:
    """Queue stakeholder creation; delayed so the provider finishes creating the account first."""
    return await enqueue(
        session,
        JobType.STAKEHOLDER_CREATE,
        {
            "account_id": account_id,
            "stakeholder_data": stakeholder_data,
            "payout_account_id": payout_account_id,
            "auto_created": auto_created,
        },
        payout_account_id=payout_account_id,
        delay_seconds=settings.stakeholder_job_delay_seconds,
    )


async def enqueue_payout_bank_details_update(
    session: AsyncSession,
    account_id: str,
    product_config_id: str,
    bank_details: dict[str, Any],
    payout_account_id: str,
) -> OutboxJob:
    return await enqueue(
        session,
        JobType.BANK_DETAILS_UPDATE,
        {
            "account_id": account_id,
            "product_config_id": product_config_id,
            "bank_details": bank_details,
            "payout_account_id": payout_account_id,
        },
        payout_account_id=payout_account_id,
    )

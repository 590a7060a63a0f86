"""
Outbox worker.

Drains due jobs from the outbox table and performs them against the provider
or the notification channels. Each job is claimed (pending -> processing,
attempts + 1, leased until locked_until) in one short transaction and executed
in its own, so a crash mid-batch only affects the job in flight. Once its lease
expires that job is claimed again by the next worker.

Failure handling per job:
  - PermanentError or a malformed payload -> dead immediately
  - anything else -> pending again after backoff_delay(attempts)
  - attempts exhausted -> dead

Run standalone:
    python -m payout_accounts.jobs.worker
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Optional

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from payout_accounts.config import settings
from payout_accounts.engine.retry import ProviderError, backoff_delay
from payout_accounts.models.account import OutboxJob
from payout_accounts.models.enums import BankDetailsStatus, JobStatus, JobType
from payout_accounts.notifications.senders import LoggingNotificationSender, NotificationSender
from payout_accounts.providers.base import BankAccountDetails, PayoutProvider
from payout_accounts.repository import AccountRepository

logger = logging.getLogger("payout_accounts.jobs.worker")


class JobPayloadError(Exception):
    """The job payload is missing required fields; retrying cannot help."""


def _require(payload: dict[str, Any], *keys: str) -> None:
    missing = [k for k in keys if not payload.get(k)]
    if missing:
        raise JobPayloadError(f"Missing required job data: {', '.join(missing)}")


class OutboxWorker:
    """Claims and executes outbox jobs."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        provider: PayoutProvider,
        sender: Optional[NotificationSender] = None,
        batch_size: Optional[int] = None,
    ):
        self.session_factory = session_factory
        self.provider = provider
        self.sender = sender or LoggingNotificationSender()
        self.batch_size = batch_size or settings.worker_batch_size
        self._handlers: dict[str, Callable[[int, dict[str, Any]], Awaitable[None]]] = {
            JobType.STAKEHOLDER_CREATE.value: self._create_stakeholder,
            JobType.BANK_DETAILS_UPDATE.value: self._submit_bank_details,
            JobType.NOTIFY_PUSH.value: self._notify_push,
            JobType.NOTIFY_EMAIL.value: self._notify_email,
            JobType.NOTIFY_SMS.value: self._notify_sms,
            JobType.NOTIFY_WHATSAPP.value: self._notify_whatsapp,
        }

    async def run_once(self, limit: Optional[int] = None) -> int:
        """Process one batch of due jobs. Returns how many were attempted."""
        job_ids = await self._claim(limit or self.batch_size)
        for job_id in job_ids:
            await self._process(job_id)
        return len(job_ids)

    async def run_forever(self, poll_interval: Optional[float] = None) -> None:
        interval = poll_interval if poll_interval is not None else settings.worker_poll_interval_seconds
        logger.info("Outbox worker started (provider=%s, poll=%.1fs)", self.provider.name, interval)
        while True:
            processed = await self.run_once()
            if processed == 0:
                await asyncio.sleep(interval)

    async def _claim(self, limit: int) -> list[int]:
        """
        Lease due jobs to this worker.

        Due means pending with next_attempt_at reached, or still processing
        with an expired lease (the worker holding it died). A reclaimed job
        that has already used all its attempts is dead-lettered instead.
        """
        now = datetime.now(timezone.utc)
        lease_until = now + timedelta(seconds=settings.worker_lease_seconds)
        async with self.session_factory() as session:
            result = await session.execute(
                select(OutboxJob)
                .where(
                    or_(
                        and_(
                            OutboxJob.status == JobStatus.PENDING.value,
                            OutboxJob.next_attempt_at <= now,
                        ),
                        and_(
                            OutboxJob.status == JobStatus.PROCESSING.value,
                            OutboxJob.locked_until <= now,
                        ),
                    )
                )
                .order_by(OutboxJob.next_attempt_at, OutboxJob.id)
                .limit(limit)
                .with_for_update(skip_locked=True)
            )
            claimed: list[int] = []
            for job in result.scalars().all():
                if job.status == JobStatus.PROCESSING.value:
                    logger.warning("Job %d (%s) lease expired on attempt %d, reclaiming", job.id, job.job_type, job.attempts)
                    if job.attempts >= job.max_attempts:
                        job.status = JobStatus.DEAD.value
                        job.locked_until = None
                        job.last_error = f"Lease expired after {job.attempts} attempt(s)"
                        logger.error("Job %d (%s) dead: %s", job.id, job.job_type, job.last_error)
                        continue
                job.status = JobStatus.PROCESSING.value
                job.attempts += 1
                job.locked_until = lease_until
                claimed.append(job.id)
            await session.commit()
            return claimed

    async def _process(self, job_id: int) -> None:
        async with self.session_factory() as session:
            job = await session.get(OutboxJob, job_id)
            if job is None:
                return
            job_type, payload, attempt = job.job_type, dict(job.payload or {}), job.attempts

        handler = self._handlers.get(job_type)
        error: Optional[Exception] = None
        permanent = False
        try:
            if handler is None:
                raise JobPayloadError(f"Unknown job type: {job_type}")
            await handler(job_id, payload)
        except JobPayloadError as e:
            error, permanent = e, True
        except ProviderError as e:
            error, permanent = e, not e.retriable
        except Exception as e:
            error = e

        async with self.session_factory() as session:
            job = await session.get(OutboxJob, job_id)
            job.locked_until = None
            if error is None:
                job.status = JobStatus.COMPLETED.value
                job.last_error = None
                logger.info("Job %d (%s) completed on attempt %d", job_id, job_type, attempt)
            elif permanent or attempt >= job.max_attempts:
                job.status = JobStatus.DEAD.value
                job.last_error = str(error)
                logger.error(
                    "Job %d (%s) dead after %d attempt(s): %s",
                    job_id,
                    job_type,
                    attempt,
                    error,
                )
            else:
                delay = backoff_delay(attempt, settings.outbox_base_delay_seconds, settings.outbox_max_delay_seconds)
                job.status = JobStatus.PENDING.value
                job.last_error = str(error)
                job.next_attempt_at = datetime.now(timezone.utc) + timedelta(seconds=delay)
                logger.warning(
                    "Job %d (%s) failed on attempt %d/%d, retrying in %.1fs: %s",
                    job_id,
                    job_type,
                    attempt,
                    job.max_attempts,
                    delay,
                    error,
                )
            await session.commit()

    async def _checkpoint(self, job_id: int, **values: Any) -> None:
        """Merge `values` into the job payload so a retry can pick up where this attempt stopped."""
        async with self.session_factory() as session:
            job = await session.get(OutboxJob, job_id)
            job.payload = {**(job.payload or {}), **values}
            await session.commit()

    # Handlers

    async def _create_stakeholder(self, job_id: int, payload: dict[str, Any]) -> None:
        _require(payload, "account_id", "stakeholder_data", "payout_account_id")
        stakeholder_id = payload.get("stakeholder_id")
        if stakeholder_id:
            logger.info("Stakeholder %s already created for %s, recording it", stakeholder_id, payload["account_id"])
        else:
            stakeholder = await self.provider.create_stakeholder(payload["account_id"], payload["stakeholder_data"])
            stakeholder_id = stakeholder.id
            logger.info(
                "Stakeholder %s created for %s (auto_created=%s)",
                stakeholder_id,
                payload["account_id"],
                payload.get("auto_created", False),
            )
            await self._checkpoint(job_id, stakeholder_id=stakeholder_id)

        async with self.session_factory() as session:
            repo = AccountRepository(session)
            account = await repo.get_active(payload["payout_account_id"])
            if account is None:
                logger.warning("Payout account %s gone, stakeholder %s not recorded", payload["payout_account_id"], stakeholder_id)
                return
            account.stakeholder_id = stakeholder_id
            await repo.save(account)
            await session.commit()

    async def _submit_bank_details(self, job_id: int, payload: dict[str, Any]) -> None:
        _require(payload, "account_id", "product_config_id", "bank_details", "payout_account_id")
        details = payload["bank_details"]
        _require(details, "account_number", "ifsc", "beneficiary_name")
        bank = BankAccountDetails(
            account_number=details["account_number"],
            ifsc=details["ifsc"],
            beneficiary_name=details["beneficiary_name"],
            beneficiary_email=details.get("beneficiary_email") or "",
            beneficiary_mobile=details.get("beneficiary_mobile") or "",
        )
        await self.provider.update_bank_details(payload["account_id"], payload["product_config_id"], bank)
        logger.info("Bank details submitted for %s", payload["account_id"])

        async with self.session_factory() as session:
            repo = AccountRepository(session)
            account = await repo.get_active(payload["payout_account_id"])
            if account is None:
                logger.warning("Payout account %s gone, bank details status not recorded", payload["payout_account_id"])
                return
            account.bank_details_status = BankDetailsStatus.SUBMITTED.value
            await repo.save(account)
            await session.commit()

    async def _notify_push(self, job_id: int, payload: dict[str, Any]) -> None:
        _require(payload, "recipient_id", "title", "body")
        await self.sender.send_push(
            payload["recipient_id"], payload["title"], payload["body"], payload.get("priority", "high"), payload.get("data")
        )

    async def _notify_email(self, job_id: int, payload: dict[str, Any]) -> None:
        _require(payload, "to", "subject", "text")
        await self.sender.send_email(
            payload["to"], payload["subject"], payload["text"], payload.get("priority", "high"), payload.get("metadata")
        )

    async def _notify_sms(self, job_id: int, payload: dict[str, Any]) -> None:
        _require(payload, "to", "body")
        await self.sender.send_sms(payload["to"], payload["body"], payload.get("priority", "high"), payload.get("metadata"))

    async def _notify_whatsapp(self, job_id: int, payload: dict[str, Any]) -> None:
        _require(payload, "to", "body")
        await self.sender.send_whatsapp(
            payload["to"], payload["body"], payload.get("priority", "high"), payload.get("metadata")
        )


async def main() -> None:
    from payout_accounts.database import async_session, init_db
    from payout_accounts.providers import build_provider

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    await init_db()
    provider = build_provider()
    try:
        await OutboxWorker(async_session, provider).run_forever()
    finally:
        await provider.aclose()


if __name__ == "__main__":
    asyncio.run(main())

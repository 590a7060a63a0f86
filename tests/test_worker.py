"""Tests for the outbox worker."""

import pytest
from sqlalchemy import select

from payout_accounts.engine.accounts import create_payout_account
from payout_accounts.engine.retry import PermanentError
from payout_accounts.errors import ConcurrentModificationError
from payout_accounts.jobs.queue import enqueue
from payout_accounts.jobs.worker import OutboxWorker
from payout_accounts.models.account import OutboxJob, PayoutAccount
from payout_accounts.models.enums import JobStatus, JobType
from payout_accounts.notifications.senders import NotificationSender
from payout_accounts.repository import AccountRepository


class RecordingSender(NotificationSender):
    def __init__(self):
        self.sent = []

    async def send_push(self, recipient_id, title, body, priority, data=None):
        self.sent.append(("push", recipient_id, title))

    async def send_email(self, to, subject, text, priority, metadata=None):
        self.sent.append(("email", to, subject))

    async def send_sms(self, to, body, priority, metadata=None):
        self.sent.append(("sms", to, body))

    async def send_whatsapp(self, to, body, priority, metadata=None):
        self.sent.append(("whatsapp", to, body))


async def _job(session_factory, job_id) -> OutboxJob:
    async with session_factory() as session:
        return await session.get(OutboxJob, job_id)


async def _account(session_factory, user_id="ACD-001") -> PayoutAccount:
    async with session_factory() as session:
        result = await session.execute(select(PayoutAccount).where(PayoutAccount.user_id == user_id))
        return result.scalar_one()


@pytest.mark.asyncio
async def test_onboarding_jobs_complete(seeded_session, session_factory, provider, make_request):
    await create_payout_account(seeded_session, provider, "ACD-001", make_request(bank=True))
    sender = RecordingSender()

    processed = await OutboxWorker(session_factory, provider, sender).run_once()

    # stakeholder + bank details + 4 channels x (created, bank details updated)
    assert processed == 10
    account = await _account(session_factory)
    assert account.stakeholder_id == provider.stakeholders[account.razorpay_account_id][0]["id"]
    assert account.bank_details_status == "submitted"

    (submitted_account, product_id, bank) = provider.bank_submissions[0]
    assert submitted_account == account.razorpay_account_id
    assert product_id == account.product_configuration_id
    assert bank.ifsc == "HDFC0001234"
    assert bank.beneficiary_mobile == "9876543210"

    assert {channel for channel, *_ in sender.sent} == {"push", "email", "sms", "whatsapp"}
    async with session_factory() as session:
        statuses = (await session.execute(select(OutboxJob.status))).scalars().all()
    assert set(statuses) == {JobStatus.COMPLETED.value}


@pytest.mark.asyncio
async def test_nothing_due(session_factory, provider):
    assert await OutboxWorker(session_factory, provider, RecordingSender()).run_once() == 0


@pytest.mark.asyncio
async def test_delayed_job_not_claimed_early(session_factory, provider):
    async with session_factory() as session:
        await enqueue(session, JobType.NOTIFY_SMS, {"to": "9876543210", "body": "hi"}, delay_seconds=3600)
        await session.commit()

    assert await OutboxWorker(session_factory, provider, RecordingSender()).run_once() == 0


@pytest.mark.asyncio
async def test_retriable_failure_backs_off(seeded_session, session_factory, provider, make_request):
    await create_payout_account(seeded_session, provider, "ACD-001", make_request())
    stakeholder_job = (await seeded_session.execute(
        select(OutboxJob).where(OutboxJob.job_type == JobType.STAKEHOLDER_CREATE.value)
    )).scalar_one()
    provider.fail("create_stakeholder")

    await OutboxWorker(session_factory, provider, RecordingSender()).run_once()

    job = await _job(session_factory, stakeholder_job.id)
    assert job.status == JobStatus.PENDING.value
    assert job.attempts == 1
    assert "Mock failure" in job.last_error
    # rescheduled into the future, so an immediate second pass skips it
    assert await OutboxWorker(session_factory, provider, RecordingSender()).run_once() == 0
    assert (await _account(session_factory)).stakeholder_id is None


@pytest.mark.asyncio
async def test_permanent_failure_dead_letters(seeded_session, session_factory, provider, make_request):
    await create_payout_account(seeded_session, provider, "ACD-001", make_request())
    provider.fail("create_stakeholder", PermanentError("The PAN is not linked to the name"))

    await OutboxWorker(session_factory, provider, RecordingSender()).run_once()

    async with session_factory() as session:
        job = (await session.execute(
            select(OutboxJob).where(OutboxJob.job_type == JobType.STAKEHOLDER_CREATE.value)
        )).scalar_one()
    assert job.status == JobStatus.DEAD.value
    assert job.attempts == 1


@pytest.mark.asyncio
async def test_exhausted_attempts_dead_letter(session_factory, provider):
    class FailingSender(RecordingSender):
        async def send_sms(self, to, body, priority, metadata=None):
            raise ConnectionError("gateway down")

    async with session_factory() as session:
        job = await enqueue(session, JobType.NOTIFY_SMS, {"to": "9876543210", "body": "hi"}, max_attempts=2)
        await session.commit()
        job_id = job.id

    worker = OutboxWorker(session_factory, provider, FailingSender())
    await worker.run_once()
    assert (await _job(session_factory, job_id)).status == JobStatus.PENDING.value

    # make the retry due now
    async with session_factory() as session:
        pending = await session.get(OutboxJob, job_id)
        pending.next_attempt_at = pending.created_at
        await session.commit()

    await worker.run_once()
    job = await _job(session_factory, job_id)
    assert job.status == JobStatus.DEAD.value
    assert job.attempts == 2
    assert job.last_error == "gateway down"


@pytest.mark.asyncio
async def test_malformed_payload_is_permanent(session_factory, provider):
    async with session_factory() as session:
        job = await enqueue(session, JobType.BANK_DETAILS_UPDATE, {"account_id": "acc_1"})
        await session.commit()
        job_id = job.id

    await OutboxWorker(session_factory, provider, RecordingSender()).run_once()

    job = await _job(session_factory, job_id)
    assert job.status == JobStatus.DEAD.value
    assert "Missing required job data" in job.last_error
    assert provider.call_count("update_bank_details") == 0


async def _make_due(session_factory, job_id, status=JobStatus.PENDING.value):
    """Backdate a job so the next claim sees it as due (or its lease as expired)."""
    async with session_factory() as session:
        job = await session.get(OutboxJob, job_id)
        if status == JobStatus.PROCESSING.value:
            job.locked_until = job.created_at
        else:
            job.next_attempt_at = job.created_at
        await session.commit()


@pytest.mark.asyncio
async def test_abandoned_job_is_reclaimed(session_factory, provider):
    async with session_factory() as session:
        job = await enqueue(session, JobType.NOTIFY_PUSH, {"recipient_id": "ACD-001", "title": "Hi", "body": "hello"})
        await session.commit()
        job_id = job.id

    # a worker claims the job and dies before finishing it
    crashed = OutboxWorker(session_factory, provider, RecordingSender())
    assert await crashed._claim(10) == [job_id]
    claimed = await _job(session_factory, job_id)
    assert claimed.status == JobStatus.PROCESSING.value
    assert claimed.locked_until is not None

    # lease still held, nobody else may take it
    sender = RecordingSender()
    assert await OutboxWorker(session_factory, provider, sender).run_once() == 0

    await _make_due(session_factory, job_id, JobStatus.PROCESSING.value)
    assert await OutboxWorker(session_factory, provider, sender).run_once() == 1

    job = await _job(session_factory, job_id)
    assert job.status == JobStatus.COMPLETED.value
    assert job.attempts == 2
    assert job.locked_until is None
    assert sender.sent == [("push", "ACD-001", "Hi")]


@pytest.mark.asyncio
async def test_abandoned_job_without_attempts_left_dead_letters(session_factory, provider):
    async with session_factory() as session:
        job = await enqueue(session, JobType.NOTIFY_SMS, {"to": "9876543210", "body": "hi"}, max_attempts=1)
        await session.commit()
        job_id = job.id

    await OutboxWorker(session_factory, provider, RecordingSender())._claim(10)
    await _make_due(session_factory, job_id, JobStatus.PROCESSING.value)

    sender = RecordingSender()
    assert await OutboxWorker(session_factory, provider, sender).run_once() == 0

    job = await _job(session_factory, job_id)
    assert job.status == JobStatus.DEAD.value
    assert job.attempts == 1
    assert "Lease expired" in job.last_error
    assert sender.sent == []


@pytest.mark.asyncio
async def test_stakeholder_not_recreated_when_recording_fails(
    seeded_session, session_factory, provider, make_request, monkeypatch
):
    await create_payout_account(seeded_session, provider, "ACD-001", make_request())
    stakeholder_job = (await seeded_session.execute(
        select(OutboxJob).where(OutboxJob.job_type == JobType.STAKEHOLDER_CREATE.value)
    )).scalar_one()

    save = AccountRepository.save
    saves = []

    async def save_conflicting_once(self, account):
        saves.append(account.id)
        if len(saves) == 1:
            raise ConcurrentModificationError("Payout account was modified concurrently. Please retry.")
        return await save(self, account)

    monkeypatch.setattr(AccountRepository, "save", save_conflicting_once)
    worker = OutboxWorker(session_factory, provider, RecordingSender())

    await worker.run_once()
    job = await _job(session_factory, stakeholder_job.id)
    assert job.status == JobStatus.PENDING.value
    assert job.payload["stakeholder_id"] == provider.stakeholders[job.payload["account_id"]][0]["id"]
    assert (await _account(session_factory)).stakeholder_id is None

    await _make_due(session_factory, stakeholder_job.id)
    await worker.run_once()

    job = await _job(session_factory, stakeholder_job.id)
    assert job.status == JobStatus.COMPLETED.value
    assert provider.call_count("create_stakeholder") == 1
    account = await _account(session_factory)
    assert len(provider.stakeholders[account.razorpay_account_id]) == 1
    assert account.stakeholder_id == job.payload["stakeholder_id"]

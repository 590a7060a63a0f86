"""
Account repository.

All reads and writes of PayoutAccount go through here. Uniqueness of the
active account per user is enforced by the partial unique index, and every
write is version-checked, so storage errors are translated into the API's
conflict errors at this seam.
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from payout_accounts.errors import ConcurrentModificationError, ConflictError
from payout_accounts.models.account import AcademyUser, PayoutAccount

logger = logging.getLogger("payout_accounts.repository")

DUPLICATE_ACCOUNT_MESSAGE = (
    "Payout account already exists. Each academy user can have only one payout account."
)


class AccountRepository:

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_user(self, user_id: str) -> Optional[AcademyUser]:
        return await self.session.get(AcademyUser, user_id)

    async def get_active_for_user(self, user_id: str) -> Optional[PayoutAccount]:
        result = await self.session.execute(
            select(PayoutAccount).where(
                PayoutAccount.user_id == user_id,
                PayoutAccount.is_active.is_(True),
            )
        )
        return result.scalar_one_or_none()

    async def get_active(self, account_id: str) -> Optional[PayoutAccount]:
        result = await self.session.execute(
            select(PayoutAccount).where(
                PayoutAccount.id == account_id,
                PayoutAccount.is_active.is_(True),
            )
        )
        return result.scalar_one_or_none()

    async def get_by_provider_account(self, razorpay_account_id: str) -> Optional[PayoutAccount]:
        result = await self.session.execute(
            select(PayoutAccount).where(
                PayoutAccount.razorpay_account_id == razorpay_account_id,
                PayoutAccount.is_active.is_(True),
            )
        )
        return result.scalar_one_or_none()

    async def add(self, account: PayoutAccount) -> PayoutAccount:
        """
        Insert a new account.

        Raises:
            ConflictError: If the user already has an active account. This is
                the race the pre-check in the service cannot close.
        """
        try:
            async with self.session.begin_nested():
                self.session.add(account)
        except IntegrityError as e:
            logger.warning("Rejected duplicate active payout account for user %s: %s", account.user_id, e.orig)
            raise ConflictError(DUPLICATE_ACCOUNT_MESSAGE) from e
        return account

    async def save(self, account: PayoutAccount) -> PayoutAccount:
        """
        Flush pending changes to an account, checking its version.

        Raises:
            ConcurrentModificationError: If someone else updated the account
                since it was loaded.
        """
        # rollback expires `account`, so read the id first
        account_id = account.id
        try:
            await self.session.flush()
        except StaleDataError as e:
            await self.session.rollback()
            logger.warning("Concurrent modification of payout account %s", account_id)
            raise ConcurrentModificationError(
                "Payout account was modified concurrently. Please retry."
            ) from e
        return account

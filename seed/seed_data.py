"""
Seed the database with sample academy owners.

Creates:
  - Academy users with full contact details (every notification channel)
  - Edge cases: email only (push + email), mobile only (push + SMS + WhatsApp),
    first name only

Run:
    python -m seed.seed_data
"""

import asyncio

from payout_accounts.database import async_session, init_db
from payout_accounts.models.account import AcademyUser


ACADEMY_USERS = [
    {"id": "ACD-001", "first_name": "Rahul", "last_name": "Sharma", "email": "rahul@sharmacricket.in", "mobile": "9876543210"},
    {"id": "ACD-002", "first_name": "Priya", "last_name": "Nair", "email": "priya@nairswimming.in", "mobile": "9123456780"},
    {"id": "ACD-003", "first_name": "Arjun", "last_name": "Reddy", "email": "arjun@reddybadminton.com", "mobile": "8899001122"},
    {"id": "ACD-004", "first_name": "Sneha", "last_name": "Kulkarni", "email": "sneha@kulkarnichess.org", "mobile": "7012345678"},
    {"id": "ACD-005", "first_name": "Vikram", "last_name": "Singh", "email": "vikram@singhboxing.in", "mobile": "6398765432"},

    # Edge cases
    {"id": "ACD-010", "first_name": "Meera", "last_name": "Iyer", "email": "meera@iyerdance.in", "mobile": None},
    {"id": "ACD-011", "first_name": "Karan", "last_name": "Mehta", "email": None, "mobile": "9988776655"},
    {"id": "ACD-012", "first_name": "Anil", "last_name": None, "email": "anil@tabletennis.in", "mobile": None},
]


async def seed():
    """Seed the database with sample academy users."""
    await init_db()

    async with async_session() as session:
        existing = await session.get(AcademyUser, "ACD-001")
        if existing:
            print("Database already seeded. Skipping.")
            return

        for user_data in ACADEMY_USERS:
            session.add(AcademyUser(**user_data))

        await session.commit()
        print(f"Seeded {len(ACADEMY_USERS)} academy users.")


if __name__ == "__main__":
    asyncio.run(seed())

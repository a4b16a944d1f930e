"""
Seed the database with an admin account and demo members with dues bookings.
Run from apps/api: python scripts/seed_db.py
"""
import asyncio
import logging
import random
import sys
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path

# Ensure membership is importable when run from repo root or apps/api
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

logger = logging.getLogger(__name__)

from sqlalchemy import select

from membership.core import ROLE_ADMIN, ROLE_MEMBER, DEFAULT_BOOKING_PURPOSE, hash_password
from membership.db.session import async_session
from membership.db.models import Booking, Member
from membership.services.bookings import personalized_purpose
from membership.services.members import get_or_create_role

SEED_PASSWORD = "SeedPassword123"
ADMIN_EMAIL = "admin@bunkermuseum.example.org"
NUM_MEMBERS = 60
DELETED_SHARE = 0.1
REGULAR_SHARE = 0.6
DUES_REGULAR = Decimal("60.00")
DUES_SUPPORTING = Decimal("30.00")

FIRST_NAMES = [
    "Anna", "Bernd", "Claudia", "Dieter", "Elke", "Frank", "Gisela", "Hans",
    "Ingrid", "Jürgen", "Karin", "Lars", "Monika", "Norbert", "Petra", "Ralf",
    "Sabine", "Thomas", "Ursula", "Volker", "Waltraud", "Klaus", "Heike", "Stefan",
]
LAST_NAMES = [
    "Schmidt", "Schmid", "Müller", "Meyer", "Schneider", "Fischer", "Weber",
    "Wagner", "Becker", "Hoffmann", "Schulz", "Koch", "Richter", "Klein",
    "Wolf", "Neumann", "Schwarz", "Zimmermann", "Braun", "Krüger",
]
CITIES = [("Berlin", "10115"), ("Hamburg", "20095"), ("Potsdam", "14467"), ("Rostock", "18055")]
SALUTATIONS = ["Herr", "Frau", None]
RANKS = [None, None, "Oberst a.D.", "Major d.R.", "Hauptmann"]


async def _seed_admin(session) -> Member:
    result = await session.execute(select(Member).where(Member.email == ADMIN_EMAIL))
    admin = result.scalar_one_or_none()
    if admin:
        return admin
    admin = Member(
        name="Museum Admin",
        email=ADMIN_EMAIL,
        hashed_password=hash_password(SEED_PASSWORD),
        email_verified_at=datetime.now(timezone.utc),
        of_mg=True,
    )
    admin.roles = [await get_or_create_role(session, ROLE_ADMIN), await get_or_create_role(session, ROLE_MEMBER)]
    session.add(admin)
    await session.flush()
    return admin


async def run_seed():
    hashed = hash_password(SEED_PASSWORD)
    year = datetime.now(timezone.utc).year
    async with async_session() as session:
        await _seed_admin(session)
        member_role = await get_or_create_role(session, ROLE_MEMBER)

        for i in range(NUM_MEMBERS):
            first = random.choice(FIRST_NAMES)
            last = random.choice(LAST_NAMES)
            city, postal_code = random.choice(CITIES)
            of_mg = random.random() < REGULAR_SHARE
            member = Member(
                name=f"{first} {last}",
                email=f"seed.member{i + 1}@example.org",
                phone=f"+49 30 {random.randint(1000000, 9999999)}" if random.random() < 0.7 else None,
                salutation=random.choice(SALUTATIONS),
                rank=random.choice(RANKS),
                birthday=date(1940, 1, 1) + timedelta(days=random.randint(0, 60 * 365)),
                street=f"Bunkerweg {random.randint(1, 120)}",
                city=city,
                postal_code=postal_code,
                country="Deutschland",
                of_mg=of_mg,
                hashed_password=hashed,
            )
            if random.random() < DELETED_SHARE:
                member.deleted_at = datetime.now(timezone.utc) - timedelta(days=random.randint(1, 400))
            member.roles = [member_role]
            session.add(member)
            await session.flush()

            purpose = personalized_purpose(DEFAULT_BOOKING_PURPOSE, year, member.name)
            amount = DUES_REGULAR if of_mg else DUES_SUPPORTING
            paid = random.random() < 0.5
            session.add(
                Booking(
                    member_id=member.id,
                    expected_purpose=purpose,
                    expected_amount=amount,
                    actual_purpose=purpose if paid else None,
                    actual_amount=amount if paid else None,
                    received_at=datetime.now(timezone.utc) - timedelta(days=random.randint(0, 90)) if paid else None,
                )
            )

            if (i + 1) % 20 == 0:
                logger.info("Progress: seeded %s/%s members", i + 1, NUM_MEMBERS)
                await session.commit()

        await session.commit()

    logger.info("Done. Seeded %s members with one dues booking each", NUM_MEMBERS)
    logger.info("  Password for all seed accounts: %s", SEED_PASSWORD)
    logger.info("  Admin login: %s", ADMIN_EMAIL)


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )
    logger.info("Starting seed: admin + %s members", NUM_MEMBERS)
    asyncio.run(run_seed())

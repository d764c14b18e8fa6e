"""
Backfill seller emails on legacy listings.

Listings created before seller-email attribution have an empty or NULL
``seller_email``.  For each of them, look for a user whose username,
first name or email equals the seller name and copy that user's email;
when nobody matches, fall back to ``<seller name, lowercased, letters and
digits only>@example.com``.  Each listing is written under its own
savepoint, so a failure on one is rolled back and logged and the run
continues with the next.

Usage::

    python -m scripts.migrate_seller_emails
"""
import asyncio
import logging
import re

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import session_scope
from app.logging_config import setup_logging
from app.models import Car
from app.store import ListingStore, UserStore

logger = logging.getLogger("app.scripts.migrate_seller_emails")

_NOT_LOCAL_PART = re.compile(r"[^a-z0-9]")
FALLBACK_DOMAIN = "example.com"


def fallback_email(seller_name: str) -> str:
    """``"Ravi Kumar"`` -> ``ravikumar@example.com``; ``"Dr. A."`` -> ``dra@example.com``."""
    local_part = _NOT_LOCAL_PART.sub("", seller_name.lower()) or "seller"
    return f"{local_part}@{FALLBACK_DOMAIN}"


async def migrate_seller_emails(db: AsyncSession) -> dict[str, int]:
    """Backfill emails within *db*'s transaction and return counters."""
    listings = ListingStore(db)
    users = UserStore(db)
    counts = {"found": 0, "matched": 0, "defaulted": 0, "failed": 0}

    legacy = await listings.find(
        [or_(Car.seller_email.is_(None), Car.seller_email == "")],
        [Car.id],
    )
    counts["found"] = len(legacy)
    logger.info("Found %d cars to update", len(legacy))

    # Read up front: a rolled-back savepoint expires the instances it touched.
    pending = [(car, car.id, car.seller_name) for car in legacy]

    for car, car_id, seller_name in pending:
        try:
            async with db.begin_nested():
                user = await users.find_matching_seller(seller_name)
                email = user.email if user is not None else fallback_email(seller_name)
                await listings.update(car, {"seller_email": email})
        except SQLAlchemyError:
            counts["failed"] += 1
            logger.exception("Error updating car %s", car_id)
            continue

        if user is not None:
            counts["matched"] += 1
            logger.info("Updated car %s with email %s", car_id, email)
        else:
            counts["defaulted"] += 1
            logger.info("No user for car %s (%s); using %s", car_id, seller_name, email)

    return counts


async def main() -> None:
    setup_logging(settings.LOG_LEVEL, settings.LOG_FILE)
    async with session_scope() as session:
        counts = await migrate_seller_emails(session)
    logger.info("Migration completed: %s", counts)


if __name__ == "__main__":
    asyncio.run(main())

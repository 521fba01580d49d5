#!/usr/bin/env python3
"""Create the dashboard tables and optionally seed a sign-in user.

    python create_tables.py [EMAIL PASSWORD [NAME]]
"""
import asyncio
import logging
import sys

from invoice_dashboard.core.database import async_session_maker, engine, init_db
from invoice_dashboard.models.user import User
from invoice_dashboard.services.auth import hash_password

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("create_tables")


async def create_tables(seed_user=None):
    try:
        logger.info("Creating database tables...")
        await init_db()
        logger.info("Database tables created")

        if seed_user:
            email, password, name = seed_user
            async with async_session_maker() as db:
                db.add(User(email=email, password=hash_password(password), name=name))
                await db.commit()
            logger.info(f"Seeded user {email}")
    finally:
        await engine.dispose()


if __name__ == "__main__":
    args = sys.argv[1:]
    if len(args) not in (0, 2, 3):
        sys.exit(__doc__)
    seed_user = (args[0], args[1], args[2] if len(args) == 3 else None) if args else None
    asyncio.run(create_tables(seed_user))

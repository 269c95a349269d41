"""
Seed script to create (or reset) the admin account.

Run once after init_db with env set:
  ADMIN_EMAIL=admin@yourcollege.edu
  ADMIN_PASSWORD=YourSecurePassword

The password is stored as a bcrypt hash; admin login never accepts plaintext.
"""
import asyncio
import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from admission_portal.auth.models import AdminUser
from admission_portal.auth.security import hash_password
from admission_portal.core.config import settings
from admission_portal.core.logging import configure_logging
from admission_portal.db.session import AsyncSessionLocal, engine

logger = logging.getLogger(__name__)


async def seed_admin(
    db: AsyncSession,
    email: Optional[str] = None,
    password: Optional[str] = None,
) -> Optional[AdminUser]:
    email = email or settings.admin_email
    password = password or settings.admin_password
    if not email or not password:
        logger.warning("ADMIN_EMAIL / ADMIN_PASSWORD not set; skipping admin seed.")
        return None

    result = await db.execute(select(AdminUser).where(func.lower(AdminUser.email) == email.lower()))
    admin = result.scalar_one_or_none()
    if not admin:
        admin = AdminUser(email=email, password_hash=hash_password(password))
        db.add(admin)
        logger.info("Created admin user %s", email)
    else:
        admin.password_hash = hash_password(password)
        logger.info("Reset password for existing admin user %s", email)

    await db.commit()
    await db.refresh(admin)
    return admin


async def main() -> None:
    configure_logging()
    try:
        async with AsyncSessionLocal() as db:
            try:
                await seed_admin(db)
            except Exception:
                await db.rollback()
                logger.exception("Admin seed failed")
                raise
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())

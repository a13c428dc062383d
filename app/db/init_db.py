import asyncio
import logging

from sqlalchemy import select

from app.core.security import get_password_hash
from app.core.settings import settings
from app.db.session import AsyncSessionLocal
from app.models.user import User
from app.schemas.common import Role

logger = logging.getLogger(__name__)


def _seed_accounts() -> list[tuple[str, str, str, Role]]:
    return [
        (settings.seed_admin_name, settings.seed_admin_email, settings.seed_admin_password, Role.ADMIN),
        (
            settings.seed_verifier_name,
            settings.seed_verifier_email,
            settings.seed_verifier_password,
            Role.VERIFIER,
        ),
    ]


async def init_db() -> None:
    """
    Seed the database with a default admin and verifier.
    """
    async with AsyncSessionLocal() as session:
        for name, email, password, role in _seed_accounts():
            email = email.strip().lower()
            result = await session.execute(select(User).where(User.email == email))
            if result.scalar_one_or_none():
                logger.info("Seed %s user already exists", role.value)
                continue
            session.add(
                User(
                    name=name,
                    email=email,
                    hashed_password=get_password_hash(password),
                    role=role.value,
                )
            )
            logger.info("Seed %s user created: %s", role.value, email)
        await session.commit()


if __name__ == "__main__":
    from app.core.logging import configure_logging

    configure_logging()
    asyncio.run(init_db())

"""Create (or reset) an active admin account."""
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from sqlalchemy import select
from app.core.database import AsyncSessionLocal, init_db
from app.core.security import hash_password
from app.models import User, UserRole, UserStatus

ADMIN_EMAIL = "admin@school.edu"
# Change after the first login
ADMIN_PASSWORD_PLAIN = "admin1234"


async def seed_admin():
    await init_db()
    async with AsyncSessionLocal() as session:
        result = await session.execute(select(User).where(User.email == ADMIN_EMAIL))
        user = result.scalar_one_or_none()
        if not user:
            user = User(
                email=ADMIN_EMAIL,
                password_hash=hash_password(ADMIN_PASSWORD_PLAIN),
                first_name="System",
                last_name="Admin",
                role=UserRole.ADMIN,
                status=UserStatus.ACTIVE,
            )
            session.add(user)
            await session.flush()
            print(f"  + Admin created: id={user.id}, email={user.email}")
        else:
            user.password_hash = hash_password(ADMIN_PASSWORD_PLAIN)
            user.role = UserRole.ADMIN
            user.status = UserStatus.ACTIVE
            print(f"  = Admin reset: {user.email}")
        await session.commit()
    print("Done.")
    print(f"  Login: {ADMIN_EMAIL} / {ADMIN_PASSWORD_PLAIN}")


if __name__ == "__main__":
    asyncio.run(seed_admin())

"""Account sign-up and the approval workflow for pending accounts."""
import logging

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import MutationError
from app.core.security import hash_password
from app.models import User, UserRole, UserStatus
from app.models.mixins import utcnow

logger = logging.getLogger(__name__)

NOT_PROCESSED = "User not found or already processed"


async def create_account(
    db: AsyncSession,
    email: str,
    password: str,
    first_name: str,
    last_name: str,
    role: str = UserRole.SSG_OFFICER,
    department: str | None = None,
    position: str | None = None,
) -> User:
    """New account in PENDING status; raises MutationError if the email is taken."""
    email = email.strip().lower()
    taken = await db.execute(select(User.id).where(User.email == email))
    if taken.scalar_one_or_none() is not None:
        raise MutationError("An account with that email already exists")
    user = User(
        email=email,
        password_hash=hash_password(password),
        first_name=first_name.strip(),
        last_name=last_name.strip(),
        role=role,
        status=UserStatus.PENDING,
        department=department,
        position=position,
    )
    db.add(user)
    await db.flush()
    logger.info("Account %s signed up as %s (pending approval)", email, role)
    return user


async def approve_user(db: AsyncSession, user_id: int, admin_id: int) -> dict:
    """Activate a pending account. Non-pending or missing accounts are left alone."""
    result = await db.execute(
        update(User)
        .where(User.id == user_id, User.status == UserStatus.PENDING)
        .values(status=UserStatus.ACTIVE, approved_by=admin_id, approved_at=utcnow(), updated_at=utcnow())
        .execution_options(synchronize_session="fetch")
    )
    if result.rowcount == 0:
        return {"success": False, "message": NOT_PROCESSED}
    logger.info("User %s approved by %s", user_id, admin_id)
    return {"success": True, "message": "User approved successfully"}


async def reject_user(db: AsyncSession, user_id: int, admin_id: int) -> dict:
    """Deactivate a pending account. Non-pending or missing accounts are left alone."""
    result = await db.execute(
        update(User)
        .where(User.id == user_id, User.status == UserStatus.PENDING)
        .values(status=UserStatus.INACTIVE, rejected_by=admin_id, rejected_at=utcnow(), updated_at=utcnow())
        .execution_options(synchronize_session="fetch")
    )
    if result.rowcount == 0:
        return {"success": False, "message": NOT_PROCESSED}
    logger.info("User %s rejected by %s", user_id, admin_id)
    return {"success": True, "message": "User rejected successfully"}

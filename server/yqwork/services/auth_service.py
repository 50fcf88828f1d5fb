from datetime import datetime, timezone
from typing import Optional, Tuple
import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError

from yqwork.core.error_handling import rollback_and_raise
from yqwork.core.security import verify_password, create_access_token
from yqwork.models.user import User
from yqwork.services import user_service

logger = logging.getLogger(__name__)


async def authenticate_user(db: AsyncSession, stu_id: str, password: str) -> Optional[User]:
    """Return the live user whose student id and password match, else None."""
    user = await user_service.get_user_by_stu_id(db, stu_id.strip())
    if user is None or not verify_password(password, user.password_hash):
        return None
    return user


async def login(db: AsyncSession, stu_id: str, password: str) -> Optional[Tuple[User, str]]:
    """Authenticate, stamp ``last_login_at`` and issue an access token."""
    user = await authenticate_user(db, stu_id, password)
    if user is None:
        logger.warning(f"Failed login for student id {stu_id!r}")
        return None

    user.last_login_at = datetime.now(timezone.utc)
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await rollback_and_raise(db, "login", e)

    logger.info(f"User {user.id} logged in")
    return user, create_access_token(user.id)

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from yqwork.core.database import get_db
from yqwork.core.permissions import Actor
from yqwork.core.security import decode_token
from yqwork.models.user import User
from yqwork.services.permission_service import get_user_permission
from yqwork.services.user_service import get_user

security = HTTPBearer()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Get current authenticated user from JWT token."""
    token = credentials.credentials

    # Validate token format before decoding
    if not token or not token.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials: token is empty",
        )

    payload = decode_token(token)

    if payload is None or payload.get("type") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
        )

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )

    user = await get_user(db, user_id)

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or deleted",
        )

    return user


async def get_current_actor(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Actor:
    """The current user together with the permissions of all their roles."""
    permissions = await get_user_permission(db, current_user.id)
    return Actor(
        user_id=current_user.id,
        department_id=current_user.department_id,
        permissions=permissions,
    )


def require_permission(permission_name: str):
    """Dependency factory for permission-based access control."""
    async def permission_checker(
        actor: Actor = Depends(get_current_actor),
    ) -> Actor:
        if not actor.has(permission_name):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Permission required: {permission_name}",
            )
        return actor
    return permission_checker

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from yqwork.core.database import get_db
from yqwork.core.error_handling import handle_endpoint_errors
from yqwork.schemas.auth import LoginRequest, TokenResponse
from yqwork.services.auth_service import login

router = APIRouter()


@router.post("/login", response_model=TokenResponse)
@handle_endpoint_errors(operation_name="login")
async def login_endpoint(
    login_data: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    """Login with student id and password."""
    result = await login(db, login_data.username, login_data.password)
    if result is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect student id or password",
        )
    _, access_token = result
    return TokenResponse(access_token=access_token)

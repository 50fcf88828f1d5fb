from fastapi import APIRouter
from yqwork.api.v1.endpoints import auth, users, departments, permissions, roles, work_hours

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(departments.router, prefix="/departments", tags=["departments"])
api_router.include_router(permissions.router, prefix="/permissions", tags=["permissions"])
api_router.include_router(roles.router, prefix="/roles", tags=["roles"])
api_router.include_router(work_hours.router, prefix="/work-hours", tags=["work-hours"])

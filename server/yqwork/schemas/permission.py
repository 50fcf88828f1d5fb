"""
Schemas for the permission catalog and role management.
"""
from pydantic import BaseModel, Field, field_validator
from typing import List


class PermissionCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, description="Display name")
    permission: str = Field(..., min_length=1, max_length=255, description="Colon-delimited permission string")

    @field_validator('permission')
    @classmethod
    def validate_permission(cls, v: str) -> str:
        """Reject blank segments such as ``yq::user`` or a trailing colon."""
        v = v.strip()
        if v != "*" and any(not segment.strip() for segment in v.split(":")):
            raise ValueError("permission segments must not be empty")
        return v


class PermissionResponse(BaseModel):
    id: int
    name: str
    permission: str

    class Config:
        from_attributes = True


class RoleCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    permission_ids: List[int] = Field(default_factory=list, description="Permission IDs to assign to the role")


class RoleResponse(BaseModel):
    id: int
    name: str
    permissions: List[PermissionResponse]

    class Config:
        from_attributes = True


class PermissionCheck(BaseModel):
    permission: str = Field(..., min_length=1, max_length=255)


class PermissionCheckResponse(BaseModel):
    permission: str
    has_permission: bool
    is_admin: bool

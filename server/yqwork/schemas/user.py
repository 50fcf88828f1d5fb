from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import List, Optional
from datetime import datetime
from yqwork.models.user import UserStatus


class UserBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    stu_id: str = Field(..., min_length=1, max_length=64)
    username: Optional[str] = Field(None, max_length=255)
    email: Optional[EmailStr] = None
    college: int = Field(0, ge=0)
    position: Optional[str] = Field(None, max_length=255)
    status: UserStatus = UserStatus.UNKNOWN
    department_id: int

    @field_validator('status', mode='before')
    @classmethod
    def parse_status(cls, v):
        return UserStatus.parse(v)


class UserCreate(UserBase):
    password: str = Field(..., min_length=8, max_length=255)
    role_ids: List[int] = Field(default_factory=list)


class UserUpdate(UserBase):
    pass


class UserResponse(BaseModel):
    id: int
    name: str
    stu_id: str
    username: Optional[str] = None
    email: Optional[str] = None
    college: int
    position: Optional[str] = None
    status: UserStatus
    department_id: int
    last_login_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserListResponse(BaseModel):
    rows: List[UserResponse]
    count: int


class WhoAmIResponse(BaseModel):
    user: UserResponse
    roles: List[str]
    permissions: List[str]
    is_admin: bool


class UserRolesUpdate(BaseModel):
    role_ids: List[int] = Field(..., description="Complete list of role IDs for the user")


class PasswordChange(BaseModel):
    old_password: str = Field(..., min_length=1, max_length=255)
    new_password: str = Field(..., min_length=8, max_length=255)

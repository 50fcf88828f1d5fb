from sqlalchemy import Column, String, ForeignKey, DateTime, Integer, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from yqwork.core.database import Base
from yqwork.models.types import CodedEnum, IntEnumType


class UserStatus(CodedEnum):
    UNKNOWN = 0
    INTERN = 1
    FORMAL = 2
    RETIRED = 3

    @classmethod
    def fallback(cls) -> "UserStatus":
        return cls.UNKNOWN


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(255), nullable=True)
    name = Column(String(255), nullable=False)
    stu_id = Column(String(64), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=True)
    password_hash = Column(String(255), nullable=False)
    college = Column(Integer, nullable=False, default=0)
    position = Column(String(255), nullable=True)
    status = Column(IntEnumType(UserStatus), nullable=False, default=UserStatus.UNKNOWN)
    department_id = Column(Integer, ForeignKey("departments.id"), nullable=False, index=True)
    last_login_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    department = relationship("Department", back_populates="users")
    work_hour_records = relationship("WorkHourRecord", back_populates="user")

    __table_args__ = (
        Index("idx_users_department_status", "department_id", "status"),
    )

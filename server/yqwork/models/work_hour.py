from sqlalchemy import Column, String, ForeignKey, DateTime, Integer, JSON, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from yqwork.core.database import Base
from yqwork.models.types import CodedEnum, IntEnumType


class WorkHourStatus(CodedEnum):
    """Lifecycle of a declaration campaign. Code 3 is unused."""
    PENDING = 0
    ONGOING = 1
    ENDED = 2
    CLOSED = 4

    @classmethod
    def fallback(cls) -> "WorkHourStatus":
        # Unknown codes (3 included) close the campaign rather than reopen it
        return cls.CLOSED


class WorkHourRecordStatus(CodedEnum):
    UNSUBMITTED = 0
    PENDING_APPROVAL = 1
    PENDING_FINANCE = 2
    PENDING_DISTRIBUTION = 3
    CLOSED = 4

    @classmethod
    def fallback(cls) -> "WorkHourRecordStatus":
        # A record with a corrupt status leaves every active transition
        # until an operator repairs it
        return cls.CLOSED


class WorkHour(Base):
    """A named declaration period (campaign)."""
    __tablename__ = "work_hours"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    end_time = Column(DateTime, nullable=False)
    status = Column(IntEnumType(WorkHourStatus), nullable=False, default=WorkHourStatus.PENDING)
    comment = Column(String(1000), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    records = relationship("WorkHourRecord", back_populates="work_hour")


class WorkHourRecord(Base):
    """
    One user's declaration within a campaign.

    ``work_descs`` is a list of ``{"desc": str, "hour": int}``; ``includes`` is
    either NULL or a list of ``{"record_id": int, "hour": int}`` written by
    finance. At most one row exists per (work_hour_id, user_id).
    """
    __tablename__ = "work_hour_records"

    id = Column(Integer, primary_key=True, autoincrement=True)
    work_hour_id = Column(Integer, ForeignKey("work_hours.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    work_descs = Column(JSON, nullable=False, default=list)
    includes = Column(JSON, nullable=True)
    comment = Column(String(1000), nullable=True)
    status = Column(IntEnumType(WorkHourRecordStatus), nullable=False, default=WorkHourRecordStatus.UNSUBMITTED)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    work_hour = relationship("WorkHour", back_populates="records")
    user = relationship("User", back_populates="work_hour_records")

    __table_args__ = (
        UniqueConstraint("work_hour_id", "user_id", name="uq_work_hour_record_user"),
        Index("idx_work_hour_records_work_hour_status", "work_hour_id", "status"),
    )

from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import datetime
from yqwork.models.work_hour import WorkHourStatus, WorkHourRecordStatus


class WorkHourCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    end_time: datetime
    status: WorkHourStatus = WorkHourStatus.PENDING
    comment: Optional[str] = Field(None, max_length=1000)

    @field_validator('status', mode='before')
    @classmethod
    def parse_status(cls, v):
        return WorkHourStatus.parse(v)


class WorkHourUpdate(WorkHourCreate):
    pass


class WorkHourResponse(BaseModel):
    id: int
    name: str
    end_time: datetime
    status: WorkHourStatus
    comment: Optional[str] = None

    class Config:
        from_attributes = True


class WorkHourListResponse(BaseModel):
    rows: List[WorkHourResponse]
    count: int


class WorkDesc(BaseModel):
    desc: str = Field(..., min_length=1, max_length=1000)
    hour: int = Field(..., ge=0)


class WorkInclude(BaseModel):
    record_id: int
    hour: int = Field(..., ge=0)


class WorkHourRecordResponse(BaseModel):
    id: int
    work_hour_id: int
    user_id: int
    user_name: Optional[str] = None
    stu_id: Optional[str] = None
    department_id: Optional[int] = None
    work_descs: List[WorkDesc]
    includes: Optional[List[WorkInclude]] = None
    comment: Optional[str] = None
    status: WorkHourRecordStatus


class WorkHourRecordListResponse(BaseModel):
    rows: List[WorkHourRecordResponse]
    count: int


class SubmitWorkHourRecord(BaseModel):
    work_descs: List[WorkDesc] = Field(..., min_length=1)


class SubmitWorkHourRecordResponse(BaseModel):
    id: int
    status: WorkHourRecordStatus


class WorkHourRecordStatusUpdate(BaseModel):
    status: WorkHourRecordStatus
    # Required when returning a record to Unsubmitted, refused otherwise
    comment: Optional[str] = Field(None, max_length=1000)

    @field_validator('status', mode='before')
    @classmethod
    def parse_status(cls, v):
        return WorkHourRecordStatus.parse(v)


class WorkHourTableItem(BaseModel):
    id: int = Field(..., description="Record that receives the inclusion list")
    includes: List[WorkInclude]


class SaveWorkHourTable(BaseModel):
    data: List[WorkHourTableItem] = Field(..., min_length=1)


class BulkTransitionResponse(BaseModel):
    updated: int


class StatisticsItem(BaseModel):
    department_id: int
    department_name: Optional[str] = None
    count: int
    total_hours: int
    included_hours: int


class StatisticsResponse(BaseModel):
    work_hour_id: int
    rows: List[StatisticsItem]

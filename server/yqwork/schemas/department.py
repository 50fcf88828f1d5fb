from pydantic import BaseModel, Field
from typing import List


class DepartmentCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str = Field("", max_length=1000)


class DepartmentResponse(BaseModel):
    id: int
    name: str
    description: str

    class Config:
        from_attributes = True


class DepartmentListResponse(BaseModel):
    rows: List[DepartmentResponse]
    count: int

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from yqwork.core.database import get_db
from yqwork.core.dependencies import get_current_user, require_permission
from yqwork.core.error_handling import handle_endpoint_errors
from yqwork.core.permissions import Actor, Perms
from yqwork.models.user import User
from yqwork.schemas.department import DepartmentCreate, DepartmentResponse, DepartmentListResponse
from yqwork.services import department_service

router = APIRouter()


@router.get("", response_model=DepartmentListResponse)
@handle_endpoint_errors(operation_name="get_departments")
async def get_departments_endpoint(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List every department."""
    departments = await department_service.get_department_list(db)
    return DepartmentListResponse(
        rows=[DepartmentResponse.model_validate(d) for d in departments],
        count=len(departments),
    )


@router.post("", response_model=DepartmentResponse, status_code=status.HTTP_201_CREATED)
@handle_endpoint_errors(operation_name="add_department")
async def add_department_endpoint(
    data: DepartmentCreate,
    actor: Actor = Depends(require_permission(Perms.DEPARTMENT_ADD)),
    db: AsyncSession = Depends(get_db),
):
    department = await department_service.add_department(db, data.name, data.description)
    return DepartmentResponse.model_validate(department)


@router.put("/{department_id}", response_model=DepartmentResponse)
@handle_endpoint_errors(operation_name="update_department")
async def update_department_endpoint(
    department_id: int,
    data: DepartmentCreate,
    actor: Actor = Depends(require_permission(Perms.DEPARTMENT_EDIT)),
    db: AsyncSession = Depends(get_db),
):
    department = await department_service.update_department(db, department_id, data.name, data.description)
    return DepartmentResponse.model_validate(department)


@router.delete("/{department_id}", status_code=status.HTTP_204_NO_CONTENT)
@handle_endpoint_errors(operation_name="delete_department")
async def delete_department_endpoint(
    department_id: int,
    actor: Actor = Depends(require_permission(Perms.DEPARTMENT_DELETE)),
    db: AsyncSession = Depends(get_db),
):
    await department_service.delete_department(db, department_id)

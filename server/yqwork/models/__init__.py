from yqwork.models.department import Department
from yqwork.models.user import User, UserStatus
from yqwork.models.permission import Permission, Role, RolePermission, UserRole
from yqwork.models.work_hour import WorkHour, WorkHourRecord, WorkHourStatus, WorkHourRecordStatus
from yqwork.models.audit_log import AuditLog

__all__ = [
    "Department",
    "User",
    "UserStatus",
    "Permission",
    "Role",
    "RolePermission",
    "UserRole",
    "WorkHour",
    "WorkHourRecord",
    "WorkHourStatus",
    "WorkHourRecordStatus",
    "AuditLog",
]
